import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.config import settings

security = HTTPBearer()


def decode_identity_token(token: str) -> dict:
    """Decode and validate a bearer token from the identity provider.

    Raises jwt.PyJWTError on failure.
    """
    options = {"require": ["sub", "exp"]}
    kwargs = {}
    if settings.AUTH_TOKEN_AUDIENCE:
        kwargs["audience"] = settings.AUTH_TOKEN_AUDIENCE
    else:
        options["verify_aud"] = False
    if settings.AUTH_TOKEN_ISSUER:
        kwargs["issuer"] = settings.AUTH_TOKEN_ISSUER
    return jwt.decode(
        token,
        settings.AUTH_TOKEN_SECRET,
        algorithms=[settings.AUTH_TOKEN_ALGORITHM],
        options=options,
        **kwargs,
    )


def get_current_owner_id(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> str:
    """Resolve the owner id (the token's ``sub`` claim) for owner-scoped endpoints."""
    try:
        payload = decode_identity_token(credentials.credentials)
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
        )
    except jwt.PyJWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        )

    owner_id = str(payload.get("sub") or "").strip()
    if not owner_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )
    return owner_id
