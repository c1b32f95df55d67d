from fastapi import APIRouter

from app.api.v1.endpoints import forms, public, uploads

api_v1_router = APIRouter()

api_v1_router.include_router(forms.router, prefix="/forms", tags=["forms"])
api_v1_router.include_router(public.router, prefix="/public", tags=["public"])
api_v1_router.include_router(uploads.router, prefix="/uploads", tags=["uploads"])
