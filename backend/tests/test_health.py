def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_api_v1_forms(client, owner_headers):
    response = client.get("/api/v1/forms/", headers=owner_headers)
    assert response.status_code == 200


def test_api_v1_public(client):
    """Public router is mounted; unknown forms return 404 without auth."""
    response = client.get("/api/v1/public/forms/00000000-0000-0000-0000-000000000000")
    assert response.status_code == 404


def test_api_v1_uploads(client):
    """Uploads router is mounted; requires a bearer token."""
    response = client.post("/api/v1/uploads/images")
    assert response.status_code in (401, 403, 422)
