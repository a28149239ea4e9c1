"""Shared constants and helpers for the API tests."""

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "StrongPass123"
RESIDENT_SECRET = "test-resident-secret-0123456789abcdef"


def sign_in_resident(client, tokens, building="A", unit="26", floor=5):
    """Open a freshly issued login link with ``client``."""
    token = tokens.issue(building, unit, floor)
    resp = client.get("/api/resident/login", query_string={"token": token})
    assert resp.status_code == 200
    return resp
