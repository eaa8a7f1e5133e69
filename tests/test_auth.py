from datetime import timedelta

from app.core.security import (
    create_access_token,
    decode_access_token,
    get_password_hash,
    verify_password,
)
from app.services.auth_service import create_user


def test_password_hash_roundtrip():
    hashed = get_password_hash("secret-pass")
    assert hashed != "secret-pass"
    assert verify_password("secret-pass", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("", hashed)


def test_expired_token_is_rejected():
    token = create_access_token({"sub": "1", "role": "ADMIN"}, expires_delta=timedelta(seconds=-1))
    assert decode_access_token(token) is None


def test_login_missing_fields(client):
    response = client.post("/api/auth/login", json={"email": "admin@example.com"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Email and password are required"


def test_login_invalid(client, admin_user):
    response = client.post("/api/auth/login", json={
        "email": "admin@example.com",
        "password": "wrong"
    })
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid credentials"


def test_login_non_admin_forbidden(client, db):
    create_user(db, "agent@example.com", "AgentPass123", role="USER")
    response = client.post("/api/auth/login", json={
        "email": "agent@example.com",
        "password": "AgentPass123"
    })
    assert response.status_code == 403


def test_login_admin_returns_token(client, admin_user):
    response = client.post("/api/auth/login", json={
        "email": "admin@example.com",
        "password": "AdminPass123"
    })
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert "password" not in body["user"]
    assert body["user"]["role"] == "ADMIN"

    claims = decode_access_token(body["token"])
    assert claims["sub"] == str(admin_user.id)
    assert claims["email"] == "admin@example.com"
    assert claims["role"] == "ADMIN"


def test_me_requires_token(client):
    assert client.get("/api/auth/me").status_code == 401
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid token"


def test_me_returns_fresh_user(client, admin_headers):
    response = client.get("/api/auth/me", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["user"]["email"] == "admin@example.com"


def test_admin_routes_reject_non_admin_token(client, db):
    user = create_user(db, "viewer@example.com", "ViewerPass123", role="USER")
    token = create_access_token({"sub": str(user.id), "email": user.email, "role": user.role})
    response = client.get("/api/admin/leads", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert client.get("/api/admin/leads").status_code == 401
