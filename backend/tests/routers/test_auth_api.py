# tests/routers/test_auth_api.py
"""
API layer tests for authentication endpoints.

Tests:
- POST /api/auth/register
- POST /api/auth/login
- GET /api/auth/me
"""

from datetime import timedelta

from cryptofolio.services.auth import JWTHandler


class TestRegister:
    """Tests for POST /api/auth/register."""

    def test_register_success(self, client):
        """Should return 201 with the user and a bearer token."""
        response = client.post(
            "/api/auth/register",
            json={"email": "New@Example.com", "password": "password123", "name": "Ada"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["user"]["email"] == "new@example.com"
        assert data["user"]["name"] == "Ada"
        assert data["user"]["theme"] == "light"
        assert "hashed_password" not in data["user"]
        assert data["token_type"] == "bearer"
        assert data["access_token"]

    def test_register_token_works(self, client):
        """The returned token should authenticate /auth/me."""
        token = client.post(
            "/api/auth/register",
            json={"email": "me@example.com", "password": "password123"},
        ).json()["access_token"]

        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert response.json()["email"] == "me@example.com"

    def test_register_duplicate_email(self, client, sample_user):
        response = client.post(
            "/api/auth/register",
            json={"email": "test@example.com", "password": "password123"},
        )

        assert response.status_code == 409
        assert response.json()["error"] == "UserExistsError"

    def test_register_weak_password(self, client):
        """Policy violations are domain validation errors (400)."""
        response = client.post(
            "/api/auth/register",
            json={"email": "a@example.com", "password": "password"},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "ValidationError"
        assert body["details"] == {"field": "password"}

    def test_register_invalid_email(self, client):
        response = client.post(
            "/api/auth/register",
            json={"email": "not-an-email", "password": "password123"},
        )

        assert response.status_code == 422


class TestLogin:
    """Tests for POST /api/auth/login."""

    def test_login_success(self, client, sample_user):
        response = client.post(
            "/api/auth/login",
            json={"email": "test@example.com", "password": "password123"},
        )

        assert response.status_code == 200
        assert response.json()["user"]["id"] == sample_user.id

    def test_login_wrong_password(self, client, sample_user):
        response = client.post(
            "/api/auth/login",
            json={"email": "test@example.com", "password": "wrongpass1"},
        )

        assert response.status_code == 401
        assert response.json()["error"] == "InvalidCredentialsError"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_login_inactive_user(self, client, make_user):
        make_user(email="off@example.com", is_active=False)

        response = client.post(
            "/api/auth/login",
            json={"email": "off@example.com", "password": "password123"},
        )

        assert response.status_code == 403
        assert response.json()["error"] == "UserInactiveError"


class TestMe:
    """Tests for GET /api/auth/me."""

    def test_requires_token(self, client):
        response = client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.json()["error"] == "UnauthorizedError"

    def test_invalid_token(self, client):
        response = client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 401

    def test_expired_token(self, client, sample_user):
        token = JWTHandler.create_access_token(
            user_id=sample_user.id,
            email=sample_user.email,
            expires_delta=timedelta(seconds=-1),
        )

        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["message"] == "Token has expired"

    def test_deleted_user(self, client, db, sample_user, auth_headers):
        db.delete(sample_user)
        db.commit()

        response = client.get("/api/auth/me", headers=auth_headers)

        assert response.status_code == 401

    def test_inactive_user_forbidden(self, client, make_user, make_auth_headers):
        user = make_user(email="off@example.com", is_active=False)

        response = client.get("/api/auth/me", headers=make_auth_headers(user))

        assert response.status_code == 403
