"""
Tests for authentication endpoints.
"""

from conftest import (
    FARMER_MEMBER_CODE,
    FARMER_PASSWORD,
    FARMER_PHONE,
    STAFF_PASSWORD,
    STAFF_PHONE,
)


def _farmer_body(tenant_id, **overrides):
    body = {
        "phone": FARMER_PHONE,
        "password": FARMER_PASSWORD,
        "member_code": FARMER_MEMBER_CODE,
        "dairy_center_id": tenant_id,
    }
    body.update(overrides)
    return body


def _staff_body(tenant_id, **overrides):
    body = {"phone": STAFF_PHONE, "password": STAFF_PASSWORD, "dairy_center_id": tenant_id}
    body.update(overrides)
    return body


class TestLogin:
    """POST /api/auth/login"""

    def test_farmer_login_success(self, client, seed_farmer, seed_tenant):
        response = client.post("/api/auth/login", json=_farmer_body(seed_tenant.id))
        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "Bearer"
        assert data["actor"] == "farmer"
        assert data["username"] == FARMER_PHONE
        assert data["member_code"] == FARMER_MEMBER_CODE
        assert data["dairy_center_id"] == seed_tenant.id
        assert data["dairy_center_name"] == "Test Dairy"
        assert data["expires_in"] == 15 * 60
        assert data["access_token"] and data["refresh_token"]

    def test_staff_login_success(self, client, seed_staff, seed_tenant):
        response = client.post("/api/auth/login", json=_staff_body(seed_tenant.id))
        assert response.status_code == 200
        data = response.json()
        assert data["actor"] == "staff"
        assert data["member_code"] is None

    def test_refresh_cookie_is_set(self, client, seed_staff, seed_tenant):
        response = client.post("/api/auth/login", json=_staff_body(seed_tenant.id))
        cookie = response.headers["set-cookie"]
        assert "refresh_token=" in cookie
        assert "HttpOnly" in cookie
        assert "Path=/api/auth" in cookie

    def test_wrong_password(self, client, seed_farmer, seed_tenant):
        response = client.post("/api/auth/login", json=_farmer_body(seed_tenant.id, password="nope"))
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid credentials"
        assert response.headers["www-authenticate"] == "Bearer"

    def test_unknown_tenant_is_also_401(self, client, seed_farmer):
        response = client.post("/api/auth/login", json=_farmer_body(999))
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid credentials"

    def test_missing_tenant_is_422(self, client, seed_staff):
        response = client.post("/api/auth/login", json={"phone": STAFF_PHONE, "password": STAFF_PASSWORD})
        assert response.status_code == 422


class TestActorSpecificLogin:
    """POST /api/farmer/login and /api/staff/login"""

    def test_farmer_endpoint(self, client, seed_farmer, seed_tenant):
        response = client.post("/api/farmer/login", json=_farmer_body(seed_tenant.id))
        assert response.status_code == 200
        assert response.json()["actor"] == "farmer"

    def test_farmer_endpoint_requires_member_code(self, client, seed_farmer, seed_tenant):
        response = client.post(
            "/api/farmer/login", json=_farmer_body(seed_tenant.id, member_code="")
        )
        assert response.status_code == 400

    def test_staff_endpoint_ignores_member_code(self, client, seed_staff, seed_tenant):
        response = client.post(
            "/api/staff/login", json=_staff_body(seed_tenant.id, member_code="M-1")
        )
        assert response.status_code == 200
        assert response.json()["actor"] == "staff"


class TestRefresh:
    """POST /api/auth/refresh"""

    def test_refresh_with_body(self, client, seed_farmer, seed_tenant):
        login = client.post("/api/auth/login", json=_farmer_body(seed_tenant.id)).json()
        client.cookies.clear()

        response = client.post("/api/auth/refresh", json={"refresh_token": login["refresh_token"]})
        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "Bearer"
        assert data["refresh_token"] != login["refresh_token"]

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"})
        assert me.json()["member_code"] == FARMER_MEMBER_CODE

    def test_refresh_with_cookie(self, client, seed_staff, seed_tenant):
        client.post("/api/auth/login", json=_staff_body(seed_tenant.id))
        response = client.post("/api/auth/refresh")
        assert response.status_code == 200

    def test_access_token_cannot_refresh(self, client, seed_staff, seed_tenant):
        login = client.post("/api/auth/login", json=_staff_body(seed_tenant.id)).json()
        client.cookies.clear()
        response = client.post("/api/auth/refresh", json={"refresh_token": login["access_token"]})
        assert response.status_code == 401

    def test_refresh_token_cannot_authorize(self, client, seed_staff, seed_tenant):
        login = client.post("/api/auth/login", json=_staff_body(seed_tenant.id)).json()
        response = client.get(
            "/api/auth/me", headers={"Authorization": f"Bearer {login['refresh_token']}"}
        )
        assert response.status_code == 401

    def test_refresh_for_deactivated_staff(self, client, db_session, seed_staff, seed_tenant):
        login = client.post("/api/auth/login", json=_staff_body(seed_tenant.id)).json()
        client.cookies.clear()
        seed_staff.is_active = False
        db_session.commit()

        response = client.post("/api/auth/refresh", json={"refresh_token": login["refresh_token"]})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid credentials"

    def test_refresh_token_cannot_be_replayed(self, client, seed_staff, seed_tenant):
        login = client.post("/api/auth/login", json=_staff_body(seed_tenant.id)).json()
        client.cookies.clear()

        first = client.post("/api/auth/refresh", json={"refresh_token": login["refresh_token"]})
        assert first.status_code == 200
        client.cookies.clear()

        replay = client.post("/api/auth/refresh", json={"refresh_token": login["refresh_token"]})
        assert replay.status_code == 401

        rotated = client.post(
            "/api/auth/refresh", json={"refresh_token": first.json()["refresh_token"]}
        )
        assert rotated.status_code == 200

    def test_missing_refresh_token(self, client):
        response = client.post("/api/auth/refresh")
        assert response.status_code == 401

    def test_invalid_refresh_token(self, client):
        response = client.post("/api/auth/refresh", json={"refresh_token": "invalid_token"})
        assert response.status_code == 401


class TestMe:
    """GET /api/auth/me"""

    def test_staff(self, client, staff_auth_headers, seed_tenant):
        response = client.get("/api/auth/me", headers=staff_auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["username"] == STAFF_PHONE
        assert data["roles"] == ["DAIRY_STAFF"]
        assert data["dairy_center_id"] == seed_tenant.id

    def test_unauthenticated(self, client):
        response = client.get("/api/auth/me")
        assert response.status_code == 401
