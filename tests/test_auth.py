"""
Tests for login, the /me endpoints and the portal guard.
"""
from httpx import AsyncClient

from tests.conftest import PASSWORD, bearer

class TestLogin:
    async def test_student_login_with_email(self, client: AsyncClient, student_id):
        response = await client.post(
            "/api/auth/login",
            json={"username": "alan@case.edu", "password": PASSWORD, "role": "student"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["role"] == "student"
        assert data["token"]
        assert data["user"]["email"] == "alan@case.edu"
        assert data["redirectTo"]
        assert "student_session=" in response.headers["set-cookie"]

    async def test_admin_login(self, client: AsyncClient, admin_id):
        response = await client.post(
            "/api/auth/login",
            json={"username": "admin", "password": PASSWORD, "role": "admin"},
        )

        assert response.status_code == 200
        assert response.json()["role"] == "admin"

    async def test_staff_cannot_log_in_as_admin(self, client: AsyncClient, staff_id):
        response = await client.post(
            "/api/auth/login",
            json={"username": "ghopper", "password": PASSWORD, "role": "admin"},
        )

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Invalid credentials"}

    async def test_wrong_password(self, client: AsyncClient, parent_id):
        response = await client.post(
            "/api/auth/login",
            json={"username": "eturing", "password": "wrong", "role": "parent"},
        )

        assert response.status_code == 401
        assert response.json()["error"] == "Invalid credentials"

    async def test_unknown_role_is_rejected(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/login",
            json={"username": "someone", "password": PASSWORD, "role": "janitor"},
        )

        assert response.status_code == 400
        assert response.json()["success"] is False

class TestMe:
    async def test_student_me(self, client: AsyncClient, student_headers):
        response = await client.get("/api/auth/student/me", headers=student_headers)

        assert response.status_code == 200
        assert response.json()["user"]["student_id"] == "2024000000001"

    async def test_parent_me_lists_children(self, client: AsyncClient, parent_headers):
        response = await client.get("/api/auth/parent/me", headers=parent_headers)

        assert response.status_code == 200
        children = response.json()["user"]["linkedStudents"]
        assert [c["student_id"] for c in children] == ["2024000000001"]

    async def test_token_for_missing_account(self, client: AsyncClient, session_factory):
        response = await client.get("/api/auth/staff/me", headers=bearer(999, "staff"))

        assert response.status_code == 401

class TestPortalGuard:
    async def test_protected_api_without_credentials(self, client: AsyncClient):
        response = await client.get("/api/admin/students")

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Authentication required"}

    async def test_portal_page_redirects_to_login(self, client: AsyncClient):
        response = await client.get("/staff-portal/home")

        assert response.status_code == 307
        assert response.headers["location"] == "/login?redirect=/staff-portal/home"

    async def test_public_routes_pass_through(self, client: AsyncClient):
        response = await client.get("/api/notes")

        assert response.status_code == 200

    async def test_garbage_token_is_rejected(self, client: AsyncClient, session_factory):
        response = await client.get(
            "/api/admin/students", headers={"Authorization": "Bearer not-a-token"}
        )

        assert response.status_code == 401

    async def test_student_cannot_use_admin_routes(self, client: AsyncClient, student_headers):
        response = await client.get("/api/admin/students", headers=student_headers)

        assert response.status_code == 403
