"""
Tests for staff and parent management.
"""
from httpx import AsyncClient

class TestStaff:
    async def test_create_staff_sends_welcome(self, client: AsyncClient, admin_headers):
        response = await client.post(
            "/api/admin/staff",
            json={
                "firstName": "Donald",
                "lastName": "Knuth",
                "username": "dknuth",
                "email": "knuth@case.edu",
                "department": "Computer Science",
                "salary": "85000.50",
                "experience": "12",
                "password": "taocp123",
            },
            headers=admin_headers,
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["name"] == "Donald Knuth"
        assert data["block_number"] == "A"
        assert data["room_number"] == "101"
        assert data["role"] == "Faculty"
        assert data["salary"] == 85000.5
        assert data["experience"] == 12
        assert data["notifications"][0]["title"] == "Welcome to the Team!"
        assert data["_count"]["notifications"] == 1

    async def test_create_requires_first_name_and_username(self, client: AsyncClient, admin_headers):
        response = await client.post("/api/admin/staff", json={"firstName": "Nobody"}, headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "First name and username are required"

    async def test_duplicate_username(self, client: AsyncClient, admin_headers, staff_id):
        response = await client.post(
            "/api/admin/staff", json={"firstName": "Grace", "username": "ghopper"}, headers=admin_headers
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Username or email already exists"

    async def test_update_staff(self, client: AsyncClient, admin_headers, staff_id):
        response = await client.put(
            "/api/admin/staff",
            json={"staff_id": staff_id, "roomNumber": "204", "availability": "On Leave"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["room_number"] == "204"
        assert data["availability"] == "On Leave"
        assert data["notifications"][0]["title"] == "Profile Updated"

    async def test_delete_staff(self, client: AsyncClient, admin_headers, staff_id):
        response = await client.delete(
            "/api/admin/staff", params={"staffId": str(staff_id)}, headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Staff member Grace Hopper has been deleted successfully."

        response = await client.delete(
            "/api/admin/staff", params={"staffId": str(staff_id)}, headers=admin_headers
        )
        assert response.status_code == 404

    async def test_search_and_departments(self, client: AsyncClient, admin_headers, staff_id):
        response = await client.get(
            "/api/admin/staff/search", params={"q": "hop", "department": "computer science"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 1
        assert body["staff"][0]["username"] == "ghopper"

        response = await client.get("/api/admin/department", headers=admin_headers)
        names = [d["name"] for d in response.json()["departments"]]
        assert names == ["Administration", "Computer Science"]

    async def test_active_list(self, client: AsyncClient, admin_headers, staff_id):
        response = await client.get("/api/admin/staff/list", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["count"] == 2

class TestParents:
    async def test_create_requires_password(self, client: AsyncClient, admin_headers):
        response = await client.post(
            "/api/admin/parents", json={"name": "Sara Turing", "username": "sturing"}, headers=admin_headers
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Password is required"

    async def test_create_and_link(self, client: AsyncClient, admin_headers, student_id, other_student_id):
        response = await client.post(
            "/api/admin/parents",
            json={"name": "Sara Turing", "username": "sturing", "password": "parent123", "relationship": "Mother"},
            headers=admin_headers,
        )
        assert response.status_code == 201
        parent_id = response.json()["data"]["parent_id"]

        response = await client.post(
            f"/api/admin/parents/{parent_id}/link", json={"studentId": str(student_id)}, headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Student Alan Turing has been linked successfully."

        response = await client.post(
            f"/api/admin/parents/{parent_id}/link", json={"studentId": other_student_id}, headers=admin_headers
        )
        assert response.status_code == 200

        response = await client.get("/api/admin/parents", headers=admin_headers)
        parent = next(p for p in response.json()["data"] if p["parent_id"] == parent_id)
        primary = {c["student_id"]: c["is_primary"] for c in parent["linkedStudents"]}
        assert primary == {str(student_id): True, str(other_student_id): False}

    async def test_duplicate_link(self, client: AsyncClient, admin_headers, parent_id, student_id):
        response = await client.post(
            f"/api/admin/parents/{parent_id}/link", json={"studentId": student_id}, headers=admin_headers
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Student is already linked to this parent"

    async def test_link_unknown_student(self, client: AsyncClient, admin_headers, parent_id):
        response = await client.post(
            f"/api/admin/parents/{parent_id}/link", json={"studentId": "123"}, headers=admin_headers
        )

        assert response.status_code == 404

    async def test_update_keeps_password_when_blank(self, client: AsyncClient, admin_headers, parent_id):
        response = await client.put(
            "/api/admin/parents",
            json={"parent_id": parent_id, "password": "  ", "phone": "5550123"},
            headers=admin_headers,
        )
        assert response.status_code == 200

        response = await client.post(
            "/api/auth/login", json={"username": "eturing", "password": "secret123", "role": "parent"}
        )
        assert response.status_code == 200

    async def test_delete_parent(self, client: AsyncClient, admin_headers, parent_id):
        response = await client.delete(f"/api/admin/parents/{parent_id}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["message"] == "Parent Ethel Turing has been deleted successfully."
