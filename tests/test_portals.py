"""
Tests for the parent dashboard views of linked children.
"""
from httpx import AsyncClient

class TestParentDashboard:
    async def test_children(self, client: AsyncClient, parent_headers, student_id):
        response = await client.get("/api/parent-dashboard/children", headers=parent_headers)

        assert response.status_code == 200
        children = response.json()["children"]
        assert children == [{
            "id": children[0]["id"],
            "student_id": str(student_id),
            "name": "Alan Turing",
            "email": "alan@case.edu",
            "department": "Computer Science",
            "semester": 3,
            "section": "A",
            "is_primary": True,
        }]

    async def test_child_performance(self, client: AsyncClient, staff_headers, parent_headers, student_id, today):
        await client.post(
            "/api/admin/academic/internal-marks",
            json={"student_id": student_id, "subject": "Data Structures", "academic_year": "2024-25",
                  "internal1_marks": 18, "internal2_marks": 20, "assignment_marks": 9},
            headers=staff_headers,
        )
        await client.post(
            "/api/admin/attendance",
            json={"studentId": student_id, "date": today, "status": "Present"},
            headers=staff_headers,
        )

        response = await client.get(f"/api/parent-dashboard/children/{student_id}/performance", headers=parent_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["student"]["email"] == "alan@case.edu"
        assert body["internalMarks"]["summary"]["count"] == 1
        assert body["internalMarks"]["marks"][0]["total_marks"] == 28
        assert body["attendance"]["summary"] == {"totalClasses": 1, "presentClasses": 1, "percentage": 100}

    async def test_unlinked_child(self, client: AsyncClient, parent_headers, other_student_id):
        response = await client.get(
            f"/api/parent-dashboard/children/{other_student_id}/performance", headers=parent_headers
        )

        assert response.status_code == 403

    async def test_students_cannot_use_parent_views(self, client: AsyncClient, student_headers):
        response = await client.get("/api/parent-dashboard/children", headers=student_headers)

        assert response.status_code == 403
