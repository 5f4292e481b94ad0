"""
Tests for assignments, internal marks and the grading rules behind them.
"""
import pytest
from httpx import AsyncClient

from case_portal.services.grading import (
    round_half_up, validate_internal_marks, calculate_internal_total,
    calculate_percentage, grade_for_percentage, summarize_internal_marks,
)

MARKS = {
    "subject": "Data Structures",
    "academic_year": "2024-25",
    "internal1_marks": 15,
    "internal2_marks": "18",
    "assignment_marks": 8,
}

class TestInternalMarks:
    async def test_create_then_update_same_key(self, client: AsyncClient, staff_headers, student_id):
        response = await client.post(
            "/api/admin/academic/internal-marks",
            json={"student_id": str(student_id), **MARKS},
            headers=staff_headers,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Internal marks created successfully"
        assert body["data"]["total_marks"] == 25
        assert body["data"]["percentage"] == 83
        assert body["data"]["grade"] == "A"
        assert body["data"]["student_name"] == "Alan Turing"

        response = await client.post(
            "/api/admin/academic/internal-marks",
            json={"student_id": student_id, **MARKS, "internal1_marks": 20, "internal2_marks": 20, "assignment_marks": 10},
            headers=staff_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Internal marks updated successfully"
        assert body["data"]["total_marks"] == 30

        response = await client.get(
            "/api/admin/academic/internal-marks", params={"student_id": str(student_id)}, headers=staff_headers
        )
        assert response.json()["count"] == 1

    async def test_out_of_range(self, client: AsyncClient, staff_headers, student_id):
        response = await client.post(
            "/api/admin/academic/internal-marks",
            json={"student_id": student_id, **MARKS, "assignment_marks": 11},
            headers=staff_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Assignment marks must be between 0 and 10"

    async def test_missing_fields(self, client: AsyncClient, staff_headers):
        response = await client.post(
            "/api/admin/academic/internal-marks", json={"subject": "Data Structures"}, headers=staff_headers
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Missing required fields: student_id, subject, academic_year"

    async def test_unknown_student(self, client: AsyncClient, staff_headers):
        response = await client.post(
            "/api/admin/academic/internal-marks", json={"student_id": "77", **MARKS}, headers=staff_headers
        )

        assert response.status_code == 404

    async def test_partial_update_recomputes_total(self, client: AsyncClient, staff_headers, student_id):
        response = await client.post(
            "/api/admin/academic/internal-marks",
            json={"student_id": student_id, **MARKS},
            headers=staff_headers,
        )
        mark_id = response.json()["data"]["id"]

        response = await client.put(
            f"/api/admin/academic/internal-marks/{mark_id}", json={"assignment_marks": 2}, headers=staff_headers
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["internal1_marks"] == 15.0
        assert data["total_marks"] == 19

        response = await client.delete(f"/api/admin/academic/internal-marks/{mark_id}", headers=staff_headers)
        assert response.status_code == 200

    async def test_student_portal_summary(self, client: AsyncClient, staff_headers, student_headers, student_id):
        await client.post(
            "/api/admin/academic/internal-marks",
            json={"student_id": student_id, **MARKS},
            headers=staff_headers,
        )
        await client.post(
            "/api/admin/academic/internal-marks",
            json={"student_id": student_id, **MARKS, "subject": "Operating Systems",
                  "internal1_marks": 10, "internal2_marks": 10, "assignment_marks": 5},
            headers=staff_headers,
        )

        response = await client.get("/api/student/internal-marks", headers=student_headers)

        assert response.status_code == 200
        body = response.json()
        assert [m["subject"] for m in body["marks"]] == ["Data Structures", "Operating Systems"]
        assert body["summary"] == {
            "count": 2,
            "averageTotal": 20.0,
            "averagePercentage": 67,
            "overallGrade": "B",
        }

class TestAssignments:
    async def test_create_grade_and_list(self, client: AsyncClient, staff_headers, student_headers, student_id, subject_id):
        response = await client.post(
            "/api/admin/academic/assignments",
            json={
                "studentId": str(student_id),
                "subjectId": subject_id,
                "title": "Linked Lists",
                "dueDate": "2024-09-30",
                "maxMarks": "50",
            },
            headers=staff_headers,
        )

        assert response.status_code == 201
        assignment_id = response.json()["data"]["id"]
        assert response.json()["data"]["status"] == "pending"
        assert response.json()["data"]["maxMarks"] == 50

        response = await client.put(
            f"/api/admin/academic/assignments/{assignment_id}",
            json={"title": "Linked Lists", "dueDate": "2024-09-30", "obtainedMarks": 45, "grade": "A"},
            headers=staff_headers,
        )
        assert response.status_code == 200
        graded = response.json()["assignment"]
        assert graded["status"] == "graded"
        assert graded["gradedAt"] is not None

        response = await client.get("/api/student/assignments", params={"status": "graded"}, headers=student_headers)
        assignments = response.json()["assignments"]
        assert len(assignments) == 1
        assert assignments[0]["subjectName"] == "Data Structures"

        response = await client.get("/api/student-interface/notifications", headers=student_headers)
        titles = [n["title"] for n in response.json()["notifications"]]
        assert sorted(titles) == ["Assignment Updated", "New Assignment"]

    async def test_update_requires_title_and_due_date(self, client: AsyncClient, staff_headers, student_id):
        response = await client.post(
            "/api/admin/academic/assignments",
            json={"studentId": student_id, "title": "Trees", "dueDate": "2024-10-01"},
            headers=staff_headers,
        )
        assignment_id = response.json()["data"]["id"]

        response = await client.put(
            f"/api/admin/academic/assignments/{assignment_id}", json={"grade": "B"}, headers=staff_headers
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Title and due date are required"

    async def test_bulk_create(self, client: AsyncClient, staff_headers, student_id):
        response = await client.post(
            "/api/admin/academic/assignments",
            json={"bulkData": [
                {"studentId": student_id, "title": "Graphs", "dueDate": "2024-11-01"},
                {"studentId": student_id, "title": "Heaps", "dueDate": "not a date"},
            ]},
            headers=staff_headers,
        )

        assert response.status_code == 201
        results = response.json()["results"]
        assert results[0]["success"] is True
        assert results[1]["success"] is False

    async def test_delete_missing(self, client: AsyncClient, staff_headers):
        response = await client.delete("/api/admin/academic/assignments/404", headers=staff_headers)

        assert response.status_code == 404
        assert response.json()["error"] == "Assignment not found"

class TestGrading:
    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(3.5) == 4
        assert round_half_up(2.49) == 2

    def test_total_is_capped(self):
        assert calculate_internal_total(20, 20, 10) == 30
        assert calculate_internal_total(15, 18, 8) == 25
        assert calculate_internal_total(0, 1, 0) == 1

    def test_ranges(self):
        validate_internal_marks(0, 20, 10)

    @pytest.mark.parametrize("marks", [(21, 0, 0), (0, -1, 0), (0, 0, 10.5)])
    def test_out_of_range_components(self, marks):
        with pytest.raises(ValueError):
            validate_internal_marks(*marks)

    def test_grades(self):
        assert calculate_percentage(27) == 90
        assert grade_for_percentage(90) == "A+"
        assert grade_for_percentage(89) == "A"
        assert grade_for_percentage(40) == "C"
        assert grade_for_percentage(39) == "F"

    def test_empty_summary(self):
        assert summarize_internal_marks([])["overallGrade"] == "N/A"
