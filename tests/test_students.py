"""
Tests for student management, export and lookup.
"""
import csv
import io
from datetime import date

from httpx import AsyncClient

from case_portal.models.students import StudentAttendance, StudentNotification, Subject
from case_portal.services.exports import generate_csv, parse_semester, roll_number

class TestStudentCrud:
    async def test_create_student(self, client: AsyncClient, admin_headers):
        response = await client.post(
            "/api/admin/students",
            json={
                "student_id": "2024000000010",
                "name": "Barbara Liskov",
                "email": "barbara@case.edu",
                "department": "Computer Science",
                "semester": "5th",
                "section": "C",
                "password": "liskov123",
            },
            headers=admin_headers,
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["student_id"] == "2024000000010"
        assert data["first_name"] == "Barbara"
        assert data["last_name"] == "Liskov"
        assert data["semester"] == 5
        assert data["attendance"] == 0

    async def test_create_generates_student_id(self, client: AsyncClient, admin_headers):
        response = await client.post(
            "/api/admin/students",
            json={"name": "Edsger Dijkstra", "email": "edsger@case.edu"},
            headers=admin_headers,
        )

        assert response.status_code == 201
        assert int(response.json()["data"]["student_id"]) > 0

    async def test_create_requires_name_and_email(self, client: AsyncClient, admin_headers):
        response = await client.post(
            "/api/admin/students", json={"name": "No Email"}, headers=admin_headers
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Name and email are required"

    async def test_duplicate_email(self, client: AsyncClient, admin_headers, student_id):
        response = await client.post(
            "/api/admin/students",
            json={"name": "Alan Again", "email": "alan@case.edu"},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Email already registered"}

    async def test_list_filters_by_department(self, client: AsyncClient, admin_headers, student_id, other_student_id):
        response = await client.get(
            "/api/admin/students", params={"department": "Mathematics"}, headers=admin_headers
        )

        assert response.status_code == 200
        ids = [s["student_id"] for s in response.json()["data"]]
        assert ids == [str(other_student_id)]

    async def test_update_by_body_id(self, client: AsyncClient, admin_headers, student_id):
        response = await client.put(
            "/api/admin/students",
            json={"student_id": str(student_id), "section": "D", "phone": "5550199"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["section"] == "D"
        assert data["contact_number"] == "5550199"

    async def test_update_by_path_notifies_student(self, client: AsyncClient, admin_headers, student_id, db_session):
        response = await client.put(
            f"/api/admin/students/{student_id}", json={"semester": 4}, headers=admin_headers
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["semester"] == 4
        assert data["notifications"][0]["title"] == "Profile Updated"

    async def test_update_missing_student(self, client: AsyncClient, admin_headers):
        response = await client.put(
            "/api/admin/students", json={"id": "42", "section": "A"}, headers=admin_headers
        )

        assert response.status_code == 404

    async def test_delete_removes_dependent_rows(self, client: AsyncClient, admin_headers, student_id, db_session):
        subject = Subject(subject_code="GEN", name="General", credits=3)
        db_session.add(subject)
        await db_session.flush()
        db_session.add(StudentAttendance(
            student_id=student_id, subject_id=subject.id, subject="General",
            date=date(2024, 1, 10), status="Present", marked_by="Ada Admin",
        ))
        db_session.add(StudentNotification(student_id=student_id, title="Hi", message="Hello"))
        await db_session.commit()

        response = await client.delete(
            "/api/admin/students", params={"studentId": str(student_id)}, headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Student Alan Turing has been deleted successfully."

        response = await client.get(f"/api/admin/students/{student_id}", headers=admin_headers)
        assert response.status_code == 404

    async def test_delete_requires_id(self, client: AsyncClient, admin_headers):
        response = await client.delete("/api/admin/students", headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "Student ID is required"

class TestStudentExport:
    async def test_json_export(self, client: AsyncClient, admin_headers, student_id, other_student_id):
        response = await client.post(
            "/api/admin/students/export",
            json={"format": "json", "filters": {"department": "Computer Science"}},
            headers=admin_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 1
        row = body["data"][0]
        assert row["rollNumber"] == "CO-202400"
        assert row["semester"] == "3rd"
        assert row["enrollDate"] == "2023-01-01"
        assert row["status"] == "Active"

    async def test_csv_export(self, client: AsyncClient, admin_headers, student_id):
        response = await client.post(
            "/api/admin/students/export",
            json={"format": "csv", "includeFields": {"personal": True, "attendance": True}},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "attachment" in response.headers["content-disposition"]
        lines = response.text.split("\n")
        assert lines[0] == "Name,Email,Phone,Date of Birth,Address,Attendance %"
        assert lines[1].startswith("Alan Turing,alan@case.edu,5550100,")

    async def test_attendance_filter(self, client: AsyncClient, admin_headers, student_id):
        response = await client.post(
            "/api/admin/students/export",
            json={"filters": {"attendance": "above75"}},
            headers=admin_headers,
        )

        assert response.json()["count"] == 0

class TestStudentLookup:
    async def test_staff_search_by_id(self, client: AsyncClient, staff_headers, student_id):
        response = await client.get(
            "/api/students/search", params={"studentId": str(student_id)}, headers=staff_headers
        )

        assert response.status_code == 200
        assert response.json()["data"]["email"] == "alan@case.edu"

    async def test_linked_parent_reads_details(self, client: AsyncClient, parent_headers):
        response = await client.get("/api/student/details/alan@case.edu", headers=parent_headers)

        assert response.status_code == 200
        assert response.json()["data"]["name"] == "Alan Turing"

    async def test_unlinked_parent_is_denied(self, client: AsyncClient, parent_headers, other_student_id):
        response = await client.get("/api/student/details/katherine@case.edu", headers=parent_headers)

        assert response.status_code == 403

class TestExportHelpers:
    def test_parse_semester_labels(self):
        assert parse_semester("3rd") == 3
        assert parse_semester("Semester 5") == 5
        assert parse_semester("") == 1
        assert parse_semester(7) == 7

    def test_roll_number(self):
        assert roll_number("Physics", 1700000000000) == "PH-170000"
        assert roll_number(None, 42) == "NA-42"

    def test_csv_quotes_commas(self):
        rows = [{"name": "Turing, Alan", "email": "alan@case.edu", "phone": "1"}]
        csv_text = generate_csv(rows, {"personal": True})

        assert csv_text.split("\n")[1].startswith('"Turing, Alan",alan@case.edu,1,')

    def test_csv_keeps_multiline_values_in_one_row(self):
        rows = [{"name": "Alan Turing", "email": "alan@case.edu", "phone": "1", "address": "12 Main St\nFlat 4"}]
        csv_text = generate_csv(rows, {"personal": True})

        parsed = list(csv.reader(io.StringIO(csv_text)))
        assert len(parsed) == 2
        assert parsed[1] == ["Alan Turing", "alan@case.edu", "1", "", "12 Main St\nFlat 4"]
