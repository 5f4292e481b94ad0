"""
Tests for attendance marking and the portal attendance views.
"""
from httpx import AsyncClient

from case_portal.services.attendance import attendance_summary, attendance_bucket, matches_attendance_filter

class TestMarkAttendance:
    async def test_single_mark_notifies_student(self, client: AsyncClient, staff_headers, student_id, student_headers, today):
        response = await client.post(
            "/api/admin/attendance",
            json={"studentId": str(student_id), "date": today, "status": "Present", "subject": "Algorithms"},
            headers=staff_headers,
        )

        assert response.status_code == 200
        assert response.json()["success"] is True

        response = await client.get("/api/student-interface/notifications", headers=student_headers)
        titles = [n["title"] for n in response.json()["notifications"]]
        assert titles == ["Attendance Updated"]

    async def test_second_mark_same_day_updates(self, client: AsyncClient, staff_headers, student_id, today):
        first = await client.post(
            "/api/admin/attendance",
            json={"studentId": student_id, "date": today, "status": "Absent"},
            headers=staff_headers,
        )
        second = await client.post(
            "/api/admin/attendance",
            json={"studentId": student_id, "date": today, "status": "Late"},
            headers=staff_headers,
        )

        assert first.json()["id"] == second.json()["id"]

        response = await client.get("/api/admin/attendance", params={"date": today}, headers=staff_headers)
        rows = response.json()["attendance"]
        assert len(rows) == 1
        assert rows[0]["status"] == "Late"
        assert rows[0]["subject"] == "General"
        assert rows[0]["markedBy"] == "Grace Hopper"

    async def test_missing_fields(self, client: AsyncClient, staff_headers, student_id):
        response = await client.post(
            "/api/admin/attendance", json={"studentId": student_id}, headers=staff_headers
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Missing required fields"

    async def test_invalid_status(self, client: AsyncClient, staff_headers, student_id, today):
        response = await client.post(
            "/api/admin/attendance",
            json={"studentId": student_id, "date": today, "status": "Sleeping"},
            headers=staff_headers,
        )

        assert response.status_code == 400

    async def test_bulk_reports_each_item(self, client: AsyncClient, staff_headers, student_id, other_student_id, today):
        response = await client.post(
            "/api/admin/attendance",
            json={"bulkData": [
                {"studentId": student_id, "date": today, "status": "Present"},
                {"studentId": "999", "date": today, "status": "Present"},
                {"studentId": other_student_id, "date": today, "status": "Absent"},
            ]},
            headers=staff_headers,
        )

        assert response.status_code == 200
        results = response.json()["results"]
        assert [r["success"] for r in results] == [True, False, True]
        assert results[1] == {"success": False, "studentId": "999", "error": "Student not found"}

    async def test_filter_by_department(self, client: AsyncClient, staff_headers, student_id, other_student_id, today):
        await client.post(
            "/api/admin/attendance",
            json={"bulkData": [
                {"studentId": student_id, "date": today, "status": "Present"},
                {"studentId": other_student_id, "date": today, "status": "Absent"},
            ]},
            headers=staff_headers,
        )

        response = await client.get(
            "/api/admin/attendance", params={"department": "Mathematics"}, headers=staff_headers
        )
        rows = response.json()["attendance"]
        assert [r["studentId"] for r in rows] == [str(other_student_id)]
        assert rows[0]["studentName"] == "Katherine Johnson"

    async def test_students_cannot_mark(self, client: AsyncClient, student_headers, student_id, today):
        response = await client.post(
            "/api/admin/attendance",
            json={"studentId": student_id, "date": today, "status": "Present"},
            headers=student_headers,
        )

        assert response.status_code == 403

class TestEditAttendance:
    async def test_update_and_delete(self, client: AsyncClient, staff_headers, student_id, today):
        response = await client.post(
            "/api/admin/attendance",
            json={"studentId": student_id, "date": today, "status": "Absent"},
            headers=staff_headers,
        )
        record_id = response.json()["id"]

        response = await client.put(f"/api/admin/attendance/{record_id}", json={}, headers=staff_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "Status is required"

        response = await client.put(
            f"/api/admin/attendance/{record_id}", json={"status": "Excused"}, headers=staff_headers
        )
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "Excused"

        response = await client.delete(f"/api/admin/attendance/{record_id}", headers=staff_headers)
        assert response.status_code == 200

        response = await client.delete(f"/api/admin/attendance/{record_id}", headers=staff_headers)
        assert response.status_code == 404

class TestPortalAttendance:
    async def _mark(self, client, headers, student_id, days):
        for day, status in days:
            await client.post(
                "/api/admin/attendance",
                json={"studentId": student_id, "date": day, "status": status, "subject": "Algorithms"},
                headers=headers,
            )

    async def test_student_sees_own_summary(self, client: AsyncClient, staff_headers, student_headers, student_id):
        await self._mark(client, staff_headers, student_id, [
            ("2024-03-01", "Present"),
            ("2024-03-02", "Present"),
            ("2024-03-03", "Late"),
        ])

        response = await client.get("/api/student/attendance", headers=student_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["summary"] == {"totalClasses": 3, "presentClasses": 2, "percentage": 67}
        assert body["breakdown"][0]["subject"] == "Algorithms"
        assert [a["date"] for a in body["attendance"]] == ["2024-03-03", "2024-03-02", "2024-03-01"]

    async def test_parent_reads_linked_child(self, client: AsyncClient, parent_headers, student_id):
        response = await client.get(
            "/api/student/attendance", params={"student_id": str(student_id)}, headers=parent_headers
        )

        assert response.status_code == 200
        assert response.json()["summary"]["totalClasses"] == 0

    async def test_parent_denied_for_other_student(self, client: AsyncClient, parent_headers, other_student_id):
        response = await client.get(
            "/api/student/attendance", params={"student_id": str(other_student_id)}, headers=parent_headers
        )

        assert response.status_code == 403
        assert response.json()["error"] == "Access denied for this student"

    async def test_staff_must_name_student(self, client: AsyncClient, staff_headers):
        response = await client.get("/api/student/attendance", headers=staff_headers)

        assert response.status_code == 400

class TestAttendanceHelpers:
    def test_only_present_counts(self):
        assert attendance_summary(["Present", "Late", "Excused", "Absent"]) == (4, 1, 25)
        assert attendance_summary([]) == (0, 0, 0)

    def test_buckets(self):
        assert attendance_bucket(95) == "excellent"
        assert attendance_bucket(80) == "good"
        assert attendance_bucket(70) == "average"
        assert attendance_bucket(69) == "poor"

    def test_export_filters(self):
        assert matches_attendance_filter(76, "above75")
        assert not matches_attendance_filter(74, "above75")
        assert matches_attendance_filter(10, "all")
        assert matches_attendance_filter(10, "unknown")
