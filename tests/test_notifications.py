"""
Tests for broadcasts, targeted sends and the portal inboxes.
"""
from httpx import AsyncClient

class TestBroadcasts:
    async def test_fan_out_to_targeted_portals(
        self, client: AsyncClient, admin_headers, staff_id, student_id, other_student_id, parent_id,
        student_headers, parent_headers, staff_headers,
    ):
        response = await client.post(
            "/api/admin/notifications",
            json={"title": "Campus Closed", "message": "Snow day", "targetPortals": ["students", "parents"]},
            headers=admin_headers,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["recipientCount"] == 3
        assert body["notification"]["target_portals"] == ["students", "parents"]

        response = await client.get("/api/student-interface/notifications", headers=student_headers)
        assert response.json()["unreadCount"] == 1
        assert response.json()["notifications"][0]["notification_id"] == body["notification"]["id"]

        response = await client.get("/api/parent-dashboard/notifications", headers=parent_headers)
        assert response.json()["notifications"][0]["title"] == "Campus Closed"

        response = await client.get("/api/staff-portal/notifications", headers=staff_headers)
        assert response.json()["notifications"] == []

    async def test_requires_portal(self, client: AsyncClient, admin_headers):
        response = await client.post(
            "/api/admin/notifications",
            json={"title": "Hello", "message": "World", "targetPortals": ["aliens"]},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Title, message and at least one target portal are required"

    async def test_staff_cannot_broadcast(self, client: AsyncClient, staff_headers):
        response = await client.post(
            "/api/admin/notifications",
            json={"title": "Hello", "message": "World", "targetPortals": ["staff"]},
            headers=staff_headers,
        )

        assert response.status_code == 403

    async def test_delete_removes_only_linked_copies(self, client: AsyncClient, admin_headers, student_id, student_headers, today):
        response = await client.post(
            "/api/admin/notifications",
            json={"title": "Exam Week", "message": "Good luck", "targetPortals": ["students"]},
            headers=admin_headers,
        )
        broadcast_id = response.json()["notification"]["id"]

        await client.post(
            "/api/admin/attendance",
            json={"studentId": student_id, "date": today, "status": "Present"},
            headers=admin_headers,
        )

        response = await client.delete(f"/api/admin/notifications/{broadcast_id}", headers=admin_headers)
        assert response.status_code == 200

        response = await client.get("/api/student-interface/notifications", headers=student_headers)
        titles = [n["title"] for n in response.json()["notifications"]]
        assert titles == ["Attendance Updated"]

        response = await client.get("/api/admin/notifications", headers=admin_headers)
        assert response.json()["notifications"] == []

    async def test_delete_errors(self, client: AsyncClient, admin_headers):
        response = await client.delete("/api/admin/notifications/abc", headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid notification ID"

        response = await client.delete("/api/admin/notifications/12", headers=admin_headers)
        assert response.status_code == 404

class TestTargetedSends:
    async def test_send_to_students_by_department(self, client: AsyncClient, staff_headers, student_id, other_student_id):
        response = await client.post(
            "/api/admin/notifications/send-to-students",
            json={"notificationId": "n-1", "title": "Lab", "message": "Bring laptops", "department": "Mathematics"},
            headers=staff_headers,
        )

        assert response.status_code == 200
        assert response.json()["count"] == 1

    async def test_send_to_parents_filters_by_child(self, client: AsyncClient, staff_headers, parent_id):
        response = await client.post(
            "/api/admin/notifications/send-to-parent",
            json={"notificationId": 1, "title": "PTA", "message": "Meeting", "department": "Computer Science"},
            headers=staff_headers,
        )
        assert response.json()["count"] == 1

        response = await client.post(
            "/api/admin/notifications/send-to-parent",
            json={"notificationId": 1, "title": "PTA", "message": "Meeting", "department": "Mathematics"},
            headers=staff_headers,
        )
        assert response.json()["count"] == 0

    async def test_send_to_staff_both_spellings(self, client: AsyncClient, admin_headers, staff_id):
        for path in ("send-to-staff", "sent-to-staff"):
            response = await client.post(
                f"/api/admin/notifications/{path}",
                json={"notificationId": 7, "title": "Meeting", "message": "3pm", "department": "All Departments"},
                headers=admin_headers,
            )

            assert response.status_code == 200
            assert response.json()["count"] == 2
            assert response.json()["failed"] == 0

    async def test_missing_fields(self, client: AsyncClient, staff_headers):
        response = await client.post(
            "/api/admin/notifications/send-to-students", json={"title": "Only a title"}, headers=staff_headers
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Missing required fields"

class TestInbox:
    async def _send(self, client, headers, title):
        await client.post(
            "/api/admin/notifications/send-to-students",
            json={"notificationId": 1, "title": title, "message": "..."},
            headers=headers,
        )

    async def test_mark_read_delete_and_mark_all(self, client: AsyncClient, staff_headers, student_id, student_headers):
        for title in ("One", "Two", "Three"):
            await self._send(client, staff_headers, title)

        response = await client.get("/api/student-interface/notifications", headers=student_headers)
        inbox = response.json()
        assert inbox["unreadCount"] == 3
        ids = [n["id"] for n in inbox["notifications"]]

        response = await client.post(
            "/api/student-interface/notifications",
            json={"notificationId": ids[0], "action": "mark_read"},
            headers=student_headers,
        )
        assert response.status_code == 200

        response = await client.post(
            "/api/student-interface/notifications",
            json={"notificationId": str(ids[1]), "action": "delete"},
            headers=student_headers,
        )
        assert response.status_code == 200

        response = await client.get("/api/student-interface/notifications", headers=student_headers)
        assert response.json()["unreadCount"] == 1
        assert len(response.json()["notifications"]) == 2

        response = await client.post(
            "/api/student-interface/notifications", json={"action": "mark_all_read"}, headers=student_headers
        )
        assert response.status_code == 200

        response = await client.get("/api/student-interface/notifications", headers=student_headers)
        assert response.json()["unreadCount"] == 0

    async def test_cannot_touch_another_students_notification(
        self, client: AsyncClient, staff_headers, student_id, other_student_id, student_headers,
    ):
        await self._send(client, staff_headers, "Shared")

        response = await client.get("/api/student-interface/notifications", headers=student_headers)
        mine = {n["id"] for n in response.json()["notifications"]}
        other_id = next(i for i in range(1, 10) if i not in mine)

        response = await client.post(
            "/api/student-interface/notifications",
            json={"notificationId": other_id, "action": "mark_read"},
            headers=student_headers,
        )

        assert response.status_code == 404
        assert response.json()["error"] == "Notification not found"

    async def test_invalid_action(self, client: AsyncClient, student_headers):
        response = await client.post(
            "/api/student-interface/notifications",
            json={"notificationId": 1, "action": "archive"},
            headers=student_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid action"
