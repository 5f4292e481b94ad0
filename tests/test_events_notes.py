"""
Tests for events, the notes repository and feedback.
"""
from datetime import date, timedelta

import cloudinary.uploader
from httpx import AsyncClient

from case_portal.config import settings

def days_from_now(days: int) -> str:
    return (date.today() + timedelta(days=days)).isoformat()

class TestEvents:
    async def test_create_requires_title_and_date(self, client: AsyncClient, admin_headers):
        response = await client.post("/api/admin/events", json={"title": "Hackathon"}, headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "Title and event date are required"

    async def test_create_notifies_department(self, client: AsyncClient, admin_headers, staff_headers, parent_headers):
        response = await client.post(
            "/api/admin/events",
            json={
                "title": "Hackathon",
                "event_date": days_from_now(10),
                "department": "Computer Science",
                "category_name": "Technical",
                "fee": "150.00",
                "max_participants": "120",
            },
            headers=admin_headers,
        )

        assert response.status_code == 201
        event = response.json()["data"]
        assert event["category"]["name"] == "Technical"
        assert event["status"] == "Upcoming"
        assert event["fee"] == 150.0
        assert event["max_participants"] == 120
        assert event["_count"] == {"registrations": 0, "attendees": 0}

        for path, headers in (
            ("/api/staff-portal/notifications", staff_headers),
            ("/api/parent-dashboard/notifications", parent_headers),
        ):
            response = await client.get(path, headers=headers)
            assert response.json()["notifications"][0]["title"] == "New Event: Hackathon"

    async def test_update_and_filter_by_category(self, client: AsyncClient, admin_headers):
        response = await client.post(
            "/api/admin/events",
            json={"title": "Sports Day", "event_date": days_from_now(5)},
            headers=admin_headers,
        )
        event_id = response.json()["data"]["id"]

        response = await client.put(
            "/api/admin/events",
            json={"id": str(event_id), "venue": "Main Ground", "category_name": "Sports"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["data"]["venue"] == "Main Ground"

        response = await client.get("/api/admin/events", params={"category": "Sports"}, headers=admin_headers)
        assert [e["id"] for e in response.json()["data"]] == [event_id]

    async def test_public_listing_hides_past_and_private(self, client: AsyncClient, admin_headers):
        for title, day, public in (("Past", -3, True), ("Private", 3, False), ("Open Day", 3, True)):
            await client.post(
                "/api/admin/events",
                json={"title": title, "event_date": days_from_now(day), "is_public": public},
                headers=admin_headers,
            )

        response = await client.get("/api/events")

        assert response.status_code == 200
        assert [e["title"] for e in response.json()["data"]] == ["Open Day"]

    async def test_delete(self, client: AsyncClient, admin_headers):
        response = await client.post(
            "/api/admin/events",
            json={"title": "Seminar", "event_date": days_from_now(1)},
            headers=admin_headers,
        )
        event_id = response.json()["data"]["id"]

        response = await client.delete("/api/admin/events", params={"eventId": event_id}, headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["message"] == 'Event "Seminar" has been deleted successfully.'

        response = await client.delete(f"/api/admin/events/{event_id}", headers=admin_headers)
        assert response.status_code == 404

class TestNotes:
    async def test_create_list_and_soft_delete(self, client: AsyncClient, admin_headers):
        response = await client.post(
            "/api/admin/notes",
            data={"title": "Graph Theory", "subject": "Mathematics", "semester": "2nd",
                  "file_url": "https://example.org/graphs.pdf"},
            headers=admin_headers,
        )

        assert response.status_code == 201
        note = response.json()["note"]
        assert note["semester"] == 2
        assert note["uploaded_by"] == "Ada Admin"

        response = await client.get("/api/notes", params={"search": "graph"})
        assert [n["id"] for n in response.json()["notes"]] == [note["id"]]

        response = await client.delete(f"/api/admin/notes/{note['id']}", headers=admin_headers)
        assert response.status_code == 200

        response = await client.get("/api/notes")
        assert response.json()["notes"] == []

        response = await client.delete(f"/api/admin/notes/{note['id']}", headers=admin_headers)
        assert response.status_code == 404

    async def test_upload_without_cloudinary(self, client: AsyncClient, admin_headers, monkeypatch):
        monkeypatch.setattr(settings, "CLOUDINARY_CLOUD_NAME", "")

        response = await client.post(
            "/api/admin/notes",
            data={"title": "Slides"},
            files={"file": ("slides.pdf", b"%PDF-1.4", "application/pdf")},
            headers=admin_headers,
        )

        assert response.status_code == 503

    async def test_upload_to_cloudinary(self, client: AsyncClient, admin_headers, monkeypatch):
        monkeypatch.setattr(settings, "CLOUDINARY_CLOUD_NAME", "demo")
        monkeypatch.setattr(settings, "CLOUDINARY_API_KEY", "key")
        monkeypatch.setattr(settings, "CLOUDINARY_API_SECRET", "secret")

        uploads = []

        def fake_upload(contents, **options):
            uploads.append(options)
            return {"secure_url": "https://res.cloudinary.com/demo/raw/upload/slides.pdf"}

        monkeypatch.setattr(cloudinary.uploader, "upload", fake_upload)

        response = await client.post(
            "/api/admin/notes",
            data={"title": "Slides"},
            files={"file": ("slides.pdf", b"%PDF-1.4", "application/pdf")},
            headers=admin_headers,
        )

        assert response.status_code == 201
        note = response.json()["note"]
        assert note["file_url"] == "https://res.cloudinary.com/demo/raw/upload/slides.pdf"
        assert note["file_name"] == "slides.pdf"
        assert uploads[0]["resource_type"] == "raw"

    async def test_rejects_unknown_file_type(self, client: AsyncClient, admin_headers, monkeypatch):
        monkeypatch.setattr(settings, "CLOUDINARY_CLOUD_NAME", "demo")
        monkeypatch.setattr(settings, "CLOUDINARY_API_KEY", "key")
        monkeypatch.setattr(settings, "CLOUDINARY_API_SECRET", "secret")

        response = await client.post(
            "/api/admin/notes",
            data={"title": "Script"},
            files={"file": ("run.exe", b"MZ", "application/octet-stream")},
            headers=admin_headers,
        )

        assert response.status_code == 400

class TestFeedback:
    async def test_submit_is_public(self, client: AsyncClient, admin_headers):
        response = await client.post(
            "/api/feedback",
            json={"name": "Visitor", "email": "visitor@example.org", "message": "Great portal", "rating": 5},
        )

        assert response.status_code == 201
        assert response.json()["message"] == "Thank you for your feedback!"

        response = await client.get("/api/admin/feedback", headers=admin_headers)
        feedback = response.json()["feedback"]
        assert len(feedback) == 1
        assert feedback[0]["category"] == "General"

    async def test_rating_out_of_range(self, client: AsyncClient):
        response = await client.post(
            "/api/feedback", json={"name": "Visitor", "message": "Hmm", "rating": 9}
        )

        assert response.status_code == 400
