"""
Tests for request logging.
"""
import logging

from httpx import AsyncClient

from case_portal.middleware.logging import portal_for_path

def test_portal_for_path():
    assert portal_for_path("/api/admin/students") == "admin"
    assert portal_for_path("/api/staff-portal/notifications") == "staff"
    assert portal_for_path("/api/students/search") == "staff"
    assert portal_for_path("/api/student/attendance") == "student"
    assert portal_for_path("/api/parent-dashboard/children") == "parent"
    assert portal_for_path("/api/notes") == "public"

async def test_request_id_is_echoed(client: AsyncClient, caplog):
    with caplog.at_level(logging.INFO, logger="case_portal.request"):
        response = await client.get("/api/notes", headers={"X-Request-ID": "req-42"})

    assert response.headers["X-Request-ID"] == "req-42"
    assert any("GET /api/notes -> 200 [portal: public]" in r.getMessage() for r in caplog.records)

async def test_request_id_is_generated(client: AsyncClient):
    response = await client.get("/api/events")

    assert len(response.headers["X-Request-ID"]) == 32
