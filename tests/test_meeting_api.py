"""Integration tests for the /api/meeting endpoints.

Runs the full app (middleware, exception handlers, JWT auth) through httpx
AsyncClient against the real repository on in-memory SQLite.
"""

from __future__ import annotations

import uuid

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import SQLAlchemyError

from tests.factories import auth_headers, meeting_payload

BASE = "/api/meeting"


async def _create(client, user, **overrides) -> dict:
    response = await client.post(f"{BASE}/add", json=meeting_payload(**overrides), headers=auth_headers(user))
    assert response.status_code == 201, response.text
    return response.json()


# ── Auth ─────────────────────────────────────────────────────────────────────


class TestAuthentication:
    async def test_missing_token_is_401(self, client):
        response = await client.get(f"{BASE}/")
        assert response.status_code == 401

    async def test_garbage_token_is_401(self, client):
        response = await client.get(f"{BASE}/", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    async def test_raw_token_without_scheme_accepted(self, client, users):
        token = auth_headers(users["alice"])["Authorization"].removeprefix("Bearer ")
        response = await client.get(f"{BASE}/", headers={"Authorization": token})
        assert response.status_code == 200

    async def test_deleted_user_rejected(self, client, users):
        response = await client.get(f"{BASE}/", headers=auth_headers(users["gone"]))
        assert response.status_code == 401


# ── Create ───────────────────────────────────────────────────────────────────


class TestCreate:
    async def test_create_returns_record_in_wire_format(self, client, users):
        alice, bob = users["alice"], users["bob"]

        data = await _create(client, alice, participants=[str(bob.id)], meetingType="virtual")

        assert uuid.UUID(data["_id"])
        assert data["title"] == "Discovery call"
        assert data["meetingType"] == "virtual"
        assert data["status"] == "scheduled"
        assert data["relatedTo"] == "contact"
        assert data["participants"] == [str(bob.id)]
        assert data["createBy"] == str(alice.id)
        assert data["deleted"] is False
        assert "createdAt" in data and "updatedAt" in data
        assert "sendNotifications" not in data

    async def test_invalid_enum_is_400(self, client, users):
        response = await client.post(
            f"{BASE}/add",
            json=meeting_payload(status="maybe"),
            headers=auth_headers(users["alice"]),
        )
        assert response.status_code == 400
        assert "error" in response.json()

    async def test_missing_title_is_400(self, client, users):
        payload = meeting_payload()
        del payload["title"]
        response = await client.post(f"{BASE}/add", json=payload, headers=auth_headers(users["alice"]))
        assert response.status_code == 400
        assert "title" in response.json()["error"]

    async def test_invitations_sent_per_address(self, client, users, sender):
        sender.failing = {"broken@example.com"}

        await _create(
            client,
            users["alice"],
            title="Kickoff",
            sendNotifications=True,
            participantEmails=["a@example.com", "broken@example.com", "b@example.com"],
        )

        assert sender.attempted == ["a@example.com", "broken@example.com", "b@example.com"]
        assert [s["to"] for s in sender.sent] == ["a@example.com", "b@example.com"]
        assert sender.sent[0]["subject"] == "Meeting Invitation: Kickoff"

    async def test_no_invitations_without_flag(self, client, users, sender):
        await _create(client, users["alice"], participantEmails=["a@example.com"])
        assert sender.attempted == []


# ── Read ─────────────────────────────────────────────────────────────────────


class TestRead:
    async def test_list_is_scoped_to_caller(self, client, users):
        alice, bob = users["alice"], users["bob"]
        mine = await _create(client, alice)
        await _create(client, bob)

        response = await client.get(f"{BASE}/", headers=auth_headers(alice))

        assert response.status_code == 200
        assert [m["_id"] for m in response.json()] == [mine["_id"]]
        assert response.json()[0]["createdByName"] == "Alice Archer"

    async def test_list_filters_from_query(self, client, users):
        admin = users["admin"]
        virtual = await _create(client, admin, meetingType="virtual")
        await _create(client, admin, meetingType="phone")

        response = await client.get(f"{BASE}/", params={"meetingType": "virtual"}, headers=auth_headers(admin))

        assert [m["_id"] for m in response.json()] == [virtual["_id"]]

    async def test_view_includes_participant_names(self, client, users):
        alice, bob = users["alice"], users["bob"]
        created = await _create(client, alice, participants=[str(bob.id)])

        response = await client.get(f"{BASE}/view/{created['_id']}", headers=auth_headers(alice))

        assert response.status_code == 200
        assert response.json()["participantNames"] == [{"_id": str(bob.id), "name": "Bob Baker"}]

    async def test_view_unknown_is_404(self, client, users):
        response = await client.get(f"{BASE}/view/{uuid.uuid4()}", headers=auth_headers(users["alice"]))
        assert response.status_code == 404
        assert response.json() == {"message": "Meeting not found."}


# ── Update ───────────────────────────────────────────────────────────────────


class TestUpdate:
    async def test_edit_applies_partial_changes(self, client, users):
        alice, bob = users["alice"], users["bob"]
        created = await _create(client, alice, location="HQ")

        response = await client.put(
            f"{BASE}/edit/{created['_id']}",
            json={"status": "completed", "notes": "went well"},
            headers=auth_headers(bob),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "completed"
        assert data["notes"] == "went well"
        assert data["location"] == "HQ"
        assert data["modifiedBy"] == str(bob.id)

    async def test_edit_deleted_is_404(self, client, users):
        alice = users["alice"]
        created = await _create(client, alice)
        await client.delete(f"{BASE}/delete/{created['_id']}", headers=auth_headers(alice))

        response = await client.put(f"{BASE}/edit/{created['_id']}", json={"title": "x"}, headers=auth_headers(alice))

        assert response.status_code == 404
        assert response.json() == {"message": "Meeting not found or already deleted"}

    async def test_edit_empty_title_rejected_and_record_still_readable(self, client, users):
        alice = users["alice"]
        created = await _create(client, alice, title="Standup")

        response = await client.put(f"{BASE}/edit/{created['_id']}", json={"title": ""}, headers=auth_headers(alice))

        assert response.status_code == 400
        assert "title" in response.json()["error"]
        listed = await client.get(f"{BASE}/", headers=auth_headers(alice))
        assert listed.status_code == 200
        assert [m["title"] for m in listed.json()] == ["Standup"]
        view = await client.get(f"{BASE}/view/{created['_id']}", headers=auth_headers(alice))
        assert view.status_code == 200
        assert view.json()["title"] == "Standup"

    async def test_edit_null_title_is_400(self, client, users):
        alice = users["alice"]
        created = await _create(client, alice)

        response = await client.put(f"{BASE}/edit/{created['_id']}", json={"title": None}, headers=auth_headers(alice))

        assert response.status_code == 400
        assert response.json() == {"error": "Failed to update meeting"}


# ── Delete ───────────────────────────────────────────────────────────────────


class TestDelete:
    async def test_delete_then_hidden(self, client, users):
        alice = users["alice"]
        created = await _create(client, alice)

        response = await client.delete(f"{BASE}/delete/{created['_id']}", headers=auth_headers(alice))

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Meeting removed successfully"
        assert body["result"]["deleted"] is True
        view = await client.get(f"{BASE}/view/{created['_id']}", headers=auth_headers(alice))
        assert view.status_code == 404

    async def test_delete_unknown_is_404(self, client, users):
        response = await client.delete(f"{BASE}/delete/{uuid.uuid4()}", headers=auth_headers(users["alice"]))
        assert response.status_code == 404
        assert response.json() == {"message": "Meeting not found"}

    async def test_delete_many_reports_count(self, client, users):
        alice = users["alice"]
        first = await _create(client, alice)
        second = await _create(client, alice)

        response = await client.post(
            f"{BASE}/deleteMany",
            json=[first["_id"], second["_id"], str(uuid.uuid4()), "not-a-uuid"],
            headers=auth_headers(alice),
        )

        assert response.status_code == 200
        assert response.json() == {
            "message": "2 meetings removed successfully",
            "result": {"matchedCount": 2, "modifiedCount": 2},
        }

    async def test_delete_many_nothing_matched_is_404(self, client, users):
        response = await client.post(
            f"{BASE}/deleteMany", json=[str(uuid.uuid4())], headers=auth_headers(users["alice"])
        )
        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "No meetings found or deleted"}


# ── Bulk Create ──────────────────────────────────────────────────────────────


class TestAddMany:
    async def test_add_many_creates_all(self, client, users):
        alice = users["alice"]

        response = await client.post(
            f"{BASE}/addMany",
            json=[meeting_payload(title="one"), meeting_payload(title="two")],
            headers=auth_headers(alice),
        )

        assert response.status_code == 201
        assert [m["title"] for m in response.json()] == ["one", "two"]
        listed = await client.get(f"{BASE}/", headers=auth_headers(alice))
        assert len(listed.json()) == 2

    async def test_add_many_rejects_whole_batch(self, client, users):
        alice = users["alice"]

        response = await client.post(
            f"{BASE}/addMany",
            json=[meeting_payload(title="fine"), meeting_payload(meetingType="carrier-pigeon")],
            headers=auth_headers(alice),
        )

        assert response.status_code == 400
        listed = await client.get(f"{BASE}/", headers=auth_headers(alice))
        assert listed.json() == []


# ── Infrastructure ───────────────────────────────────────────────────────────


class TestInfrastructure:
    async def test_root_banner(self, client):
        response = await client.get("/")
        assert response.status_code == 200
        assert response.text == "API server running"

    async def test_health(self, client):
        response = await client.get("/health")
        assert response.json()["status"] == "ok"

    async def test_metrics_exposed(self, client, users):
        await client.get(f"{BASE}/", headers=auth_headers(users["alice"]))
        response = await client.get("/metrics")
        assert response.status_code == 200
        assert "http_requests_total" in response.text

    async def test_request_id_header(self, client):
        response = await client.get("/health")
        assert uuid.UUID(response.headers["X-Request-ID"])

    async def test_unhandled_error_is_500(self, app, users):
        class ExplodingRepository:
            async def list_meetings(self, *args):
                raise RuntimeError("disk on fire")

        app.state.meeting_repository = ExplodingRepository()
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get(f"{BASE}/", headers=auth_headers(users["alice"]))

        assert response.status_code == 500
        assert response.json() == {"error": "Something broke!", "message": "disk on fire"}

    async def test_store_not_initialized_is_503(self, app, client, users):
        app.state.meeting_repository = None
        response = await client.get(f"{BASE}/", headers=auth_headers(users["alice"]))
        assert response.status_code == 503


# ── Store Failures ───────────────────────────────────────────────────────────


class UnavailableRepository:
    """Repository double whose every operation fails at the store."""

    async def _fail(self, *args, **kwargs):
        raise SQLAlchemyError("connection reset by peer")

    list_meetings = _fail
    get_meeting_detail = _fail
    create_meeting = _fail
    create_many = _fail
    update_meeting = _fail
    soft_delete = _fail
    soft_delete_many = _fail


MEETING_ID = str(uuid.uuid4())


class TestStoreFailures:
    @pytest.mark.parametrize(
        ("method", "path", "body", "status_code", "expected"),
        [
            ("GET", "/", None, 500, {"error": "Internal Server Error"}),
            ("GET", f"/view/{MEETING_ID}", None, 500, {"error": "Error retrieving meeting"}),
            ("POST", "/add", meeting_payload(), 400, {"error": "Failed to create meeting"}),
            ("PUT", f"/edit/{MEETING_ID}", {"notes": "n"}, 400, {"error": "Failed to update meeting"}),
            ("DELETE", f"/delete/{MEETING_ID}", None, 500, {"message": "Error deleting meeting"}),
            ("POST", "/deleteMany", [MEETING_ID], 500, {"message": "Error deleting meetings"}),
            ("POST", "/addMany", [meeting_payload()], 400, {"error": "Failed to create meetings"}),
        ],
    )
    async def test_store_errors_map_to_documented_bodies(
        self, app, client, users, method, path, body, status_code, expected
    ):
        app.state.meeting_repository = UnavailableRepository()

        response = await client.request(method, f"{BASE}{path}", json=body, headers=auth_headers(users["alice"]))

        assert response.status_code == status_code
        assert response.json() == expected

    async def test_failed_create_sends_no_invitations(self, app, client, users, sender):
        app.state.meeting_repository = UnavailableRepository()

        response = await client.post(
            f"{BASE}/add",
            json=meeting_payload(sendNotifications=True, participantEmails=["a@example.com"]),
            headers=auth_headers(users["alice"]),
        )

        assert response.status_code == 400
        assert sender.attempted == []
