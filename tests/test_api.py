"""End-to-end tests through the Flask test client."""

import json
from datetime import timedelta

import pytest

from community_vote.domain import ResidentId
from community_vote.extensions import change_feed, db
from community_vote.models.audit_log import AuditLog
from community_vote.services.errors import StorageUnavailable
from community_vote.services.poll_repository import PollRepository
from community_vote.services.vote_ledger import VoteLedger
from community_vote.utils.clock import utcnow
from tests.helpers import ADMIN_PASSWORD, sign_in_resident


def create_poll(client, headers, **overrides):
    body = {"title": "Lobby paint", "content": "Repaint the lobby green?", "duration_minutes": 30}
    body.update(overrides)
    return client.post("/api/polls/", json=body, headers=headers)


class TestAdminAuth:
    def test_login_returns_tokens(self, client, admin):
        resp = client.post("/api/auth/login", json={"email": admin.email, "password": ADMIN_PASSWORD})

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["access_token"]
        assert body["user"]["role"] == "ADMIN"

    def test_wrong_password_is_401(self, client, admin):
        resp = client.post("/api/auth/login", json={"email": admin.email, "password": "WrongPass999"})

        assert resp.status_code == 401

    def test_logout_revokes_token(self, client, admin_headers):
        assert client.post("/api/auth/logout", headers=admin_headers).status_code == 200

        assert client.get("/api/auth/me", headers=admin_headers).status_code == 401

    def test_admin_routes_require_token(self, client):
        assert client.get("/api/admin/directory").status_code == 401


class TestResidentLinks:
    def test_issue_link_for_known_household(self, client, admin_headers, tokens):
        resp = client.post(
            "/api/admin/resident-links",
            json={"building": "A", "unit_number": "26", "floor": 5},
            headers=admin_headers,
        )

        assert resp.status_code == 201
        body = resp.get_json()
        assert body["login_link"] == f"https://vote.example.org/#/login?token={body['token']}"
        assert body["resident"]["resident_id"] == "A-26-5"
        assert tokens.verify(body["token"]).floor_number == 5

    @pytest.mark.parametrize("household", [
        {"building": "Z", "unit_number": "26", "floor": 5},
        {"building": "A", "unit_number": "8", "floor": 5},
        {"building": "A", "unit_number": "26", "floor": 16},
        {"building": "A", "unit_number": "26"},
    ])
    def test_unknown_household_is_rejected(self, client, admin_headers, household):
        resp = client.post("/api/admin/resident-links", json=household, headers=admin_headers)

        assert resp.status_code == 400
        assert resp.get_json()["error"]["code"] == "VALIDATION_ERROR"

    def test_directory_lists_layout(self, client, admin_headers):
        body = client.get("/api/admin/directory", headers=admin_headers).get_json()

        assert body["buildings"]["C"] == ["16", "18"]
        assert body["floors"][0] == 1 and body["floors"][-1] == 15


class TestAuditLogs:
    @pytest.mark.parametrize("query", [{"limit": "ten"}, {"offset": "x"}, {"from": "yesterday"}, {"to": "2026-13-40"}])
    def test_bad_query_uses_error_envelope(self, client, admin_headers, query):
        resp = client.get("/api/admin/audit-logs", query_string=query, headers=admin_headers)

        assert resp.status_code == 400
        body = resp.get_json()
        assert body["success"] is False
        assert body["error"]["code"] == "VALIDATION_ERROR"

    def test_filters_by_resident(self, client, admin_headers, tokens):
        sign_in_resident(client, tokens)

        body = client.get(
            "/api/admin/audit-logs", query_string={"resident": "A-26-5"}, headers=admin_headers
        ).get_json()

        assert [log["action"] for log in body["logs"]] == ["RESIDENT_LOGIN_SUCCESS"]


class TestResidentSession:
    def test_login_sets_session(self, client, tokens):
        resp = sign_in_resident(client, tokens)
        me = client.get("/api/resident/me")

        assert resp.get_json()["resident"]["resident_id"] == "A-26-5"
        assert me.status_code == 200
        assert 0 < me.get_json()["resident"]["seconds_remaining"] <= 7200

    def test_invalid_token_is_401_with_generic_message(self, client):
        resp = client.get("/api/resident/login", query_string={"token": "garbage"})

        assert resp.status_code == 401
        assert resp.get_json()["error"]["code"] == "INVALID_LOGIN_LINK"
        assert client.get("/api/resident/me").status_code == 401

    def test_expired_token_is_401(self, client, tokens):
        token = tokens.issue("A", "26", 5, now=utcnow() - timedelta(hours=3))

        resp = client.get("/api/resident/login", query_string={"token": token})

        assert resp.status_code == 401

    def test_missing_token_is_400(self, client):
        resp = client.get("/api/resident/login")

        assert resp.status_code == 400
        assert resp.get_json()["error"]["code"] == "INVALID_LOGIN_LINK"

    def test_logout_clears_session(self, client, tokens):
        sign_in_resident(client, tokens)

        client.post("/api/resident/logout")

        resp = client.get("/api/resident/me")
        assert resp.status_code == 401
        assert resp.get_json()["error"]["code"] == "SESSION_REQUIRED"


class TestPolls:
    def test_admin_creates_poll(self, client, admin_headers):
        resp = create_poll(client, admin_headers)

        assert resp.status_code == 201
        poll = resp.get_json()["poll"]
        assert poll["is_active"] is True
        assert poll["is_open"] is True
        assert poll["created_by"] == "admin"

    def test_past_end_time_is_rejected(self, client, admin_headers):
        past = (utcnow() - timedelta(minutes=5)).isoformat() + "Z"

        resp = create_poll(client, admin_headers, duration_minutes=None, expires_at=past)

        assert resp.status_code == 400

    def test_future_end_time_is_accepted(self, client, admin_headers):
        ends = (utcnow() + timedelta(days=1)).replace(microsecond=0)

        resp = create_poll(client, admin_headers, duration_minutes=None, expires_at=ends.isoformat() + "Z")

        assert resp.status_code == 201
        assert resp.get_json()["poll"]["expires_at"].startswith(ends.isoformat())

    def test_residents_cannot_create_polls(self, client, tokens):
        sign_in_resident(client, tokens)

        assert create_poll(client, {}).status_code == 401

    def test_active_listing_requires_session(self, client):
        assert client.get("/api/polls/active").status_code == 401

    def test_resident_sees_active_polls(self, client, admin_headers, tokens):
        create_poll(client, admin_headers, title="First")
        create_poll(client, admin_headers, title="Second")
        sign_in_resident(client, tokens)

        titles = [p["title"] for p in client.get("/api/polls/active").get_json()["polls"]]

        assert titles == ["Second", "First"]

    def test_unknown_poll_is_404(self, client, tokens):
        sign_in_resident(client, tokens)

        resp = client.get("/api/polls/00000000-0000-0000-0000-000000000000")

        assert resp.status_code == 404
        assert resp.get_json()["error"]["code"] == "POLL_NOT_FOUND"

    def test_malformed_poll_id_is_404(self, client, tokens):
        sign_in_resident(client, tokens)

        assert client.get("/api/polls/not-a-uuid").status_code == 404

    def test_storage_failure_is_503(self, client, tokens, monkeypatch):
        sign_in_resident(client, tokens)

        def broken(self, now=None):
            raise StorageUnavailable("poll list")

        monkeypatch.setattr(PollRepository, "list_active", broken)

        resp = client.get("/api/polls/active")

        assert resp.status_code == 503
        assert resp.headers["Retry-After"]
        assert resp.get_json()["error"]["code"] == "STORAGE_UNAVAILABLE"


class TestVoting:
    def test_vote_then_duplicate(self, client, admin_headers, tokens):
        """Agree once, get 409 on the second try, tally stays {1, 0, 1}."""
        poll_id = create_poll(client, admin_headers).get_json()["poll"]["id"]
        sign_in_resident(client, tokens)

        first = client.post(f"/api/polls/{poll_id}/vote", json={"choice": "agree"})
        second = client.post(f"/api/polls/{poll_id}/vote", json={"choice": "disagree"})
        result = client.get(f"/api/polls/{poll_id}/results").get_json()["result"]

        assert first.status_code == 201
        assert first.get_json()["resident"] == "A-26-5"
        assert second.status_code == 409
        assert second.get_json()["error"]["code"] == "DUPLICATE_VOTE"
        assert (result["agree_count"], result["disagree_count"], result["total_votes"]) == (1, 0, 1)

    def test_vote_status(self, client, admin_headers, tokens):
        poll_id = create_poll(client, admin_headers).get_json()["poll"]["id"]
        sign_in_resident(client, tokens)

        before = client.get(f"/api/polls/{poll_id}/vote/status").get_json()
        client.post(f"/api/polls/{poll_id}/vote", json={"choice": "disagree"})
        after = client.get(f"/api/polls/{poll_id}/vote/status").get_json()

        assert before["has_voted"] is False
        assert after["has_voted"] is True
        assert after["choice"] == "disagree"

    def test_households_vote_independently(self, app, admin_headers, tokens):
        admin_client = app.test_client()
        poll_id = create_poll(admin_client, admin_headers).get_json()["poll"]["id"]

        for building, unit, floor, choice in [("A", "26", 5, "agree"), ("B", "20", 2, "disagree")]:
            resident_client = app.test_client()
            sign_in_resident(resident_client, tokens, building, unit, floor)
            assert resident_client.post(f"/api/polls/{poll_id}/vote", json={"choice": choice}).status_code == 201

        overview = admin_client.get("/api/admin/polls", headers=admin_headers).get_json()["polls"]
        assert overview[0]["result"]["total_votes"] == 2
        assert overview[0]["result"]["agree_percent"] == 50

    def test_invalid_choice_is_400(self, client, admin_headers, tokens):
        poll_id = create_poll(client, admin_headers).get_json()["poll"]["id"]
        sign_in_resident(client, tokens)

        resp = client.post(f"/api/polls/{poll_id}/vote", json={"choice": "maybe"})

        assert resp.status_code == 400

    def test_closed_poll_rejects_votes(self, client, tokens):
        now = utcnow()
        poll = PollRepository().create("Old", "x", duration_minutes=1, now=now - timedelta(minutes=5))
        sign_in_resident(client, tokens)

        resp = client.post(f"/api/polls/{poll.id}/vote", json={"choice": "agree"})

        assert resp.status_code == 403
        assert resp.get_json()["error"]["code"] == "POLL_CLOSED"

    def test_vote_requires_session(self, client, admin_headers):
        poll_id = create_poll(client, admin_headers).get_json()["poll"]["id"]

        resp = client.post(f"/api/polls/{poll_id}/vote", json={"choice": "agree"})

        assert resp.status_code == 401

    def test_votes_are_audited(self, client, admin_headers, tokens):
        poll_id = create_poll(client, admin_headers).get_json()["poll"]["id"]
        sign_in_resident(client, tokens)
        client.post(f"/api/polls/{poll_id}/vote", json={"choice": "agree"})
        client.post(f"/api/polls/{poll_id}/vote", json={"choice": "agree"})

        actions = {row.action for row in db.session.query(AuditLog).all()}

        assert {"POLL_CREATED", "RESIDENT_LOGIN_SUCCESS", "VOTE_SUBMITTED", "VOTE_DUPLICATE_ATTEMPT"} <= actions


class TestLiveStream:
    def test_stream_opens_with_ready_event(self, client):
        resp = client.get("/api/live/stream")

        assert resp.status_code == 200
        assert resp.mimetype == "text/event-stream"
        first = next(resp.response)
        resp.close()

        assert b"event: ready" in first

    def test_invalid_poll_filter_is_400(self, client):
        assert client.get("/api/live/stream?poll_id=nope").status_code == 400

    def test_committed_vote_reaches_open_stream(self, client):
        """A vote saved while the stream is open arrives as a `votes` event."""
        # Arrange
        poll = PollRepository().create("Lobby", "Paint it?")
        resp = client.get("/api/live/stream")
        next(resp.response)

        # Act
        VoteLedger().submit(poll.id, ResidentId("A", "26", 5), "agree")
        event = next(resp.response).decode()
        resp.close()

        # Assert
        assert event.startswith("event: votes\n")
        assert json.loads(event.split("data: ", 1)[1]) == {"poll_id": str(poll.id)}

    def test_poll_filter_drops_other_polls(self, client):
        """A stream scoped to one poll skips votes on other polls."""
        watched = PollRepository().create("Lobby", "Paint it?")
        other = PollRepository().create("Parking", "New rules?")
        resp = client.get("/api/live/stream", query_string={"poll_id": str(watched.id)})
        next(resp.response)

        ledger = VoteLedger()
        ledger.submit(other.id, ResidentId("B", "20", 2), "disagree")
        ledger.submit(watched.id, ResidentId("A", "26", 5), "agree")
        event = next(resp.response).decode()
        resp.close()

        assert str(watched.id) in event
        assert str(other.id) not in event

    def test_empty_poll_filter_means_unfiltered(self, client):
        before = change_feed.subscriber_count
        resp = client.get("/api/live/stream?poll_id=")
        first = next(resp.response).decode()
        subscribed = change_feed.subscriber_count
        resp.close()

        assert '"poll_id": null' in first
        assert subscribed == before + 2

    def test_closing_stream_unsubscribes(self, client):
        before = change_feed.subscriber_count
        resp = client.get("/api/live/stream")
        next(resp.response)
        open_count = change_feed.subscriber_count

        resp.close()

        assert open_count == before + 2
        assert change_feed.subscriber_count == before

    def test_head_request_leaves_no_subscription(self, client):
        before = change_feed.subscriber_count

        resp = client.head("/api/live/stream")
        resp.close()

        assert resp.status_code == 200
        assert change_feed.subscriber_count == before

    def test_full_inbox_drops_signals(self, app, client):
        """Signals beyond the queue size are dropped; the stream keeps working."""
        app.config["LIVE_STREAM_QUEUE_SIZE"] = 1
        first_poll = PollRepository().create("Lobby", "Paint it?")
        resp = client.get("/api/live/stream", query_string={"poll_id": str(first_poll.id)})
        next(resp.response)

        ledger = VoteLedger()
        ledger.submit(first_poll.id, ResidentId("A", "26", 5), "agree")
        ledger.submit(first_poll.id, ResidentId("A", "28", 3), "agree")
        event = next(resp.response).decode()
        keepalive = next(resp.response).decode()
        resp.close()

        assert event.startswith("event: votes\n")
        assert keepalive == ": keepalive\n\n"


class TestMisc:
    def test_health(self, client):
        assert client.get("/health").get_json() == {"status": "ok"}

    def test_request_id_is_echoed(self, client):
        resp = client.get("/health", headers={"X-Request-Id": "abc-123"})

        assert resp.headers["X-Request-Id"] == "abc-123"
