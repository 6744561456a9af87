"""Integration tests for the HTTP and WebSocket API.

The app runs with an in-memory Redis, a scripted AI service, a mocked Google
API transport and fake audio devices; no external service is contacted.
"""
import time

import httpx
import numpy as np
import pytest
from fastapi.testclient import TestClient

from conftest import generate_session_jwt, make_ai_mock, make_fake_redis, make_settings
from main import create_app
from services.calendar_service import CONNECT_CALENDAR_MESSAGE, EVENTS_URL
from services.auth_service import GOOGLE_TOKEN_URL, GOOGLE_USERINFO_URL
from services.media_sources import MediaStream, MergedAudioStream
from services.summary_service import SUMMARY_PLACEHOLDER

CALENDAR_ITEMS = [
    {
        "id": "evt-standup-01",
        "summary": "Standup",
        "start": {"dateTime": "2030-01-07T09:00:00Z"},
        "end": {"dateTime": "2030-01-07T09:15:00Z"},
        "conferenceData": {
            "entryPoints": [{"entryPointType": "video", "uri": "https://meet.google.com/std-up"}]
        },
    },
    {"id": "evt-lunch-01", "summary": "Lunch", "start": {"dateTime": "2030-01-07T12:00:00Z"}},
]


def google_handler(request: httpx.Request) -> httpx.Response:
    url = str(request.url)
    if url.startswith(GOOGLE_TOKEN_URL):
        if b"code=bad-code" in request.content:
            return httpx.Response(400, json={"error": "invalid_grant"})
        return httpx.Response(200, json={"access_token": "ya29.google-token", "expires_in": 3599})
    if url.startswith(GOOGLE_USERINFO_URL):
        return httpx.Response(200, json={
            "sub": "google-uid-123",
            "email": "alice@example.com",
            "name": "Alice",
            "picture": "https://example.com/alice.png",
        })
    if url.startswith(EVENTS_URL):
        return httpx.Response(200, json={"items": CALENDAR_ITEMS})
    return httpx.Response(404, json={"error": {"message": f"unexpected url {url}"}})


class ToneStream(MediaStream):
    def __init__(self):
        self.running = False

    def start(self):
        self.running = True

    def read_available(self):
        return np.full(16000, 0.05, dtype=np.float32)

    def stop(self):
        self.running = False

    @property
    def active(self):
        return self.running


class ToneProvider:
    def acquire_display_stream(self):
        return ToneStream()

    def acquire_microphone_stream(self):
        return ToneStream()

    def merge(self, streams):
        return MergedAudioStream(streams)


@pytest.fixture
def ai():
    return make_ai_mock()


@pytest.fixture
def client(ai):
    app = create_app(
        make_settings(),
        redis_client=make_fake_redis(),
        ai_service=ai,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(google_handler)),
        media_provider_factory=ToneProvider,
    )
    with TestClient(app) as test_client:
        yield test_client


def auth_headers(uid="google-uid-123", email="alice@example.com"):
    return {"Authorization": f"Bearer {generate_session_jwt(uid=uid, email=email)}"}


def wait_until(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return
        time.sleep(0.05)
    raise AssertionError("condition not met in time")


class TestHealthAndAuth:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "document_store": "ok", "ai": "enabled"}

    @pytest.mark.parametrize("path", ["/meetings", "/calendar/events", "/auth/me", "/invitations/pending"])
    def test_protected_routes_require_token(self, client, path):
        response = client.get(path)

        assert response.status_code == 401
        assert response.json()["error"] == "AUTH_REQUIRED"

    def test_authorization_url(self, client):
        response = client.get("/auth/google/url")

        body = response.json()
        assert response.status_code == 200
        assert body["url"].startswith("https://accounts.google.com/o/oauth2/v2/auth?")
        assert "calendar.readonly" in body["url"]
        assert body["state"] in body["url"]

    def test_google_sign_in_flow(self, client):
        response = client.post("/auth/google", json={"code": "good-code"})

        assert response.status_code == 200
        body = response.json()
        assert body["user"]["uid"] == "google-uid-123"
        assert body["token_type"] == "bearer"

        headers = {"Authorization": f"Bearer {body['access_token']}"}
        me = client.get("/auth/me", headers=headers)
        assert me.json()["display_name"] == "Alice"

        calendar = client.get("/calendar/events", headers=headers).json()
        assert calendar["error"] is None
        assert [e["id"] for e in calendar["events"]] == ["evt-standup-01"]

        meetings = client.get("/meetings", headers=headers).json()
        assert [m["id"] for m in meetings] == ["evt-standup-01"]
        assert meetings[0]["meet_link"] == "https://meet.google.com/std-up"

        assert client.post("/auth/logout", headers=headers).status_code == 200
        after_logout = client.get("/calendar/events", headers=headers).json()
        assert after_logout == {"events": [], "error": CONNECT_CALENDAR_MESSAGE}

    def test_rejected_code(self, client):
        response = client.post("/auth/google", json={"code": "bad-code"})

        assert response.status_code == 401
        assert response.json()["message"] == "Sign-in failed. Please try again."


class TestCalendar:

    def test_without_cached_token(self, client):
        response = client.get("/calendar/events", headers=auth_headers())

        assert response.status_code == 200
        assert response.json() == {"events": [], "error": CONNECT_CALENDAR_MESSAGE}

    def test_range_without_token_is_error(self, client):
        response = client.get(
            "/calendar/events/range",
            params={"time_min": "2030-01-01T00:00:00Z", "time_max": "2030-02-01T00:00:00Z"},
            headers=auth_headers(),
        )

        assert response.status_code == 400
        assert response.json() == {"error": "CALENDAR_ERROR", "message": CONNECT_CALENDAR_MESSAGE}


@pytest.fixture
def meeting_id(client):
    """Sign in through Google and load the calendar so one meeting exists."""
    token = client.post("/auth/google", json={"code": "good-code"}).json()["access_token"]
    client.get("/calendar/events", headers={"Authorization": f"Bearer {token}"})
    return "evt-standup-01"


class TestMeetingFlow:

    def test_unknown_meeting_is_404(self, client):
        response = client.get("/meetings/evt-unknown-1", headers=auth_headers())

        assert response.status_code == 404
        assert response.json()["message"] == 'Meeting with ID "evt-unknown-1" not found.'

    def test_view_before_summary_shows_placeholder(self, client, meeting_id):
        view = client.get(f"/meetings/{meeting_id}/view", headers=auth_headers()).json()

        assert view["meeting"]["title"] == "Standup"
        assert view["summary"] == SUMMARY_PLACEHOLDER
        assert view["transcript"] == []

        summary = client.get(f"/meetings/{meeting_id}/summary", headers=auth_headers()).json()
        assert summary["generated"] is False
        assert summary["summary"] == SUMMARY_PLACEHOLDER

    def test_transcript_then_complete_generates_summary_once(self, client, ai, meeting_id):
        headers = auth_headers()
        segments = [
            {"text": "Let's ship on Monday", "timestamp": "2030-01-07T09:01:00.000Z"},
            {"text": "Bob sends the deck", "timestamp": "2030-01-07T09:02:00.000Z"},
        ]

        appended = client.post(f"/meetings/{meeting_id}/transcript", json={"segments": segments}, headers=headers)
        assert [s["text"] for s in appended.json()] == ["Let's ship on Monday", "Bob sends the deck"]

        completed = client.post(f"/meetings/{meeting_id}/complete", headers=headers).json()
        assert completed["status"] == "completed"

        client.post(f"/meetings/{meeting_id}/summary", headers=headers)

        summary = client.get(f"/meetings/{meeting_id}/summary", headers=headers).json()
        assert summary["generated"] is True
        assert summary["summary"] == "- Discussed the launch plan"
        assert summary["insights"]["sentiment"] == "positive"
        assert ai.generate_meeting_summary.await_count == 1

    def test_patch_meeting(self, client, meeting_id):
        response = client.patch(f"/meetings/{meeting_id}", json={"title": "Daily standup"}, headers=auth_headers())

        assert response.status_code == 200
        assert response.json()["title"] == "Daily standup"

    def test_empty_segment_rejected(self, client, meeting_id):
        response = client.post(
            f"/meetings/{meeting_id}/transcript",
            json={"segments": [{"text": "  ", "timestamp": "2030-01-07T09:01:00.000Z"}]},
            headers=auth_headers(),
        )

        assert response.status_code == 422

    def test_chat(self, client, ai, meeting_id):
        headers = auth_headers()

        answer = client.post(f"/meetings/{meeting_id}/chat", json={"question": " When? "}, headers=headers).json()

        assert answer == {"question": "When?", "answer": "The launch is on Monday."}
        assert len(client.get(f"/meetings/{meeting_id}/chat", headers=headers).json()) == 1
        assert client.delete(f"/meetings/{meeting_id}/chat", headers=headers).json()["chat"] == []

    def test_notes(self, client, meeting_id):
        headers = auth_headers()

        note = client.post(f"/meetings/{meeting_id}/notes", json={"content": "follow up"}, headers=headers).json()
        edited = client.patch(
            f"/meetings/{meeting_id}/notes/{note['id']}", json={"content": "follow up with Bob"}, headers=headers
        ).json()
        assert edited["content"] == "follow up with Bob"

        client.delete(f"/meetings/{meeting_id}/notes/{note['id']}", headers=headers)
        assert client.get(f"/meetings/{meeting_id}/notes", headers=headers).json() == []

    def test_recording_feeds_transcript(self, client, ai, meeting_id):
        headers = auth_headers()

        started = client.post(f"/meetings/{meeting_id}/recording/start", headers=headers)
        assert started.status_code == 200
        assert started.json()["recording"] is True

        duplicate = client.post(f"/meetings/{meeting_id}/recording/start", headers=headers)
        assert duplicate.status_code == 400

        wait_until(lambda: client.get(
            f"/meetings/{meeting_id}/recording/status", headers=headers
        ).json()["segments_emitted"] >= 1)

        stopped = client.post(f"/meetings/{meeting_id}/recording/stop", headers=headers).json()
        assert stopped["recording"] is False
        assert stopped["segments"] >= 1

        transcript = client.get(f"/meetings/{meeting_id}/transcript", headers=headers).json()
        assert all(s["text"] == "Hello from the meeting" for s in transcript)
        assert client.get(f"/meetings/{meeting_id}/summary", headers=headers).json()["generated"] is True


class TestInvitations:

    def test_invite_accept_and_open(self, client, meeting_id):
        organizer = auth_headers()
        invitee = auth_headers(uid="google-uid-bob", email="Bob@Example.com")

        created = client.post(
            "/invitations",
            json={"event_id": "evt-private-9", "invitee_email": "bob@example.com", "meeting_title": "1:1"},
            headers=organizer,
        ).json()
        assert created["status"] == "pending"

        pending = client.get("/invitations/pending", headers=invitee).json()
        assert [i["id"] for i in pending] == [created["id"]]

        accepted = client.post(f"/invitations/{created['id']}/accept", headers=invitee).json()
        assert accepted["status"] == "accepted"
        assert accepted["invitee_id"] == "google-uid-bob"

        meeting = client.get("/meetings/evt-private-9", headers=invitee).json()
        assert meeting["status"] == "invited"
        assert meeting["title"] == "1:1"

    def test_decline(self, client):
        created = client.post(
            "/invitations",
            json={"event_id": "evt-private-9", "invitee_email": "carol@example.com"},
            headers=auth_headers(),
        ).json()

        declined = client.post(f"/invitations/{created['id']}/decline", headers=auth_headers(uid="carol")).json()

        assert declined["status"] == "declined"


class TestLiveTranscript:

    def test_live_feed_pushes_full_transcript(self, client, meeting_id):
        token = generate_session_jwt()
        headers = auth_headers()

        with client.websocket_connect(f"/meetings/{meeting_id}/transcript/live?token={token}") as websocket:
            initial = websocket.receive_json()
            assert initial == {"type": "transcript", "meeting_id": meeting_id, "segments": []}

            client.post(
                f"/meetings/{meeting_id}/transcript",
                json={"segments": [{"text": "first", "timestamp": "2030-01-07T09:01:00.000Z"}]},
                headers=headers,
            )
            update = websocket.receive_json()
            assert [s["text"] for s in update["segments"]] == ["first"]

            client.post(
                f"/meetings/{meeting_id}/transcript",
                json={"segments": [{"text": "second", "timestamp": "2030-01-07T09:02:00.000Z"}]},
                headers=headers,
            )
            update = websocket.receive_json()
            assert [s["text"] for s in update["segments"]] == ["first", "second"]

            websocket.send_json({"type": "unsubscribe"})

    def test_non_object_messages_are_ignored(self, client, meeting_id):
        token = generate_session_jwt()

        with client.websocket_connect(f"/meetings/{meeting_id}/transcript/live?token={token}") as websocket:
            websocket.receive_json()

            websocket.send_json([1, 2])
            websocket.send_json("x")
            client.post(
                f"/meetings/{meeting_id}/transcript",
                json={"segments": [{"text": "still here", "timestamp": "2030-01-07T09:01:00.000Z"}]},
                headers=auth_headers(),
            )
            update = websocket.receive_json()
            assert [s["text"] for s in update["segments"]] == ["still here"]

            websocket.send_json({"type": "unsubscribe"})

    def test_live_feed_requires_token(self, client, meeting_id):
        with client.websocket_connect(f"/meetings/{meeting_id}/transcript/live") as websocket:
            message = websocket.receive_json()

        assert message["type"] == "error"
        assert message["error"] == "AUTH_REQUIRED"
