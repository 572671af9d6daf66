"""
TripMatch Backend — HTTP API Tests
====================================

What:  Drives the FastAPI app in-process through HTTPX's ASGITransport.
Why:   Services are covered by their own tests; these check the HTTP
       surface: auth, status codes, the error envelope, pagination
       headers, uploads and middleware.

What we test:
    ✅ Bearer auth required (401 with the error envelope)
    ✅ Event lifecycle over HTTP, including 201/204 codes
    ✅ Error envelope: error kind, message, details, request_id
    ✅ X-Total-Count on list endpoints
    ✅ Public endpoints work without a token
    ✅ Cover upload, then the file is served back
    ✅ /health, X-Request-ID echo, rate limiting (429 bodies carry the request ID)
"""

import uuid

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from tripmatch.middleware.rate_limit import RateLimitMiddleware
from tripmatch.middleware.request_id import RequestIDMiddleware
from tripmatch.security import create_access_token

EVENTS = "/api/v1/events"


async def create_event(client, headers, **fields):
    body = {"title": "Sunday hike", "event_type": "one_day_trip", **fields}
    response = await client.post(EVENTS, json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestAuth:

    @pytest.mark.asyncio
    async def test_missing_token(self, client):
        response = await client.get(EVENTS)
        assert response.status_code == 401
        body = response.json()
        assert body["error"] == "unauthorized"
        assert body["request_id"]

    @pytest.mark.asyncio
    async def test_garbage_token(self, client):
        response = await client.get(EVENTS, headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_expired_token(self, client, user_id):
        token = create_access_token(user_id, expires_minutes=-1)
        response = await client.get(EVENTS, headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401


class TestEventEndpoints:

    @pytest.mark.asyncio
    async def test_create_and_get(self, client, auth_headers, creator_id):
        headers = auth_headers(creator_id)
        event = await create_event(client, headers, event_type="daytrip", capacity=4)

        assert event["event_type"] == "one_day_trip"
        assert event["member_count"] == 1
        assert event["is_creator"] is True

        response = await client.get(f"{EVENTS}/{event['id']}", headers=headers)
        assert response.status_code == 200
        assert response.json()["title"] == "Sunday hike"

    @pytest.mark.asyncio
    async def test_list_sets_total_header(self, client, auth_headers, creator_id):
        headers = auth_headers(creator_id)
        for n in range(3):
            await create_event(client, headers, title=f"Trip {n}")

        response = await client.get(EVENTS, params={"limit": 2}, headers=headers)
        assert response.status_code == 200
        assert response.headers["X-Total-Count"] == "3"
        body = response.json()
        assert (body["total"], body["page"], body["limit"]) == (3, 1, 2)
        assert len(body["items"]) == 2

    @pytest.mark.asyncio
    async def test_validation_error_envelope(self, client, auth_headers, creator_id):
        response = await client.post(
            EVENTS,
            json={"title": "Cruise", "event_type": "cruise"},
            headers={**auth_headers(creator_id), "X-Request-ID": "req-123"},
        )
        assert response.status_code == 400
        assert response.json() == {
            "error": "validation",
            "message": "Unknown event type 'cruise'",
            "details": {
                "field": "event_type",
                "allowed": ["activity", "meal", "one_day_trip", "other", "overnight"],
            },
            "request_id": "req-123",
        }

    @pytest.mark.asyncio
    async def test_schema_errors_stay_422(self, client, auth_headers, creator_id):
        response = await client.post(
            EVENTS, json={"event_type": "meal"}, headers=auth_headers(creator_id)
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_not_found(self, client, auth_headers, user_id):
        response = await client.get(f"{EVENTS}/{uuid.uuid4()}", headers=auth_headers(user_id))
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_forbidden_update(self, client, auth_headers, creator_id, user_id):
        event = await create_event(client, auth_headers(creator_id))
        response = await client.put(
            f"{EVENTS}/{event['id']}", json={"title": "Mine now"}, headers=auth_headers(user_id)
        )
        assert response.status_code == 403
        assert response.json()["error"] == "forbidden"

    @pytest.mark.asyncio
    async def test_membership_flow(self, client, auth_headers, creator_id, user_id, other_user_id):
        event = await create_event(client, auth_headers(creator_id), capacity=2)
        url = f"{EVENTS}/{event['id']}"

        joined = await client.post(f"{url}/join", json={"note": "hi"}, headers=auth_headers(user_id))
        assert joined.status_code == 201
        assert joined.json()["status"] == "pending"

        await client.post(f"{url}/join", headers=auth_headers(other_user_id))
        confirmed = await client.post(f"{url}/confirm", headers=auth_headers(user_id))
        assert confirmed.json()["status"] == "confirmed"

        full = await client.post(f"{url}/confirm", headers=auth_headers(other_user_id))
        assert full.status_code == 409
        assert full.json()["error"] == "conflict"

        members = await client.get(f"{url}/members", headers=auth_headers(creator_id))
        assert len(members.json()) == 3

    @pytest.mark.asyncio
    async def test_delete_returns_204(self, client, auth_headers, creator_id):
        headers = auth_headers(creator_id)
        event = await create_event(client, headers)

        response = await client.delete(f"{EVENTS}/{event['id']}", headers=headers)
        assert response.status_code == 204
        gone = await client.get(f"{EVENTS}/{event['id']}", headers=headers)
        assert gone.status_code == 404

    @pytest.mark.asyncio
    async def test_swipe_and_suggestions(self, client, auth_headers, creator_id, user_id):
        first = await create_event(client, auth_headers(creator_id), title="First")
        await create_event(client, auth_headers(creator_id), title="Second")

        swiped = await client.post(
            f"{EVENTS}/{first['id']}/swipe", json={"direction": "pass"}, headers=auth_headers(user_id)
        )
        assert swiped.status_code == 200

        response = await client.get("/api/v1/suggestions", headers=auth_headers(user_id))
        assert response.headers["X-Total-Count"] == "1"
        item = response.json()["items"][0]
        assert item["event"]["title"] == "Second"
        assert set(item["score_breakdown"]) == {"tags", "interests", "food", "travel"}


class TestPublicEndpoints:

    @pytest.mark.asyncio
    async def test_no_token_needed(self, client, auth_headers, creator_id):
        event = await create_event(client, auth_headers(creator_id))
        await create_event(client, auth_headers(creator_id), title="Hidden", status="draft")

        listing = await client.get("/api/v1/public/events")
        assert listing.status_code == 200
        assert listing.headers["X-Total-Count"] == "1"

        single = await client.get(f"/api/v1/public/events/{event['id']}")
        assert single.status_code == 200
        assert single.json()["membership_status"] is None


class TestTaxonomyEndpoints:

    @pytest.mark.asyncio
    async def test_tags_and_user_tags(self, client, auth_headers, user_id):
        headers = auth_headers(user_id)
        tags = await client.get("/api/v1/tags", params={"kind": "location"}, headers=headers)
        assert tags.status_code == 200
        beach = next(t for t in tags.json()["items"] if t["name"] == "Beach")

        added = await client.post(f"/api/v1/users/me/tags/{beach['id']}", headers=headers)
        assert added.status_code == 201
        again = await client.post(f"/api/v1/users/me/tags/{beach['id']}", headers=headers)
        assert again.status_code == 409

        mine = await client.get("/api/v1/users/me/tags", headers=headers)
        assert [t["name"] for t in mine.json()] == ["Beach"]

    @pytest.mark.asyncio
    async def test_unknown_tag_kind_is_400(self, client, auth_headers, user_id):
        response = await client.get(
            "/api/v1/tags", params={"kind": "weather"}, headers=auth_headers(user_id)
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_food_preferences(self, client, auth_headers, user_id):
        headers = auth_headers(user_id)
        response = await client.put(
            "/api/v1/preferences/food",
            json={"category_code": "thai_food", "preference_level": 3},
            headers=headers,
        )
        assert response.status_code == 200

        stats = await client.get("/api/v1/preferences/food/stats", headers=headers)
        assert stats.json() == {"total": 1, "dislike": 0, "neutral": 0, "love": 1}

        bad = await client.put(
            "/api/v1/preferences/food",
            json={"category_code": "pizza", "preference_level": 3},
            headers=headers,
        )
        assert bad.status_code == 400

    @pytest.mark.asyncio
    async def test_travel_preferences(self, client, auth_headers, user_id):
        headers = auth_headers(user_id)
        created = await client.post(
            "/api/v1/preferences/travel", json={"style_code": "karaoke"}, headers=headers
        )
        assert created.status_code == 201
        deleted = await client.delete("/api/v1/preferences/travel/karaoke", headers=headers)
        assert deleted.status_code == 204
        missing = await client.delete("/api/v1/preferences/travel/karaoke", headers=headers)
        assert missing.status_code == 404


class TestChatAndHistoryEndpoints:

    @pytest.mark.asyncio
    async def test_chat_round_trip(self, client, auth_headers, creator_id, user_id):
        headers = auth_headers(creator_id)
        await create_event(client, headers)

        rooms = await client.get("/api/v1/chat/rooms", headers=headers)
        room_id = rooms.json()[0]["id"]

        sent = await client.post(
            f"/api/v1/chat/rooms/{room_id}/messages", json={"body": "See you at 6"}, headers=headers
        )
        assert sent.status_code == 201

        messages = await client.get(f"/api/v1/chat/rooms/{room_id}/messages", headers=headers)
        assert messages.headers["X-Total-Count"] == "1"
        assert messages.json()["items"][0]["body"] == "See you at 6"

        outsider = await client.get(
            f"/api/v1/chat/rooms/{room_id}/messages", headers=auth_headers(user_id)
        )
        assert outsider.status_code == 403

    @pytest.mark.asyncio
    async def test_history_stats(self, client, auth_headers, creator_id):
        headers = auth_headers(creator_id)
        event = await create_event(client, headers)
        await client.post(f"{EVENTS}/{event['id']}/complete", headers=headers)
        marked = await client.post(f"/api/v1/history/events/{event['id']}/complete", headers=headers)
        assert marked.status_code == 200

        stats = await client.get("/api/v1/history/stats", headers=headers)
        assert stats.json()["events_completed"] == 1


class TestFiles:

    @pytest.mark.asyncio
    async def test_cover_upload_is_served(self, client, auth_headers, creator_id, png_bytes):
        headers = auth_headers(creator_id)
        event = await create_event(client, headers)

        response = await client.post(
            f"{EVENTS}/{event['id']}/cover",
            files={"file": ("cover.png", png_bytes, "image/png")},
            headers=headers,
        )
        assert response.status_code == 200
        url = response.json()["cover_image_url"]
        assert url.startswith("/api/files/events/")

        served = await client.get(url)
        assert served.status_code == 200
        assert served.headers["content-type"] == "image/png"
        assert served.content == png_bytes

    @pytest.mark.asyncio
    async def test_bad_image_rejected(self, client, auth_headers, creator_id):
        headers = auth_headers(creator_id)
        event = await create_event(client, headers)
        response = await client.post(
            f"{EVENTS}/{event['id']}/cover",
            files={"file": ("cover.png", b"plain text", "image/png")},
            headers=headers,
        )
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "file"

    @pytest.mark.asyncio
    async def test_missing_file_404(self, client):
        response = await client.get("/api/files/events/nope/missing.png")
        assert response.status_code == 404


class TestOperational:

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["storage"] == "available"

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, client):
        response = await client.get("/health", headers={"X-Request-ID": "trace-42"})
        assert response.headers["X-Request-ID"] == "trace-42"

    @pytest.mark.asyncio
    async def test_request_id_generated(self, client):
        response = await client.get("/health")
        assert len(response.headers["X-Request-ID"]) == 8

    @pytest.mark.asyncio
    async def test_rate_limit(self):
        app = FastAPI()
        app.add_middleware(RateLimitMiddleware, max_requests=2, window_seconds=60)

        @app.get("/ping")
        async def ping():
            return {"ok": True}

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
            assert (await http.get("/ping")).status_code == 200
            assert (await http.get("/ping")).status_code == 200
            limited = await http.get("/ping")

        assert limited.status_code == 429
        assert int(limited.headers["Retry-After"]) > 0
        assert limited.json()["error"] == "rate_limited"

    @pytest.mark.asyncio
    async def test_rate_limited_response_carries_request_id(self):
        app = FastAPI()
        # Same relative order as create_app(): request ID outside the limiter
        app.add_middleware(RateLimitMiddleware, max_requests=1, window_seconds=60)
        app.add_middleware(RequestIDMiddleware)

        @app.get("/ping")
        async def ping():
            return {"ok": True}

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
            await http.get("/ping")
            limited = await http.get("/ping", headers={"X-Request-ID": "burst-7"})

        assert limited.status_code == 429
        assert limited.json()["request_id"] == "burst-7"
        assert limited.headers["X-Request-ID"] == "burst-7"

    def test_request_id_is_outermost_middleware(self):
        from tripmatch.main import app

        order = [m.cls for m in app.user_middleware]
        assert order.index(RequestIDMiddleware) < order.index(RateLimitMiddleware)
