"""
TripMatch Backend — Chat & History Tests
==========================================

What we test:
    ✅ Only confirmed members can see rooms and messages
    ✅ Membership transitions leave system messages in order
    ✅ Message type rules (text needs a body, media needs a URL)
    ✅ History rows opened on completion and marked by members
    ✅ Per-user stats
"""

from uuid import uuid4

import pytest

from tripmatch.exceptions import ForbiddenError, NotFoundError, ValidationError
from tripmatch.services.chat_service import chat_service
from tripmatch.services.event_service import event_service
from tripmatch.services.history_service import history_service
from tripmatch.services.membership_service import membership_service


async def room_for(db, event_id, user_id):
    return await chat_service.get_room_for_event(db, event_id, user_id)


class TestChatAccess:

    @pytest.mark.asyncio
    async def test_creator_sees_room(self, db, make_event, creator_id):
        event = await make_event(title="Night market crawl")
        rooms = await chat_service.get_rooms(db, creator_id)
        assert [(r.event_id, r.event_title) for r in rooms] == [(event.id, "Night market crawl")]

    @pytest.mark.asyncio
    async def test_pending_member_is_forbidden(self, db, make_event, creator_id, user_id):
        event = await make_event()
        await membership_service.join_event(db, event.id, user_id)
        room = await room_for(db, event.id, creator_id)

        assert await chat_service.get_rooms(db, user_id) == []
        with pytest.raises(ForbiddenError):
            await room_for(db, event.id, user_id)
        with pytest.raises(ForbiddenError):
            await chat_service.get_messages(db, room.id, user_id)
        with pytest.raises(ForbiddenError):
            await chat_service.send_message(db, room.id, user_id, "hello?")

    @pytest.mark.asyncio
    async def test_left_member_loses_access(self, db, make_event, user_id):
        event = await make_event()
        await membership_service.join_event(db, event.id, user_id)
        await membership_service.confirm_member(db, event.id, user_id)
        room = await room_for(db, event.id, user_id)

        await membership_service.leave_event(db, event.id, user_id)
        with pytest.raises(ForbiddenError):
            await chat_service.get_messages(db, room.id, user_id)

    @pytest.mark.asyncio
    async def test_unknown_room(self, db, user_id):
        with pytest.raises(NotFoundError):
            await chat_service.get_messages(db, uuid4(), user_id)

    @pytest.mark.asyncio
    async def test_deleted_event_hides_room(self, db, make_event, creator_id):
        event = await make_event()
        room = await room_for(db, event.id, creator_id)
        await event_service.delete_event(db, event.id, creator_id)

        assert await chat_service.get_rooms(db, creator_id) == []
        with pytest.raises(NotFoundError):
            await chat_service.get_messages(db, room.id, creator_id)


class TestMessages:

    @pytest.mark.asyncio
    async def test_system_messages_follow_membership(self, db, make_event, creator_id, user_id):
        event = await make_event()
        await membership_service.join_event(db, event.id, user_id)
        await membership_service.confirm_member(db, event.id, user_id)
        room = await room_for(db, event.id, creator_id)

        messages, total = await chat_service.get_messages(db, room.id, creator_id)
        assert total == 2
        assert [m.message_type for m in messages] == ["join", "confirm"]
        assert all(m.sender_id == user_id for m in messages)

    @pytest.mark.asyncio
    async def test_send_and_page(self, db, make_event, creator_id):
        event = await make_event()
        room = await room_for(db, event.id, creator_id)
        for n in range(3):
            await chat_service.send_message(db, room.id, creator_id, f"message {n}")

        page, total = await chat_service.get_messages(db, room.id, creator_id, page=2, limit=2)
        assert total == 3
        assert [m.body for m in page] == ["message 2"]

    @pytest.mark.asyncio
    async def test_image_message_needs_url(self, db, make_event, creator_id):
        event = await make_event()
        room = await room_for(db, event.id, creator_id)
        with pytest.raises(ValidationError):
            await chat_service.send_message(db, room.id, creator_id, None, message_type="image")

        sent = await chat_service.send_message(
            db, room.id, creator_id, None, message_type="image", media_url="/api/files/a.png"
        )
        assert sent.media_url == "/api/files/a.png"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [None, "", "   "])
    async def test_text_needs_body(self, db, make_event, creator_id, body):
        event = await make_event()
        room = await room_for(db, event.id, creator_id)
        with pytest.raises(ValidationError):
            await chat_service.send_message(db, room.id, creator_id, body)

    @pytest.mark.asyncio
    async def test_users_cannot_send_system_types(self, db, make_event, creator_id):
        event = await make_event()
        room = await room_for(db, event.id, creator_id)
        with pytest.raises(ValidationError) as exc_info:
            await chat_service.send_message(db, room.id, creator_id, "hi", message_type="join")
        assert exc_info.value.field == "message_type"


class TestHistory:

    @pytest.mark.asyncio
    async def test_member_marks_complete(self, db, make_event, creator_id, user_id):
        event = await make_event(title="Island hopping")
        await membership_service.join_event(db, event.id, user_id)
        await membership_service.confirm_member(db, event.id, user_id)
        await event_service.complete_event(db, event.id, creator_id)

        pending, total = await history_service.list_user_history(db, user_id, completed=False)
        assert total == 1
        assert pending[0].event_title == "Island hopping"

        row = await history_service.mark_event_complete(db, event.id, user_id)
        assert row.completed is True
        assert row.completed_at is not None

        _, open_total = await history_service.list_user_history(db, user_id, completed=False)
        done, done_total = await history_service.list_user_history(db, user_id, completed=True)
        assert (open_total, done_total) == (0, 1)
        assert done[0].event_id == event.id

    @pytest.mark.asyncio
    async def test_non_confirmed_cannot_mark(self, db, make_event, user_id):
        event = await make_event()
        await membership_service.join_event(db, event.id, user_id)
        with pytest.raises(ForbiddenError):
            await history_service.mark_event_complete(db, event.id, user_id)

    @pytest.mark.asyncio
    async def test_mark_creates_missing_row(self, db, make_event, creator_id):
        event = await make_event()
        row = await history_service.mark_event_complete(db, event.id, creator_id)
        assert row.completed is True
        assert len(await history_service.get_event_history(db, event.id)) == 1

    @pytest.mark.asyncio
    async def test_completion_is_idempotent_per_member(self, db, make_event, creator_id):
        event = await make_event()
        await event_service.complete_event(db, event.id, creator_id)
        assert await history_service.create_eligible_records(db, event.id) == 0
        assert len(await history_service.get_event_history(db, event.id)) == 1


class TestUserStats:

    @pytest.mark.asyncio
    async def test_counts(self, db, make_event, creator_id, user_id):
        mine = await make_event(creator=user_id)
        joined = await make_event()
        confirmed = await make_event()
        left = await make_event()

        await membership_service.join_event(db, joined.id, user_id)
        await membership_service.join_event(db, confirmed.id, user_id)
        await membership_service.confirm_member(db, confirmed.id, user_id)
        await membership_service.join_event(db, left.id, user_id)
        await membership_service.leave_event(db, left.id, user_id)
        await history_service.mark_event_complete(db, confirmed.id, user_id)
        await history_service.mark_event_complete(db, mine.id, user_id)

        stats = await history_service.get_user_stats(db, user_id)
        # Own event counts as created and, through the creator row, joined and confirmed
        assert stats.events_created == 1
        assert stats.events_joined == 3
        assert stats.events_confirmed == 2
        assert stats.events_completed == 2
