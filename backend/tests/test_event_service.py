"""
TripMatch Backend — Event Lifecycle Integration Tests
=======================================================

Runs EventService against a real (SQLite) database.

What we test:
    ✅ Create: creator auto-confirmed, member_count 1, chat room provisioned
    ✅ Aliases and validation (event type, schedule, budget, unknown tags)
    ✅ Drafts are invisible to everyone but their creator
    ✅ Update: partial, explicit null, terminal statuses, capacity floor
    ✅ Creator-only update / delete / complete
    ✅ Soft delete hides the event from every read path
    ✅ Complete opens history rows for confirmed members
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from sqlalchemy import select

from tripmatch.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from tripmatch.models.chat import ChatRoom
from tripmatch.models.event import Event, EventMember
from tripmatch.models.history import UserEventHistory
from tripmatch.models.taxonomy import Tag
from tripmatch.schemas.event import EventCreate, EventUpdate
from tripmatch.services.event_service import event_service
from tripmatch.services.membership_service import membership_service


async def tag_ids(db, *names):
    result = await db.execute(select(Tag).where(Tag.name.in_(names)))
    return [t.id for t in result.scalars().all()]


class TestCreateEvent:

    @pytest.mark.asyncio
    async def test_creator_is_confirmed_member(self, db, make_event, creator_id):
        event = await make_event(capacity=4)

        assert event.member_count == 1
        assert event.is_creator is True
        assert event.membership_status == "confirmed"
        member = await db.get(EventMember, (event.id, creator_id))
        assert member.role == "creator"
        assert member.confirmed_at is not None

    @pytest.mark.asyncio
    async def test_chat_room_created(self, db, make_event):
        event = await make_event()
        room = (
            await db.execute(select(ChatRoom).where(ChatRoom.event_id == event.id))
        ).scalar_one_or_none()
        assert room is not None

    @pytest.mark.asyncio
    async def test_daytrip_alias_normalized(self, make_event):
        event = await make_event(event_type="daytrip")
        assert event.event_type == "one_day_trip"

    @pytest.mark.asyncio
    async def test_unknown_event_type_rejected(self, db, creator_id):
        with pytest.raises(ValidationError) as exc_info:
            await event_service.create_event(
                db, creator_id, EventCreate(title="x", event_type="cruise")
            )
        assert exc_info.value.field == "event_type"

    @pytest.mark.asyncio
    async def test_end_before_start_rejected(self, db, creator_id):
        start = datetime.now(timezone.utc) + timedelta(days=2)
        payload = EventCreate(
            title="x", event_type="meal", start_at=start, end_at=start - timedelta(hours=1)
        )
        with pytest.raises(ValidationError):
            await event_service.create_event(db, creator_id, payload)

    @pytest.mark.asyncio
    async def test_budget_range_rejected(self, db, creator_id):
        payload = EventCreate(title="x", event_type="meal", budget_min=500, budget_max=100)
        with pytest.raises(ValidationError):
            await event_service.create_event(db, creator_id, payload)

    @pytest.mark.asyncio
    async def test_cannot_create_completed(self, db, creator_id):
        payload = EventCreate(title="x", event_type="meal", status="completed")
        with pytest.raises(ValidationError):
            await event_service.create_event(db, creator_id, payload)

    @pytest.mark.asyncio
    async def test_tags_and_categories_attached(self, db, make_event):
        tags = await tag_ids(db, "Hiking", "Mountain")
        categories = await tag_ids(db, "Road Trip")
        event = await make_event(
            tag_ids=tags, category_ids=categories, interest_codes=["coffee"]
        )
        assert {t.name for t in event.tags} == {"Hiking", "Mountain"}
        assert [c.name for c in event.categories] == ["Road Trip"]
        assert [i.code for i in event.interests] == ["coffee"]

    @pytest.mark.asyncio
    async def test_unknown_tag_id_rejected(self, db, creator_id):
        payload = EventCreate(title="x", event_type="meal", tag_ids=[uuid4()])
        with pytest.raises(ValidationError) as exc_info:
            await event_service.create_event(db, creator_id, payload)
        assert exc_info.value.field == "tag_ids"

    @pytest.mark.asyncio
    async def test_gallery_urls_become_ordered_photos(self, make_event):
        event = await make_event(gallery_urls=["https://img/a.jpg", "https://img/b.jpg"])
        assert [(p.url, p.sort_no) for p in event.photos] == [
            ("https://img/a.jpg", 0),
            ("https://img/b.jpg", 1),
        ]


class TestVisibility:

    @pytest.mark.asyncio
    async def test_draft_hidden_from_other_users(self, db, make_event, user_id):
        event = await make_event(status="draft")
        with pytest.raises(NotFoundError):
            await event_service.get_event(db, event.id, user_id)

    @pytest.mark.asyncio
    async def test_draft_visible_to_creator(self, db, make_event, creator_id):
        event = await make_event(status="draft")
        fetched = await event_service.get_event(db, event.id, creator_id)
        assert fetched.status == "draft"

    @pytest.mark.asyncio
    async def test_list_excludes_foreign_drafts(self, db, make_event, user_id, creator_id):
        await make_event(title="Public one")
        await make_event(title="Secret draft", status="draft")

        items, total = await event_service.list_events(db, user_id)
        assert total == 1
        assert [e.title for e in items] == ["Public one"]

        _, creator_total = await event_service.list_events(db, creator_id)
        assert creator_total == 2

    @pytest.mark.asyncio
    async def test_list_created_by_me(self, db, make_event, creator_id, user_id):
        await make_event(title="Mine")
        await make_event(title="Theirs", creator=user_id)

        items, total = await event_service.list_events(db, creator_id, created_by_me=True)
        assert total == 1
        assert items[0].title == "Mine"

    @pytest.mark.asyncio
    async def test_public_read_requires_published(self, db, make_event):
        draft = await make_event(status="draft")
        with pytest.raises(NotFoundError):
            await event_service.get_public_event(db, draft.id)

        published = await make_event()
        public = await event_service.get_public_event(db, published.id)
        assert public.is_creator is False
        assert public.membership_status is None


class TestUpdateEvent:

    @pytest.mark.asyncio
    async def test_partial_update_keeps_other_fields(self, db, make_event, creator_id):
        event = await make_event(description="Bring water", capacity=5)
        updated = await event_service.update_event(
            db, event.id, creator_id, EventUpdate(title="Sunrise hike")
        )
        assert updated.title == "Sunrise hike"
        assert updated.description == "Bring water"
        assert updated.capacity == 5

    @pytest.mark.asyncio
    async def test_explicit_null_clears_capacity(self, db, make_event, creator_id):
        event = await make_event(capacity=5)
        updated = await event_service.update_event(
            db, event.id, creator_id, EventUpdate(capacity=None)
        )
        assert updated.capacity is None

    @pytest.mark.asyncio
    async def test_start_without_offset_is_utc(self, db, make_event, creator_id):
        start = datetime(2030, 1, 1, 8, 0, tzinfo=timezone.utc)
        event = await make_event(start_at=start, end_at=start + timedelta(hours=6))

        updated = await event_service.update_event(
            db,
            event.id,
            creator_id,
            EventUpdate.model_validate({"start_at": "2030-01-01T10:00:00"}),
        )
        assert updated.start_at == datetime(2030, 1, 1, 10, 0, tzinfo=timezone.utc)

        with pytest.raises(ValidationError) as exc_info:
            await event_service.update_event(
                db,
                event.id,
                creator_id,
                EventUpdate.model_validate({"start_at": "2030-01-01T20:00:00"}),
            )
        assert exc_info.value.field == "end_at"

    @pytest.mark.asyncio
    async def test_create_mixes_naive_and_offset_times(self, db, make_event):
        event = await make_event(start_at="2030-01-01T10:00:00", end_at="2030-01-01T12:00:00+02:00")
        assert event.start_at == event.end_at

    @pytest.mark.asyncio
    async def test_null_title_rejected(self, db, make_event, creator_id):
        event = await make_event()
        with pytest.raises(ValidationError):
            await event_service.update_event(db, event.id, creator_id, EventUpdate(title=None))

    @pytest.mark.asyncio
    async def test_capacity_below_confirmed_rejected(
        self, db, make_event, creator_id, user_id
    ):
        event = await make_event(capacity=3)
        await membership_service.join_event(db, event.id, user_id)
        await membership_service.confirm_member(db, event.id, user_id)
        await db.commit()

        with pytest.raises(ConflictError):
            await event_service.update_event(
                db, event.id, creator_id, EventUpdate(capacity=1)
            )

    @pytest.mark.asyncio
    async def test_capacity_equal_to_confirmed_allowed(self, db, make_event, creator_id):
        event = await make_event(capacity=3)
        updated = await event_service.update_event(
            db, event.id, creator_id, EventUpdate(capacity=1)
        )
        assert updated.capacity == 1

    @pytest.mark.asyncio
    async def test_status_cannot_be_set_to_completed(self, db, make_event, creator_id):
        event = await make_event()
        with pytest.raises(ValidationError):
            await event_service.update_event(
                db, event.id, creator_id, EventUpdate(status="completed")
            )

    @pytest.mark.asyncio
    async def test_cancelled_event_is_terminal(self, db, make_event, creator_id):
        event = await make_event()
        await event_service.update_event(
            db, event.id, creator_id, EventUpdate(status="cancelled")
        )
        with pytest.raises(ConflictError):
            await event_service.update_event(
                db, event.id, creator_id, EventUpdate(title="Back on")
            )

    @pytest.mark.asyncio
    async def test_merged_schedule_validated(self, db, make_event, creator_id):
        start = datetime.now(timezone.utc) + timedelta(days=3)
        event = await make_event(start_at=start, end_at=start + timedelta(hours=5))
        with pytest.raises(ValidationError):
            await event_service.update_event(
                db,
                event.id,
                creator_id,
                EventUpdate(end_at=start - timedelta(hours=1)),
            )

    @pytest.mark.asyncio
    async def test_replace_tags(self, db, make_event, creator_id):
        event = await make_event(tag_ids=await tag_ids(db, "Hiking"))
        updated = await event_service.update_event(
            db, event.id, creator_id, EventUpdate(tag_ids=await tag_ids(db, "Beach"))
        )
        assert [t.name for t in updated.tags] == ["Beach"]


class TestCreatorOnly:

    @pytest.mark.asyncio
    async def test_other_user_cannot_update(self, db, make_event, user_id):
        event = await make_event()
        with pytest.raises(ForbiddenError):
            await event_service.update_event(db, event.id, user_id, EventUpdate(title="Mine"))

    @pytest.mark.asyncio
    async def test_other_user_cannot_delete(self, db, make_event, user_id):
        event = await make_event()
        with pytest.raises(ForbiddenError):
            await event_service.delete_event(db, event.id, user_id)

    @pytest.mark.asyncio
    async def test_other_user_cannot_complete(self, db, make_event, user_id):
        event = await make_event()
        with pytest.raises(ForbiddenError):
            await event_service.complete_event(db, event.id, user_id)


class TestDeleteEvent:

    @pytest.mark.asyncio
    async def test_soft_delete_hides_event(self, db, make_event, creator_id, user_id):
        event = await make_event()
        await event_service.delete_event(db, event.id, creator_id)
        await db.commit()

        row = await db.get(Event, event.id)
        assert row.is_deleted is True
        assert row.deleted_at is not None

        with pytest.raises(NotFoundError):
            await event_service.get_public_event(db, event.id)
        with pytest.raises(NotFoundError):
            await event_service.get_event(db, event.id, creator_id)
        with pytest.raises(NotFoundError):
            await membership_service.join_event(db, event.id, user_id)
        _, total = await event_service.list_public_events(db)
        assert total == 0

    @pytest.mark.asyncio
    async def test_delete_twice_is_not_found(self, db, make_event, creator_id):
        event = await make_event()
        await event_service.delete_event(db, event.id, creator_id)
        with pytest.raises(NotFoundError):
            await event_service.delete_event(db, event.id, creator_id)


class TestCompleteEvent:

    @pytest.mark.asyncio
    async def test_complete_opens_history(self, db, make_event, creator_id, user_id):
        event = await make_event(capacity=5)
        await membership_service.join_event(db, event.id, user_id)
        await membership_service.confirm_member(db, event.id, user_id)

        completed = await event_service.complete_event(db, event.id, creator_id)
        assert completed.status == "completed"

        rows = (
            await db.execute(
                select(UserEventHistory).where(UserEventHistory.event_id == event.id)
            )
        ).scalars().all()
        assert {r.user_id for r in rows} == {creator_id, user_id}
        assert all(r.completed is False for r in rows)

    @pytest.mark.asyncio
    async def test_complete_twice_conflicts(self, db, make_event, creator_id):
        event = await make_event()
        await event_service.complete_event(db, event.id, creator_id)
        with pytest.raises(ConflictError):
            await event_service.complete_event(db, event.id, creator_id)
