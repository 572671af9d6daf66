"""
TripMatch Backend — Swipe & Suggestion Tests
==============================================

What we test:
    ✅ One swipe row per (user, event); the latest direction wins
    ✅ Swiping never creates a membership
    ✅ Concurrent swipes by one user both succeed and leave one row
    ✅ Another user's draft cannot be swiped
    ✅ Candidates exclude swiped, joined, own, expired, draft and deleted events
    ✅ Leaving an event does not bring it back if it was swiped
    ✅ Ranking follows the match score, deterministically, with correct totals
"""

import asyncio
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from tripmatch.exceptions import NotFoundError, ValidationError
from tripmatch.models.event import EventMember, EventSwipe
from tripmatch.models.taxonomy import Tag
from tripmatch.services.event_service import event_service
from tripmatch.services.membership_service import membership_service
from tripmatch.services.suggestion_service import suggestion_service
from tripmatch.services.swipe_service import swipe_service
from tripmatch.services.tag_service import tag_service


async def tag_id(db, name):
    return (await db.execute(select(Tag.id).where(Tag.name == name))).scalar_one()


async def suggested_titles(db, user_id, **kwargs):
    items, _ = await suggestion_service.get_suggestions(db, user_id, **kwargs)
    return [item.event.title for item in items]


class TestSwipe:

    @pytest.mark.asyncio
    async def test_swipe_overwrites(self, db, make_event, user_id):
        event = await make_event()
        await swipe_service.swipe(db, event.id, user_id, "like")
        result = await swipe_service.swipe(db, event.id, user_id, "pass")
        assert result.direction == "pass"

        rows = (
            await db.execute(
                select(func.count()).select_from(EventSwipe).where(EventSwipe.user_id == user_id)
            )
        ).scalar_one()
        assert rows == 1

    @pytest.mark.asyncio
    async def test_invalid_direction(self, db, make_event, user_id):
        event = await make_event()
        with pytest.raises(ValidationError) as exc_info:
            await swipe_service.swipe(db, event.id, user_id, "superlike")
        assert exc_info.value.field == "direction"

    @pytest.mark.asyncio
    async def test_like_does_not_join(self, db, make_event, user_id):
        event = await make_event()
        await swipe_service.swipe(db, event.id, user_id, "like")
        assert await db.get(EventMember, (event.id, user_id)) is None

    @pytest.mark.asyncio
    async def test_swipe_shows_on_event(self, db, make_event, user_id):
        event = await make_event()
        await swipe_service.swipe(db, event.id, user_id, "like")
        fetched = await event_service.get_event(db, event.id, user_id)
        assert fetched.user_swipe == "like"

    @pytest.mark.asyncio
    async def test_unknown_event(self, db, user_id):
        with pytest.raises(NotFoundError):
            await swipe_service.swipe(db, uuid4(), user_id, "like")

    @pytest.mark.asyncio
    async def test_other_users_draft_is_not_found(self, db, make_event, creator_id, user_id):
        draft = await make_event(status="draft")
        with pytest.raises(NotFoundError):
            await swipe_service.swipe(db, draft.id, user_id, "like")
        assert (await swipe_service.swipe(db, draft.id, creator_id, "like")).direction == "like"

    @pytest.mark.asyncio
    async def test_concurrent_swipes_both_succeed(self, session_factory, make_event, user_id):
        event = await make_event()

        async def swipe(direction):
            async with session_factory() as session:
                result = await swipe_service.swipe(session, event.id, user_id, direction)
                await session.commit()
                return result

        results = await asyncio.gather(swipe("like"), swipe("pass"), return_exceptions=True)
        assert {r.direction for r in results} == {"like", "pass"}

        async with session_factory() as fresh:
            rows = (
                await fresh.execute(select(EventSwipe).where(EventSwipe.user_id == user_id))
            ).scalars().all()
        assert len(rows) == 1
        assert rows[0].direction in {"like", "pass"}


class TestCandidateFiltering:

    @pytest.mark.asyncio
    async def test_excludes_events_already_acted_on(
        self, db, make_event, creator_id, user_id
    ):
        past = datetime.now(timezone.utc) - timedelta(days=2)
        future = datetime.now(timezone.utc) + timedelta(days=2)

        await make_event(title="Fresh", start_at=future)
        swiped = await make_event(title="Swiped")
        joined = await make_event(title="Joined")
        await make_event(title="Own", creator=user_id)
        await make_event(title="Expired", start_at=past, end_at=past + timedelta(hours=3))
        await make_event(title="Draft", status="draft")
        deleted = await make_event(title="Deleted")

        await swipe_service.swipe(db, swiped.id, user_id, "pass")
        await membership_service.join_event(db, joined.id, user_id)
        await event_service.delete_event(db, deleted.id, creator_id)
        await db.commit()

        assert await suggested_titles(db, user_id) == ["Fresh"]

    @pytest.mark.asyncio
    async def test_own_events_included_on_request(self, db, make_event, user_id):
        await make_event(title="Own", creator=user_id)
        assert await suggested_titles(db, user_id, exclude_own=False) == ["Own"]

    @pytest.mark.asyncio
    async def test_left_event_returns_unless_swiped(
        self, db, make_event, user_id, other_user_id
    ):
        left_only = await make_event(title="Left only")
        left_and_swiped = await make_event(title="Left and swiped")
        for event in (left_only, left_and_swiped):
            await membership_service.join_event(db, event.id, user_id)
            await membership_service.leave_event(db, event.id, user_id)
        await swipe_service.swipe(db, left_and_swiped.id, user_id, "like")
        await db.commit()

        assert await suggested_titles(db, user_id) == ["Left only"]
        # Another user's actions do not affect this user's candidates
        assert len(await suggested_titles(db, other_user_id)) == 2

    @pytest.mark.asyncio
    async def test_ongoing_event_included(self, db, make_event, user_id):
        past = datetime.now(timezone.utc) - timedelta(days=1)
        await make_event(
            title="Multi-day", start_at=past, end_at=datetime.now(timezone.utc) + timedelta(days=1)
        )
        assert await suggested_titles(db, user_id) == ["Multi-day"]


class TestRanking:

    @pytest.mark.asyncio
    async def test_higher_overlap_ranks_first(self, db, make_event, user_id):
        hiking = await tag_id(db, "Hiking")
        beach = await tag_id(db, "Beach")
        await tag_service.add_user_tag(db, user_id, hiking)
        await tag_service.add_user_tag(db, user_id, beach)
        await db.commit()

        await make_event(title="No overlap")
        await make_event(title="One shared", tag_ids=[beach])
        await make_event(title="Two shared", tag_ids=[hiking, beach])

        items, total = await suggestion_service.get_suggestions(db, user_id)
        assert total == 3
        assert [i.event.title for i in items] == ["Two shared", "One shared", "No overlap"]
        assert items[0].match_score > items[1].match_score > items[2].match_score == 0
        assert {t.name for t in items[0].matched_tags} == {"Hiking", "Beach"}
        assert items[0].score_breakdown["tags"] > 0

    @pytest.mark.asyncio
    async def test_categories_count_as_tags(self, db, make_event, user_id):
        road_trip = await tag_id(db, "Road Trip")
        await tag_service.add_user_tag(db, user_id, road_trip)
        await make_event(title="Plain")
        await make_event(title="Categorised", category_ids=[road_trip])

        assert (await suggested_titles(db, user_id))[0] == "Categorised"

    @pytest.mark.asyncio
    async def test_ranking_is_deterministic(self, db, make_event, user_id):
        start = datetime.now(timezone.utc) + timedelta(days=3)
        for n in range(4):
            await make_event(title=f"Tie {n}", start_at=start)

        first = await suggested_titles(db, user_id)
        second = await suggested_titles(db, user_id)
        assert first == second
        assert len(first) == 4

    @pytest.mark.asyncio
    async def test_later_start_breaks_ties(self, db, make_event, user_id):
        now = datetime.now(timezone.utc)
        await make_event(title="Next week", start_at=now + timedelta(days=7))
        await make_event(title="Tomorrow", start_at=now + timedelta(days=1))

        # Equal scores: the later timestamp comes first
        assert await suggested_titles(db, user_id) == ["Next week", "Tomorrow"]

    @pytest.mark.asyncio
    async def test_paging_and_total(self, db, make_event, user_id):
        for n in range(5):
            await make_event(title=f"Event {n}")

        page_one, total = await suggestion_service.get_suggestions(db, user_id, page=1, limit=2)
        page_three, _ = await suggestion_service.get_suggestions(db, user_id, page=3, limit=2)
        assert total == 5
        assert len(page_one) == 2
        assert len(page_three) == 1

        everything = await suggested_titles(db, user_id, limit=10)
        paged = [i.event.title for i in page_one] + [i.event.title for i in page_three]
        assert paged == everything[:2] + everything[4:]

    @pytest.mark.asyncio
    async def test_food_preferences_lift_food_events(self, db, make_event, user_id):
        from tripmatch.schemas.taxonomy import FoodPreferenceUpdate
        from tripmatch.services.food_preference_service import food_preference_service

        await food_preference_service.update_food_preference(
            db, user_id, FoodPreferenceUpdate(category_code="thai_food", preference_level=3)
        )
        await make_event(title="Museum")
        await make_event(title="Som tam night", tag_ids=[await tag_id(db, "Thai Food")])

        items, _ = await suggestion_service.get_suggestions(db, user_id)
        assert items[0].event.title == "Som tam night"
        assert items[0].score_breakdown["food"] > 0
