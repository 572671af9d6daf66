"""
TripMatch Backend — Suggestion Service
========================================

What:  Ranks events a user has not yet acted on.
How:   1. Load the user's profile (tags, interests, food levels, travel styles)
       2. Select candidates in SQL (published, live, not expired, not swiped,
          not joined, optionally not own)
       3. Score each candidate with matching.score_event()
       4. Sort by matching.rank_key() and slice the requested page in memory

Candidate exclusion:
    - any swipe row by the user, whatever the direction
    - any membership row by the user whose status is not `left`
"""

import logging
import uuid
from typing import List, Optional, Tuple

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from tripmatch.config import settings
from tripmatch.database import utcnow
from tripmatch.models.enums import EventStatus, MemberStatus
from tripmatch.models.event import Event, EventMember, EventSwipe
from tripmatch.models.taxonomy import UserInterest, UserTag
from tripmatch.schemas.event import SuggestionItem
from tripmatch.schemas.taxonomy import TagResponse
from tripmatch.services.db_errors import wrap_db_errors
from tripmatch.services.event_queries import active_events, serialize_events
from tripmatch.services.food_preference_service import (
    FoodPreferenceService,
    food_preference_service,
)
from tripmatch.services.matching import (
    MatchWeights,
    UserProfile,
    merge_event_tags,
    rank_key,
    score_event,
)
from tripmatch.services.pagination import page_bounds
from tripmatch.services.travel_preference_service import (
    TravelPreferenceService,
    travel_preference_service,
)

logger = logging.getLogger(__name__)


class SuggestionService:
    """
    Args:
        weights: sub-score multipliers, normally MatchWeights.from_settings(settings)
    """

    def __init__(
        self,
        weights: MatchWeights,
        food_service: FoodPreferenceService,
        travel_service: TravelPreferenceService,
    ):
        self.weights = weights
        self.food_service = food_service
        self.travel_service = travel_service

    async def load_profile(self, db: AsyncSession, user_id: uuid.UUID) -> UserProfile:
        tag_ids = await db.execute(select(UserTag.tag_id).where(UserTag.user_id == user_id))
        interest_codes = await db.execute(
            select(UserInterest.interest_code).where(UserInterest.user_id == user_id)
        )
        return UserProfile(
            tag_ids=set(tag_ids.scalars().all()),
            interest_codes=set(interest_codes.scalars().all()),
            food_levels=await self.food_service.get_levels(db, user_id),
            travel_styles=set(await self.travel_service.get_style_codes(db, user_id)),
        )

    async def candidate_events(
        self, db: AsyncSession, user_id: uuid.UUID, exclude_own: bool = True
    ) -> List[Event]:
        now = utcnow()
        swiped = select(EventSwipe.event_id).where(EventSwipe.user_id == user_id)
        joined = select(EventMember.event_id).where(
            EventMember.user_id == user_id,
            EventMember.status != MemberStatus.LEFT.value,
        )
        query = active_events().where(
            Event.status == EventStatus.PUBLISHED.value,
            or_(
                Event.end_at > now,
                and_(Event.end_at.is_(None), Event.start_at > now),
                and_(Event.end_at.is_(None), Event.start_at.is_(None)),
            ),
            Event.id.not_in(swiped),
            Event.id.not_in(joined),
        )
        if exclude_own:
            query = query.where(Event.creator_id != user_id)
        result = await db.execute(query)
        return list(result.scalars().all())

    @wrap_db_errors("load suggestions")
    async def get_suggestions(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        page: int = 1,
        limit: int = 20,
        exclude_own: bool = True,
    ) -> Tuple[List[SuggestionItem], int]:
        profile = await self.load_profile(db, user_id)
        events = await self.candidate_events(db, user_id, exclude_own)

        scored = []
        for event in events:
            result = score_event(
                profile,
                merge_event_tags(event.tags, event.categories),
                [i.code for i in event.interests],
                self.weights,
            )
            scored.append((event, result))
        scored.sort(
            key=lambda pair: rank_key(
                pair[1].score, pair[0].start_at or pair[0].created_at, pair[0].id
            )
        )

        total = len(scored)
        offset, limit = page_bounds(page, limit)
        window = scored[offset:offset + limit]
        responses = await serialize_events(db, [e for e, _ in window], viewer_id=user_id)

        logger.debug(
            "Suggestions for %s: %d candidates, profile empty=%s",
            user_id, total, profile.is_empty,
        )
        return [
            SuggestionItem(
                event=response,
                match_score=result.score,
                matched_tags=[TagResponse.model_validate(t) for t in result.matched_tags],
                matched_interests=result.matched_interests,
                score_breakdown=result.breakdown,
            )
            for response, (_, result) in zip(responses, window)
        ], total


suggestion_service = SuggestionService(
    weights=MatchWeights.from_settings(settings),
    food_service=food_preference_service,
    travel_service=travel_preference_service,
)
