"""
TripMatch Backend — Food Preference Service
=============================================

What:  Per-user rating of each food category on a three-point scale.
How:   One row per (user, category). Missing rows read as neutral (2) in
       the "categories with levels" view but are not counted in stats.

Levels:
    1 = dislike, 2 = neutral, 3 = love
"""

import logging
import uuid
from typing import Dict, List, Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from tripmatch.exceptions import NotFoundError, ValidationError
from tripmatch.models.taxonomy import FoodCategory, FoodPreference
from tripmatch.schemas.taxonomy import (
    FoodCategoryResponse,
    FoodCategoryWithLevelResponse,
    FoodPreferenceResponse,
    FoodPreferenceStats,
    FoodPreferenceUpdate,
)
from tripmatch.services.db_errors import wrap_db_errors

logger = logging.getLogger(__name__)

LEVEL_DISLIKE = 1
LEVEL_NEUTRAL = 2
LEVEL_LOVE = 3
VALID_LEVELS = (LEVEL_DISLIKE, LEVEL_NEUTRAL, LEVEL_LOVE)


def _to_response(pref: FoodPreference) -> FoodPreferenceResponse:
    return FoodPreferenceResponse(
        category_code=pref.category_code,
        display_name=pref.category.display_name,
        preference_level=pref.preference_level,
        updated_at=pref.updated_at,
    )


class FoodPreferenceService:
    """Food category ratings."""

    async def _active_categories(self, db: AsyncSession) -> List[FoodCategory]:
        result = await db.execute(
            select(FoodCategory)
            .where(FoodCategory.is_active.is_(True))
            .order_by(FoodCategory.sort_order)
        )
        return list(result.scalars().all())

    async def _validate(
        self, db: AsyncSession, items: Sequence[FoodPreferenceUpdate]
    ) -> None:
        """Check every item before anything is written."""
        codes = {c.code for c in await self._active_categories(db)}
        for item in items:
            if item.category_code not in codes:
                raise ValidationError(
                    message=f"Unknown food category '{item.category_code}'",
                    field="category_code",
                )
            if item.preference_level not in VALID_LEVELS:
                raise ValidationError(
                    message="preference_level must be 1 (dislike), 2 (neutral) or 3 (love)",
                    field="preference_level",
                    context={"category_code": item.category_code},
                )

    async def _upsert(
        self, db: AsyncSession, user_id: uuid.UUID, item: FoodPreferenceUpdate
    ) -> FoodPreference:
        pref = await db.get(FoodPreference, (user_id, item.category_code))
        if pref is None:
            pref = FoodPreference(
                user_id=user_id,
                category_code=item.category_code,
                preference_level=item.preference_level,
            )
            db.add(pref)
        else:
            pref.preference_level = item.preference_level
        return pref

    @wrap_db_errors("list food categories")
    async def list_categories(self, db: AsyncSession) -> List[FoodCategoryResponse]:
        return [FoodCategoryResponse.model_validate(c) for c in await self._active_categories(db)]

    @wrap_db_errors("load food preferences")
    async def get_food_preferences(
        self, db: AsyncSession, user_id: uuid.UUID
    ) -> List[FoodPreferenceResponse]:
        result = await db.execute(
            select(FoodPreference)
            .join(FoodCategory, FoodCategory.code == FoodPreference.category_code)
            .where(FoodPreference.user_id == user_id)
            .order_by(FoodCategory.sort_order)
            .execution_options(populate_existing=True)
        )
        return [_to_response(p) for p in result.scalars().all()]

    @wrap_db_errors("update food preference")
    async def update_food_preference(
        self, db: AsyncSession, user_id: uuid.UUID, item: FoodPreferenceUpdate
    ) -> FoodPreferenceResponse:
        await self._validate(db, [item])
        pref = await self._upsert(db, user_id, item)
        await db.flush()
        await db.refresh(pref)
        logger.info(
            "User %s rated food category %s at %d",
            user_id, item.category_code, item.preference_level,
        )
        return _to_response(pref)

    @wrap_db_errors("update food preferences")
    async def update_all_food_preferences(
        self, db: AsyncSession, user_id: uuid.UUID, items: Sequence[FoodPreferenceUpdate]
    ) -> List[FoodPreferenceResponse]:
        """
        Upsert several ratings at once.

        All items are validated first; a single bad item rejects the whole
        batch and nothing is written.
        """
        await self._validate(db, items)
        # Last write wins for duplicated codes within one batch
        latest: Dict[str, FoodPreferenceUpdate] = {i.category_code: i for i in items}
        for item in latest.values():
            await self._upsert(db, user_id, item)
        await db.flush()
        return await self.get_food_preferences(db, user_id)

    @wrap_db_errors("delete food preference")
    async def delete_food_preference(
        self, db: AsyncSession, user_id: uuid.UUID, category_code: str
    ) -> None:
        result = await db.execute(
            delete(FoodPreference).where(
                FoodPreference.user_id == user_id,
                FoodPreference.category_code == category_code,
            )
        )
        if result.rowcount == 0:
            raise NotFoundError(resource="food preference", resource_id=category_code)

    @wrap_db_errors("load food preference stats")
    async def get_stats(self, db: AsyncSession, user_id: uuid.UUID) -> FoodPreferenceStats:
        result = await db.execute(
            select(FoodPreference.preference_level).where(FoodPreference.user_id == user_id)
        )
        levels = list(result.scalars().all())
        return FoodPreferenceStats(
            total=len(levels),
            dislike=levels.count(LEVEL_DISLIKE),
            neutral=levels.count(LEVEL_NEUTRAL),
            love=levels.count(LEVEL_LOVE),
        )

    @wrap_db_errors("load food categories")
    async def get_categories_with_levels(
        self, db: AsyncSession, user_id: uuid.UUID
    ) -> List[FoodCategoryWithLevelResponse]:
        result = await db.execute(
            select(FoodPreference.category_code, FoodPreference.preference_level).where(
                FoodPreference.user_id == user_id
            )
        )
        levels = dict(result.all())
        return [
            FoodCategoryWithLevelResponse(
                **FoodCategoryResponse.model_validate(c).model_dump(),
                preference_level=levels.get(c.code, LEVEL_NEUTRAL),
                is_set=c.code in levels,
            )
            for c in await self._active_categories(db)
        ]

    async def get_levels(self, db: AsyncSession, user_id: uuid.UUID) -> Dict[str, int]:
        """category_code → level for the suggestion profile."""
        result = await db.execute(
            select(FoodPreference.category_code, FoodPreference.preference_level).where(
                FoodPreference.user_id == user_id
            )
        )
        return dict(result.all())


food_preference_service = FoodPreferenceService()
