"""Travel style vocabulary and per-user style selection."""

import logging
import uuid
from collections import Counter
from typing import List, Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from tripmatch.exceptions import ConflictError, NotFoundError, ValidationError
from tripmatch.models.taxonomy import TravelPreference, TravelStyle
from tripmatch.schemas.taxonomy import (
    TravelPreferenceResponse,
    TravelPreferenceStats,
    TravelStyleResponse,
    TravelStyleWithSelectionResponse,
)
from tripmatch.services.db_errors import wrap_db_errors

logger = logging.getLogger(__name__)


def _to_response(pref: TravelPreference) -> TravelPreferenceResponse:
    return TravelPreferenceResponse(
        style_code=pref.style_code,
        display_name=pref.style.display_name,
        category=pref.style.category,
        created_at=pref.created_at,
    )


class TravelPreferenceService:

    async def _active_styles(self, db: AsyncSession) -> List[TravelStyle]:
        result = await db.execute(
            select(TravelStyle)
            .where(TravelStyle.is_active.is_(True))
            .order_by(TravelStyle.sort_order)
        )
        return list(result.scalars().all())

    async def _require_styles(self, db: AsyncSession, codes: Sequence[str]) -> None:
        known = {s.code for s in await self._active_styles(db)}
        unknown = [c for c in codes if c not in known]
        if unknown:
            raise ValidationError(
                message="Unknown travel style",
                field="style_code",
                context={"unknown_codes": unknown},
            )

    @wrap_db_errors("list travel styles")
    async def list_styles(self, db: AsyncSession) -> List[TravelStyleResponse]:
        return [TravelStyleResponse.model_validate(s) for s in await self._active_styles(db)]

    @wrap_db_errors("load travel preferences")
    async def get_travel_preferences(
        self, db: AsyncSession, user_id: uuid.UUID
    ) -> List[TravelPreferenceResponse]:
        result = await db.execute(
            select(TravelPreference)
            .join(TravelStyle, TravelStyle.code == TravelPreference.style_code)
            .where(TravelPreference.user_id == user_id)
            .order_by(TravelStyle.sort_order)
            .execution_options(populate_existing=True)
        )
        return [_to_response(p) for p in result.scalars().all()]

    @wrap_db_errors("add travel preference")
    async def add_travel_preference(
        self, db: AsyncSession, user_id: uuid.UUID, style_code: str
    ) -> TravelPreferenceResponse:
        await self._require_styles(db, [style_code])
        if await db.get(TravelPreference, (user_id, style_code)) is not None:
            raise ConflictError(
                message="Travel style already selected",
                context={"style_code": style_code},
            )
        pref = TravelPreference(user_id=user_id, style_code=style_code)
        db.add(pref)
        await db.flush()
        await db.refresh(pref)
        logger.info("User %s added travel style %s", user_id, style_code)
        return _to_response(pref)

    @wrap_db_errors("replace travel preferences")
    async def replace_travel_preferences(
        self, db: AsyncSession, user_id: uuid.UUID, style_codes: Sequence[str]
    ) -> List[TravelPreferenceResponse]:
        codes = list(dict.fromkeys(style_codes))
        await self._require_styles(db, codes)
        await db.execute(delete(TravelPreference).where(TravelPreference.user_id == user_id))
        db.add_all(TravelPreference(user_id=user_id, style_code=c) for c in codes)
        await db.flush()
        return await self.get_travel_preferences(db, user_id)

    @wrap_db_errors("delete travel preference")
    async def delete_travel_preference(
        self, db: AsyncSession, user_id: uuid.UUID, style_code: str
    ) -> None:
        result = await db.execute(
            delete(TravelPreference).where(
                TravelPreference.user_id == user_id,
                TravelPreference.style_code == style_code,
            )
        )
        if result.rowcount == 0:
            raise NotFoundError(resource="travel preference", resource_id=style_code)

    @wrap_db_errors("load travel preference stats")
    async def get_stats(self, db: AsyncSession, user_id: uuid.UUID) -> TravelPreferenceStats:
        result = await db.execute(
            select(TravelStyle.category)
            .join(TravelPreference, TravelPreference.style_code == TravelStyle.code)
            .where(TravelPreference.user_id == user_id)
        )
        by_category = Counter(result.scalars().all())
        return TravelPreferenceStats(
            total=sum(by_category.values()), by_category=dict(by_category)
        )

    @wrap_db_errors("load travel styles")
    async def get_styles_with_selection(
        self, db: AsyncSession, user_id: uuid.UUID
    ) -> List[TravelStyleWithSelectionResponse]:
        selected = set(await self.get_style_codes(db, user_id))
        return [
            TravelStyleWithSelectionResponse(
                **TravelStyleResponse.model_validate(s).model_dump(),
                is_selected=s.code in selected,
            )
            for s in await self._active_styles(db)
        ]

    async def get_style_codes(self, db: AsyncSession, user_id: uuid.UUID) -> List[str]:
        result = await db.execute(
            select(TravelPreference.style_code).where(TravelPreference.user_id == user_id)
        )
        return list(result.scalars().all())


travel_preference_service = TravelPreferenceService()
