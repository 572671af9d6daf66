"""
Interest vocabulary and per-user interest selection.

The user's selection is always replaced as a whole: the client sends the
complete set of codes, and the stored rows are rewritten to match.
"""

import logging
import uuid
from typing import List, Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from tripmatch.exceptions import ValidationError
from tripmatch.models.taxonomy import Interest, UserInterest
from tripmatch.schemas.taxonomy import InterestResponse, UserInterestResponse
from tripmatch.services.db_errors import wrap_db_errors

logger = logging.getLogger(__name__)


class InterestService:

    async def _active_interests(
        self, db: AsyncSession, category: Optional[str] = None
    ) -> List[Interest]:
        query = select(Interest).where(Interest.is_active.is_(True))
        if category:
            query = query.where(Interest.category == category)
        result = await db.execute(query.order_by(Interest.category, Interest.sort_order))
        return list(result.scalars().all())

    async def _selected_codes(self, db: AsyncSession, user_id: uuid.UUID) -> set:
        result = await db.execute(
            select(UserInterest.interest_code).where(UserInterest.user_id == user_id)
        )
        return set(result.scalars().all())

    @wrap_db_errors("list interests")
    async def list_interests(
        self, db: AsyncSession, category: Optional[str] = None
    ) -> List[InterestResponse]:
        interests = await self._active_interests(db, category)
        return [InterestResponse.model_validate(i) for i in interests]

    @wrap_db_errors("load user interests")
    async def get_user_interests(
        self, db: AsyncSession, user_id: uuid.UUID
    ) -> List[UserInterestResponse]:
        """Every active interest, flagged with whether the user selected it."""
        selected = await self._selected_codes(db, user_id)
        return [
            UserInterestResponse(
                **InterestResponse.model_validate(i).model_dump(),
                is_selected=i.code in selected,
            )
            for i in await self._active_interests(db)
        ]

    @wrap_db_errors("load selected interests")
    async def get_selected_interests(
        self, db: AsyncSession, user_id: uuid.UUID
    ) -> List[InterestResponse]:
        result = await db.execute(
            select(Interest)
            .join(UserInterest, UserInterest.interest_code == Interest.code)
            .where(UserInterest.user_id == user_id, Interest.is_active.is_(True))
            .order_by(Interest.category, Interest.sort_order)
        )
        return [InterestResponse.model_validate(i) for i in result.scalars().all()]

    async def resolve_interests(
        self, db: AsyncSession, codes: Sequence[str], field: str = "interest_codes"
    ) -> List[Interest]:
        """
        Map codes to active Interest rows, preserving first-seen order.

        Raises:
            ValidationError: any code is unknown or inactive
        """
        wanted = list(dict.fromkeys(codes))
        if not wanted:
            return []
        result = await db.execute(
            select(Interest).where(Interest.code.in_(wanted), Interest.is_active.is_(True))
        )
        found = {i.code: i for i in result.scalars().all()}
        missing = [c for c in wanted if c not in found]
        if missing:
            raise ValidationError(
                message=f"Unknown or inactive interests in {field}",
                field=field,
                context={"unknown_codes": missing},
            )
        return [found[c] for c in wanted]

    @wrap_db_errors("update user interests")
    async def update_user_interests(
        self, db: AsyncSession, user_id: uuid.UUID, codes: Sequence[str]
    ) -> List[InterestResponse]:
        """Replace the user's selection with `codes`."""
        interests = await self.resolve_interests(db, codes, field="codes")
        await db.execute(delete(UserInterest).where(UserInterest.user_id == user_id))
        db.add_all(UserInterest(user_id=user_id, interest_code=i.code) for i in interests)
        await db.flush()
        logger.info("User %s now has %d interests", user_id, len(interests))
        return await self.get_selected_interests(db, user_id)


interest_service = InterestService()
