"""
Food and travel preference endpoints under /api/v1/preferences.

Food levels: 1 = dislike, 2 = neutral, 3 = love.
"""

import uuid
from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from tripmatch.database import get_db_session
from tripmatch.schemas.common import ErrorResponse
from tripmatch.schemas.taxonomy import (
    FoodCategoryResponse,
    FoodCategoryWithLevelResponse,
    FoodPreferenceBulkUpdate,
    FoodPreferenceResponse,
    FoodPreferenceStats,
    FoodPreferenceUpdate,
    TravelPreferenceCreate,
    TravelPreferenceReplace,
    TravelPreferenceResponse,
    TravelPreferenceStats,
    TravelStyleResponse,
    TravelStyleWithSelectionResponse,
)
from tripmatch.security import get_current_user_id
from tripmatch.services.food_preference_service import food_preference_service
from tripmatch.services.travel_preference_service import travel_preference_service

router = APIRouter(prefix="/preferences", tags=["Preferences"])

INVALID = {400: {"description": "Unknown code or invalid level", "model": ErrorResponse}}
ABSENT = {404: {"description": "Preference not set", "model": ErrorResponse}}


# ── Food ──────────────────────────────────────────────────────────────────

@router.get("/food/categories", response_model=List[FoodCategoryResponse], summary="Food categories")
async def list_food_categories(
    db: AsyncSession = Depends(get_db_session),
) -> List[FoodCategoryResponse]:
    return await food_preference_service.list_categories(db)


@router.get(
    "/food/categories/me",
    response_model=List[FoodCategoryWithLevelResponse],
    summary="Food categories with the caller's levels (neutral when unset)",
)
async def list_my_food_categories(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> List[FoodCategoryWithLevelResponse]:
    return await food_preference_service.get_categories_with_levels(db, user_id)


@router.get("/food", response_model=List[FoodPreferenceResponse], summary="The caller's food ratings")
async def get_food_preferences(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> List[FoodPreferenceResponse]:
    return await food_preference_service.get_food_preferences(db, user_id)


@router.put(
    "/food",
    response_model=FoodPreferenceResponse,
    responses=INVALID,
    summary="Set one food rating",
)
async def update_food_preference(
    payload: FoodPreferenceUpdate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> FoodPreferenceResponse:
    return await food_preference_service.update_food_preference(db, user_id, payload)


@router.put(
    "/food/bulk",
    response_model=List[FoodPreferenceResponse],
    responses=INVALID,
    summary="Set several food ratings at once (all or nothing)",
)
async def update_all_food_preferences(
    payload: FoodPreferenceBulkUpdate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> List[FoodPreferenceResponse]:
    return await food_preference_service.update_all_food_preferences(
        db, user_id, payload.preferences
    )


@router.get("/food/stats", response_model=FoodPreferenceStats, summary="Counts per level")
async def get_food_stats(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> FoodPreferenceStats:
    return await food_preference_service.get_stats(db, user_id)


@router.delete(
    "/food/{category_code}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=ABSENT,
    summary="Remove one food rating",
)
async def delete_food_preference(
    category_code: str,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await food_preference_service.delete_food_preference(db, user_id, category_code)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── Travel ────────────────────────────────────────────────────────────────

@router.get("/travel/styles", response_model=List[TravelStyleResponse], summary="Travel styles")
async def list_travel_styles(
    db: AsyncSession = Depends(get_db_session),
) -> List[TravelStyleResponse]:
    return await travel_preference_service.list_styles(db)


@router.get(
    "/travel/styles/me",
    response_model=List[TravelStyleWithSelectionResponse],
    summary="Travel styles flagged with the caller's selection",
)
async def list_my_travel_styles(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> List[TravelStyleWithSelectionResponse]:
    return await travel_preference_service.get_styles_with_selection(db, user_id)


@router.get(
    "/travel", response_model=List[TravelPreferenceResponse], summary="The caller's travel styles"
)
async def get_travel_preferences(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> List[TravelPreferenceResponse]:
    return await travel_preference_service.get_travel_preferences(db, user_id)


@router.post(
    "/travel",
    response_model=TravelPreferenceResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**INVALID, 409: {"description": "Style already selected", "model": ErrorResponse}},
    summary="Add one travel style",
)
async def add_travel_preference(
    payload: TravelPreferenceCreate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> TravelPreferenceResponse:
    return await travel_preference_service.add_travel_preference(db, user_id, payload.style_code)


@router.put(
    "/travel",
    response_model=List[TravelPreferenceResponse],
    responses=INVALID,
    summary="Replace the caller's travel styles",
)
async def replace_travel_preferences(
    payload: TravelPreferenceReplace,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> List[TravelPreferenceResponse]:
    return await travel_preference_service.replace_travel_preferences(
        db, user_id, payload.style_codes
    )


@router.get("/travel/stats", response_model=TravelPreferenceStats, summary="Counts per category")
async def get_travel_stats(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> TravelPreferenceStats:
    return await travel_preference_service.get_stats(db, user_id)


@router.delete(
    "/travel/{style_code}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=ABSENT,
    summary="Remove one travel style",
)
async def delete_travel_preference(
    style_code: str,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await travel_preference_service.delete_travel_preference(db, user_id, style_code)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
