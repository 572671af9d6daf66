"""Tag and interest vocabularies and the caller's own selections."""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from tripmatch.database import get_db_session
from tripmatch.routes.common import PageParams, page_response
from tripmatch.schemas.common import ErrorResponse, Page
from tripmatch.schemas.taxonomy import (
    InterestResponse,
    TagResponse,
    UpdateInterestsRequest,
    UserInterestResponse,
)
from tripmatch.security import get_current_user_id
from tripmatch.services.interest_service import interest_service
from tripmatch.services.tag_service import tag_service

router = APIRouter(tags=["Tags & Interests"])


@router.get(
    "/tags",
    response_model=Page[TagResponse],
    responses={400: {"description": "Unknown tag kind", "model": ErrorResponse}},
    summary="List active tags",
)
async def list_tags(
    response: Response,
    params: PageParams = Depends(),
    kind: Optional[str] = Query(default=None, description="Filter by tag kind"),
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> Page[TagResponse]:
    items, total = await tag_service.list_tags(db, page=params.page, limit=params.limit, kind=kind)
    return page_response(response, items, total, params)


@router.get("/users/me/tags", response_model=List[TagResponse], summary="The caller's tags")
async def get_my_tags(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> List[TagResponse]:
    return await tag_service.get_user_tags(db, user_id)


@router.post(
    "/users/me/tags/{tag_id}",
    response_model=TagResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"description": "Unknown tag", "model": ErrorResponse},
        409: {"description": "Tag already added", "model": ErrorResponse},
    },
    summary="Add a tag to the caller's profile",
)
async def add_my_tag(
    tag_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> TagResponse:
    return await tag_service.add_user_tag(db, user_id, tag_id)


@router.delete(
    "/users/me/tags/{tag_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"description": "Tag not on profile", "model": ErrorResponse}},
    summary="Remove a tag from the caller's profile",
)
async def remove_my_tag(
    tag_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await tag_service.remove_user_tag(db, user_id, tag_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/interests", response_model=List[InterestResponse], summary="List active interests")
async def list_interests(
    category: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db_session),
) -> List[InterestResponse]:
    return await interest_service.list_interests(db, category)


@router.get(
    "/users/me/interests",
    response_model=List[UserInterestResponse],
    summary="Every interest, flagged with the caller's selection",
)
async def get_my_interests(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> List[UserInterestResponse]:
    return await interest_service.get_user_interests(db, user_id)


@router.put(
    "/users/me/interests",
    response_model=List[InterestResponse],
    responses={400: {"description": "Unknown interest code", "model": ErrorResponse}},
    summary="Replace the caller's interests",
)
async def update_my_interests(
    payload: UpdateInterestsRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> List[InterestResponse]:
    return await interest_service.update_user_interests(db, user_id, payload.codes)
