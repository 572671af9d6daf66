"""
TripMatch Backend — Taxonomy Schemas
======================================

Request/response contracts for tags, interests, food preferences and
travel preferences. Enum-like values (tag kinds, category codes, levels)
are accepted as plain strings/ints here and validated by the services, so
unknown values surface as 400 validation errors rather than 422s.
"""

import uuid
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class TagResponse(BaseModel):
    id: uuid.UUID
    name: str
    kind: str

    model_config = {"from_attributes": True}


class InterestResponse(BaseModel):
    code: str
    display_name: str
    icon: Optional[str] = None
    category: str
    sort_order: int

    model_config = {"from_attributes": True}


class UserInterestResponse(InterestResponse):
    is_selected: bool = Field(description="Whether the current user selected this interest")


class UpdateInterestsRequest(BaseModel):
    codes: List[str] = Field(default_factory=list, description="Complete set of interest codes")


# ── Food preferences ──────────────────────────────────────────────────────

class FoodCategoryResponse(BaseModel):
    code: str
    display_name: str
    icon: Optional[str] = None
    description: Optional[str] = None
    sort_order: int

    model_config = {"from_attributes": True}


class FoodCategoryWithLevelResponse(FoodCategoryResponse):
    preference_level: int = Field(description="User's level, 2 (neutral) when not set")
    is_set: bool = Field(description="Whether the user stored a preference")


class FoodPreferenceResponse(BaseModel):
    category_code: str
    display_name: str
    preference_level: int = Field(description="1 = dislike, 2 = neutral, 3 = love")
    updated_at: datetime


class FoodPreferenceUpdate(BaseModel):
    category_code: str
    preference_level: int


class FoodPreferenceBulkUpdate(BaseModel):
    preferences: List[FoodPreferenceUpdate]


class FoodPreferenceStats(BaseModel):
    total: int
    dislike: int
    neutral: int
    love: int


# ── Travel preferences ────────────────────────────────────────────────────

class TravelStyleResponse(BaseModel):
    code: str
    display_name: str
    icon: Optional[str] = None
    category: str
    sort_order: int

    model_config = {"from_attributes": True}


class TravelStyleWithSelectionResponse(TravelStyleResponse):
    is_selected: bool


class TravelPreferenceResponse(BaseModel):
    style_code: str
    display_name: str
    category: str
    created_at: datetime


class TravelPreferenceCreate(BaseModel):
    style_code: str


class TravelPreferenceReplace(BaseModel):
    style_codes: List[str] = Field(default_factory=list)


class TravelPreferenceStats(BaseModel):
    total: int
    by_category: Dict[str, int]
