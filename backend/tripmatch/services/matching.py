"""
TripMatch Backend — Suggestion Scoring
========================================

What:  Pure functions that score one event against one user profile.
Why:   Kept free of I/O so the ranking rules can be tested without a database.
Who:   SuggestionService loads the profile and candidate events, then calls
       score_event() and sorts with rank_key().

Score:
    total = w_tags      * Σ kind_weight(tag)   over shared tags
          + w_interests * |shared interest codes|
          + w_food      * Σ best food factor    over food-kind event tags
          + w_travel    * |event tags hit by a selected travel style|

    Every component is a sum of non-negative terms, so adding overlap never
    lowers the score. No overlap at all gives exactly 0.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Set, Tuple

from tripmatch.config import Settings
from tripmatch.models.enums import TagKind
from tripmatch.models.taxonomy import Tag

KIND_WEIGHTS: Dict[str, float] = {
    TagKind.INTEREST.value: 1.0,
    TagKind.ACTIVITY.value: 0.8,
    TagKind.FOOD.value: 0.7,
    TagKind.LOCATION.value: 0.6,
    TagKind.CATEGORY.value: 0.5,
    TagKind.ACCOMMODATION.value: 0.4,
    TagKind.TRANSPORT.value: 0.3,
}

# Food category → substrings looked for in lower-cased food tag names
FOOD_CATEGORY_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "thai_food": ("thai", "thailand", "pad thai", "tom yum"),
    "japanese_food": ("japanese", "japan", "sushi", "ramen"),
    "chinese_food": ("chinese", "china", "dim sum", "dumpling"),
    "international_food": ("international", "western", "global"),
    "halal_food": ("halal", "muslim", "islamic"),
    "buffet": ("buffet", "all you can eat"),
    "bbq_grill": ("bbq", "barbecue", "grill", "grilled"),
}

# Travel style → substrings looked for in lower-cased tag names
TRAVEL_STYLE_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "outdoor_activity": ("fitness", "camping", "hiking", "outdoor", "sports"),
    "social_activity": ("social", "meetup", "gathering", "party"),
    "karaoke": ("karaoke", "singing", "music"),
    "gaming": ("gaming", "games", "esports"),
    "movie": ("movie", "cinema", "film"),
    "board_game": ("board game", "games", "tabletop"),
    "swimming": ("swimming", "pool", "water"),
    "skateboarding": ("skateboarding", "skate", "extreme"),
    "cafe_dessert": ("cafe", "dessert", "coffee", "bakery"),
    "bubble_tea": ("bubble tea", "tea", "drinks"),
    "bakery_cake": ("bakery", "cake", "pastry"),
    "bingsu_ice_cream": ("bingsu", "ice cream", "dessert"),
    "coffee": ("coffee", "cafe"),
    "matcha": ("matcha", "tea"),
    "pancakes": ("pancakes", "breakfast", "brunch"),
    "party_celebration": ("party", "celebration", "event"),
}

# preference_level → contribution of a matching food tag
FOOD_LEVEL_FACTORS: Dict[int, float] = {1: 0.0, 2: 0.5, 3: 1.0}


@dataclass(frozen=True)
class MatchWeights:
    tags: float = 1.0
    interests: float = 1.0
    food: float = 0.7
    travel: float = 0.6

    @classmethod
    def from_settings(cls, config: Settings) -> "MatchWeights":
        return cls(
            tags=config.match_weight_tags,
            interests=config.match_weight_interests,
            food=config.match_weight_food,
            travel=config.match_weight_travel,
        )


@dataclass
class UserProfile:
    """Everything about a user that feeds the score."""

    tag_ids: Set[uuid.UUID] = field(default_factory=set)
    interest_codes: Set[str] = field(default_factory=set)
    food_levels: Dict[str, int] = field(default_factory=dict)
    travel_styles: Set[str] = field(default_factory=set)

    @property
    def is_empty(self) -> bool:
        return not (self.tag_ids or self.interest_codes or self.food_levels or self.travel_styles)


@dataclass
class MatchResult:
    score: float
    matched_tags: List[Tag]
    matched_interests: List[str]
    breakdown: Dict[str, float]


def _contains_any(name: str, keywords: Iterable[str]) -> bool:
    return any(k in name for k in keywords)


def merge_event_tags(tags: Iterable[Tag], categories: Iterable[Tag]) -> List[Tag]:
    """Tags ∪ categories, deduplicated by id, sorted by name."""
    merged = {t.id: t for t in list(tags) + list(categories)}
    return sorted(merged.values(), key=lambda t: (t.name, str(t.id)))


def tag_score(profile: UserProfile, event_tags: List[Tag]) -> Tuple[float, List[Tag]]:
    matched = [t for t in event_tags if t.id in profile.tag_ids]
    return sum(KIND_WEIGHTS.get(t.kind, 0.0) for t in matched), matched


def food_score(food_levels: Mapping[str, int], event_tags: List[Tag]) -> float:
    total = 0.0
    for tag in event_tags:
        if tag.kind != TagKind.FOOD.value:
            continue
        name = tag.name.lower()
        factors = [
            FOOD_LEVEL_FACTORS.get(level, 0.0)
            for code, level in food_levels.items()
            if _contains_any(name, FOOD_CATEGORY_KEYWORDS.get(code, ()))
        ]
        if factors:
            total += max(factors)
    return total


def travel_score(travel_styles: Set[str], event_tags: List[Tag]) -> float:
    keywords = [kw for style in travel_styles for kw in TRAVEL_STYLE_KEYWORDS.get(style, ())]
    if not keywords:
        return 0.0
    return float(sum(1 for t in event_tags if _contains_any(t.name.lower(), keywords)))


def score_event(
    profile: UserProfile,
    event_tags: List[Tag],
    interest_codes: Iterable[str],
    weights: MatchWeights,
) -> MatchResult:
    """
    Score one event for one user.

    Args:
        event_tags: the event's tags and categories, already merged
        interest_codes: the event's interest codes
    """
    tags_raw, matched_tags = tag_score(profile, event_tags)
    matched_interests = sorted(profile.interest_codes.intersection(interest_codes))

    breakdown = {
        "tags": round(weights.tags * tags_raw, 2),
        "interests": round(weights.interests * len(matched_interests), 2),
        "food": round(weights.food * food_score(profile.food_levels, event_tags), 2),
        "travel": round(weights.travel * travel_score(profile.travel_styles, event_tags), 2),
    }
    return MatchResult(
        score=round(sum(breakdown.values()), 2),
        matched_tags=matched_tags,
        matched_interests=matched_interests,
        breakdown=breakdown,
    )


def rank_key(score: float, recency: datetime, event_id: uuid.UUID) -> Tuple[float, float, str]:
    """
    Sort key: best score first, then most recent, then id for a stable tie-break.

    recency is the event's start_at, falling back to created_at.
    """
    return (-score, -recency.timestamp(), str(event_id))
