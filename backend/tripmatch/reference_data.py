"""
TripMatch Backend — Reference (Master) Data
=============================================

What:  The controlled vocabularies shipped with the service: generic tags,
       interests, food categories and travel styles.
How:   Plain tuples consumed by the seed migration (alembic/versions/002)
       and by seed_reference_data(), which is idempotent and used by
       tests and local development.
"""

import logging
from typing import Dict, List, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tripmatch.models.taxonomy import FoodCategory, Interest, Tag, TravelStyle

logger = logging.getLogger(__name__)

# (name, kind)
TAGS: List[Tuple[str, str]] = [
    ("Adventure", "interest"),
    ("Food", "interest"),
    ("Culture", "interest"),
    ("Nature", "interest"),
    ("Photography", "interest"),
    ("Music", "interest"),
    ("Sports", "interest"),
    ("Art", "interest"),
    ("Shopping", "activity"),
    ("Nightlife", "activity"),
    ("Karaoke", "activity"),
    ("Hiking", "activity"),
    ("Board Games", "activity"),
    ("Beach", "location"),
    ("Mountain", "location"),
    ("City", "location"),
    ("Thai Food", "food"),
    ("Japanese Food", "food"),
    ("Chinese Food", "food"),
    ("BBQ Grill", "food"),
    ("Buffet", "food"),
    ("Cafe & Dessert", "category"),
    ("Road Trip", "category"),
    ("Party", "category"),
    ("Train", "transport"),
    ("Car Pool", "transport"),
    ("Hostel", "accommodation"),
    ("Camping Site", "accommodation"),
]

# (code, display_name, icon, category, sort_order)
INTERESTS: List[Tuple[str, str, str, str, int]] = [
    ("street_food", "Street Food", "🥡", "restaurant", 1),
    ("noodles", "Noodles", "🍜", "restaurant", 2),
    ("japanese_food", "Japanese Food", "🍣", "restaurant", 3),
    ("korean_food", "Korean Food", "🍲", "restaurant", 4),
    ("bbq", "BBQ", "🔥", "restaurant", 5),
    ("buffet", "Buffet", "😊", "restaurant", 6),
    ("vegan", "Vegan", "🥬", "restaurant", 7),
    ("bubble_tea", "Bubble Tea", "🥤", "cafe", 1),
    ("coffee", "Coffee", "☕", "cafe", 2),
    ("bakery_cake", "Bakery / Cake", "🍞", "cafe", 3),
    ("matcha", "Matcha", "🍵", "cafe", 4),
    ("karaoke", "Karaoke", "🎤", "activity", 1),
    ("photography", "Photography", "📸", "activity", 2),
    ("temple", "Temple", "🛕", "activity", 3),
    ("night_market", "Night Market", "🧺", "activity", 4),
    ("movies", "Movies", "🎞️", "activity", 5),
    ("running", "Running", "🏃", "activity", 6),
    ("travel", "Travel", "🌴", "activity", 7),
    ("wine", "Wine", "🍷", "pub_bar", 1),
    ("edm_music", "EDM Music", "🎵", "pub_bar", 2),
]

# (code, display_name, icon, description, sort_order)
FOOD_CATEGORIES: List[Tuple[str, str, str, str, int]] = [
    ("thai_food", "Thai Food", "🍛", "Local Thai dishes from street stalls to restaurants", 1),
    ("japanese_food", "Japanese Food", "🍣", "Sushi, ramen, izakaya and more", 2),
    ("chinese_food", "Chinese Food", "🥟", "Dim sum, dumplings and regional Chinese cuisine", 3),
    ("international_food", "International Food", "🌍", "Western and global cuisine", 4),
    ("halal_food", "Halal Food", "☪️", "Halal-certified dining", 5),
    ("buffet", "Buffet", "🍽️", "All-you-can-eat restaurants", 6),
    ("bbq_grill", "BBQ & Grill", "🔥", "Barbecue, grills and mookata", 7),
]

# (code, display_name, icon, category, sort_order)
TRAVEL_STYLES: List[Tuple[str, str, str, str, int]] = [
    ("cafe_dessert", "Cafe & Dessert", "🍰", "food_drink", 1),
    ("bubble_tea", "Bubble Tea", "🧋", "food_drink", 2),
    ("bakery_cake", "Bakery & Cake", "🎂", "food_drink", 3),
    ("bingsu_ice_cream", "Bingsu & Ice Cream", "🍧", "food_drink", 4),
    ("coffee", "Coffee", "☕", "food_drink", 5),
    ("matcha", "Matcha", "🍵", "food_drink", 6),
    ("pancakes", "Pancakes", "🥞", "food_drink", 7),
    ("social_activity", "Social Activity", "🎉", "social", 8),
    ("karaoke", "Karaoke", "🎤", "social", 9),
    ("gaming", "Gaming", "🎮", "social", 10),
    ("movie", "Movie", "🎬", "social", 11),
    ("board_game", "Board Game", "🎲", "social", 12),
    ("party_celebration", "Party & Celebration", "🥳", "social", 13),
    ("outdoor_activity", "Outdoor Activity", "🏕️", "outdoor", 14),
    ("swimming", "Swimming", "🏊", "outdoor", 15),
    ("skateboarding", "Skateboarding", "🛹", "outdoor", 16),
]


def tag_rows() -> List[Dict]:
    return [{"name": name, "kind": kind} for name, kind in TAGS]


def interest_rows() -> List[Dict]:
    return [
        {"code": code, "display_name": name, "icon": icon, "category": category, "sort_order": order}
        for code, name, icon, category, order in INTERESTS
    ]


def food_category_rows() -> List[Dict]:
    return [
        {"code": code, "display_name": name, "icon": icon, "description": desc, "sort_order": order}
        for code, name, icon, desc, order in FOOD_CATEGORIES
    ]


def travel_style_rows() -> List[Dict]:
    return [
        {"code": code, "display_name": name, "icon": icon, "category": category, "sort_order": order}
        for code, name, icon, category, order in TRAVEL_STYLES
    ]


async def seed_reference_data(db: AsyncSession) -> None:
    """
    Insert any missing master rows. Existing rows are left untouched, so
    the function can run repeatedly.
    """
    existing_tags = set((await db.execute(select(Tag.name))).scalars().all())
    for row in tag_rows():
        if row["name"] not in existing_tags:
            db.add(Tag(**row))

    existing_interests = set((await db.execute(select(Interest.code))).scalars().all())
    for row in interest_rows():
        if row["code"] not in existing_interests:
            db.add(Interest(**row))

    existing_food = set((await db.execute(select(FoodCategory.code))).scalars().all())
    for row in food_category_rows():
        if row["code"] not in existing_food:
            db.add(FoodCategory(**row))

    existing_styles = set((await db.execute(select(TravelStyle.code))).scalars().all())
    for row in travel_style_rows():
        if row["code"] not in existing_styles:
            db.add(TravelStyle(**row))

    await db.flush()
    logger.info("Reference data seeded")
