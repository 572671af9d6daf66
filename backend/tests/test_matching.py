"""
TripMatch Backend — Match Scoring Unit Tests
==============================================

Pure functions, no database: Tag objects are built in memory.

What we test:
    ✅ No overlap scores exactly zero
    ✅ More overlap never lowers the score, in every component
    ✅ Tag kinds carry their own weights
    ✅ Food factors follow the user's level and pick the best category
    ✅ Travel styles match tags by keyword
    ✅ rank_key orders by score, then recency, then id
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from tripmatch.models.taxonomy import Tag
from tripmatch.services.matching import (
    KIND_WEIGHTS,
    MatchWeights,
    UserProfile,
    food_score,
    merge_event_tags,
    rank_key,
    score_event,
    travel_score,
)


def make_tag(name, kind="interest"):
    return Tag(id=uuid.uuid4(), name=name, kind=kind)


WEIGHTS = MatchWeights()


class TestScoreEvent:

    def test_no_overlap_scores_zero(self):
        profile = UserProfile(tag_ids={uuid.uuid4()}, interest_codes={"karaoke"})
        result = score_event(profile, [make_tag("Beach", "location")], ["noodles"], WEIGHTS)

        assert result.score == 0
        assert result.matched_tags == []
        assert result.matched_interests == []
        assert set(result.breakdown) == {"tags", "interests", "food", "travel"}

    def test_empty_profile_scores_zero(self):
        tags = [make_tag("Thai Food", "food"), make_tag("Hiking", "activity")]
        result = score_event(UserProfile(), tags, ["bbq"], WEIGHTS)
        assert result.score == 0

    def test_more_shared_tags_never_lower_score(self):
        adventure = make_tag("Adventure", "interest")
        beach = make_tag("Beach", "location")
        hostel = make_tag("Hostel", "accommodation")
        profile = UserProfile(tag_ids={adventure.id, beach.id, hostel.id})

        scores = [
            score_event(profile, tags, [], WEIGHTS).score
            for tags in ([adventure], [adventure, beach], [adventure, beach, hostel])
        ]
        assert scores == sorted(scores)
        assert scores[0] < scores[-1]

    def test_kind_weights_applied(self):
        interest = make_tag("Music", "interest")
        transport = make_tag("Train", "transport")
        profile = UserProfile(tag_ids={interest.id, transport.id})

        result = score_event(profile, [interest, transport], [], WEIGHTS)

        expected = KIND_WEIGHTS["interest"] + KIND_WEIGHTS["transport"]
        assert result.breakdown["tags"] == pytest.approx(expected)
        assert {t.name for t in result.matched_tags} == {"Music", "Train"}

    def test_interest_overlap_counts(self):
        profile = UserProfile(interest_codes={"karaoke", "bbq", "coffee"})
        result = score_event(profile, [], ["bbq", "karaoke", "movie"], WEIGHTS)

        assert result.matched_interests == ["bbq", "karaoke"]
        assert result.breakdown["interests"] == 2.0

    def test_weights_scale_components(self):
        profile = UserProfile(interest_codes={"karaoke"})
        heavy = MatchWeights(interests=3.0)
        assert score_event(profile, [], ["karaoke"], heavy).score == 3.0
        assert score_event(profile, [], ["karaoke"], MatchWeights(interests=0.0)).score == 0

    def test_score_is_deterministic(self):
        tag = make_tag("Karaoke", "activity")
        profile = UserProfile(tag_ids={tag.id}, travel_styles={"karaoke"})
        first = score_event(profile, [tag], [], WEIGHTS)
        second = score_event(profile, [tag], [], WEIGHTS)
        assert first.score == second.score
        assert first.breakdown == second.breakdown


class TestFoodScore:

    def test_love_beats_neutral_beats_dislike(self):
        tags = [make_tag("Thai Food", "food")]
        love = food_score({"thai_food": 3}, tags)
        neutral = food_score({"thai_food": 2}, tags)
        dislike = food_score({"thai_food": 1}, tags)
        assert love > neutral > dislike == 0

    def test_only_food_tags_count(self):
        assert food_score({"thai_food": 3}, [make_tag("Thai Boxing", "activity")]) == 0

    def test_best_matching_category_wins(self):
        # "BBQ Buffet" matches both bbq_grill and buffet
        tags = [make_tag("BBQ Buffet", "food")]
        assert food_score({"bbq_grill": 1, "buffet": 3}, tags) == 1.0


class TestTravelScore:

    def test_keyword_match(self):
        tags = [make_tag("Karaoke", "activity"), make_tag("Beach", "location")]
        assert travel_score({"karaoke"}, tags) == 1.0

    def test_no_styles(self):
        assert travel_score(set(), [make_tag("Karaoke", "activity")]) == 0.0


class TestMergeAndRank:

    def test_merge_dedupes_by_id(self):
        shared = make_tag("Road Trip", "category")
        other = make_tag("Beach", "location")
        merged = merge_event_tags([shared, other], [shared])
        assert [t.name for t in merged] == ["Beach", "Road Trip"]

    def test_rank_key_order(self):
        now = datetime.now(timezone.utc)
        low_id, high_id = sorted([uuid.uuid4(), uuid.uuid4()], key=str)
        keys = [
            rank_key(1.0, now, high_id),
            rank_key(2.0, now - timedelta(days=1), high_id),
            rank_key(1.0, now, low_id),
            rank_key(1.0, now + timedelta(days=1), high_id),
        ]
        ordered = sorted(keys)
        assert ordered[0][0] == -2.0
        # Same score: later recency first, then id ascending
        assert ordered[1] == keys[3]
        assert ordered[2] == keys[2]
        assert ordered[3] == keys[0]
