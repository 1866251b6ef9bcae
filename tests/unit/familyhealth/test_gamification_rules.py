"""Tests for the pure points, badge and streak rules."""

from datetime import date, timedelta

from hypothesis import given
from hypothesis import strategies as st

from familyhealth.domain.gamification import (
    INITIAL_BADGES,
    WELCOME_BADGE_ID,
    ActivityType,
    BadgeDefinition,
    badge_by_id,
    badge_criteria_met,
    next_streak,
    points_for,
)
from familyhealth.domain.models import ActivityStreak

TODAY = date(2024, 6, 15)


def _streak(current: int, longest: int, last: date | None) -> ActivityStreak:
    return ActivityStreak(
        user_id="u",
        activity_type=ActivityType.LOG_VITALS_WELLNESS.value,
        current_streak=current,
        longest_streak=longest,
        last_log_date=last,
    )


def test_points_allocation() -> None:
    assert points_for(ActivityType.DAILY_APP_LAUNCH) == 5
    assert points_for(ActivityType.LOG_VITALS_WELLNESS) == 10
    assert points_for(ActivityType.LOG_WATER_WELLNESS) == 5
    assert points_for(ActivityType.LOG_BABY_MILESTONE) == 15


def test_badge_catalog() -> None:
    assert len(INITIAL_BADGES) == 5
    assert len({b.id for b in INITIAL_BADGES}) == 5
    welcome = badge_by_id(WELCOME_BADGE_ID)
    assert welcome is not None and welcome.criteria_type == "SPECIAL_WELCOME"
    assert badge_by_id("badge_missing") is None


class TestStreaks:
    def test_first_log_starts_streak(self) -> None:
        updated = next_streak(_streak(0, 0, None), TODAY)
        assert (updated.current_streak, updated.longest_streak) == (1, 1)
        assert updated.last_log_date == TODAY

    def test_consecutive_day_extends(self) -> None:
        updated = next_streak(_streak(3, 3, TODAY - timedelta(days=1)), TODAY)
        assert (updated.current_streak, updated.longest_streak) == (4, 4)

    def test_same_day_is_unchanged(self) -> None:
        streak = _streak(2, 5, TODAY)
        assert next_streak(streak, TODAY) is streak

    def test_gap_resets_but_keeps_longest(self) -> None:
        updated = next_streak(_streak(4, 9, TODAY - timedelta(days=3)), TODAY)
        assert (updated.current_streak, updated.longest_streak) == (1, 9)

    @given(days=st.lists(st.integers(min_value=0, max_value=60), min_size=1, max_size=30))
    def test_longest_never_decreases(self, days: list[int]) -> None:
        streak = _streak(0, 0, None)
        for offset in sorted(days):
            before = streak.longest_streak
            streak = next_streak(streak, TODAY + timedelta(days=offset))
            assert streak.longest_streak >= before
            assert streak.longest_streak >= streak.current_streak >= 1


class TestBadgeCriteria:
    def test_first_time_action_needs_count_of_one(self) -> None:
        spark = badge_by_id("badge_vital_spark")
        assert spark is not None
        vitals = ActivityType.LOG_VITALS_WELLNESS

        assert badge_criteria_met(
            spark, total_points=10, log_counts={vitals: 1}, newly_performed=vitals
        )
        assert not badge_criteria_met(
            spark, total_points=20, log_counts={vitals: 2}, newly_performed=vitals
        )
        assert not badge_criteria_met(spark, total_points=10, log_counts={vitals: 1})

    def test_log_count_threshold(self) -> None:
        pro = badge_by_id("badge_wellness_insight_pro")
        assert pro is not None
        vitals = ActivityType.LOG_VITALS_WELLNESS

        assert not badge_criteria_met(pro, total_points=0, log_counts={vitals: 4})
        assert badge_criteria_met(pro, total_points=0, log_counts={vitals: 5})

    def test_points_threshold(self) -> None:
        badge = BadgeDefinition(
            id="badge_points",
            name="Centurion",
            description="100 points",
            icon="*",
            criteria_type="POINTS_THRESHOLD",
            threshold=100,
        )
        assert badge_criteria_met(badge, total_points=100, log_counts={})
        assert not badge_criteria_met(badge, total_points=99, log_counts={})

    def test_welcome_badge_is_never_met_by_criteria(self) -> None:
        welcome = badge_by_id(WELCOME_BADGE_ID)
        assert welcome is not None
        assert not badge_criteria_met(welcome, total_points=1000, log_counts={})
