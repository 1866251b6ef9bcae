"""
Points, badges and streak rules.

The rules here are pure; ``familyhealth.services.gamification`` applies them
against the store.
"""

from collections.abc import Mapping
from datetime import date, timedelta
from enum import Enum
from typing import Literal

from pydantic import BaseModel

from familyhealth.domain.models import ActivityStreak


class ActivityType(str, Enum):
    DAILY_APP_LAUNCH = "DAILY_APP_LAUNCH"
    LOG_VITALS_WELLNESS = "LOG_VITALS_WELLNESS"
    LOG_WATER_WELLNESS = "LOG_WATER_WELLNESS"
    LOG_BABY_MILESTONE = "LOG_BABY_MILESTONE"


POINTS_ALLOCATION: dict[ActivityType, int] = {
    ActivityType.DAILY_APP_LAUNCH: 5,
    ActivityType.LOG_VITALS_WELLNESS: 10,
    ActivityType.LOG_WATER_WELLNESS: 5,
    ActivityType.LOG_BABY_MILESTONE: 15,
}

CriteriaType = Literal["FIRST_TIME_ACTION", "LOG_COUNT", "POINTS_THRESHOLD", "SPECIAL_WELCOME"]


class BadgeDefinition(BaseModel):
    id: str
    name: str
    description: str
    icon: str
    criteria_type: CriteriaType
    # FIRST_TIME_ACTION / LOG_COUNT: the activity that is counted
    target_activity: ActivityType | None = None
    # LOG_COUNT: count threshold, POINTS_THRESHOLD: points threshold
    threshold: int | None = None
    reward_message: str | None = None


WELCOME_BADGE_ID = "badge_welcome_aboard"

INITIAL_BADGES: list[BadgeDefinition] = [
    BadgeDefinition(
        id=WELCOME_BADGE_ID,
        name="Welcome Aboard!",
        description="Awarded for your first engagement with wellness features.",
        icon="🎉",
        criteria_type="SPECIAL_WELCOME",
    ),
    BadgeDefinition(
        id="badge_vital_spark",
        name="Vital Spark",
        description="Awarded for logging your first vital sign.",
        icon="❤️",
        criteria_type="FIRST_TIME_ACTION",
        target_activity=ActivityType.LOG_VITALS_WELLNESS,
    ),
    BadgeDefinition(
        id="badge_aqua_initiate",
        name="Aqua Initiate",
        description="Awarded for logging water intake for the first time.",
        icon="💧",
        criteria_type="FIRST_TIME_ACTION",
        target_activity=ActivityType.LOG_WATER_WELLNESS,
    ),
    BadgeDefinition(
        id="badge_wellness_insight_pro",
        name="Wellness Insight Pro",
        description="Unlock deeper insights by consistently tracking your vitals.",
        icon="🧠",
        criteria_type="LOG_COUNT",
        target_activity=ActivityType.LOG_VITALS_WELLNESS,
        threshold=5,
        reward_message=(
            "Your consistent vital logging helps us understand your health patterns better."
        ),
    ),
    BadgeDefinition(
        id="badge_baby_development_explorer",
        name="Baby Development Explorer",
        description="Unlock helpful tips as your baby achieves new milestones.",
        icon="👶",
        criteria_type="LOG_COUNT",
        target_activity=ActivityType.LOG_BABY_MILESTONE,
        threshold=3,
        reward_message="Watching your baby grow is exciting!",
    ),
]


def badge_by_id(badge_id: str) -> BadgeDefinition | None:
    return next((b for b in INITIAL_BADGES if b.id == badge_id), None)


def points_for(activity: ActivityType) -> int:
    return POINTS_ALLOCATION.get(activity, 0)


def next_streak(streak: ActivityStreak, today: date) -> ActivityStreak:
    """
    Apply one logged activity on ``today`` to a streak.

    Same day: unchanged. Consecutive day: +1. Any gap (or no history): reset
    to 1. ``longest_streak`` never decreases.
    """
    if streak.last_log_date == today:
        return streak

    if streak.last_log_date == today - timedelta(days=1):
        current = streak.current_streak + 1
    else:
        current = 1

    return streak.model_copy(
        update={
            "current_streak": current,
            "longest_streak": max(current, streak.longest_streak),
            "last_log_date": today,
        }
    )


def badge_criteria_met(
    badge: BadgeDefinition,
    *,
    total_points: int,
    log_counts: Mapping[ActivityType, int],
    newly_performed: ActivityType | None = None,
) -> bool:
    """Whether ``badge`` is earned given current totals. The welcome badge never is."""
    if badge.criteria_type == "FIRST_TIME_ACTION":
        return (
            newly_performed is not None
            and badge.target_activity == newly_performed
            and log_counts.get(newly_performed, 0) == 1
        )
    if badge.criteria_type == "LOG_COUNT":
        if badge.target_activity is None or badge.threshold is None:
            return False
        return log_counts.get(badge.target_activity, 0) >= badge.threshold
    if badge.criteria_type == "POINTS_THRESHOLD":
        return badge.threshold is not None and total_points >= badge.threshold
    return False
