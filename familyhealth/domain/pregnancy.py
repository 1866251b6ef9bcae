"""
Pregnancy date arithmetic.

All functions are pure: they take the reference ``today`` as an argument
(defaulting to the current UTC date) and never touch the store.

Conventions:
- Gestational age is counted from the first day of the last menstrual period.
- Due date is LMP + 280 days (40 weeks), conception is estimated at LMP + 14.
- Trimesters: weeks 0-13, 14-27, 28+.
"""

from datetime import date, datetime, time, timedelta

from pydantic import BaseModel, Field

from familyhealth.domain.models import PregnancyProfile, today_utc

PREGNANCY_LENGTH_DAYS = 280
CONCEPTION_OFFSET_DAYS = 14
MAX_TRACKED_WEEK = 42


def calculate_due_date(lmp: date) -> date:
    return lmp + timedelta(days=PREGNANCY_LENGTH_DAYS)


def calculate_conception_date(lmp: date) -> date:
    return lmp + timedelta(days=CONCEPTION_OFFSET_DAYS)


def days_pregnant(lmp: date, today: date | None = None) -> int:
    return ((today or today_utc()) - lmp).days


def pregnancy_week(lmp: date, today: date | None = None) -> int:
    """Completed gestational weeks since LMP (floor division, like 12w 3d -> 12)."""
    return days_pregnant(lmp, today) // 7


def trimester_for_week(week: int) -> int:
    if week >= 28:
        return 3
    if week >= 14:
        return 2
    return 1


class PregnancyCalculations(BaseModel):
    """Derived view of a pregnancy profile on a given day."""

    current_week: int
    current_day: int = Field(ge=0, le=6)
    days_pregnant: int
    days_remaining: int = Field(ge=0)
    trimester: int = Field(ge=1, le=3)
    gestational_age: str
    due_date: date
    conception_date: date


def calculate_pregnancy_details(
    profile: PregnancyProfile, today: date | None = None
) -> PregnancyCalculations:
    today = today or today_utc()
    lmp = profile.last_menstrual_period
    due_date = profile.estimated_due_date or calculate_due_date(lmp)

    elapsed = days_pregnant(lmp, today)
    week = elapsed // 7
    day = elapsed % 7

    return PregnancyCalculations(
        current_week=min(week, MAX_TRACKED_WEEK),
        current_day=day,
        days_pregnant=elapsed,
        days_remaining=max(0, (due_date - today).days),
        trimester=trimester_for_week(week),
        gestational_age=f"{week}w {day}d",
        due_date=due_date,
        conception_date=calculate_conception_date(lmp),
    )


class WeeklyDevelopment(BaseModel):
    week: int
    baby_size: str
    development: str
    maternal_changes: str
    tips: str


_DEVELOPMENT: dict[int, tuple[str, str, str, str]] = {
    4: (
        "Poppy seed (2mm)",
        "Heart begins to beat, neural tube forms",
        "Missed period, early pregnancy symptoms may begin",
        "Start taking prenatal vitamins with folic acid",
    ),
    8: (
        "Raspberry (16mm)",
        "Major organs forming, limb buds appear",
        "Morning sickness, breast tenderness",
        "Eat small, frequent meals to manage nausea",
    ),
    12: (
        "Lime (61mm)",
        "All major organs formed, reflexes developing",
        "Energy may return, nausea often improves",
        "Schedule first trimester screening if desired",
    ),
    16: (
        "Avocado (116mm)",
        "Gender can be determined, hearing develops",
        "Baby bump becoming visible",
        "Consider announcing pregnancy to family and friends",
    ),
    20: (
        "Banana (166mm)",
        "Halfway point! Hair and nails growing",
        "May feel first movements (quickening)",
        "Schedule anatomy scan ultrasound",
    ),
    24: (
        "Ear of corn (300mm)",
        "Lungs developing, brain growing rapidly",
        "Glucose screening test due",
        "Start thinking about baby gear and nursery",
    ),
    28: (
        "Eggplant (375mm)",
        "Eyes can open, brain very active",
        "Third trimester begins, may feel more tired",
        "Begin childbirth education classes",
    ),
    32: (
        "Coconut (425mm)",
        "Bones hardening, practicing breathing",
        "Braxton Hicks contractions may begin",
        "Start preparing hospital bag",
    ),
    36: (
        "Papaya (475mm)",
        "Considered full-term, gaining weight",
        "Weekly doctor visits begin",
        "Finalize birth plan and pediatrician choice",
    ),
    40: (
        "Watermelon (510mm)",
        "Fully developed and ready for birth!",
        "Due date - labor could start any time",
        "Rest and prepare for labor and delivery",
    ),
}


def weekly_development(week: int) -> WeeklyDevelopment:
    """Development notes for the closest tabulated week (ties go to the earlier week)."""
    closest = min(sorted(_DEVELOPMENT), key=lambda w: abs(w - week))
    size, development, maternal, tips = _DEVELOPMENT[closest]
    return WeeklyDevelopment(
        week=closest,
        baby_size=size,
        development=development,
        maternal_changes=maternal,
        tips=tips,
    )


class Milestone(BaseModel):
    week: int
    title: str
    passed: bool = False


_MILESTONES: list[tuple[int, str]] = [
    (4, "Heart starts beating"),
    (8, "Major organs form"),
    (12, "End of first trimester"),
    (16, "Gender determination possible"),
    (20, "Anatomy scan"),
    (24, "Viability milestone"),
    (28, "Third trimester begins"),
    (32, "Rapid brain development"),
    (36, "Considered full-term"),
    (40, "Due date!"),
]


def pregnancy_milestones(current_week: int) -> list[Milestone]:
    return [
        Milestone(week=week, title=title, passed=current_week >= week)
        for week, title in _MILESTONES
    ]


def upcoming_milestones(current_week: int) -> list[Milestone]:
    """Milestones from two weeks back to four weeks ahead of ``current_week``."""
    return [
        m
        for m in pregnancy_milestones(current_week)
        if current_week - 2 <= m.week <= current_week + 4
    ]


def kick_session_duration(start: time, end: time) -> int:
    """Minutes between two same-day clock times, rounded to the nearest minute."""
    anchor = date(2000, 1, 1)
    delta = datetime.combine(anchor, end) - datetime.combine(anchor, start)
    return round(delta.total_seconds() / 60)
