"""
Childhood vaccine schedules and reminder urgency.

Two schedules exist: the month-based routine schedule used for planning and
the shorter week-based starter schedule persisted when a child is registered.
"""

import calendar
from collections.abc import Iterable
from datetime import date, timedelta
from typing import Literal

from pydantic import BaseModel

from familyhealth.domain.models import VaccinationSchedule, today_utc

Urgency = Literal["overdue", "due_soon", "upcoming", "future"]

DUE_SOON_DAYS = 7
UPCOMING_DAYS = 30

ROUTINE_SCHEDULE: list[tuple[str, int]] = [
    ("Hepatitis B", 0),
    ("DTaP", 2),
    ("Hib", 2),
    ("IPV", 2),
    ("PCV13", 2),
    ("Rotavirus", 2),
    ("DTaP", 4),
    ("Hib", 4),
    ("IPV", 4),
    ("PCV13", 4),
    ("Rotavirus", 4),
    ("DTaP", 6),
    ("Hib", 6),
    ("PCV13", 6),
    ("Rotavirus", 6),
    ("Hepatitis B", 6),
    ("MMR", 12),
    ("PCV13", 12),
    ("Varicella", 12),
    ("Hepatitis A", 12),
    ("DTaP", 15),
    ("Hib", 15),
    ("Hepatitis A", 18),
    ("DTaP", 48),
    ("IPV", 48),
    ("MMR", 48),
    ("Varicella", 48),
]

# (vaccine name, due weeks after birth)
VACCINE_SCHEDULE: list[tuple[str, int]] = [
    ("BCG", 0),
    ("Hepatitis B", 0),
    ("DTaP", 6),
    ("IPV", 6),
    ("Hib", 6),
    ("PCV", 6),
    ("MMR", 36),
]


def add_months(start: date, months: int) -> date:
    """Calendar month addition; the day is clamped to the end of a shorter month."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def generate_vaccine_schedule(birth_date: date) -> list[VaccinationSchedule]:
    """Routine schedule doses for a child born on ``birth_date``, all pending."""
    return [
        VaccinationSchedule(vaccine_name=name, due_date=add_months(birth_date, months))
        for name, months in ROUTINE_SCHEDULE
    ]


def starter_schedule(birth_date: date) -> list[VaccinationSchedule]:
    return [
        VaccinationSchedule(vaccine_name=name, due_date=birth_date + timedelta(weeks=weeks))
        for name, weeks in VACCINE_SCHEDULE
    ]


class VaccineReminder(BaseModel):
    id: str | None
    vaccine_name: str
    child_name: str
    due_date: date
    days_until_due: int
    urgency: Urgency
    message: str


class VaccineNotification(BaseModel):
    id: str | None
    title: str
    message: str
    type: Literal["error", "warning"]
    action: str = "Schedule appointment"
    urgency: Urgency


def _urgency(days: int) -> Urgency:
    if days < 0:
        return "overdue"
    if days <= DUE_SOON_DAYS:
        return "due_soon"
    if days <= UPCOMING_DAYS:
        return "upcoming"
    return "future"


def _message(vaccine: VaccinationSchedule, days: int, urgency: Urgency) -> str:
    if urgency == "overdue":
        return f"{vaccine.vaccine_name} is {abs(days)} days overdue"
    if urgency == "future":
        return f"{vaccine.vaccine_name} is due {vaccine.due_date.isoformat()}"
    return f"{vaccine.vaccine_name} is due in {days} days"


def calculate_vaccine_reminders(
    vaccinations: Iterable[VaccinationSchedule],
    child_name: str,
    today: date | None = None,
) -> list[VaccineReminder]:
    """Reminders for every incomplete vaccination, most urgent first."""
    today = today or today_utc()
    reminders = []
    for vaccine in vaccinations:
        if vaccine.is_completed:
            continue
        days = (vaccine.due_date - today).days
        urgency = _urgency(days)
        reminders.append(
            VaccineReminder(
                id=vaccine.id,
                vaccine_name=vaccine.vaccine_name,
                child_name=child_name,
                due_date=vaccine.due_date,
                days_until_due=days,
                urgency=urgency,
                message=_message(vaccine, days, urgency),
            )
        )
    return sorted(reminders, key=lambda r: r.days_until_due)


def vaccine_notifications(reminders: Iterable[VaccineReminder]) -> list[VaccineNotification]:
    return [
        VaccineNotification(
            id=r.id,
            title="Vaccine Overdue" if r.urgency == "overdue" else "Vaccine Due Soon",
            message=f"{r.child_name}: {r.message}",
            type="error" if r.urgency == "overdue" else "warning",
            urgency=r.urgency,
        )
        for r in reminders
        if r.urgency in ("overdue", "due_soon")
    ]


def upcoming_vaccines(
    reminders: Iterable[VaccineReminder], days: int = UPCOMING_DAYS
) -> list[VaccineReminder]:
    return [r for r in reminders if 0 <= r.days_until_due <= days]


def overdue_vaccines(reminders: Iterable[VaccineReminder]) -> list[VaccineReminder]:
    return [r for r in reminders if r.urgency == "overdue"]
