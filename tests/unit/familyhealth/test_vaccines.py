"""Tests for vaccine schedules, reminder urgency and notifications."""

from datetime import date, timedelta

import pytest

from familyhealth.domain.models import VaccinationSchedule
from familyhealth.domain.vaccines import (
    ROUTINE_SCHEDULE,
    add_months,
    calculate_vaccine_reminders,
    generate_vaccine_schedule,
    overdue_vaccines,
    starter_schedule,
    upcoming_vaccines,
    vaccine_notifications,
)

TODAY = date(2024, 6, 15)


def _dose(name: str, offset_days: int, *, completed: bool = False) -> VaccinationSchedule:
    return VaccinationSchedule(
        id=f"v-{name}",
        vaccine_name=name,
        due_date=TODAY + timedelta(days=offset_days),
        is_completed=completed,
    )


class TestSchedules:
    @pytest.mark.parametrize(
        "start,months,expected",
        [
            (date(2024, 1, 15), 2, date(2024, 3, 15)),
            (date(2024, 1, 31), 1, date(2024, 2, 29)),
            (date(2023, 11, 30), 3, date(2024, 2, 29)),
            (date(2024, 5, 10), 48, date(2028, 5, 10)),
        ],
    )
    def test_add_months_clamps_to_month_end(
        self, start: date, months: int, expected: date
    ) -> None:
        assert add_months(start, months) == expected

    def test_routine_schedule_covers_every_dose(self) -> None:
        birth = date(2024, 1, 10)
        schedule = generate_vaccine_schedule(birth)

        assert len(schedule) == len(ROUTINE_SCHEDULE) == 27
        assert schedule[0].vaccine_name == "Hepatitis B"
        assert schedule[0].due_date == birth
        assert all(not v.is_completed for v in schedule)
        assert max(v.due_date for v in schedule) == date(2028, 1, 10)

    def test_starter_schedule_uses_weeks(self) -> None:
        birth = date(2024, 1, 1)
        schedule = {v.vaccine_name: v.due_date for v in starter_schedule(birth)}

        assert len(schedule) == 7
        assert schedule["BCG"] == birth
        assert schedule["DTaP"] == birth + timedelta(weeks=6)
        assert schedule["MMR"] == birth + timedelta(weeks=36)


class TestReminders:
    def test_urgency_bands_and_messages(self) -> None:
        doses = [
            _dose("Future", 45),
            _dose("Overdue", -3),
            _dose("Soon", 7),
            _dose("Upcoming", 8),
            _dose("Done", -10, completed=True),
        ]

        reminders = calculate_vaccine_reminders(doses, "Mia", today=TODAY)

        assert [r.vaccine_name for r in reminders] == ["Overdue", "Soon", "Upcoming", "Future"]
        assert [r.urgency for r in reminders] == ["overdue", "due_soon", "upcoming", "future"]
        assert reminders[0].message == "Overdue is 3 days overdue"
        assert reminders[1].message == "Soon is due in 7 days"
        assert reminders[3].message == f"Future is due {(TODAY + timedelta(days=45)).isoformat()}"
        assert all(r.child_name == "Mia" for r in reminders)

    def test_due_today_is_due_soon(self) -> None:
        (reminder,) = calculate_vaccine_reminders([_dose("MMR", 0)], "Leo", today=TODAY)
        assert reminder.urgency == "due_soon"
        assert reminder.days_until_due == 0

    def test_notifications_only_for_overdue_and_due_soon(self) -> None:
        reminders = calculate_vaccine_reminders(
            [_dose("A", -1), _dose("B", 3), _dose("C", 20)], "Mia", today=TODAY
        )

        notes = vaccine_notifications(reminders)

        assert [(n.title, n.type) for n in notes] == [
            ("Vaccine Overdue", "error"),
            ("Vaccine Due Soon", "warning"),
        ]
        assert notes[0].message == "Mia: A is 1 days overdue"
        assert notes[0].action == "Schedule appointment"

    def test_upcoming_and_overdue_filters(self) -> None:
        reminders = calculate_vaccine_reminders(
            [_dose("A", -1), _dose("B", 3), _dose("C", 20), _dose("D", 40)], "Mia", today=TODAY
        )

        assert [r.vaccine_name for r in upcoming_vaccines(reminders)] == ["B", "C"]
        assert [r.vaccine_name for r in upcoming_vaccines(reminders, days=5)] == ["B"]
        assert [r.vaccine_name for r in overdue_vaccines(reminders)] == ["A"]
