"""Menstrual cycles, fertility windows, symptoms diary and screening reminders."""

from collections.abc import Callable
from datetime import date
from typing import Any

from familyhealth.domain.cycles import (
    LUTEAL_PHASE_DAYS,
    FertilityStatus,
    PeriodPrediction,
    calculate_fertile_window,
    fertility_status,
    predict_next_period,
)
from familyhealth.domain.models import (
    FertilityWindow,
    MenstrualCycle,
    ScreeningReminder,
    SymptomsDiaryEntry,
    today_utc,
)
from familyhealth.security import validate_id, validate_user_id
from familyhealth.services.base import BaseService
from familyhealth.store import TableStore

MENSTRUAL_CYCLES = "menstrual_cycles"
FERTILITY_WINDOWS = "fertility_windows"
SYMPTOMS_DIARY = "symptoms_diary"
SCREENING_REMINDERS = "screening_reminders"


class WomensHealthService(BaseService):
    component = "womens_health_service"

    def __init__(self, store: TableStore, clock: Callable[[], date] = today_utc) -> None:
        super().__init__(store)
        self._clock = clock

    # -- cycles -------------------------------------------------------------------

    async def get_menstrual_cycles(self, user_id: str) -> list[MenstrualCycle]:
        """Most recent cycle first."""
        with self.failures("get menstrual cycles"):
            uid = validate_user_id(user_id)
            result = await (
                self.table(MENSTRUAL_CYCLES)
                .select()
                .eq("user_id", uid)
                .order("start_date", ascending=False)
                .execute()
            )
            return self.parse(MenstrualCycle, result.unwrap())

    async def add_menstrual_cycle(self, user_id: str, cycle: MenstrualCycle) -> MenstrualCycle:
        with self.failures("add menstrual cycle"):
            uid = validate_user_id(user_id)
            row = await self.insert_one(MENSTRUAL_CYCLES, {**cycle.to_row(), "user_id": uid})
            return MenstrualCycle.model_validate(row)

    async def update_menstrual_cycle(
        self, user_id: str, cycle_id: str, changes: dict[str, Any]
    ) -> MenstrualCycle:
        with self.failures("update menstrual cycle"):
            row = await self.update_one(
                MENSTRUAL_CYCLES,
                changes,
                user_id=validate_user_id(user_id),
                record_id=validate_id(cycle_id),
            )
            return MenstrualCycle.model_validate(row)

    async def predict_next_period(self, user_id: str) -> PeriodPrediction | None:
        return predict_next_period(await self.get_menstrual_cycles(user_id))

    # -- fertility windows ---------------------------------------------------------

    async def get_fertility_windows(self, user_id: str) -> list[FertilityWindow]:
        with self.failures("get fertility windows"):
            uid = validate_user_id(user_id)
            result = await (
                self.table(FERTILITY_WINDOWS)
                .select()
                .eq("user_id", uid)
                .order("fertile_start", ascending=False)
                .execute()
            )
            return self.parse(FertilityWindow, result.unwrap())

    async def add_fertility_window(self, user_id: str, window: FertilityWindow) -> FertilityWindow:
        with self.failures("add fertility window"):
            uid = validate_user_id(user_id)
            row = await self.insert_one(FERTILITY_WINDOWS, {**window.to_row(), "user_id": uid})
            return FertilityWindow.model_validate(row)

    async def predict_fertile_window(self, user_id: str) -> FertilityWindow | None:
        """
        Predict and store the fertile window of the latest logged cycle.

        Uses the cycle's own length when known, else the default 28 days.
        Returns None when no cycle has been logged, or when the logged length
        is too short to leave room for a luteal phase.
        """
        cycles = await self.get_menstrual_cycles(user_id)
        if not cycles:
            return None

        latest = cycles[0]
        if latest.cycle_length is None:
            window = calculate_fertile_window(latest.start_date)
        elif latest.cycle_length > LUTEAL_PHASE_DAYS:
            window = calculate_fertile_window(latest.start_date, latest.cycle_length)
        else:
            self.logger.warning(
                "fertile_window_skipped", cycle_id=latest.id, cycle_length=latest.cycle_length
            )
            return None
        window.cycle_id = latest.id
        return await self.add_fertility_window(user_id, window)

    async def get_fertility_status(self, user_id: str) -> FertilityStatus:
        """Today's cycle phase from logged cycles and stored fertility windows."""
        cycles = await self.get_menstrual_cycles(user_id)
        windows = await self.get_fertility_windows(user_id)
        return fertility_status(cycles, windows, self._clock())

    # -- symptoms diary --------------------------------------------------------------

    async def get_symptoms_diary(
        self, user_id: str, start: date | None = None, end: date | None = None
    ) -> list[SymptomsDiaryEntry]:
        with self.failures("get symptoms diary"):
            uid = validate_user_id(user_id)
            query = self.table(SYMPTOMS_DIARY).select().eq("user_id", uid)
            if start:
                query = query.gte("log_date", start)
            if end:
                query = query.lte("log_date", end)
            result = await query.order("log_date", ascending=False).execute()
            return self.parse(SymptomsDiaryEntry, result.unwrap())

    async def add_symptoms_entry(
        self, user_id: str, entry: SymptomsDiaryEntry
    ) -> SymptomsDiaryEntry:
        with self.failures("add symptoms entry"):
            uid = validate_user_id(user_id)
            row = await self.insert_one(SYMPTOMS_DIARY, {**entry.to_row(), "user_id": uid})
            return SymptomsDiaryEntry.model_validate(row)

    # -- screening reminders -----------------------------------------------------------

    async def get_screening_reminders(self, user_id: str) -> list[ScreeningReminder]:
        """Soonest due first; reminders without a due date sort last."""
        with self.failures("get screening reminders"):
            uid = validate_user_id(user_id)
            result = await (
                self.table(SCREENING_REMINDERS)
                .select()
                .eq("user_id", uid)
                .order("next_due_date")
                .execute()
            )
            return self.parse(ScreeningReminder, result.unwrap())

    async def add_screening_reminder(
        self, user_id: str, reminder: ScreeningReminder
    ) -> ScreeningReminder:
        with self.failures("add screening reminder"):
            uid = validate_user_id(user_id)
            row = await self.insert_one(SCREENING_REMINDERS, {**reminder.to_row(), "user_id": uid})
            return ScreeningReminder.model_validate(row)

    async def update_screening_reminder(
        self, user_id: str, reminder_id: str, changes: dict[str, Any]
    ) -> ScreeningReminder:
        with self.failures("update screening reminder"):
            row = await self.update_one(
                SCREENING_REMINDERS,
                changes,
                user_id=validate_user_id(user_id),
                record_id=validate_id(reminder_id),
            )
            return ScreeningReminder.model_validate(row)
