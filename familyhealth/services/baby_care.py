"""
Baby care: vaccination schedules, pediatric appointments and daily logs
(feeding, sleep, diapers).
"""

from collections.abc import Callable
from datetime import date
from typing import Any, Literal

from familyhealth.domain.models import (
    BabySleepLog,
    DiaperLog,
    FeedingLog,
    PediatricAppointment,
    VaccinationSchedule,
    today_utc,
)
from familyhealth.domain.vaccines import (
    VaccineReminder,
    calculate_vaccine_reminders,
    generate_vaccine_schedule,
    starter_schedule,
)
from familyhealth.security import validate_id, validate_user_id
from familyhealth.services.base import BaseService
from familyhealth.store import TableQuery, TableStore

VACCINATION_SCHEDULES = "vaccination_schedules"
PEDIATRIC_APPOINTMENTS = "pediatric_appointments"
FEEDING_LOGS = "baby_feeding_logs"
SLEEP_LOGS = "baby_sleep_logs"
DIAPER_LOGS = "baby_diaper_logs"

UPCOMING_VACCINATIONS_LIMIT = 5


class BabyCareService(BaseService):
    component = "baby_care_service"

    def __init__(self, store: TableStore, clock: Callable[[], date] = today_utc) -> None:
        super().__init__(store)
        self._clock = clock

    def _for_child(self, name: str, uid: str, child_id: str | None) -> TableQuery:
        query = self.table(name).select().eq("user_id", uid)
        if child_id:
            query = query.eq("child_id", validate_id(child_id))
        return query

    # -- vaccinations ---------------------------------------------------------------

    async def get_vaccination_schedule(
        self, user_id: str, child_id: str
    ) -> list[VaccinationSchedule]:
        with self.failures("get vaccination schedule"):
            uid = validate_user_id(user_id)
            query = self.table(VACCINATION_SCHEDULES).select().eq("user_id", uid)
            result = await query.eq("child_id", validate_id(child_id)).order("due_date").execute()
            return self.parse(VaccinationSchedule, result.unwrap())

    async def add_vaccination(
        self, user_id: str, vaccination: VaccinationSchedule
    ) -> VaccinationSchedule:
        with self.failures("add vaccination"):
            uid = validate_user_id(user_id)
            row = await self.insert_one(
                VACCINATION_SCHEDULES, {**vaccination.to_row(), "user_id": uid}
            )
            return VaccinationSchedule.model_validate(row)

    async def update_vaccination(
        self, user_id: str, vaccination_id: str, changes: dict[str, Any]
    ) -> VaccinationSchedule:
        with self.failures("update vaccination"):
            row = await self.update_one(
                VACCINATION_SCHEDULES,
                changes,
                user_id=validate_user_id(user_id),
                record_id=validate_id(vaccination_id),
            )
            return VaccinationSchedule.model_validate(row)

    async def mark_vaccination_complete(
        self,
        user_id: str,
        vaccination_id: str,
        administered_date: date,
        administered_by: str | None = None,
        batch_number: str | None = None,
        notes: str | None = None,
    ) -> VaccinationSchedule:
        changes: dict[str, Any] = {"administered_date": administered_date, "is_completed": True}
        for key, value in (
            ("administered_by", administered_by),
            ("batch_number", batch_number),
            ("notes", notes),
        ):
            if value is not None:
                changes[key] = value
        return await self.update_vaccination(user_id, vaccination_id, changes)

    async def generate_vaccination_schedule(
        self,
        user_id: str,
        child_id: str,
        birth_date: date,
        schedule: Literal["starter", "routine"] = "starter",
    ) -> list[VaccinationSchedule]:
        """Bulk-insert a pending schedule for a child born on ``birth_date``."""
        if schedule == "starter":
            doses = starter_schedule(birth_date)
        else:
            doses = generate_vaccine_schedule(birth_date)
        with self.failures("generate vaccination schedule"):
            uid = validate_user_id(user_id)
            cid = validate_id(child_id)
            rows = [{**dose.to_row(), "user_id": uid, "child_id": cid} for dose in doses]
            result = await self.table(VACCINATION_SCHEDULES).insert(rows).execute()
            created = self.parse(VaccinationSchedule, result.unwrap())
        self.logger.info("vaccination_schedule_generated", schedule=schedule, doses=len(created))
        return created

    def _pending(self, uid: str, child_id: str | None) -> TableQuery:
        return self._for_child(VACCINATION_SCHEDULES, uid, child_id).eq("is_completed", False)

    async def get_upcoming_vaccinations(
        self, user_id: str, child_id: str | None = None
    ) -> list[VaccinationSchedule]:
        """The next five pending doses due today or later."""
        with self.failures("get upcoming vaccinations"):
            uid = validate_user_id(user_id)
            result = await (
                self._pending(uid, child_id)
                .gte("due_date", self._clock())
                .order("due_date")
                .limit(UPCOMING_VACCINATIONS_LIMIT)
                .execute()
            )
            return self.parse(VaccinationSchedule, result.unwrap())

    async def get_overdue_vaccinations(
        self, user_id: str, child_id: str | None = None
    ) -> list[VaccinationSchedule]:
        with self.failures("get overdue vaccinations"):
            uid = validate_user_id(user_id)
            query = self._pending(uid, child_id).lt("due_date", self._clock())
            result = await query.order("due_date").execute()
            return self.parse(VaccinationSchedule, result.unwrap())

    async def get_vaccine_reminders(
        self, user_id: str, child_id: str, child_name: str
    ) -> list[VaccineReminder]:
        schedule = await self.get_vaccination_schedule(user_id, child_id)
        return calculate_vaccine_reminders(schedule, child_name, self._clock())

    # -- pediatric appointments ---------------------------------------------------------

    async def get_pediatric_appointments(
        self, user_id: str, child_id: str | None = None
    ) -> list[PediatricAppointment]:
        with self.failures("get pediatric appointments"):
            uid = validate_user_id(user_id)
            query = self._for_child(PEDIATRIC_APPOINTMENTS, uid, child_id)
            result = await query.order("appointment_date", ascending=False).execute()
            return self.parse(PediatricAppointment, result.unwrap())

    async def add_pediatric_appointment(
        self, user_id: str, appointment: PediatricAppointment
    ) -> PediatricAppointment:
        with self.failures("add pediatric appointment"):
            uid = validate_user_id(user_id)
            row = await self.insert_one(
                PEDIATRIC_APPOINTMENTS, {**appointment.to_row(), "user_id": uid}
            )
            return PediatricAppointment.model_validate(row)

    async def update_pediatric_appointment(
        self, user_id: str, appointment_id: str, changes: dict[str, Any]
    ) -> PediatricAppointment:
        with self.failures("update pediatric appointment"):
            row = await self.update_one(
                PEDIATRIC_APPOINTMENTS,
                changes,
                user_id=validate_user_id(user_id),
                record_id=validate_id(appointment_id),
            )
            return PediatricAppointment.model_validate(row)

    # -- daily logs -----------------------------------------------------------------------

    async def get_feeding_logs(self, user_id: str, child_id: str | None = None) -> list[FeedingLog]:
        with self.failures("get feeding logs"):
            uid = validate_user_id(user_id)
            query = self._for_child(FEEDING_LOGS, uid, child_id)
            result = await query.order("fed_at", ascending=False).execute()
            return self.parse(FeedingLog, result.unwrap())

    async def add_feeding_log(self, user_id: str, log: FeedingLog) -> FeedingLog:
        with self.failures("add feeding log"):
            uid = validate_user_id(user_id)
            row = await self.insert_one(FEEDING_LOGS, {**log.to_row(), "user_id": uid})
            return FeedingLog.model_validate(row)

    async def get_sleep_logs(self, user_id: str, child_id: str | None = None) -> list[BabySleepLog]:
        with self.failures("get sleep logs"):
            uid = validate_user_id(user_id)
            query = self._for_child(SLEEP_LOGS, uid, child_id)
            result = await query.order("start_time", ascending=False).execute()
            return self.parse(BabySleepLog, result.unwrap())

    async def add_sleep_log(self, user_id: str, log: BabySleepLog) -> BabySleepLog:
        """Stores the session with ``duration_hours`` computed from start and end."""
        seconds = (log.end_time - log.start_time).total_seconds()
        if seconds < 0:
            raise ValueError("end_time must not be before start_time")
        log = log.model_copy(update={"duration_hours": round(seconds / 3600, 2)})
        with self.failures("add sleep log"):
            uid = validate_user_id(user_id)
            row = await self.insert_one(SLEEP_LOGS, {**log.to_row(), "user_id": uid})
            return BabySleepLog.model_validate(row)

    async def get_diaper_logs(self, user_id: str, child_id: str | None = None) -> list[DiaperLog]:
        with self.failures("get diaper logs"):
            uid = validate_user_id(user_id)
            query = self._for_child(DIAPER_LOGS, uid, child_id)
            result = await query.order("changed_at", ascending=False).execute()
            return self.parse(DiaperLog, result.unwrap())

    async def add_diaper_log(self, user_id: str, log: DiaperLog) -> DiaperLog:
        with self.failures("add diaper log"):
            uid = validate_user_id(user_id)
            row = await self.insert_one(DIAPER_LOGS, {**log.to_row(), "user_id": uid})
            return DiaperLog.model_validate(row)
