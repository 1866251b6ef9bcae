"""Pregnancy profiles, prenatal appointments, symptoms and kick counts."""

from collections.abc import Callable
from datetime import date
from typing import Any

from familyhealth.domain.models import (
    KickCount,
    PregnancyProfile,
    PregnancySymptom,
    PrenatalAppointment,
    today_utc,
)
from familyhealth.domain.pregnancy import (
    PregnancyCalculations,
    calculate_conception_date,
    calculate_due_date,
    calculate_pregnancy_details,
    kick_session_duration,
    pregnancy_week,
)
from familyhealth.security import validate_id, validate_user_id
from familyhealth.services.base import BaseService
from familyhealth.store import TableQuery, TableStore

PREGNANCY_PROFILES = "pregnancy_profiles"
PRENATAL_APPOINTMENTS = "prenatal_appointments"
PREGNANCY_SYMPTOMS = "pregnancy_symptoms"
KICK_COUNTS = "kick_counts"


class PregnancyService(BaseService):
    component = "pregnancy_service"

    def __init__(self, store: TableStore, clock: Callable[[], date] = today_utc) -> None:
        super().__init__(store)
        self._clock = clock

    def _for_pregnancy(self, name: str, uid: str, pregnancy_id: str | None) -> TableQuery:
        query = self.table(name).select().eq("user_id", uid)
        if pregnancy_id:
            query = query.eq("pregnancy_id", validate_id(pregnancy_id))
        return query

    # -- profiles -----------------------------------------------------------------

    async def get_pregnancy_profiles(self, user_id: str) -> list[PregnancyProfile]:
        with self.failures("get pregnancy profiles"):
            uid = validate_user_id(user_id)
            result = await (
                self.table(PREGNANCY_PROFILES)
                .select()
                .eq("user_id", uid)
                .order("created_at", ascending=False)
                .execute()
            )
            return self.parse(PregnancyProfile, result.unwrap())

    async def get_active_pregnancy(self, user_id: str) -> PregnancyProfile | None:
        with self.failures("get active pregnancy"):
            uid = validate_user_id(user_id)
            result = await (
                self.table(PREGNANCY_PROFILES)
                .select()
                .eq("user_id", uid)
                .eq("is_active", True)
                .maybe_single()
                .execute()
            )
            return self.parse_one(PregnancyProfile, result.unwrap())

    async def create_pregnancy_profile(
        self, user_id: str, profile: PregnancyProfile
    ) -> PregnancyProfile:
        """Store ``profile`` with its current week and any missing derived dates filled in."""
        lmp = profile.last_menstrual_period
        profile = profile.model_copy(
            update={
                "current_week": pregnancy_week(lmp, self._clock()),
                "estimated_due_date": profile.estimated_due_date or calculate_due_date(lmp),
                "conception_date": profile.conception_date or calculate_conception_date(lmp),
            }
        )
        with self.failures("create pregnancy profile"):
            uid = validate_user_id(user_id)
            row = await self.insert_one(PREGNANCY_PROFILES, {**profile.to_row(), "user_id": uid})
            return PregnancyProfile.model_validate(row)

    async def update_pregnancy_profile(
        self, user_id: str, profile_id: str, changes: dict[str, Any]
    ) -> PregnancyProfile:
        with self.failures("update pregnancy profile"):
            row = await self.update_one(
                PREGNANCY_PROFILES,
                changes,
                user_id=validate_user_id(user_id),
                record_id=validate_id(profile_id),
            )
            return PregnancyProfile.model_validate(row)

    async def get_pregnancy_details(self, user_id: str) -> PregnancyCalculations | None:
        """Derived week/trimester/countdown for the active pregnancy, if any."""
        profile = await self.get_active_pregnancy(user_id)
        if profile is None:
            return None
        return calculate_pregnancy_details(profile, self._clock())

    # -- prenatal appointments ---------------------------------------------------------

    async def get_prenatal_appointments(
        self, user_id: str, pregnancy_id: str | None = None
    ) -> list[PrenatalAppointment]:
        with self.failures("get prenatal appointments"):
            uid = validate_user_id(user_id)
            query = self._for_pregnancy(PRENATAL_APPOINTMENTS, uid, pregnancy_id)
            result = await query.order("appointment_date", ascending=False).execute()
            return self.parse(PrenatalAppointment, result.unwrap())

    async def add_prenatal_appointment(
        self, user_id: str, appointment: PrenatalAppointment
    ) -> PrenatalAppointment:
        with self.failures("add prenatal appointment"):
            uid = validate_user_id(user_id)
            row = await self.insert_one(
                PRENATAL_APPOINTMENTS, {**appointment.to_row(), "user_id": uid}
            )
            return PrenatalAppointment.model_validate(row)

    # -- symptoms -----------------------------------------------------------------------

    async def get_pregnancy_symptoms(
        self, user_id: str, pregnancy_id: str | None = None
    ) -> list[PregnancySymptom]:
        with self.failures("get pregnancy symptoms"):
            uid = validate_user_id(user_id)
            query = self._for_pregnancy(PREGNANCY_SYMPTOMS, uid, pregnancy_id)
            result = await query.order("log_date", ascending=False).execute()
            return self.parse(PregnancySymptom, result.unwrap())

    async def add_pregnancy_symptom(
        self, user_id: str, symptom: PregnancySymptom
    ) -> PregnancySymptom:
        with self.failures("add pregnancy symptom"):
            uid = validate_user_id(user_id)
            row = await self.insert_one(PREGNANCY_SYMPTOMS, {**symptom.to_row(), "user_id": uid})
            return PregnancySymptom.model_validate(row)

    # -- kick counts ----------------------------------------------------------------------

    async def get_kick_counts(
        self, user_id: str, pregnancy_id: str | None = None
    ) -> list[KickCount]:
        with self.failures("get kick counts"):
            uid = validate_user_id(user_id)
            query = self._for_pregnancy(KICK_COUNTS, uid, pregnancy_id)
            result = await query.order("session_date", ascending=False).execute()
            return self.parse(KickCount, result.unwrap())

    async def add_kick_count(self, user_id: str, session: KickCount) -> KickCount:
        if session.end_time is not None:
            minutes = kick_session_duration(session.start_time, session.end_time)
            if minutes < 0:
                raise ValueError("end_time must not be before start_time")
            session = session.model_copy(update={"duration_minutes": minutes})
        with self.failures("add kick count"):
            uid = validate_user_id(user_id)
            row = await self.insert_one(KICK_COUNTS, {**session.to_row(), "user_id": uid})
            return KickCount.model_validate(row)
