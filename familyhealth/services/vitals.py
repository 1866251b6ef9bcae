"""
Wellness tracking: vitals, weight, activity and wellness logs.

Listings accept ``QueryOptions`` (family member, date range, limit) and
return newest first. When a ``GamificationService`` is wired in, logging a
vital or a hydration entry records the matching activity; gamification
problems are logged and never fail the write.
"""

from datetime import date
from typing import Any

from familyhealth.domain.gamification import ActivityType
from familyhealth.domain.models import (
    ActivityLog,
    QueryOptions,
    VitalLog,
    WeightLog,
    WellnessLog,
    WellnessLogType,
    today_utc,
)
from familyhealth.security import sanitize_for_log, validate_id, validate_user_id
from familyhealth.services.base import BaseService, ModelT
from familyhealth.services.gamification import GamificationService
from familyhealth.store import TableStore

VITALS_LOGS = "vitals_logs"
WEIGHT_LOGS = "weight_logs"
ACTIVITY_LOGS = "activity_logs"
WELLNESS_LOGS = "wellness_logs"


class VitalsService(BaseService):
    component = "vitals_service"

    def __init__(
        self, store: TableStore, gamification: GamificationService | None = None
    ) -> None:
        super().__init__(store)
        self.gamification = gamification

    async def _list(
        self,
        name: str,
        model: type[ModelT],
        user_id: str,
        options: QueryOptions | None,
        date_column: str,
    ) -> list[ModelT]:
        options = options or QueryOptions()
        uid = validate_user_id(user_id)
        query = self.table(name).select().eq("user_id", uid)
        if options.family_member_id:
            query = query.eq("family_member_id", validate_id(options.family_member_id))
        if options.start_date:
            query = query.gte(date_column, options.start_date)
        if options.end_date:
            query = query.lte(date_column, options.end_date)
        result = await query.order(date_column, ascending=False).limit(options.limit).execute()
        return self.parse(model, result.unwrap())

    async def _reward(self, user_id: str, activity: ActivityType) -> None:
        if self.gamification is None:
            return
        try:
            await self.gamification.record_activity(user_id, activity)
        except Exception as e:
            self.logger.warning("gamification_update_failed", error=sanitize_for_log(e))

    # -- vitals ------------------------------------------------------------------

    async def get_vitals_logs(
        self, user_id: str, options: QueryOptions | None = None
    ) -> list[VitalLog]:
        with self.failures("get vitals logs"):
            return await self._list(VITALS_LOGS, VitalLog, user_id, options, "measured_at")

    async def add_vitals_log(self, user_id: str, log: VitalLog) -> VitalLog:
        with self.failures("add vitals log"):
            uid = validate_user_id(user_id)
            created = VitalLog.model_validate(
                await self.insert_one(VITALS_LOGS, {**log.to_row(), "user_id": uid})
            )
        await self._reward(uid, ActivityType.LOG_VITALS_WELLNESS)
        return created

    async def update_vitals_log(
        self, user_id: str, log_id: str, changes: dict[str, Any]
    ) -> VitalLog:
        with self.failures("update vitals log"):
            row = await self.update_one(
                VITALS_LOGS,
                changes,
                user_id=validate_user_id(user_id),
                record_id=validate_id(log_id),
            )
            return VitalLog.model_validate(row)

    async def delete_vitals_log(self, user_id: str, log_id: str) -> None:
        with self.failures("delete vitals log"):
            await self.delete_one(
                VITALS_LOGS, user_id=validate_user_id(user_id), record_id=validate_id(log_id)
            )

    # -- weight ------------------------------------------------------------------

    async def get_weight_logs(
        self, user_id: str, options: QueryOptions | None = None
    ) -> list[WeightLog]:
        with self.failures("get weight logs"):
            return await self._list(WEIGHT_LOGS, WeightLog, user_id, options, "measured_at")

    async def add_weight_log(self, user_id: str, log: WeightLog) -> WeightLog:
        with self.failures("add weight log"):
            uid = validate_user_id(user_id)
            row = await self.insert_one(WEIGHT_LOGS, {**log.to_row(), "user_id": uid})
            return WeightLog.model_validate(row)

    # -- activity ------------------------------------------------------------------

    async def get_activity_logs(
        self, user_id: str, options: QueryOptions | None = None
    ) -> list[ActivityLog]:
        with self.failures("get activity logs"):
            return await self._list(ACTIVITY_LOGS, ActivityLog, user_id, options, "activity_date")

    async def add_activity_log(self, user_id: str, log: ActivityLog) -> ActivityLog:
        with self.failures("add activity log"):
            uid = validate_user_id(user_id)
            row = await self.insert_one(ACTIVITY_LOGS, {**log.to_row(), "user_id": uid})
            return ActivityLog.model_validate(row)

    # -- wellness ------------------------------------------------------------------

    async def get_wellness_logs(
        self, user_id: str, options: QueryOptions | None = None
    ) -> list[WellnessLog]:
        with self.failures("get wellness logs"):
            return await self._list(WELLNESS_LOGS, WellnessLog, user_id, options, "log_date")

    async def add_wellness_log(self, user_id: str, log: WellnessLog) -> WellnessLog:
        with self.failures("add wellness log"):
            uid = validate_user_id(user_id)
            created = WellnessLog.model_validate(
                await self.insert_one(WELLNESS_LOGS, {**log.to_row(), "user_id": uid})
            )
        if created.log_type == WellnessLogType.HYDRATION:
            await self._reward(uid, ActivityType.LOG_WATER_WELLNESS)
        return created

    async def log_water(
        self, user_id: str, glasses: float, on: date | None = None, notes: str | None = None
    ) -> WellnessLog:
        """Shortcut for a hydration wellness entry measured in glasses."""
        log = WellnessLog(
            log_type=WellnessLogType.HYDRATION,
            value_numeric=glasses,
            value_text="glasses",
            log_date=on or today_utc(),
            notes=notes,
        )
        return await self.add_wellness_log(user_id, log)
