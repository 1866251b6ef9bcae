"""Tests for VitalsService listings and its gamification hooks."""

from datetime import UTC, date, datetime, timedelta

import pytest

from familyhealth.domain.gamification import ActivityType
from familyhealth.domain.models import (
    ActivityLog,
    QueryOptions,
    VitalLog,
    VitalType,
    WeightLog,
    WellnessLog,
    WellnessLogType,
)
from familyhealth.errors import ServiceError
from familyhealth.services import GamificationService, VitalsService
from familyhealth.services.gamification import ActivityOutcome
from familyhealth.services.vitals import VITALS_LOGS
from familyhealth.store import InMemoryStore


class _BrokenGamification(GamificationService):
    async def record_activity(self, user_id: str, activity: ActivityType) -> ActivityOutcome:
        raise RuntimeError("points table is on fire")


@pytest.fixture
def gamification(store: InMemoryStore, clock) -> GamificationService:
    return GamificationService(store, clock=clock)


@pytest.fixture
def service(store: InMemoryStore, gamification: GamificationService) -> VitalsService:
    return VitalsService(store, gamification=gamification)


def _heart_rate(at: datetime, bpm: float, member: str | None = None) -> VitalLog:
    return VitalLog(
        vital_type=VitalType.HEART_RATE,
        value_numeric=bpm,
        unit="bpm",
        measured_at=at,
        family_member_id=member,
    )


class TestVitals:
    @pytest.mark.asyncio
    async def test_logging_a_vital_awards_points_and_badge(
        self, service: VitalsService, gamification: GamificationService, user_id: str
    ) -> None:
        await service.add_vitals_log(user_id, _heart_rate(datetime.now(UTC), 72))

        assert (await gamification.get_user_points(user_id)).total_points == 10
        badges = await gamification.get_earned_badges(user_id)
        assert [b.badge_id for b in badges] == ["badge_vital_spark"]

    @pytest.mark.asyncio
    async def test_gamification_failure_does_not_fail_write(
        self, store: InMemoryStore, user_id: str
    ) -> None:
        service = VitalsService(store, gamification=_BrokenGamification(store))

        created = await service.add_vitals_log(user_id, _heart_rate(datetime.now(UTC), 80))

        assert created.id is not None
        assert len(store.rows(VITALS_LOGS)) == 1

    @pytest.mark.asyncio
    async def test_without_gamification(self, store: InMemoryStore, user_id: str) -> None:
        service = VitalsService(store)
        await service.add_vitals_log(user_id, _heart_rate(datetime.now(UTC), 65))
        assert store.rows("user_points") == []

    @pytest.mark.asyncio
    async def test_query_options(self, service: VitalsService, user_id: str) -> None:
        base = datetime(2024, 6, 1, 8, 0, tzinfo=UTC)
        for day in range(5):
            member = "m1" if day % 2 == 0 else "m2"
            await service.add_vitals_log(
                user_id, _heart_rate(base + timedelta(days=day), 60 + day, member)
            )

        newest_two = await service.get_vitals_logs(user_id, QueryOptions(limit=2))
        assert [v.value_numeric for v in newest_two] == [64, 63]

        member_logs = await service.get_vitals_logs(user_id, QueryOptions(family_member_id="m1"))
        assert [v.value_numeric for v in member_logs] == [64, 62, 60]

        window = await service.get_vitals_logs(
            user_id,
            QueryOptions(start_date=base + timedelta(days=1), end_date=base + timedelta(days=3)),
        )
        assert [v.value_numeric for v in window] == [63, 62, 61]

    @pytest.mark.asyncio
    async def test_update_and_delete(self, service: VitalsService, user_id: str) -> None:
        log = await service.add_vitals_log(user_id, _heart_rate(datetime.now(UTC), 90))
        assert log.id is not None

        updated = await service.update_vitals_log(user_id, log.id, {"notes": "after run"})
        assert updated.notes == "after run"

        await service.delete_vitals_log(user_id, log.id)
        assert await service.get_vitals_logs(user_id) == []

    @pytest.mark.asyncio
    async def test_bad_member_id_is_service_error(self, service: VitalsService, user_id: str):
        with pytest.raises(ServiceError, match="Failed to get vitals logs"):
            await service.get_vitals_logs(user_id, QueryOptions(family_member_id="x" * 200))


class TestWellness:
    @pytest.mark.asyncio
    async def test_log_water_awards_hydration_points(
        self, service: VitalsService, gamification: GamificationService, user_id: str, today: date
    ) -> None:
        entry = await service.log_water(user_id, 6, on=today)

        assert entry.log_type == WellnessLogType.HYDRATION
        assert entry.value_numeric == 6
        assert (await gamification.get_user_points(user_id)).total_points == 5
        assert await gamification.has_badge(user_id, "badge_aqua_initiate")

    @pytest.mark.asyncio
    async def test_other_wellness_logs_earn_nothing(
        self, service: VitalsService, gamification: GamificationService, user_id: str, today: date
    ) -> None:
        await service.add_wellness_log(
            user_id, WellnessLog(log_type=WellnessLogType.MOOD, scale_rating=7, log_date=today)
        )

        assert (await gamification.get_user_points(user_id)).total_points == 0
        logs = await service.get_wellness_logs(user_id, QueryOptions(start_date=today))
        assert [w.scale_rating for w in logs] == [7]

    @pytest.mark.asyncio
    async def test_weight_and_activity_logs(
        self, service: VitalsService, user_id: str, today: date
    ) -> None:
        await service.add_weight_log(user_id, WeightLog(weight_kg=70.5))
        await service.add_activity_log(
            user_id,
            ActivityLog(activity_type="walking", steps=8000, activity_date=today),
        )
        await service.add_activity_log(
            user_id,
            ActivityLog(activity_type="yoga", activity_date=today - timedelta(days=2)),
        )

        assert [w.weight_kg for w in await service.get_weight_logs(user_id)] == [70.5]
        recent = await service.get_activity_logs(
            user_id, QueryOptions(start_date=today - timedelta(days=1))
        )
        assert [a.activity_type for a in recent] == ["walking"]
