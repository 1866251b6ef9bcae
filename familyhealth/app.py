"""
Composition root: one store, every feature service, one lifecycle.

    async with open_hub() as hub:
        members = await hub.family.get_family_members(user_id, "Ada")
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from pydantic import BaseModel

from familyhealth.config import AppConfig, get_config
from familyhealth.domain.models import FamilyMember
from familyhealth.log import configure_logging
from familyhealth.services import (
    BabyCareService,
    EmergencyService,
    FamilyMemberService,
    GamificationService,
    MedicalRecordsService,
    NotificationService,
    PregnancyService,
    VitalsService,
    WomensHealthService,
)
from familyhealth.store import TableStore, build_store

logger = structlog.get_logger(__name__)


class SessionStart(BaseModel):
    """What a user sees when the app opens."""

    members: list[FamilyMember]
    daily_points_awarded: bool


class HealthHub:
    """
    Wires configuration, the table store and the feature services.

    The hub owns the store it builds and closes it on ``aclose``; a store
    passed in by the caller stays open.
    """

    def __init__(self, config: AppConfig | None = None, store: TableStore | None = None) -> None:
        self.config = config or get_config()
        self.logger = logger.bind(component="health_hub")

        self._owns_store = store is None
        self.store: TableStore = store if store is not None else build_store(self.config.store)

        self._init_services()
        self.logger.info(
            "health_hub_initialized",
            backend=self.config.store.backend,
            gamification=self.config.gamification.enabled,
        )

    def _init_services(self) -> None:
        self.gamification = GamificationService(self.store)
        rewards = self.gamification if self.config.gamification.enabled else None

        self.family = FamilyMemberService(self.store)
        self.medical = MedicalRecordsService(self.store)
        self.womens_health = WomensHealthService(self.store)
        self.pregnancy = PregnancyService(self.store)
        self.baby_care = BabyCareService(self.store)
        self.vitals = VitalsService(self.store, gamification=rewards)
        self.notifications = NotificationService(self.store)
        self.emergency = EmergencyService(self.store)

    async def start_session(self, user_id: str, user_name: str | None = None) -> SessionStart:
        """Daily launch reward plus the family list (creating "Self" for new users)."""
        awarded = False
        if self.config.gamification.enabled:
            awarded = await self.gamification.award_points_for_daily_launch(user_id)
        members = await self.family.get_family_members(user_id, user_name_if_new=user_name)
        return SessionStart(members=members, daily_points_awarded=awarded)

    async def aclose(self) -> None:
        close = getattr(self.store, "aclose", None)
        if self._owns_store and close is not None:
            await close()
        self.logger.info("health_hub_closed")

    async def __aenter__(self) -> "HealthHub":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


@asynccontextmanager
async def open_hub(
    config: AppConfig | None = None, store: TableStore | None = None
) -> AsyncIterator[HealthHub]:
    """Configure logging, build a HealthHub and close it on exit."""
    config = config or get_config()
    configure_logging(config.logging)
    hub = HealthHub(config, store)
    try:
        yield hub
    finally:
        await hub.aclose()
