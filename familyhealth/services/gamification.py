"""
Points, badges and streak bookkeeping against the store.

Every operation is read-modify-write with no transaction; concurrent writers
for the same user race and the last write wins. Failures never propagate:
they are logged and the caller gets a neutral default (zero points, zero
count, no badges, an empty streak).

Listeners registered with ``subscribe`` are told about every points, badge
and streak change.
"""

from collections.abc import Callable
from datetime import date
from typing import Literal

from pydantic import BaseModel, Field

from familyhealth.domain.gamification import (
    INITIAL_BADGES,
    WELCOME_BADGE_ID,
    ActivityType,
    BadgeDefinition,
    badge_by_id,
    badge_criteria_met,
    next_streak,
    points_for,
)
from familyhealth.domain.models import (
    ActivityStreak,
    EarnedBadge,
    LogCount,
    UserPoints,
    today_utc,
)
from familyhealth.errors import InvalidIdentifierError, StoreError
from familyhealth.security import sanitize_for_log, validate_user_id
from familyhealth.services.base import BaseService
from familyhealth.store import TableStore

USER_POINTS = "user_points"
EARNED_BADGES = "earned_badges"
ACTIVITY_STREAKS = "activity_streaks"
ACTIVITY_LOG_COUNTS = "activity_log_counts"

_RECOVERABLE = (StoreError, InvalidIdentifierError)


class GamificationUpdate(BaseModel):
    user_id: str
    kind: Literal["points", "badge", "streak"]
    activity: ActivityType | None = None
    badge_id: str | None = None


UpdateListener = Callable[[GamificationUpdate], None]


class ActivityOutcome(BaseModel):
    """Everything one recorded activity changed."""

    points: UserPoints
    log_count: int
    streak: ActivityStreak
    new_badges: list[BadgeDefinition] = Field(default_factory=list)


class GamificationService(BaseService):
    component = "gamification_service"

    def __init__(self, store: TableStore, clock: Callable[[], date] = today_utc) -> None:
        super().__init__(store)
        self._clock = clock
        self._listeners: list[UpdateListener] = []
        self._daily_launch_in_flight: set[str] = set()

    # -- listeners -----------------------------------------------------------

    def subscribe(self, listener: UpdateListener) -> Callable[[], None]:
        """Register ``listener``; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, update: GamificationUpdate) -> None:
        for listener in list(self._listeners):
            try:
                listener(update)
            except Exception as e:
                self.logger.error("gamification_listener_failed", error=sanitize_for_log(e))

    def _swallowed(self, event: str, error: Exception) -> None:
        self.logger.error(event, error=sanitize_for_log(error))

    # -- points ----------------------------------------------------------------

    async def get_user_points(self, user_id: str) -> UserPoints:
        if not user_id:
            return UserPoints(user_id="")
        try:
            uid = validate_user_id(user_id)
            result = await (
                self.table(USER_POINTS).select().eq("user_id", uid).maybe_single().execute()
            )
            row = result.unwrap()
        except _RECOVERABLE as e:
            self._swallowed("get_user_points_failed", e)
            return UserPoints(user_id=user_id)
        return UserPoints.model_validate(row) if row else UserPoints(user_id=uid)

    async def award_points(self, user_id: str, activity: ActivityType) -> UserPoints:
        points = points_for(activity)
        if not user_id or points <= 0:
            return await self.get_user_points(user_id)

        try:
            current = await self.get_user_points(user_id)
            result = await (
                self.table(USER_POINTS)
                .upsert(
                    {"user_id": current.user_id, "total_points": current.total_points + points},
                    on_conflict="user_id",
                )
                .single()
                .execute()
            )
            updated = UserPoints.model_validate(result.unwrap())
        except _RECOVERABLE as e:
            self._swallowed("award_points_failed", e)
            return await self.get_user_points(user_id)

        self.logger.info(
            "points_awarded",
            user_id=sanitize_for_log(user_id),
            activity=activity.value,
            points=points,
            total=updated.total_points,
        )
        self._notify(GamificationUpdate(user_id=user_id, kind="points", activity=activity))
        return updated

    async def award_points_for_daily_launch(self, user_id: str) -> bool:
        """
        Award the daily launch points at most once per calendar day.

        Also grants the welcome badge. A second call for the same user while
        one is still running is ignored. Returns whether points were awarded.
        """
        if not user_id or user_id in self._daily_launch_in_flight:
            return False

        self._daily_launch_in_flight.add(user_id)
        try:
            today = self._clock()
            current = await self.get_user_points(user_id)
            if current.last_daily_login_award_date == today:
                return False

            marked = await (
                self.table(USER_POINTS)
                .upsert(
                    {"user_id": user_id, "last_daily_login_award_date": today},
                    on_conflict="user_id",
                )
                .execute()
            )
            marked.unwrap()

            await self.award_points(user_id, ActivityType.DAILY_APP_LAUNCH)

            welcome = badge_by_id(WELCOME_BADGE_ID)
            if welcome is not None and not await self.has_badge(user_id, welcome.id):
                await self.award_badge(user_id, welcome)
            return True
        except _RECOVERABLE as e:
            self._swallowed("daily_launch_rewards_failed", e)
            return False
        finally:
            self._daily_launch_in_flight.discard(user_id)

    # -- log counts --------------------------------------------------------------

    async def get_log_count(self, user_id: str, activity: ActivityType) -> int:
        if not user_id:
            return 0
        try:
            uid = validate_user_id(user_id)
            result = await (
                self.table(ACTIVITY_LOG_COUNTS)
                .select("count")
                .eq("user_id", uid)
                .eq("activity_type", activity)
                .maybe_single()
                .execute()
            )
            row = result.unwrap()
        except _RECOVERABLE as e:
            self._swallowed("get_log_count_failed", e)
            return 0
        return int(row.get("count") or 0) if row else 0

    async def increment_log_count(self, user_id: str, activity: ActivityType) -> int:
        if not user_id:
            return 0
        try:
            uid = validate_user_id(user_id)
            current = await self.get_log_count(uid, activity)
            result = await (
                self.table(ACTIVITY_LOG_COUNTS)
                .upsert(
                    {"user_id": uid, "activity_type": activity, "count": current + 1},
                    on_conflict="user_id,activity_type",
                )
                .single()
                .execute()
            )
            count = LogCount.model_validate(result.unwrap()).count
        except _RECOVERABLE as e:
            self._swallowed("increment_log_count_failed", e)
            return 0
        self.logger.info("log_count_incremented", activity=activity.value, count=count)
        return count

    # -- badges ------------------------------------------------------------------

    async def get_earned_badges(self, user_id: str) -> list[EarnedBadge]:
        if not user_id:
            return []
        try:
            uid = validate_user_id(user_id)
            result = await (
                self.table(EARNED_BADGES)
                .select()
                .eq("user_id", uid)
                .order("earned_date", ascending=False)
                .execute()
            )
            return self.parse(EarnedBadge, result.unwrap())
        except _RECOVERABLE as e:
            self._swallowed("get_earned_badges_failed", e)
            return []

    async def has_badge(self, user_id: str, badge_id: str) -> bool:
        if not user_id:
            return False
        try:
            uid = validate_user_id(user_id)
        except InvalidIdentifierError as e:
            self._swallowed("has_badge_failed", e)
            return False
        result = await (
            self.table(EARNED_BADGES)
            .select("id")
            .eq("user_id", uid)
            .eq("badge_id", badge_id)
            .maybe_single()
            .execute()
        )
        return result.is_ok() and result.unwrap() is not None

    async def award_badge(self, user_id: str, badge: BadgeDefinition) -> bool:
        """Insert ``badge`` unless already earned. Returns whether it was new."""
        if not user_id or await self.has_badge(user_id, badge.id):
            return False
        try:
            uid = validate_user_id(user_id)
            result = await (
                self.table(EARNED_BADGES)
                .insert({"user_id": uid, "badge_id": badge.id, "earned_date": self._clock()})
                .execute()
            )
            result.unwrap()
        except _RECOVERABLE as e:
            self._swallowed("award_badge_failed", e)
            return False

        self.logger.info("badge_awarded", user_id=sanitize_for_log(user_id), badge=badge.id)
        self._notify(GamificationUpdate(user_id=user_id, kind="badge", badge_id=badge.id))
        return True

    async def check_and_award_badges(
        self, user_id: str, newly_performed: ActivityType | None = None
    ) -> list[BadgeDefinition]:
        """Award every not-yet-earned badge whose criteria now hold."""
        if not user_id:
            return []

        points = await self.get_user_points(user_id)
        counts: dict[ActivityType, int] = {}
        awarded: list[BadgeDefinition] = []

        for badge in INITIAL_BADGES:
            if badge.criteria_type == "SPECIAL_WELCOME" or await self.has_badge(user_id, badge.id):
                continue
            target = badge.target_activity
            if target is not None and target not in counts:
                counts[target] = await self.get_log_count(user_id, target)
            met = badge_criteria_met(
                badge,
                total_points=points.total_points,
                log_counts=counts,
                newly_performed=newly_performed,
            )
            if met and await self.award_badge(user_id, badge):
                awarded.append(badge)
        return awarded

    # -- streaks -------------------------------------------------------------------

    async def get_activity_streak(self, user_id: str, activity: ActivityType) -> ActivityStreak:
        empty = ActivityStreak(user_id=user_id or "", activity_type=activity.value)
        if not user_id:
            return empty
        try:
            uid = validate_user_id(user_id)
            result = await (
                self.table(ACTIVITY_STREAKS)
                .select()
                .eq("user_id", uid)
                .eq("activity_type", activity)
                .maybe_single()
                .execute()
            )
            row = result.unwrap()
        except _RECOVERABLE as e:
            self._swallowed("get_activity_streak_failed", e)
            return empty
        return ActivityStreak.model_validate(row) if row else empty

    async def get_activity_streaks(self, user_id: str) -> list[ActivityStreak]:
        if not user_id:
            return []
        try:
            uid = validate_user_id(user_id)
            result = await self.table(ACTIVITY_STREAKS).select().eq("user_id", uid).execute()
            return self.parse(ActivityStreak, result.unwrap())
        except _RECOVERABLE as e:
            self._swallowed("get_activity_streaks_failed", e)
            return []

    async def update_streak(self, user_id: str, activity: ActivityType) -> ActivityStreak:
        current = await self.get_activity_streak(user_id, activity)
        if not user_id:
            return current

        updated = next_streak(current, self._clock())
        if updated is current:
            return current

        try:
            result = await (
                self.table(ACTIVITY_STREAKS)
                .upsert(updated.model_dump(mode="json"), on_conflict="user_id,activity_type")
                .single()
                .execute()
            )
            stored = ActivityStreak.model_validate(result.unwrap())
        except _RECOVERABLE as e:
            self._swallowed("update_streak_failed", e)
            return await self.get_activity_streak(user_id, activity)

        self.logger.info(
            "streak_updated",
            activity=activity.value,
            current=stored.current_streak,
            longest=stored.longest_streak,
        )
        self._notify(GamificationUpdate(user_id=user_id, kind="streak", activity=activity))
        return stored

    # -- composite -------------------------------------------------------------------

    async def record_activity(self, user_id: str, activity: ActivityType) -> ActivityOutcome:
        """Points, log count, streak and badge checks for one logged activity."""
        points = await self.award_points(user_id, activity)
        count = await self.increment_log_count(user_id, activity)
        streak = await self.update_streak(user_id, activity)
        badges = await self.check_and_award_badges(user_id, newly_performed=activity)
        return ActivityOutcome(points=points, log_count=count, streak=streak, new_badges=badges)
