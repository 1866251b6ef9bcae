"""In-app notifications and scheduled reminders, stored per user."""

from datetime import datetime

from familyhealth.domain.models import Notification
from familyhealth.security import sanitize_input, validate_id, validate_user_id
from familyhealth.services.base import BaseService

NOTIFICATIONS = "notifications"


class NotificationService(BaseService):
    component = "notification_service"

    async def get_user_notifications(
        self, user_id: str, *, unread_only: bool = False
    ) -> list[Notification]:
        with self.failures("get notifications"):
            uid = validate_user_id(user_id)
            query = self.table(NOTIFICATIONS).select().eq("user_id", uid)
            if unread_only:
                query = query.eq("is_read", False)
            result = await query.order("created_at", ascending=False).execute()
            return self.parse(Notification, result.unwrap())

    async def add_notification(self, user_id: str, notification: Notification) -> Notification:
        notification = notification.model_copy(
            update={
                "title": sanitize_input(notification.title) or notification.title,
                "message": sanitize_input(notification.message),
                "is_read": False,
            }
        )
        with self.failures("add notification"):
            uid = validate_user_id(user_id)
            row = await self.insert_one(NOTIFICATIONS, {**notification.to_row(), "user_id": uid})
            return Notification.model_validate(row)

    async def mark_as_read(self, user_id: str, notification_id: str) -> None:
        with self.failures("mark notification read"):
            await self.update_one(
                NOTIFICATIONS,
                {"is_read": True},
                user_id=validate_user_id(user_id),
                record_id=validate_id(notification_id),
            )

    async def schedule_reminder(
        self, user_id: str, title: str, message: str, scheduled_for: datetime
    ) -> Notification:
        reminder = Notification(
            title=title, message=message, type="reminder", scheduled_for=scheduled_for
        )
        return await self.add_notification(user_id, reminder)
