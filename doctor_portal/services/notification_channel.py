"""Outbound notifications picked up by the patient mobile app.

The app listens on the `notifications` collection; nothing here waits
for or observes delivery.
"""
from doctor_portal.models.access import OtpNotification

NOTIFICATIONS_COLLECTION = "notifications"


class NotificationChannel:
    def __init__(self, store):
        self.store = store

    def publish(self, notification: OtpNotification) -> str:
        return self.store.create(NOTIFICATIONS_COLLECTION, notification.model_dump())
