from typing import Callable, List
from loguru import logger

from halalchain.models.event import LedgerNotification


Subscriber = Callable[[LedgerNotification], None]


class NotificationBus:
    """
    Fire-and-forget delivery of ledger notifications to in-process observers.

    The lifecycle engine publishes only after its transaction has committed.
    A subscriber that raises is logged and skipped; it never affects the
    caller or the remaining subscribers.
    """

    def __init__(self):
        self._subscribers: List[Subscriber] = []

    def subscribe(self, subscriber: Subscriber) -> Subscriber:
        if subscriber not in self._subscribers:
            self._subscribers.append(subscriber)
        return subscriber

    def unsubscribe(self, subscriber: Subscriber):
        if subscriber in self._subscribers:
            self._subscribers.remove(subscriber)

    def publish(self, notifications: List[LedgerNotification]):
        for notification in notifications:
            for subscriber in list(self._subscribers):
                try:
                    subscriber(notification)
                except Exception:
                    logger.exception(
                        f"Notification subscriber failed on {notification.event_type.value}")


def log_notification(notification: LedgerNotification):
    logger.bind(
        ledger_event=notification.event_type.value,
        batch_id=notification.batch_id,
        payload=notification.payload,
        committed_at=notification.timestamp.isoformat(),
    ).info(
        f"{notification.event_type.value} batch={notification.batch_id} payload={notification.payload}")


bus = NotificationBus()
bus.subscribe(log_notification)
