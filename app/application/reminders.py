import asyncio
from typing import Callable, Optional

from app.domain.models import (
    ArrivalNotification,
    ReminderEvent,
    ReminderEventKind,
    ReminderSubscription,
)
from shared.core import get_logger

logger = get_logger(__name__)

ReminderListener = Callable[[ReminderEvent], None]

class ReminderScheduler:
    """
    Arrival reminders as an event contract.

    `schedule` publishes a scheduled event at once and a delivered event after
    `delay` seconds. The pending task is keyed by subscription id; delivery is
    skipped if the subscription was switched off while waiting.
    """

    def __init__(self, delay: float = 5.0, sleep=asyncio.sleep):
        self.delay = delay
        self._sleep = sleep
        self._listeners: list[ReminderListener] = []
        self._pending: dict[str, asyncio.Task] = {}

    def subscribe(self, listener: ReminderListener) -> None:
        self._listeners.append(listener)

    def pending(self, subscription_id: str) -> Optional[asyncio.Task]:
        return self._pending.get(subscription_id)

    def schedule(self, subscription: ReminderSubscription, notification: ArrivalNotification) -> asyncio.Task:
        self.cancel(subscription.subscription_id)
        self._publish(ReminderEvent(
            kind=ReminderEventKind.SCHEDULED,
            subscription_id=subscription.subscription_id,
            notification=notification,
        ))
        task = asyncio.get_running_loop().create_task(self._deliver_later(subscription, notification))
        self._pending[subscription.subscription_id] = task
        task.add_done_callback(lambda t: self._forget(subscription.subscription_id, t))
        return task

    def cancel(self, subscription_id: str) -> bool:
        task = self._pending.pop(subscription_id, None)
        if task is None or task.done():
            return False
        task.cancel()
        return True

    async def shutdown(self) -> None:
        tasks = list(self._pending.values())
        self._pending.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def _deliver_later(self, subscription: ReminderSubscription, notification: ArrivalNotification) -> None:
        await self._sleep(self.delay)
        if not subscription.active:
            logger.info(f"Reminder for {notification.tracking_number} dropped, subscription disabled")
            return
        self._publish(ReminderEvent(
            kind=ReminderEventKind.DELIVERED,
            subscription_id=subscription.subscription_id,
            notification=notification,
            subject=f"快递到达提醒 - {notification.tracking_number}",
            body=f"您的快递 {notification.tracking_number} 已到达 {notification.locality_name}，请注意查收。",
        ))

    def _forget(self, subscription_id: str, task: asyncio.Task) -> None:
        if self._pending.get(subscription_id) is task:
            del self._pending[subscription_id]

    def _publish(self, event: ReminderEvent) -> None:
        logger.info(
            f"Reminder event {event.kind.value} for {event.notification.tracking_number}",
            extra={
                'extra_fields': {
                    'kind': event.kind.value,
                    'subscription_id': event.subscription_id,
                    'contact_address': event.notification.contact_address,
                    'locality': event.notification.locality_name,
                    'carrier': event.notification.carrier_name,
                }
            }
        )
        for listener in self._listeners:
            try:
                listener(event)
            except Exception:
                logger.error("Reminder listener failed", exc_info=True)
