import asyncio
import random
from datetime import datetime, timezone
from typing import Callable, Optional

from app.domain.carriers import CarrierDetector, CarrierRegistry
from app.domain.errors import EmptyInput, ShipmentNotFound, UnrecognizedCarrier
from app.domain.models import (
    Carrier,
    HistoryRecord,
    ReminderSubscription,
    ShipmentRecord,
    TrackingRequest,
    UserLocality,
)
from app.domain.notifier import ProximityNotifier
from app.domain.timeline import MockTimelineGenerator
from app.infrastructure.store import HistoryStore
from app.application.reminders import ReminderScheduler
from shared.core import get_logger, set_request_context

logger = get_logger(__name__)

AUTO_DETECT = "auto"

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

class TrackingService:
    def __init__(
        self,
        registry: CarrierRegistry,
        history: HistoryStore,
        scheduler: ReminderScheduler,
        rng: Optional[random.Random] = None,
        failure_rate: float = 0.1,
        latency: tuple[float, float] = (1.0, 2.0),
        generator: Optional[MockTimelineGenerator] = None,
        notifier: Optional[ProximityNotifier] = None,
        sleep=asyncio.sleep,
        clock: Callable[[], datetime] = _utcnow,
    ):
        if not 0.0 <= failure_rate <= 1.0:
            raise ValueError("failure_rate must be within [0, 1]")
        low, high = latency
        if low < 0 or high < low:
            raise ValueError("latency must be a non-negative (min, max) range")
        self.registry = registry
        self.detector = CarrierDetector(registry)
        self.history_store = history
        self.scheduler = scheduler
        self.rng = rng or random.Random()
        self.failure_rate = failure_rate
        self.latency = (low, high)
        self.generator = generator or MockTimelineGenerator()
        self.notifier = notifier or ProximityNotifier()
        self._sleep = sleep
        self._clock = clock

    def resolve_carrier(self, tracking_number: str, carrier_override: Optional[str] = None) -> Carrier:
        if not carrier_override or carrier_override == AUTO_DETECT:
            carrier = self.detector.detect(tracking_number)
            if carrier is None:
                raise UnrecognizedCarrier()
            return carrier
        return self.registry.get(carrier_override)

    async def track(self, request: TrackingRequest) -> ShipmentRecord:
        tracking_number = (request.tracking_number or "").strip()
        if not tracking_number:
            raise EmptyInput()
        set_request_context(tracking_number=tracking_number)

        carrier = self.resolve_carrier(tracking_number, request.carrier_override)

        await self._sleep(self.rng.uniform(*self.latency))

        # Decided before generation so a failure never carries a record
        if self.rng.random() < self.failure_rate:
            logger.info(f"Simulated lookup miss for {tracking_number}")
            raise ShipmentNotFound()

        record = self.generator.generate(tracking_number, carrier.display_name, self._clock(), self.rng)
        await self.history_store.record(tracking_number, carrier.display_name, self._clock())
        logger.info(
            f"Lookup succeeded for {tracking_number}",
            extra={
                'extra_fields': {
                    'carrier': carrier.code,
                    'status': record.status.value,
                    'events': len(record.timeline),
                }
            }
        )
        return record

    def validate(self, tracking_number: Optional[str]) -> tuple[bool, Optional[str]]:
        tracking_number = (tracking_number or "").strip()
        if not tracking_number:
            raise EmptyInput()
        carrier = self.detector.detect(tracking_number)
        return carrier is not None, carrier.display_name if carrier else None

    def couriers(self) -> list[tuple[str, str]]:
        return self.registry.all()

    async def history(self) -> list[HistoryRecord]:
        return await self.history_store.get_history()

    def check_reminder(
        self,
        record: ShipmentRecord,
        locality: Optional[UserLocality],
        subscription: Optional[ReminderSubscription],
    ) -> bool:
        """Schedule an arrival reminder when the shipment is heading to the subscriber's city."""
        if subscription is None:
            return False
        if not self.notifier.should_notify(record, locality, subscription.active, subscription.contact_address):
            return False
        notification = self.notifier.build_notification(record, locality, subscription.contact_address)
        self.scheduler.schedule(subscription, notification)
        return True
