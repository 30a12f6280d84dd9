import random
from datetime import datetime, timezone

import pytest

from app.application.reminders import ReminderScheduler
from app.application.service import TrackingService
from app.domain.carriers import CarrierRegistry
from app.domain.models import PackageInfo, ShipmentRecord, ShipmentStatus, TimelineEvent
from app.domain.timeline import MockTimelineGenerator
from app.infrastructure.store import HistoryStore, InMemoryKeyValueStore

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)

async def no_sleep(_seconds):
    return None

class FixedGenerator(MockTimelineGenerator):
    """Returns a record with a chosen status and event locations"""

    def __init__(self, status=ShipmentStatus.IN_TRANSIT, locations=("上海", "北京")):
        super().__init__()
        self.status = status
        self.fixed_locations = locations

    def generate(self, tracking_number, carrier_name, now, rng):
        return make_record(tracking_number, carrier_name, self.status, self.fixed_locations, now)

def make_record(
    tracking_number="JD12345678901",
    carrier_name="京东快递",
    status=ShipmentStatus.IN_TRANSIT,
    locations=("上海", "北京"),
    now=NOW,
    status_text="快件运输中，预计明天到达",
):
    timeline = [
        TimelineEvent(timestamp=now.replace(hour=11 - i), status_text=status_text, location=loc)
        for i, loc in enumerate(locations)
    ]
    return ShipmentRecord(
        tracking_number=tracking_number,
        carrier_name=carrier_name,
        status=status,
        timeline=timeline,
        package_info=PackageInfo("张先生", "138****8888", "北京市朝阳区某某街道某某小区", "1.2kg"),
    )

@pytest.fixture
def registry():
    return CarrierRegistry()

@pytest.fixture
def history_store():
    return HistoryStore(InMemoryKeyValueStore(), key="expressHistory", limit=20)

@pytest.fixture
def scheduler():
    return ReminderScheduler(delay=0, sleep=no_sleep)

@pytest.fixture
def make_service(registry, history_store, scheduler):
    def factory(failure_rate=0.0, seed=7, generator=None, sleep=no_sleep, latency=(0.0, 0.0), reminders=None, history=None):
        return TrackingService(
            registry=registry,
            history=history or history_store,
            scheduler=reminders or scheduler,
            rng=random.Random(seed),
            failure_rate=failure_rate,
            latency=latency,
            generator=generator,
            sleep=sleep,
            clock=lambda: NOW,
        )
    return factory
