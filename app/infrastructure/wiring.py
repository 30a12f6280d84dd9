import random
from functools import lru_cache

from app.core_settings import Settings, get_settings
from app.domain.carriers import CarrierRegistry
from app.infrastructure.geo import LocalityResolver
from app.infrastructure.store import HistoryStore, build_key_value_store
from app.application.reminders import ReminderScheduler
from app.application.service import TrackingService

def build_tracking_service(settings: Settings) -> TrackingService:
    history = HistoryStore(
        build_key_value_store(settings),
        key=settings.HISTORY_KEY,
        limit=settings.HISTORY_LIMIT,
    )
    return TrackingService(
        registry=CarrierRegistry(),
        history=history,
        scheduler=ReminderScheduler(delay=settings.REMINDER_DELAY_SECONDS),
        rng=random.Random(settings.RANDOM_SEED),
        failure_rate=settings.FAILURE_RATE,
        latency=(settings.LATENCY_MIN_SECONDS, settings.LATENCY_MAX_SECONDS),
    )

def build_locality_resolver(settings: Settings) -> LocalityResolver:
    return LocalityResolver(
        url=settings.GEOCODER_URL,
        default_city=settings.DEFAULT_CITY,
        timeout=settings.GEOCODER_TIMEOUT,
    )

@lru_cache
def get_tracking_service() -> TrackingService:
    return build_tracking_service(get_settings())

@lru_cache
def get_locality_resolver() -> LocalityResolver:
    return build_locality_resolver(get_settings())
