"""
In-process client contract for a front-end.

UI state lives in an explicit immutable `ClientState`; transitions are pure
functions returning a new state. `TrackingClient` owns the side effects:
lookups, history storage and reminder scheduling.
"""

import re
import uuid
from dataclasses import dataclass, replace
from typing import Optional, Union

from app.domain.errors import InternalError, TrackingError
from app.domain.models import HistoryRecord, ReminderSubscription, ShipmentRecord, TrackingRequest, UserLocality
from app.application.service import TrackingService
from app.infrastructure.geo import LocalityResolver
from shared.core import get_logger

logger = get_logger(__name__)

EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")

def is_valid_email(address: Optional[str]) -> bool:
    """local@domain.tld with no whitespace"""
    if not address:
        return False
    return EMAIL_RE.fullmatch(address.strip()) is not None

@dataclass(frozen=True)
class ClientState:
    locality: UserLocality
    reminder_enabled: bool = False
    contact_address: str = ""

def toggle_reminder(state: ClientState) -> ClientState:
    return replace(state, reminder_enabled=not state.reminder_enabled)

def with_contact_address(state: ClientState, address: str) -> ClientState:
    return replace(state, contact_address=(address or "").strip())

@dataclass(frozen=True)
class FailureReason:
    kind: str
    message: str

    @classmethod
    def from_error(cls, error: TrackingError) -> "FailureReason":
        return cls(kind=error.kind, message=error.message)

SearchResult = Union[ShipmentRecord, FailureReason]

class TrackingClient:
    def __init__(self, service: TrackingService, state: ClientState):
        self.service = service
        self._state = state
        self._subscription: Optional[ReminderSubscription] = None

    @property
    def state(self) -> ClientState:
        return self._state

    @property
    def subscription(self) -> Optional[ReminderSubscription]:
        return self._subscription

    def update(self, state: ClientState) -> None:
        """
        Replace the client state. Switching the reminder off, or changing the
        contact address, retires the live subscription so pending reminders
        are not delivered.
        """
        previous, self._state = self._state, state
        if self._subscription is None:
            return
        if not state.reminder_enabled or state.contact_address != previous.contact_address:
            self._subscription.active = False
            self._subscription = None

    def _current_subscription(self) -> Optional[ReminderSubscription]:
        if not self._state.reminder_enabled or not is_valid_email(self._state.contact_address):
            return None
        if self._subscription is None:
            self._subscription = ReminderSubscription(
                subscription_id=uuid.uuid4().hex,
                contact_address=self._state.contact_address,
            )
        return self._subscription

    async def search(self, tracking_number: str, courier: Optional[str] = None) -> SearchResult:
        try:
            record = await self.service.track(TrackingRequest(tracking_number, courier))
        except TrackingError as e:
            return FailureReason.from_error(e)
        except Exception:
            logger.error(f"Lookup failed unexpectedly for {tracking_number}", exc_info=True)
            return FailureReason.from_error(InternalError())

        self.service.check_reminder(record, self._state.locality, self._current_subscription())
        return record

    async def get_history(self) -> list[HistoryRecord]:
        return await self.service.history()

    async def record_history(self, entry: HistoryRecord) -> list[HistoryRecord]:
        return await self.service.history_store.record(entry.tracking_number, entry.carrier_name, entry.timestamp)

async def open_session(
    service: TrackingService,
    resolver: LocalityResolver,
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
) -> TrackingClient:
    """Resolve the user's city once and start a client with reminders off."""
    locality = await resolver.resolve(latitude, longitude)
    logger.info(f"Session locality resolved to {locality.city_name}")
    return TrackingClient(service, ClientState(locality=locality))
