from dataclasses import dataclass
from datetime import datetime
from enum import Enum
import re
from typing import Optional, Tuple

class ShipmentStatus(str, Enum):
    COLLECTED = "collected"
    IN_TRANSIT = "in_transit"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"

    @property
    def label(self) -> str:
        return STATUS_LABELS[self]

STATUS_LABELS = {
    ShipmentStatus.COLLECTED: "已揽收",
    ShipmentStatus.IN_TRANSIT: "运输中",
    ShipmentStatus.OUT_FOR_DELIVERY: "派送中",
    ShipmentStatus.DELIVERED: "已签收",
}

@dataclass(frozen=True)
class Carrier:
    code: str
    display_name: str
    patterns: Tuple[re.Pattern, ...]

    def matches(self, tracking_number: str) -> bool:
        return any(p.fullmatch(tracking_number) for p in self.patterns)

@dataclass(frozen=True)
class TrackingRequest:
    tracking_number: Optional[str]
    # None or "auto" means detect from the number itself
    carrier_override: Optional[str] = None

@dataclass(frozen=True)
class TimelineEvent:
    timestamp: datetime
    status_text: str
    location: str

@dataclass(frozen=True)
class PackageInfo:
    recipient_name: str
    recipient_phone: str
    recipient_address: str
    weight: str

@dataclass
class ShipmentRecord:
    tracking_number: str
    carrier_name: str
    status: ShipmentStatus
    # Most recent first
    timeline: list[TimelineEvent]
    package_info: PackageInfo

@dataclass(frozen=True)
class HistoryRecord:
    tracking_number: str
    carrier_name: str
    timestamp: datetime

@dataclass(frozen=True)
class UserLocality:
    city_name: str

@dataclass
class ReminderSubscription:
    subscription_id: str
    contact_address: Optional[str]
    active: bool = True

@dataclass(frozen=True)
class ArrivalNotification:
    tracking_number: str
    contact_address: str
    locality_name: str
    carrier_name: str

class ReminderEventKind(str, Enum):
    SCHEDULED = "reminder_scheduled"
    DELIVERED = "reminder_delivered"

@dataclass(frozen=True)
class ReminderEvent:
    kind: ReminderEventKind
    subscription_id: str
    notification: ArrivalNotification
    subject: Optional[str] = None
    body: Optional[str] = None
