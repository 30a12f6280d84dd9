from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Generic, Optional, TypeVar

from app.domain.models import HistoryRecord, ShipmentRecord, ShipmentStatus

T = TypeVar("T")

class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

class TrackRequest(CamelModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    # Optional so that a missing number is reported as 400, not 422
    tracking_number: Optional[str] = Field(default=None, alias="trackingNumber")
    courier: Optional[str] = None

class ValidateRequest(CamelModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    tracking_number: Optional[str] = Field(default=None, alias="trackingNumber")

class TimelineEventRead(CamelModel):
    time: datetime
    status: str
    location: str

class PackageInfoRead(CamelModel):
    recipient_name: str = Field(alias="recipientName")
    recipient_phone: str = Field(alias="recipientPhone")
    recipient_address: str = Field(alias="recipientAddress")
    weight: str

class ShipmentRead(CamelModel):
    tracking_number: str = Field(alias="trackingNumber")
    courier_name: str = Field(alias="courierName")
    status: ShipmentStatus
    status_label: str = Field(alias="statusLabel")
    timeline: list[TimelineEventRead]
    package_info: PackageInfoRead = Field(alias="packageInfo")

    @classmethod
    def from_record(cls, record: ShipmentRecord) -> "ShipmentRead":
        info = record.package_info
        return cls(
            tracking_number=record.tracking_number,
            courier_name=record.carrier_name,
            status=record.status,
            status_label=record.status.label,
            timeline=[
                TimelineEventRead(time=e.timestamp, status=e.status_text, location=e.location)
                for e in record.timeline
            ],
            package_info=PackageInfoRead(
                recipient_name=info.recipient_name,
                recipient_phone=info.recipient_phone,
                recipient_address=info.recipient_address,
                weight=info.weight,
            ),
        )

class CourierRead(CamelModel):
    code: str
    name: str

class ValidationRead(CamelModel):
    is_valid: bool = Field(alias="isValid")
    courier: Optional[str] = None

class HistoryRead(CamelModel):
    tracking_number: str = Field(alias="trackingNumber")
    courier_name: str = Field(alias="courierName")
    timestamp: datetime

    @classmethod
    def from_record(cls, record: HistoryRecord) -> "HistoryRead":
        return cls(
            tracking_number=record.tracking_number,
            courier_name=record.carrier_name,
            timestamp=record.timestamp,
        )

class LocalityRead(CamelModel):
    city: str

class Envelope(CamelModel, Generic[T]):
    success: bool = True
    data: T
