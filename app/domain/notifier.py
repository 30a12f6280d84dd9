from typing import Optional

from app.domain.models import ArrivalNotification, ShipmentRecord, ShipmentStatus, UserLocality

MOVING_STATUSES = frozenset({ShipmentStatus.IN_TRANSIT, ShipmentStatus.OUT_FOR_DELIVERY})

class ProximityNotifier:
    """Decides whether a shipment has reached the subscriber's city."""

    def should_notify(
        self,
        record: ShipmentRecord,
        locality: Optional[UserLocality],
        subscription_active: bool,
        contact_address: Optional[str],
    ) -> bool:
        if not subscription_active:
            return False
        if not contact_address or not contact_address.strip():
            return False
        if record.status not in MOVING_STATUSES:
            return False
        city = locality.city_name.strip() if locality else ""
        # An empty name is a substring of everything
        if not city:
            return False
        return any(
            city in event.location or city in event.status_text
            for event in record.timeline
        )

    def build_notification(
        self,
        record: ShipmentRecord,
        locality: UserLocality,
        contact_address: str,
    ) -> ArrivalNotification:
        return ArrivalNotification(
            tracking_number=record.tracking_number,
            contact_address=contact_address.strip(),
            locality_name=locality.city_name,
            carrier_name=record.carrier_name,
        )
