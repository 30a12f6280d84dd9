import random
import re
from datetime import datetime, timedelta

from app.domain.models import PackageInfo, ShipmentRecord, ShipmentStatus, TimelineEvent

LOCATIONS = ("北京", "上海", "广州", "深圳", "杭州", "成都", "武汉", "西安")

ACTIONS = (
    "快件已签收，签收人：门卫",
    "快件正在派送中，请保持电话畅通",
    "快件已到达派送点，准备派送",
    "快件运输中，预计明天到达",
    "快件已发出，正在运输途中",
    "快件已揽收，准备发出",
)

MIN_EVENTS = 3
MAX_EVENTS = 7
LOOKBACK = timedelta(days=7)

PLACEHOLDER_RECIPIENT = "张先生"
PLACEHOLDER_PHONE = "13812348888"
PLACEHOLDER_ADDRESS = "北京市朝阳区某某街道某某小区"
PLACEHOLDER_WEIGHT = "1.2kg"

MASKED_PHONE_RE = re.compile(r"\d{3}\*{4}\d{4}", re.ASCII)

def mask_phone(phone: str) -> str:
    """Keep the first three and last four digits: 13812348888 -> 138****8888"""
    digits = re.sub(r"\D", "", phone)
    if len(digits) < 7:
        raise ValueError(f"Phone number too short to mask: {phone!r}")
    return f"{digits[:3]}****{digits[-4:]}"

class MockTimelineGenerator:
    """
    Builds synthetic shipment records.

    Shape is fixed (status, 3-7 events sorted newest first, package info)
    while content is drawn from the injected random source. Generation never
    fails; simulated lookup failures are decided by the caller beforehand.
    """

    def __init__(self, locations=LOCATIONS, actions=ACTIONS):
        self.locations = tuple(locations)
        self.actions = tuple(actions)

    def generate(
        self,
        tracking_number: str,
        carrier_name: str,
        now: datetime,
        rng: random.Random,
    ) -> ShipmentRecord:
        status = rng.choice(list(ShipmentStatus))
        count = rng.randint(MIN_EVENTS, MAX_EVENTS)

        # Distinct microsecond offsets keep the ordering strict
        window = int(LOOKBACK / timedelta(microseconds=1))
        offsets = rng.sample(range(1, window + 1), count)

        timeline = [
            TimelineEvent(
                timestamp=now - timedelta(microseconds=offset),
                status_text=rng.choice(self.actions),
                location=rng.choice(self.locations),
            )
            for offset in offsets
        ]
        timeline.sort(key=lambda e: e.timestamp, reverse=True)

        return ShipmentRecord(
            tracking_number=tracking_number,
            carrier_name=carrier_name,
            status=status,
            timeline=timeline,
            package_info=PackageInfo(
                recipient_name=PLACEHOLDER_RECIPIENT,
                recipient_phone=mask_phone(PLACEHOLDER_PHONE),
                recipient_address=PLACEHOLDER_ADDRESS,
                weight=PLACEHOLDER_WEIGHT,
            ),
        )
