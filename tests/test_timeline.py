import random
from datetime import timedelta

import pytest

from app.domain.models import ShipmentStatus
from app.domain.timeline import ACTIONS, LOCATIONS, MASKED_PHONE_RE, MockTimelineGenerator, mask_phone
from tests.conftest import NOW

@pytest.fixture
def generator():
    return MockTimelineGenerator()

@pytest.mark.parametrize("seed", range(50))
def test_generated_record_shape(generator, seed):
    record = generator.generate("SF12345678", "顺丰快递", NOW, random.Random(seed))

    assert record.tracking_number == "SF12345678"
    assert record.carrier_name == "顺丰快递"
    assert isinstance(record.status, ShipmentStatus)
    assert 3 <= len(record.timeline) <= 7

    stamps = [e.timestamp for e in record.timeline]
    assert all(a > b for a, b in zip(stamps, stamps[1:]))
    assert all(NOW - timedelta(days=7) <= t < NOW for t in stamps)

    for event in record.timeline:
        assert event.location in LOCATIONS
        assert event.status_text in ACTIONS

    info = record.package_info
    assert info.recipient_name and info.recipient_address and info.weight
    assert MASKED_PHONE_RE.fullmatch(info.recipient_phone)

def test_same_seed_same_record(generator):
    first = generator.generate("JD12345678", "京东快递", NOW, random.Random(3))
    second = generator.generate("JD12345678", "京东快递", NOW, random.Random(3))
    assert first == second

def test_every_status_and_length_reachable(generator):
    statuses, lengths = set(), set()
    for seed in range(300):
        record = generator.generate("123456789012", "顺丰快递", NOW, random.Random(seed))
        statuses.add(record.status)
        lengths.add(len(record.timeline))
    assert statuses == set(ShipmentStatus)
    assert lengths == {3, 4, 5, 6, 7}

def test_mask_phone():
    assert mask_phone("13812348888") == "138****8888"
    assert mask_phone("138-1234-8888") == "138****8888"

def test_mask_phone_rejects_short_numbers():
    with pytest.raises(ValueError):
        mask_phone("12345")
