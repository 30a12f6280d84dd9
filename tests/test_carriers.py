import random
import re

import pytest

from app.domain.carriers import DEFAULT_CARRIERS, CarrierDetector, CarrierRegistry
from app.domain.errors import UnsupportedCarrier
from app.domain.models import Carrier

def _code(detector, number):
    carrier = detector.detect(number)
    return carrier.code if carrier else None

@pytest.fixture
def detector(registry):
    return CarrierDetector(registry)

def test_registry_order_and_names(registry):
    assert registry.all() == [("jd", "京东快递"), ("sf", "顺丰快递"), ("yto", "圆通快递")]

def test_every_carrier_has_two_or_three_patterns(registry):
    for code, _ in registry.all():
        assert 2 <= len(registry.lookup_patterns(code)) <= 3

def test_unknown_code_is_unsupported(registry):
    with pytest.raises(UnsupportedCarrier):
        registry.lookup_patterns("ems")
    assert "ems" not in registry

def test_duplicate_codes_rejected():
    with pytest.raises(ValueError):
        CarrierRegistry(DEFAULT_CARRIERS + (DEFAULT_CARRIERS[0],))

@pytest.mark.parametrize("digits", range(8, 21))
def test_jd_prefix(detector, digits):
    assert _code(detector, "JD" + "7" * digits) == "jd"

@pytest.mark.parametrize("number", ["SF12345678", "SF123456789", "SF1234567890123"])
def test_sf_prefix(detector, number):
    assert _code(detector, number) == "sf"

@pytest.mark.parametrize("number", ["YT12345678", "YT1234567890", "YT98765432101234"])
def test_yto_prefix(detector, number):
    assert _code(detector, number) == "yto"

def test_twelve_digits_prefer_sf_over_catch_all(detector):
    rng = random.Random(42)
    for _ in range(200):
        number = "".join(rng.choice("0123456789") for _ in range(12))
        assert _code(detector, number) == "sf"

@pytest.mark.parametrize("length", [10, 11, 13, 14, 15, 18, 20, 30])
def test_long_numeric_falls_to_yto(detector, length):
    rng = random.Random(length)
    for _ in range(50):
        number = "".join(rng.choice("0123456789") for _ in range(length))
        assert _code(detector, number) == "yto"

@pytest.mark.parametrize("number", [
    "",
    "abcdef",
    "JD",
    "JD1234567",
    "SF1234",
    "YT",
    "1",
    "123456789",
    "jd12345678901",
    "JD12345678901X",
    "123456789012\n",
    " 123456789012",
    "１２３４５６７８９０１２",
])
def test_unrecognized(detector, number):
    assert detector.detect(number) is None

def test_declaration_order_breaks_ties():
    sf = next(c for c in DEFAULT_CARRIERS if c.code == "sf")
    yto = next(c for c in DEFAULT_CARRIERS if c.code == "yto")
    swapped = CarrierDetector(CarrierRegistry([yto, sf]))
    assert swapped.detect("123456789012").code == "yto"

def test_carrier_matches_any_pattern():
    carrier = Carrier("x", "X", (re.compile(r"A\d"), re.compile(r"B\d")))
    assert carrier.matches("B1")
    assert not carrier.matches("C1")
