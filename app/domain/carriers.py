"""
Carrier registry and tracking-number based carrier detection.

Detection is first-match-wins over the registry's declaration order. The
numeric catch-all of YTO overlaps SF's 12-digit rule, so SF must stay ahead
of YTO.
"""

import re
from typing import Iterable, Optional, Sequence, Tuple

from app.domain.errors import UnsupportedCarrier
from app.domain.models import Carrier

def _compile(*patterns: str) -> Tuple[re.Pattern, ...]:
    # ASCII so that \d never accepts full-width or other unicode digits
    return tuple(re.compile(p, re.ASCII) for p in patterns)

DEFAULT_CARRIERS: Tuple[Carrier, ...] = (
    Carrier(
        code="jd",
        display_name="京东快递",
        patterns=_compile(r"JD\d{10,}", r"JD\d{8,9}"),
    ),
    Carrier(
        code="sf",
        display_name="顺丰快递",
        patterns=_compile(r"SF\d{10,}", r"SF\d{8,9}", r"\d{12}"),
    ),
    Carrier(
        code="yto",
        display_name="圆通快递",
        patterns=_compile(r"YT\d{10,}", r"YT\d{8,9}", r"\d{10,}"),
    ),
)

class CarrierRegistry:
    """Immutable, ordered lookup table of supported carriers."""

    def __init__(self, carriers: Iterable[Carrier] = DEFAULT_CARRIERS):
        self._carriers = tuple(carriers)
        self._by_code = {c.code: c for c in self._carriers}
        if len(self._by_code) != len(self._carriers):
            raise ValueError("Duplicate carrier code in registry")

    def __iter__(self):
        return iter(self._carriers)

    def __len__(self) -> int:
        return len(self._carriers)

    def __contains__(self, code: str) -> bool:
        return code in self._by_code

    def get(self, code: str) -> Carrier:
        try:
            return self._by_code[code]
        except KeyError:
            raise UnsupportedCarrier(code) from None

    def lookup_patterns(self, code: str) -> Sequence[re.Pattern]:
        return self.get(code).patterns

    def all(self) -> list[Tuple[str, str]]:
        """(code, display name) pairs in declaration order."""
        return [(c.code, c.display_name) for c in self._carriers]

class CarrierDetector:
    def __init__(self, registry: CarrierRegistry):
        self.registry = registry

    def detect(self, tracking_number: str) -> Optional[Carrier]:
        """
        Return the first carrier whose pattern set matches, or None when the
        number is not recognized. None is a normal outcome, not an error.
        """
        if not tracking_number:
            return None
        for carrier in self.registry:
            if carrier.matches(tracking_number):
                return carrier
        return None
