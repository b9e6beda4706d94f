"""Process-wide store settings."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass
class Settings:
    tax_rate: Decimal = Decimal("0")  # fraction, e.g. 0.08 for 8%

    def set_tax_rate(self, rate: Decimal) -> None:
        """Store the rate, clamping anything below zero to zero."""
        self.tax_rate = max(Decimal("0"), rate)
