"""
Product (margin regime) domain model.
"""

from enum import Enum

# Fraction of notional reserved from cash when a short is opened
SHORT_MARGIN_RATE = 0.2


class ProductType(str, Enum):
    """Account regime a position is held under."""

    CNC = "CNC"  # Cash and carry (delivery), long only
    MIS = "MIS"  # Margin intraday square-off
    NRML = "NRML"  # Normal carry-forward (F&O)

    @property
    def allows_short(self) -> bool:
        """Whether short positions may be opened under this regime."""
        return self != ProductType.CNC
