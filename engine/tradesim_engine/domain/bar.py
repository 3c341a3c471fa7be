"""
Bar (OHLCV) domain model.

Represents a single price bar with open, high, low, close, and volume.
Frozen so that replayed history can never be mutated by a strategy.
"""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

# Timestamp carried by the zero bar returned for out-of-range look-backs
ZERO_TIMESTAMP = datetime.min.replace(tzinfo=UTC)


class Bar(BaseModel):
    """
    A single OHLCV bar.

    Prices are plain floats; the simulator works in account currency units.
    """

    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(
        ...,
        description="Bar open timestamp",
    )
    open: float = Field(
        ...,
        description="Opening price",
        ge=0,
    )
    high: float = Field(
        ...,
        description="Highest price",
        ge=0,
    )
    low: float = Field(
        ...,
        description="Lowest price",
        ge=0,
    )
    close: float = Field(
        ...,
        description="Closing price",
        ge=0,
    )
    volume: float = Field(
        default=0.0,
        description="Traded volume",
        ge=0,
    )

    @field_validator("high")
    @classmethod
    def high_gte_open(cls, v: float, info: ValidationInfo) -> float:
        """Validate high >= open."""
        data = info.data
        if "open" in data and v < data["open"]:
            raise ValueError("high must be >= open")
        return v

    @field_validator("low")
    @classmethod
    def low_lte_open_high(cls, v: float, info: ValidationInfo) -> float:
        """Validate low <= open and low <= high."""
        data = info.data
        if "open" in data and v > data["open"]:
            raise ValueError("low must be <= open")
        if "high" in data and v > data["high"]:
            raise ValueError("low must be <= high")
        return v

    @field_validator("close")
    @classmethod
    def close_within_range(cls, v: float, info: ValidationInfo) -> float:
        """Validate low <= close <= high."""
        data = info.data
        if "high" in data and v > data["high"]:
            raise ValueError("close must be <= high")
        if "low" in data and v < data["low"]:
            raise ValueError("close must be >= low")
        return v

    @classmethod
    def zero(cls) -> "Bar":
        """Return the empty bar used when a look-back falls outside history."""
        return cls(timestamp=ZERO_TIMESTAMP, open=0.0, high=0.0, low=0.0, close=0.0)

    @property
    def is_zero(self) -> bool:
        return self.timestamp == ZERO_TIMESTAMP and self.close == 0.0

    @property
    def typical(self) -> float:
        """Calculate typical price (HLC average)."""
        return (self.high + self.low + self.close) / 3

    @property
    def range(self) -> float:
        """Calculate bar range (high - low)."""
        return self.high - self.low

    @property
    def is_bullish(self) -> bool:
        """Check if bar is bullish (close > open)."""
        return self.close > self.open

    @property
    def is_bearish(self) -> bool:
        """Check if bar is bearish (close < open)."""
        return self.close < self.open
