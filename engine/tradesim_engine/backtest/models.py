"""
Backtest data models.

Defines contracts for engine configuration, trades, equity points, metrics and results.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tradesim_engine.domain import Bar, ProductType

DEFAULT_INITIAL_CAPITAL = 1_000_000.0
DEFAULT_SLIPPAGE_PCT = 0.001
DEFAULT_RISK_FREE_RATE = 0.065
DEFAULT_BENCHMARK_NAME = "NIFTY 50"


class PositionSide(str, Enum):
    """Direction of the exposure a trade closed."""

    LONG = "long"
    SHORT = "short"


# =============================================================================
# Configuration
# =============================================================================


class EngineConfig(BaseModel):
    """
    Parameters for a backtest run.

    Out-of-range values fall back to defaults rather than failing, so a
    zero-valued config behaves like the default one.
    """

    model_config = ConfigDict(frozen=True)

    initial_capital: float = Field(
        default=DEFAULT_INITIAL_CAPITAL, description="Starting capital"
    )
    slippage_pct: float = Field(
        default=DEFAULT_SLIPPAGE_PCT, description="Slippage per fill as a fraction"
    )
    product: ProductType = Field(default=ProductType.CNC, description="Margin regime")
    benchmark: list[Bar] | None = Field(
        default=None, description="Optional benchmark series for comparison"
    )
    benchmark_name: str = Field(default=DEFAULT_BENCHMARK_NAME)
    risk_free_rate: float = Field(
        default=DEFAULT_RISK_FREE_RATE, description="Annual risk-free rate"
    )

    @field_validator("initial_capital")
    @classmethod
    def default_non_positive_capital(cls, v: float) -> float:
        return v if v > 0 else DEFAULT_INITIAL_CAPITAL

    @field_validator("slippage_pct")
    @classmethod
    def clamp_negative_slippage(cls, v: float) -> float:
        return max(v, 0.0)

    @field_validator("risk_free_rate")
    @classmethod
    def default_negative_rate(cls, v: float) -> float:
        return v if v >= 0 else DEFAULT_RISK_FREE_RATE

    @classmethod
    def from_settings(cls, settings, benchmark: list[Bar] | None = None) -> "EngineConfig":
        """Build a config from application Settings."""
        return cls(
            initial_capital=settings.initial_capital,
            slippage_pct=settings.slippage_pct,
            product=settings.product,
            benchmark=benchmark,
            benchmark_name=settings.benchmark_name,
            risk_free_rate=settings.risk_free_rate,
        )


# =============================================================================
# Result Models
# =============================================================================


class EquityPoint(BaseModel):
    """Single point on the equity curve, recorded once per processed bar."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    equity: float
    cash: float
    position: int = Field(description="Signed position after the bar was processed")


class TradeRecord(BaseModel):
    """Record of one fill that closed or reduced an open position."""

    model_config = ConfigDict(frozen=True)

    entry_time: datetime
    exit_time: datetime
    side: PositionSide
    entry_price: float
    exit_price: float
    quantity: int
    pnl: float
    pnl_pct: float = Field(description="PnL as percentage of entry notional")
    reason: str = ""


class MetricsSummary(BaseModel):
    """Performance metrics summary. Percentages are expressed 0-100."""

    model_config = ConfigDict(frozen=True)

    # Returns
    cagr: float = 0.0

    # Risk
    sharpe_ratio: float = 0.0
    sortino_ratio: float = 0.0
    max_drawdown: float = 0.0
    max_drawdown_pct: float = 0.0

    # Trading
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    win_rate: float = 0.0
    profit_factor: float = 0.0
    avg_win: float = 0.0
    avg_loss: float = 0.0
    max_consecutive_wins: int = 0
    max_consecutive_losses: int = 0
    expectancy: float = 0.0
    median_trade_pnl: float = 0.0
    avg_holding_days: float = 0.0


class BacktestResult(BaseModel):
    """Complete, immutable backtest report."""

    model_config = ConfigDict(frozen=True)

    strategy_name: str
    ticker: str
    start: datetime
    end: datetime
    initial_capital: float
    final_capital: float
    total_return: float
    total_return_pct: float
    trades: list[TradeRecord] = Field(default_factory=list)
    equity_curve: list[EquityPoint] = Field(default_factory=list)
    metrics: MetricsSummary = Field(default_factory=MetricsSummary)
    benchmark_name: str | None = None
    benchmark_return: float | None = Field(
        default=None, description="Benchmark return in percent, if a benchmark was configured"
    )


# =============================================================================
# Sweep Models
# =============================================================================


class SweepComboResult(BaseModel):
    """Result for one strategy in a sweep."""

    model_config = ConfigDict(frozen=True)

    strategy: str
    ticker: str
    sharpe: float
    sortino: float
    cagr: float
    max_drawdown_pct: float
    win_rate: float
    total_trades: int
    total_return_pct: float


class SweepResult(BaseModel):
    """Ranked sweep results."""

    ticker: str
    total_combos: int
    completed_combos: int
    failed_combos: int
    results: list[SweepComboResult] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)

    @property
    def best(self) -> SweepComboResult | None:
        return self.results[0] if self.results else None
