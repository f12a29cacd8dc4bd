from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any, Set

# Lookback windows, shortest first.
WINDOWS = ("5m", "15m", "1h", "6h", "24h")

@dataclass(frozen=True)
class TxnCounts:
    buys: int = 0
    sells: int = 0

    @property
    def total(self) -> int:
        return self.buys + self.sells

@dataclass
class PoolSnapshot:
    """
    Canonical, source-agnostic view of one trading pool.
    Window maps only hold finite values; a missing window reads as 0 / no trades.
    """
    liquidity_usd: float = 0.0
    fdv: Optional[float] = None  # Market Cap (Fully Diluted Valuation)
    volume: Dict[str, float] = field(default_factory=dict)
    price_change: Dict[str, float] = field(default_factory=dict)
    txns: Dict[str, TxnCounts] = field(default_factory=dict)
    risk_labels: Set[str] = field(default_factory=set)
    source: str = ""
    pair_address: str = ""

    def volume_for(self, window: str) -> float:
        return self.volume.get(window, 0.0)

    def price_change_for(self, window: str) -> float:
        return self.price_change.get(window, 0.0)

    def txns_for(self, window: str) -> TxnCounts:
        return self.txns.get(window, TxnCounts())

@dataclass
class HolderMetrics:
    """
    Holder concentration metrics. Percentages are fractions of total supply.
    """
    total_supply: Optional[float] = None
    token_age_days: Optional[float] = None
    single_holder_pct: float = 0.0
    top5_pct: float = 0.0
    holder_count: int = 0

@dataclass
class SocialMetrics:
    mention_count: int = 0

@dataclass
class ScoreResult:
    """
    Result of scoring one pool snapshot.
    """
    buy_score: int
    predicted_roi_pct: float
    warnings: List[str]
    market_cap: str = "N/A"
    holders_display: str = "N/A"
    top5_pct_display: str = "0.00%"
    token_age_days_display: str = "N/A"
    details: Dict[str, Any] = field(default_factory=dict) # Factor breakdown

    @property
    def predicted_roi(self) -> str:
        return f"{self.predicted_roi_pct:.2f}%"

    def is_exit_signal(self, min_score: int = 40) -> bool:
        """Condition a position monitor alerts on: weak buy pressure or negative outlook."""
        return self.buy_score < min_score or self.predicted_roi_pct < 0

    def to_envelope(self) -> Dict[str, Any]:
        return {
            "success": True,
            "marketCap": self.market_cap,
            "buyScore": str(self.buy_score),
            "predictedRoi": self.predicted_roi,
            "holders": self.holders_display,
            "top5Pct": self.top5_pct_display,
            "tokenAgeDays": self.token_age_days_display,
            "warnings": list(self.warnings),
        }
