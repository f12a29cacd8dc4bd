import math
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, Optional
from scanner.models.token import WINDOWS, PoolSnapshot, HolderMetrics, SocialMetrics, TxnCounts

NEUTRAL_BUY_RATIO = 0.5

def safe_float(val: Any) -> Optional[float]:
    """Finite float or None. Booleans, containers and junk strings count as absent."""
    if val is None or isinstance(val, (bool, dict, list)):
        return None
    try:
        f = float(val)
    except (TypeError, ValueError, OverflowError):
        return None
    return f if math.isfinite(f) else None

def safe_int(val: Any) -> Optional[int]:
    """Non-negative int or None."""
    f = safe_float(val)
    if f is None or f < 0:
        return None
    return int(f)

def finite(val: float, default: float = 0.0) -> float:
    return val if math.isfinite(val) else default

def safe_log10(val: float) -> float:
    """log10 that yields 0 instead of raising or returning -inf/nan."""
    if not math.isfinite(val) or val <= 0:
        return 0.0
    return math.log10(val)

@dataclass(frozen=True)
class ScoreFactors:
    """
    Fully resolved numeric inputs of the scoring formula. No optionals.
    """
    buy_ratios: Dict[str, float]
    price_changes: Dict[str, float]
    volume_factor: float
    buy_sell_ratio_24h: float
    liquidity_usd: float
    liquidity_factor: float
    std_dev: float
    cross: int  # +1 golden, -1 death, 0 flat
    single_holder_pct: float
    top5_pct: float
    holder_count: int
    mention_boost: float
    risk_labels: FrozenSet[str]

    @property
    def golden_cross(self) -> bool:
        return self.cross > 0

    @property
    def death_cross(self) -> bool:
        return self.cross < 0

class ParameterExtractor:
    @staticmethod
    def buy_ratio(txns: TxnCounts) -> float:
        """Share of buys; no trades at all reads as the neutral 0.5."""
        if txns.total <= 0:
            return NEUTRAL_BUY_RATIO
        return txns.buys / txns.total

    @staticmethod
    def volume_factor(volume_24h: float) -> float:
        return safe_log10(1 + volume_24h)

    @staticmethod
    def liquidity_factor(liquidity_usd: float) -> float:
        return safe_log10(1 + liquidity_usd)

    @staticmethod
    def std_dev(values: Iterable[float]) -> float:
        """Population standard deviation."""
        values = list(values)
        if not values:
            return 0.0
        mean = sum(values) / len(values)
        variance = sum((v - mean) * (v - mean) for v in values) / len(values)
        return finite(math.sqrt(variance))

    @staticmethod
    def momentum_cross(short_ma: float, long_ma: float) -> int:
        if short_ma > long_ma:
            return 1
        if short_ma < long_ma:
            return -1
        return 0

    @staticmethod
    def mention_boost(mention_count: int) -> float:
        """1.0 .. 1.10, saturating at 200 mentions."""
        return 1 + min(10, max(0, mention_count) / 20) / 100

    @staticmethod
    def extract_all(pool: PoolSnapshot, holders: HolderMetrics, social: SocialMetrics) -> ScoreFactors:
        price_changes = {w: pool.price_change_for(w) for w in WINDOWS}
        buy_ratios = {w: ParameterExtractor.buy_ratio(pool.txns_for(w)) for w in WINDOWS}

        return ScoreFactors(
            buy_ratios=buy_ratios,
            price_changes=price_changes,
            volume_factor=ParameterExtractor.volume_factor(pool.volume_for("24h")),
            buy_sell_ratio_24h=buy_ratios["24h"],
            liquidity_usd=pool.liquidity_usd,
            liquidity_factor=ParameterExtractor.liquidity_factor(pool.liquidity_usd),
            std_dev=ParameterExtractor.std_dev(price_changes.values()),
            cross=ParameterExtractor.momentum_cross(price_changes["5m"], price_changes["1h"]),
            single_holder_pct=holders.single_holder_pct,
            top5_pct=holders.top5_pct,
            holder_count=holders.holder_count,
            mention_boost=ParameterExtractor.mention_boost(social.mention_count),
            risk_labels=frozenset(pool.risk_labels),
        )
