import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple
from scanner.models.token import WINDOWS, PoolSnapshot, HolderMetrics, SocialMetrics, ScoreResult
from scanner.analyzer.parameters import ParameterExtractor, ScoreFactors, finite, safe_log10
from scanner.analyzer.risk_flags import RiskEngine, SINGLE_WALLET_PCT, BUNDLED_TOP5_PCT, HIGH_VOLATILITY_STD

logger = logging.getLogger(__name__)

# Window weights, longest window dominates. Sum to 1.0.
DEFAULT_WEIGHTS = {
    "5m": 0.05,
    "15m": 0.10,
    "1h": 0.15,
    "6h": 0.25,
    "24h": 0.45,
}

# log10(1 + liquidity) at which the ROI liquidity discount disappears (~$1M)
LIQUIDITY_SATURATION = 6.0

@dataclass(frozen=True)
class AdjustmentTerm:
    """
    One named step of the formula: when `applies(factors)` holds,
    the running value becomes `effect(value, factors)`.
    """
    name: str
    applies: Callable[[ScoreFactors], bool]
    effect: Callable[[float, ScoreFactors], float]

def _holder_bonus(score: float, f: ScoreFactors) -> float:
    return score + min(10, safe_log10(f.holder_count) * 2)

def _holder_growth(roi: float, f: ScoreFactors) -> float:
    return roi * (1 + safe_log10(f.holder_count) / 10)

# Applied in order after the base buy score
BUY_SCORE_ADJUSTMENTS: List[AdjustmentTerm] = [
    AdjustmentTerm("volatility_penalty", lambda f: f.std_dev > HIGH_VOLATILITY_STD, lambda s, f: s - 10),
    AdjustmentTerm("golden_cross", lambda f: f.golden_cross, lambda s, f: s + 5),
    AdjustmentTerm("death_cross", lambda f: f.death_cross, lambda s, f: s - 5),
    AdjustmentTerm("single_wallet_penalty", lambda f: f.single_holder_pct > SINGLE_WALLET_PCT, lambda s, f: s - 20),
    AdjustmentTerm("bundled_penalty", lambda f: f.top5_pct > BUNDLED_TOP5_PCT, lambda s, f: s - 20),
    AdjustmentTerm("holder_bonus", lambda f: f.holder_count > 1, _holder_bonus),
    AdjustmentTerm("social_boost", lambda f: f.mention_boost > 1, lambda s, f: s * f.mention_boost),
]

# Applied in order after the base ROI (weighted momentum x volume x liquidity x 24h buy ratio)
ROI_ADJUSTMENTS: List[AdjustmentTerm] = [
    AdjustmentTerm("holder_growth", lambda f: f.holder_count > 1, _holder_growth),
    AdjustmentTerm("golden_cross", lambda f: f.golden_cross, lambda r, f: r * 1.05),
    AdjustmentTerm("death_cross", lambda f: f.death_cross, lambda r, f: r * 0.95),
    AdjustmentTerm("social_boost", lambda f: f.mention_boost > 1, lambda r, f: r * f.mention_boost),
]

def format_number(value: Optional[float]) -> str:
    """Thousands separators, at most 3 decimals, trailing zeros dropped."""
    if value is None:
        return "N/A"
    text = f"{value:,.3f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text

def liquidity_multiplier(liquidity_factor: float) -> float:
    """0.75 for an empty pool, rising linearly in log10 terms to 1.0 at ~$1M."""
    return 0.75 + 0.25 * min(liquidity_factor, LIQUIDITY_SATURATION) / LIQUIDITY_SATURATION

class ScoringEngine:
    """
    Pure, synchronous scorer: (pool, holders, social) -> ScoreResult.
    Holds no state between calls and reads no global configuration.
    """
    def __init__(self,
                 weights: Dict[str, float] = None,
                 buy_adjustments: Sequence[AdjustmentTerm] = None,
                 roi_adjustments: Sequence[AdjustmentTerm] = None,
                 risk_engine: RiskEngine = None):
        self.weights = dict(DEFAULT_WEIGHTS if weights is None else weights)
        self.buy_adjustments = list(BUY_SCORE_ADJUSTMENTS if buy_adjustments is None else buy_adjustments)
        self.roi_adjustments = list(ROI_ADJUSTMENTS if roi_adjustments is None else roi_adjustments)
        self.risk_engine = risk_engine or RiskEngine()

    def score(self, pool: PoolSnapshot, holders: HolderMetrics = None, social: SocialMetrics = None) -> ScoreResult:
        """
        Full pipeline: Extraction -> Buy Score -> Predicted ROI -> Warnings -> Result.
        """
        holders = holders or HolderMetrics()
        social = social or SocialMetrics()

        # 1. Resolve every input to a finite number
        factors = ParameterExtractor.extract_all(pool, holders, social)

        # 2. Buy score (bounded)
        score_sum = self._score_sum(factors)
        base_score = score_sum * (1 + factors.volume_factor / 10) * factors.buy_sell_ratio_24h
        raw_score, buy_applied = self._apply(finite(base_score), self.buy_adjustments, factors)
        buy_score = self._clamp_score(raw_score)

        # 3. Predicted ROI (unbounded)
        base_roi = self._base_roi(factors)
        raw_roi, roi_applied = self._apply(base_roi, self.roi_adjustments, factors)
        if not math.isfinite(raw_roi):
            logger.warning(f"Non-finite ROI {raw_roi} replaced by 0")
            raw_roi = 0.0

        # 4. Warnings
        warnings = self.risk_engine.check_risks(factors)

        # 5. Build Result
        return ScoreResult(
            buy_score=buy_score,
            predicted_roi_pct=raw_roi,
            warnings=warnings,
            market_cap=format_number(pool.fdv),
            holders_display=str(holders.holder_count) if holders.holder_count > 0 else "N/A",
            top5_pct_display=f"{holders.top5_pct * 100:.2f}%",
            token_age_days_display=f"{holders.token_age_days:.1f}" if holders.token_age_days is not None else "N/A",
            details={
                "score_sum": score_sum,
                "base_score": base_score,
                "volume_factor": factors.volume_factor,
                "buy_sell_ratio_24h": factors.buy_sell_ratio_24h,
                "liquidity_factor": factors.liquidity_factor,
                "std_dev": factors.std_dev,
                "cross": factors.cross,
                "mention_boost": factors.mention_boost,
                "buy_adjustments": buy_applied,
                "roi_adjustments": roi_applied,
            },
        )

    def _score_sum(self, f: ScoreFactors) -> float:
        return sum(f.buy_ratios[w] * self.weights.get(w, 0.0) * 100 for w in WINDOWS)

    def _base_roi(self, f: ScoreFactors) -> float:
        roi = sum(f.price_changes[w] * self.weights.get(w, 0.0) for w in WINDOWS)
        roi *= 1 + f.volume_factor / 10
        roi *= liquidity_multiplier(f.liquidity_factor)
        roi *= f.buy_sell_ratio_24h
        return finite(roi)

    def _apply(self, value: float, terms: Sequence[AdjustmentTerm], f: ScoreFactors) -> Tuple[float, List[str]]:
        applied = []
        for term in terms:
            if not term.applies(f):
                continue
            updated = term.effect(value, f)
            if not math.isfinite(updated):
                # Neutral default for a broken term is "no change"
                logger.warning(f"Adjustment {term.name} produced {updated}; skipped")
                continue
            value = updated
            applied.append(term.name)
        return value, applied

    @staticmethod
    def _clamp_score(score: float) -> int:
        score = max(0.0, min(100.0, finite(score)))
        # Half away from zero (score is non-negative here)
        return int(math.floor(score + 0.5))
