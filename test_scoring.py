import logging
import math
import os
import random
import sys

import pytest

sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from scanner.models.token import WINDOWS, PoolSnapshot, TxnCounts, HolderMetrics, SocialMetrics
from scanner.analyzer.parameters import ParameterExtractor, safe_log10
from scanner.analyzer.scoring import ScoringEngine, AdjustmentTerm, liquidity_multiplier, format_number

logging.basicConfig(level=logging.INFO)

def scenario_a_pool(**overrides):
    # 60/40 buys in every window, +5% everywhere, $99 volume, ~$1M liquidity
    pool = PoolSnapshot(
        liquidity_usd=999999,
        fdv=250000,
        volume={"24h": 99},
        price_change={w: 5 for w in WINDOWS},
        txns={w: TxnCounts(60, 40) for w in WINDOWS},
    )
    for key, value in overrides.items():
        setattr(pool, key, value)
    return pool

@pytest.fixture
def engine():
    return ScoringEngine()

def test_scenario_a(engine):
    result = engine.score(scenario_a_pool(), HolderMetrics(), SocialMetrics())

    assert result.details["volume_factor"] == pytest.approx(2.0)
    assert result.details["score_sum"] == pytest.approx(60.0)
    assert result.details["base_score"] == pytest.approx(43.2)
    assert result.buy_score == 43
    assert result.predicted_roi == "3.60%"
    assert result.warnings == []
    assert result.details["buy_adjustments"] == []

def test_scenario_b_warning_order(engine):
    pool = PoolSnapshot(
        liquidity_usd=500,
        price_change={w: -60 for w in WINDOWS},
        risk_labels={"honeypot"},
    )
    result = engine.score(pool, HolderMetrics(), SocialMetrics())
    assert result.warnings == ["Low liquidity", "Possible honeypot", "Down >50% in 24h"]

def test_full_warning_order(engine):
    pool = PoolSnapshot(
        liquidity_usd=10,
        price_change={"5m": 40, "15m": 0, "1h": 0, "6h": 0, "24h": 1500},
        risk_labels={"honeypot", "freezable", "mintable"},
    )
    holders = HolderMetrics(total_supply=1e9, single_holder_pct=0.5, top5_pct=0.9, holder_count=5)
    result = engine.score(pool, holders, SocialMetrics())
    assert result.warnings == [
        "Low liquidity",
        "Mint authority not renounced",
        "Freeze authority not renounced",
        "Possible honeypot",
        "Single wallet concentration",
        "Bundled distribution",
        "High volatility",
        "Golden cross",
        "Up >1000% in 24h",
    ]
    assert len(set(result.warnings)) == len(result.warnings)

def test_neutral_prior_without_trades(engine):
    pool = PoolSnapshot(liquidity_usd=5000, volume={"24h": 99})
    result = engine.score(pool, HolderMetrics(), SocialMetrics())

    # (0.5 x 100) x (1 + 2/10) x 0.5
    assert result.details["base_score"] == pytest.approx(30.0)
    assert result.buy_score == 30
    assert result.predicted_roi_pct == 0.0

def test_bundled_warning_iff_top5_above_threshold(engine):
    at_limit = engine.score(scenario_a_pool(), HolderMetrics(top5_pct=0.20), SocialMetrics())
    above = engine.score(scenario_a_pool(), HolderMetrics(top5_pct=0.2001), SocialMetrics())
    assert "Bundled distribution" not in at_limit.warnings
    assert "Bundled distribution" in above.warnings

def test_concentration_penalties_stack(engine):
    holders = HolderMetrics(total_supply=1e6, single_holder_pct=0.05, top5_pct=0.30, holder_count=1)
    result = engine.score(scenario_a_pool(), holders, SocialMetrics())
    # 43.2 - 20 - 20
    assert result.buy_score == 3
    assert result.details["buy_adjustments"] == ["single_wallet_penalty", "bundled_penalty"]

def test_holder_bonus_and_roi_growth(engine):
    result = engine.score(scenario_a_pool(), HolderMetrics(holder_count=100), SocialMetrics())
    # +min(10, log10(100) * 2) = +4 ; ROI x (1 + 2/10)
    assert result.buy_score == 47
    assert result.predicted_roi == "4.32%"
    assert result.holders_display == "100"

def test_mention_boost(engine):
    result = engine.score(scenario_a_pool(), HolderMetrics(), SocialMetrics(mention_count=200))
    assert result.details["mention_boost"] == pytest.approx(1.10)
    assert result.buy_score == 48
    assert result.predicted_roi == "3.96%"

def test_mention_boost_is_capped():
    assert ParameterExtractor.mention_boost(0) == 1.0
    assert ParameterExtractor.mention_boost(20) == pytest.approx(1.01)
    assert ParameterExtractor.mention_boost(10_000) == pytest.approx(1.10)

def test_golden_and_death_cross(engine):
    golden = scenario_a_pool(price_change={"5m": 10, "15m": 2, "1h": 2, "6h": 2, "24h": 2})
    death = scenario_a_pool(price_change={"5m": 2, "15m": 2, "1h": 10, "6h": 2, "24h": 2})

    g = engine.score(golden, HolderMetrics(), SocialMetrics())
    d = engine.score(death, HolderMetrics(), SocialMetrics())

    assert g.details["buy_adjustments"] == ["golden_cross"]
    assert g.details["roi_adjustments"] == ["golden_cross"]
    assert "Golden cross" in g.warnings and "Death cross" not in g.warnings
    assert d.details["buy_adjustments"] == ["death_cross"]
    assert "Death cross" in d.warnings
    assert g.buy_score - d.buy_score == 10

def test_volatility_penalty(engine):
    pool = scenario_a_pool(price_change={"5m": 0, "15m": 0, "1h": 0, "6h": 0, "24h": 60})
    result = engine.score(pool, HolderMetrics(), SocialMetrics())
    assert result.details["std_dev"] == pytest.approx(24.0)
    assert "volatility_penalty" in result.details["buy_adjustments"]
    assert "High volatility" in result.warnings

def test_score_is_clamped():
    engine = ScoringEngine()
    pool = PoolSnapshot(
        liquidity_usd=1e7,
        volume={"24h": 1e9},
        txns={w: TxnCounts(100, 0) for w in WINDOWS},
    )
    assert engine.score(pool).buy_score == 100

    dumped = PoolSnapshot(liquidity_usd=1, txns={w: TxnCounts(0, 100) for w in WINDOWS})
    holders = HolderMetrics(single_holder_pct=0.9, top5_pct=0.9)
    assert engine.score(dumped, holders).buy_score == 0

def test_rounds_half_away_from_zero():
    assert ScoringEngine._clamp_score(42.5) == 43
    assert ScoringEngine._clamp_score(0.5) == 1
    assert ScoringEngine._clamp_score(-3) == 0
    assert ScoringEngine._clamp_score(float("nan")) == 0

def test_score_bounds_and_determinism(engine):
    rng = random.Random(7)
    for _ in range(200):
        pool = PoolSnapshot(
            liquidity_usd=rng.choice([0, 1, 500, 1e4, 1e9, 1e300]),
            volume={"24h": rng.choice([0, 10, 1e6, 1e300])},
            price_change={w: rng.uniform(-100, 5000) for w in WINDOWS if rng.random() > 0.3},
            txns={w: TxnCounts(rng.randint(0, 500), rng.randint(0, 500)) for w in WINDOWS if rng.random() > 0.3},
        )
        holders = HolderMetrics(
            single_holder_pct=rng.random(),
            top5_pct=rng.random(),
            holder_count=rng.randint(0, 50),
        )
        social = SocialMetrics(mention_count=rng.randint(0, 1000))

        first = engine.score(pool, holders, social)
        second = engine.score(pool, holders, social)

        assert isinstance(first.buy_score, int)
        assert 0 <= first.buy_score <= 100
        assert math.isfinite(first.predicted_roi_pct)
        assert first == second

def test_overflowing_roi_is_neutralised(engine):
    # 1e308 weighted change times a volume factor of ~31 overflows to inf
    pool = PoolSnapshot(liquidity_usd=1e6, volume={"24h": 1e300}, price_change={w: 1e308 for w in WINDOWS})
    result = engine.score(pool)
    assert result.details["volume_factor"] == pytest.approx(300.0)
    assert result.predicted_roi_pct == 0.0
    assert result.predicted_roi == "0.00%"
    assert 0 <= result.buy_score <= 100

def test_broken_adjustment_term_is_skipped():
    broken = AdjustmentTerm("broken", lambda f: True, lambda s, f: float("inf"))
    engine = ScoringEngine(buy_adjustments=[broken], roi_adjustments=[])
    result = engine.score(scenario_a_pool())
    assert result.buy_score == 43
    assert result.details["buy_adjustments"] == []

def test_formula_variant_as_data():
    # Older revision: 24h weighted 0.40, 6h 0.30, no social term
    weights = {"5m": 0.05, "15m": 0.10, "1h": 0.15, "6h": 0.30, "24h": 0.40}
    engine = ScoringEngine(weights=weights)
    result = engine.score(scenario_a_pool())
    assert result.details["score_sum"] == pytest.approx(60.0)
    assert result.buy_score == 43

def test_liquidity_multiplier_monotonic_and_saturating():
    liquidities = [0, 1, 10, 999, 1e4, 1e5, 999999, 1e6, 1e8, 1e12]
    multipliers = [liquidity_multiplier(ParameterExtractor.liquidity_factor(l)) for l in liquidities]
    assert multipliers == sorted(multipliers)
    assert multipliers[0] == pytest.approx(0.75)
    assert multipliers[-1] == pytest.approx(1.0)
    assert liquidity_multiplier(ParameterExtractor.liquidity_factor(999999)) == pytest.approx(1.0)

def test_guarded_log10():
    assert safe_log10(0) == 0.0
    assert safe_log10(-5) == 0.0
    assert safe_log10(float("nan")) == 0.0
    assert safe_log10(float("inf")) == 0.0
    assert safe_log10(100) == pytest.approx(2.0)

def test_display_fields(engine):
    holders = HolderMetrics(total_supply=1e9, token_age_days=3.04, top5_pct=0.1234, holder_count=0)
    result = engine.score(scenario_a_pool(fdv=1234567.5), holders)
    assert result.market_cap == "1,234,567.5"
    assert result.top5_pct_display == "12.34%"
    assert result.token_age_days_display == "3.0"
    assert result.holders_display == "N/A"

    unknown = engine.score(scenario_a_pool(fdv=None))
    assert unknown.market_cap == "N/A"
    assert unknown.token_age_days_display == "N/A"
    assert unknown.top5_pct_display == "0.00%"

def test_format_number():
    assert format_number(1000) == "1,000"
    assert format_number(0.1234) == "0.123"
    assert format_number(0) == "0"

def test_envelope_and_exit_signal(engine):
    result = engine.score(scenario_a_pool())
    envelope = result.to_envelope()
    assert envelope == {
        "success": True,
        "marketCap": "250,000",
        "buyScore": "43",
        "predictedRoi": "3.60%",
        "holders": "N/A",
        "top5Pct": "0.00%",
        "tokenAgeDays": "N/A",
        "warnings": [],
    }
    assert result.is_exit_signal() is False

    falling = engine.score(scenario_a_pool(price_change={w: -5 for w in WINDOWS}))
    assert falling.predicted_roi == "-3.60%"
    assert falling.is_exit_signal() is True
