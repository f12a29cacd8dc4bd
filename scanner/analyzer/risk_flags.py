from typing import Callable, List, Sequence, Tuple
from scanner.analyzer.parameters import ScoreFactors

LOW_LIQUIDITY_USD = 1000
SINGLE_WALLET_PCT = 0.04
BUNDLED_TOP5_PCT = 0.20
HIGH_VOLATILITY_STD = 10
DUMP_24H_PCT = -50
PUMP_24H_PCT = 1000

WarningRule = Tuple[str, Callable[[ScoreFactors], bool]]

# Evaluated top to bottom; each rule adds at most one warning.
WARNING_RULES: List[WarningRule] = [
    ("Low liquidity", lambda f: f.liquidity_usd < LOW_LIQUIDITY_USD),
    ("Mint authority not renounced", lambda f: "mintable" in f.risk_labels),
    ("Freeze authority not renounced", lambda f: "freezable" in f.risk_labels),
    ("Possible honeypot", lambda f: "honeypot" in f.risk_labels),
    ("Single wallet concentration", lambda f: f.single_holder_pct > SINGLE_WALLET_PCT),
    ("Bundled distribution", lambda f: f.top5_pct > BUNDLED_TOP5_PCT),
    ("High volatility", lambda f: f.std_dev > HIGH_VOLATILITY_STD),
    ("Golden cross", lambda f: f.golden_cross),
    ("Death cross", lambda f: f.death_cross),
    ("Down >50% in 24h", lambda f: f.price_changes["24h"] < DUMP_24H_PCT),
    ("Up >1000% in 24h", lambda f: f.price_changes["24h"] > PUMP_24H_PCT),
]

class RiskEngine:
    def __init__(self, rules: Sequence[WarningRule] = None):
        self.rules = list(WARNING_RULES if rules is None else rules)

    def check_risks(self, factors: ScoreFactors) -> List[str]:
        """
        Evaluates the warning rules in order. Messages are unique, so the result
        has no duplicates and keeps rule order.
        """
        flags = []
        for message, applies in self.rules:
            if applies(factors) and message not in flags:
                flags.append(message)
        return flags
