import logging
from typing import Any, List, Optional
from scanner.config import Config
from scanner.analyzer.parameters import safe_float, safe_int
from scanner.errors import InputError, UpstreamError, UpstreamUnavailable
from scanner.models.token import WINDOWS, PoolSnapshot, TxnCounts
from scanner.scraper.api import UpstreamAPI

logger = logging.getLogger(__name__)

# Canonical window -> spellings seen across providers
WINDOW_ALIASES = {
    "5m": ("5m", "m5"),
    "15m": ("15m", "m15"),
    "1h": ("1h", "h1"),
    "6h": ("6h", "h6"),
    "24h": ("24h", "h24"),
}

# Fields a provider may wrap its pool list (or a single pool) in
LIST_FIELDS = ("pairs", "pools", "data", "result")
SINGLE_FIELDS = ("pair", "pool")

MARKET_CAP_FIELDS = ("fdv", "marketCap", "usd_market_cap", "market_cap")
POOL_HINT_FIELDS = ("liquidity", "liquidity_usd", "liquidityUsd", "priceChange", "txns", "volume", "pairAddress")

# Boolean authority flags that some providers report instead of labels
FLAG_LABELS = {
    "mint_enabled": "mintable",
    "freeze_enabled": "freezable",
}

def extract_pool_list(payload: Any) -> List[dict]:
    """
    Unwraps the provider payload into a list of raw pool dicts.
    Accepts a bare list, an object wrapping the list, or an object wrapping a single pool.
    """
    if isinstance(payload, list):
        return [p for p in payload if isinstance(p, dict)]
    if not isinstance(payload, dict):
        return []

    for key in LIST_FIELDS:
        value = payload.get(key)
        if isinstance(value, list):
            return [p for p in value if isinstance(p, dict)]

    for key in SINGLE_FIELDS:
        value = payload.get(key)
        if isinstance(value, dict):
            # e.g. pump.fun keeps usd_market_cap next to the pool, not inside it
            merged = {k: v for k, v in payload.items()
                      if k not in SINGLE_FIELDS and not isinstance(v, (dict, list))}
            merged.update(value)
            return [merged]

    if any(k in payload for k in POOL_HINT_FIELDS):
        return [payload]
    return []

class PoolSourceAdapter:
    """
    Fetches pools for a token from one source's ranked endpoint chain and
    reduces them to the single most liquid PoolSnapshot.
    """
    def __init__(self, source: str, endpoints: List[str] = None, api: UpstreamAPI = None):
        if endpoints is None:
            endpoints = Config.POOL_SOURCES.get(source)
            if endpoints is None:
                raise InputError(f"Unknown source '{source}'. Use one of: {', '.join(Config.POOL_SOURCES)}")
        self.source = source
        self.endpoints = list(endpoints)
        self.api = api or UpstreamAPI()

    async def fetch_canonical_pool(self, token_address: str) -> PoolSnapshot:
        pools = await self.fetch_pools(token_address)
        snapshots = [self.normalize_pool(raw) for raw in pools]
        best = self.select_best_pool(snapshots)
        logger.info(f"{self.source}: picked pool {best.pair_address or '?'} "
                    f"(liq ${best.liquidity_usd:,.0f}) out of {len(snapshots)}")
        return best

    async def fetch_pools(self, token_address: str) -> List[dict]:
        """
        Tries each endpoint in order; the first one yielding a non-empty pool list wins.
        """
        last_error = "no endpoints configured"

        for template in self.endpoints:
            url = template.format(address=token_address)
            try:
                payload = await self.api.get_json(url)
            except UpstreamError as e:
                last_error = str(e)
                logger.warning(f"{self.source} endpoint {url} failed: {e}")
                continue

            pools = extract_pool_list(payload)
            if not pools:
                last_error = "No pools returned"
                logger.warning(f"{self.source} endpoint {url} returned no pools")
                continue
            return pools

        raise UpstreamUnavailable(f"All {self.source} endpoints failed: {last_error}")

    @staticmethod
    def select_best_pool(snapshots: List[PoolSnapshot]) -> PoolSnapshot:
        # max() keeps the first of equal keys, so earlier pools win ties
        return max(snapshots, key=lambda s: s.liquidity_usd)

    def normalize_pool(self, data: dict) -> PoolSnapshot:
        """
        Converts a raw provider dict to PoolSnapshot.
        """
        snapshot = PoolSnapshot(
            liquidity_usd=self._liquidity(data) or 0.0,
            fdv=self._market_cap(data),
            source=self.source,
            pair_address=str(data.get("pairAddress") or data.get("pool_address") or data.get("address") or ""),
        )

        for window in WINDOWS:
            vol = self._window_value(data, "volume", ("volume_{w}_usd", "volume_{w}"), window)
            if vol is not None:
                snapshot.volume[window] = vol

            change = self._window_value(data, "priceChange", ("price_change_{w}",), window)
            if change is not None:
                snapshot.price_change[window] = change

            txns = self._window_txns(data, window)
            if txns is not None:
                snapshot.txns[window] = txns

        snapshot.risk_labels = self._risk_labels(data)
        return snapshot

    def _liquidity(self, data: dict) -> Optional[float]:
        liq = data.get("liquidity")
        if isinstance(liq, dict):
            value = safe_float(liq.get("usd"))
        else:
            value = safe_float(liq)
        if value is None:
            value = safe_float(data.get("liquidity_usd"))
        if value is None:
            value = safe_float(data.get("liquidityUsd"))
        return value

    def _market_cap(self, data: dict) -> Optional[float]:
        for key in MARKET_CAP_FIELDS:
            value = safe_float(data.get(key))
            if value is not None:
                return value
        return None

    def _window_value(self, data: dict, nested_key: str, flat_patterns: tuple, window: str) -> Optional[float]:
        nested = data.get(nested_key)
        if isinstance(nested, dict):
            for alias in WINDOW_ALIASES[window]:
                value = safe_float(nested.get(alias))
                if value is not None:
                    return value
        for pattern in flat_patterns:
            value = safe_float(data.get(pattern.format(w=window)))
            if value is not None:
                return value
        return None

    def _window_txns(self, data: dict, window: str) -> Optional[TxnCounts]:
        txns = data.get("txns")
        if not isinstance(txns, dict):
            return None
        for alias in WINDOW_ALIASES[window]:
            entry = txns.get(alias)
            if not isinstance(entry, dict):
                continue
            buys = safe_int(entry.get("buys"))
            sells = safe_int(entry.get("sells"))
            if buys is None and sells is None:
                continue
            return TxnCounts(buys=buys or 0, sells=sells or 0)
        return None

    def _risk_labels(self, data: dict) -> set:
        labels = set()
        raw_labels = data.get("labels")
        if isinstance(raw_labels, list):
            labels.update(str(l).strip().lower() for l in raw_labels if isinstance(l, str))
        for flag, label in FLAG_LABELS.items():
            if data.get(flag) is True:
                labels.add(label)
        return labels
