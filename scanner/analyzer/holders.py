import asyncio
import logging
import time
from typing import Any, Callable, Dict, List, Optional
from scanner.config import Config
from scanner.errors import UpstreamError
from scanner.models.token import HolderMetrics
from scanner.analyzer.parameters import safe_float, safe_int
from scanner.scraper.api import UpstreamAPI

logger = logging.getLogger("Holders")

SECONDS_PER_DAY = 86400
MAX_DECIMALS = 30 # Anything above is junk, not a real mint

def _decimals(val: Any) -> Optional[int]:
    d = safe_int(val)
    if d is None or d > MAX_DECIMALS:
        return None
    return d

def _fraction(val: float) -> float:
    return max(0.0, min(1.0, val))

class HolderAnalyzer:
    """
    Token metadata + top holder list from a Solscan-style API.
    Never raises: a failed call just leaves its fields at the "unknown" defaults.
    """
    def __init__(self, base_url: str = None, api_key: str = None, limit: int = None,
                 api: UpstreamAPI = None, now: Callable[[], float] = None):
        self.base_url = (base_url or Config.SOLSCAN_API_URL).rstrip("/")
        self.limit = limit or Config.TOP_HOLDERS_LIMIT
        self.api = api or UpstreamAPI()
        self.now = now or time.time
        api_key = Config.SOLSCAN_API_KEY if api_key is None else api_key
        self.headers = {"token": api_key} if api_key else None

    async def fetch_holder_metrics(self, token_address: str) -> HolderMetrics:
        meta, holders = await asyncio.gather(
            self.get_token_meta(token_address),
            self.get_top_holders(token_address),
        )
        metrics = self.compute_metrics(meta, holders)
        logger.debug(f"Holder metrics for {token_address}: {metrics}")
        return metrics

    async def get_token_meta(self, token_address: str) -> Optional[Dict[str, Any]]:
        url = f"{self.base_url}/token/meta"
        try:
            data = await self.api.get_json(url, params={"tokenAddress": token_address}, headers=self.headers)
        except UpstreamError as e:
            logger.warning(f"Token meta unavailable for {token_address}: {e}")
            return None
        if isinstance(data, dict) and isinstance(data.get("data"), dict):
            data = data["data"]
        return data if isinstance(data, dict) else None

    async def get_top_holders(self, token_address: str) -> Optional[List[Dict[str, Any]]]:
        url = f"{self.base_url}/token/holders"
        params = {"tokenAddress": token_address, "offset": 0, "limit": self.limit}
        try:
            data = await self.api.get_json(url, params=params, headers=self.headers)
        except UpstreamError as e:
            logger.warning(f"Top holders unavailable for {token_address}: {e}")
            return None

        # bare list | {"data": [...]} | {"data": {"items": [...]}}
        if isinstance(data, dict):
            data = data.get("data")
            if isinstance(data, dict):
                data = data.get("items")
        if not isinstance(data, list):
            return None
        return [h for h in data if isinstance(h, dict)][:self.limit]

    def compute_metrics(self, meta: Optional[Dict[str, Any]], holders: Optional[List[Dict[str, Any]]]) -> HolderMetrics:
        metrics = HolderMetrics()
        token_decimals = None

        if meta:
            created = safe_float(meta.get("createTime", meta.get("created_time")))
            if created is not None and created > 0:
                metrics.token_age_days = max(0.0, (self.now() - created) / SECONDS_PER_DAY)

            amount = meta.get("tokenAmount")
            if isinstance(amount, dict):
                raw_supply = safe_float(amount.get("amount"))
                token_decimals = _decimals(amount.get("decimals"))
            else:
                raw_supply = safe_float(meta.get("supply"))
                token_decimals = _decimals(meta.get("decimals"))

            if raw_supply is not None and raw_supply > 0:
                metrics.total_supply = raw_supply / 10 ** (token_decimals or 0)

        if holders:
            metrics.holder_count = len(holders)

            if metrics.total_supply:
                amounts = [self._ui_amount(h, token_decimals) for h in holders]
                metrics.single_holder_pct = _fraction(amounts[0] / metrics.total_supply)
                metrics.top5_pct = _fraction(sum(amounts[:5]) / metrics.total_supply)

        return metrics

    @staticmethod
    def _ui_amount(holder: Dict[str, Any], fallback_decimals: Optional[int]) -> float:
        amount = safe_float(holder.get("amount")) or 0.0
        decimals = _decimals(holder.get("decimals"))
        if decimals is None:
            decimals = fallback_decimals or 0
        return max(0.0, amount / 10 ** decimals)
