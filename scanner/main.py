import asyncio
import json
import logging
import re
import time
from typing import Any, Callable, Dict, Optional, Tuple

import colorama
import typer
from colorama import Fore, Style

from scanner.config import Config
from scanner.errors import InputError, ScanError
from scanner.models.token import ScoreResult, SocialMetrics
from scanner.scraper.api import UpstreamAPI
from scanner.scraper.pool_source import PoolSourceAdapter
from scanner.analyzer.holders import HolderAnalyzer
from scanner.analyzer.social import SocialSignalCollector
from scanner.analyzer.scoring import ScoringEngine

logger = logging.getLogger("Scanner")

# Solana mint: base58, 32-44 chars
ADDRESS_PATTERN = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")

class TokenScanner:
    """
    Runs one scan per call: pool source -> (holders | social) -> scoring engine.
    Keeps no per-scan state, so one instance can serve concurrent scans.
    """
    def __init__(self,
                 sources: Dict[str, list] = None,
                 api: UpstreamAPI = None,
                 holder_analyzer: HolderAnalyzer = None,
                 social_collector: SocialSignalCollector = None,
                 engine: ScoringEngine = None,
                 clock: Callable[[], float] = None):
        self.sources = sources or Config.POOL_SOURCES
        self.api = api or UpstreamAPI(timeout=Config.REQUEST_TIMEOUT)
        self.holder_analyzer = holder_analyzer or HolderAnalyzer(
            base_url=Config.SOLSCAN_API_URL,
            api_key=Config.SOLSCAN_API_KEY,
            limit=Config.TOP_HOLDERS_LIMIT,
            api=self.api,
        )
        self.social_collector = social_collector or SocialSignalCollector(
            base_url=Config.SOCIAL_API_URL,
            api_token=Config.SOCIAL_API_TOKEN,
            enabled=Config.SOCIAL_ENABLED,
            api=self.api,
        )
        self.engine = engine or ScoringEngine()
        self.clock = clock or time.time

    @staticmethod
    def validate_address(token_address: Optional[str]) -> str:
        address = (token_address or "").strip()
        if not address:
            raise InputError("Token address is required.")
        if not ADDRESS_PATTERN.match(address):
            raise InputError(f"Malformed token address: {address}")
        return address

    def pool_adapter(self, source: str) -> PoolSourceAdapter:
        if source not in self.sources:
            raise InputError(f"Unknown source '{source}'. Use one of: {', '.join(self.sources)}")
        return PoolSourceAdapter(source, self.sources[source], api=self.api)

    async def scan(self, token_address: str, source: str = Config.DEFAULT_SOURCE) -> ScoreResult:
        """
        Raises InputError or UpstreamUnavailable; enrichment failures only soften the score.
        """
        # 1. Validate before touching any upstream
        address = self.validate_address(token_address)
        adapter = self.pool_adapter(source)

        # 2. Canonical pool (ranked fallback, sequential)
        pool = await adapter.fetch_canonical_pool(address)

        # 3. Enrichments (Concurrent); cancelling the scan cancels both
        since = int(self.clock()) - Config.SOCIAL_LOOKBACK_SECONDS
        holders, mentions = await asyncio.gather(
            self.holder_analyzer.fetch_holder_metrics(address),
            self.social_collector.fetch_mention_count(address, since),
        )

        # 4. Score
        result = self.engine.score(pool, holders, SocialMetrics(mention_count=mentions))
        logger.info(f"Scanned {address} via {source}: score {result.buy_score}, "
                    f"ROI {result.predicted_roi}, {len(result.warnings)} warnings")
        return result

    async def scan_with_envelope(self, token_address: str, source: str = Config.DEFAULT_SOURCE) -> Tuple[Optional[ScoreResult], Dict[str, Any]]:
        """
        Runs scan() and maps the outcome to the JSON envelope.
        The result is None when the scan failed.
        """
        try:
            result = await self.scan(token_address, source)
        except ScanError as e:
            logger.warning(f"Scan of {token_address!r} via {source} failed: {e}")
            return None, {"success": False, "error": str(e)}
        return result, result.to_envelope()

    async def scan_envelope(self, token_address: str, source: str = Config.DEFAULT_SOURCE) -> Dict[str, Any]:
        """
        Same as scan() but always returns the JSON envelope.
        """
        _, envelope = await self.scan_with_envelope(token_address, source)
        return envelope


app = typer.Typer(add_completion=False)

def _print_report(address: str, source: str, result: ScoreResult):
    # Decide color based on score band
    if result.buy_score >= Config.SCORE_STRONG:
        color = Fore.GREEN
    elif result.buy_score >= Config.SCORE_WEAK:
        color = Fore.YELLOW
    else:
        color = Fore.RED

    print(f"\n{color}{'='*50}")
    print(f"{Style.BRIGHT}Token: {address} ({source})")
    print(f"{color}Buy Score: {result.buy_score}/100")
    print(f"{Fore.WHITE}Predicted ROI: {result.predicted_roi}")
    print(f"MC: ${result.market_cap} | Holders: {result.holders_display} | Top 5: {result.top5_pct_display}")
    print(f"Age: {result.token_age_days_display}d")
    print(f"Warnings: {', '.join(result.warnings) if result.warnings else 'None'}")
    if result.is_exit_signal(Config.SCORE_WEAK):
        print(f"{Fore.RED}{Style.BRIGHT}EXIT SIGNAL: score < {Config.SCORE_WEAK} or negative ROI")
    print(f"{color}{'='*50}\n")

@app.command()
def scan(
    address: str = typer.Argument(..., help="Token mint address"),
    source: str = typer.Option(Config.DEFAULT_SOURCE, "--source", "-s", help="pumpfun | dexscreener"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw result envelope"),
):
    """Score a token: buy score, predicted ROI and risk warnings."""
    logging.basicConfig(
        level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    colorama.init(autoreset=True)

    result, envelope = asyncio.run(TokenScanner().scan_with_envelope(address, source))

    if as_json:
        print(json.dumps(envelope, indent=2))
    elif result is not None:
        _print_report(address.strip(), source, result)
    else:
        print(f"{Fore.RED}Scan failed: {envelope['error']}")

    if not envelope["success"]:
        raise typer.Exit(code=1)

def main():
    app()

if __name__ == "__main__":
    main()
