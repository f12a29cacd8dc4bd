import aiohttp
import asyncio
import logging
from typing import Optional, Dict, Any
from scanner.config import Config
from scanner.errors import UpstreamError
from scanner.scraper.anti_block import AntiBlock

logger = logging.getLogger(__name__)

class UpstreamAPI:
    """
    Thin JSON-over-HTTP client shared by the pool, holder and social adapters.
    One GET per call, bounded by an explicit timeout, no retries.
    """
    def __init__(self, timeout: float = None, anti_block: AntiBlock = None):
        self.timeout = timeout if timeout is not None else Config.REQUEST_TIMEOUT
        self.anti_block = anti_block or AntiBlock()

    async def get_json(self, url: str, params: Optional[Dict[str, Any]] = None,
                       headers: Optional[Dict[str, str]] = None) -> Any:
        """
        Fetches `url` and decodes the JSON body.
        Raises UpstreamError on a non-200 status, transport error, timeout or undecodable body.
        """
        request_headers = self.anti_block.get_headers(headers)
        client_timeout = aiohttp.ClientTimeout(total=self.timeout)

        try:
            async with aiohttp.ClientSession(timeout=client_timeout) as session:
                async with session.get(url, params=params, headers=request_headers) as response:
                    if response.status != 200:
                        raise UpstreamError(f"Status {response.status}")
                    # Some providers answer JSON as text/plain
                    return await response.json(content_type=None)
        except asyncio.TimeoutError:
            raise UpstreamError(f"Timed out after {self.timeout}s")
        except aiohttp.ClientError as e:
            raise UpstreamError(str(e) or type(e).__name__)
        except ValueError as e:
            raise UpstreamError(f"Invalid JSON: {e}")
