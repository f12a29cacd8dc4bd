import logging
from scanner.errors import UpstreamError
from scanner.scraper.api import UpstreamAPI

logger = logging.getLogger("Social")

class SocialSignalCollector:
    """
    Counts recent Reddit comments mentioning a token (Pushshift-style search API).
    All settings are passed in; nothing is read from the environment here.
    """
    SEARCH_PATH = "/reddit/comment/search"
    PAGE_SIZE = 500

    def __init__(self, base_url: str, api_token: str = "", enabled: bool = True, api: UpstreamAPI = None):
        self.base_url = base_url.rstrip("/")
        self.enabled = enabled and bool(self.base_url)
        self.headers = {"Authorization": f"Bearer {api_token}"} if api_token else None
        self.api = api or UpstreamAPI()

    async def fetch_mention_count(self, token_address: str, since_epoch: int) -> int:
        """
        Number of mentions since `since_epoch`. Returns 0 on any failure.
        """
        if not self.enabled:
            return 0

        params = {"q": token_address, "after": int(since_epoch), "size": self.PAGE_SIZE}
        try:
            data = await self.api.get_json(f"{self.base_url}{self.SEARCH_PATH}", params=params, headers=self.headers)
        except UpstreamError as e:
            logger.warning(f"Mention search failed for {token_address}: {e}")
            return 0

        if isinstance(data, dict):
            data = data.get("data")
        if not isinstance(data, list):
            logger.warning(f"Unexpected mention search payload for {token_address}")
            return 0
        return len(data)
