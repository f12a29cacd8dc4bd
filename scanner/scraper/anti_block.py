import random
from scanner.config import Config

class AntiBlock:
    def __init__(self, rotate: bool = None):
        # Hardcoded list to avoid fake_useragent fetch failures/limitations
        self.user_agents = [
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
            "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:125.0) Gecko/20100101 Firefox/125.0",
            "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.4 Safari/605.1.15",
            "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
        ]
        self.rotate = Config.USER_AGENT_ROTATION if rotate is None else rotate

    def get_headers(self, extra: dict = None) -> dict:
        """
        JSON request headers with a (possibly random) User-Agent.
        """
        ua = random.choice(self.user_agents) if self.rotate else self.user_agents[0]

        headers = {
            "Accept": "application/json,text/plain;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
            "User-Agent": ua
        }
        if extra:
            headers.update(extra)
        return headers
