import os

class Config:
    # --- POOL SOURCES ---
    # Ranked endpoint chains, tried in order until one returns a non-empty pool list.
    POOL_SOURCES = {
        "pumpfun": [
            "https://frontend-api-v3.pump.fun/coins/{address}",
            "https://frontend-api-v2.pump.fun/coins/{address}",
            "https://frontend-api.pump.fun/coins/{address}",
        ],
        "dexscreener": [
            "https://api.dexscreener.com/latest/dex/tokens/{address}",
            "https://api.dexscreener.com/token-pairs/v1/solana/{address}",
            "https://api.dexscreener.com/latest/dex/pairs/solana/{address}",
        ],
    }
    DEFAULT_SOURCE = "pumpfun"

    # --- SCRAPER ---
    REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "5"))
    USER_AGENT_ROTATION = True

    # --- HOLDERS (Solscan) ---
    SOLSCAN_API_URL = os.getenv("SOLSCAN_API_URL", "https://public-api.solscan.io")
    SOLSCAN_API_KEY = os.getenv("SOLSCAN_API_KEY", "")
    TOP_HOLDERS_LIMIT = 50

    # --- SOCIAL (Reddit comment search) ---
    SOCIAL_ENABLED = os.getenv("SOCIAL_ENABLED", "1") not in ("0", "false", "False")
    SOCIAL_API_URL = os.getenv("SOCIAL_API_URL", "https://api.pushshift.io")
    SOCIAL_API_TOKEN = os.getenv("SOCIAL_API_TOKEN", "")
    SOCIAL_LOOKBACK_SECONDS = 86400

    # --- SCORE BANDS (CLI colouring) ---
    SCORE_STRONG = 70
    SCORE_WEAK = 40 # Monitor alerts below this

    # --- SYSTEM ---
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
