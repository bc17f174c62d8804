# pricewise/config/settings.py

"""Central configuration for the pricewise tracker."""

import os
from pathlib import Path

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Central configuration for the pricewise tracker."""

    # --- Scraping ---
    REQUEST_DELAY: float = 2.0          # Seconds between outbound requests
    REQUEST_TIMEOUT: int = 15           # Seconds before a request times out
    CAPTCHA_KEYWORDS: list[str] = [
        "captcha",
        "enter the characters you see below",
        "verify you are human",
        "unusual traffic",
        "automated requests",
    ]

    # --- Extraction ---
    OUT_OF_STOCK_PHRASES: list[str] = [
        "out of stock",
        "outofstock",
        "currently unavailable",
        "sold out",
    ]

    # --- Matching ---
    SIMILARITY_THRESHOLD: float = 0.3   # Minimum score to accept a listing
    DUPLICATE_SIMILARITY: float = 0.8   # Same-platform duplicate cutoff
    MAX_QUERIES_PER_VENDOR: int = 2
    MAX_LISTINGS_PER_PAGE: int = 5

    # --- Pricing ---
    DEFAULT_CURRENCY: str = "INR"
    HISTORY_WINDOW: int = 20            # Records handed to the recommender

    # --- Recommendation ---
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    OPENAI_TEMPERATURE: float = 0.3
    OPENAI_MAX_TOKENS: int = 500
    FALLBACK_CONFIDENCE: int = 75

    # --- Browser Impersonation ---
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome131"
    DEFAULT_HEADERS: dict[str, str] = {
        "Accept": (
            "text/html,application/xhtml+xml,"
            "application/xml;q=0.9,image/avif,"
            "image/webp,image/apng,*/*;q=0.8"
        ),
        "Accept-Language": "en-IN,en;q=0.9",
        "sec-ch-ua": (
            '"Google Chrome";v="131", '
            '"Chromium";v="131", '
            '"Not_A Brand";v="24"'
        ),
        "sec-ch-ua-mobile": "?0",
        "sec-ch-ua-platform": '"Windows"',
        "sec-fetch-dest": "document",
        "sec-fetch-mode": "navigate",
        "sec-fetch-site": "none",
        "sec-fetch-user": "?1",
        "Upgrade-Insecure-Requests": "1",
    }

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    SELECTORS_PATH: Path = BASE_DIR / "pricewise" / "config" / "selectors.json"
    DB_PATH: Path = Path(
        os.getenv(
            "PRICEWISE_DB_PATH",
            str(BASE_DIR / "data" / "pricewise.db"),
        )
    )
    LOGS_DIR: Path = BASE_DIR / "logs"

    # --- Vendors ---
    # Sources a user may submit product URLs from
    TRACKABLE_VENDORS: list[str] = [
        "amazon", "flipkart", "myntra", "ajio", "nykaa",
    ]
    # Sources searched for alternate listings
    SEARCHABLE_VENDORS: list[str] = [
        "flipkart", "bigbasket", "blinkit",
    ]
    VENDORS: list[dict[str, str]] = [
        {
            "id": "amazon",
            "label": "Amazon",
            "domains": "amazon.in,amazon.com",
            "homepage": "https://www.amazon.in/",
        },
        {
            "id": "flipkart",
            "label": "Flipkart",
            "domains": "flipkart.com",
            "homepage": "https://www.flipkart.com/",
            "search_url": "https://www.flipkart.com/search?q={query}",
        },
        {
            "id": "myntra",
            "label": "Myntra",
            "domains": "myntra.com",
            "homepage": "https://www.myntra.com/",
        },
        {
            "id": "ajio",
            "label": "Ajio",
            "domains": "ajio.com",
            "homepage": "https://www.ajio.com/",
        },
        {
            "id": "nykaa",
            "label": "Nykaa",
            "domains": "nykaa.com",
            "homepage": "https://www.nykaa.com/",
        },
        {
            "id": "bigbasket",
            "label": "BigBasket",
            "domains": "bigbasket.com",
            "homepage": "https://www.bigbasket.com/",
            "search_url": "https://www.bigbasket.com/ps/?q={query}",
        },
        {
            "id": "blinkit",
            "label": "Blinkit",
            "domains": "blinkit.com",
            "homepage": "https://blinkit.com/",
            "search_url": "https://blinkit.com/s/?q={query}",
        },
    ]
