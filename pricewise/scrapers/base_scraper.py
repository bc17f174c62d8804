# pricewise/scrapers/base_scraper.py

"""Shared fetching and parsing helpers for every vendor scraper."""

import logging
import re
from urllib.parse import urlparse

from curl_cffi import requests as curl_requests
from curl_cffi.requests import BrowserTypeLiteral

from pricewise.config.settings import Settings
from pricewise.errors import TransportFailure
from pricewise.models.vendor import VendorProfile

_PRICE_NUMBER_RE = re.compile(r"\d[\d,]*(?:\.\d+)?")


class BaseScraper:
    """Base class for the product-page and search-page scrapers.

    Fetches are single-shot: a failed request raises
    :class:`TransportFailure` and the caller decides what to skip.
    """

    # Cloudflare challenge page markers (checked before keyword scan)
    _CF_CHALLENGE_MARKERS: list[str] = [
        "challenges.cloudflare.com",
        "cdn-cgi/challenge-platform",
        "cf-turnstile",
        "cf_chl_opt",
    ]

    def __init__(
        self,
        area: str,
        request_timeout: int = Settings.REQUEST_TIMEOUT,
        impersonate: BrowserTypeLiteral = Settings.IMPERSONATE_BROWSER,
    ) -> None:
        self.logger = logging.getLogger(f"pricewise.{area}")
        self._request_timeout = request_timeout
        self.session = curl_requests.Session(impersonate=impersonate)

    def _is_blocked(self, text: str) -> bool:
        """Check for Cloudflare challenge pages and CAPTCHA walls."""
        lower = text.lower()
        for marker in self._CF_CHALLENGE_MARKERS:
            if marker in lower:
                self.logger.warning(
                    "Cloudflare challenge detected (marker: '%s')",
                    marker,
                )
                return True

        # Skip the keyword scan on full pages to avoid false positives
        has_body_content = "<body" in lower and len(text) > 5000
        if not has_body_content:
            for keyword in Settings.CAPTCHA_KEYWORDS:
                if keyword in lower:
                    self.logger.warning(
                        "CAPTCHA keyword '%s' detected", keyword,
                    )
                    return True
        return False

    def _fetch(self, url: str, profile: VendorProfile) -> str:
        """GET *url* once and return the body text.

        Raises:
            TransportFailure: On network errors, non-200 statuses or
                bot-challenge pages.
        """
        headers: dict[str, str] = {
            **Settings.DEFAULT_HEADERS,
            "Referer": profile.homepage,
        }
        try:
            resp = self.session.get(
                url,
                headers=headers,
                timeout=self._request_timeout,
            )
        except Exception as exc:
            self.logger.warning(
                "[%s] Request error for %s: %s",
                profile.vendor.value,
                url,
                exc,
            )
            raise TransportFailure(
                f"Request to {profile.label} failed: {exc}"
            ) from exc

        if resp.status_code != 200:
            self.logger.warning(
                "[%s] HTTP %d for %s",
                profile.vendor.value,
                resp.status_code,
                url,
            )
            raise TransportFailure(
                f"{profile.label} returned HTTP {resp.status_code}"
            )

        text: str = resp.text
        if self._is_blocked(text):
            raise TransportFailure(
                f"{profile.label} served a bot challenge page"
            )
        return text

    @staticmethod
    def extract_price(text: str | None) -> float | None:
        """Parse a displayed price such as '₹1,29,999.00' or 'Rs. 799'.

        Returns ``None`` when no positive number can be read.
        """
        if not text:
            return None
        cleaned = text.replace("\u00a0", " ")
        match = _PRICE_NUMBER_RE.search(cleaned)
        if not match:
            return None
        try:
            value = float(match.group(0).replace(",", ""))
        except ValueError:
            return None
        if value <= 0:
            return None
        return round(value, 2)


def derive_name_from_url(url: str) -> str:
    """Guess a product name from its URL path.

    Amazon's ``/<slug>/dp/<asin>`` slug wins; otherwise the last path
    segment longer than three characters is used.  Returns ``""`` when
    nothing usable is found.
    """
    try:
        path = urlparse(url).path
    except ValueError:
        return ""
    parts = [p for p in path.split("/") if p]

    if "dp" in parts:
        dp_index = parts.index("dp")
        if dp_index > 0:
            return parts[dp_index - 1].replace("-", " ").strip()

    long_parts = [p for p in parts if len(p) > 3]
    if long_parts:
        return re.sub(r"[-_]+", " ", long_parts[-1]).strip()
    return ""
