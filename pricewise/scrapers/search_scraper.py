# pricewise/scrapers/search_scraper.py

"""Search-result scraper for the vendors the matcher queries."""

from urllib.parse import quote_plus

from bs4 import BeautifulSoup, Tag
from curl_cffi.requests import BrowserTypeLiteral

from pricewise.config.settings import Settings
from pricewise.models.listing import AlternateListing
from pricewise.models.vendor import VendorProfile
from pricewise.scrapers.base_scraper import BaseScraper


class SearchScraper(BaseScraper):
    """Fetch one vendor's search page and parse its result cards."""

    def __init__(
        self,
        profile: VendorProfile,
        max_listings: int = Settings.MAX_LISTINGS_PER_PAGE,
        request_timeout: int = Settings.REQUEST_TIMEOUT,
        impersonate: BrowserTypeLiteral = Settings.IMPERSONATE_BROWSER,
    ) -> None:
        super().__init__(
            f"search.{profile.vendor.value}", request_timeout, impersonate,
        )
        if not profile.search_url or not profile.search_selectors:
            raise ValueError(f"{profile.label} has no search configuration")
        self.profile = profile
        self.selectors = profile.search_selectors
        self.max_listings = max_listings

    def _absolute(self, href: str) -> str:
        """Resolve a result link against the vendor's base URL."""
        if href.startswith("http"):
            return href
        if href.startswith("//"):
            return f"https:{href}"
        if href.startswith("/"):
            return f"{self.profile.base_url}{href}"
        return f"{self.profile.base_url}/{href}"

    def _parse_card(self, card: Tag) -> AlternateListing | None:
        """Parse a single result card; ``None`` if name or price is missing."""
        name_el = card.select_one(self.selectors["name"])
        price_el = card.select_one(self.selectors["price"])
        if name_el is None or price_el is None:
            return None

        name = name_el.get_text(" ", strip=True)
        price = self.extract_price(price_el.get_text(" ", strip=True))
        if not name or price is None:
            return None

        link_el = (
            card if card.name == "a" else card.select_one(self.selectors["link"])
        )
        href = str(link_el.get("href", "")) if link_el else ""
        image_el = card.select_one(self.selectors.get("image", "img"))
        image_src = ""
        if image_el is not None:
            image_src = str(
                image_el.get("src") or image_el.get("data-src") or ""
            )

        return AlternateListing(
            platform=self.profile.label,
            name=name,
            price=price,
            url=self._absolute(href) if href else self.profile.homepage,
            image_url=image_src if image_src.startswith("http") else "",
            currency=self.profile.currency,
        )

    def search(self, query: str) -> list[AlternateListing]:
        """Search the vendor and return up to ``max_listings`` candidates.

        Raises:
            TransportFailure: If the search page cannot be fetched.
        """
        url = self.profile.search_url.format(query=quote_plus(query))
        self.logger.info(
            "[%s] Searching '%s': %s", self.profile.vendor.value, query, url,
        )
        html = self._fetch(url, self.profile)
        soup = BeautifulSoup(html, "lxml")

        cards = soup.select(self.selectors["container"])
        self.logger.debug(
            "[%s] Found %d result containers",
            self.profile.vendor.value,
            len(cards),
        )

        listings: list[AlternateListing] = []
        for index, card in enumerate(cards[: self.max_listings]):
            try:
                listing = self._parse_card(card)
            except Exception as exc:
                self.logger.warning(
                    "[%s] Error parsing result %d: %s",
                    self.profile.vendor.value,
                    index,
                    exc,
                )
                continue
            if listing is not None:
                listings.append(listing)
        return listings
