# pricewise/scrapers/page_extractor.py

"""Product-page scraper: fetch one URL and extract name, price and more."""

from curl_cffi.requests import BrowserTypeLiteral

from pricewise.config.settings import Settings
from pricewise.filters.query_builder import clean_brand
from pricewise.models.product import ProductData
from pricewise.models.vendor import (
    Vendor,
    VendorProfile,
    load_vendor_profiles,
    resolve_vendor,
)
from pricewise.scrapers.base_scraper import BaseScraper, derive_name_from_url
from pricewise.scrapers.strategies import PageView, first_value


def _looks_like_url(value: str) -> bool:
    return value.startswith(("http://", "https://", "//"))


class PageExtractor(BaseScraper):
    """Extract :class:`ProductData` from a trackable vendor's product page.

    Vendor selection goes through the closed :class:`Vendor`
    enumeration; each vendor's strategies are data in selectors.json.
    """

    def __init__(
        self,
        profiles: dict[Vendor, VendorProfile] | None = None,
        trackable: list[str] | None = None,
        request_timeout: int = Settings.REQUEST_TIMEOUT,
        impersonate: BrowserTypeLiteral = Settings.IMPERSONATE_BROWSER,
    ) -> None:
        super().__init__("extractor", request_timeout, impersonate)
        self.profiles = profiles or load_vendor_profiles()
        self.trackable = trackable or Settings.TRACKABLE_VENDORS

    def resolve(self, url: str) -> VendorProfile:
        """Return the trackable vendor for *url* or raise UnsupportedVendor."""
        return resolve_vendor(url, self.profiles, self.trackable)

    def scrape(self, url: str) -> ProductData:
        """Fetch *url* and extract its product data.

        Raises:
            UnsupportedVendor: Before any request, for unknown domains.
            TransportFailure: If the page cannot be fetched.
        """
        profile = self.resolve(url)
        self.logger.info("[%s] Scraping %s", profile.vendor.value, url)
        html = self._fetch(url, profile)
        return self.extract(html, url)

    def extract(self, page_content: str, source_url: str) -> ProductData:
        """Extract product data from already-fetched page content.

        Accepts HTML or Markdown.  Missing names fall back to one
        derived from the URL and a missing price becomes ``0.0``; such
        records come back with ``degraded=True`` instead of raising.

        Raises:
            UnsupportedVendor: If *source_url* is not a trackable vendor.
        """
        profile = self.resolve(source_url)
        strategies = profile.product_strategies
        page = PageView(page_content)

        name = first_value(page, strategies.get("name"))
        price_text = first_value(
            page,
            strategies.get("price"),
            accept=lambda v: self.extract_price(v) is not None,
        )
        price = self.extract_price(price_text) or 0.0
        brand = clean_brand(first_value(page, strategies.get("brand")))
        image_url = first_value(
            page, strategies.get("image"), accept=_looks_like_url,
        )
        if image_url.startswith("//"):
            image_url = f"https:{image_url}"
        stock_text = first_value(page, strategies.get("stock")).lower()
        in_stock = not any(
            phrase in stock_text for phrase in Settings.OUT_OF_STOCK_PHRASES
        )

        if not name and not price:
            self.logger.warning(
                "[%s] No name or price found on %s, "
                "falling back to a URL-derived record",
                profile.vendor.value,
                source_url,
            )
        elif not price:
            self.logger.warning(
                "[%s] No price found on %s", profile.vendor.value, source_url,
            )
        if not name:
            name = derive_name_from_url(source_url) or "Unknown Product"

        data = ProductData(
            name=name,
            price=price,
            platform=profile.label,
            platform_url=source_url,
            currency=profile.currency,
            brand=brand,
            image_url=image_url,
            in_stock=in_stock,
            degraded=price <= 0,
        )
        self.logger.info(
            "[%s] Extracted name='%s' price=%.2f brand='%s'",
            profile.vendor.value,
            data.name,
            data.price,
            data.brand,
        )
        return data
