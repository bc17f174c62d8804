# pricewise/services/platform_matcher.py

"""Cross-platform search for cheaper listings of a tracked product."""

import logging
import time

from pricewise.config.settings import Settings
from pricewise.errors import InvalidRequest
from pricewise.filters.deduplicator import ListingDeduplicator
from pricewise.filters.listing_validator import ListingValidator
from pricewise.filters.query_builder import build_search_queries
from pricewise.models.listing import AlternateListing, MatchResult
from pricewise.models.vendor import Vendor, VendorProfile, load_vendor_profiles
from pricewise.scrapers.base_scraper import derive_name_from_url
from pricewise.scrapers.search_scraper import SearchScraper
from pricewise.storage.price_store import PriceStore

logger = logging.getLogger("pricewise.matcher")

NAME_REQUIRED_MESSAGE = "Product name is required for search"


class PlatformMatcher:
    """Search alternate vendors, score, dedupe, rank and persist matches.

    Vendors and query variants are searched one after another with a
    fixed pause between requests.  A failure for one (vendor, query)
    pair is logged and skipped; the rest still run.
    """

    def __init__(
        self,
        store: PriceStore | None,
        scrapers: list[SearchScraper] | None = None,
        request_delay: float = Settings.REQUEST_DELAY,
        max_queries_per_vendor: int = Settings.MAX_QUERIES_PER_VENDOR,
        similarity_threshold: float = Settings.SIMILARITY_THRESHOLD,
        duplicate_similarity: float = Settings.DUPLICATE_SIMILARITY,
    ) -> None:
        self.store = store
        self.scrapers = (
            scrapers if scrapers is not None else self.default_scrapers()
        )
        self.request_delay = request_delay
        self.max_queries_per_vendor = max_queries_per_vendor
        self.similarity_threshold = similarity_threshold
        self.duplicate_similarity = duplicate_similarity

    @staticmethod
    def default_scrapers(
        profiles: dict[Vendor, VendorProfile] | None = None,
    ) -> list[SearchScraper]:
        """One scraper per configured searchable vendor."""
        profiles = profiles or load_vendor_profiles()
        return [
            SearchScraper(profiles[Vendor(vendor_id)])
            for vendor_id in Settings.SEARCHABLE_VENDORS
        ]

    # ── Private helpers ──────────────────────────────────

    def _resolve_name(
        self,
        name: str | None,
        brand: str | None,
        product_id: str | None,
    ) -> tuple[str, str]:
        """Fill a blank name (and brand) from the stored product."""
        search_name = (name or "").strip()
        search_brand = (brand or "").strip()
        if search_name or not product_id or self.store is None:
            return search_name, search_brand

        logger.info(
            "Product name empty, reading product %s", product_id,
        )
        product = self.store.get_product(product_id)
        if product is None:
            return "", search_brand
        search_name = product.name.strip()
        search_brand = search_brand or product.brand
        if not search_name:
            search_name = derive_name_from_url(product.source_url)
            if search_name:
                logger.info("Derived name from URL: %s", search_name)
        return search_name, search_brand

    def _search_vendor(
        self,
        scraper: SearchScraper,
        queries: list[str],
        reference_name: str,
        errors: list[str],
        wait_first: bool,
    ) -> list[AlternateListing]:
        """Run the first query variants against one vendor.

        The fixed delay precedes every request except the first one of
        a search, for which the caller passes ``wait_first=False``.
        """
        label = scraper.profile.label
        found: list[AlternateListing] = []
        for index, query in enumerate(queries[: self.max_queries_per_vendor]):
            if index or wait_first:
                time.sleep(self.request_delay)
            try:
                listings = scraper.search(query)
            except Exception as exc:
                logger.error(
                    "Search on %s for '%s' failed: %s",
                    label,
                    query,
                    exc,
                    exc_info=True,
                )
                errors.append(f"{label}: {exc}")
                continue
            accepted, dropped = ListingValidator.accept(
                listings, reference_name, self.similarity_threshold,
            )
            logger.info(
                "%s '%s': %d accepted, %d dropped",
                label,
                query,
                len(accepted),
                dropped,
            )
            found.extend(accepted)
        return found

    def _persist(
        self, product_id: str, listings: list[AlternateListing],
    ) -> None:
        """Write one price record per accepted listing."""
        if self.store is None:
            return
        for listing in listings:
            try:
                self.store.add_price_record(
                    product_id=product_id,
                    platform=listing.platform,
                    platform_url=listing.url,
                    price=listing.price,
                    currency=listing.currency,
                    in_stock=listing.in_stock,
                )
            except Exception as exc:
                logger.error(
                    "Could not save %s listing for product %s: %s",
                    listing.platform,
                    product_id,
                    exc,
                )

    # ── Public API ───────────────────────────────────────

    def find_alternates(
        self,
        name: str | None,
        brand: str | None = None,
        product_id: str | None = None,
        category: str | None = None,
    ) -> MatchResult:
        """Find the product on the searchable vendors, cheapest first.

        Raises:
            InvalidRequest: If neither a name nor a product id is given.
        """
        if not (name or "").strip() and not product_id:
            raise InvalidRequest("productName or productId is required")

        search_name, search_brand = self._resolve_name(
            name, brand, product_id,
        )
        if not search_name:
            return MatchResult(
                searched_name="", message=NAME_REQUIRED_MESSAGE,
            )

        logger.info(
            "Starting cross-platform search for '%s' by '%s' (category=%s)",
            search_name,
            search_brand,
            category,
        )
        queries = build_search_queries(search_name, search_brand)
        result = MatchResult(searched_name=search_name)
        candidates: list[AlternateListing] = []
        requests_sent = 0
        for scraper in self.scrapers:
            candidates.extend(
                self._search_vendor(
                    scraper,
                    queries,
                    search_name,
                    result.errors,
                    wait_first=requests_sent > 0,
                )
            )
            requests_sent += len(queries[: self.max_queries_per_vendor])

        unique, _ = ListingDeduplicator.deduplicate(
            candidates, self.duplicate_similarity,
        )
        unique.sort(key=lambda listing: listing.price)
        result.results = unique

        if product_id:
            self._persist(product_id, unique)

        message = (
            f"Found {len(unique)} matching products across platforms"
        )
        best = result.best_deal
        if best is not None:
            message += (
                f". Best available deal is on {best.platform}"
                f" at {best.display_price}"
            )
        result.message = message
        logger.info(message)
        return result
