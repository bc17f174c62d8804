# pricewise/services/orchestrator.py

"""Wires scrape -> record -> match for submissions and the daily run."""

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum

from pricewise.config.settings import Settings
from pricewise.errors import ExtractionEmpty
from pricewise.models.listing import MatchResult
from pricewise.models.product import Product, ProductData
from pricewise.scrapers.page_extractor import PageExtractor
from pricewise.services.platform_matcher import PlatformMatcher
from pricewise.services.price_recorder import PriceRecorder
from pricewise.storage.price_store import PriceStore

logger = logging.getLogger("pricewise.orchestrator")


class RunState(str, Enum):
    """Where one product's run currently stands."""

    PENDING = "pending"
    SCRAPED = "scraped"
    RECORDED = "recorded"
    MATCH_TRIGGERED = "match_triggered"
    DONE = "done"
    FAILED = "failed"


@dataclass
class ProductRun:
    """State of one product through one run."""

    url: str
    state: RunState = RunState.PENDING
    product: Product | None = None
    data: ProductData | None = None
    record_id: str | None = None
    failed_step: str = ""
    cause: Exception | None = None
    skipped: list[str] = field(default_factory=lambda: list[str]())
    match: "Future[MatchResult] | None" = None

    def fail(self, step: str, cause: Exception) -> None:
        """Move to FAILED, remembering the step and the cause."""
        self.state = RunState.FAILED
        self.failed_step = step
        self.cause = cause

    @property
    def succeeded(self) -> bool:
        return self.state is RunState.DONE


@dataclass
class DailyRunSummary:
    """Counts and per-product outcomes of one daily run."""

    success_count: int = 0
    error_count: int = 0
    runs: list[ProductRun] = field(
        default_factory=lambda: list[ProductRun]()
    )

    @property
    def message(self) -> str:
        return (
            f"Daily scraping completed. Updated {self.success_count} "
            f"products, {self.error_count} errors."
        )


class TrackingOrchestrator:
    """Runs products through the pipeline one at a time."""

    def __init__(
        self,
        extractor: PageExtractor,
        store: PriceStore,
        recorder: PriceRecorder,
        matcher: PlatformMatcher | None = None,
        product_delay: float = Settings.REQUEST_DELAY,
    ) -> None:
        self.extractor = extractor
        self.store = store
        self.recorder = recorder
        self.matcher = matcher
        self.product_delay = product_delay
        self._executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="pricewise-matcher",
        )

    def close(self) -> None:
        """Wait for background matcher work to finish."""
        self._executor.shutdown(wait=True)

    # ── Steps ────────────────────────────────────────────

    def _record(
        self, run: ProductRun, product: Product, data: ProductData,
    ) -> None:
        """Append a price record unless the extraction found no price."""
        if data.degraded:
            logger.warning(
                "No price extracted for %s, not recording", run.url,
            )
            run.skipped.append("record")
            raise ExtractionEmpty(f"No price found on {run.url}")
        run.record_id = self.recorder.record(product.id, data)
        run.state = RunState.RECORDED

    def _trigger_match(self, run: ProductRun) -> None:
        """Hand the matcher to the background worker; never raises."""
        if self.matcher is None or run.product is None:
            return
        matcher = self.matcher
        product = run.product

        def _match() -> MatchResult:
            return matcher.find_alternates(
                name=product.name,
                brand=product.brand,
                product_id=product.id,
                category=product.category or None,
            )

        def _log_failure(future: "Future[MatchResult]") -> None:
            exc = future.exception()
            if exc is not None:
                logger.error(
                    "Cross-platform search failed for product %s: %s",
                    product.id,
                    exc,
                    exc_info=exc,
                )

        try:
            run.match = self._executor.submit(_match)
            run.match.add_done_callback(_log_failure)
            run.state = RunState.MATCH_TRIGGERED
        except Exception as exc:
            logger.error(
                "Could not trigger cross-platform search: %s", exc,
                exc_info=True,
            )

    # ── On-demand ────────────────────────────────────────

    def submit(self, url: str, user_id: str) -> ProductRun:
        """Track a URL for a user: scrape, store, record, then match.

        A page without a price still creates the product, but no
        record is written.  The matcher runs in the background and its
        failures are logged, not raised.

        Raises:
            UnsupportedVendor: Before any request, for unknown domains.
            TransportFailure: If the page cannot be fetched.
            PersistenceFailure: If the store rejects a write.
        """
        run = ProductRun(url=url)
        try:
            run.data = self.extractor.scrape(url)
            run.state = RunState.SCRAPED
        except Exception as exc:
            run.fail("scrape", exc)
            logger.error("Scrape failed for %s: %s", url, exc)
            raise

        try:
            run.product, created = self.store.get_or_create_product(
                owner=user_id,
                source_url=url,
                name=run.data.name,
                brand=run.data.brand,
                image_url=run.data.image_url,
            )
            if not created:
                self.store.update_product_details(
                    run.product.id, run.data.brand, run.data.image_url,
                )
            self._record(run, run.product, run.data)
        except ExtractionEmpty:
            pass
        except Exception as exc:
            run.fail("record", exc)
            logger.error("Saving %s failed: %s", url, exc, exc_info=True)
            raise

        self._trigger_match(run)
        run.state = RunState.DONE
        logger.info("Product %s tracked from %s", run.product.id, url)
        return run

    # ── Daily ────────────────────────────────────────────

    def _refresh(self, product: Product) -> ProductRun:
        """Re-scrape one existing product and append its price."""
        run = ProductRun(url=product.source_url, product=product)
        try:
            run.data = self.extractor.scrape(product.source_url)
            run.state = RunState.SCRAPED
        except Exception as exc:
            run.fail("scrape", exc)
            return run
        try:
            self._record(run, product, run.data)
            self.store.update_product_details(
                product.id, run.data.brand, run.data.image_url,
            )
        except Exception as exc:
            run.fail("record", exc)
            return run
        run.state = RunState.DONE
        return run

    def run_daily(self) -> DailyRunSummary:
        """Refresh every tracked product, sequentially, never retrying."""
        products = self.store.list_products()
        logger.info("Found %d products to update", len(products))
        summary = DailyRunSummary()

        for index, product in enumerate(products):
            if index:
                time.sleep(self.product_delay)
            logger.info("Scraping product: %s", product.name)
            run = self._refresh(product)
            summary.runs.append(run)
            if run.succeeded:
                summary.success_count += 1
                logger.info("Updated price for product: %s", product.name)
            else:
                summary.error_count += 1
                logger.error(
                    "Product %s failed at %s: %s",
                    product.id,
                    run.failed_step,
                    run.cause,
                )

        logger.info(summary.message)
        return summary
