# pricewise/api/handlers.py

"""Request handlers: dict payload in, status + dict body out.

Each handler turns internal failures into a structured error body so
callers (the CLI, a serverless wrapper, a scheduler) never see a raw
exception.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pricewise.config.settings import Settings
from pricewise.errors import InvalidRequest, UnsupportedVendor
from pricewise.models.price_record import PriceStatistics
from pricewise.models.vendor import load_vendor_profiles
from pricewise.scrapers.page_extractor import PageExtractor
from pricewise.services.orchestrator import TrackingOrchestrator
from pricewise.services.platform_matcher import PlatformMatcher
from pricewise.services.price_recorder import PriceRecorder
from pricewise.services.recommendation_engine import (
    HistoryEntry,
    ProductSummary,
    RecommendationEngine,
)
from pricewise.storage.price_store import PriceStore

logger = logging.getLogger("pricewise.handlers")

_CLIENT_ERRORS = (InvalidRequest, UnsupportedVendor)


@dataclass
class HandlerResponse:
    """Status code and JSON-serialisable body."""

    status: int
    body: dict[str, Any]

    @property
    def ok(self) -> bool:
        return self.status < 400


def _error_response(message: str, exc: Exception) -> HandlerResponse:
    status = 400 if isinstance(exc, _CLIENT_ERRORS) else 500
    return HandlerResponse(
        status=status, body={"error": message, "details": str(exc)},
    )


def _require_str(payload: dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value.strip():
        raise InvalidRequest(f"'{key}' is required")
    return value.strip()


def _optional_str(payload: dict[str, Any], key: str) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    return str(value).strip() or None


def _parse_float(value: Any, field_name: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidRequest(f"'{field_name}' must be a number") from exc


def _parse_count(value: Any, field_name: str) -> int:
    if value is None:
        return 0
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError) as exc:
        raise InvalidRequest(
            f"'{field_name}' must be an integer"
        ) from exc


def _parse_history(raw: Any) -> list[HistoryEntry]:
    """Read ``priceHistory`` rows (most recent first)."""
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise InvalidRequest("'priceHistory' must be a list")
    entries: list[HistoryEntry] = []
    for row in raw:
        if not isinstance(row, dict):
            raise InvalidRequest("'priceHistory' rows must be objects")
        captured_at = None
        scraped_at = row.get("scraped_at")
        if isinstance(scraped_at, str):
            try:
                captured_at = datetime.fromisoformat(
                    scraped_at.replace("Z", "+00:00")
                )
            except ValueError:
                captured_at = None
        entries.append(
            HistoryEntry(
                price=_parse_float(row.get("price"), "price"),
                platform=str(row.get("platform_name") or "Unknown"),
                captured_at=captured_at,
                in_stock=bool(row.get("in_stock", True)),
            )
        )
    return entries


def _parse_stats(raw: Any) -> PriceStatistics | None:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise InvalidRequest("'priceStats' must be an object")
    return PriceStatistics(
        current=_parse_float(raw.get("current"), "current"),
        min=_parse_float(raw.get("min"), "min"),
        max=_parse_float(raw.get("max"), "max"),
        avg=_parse_float(raw.get("avg"), "avg"),
        count=_parse_count(raw.get("count"), "count"),
    )


class RequestHandlers:
    """The four entry points of the tracker."""

    def __init__(
        self,
        orchestrator: TrackingOrchestrator,
        matcher: PlatformMatcher,
        engine: RecommendationEngine,
    ) -> None:
        self.orchestrator = orchestrator
        self.matcher = matcher
        self.engine = engine

    @classmethod
    def from_settings(
        cls, db_path: str | None = None,
    ) -> "RequestHandlers":
        """Wire every component from :class:`Settings`."""
        profiles = load_vendor_profiles(Settings.SELECTORS_PATH)
        store = PriceStore(db_path or Settings.DB_PATH)
        matcher = PlatformMatcher(
            store,
            scrapers=PlatformMatcher.default_scrapers(profiles),
            request_delay=Settings.REQUEST_DELAY,
        )
        orchestrator = TrackingOrchestrator(
            extractor=PageExtractor(profiles, Settings.TRACKABLE_VENDORS),
            store=store,
            recorder=PriceRecorder(store),
            matcher=matcher,
            product_delay=Settings.REQUEST_DELAY,
        )
        engine = RecommendationEngine(
            api_key=Settings.OPENAI_API_KEY,
            model=Settings.OPENAI_MODEL,
        )
        return cls(orchestrator, matcher, engine)

    @property
    def store(self) -> PriceStore:
        return self.orchestrator.store

    def close(self) -> None:
        """Finish background work and close the store."""
        self.orchestrator.close()
        self.store.close()

    def _guarded(
        self,
        name: str,
        error_message: str,
        action: Callable[[], dict[str, Any]],
    ) -> HandlerResponse:
        try:
            return HandlerResponse(status=200, body=action())
        except Exception as exc:
            logger.error("Error in %s handler: %s", name, exc, exc_info=True)
            return _error_response(error_message, exc)

    # ── Handlers ─────────────────────────────────────────

    def scrape(self, payload: dict[str, Any]) -> HandlerResponse:
        """``{url, userId}`` -> tracked product and its current price."""

        def action() -> dict[str, Any]:
            url = _require_str(payload, "url")
            user_id = _require_str(payload, "userId")
            run = self.orchestrator.submit(url, user_id)
            product, data = run.product, run.data
            if product is None or data is None:
                raise InvalidRequest(f"Nothing tracked for {url}")
            return {
                "success": True,
                "product": product.to_dict(),
                "currentPrice": data.price,
                "currency": data.currency,
                "degraded": data.degraded,
            }

        return self._guarded("scrape", "Failed to scrape product", action)

    def search_platforms(self, payload: dict[str, Any]) -> HandlerResponse:
        """``{productName, brand?, category?, productId?}`` -> matches."""

        def action() -> dict[str, Any]:
            result = self.matcher.find_alternates(
                name=_optional_str(payload, "productName"),
                brand=_optional_str(payload, "brand"),
                product_id=_optional_str(payload, "productId"),
                category=_optional_str(payload, "category"),
            )
            return result.to_dict()

        return self._guarded(
            "search-platforms", "Failed to search platforms", action,
        )

    def recommend(self, payload: dict[str, Any]) -> HandlerResponse:
        """``{product, priceHistory, priceStats}`` -> recommendation."""

        def action() -> dict[str, Any]:
            raw_product = payload.get("product")
            if not isinstance(raw_product, dict):
                raise InvalidRequest("'product' is required")
            product = ProductSummary(
                name=str(raw_product.get("product_name") or "Unknown product"),
                brand=str(raw_product.get("brand") or ""),
                category=str(raw_product.get("category") or ""),
            )
            recommendation = self.engine.recommend(
                product,
                _parse_history(payload.get("priceHistory")),
                _parse_stats(payload.get("priceStats")),
            )
            return {"recommendation": recommendation.to_dict()}

        return self._guarded(
            "recommendation", "Failed to generate recommendation", action,
        )

    def daily_scrape(
        self, payload: dict[str, Any] | None = None,
    ) -> HandlerResponse:
        """No input -> counts of refreshed and failed products."""

        def action() -> dict[str, Any]:
            summary = self.orchestrator.run_daily()
            return {
                "success": True,
                "message": summary.message,
                "successCount": summary.success_count,
                "errorCount": summary.error_count,
            }

        return self._guarded(
            "daily-scraper", "Daily price scraping failed", action,
        )
