# tests/test_handlers.py

"""Tests for the request handlers' payloads and error mapping."""

import unittest
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

from pricewise.api.handlers import RequestHandlers
from pricewise.config.settings import Settings
from pricewise.errors import PersistenceFailure, TransportFailure, UnsupportedVendor
from pricewise.models.listing import AlternateListing, MatchResult
from pricewise.models.product import Product, ProductData
from pricewise.services.orchestrator import DailyRunSummary, ProductRun, RunState
from pricewise.services.platform_matcher import PlatformMatcher
from pricewise.services.recommendation_engine import RecommendationEngine

NOW = datetime(2026, 10, 18, tzinfo=timezone.utc)


def _handlers(
    orchestrator: MagicMock | None = None,
    matcher: object = None,
    engine: object = None,
) -> RequestHandlers:
    return RequestHandlers(
        orchestrator or MagicMock(),
        matcher or MagicMock(),
        engine or RecommendationEngine(),
    )


class TestScrapeHandler(unittest.TestCase):
    """``scrape`` payloads and status codes."""

    def test_success(self) -> None:
        orchestrator = MagicMock()
        orchestrator.submit.return_value = ProductRun(
            url="https://www.amazon.in/dp/A1",
            state=RunState.DONE,
            product=Product(
                id="p1",
                owner="user-1",
                name="Wireless Mouse",
                source_url="https://www.amazon.in/dp/A1",
                created_at=NOW,
                updated_at=NOW,
            ),
            data=ProductData(
                name="Wireless Mouse",
                price=799.0,
                platform="Amazon",
                platform_url="https://www.amazon.in/dp/A1",
            ),
        )
        response = _handlers(orchestrator).scrape(
            {"url": " https://www.amazon.in/dp/A1 ", "userId": "user-1"}
        )
        self.assertEqual(response.status, 200)
        self.assertTrue(response.body["success"])
        self.assertEqual(response.body["currentPrice"], 799.0)
        self.assertEqual(response.body["currency"], "INR")
        self.assertFalse(response.body["degraded"])
        self.assertEqual(response.body["product"]["id"], "p1")
        orchestrator.submit.assert_called_once_with(
            "https://www.amazon.in/dp/A1", "user-1",
        )

    def test_missing_fields(self) -> None:
        for payload in ({}, {"url": "https://www.amazon.in/dp/A1"}, {"url": "", "userId": "u"}):
            with self.subTest(payload=payload):
                response = _handlers().scrape(payload)
                self.assertEqual(response.status, 400)
                self.assertEqual(response.body["error"], "Failed to scrape product")

    def test_unsupported_vendor(self) -> None:
        orchestrator = MagicMock()
        orchestrator.submit.side_effect = UnsupportedVendor("https://ebay.com/x")
        response = _handlers(orchestrator).scrape(
            {"url": "https://ebay.com/x", "userId": "user-1"}
        )
        self.assertEqual(response.status, 400)
        self.assertEqual(
            response.body["details"],
            "Unsupported vendor for URL: https://ebay.com/x",
        )

    def test_internal_failures(self) -> None:
        for exc in (TransportFailure("HTTP 503"), PersistenceFailure("locked")):
            with self.subTest(exc=exc):
                orchestrator = MagicMock()
                orchestrator.submit.side_effect = exc
                response = _handlers(orchestrator).scrape(
                    {"url": "https://www.amazon.in/dp/A1", "userId": "user-1"}
                )
                self.assertEqual(response.status, 500)
                self.assertFalse(response.ok)
                self.assertEqual(response.body["details"], str(exc))


class TestSearchPlatformsHandler(unittest.TestCase):
    """``search_platforms`` payloads."""

    def test_passes_fields_to_matcher(self) -> None:
        matcher = MagicMock()
        matcher.find_alternates.return_value = MatchResult(
            searched_name="Tata Salt",
            results=[AlternateListing("Blinkit", "Tata Salt", 25.0, "https://b/1")],
            message="Found 1 matching products across platforms",
        )
        response = _handlers(matcher=matcher).search_platforms(
            {"productName": "Tata Salt", "brand": "Tata", "productId": "p1"}
        )
        self.assertEqual(response.status, 200)
        self.assertEqual(response.body["count"], 1)
        self.assertEqual(response.body["bestDeal"]["platform"], "Blinkit")
        matcher.find_alternates.assert_called_once_with(
            name="Tata Salt", brand="Tata", product_id="p1", category=None,
        )

    def test_requires_name_or_id(self) -> None:
        matcher = PlatformMatcher(None, scrapers=[])
        response = _handlers(matcher=matcher).search_platforms({"brand": "Tata"})
        self.assertEqual(response.status, 400)
        self.assertEqual(response.body["error"], "Failed to search platforms")


class TestRecommendHandler(unittest.TestCase):
    """``recommend`` payload parsing."""

    def test_fallback_without_model(self) -> None:
        response = _handlers().recommend(
            {
                "product": {"product_name": "Wireless Mouse", "brand": "Logitech"},
                "priceHistory": [
                    {"price": 80, "platform_name": "Amazon", "scraped_at": "2026-10-17T09:00:00Z"},
                    {"price": "120", "platform_name": "Flipkart", "scraped_at": "bad date"},
                ],
                "priceStats": {"current": 80, "min": 80, "max": 120, "avg": 100},
            }
        )
        self.assertEqual(response.status, 200)
        self.assertEqual(
            response.body["recommendation"],
            {
                "shouldBuy": True,
                "reason": "Current price is below average. Analysis based on price history.",
                "pricePoint": "Great deal",
                "confidence": 75,
            },
        )

    def test_stats_computed_from_history(self) -> None:
        response = _handlers().recommend(
            {
                "product": {"product_name": "Wireless Mouse"},
                "priceHistory": [{"price": p} for p in (100, 120, 80, 100)],
            }
        )
        self.assertEqual(response.status, 200)
        self.assertTrue(response.body["recommendation"]["shouldBuy"])

    def test_bad_payloads(self) -> None:
        bad = [
            {},
            {"product": "Wireless Mouse"},
            {"product": {"product_name": "x"}},
            {"product": {}, "priceHistory": "100"},
            {"product": {}, "priceHistory": [{"price": "cheap"}]},
            {"product": {}, "priceStats": {"current": 1}},
            {
                "product": {},
                "priceStats": {
                    "current": 80, "min": 80, "max": 120, "avg": 100,
                    "count": "many",
                },
            },
        ]
        for payload in bad:
            with self.subTest(payload=payload):
                response = _handlers().recommend(payload)
                self.assertEqual(response.status, 400)
                self.assertEqual(
                    response.body["error"], "Failed to generate recommendation",
                )


class TestDailyScrapeHandler(unittest.TestCase):
    """``daily_scrape`` summary body."""

    def test_summary(self) -> None:
        orchestrator = MagicMock()
        orchestrator.run_daily.return_value = DailyRunSummary(
            success_count=3, error_count=1,
        )
        response = _handlers(orchestrator).daily_scrape()
        self.assertEqual(
            response.body,
            {
                "success": True,
                "message": "Daily scraping completed. Updated 3 products, 1 errors.",
                "successCount": 3,
                "errorCount": 1,
            },
        )

    def test_failure(self) -> None:
        orchestrator = MagicMock()
        orchestrator.run_daily.side_effect = PersistenceFailure("disk I/O error")
        response = _handlers(orchestrator).daily_scrape()
        self.assertEqual(response.status, 500)
        self.assertEqual(response.body["error"], "Daily price scraping failed")


class TestFromSettings(unittest.TestCase):
    """Wiring from Settings."""

    def test_builds_components(self) -> None:
        with patch.object(Settings, "OPENAI_API_KEY", ""):
            handlers = RequestHandlers.from_settings(":memory:")
        try:
            self.assertIs(handlers.store, handlers.orchestrator.store)
            self.assertIs(handlers.matcher, handlers.orchestrator.matcher)
            self.assertEqual(len(handlers.matcher.scrapers), 3)
        finally:
            handlers.close()


if __name__ == "__main__":
    unittest.main()
