# tests/test_orchestrator.py

"""Tests for TrackingOrchestrator submissions and the daily run."""

import unittest
from unittest.mock import MagicMock, patch

from pricewise.errors import TransportFailure, UnsupportedVendor
from pricewise.models.product import ProductData
from pricewise.scrapers.page_extractor import PageExtractor
from pricewise.services.orchestrator import RunState, TrackingOrchestrator
from pricewise.services.price_recorder import PriceRecorder
from pricewise.storage.price_store import PriceStore

MOUSE_URL = "https://www.amazon.in/dp/ABC123"

MOUSE_PAGE = (
    "<html><body>"
    '<span id="productTitle">Wireless Mouse</span>'
    '<span class="a-price"><span class="a-offscreen">₹799</span></span>'
    "</body></html>"
)


def _response(text: str, status: int = 200) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.text = text
    return resp


def _data(price: float, name: str = "Wireless Mouse") -> ProductData:
    return ProductData(
        name=name,
        price=price,
        platform="Amazon",
        platform_url=MOUSE_URL,
        degraded=price <= 0,
    )


class TestSubmit(unittest.TestCase):
    """On-demand tracking, end to end with a stubbed network."""

    def setUp(self) -> None:
        self.store = PriceStore(":memory:")
        self.extractor = PageExtractor()
        self.extractor.session = MagicMock()
        self.extractor.session.get.return_value = _response(MOUSE_PAGE)
        self.matcher = MagicMock()
        self.orchestrator = TrackingOrchestrator(
            extractor=self.extractor,
            store=self.store,
            recorder=PriceRecorder(self.store),
            matcher=self.matcher,
        )

    def tearDown(self) -> None:
        self.orchestrator.close()
        self.store.close()

    def test_tracks_product_and_records_price(self) -> None:
        run = self.orchestrator.submit(MOUSE_URL, "user-1")
        self.assertEqual(run.state, RunState.DONE)
        assert run.product is not None
        self.assertEqual(run.product.name, "Wireless Mouse")

        history = self.store.get_price_history(run.product.id)
        self.assertEqual(len(history), 1)
        self.assertEqual(history[0].price, 799.0)
        self.assertEqual(history[0].currency, "INR")
        self.assertEqual(history[0].id, run.record_id)

    def test_triggers_matcher_with_product(self) -> None:
        run = self.orchestrator.submit(MOUSE_URL, "user-1")
        assert run.match is not None and run.product is not None
        run.match.result(timeout=5)
        self.matcher.find_alternates.assert_called_once_with(
            name="Wireless Mouse",
            brand="",
            product_id=run.product.id,
            category=None,
        )

    def test_matcher_failure_is_swallowed(self) -> None:
        self.matcher.find_alternates.side_effect = RuntimeError("blocked")
        run = self.orchestrator.submit(MOUSE_URL, "user-1")
        assert run.match is not None
        self.assertIsInstance(run.match.exception(timeout=5), RuntimeError)
        self.assertEqual(run.state, RunState.DONE)

    def test_resubmission_reuses_product(self) -> None:
        first = self.orchestrator.submit(MOUSE_URL, "user-1")
        second = self.orchestrator.submit(MOUSE_URL, "user-1")
        assert first.product is not None and second.product is not None
        self.assertEqual(first.product.id, second.product.id)
        self.assertEqual(len(self.store.get_price_history(first.product.id)), 2)

    def test_degraded_page_creates_product_without_record(self) -> None:
        self.extractor.session.get.return_value = _response(
            "<html><body><h1>Wireless Mouse</h1></body></html>"
        )
        run = self.orchestrator.submit(MOUSE_URL, "user-1")
        assert run.product is not None and run.data is not None
        self.assertTrue(run.data.degraded)
        self.assertEqual(run.skipped, ["record"])
        self.assertIsNone(run.record_id)
        self.assertEqual(self.store.get_price_history(run.product.id), [])

    def test_unsupported_vendor_writes_nothing(self) -> None:
        with self.assertRaises(UnsupportedVendor):
            self.orchestrator.submit("https://www.ebay.com/itm/1", "user-1")
        self.extractor.session.get.assert_not_called()
        self.assertEqual(self.store.list_products(), [])
        self.matcher.find_alternates.assert_not_called()

    def test_transport_failure_writes_nothing(self) -> None:
        self.extractor.session.get.return_value = _response("", status=503)
        with self.assertRaises(TransportFailure):
            self.orchestrator.submit(MOUSE_URL, "user-1")
        self.assertEqual(self.store.list_products(), [])

    def test_without_matcher(self) -> None:
        orchestrator = TrackingOrchestrator(
            extractor=self.extractor,
            store=self.store,
            recorder=PriceRecorder(self.store),
        )
        run = orchestrator.submit(MOUSE_URL, "user-1")
        orchestrator.close()
        self.assertIsNone(run.match)
        self.assertEqual(run.state, RunState.DONE)


class TestRunDaily(unittest.TestCase):
    """Sequential refresh of every tracked product."""

    def setUp(self) -> None:
        self.store = PriceStore(":memory:")
        self.extractor = MagicMock()
        self.orchestrator = TrackingOrchestrator(
            extractor=self.extractor,
            store=self.store,
            recorder=PriceRecorder(self.store),
            product_delay=2.0,
        )
        self.products = [
            self.store.get_or_create_product(
                f"user-{i}", f"https://www.amazon.in/dp/P{i}", f"Product {i}",
            )[0]
            for i in range(3)
        ]

    def tearDown(self) -> None:
        self.orchestrator.close()
        self.store.close()

    def test_counts_successes_and_failures(self) -> None:
        self.extractor.scrape.side_effect = [
            _data(499.0),
            TransportFailure("Amazon returned HTTP 503"),
            _data(0.0),
        ]
        summary = self.orchestrator.run_daily()
        self.assertEqual(summary.success_count, 1)
        self.assertEqual(summary.error_count, 2)
        self.assertEqual(
            summary.message,
            "Daily scraping completed. Updated 1 products, 2 errors.",
        )
        self.assertEqual(
            [run.failed_step for run in summary.runs], ["", "scrape", "record"],
        )

    def test_appends_history(self) -> None:
        self.extractor.scrape.return_value = _data(499.0)
        self.orchestrator.run_daily()
        for product in self.products:
            history = self.store.get_price_history(product.id)
            self.assertEqual([r.price for r in history], [499.0])

    def test_scrapes_stored_urls_in_order(self) -> None:
        self.extractor.scrape.return_value = _data(10.0)
        self.orchestrator.run_daily()
        self.assertEqual(
            [c.args[0] for c in self.extractor.scrape.call_args_list],
            [p.source_url for p in self.products],
        )

    def test_pauses_between_products(self) -> None:
        self.extractor.scrape.return_value = _data(10.0)
        with patch("time.sleep") as mock_sleep:
            self.orchestrator.run_daily()
        self.assertEqual(mock_sleep.call_count, 2)
        mock_sleep.assert_called_with(2.0)

    def test_empty_store(self) -> None:
        for product in self.products:
            self.store.delete_product(product.id, product.owner)
        summary = self.orchestrator.run_daily()
        self.assertEqual(
            summary.message,
            "Daily scraping completed. Updated 0 products, 0 errors.",
        )


if __name__ == "__main__":
    unittest.main()
