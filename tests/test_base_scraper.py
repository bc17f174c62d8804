# tests/test_base_scraper.py

"""Tests for BaseScraper fetching and the shared parsing helpers."""

import unittest
from unittest.mock import MagicMock

from pricewise.errors import TransportFailure
from pricewise.models.vendor import Vendor, load_vendor_profiles
from pricewise.scrapers.base_scraper import BaseScraper, derive_name_from_url


def _response(text: str, status: int = 200) -> MagicMock:
    """Build a fake curl_cffi response."""
    resp = MagicMock()
    resp.status_code = status
    resp.text = text
    return resp


class TestExtractPrice(unittest.TestCase):
    """Tests for the displayed-price parser."""

    def test_rupee_with_decimals(self) -> None:
        self.assertEqual(BaseScraper.extract_price("₹1,299.00"), 1299.0)

    def test_indian_grouping(self) -> None:
        self.assertEqual(BaseScraper.extract_price("₹1,29,999"), 129999.0)

    def test_rs_prefix(self) -> None:
        self.assertEqual(BaseScraper.extract_price("Rs. 799"), 799.0)

    def test_non_breaking_spaces(self) -> None:
        self.assertEqual(
            BaseScraper.extract_price("\u00a0₹\u00a0499.50"), 499.5,
        )

    def test_zero_is_rejected(self) -> None:
        self.assertIsNone(BaseScraper.extract_price("₹0"))

    def test_no_number(self) -> None:
        self.assertIsNone(BaseScraper.extract_price("Currently unavailable"))

    def test_empty_and_none(self) -> None:
        self.assertIsNone(BaseScraper.extract_price(""))
        self.assertIsNone(BaseScraper.extract_price(None))


class TestDeriveNameFromUrl(unittest.TestCase):
    """Tests for URL-based name guessing."""

    def test_amazon_slug_before_dp(self) -> None:
        url = "https://www.amazon.in/Logitech-M331-Silent-Mouse/dp/B0XYZ"
        self.assertEqual(
            derive_name_from_url(url), "Logitech M331 Silent Mouse",
        )

    def test_last_long_segment(self) -> None:
        url = "https://www.nykaa.com/lakme-eyeconic_kajal"
        self.assertEqual(derive_name_from_url(url), "lakme eyeconic kajal")

    def test_short_segments_only(self) -> None:
        self.assertEqual(derive_name_from_url("https://ajio.com/p/12"), "")

    def test_no_path(self) -> None:
        self.assertEqual(derive_name_from_url("https://www.myntra.com/"), "")


class TestFetch(unittest.TestCase):
    """Tests for the single-shot fetch."""

    def setUp(self) -> None:
        self.profile = load_vendor_profiles()[Vendor.AMAZON]
        self.scraper = BaseScraper("test")
        self.scraper.session = MagicMock()

    def test_returns_body_text(self) -> None:
        self.scraper.session.get.return_value = _response("<html>ok</html>")
        text = self.scraper._fetch("https://www.amazon.in/dp/X", self.profile)
        self.assertEqual(text, "<html>ok</html>")

    def test_sends_referer_and_timeout(self) -> None:
        self.scraper.session.get.return_value = _response("<html></html>")
        self.scraper._fetch("https://www.amazon.in/dp/X", self.profile)
        _, kwargs = self.scraper.session.get.call_args
        self.assertEqual(
            kwargs["headers"]["Referer"], "https://www.amazon.in/",
        )
        self.assertIn("timeout", kwargs)

    def test_single_request_only(self) -> None:
        self.scraper.session.get.return_value = _response("", status=503)
        with self.assertRaises(TransportFailure):
            self.scraper._fetch("https://www.amazon.in/dp/X", self.profile)
        self.assertEqual(self.scraper.session.get.call_count, 1)

    def test_network_error(self) -> None:
        self.scraper.session.get.side_effect = ConnectionError("reset")
        with self.assertRaises(TransportFailure) as ctx:
            self.scraper._fetch("https://www.amazon.in/dp/X", self.profile)
        self.assertIn("reset", str(ctx.exception))

    def test_cloudflare_challenge(self) -> None:
        self.scraper.session.get.return_value = _response(
            '<html><div class="cf-turnstile"></div></html>'
        )
        with self.assertRaises(TransportFailure):
            self.scraper._fetch("https://www.amazon.in/dp/X", self.profile)

    def test_captcha_page(self) -> None:
        self.scraper.session.get.return_value = _response(
            "<html>Enter the characters you see below</html>"
        )
        with self.assertRaises(TransportFailure):
            self.scraper._fetch("https://www.amazon.in/dp/X", self.profile)

    def test_captcha_word_in_large_page_is_ignored(self) -> None:
        page = "<html><body>" + ("x" * 6000) + " captcha</body></html>"
        self.scraper.session.get.return_value = _response(page)
        text = self.scraper._fetch("https://www.amazon.in/dp/X", self.profile)
        self.assertEqual(text, page)


if __name__ == "__main__":
    unittest.main()
