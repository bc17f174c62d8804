# pricewise/errors.py

"""Failure taxonomy shared by the scrapers, services and handlers."""


class PricewiseError(Exception):
    """Base class for every failure the handlers know how to report."""


class InvalidRequest(PricewiseError):
    """The caller supplied malformed or incomplete input."""


class UnsupportedVendor(PricewiseError):
    """The URL's domain is not in the vendor enumeration."""

    def __init__(self, url: str) -> None:
        super().__init__(f"Unsupported vendor for URL: {url}")
        self.url = url


class ExtractionEmpty(PricewiseError):
    """Neither a name nor a price could be read from the page.

    Not fatal: the extractor still returns a degraded record.  The
    orchestrator uses this type to mark the skipped recording step.
    """


class TransportFailure(PricewiseError):
    """A fetch failed: network error, timeout, bad status or bot wall."""


class UpstreamModelFailure(PricewiseError):
    """The language model call failed or returned an unusable answer."""


class PersistenceFailure(PricewiseError):
    """The store rejected a write."""
