# pricewise/models/vendor.py

"""Closed vendor enumeration and per-vendor extraction descriptors."""

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from pricewise.config.settings import Settings
from pricewise.errors import UnsupportedVendor


class Vendor(str, Enum):
    """Every e-commerce site the tracker knows about."""

    AMAZON = "amazon"
    FLIPKART = "flipkart"
    MYNTRA = "myntra"
    AJIO = "ajio"
    NYKAA = "nykaa"
    BIGBASKET = "bigbasket"
    BLINKIT = "blinkit"


@dataclass(frozen=True)
class VendorProfile:
    """Everything needed to scrape one vendor, as data.

    ``product_strategies`` maps a field name (``name``, ``price``,
    ``brand``, ``image``, ``stock``) to an ordered tuple of strategy
    descriptors; ``search_selectors`` holds the CSS selectors for a
    search-result page.
    """

    vendor: Vendor
    label: str
    domains: tuple[str, ...]
    homepage: str
    currency: str = "INR"
    search_url: str = ""
    product_strategies: dict[str, tuple[dict[str, str], ...]] = field(
        default_factory=lambda: dict[str, tuple[dict[str, str], ...]]()
    )
    search_selectors: dict[str, str] = field(
        default_factory=lambda: dict[str, str]()
    )

    @property
    def base_url(self) -> str:
        """Homepage without the trailing slash, for joining paths."""
        return self.homepage.rstrip("/")

    def matches_host(self, host: str) -> bool:
        """True if *host* is one of this vendor's domains or a subdomain."""
        host = host.lower()
        return any(
            host == domain or host.endswith(f".{domain}")
            for domain in self.domains
        )


def load_vendor_profiles(
    selectors_path: Path | None = None,
) -> dict[Vendor, VendorProfile]:
    """Build the vendor -> profile mapping from settings and selectors.json."""
    path = selectors_path or Settings.SELECTORS_PATH
    with open(path, encoding="utf-8") as f:
        all_selectors: dict[str, Any] = json.load(f)

    profiles: dict[Vendor, VendorProfile] = {}
    for entry in Settings.VENDORS:
        vendor = Vendor(entry["id"])
        selectors: dict[str, Any] = all_selectors.get(vendor.value, {})
        product: dict[str, list[dict[str, str]]] = selectors.get(
            "product", {}
        )
        profiles[vendor] = VendorProfile(
            vendor=vendor,
            label=entry["label"],
            domains=tuple(
                d.strip() for d in entry["domains"].split(",") if d.strip()
            ),
            homepage=entry["homepage"],
            currency=entry.get("currency", Settings.DEFAULT_CURRENCY),
            search_url=entry.get("search_url", ""),
            product_strategies={
                key: tuple(strategies)
                for key, strategies in product.items()
            },
            search_selectors=dict(selectors.get("search", {})),
        )
    return profiles


def resolve_vendor(
    url: str,
    profiles: dict[Vendor, VendorProfile],
    allowed: list[str] | None = None,
) -> VendorProfile:
    """Return the profile whose domain matches *url*.

    Args:
        url: Product or search URL.
        profiles: Mapping from :func:`load_vendor_profiles`.
        allowed: Vendor ids to consider; defaults to all profiles.

    Raises:
        UnsupportedVendor: If the host matches no allowed vendor.
    """
    try:
        host = urlparse(url).hostname or ""
    except ValueError:
        host = ""
    if not host:
        raise UnsupportedVendor(url)
    for vendor, profile in profiles.items():
        if allowed is not None and vendor.value not in allowed:
            continue
        if profile.matches_host(host):
            return profile
    raise UnsupportedVendor(url)
