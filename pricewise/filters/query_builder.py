# pricewise/filters/query_builder.py

"""Search-query variants for cross-platform product lookup."""

import logging
import re

logger = logging.getLogger("pricewise.filters")

_SEPARATORS_RE = re.compile(r"[|()\[\],]")
_DESCRIPTORS_RE = re.compile(
    r"\b(?:with|without|pack|jar|bottle|ml|g|kg|ltr|litre|pieces?)\b",
    re.IGNORECASE,
)
_BRAND_PREFIX_RE = re.compile(
    r"^(?:visit the\s+|brand:\s*|by\s+)", re.IGNORECASE,
)
_BRAND_SUFFIX_RE = re.compile(r"\s+store$", re.IGNORECASE)

_MIN_QUERY_LENGTH = 3


def _collapse(text: str) -> str:
    return " ".join(text.split())


def clean_product_name(name: str) -> str:
    """Strip separators and packaging descriptors from a product title.

    ``"Tata Salt | Iodized (1 kg pack)"`` -> ``"Tata Salt Iodized 1"``.
    """
    cleaned = _SEPARATORS_RE.sub(" ", name)
    cleaned = _DESCRIPTORS_RE.sub(" ", cleaned)
    return _collapse(cleaned)


def clean_brand(brand: str | None) -> str:
    """Turn 'Visit the Logitech Store' or 'Brand: Logitech' into 'Logitech'."""
    if not brand:
        return ""
    cleaned = _BRAND_PREFIX_RE.sub("", brand.strip())
    cleaned = _BRAND_SUFFIX_RE.sub("", cleaned)
    return _collapse(cleaned)


def build_search_queries(name: str, brand: str | None = None) -> list[str]:
    """Build ordered query variants: name, brand + name, name + brand.

    Duplicates and variants of three characters or fewer are dropped.
    """
    cleaned_name = clean_product_name(name)
    cleaned_brand = clean_brand(brand)

    candidates = [
        cleaned_name,
        _collapse(f"{cleaned_brand} {cleaned_name}"),
        _collapse(f"{cleaned_name} {cleaned_brand}"),
    ]

    queries: list[str] = []
    for query in candidates:
        if len(query) <= _MIN_QUERY_LENGTH:
            continue
        if query.lower() in (q.lower() for q in queries):
            continue
        queries.append(query)

    logger.debug("Search queries for '%s': %s", name, queries)
    return queries
