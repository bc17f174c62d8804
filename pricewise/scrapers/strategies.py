# pricewise/scrapers/strategies.py

"""Ordered, fallible extraction strategies driven by selectors.json.

Each strategy descriptor is a small dict such as
``{"kind": "css", "selector": "#productTitle"}``.  A strategy either
yields a string or ``None``; :func:`first_value` walks a list of them
and keeps the first value the caller accepts. An optional ``strip``
pattern is removed from that strategy's value, e.g. the " | Flipkart.com"
tail of a page title.
"""

import json
import logging
import re
from collections.abc import Callable
from typing import Any

from bs4 import BeautifulSoup

logger = logging.getLogger("pricewise.extractor")

_HEADING_RE = re.compile(r"^#\s+(.+)$", re.MULTILINE)


class PageView:
    """Parsed views of one page shared by all strategies."""

    def __init__(self, content: str) -> None:
        self.raw = content
        self.soup = BeautifulSoup(content, "lxml")
        self._text: str | None = None
        self._json_ld: list[dict[str, Any]] | None = None

    @property
    def text(self) -> str:
        """Visible text, one block per line."""
        if self._text is None:
            self._text = self.soup.get_text("\n")
        return self._text

    @property
    def json_ld_products(self) -> list[dict[str, Any]]:
        """All JSON-LD objects typed as ``Product``."""
        if self._json_ld is None:
            self._json_ld = []
            for script in self.soup.select(
                'script[type="application/ld+json"]'
            ):
                try:
                    data = json.loads(script.string or "")
                except json.JSONDecodeError:
                    logger.debug("Skipping malformed JSON-LD block")
                    continue
                self._json_ld.extend(
                    item for item in _flatten_ld(data)
                    if _is_product(item)
                )
        return self._json_ld


def _flatten_ld(data: Any) -> list[dict[str, Any]]:
    """Unpack lists and ``@graph`` containers into plain objects."""
    if isinstance(data, list):
        items: list[dict[str, Any]] = []
        for entry in data:
            items.extend(_flatten_ld(entry))
        return items
    if isinstance(data, dict):
        if "@graph" in data:
            return _flatten_ld(data["@graph"])
        return [data]
    return []


def _is_product(item: dict[str, Any]) -> bool:
    kind = item.get("@type")
    if isinstance(kind, list):
        return "Product" in kind
    return kind == "Product"


def _as_text(value: Any) -> str | None:
    """Collapse a JSON-LD value to a string (first item of lists)."""
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, dict):
        value = value.get("name") or value.get("url")
    if value is None or isinstance(value, bool):
        return None
    return str(value)


# ── Strategies ───────────────────────────────────────────

def _css(page: PageView, spec: dict[str, str]) -> str | None:
    element = page.soup.select_one(spec["selector"])
    if element is None:
        return None
    return element.get_text(" ", strip=True)


def _attr(page: PageView, spec: dict[str, str]) -> str | None:
    element = page.soup.select_one(spec["selector"])
    if element is None:
        return None
    value = element.get(spec["attr"])
    if isinstance(value, list):
        value = " ".join(value)
    return value


def _meta(page: PageView, spec: dict[str, str]) -> str | None:
    name = spec["name"]
    element = page.soup.find(
        "meta", attrs={"property": name}
    ) or page.soup.find("meta", attrs={"name": name})
    if element is None:
        return None
    content = element.get("content")
    return content if isinstance(content, str) else None


def _json_ld(page: PageView, spec: dict[str, str]) -> str | None:
    for product in page.json_ld_products:
        value: Any = product
        for key in spec["key"].split("."):
            if isinstance(value, list):
                value = value[0] if value else None
            if not isinstance(value, dict):
                value = None
                break
            value = value.get(key)
        text = _as_text(value)
        if text:
            return text
    return None


def _heading(page: PageView, spec: dict[str, str]) -> str | None:
    match = _HEADING_RE.search(page.raw)
    return match.group(1) if match else None


def _regex(page: PageView, spec: dict[str, str]) -> str | None:
    match = re.search(spec["pattern"], page.text)
    if not match:
        return None
    return match.group(1) if match.groups() else match.group(0)


STRATEGIES: dict[str, Callable[[PageView, dict[str, str]], str | None]] = {
    "css": _css,
    "attr": _attr,
    "meta": _meta,
    "json_ld": _json_ld,
    "heading": _heading,
    "regex": _regex,
}


def first_value(
    page: PageView,
    specs: tuple[dict[str, str], ...] | None,
    accept: Callable[[str], bool] = bool,
) -> str:
    """Run *specs* in order and return the first accepted value.

    A strategy that raises (e.g. a selector the parser rejects) is
    logged and treated as a miss.  Returns ``""`` if none succeed.
    """
    for spec in specs or ():
        strategy = STRATEGIES.get(spec.get("kind", ""))
        if strategy is None:
            logger.warning("Unknown strategy kind: %s", spec)
            continue
        try:
            value = strategy(page, spec)
        except Exception as exc:
            logger.debug("Strategy %s failed: %s", spec, exc)
            continue
        if value is None:
            continue
        value = " ".join(value.split())
        if spec.get("strip"):
            value = re.sub(spec["strip"], "", value).strip()
        if value and accept(value):
            return value
    return ""
