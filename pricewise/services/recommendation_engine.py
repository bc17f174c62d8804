# pricewise/services/recommendation_engine.py

"""Buy/wait recommendations from a language model, with a local fallback.

The model is asked for a strict JSON object.  Whenever no answer can be
obtained (no API key, an API error, unparsable or mis-shaped output) the
engine falls back to a deterministic rule over the price statistics, so
callers always get a :class:`Recommendation`.
"""

import json
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from openai import OpenAI

from pricewise.config.settings import Settings
from pricewise.errors import InvalidRequest, UpstreamModelFailure
from pricewise.models.price_record import PriceStatistics, format_price
from pricewise.models.recommendation import Recommendation

logger = logging.getLogger("pricewise.recommendation")

SYSTEM_PROMPT = (
    "You are an expert e-commerce price analyst. "
    "Always respond with valid JSON only."
)

_FENCED_JSON_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```")
_PROMPT_HISTORY_LIMIT = 10


@dataclass
class HistoryEntry:
    """One price observation as shown to the model."""

    price: float
    platform: str
    captured_at: datetime | None = None
    in_stock: bool = True


@dataclass
class ProductSummary:
    """The product fields the prompt mentions."""

    name: str
    brand: str = ""
    category: str = ""


def _extract_json_object(text: str) -> Any:
    """Decode the model's answer, tolerating a ```json fence."""
    text = (text or "").strip()
    match = _FENCED_JSON_RE.search(text)
    if match:
        text = match.group(1).strip()
    return json.loads(text)


def fallback_recommendation(
    stats: PriceStatistics,
    confidence: int = Settings.FALLBACK_CONFIDENCE,
) -> Recommendation:
    """Deterministic judgment: buy at or below the average price."""
    at_or_below = stats.current <= stats.avg
    if stats.current <= stats.min * 1.1:
        price_point = "Great deal"
    elif at_or_below:
        price_point = "Good price"
    else:
        price_point = "Above average"
    return Recommendation(
        should_buy=at_or_below,
        reason=(
            f"Current price is {'below' if at_or_below else 'above'} "
            "average. Analysis based on price history."
        ),
        price_point=price_point,
        confidence=confidence,
        source="fallback",
    )


def build_prompt(
    product: ProductSummary,
    history: list[HistoryEntry],
    stats: PriceStatistics,
) -> str:
    """Summarise the product's prices for the model."""
    brand = f" by {product.brand}" if product.brand else ""
    lines = [
        "As an expert e-commerce price analyst, analyze this product "
        "data and provide a purchase recommendation:",
        "",
        f"Product: {product.name}{brand}",
        f"Category: {product.category or 'Unknown'}",
        "",
        "Price Analysis:",
        f"- Current Price: {format_price(stats.current)}",
        f"- Lowest Price Ever: {format_price(stats.min)}",
        f"- Highest Price Ever: {format_price(stats.max)}",
        f"- Average Price: {format_price(stats.avg)}",
        f"- Savings from highest: {format_price(stats.max - stats.current)}",
        f"- Price variation: {stats.variation_pct:.2f}%",
        "",
        "Recent Price History:",
    ]
    for entry in history[:_PROMPT_HISTORY_LIMIT]:
        date = (
            entry.captured_at.strftime("%Y-%m-%d")
            if entry.captured_at
            else "unknown date"
        )
        mark = "in stock" if entry.in_stock else "out of stock"
        lines.append(
            f"- {entry.platform}: {format_price(entry.price)} ({date}) {mark}"
        )
    lines += [
        "",
        "Provide a JSON response with:",
        "{",
        '  "shouldBuy": boolean,',
        '  "reason": "Brief explanation of why to buy now or wait",',
        '  "pricePoint": "Current price assessment (e.g., \'Good deal\', '
        "'Fair price', 'Overpriced')\",",
        '  "confidence": number (1-100)',
        "}",
        "",
        "Consider current price vs historical prices, recent trends, "
        "stock availability, seasonal patterns and platform comparison.",
    ]
    return "\n".join(lines)


class RecommendationEngine:
    """Ask the model for a buy/wait judgment; fall back locally on failure."""

    def __init__(
        self,
        api_key: str = "",
        model: str = Settings.OPENAI_MODEL,
        client: Any = None,
        temperature: float = Settings.OPENAI_TEMPERATURE,
        max_tokens: int = Settings.OPENAI_MAX_TOKENS,
        history_window: int = Settings.HISTORY_WINDOW,
        timeout: float = float(Settings.REQUEST_TIMEOUT * 2),
    ) -> None:
        if client is None and api_key:
            client = OpenAI(api_key=api_key, timeout=timeout)
        self._client = client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.history_window = history_window

    def _ask_model(self, prompt: str) -> Recommendation:
        """Single model round trip.

        Raises:
            UpstreamModelFailure: On any API or parsing problem.
        """
        if self._client is None:
            raise UpstreamModelFailure("OpenAI API key not configured")
        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                response_format={"type": "json_object"},
            )
            content = response.choices[0].message.content or ""
        except Exception as exc:
            raise UpstreamModelFailure(f"OpenAI API error: {exc}") from exc

        try:
            return Recommendation.from_payload(_extract_json_object(content))
        except (json.JSONDecodeError, ValueError) as exc:
            raise UpstreamModelFailure(
                f"Unusable model response: {exc}"
            ) from exc

    def recommend(
        self,
        product: ProductSummary,
        history: list[HistoryEntry],
        stats: PriceStatistics | None = None,
    ) -> Recommendation:
        """Return a buy/wait judgment for *product*.

        Only the ``history_window`` most recent entries are used.  When
        *stats* is omitted it is computed from *history*.

        Raises:
            InvalidRequest: If there is neither history nor stats.
        """
        recent = history[: self.history_window]
        if stats is None:
            stats = PriceStatistics.from_prices([h.price for h in recent])
        if stats is None:
            raise InvalidRequest(
                "Price history or statistics are required"
            )

        prompt = build_prompt(product, recent, stats)
        try:
            recommendation = self._ask_model(prompt)
        except UpstreamModelFailure as exc:
            logger.warning(
                "Model recommendation failed for '%s', using fallback: %s",
                product.name,
                exc,
            )
            return fallback_recommendation(stats)

        logger.info(
            "AI recommendation generated for product: %s", product.name,
        )
        return recommendation
