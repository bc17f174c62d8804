# pricewise/models/price_record.py

"""Price observation and derived statistics models."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class PriceRecord:
    """A single price observation for a product on one platform."""

    id: str
    product_id: str
    platform: str
    platform_url: str
    price: float
    currency: str
    in_stock: bool
    captured_at: datetime

    def to_dict(self) -> dict[str, object]:
        """Serialise to the column names used by the handlers."""
        return {
            "id": self.id,
            "product_id": self.product_id,
            "platform_name": self.platform,
            "platform_url": self.platform_url,
            "price": self.price,
            "currency": self.currency,
            "in_stock": self.in_stock,
            "scraped_at": self.captured_at.isoformat(),
        }


@dataclass
class PriceStatistics:
    """Aggregates over a product's price history."""

    current: float
    min: float
    max: float
    avg: float
    count: int = 0

    @classmethod
    def from_prices(
        cls, prices: list[float],
    ) -> "PriceStatistics | None":
        """Compute stats from prices ordered most recent first."""
        if not prices:
            return None
        return cls(
            current=prices[0],
            min=min(prices),
            max=max(prices),
            avg=round(sum(prices) / len(prices), 2),
            count=len(prices),
        )

    @property
    def variation_pct(self) -> float:
        """Spread between the extremes as a percentage of the minimum."""
        if self.min <= 0:
            return 0.0
        return (self.max - self.min) / self.min * 100

    def to_dict(self) -> dict[str, object]:
        """Serialise to the keys used by the handlers."""
        return {
            "current": self.current,
            "min": self.min,
            "max": self.max,
            "avg": self.avg,
            "count": self.count,
        }


_CURRENCY_SYMBOLS: dict[str, str] = {"INR": "₹", "USD": "$"}


def _group_indian(whole: str) -> str:
    """Group digits the Indian way: last three, then pairs."""
    if len(whole) <= 3:
        return whole
    head, tail = whole[:-3], whole[-3:]
    pairs: list[str] = []
    while len(head) > 2:
        pairs.insert(0, head[-2:])
        head = head[:-2]
    if head:
        pairs.insert(0, head)
    return ",".join(pairs) + "," + tail


def format_price(amount: float, currency: str = "INR") -> str:
    """Render a price for messages, e.g. ``₹1,29,999`` or ``₹799.50``."""
    symbol = _CURRENCY_SYMBOLS.get(currency, f"{currency} ")
    whole, _, fraction = f"{amount:.2f}".partition(".")
    if currency == "INR":
        grouped = _group_indian(whole)
    else:
        grouped = f"{int(whole):,}"
    if fraction != "00":
        grouped = f"{grouped}.{fraction}"
    return f"{symbol}{grouped}"
