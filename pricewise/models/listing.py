# pricewise/models/listing.py

"""Search-result listing models used by the platform matcher."""

from dataclasses import dataclass, field

from pricewise.models.price_record import format_price


@dataclass
class AlternateListing:
    """A candidate listing of the same product on another platform."""

    platform: str
    name: str
    price: float
    url: str
    image_url: str = ""
    similarity: float = 0.0
    in_stock: bool = True
    currency: str = "INR"

    @property
    def display_price(self) -> str:
        """Price formatted for messages."""
        return format_price(self.price, self.currency)

    def to_dict(self) -> dict[str, object]:
        """Serialise for the search-platforms handler."""
        return {
            "platform": self.platform,
            "name": self.name,
            "price": self.price,
            "displayPrice": self.display_price,
            "url": self.url,
            "image": self.image_url or None,
            "availability": "In Stock" if self.in_stock else "Out of Stock",
            "similarity": round(self.similarity, 3),
        }


@dataclass
class MatchResult:
    """Everything one cross-platform search produced."""

    searched_name: str
    results: list[AlternateListing] = field(
        default_factory=lambda: list[AlternateListing]()
    )
    message: str = ""
    errors: list[str] = field(
        default_factory=lambda: list[str]()
    )

    @property
    def best_deal(self) -> AlternateListing | None:
        """The cheapest accepted listing (results are price-sorted)."""
        return self.results[0] if self.results else None

    def to_dict(self) -> dict[str, object]:
        """Serialise for the search-platforms handler."""
        best = self.best_deal
        return {
            "results": [r.to_dict() for r in self.results],
            "count": len(self.results),
            "message": self.message,
            "bestDeal": (
                {
                    "platform": best.platform,
                    "price": best.price,
                    "displayPrice": best.display_price,
                    "url": best.url,
                }
                if best
                else None
            ),
        }
