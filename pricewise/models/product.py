# pricewise/models/product.py

"""Product data models for inter-module data flow."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class ProductData:
    """What the page extractor read from a single product page."""

    name: str
    price: float
    platform: str
    platform_url: str
    currency: str = "INR"
    brand: str = ""
    image_url: str = ""
    in_stock: bool = True
    degraded: bool = False


@dataclass
class Product:
    """A tracked retail item, owned by one user."""

    id: str
    owner: str
    name: str
    source_url: str
    created_at: datetime
    updated_at: datetime
    brand: str = ""
    category: str = ""
    description: str = ""
    image_url: str = ""

    def to_dict(self) -> dict[str, object]:
        """Serialise to the column names used by the handlers."""
        return {
            "id": self.id,
            "user_id": self.owner,
            "product_name": self.name,
            "brand": self.brand or None,
            "category": self.category or None,
            "description": self.description or None,
            "image_url": self.image_url or None,
            "original_url": self.source_url,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
