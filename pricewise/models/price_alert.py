# pricewise/models/price_alert.py

"""Target-price alert model."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class PriceAlert:
    """A user's target price for one of their products."""

    id: str
    owner: str
    product_id: str
    target_price: float
    created_at: datetime
    is_active: bool = True
