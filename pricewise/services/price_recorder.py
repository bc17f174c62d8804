# pricewise/services/price_recorder.py

"""Turn one extraction into one persisted price-history record."""

import logging

from pricewise.models.product import ProductData
from pricewise.storage.price_store import PriceStore

logger = logging.getLogger("pricewise.recorder")


class PriceRecorder:
    """Append-only writer of price observations.

    Every call writes a new record, even when the price is unchanged
    since the last one, so the history reflects every observation.
    """

    def __init__(self, store: PriceStore) -> None:
        self.store = store

    def record(self, product_id: str, data: ProductData) -> str:
        """Persist *data* as a price record for *product_id*.

        Raises:
            ValueError: If the price is negative.
            PersistenceFailure: If the store rejects the write (for
                example, an unknown product id).
        """
        if data.price < 0:
            raise ValueError(f"Negative price {data.price} for {data.name}")
        record_id = self.store.add_price_record(
            product_id=product_id,
            platform=data.platform,
            platform_url=data.platform_url,
            price=data.price,
            currency=data.currency,
            in_stock=data.in_stock,
        )
        logger.info(
            "Recorded %s %.2f from %s for product %s",
            data.currency,
            data.price,
            data.platform,
            product_id,
        )
        return record_id
