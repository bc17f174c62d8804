# pricewise/filters/deduplicator.py

"""Same-platform deduplication of alternate listings."""

import logging

from pricewise.config.settings import Settings
from pricewise.filters.similarity import similarity
from pricewise.models.listing import AlternateListing

logger = logging.getLogger("pricewise.filters")


class ListingDeduplicator:
    """Collapse near-identical listings from one platform to the cheapest."""

    @staticmethod
    def deduplicate(
        listings: list[AlternateListing],
        threshold: float = Settings.DUPLICATE_SIMILARITY,
    ) -> tuple[list[AlternateListing], int]:
        """Remove duplicates, keeping the lower-priced listing per group.

        Two listings are duplicates when they come from the same
        platform and their names score above *threshold*.  A cheaper
        newcomer replaces every kept listing it duplicates.

        Returns the deduplicated list and the count of removed dupes.
        """
        if not listings:
            return [], 0

        kept: list[AlternateListing] = []
        for listing in listings:
            duplicates = [
                existing
                for existing in kept
                if existing.platform == listing.platform
                and similarity(existing.name, listing.name) > threshold
            ]
            if not duplicates:
                kept.append(listing)
                continue
            if listing.price < min(d.price for d in duplicates):
                dup_ids = {id(d) for d in duplicates}
                kept = [k for k in kept if id(k) not in dup_ids]
                kept.append(listing)

        removed = len(listings) - len(kept)
        if removed:
            logger.info(
                "Deduplication removed %d duplicate listings", removed,
            )
        return kept, removed
