# pricewise/filters/listing_validator.py

"""Listing validation: keep candidates that look like the tracked product."""

import logging

from pricewise.config.settings import Settings
from pricewise.filters.similarity import similarity
from pricewise.models.listing import AlternateListing

logger = logging.getLogger("pricewise.filters")


class ListingValidator:
    """Score listings against a reference name and drop poor matches."""

    @staticmethod
    def accept(
        listings: list[AlternateListing],
        reference_name: str,
        threshold: float = Settings.SIMILARITY_THRESHOLD,
    ) -> tuple[list[AlternateListing], int]:
        """Set each listing's similarity and keep those above *threshold*.

        Listings with a blank name or a non-positive price are dropped
        too.  Returns the accepted listings and the count of dropped ones.
        """
        accepted: list[AlternateListing] = []
        dropped = 0

        for listing in listings:
            if not listing.name.strip() or listing.price <= 0:
                dropped += 1
                continue
            listing.similarity = similarity(reference_name, listing.name)
            if listing.similarity <= threshold:
                logger.debug(
                    "Dropped '%s' from %s (similarity %.2f)",
                    listing.name,
                    listing.platform,
                    listing.similarity,
                )
                dropped += 1
                continue
            accepted.append(listing)

        return accepted, dropped
