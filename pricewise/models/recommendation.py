# pricewise/models/recommendation.py

"""Buy/wait judgment returned by the recommendation engine."""

import math
from dataclasses import dataclass


@dataclass
class Recommendation:
    """A buy/wait judgment; recomputed per request, never stored."""

    should_buy: bool
    reason: str
    price_point: str
    confidence: int
    source: str = "model"  # "model" or "fallback"

    @classmethod
    def from_payload(cls, payload: object) -> "Recommendation":
        """Validate a decoded model answer.

        Raises:
            ValueError: If a key is missing or has the wrong type.
        """
        if not isinstance(payload, dict):
            raise ValueError("recommendation must be a JSON object")
        should_buy = payload.get("shouldBuy")
        reason = payload.get("reason")
        price_point = payload.get("pricePoint")
        confidence = payload.get("confidence")
        if not isinstance(should_buy, bool):
            raise ValueError("shouldBuy must be a boolean")
        if not isinstance(reason, str) or not reason.strip():
            raise ValueError("reason must be a non-empty string")
        if not isinstance(price_point, str):
            raise ValueError("pricePoint must be a string")
        if isinstance(confidence, bool) or not isinstance(
            confidence, (int, float)
        ):
            raise ValueError("confidence must be a number")
        if not math.isfinite(confidence):
            raise ValueError("confidence must be finite")
        return cls(
            should_buy=should_buy,
            reason=reason.strip(),
            price_point=price_point.strip(),
            confidence=max(0, min(100, round(confidence))),
        )

    def to_dict(self) -> dict[str, object]:
        """Serialise to the JSON shape the model is asked for."""
        return {
            "shouldBuy": self.should_buy,
            "reason": self.reason,
            "pricePoint": self.price_point,
            "confidence": self.confidence,
        }
