"""
Static price feed adapter - Implements PriceFeed protocol.

Serves a fixed price for local development, stamped with the current
time so it never trips the staleness check.
"""

from registrar.domain.models import PriceReading
from registrar.domain.ports import Clock


class StaticPriceFeed:
    """
    Implements PriceFeed protocol with a configured constant price.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, clock: Clock, price: int, confidence: int = 0, exponent: int = -8) -> None:
        self._clock = clock
        self._price = price
        self._confidence = confidence
        self._exponent = exponent

    def latest(self, feed_id: str) -> PriceReading:
        return PriceReading(
            feed_id=feed_id,
            price=self._price,
            confidence=self._confidence,
            exponent=self._exponent,
            publish_time=self._clock.now(),
        )
