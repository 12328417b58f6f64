"""
Quote resolver - Converts a fiat base price into a native-currency amount.

The base price is kept in USD cents; the oracle reports the USD price of
one native unit as a fixed-point integer with a decimal exponent. The
amount charged is expressed in the smallest indivisible native unit and is
always rounded up so the registry is never underpaid.
"""

import logging
from dataclasses import dataclass

from .exceptions import InvalidPriceFeed, PriceFeedUnreliable, StalePriceFeed
from .models import PriceReading
from .ports import PriceFeed

logger = logging.getLogger(__name__)

# SOL/USD feed id on the Pyth network
SOL_USD_PRICE_FEED_ID = "0xef0d8b6fda2ceba41da15d4095d1da392a0d2f8ed0c6c7bc0f4cfac8c280b56d"


@dataclass(frozen=True)
class QuotePolicy:
    """Deployment thresholds applied to every oracle reading."""

    feed_id: str = SOL_USD_PRICE_FEED_ID
    max_age_seconds: int = 60
    max_confidence_bps: int = 200  # confidence may be at most 2% of price
    native_decimals: int = 9  # 1 SOL = 10**9 lamports


def _normalize_feed_id(feed_id: str) -> str:
    return feed_id.lower().removeprefix("0x")


def validate_reading(reading: PriceReading, now: int, policy: QuotePolicy) -> None:
    """
    Reject readings that must not be used for pricing.

    Raises:
        InvalidPriceFeed: Wrong feed or non-positive price
        StalePriceFeed: Reading older than ``policy.max_age_seconds``
        PriceFeedUnreliable: Confidence interval wider than allowed
    """
    if _normalize_feed_id(reading.feed_id) != _normalize_feed_id(policy.feed_id):
        raise InvalidPriceFeed(f"Unexpected price feed {reading.feed_id}")
    if reading.price <= 0:
        raise InvalidPriceFeed(f"Non-positive price {reading.price}")

    age = now - reading.publish_time
    if age > policy.max_age_seconds:
        logger.warning("Price feed reading is %s seconds old (max %s)", age, policy.max_age_seconds)
        raise StalePriceFeed(f"Price reading is {age} seconds old, max {policy.max_age_seconds}")

    if reading.confidence * 10_000 > reading.price * policy.max_confidence_bps:
        logger.warning(
            "Price feed confidence %s too wide for price %s", reading.confidence, reading.price
        )
        raise PriceFeedUnreliable(
            f"Confidence {reading.confidence} exceeds {policy.max_confidence_bps} bps of price {reading.price}"
        )


def quote_native_amount(
    reading: PriceReading,
    base_price_usd_cents: int,
    years: int,
    now: int,
    policy: QuotePolicy,
) -> int:
    """
    Compute the native amount owed for ``years`` of registration.

    amount = ceil(cents * years * 10**decimals * 10**(-exponent) / (price * 100))

    Evaluated in exact integer arithmetic and rounded up once, on the total.
    """
    validate_reading(reading, now, policy)

    numerator = base_price_usd_cents * years * 10**policy.native_decimals
    denominator = reading.price * 100
    if reading.exponent < 0:
        numerator *= 10 ** (-reading.exponent)
    else:
        denominator *= 10**reading.exponent

    return -(-numerator // denominator)


@dataclass
class QuoteResolver:
    """Reads the oracle and prices registrations. Never mutates state."""

    price_feed: PriceFeed
    policy: QuotePolicy

    def read(self) -> PriceReading:
        """Fetch the latest reading of the configured feed, unvalidated."""
        return self.price_feed.latest(self.policy.feed_id)

    def price(self, reading: PriceReading, base_price_usd_cents: int, years: int, now: int) -> int:
        """Validate a previously fetched reading against ``now`` and price with it."""
        return quote_native_amount(reading, base_price_usd_cents, years, now, self.policy)

    def quote(self, base_price_usd_cents: int, years: int, now: int) -> int:
        return self.price(self.read(), base_price_usd_cents, years, now)
