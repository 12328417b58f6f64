"""
Hermes price feed adapter - Implements PriceFeed protocol.

Reads the latest Pyth price update for a feed from a Hermes endpoint.
Only the fields needed for pricing are parsed; everything else in the
payload is ignored. Network and payload problems surface as
PriceFeedUnavailable so callers see a single failure type.
"""

import logging
from typing import Any, Optional

import httpx

from registrar.domain.exceptions import PriceFeedUnavailable
from registrar.domain.models import PriceReading

logger = logging.getLogger(__name__)

LATEST_PRICE_PATH = "/v2/updates/price/latest"


class HermesPriceFeed:
    """
    Implements PriceFeed protocol over the Hermes HTTP API.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(
        self,
        base_url: str = "https://hermes.pyth.network",
        timeout: float = 5.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        """
        Initialize the price feed client.

        Args:
            base_url: Hermes endpoint, must use HTTPS
            timeout: Request timeout in seconds
            client: Preconfigured httpx client (tests inject a mock transport)
        """
        if not base_url.startswith("https://"):
            raise ValueError(f"Hermes endpoint must use HTTPS: {base_url}")
        self._client = client or httpx.Client(
            base_url=base_url,
            verify=True,
            timeout=httpx.Timeout(timeout),
        )

    def close(self) -> None:
        self._client.close()

    def latest(self, feed_id: str) -> PriceReading:
        try:
            response = self._client.get(
                LATEST_PRICE_PATH,
                params={"ids[]": feed_id, "parsed": "true"},
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as e:
            logger.warning("Hermes request for %s failed: %s", feed_id, e)
            raise PriceFeedUnavailable(f"Hermes request failed: {e}") from e
        except ValueError as e:
            raise PriceFeedUnavailable("Hermes returned a non-JSON body") from e

        return self._parse(feed_id, payload)

    def _parse(self, feed_id: str, payload: Any) -> PriceReading:
        wanted = feed_id.lower().removeprefix("0x")
        try:
            for update in payload["parsed"]:
                if update["id"].lower().removeprefix("0x") != wanted:
                    continue
                price = update["price"]
                return PriceReading(
                    feed_id=feed_id,
                    price=int(price["price"]),
                    confidence=int(price["conf"]),
                    exponent=int(price["expo"]),
                    publish_time=int(price["publish_time"]),
                )
        except (KeyError, TypeError, ValueError) as e:
            raise PriceFeedUnavailable(f"Malformed Hermes payload: {e!r}") from e

        raise PriceFeedUnavailable(f"Hermes returned no update for feed {feed_id}")
