"""Price oracle adapters - PriceFeed implementations."""

from .hermes import HermesPriceFeed
from .static import StaticPriceFeed

__all__ = ["HermesPriceFeed", "StaticPriceFeed"]
