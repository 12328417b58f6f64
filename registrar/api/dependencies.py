"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.
"""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import APIKeyHeader

from registrar.config.settings import Settings, get_settings
from registrar.domain.lifecycle import DomainLifecycleService
from registrar.domain.ports import Clock, PriceFeed, RegistryStore
from registrar.domain.quote import QuotePolicy, QuoteResolver
from registrar.domain.registry import RegistryConfigService
from registrar.domain.treasury import TreasuryService


def get_store(request: Request) -> RegistryStore:
    """
    Get registry store from app state.

    The store is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.store


def get_price_feed(request: Request) -> PriceFeed:
    return request.app.state.price_feed


def get_clock(request: Request) -> Clock:
    return request.app.state.clock


def get_quote_policy(settings: Settings) -> QuotePolicy:
    return QuotePolicy(
        feed_id=settings.price_feed_id,
        max_age_seconds=settings.price_feed_max_age_seconds,
        max_confidence_bps=settings.price_feed_max_confidence_bps,
        native_decimals=settings.native_decimals,
    )


def get_registry_service(request: Request) -> RegistryConfigService:
    settings = get_settings()
    return RegistryConfigService(
        store=get_store(request),
        program_id=settings.program_id,
        min_reserve=settings.config_min_reserve,
    )


def get_treasury_service(request: Request) -> TreasuryService:
    settings = get_settings()
    return TreasuryService(
        store=get_store(request),
        program_id=settings.program_id,
        min_reserve=settings.config_min_reserve,
    )


def get_lifecycle_service(request: Request) -> DomainLifecycleService:
    """
    Create lifecycle service with injected dependencies.

    Wires together the store, quote resolver and clock for the domain service.
    """
    settings = get_settings()
    return DomainLifecycleService(
        store=get_store(request),
        quotes=QuoteResolver(
            price_feed=get_price_feed(request),
            policy=get_quote_policy(settings),
        ),
        clock=get_clock(request),
        program_id=settings.program_id,
    )


# Identity that authorized the call; signature checks happen at the gateway
signer_header = APIKeyHeader(name="X-Signer", description="Identity authorizing the operation")


def get_signer(signer: str = Depends(signer_header)) -> str:
    """
    Extract the authorizing identity from the X-Signer header.

    FastAPI's APIKeyHeader rejects requests without the header; blank
    values are rejected here.
    """
    signer = signer.strip()
    if not signer:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "MissingSigner", "message": "X-Signer header is empty"},
        )
    return signer
