"""
API v1 routes.

Defines REST endpoints for the domain registrar: registry administration,
fee withdrawal, price quotes and the domain lifecycle.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from registrar.api.dependencies import (
    get_lifecycle_service,
    get_registry_service,
    get_signer,
    get_treasury_service,
)
from registrar.api.models import (
    BuyDomainRequest,
    DomainResponse,
    ErrorResponse,
    InitializeRequest,
    QuoteResponse,
    RegisterDomainRequest,
    RegistryConfigResponse,
    RenewDomainRequest,
    TransferDomainRequest,
    TreasuryResponse,
    UpdateAddressesRequest,
    UpdateGracePeriodRequest,
    UpdatePriceRequest,
    WithdrawRequest,
    WithdrawResponse,
)
from registrar.domain import exceptions as errors
from registrar.domain.lifecycle import DomainLifecycleService
from registrar.domain.models import RegistryConfig, config_address, domain_address
from registrar.domain.registry import RegistryConfigService
from registrar.domain.treasury import TreasuryService

router = APIRouter(tags=["v1"])

_STATUS_BY_ERROR: dict[type[errors.RegistrarError], int] = {
    errors.AlreadyInitialized: status.HTTP_409_CONFLICT,
    errors.RegistryNotInitialized: status.HTTP_404_NOT_FOUND,
    errors.NotProgramAuthority: status.HTTP_403_FORBIDDEN,
    errors.InvalidSigner: status.HTTP_403_FORBIDDEN,
    errors.InvalidConfigValue: status.HTTP_422_UNPROCESSABLE_ENTITY,
    errors.NotDomainOwner: status.HTTP_403_FORBIDDEN,
    errors.DomainAlreadyRegistered: status.HTTP_409_CONFLICT,
    errors.DomainNotFound: status.HTTP_404_NOT_FOUND,
    errors.DomainNotAvailableForPurchase: status.HTTP_409_CONFLICT,
    errors.DomainExpiredBeyondGracePeriod: status.HTTP_409_CONFLICT,
    errors.InvalidDomainName: status.HTTP_422_UNPROCESSABLE_ENTITY,
    errors.InvalidRegisterYears: status.HTTP_422_UNPROCESSABLE_ENTITY,
    errors.TooManyAddresses: status.HTTP_422_UNPROCESSABLE_ENTITY,
    errors.InvalidChainAddress: status.HTTP_422_UNPROCESSABLE_ENTITY,
    errors.InvalidRecordAddress: status.HTTP_400_BAD_REQUEST,
    errors.StalePriceFeed: status.HTTP_503_SERVICE_UNAVAILABLE,
    errors.PriceFeedUnreliable: status.HTTP_503_SERVICE_UNAVAILABLE,
    errors.InvalidPriceFeed: status.HTTP_503_SERVICE_UNAVAILABLE,
    errors.PriceFeedUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
    errors.InsufficientFunds: status.HTTP_402_PAYMENT_REQUIRED,
}

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Record address mismatch"},
    402: {"model": ErrorResponse, "description": "Insufficient funds"},
    403: {"model": ErrorResponse, "description": "Signer is not allowed to perform this action"},
    404: {"model": ErrorResponse, "description": "Registry or domain not found"},
    409: {"model": ErrorResponse, "description": "Operation conflicts with the record's state"},
    503: {"model": ErrorResponse, "description": "Price feed unusable"},
}


def _http_error(exc: errors.RegistrarError) -> HTTPException:
    """Translate a domain error into an HTTP error carrying its code and message."""
    return HTTPException(
        status_code=_STATUS_BY_ERROR.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR),
        detail={"error": exc.code, "message": str(exc)},
    )


def _config_response(config: RegistryConfig, program_id: str) -> RegistryConfigResponse:
    return RegistryConfigResponse(
        address=config_address(program_id),
        authority=config.authority,
        base_price_usd_cents=config.base_price_usd_cents,
        grace_period_seconds=config.grace_period_seconds,
        domains_registered=config.domains_registered,
    )


# Registry administration


@router.post(
    "/registry/initialize",
    response_model=RegistryConfigResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_ERROR_RESPONSES,
    summary="Initialize the registry",
    description="Create the registry configuration. The signer becomes the authority "
    "and funds the treasury's minimum reserve. Can only succeed once.",
)
def initialize(
    request_data: InitializeRequest,
    signer: str = Depends(get_signer),
    service: RegistryConfigService = Depends(get_registry_service),
) -> RegistryConfigResponse:
    try:
        config = service.initialize(
            signer, request_data.base_price_usd_cents, request_data.grace_period_seconds
        )
    except errors.RegistrarError as e:
        raise _http_error(e) from None
    return _config_response(config, service.program_id)


@router.get(
    "/registry",
    response_model=RegistryConfigResponse,
    responses=_ERROR_RESPONSES,
    summary="Read the registry configuration",
)
def get_registry(
    service: RegistryConfigService = Depends(get_registry_service),
) -> RegistryConfigResponse:
    try:
        config = service.get_config()
    except errors.RegistrarError as e:
        raise _http_error(e) from None
    return _config_response(config, service.program_id)


@router.put(
    "/registry/price",
    response_model=RegistryConfigResponse,
    responses=_ERROR_RESPONSES,
    summary="Update the base price",
)
def update_price(
    request_data: UpdatePriceRequest,
    signer: str = Depends(get_signer),
    service: RegistryConfigService = Depends(get_registry_service),
) -> RegistryConfigResponse:
    try:
        config = service.update_price(signer, request_data.base_price_usd_cents)
    except errors.RegistrarError as e:
        raise _http_error(e) from None
    return _config_response(config, service.program_id)


@router.put(
    "/registry/grace-period",
    response_model=RegistryConfigResponse,
    responses=_ERROR_RESPONSES,
    summary="Update the grace period",
)
def update_grace_period(
    request_data: UpdateGracePeriodRequest,
    signer: str = Depends(get_signer),
    service: RegistryConfigService = Depends(get_registry_service),
) -> RegistryConfigResponse:
    try:
        config = service.update_grace_period(signer, request_data.grace_period_seconds)
    except errors.RegistrarError as e:
        raise _http_error(e) from None
    return _config_response(config, service.program_id)


@router.get(
    "/registry/treasury",
    response_model=TreasuryResponse,
    responses=_ERROR_RESPONSES,
    summary="Read the treasury balance",
)
def get_treasury(
    service: TreasuryService = Depends(get_treasury_service),
) -> TreasuryResponse:
    try:
        balance = service.balance()
    except errors.RegistrarError as e:
        raise _http_error(e) from None
    return TreasuryResponse(
        address=service.treasury_address,
        balance=balance.balance,
        min_reserve=balance.min_reserve,
        withdrawable=balance.withdrawable,
    )


@router.post(
    "/registry/withdraw",
    response_model=WithdrawResponse,
    responses=_ERROR_RESPONSES,
    summary="Withdraw collected fees to the authority",
    description="Callable by anyone. Funds always go to the configured authority; "
    "the treasury keeps its minimum reserve.",
)
def withdraw_fees(
    request_data: WithdrawRequest,
    signer: str = Depends(get_signer),
    service: TreasuryService = Depends(get_treasury_service),
    registry: RegistryConfigService = Depends(get_registry_service),
) -> WithdrawResponse:
    try:
        withdrawn = service.withdraw_fees(signer, request_data.amount)
        authority = registry.get_config().authority
    except errors.RegistrarError as e:
        raise _http_error(e) from None
    return WithdrawResponse(withdrawn=withdrawn, authority=authority)


@router.get(
    "/quote",
    response_model=QuoteResponse,
    responses=_ERROR_RESPONSES,
    summary="Quote the native price of a registration",
)
def quote(
    years: int = Query(1, ge=1, le=99),
    service: DomainLifecycleService = Depends(get_lifecycle_service),
) -> QuoteResponse:
    try:
        amount = service.quote(years)
    except errors.RegistrarError as e:
        raise _http_error(e) from None
    return QuoteResponse(years=years, amount=amount)


# Domain lifecycle


@router.post(
    "/domains",
    response_model=DomainResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_ERROR_RESPONSES,
    summary="Register a new domain",
    description="Register a never-used domain name. The signer pays; "
    "the owner may be any identity.",
)
def register_domain(
    request_data: RegisterDomainRequest,
    signer: str = Depends(get_signer),
    service: DomainLifecycleService = Depends(get_lifecycle_service),
) -> DomainResponse:
    try:
        record = service.register_domain(
            signer,
            request_data.domain_name,
            request_data.years,
            [a.to_domain() for a in request_data.addresses],
            request_data.owner,
            record_address=request_data.record_address,
        )
    except errors.RegistrarError as e:
        raise _http_error(e) from None
    return DomainResponse.from_record(record, domain_address(service.program_id, record.domain_name))


@router.get(
    "/domains/{domain_name}",
    response_model=DomainResponse,
    responses=_ERROR_RESPONSES,
    summary="Read a domain record and its lifecycle state",
)
def get_domain(
    domain_name: str,
    service: DomainLifecycleService = Depends(get_lifecycle_service),
) -> DomainResponse:
    try:
        view = service.get_domain(domain_name)
    except errors.RegistrarError as e:
        raise _http_error(e) from None
    return DomainResponse.from_record(view.record, view.address, view.state.value)


@router.post(
    "/domains/{domain_name}/renew",
    response_model=DomainResponse,
    responses=_ERROR_RESPONSES,
    summary="Renew a domain",
    description="Extend the domain's expiry. Anyone may pay for a renewal.",
)
def renew_domain(
    domain_name: str,
    request_data: RenewDomainRequest,
    signer: str = Depends(get_signer),
    service: DomainLifecycleService = Depends(get_lifecycle_service),
) -> DomainResponse:
    try:
        record = service.renew_domain(
            signer, domain_name, request_data.years, record_address=request_data.record_address
        )
    except errors.RegistrarError as e:
        raise _http_error(e) from None
    return DomainResponse.from_record(record, domain_address(service.program_id, record.domain_name))


@router.post(
    "/domains/{domain_name}/buy",
    response_model=DomainResponse,
    responses=_ERROR_RESPONSES,
    summary="Buy a reclaimable domain",
    description="Take over a domain that expired beyond its grace period.",
)
def buy_domain(
    domain_name: str,
    request_data: BuyDomainRequest,
    signer: str = Depends(get_signer),
    service: DomainLifecycleService = Depends(get_lifecycle_service),
) -> DomainResponse:
    try:
        record = service.buy_domain(
            signer,
            domain_name,
            request_data.years,
            [a.to_domain() for a in request_data.addresses],
            request_data.owner,
            record_address=request_data.record_address,
        )
    except errors.RegistrarError as e:
        raise _http_error(e) from None
    return DomainResponse.from_record(record, domain_address(service.program_id, record.domain_name))


@router.put(
    "/domains/{domain_name}/addresses",
    response_model=DomainResponse,
    responses=_ERROR_RESPONSES,
    summary="Replace a domain's chain addresses",
)
def update_addresses(
    domain_name: str,
    request_data: UpdateAddressesRequest,
    signer: str = Depends(get_signer),
    service: DomainLifecycleService = Depends(get_lifecycle_service),
) -> DomainResponse:
    try:
        record = service.update_addresses(
            signer,
            domain_name,
            [a.to_domain() for a in request_data.addresses],
            record_address=request_data.record_address,
        )
    except errors.RegistrarError as e:
        raise _http_error(e) from None
    return DomainResponse.from_record(record, domain_address(service.program_id, record.domain_name))


@router.post(
    "/domains/{domain_name}/transfer",
    response_model=DomainResponse,
    responses=_ERROR_RESPONSES,
    summary="Transfer a domain to a new owner",
)
def transfer_domain(
    domain_name: str,
    request_data: TransferDomainRequest,
    signer: str = Depends(get_signer),
    service: DomainLifecycleService = Depends(get_lifecycle_service),
) -> DomainResponse:
    try:
        record = service.transfer_domain(
            signer, domain_name, request_data.new_owner, record_address=request_data.record_address
        )
    except errors.RegistrarError as e:
        raise _http_error(e) from None
    return DomainResponse.from_record(record, domain_address(service.program_id, record.domain_name))
