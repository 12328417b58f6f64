"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
"""

from typing import Annotated, Optional

from pydantic import BaseModel, Field

from registrar.domain.models import ChainAddress, DomainRecord


class ChainAddressModel(BaseModel):
    """An address bound to a domain on one chain."""

    chain_id: int = Field(..., ge=0, le=255, description="Chain type id (0=Solana, 1=Ethereum, ...)")
    address: str = Field(..., min_length=1, max_length=64)

    def to_domain(self) -> ChainAddress:
        return ChainAddress(chain_id=self.chain_id, address=self.address)

    @classmethod
    def from_domain(cls, address: ChainAddress) -> "ChainAddressModel":
        return cls(chain_id=address.chain_id, address=address.address)


AddressList = list[ChainAddressModel]

Years = Annotated[int, Field(ge=1, le=99, description="Registration period in years")]
RecordAddress = Annotated[
    Optional[str],
    Field(
        description=(
            "Expected record address, rejected if it does not match the address "
            "derived from the normalized (trimmed, lowercased) domain name"
        )
    ),
]


# Registry


class InitializeRequest(BaseModel):
    """Request model for registry initialization."""

    base_price_usd_cents: int = Field(..., gt=0, description="One-year price in USD cents")
    grace_period_seconds: int = Field(..., gt=0, description="Post-expiry grace window")


class UpdatePriceRequest(BaseModel):
    base_price_usd_cents: int = Field(..., gt=0)


class UpdateGracePeriodRequest(BaseModel):
    grace_period_seconds: int = Field(..., gt=0)


class RegistryConfigResponse(BaseModel):
    """Response model for the registry configuration."""

    address: str
    authority: str
    base_price_usd_cents: int
    grace_period_seconds: int
    domains_registered: int


class WithdrawRequest(BaseModel):
    """Request model for fee withdrawal (0 sweeps everything above the reserve)."""

    amount: int = Field(0, ge=0)


class WithdrawResponse(BaseModel):
    withdrawn: int
    authority: str


class TreasuryResponse(BaseModel):
    address: str
    balance: int
    min_reserve: int
    withdrawable: int


class QuoteResponse(BaseModel):
    years: int
    amount: int = Field(..., description="Native amount in the smallest unit")


# Domains


class RegisterDomainRequest(BaseModel):
    """Request model for registering a new domain."""

    domain_name: str = Field(..., min_length=1, max_length=253)
    years: Years
    addresses: AddressList = Field(default_factory=list, max_length=10)
    owner: str = Field(..., min_length=1, description="Owner identity, may differ from the payer")
    record_address: RecordAddress = None


class BuyDomainRequest(BaseModel):
    """Request model for buying a reclaimable domain."""

    years: Years
    addresses: AddressList = Field(default_factory=list, max_length=10)
    owner: str = Field(..., min_length=1)
    record_address: RecordAddress = None


class RenewDomainRequest(BaseModel):
    years: Years
    record_address: RecordAddress = None


class UpdateAddressesRequest(BaseModel):
    addresses: AddressList = Field(..., max_length=10)
    record_address: RecordAddress = None


class TransferDomainRequest(BaseModel):
    new_owner: str = Field(..., min_length=1)
    record_address: RecordAddress = None


class DomainResponse(BaseModel):
    """Response model for a domain record."""

    domain_name: str
    address: str
    owner: str
    expiry_timestamp: int
    registration_timestamp: int
    addresses: AddressList
    state: Optional[str] = None

    @classmethod
    def from_record(
        cls, record: DomainRecord, address: str, state: Optional[str] = None
    ) -> "DomainResponse":
        return cls(
            domain_name=record.domain_name,
            address=address,
            owner=record.owner,
            expiry_timestamp=record.expiry_timestamp,
            registration_timestamp=record.registration_timestamp,
            addresses=[ChainAddressModel.from_domain(a) for a in record.addresses],
            state=state,
        )


class ErrorDetail(BaseModel):
    error: str
    message: str


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: ErrorDetail
