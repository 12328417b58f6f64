"""
Domain exceptions - Semantic error types for the registrar.

Every rejected operation raises one of these before any state is touched.
Each class carries a stable ``code`` (its class name) and a default message
so adapters can surface failures verbatim to callers.
"""


class RegistrarError(Exception):
    """Base class for registrar domain errors."""

    message = "Registrar operation failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)

    @property
    def code(self) -> str:
        return type(self).__name__


# Registry configuration


class AlreadyInitialized(RegistrarError):
    message = "Registry is already initialized"


class RegistryNotInitialized(RegistrarError):
    message = "Registry has not been initialized"


class NotProgramAuthority(RegistrarError):
    message = "Only the program authority can perform this action"


class InvalidConfigValue(RegistrarError):
    message = "Configuration value must be a positive integer"


class InvalidSigner(RegistrarError):
    message = "Derived record addresses cannot authorize operations"


# Domain records


class NotDomainOwner(RegistrarError):
    message = "Only the domain owner can perform this action"


class DomainAlreadyRegistered(RegistrarError):
    message = "Domain is already registered, use buy once it becomes reclaimable"


class DomainNotFound(RegistrarError):
    message = "Domain has never been registered"


class DomainNotAvailableForPurchase(RegistrarError):
    message = "Domain is not available for purchase, must be expired and beyond grace period"


class DomainExpiredBeyondGracePeriod(RegistrarError):
    message = "Domain is expired beyond grace period, use buy instead"


class InvalidDomainName(RegistrarError):
    message = "Invalid domain name length"


class InvalidRegisterYears(RegistrarError):
    message = "Invalid number of years for registration"


class TooManyAddresses(RegistrarError):
    message = "Too many addresses"


class InvalidChainAddress(RegistrarError):
    message = "Invalid chain address"


class InvalidRecordAddress(RegistrarError):
    message = "Supplied record address does not match the derived address"


class RecordDecodeError(RegistrarError):
    message = "Stored record has an unexpected discriminator"


# Price oracle


class StalePriceFeed(RegistrarError):
    message = "Price feed reading is too old"


class PriceFeedUnreliable(RegistrarError):
    message = "Price feed confidence interval is too wide"


class InvalidPriceFeed(RegistrarError):
    message = "Invalid price feed reading"


class PriceFeedUnavailable(RegistrarError):
    message = "Price feed could not be read"


# Funds


class InsufficientFunds(RegistrarError):
    message = "Insufficient funds"
