from dataclasses import dataclass
from fastapi import status


@dataclass(frozen=True)
class ErrorDefinition:
    code: str
    message: str
    status_code: int


class ErrorCatalog:
    VALIDATION_ERROR = ErrorDefinition(
        "VALIDATION_ERROR",
        "Validation error",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
    )
    INVALID_SPEC = ErrorDefinition(
        "INVALID_SPEC",
        "Product specification is invalid",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
    )
    DUPLICATE_TAG = ErrorDefinition(
        "DUPLICATE_TAG",
        "RFID tag already exists",
        status.HTTP_409_CONFLICT,
    )
    INVALID_KILL_PASSWORD = ErrorDefinition(
        "INVALID_KILL_PASSWORD",
        "Kill password must be 8 hexadecimal characters",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
    )
    TAG_NOT_FOUND = ErrorDefinition(
        "TAG_NOT_FOUND",
        "Product not found",
        status.HTTP_404_NOT_FOUND,
    )
    TAG_ALREADY_SOLD = ErrorDefinition(
        "TAG_ALREADY_SOLD",
        "Product has already been sold",
        status.HTTP_409_CONFLICT,
    )
    TAG_ALREADY_IN_CART = ErrorDefinition(
        "TAG_ALREADY_IN_CART",
        "Item already in cart",
        status.HTTP_409_CONFLICT,
    )
    TRANSACTION_NOT_FOUND = ErrorDefinition(
        "TRANSACTION_NOT_FOUND",
        "Transaction not found",
        status.HTTP_404_NOT_FOUND,
    )
    DEVICE_UNAVAILABLE = ErrorDefinition(
        "DEVICE_UNAVAILABLE",
        "Serial device unavailable",
        status.HTTP_503_SERVICE_UNAVAILABLE,
    )
    DEVICE_READ_ERROR = ErrorDefinition(
        "DEVICE_READ_ERROR",
        "Serial device read error",
        status.HTTP_503_SERVICE_UNAVAILABLE,
    )
    DEVICE_WRITE_ERROR = ErrorDefinition(
        "DEVICE_WRITE_ERROR",
        "Serial device write error",
        status.HTTP_503_SERVICE_UNAVAILABLE,
    )
    PERSISTENCE_ERROR = ErrorDefinition(
        "PERSISTENCE_ERROR",
        "Persistence unavailable",
        status.HTTP_503_SERVICE_UNAVAILABLE,
    )
    EMPTY_CART = ErrorDefinition(
        "EMPTY_CART",
        "Cart is empty",
        status.HTTP_409_CONFLICT,
    )
    TERMINAL_BUSY = ErrorDefinition(
        "TERMINAL_BUSY",
        "Terminal did not process the event in time",
        status.HTTP_503_SERVICE_UNAVAILABLE,
    )
    DB_UNAVAILABLE = ErrorDefinition(
        "DB_UNAVAILABLE",
        "Database unavailable",
        status.HTTP_503_SERVICE_UNAVAILABLE,
    )
    INTERNAL_ERROR = ErrorDefinition(
        "INTERNAL_ERROR",
        "Internal server error",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


class AppError(Exception):
    def __init__(self, error: ErrorDefinition, details: object | None = None):
        self.error = error
        self.details = details
        super().__init__(error.message)


class ValidationError(AppError):
    """Bad or duplicate product spec, bad kill password."""


class TagLookupError(AppError):
    """Tag unknown, already sold or already in the cart."""


class DeviceError(AppError):
    """Serial device unavailable, or a read/write on it failed."""


class PersistenceError(AppError):
    """Snapshot load/save failed."""


class StateError(AppError):
    """Operation not allowed in the current terminal state."""
