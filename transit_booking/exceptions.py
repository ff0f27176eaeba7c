"""Domain error kinds raised by the booking system.

Every error carries a machine-readable ``ErrorCode`` and a user-safe message.
Callers catch the four kinds (input validation, missing entity, business rule,
storage); the subclasses exist so logs and tests can tell sub-cases apart.
"""

from enum import Enum
from typing import Optional


class ErrorCode(str, Enum):
    """Domain error codes."""

    INVALID_INPUT = "INVALID_INPUT"
    ENTITY_NOT_FOUND = "ENTITY_NOT_FOUND"
    BUSINESS_RULE = "BUSINESS_RULE"
    DUPLICATE_EMAIL = "DUPLICATE_EMAIL"
    DUPLICATE_LOCATION = "DUPLICATE_LOCATION"
    AUTHENTICATION_FAILED = "AUTHENTICATION_FAILED"
    NOT_AUTHORIZED = "NOT_AUTHORIZED"
    NOT_OWNER = "NOT_OWNER"
    SAME_LOCATION = "SAME_LOCATION"
    SOLD_OUT = "SOLD_OUT"
    CLASS_SOLD_OUT = "CLASS_SOLD_OUT"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    STORAGE_ERROR = "STORAGE_ERROR"
    LOCK_TIMEOUT = "LOCK_TIMEOUT"


class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    default_code = ErrorCode.BUSINESS_RULE

    def __init__(self, message: str, code: Optional[ErrorCode] = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code

    def __str__(self) -> str:
        return self.message


class InputValidationError(DomainError):
    """Raised for malformed or out-of-range caller input."""

    default_code = ErrorCode.INVALID_INPUT


class EntityNotFoundError(DomainError):
    """Raised when a referenced key is absent from storage."""

    default_code = ErrorCode.ENTITY_NOT_FOUND


class BusinessRuleError(DomainError):
    """Raised when a domain rule blocks an otherwise well-formed operation."""

    default_code = ErrorCode.BUSINESS_RULE


class DuplicateEmailError(BusinessRuleError):
    """Raised when registering an e-mail address that is already taken."""

    def __init__(self, email: str) -> None:
        super().__init__("Registration failed!", ErrorCode.DUPLICATE_EMAIL)
        self.email = email


class AuthenticationFailedError(BusinessRuleError):
    """Raised when a stored credential does not match the candidate password."""

    def __init__(self, message: str) -> None:
        super().__init__(message, ErrorCode.AUTHENTICATION_FAILED)


class NotAuthorizedError(BusinessRuleError):
    """Raised when the caller lacks the role or ownership an operation needs."""

    def __init__(self, message: str = "You are not authorized to perform this operation!",
                 code: ErrorCode = ErrorCode.NOT_AUTHORIZED) -> None:
        super().__init__(message, code)


class SoldOutError(BusinessRuleError):
    """Raised when the requested class has no seats left.

    ``alternative_class`` names the other train class when it still has room.
    """

    def __init__(self, message: str, alternative_class: Optional[int] = None) -> None:
        code = ErrorCode.CLASS_SOLD_OUT if alternative_class is not None else ErrorCode.SOLD_OUT
        super().__init__(message, code)
        self.alternative_class = alternative_class


class InsufficientBalanceError(BusinessRuleError):
    """Raised when a customer cannot afford a ticket."""

    def __init__(self, price: int, balance: int) -> None:
        super().__init__("You do not have enough money to purchase this ticket!", ErrorCode.INSUFFICIENT_BALANCE)
        self.price = price
        self.balance = balance


class StorageError(DomainError):
    """Raised when a storage backend itself fails (I/O, connectivity)."""

    default_code = ErrorCode.STORAGE_ERROR


class LockTimeoutError(DomainError):
    """Raised when a per-key lock cannot be acquired within the configured wait."""

    default_code = ErrorCode.LOCK_TIMEOUT
