"""Custom exception classes for the application."""


class BaseAppException(Exception):
    """Base exception class for all application exceptions."""

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(BaseAppException):
    """Raised when a request is malformed or breaks a pricing rule."""
    pass


class DiscountExceedsMaximumError(ValidationError):
    """Raised when a discount would push revenue below the aggregate floor price."""

    def __init__(self, max_discount: float, requested: float):
        super().__init__(
            f"Discount cannot exceed the maximum of {max_discount:.2f}",
            details={"maxDiscount": max_discount, "requestedDiscount": requested}
        )
        self.max_discount = max_discount


class NotFoundError(BaseAppException):
    """Raised when an order, purchase order, product or shop does not exist."""
    pass


class BusinessRuleError(BaseAppException):
    """Raised when a request is well-formed but not allowed by shop policy."""
    pass


class PurchaseOrderLockedError(BusinessRuleError):
    """Raised when a purchase order is past its deletion window."""
    pass


class InsufficientStockError(BusinessRuleError):
    """Raised when a sale would take a product's current stock below zero."""
    pass


class AuthenticationError(BaseAppException):
    """Raised when the shop identity headers cannot be verified."""
    pass


class TransactionError(BaseAppException):
    """Raised when the database fails mid-transaction."""
    pass


class ConfigurationError(BaseAppException):
    """Raised when there's a configuration error."""
    pass
