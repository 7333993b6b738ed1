"""Error taxonomy shared by the services and the HTTP layer."""


class ShopError(Exception):
    """Base exception for all storefront errors."""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(ShopError):
    """Raised when a referenced entity is absent or not visible to the caller."""

    status_code = 404


class ValidationError(ShopError):
    """Raised when a business rule is violated (empty cart, stock, duplicates)."""

    status_code = 400


class UnauthorizedError(ShopError):
    """Raised when the bearer token is missing or invalid."""

    status_code = 401


class ForbiddenError(ShopError):
    """Raised when the caller is authenticated but lacks the required role."""

    status_code = 403
