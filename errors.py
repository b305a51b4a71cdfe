"""Custom exceptions for the shop backend."""

from typing import Optional


class ShopError(Exception):
    """Base exception for all shop backend errors."""


class DatabaseUnavailableError(ShopError):
    """Raised when a storage helper is used without a configured database."""


class DataIntegrityError(ShopError):
    """Raised when stored records reference each other inconsistently."""


class MissingProductError(DataIntegrityError):
    """Raised when a cart line item has no matching product."""

    def __init__(self, line_item_id: Optional[str], product_id: Optional[str]) -> None:
        super().__init__(
            f"Cart line item '{line_item_id}' references product '{product_id}' "
            f"which was not found"
        )
        self.line_item_id = line_item_id
        self.product_id = product_id
