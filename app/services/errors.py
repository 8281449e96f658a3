"""Catalog error kinds.

Callers treat every error as terminal for the request and surface the
message unchanged.
"""


class CatalogError(Exception):
    """Base class for product catalog failures."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(CatalogError):
    """No matching producer, or no active product with that id."""


class OwnershipError(CatalogError):
    """Product is missing or owned by another producer.

    Both cases share one message so callers cannot probe for existence.
    """

    def __init__(self, message: str = "This product does not belong to you or does not exist") -> None:
        super().__init__(message)


class InfrastructureError(CatalogError):
    """Database or remote file transfer failure, with a contextual prefix."""
