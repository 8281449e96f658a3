"""Image upload payloads and remote file naming."""

import re
from dataclasses import dataclass

DEFAULT_PRODUCT_NAME = "product"
DEFAULT_ORIGINAL_NAME = "image.jpg"

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class ImageUpload:
    """One uploaded picture: raw bytes plus the client-side file name."""

    data: bytes
    filename: str | None = None


def derive_file_name(
    product_id: int,
    image_id: int,
    product_name: str | None = None,
    original_name: str | None = None,
) -> str:
    """Build the remote file name for a product image.

    Format is ``{product_id}-{image_id}-{slug}.{extension}`` where the slug
    is the lowercased product name with whitespace runs replaced by one
    hyphen, and the extension is whatever follows the last dot of the
    original name (case preserved). A name without a dot is used whole as
    the extension.

    >>> derive_file_name(1, 2, "My Product", "photo.PNG")
    '1-2-my-product.PNG'
    >>> derive_file_name(5, 9)
    '5-9-product.jpg'
    """
    slug = _WHITESPACE.sub("-", product_name or DEFAULT_PRODUCT_NAME).lower()
    extension = (original_name or DEFAULT_ORIGINAL_NAME).rsplit(".", 1)[-1]
    return f"{product_id}-{image_id}-{slug}.{extension}"
