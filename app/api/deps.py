"""FastAPI dependencies for dependency injection.

Provides:
- Caller identity from the auth gateway header
- Product catalog service
"""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, UploadFile, status

from app.infra.logging import get_logger
from app.services.catalog_service import ProductCatalogService
from app.services.images import ImageUpload

logger = get_logger(__name__)

_catalog_service: ProductCatalogService | None = None


async def get_user_id(
    x_user_id: Annotated[int | None, Header()] = None,
) -> int:
    """Extract the authenticated user id set by the upstream auth gateway.

    Raises:
        HTTPException: 401 if the header is missing
    """
    if x_user_id is None:
        logger.warning("Rejected request: missing X-User-Id header")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return x_user_id


def get_catalog_service() -> ProductCatalogService:
    """Get the process-wide catalog service."""
    global _catalog_service
    if _catalog_service is None:
        _catalog_service = ProductCatalogService()
    return _catalog_service


async def read_uploads(files: list[UploadFile] | None) -> list[ImageUpload]:
    """Read multipart files into memory, preserving order."""
    uploads: list[ImageUpload] = []
    for file in files or []:
        uploads.append(ImageUpload(data=await file.read(), filename=file.filename))
    return uploads


# Type aliases for cleaner annotations
UserId = Annotated[int, Depends(get_user_id)]
CatalogService = Annotated[ProductCatalogService, Depends(get_catalog_service)]
