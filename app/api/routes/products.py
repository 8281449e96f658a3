"""Product catalog endpoints.

Create and update accept multipart forms: product fields as form values
and pictures as repeated ``images`` file parts. Catalog errors are mapped
to HTTP statuses by the handlers registered in ``app.main``.
"""

from typing import Annotated, Any

from fastapi import APIRouter, File, Form, UploadFile, status
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError

from app.api.deps import CatalogService, UserId, read_uploads
from app.infra.logging import get_logger
from app.schemas.common import ErrorResponse
from app.schemas.product import (
    CatalogProductView,
    MessageResponse,
    ProducerProductView,
    ProductCreate,
    ProductCreateResult,
    ProductDetailView,
    ProductUpdate,
    ProductUpdateResult,
)

router = APIRouter(prefix="/products", tags=["products"])
logger = get_logger(__name__)

FormValue = Annotated[str | None, Form()]
ImageFiles = Annotated[list[UploadFile] | None, File(description="Product pictures")]

_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    status.HTTP_401_UNAUTHORIZED: {"description": "Missing caller identity"},
    status.HTTP_403_FORBIDDEN: {"model": ErrorResponse},
    status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
}


def _parse_fields(model: type[BaseModel], values: dict[str, str | None]) -> Any:
    """Validate the supplied form values; absent ones stay unset."""
    supplied = {key: value for key, value in values.items() if value is not None}
    try:
        return model.model_validate(supplied)
    except ValidationError as e:
        raise RequestValidationError(e.errors()) from e


@router.post(
    "",
    response_model=ProductCreateResult,
    status_code=status.HTTP_201_CREATED,
    responses=_ERROR_RESPONSES,
    summary="Create a product with its images",
)
async def create_product(
    service: CatalogService,
    user_id: UserId,
    name: FormValue = None,
    price: FormValue = None,
    description: FormValue = None,
    category_id: FormValue = None,
    bulk_price: FormValue = None,
    bulk_quantity: FormValue = None,
    stock: FormValue = None,
    unit_extent: Annotated[str | None, Form(alias="unitExtent")] = None,
    images: ImageFiles = None,
) -> ProductCreateResult:
    fields = _parse_fields(
        ProductCreate,
        {
            "name": name,
            "price": price,
            "description": description,
            "category_id": category_id,
            "bulk_price": bulk_price,
            "bulk_quantity": bulk_quantity,
            "stock": stock,
            "unitExtent": unit_extent,
        },
    )
    return await service.create_product(fields, user_id, await read_uploads(images))


@router.get(
    "/mine",
    response_model=list[ProducerProductView],
    responses=_ERROR_RESPONSES,
    summary="List the caller's active products",
)
async def list_my_products(service: CatalogService, user_id: UserId) -> list[ProducerProductView]:
    return await service.list_products_by_producer(user_id)


@router.get(
    "",
    response_model=list[CatalogProductView],
    responses=_ERROR_RESPONSES,
    summary="List every active product",
)
async def list_products(service: CatalogService) -> list[CatalogProductView]:
    return await service.list_all_products()


@router.get(
    "/{product_id}",
    response_model=ProductDetailView,
    responses=_ERROR_RESPONSES,
    summary="Get one active product",
)
async def get_product(product_id: int, service: CatalogService) -> ProductDetailView:
    return await service.get_product(product_id)


@router.put(
    "/{product_id}",
    response_model=ProductUpdateResult,
    response_model_exclude_unset=True,
    responses=_ERROR_RESPONSES,
    summary="Partially update a product and add images",
)
async def update_product(
    product_id: int,
    service: CatalogService,
    user_id: UserId,
    name: FormValue = None,
    price: FormValue = None,
    description: FormValue = None,
    category_id: FormValue = None,
    bulk_price: FormValue = None,
    bulk_quantity: FormValue = None,
    stock: FormValue = None,
    unit_extent: Annotated[str | None, Form(alias="unitExtent")] = None,
    images: ImageFiles = None,
) -> ProductUpdateResult:
    fields = _parse_fields(
        ProductUpdate,
        {
            "name": name,
            "price": price,
            "description": description,
            "category_id": category_id,
            "bulk_price": bulk_price,
            "bulk_quantity": bulk_quantity,
            "stock": stock,
            "unitExtent": unit_extent,
        },
    )
    return await service.update_product(product_id, fields, user_id, await read_uploads(images))


@router.delete(
    "/{product_id}",
    response_model=MessageResponse,
    responses=_ERROR_RESPONSES,
    summary="Disable a product",
)
async def delete_product(product_id: int, service: CatalogService, user_id: UserId) -> MessageResponse:
    return await service.delete_product(product_id, user_id)
