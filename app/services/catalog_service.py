"""Product catalog service.

Owns every product lifecycle operation. Mutations run in one database
transaction per call; image files go to the remote store over one SFTP
connection per call.

Image rows are written in two steps: a placeholder row is inserted to
obtain its id, the file name (which embeds that id) is derived and
uploaded, then the row is updated with the final name.

Uploads are not transactional. When the database transaction rolls back
after some files were already written, those files stay on the remote
store unless ``cleanup_on_rollback`` is enabled, in which case a
best-effort removal runs before the error propagates.
"""

from collections.abc import Iterator, Sequence
from contextlib import AsyncExitStack, contextmanager
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.infra.database import SessionFactory, get_db_session
from app.infra.logging import get_logger
from app.infra.sftp import RemoteTransferError, SftpFileTransfer, TransferSession, get_file_transfer
from app.models import Producer, Product, ProductImage, ProductStatus, UnitExtent
from app.schemas.product import (
    CatalogProductView,
    MessageResponse,
    ProducerProductView,
    ProducerSummary,
    ProductCreate,
    ProductCreateResult,
    ProductDetailView,
    ProductUpdate,
    ProductUpdateResult,
)
from app.services.errors import CatalogError, InfrastructureError, NotFoundError, OwnershipError
from app.services.images import ImageUpload, derive_file_name

logger = get_logger(__name__)

# Wire name -> Product attribute, for fields whose names differ
_ATTRIBUTE_NAMES = {"unitExtent": "unit_extent"}


@contextmanager
def _translate_errors(context: str) -> Iterator[None]:
    """Re-raise non-catalog failures as InfrastructureError("{context}: ...")."""
    try:
        yield
    except CatalogError:
        raise
    except Exception as e:
        raise InfrastructureError(f"{context}: {e}") from e


def _product_fields(product: Product) -> dict[str, Any]:
    return {
        "productId": product.id,
        "name": product.name,
        "description": product.description,
        "category_id": product.category_id,
        "price": product.price,
        "bulk_price": product.bulk_price,
        "bulk_quantity": product.bulk_quantity,
        "stock": product.stock,
        "unitExtent": product.unit_extent,
    }


class ProductCatalogService:
    """CRUD over products, their image rows and their remote image files."""

    def __init__(
        self,
        session_factory: SessionFactory | None = None,
        file_transfer: SftpFileTransfer | None = None,
        cleanup_on_rollback: bool | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            session_factory: Factory for database sessions. Defaults to the
                application-wide one.
            file_transfer: SFTP session factory. Defaults to the configured one.
            cleanup_on_rollback: Remove uploaded files when the transaction
                rolls back. Defaults to ``settings.remote_cleanup_on_rollback``.
        """
        self._session_factory = session_factory
        self._file_transfer = file_transfer or get_file_transfer()
        self._cleanup_on_rollback = (
            settings.remote_cleanup_on_rollback
            if cleanup_on_rollback is None
            else cleanup_on_rollback
        )

    # =========================================================================
    # Mutations
    # =========================================================================

    async def create_product(
        self,
        fields: ProductCreate,
        user_id: int,
        images: Sequence[ImageUpload] = (),
    ) -> ProductCreateResult:
        """Create a product owned by the caller's producer, with its images.

        Raises:
            NotFoundError: The caller has no producer account
            InfrastructureError: Database or transfer failure
        """
        log = logger.bind(user_id=user_id, image_count=len(images))
        log.info("Creating product", name=fields.name)

        with _translate_errors("Error creating product"):
            async with AsyncExitStack() as stack:
                transfer: TransferSession | None = None
                try:
                    async with get_db_session(self._session_factory) as session:
                        producer_id = await self._producer_id(session, user_id)

                        product = Product(
                            name=fields.name,
                            description=fields.description,
                            category_id=fields.category_id,
                            price=fields.price,
                            bulk_price=fields.bulk_price,
                            bulk_quantity=fields.bulk_quantity,
                            stock=fields.stock,
                            unit_extent=fields.unitExtent,
                            producer_id=producer_id,
                        )
                        session.add(product)
                        await session.flush()
                        product_id = product.id

                        image_names: list[str] = []
                        if images:
                            transfer = await stack.enter_async_context(
                                self._file_transfer.session()
                            )
                            image_names = await self._store_images(
                                session, transfer, product_id, fields.name, images
                            )
                except Exception as e:
                    log.error(
                        "Product creation rolled back",
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                    if transfer is not None:
                        await self._discard_uploads(transfer)
                    raise

        log.info("Product created", product_id=product_id, images=image_names)
        return ProductCreateResult(
            productId=product_id,
            **fields.model_dump(),
            images=image_names,
        )

    async def update_product(
        self,
        product_id: int,
        fields: ProductUpdate,
        user_id: int,
        images: Sequence[ImageUpload] = (),
    ) -> ProductUpdateResult:
        """Apply a partial update and append new images.

        Only explicitly supplied fields are written. The result lists every
        image of the product, not just the ones added by this call.

        Raises:
            OwnershipError: Product missing or owned by another producer
            InfrastructureError: Database or transfer failure
        """
        log = logger.bind(user_id=user_id, product_id=product_id, image_count=len(images))
        changes = fields.changes()
        log.info("Updating product", fields=sorted(changes))

        with _translate_errors("Error updating product"):
            async with AsyncExitStack() as stack:
                transfer: TransferSession | None = None
                try:
                    async with get_db_session(self._session_factory) as session:
                        product = await self._owned_product(session, product_id, user_id)

                        for key, value in changes.items():
                            setattr(product, _ATTRIBUTE_NAMES.get(key, key), value)
                        if changes:
                            await session.flush()

                        if images:
                            transfer = await stack.enter_async_context(
                                self._file_transfer.session()
                            )
                            await self._store_images(
                                session, transfer, product_id, product.name, images
                            )
                except Exception as e:
                    log.error(
                        "Product update rolled back",
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                    if transfer is not None:
                        await self._discard_uploads(transfer)
                    raise

            async with get_db_session(self._session_factory) as session:
                all_images = await self._image_paths(session, product_id)

        log.info("Product updated", images=len(all_images))
        return ProductUpdateResult.model_validate(
            {"productId": product_id, **changes, "images": all_images}
        )

    async def delete_product(self, product_id: int, user_id: int) -> MessageResponse:
        """Soft-delete a product by setting its status to ``disable``.

        Image rows and remote files are kept.

        Raises:
            OwnershipError: Product missing or owned by another producer
        """
        log = logger.bind(user_id=user_id, product_id=product_id)

        with _translate_errors("Error deleting product"):
            async with get_db_session(self._session_factory) as session:
                product = await self._owned_product(session, product_id, user_id)
                product.status = ProductStatus.DISABLE.value

        log.info("Product disabled")
        return MessageResponse(message="Product status updated to disable successfully")

    # =========================================================================
    # Reads
    # =========================================================================

    async def list_products_by_producer(self, user_id: int) -> list[ProducerProductView]:
        """Active products of the caller's producer, with unit ids and images.

        Raises:
            NotFoundError: The caller has no producer account
        """
        with _translate_errors("Error retrieving products"):
            async with get_db_session(self._session_factory) as session:
                producer_id = await self._producer_id(session, user_id)

                stmt = (
                    select(Product, UnitExtent.id)
                    .outerjoin(UnitExtent, Product.unit_extent == UnitExtent.name)
                    .where(
                        Product.producer_id == producer_id,
                        Product.status == ProductStatus.ACTIVE.value,
                    )
                    .order_by(Product.id)
                )
                rows = (await session.execute(stmt)).all()

                views = []
                for product, unit_extent_id in rows:
                    views.append(
                        ProducerProductView(
                            **_product_fields(product),
                            unitExtentId=unit_extent_id,
                            images=await self._image_paths(session, product.id),
                        )
                    )

        logger.debug("Listed producer products", user_id=user_id, count=len(views))
        return views

    async def list_all_products(self) -> list[CatalogProductView]:
        """Every active product with its producer summary, unit id and images."""
        with _translate_errors("Error retrieving products"):
            async with get_db_session(self._session_factory) as session:
                stmt = (
                    select(Product, Producer.business_name, Producer.phone, UnitExtent.id)
                    .join(Producer, Product.producer_id == Producer.id)
                    .outerjoin(UnitExtent, Product.unit_extent == UnitExtent.name)
                    .where(Product.status == ProductStatus.ACTIVE.value)
                    .order_by(Product.id)
                )
                rows = (await session.execute(stmt)).all()

                views = []
                for product, business_name, phone, unit_extent_id in rows:
                    views.append(
                        CatalogProductView(
                            **_product_fields(product),
                            unitExtentId=unit_extent_id,
                            producer=ProducerSummary(bussinesName=business_name, phone=phone),
                            images=await self._image_paths(session, product.id),
                        )
                    )

        logger.debug("Listed catalog", count=len(views))
        return views

    async def get_product(self, product_id: int) -> ProductDetailView:
        """Single active product with its producer summary and images.

        Raises:
            NotFoundError: No active product with that id
        """
        with _translate_errors("Error retrieving product"):
            async with get_db_session(self._session_factory) as session:
                stmt = (
                    select(Product, Producer.business_name, Producer.phone)
                    .join(Producer, Product.producer_id == Producer.id)
                    .where(
                        Product.id == product_id,
                        Product.status == ProductStatus.ACTIVE.value,
                    )
                )
                row = (await session.execute(stmt)).first()
                if row is None:
                    raise NotFoundError("Producto no encontrado")

                product, business_name, phone = row
                return ProductDetailView(
                    **_product_fields(product),
                    producer=ProducerSummary(bussinesName=business_name, phone=phone),
                    images=await self._image_paths(session, product_id),
                )

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _producer_id(self, session: AsyncSession, user_id: int) -> int:
        producer_id = (
            await session.execute(select(Producer.id).where(Producer.user_id == user_id))
        ).scalars().first()
        if producer_id is None:
            logger.warning("Producer not found", user_id=user_id)
            raise NotFoundError("Producer not found")
        return producer_id

    async def _owned_product(
        self, session: AsyncSession, product_id: int, user_id: int
    ) -> Product:
        stmt = (
            select(Product)
            .join(Producer, Product.producer_id == Producer.id)
            .where(Product.id == product_id, Producer.user_id == user_id)
        )
        product = (await session.execute(stmt)).scalars().first()
        if product is None:
            logger.warning("Ownership check failed", product_id=product_id, user_id=user_id)
            raise OwnershipError()
        return product

    async def _image_paths(self, session: AsyncSession, product_id: int) -> list[str]:
        stmt = (
            select(ProductImage.path)
            .where(ProductImage.product_id == product_id)
            .order_by(ProductImage.id)
        )
        return list((await session.execute(stmt)).scalars().all())

    async def _store_images(
        self,
        session: AsyncSession,
        transfer: TransferSession,
        product_id: int,
        product_name: str | None,
        images: Sequence[ImageUpload],
    ) -> list[str]:
        """Insert, upload and rename each image in order."""
        names: list[str] = []
        for upload in images:
            image = ProductImage(product_id=product_id, path="")
            session.add(image)
            await session.flush()

            file_name = derive_file_name(product_id, image.id, product_name, upload.filename)
            await transfer.put(upload.data, file_name)

            image.path = file_name
            await session.flush()
            names.append(file_name)
        return names

    async def _discard_uploads(self, transfer: TransferSession) -> None:
        """Best-effort removal of files uploaded by a rolled-back request."""
        if not transfer.uploaded:
            return
        if not self._cleanup_on_rollback:
            logger.warning("Remote files left after rollback", files=transfer.uploaded)
            return

        for file_name in transfer.uploaded:
            try:
                await transfer.remove(file_name)
            except RemoteTransferError as e:
                logger.warning("Orphan cleanup failed", file_name=file_name, error=str(e))
