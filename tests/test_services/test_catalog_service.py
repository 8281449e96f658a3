"""Tests for ProductCatalogService against an in-memory database."""

import pytest
from sqlalchemy import func, select

from app.infra.database import SessionFactory, get_db_session
from app.models import Producer, Product, ProductImage, ProductStatus
from app.schemas.product import ProductCreate, ProductUpdate
from app.services.catalog_service import ProductCatalogService
from app.services.errors import InfrastructureError, NotFoundError, OwnershipError
from app.services.images import ImageUpload, derive_file_name


OWNER = 42
OTHER = 7


def tomato(**overrides) -> ProductCreate:
    values = {
        "name": "Tomate Cherry",
        "description": "Tomates de temporada",
        "category_id": 3,
        "price": "12.5",
        "bulk_price": "10",
        "bulk_quantity": "20",
        "stock": 100,
        "unitExtent": "kg",
    }
    values.update(overrides)
    return ProductCreate(**values)


def pictures(count: int) -> list[ImageUpload]:
    names = ["front.png", "side.jpg", "top.webp"]
    return [ImageUpload(data=f"img-{i}".encode(), filename=names[i]) for i in range(count)]


async def count_rows(session_factory: SessionFactory, model) -> int:
    async with get_db_session(session_factory) as session:
        return (await session.execute(select(func.count()).select_from(model))).scalar_one()


async def load_product(session_factory: SessionFactory, product_id: int) -> Product:
    async with get_db_session(session_factory) as session:
        return await session.get(Product, product_id)


class TestCreateProduct:
    """Tests for create_product."""

    @pytest.mark.asyncio
    async def test_creates_product_with_images(
        self, service: ProductCatalogService, producer: Producer, file_transfer
    ):
        result = await service.create_product(tomato(), OWNER, pictures(2))

        assert result.productId == 1
        assert result.name == "Tomate Cherry"
        assert result.price == 12.5
        assert result.images == ["1-1-tomate-cherry.png", "1-2-tomate-cherry.jpg"]
        assert set(file_transfer.files) == {
            "/srv/images/1-1-tomate-cherry.png",
            "/srv/images/1-2-tomate-cherry.jpg",
        }
        assert file_transfer.files["/srv/images/1-1-tomate-cherry.png"] == b"img-0"

    @pytest.mark.asyncio
    async def test_one_image_row_per_file_with_final_path(
        self, service: ProductCatalogService, producer: Producer, session_factory: SessionFactory
    ):
        result = await service.create_product(tomato(), OWNER, pictures(3))

        async with get_db_session(session_factory) as session:
            rows = (
                await session.execute(
                    select(ProductImage).where(ProductImage.product_id == result.productId)
                )
            ).scalars().all()

        assert len(rows) == 3
        for row in rows:
            assert row.path
            assert row.path == derive_file_name(result.productId, row.id, "Tomate Cherry", row.path)

    @pytest.mark.asyncio
    async def test_one_connection_for_the_batch(
        self, service: ProductCatalogService, producer: Producer, file_transfer
    ):
        await service.create_product(tomato(), OWNER, pictures(3))
        assert file_transfer.opened == 1
        assert file_transfer.closed == 1

    @pytest.mark.asyncio
    async def test_no_connection_without_images(
        self, service: ProductCatalogService, producer: Producer, file_transfer
    ):
        result = await service.create_product(tomato(), OWNER)
        assert result.images == []
        assert file_transfer.opened == 0

    @pytest.mark.asyncio
    async def test_stores_coerced_numbers_and_owner(
        self, service: ProductCatalogService, producer: Producer, session_factory: SessionFactory
    ):
        result = await service.create_product(
            tomato(bulk_price="n/a", bulk_quantity=""), OWNER
        )
        product = await load_product(session_factory, result.productId)

        assert product.price == 12.5
        assert product.bulk_price is None
        assert product.bulk_quantity is None
        assert product.producer_id == producer.id
        assert product.status == ProductStatus.ACTIVE.value

    @pytest.mark.asyncio
    async def test_unknown_user_writes_nothing(
        self, service: ProductCatalogService, producer: Producer,
        session_factory: SessionFactory, file_transfer,
    ):
        with pytest.raises(NotFoundError, match="Producer not found"):
            await service.create_product(tomato(name="Fantasma"), 999, pictures(1))

        async with get_db_session(session_factory) as session:
            found = (
                await session.execute(select(Product).where(Product.name == "Fantasma"))
            ).scalars().first()
        assert found is None
        assert await count_rows(session_factory, ProductImage) == 0
        assert file_transfer.opened == 0

    @pytest.mark.asyncio
    async def test_upload_failure_rolls_back_rows_and_keeps_orphans(
        self, producer: Producer, session_factory: SessionFactory, make_transfer
    ):
        transfer = make_transfer(fail_on_put=1)
        service = ProductCatalogService(session_factory, transfer, cleanup_on_rollback=False)

        with pytest.raises(InfrastructureError, match="^Error creating product: Upload of"):
            await service.create_product(tomato(), OWNER, pictures(2))

        assert await count_rows(session_factory, Product) == 0
        assert await count_rows(session_factory, ProductImage) == 0
        assert list(transfer.files) == ["/srv/images/1-1-tomate-cherry.png"]
        assert transfer.removed == []
        assert transfer.closed == transfer.opened == 1

    @pytest.mark.asyncio
    async def test_upload_failure_cleans_up_when_enabled(
        self, producer: Producer, session_factory: SessionFactory, make_transfer
    ):
        transfer = make_transfer(fail_on_put=2)
        service = ProductCatalogService(session_factory, transfer, cleanup_on_rollback=True)

        with pytest.raises(InfrastructureError):
            await service.create_product(tomato(), OWNER, pictures(3))

        assert transfer.files == {}
        assert transfer.removed == ["1-1-tomate-cherry.png", "1-2-tomate-cherry.jpg"]
        assert await count_rows(session_factory, Product) == 0


class TestReads:
    """Tests for listing and single-product reads."""

    @pytest.mark.asyncio
    async def test_list_by_producer_resolves_unit_extent(
        self, service: ProductCatalogService, producer: Producer
    ):
        await service.create_product(tomato(), OWNER, pictures(1))
        await service.create_product(tomato(name="Cajón de papas", unitExtent="box"), OWNER)
        await service.create_product(tomato(name="Ajeno"), OTHER)

        products = await service.list_products_by_producer(OWNER)

        assert [p.name for p in products] == ["Tomate Cherry", "Cajón de papas"]
        assert products[0].unitExtentId == 1
        assert products[0].images == ["1-1-tomate-cherry.png"]
        assert products[1].unitExtentId is None
        assert products[1].images == []

    @pytest.mark.asyncio
    async def test_list_by_producer_requires_producer(
        self, service: ProductCatalogService, producer: Producer
    ):
        with pytest.raises(NotFoundError, match="Producer not found"):
            await service.list_products_by_producer(999)

    @pytest.mark.asyncio
    async def test_list_all_end_to_end(self, service: ProductCatalogService, producer: Producer):
        created = await service.create_product(tomato(), OWNER, pictures(2))

        products = await service.list_all_products()

        assert len(products) == 1
        product = products[0]
        assert product.productId == created.productId
        assert product.images == [
            derive_file_name(created.productId, 1, "Tomate Cherry", "front.png"),
            derive_file_name(created.productId, 2, "Tomate Cherry", "side.jpg"),
        ]
        assert product.producer.bussinesName == "Huerta Sol"
        assert product.producer.phone == "555-0101"
        assert product.unitExtentId == 1

    @pytest.mark.asyncio
    async def test_list_all_is_empty_without_products(self, service: ProductCatalogService):
        assert await service.list_all_products() == []

    @pytest.mark.asyncio
    async def test_get_product(self, service: ProductCatalogService, producer: Producer):
        created = await service.create_product(tomato(), OWNER, pictures(1))

        product = await service.get_product(created.productId)

        assert product.name == "Tomate Cherry"
        assert product.bulk_price == 10.0
        assert product.bulk_quantity == 20
        assert product.producer.bussinesName == "Huerta Sol"
        assert product.images == ["1-1-tomate-cherry.png"]

    @pytest.mark.asyncio
    async def test_get_missing_product(self, service: ProductCatalogService):
        with pytest.raises(NotFoundError, match="Producto no encontrado"):
            await service.get_product(404)


class TestUpdateProduct:
    """Tests for update_product."""

    @pytest.mark.asyncio
    async def test_partial_update_changes_only_given_field(
        self, service: ProductCatalogService, producer: Producer
    ):
        created = await service.create_product(tomato(), OWNER)
        before = await service.get_product(created.productId)

        result = await service.update_product(created.productId, ProductUpdate(stock=5), OWNER)

        after = await service.get_product(created.productId)
        assert result.stock == 5
        assert result.model_fields_set == {"productId", "stock", "images"}
        assert after.stock == 5
        assert after.model_dump(exclude={"stock"}) == before.model_dump(exclude={"stock"})

    @pytest.mark.asyncio
    async def test_update_maps_unit_extent_column(
        self, service: ProductCatalogService, producer: Producer, session_factory: SessionFactory
    ):
        created = await service.create_product(tomato(), OWNER)

        await service.update_product(created.productId, ProductUpdate(unitExtent="unit"), OWNER)

        product = await load_product(session_factory, created.productId)
        assert product.unit_extent == "unit"

    @pytest.mark.asyncio
    async def test_update_appends_images_and_returns_all(
        self, service: ProductCatalogService, producer: Producer, file_transfer
    ):
        created = await service.create_product(tomato(), OWNER, pictures(2))

        result = await service.update_product(
            created.productId,
            ProductUpdate(),
            OWNER,
            [ImageUpload(data=b"new", filename="new.JPG")],
        )

        assert result.images == [
            "1-1-tomate-cherry.png",
            "1-2-tomate-cherry.jpg",
            "1-3-tomate-cherry.JPG",
        ]
        assert "/srv/images/1-3-tomate-cherry.JPG" in file_transfer.files

    @pytest.mark.asyncio
    async def test_new_images_use_new_name(self, service: ProductCatalogService, producer: Producer):
        created = await service.create_product(tomato(), OWNER)

        result = await service.update_product(
            created.productId,
            ProductUpdate(name="Tomate Perita"),
            OWNER,
            [ImageUpload(data=b"x", filename="a.png")],
        )

        assert result.name == "Tomate Perita"
        assert result.images == ["1-1-tomate-perita.png"]

    @pytest.mark.asyncio
    async def test_foreign_product_is_rejected_and_unchanged(
        self, service: ProductCatalogService, producer: Producer
    ):
        created = await service.create_product(tomato(), OWNER)

        with pytest.raises(OwnershipError, match="does not belong to you or does not exist"):
            await service.update_product(created.productId, ProductUpdate(price=1), OTHER)

        assert (await service.get_product(created.productId)).price == 12.5

    @pytest.mark.asyncio
    async def test_missing_product_uses_same_error(
        self, service: ProductCatalogService, producer: Producer
    ):
        with pytest.raises(OwnershipError) as missing:
            await service.update_product(999, ProductUpdate(stock=1), OWNER)
        assert missing.value.message == "This product does not belong to you or does not exist"

    @pytest.mark.asyncio
    async def test_upload_failure_rolls_back_field_changes(
        self, producer: Producer, session_factory: SessionFactory, make_transfer
    ):
        transfer = make_transfer(fail_on_put=0)
        service = ProductCatalogService(session_factory, transfer, cleanup_on_rollback=False)
        created = await service.create_product(tomato(), OWNER)

        with pytest.raises(InfrastructureError, match="^Error updating product"):
            await service.update_product(
                created.productId, ProductUpdate(stock=1), OWNER, pictures(1)
            )

        product = await load_product(session_factory, created.productId)
        assert product.stock == 100
        assert await count_rows(session_factory, ProductImage) == 0


class TestDeleteProduct:
    """Tests for delete_product (soft delete)."""

    @pytest.mark.asyncio
    async def test_soft_delete_hides_product_but_keeps_rows(
        self, service: ProductCatalogService, producer: Producer,
        session_factory: SessionFactory, file_transfer,
    ):
        created = await service.create_product(tomato(), OWNER, pictures(2))

        result = await service.delete_product(created.productId, OWNER)

        assert result.message == "Product status updated to disable successfully"
        with pytest.raises(NotFoundError):
            await service.get_product(created.productId)
        assert await service.list_all_products() == []
        assert await service.list_products_by_producer(OWNER) == []

        product = await load_product(session_factory, created.productId)
        assert product.status == ProductStatus.DISABLE.value
        assert await count_rows(session_factory, ProductImage) == 2
        assert len(file_transfer.files) == 2

    @pytest.mark.asyncio
    async def test_delete_foreign_product(self, service: ProductCatalogService, producer: Producer):
        created = await service.create_product(tomato(), OWNER)

        with pytest.raises(OwnershipError):
            await service.delete_product(created.productId, OTHER)

        assert (await service.get_product(created.productId)).productId == created.productId
