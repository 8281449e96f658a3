"""Shared fixtures: in-memory database, fake SFTP host, HTTP client."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from app.infra.database import SessionFactory, create_session_factory, get_db_session
from app.infra.sftp import RemoteTransferError
from app.models import Base, Producer, UnitExtent
from app.services.catalog_service import ProductCatalogService


class FakeTransferSession:
    """In-memory stand-in for an open SFTP session."""

    def __init__(self, host: "FakeFileTransfer") -> None:
        self._host = host
        self.uploaded: list[str] = []

    def remote_path(self, file_name: str) -> str:
        return f"{self._host.base_path}/{file_name}"

    async def put(self, data: bytes, file_name: str) -> str:
        path = self.remote_path(file_name)
        if self._host.fail_on_put is not None and self._host.put_count == self._host.fail_on_put:
            raise RemoteTransferError(f"Upload of '{path}' failed: disk full")
        self._host.put_count += 1
        self._host.files[path] = data
        self.uploaded.append(file_name)
        return path

    async def remove(self, file_name: str) -> None:
        self._host.files.pop(self.remote_path(file_name), None)
        self._host.removed.append(file_name)


class FakeFileTransfer:
    """Records every connection and file written to the remote host."""

    def __init__(self, base_path: str = "/srv/images", fail_on_put: int | None = None) -> None:
        self.base_path = base_path
        self.fail_on_put = fail_on_put
        self.files: dict[str, bytes] = {}
        self.removed: list[str] = []
        self.put_count = 0
        self.opened = 0
        self.closed = 0

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[FakeTransferSession, None]:
        self.opened += 1
        try:
            yield FakeTransferSession(self)
        finally:
            self.closed += 1


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> SessionFactory:
    return create_session_factory(engine)


@pytest.fixture
def file_transfer() -> FakeFileTransfer:
    return FakeFileTransfer()


@pytest.fixture
def make_transfer() -> type[FakeFileTransfer]:
    """Build a fake host, e.g. ``make_transfer(fail_on_put=1)`` fails the second upload."""
    return FakeFileTransfer


@pytest.fixture
def service(session_factory: SessionFactory, file_transfer: FakeFileTransfer) -> ProductCatalogService:
    return ProductCatalogService(
        session_factory=session_factory,
        file_transfer=file_transfer,  # type: ignore[arg-type]
        cleanup_on_rollback=False,
    )


@pytest_asyncio.fixture
async def producer(session_factory: SessionFactory) -> Producer:
    """Producer 'Huerta Sol' owned by user 42, plus a second producer for user 7."""
    async with get_db_session(session_factory) as session:
        owner = Producer(user_id=42, business_name="Huerta Sol", phone="555-0101")
        other = Producer(user_id=7, business_name="Granja Norte", phone="555-0202")
        session.add_all([owner, other])
        session.add_all([UnitExtent(name="kg"), UnitExtent(name="unit")])
    return owner


@pytest_asyncio.fixture
async def client(service: ProductCatalogService) -> AsyncGenerator[AsyncClient, None]:
    from app.api.deps import get_catalog_service
    from app.main import app

    app.dependency_overrides[get_catalog_service] = lambda: service
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
