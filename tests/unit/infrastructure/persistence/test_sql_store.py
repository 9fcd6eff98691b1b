from datetime import UTC, datetime

import pytest

from bikelease.config import StorageConfig
from bikelease.domain.order.model.aggregate import Order
from bikelease.domain.order.model.value import OrderStatus
from bikelease.domain.shared.error import ConfigurationError, StorageError
from bikelease.infrastructure.persistence.database import create_store_engine
from bikelease.infrastructure.persistence.mappers import order_to_dict, row_to_order
from bikelease.infrastructure.persistence.store import SqlOrderStoreFactory


def make_order(
    order_id: str = "order-1", company_id: str = "c1", bike_model: str = "M"
) -> Order:
    now = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)
    return Order(
        id=order_id,
        employee_id="e1",
        bike_model=bike_model,
        start_date=datetime(2024, 1, 1, tzinfo=UTC),
        end_date=datetime(2024, 1, 2, tzinfo=UTC),
        status=OrderStatus.PENDING,
        price=10.0,
        currency="USD",
        company_id=company_id,
        created_at=now,
        updated_at=now,
    )


class TestOrderMappers:
    def test_order_mapping(self):
        order = make_order()

        data = order_to_dict(order)
        assert data["id"] == "order-1"
        assert data["company_id"] == "c1"
        assert data["status"] == "PENDING"
        assert data["document"]["bikeModel"] == "M"

        reconstructed = row_to_order(data)
        assert reconstructed == order


class TestCreateStoreEngine:
    def test_missing_url(self):
        with pytest.raises(ConfigurationError):
            create_store_engine(StorageConfig(url=""))

    def test_malformed_url_is_not_leaked(self):
        with pytest.raises(ConfigurationError) as exc_info:
            create_store_engine(StorageConfig(url="not a url://secret-host"))

        assert "secret-host" not in exc_info.value.message

    def test_sqlite_parent_directory_is_created(self, tmp_path):
        db = tmp_path / "nested" / "orders.db"

        create_store_engine(StorageConfig(url=f"sqlite+aiosqlite:///{db}"))

        assert db.parent.is_dir()


class TestSqlOrderStore:
    @pytest.fixture
    def factory(self, tmp_path):
        return SqlOrderStoreFactory(
            StorageConfig(url=f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}")
        )

    async def test_write_then_read(self, factory):
        order = make_order()
        store = factory()
        try:
            await store.ensure_container("c1")
            await store.write(order, "c1")
            stored = await store.read("order-1", "c1")
        finally:
            await store.close()

        assert stored == order

    async def test_ensure_container_is_idempotent(self, factory):
        store = factory()
        try:
            await store.ensure_container("c1")
            await store.ensure_container("c1")
        finally:
            await store.close()

    async def test_read_before_any_write(self, factory):
        store = factory()
        try:
            assert await store.read("order-1", "c1") is None
        finally:
            await store.close()

    async def test_orders_are_partitioned_by_company(self, factory):
        store = factory()
        try:
            await store.ensure_container("c1")
            await store.write(make_order(), "c1")

            assert await store.read("order-1", "c2") is None
        finally:
            await store.close()

    async def test_stores_persist_across_requests(self, factory):
        first = factory()
        try:
            await first.ensure_container("c1")
            await first.write(make_order(), "c1")
        finally:
            await first.close()

        second = factory()
        try:
            stored = await second.read("order-1", "c1")
        finally:
            await second.close()

        assert stored is not None
        assert stored.status == OrderStatus.PENDING

    async def test_repeated_write_of_same_order_succeeds(self, factory):
        """A retried insert whose first commit went through finds its own row."""
        store = factory()
        try:
            await store.ensure_container("c1")
            await store.write(make_order(), "c1")
            await store.write(make_order(), "c1")
            stored = await store.read("order-1", "c1")
        finally:
            await store.close()

        assert stored == make_order()

    async def test_conflicting_write_raises_storage_error(self, factory):
        store = factory()
        try:
            await store.ensure_container("c1")
            await store.write(make_order(), "c1")

            with pytest.raises(StorageError) as exc_info:
                await store.write(make_order(bike_model="Other"), "c1")
            stored = await store.read("order-1", "c1")
        finally:
            await store.close()

        assert exc_info.value.code == "STORAGE_ERROR"
        assert stored.bike_model == "M"

    async def test_write_without_container_fails(self, tmp_path):
        factory = SqlOrderStoreFactory(
            StorageConfig(
                url=f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}", container="missing"
            )
        )
        store = factory()
        try:
            with pytest.raises(StorageError):
                await store.write(make_order(), "c1")
        finally:
            await store.close()
