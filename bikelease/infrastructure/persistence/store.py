"""SQLAlchemy implementation of OrderStore."""

import logging

from sqlalchemy import inspect, insert, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from bikelease.config import StorageConfig
from bikelease.domain.order.model.aggregate import Order
from bikelease.domain.order.port.storage import OrderStore, OrderStoreFactory
from bikelease.domain.shared.error import StorageError
from bikelease.infrastructure.persistence.database import create_store_engine
from bikelease.infrastructure.persistence.mappers import order_to_dict, row_to_order
from bikelease.infrastructure.persistence.tables import orders_table

logger = logging.getLogger(__name__)


class SqlOrderStore(OrderStore):
    """Stores orders in one table, partitioned by company id.

    The engine belongs to this store: `close` disposes it.
    """

    def __init__(self, engine: AsyncEngine, container: str = "orders") -> None:
        self.engine = engine
        self.table = orders_table(container)

    async def ensure_container(self, tenant: str) -> None:
        """Create the orders table if needed. Tenants share it, keyed by company_id."""
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(self.table.create, checkfirst=True)
        except (SQLAlchemyError, OSError) as e:
            logger.error("Failed to initialize order storage for %s: %s", tenant, e)
            raise StorageError(
                "Failed to initialize storage container", code="STORAGE_INIT_ERROR"
            ) from e

    async def write(self, order: Order, tenant: str) -> None:
        """Insert an order. Orders are immutable here, so this is insert-only.

        Writing an order that is already stored with the same document succeeds,
        so a retry after a commit whose acknowledgement was lost is harmless.
        """
        values = order_to_dict(order)
        values["company_id"] = tenant
        try:
            async with self.engine.begin() as conn:
                await conn.execute(insert(self.table).values(**values))
        except IntegrityError as e:
            if await self._stored_document(order.id, tenant) != values["document"]:
                logger.error("Order %s conflicts with a stored order: %s", order.id, e)
                raise StorageError(
                    "Failed to store order in storage", code="STORAGE_ERROR"
                ) from e
            logger.info("Order %s was already stored for company %s", order.id, tenant)
            return
        except (SQLAlchemyError, OSError) as e:
            logger.error("Failed to store order %s: %s", order.id, e)
            raise StorageError("Failed to store order in storage", code="STORAGE_ERROR") from e
        logger.info("Order %s stored for company %s", order.id, tenant)

    async def _stored_document(self, order_id: str, tenant: str) -> dict | None:
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(
                    select(self.table.c.document).where(
                        self.table.c.company_id == tenant,
                        self.table.c.id == order_id,
                    )
                )
                return result.scalar_one_or_none()
        except (SQLAlchemyError, OSError) as e:
            logger.error("Failed to check stored order %s: %s", order_id, e)
            raise StorageError("Failed to store order in storage", code="STORAGE_ERROR") from e

    async def read(self, order_id: str, tenant: str) -> Order | None:
        try:
            async with self.engine.connect() as conn:
                exists = await conn.run_sync(
                    lambda sync_conn: inspect(sync_conn).has_table(self.table.name)
                )
                if not exists:
                    return None
                stmt = select(self.table).where(
                    self.table.c.company_id == tenant,
                    self.table.c.id == order_id,
                )
                result = await conn.execute(stmt)
                row = result.mappings().first()
        except (SQLAlchemyError, OSError) as e:
            logger.error("Failed to read order %s: %s", order_id, e)
            raise StorageError("Failed to read order from storage", code="STORAGE_ERROR") from e
        return row_to_order(dict(row)) if row else None

    async def close(self) -> None:
        await self.engine.dispose()


class SqlOrderStoreFactory(OrderStoreFactory):
    """Opens a store with its own engine for every request."""

    def __init__(self, config: StorageConfig) -> None:
        self.config = config

    def __call__(self) -> SqlOrderStore:
        return SqlOrderStore(create_store_engine(self.config), self.config.container)
