"""GetOrder query handler - point lookup of a stored order."""

import logfire

from bikelease.domain.order.model.aggregate import Order
from bikelease.domain.order.port.storage import OrderStoreFactory
from bikelease.domain.shared.query import Query, QueryHandler, Result


class GetOrder(Query):
    company_id: str
    order_id: str


class OrderDetail(Result):
    order: Order | None


class GetOrderHandler(QueryHandler[GetOrder, OrderDetail]):
    store_factory: OrderStoreFactory

    async def run(self, query: GetOrder) -> OrderDetail:
        with logfire.span("GetOrder"):
            store = self.store_factory()
            try:
                order = await store.read(query.order_id, query.company_id)
            finally:
                await store.close()
            return OrderDetail(order=order)
