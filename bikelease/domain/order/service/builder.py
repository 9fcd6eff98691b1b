from collections.abc import Callable
from datetime import UTC, datetime
from uuid import uuid4

from bikelease.domain.order.model.aggregate import Order
from bikelease.domain.order.model.value import CreateOrderRequest, OrderStatus


def utc_now() -> datetime:
    return datetime.now(UTC)


def build_order(
    request: CreateOrderRequest,
    *,
    clock: Callable[[], datetime] = utc_now,
    id_factory: Callable[[], object] = uuid4,
) -> Order:
    """Assign identity, status and timestamps to a validated request."""
    now = clock()
    return Order(
        id=str(id_factory()),
        employee_id=request.employee_id,
        bike_model=request.bike_model,
        start_date=request.start_date,
        end_date=request.end_date,
        status=OrderStatus.PENDING,
        price=request.price,
        currency=request.currency,
        company_id=request.company_id,
        created_at=now,
        updated_at=now,
    )
