from bikelease.domain.order.model.aggregate import Order
from bikelease.domain.order.model.value import CamelModel, OrderStatus


class OrderMessageBody(CamelModel):
    order_id: str
    company_id: str
    employee_id: str
    status: OrderStatus
    price: float
    currency: str


class OrderMessage(CamelModel):
    """Notification describing a newly stored order."""

    body: OrderMessageBody
    message_id: str
    correlation_id: str
    content_type: str = "application/json"

    @classmethod
    def for_order(cls, order: Order) -> "OrderMessage":
        return cls(
            body=OrderMessageBody(
                order_id=order.id,
                company_id=order.company_id,
                employee_id=order.employee_id,
                status=order.status,
                price=order.price,
                currency=order.currency,
            ),
            message_id=order.id,
            correlation_id=order.correlation_key,
        )
