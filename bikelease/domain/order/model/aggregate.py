from datetime import datetime

from bikelease.domain.order.model.value import CamelModel, OrderStatus


class Order(CamelModel):
    """A submitted bike lease order. Immutable once built."""

    id: str
    employee_id: str
    bike_model: str
    start_date: datetime
    end_date: datetime
    status: OrderStatus = OrderStatus.PENDING
    price: float
    currency: str
    company_id: str
    created_at: datetime
    updated_at: datetime

    @property
    def correlation_key(self) -> str:
        return f"{self.company_id}-{self.id}"

    def to_document(self) -> dict:
        """JSON-compatible representation using the public field names."""
        return self.model_dump(mode="json", by_alias=True)
