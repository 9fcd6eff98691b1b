from typing import Any

from bikelease.domain.order.model.aggregate import Order


def order_to_dict(order: Order) -> dict[str, Any]:
    return {
        "company_id": order.company_id,
        "id": order.id,
        "employee_id": order.employee_id,
        "status": order.status.value,
        "document": order.to_document(),
        "created_at": order.created_at,
        "updated_at": order.updated_at,
    }


def row_to_order(row: dict[str, Any]) -> Order:
    return Order.model_validate(row["document"])
