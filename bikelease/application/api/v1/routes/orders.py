"""Order REST routes."""

from typing import Any

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from bikelease.domain.order.query.get_order import GetOrder, GetOrderHandler
from bikelease.domain.order.service.pipeline import SubmissionPipeline

router = APIRouter(prefix="/orders", tags=["Orders"], route_class=DishkaRoute)


class OrderResponse(BaseModel):
    """Single order response."""

    success: bool = True
    order: dict[str, Any]


@router.post("", status_code=201)
async def submit_order(
    request: Request,
    pipeline: FromDishka[SubmissionPipeline],
) -> JSONResponse:
    """Validate, store and announce a new order.

    The raw body is handed to the pipeline so malformed JSON is reported in
    the same response shape as every other failure.
    """
    outcome = await pipeline.submit(await request.body())
    return JSONResponse(status_code=outcome.http_status, content=outcome.to_body())


@router.get("/{company_id}/{order_id}", response_model=OrderResponse)
async def get_order(
    company_id: str,
    order_id: str,
    handler: FromDishka[GetOrderHandler],
) -> OrderResponse | JSONResponse:
    """Get an order by company and order id."""
    result = await handler.run(GetOrder(company_id=company_id, order_id=order_id))
    if result.order is None:
        return JSONResponse(
            status_code=404,
            content={"success": False, "message": "Order not found"},
        )
    return OrderResponse(order=result.order.to_document())
