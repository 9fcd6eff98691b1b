"""Centralized error transformation for API routes.

Maps bikelease errors (domain and infrastructure) to JSON responses.
"""

from fastapi.responses import JSONResponse

from bikelease.domain.shared.error import ClassifiedError, OrderError, classify


def classified_response(error: ClassifiedError) -> JSONResponse:
    """Render a classified failure with its category's status code."""
    return JSONResponse(status_code=error.http_status, content=error.to_body())


def map_order_error(error: OrderError) -> JSONResponse:
    """Map a bikelease error raised outside the submission pipeline."""
    return classified_response(classify(error))
