import re
from datetime import UTC, datetime
from enum import StrEnum
from typing import Annotated, Any

from pydantic import BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from bikelease.domain.shared.model.value import ValueObject


_UTC_TIMESTAMP = re.compile(r"(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})(?:\.(\d+))?Z", re.ASCII)


class OrderStatus(StrEnum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


def _parse_timestamp(value: Any) -> datetime:
    """Accept UTC timestamps of the form `YYYY-MM-DDTHH:MM:SS[.fraction]Z`."""
    if not isinstance(value, str):
        raise PydanticCustomError("string_type", "Input should be a valid string")
    match = _UTC_TIMESTAMP.fullmatch(value)
    if match is None:
        raise PydanticCustomError("datetime_format", "Invalid datetime format")
    seconds, fraction = match.groups()
    # datetime only keeps microseconds
    text = f"{seconds}.{fraction[:6].ljust(6, '0')}" if fraction else seconds
    try:
        return datetime.fromisoformat(text).replace(tzinfo=UTC)
    except ValueError:
        raise PydanticCustomError("datetime_format", "Invalid datetime format") from None


Timestamp = Annotated[datetime, BeforeValidator(_parse_timestamp)]


class CamelModel(ValueObject):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class CreateOrderRequest(CamelModel):
    """A bike lease order as submitted by a caller, after field validation."""

    model_config = ConfigDict(strict=True, extra="ignore")

    employee_id: str = Field(min_length=1)
    bike_model: str = Field(min_length=1)
    start_date: Timestamp
    end_date: Timestamp
    price: float = Field(gt=0, allow_inf_nan=False)
    currency: str = Field(min_length=3, max_length=3)
    company_id: str = Field(min_length=1)
