"""Field and business-rule validation for incoming order payloads."""

from typing import Any

import pydantic
from pydantic_core import ErrorDetails

from bikelease.domain.order.model.value import CreateOrderRequest
from bikelease.domain.order.port.validator import PayloadValidator
from bikelease.domain.shared.error import ValidationError

VALIDATION_FAILED = "Validation failed"

FIELD_MESSAGES: dict[str, str] = {
    "employeeId": "Employee ID is required",
    "bikeModel": "Bike model is required",
    "startDate": "Invalid start date format",
    "endDate": "Invalid end date format",
    "price": "Price must be positive",
    "currency": "Currency must be 3 characters",
    "companyId": "Company ID is required",
}

# Structural problems share one wording across fields.
TYPE_MESSAGES: dict[str, str] = {
    "missing": "Required",
    "string_type": "Expected string",
    "float_type": "Expected number",
    "float_parsing": "Expected number",
    "int_type": "Expected number",
    "model_type": "Expected object",
    "model_attributes_type": "Expected object",
    "dict_type": "Expected object",
}


def describe_violation(error: ErrorDetails) -> str:
    """Render one pydantic error as `<field>: <reason>`."""
    field = ".".join(str(part) for part in error["loc"]) or "body"
    reason = TYPE_MESSAGES.get(error["type"]) or FIELD_MESSAGES.get(field) or error["msg"]
    return f"{field}: {reason}"


class OrderValidator(PayloadValidator):
    """Validates order payloads.

    Field rules run first and every failing field is reported, in field order.
    Cross-field rules only run once all fields are individually valid.
    """

    def validate(self, payload: Any) -> CreateOrderRequest:
        try:
            request = CreateOrderRequest.model_validate(payload)
        except pydantic.ValidationError as e:
            violations = [describe_violation(err) for err in e.errors()]
            raise ValidationError(VALIDATION_FAILED, violations) from None

        violations = self._check_rules(request)
        if violations:
            raise ValidationError(VALIDATION_FAILED, violations)
        return request

    def _check_rules(self, request: CreateOrderRequest) -> list[str]:
        violations: list[str] = []
        if request.end_date <= request.start_date:
            violations.append("endDate: End date must be after start date")
        return violations
