from abc import abstractmethod
from typing import Any, Protocol

from bikelease.domain.order.model.value import CreateOrderRequest
from bikelease.domain.shared.port import Port


class PayloadValidator(Port, Protocol):
    @abstractmethod
    def validate(self, payload: Any) -> CreateOrderRequest:
        """Return the typed order request or raise ValidationError listing every violation."""
        ...
