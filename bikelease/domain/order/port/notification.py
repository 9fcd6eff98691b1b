from abc import abstractmethod
from typing import Protocol

from bikelease.domain.order.model.message import OrderMessage
from bikelease.domain.shared.port import Port


class OrderNotifier(Port, Protocol):
    """At-least-once delivery of order messages to downstream consumers."""

    @abstractmethod
    async def send(self, message: OrderMessage, correlation_key: str) -> None:
        """Deliver one message. Raises NotificationError on failure."""
        ...

    @abstractmethod
    async def release(self) -> None:
        """Close transport resources. Idempotent, safe if send was never called."""
        ...


class OrderNotifierFactory(Port, Protocol):
    """Creates a fresh OrderNotifier for one request.

    Must not perform I/O. Raises ConfigurationError when the notifier cannot be
    used, so the pipeline reports it before any stage has an effect.
    """

    @abstractmethod
    def __call__(self) -> OrderNotifier: ...
