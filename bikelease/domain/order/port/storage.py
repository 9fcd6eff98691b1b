from abc import abstractmethod
from typing import Protocol

from bikelease.domain.order.model.aggregate import Order
from bikelease.domain.shared.port import Port


class OrderStore(Port, Protocol):
    """Durable order storage partitioned by tenant (company id).

    Implementations raise StorageError for failed operations and
    ConfigurationError when their connection descriptor is unusable.
    """

    @abstractmethod
    async def ensure_container(self, tenant: str) -> None:
        """Create the storage location for a tenant if it does not exist yet."""
        ...

    @abstractmethod
    async def write(self, order: Order, tenant: str) -> None: ...

    @abstractmethod
    async def read(self, order_id: str, tenant: str) -> Order | None:
        """Return the stored order, or None when it does not exist."""
        ...

    @abstractmethod
    async def close(self) -> None: ...


class OrderStoreFactory(Port, Protocol):
    """Opens a fresh OrderStore for one request."""

    @abstractmethod
    def __call__(self) -> OrderStore: ...
