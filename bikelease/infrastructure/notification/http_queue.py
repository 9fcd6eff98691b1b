"""HTTP adapter for the OrderNotifier port."""

import logging

import httpx

from bikelease.config import NotificationConfig
from bikelease.domain.order.model.message import OrderMessage
from bikelease.domain.order.port.notification import OrderNotifier, OrderNotifierFactory
from bikelease.domain.shared.error import ConfigurationError, NotificationError

logger = logging.getLogger(__name__)


class HttpOrderNotifier(OrderNotifier):
    """Posts order messages to a queue's HTTP endpoint using httpx.

    The client is created on the first send, so a notifier that is never used
    holds no connections.

    Raises:
        ConfigurationError: If `url` is empty. Checked here, without I/O, so a
            misconfigured deployment fails before any order is stored.
    """

    def __init__(
        self,
        url: str,
        queue: str = "order-processing",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not url.strip():
            raise ConfigurationError("Notification connection is not configured")
        self._url = url.rstrip("/")
        self._queue = queue
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def endpoint(self) -> str:
        return f"{self._url}/{self._queue}/messages"

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout, transport=self._transport)
        return self._client

    async def send(self, message: OrderMessage, correlation_key: str) -> None:
        client = self._get_client()
        try:
            response = await client.post(
                self.endpoint,
                json=message.body.model_dump(mode="json", by_alias=True),
                headers={
                    "Content-Type": message.content_type,
                    "X-Message-Id": message.message_id,
                    "X-Correlation-Id": correlation_key,
                },
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("Failed to send message for order %s: %s", message.message_id, e)
            raise NotificationError(
                "Failed to send order message", code="NOTIFICATION_ERROR"
            ) from e

        logger.info("Order message sent to %s for order %s", self._queue, message.message_id)

    async def release(self) -> None:
        if self._client is not None:
            client, self._client = self._client, None
            await client.aclose()


class NullOrderNotifier(OrderNotifier):
    """Notifier for environments without a notification queue."""

    async def send(self, message: OrderMessage, correlation_key: str) -> None:
        logger.debug("Notification bypassed for order %s", message.message_id)

    async def release(self) -> None:
        return None


class HttpOrderNotifierFactory(OrderNotifierFactory):
    def __init__(
        self, config: NotificationConfig, transport: httpx.AsyncBaseTransport | None = None
    ) -> None:
        self.config = config
        self.transport = transport

    def __call__(self) -> OrderNotifier:
        if self.config.bypass:
            return NullOrderNotifier()
        return HttpOrderNotifier(
            url=self.config.url,
            queue=self.config.queue,
            timeout=self.config.timeout,
            transport=self.transport,
        )
