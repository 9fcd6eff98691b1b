from dishka import AsyncContainer, from_context, make_async_container

from bikelease.config import Config
from bikelease.domain.order.util.di.provider import OrderProvider
from bikelease.infrastructure.notification.di import NotificationProvider
from bikelease.infrastructure.persistence.di import PersistenceProvider
from bikelease.util.di.base import Provider
from bikelease.util.di.scope import Scope


class ConfigProvider(Provider):
    config = from_context(provides=Config, scope=Scope.APP)


def create_container(config: Config | None = None) -> AsyncContainer:
    # Pydantic Settings populates from env vars at runtime
    config = config or Config()

    return make_async_container(
        ConfigProvider(),
        PersistenceProvider(),
        NotificationProvider(),
        OrderProvider(),
        context={Config: config},
        scopes=Scope,  # type: ignore[arg-type]  # Custom scope class
    )
