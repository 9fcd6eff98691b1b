from dishka import provide

from bikelease.config import Config
from bikelease.domain.order.port.storage import OrderStoreFactory
from bikelease.infrastructure.persistence.store import SqlOrderStoreFactory
from bikelease.util.di.base import Provider
from bikelease.util.di.scope import Scope


class PersistenceProvider(Provider):
    # Engines are opened per request by the factory, not pooled here.
    @provide(scope=Scope.APP)
    def get_store_factory(self, config: Config) -> OrderStoreFactory:
        return SqlOrderStoreFactory(config.storage)
