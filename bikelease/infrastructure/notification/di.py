from dishka import provide

from bikelease.config import Config
from bikelease.domain.order.port.notification import OrderNotifierFactory
from bikelease.infrastructure.notification.http_queue import HttpOrderNotifierFactory
from bikelease.util.di.base import Provider
from bikelease.util.di.scope import Scope


class NotificationProvider(Provider):
    @provide(scope=Scope.APP)
    def get_notifier_factory(self, config: Config) -> OrderNotifierFactory:
        return HttpOrderNotifierFactory(config.notification)
