from dishka import provide

from bikelease.config import Config
from bikelease.domain.order.port.notification import OrderNotifierFactory
from bikelease.domain.order.port.storage import OrderStoreFactory
from bikelease.domain.order.port.validator import PayloadValidator
from bikelease.domain.order.query.get_order import GetOrderHandler
from bikelease.domain.order.service.pipeline import SubmissionPipeline
from bikelease.domain.order.service.validator import OrderValidator
from bikelease.util.di.base import Provider
from bikelease.util.di.scope import Scope


class OrderProvider(Provider):
    validator = provide(OrderValidator, scope=Scope.APP, provides=PayloadValidator)

    @provide(scope=Scope.UOW)
    def get_submission_pipeline(
        self,
        validator: PayloadValidator,
        store_factory: OrderStoreFactory,
        notifier_factory: OrderNotifierFactory,
        config: Config,
    ) -> SubmissionPipeline:
        return SubmissionPipeline(
            validator=validator,
            store_factory=store_factory,
            notifier_factory=notifier_factory,
            notify=not config.notification.bypass,
            retry_budget=config.pipeline.retry_budget,
            request_timeout=config.pipeline.request_timeout,
        )

    @provide(scope=Scope.UOW)
    def get_order_handler(self, store_factory: OrderStoreFactory) -> GetOrderHandler:
        return GetOrderHandler(store_factory=store_factory)
