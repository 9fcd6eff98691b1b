from datetime import UTC, datetime

from bikelease.domain.order.model.message import OrderMessage
from bikelease.domain.order.model.value import OrderStatus
from bikelease.domain.order.service.builder import build_order
from bikelease.domain.order.service.validator import OrderValidator

FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


class TestBuildOrder:
    def test_assigns_identity_status_and_timestamps(self, order_payload):
        request = OrderValidator().validate(order_payload)

        order = build_order(request, clock=lambda: FIXED_NOW, id_factory=lambda: "order-1")

        assert order.id == "order-1"
        assert order.status == OrderStatus.PENDING
        assert order.created_at == FIXED_NOW
        assert order.updated_at == order.created_at
        assert order.employee_id == "e1"
        assert order.company_id == "c1"
        assert order.price == 10

    def test_clock_is_read_once(self, order_payload):
        request = OrderValidator().validate(order_payload)
        ticks = iter([FIXED_NOW, datetime(2030, 1, 1, tzinfo=UTC)])

        order = build_order(request, clock=lambda: next(ticks))

        assert order.created_at == order.updated_at == FIXED_NOW

    def test_generated_ids_are_unique(self, order_payload):
        request = OrderValidator().validate(order_payload)

        ids = {build_order(request).id for _ in range(20)}

        assert len(ids) == 20

    def test_document_uses_public_field_names(self, order_payload):
        request = OrderValidator().validate(order_payload)
        order = build_order(request, clock=lambda: FIXED_NOW, id_factory=lambda: "order-1")

        document = order.to_document()

        assert document["id"] == "order-1"
        assert document["employeeId"] == "e1"
        assert document["companyId"] == "c1"
        assert document["status"] == "PENDING"
        assert document["createdAt"] == document["updatedAt"]


class TestOrderMessage:
    def test_message_for_order(self, order_payload):
        request = OrderValidator().validate(order_payload)
        order = build_order(request, clock=lambda: FIXED_NOW, id_factory=lambda: "order-1")

        message = OrderMessage.for_order(order)

        assert message.message_id == "order-1"
        assert message.correlation_id == "c1-order-1"
        assert message.content_type == "application/json"
        assert message.body.model_dump(by_alias=True, mode="json") == {
            "orderId": "order-1",
            "companyId": "c1",
            "employeeId": "e1",
            "status": "PENDING",
            "price": 10.0,
            "currency": "USD",
        }
