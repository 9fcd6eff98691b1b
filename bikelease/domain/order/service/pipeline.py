"""Order submission pipeline.

Drives one request through validate -> build -> persist -> notify. Each stage
yields an explicit Ok/Err value; the first Err ends the run. The notification
gateway is acquired when the request is received, which also surfaces a
missing notification connection before anything is stored, and it is released
exactly once on every exit path.
"""

import asyncio
import json
import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any, TypeVar

import logfire
from pydantic import BaseModel, ConfigDict

from bikelease.domain.order.model.aggregate import Order
from bikelease.domain.order.model.message import OrderMessage
from bikelease.domain.order.model.value import CreateOrderRequest
from bikelease.domain.order.port.notification import OrderNotifier, OrderNotifierFactory
from bikelease.domain.order.port.storage import OrderStoreFactory
from bikelease.domain.order.port.validator import PayloadValidator
from bikelease.domain.order.service.builder import build_order, utc_now
from bikelease.domain.shared.error import (
    ClassifiedError,
    ErrorCategory,
    MalformedInputError,
    NotificationError,
    StorageError,
    classify,
)
from bikelease.domain.shared.model.value import ValueObject
from bikelease.domain.shared.result import Err, Ok, StageResult
from bikelease.domain.shared.retry import RetryBudget, RetryPolicy, Sleep, retry
from bikelease.domain.shared.service import Service

logger = logging.getLogger(__name__)

T = TypeVar("T")

REQUEST_BODY_REQUIRED = "Request body is required"
INVALID_JSON = "Invalid JSON in request body"
ORDER_PROCESSED = "Order processed successfully"


class PipelineState(StrEnum):
    RECEIVED = "received"
    VALIDATING = "validating"
    BUILDING = "building"
    PERSISTING = "persisting"
    NOTIFYING = "notifying"
    COMPLETED = "completed"
    FAILED = "failed"


class StagePolicies(ValueObject):
    """Retry policies per gateway operation."""

    model_config = ConfigDict(frozen=True)

    storage_init: RetryPolicy = RetryPolicy(max_attempts=2)
    storage_write: RetryPolicy = RetryPolicy(max_attempts=3)
    notification: RetryPolicy = RetryPolicy(max_attempts=3)


class OrderAccepted(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: str
    message: str = ORDER_PROCESSED
    http_status: int = 201

    def to_body(self) -> dict:
        return {"success": True, "orderId": self.order_id, "message": self.message}


SubmissionOutcome = OrderAccepted | ClassifiedError


@dataclass
class PipelineRun:
    """Per-request bookkeeping: current state, timing and retry budget."""

    budget: RetryBudget | None = None
    state: PipelineState = PipelineState.RECEIVED
    started: float = field(default_factory=time.monotonic)
    order_id: str | None = None

    @property
    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self.started) * 1000)

    def enter(self, state: PipelineState) -> None:
        self.state = state


class SubmissionPipeline(Service):
    """Sequences the submission stages and owns the failure and cleanup contract."""

    validator: PayloadValidator
    store_factory: OrderStoreFactory
    notifier_factory: OrderNotifierFactory
    policies: StagePolicies = field(default_factory=StagePolicies)
    notify: bool = True
    retry_budget: float | None = 30.0
    request_timeout: float | None = None
    sleep: Sleep = asyncio.sleep
    clock: Callable[[], datetime] = utc_now

    async def submit(self, body: Any) -> SubmissionOutcome:
        """Process one submission. Never raises; failures come back classified."""
        run = PipelineRun(
            budget=RetryBudget(self.retry_budget) if self.retry_budget is not None else None
        )
        with logfire.span("SubmitOrder"):
            logfire.info("Order processing started")
            try:
                async with self._acquire_notifier() as notifier:
                    result = await self._run(body, notifier, run)
            except Exception as e:
                result = Err(self._classify(run, e))
            return self._finish(run, result)

    async def _run(
        self, body: Any, notifier: OrderNotifier, run: PipelineRun
    ) -> StageResult[Order]:
        parsed = self._guard(run, self._parse, body)
        if isinstance(parsed, Err):
            return parsed

        run.enter(PipelineState.VALIDATING)
        validated = self._guard(run, self.validator.validate, parsed.value)
        if isinstance(validated, Err):
            return validated
        self._stage_done(run, "validation")

        run.enter(PipelineState.BUILDING)
        order = self._build(validated.value, run)

        try:
            async with asyncio.timeout(self.request_timeout):
                return await self._deliver(order, notifier, run)
        except TimeoutError:
            return Err(self._classify(run, self._deadline_error(run)))

    async def _deliver(
        self, order: Order, notifier: OrderNotifier, run: PipelineRun
    ) -> StageResult[Order]:
        run.enter(PipelineState.PERSISTING)
        persisted = await self._guard_async(run, self._persist(order, run))
        if isinstance(persisted, Err):
            return persisted
        self._stage_done(run, "storage")

        if not self.notify:
            logfire.info("Notification bypassed for order {order_id}", order_id=order.id)
            return Ok(order)

        run.enter(PipelineState.NOTIFYING)
        notified = await self._guard_async(run, self._notify(order, notifier, run))
        if isinstance(notified, Err):
            return notified
        self._stage_done(run, "notification")
        return Ok(order)

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def _parse(self, body: Any) -> Any:
        if isinstance(body, (bytes, bytearray, str)):
            if not body.strip():
                raise MalformedInputError(REQUEST_BODY_REQUIRED, code="EMPTY_BODY")
            try:
                body = json.loads(body)
            except ValueError:
                raise MalformedInputError(INVALID_JSON, code="INVALID_JSON") from None
        if body is None or body == {}:
            raise MalformedInputError(REQUEST_BODY_REQUIRED, code="EMPTY_BODY")
        return body

    def _build(self, request: CreateOrderRequest, run: PipelineRun) -> Order:
        order = build_order(request, clock=self.clock)
        run.order_id = order.id
        logfire.info(
            "Created order {order_id} for employee {employee_id}",
            order_id=order.id,
            employee_id=order.employee_id,
            elapsed_ms=run.elapsed_ms,
        )
        return order

    async def _persist(self, order: Order, run: PipelineRun) -> None:
        store = self.store_factory()
        try:
            await retry(
                lambda: store.ensure_container(order.company_id),
                self.policies.storage_init,
                label="storage.ensure_container",
                log=logger,
                sleep=self.sleep,
                budget=run.budget,
            )
            await retry(
                lambda: store.write(order, order.company_id),
                self.policies.storage_write,
                label="storage.write",
                log=logger,
                sleep=self.sleep,
                budget=run.budget,
            )
        finally:
            await store.close()

    async def _notify(self, order: Order, notifier: OrderNotifier, run: PipelineRun) -> None:
        message = OrderMessage.for_order(order)
        await retry(
            lambda: notifier.send(message, order.correlation_key),
            self.policies.notification,
            label="notification.send",
            log=logger,
            sleep=self.sleep,
            budget=run.budget,
        )

    # ------------------------------------------------------------------
    # Boundaries
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _acquire_notifier(self) -> AsyncIterator[OrderNotifier]:
        notifier = self.notifier_factory()
        try:
            yield notifier
        finally:
            try:
                await notifier.release()
            except Exception:
                logger.exception("Failed to release notification transport")

    def _guard(self, run: PipelineRun, fn: Callable[..., T], *args: Any) -> StageResult[T]:
        try:
            return Ok(fn(*args))
        except Exception as e:
            return Err(self._classify(run, e))

    async def _guard_async(self, run: PipelineRun, stage: Awaitable[T]) -> StageResult[T]:
        try:
            return Ok(await stage)
        except Exception as e:
            return Err(self._classify(run, e))

    def _classify(self, run: PipelineRun, error: Exception) -> ClassifiedError:
        classified = classify(error)
        if classified.category == ErrorCategory.UNCLASSIFIED:
            logger.exception("Unexpected failure while %s order %s", run.state, run.order_id)
        else:
            logger.error(
                "Order %s failed while %s after %dms: %s (%s)",
                run.order_id,
                run.state,
                run.elapsed_ms,
                type(error).__name__,
                classified.code,
            )
        return classified

    def _deadline_error(self, run: PipelineRun) -> Exception:
        if run.state == PipelineState.NOTIFYING:
            return NotificationError("Notification deadline exceeded", code="NOTIFICATION_ERROR")
        return StorageError("Storage deadline exceeded", code="STORAGE_ERROR")

    def _stage_done(self, run: PipelineRun, stage: str) -> None:
        logfire.info(
            "Stage {stage} succeeded",
            stage=stage,
            order_id=run.order_id,
            elapsed_ms=run.elapsed_ms,
        )

    def _finish(self, run: PipelineRun, result: StageResult[Order]) -> SubmissionOutcome:
        if isinstance(result, Ok):
            run.enter(PipelineState.COMPLETED)
            logfire.info(
                "Order {order_id} processed successfully in {elapsed_ms}ms",
                order_id=result.value.id,
                elapsed_ms=run.elapsed_ms,
            )
            return OrderAccepted(order_id=result.value.id)

        failed_in = run.state
        run.enter(PipelineState.FAILED)
        logfire.error(
            "Order processing failed after {elapsed_ms}ms",
            elapsed_ms=run.elapsed_ms,
            stage=str(failed_in),
            category=str(result.error.category),
            code=result.error.code,
        )
        return result.error
