"""Order commands: submit a payload file or look up a stored order."""

import asyncio
import sys
from pathlib import Path

import cyclopts

from bikelease.application.di import create_container
from bikelease.cli.console import get_console
from bikelease.config import Config, configure_logging
from bikelease.domain.order.query.get_order import GetOrder, GetOrderHandler
from bikelease.domain.order.service.pipeline import OrderAccepted, SubmissionPipeline
from bikelease.domain.shared.error import OrderError
from bikelease.util.di.scope import Scope

app = cyclopts.App(name="orders", help="Submit and inspect orders")


@app.command
def submit(path: Path, /) -> None:
    """Submit an order payload read from a JSON file.

    Args:
        path: File containing the order JSON.
    """
    console = get_console()
    if not path.exists():
        console.error(f"File not found: {path}")
        sys.exit(1)

    outcome = asyncio.run(_submit(path.read_bytes()))
    if isinstance(outcome, OrderAccepted):
        console.success(f"{outcome.message}: {outcome.order_id}")
        return

    console.error(outcome.message, hint=outcome.code)
    for violation in outcome.field_violations or ():
        console.print(f"  - {violation}")
    sys.exit(1)


@app.command
def show(company_id: str, order_id: str, /) -> None:
    """Show a stored order.

    Args:
        company_id: Company the order belongs to.
        order_id: Order id returned on submission.
    """
    console = get_console()
    try:
        order = asyncio.run(_lookup(company_id, order_id))
    except OrderError as e:
        console.error(e.message, hint=e.code)
        sys.exit(1)

    if order is None:
        console.error(f"Order not found: {company_id}/{order_id}")
        sys.exit(1)
    console.fields(order, title=f"Order {order_id}")


async def _submit(body: bytes):
    config = Config()
    configure_logging(config.logging)
    container = create_container(config)
    try:
        async with container(scope=Scope.UOW) as uow:
            pipeline = await uow.get(SubmissionPipeline)
            return await pipeline.submit(body)
    finally:
        await container.close()


async def _lookup(company_id: str, order_id: str) -> dict | None:
    config = Config()
    configure_logging(config.logging)
    container = create_container(config)
    try:
        async with container(scope=Scope.UOW) as uow:
            handler = await uow.get(GetOrderHandler)
            result = await handler.run(GetOrder(company_id=company_id, order_id=order_id))
    finally:
        await container.close()
    return result.order.to_document() if result.order else None
