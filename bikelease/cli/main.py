"""Main CLI application using Cyclopts."""

import cyclopts

from bikelease.cli.commands import orders, server

app = cyclopts.App(
    name="bikelease",
    help="Bike lease order service - CLI",
)

app.command(server.app, name="server")
app.command(orders.app, name="orders")


def main() -> None:
    app()
