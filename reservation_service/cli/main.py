"""Main CLI entry point for reservation-service management commands."""

import click

from reservation_service.cli.commands import (
    config,
    realtime,
    server,
)
from reservation_service.infra.logging.config import setup_logging


@click.group()
@click.version_option(version="1.0.0", prog_name="reservation-service")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Reservation Service CLI - realtime notification management commands.

    \b
    Command Groups:
      server     Run the API and WebSocket server
      realtime   Publish events and watch broker topics
      config     Configuration inspection

    \b
    Quick Start:
      reservation-service server run
      reservation-service realtime publish "hello"
      reservation-service realtime notify-reservation 42
      reservation-service realtime listen
    """
    ctx.ensure_object(dict)


cli.add_command(server.server)
cli.add_command(realtime.realtime)
cli.add_command(config.config)


def main() -> None:
    """Entry point for CLI."""
    setup_logging()
    cli(obj={})


if __name__ == "__main__":
    main()
