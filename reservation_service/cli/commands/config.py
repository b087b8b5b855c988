"""Configuration management commands."""

import json
import sys

import click
from pydantic import ValidationError

from reservation_service.cli.utils import error, success, warning
from reservation_service.core.settings import (
    get_app_settings,
    get_logging_settings,
    get_redis_settings,
    get_websocket_settings,
)


@click.group(name="config")
def config() -> None:
    """Configuration management commands."""


@config.command()
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["json", "table"]),
    default="table",
    help="Output format",
)
@click.option(
    "--show-secrets/--hide-secrets",
    default=False,
    help="Show sensitive values (Redis URL with credentials)",
)
def show(output_format: str, show_secrets: bool) -> None:
    """Display the effective realtime configuration."""
    try:
        app = get_app_settings()
        ws = get_websocket_settings()
        redis = get_redis_settings()
        log = get_logging_settings()
    except ValidationError as e:
        error(f"Failed to load configuration: {e}")
        sys.exit(1)

    config_dict: dict[str, dict[str, object]] = {
        "app": {
            "name": app.service_name,
            "environment": app.environment,
            "host": app.host,
            "port": app.port,
            "allowed_origins": app.allowed_origins,
        },
        "realtime": {
            "enabled": ws.enabled,
            "broker_backend": ws.broker_backend,
            "reservation_topic": ws.reservation_topic,
            "debug_topic": ws.debug_topic,
            "write_timeout": ws.write_timeout,
            "receive_retry_delay": ws.receive_retry_delay,
            "max_message_size": ws.max_message_size,
        },
        "redis": {
            "configured": redis.is_configured,
            "url": redis.url if show_secrets else f"{redis.host}:{redis.port}/{redis.db}",
            "max_connections": redis.max_connections,
        },
        "logging": {
            "level": log.level,
            "json_logs": log.json_logs,
            "file": str(log.effective_file_path) if log.file_enabled else None,
        },
    }

    if output_format == "json":
        click.echo(json.dumps(config_dict, indent=2, default=str))
    else:
        click.echo("\n" + "=" * 80)
        click.echo("CONFIGURATION SETTINGS")
        click.echo("=" * 80)

        for section_name, values in config_dict.items():
            click.echo(f"\n[{section_name.upper()}]")
            for key, value in values.items():
                click.echo(f"  {key:30} = {value}")

        click.echo("\n" + "=" * 80)

    if not app.allowed_origins:
        warning("ALLOWED_ORIGINS is empty: the server will refuse to start")
    if ws.broker_backend == "redis" and not redis.is_configured:
        warning("REDIS_URL is not set: the server will refuse to start")
    success("Configuration loaded successfully!")
