"""Realtime broker commands: publish events and watch the topics."""

import asyncio
import json
import sys

import click

from reservation_service.cli.utils import coro, error, info, success, warning
from reservation_service.core.exceptions import BrokerError, ConfigError, DecodeError
from reservation_service.core.settings import get_redis_settings, get_websocket_settings
from reservation_service.features.realtime.publisher import publish_reservation_notification
from reservation_service.infra.realtime.broker import BrokerBridge, create_broker
from reservation_service.infra.realtime.dispatcher import decode_client_frame
from reservation_service.infra.realtime.envelope import EventEnvelope, MessageKind, TopicMap


def _open_broker() -> BrokerBridge:
    ws_settings = get_websocket_settings()
    try:
        broker = create_broker(ws_settings, get_redis_settings())
    except ConfigError as e:
        error(f"Broker is not configured: {e}")
        sys.exit(1)

    if ws_settings.broker_backend == "memory":
        warning("WS_BROKER_BACKEND=memory: messages stay inside this process")
    return broker


@click.group(name="realtime")
def realtime() -> None:
    """Realtime notification broker commands."""


@realtime.command()
@click.option(
    "--type",
    "message_type",
    type=click.Choice([kind.value for kind in MessageKind]),
    default=MessageKind.DEBUG.value,
    show_default=True,
    help="Message kind",
)
@click.argument("content")
@coro
async def publish(message_type: str, content: str) -> None:
    """Publish one event exactly as a connected client would."""
    topics = TopicMap.from_settings(get_websocket_settings())
    frame = json.dumps({"type": message_type, "content": content})

    try:
        outbound = decode_client_frame(frame, topics)
    except DecodeError as e:
        error(f"Invalid event: {e}")
        sys.exit(1)
    if outbound is None:
        error(f"Unknown message type: {message_type}")
        sys.exit(1)

    broker = _open_broker()
    try:
        await broker.publish(outbound.topic, outbound.payload)
    except BrokerError as e:
        error(f"Publish failed: {e}")
        sys.exit(1)
    finally:
        await broker.close()

    success(f"Published {message_type} event to {outbound.topic}")


@realtime.command(name="notify-reservation")
@click.argument("user_id")
@coro
async def notify_reservation(user_id: str) -> None:
    """Announce a new reservation for USER_ID to every connected client."""
    broker = _open_broker()
    try:
        published = await publish_reservation_notification(broker, user_id)
    finally:
        await broker.close()

    if not published:
        error("Publish failed, see logs for details")
        sys.exit(1)
    success(f"Reservation notification published for user {user_id}")


@realtime.command()
@click.option(
    "--count",
    default=0,
    type=int,
    help="Stop after this many events (0 = run until interrupted)",
)
@coro
async def listen(count: int) -> None:
    """Print every event relayed to clients, as the clients receive it."""
    ws_settings = get_websocket_settings()
    topics = TopicMap.from_settings(ws_settings)
    broker = _open_broker()

    try:
        stream = await broker.subscribe(topics.topics)
    except BrokerError as e:
        error(f"Subscribe failed: {e}")
        await broker.close()
        sys.exit(1)

    info(f"Listening on {', '.join(topics.topics)} (Ctrl+C to stop)")
    received = 0
    try:
        while count <= 0 or received < count:
            try:
                message = await stream.receive()
            except BrokerError as e:
                warning(f"Receive failed, retrying: {e}")
                await asyncio.sleep(ws_settings.receive_retry_delay)
                continue

            kind = topics.kind_for(message.topic)
            if kind is None:
                continue
            click.echo(EventEnvelope(type=kind, content=message.payload).to_wire())
            received += 1
    finally:
        await stream.close()
        await broker.close()
