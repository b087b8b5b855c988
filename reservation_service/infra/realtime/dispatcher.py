"""Per-connection inbound loop: decode client frames and publish them.

Clients send tagged JSON envelopes:

    {"type": "debug", "content": "ping"}              -> debug topic, payload "ping"
    {"type": "debug", "message": "ping"}              -> same ("message" accepted)
    {"type": "reservation_notification", ...}         -> reservation topic, whole object

Nothing is ever sent back to the client from here. A malformed or unknown
frame is logged and skipped, and the loop reads the next one.
"""

from __future__ import annotations

from dataclasses import dataclass
import json
import logging
from typing import TYPE_CHECKING, Any

from reservation_service.core.exceptions import BrokerError, DecodeError
from reservation_service.infra.metrics.prometheus import realtime_frames_received_total
from reservation_service.infra.realtime.envelope import MessageKind, TopicMap

if TYPE_CHECKING:
    from reservation_service.infra.realtime.broker import BrokerBridge
    from reservation_service.infra.realtime.registry import RealtimeConnection

logger = logging.getLogger(__name__)

DEFAULT_MAX_MESSAGE_SIZE = 65536


@dataclass(frozen=True, slots=True)
class OutboundPublish:
    """A decoded client frame, ready to publish."""

    kind: MessageKind
    topic: str
    payload: str


def _debug_text(data: dict[str, Any]) -> str:
    for key in ("content", "message"):
        value = data.get(key)
        if isinstance(value, str):
            return value
    msg = "debug frame needs a string 'content' or 'message' field"
    raise DecodeError(msg)


def decode_client_frame(
    text: str,
    topics: TopicMap,
    *,
    max_message_size: int = DEFAULT_MAX_MESSAGE_SIZE,
) -> OutboundPublish | None:
    """Decode one client frame into the publish it requests.

    Args:
        text: Raw frame text.
        topics: Kind to topic routing.
        max_message_size: Largest accepted frame, in UTF-8 bytes.

    Returns:
        The publish to perform, or None if the frame carries an unknown or
        missing ``type`` and should be skipped.

    Raises:
        DecodeError: If the frame is oversize, not JSON, not a JSON object,
            or a debug frame without a string message.
    """
    size = len(text.encode("utf-8"))
    if size > max_message_size:
        msg = f"frame of {size} bytes exceeds limit of {max_message_size}"
        raise DecodeError(msg)

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        msg = f"frame is not valid JSON: {exc.msg}"
        raise DecodeError(msg) from exc

    if not isinstance(data, dict):
        msg = f"frame must be a JSON object, got {type(data).__name__}"
        raise DecodeError(msg)

    kind = MessageKind.parse(data.get("type"))
    if kind is None:
        logger.warning("Unknown message type, frame skipped", extra={"message_type": data.get("type")})
        return None

    if kind is MessageKind.DEBUG:
        payload = _debug_text(data)
    else:
        payload = json.dumps(data, ensure_ascii=False, separators=(",", ":"))

    return OutboundPublish(kind=kind, topic=topics.topic_for(kind), payload=payload)


class InboundDispatcher:
    """Reads frames from one connection until it closes.

    Example:
        dispatcher = InboundDispatcher(broker, TopicMap())
        await dispatcher.run(conn)  # returns when the peer goes away
    """

    def __init__(
        self,
        broker: BrokerBridge,
        topics: TopicMap,
        *,
        max_message_size: int = DEFAULT_MAX_MESSAGE_SIZE,
    ) -> None:
        self._broker = broker
        self._topics = topics
        self._max_message_size = max_message_size

    async def run(self, conn: RealtimeConnection) -> None:
        """Read and handle frames until the peer closes or a read fails."""
        websocket = conn.websocket
        while True:
            try:
                message = await websocket.receive()
            except RuntimeError as exc:
                # Starlette raises once the socket is no longer readable
                logger.debug("WebSocket read failed", extra={"error": str(exc)})
                return

            if message["type"] == "websocket.disconnect":
                logger.debug("Peer closed connection", extra={"close_code": message.get("code")})
                return

            text = message.get("text")
            if text is None:
                raw = message.get("bytes") or b""
                try:
                    text = raw.decode("utf-8")
                except UnicodeDecodeError:
                    realtime_frames_received_total.labels(message_type="invalid").inc()
                    logger.warning("Binary frame is not valid UTF-8, frame skipped")
                    continue

            await self.handle_frame(text)

    async def handle_frame(self, text: str) -> bool:
        """Decode and publish one frame.

        Returns:
            True if a message was published.
        """
        try:
            outbound = decode_client_frame(
                text,
                self._topics,
                max_message_size=self._max_message_size,
            )
        except DecodeError as exc:
            realtime_frames_received_total.labels(message_type="invalid").inc()
            logger.warning("Malformed frame skipped", extra={"error": str(exc)})
            return False

        if outbound is None:
            realtime_frames_received_total.labels(message_type="unknown").inc()
            return False

        realtime_frames_received_total.labels(message_type=outbound.kind.value).inc()

        try:
            await self._broker.publish(outbound.topic, outbound.payload)
        except BrokerError as exc:
            logger.error(
                "Failed to publish client frame",
                extra={"topic": outbound.topic, "error": str(exc)},
            )
            return False

        logger.debug(
            "Published client frame",
            extra={"topic": outbound.topic, "message_type": outbound.kind.value},
        )
        return True
