"""Publish helpers for code outside the realtime subsystem.

Write paths (reservation and notification creation) call these after their
own work has succeeded. Publishing is best-effort: a broker failure is
logged and reported as ``False``, never raised into the caller.

Example:
    from reservation_service.features.realtime.publisher import (
        publish_reservation_notification,
    )

    reservation = await create_reservation(...)
    await publish_reservation_notification(broker, reservation.user_id)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from reservation_service.core.exceptions import BrokerError
from reservation_service.core.settings import get_websocket_settings

if TYPE_CHECKING:
    from reservation_service.infra.realtime.broker import BrokerBridge

logger = logging.getLogger(__name__)


def reservation_created_message(user_id: int | str) -> str:
    """Human-readable text broadcast when a reservation is created."""
    return f"New reservation created for user {user_id}"


async def publish_event(broker: BrokerBridge, topic: str, message: str) -> bool:
    """Publish ``message`` to ``topic``, logging instead of raising on failure.

    Returns:
        True if the broker accepted the message.
    """
    try:
        await broker.publish(topic, message)
    except BrokerError as exc:
        logger.error(
            "Failed to publish realtime event",
            extra={"topic": topic, "error": str(exc)},
        )
        return False

    logger.debug("Published realtime event", extra={"topic": topic})
    return True


async def publish_reservation_notification(
    broker: BrokerBridge,
    user_id: int | str,
    *,
    topic: str | None = None,
) -> bool:
    """Announce a new reservation on the reservation topic.

    Args:
        broker: Broker bridge to publish through.
        user_id: Owner of the new reservation.
        topic: Override for the configured reservation topic.
    """
    target = topic or get_websocket_settings().reservation_topic
    return await publish_event(broker, target, reservation_created_message(user_id))
