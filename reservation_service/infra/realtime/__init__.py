"""Realtime infrastructure for WebSocket notification fan-out.

Components:
- Broker bridge: publish/subscribe over Redis (or in-process memory)
- Connection registry: lock-guarded set of live client connections
- Inbound dispatcher: decodes client frames and publishes them
- Fan-out loop: broadcasts every broker message to every connection
- Lifecycle handler: origin check, register, dispatch, deregister

Architecture:
    Every instance subscribes to the same topics, so an event published by
    any instance (or any other service) reaches every connected client.

    CRUD write ──┐                              ┌──► Client A
    Client frame ┼── Redis PUBLISH ── Fan-out ──┼──► Client B
                 ┘                              └──► Client C

Usage:
    from reservation_service.infra.realtime import RealtimeHub

    hub = RealtimeHub.from_settings(app_settings, ws_settings, redis_settings)
    await hub.start()
"""

from reservation_service.infra.realtime.broker import (
    BrokerBridge,
    BrokerMessage,
    InboundStream,
    MemoryBroker,
    RedisBroker,
    create_broker,
)
from reservation_service.infra.realtime.dispatcher import InboundDispatcher, decode_client_frame
from reservation_service.infra.realtime.envelope import EventEnvelope, MessageKind, TopicMap
from reservation_service.infra.realtime.fanout import FanoutLoop
from reservation_service.infra.realtime.hub import RealtimeHub
from reservation_service.infra.realtime.lifecycle import origin_allowed, serve_connection
from reservation_service.infra.realtime.registry import (
    BroadcastResult,
    ConnectionRegistry,
    RealtimeConnection,
)

__all__ = [
    "BroadcastResult",
    "BrokerBridge",
    "BrokerMessage",
    "ConnectionRegistry",
    "EventEnvelope",
    "FanoutLoop",
    "InboundDispatcher",
    "InboundStream",
    "MemoryBroker",
    "MessageKind",
    "RealtimeConnection",
    "RealtimeHub",
    "RedisBroker",
    "TopicMap",
    "create_broker",
    "decode_client_frame",
    "origin_allowed",
    "serve_connection",
]
