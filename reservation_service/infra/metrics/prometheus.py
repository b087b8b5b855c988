"""Prometheus metrics for the realtime fan-out subsystem."""

from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram

# Dedicated registry so /metrics only exposes what this service defines
REGISTRY = CollectorRegistry()

# Connection lifetimes from 1s to 1h
CONNECTION_DURATION_BUCKETS = (1, 5, 10, 30, 60, 120, 300, 600, 1800, 3600)

# Recipients per broadcast pass
BROADCAST_RECIPIENT_BUCKETS = (0, 1, 5, 10, 25, 50, 100, 250, 500, 1000)

# Registry membership
realtime_connections = Gauge(
    "realtime_connections",
    "Current number of registered realtime connections",
    registry=REGISTRY,
)

# Inbound client frames, labelled by envelope type ("invalid" for undecodable)
realtime_frames_received_total = Counter(
    "realtime_frames_received_total",
    "Total number of frames received from realtime clients",
    ["message_type"],
    registry=REGISTRY,
)

realtime_messages_broadcast_total = Counter(
    "realtime_messages_broadcast_total",
    "Total number of broker events broadcast to connected clients",
    ["message_type"],
    registry=REGISTRY,
)

realtime_write_failures_total = Counter(
    "realtime_write_failures_total",
    "Total number of failed or timed-out broadcast writes",
    registry=REGISTRY,
)

realtime_broker_errors_total = Counter(
    "realtime_broker_errors_total",
    "Total number of broker publish/receive failures",
    ["operation"],
    registry=REGISTRY,
)

realtime_broadcast_recipients = Histogram(
    "realtime_broadcast_recipients",
    "Number of connections a broadcast was delivered to",
    buckets=BROADCAST_RECIPIENT_BUCKETS,
    registry=REGISTRY,
)

realtime_connection_duration_seconds = Histogram(
    "realtime_connection_duration_seconds",
    "Duration of realtime connections in seconds",
    buckets=CONNECTION_DURATION_BUCKETS,
    registry=REGISTRY,
)

# Application metrics
application_info = Gauge(
    "application_info",
    "Application information",
    ["version", "service", "environment"],
    registry=REGISTRY,
)
