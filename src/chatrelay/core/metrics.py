"""Prometheus metrics for ChatRelay."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

# Chat turns
chatrelay_turns_total = Counter(
    "chatrelay_turns_total",
    "Total relayed chat turns by terminal outcome",
    ["model", "outcome"],
)
chatrelay_turn_duration_seconds = Histogram(
    "chatrelay_turn_duration_seconds",
    "Relayed chat turn duration in seconds",
    ["model"],
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0),
)
chatrelay_frames_total = Counter(
    "chatrelay_frames_total",
    "Total stream frames emitted by type",
    ["type"],
)

# Model catalog
chatrelay_catalog_requests_total = Counter(
    "chatrelay_catalog_requests_total",
    "Total model catalog requests by status",
    ["status"],
)
