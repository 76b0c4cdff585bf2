"""
Prometheus metrics for the gateway service.
"""

from collections.abc import Sequence
from typing import Any, TypeVar, cast

from prometheus_client import REGISTRY, Counter, Histogram


MetricType = Counter | Histogram
T = TypeVar("T", bound=MetricType)


def get_metric(
    name: str,
    type_cls: type[T],
    documentation: str,
    labelnames: Sequence[str] = (),
    buckets: Sequence[float] | None = None,
) -> T:
    """
    Get an existing metric or create a new one.
    This prevents 'Duplicated timeseries' errors when reloading modules or running tests.
    """
    if name in REGISTRY._names_to_collectors:
        return cast("T", REGISTRY._names_to_collectors[name])
    kwargs = {}
    if buckets and type_cls is Histogram:
        kwargs["buckets"] = buckets
    return cast("T", type_cls(name, documentation, labelnames, **cast("Any", kwargs)))


# Request counter
request_counter = get_metric(
    "gateway_requests_total",
    Counter,
    "Total number of HTTP requests answered",
    ["command", "status"],  # status=success, backend_error, transport_error, malformed, invalid
)

# End-to-end latency histogram
latency_histogram = get_metric(
    "gateway_request_latency_seconds",
    Histogram,
    "End-to-end dispatch latency",
    ["command"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0],
)

# Per-endpoint attempt duration
rpc_duration_histogram = get_metric(
    "gateway_rpc_duration_seconds",
    Histogram,
    "Duration of single attempts against a backend endpoint",
    ["endpoint", "outcome"],  # outcome=reply, unavailable, malformed
    buckets=[0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 30.0],
)

# Blacklist events
blacklist_counter = get_metric(
    "gateway_blacklist_events_total",
    Counter,
    "Number of times an endpoint was blacklisted",
    ["endpoint"],
)

# Transport failures by reason
transport_failure_counter = get_metric(
    "gateway_transport_failures_total",
    Counter,
    "Requests that reached no backend endpoint",
    ["reason"],  # NoHostsAvailable, AllHostsFailed
)
