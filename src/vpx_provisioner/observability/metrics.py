"""Prometheus metrics for provisioning waits and HA pairing.

Usage::

    from vpx_provisioner.observability.metrics import WAIT_OUTCOMES_TOTAL

    WAIT_OUTCOMES_TOTAL.labels(wait="order_binding", status="ready").inc()
"""

from __future__ import annotations

from prometheus_client import (
    REGISTRY,
    Counter,
    Histogram,
    generate_latest,
)

# ---------------------------------------------------------------------------
# Provisioning waits
# ---------------------------------------------------------------------------

WAIT_OUTCOMES_TOTAL = Counter(
    "vpx_wait_outcomes_total",
    "Completed provisioning waits by wait name and final status.",
    labelnames=["wait", "status"],
    registry=REGISTRY,
)

WAIT_ATTEMPTS = Histogram(
    "vpx_wait_attempts",
    "Predicate calls made per provisioning wait.",
    labelnames=["wait"],
    buckets=(1, 2, 5, 10, 20, 30, 60, 120),
    registry=REGISTRY,
)

# ---------------------------------------------------------------------------
# HA pairing
# ---------------------------------------------------------------------------

HA_OPERATIONS_TOTAL = Counter(
    "vpx_ha_operations_total",
    "HA establish/teardown runs by operation and outcome.",
    labelnames=["operation", "outcome"],
    registry=REGISTRY,
)

HA_STEP_FAILURES_TOTAL = Counter(
    "vpx_ha_step_failures_total",
    "HA step failures by operation and step category.",
    labelnames=["operation", "category"],
    registry=REGISTRY,
)


def render_latest() -> bytes:
    """Serialize the default registry in Prometheus text format."""
    return generate_latest(REGISTRY)
