"""Prometheus metrics for ocnregistry.

All metrics live in a dedicated collector registry so embedding
applications can expose them next to their own, e.g. by passing
``REGISTRY`` to ``prometheus_client.start_http_server``.
"""

from __future__ import annotations

import logging

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    Info,
    generate_latest,
)

from . import __version__

logger = logging.getLogger(__name__)

REGISTRY = CollectorRegistry()

# Application info
APP_INFO = Info(
    "ocnregistry_build_info",
    "Build information about ocnregistry",
    registry=REGISTRY,
)
APP_INFO.info({"version": __version__, "name": "ocnregistry"})

# Signing metrics
SIGNING_REQUESTS_TOTAL = Counter(
    "signing_requests_total",
    "Total number of delegated operation signing requests",
    ["operation"],
    registry=REGISTRY,
)

SIGNING_DURATION_SECONDS = Histogram(
    "signing_duration_seconds",
    "Time spent producing recoverable signatures",
    ["operation"],
    buckets=[0.0001, 0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0],
    registry=REGISTRY,
)

SIGNING_ERRORS_TOTAL = Counter(
    "signing_errors_total",
    "Total number of signing errors",
    ["error_type"],
    registry=REGISTRY,
)

# Ledger metrics
REGISTRY_CALLS_TOTAL = Counter(
    "registry_calls_total",
    "Total number of read calls against the registry contract",
    ["method"],
    registry=REGISTRY,
)

TRANSACTIONS_TOTAL = Counter(
    "transactions_total",
    "Total number of submitted registry transactions",
    ["method", "status"],
    registry=REGISTRY,
)


def get_metrics_output() -> bytes:
    """Generate Prometheus-formatted metrics output."""
    return generate_latest(REGISTRY)


def get_metrics_content_type() -> str:
    """Get the content type for Prometheus metrics."""
    return CONTENT_TYPE_LATEST
