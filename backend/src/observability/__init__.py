"""Observability: structured logging, request correlation, metrics and health checks."""

from .logging_config import configure_logging, get_logger
from .metrics import (
    access_decisions_total,
    action_requests_total,
    mail_items_received_total,
    parcel_checks_total,
    payment_gateway_latency_seconds,
    signed_url_failures_total,
    subscriptions_total,
)
from .request_id import request_id_var, get_request_id, set_request_id, generate_request_id
from .health import HealthStatus, ComponentHealth
from .middleware import RequestIDMiddleware

__all__ = [
    # Logging
    "configure_logging",
    "get_logger",
    # Metrics
    "access_decisions_total",
    "action_requests_total",
    "mail_items_received_total",
    "parcel_checks_total",
    "payment_gateway_latency_seconds",
    "signed_url_failures_total",
    "subscriptions_total",
    # Request ID
    "request_id_var",
    "get_request_id",
    "set_request_id",
    "generate_request_id",
    # Health
    "HealthStatus",
    "ComponentHealth",
    # Middleware
    "RequestIDMiddleware",
]
