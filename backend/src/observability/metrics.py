"""Prometheus metrics for the mailroom.

Counters are labelled with low-cardinality values only (no ids).
"""

from prometheus_client import Counter, Histogram

access_decisions_total = Counter(
    "mailroom_access_decisions_total",
    "Access policy decisions by matched route prefix",
    ["route", "decision"]  # decision: ALLOW|REDIRECT|DENY_NOT_FOUND
)

mail_items_received_total = Counter(
    "mailroom_mail_items_received_total",
    "Mail items logged in by operators",
    ["owner_kind"]  # owner_kind: personal|business
)

action_requests_total = Counter(
    "mailroom_action_requests_total",
    "Action requests by lifecycle event",
    ["action_type", "event"]  # event: requested|held|released|fulfilled
)

mail_status_transitions_total = Counter(
    "mailroom_mail_status_transitions_total",
    "Mail item status changes",
    ["to_status"]  # to_status: SCANNED|PROCESSED|FORWARDED|SHREDDED
)

signed_url_failures_total = Counter(
    "mailroom_signed_url_failures_total",
    "Scan URLs that could not be signed"
)

parcel_checks_total = Counter(
    "mailroom_parcel_checks_total",
    "Parcel fit checks by outcome",
    ["fits"]  # fits: true|false
)

subscriptions_total = Counter(
    "mailroom_subscriptions_total",
    "Subscription lifecycle events",
    ["plan_type", "event"]  # event: checkout|activated|cancelled
)

mailbox_assignments_total = Counter(
    "mailroom_mailbox_assignments_total",
    "Mailbox claims on subscription activation",
    ["outcome"]  # outcome: assigned|contended|exhausted
)

payment_gateway_latency_seconds = Histogram(
    "mailroom_payment_gateway_latency_seconds",
    "Payment gateway call latency",
    ["operation", "status"],  # status: success|error
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0]
)
