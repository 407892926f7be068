"""Prometheus metrics for monitoring sales, royalty allocation, payouts and webhook performance"""

from prometheus_client import Counter, Histogram

from octobooks_royalties.domain.models import RoyaltySplit

# Sale metrics
sales_recorded_counter = Counter(
    "octobooks_sales_recorded_total",
    "Sale records created",
)

royalty_allocated_counter = Counter(
    "octobooks_royalty_allocated_cents_total",
    "Cents allocated per recipient",
    ["recipient"],  # platform | author | publisher | net
)

sale_recording_failures_counter = Counter(
    "octobooks_sale_recording_failures_total",
    "Sale recordings aborted",
    ["reason"],  # not_found | validation | persistence
)

duplicate_sales_counter = Counter(
    "octobooks_duplicate_sales_total",
    "Line items already recorded for the same order and book",
)

# Reporting metrics
report_fallback_counter = Counter(
    "octobooks_report_fallback_total",
    "Monthly reports served from sample data after a query failure",
)

# Payout metrics
payout_requests_counter = Counter(
    "octobooks_payout_requests_total",
    "Payout request status changes",
    ["status"],  # pending | approved | rejected | paid
)

# Webhook metrics
webhook_latency_histogram = Histogram(
    "payout_webhook_latency_seconds",
    "Payout gateway webhook response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

webhook_failure_counter = Counter(
    "payout_webhook_failures_total",
    "Failed payout webhook deliveries",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_sale(split: RoyaltySplit) -> None:
    """Record sale metrics for monitoring volume and how each sale was split"""
    sales_recorded_counter.inc()
    royalty_allocated_counter.labels(recipient="platform").inc(split.platform_fee_cents)
    royalty_allocated_counter.labels(recipient="author").inc(split.author_royalty_cents)
    royalty_allocated_counter.labels(recipient="publisher").inc(split.publisher_share_cents)
    royalty_allocated_counter.labels(recipient="net").inc(split.net_amount_cents)
