"""Shared OTel metrics instruments for the service."""

from opentelemetry import metrics

METER_NAME = "blog_api"

meter = metrics.get_meter(METER_NAME)

posts_operations_total = meter.create_counter(
    name="posts_operations_total",
    description="Blog post operations completed, by operation",
    unit="1",
)

store_errors_total = meter.create_counter(
    name="store_errors_total",
    description="Document store failures surfaced as StoreError",
    unit="1",
)
