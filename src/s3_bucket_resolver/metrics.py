"""Prometheus metrics for the S3 bucket resolver."""

from prometheus_client import Counter, Histogram

# Resolution metrics
resolve_total = Counter(
    "s3_bucket_resolver_resolve_total",
    "Total number of resolution passes",
    ["operation", "result"],
)

resolve_duration_seconds = Histogram(
    "s3_bucket_resolver_resolve_duration_seconds",
    "Duration of resolution passes in seconds",
    ["operation"],
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5],
)

# Provider API call metrics
api_call_total = Counter(
    "s3_bucket_resolver_api_call_total",
    "Total number of provider API calls",
    ["operation", "result"],
)

api_call_duration_seconds = Histogram(
    "s3_bucket_resolver_api_call_duration_seconds",
    "Duration of provider API calls in seconds",
    ["operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0],
)
