"""Custom Prometheus metrics for the HTTP retry layer.

These metrics are registered in the default prometheus_client registry and
should be scraped by Prometheus. Alert rules should be configured for:
- retries_total (high retry rate indicates an unstable upstream)
- retry_outcomes_total{outcome="exhausted"} (upstream down for longer than the policy tolerates)
"""

from prometheus_client import Counter, Histogram

# === Retry Metrics ===

retries_total = Counter(
    "http_retries_total",
    "Total retries scheduled by HTTP method and failure kind",
    ["method", "reason"],
)
"""
Retries committed to by the engine.

Labels:
- method: HTTP method of the retried request
- reason: network (no response) or the response status class (5xx, 429, 1xx)

Alert thresholds:
- WARN: retry rate > 10% of total requests
- CRITICAL: retry rate > 30% of total requests
"""

retry_outcomes_total = Counter(
    "http_retry_outcomes_total",
    "Terminal outcomes of request chains that failed at least once",
    ["outcome"],
)
"""
How failed request chains ended.

Labels:
- outcome: recovered, exhausted, ineligible, retry_after_rejected,
  callback_aborted, cancelled
"""

retry_delay_seconds = Histogram(
    "http_retry_delay_seconds",
    "Delay waited before each retry",
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 300.0],
)
"""
Backoff or Retry-After delay before each resubmission.

Long tails usually mean servers are sending large Retry-After values.
"""
