"""
Operational Metrics for Azure Resource Manager access

Prometheus metrics for dependency calls, retries, provider metadata caching
and enumeration bounds.
"""

from prometheus_client import Counter, Histogram

# --- Dependency Call Metrics ---
DEPENDENCY_CALLS = Counter(
    "armclient_dependency_calls_total",
    "Total number of outbound dependency calls",
    ["dependency", "command", "outcome"],
)

DEPENDENCY_DURATION = Histogram(
    "armclient_dependency_duration_seconds",
    "Duration of outbound dependency calls, retries included",
    ["dependency", "command"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30, 60, 120),
)

DEPENDENCY_RETRIES = Counter(
    "armclient_dependency_retries_total",
    "Total number of retried dependency call attempts",
    ["dependency", "command"],
)

# --- Provider Metadata Cache Metrics ---
PROVIDER_CACHE_LOOKUPS = Counter(
    "armclient_provider_cache_lookups_total",
    "Provider metadata cache lookups by result",
    ["result"],
)

# --- Enumeration Metrics ---
ENUMERATION_BOUND_EXCEEDED = Counter(
    "armclient_enumeration_bound_exceeded_total",
    "Enumerations aborted because they crossed their item bound",
    ["label"],
)

ENUMERATION_PAGES = Counter(
    "armclient_enumeration_pages_total",
    "Total number of pages read by paginated enumerations",
    ["label"],
)
