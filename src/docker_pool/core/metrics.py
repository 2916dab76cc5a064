"""
Pool Metrics

Prometheus collectors shared by the pool and the readiness prober.
"""

from prometheus_client import Counter, Histogram

POOL_ACQUISITIONS = Counter(
    "docker_pool_acquisitions_total",
    "Containers handed out by the pool",
    ["pool"],
)

POOL_CLEANUPS = Counter(
    "docker_pool_cleanups_total",
    "Containers stopped and removed by the pool",
    ["pool"],
)

PROVISIONING_SECONDS = Histogram(
    "docker_pool_provisioning_seconds",
    "Time from slot spawn until its container is ready",
    ["pool"],
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
)

READINESS_CHECKS = Counter(
    "docker_pool_readiness_checks_total",
    "Readiness probes by outcome",
    ["result"],
)
