# =============================================================================
# File: profilesync/infra/metrics/profile_sync_metrics.py
# Description: Prometheus metrics for the profile sync engine
# =============================================================================

from profilesync.infra.metrics.prometheus import MetricsFactory

# Synchronous path
operations_submitted = MetricsFactory.counter(
    "sync_operations_submitted_total",
    "Update operations accepted and handed to the sync worker",
    ["section", "impact_level"],
)
apply_failures = MetricsFactory.counter(
    "apply_failures_total",
    "Authoritative writes that failed and aborted an update",
    ["section"],
)

# Propagation
operations_finished = MetricsFactory.counter(
    "sync_operations_finished_total",
    "Sync operations that reached a terminal status",
    ["status"],
)
propagation_attempts = MetricsFactory.counter(
    "propagation_attempts_total",
    "Adapter invocations by downstream system and outcome",
    ["system", "outcome"],
)
adapter_latency = MetricsFactory.histogram(
    "adapter_latency_seconds",
    "Adapter call duration by downstream system",
    ["system"],
)
retries_scheduled = MetricsFactory.counter(
    "sync_retries_scheduled_total",
    "Sync operations re-queued after a failed attempt",
    ["system"],
)
queue_depth = MetricsFactory.gauge(
    "sync_queue_depth",
    "Sync operations waiting across all subjects",
)

# Rollback
rollbacks = MetricsFactory.counter(
    "rollbacks_total",
    "Rollback requests by outcome (applied, missing, failed)",
    ["outcome"],
)
snapshot_cache_size = MetricsFactory.gauge(
    "rollback_snapshots",
    "Rollback snapshots currently retained",
)

# Notifications
notifications = MetricsFactory.counter(
    "notifications_total",
    "Notification deliveries by channel and status",
    ["channel", "status"],
)
