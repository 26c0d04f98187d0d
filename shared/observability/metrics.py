from prometheus_client import Counter, Histogram

# Archive pipeline
pos_archive_runs_total = Counter(
    "pos_archive_runs_total",
    "Archive runs by outcome",
    ["status"] # Labels: 'success', 'partial', 'empty', 'failed'
)

pos_archive_orders_total = Counter(
    "pos_archive_orders_total",
    "Orders processed by the archive migration",
    ["outcome"] # Labels: 'migrated', 'failed'
)

pos_archive_duration_seconds = Histogram(
    "pos_archive_duration_seconds",
    "Duration of a full archive run in seconds"
)

pos_saga_compensation_total = Counter(
    "pos_saga_compensation_total",
    "Saga compensations triggered",
    ["saga", "step_name"]
)

# Reporting
pos_reports_generated_total = Counter(
    "pos_reports_generated_total",
    "Reports built",
    ["kind"] # Labels: 'settlement', 'accounting', 'staff'
)
