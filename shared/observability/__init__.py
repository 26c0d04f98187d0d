from .setup import setup_observability, configure_logging
from .metrics import (
    pos_archive_runs_total,
    pos_archive_orders_total,
    pos_archive_duration_seconds,
    pos_saga_compensation_total,
    pos_reports_generated_total
)
