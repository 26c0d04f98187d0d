from datetime import date, datetime, tzinfo
from typing import Callable

import structlog
from shared.config.settings import ARCHIVE_STEP_TIMEOUT
from shared.observability import (
    pos_archive_duration_seconds,
    pos_archive_orders_total,
    pos_archive_runs_total,
)
from shared.saga import SagaStepTimeout
from shared.sales import ArchiveMetadata, ArchivedOrder, parse_archived_orders, parse_orders
from shared.sales.aggregation import filter_by_date_range, total_revenue
from shared.sales.timeutils import local_date_of, now, parse_day, store_tz, yesterday
from shared.store import ARCHIVE_METADATA, ARCHIVED_ORDERS, ORDERS, DocumentStore, StoreError
from .exceptions import ArchiveInProgressError
from .migration import build_migration_saga
from .schemas import ArchiveResult

logger = structlog.get_logger(__name__)

# Dates with an archive run in flight in this process. The scheduler and the
# manual trigger both go through archive_day, so this keeps them from
# migrating the same day twice at once.
active_archives: set[str] = set()


class ArchiveService:
    def __init__(
        self,
        store: DocumentStore,
        step_timeout: float | None = ARCHIVE_STEP_TIMEOUT,
        tz: tzinfo | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.store = store
        self.step_timeout = step_timeout
        self.tz = tz or store_tz()
        self._clock = clock or (lambda: now(self.tz))

    # --- Migration ---

    async def archive_day(self, target: date | str | None = None) -> ArchiveResult:
        """Move one calendar day of live orders into the archive.

        `target` defaults to yesterday. Safe to repeat: already archived
        orders are skipped and the day's metadata is rewritten, never
        duplicated.
        """
        day = parse_day(target) if target else yesterday(self._clock())
        key = day.isoformat()
        if key in active_archives:
            raise ArchiveInProgressError(key)

        active_archives.add(key)
        try:
            with pos_archive_duration_seconds.time():
                result = await self._archive(day, key)
        except Exception:
            pos_archive_runs_total.labels(status="failed").inc()
            raise
        finally:
            active_archives.discard(key)

        if result.failed_order_ids:
            status = "partial"
        elif result.archived_count:
            status = "success"
        else:
            status = "empty"
        pos_archive_runs_total.labels(status=status).inc()
        return result

    async def _archive(self, day: date, key: str) -> ArchiveResult:
        log = logger.bind(archive_date=key)

        # Read failures propagate: nothing has been touched yet
        live_records = await self.store.list_all(ORDERS)
        raw_by_id = {r["id"]: r for r in live_records}
        due = filter_by_date_range(parse_orders(live_records), day, day, self.tz)
        metadata = await self._metadata_record(key)

        if not due:
            if metadata is None and await self._archived_for(key):
                # Every order moved on an earlier run but its metadata write failed
                log.warning("archive.metadata_repaired")
                await self._write_metadata(key, None)
                return ArchiveResult(archive_date=key, already_archived=True)
            log.info("archive.nothing_to_do", already_archived=metadata is not None)
            return ArchiveResult(archive_date=key, already_archived=metadata is not None)

        log.info("archive.started", orders=len(due))
        archived_at = self._clock().isoformat()
        migrated, failed = [], []

        for order in due:
            ctx = {
                "store": self.store,
                "order_id": order.id,
                "order_record": raw_by_id[order.id],
                "archived_date": local_date_of(order.created_at, self.tz),
                "archived_at": archived_at,
                "items": [],
            }
            try:
                await build_migration_saga(self.step_timeout).execute(ctx)
            except (StoreError, SagaStepTimeout) as e:
                failed.append(order.id)
                pos_archive_orders_total.labels(outcome="failed").inc()
                log.warning("archive.order_failed", order_id=order.id, error=str(e))
                continue
            migrated.append(order)
            pos_archive_orders_total.labels(outcome="migrated").inc()
            if ctx.get("resumed"):
                log.info("archive.order_resumed", order_id=order.id)

        result = ArchiveResult(
            archive_date=key,
            archived_count=len(migrated),
            total_revenue=total_revenue(migrated),
            failed_order_ids=failed,
            already_archived=metadata is not None,
        )

        if failed:
            # Metadata must describe the whole day; hold it back until a re-run succeeds
            log.warning(
                "archive.partial",
                migrated=len(migrated),
                failed_order_ids=failed,
                hint="re-run this date to finish",
            )
            return result

        await self._write_metadata(key, metadata)
        log.info("archive.completed", archived=len(migrated), total_revenue=str(result.total_revenue))
        return result

    async def _archived_for(self, key: str) -> list[ArchivedOrder]:
        return parse_archived_orders(await self.store.list_where(ARCHIVED_ORDERS, "archived_date", key))

    async def _metadata_record(self, key: str) -> ArchiveMetadata | None:
        records = await self.store.list_where(ARCHIVE_METADATA, "archive_date", key)
        return ArchiveMetadata.model_validate(records[0]) if records else None

    async def _write_metadata(self, key: str, existing: ArchiveMetadata | None):
        """Summarise every archived order of the date, not just this run's."""
        archived = await self._archived_for(key)
        record = ArchiveMetadata(
            archive_date=key,
            archived_at=self._clock().isoformat(),
            total_orders=len(archived),
            total_revenue=total_revenue(archived),
            order_ids=[o.original_order_id for o in archived],
        ).model_dump(mode="json", exclude={"id"})

        if existing is not None:
            await self.store.update(ARCHIVE_METADATA, existing.id, record)
        else:
            await self.store.insert(ARCHIVE_METADATA, record)

    # --- Retrieval ---

    async def get_archived_orders_by_date(self, day: date | str) -> list[ArchivedOrder]:
        return await self._archived_for(parse_day(day).isoformat())

    async def get_archived_orders_by_date_range(self, start: date | str, end: date | str) -> list[ArchivedOrder]:
        # YYYY-MM-DD strings sort chronologically
        start_key, end_key = parse_day(start).isoformat(), parse_day(end).isoformat()
        records = [
            r for r in await self.store.list_all(ARCHIVED_ORDERS)
            if start_key <= str(r.get("archived_date", "")) <= end_key
        ]
        return parse_archived_orders(records)

    async def get_archive_metadata(self, day: date | str) -> ArchiveMetadata | None:
        return await self._metadata_record(parse_day(day).isoformat())

    async def get_available_archive_dates(self) -> list[str]:
        records = await self.store.list_all(ARCHIVE_METADATA)
        return sorted({r["archive_date"] for r in records if r.get("archive_date")}, reverse=True)
