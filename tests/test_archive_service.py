import asyncio
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
from conftest import seed_order, seed_reference_day

from services.archive_service.exceptions import ArchiveInProgressError
from services.archive_service.service import ArchiveService, active_archives
from shared.sales import parse_archived_orders
from shared.sales.aggregation import sum_by_payment_method
from shared.store import ARCHIVE_METADATA, ARCHIVED_ORDERS, ORDER_ITEMS, ORDERS, StoreError

DAY = "2024-01-15"


async def test_archives_reference_day(store):
    await seed_reference_day(store)

    result = await ArchiveService(store).archive_day(DAY)

    assert result.archived_count == 3
    assert result.total_revenue == Decimal("175.00")
    assert result.ok
    assert not result.already_archived
    assert await store.list_all(ORDERS) == []
    assert await store.list_all(ORDER_ITEMS) == []

    archived = parse_archived_orders(await store.list_all(ARCHIVED_ORDERS))
    by_method = sum_by_payment_method(archived)
    assert (by_method["Cash"].count, by_method["Cash"].total) == (2, Decimal("125.00"))
    assert (by_method["Card"].count, by_method["Card"].total) == (1, Decimal("50.00"))


async def test_archive_copy_keeps_order_fields_and_items(store):
    order_id = await seed_order(
        store, "2024-01-15T10:00:00", "12.60", "0.60", "Online",
        staff_name="Omar", items=[("Latte", 2, "4.00"), ("Scone", 2, "2.00")],
    )

    await ArchiveService(store).archive_day(DAY)

    [copy] = parse_archived_orders(await store.list_all(ARCHIVED_ORDERS))
    assert copy.original_order_id == order_id
    assert copy.id != order_id
    assert copy.archived_date == DAY
    assert copy.staff_name == "Omar"
    assert copy.payment_mode == "Online"
    assert copy.total == Decimal("12.60")
    assert [(i.product_name, i.quantity, i.total) for i in copy.order_items] == [
        ("Latte", 2, Decimal("8.00")),
        ("Scone", 2, Decimal("4.00")),
    ]


async def test_writes_metadata_for_the_day(store):
    ids = await seed_reference_day(store)

    await ArchiveService(store).archive_day(DAY)

    metadata = await ArchiveService(store).get_archive_metadata(DAY)
    assert metadata.total_orders == 3
    assert metadata.total_revenue == Decimal("175.00")
    assert sorted(metadata.order_ids) == sorted(ids)


async def test_only_the_target_day_moves(store):
    await seed_reference_day(store)
    other = await seed_order(store, "2024-01-16T00:00:00", "8.00")
    earlier = await seed_order(store, "2024-01-14T23:59:59", "9.00")

    await ArchiveService(store).archive_day(DAY)

    assert sorted(r["id"] for r in await store.list_all(ORDERS)) == sorted([other, earlier])
    assert len(await store.list_all(ORDER_ITEMS)) == 2


async def test_cancelled_orders_are_archived(store):
    await seed_reference_day(store)
    cancelled = await seed_order(store, "2024-01-15T16:00:00", "40.00", payment_status="Cancelled")

    result = await ArchiveService(store).archive_day(DAY)

    assert result.archived_count == 4
    assert result.total_revenue == Decimal("215.00")
    assert cancelled in (await ArchiveService(store).get_archive_metadata(DAY)).order_ids


async def test_rerun_is_a_no_op(store):
    await seed_reference_day(store)
    service = ArchiveService(store)
    await service.archive_day(DAY)

    again = await service.archive_day(DAY)

    assert again.archived_count == 0
    assert again.already_archived
    assert again.ok
    assert len(await store.list_all(ARCHIVED_ORDERS)) == 3
    [metadata] = await store.list_all(ARCHIVE_METADATA)
    assert metadata["total_orders"] == 3
    assert Decimal(metadata["total_revenue"]) == Decimal("175.00")


async def test_late_order_updates_existing_metadata(store):
    await seed_reference_day(store)
    service = ArchiveService(store)
    await service.archive_day(DAY)
    # Back-dated entry that arrived after the nightly run
    await seed_order(store, "2024-01-15T23:00:00", "10.00")

    result = await service.archive_day(DAY)

    assert result.archived_count == 1
    assert result.already_archived
    [metadata] = await store.list_all(ARCHIVE_METADATA)
    assert metadata["total_orders"] == 4
    assert Decimal(metadata["total_revenue"]) == Decimal("185.00")


async def test_empty_day_writes_no_metadata(store):
    result = await ArchiveService(store).archive_day(DAY)

    assert result.archived_count == 0
    assert result.total_revenue == Decimal("0.00")
    assert result.ok
    assert await store.list_all(ARCHIVE_METADATA) == []


async def test_defaults_to_yesterday(store):
    await seed_reference_day(store)
    clock = lambda: datetime(2024, 1, 16, 2, 0, tzinfo=timezone.utc)

    result = await ArchiveService(store, clock=clock).archive_day()

    assert result.archive_date == DAY
    assert result.archived_count == 3


async def test_failure_after_pivot_is_finished_by_rerun(flaky):
    first, second, third = await seed_reference_day(flaky)
    flaky.fail("delete", ORDERS, second)
    service = ArchiveService(flaky)

    partial = await service.archive_day(DAY)

    assert partial.archived_count == 2
    assert partial.failed_order_ids == [second]
    assert not partial.ok
    assert await flaky.list_all(ARCHIVE_METADATA) == []
    # The copy is durable even though the live order could not be removed
    assert len(await flaky.list_all(ARCHIVED_ORDERS)) == 3

    flaky.failing.clear()
    finished = await service.archive_day(DAY)

    assert finished.ok
    assert finished.archived_count == 1
    assert await flaky.list_all(ORDERS) == []
    archived = parse_archived_orders(await flaky.list_all(ARCHIVED_ORDERS))
    assert sorted(a.original_order_id for a in archived) == sorted([first, second, third])
    metadata = await service.get_archive_metadata(DAY)
    assert metadata.total_orders == 3
    assert metadata.total_revenue == Decimal("175.00")
    # Items were captured in the copy before the first run deleted them
    resumed = next(a for a in archived if a.original_order_id == second)
    assert len(resumed.order_items) == 1


async def test_failure_before_pivot_leaves_live_data(flaky):
    ids = await seed_reference_day(flaky)
    flaky.fail("insert", ARCHIVED_ORDERS)

    result = await ArchiveService(flaky).archive_day(DAY)

    assert result.archived_count == 0
    assert sorted(result.failed_order_ids) == sorted(ids)
    assert len(await flaky.list_all(ORDERS)) == 3
    assert len(await flaky.list_all(ORDER_ITEMS)) == 3
    assert await flaky.list_all(ARCHIVED_ORDERS) == []
    assert await flaky.list_all(ARCHIVE_METADATA) == []


async def test_copy_is_kept_when_purge_fails_and_rerun_resumes_it(flaky):
    order_id = await seed_order(flaky, "2024-01-15T10:00:00", "5.00")
    flaky.fail("delete", ORDER_ITEMS)
    service = ArchiveService(flaky)

    result = await service.archive_day(DAY)

    assert result.failed_order_ids == [order_id]
    [copy] = parse_archived_orders(await flaky.list_all(ARCHIVED_ORDERS))
    assert copy.original_order_id == order_id
    assert len(copy.order_items) == 1
    assert len(await flaky.list_all(ORDERS)) == 1
    assert len(await flaky.list_all(ORDER_ITEMS)) == 1

    flaky.failing.clear()
    finished = await service.archive_day(DAY)

    assert finished.ok
    assert await flaky.list_all(ORDERS) == []
    assert await flaky.list_all(ORDER_ITEMS) == []
    [resumed] = parse_archived_orders(await flaky.list_all(ARCHIVED_ORDERS))
    assert resumed.id == copy.id
    assert len(resumed.order_items) == 1


async def test_delete_that_commits_then_stalls_loses_no_line_items(flaky):
    order_id = await seed_order(
        flaky, "2024-01-15T10:00:00", "12.00", items=[("Latte", 2, "4.00"), ("Scone", 2, "2.00")]
    )
    flaky.linger[("delete", ORDER_ITEMS)] = 0.5
    service = ArchiveService(flaky, step_timeout=0.1)

    stalled = await service.archive_day(DAY)

    assert stalled.failed_order_ids == [order_id]
    # The first item delete went through before the step timed out
    assert len(await flaky.list_all(ORDER_ITEMS)) == 1
    [copy] = parse_archived_orders(await flaky.list_all(ARCHIVED_ORDERS))
    assert [i.product_name for i in copy.order_items] == ["Latte", "Scone"]

    flaky.linger.clear()
    finished = await service.archive_day(DAY)

    assert finished.ok
    assert await flaky.list_all(ORDERS) == []
    assert await flaky.list_all(ORDER_ITEMS) == []
    [final] = parse_archived_orders(await flaky.list_all(ARCHIVED_ORDERS))
    assert [i.product_name for i in final.order_items] == ["Latte", "Scone"]
    assert (await service.get_archive_metadata(DAY)).order_ids == [order_id]


async def test_slow_step_times_out_per_order(flaky):
    await seed_reference_day(flaky)
    flaky.slow[("insert", ARCHIVED_ORDERS)] = 0.5
    service = ArchiveService(flaky, step_timeout=0.05)

    stalled = await service.archive_day(DAY)

    assert len(stalled.failed_order_ids) == 3
    assert len(await flaky.list_all(ORDERS)) == 3
    assert await flaky.list_all(ARCHIVED_ORDERS) == []

    flaky.slow.clear()
    recovered = await service.archive_day(DAY)
    assert recovered.archived_count == 3


async def test_read_failure_aborts_before_touching_anything(flaky):
    await seed_reference_day(flaky)
    flaky.fail("list_all", ORDERS)

    with pytest.raises(StoreError):
        await ArchiveService(flaky).archive_day(DAY)

    assert DAY not in active_archives
    assert len(await flaky.inner.list_all(ORDERS)) == 3


async def test_concurrent_runs_for_same_date_are_refused(flaky):
    await seed_reference_day(flaky)
    flaky.slow[("list_all", ORDERS)] = 0.05
    service = ArchiveService(flaky)

    results = await asyncio.gather(service.archive_day(DAY), service.archive_day(DAY), return_exceptions=True)

    refused = [r for r in results if isinstance(r, ArchiveInProgressError)]
    done = [r for r in results if not isinstance(r, Exception)]
    assert len(refused) == 1
    assert refused[0].archive_date == DAY
    assert done[0].archived_count == 3
    assert DAY not in active_archives


async def test_missing_metadata_is_repaired(store):
    await seed_reference_day(store)
    service = ArchiveService(store)
    await service.archive_day(DAY)
    [metadata] = await store.list_all(ARCHIVE_METADATA)
    await store.delete(ARCHIVE_METADATA, metadata["id"])

    result = await service.archive_day(DAY)

    assert result.already_archived
    repaired = await service.get_archive_metadata(DAY)
    assert repaired.total_orders == 3
    assert repaired.total_revenue == Decimal("175.00")


async def test_retrieval(store):
    await seed_reference_day(store)
    await seed_order(store, "2024-01-16T11:00:00", "20.00")
    await seed_order(store, "2024-01-18T11:00:00", "30.00")
    service = ArchiveService(store)
    for day in ("2024-01-15", "2024-01-16", "2024-01-18"):
        await service.archive_day(day)

    assert len(await service.get_archived_orders_by_date(date(2024, 1, 15))) == 3
    assert await service.get_archived_orders_by_date("2024-01-17") == []
    in_range = await service.get_archived_orders_by_date_range("2024-01-16", "2024-01-18")
    assert sorted(o.total for o in in_range) == [Decimal("20.00"), Decimal("30.00")]
    assert await service.get_available_archive_dates() == ["2024-01-18", "2024-01-16", "2024-01-15"]
    assert await service.get_archive_metadata("2024-01-17") is None
