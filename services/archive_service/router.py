from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from shared.security import limiter, verify_internal_api_key
from shared.sales import ArchiveMetadata, ArchivedOrder
from shared.store import DocumentStore, get_store
from .exceptions import ArchiveInProgressError
from .scheduler import ArchiveScheduler
from .schemas import ArchiveResult, SchedulerStatus
from .service import ArchiveService

router = APIRouter(dependencies=[Depends(verify_internal_api_key)])
public_router = APIRouter()

# Started/stopped by the root app's lifecycle hooks
archive_scheduler = ArchiveScheduler(lambda: ArchiveService(get_store()))


def get_archive_service(store: DocumentStore = Depends(get_store)) -> ArchiveService:
    return ArchiveService(store)


@public_router.get("/health")
async def health_check():
    return {"service": "archive", "status": "running", "scheduler": archive_scheduler.state}

# Manual / backfill trigger. Shares the per-date guard with the scheduler.
@router.post("/run", response_model=ArchiveResult)
@limiter.limit("5/minute")
async def run_archive(
    request: Request,                          # REQUIRED: slowapi reads the client address from it
    archive_date: date | None = Query(default=None, alias="date"),
    service: ArchiveService = Depends(get_archive_service),
):
    try:
        return await service.archive_day(archive_date)
    except ArchiveInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))

@router.get("/dates", response_model=list[str])
async def available_dates(service: ArchiveService = Depends(get_archive_service)):
    return await service.get_available_archive_dates()

@router.get("/scheduler", response_model=SchedulerStatus)
async def scheduler_status():
    return archive_scheduler.status()

@router.get("/range", response_model=list[ArchivedOrder])
async def archived_orders_in_range(
    start: date,
    end: date,
    service: ArchiveService = Depends(get_archive_service),
):
    if start > end:
        raise HTTPException(status_code=400, detail="start must not be after end")
    return await service.get_archived_orders_by_date_range(start, end)

@router.get("/{archive_date}", response_model=list[ArchivedOrder])
async def archived_orders_for_date(archive_date: date, service: ArchiveService = Depends(get_archive_service)):
    return await service.get_archived_orders_by_date(archive_date)

@router.get("/{archive_date}/metadata", response_model=ArchiveMetadata)
async def archive_metadata(archive_date: date, service: ArchiveService = Depends(get_archive_service)):
    metadata = await service.get_archive_metadata(archive_date)
    if not metadata:
        raise HTTPException(status_code=404, detail="No archive for this date")
    return metadata
