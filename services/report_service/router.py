from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from shared.security import verify_internal_api_key
from shared.store import DocumentStore, get_store
from .export import render_accounting_csv
from .schemas import AccountingExport, ReportSource, SettlementReport, StaffReport
from .service import ReportService

router = APIRouter(dependencies=[Depends(verify_internal_api_key)])
public_router = APIRouter()


def get_report_service(store: DocumentStore = Depends(get_store)) -> ReportService:
    return ReportService(store)


def _check_range(start: date, end: date):
    if start > end:
        raise HTTPException(status_code=400, detail="start must not be after end")


@public_router.get("/health")
async def health_check():
    return {"service": "report", "status": "running"}

@router.get("/settlement", response_model=SettlementReport)
async def settlement_report(
    start: date,
    end: date,
    source: ReportSource = Query(default=ReportSource.LIVE),
    service: ReportService = Depends(get_report_service),
):
    _check_range(start, end)
    return await service.build_settlement_report(start, end, source)

@router.get("/accounting", response_model=AccountingExport)
async def accounting_export(
    start: date,
    end: date,
    source: ReportSource = Query(default=ReportSource.LIVE),
    service: ReportService = Depends(get_report_service),
):
    _check_range(start, end)
    return await service.build_accounting_export(start, end, source)

@router.get("/staff", response_model=StaffReport)
async def staff_report(
    staff: str,
    start: date,
    end: date,
    source: ReportSource = Query(default=ReportSource.LIVE),
    service: ReportService = Depends(get_report_service),
):
    _check_range(start, end)
    return await service.build_staff_report(staff, start, end, source)

@router.get("/accounting.csv")
async def accounting_export_csv(
    start: date,
    end: date,
    source: ReportSource = Query(default=ReportSource.LIVE),
    service: ReportService = Depends(get_report_service),
):
    _check_range(start, end)
    export = await service.build_accounting_export(start, end, source)
    filename = f"accounting-{start.isoformat()}-{end.isoformat()}.csv"
    return Response(
        content=render_accounting_csv(export, service.tz),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
