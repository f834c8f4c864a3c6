"""Reports router: outstanding by class, payment history, dashboard."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response

from feedesk.auth.rbac import check_permission
from feedesk.core.config import settings
from feedesk.core.exceptions import ServiceError
from feedesk.db.repository import LedgerRepository, get_repository

from .schemas import ClassOutstandingItem, DashboardSummary, PaymentReportItem
from . import service

router = APIRouter(prefix="/api/v1/reports", tags=["reports"])


@router.get(
    "/outstanding",
    response_model=List[ClassOutstandingItem],
    dependencies=[Depends(check_permission("reports", "read"))],
)
async def outstanding_by_class(
    repo: LedgerRepository = Depends(get_repository),
) -> List[ClassOutstandingItem]:
    try:
        return await service.get_outstanding_by_class(repo, settings.academic_year)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/payments",
    response_model=List[PaymentReportItem],
    dependencies=[Depends(check_permission("reports", "read"))],
)
async def payment_report(
    repo: LedgerRepository = Depends(get_repository),
) -> List[PaymentReportItem]:
    try:
        return await service.get_payment_report(repo)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/payments/export",
    dependencies=[Depends(check_permission("reports", "read"))],
)
async def export_payment_report(
    repo: LedgerRepository = Depends(get_repository),
):
    """Download the payment history as an Excel workbook."""
    try:
        rows = await service.get_payment_report(repo)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return Response(
        content=service.build_payments_excel(rows),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": "attachment; filename=payments.xlsx"},
    )


@router.get(
    "/dashboard",
    response_model=DashboardSummary,
    dependencies=[Depends(check_permission("dashboard", "read"))],
)
async def dashboard(
    repo: LedgerRepository = Depends(get_repository),
) -> DashboardSummary:
    try:
        return await service.get_dashboard(repo, settings.academic_year)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
