"""Payments router: preview allocation, record payment, payment history."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from feedesk.auth.rbac import check_permission
from feedesk.auth.schemas import CurrentUser
from feedesk.core.config import settings
from feedesk.core.exceptions import ServiceError, ValidationError
from feedesk.db.repository import LedgerRepository, get_repository
from feedesk.ledger.locks import StudentLocks, get_student_locks
from feedesk.ledger.schemas import Payment

from .schemas import (
    AllocationPreviewRequest,
    AllocationPreviewResponse,
    PaymentCreate,
    PaymentReceiptResponse,
)
from . import service

router = APIRouter(prefix="/api/v1/payments", tags=["payments"])


def _validation_detail(e: ValidationError) -> dict:
    return {"message": e.message, "reason": e.reason}


@router.post(
    "/{admission_number}/preview",
    response_model=AllocationPreviewResponse,
    dependencies=[Depends(check_permission("payments", "read"))],
)
async def preview_allocation(
    admission_number: str,
    payload: AllocationPreviewRequest,
    repo: LedgerRepository = Depends(get_repository),
) -> AllocationPreviewResponse:
    try:
        return await service.preview_allocation(repo, admission_number, payload, settings.academic_year)
    except ValidationError as e:
        raise HTTPException(status_code=e.status_code, detail=_validation_detail(e))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "/{admission_number}",
    response_model=PaymentReceiptResponse,
    status_code=status.HTTP_201_CREATED,
)
async def record_payment(
    admission_number: str,
    payload: PaymentCreate,
    repo: LedgerRepository = Depends(get_repository),
    locks: StudentLocks = Depends(get_student_locks),
    current_user: CurrentUser = Depends(check_permission("payments", "write")),
) -> PaymentReceiptResponse:
    try:
        return await service.record_payment(
            repo,
            locks,
            admission_number,
            payload,
            recorded_by=current_user,
            academic_year=settings.academic_year,
        )
    except ValidationError as e:
        raise HTTPException(status_code=e.status_code, detail=_validation_detail(e))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/{admission_number}",
    response_model=List[Payment],
    dependencies=[Depends(check_permission("payments", "read"))],
)
async def get_payment_history(
    admission_number: str,
    repo: LedgerRepository = Depends(get_repository),
) -> List[Payment]:
    try:
        return await service.get_payment_history(repo, admission_number)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
