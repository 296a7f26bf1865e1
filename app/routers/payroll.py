"""
Paywise Payroll Engine - Payroll Router

API endpoints for previewing, confirming and retrieving monthly payroll.
"""

import uuid
from decimal import Decimal
from typing import Optional, List

from fastapi import APIRouter, Depends, status, Query, Path
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session, async_session_maker
from app.services.payroll_service import PayrollService
from app.schemas.payroll import (
    PayrollPreviewRequest,
    PayrollPreviewResponse,
    PayrollConfirmRequest,
    PayrollResponse,
    PayrollSummary,
)


router = APIRouter()


def get_payroll_service(db: AsyncSession = Depends(get_async_session)) -> PayrollService:
    return PayrollService(db, session_factory=async_session_maker)


@router.post(
    "/preview",
    response_model=PayrollPreviewResponse,
    summary="Preview payroll",
    description="Compute payroll for all active (or selected) employees without saving anything.",
)
async def preview_payroll(
    data: PayrollPreviewRequest,
    service: PayrollService = Depends(get_payroll_service),
):
    """Preview a month's payroll."""
    results = await service.preview_payroll(data.month, data.year, data.employee_ids)

    return PayrollPreviewResponse(
        month=data.month,
        year=data.year,
        employee_count=len(results),
        total_gross=sum((r.gross_salary for r in results), Decimal("0")),
        total_net=sum((r.net_salary for r in results), Decimal("0")),
        results=results,
    )


@router.post(
    "/preview/stream",
    response_class=StreamingResponse,
    summary="Stream payroll preview",
    description="Same computation as /preview, streamed as one JSON record per line (NDJSON) chunk by chunk.",
)
async def stream_payroll_preview(data: PayrollPreviewRequest):
    """
    Stream a month's payroll preview.

    The first chunk is computed before the response starts so period and
    employee errors still produce a regular error response. The session
    lives until the last chunk is sent.
    """
    session = async_session_maker()
    service = PayrollService(session, session_factory=async_session_maker)
    chunks = service.iter_preview(data.month, data.year, data.employee_ids)
    try:
        first = await anext(chunks)
    except Exception:
        await session.close()
        raise

    async def ndjson():
        try:
            for result in first:
                yield result.model_dump_json() + "\n"
            async for chunk in chunks:
                for result in chunk:
                    yield result.model_dump_json() + "\n"
        finally:
            await session.close()

    return StreamingResponse(ndjson(), media_type="application/x-ndjson")


@router.post(
    "/confirm",
    response_model=PayrollResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Confirm payroll",
    description="Persist the (possibly edited) payroll details of a month. Re-confirming replaces them.",
)
async def confirm_payroll(
    data: PayrollConfirmRequest,
    service: PayrollService = Depends(get_payroll_service),
):
    """Confirm a month's payroll."""
    payroll = await service.confirm_payroll(
        month=data.month,
        year=data.year,
        submitted_by=data.generated_by,
        details=data.details,
    )
    return PayrollResponse.model_validate(payroll)


@router.get(
    "",
    response_model=List[PayrollSummary],
    summary="List payrolls",
)
async def list_payrolls(
    year: Optional[int] = Query(None, ge=1900, le=9999),
    service: PayrollService = Depends(get_payroll_service),
):
    """List payroll headers, most recent first."""
    payrolls = await service.list_payrolls(year=year)
    return [PayrollSummary.model_validate(p) for p in payrolls]


@router.get(
    "/{payroll_id}",
    response_model=PayrollResponse,
    summary="Get payroll",
)
async def get_payroll(
    payroll_id: uuid.UUID = Path(...),
    service: PayrollService = Depends(get_payroll_service),
):
    """Get a payroll with its details."""
    payroll = await service.get_payroll(payroll_id)
    return PayrollResponse.model_validate(payroll)
