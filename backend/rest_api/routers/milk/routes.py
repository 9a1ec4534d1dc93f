"""
Milk collection endpoints.

- POST /upload: staff upload an analyzer CSV for their dairy center
- GET /farmer/{member_code}[/month]: a farmer's own records, or any member's for staff
- GET /dairy/month: every record of the dairy center for a Nepali month (staff)

A dairy center id sent in the form or query must match the token's tenant,
otherwise 403.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.orm import Session

from rest_api.services.domain import CollectionService
from rest_api.services.ingestion import CsvIngestionPipeline
from shared.config.logging import ingestion_logger as logger
from shared.config.settings import settings
from shared.infrastructure.db import get_db
from shared.security.auth import current_user_context, require_staff
from shared.utils.exceptions import PayloadTooLargeError
from shared.utils.schemas import CollectionRecordOutput, CsvUploadResponse, ErrorResponse


router = APIRouter(prefix="/api/milk", tags=["milk"])


def _scoped_tenant(ctx: dict, dairy_center_id: int | None) -> int:
    """The tenant a request names explicitly, defaulting to the token's."""
    return dairy_center_id if dairy_center_id is not None else ctx["tenant_id"]


@router.post(
    "/upload",
    response_model=CsvUploadResponse,
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
    },
)
def upload_csv(
    file: UploadFile = File(...),
    dairy_center_id: int = Form(...),
    db: Session = Depends(get_db),
    user: dict = Depends(require_staff),
) -> CsvUploadResponse:
    """
    Upload a milk-analyzer CSV.

    Returns 200 with per-row failures even when some or all rows failed.
    400 when the file as a whole cannot be processed; nothing is saved then.
    """
    limit_bytes = settings.csv_max_upload_mb * 1024 * 1024
    if file.size is not None and file.size > limit_bytes:
        raise PayloadTooLargeError(
            settings.csv_max_upload_mb,
            tenant_id=user["tenant_id"],
            filename=file.filename,
            size=file.size,
        )

    summary = CsvIngestionPipeline(db).ingest(
        dairy_center_id, file.file, filename=file.filename
    )
    logger.info(
        "CSV upload complete",
        tenant_id=dairy_center_id,
        total=summary.total_records,
        successful=summary.successful_records,
        failed=summary.failed_records,
    )
    return summary.to_response()


@router.get("/farmer/{member_code}", response_model=list[CollectionRecordOutput])
def farmer_records(
    member_code: str,
    dairy_center_id: Optional[int] = Query(default=None),
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> list[CollectionRecordOutput]:
    """All records of a member code, newest first."""
    return CollectionService(db).list_farmer_records(
        _scoped_tenant(ctx, dairy_center_id), member_code, requester=ctx
    )


@router.get("/farmer/{member_code}/month", response_model=list[CollectionRecordOutput])
def farmer_monthly_records(
    member_code: str,
    nepali_month: str = Query(..., min_length=1, max_length=10),
    nepali_year: str = Query(..., min_length=1, max_length=10),
    dairy_center_id: Optional[int] = Query(default=None),
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> list[CollectionRecordOutput]:
    """Records of a member code for one Nepali month, newest first."""
    return CollectionService(db).list_farmer_records_by_month(
        _scoped_tenant(ctx, dairy_center_id),
        member_code,
        nepali_month,
        nepali_year,
        requester=ctx,
    )


@router.get("/dairy/month", response_model=list[CollectionRecordOutput])
def dairy_monthly_records(
    nepali_month: str = Query(..., min_length=1, max_length=10),
    nepali_year: str = Query(..., min_length=1, max_length=10),
    dairy_center_id: Optional[int] = Query(default=None),
    db: Session = Depends(get_db),
    user: dict = Depends(require_staff),
) -> list[CollectionRecordOutput]:
    """Every record of the dairy center for one Nepali month, newest first."""
    return CollectionService(db).list_tenant_records_by_month(
        _scoped_tenant(user, dairy_center_id), nepali_month, nepali_year
    )
