"""
Dairy center endpoints.

Thin router that delegates to TenantService.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from rest_api.routers._common import Pagination, get_pagination
from rest_api.services.domain import TenantService
from shared.infrastructure.db import get_db
from shared.utils.schemas import (
    DairyCenterOutput,
    DairyOnboardRequest,
    DairyOnboardResponse,
    Page,
)


router = APIRouter(prefix="/api/dairy", tags=["dairy"])


def _get_service(db: Session) -> TenantService:
    """Get TenantService instance."""
    return TenantService(db)


@router.post("/onboard", response_model=DairyOnboardResponse, status_code=status.HTTP_201_CREATED)
def onboard_dairy(
    body: DairyOnboardRequest,
    db: Session = Depends(get_db),
) -> DairyOnboardResponse:
    """
    Onboard a new dairy center.

    Names are unique regardless of case; a duplicate returns 400.
    """
    center = _get_service(db).onboard(body)
    return DairyOnboardResponse(
        **DairyCenterOutput.model_validate(center).model_dump(),
        message="Dairy center onboarded successfully",
    )


@router.get("/centers", response_model=Page[DairyCenterOutput])
def list_centers(
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
) -> Page[DairyCenterOutput]:
    """List active dairy centers (page is 0-indexed)."""
    centers, total = _get_service(db).list_page(
        limit=pagination.limit, offset=pagination.offset
    )
    return pagination.build([DairyCenterOutput.model_validate(c) for c in centers], total)
