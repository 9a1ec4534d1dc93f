"""
Staff management endpoints.

Thin router that delegates to StaffService.
"""

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from rest_api.routers._common import Pagination, get_pagination
from rest_api.routers.auth.routes import login_as
from rest_api.services.domain import StaffService
from shared.config.constants import ActorKind
from shared.config.settings import settings
from shared.infrastructure.db import get_db
from shared.security.auth import require_staff
from shared.security.rate_limit import limiter
from shared.utils.schemas import LoginRequest, LoginResponse, Page, StaffCreateRequest, StaffOutput


router = APIRouter(prefix="/api/staff", tags=["staff"])


def _get_service(db: Session) -> StaffService:
    """Get StaffService instance."""
    return StaffService(db)


@router.post("/create", response_model=StaffOutput, status_code=status.HTTP_201_CREATED)
def create_staff(
    body: StaffCreateRequest,
    db: Session = Depends(get_db),
) -> StaffOutput:
    """
    Create a staff account for a dairy center.

    404 if the dairy center does not exist; 400 if the phone is already staff there.
    """
    return _get_service(db).create(body)


@router.post("/login", response_model=LoginResponse)
@limiter.limit(settings.login_rate_limit)
def staff_login(
    request: Request,
    response: Response,
    body: LoginRequest,
    db: Session = Depends(get_db),
) -> LoginResponse:
    """Staff login with phone and password; a member code is ignored."""
    return login_as(request, response, body, db, actor=ActorKind.STAFF)


@router.get("/dairy/{tenant_id}", response_model=Page[StaffOutput])
def list_staff_by_dairy(
    tenant_id: int,
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    user: dict = Depends(require_staff),
) -> Page[StaffOutput]:
    """
    List staff of a dairy center (page is 0-indexed).

    The dairy center must be the caller's own; otherwise 403.
    """
    staff, total = _get_service(db).list_by_tenant(
        tenant_id, limit=pagination.limit, offset=pagination.offset
    )
    return pagination.build(staff, total)


@router.get("/{staff_id}", response_model=StaffOutput)
def get_staff(
    staff_id: int,
    db: Session = Depends(get_db),
    user: dict = Depends(require_staff),
) -> StaffOutput:
    """Get a staff member of the caller's dairy center."""
    return _get_service(db).get_by_id(staff_id, user["tenant_id"])
