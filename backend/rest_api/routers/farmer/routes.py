"""
Farmer endpoints.
"""

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from rest_api.routers.auth.routes import login_as
from rest_api.services.domain import FarmerService
from shared.config.constants import ActorKind
from shared.config.settings import settings
from shared.infrastructure.db import get_db
from shared.security.rate_limit import limiter
from shared.utils.schemas import FarmerOutput, FarmerRegistrationRequest, LoginRequest, LoginResponse


router = APIRouter(prefix="/api/farmer", tags=["farmer"])


@router.post("/register", response_model=FarmerOutput, status_code=status.HTTP_201_CREATED)
def register_farmer(
    body: FarmerRegistrationRequest,
    db: Session = Depends(get_db),
) -> FarmerOutput:
    """
    Register a farmer under a dairy center.

    404 if the dairy center does not exist; 400 if the
    (dairy center, phone, member code) triple is already registered.
    """
    return FarmerService(db).register(body)


@router.post("/login", response_model=LoginResponse)
@limiter.limit(settings.login_rate_limit)
def farmer_login(
    request: Request,
    response: Response,
    body: LoginRequest,
    db: Session = Depends(get_db),
) -> LoginResponse:
    """Farmer login with phone, member code and password."""
    return login_as(request, response, body, db, actor=ActorKind.FARMER)
