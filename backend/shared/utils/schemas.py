"""
Shared Pydantic schemas used across the application.
"""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shared.config.constants import PHONE_PATTERN, Limits

T = TypeVar("T")

Actor = Literal["farmer", "staff"]


# =============================================================================
# Common
# =============================================================================


class ErrorResponse(BaseModel):
    """Standard error body."""

    detail: str


class Page(BaseModel, Generic[T]):
    """A page of results (page is 0-indexed)."""

    content: list[T]
    page: int
    size: int
    total_elements: int
    total_pages: int
    first: bool
    last: bool
    empty: bool


# =============================================================================
# Authentication Schemas
# =============================================================================


class LoginRequest(BaseModel):
    """
    Login request body.

    A member code makes this a farmer login; without one it is a staff login.
    """

    phone: str = Field(min_length=1, max_length=20)
    password: str = Field(min_length=1, max_length=Limits.MAX_PASSWORD_LENGTH)
    member_code: str | None = Field(default=None, max_length=Limits.MAX_MEMBER_CODE_LENGTH)
    tenant_id: int = Field(gt=0, validation_alias="dairy_center_id")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("phone")
    @classmethod
    def strip_phone(cls, v: str) -> str:
        return v.strip()

    @field_validator("member_code")
    @classmethod
    def blank_member_code_is_absent(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None


class LoginResponse(BaseModel):
    """Login response: tokens plus echoed identity fields."""

    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int  # seconds
    username: str  # the phone number
    actor: Actor
    dairy_center_id: int
    dairy_center_name: str
    member_code: str | None = None
    message: str


class RefreshTokenRequest(BaseModel):
    """Refresh token request body (the cookie takes precedence)."""

    refresh_token: str


class TokenRefreshResponse(BaseModel):
    """Response for token refresh with rotated refresh token."""

    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int


class UserInfo(BaseModel):
    """Identity carried by the current access token."""

    username: str
    actor: Actor
    dairy_center_id: int
    roles: list[str]
    member_code: str | None = None


# =============================================================================
# Dairy center (tenant) Schemas
# =============================================================================


class DairyOnboardRequest(BaseModel):
    name: str = Field(min_length=Limits.MIN_NAME_LENGTH, max_length=Limits.MAX_NAME_LENGTH)
    location: str = Field(min_length=1, max_length=Limits.MAX_LOCATION_LENGTH)
    contact: str | None = Field(default=None, max_length=Limits.MAX_CONTACT_LENGTH)

    @field_validator("name", "location")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class DairyCenterOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    location: str
    contact: str | None = None
    is_active: bool = True


class DairyOnboardResponse(DairyCenterOutput):
    message: str


# =============================================================================
# Farmer / Staff Schemas
# =============================================================================


class _PrincipalCreate(BaseModel):
    name: str = Field(min_length=Limits.MIN_NAME_LENGTH, max_length=Limits.MAX_NAME_LENGTH)
    phone: str = Field(pattern=PHONE_PATTERN)
    password: str = Field(
        min_length=Limits.MIN_PASSWORD_LENGTH, max_length=Limits.MAX_PASSWORD_LENGTH
    )
    tenant_id: int = Field(gt=0, validation_alias="dairy_center_id")

    model_config = ConfigDict(populate_by_name=True)


class FarmerRegistrationRequest(_PrincipalCreate):
    member_code: str = Field(min_length=1, max_length=Limits.MAX_MEMBER_CODE_LENGTH)

    @field_validator("member_code")
    @classmethod
    def strip_member_code(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class FarmerOutput(BaseModel):
    id: int
    name: str
    phone: str
    member_code: str
    dairy_center_id: int
    dairy_center_name: str
    created_at: datetime | None = None


class StaffCreateRequest(_PrincipalCreate):
    pass


class StaffOutput(BaseModel):
    id: int
    name: str
    phone: str
    dairy_center_id: int
    dairy_center_name: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


# =============================================================================
# Milk collection Schemas
# =============================================================================


class CsvRowError(BaseModel):
    row_number: int
    error: str


class CsvUploadResponse(BaseModel):
    """Outcome of one upload: processed, even if some or all rows failed."""

    total_records: int
    successful_records: int
    failed_records: int
    errors: list[CsvRowError]


class CollectionRecordOutput(BaseModel):
    id: int
    collection_date: date
    nepali_date: str
    nepali_month: str
    nepali_year: str
    collection_time: time
    member_code: str
    farmer_name: str
    volume_liters: Decimal
    fat_percentage: Decimal
    snf: Decimal
    rate: Decimal
    amount: Decimal
    remarks: str | None = None
    dairy_center_id: int
    dairy_center_name: str
    created_at: datetime | None = None
