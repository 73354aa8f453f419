"""
API request and response models for Alumnet REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

No response model in this module has a credential field. The hash stays
behind the service layer.
"""

from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

from auth.models import AccountProfile, PublicAccount, SessionClaim

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Transport-level bounds only. Email format and secret strength are not
# validated beyond presence.
_EMAIL_MAX = 255
_SECRET_MAX = 1024

# Stripping is per field, never model-wide: secrets must reach the hasher
# exactly as typed, on register, login and password change alike.
StrippedStr = Annotated[str, StringConstraints(strip_whitespace=True)]

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class ProfileFields(BaseModel):
    """Optional alumni profile attributes. Never part of an auth decision."""

    organization: Optional[StrippedStr] = Field(default=None, max_length=255)
    title: Optional[StrippedStr] = Field(default=None, max_length=255)
    graduation_year: Optional[int] = Field(default=None, ge=1900, le=2100)
    phone: Optional[StrippedStr] = Field(default=None, max_length=50)


class RegisterRequest(ProfileFields):
    """Request body for POST /api/v1/auth/register."""

    email: StrippedStr = Field(min_length=1, max_length=_EMAIL_MAX)
    password: str = Field(min_length=1, max_length=_SECRET_MAX)
    display_name: StrippedStr = Field(min_length=1, max_length=255)


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login."""

    email: str = Field(min_length=1, max_length=_EMAIL_MAX)
    password: str = Field(min_length=1, max_length=_SECRET_MAX)


class PasswordChange(BaseModel):
    """Request body for POST /api/v1/auth/password."""

    current_password: str = Field(min_length=1, max_length=_SECRET_MAX)
    new_password: str = Field(min_length=1, max_length=_SECRET_MAX)


class ProfileUpdate(ProfileFields):
    """Request body for PATCH /api/v1/accounts/me.

    Identity fields (id, email, role) are not part of this model. Any such
    keys in the body are ignored -- the account to update always comes from
    the verified session.
    """

    display_name: Optional[StrippedStr] = Field(default=None, min_length=1, max_length=255)

    @field_validator("display_name")
    @classmethod
    def display_name_not_null(cls, value: Optional[str]) -> str:
        """Reject an explicit null. Validators skip the default, so omission is still fine."""
        if value is None:
            raise ValueError("display_name cannot be cleared")
        return value


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class PublicAccountResponse(BaseModel):
    """id, email and display name -- the view returned alongside a login token."""

    model_config = ConfigDict(frozen=True)

    id: int
    email: str
    display_name: str

    @classmethod
    def from_domain(cls, account: PublicAccount) -> "PublicAccountResponse":
        return cls(id=account.id, email=account.email, display_name=account.display_name)


class AccountResponse(BaseModel):
    """Full profile view of an account, excluding the credential hash."""

    model_config = ConfigDict(frozen=True)

    id: int
    email: str
    display_name: str
    role: str
    organization: Optional[str] = None
    title: Optional[str] = None
    graduation_year: Optional[int] = None
    phone: Optional[str] = None
    created_at: str = ""

    @classmethod
    def from_domain(cls, profile: AccountProfile) -> "AccountResponse":
        """Build an AccountResponse from an auth AccountProfile."""
        return cls(
            id=profile.id,
            email=profile.email,
            display_name=profile.display_name,
            role=profile.role,
            organization=profile.organization,
            title=profile.title,
            graduation_year=profile.graduation_year,
            phone=profile.phone,
            created_at=profile.created_at or "",
        )


class LoginResponse(BaseModel):
    """Response body for a successful POST /api/v1/auth/login."""

    model_config = ConfigDict(frozen=True)

    access_token: str
    token_type: str = "bearer"
    expires_in: int
    account: PublicAccountResponse


class SessionResponse(BaseModel):
    """The identity the session guard resolved for this request."""

    model_config = ConfigDict(frozen=True)

    account_id: int
    email: str
    issued_at: int
    expires_at: int

    @classmethod
    def from_claim(cls, claim: SessionClaim) -> "SessionResponse":
        return cls(
            account_id=claim.subject,
            email=claim.email,
            issued_at=claim.issued_at,
            expires_at=claim.expires_at,
        )


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
