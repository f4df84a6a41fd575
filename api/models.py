"""
API request and response models for tenant-auth REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Input checks live here, not in AuthService: the core accepts any non-empty
strings, the transport decides what a well-formed request looks like.

Passwords are capped at bcrypt's 72-byte input limit (measured in UTF-8
bytes, not characters). Without the cap two passwords sharing their first
72 bytes would be interchangeable; with it the client is told up front.
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from auth.passwords import MAX_SECRET_BYTES, secret_bytes

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


def _check_password_bytes(value: str) -> str:
    if len(secret_bytes(value)) > MAX_SECRET_BYTES:
        raise ValueError(f"password must be at most {MAX_SECRET_BYTES} bytes")
    return value


class RegisterRequest(BaseModel):
    """Request body for POST /api/v1/auth/register."""

    email: str = Field(min_length=1, max_length=320, description="Account email; must be unique.")
    password: str = Field(min_length=1, max_length=MAX_SECRET_BYTES)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        return _check_password_bytes(value)


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login.

    app_id selects the tenant whose secret signs the token. Zero is never a
    provisioned id, so it is rejected as missing rather than looked up.
    """

    email: str = Field(min_length=1, max_length=320)
    password: str = Field(min_length=1, max_length=MAX_SECRET_BYTES)
    app_id: int = Field(description="Numeric id of the calling application.")

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        return _check_password_bytes(value)

    @field_validator("app_id")
    @classmethod
    def app_id_required(cls, value: int) -> int:
        if value == 0:
            raise ValueError("app_id is required")
        return value


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class RegisterResponse(BaseModel):
    user_id: int


class LoginResponse(BaseModel):
    token: str


class IsAdminResponse(BaseModel):
    is_admin: bool


class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)


class ErrorDetail(BaseModel):
    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Uniform error envelope returned by every non-2xx response."""

    error: ErrorDetail
