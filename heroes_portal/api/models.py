"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
JSON field names are camelCase on the wire; every response carries ``success``.
Required-field and format checks for signup/login happen in the domain layer
so that each failure gets its own stable error code.
"""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SignupRequest(CamelModel):
    """Request model for one signup step; ``step`` selects which fields apply."""

    step: Literal[1, 2, 3]

    # Step 1
    category: str | None = None
    serial_id: str | None = None
    branch: str | None = None
    relationship: str | None = None
    principal_first_name: str | None = None
    principal_last_name: str | None = None

    # Step 2
    step1_token: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    dob: str | None = None

    # Step 3
    step2_token: str | None = None
    email: str | None = None
    password: str | None = None


class SignupStepResponse(CamelModel):
    """Response model for steps 1 and 2."""

    success: bool = True
    message: str
    step: int
    next_step: int
    step1_token: str | None = None
    step2_token: str | None = None
    expires_in_seconds: int


class AccountOut(CamelModel):
    id: int
    email: str
    profile_id: int
    category: str
    branch: str | None = None
    status: str


class SignupCompleteResponse(CamelModel):
    """Response model for a finalized account (step 3)."""

    success: bool = True
    message: str
    user: AccountOut


class LoginRequest(CamelModel):
    """Request model for login."""

    email: str | None = None
    password: str | None = None


class ValidatedIdentity(CamelModel):
    name: str
    serial_id: str
    control_number: str | None = None
    category: str


class PrincipalInfo(CamelModel):
    first_name: str | None = None
    last_name: str | None = None
    relationship: str | None = None


class Profile(CamelModel):
    """Account holder's profile joined with the registry record."""

    id: int
    email: str
    status: str
    member_since: datetime
    first_name: str
    last_name: str
    dob: date
    serial_id: str
    category: str
    control_number: str | None = None
    mobile_number: str | None = None
    principal_info: PrincipalInfo | None = None


class ProfileResponse(CamelModel):
    success: bool = True
    profile: Profile
    meta: dict[str, str] = {}


class LoginUser(AccountOut):
    validated_identity: ValidatedIdentity
    principal_info: PrincipalInfo | None = None


class LoginResponse(CamelModel):
    """Response model for successful login."""

    success: bool = True
    message: str
    user: LoginUser


class LogoutResponse(CamelModel):
    success: bool = True
    message: str
    meta: dict[str, str] = {}


class ErrorResponse(CamelModel):
    """Standard error envelope."""

    success: bool = False
    error: str
    code: str
    details: list[str] | None = None
