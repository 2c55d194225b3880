"""
API routes - Pensioner account endpoints.

This module defines the HTTP endpoints under /api/users:
- GET  /api/users          - Endpoint index
- GET  /api/users/health   - Database liveness and pool metrics
- POST /api/users/signup   - Three-step signup, ``step`` selects the step
- POST /api/users/login    - Email/password login
- POST /api/users/logout   - Stateless acknowledgement
"""

from datetime import UTC, datetime

from fastapi import APIRouter, BackgroundTasks, Depends, status
from fastapi.responses import JSONResponse

from heroes_portal.adapters.database import Database
from heroes_portal.api.dependencies import get_database, get_login_service, get_signup_service
from heroes_portal.api.health import health_response
from heroes_portal.api.models import (
    AccountOut,
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    LoginUser,
    LogoutResponse,
    PrincipalInfo,
    SignupCompleteResponse,
    SignupRequest,
    SignupStepResponse,
    ValidatedIdentity,
)
from heroes_portal.config.settings import Settings, get_settings
from heroes_portal.domain.login import LoginService
from heroes_portal.domain.models import Category
from heroes_portal.domain.signup import SignupService

router = APIRouter(prefix="/api/users", tags=["users"])

ENDPOINTS = [
    {"method": "POST", "path": "/api/users/signup", "description": "signup"},
    {"method": "POST", "path": "/api/users/login", "description": "signin"},
    {"method": "GET", "path": "/api/users/health", "description": "health status"},
    {"method": "POST", "path": "/api/users/logout", "description": "logout"},
]

_STEP_MESSAGES = {
    1: "Eligibility confirmed. Proceed to personal details verification.",
    2: "Identity verified. Proceed to account creation.",
}


@router.get("")
async def index() -> dict:
    return {"success": True, "message": "Users API endpoint", "availableEndpoints": ENDPOINTS}


@router.get("/health")
def users_health(
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    return health_response(database, settings.environment)


@router.post(
    "/signup",
    responses={
        200: {"model": SignupStepResponse, "description": "Step 1 or 2 validated"},
        201: {"model": SignupCompleteResponse, "description": "Account created"},
        400: {"model": ErrorResponse, "description": "Invalid input or token"},
        401: {"model": ErrorResponse, "description": "Details do not match records"},
        404: {"model": ErrorResponse, "description": "Serial number not found"},
        409: {"model": ErrorResponse, "description": "Account or records conflict"},
        503: {"model": ErrorResponse, "description": "Database unavailable"},
    },
    summary="Run one signup step",
)
def signup(
    request_data: SignupRequest,
    service: SignupService = Depends(get_signup_service),
) -> JSONResponse:
    """
    Three-step signup.

    - **step 1**: category, serialId and branch (Principal) or relationship
      and principal names (Beneficiary); returns ``step1Token``
    - **step 2**: step1Token, firstName, lastName, dob; returns ``step2Token``
    - **step 3**: step2Token, email, password; creates the account
    """
    if request_data.step == 1:
        result = service.step1(
            category=request_data.category,
            serial_id=request_data.serial_id,
            branch=request_data.branch,
            relationship=request_data.relationship,
            principal_first_name=request_data.principal_first_name,
            principal_last_name=request_data.principal_last_name,
        )
        body = SignupStepResponse(
            message=_STEP_MESSAGES[1],
            step=result.step,
            next_step=result.next_step,
            step1_token=result.token,
            expires_in_seconds=result.expires_in_seconds,
        )
        return _json(status.HTTP_200_OK, body)

    if request_data.step == 2:
        result = service.step2(
            token=request_data.step1_token,
            first_name=request_data.first_name,
            last_name=request_data.last_name,
            dob=request_data.dob,
        )
        body = SignupStepResponse(
            message=_STEP_MESSAGES[2],
            step=result.step,
            next_step=result.next_step,
            step2_token=result.token,
            expires_in_seconds=result.expires_in_seconds,
        )
        return _json(status.HTTP_200_OK, body)

    account = service.step3(
        token=request_data.step2_token,
        email=request_data.email,
        password=request_data.password,
    )
    body = SignupCompleteResponse(
        message="Account created successfully",
        user=AccountOut(
            id=account.user_id,
            email=account.email,
            profile_id=account.profile_id,
            category=account.category.value,
            branch=account.branch,
            status=account.status.value,
        ),
    )
    return _json(status.HTTP_201_CREATED, body)


@router.post(
    "/login",
    response_model=LoginResponse,
    response_model_exclude_none=True,
    responses={
        400: {"model": ErrorResponse, "description": "Missing or malformed credentials"},
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
        403: {"model": ErrorResponse, "description": "Account suspended"},
    },
    summary="Log in with email and password",
)
def login(
    request_data: LoginRequest,
    background_tasks: BackgroundTasks,
    service: LoginService = Depends(get_login_service),
) -> LoginResponse:
    record = service.login(request_data.email, request_data.password)
    background_tasks.add_task(service.record_login, record.user_id)

    registry = record.registry
    principal_info = None
    if record.category is Category.BENEFICIARY:
        principal_info = PrincipalInfo(
            first_name=record.principal_first_name,
            last_name=record.principal_last_name,
            relationship=record.relationship,
        )

    return LoginResponse(
        message="Login successful",
        user=LoginUser(
            id=record.user_id,
            email=record.email,
            profile_id=record.profile_id,
            category=record.category.value,
            branch=record.branch,
            status=record.status.value,
            validated_identity=ValidatedIdentity(
                name=f"{registry.first_name} {registry.last_name}",
                serial_id=registry.serial_id,
                control_number=registry.control_number,
                category=registry.category.value,
            ),
            principal_info=principal_info,
        ),
    )


@router.post("/logout", response_model=LogoutResponse)
async def logout() -> dict:
    """Sessions are client-held, so logout is only an acknowledgement."""
    return {
        "success": True,
        "message": "Logged out successfully",
        "meta": {"logoutTime": datetime.now(UTC).isoformat()},
    }


def _json(status_code: int, body: SignupStepResponse | SignupCompleteResponse) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", by_alias=True, exclude_none=True),
    )
