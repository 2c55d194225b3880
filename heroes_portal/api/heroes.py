"""
API routes - Account holder profile.

- GET /api/heroes/profile/{user_id} - Profile of an unverified or active account
"""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends

from heroes_portal.api.dependencies import get_profile_service
from heroes_portal.api.models import ErrorResponse, PrincipalInfo, Profile, ProfileResponse
from heroes_portal.domain.models import Category
from heroes_portal.domain.profile import ProfileService

router = APIRouter(prefix="/api/heroes", tags=["heroes"])


@router.get(
    "/profile/{user_id}",
    response_model=ProfileResponse,
    response_model_exclude_none=True,
    responses={
        400: {"model": ErrorResponse, "description": "User id is not a positive integer"},
        404: {"model": ErrorResponse, "description": "No such unverified or active account"},
        503: {"model": ErrorResponse, "description": "Database unavailable"},
    },
    summary="Get an account holder's profile",
)
def get_profile(
    user_id: str,
    service: ProfileService = Depends(get_profile_service),
) -> ProfileResponse:
    """Suspended accounts are reported as not found."""
    account = service.get_profile(user_id)
    registry = account.registry

    principal_info = None
    if account.category is Category.BENEFICIARY:
        principal_info = PrincipalInfo(
            first_name=account.principal_first_name,
            last_name=account.principal_last_name,
            relationship=account.relationship,
        )

    return ProfileResponse(
        profile=Profile(
            id=account.user_id,
            email=account.email,
            status=account.status.value,
            member_since=account.created_at,
            first_name=registry.first_name,
            last_name=registry.last_name,
            dob=registry.dob,
            serial_id=registry.serial_id,
            category=registry.category.value,
            control_number=registry.control_number,
            mobile_number=account.mobile_number,
            principal_info=principal_info,
        ),
        meta={"retrieved": datetime.now(UTC).isoformat()},
    )
