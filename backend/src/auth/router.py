"""Authentication endpoints.

Sign-in and sign-out belong to the external auth provider; this router only
reports what the backend resolves from the provider's token.
"""

from fastapi import APIRouter, Depends

from domain.access.policy import OPERATOR_HOME_ROUTE, USER_HOME_ROUTE
from domain.identity import Principal
from .dependencies import require_access
from .schemas import MeResponse


router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.get("/me", response_model=MeResponse, summary="Get the current principal")
def get_me(principal: Principal = Depends(require_access("/app"))) -> MeResponse:
    """Return the caller's role, plan and verification status.

    Signed-out callers are redirected to /login; a token without a profile
    row gets 404.
    """
    return MeResponse(
        id=principal.id,
        email=principal.email,
        role=principal.role,
        plan_type=principal.plan_type,
        kyc_status=principal.kyc_status,
        business_account_id=principal.business_account_id,
        home_route=OPERATOR_HOME_ROUTE if principal.is_staff else USER_HOME_ROUTE,
    )
