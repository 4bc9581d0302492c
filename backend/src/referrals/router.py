"""Referral API - share codes, stats and cashback administration."""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from auth.dependencies import require_access
from config import get_settings
from database import get_db
from domain.identity import Principal
from .service import ReferralService
from .schemas import (
    AttachReferrerRequest,
    AttachReferrerResponse,
    CashbackCreate,
    ReferralCodeResponse,
    ReferralOverviewResponse,
    ReferralStatsResponse,
    ReferralTransactionResponse,
    ReferredAccountResponse,
)


router = APIRouter(prefix="/referrals", tags=["referrals"])

referrals_access = require_access("/app/referrals")
billing_admin_access = require_access("/admin/billing")


def _service(db: Session) -> ReferralService:
    return ReferralService(db, get_settings().APP_BASE_URL)


@router.post("/code", response_model=ReferralCodeResponse, summary="Generate (or fetch) my referral code")
def generate_referral_code(
    principal: Principal = Depends(referrals_access),
    db: Session = Depends(get_db),
) -> ReferralCodeResponse:
    service = _service(db)
    code = service.generate_referral_code(principal.id)
    return ReferralCodeResponse(code=code, share_link=f"{service.app_base_url}/signup?ref={code}")


@router.get("", response_model=ReferralOverviewResponse, summary="My referral stats and history")
def get_referral_stats(
    principal: Principal = Depends(referrals_access),
    db: Session = Depends(get_db),
) -> ReferralOverviewResponse:
    overview = _service(db).get_referral_overview(principal)
    return ReferralOverviewResponse(
        code=overview.code,
        share_link=overview.share_link,
        stats=ReferralStatsResponse(
            total_referrals=overview.stats.total_referrals,
            active_referrals=overview.stats.active_referrals,
            total_earnings=overview.stats.total_earnings,
            pending_earnings=overview.stats.pending_earnings,
        ),
        referrals=[
            ReferredAccountResponse(
                id=account.referral.id,
                referred_id=account.referral.referred_id,
                status=account.referral.status,
                subscription_plan=account.referral.subscription_plan,
                has_active_subscription=account.has_active_subscription,
                created_at=account.referral.created_at,
            )
            for account in overview.referrals
        ],
        transactions=[ReferralTransactionResponse.model_validate(t) for t in overview.transactions],
    )


@router.post("/attach", response_model=AttachReferrerResponse, summary="Record who referred me")
def attach_referrer(
    body: AttachReferrerRequest,
    principal: Principal = Depends(referrals_access),
    db: Session = Depends(get_db),
) -> AttachReferrerResponse:
    return AttachReferrerResponse(attached=_service(db).attach_referrer(principal.id, body.code))


@router.post(
    "/{referral_id}/cashback",
    response_model=ReferralTransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a pending cashback (admin)",
)
def record_cashback(
    referral_id: UUID,
    body: CashbackCreate,
    principal: Principal = Depends(billing_admin_access),
    db: Session = Depends(get_db),
):
    return _service(db).record_cashback(principal, referral_id, body.amount, body.description)


@router.post(
    "/transactions/{transaction_id}/paid",
    response_model=ReferralTransactionResponse,
    summary="Mark a cashback as paid (admin)",
)
def mark_transaction_paid(
    transaction_id: UUID,
    principal: Principal = Depends(billing_admin_access),
    db: Session = Depends(get_db),
):
    return _service(db).mark_transaction_paid(principal, transaction_id)
