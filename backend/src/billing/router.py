"""Billing API - checkout, activation, cancellation and invoice download."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from auth.dependencies import require_access
from config import get_settings
from database import get_db
from dependencies import get_payment_gateway
from domain.billing.ports import PaymentGatewayPort
from domain.identity import Principal
from .service import BillingConfig, BillingService
from .schemas import ActivateRequest, CheckoutRequest, SubscriptionResponse


router = APIRouter(prefix="/billing", tags=["billing"])

billing_access = require_access("/app/billing")
billing_admin_access = require_access("/admin/billing")


def get_billing_service(
    db: Session = Depends(get_db),
    gateway: PaymentGatewayPort = Depends(get_payment_gateway),
) -> BillingService:
    return BillingService(db, gateway, BillingConfig.from_settings(get_settings()))


@router.post(
    "/checkout",
    response_model=SubscriptionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Start a paid subscription",
    description="Creates an INACTIVE subscription and returns the hosted invoice URL. 502 when the gateway fails.",
)
def checkout(
    body: CheckoutRequest,
    principal: Principal = Depends(billing_access),
    service: BillingService = Depends(get_billing_service),
):
    return service.create_checkout(principal, body.plan_type, body.billing_cycle)


@router.post(
    "/subscriptions/{subscription_id}/activate",
    response_model=SubscriptionResponse,
    summary="Activate a paid subscription (admin)",
    description="Assigns a free mailbox, optionally within a location. 409 when none is free.",
)
def activate_subscription(
    subscription_id: UUID,
    body: Optional[ActivateRequest] = None,
    principal: Principal = Depends(billing_admin_access),
    service: BillingService = Depends(get_billing_service),
):
    location_id = body.location_id if body else None
    return service.activate_subscription(principal, subscription_id, location_id)


@router.post(
    "/subscriptions/{subscription_id}/cancel",
    response_model=SubscriptionResponse,
    summary="Cancel a subscription",
)
def cancel_subscription(
    subscription_id: UUID,
    principal: Principal = Depends(billing_access),
    service: BillingService = Depends(get_billing_service),
):
    return service.cancel_subscription(principal, subscription_id)


@router.get(
    "/invoices/{subscription_id}.pdf",
    response_class=Response,
    summary="Download an invoice PDF",
)
def download_invoice(
    subscription_id: UUID,
    principal: Principal = Depends(billing_access),
    service: BillingService = Depends(get_billing_service),
):
    pdf = service.render_invoice_pdf(principal, subscription_id)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="invoice-{subscription_id}.pdf"'},
    )
