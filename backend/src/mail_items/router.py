"""Mail Items API Router - owner inbox, business inbox and operator queue.

Three routers share one service:
- router: personal inbox (/mail-items), guarded like /app/inbox
- business_router: business inbox (/business/mail-items), guarded like /business
- operator_router: fulfillment queue (/operator/...), staff only
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from auth.dependencies import require_access
from dependencies import get_mail_item_service
from domain.identity import Principal
from .service import MailItemFilters, MailItemPage, MailItemService, MailItemView, OwnerScope
from .schemas import (
    ActionRequestCreate,
    ActionRequestResponse,
    FulfillActionRequest,
    FulfillActionResponse,
    MailItemListResponse,
    MailItemReceive,
    MailItemResponse,
    MailItemUpdate,
    OperatorQueueResponse,
    TagListResponse,
    VerificationReview,
    VerificationReviewResponse,
)


router = APIRouter(prefix="/mail-items", tags=["mail_items"])
business_router = APIRouter(prefix="/business/mail-items", tags=["mail_items"])
operator_router = APIRouter(prefix="/operator", tags=["operator"])

inbox_access = require_access("/app/inbox")
business_access = require_access("/business")
operator_access = require_access("/operator")


def _item_response(view: MailItemView) -> MailItemResponse:
    response = MailItemResponse.model_validate(view.item)
    return response.model_copy(update={
        "envelope_scan_url": view.envelope_scan_url,
        "full_scan_url": view.full_scan_url,
    })


def _page_response(page: MailItemPage) -> MailItemListResponse:
    return MailItemListResponse(
        items=[_item_response(view) for view in page.items],
        total=page.total,
        total_pages=page.total_pages,
        page=page.page,
        page_size=page.page_size,
    )


def _filters(search, status_filter, tag, view_mode) -> MailItemFilters:
    return MailItemFilters(search=search, status=status_filter, tag=tag, view_mode=view_mode)


# ---------------------------------------------------------------------------
# Personal inbox
# ---------------------------------------------------------------------------

@router.get(
    "",
    response_model=MailItemListResponse,
    summary="List personal mail",
    description="""
    List the caller's personal mail items, newest first, 12 per page.

    **Filters:** search (sender or subject), status (or "all"), tag,
    view_mode (inbox | archived)
    """
)
def list_mail_items(
    search: Optional[str] = Query(None, max_length=200),
    status_filter: str = Query("all", alias="status"),
    tag: Optional[str] = Query(None),
    view_mode: str = Query("inbox"),
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    principal: Principal = Depends(inbox_access),
    service: MailItemService = Depends(get_mail_item_service),
) -> MailItemListResponse:
    result = service.list_mail_items(
        OwnerScope.personal(principal),
        _filters(search, status_filter, tag, view_mode),
        page,
    )
    return _page_response(result)


@router.get("/tags", response_model=TagListResponse, summary="List tags used in personal mail")
def list_tags(
    principal: Principal = Depends(inbox_access),
    service: MailItemService = Depends(get_mail_item_service),
) -> TagListResponse:
    return TagListResponse(tags=service.list_tags(OwnerScope.personal(principal)))


@router.get("/{mail_item_id}", response_model=MailItemResponse, summary="Get a mail item")
def get_mail_item(
    mail_item_id: UUID,
    principal: Principal = Depends(inbox_access),
    service: MailItemService = Depends(get_mail_item_service),
) -> MailItemResponse:
    return _item_response(service.get_mail_item(principal, mail_item_id))


@router.patch(
    "/{mail_item_id}",
    response_model=MailItemResponse,
    summary="Archive, tag or annotate a mail item",
)
def update_mail_item(
    mail_item_id: UUID,
    body: MailItemUpdate,
    principal: Principal = Depends(inbox_access),
    service: MailItemService = Depends(get_mail_item_service),
) -> MailItemResponse:
    """Apply only the fields present in the request body."""
    view = service.get_mail_item(principal, mail_item_id)
    fields = body.model_fields_set

    if "is_archived" in fields and body.is_archived is not None:
        view = service.set_archived(principal, mail_item_id, body.is_archived)
    if "tags" in fields:
        view = service.set_tags(principal, mail_item_id, body.tags or [])
    if "notes" in fields:
        view = service.update_notes(principal, mail_item_id, body.notes)

    return _item_response(view)


@router.post(
    "/{mail_item_id}/actions",
    response_model=ActionRequestResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request scan, forward or shred",
    description="""
    Raise an action request. An open request of the same type is returned
    unchanged. FORWARD and SHRED are held in REQUIRES_APPROVAL until the
    owner's verification is approved.
    """
)
def request_action(
    mail_item_id: UUID,
    body: ActionRequestCreate,
    principal: Principal = Depends(inbox_access),
    service: MailItemService = Depends(get_mail_item_service),
) -> ActionRequestResponse:
    request = service.request_action(
        principal,
        mail_item_id,
        body.action_type,
        priority=body.priority,
        forward_address=body.forward_address,
        notes=body.notes,
    )
    return ActionRequestResponse.model_validate(request)


# ---------------------------------------------------------------------------
# Business inbox
# ---------------------------------------------------------------------------

@business_router.get("", response_model=MailItemListResponse, summary="List business mail")
def list_business_mail_items(
    search: Optional[str] = Query(None, max_length=200),
    status_filter: str = Query("all", alias="status"),
    tag: Optional[str] = Query(None),
    view_mode: str = Query("inbox"),
    page: int = Query(1, ge=1),
    principal: Principal = Depends(business_access),
    service: MailItemService = Depends(get_mail_item_service),
) -> MailItemListResponse:
    result = service.list_mail_items(
        OwnerScope.business(principal),
        _filters(search, status_filter, tag, view_mode),
        page,
    )
    return _page_response(result)


@business_router.get("/tags", response_model=TagListResponse, summary="List tags used in business mail")
def list_business_tags(
    principal: Principal = Depends(business_access),
    service: MailItemService = Depends(get_mail_item_service),
) -> TagListResponse:
    return TagListResponse(tags=service.list_tags(OwnerScope.business(principal)))


# ---------------------------------------------------------------------------
# Operator queue
# ---------------------------------------------------------------------------

@operator_router.get("/queue", response_model=OperatorQueueResponse, summary="Open action requests")
def get_operator_queue(
    principal: Principal = Depends(operator_access),
    service: MailItemService = Depends(get_mail_item_service),
) -> OperatorQueueResponse:
    queue = service.operator_queue()
    return OperatorQueueResponse(
        open_requests=[ActionRequestResponse.model_validate(r) for r in queue.open_requests],
        awaiting_approval=[ActionRequestResponse.model_validate(r) for r in queue.awaiting_approval],
    )


@operator_router.post(
    "/mail-items",
    response_model=MailItemResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Log a received physical item",
)
def receive_mail_item(
    body: MailItemReceive,
    principal: Principal = Depends(operator_access),
    service: MailItemService = Depends(get_mail_item_service),
) -> MailItemResponse:
    item = service.receive_mail_item(
        principal,
        sender=body.sender,
        subject=body.subject,
        profile_id=body.profile_id,
        business_account_id=body.business_account_id,
        envelope_scan_ref=body.envelope_scan_ref,
        category=body.category,
        received_at=body.received_at,
    )
    return _item_response(service.to_view(item))


@operator_router.post(
    "/mail-items/{mail_item_id}/processed",
    response_model=MailItemResponse,
    summary="Mark a scanned item as processed",
)
def mark_processed(
    mail_item_id: UUID,
    principal: Principal = Depends(operator_access),
    service: MailItemService = Depends(get_mail_item_service),
) -> MailItemResponse:
    item = service.mark_processed(principal, mail_item_id)
    return _item_response(service.to_view(item))


@operator_router.post(
    "/actions/{request_id}/confirm",
    response_model=ActionRequestResponse,
    summary="Confirm a shred request",
)
def confirm_shred(
    request_id: UUID,
    principal: Principal = Depends(operator_access),
    service: MailItemService = Depends(get_mail_item_service),
) -> ActionRequestResponse:
    return ActionRequestResponse.model_validate(service.confirm_shred(principal, request_id))


@operator_router.post(
    "/actions/{request_id}/fulfill",
    response_model=FulfillActionResponse,
    summary="Fulfill an action request",
    description="""
    Execute the request and advance the mail item. When the owner's
    verification blocks the action the response status is REQUIRES_APPROVAL
    and the mail item is left unchanged.
    """
)
def fulfill_action(
    request_id: UUID,
    body: FulfillActionRequest,
    principal: Principal = Depends(operator_access),
    service: MailItemService = Depends(get_mail_item_service),
) -> FulfillActionResponse:
    outcome = service.fulfill_action(
        principal,
        request_id,
        scan_ref=body.scan_ref,
        forward_address=body.forward_address,
    )
    return FulfillActionResponse(
        status=outcome.status,
        reason=outcome.reason,
        request=ActionRequestResponse.model_validate(outcome.request),
        mail_item=_item_response(service.to_view(outcome.mail_item)),
    )


@operator_router.post(
    "/verifications",
    response_model=VerificationReviewResponse,
    summary="Record a KYC/KYB review",
)
def review_verification(
    body: VerificationReview,
    principal: Principal = Depends(operator_access),
    service: MailItemService = Depends(get_mail_item_service),
) -> VerificationReviewResponse:
    scope = OwnerScope(profile_id=body.profile_id, business_account_id=body.business_account_id)
    released = service.review_verification(principal, scope, body.status)
    return VerificationReviewResponse(status=body.status, released_requests=released)
