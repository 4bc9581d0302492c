"""Mail item service - lifecycle, listing and action request handling.

Owners see their items through an OwnerScope (one personal profile or one
business account, never both). Operators log items in, work the action
queue and drive the lifecycle; every mutation is written to the audit log.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session

from audit.service import log_audit_event
from auth.roles import KycStatus
from domain.errors import ConflictError, NotFoundError, UnauthorizedError, ValidationFailed
from domain.identity import Principal
from domain.mail import (
    ActionPriority,
    ActionStatus,
    ActionType,
    FINAL_ACTIONS,
    MailStatus,
    MailTransitionError,
    OPEN_STATUSES,
    PRIORITY_RANK,
    RESULTING_MAIL_STATUS,
    apply_transition,
    can_execute,
    can_request,
    is_terminal,
    validate_transition,
)
from domain.mail.ports import ObjectStoragePort, StorageError
from models.action_request import ActionRequest
from models.base import utcnow
from models.mail_item import MailItem
from models.profile import BusinessAccount, Profile
from observability.metrics import (
    action_requests_total,
    mail_items_received_total,
    mail_status_transitions_total,
    signed_url_failures_total,
)

logger = logging.getLogger(__name__)

PAGE_SIZE = 12
MAX_ROWS_PER_QUERY = 1000
VIEW_MODES = ("inbox", "archived")
STATUS_FILTER_ALL = "all"


@dataclass(frozen=True)
class OwnerScope:
    """Exactly one of a personal profile or a business account."""
    profile_id: Optional[UUID] = None
    business_account_id: Optional[UUID] = None

    def __post_init__(self):
        if (self.profile_id is None) == (self.business_account_id is None):
            raise ValidationFailed("Owner scope must name exactly one of profile or business account")

    @classmethod
    def personal(cls, principal: Principal) -> "OwnerScope":
        return cls(profile_id=principal.id)

    @classmethod
    def business(cls, principal: Principal) -> "OwnerScope":
        if principal.business_account_id is None:
            raise NotFoundError("Business account")
        return cls(business_account_id=principal.business_account_id)

    def contains(self, item: MailItem) -> bool:
        if self.profile_id is not None:
            return item.profile_id == self.profile_id
        return item.business_account_id == self.business_account_id


@dataclass
class MailItemFilters:
    search: Optional[str] = None
    status: str = STATUS_FILTER_ALL
    tag: Optional[str] = None
    view_mode: str = "inbox"


@dataclass
class MailItemView:
    """A mail item together with freshly signed scan URLs."""
    item: MailItem
    envelope_scan_url: Optional[str] = None
    full_scan_url: Optional[str] = None


@dataclass
class MailItemPage:
    items: List[MailItemView]
    total: int
    total_pages: int
    page: int
    page_size: int = PAGE_SIZE


@dataclass
class FulfillOutcome:
    """Result of an operator fulfillment attempt.

    status is COMPLETED when the action ran, or REQUIRES_APPROVAL when the
    owner's verification blocks it (the mail item is untouched then).
    """
    status: ActionStatus
    request: ActionRequest
    mail_item: MailItem
    reason: Optional[str] = None


@dataclass
class OperatorQueue:
    open_requests: List[ActionRequest] = field(default_factory=list)
    awaiting_approval: List[ActionRequest] = field(default_factory=list)


def _normalize_tags(tags: Sequence[str]) -> List[str]:
    seen: List[str] = []
    for tag in tags:
        cleaned = tag.strip()
        if cleaned and cleaned not in seen:
            seen.append(cleaned)
    return seen


def _escape_like(text: str) -> str:
    """Make %, _ and the escape character match literally in an ILIKE pattern."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _queue_sort_key(request: ActionRequest):
    return (PRIORITY_RANK[ActionPriority(request.priority)], request.requested_at, str(request.id))


class MailItemService:
    """Service for mail item operations.

    Args:
        db: Database session
        storage: Object storage used to sign scan URLs (None disables URLs)
        signed_url_ttl: Lifetime of signed URLs in seconds
    """

    def __init__(
        self,
        db: Session,
        storage: Optional[ObjectStoragePort] = None,
        signed_url_ttl: int = 3600,
    ):
        self.db = db
        self.storage = storage
        self.signed_url_ttl = signed_url_ttl

    # ------------------------------------------------------------------
    # Presentation helpers
    # ------------------------------------------------------------------

    def _signed_url(self, storage_key: Optional[str]) -> Optional[str]:
        """Sign a scan reference; storage failures degrade to None."""
        if not storage_key or self.storage is None:
            return None
        try:
            return self.storage.generate_presigned_url(storage_key, self.signed_url_ttl)
        except (StorageError, FileNotFoundError) as e:
            signed_url_failures_total.inc()
            logger.warning(f"Could not sign scan URL for {storage_key}: {e}")
            return None

    def to_view(self, item: MailItem) -> MailItemView:
        return MailItemView(
            item=item,
            envelope_scan_url=self._signed_url(item.envelope_scan_ref),
            full_scan_url=self._signed_url(item.full_scan_ref),
        )

    # ------------------------------------------------------------------
    # Owner operations
    # ------------------------------------------------------------------

    def _scoped_query(self, scope: OwnerScope):
        query = self.db.query(MailItem)
        if scope.profile_id is not None:
            return query.filter(MailItem.profile_id == scope.profile_id)
        return query.filter(MailItem.business_account_id == scope.business_account_id)

    def list_mail_items(
        self,
        scope: OwnerScope,
        filters: Optional[MailItemFilters] = None,
        page: int = 1,
    ) -> MailItemPage:
        """List an owner's mail, newest first, 12 per page.

        Raises:
            ValidationFailed: If view_mode, status filter or page is invalid
        """
        filters = filters or MailItemFilters()
        if filters.view_mode not in VIEW_MODES:
            raise ValidationFailed(f"Unknown view mode: {filters.view_mode}")
        if page < 1:
            raise ValidationFailed("Page numbers start at 1")

        query = self._scoped_query(scope).filter(
            MailItem.is_archived == (filters.view_mode == "archived")
        )

        if filters.status and filters.status != STATUS_FILTER_ALL:
            try:
                status = MailStatus(filters.status.upper())
            except ValueError:
                raise ValidationFailed(f"Unknown status filter: {filters.status}")
            query = query.filter(MailItem.status == status.value)

        if filters.search:
            pattern = f"%{_escape_like(filters.search.strip())}%"
            query = query.filter(or_(
                MailItem.sender.ilike(pattern, escape="\\"),
                MailItem.subject.ilike(pattern, escape="\\"),
            ))

        rows = (
            query.order_by(MailItem.received_at.desc(), MailItem.id)
            .limit(MAX_ROWS_PER_QUERY)
            .all()
        )

        # JSON tag containment is not portable across backends
        if filters.tag:
            rows = [row for row in rows if filters.tag in (row.tags or [])]

        total = len(rows)
        total_pages = math.ceil(total / PAGE_SIZE)
        start = (page - 1) * PAGE_SIZE
        page_rows = rows[start:start + PAGE_SIZE]

        return MailItemPage(
            items=[self.to_view(row) for row in page_rows],
            total=total,
            total_pages=total_pages,
            page=page,
        )

    def _get_owned_item(self, principal: Principal, mail_item_id: UUID) -> MailItem:
        item = self.db.get(MailItem, mail_item_id)
        if item is None:
            raise NotFoundError("Mail item")
        owned = item.profile_id == principal.id or (
            item.business_account_id is not None
            and item.business_account_id == principal.business_account_id
        )
        if not owned:
            raise NotFoundError("Mail item")
        return item

    def get_mail_item(self, principal: Principal, mail_item_id: UUID) -> MailItemView:
        """Get one of the principal's items, personal or business.

        Raises:
            NotFoundError: If the item doesn't exist or belongs to someone else
        """
        return self.to_view(self._get_owned_item(principal, mail_item_id))

    def set_archived(self, principal: Principal, mail_item_id: UUID, archived: bool) -> MailItemView:
        item = self._get_owned_item(principal, mail_item_id)
        if bool(item.is_archived) != archived:
            item.is_archived = archived
            self._audit(principal.id, "MAIL_ITEM_UPDATED", item, {"is_archived": archived})
            self.db.commit()
        return self.to_view(item)

    def set_tags(self, principal: Principal, mail_item_id: UUID, tags: Sequence[str]) -> MailItemView:
        item = self._get_owned_item(principal, mail_item_id)
        # Assign a new list so the JSON column is flagged dirty
        item.tags = _normalize_tags(tags)
        self._audit(principal.id, "MAIL_ITEM_UPDATED", item, {"tags": item.tags})
        self.db.commit()
        return self.to_view(item)

    def update_notes(self, principal: Principal, mail_item_id: UUID, notes: Optional[str]) -> MailItemView:
        item = self._get_owned_item(principal, mail_item_id)
        item.notes = notes.strip() if notes and notes.strip() else None
        self._audit(principal.id, "MAIL_ITEM_UPDATED", item, {"notes": item.notes is not None})
        self.db.commit()
        return self.to_view(item)

    def list_tags(self, scope: OwnerScope) -> List[str]:
        """Union of all tags used in the scope, sorted."""
        tags = set()
        for (item_tags,) in self._scoped_query(scope).with_entities(MailItem.tags).all():
            tags.update(item_tags or [])
        return sorted(tags)

    # ------------------------------------------------------------------
    # Action requests
    # ------------------------------------------------------------------

    def _owner_compliance(self, item: MailItem) -> Optional[KycStatus]:
        """KYC of the owning profile, or KYB of the owning business account."""
        if item.business_account_id is not None:
            account = self.db.get(BusinessAccount, item.business_account_id)
            return KycStatus(account.kyb_status) if account else None
        owner = self.db.get(Profile, item.profile_id)
        return KycStatus(owner.kyc_status) if owner else None

    def _find_open_request(self, mail_item_id: UUID, action_type: ActionType) -> Optional[ActionRequest]:
        return (
            self.db.query(ActionRequest)
            .filter(
                ActionRequest.mail_item_id == mail_item_id,
                ActionRequest.action_type == action_type.value,
                ActionRequest.status.in_([s.value for s in OPEN_STATUSES]),
            )
            .first()
        )

    def request_action(
        self,
        principal: Principal,
        mail_item_id: UUID,
        action_type: ActionType,
        priority: ActionPriority = ActionPriority.MEDIUM,
        forward_address: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> ActionRequest:
        """Raise a scan/forward/shred request for one of the principal's items.

        An open request of the same type is returned unchanged.

        Raises:
            NotFoundError: If the item is absent or outside the principal's scope
            ValidationFailed: If the item is terminal or the action can't follow its status
            ConflictError: If a FORWARD or SHRED is requested while the other is open
        """
        item = self._get_owned_item(principal, mail_item_id)

        if is_terminal(item.mail_status):
            raise ValidationFailed(f"Mail item is {item.status}; no further actions possible")

        existing = self._find_open_request(item.id, action_type)
        if existing is not None:
            return existing

        if action_type in FINAL_ACTIONS:
            rival = (
                self.db.query(ActionRequest)
                .filter(
                    ActionRequest.mail_item_id == item.id,
                    ActionRequest.action_type.in_([a.value for a in FINAL_ACTIONS if a != action_type]),
                    ActionRequest.status.in_([s.value for s in OPEN_STATUSES]),
                )
                .first()
            )
            if rival is not None:
                raise ConflictError(
                    f"A {rival.action_type} request is already open for this mail item",
                    {"action_request_id": str(rival.id)},
                )

        if not can_request(action_type, item.mail_status):
            raise ValidationFailed(
                f"Cannot request {action_type.value} for a mail item in status {item.status}"
            )

        gate_open = can_execute(action_type, self._owner_compliance(item))
        status = ActionStatus.PENDING if gate_open else ActionStatus.REQUIRES_APPROVAL

        request = ActionRequest(
            mail_item_id=item.id,
            requested_by=principal.id,
            action_type=action_type.value,
            status=status.value,
            priority=priority.value,
            forward_address=forward_address.strip() if forward_address else None,
            notes=notes,
        )
        self.db.add(request)
        self.db.flush()

        self._audit(
            principal.id, "ACTION_REQUESTED", item,
            {"action_request_id": str(request.id), "action_type": action_type.value, "status": status.value},
        )
        self.db.commit()

        action_requests_total.labels(action_type=action_type.value, event="requested").inc()
        if not gate_open:
            action_requests_total.labels(action_type=action_type.value, event="held").inc()

        logger.info(
            f"{action_type.value} requested ({status.value})",
            extra={"mail_item_id": item.id, "action_request_id": request.id},
        )
        return request

    def release_approved_requests(self, scope: OwnerScope, actor_id: Optional[UUID] = None) -> int:
        """Move held requests back to PENDING once the owner's gate passes.

        Each release is audited as ACTION_RELEASED against its mail item.

        Returns:
            Number of requests released
        """
        held = (
            self.db.query(ActionRequest)
            .join(MailItem, ActionRequest.mail_item_id == MailItem.id)
            .filter(ActionRequest.status == ActionStatus.REQUIRES_APPROVAL.value)
        )
        if scope.profile_id is not None:
            held = held.filter(MailItem.profile_id == scope.profile_id)
        else:
            held = held.filter(MailItem.business_account_id == scope.business_account_id)

        released = 0
        for request in held.all():
            if not can_execute(request.type, self._owner_compliance(request.mail_item)):
                continue
            apply_transition(request.request_status, ActionStatus.PENDING)
            request.status = ActionStatus.PENDING.value
            self._audit(
                actor_id, "ACTION_RELEASED", request.mail_item,
                {"action_request_id": str(request.id), "action_type": request.action_type},
            )
            action_requests_total.labels(action_type=request.action_type, event="released").inc()
            released += 1

        if released:
            self.db.commit()
            logger.info(f"Released {released} held action requests")
        return released

    def review_verification(self, operator: Principal, scope: OwnerScope, status: KycStatus) -> int:
        """Record an operator's KYC (profile) or KYB (business) review.

        Approval releases the owner's held requests.

        Returns:
            Number of requests released
        """
        if not operator.is_staff:
            raise UnauthorizedError("Only staff can review verifications")
        if scope.profile_id is not None:
            subject = self.db.get(Profile, scope.profile_id)
            if subject is None:
                raise NotFoundError("Profile")
            previous, subject.kyc_status = subject.kyc_status, status.value
            entity_type = "profile"
        else:
            subject = self.db.get(BusinessAccount, scope.business_account_id)
            if subject is None:
                raise NotFoundError("Business account")
            previous, subject.kyb_status = subject.kyb_status, status.value
            entity_type = "business_account"

        log_audit_event(
            self.db,
            action="VERIFICATION_REVIEWED",
            actor_id=operator.id,
            entity_type=entity_type,
            entity_id=subject.id,
            metadata={"old_status": previous, "new_status": status.value},
        )
        self.db.commit()

        if status != KycStatus.APPROVED:
            return 0
        return self.release_approved_requests(scope, actor_id=operator.id)

    # ------------------------------------------------------------------
    # Operator operations
    # ------------------------------------------------------------------

    def receive_mail_item(
        self,
        operator: Principal,
        sender: str,
        subject: Optional[str] = None,
        profile_id: Optional[UUID] = None,
        business_account_id: Optional[UUID] = None,
        envelope_scan_ref: Optional[str] = None,
        category: Optional[str] = None,
        received_at: Optional[datetime] = None,
    ) -> MailItem:
        """Log a physical item for exactly one owner (status RECEIVED).

        Raises:
            ValidationFailed: If owner scope or sender is invalid
            NotFoundError: If the owner doesn't exist
        """
        scope = OwnerScope(profile_id=profile_id, business_account_id=business_account_id)
        if not sender or not sender.strip():
            raise ValidationFailed("Sender is required")

        if scope.profile_id is not None and self.db.get(Profile, scope.profile_id) is None:
            raise NotFoundError("Profile")
        if scope.business_account_id is not None and self.db.get(BusinessAccount, scope.business_account_id) is None:
            raise NotFoundError("Business account")

        item = MailItem(
            profile_id=scope.profile_id,
            business_account_id=scope.business_account_id,
            sender=sender.strip(),
            subject=subject,
            status=MailStatus.RECEIVED.value,
            envelope_scan_ref=envelope_scan_ref,
            category=category,
            tags=[],
            received_at=received_at or utcnow(),
        )
        self.db.add(item)
        self.db.flush()

        self._audit(operator.id, "MAIL_ITEM_RECEIVED", item, {"sender": item.sender})
        self.db.commit()

        mail_items_received_total.labels(
            owner_kind="business" if item.is_business_item else "personal"
        ).inc()
        logger.info("Mail item received", extra={"mail_item_id": item.id})
        return item

    def mark_processed(self, operator: Principal, mail_item_id: UUID) -> MailItem:
        """SCANNED → PROCESSED. Already PROCESSED is a no-op."""
        item = self.db.get(MailItem, mail_item_id)
        if item is None:
            raise NotFoundError("Mail item")
        if item.mail_status == MailStatus.PROCESSED:
            return item
        self._transition_item(item, MailStatus.PROCESSED)
        self._audit(operator.id, "MAIL_ITEM_PROCESSED", item, {"status": item.status})
        self.db.commit()
        mail_status_transitions_total.labels(to_status=MailStatus.PROCESSED.value).inc()
        return item

    def _get_request(self, request_id: UUID) -> ActionRequest:
        request = self.db.get(ActionRequest, request_id)
        if request is None:
            raise NotFoundError("Action request")
        return request

    def confirm_shred(self, operator: Principal, request_id: UUID) -> ActionRequest:
        """First phase of a shred: operator confirms the item may be destroyed.

        Raises:
            ValidationFailed: If the request isn't an open SHRED request
        """
        request = self._get_request(request_id)
        if request.type != ActionType.SHRED:
            raise ValidationFailed("Only SHRED requests need confirmation")
        if request.request_status == ActionStatus.COMPLETED:
            raise ValidationFailed("Shred request already completed")

        if request.confirmed_at is None:
            request.confirmed_at = utcnow()
            request.confirmed_by = operator.id
            self._audit(
                operator.id, "ACTION_CONFIRMED", request.mail_item,
                {"action_request_id": str(request.id)},
            )
            self.db.commit()
        return request

    def fulfill_action(
        self,
        operator: Principal,
        request_id: UUID,
        scan_ref: Optional[str] = None,
        forward_address: Optional[str] = None,
    ) -> FulfillOutcome:
        """Execute an action request and advance the mail item.

        A failed approval gate is reported as a REQUIRES_APPROVAL outcome,
        not raised. Fulfilling a completed request again is a no-op.

        Raises:
            NotFoundError: If the request doesn't exist
            ValidationFailed: If a scan ref or address is missing, a shred is
                unconfirmed, or the item can no longer make the transition
        """
        request = self._get_request(request_id)
        item = request.mail_item
        action_type = request.type

        if request.request_status == ActionStatus.COMPLETED:
            return FulfillOutcome(ActionStatus.COMPLETED, request, item)

        if not can_execute(action_type, self._owner_compliance(item)):
            if request.request_status == ActionStatus.PENDING:
                apply_transition(request.request_status, ActionStatus.REQUIRES_APPROVAL)
                request.status = ActionStatus.REQUIRES_APPROVAL.value
                self._audit(
                    operator.id, "ACTION_HELD", item,
                    {"action_request_id": str(request.id), "action_type": action_type.value},
                )
                self.db.commit()
                action_requests_total.labels(action_type=action_type.value, event="held").inc()
            return FulfillOutcome(
                ActionStatus.REQUIRES_APPROVAL, request, item,
                reason="Owner verification is not approved",
            )

        if action_type == ActionType.SHRED and request.confirmed_at is None:
            raise ValidationFailed("Shred request must be confirmed before fulfillment")

        if action_type == ActionType.SCAN and not scan_ref:
            raise ValidationFailed("A scan reference is required to fulfill a SCAN request")

        destination = forward_address or request.forward_address
        if action_type == ActionType.FORWARD and not destination:
            raise ValidationFailed("A forwarding address is required to fulfill a FORWARD request")

        target = RESULTING_MAIL_STATUS[action_type]
        self._transition_item(item, target)

        # Held requests whose owner has since been approved go back through PENDING
        if request.request_status == ActionStatus.REQUIRES_APPROVAL:
            apply_transition(request.request_status, ActionStatus.PENDING)
            request.status = ActionStatus.PENDING.value
        for next_status in (ActionStatus.IN_PROGRESS, ActionStatus.COMPLETED):
            if apply_transition(request.request_status, next_status):
                request.status = next_status.value

        request.completed_at = utcnow()
        request.completed_by = operator.id

        if action_type == ActionType.SCAN:
            item.full_scan_ref = scan_ref
        elif action_type == ActionType.FORWARD:
            item.forward_address = destination
            request.forward_address = destination

        self._audit(
            operator.id, "ACTION_FULFILLED", item,
            {"action_request_id": str(request.id), "action_type": action_type.value, "status": item.status},
        )
        self.db.commit()

        action_requests_total.labels(action_type=action_type.value, event="fulfilled").inc()
        mail_status_transitions_total.labels(to_status=target.value).inc()
        logger.info(
            f"{action_type.value} fulfilled",
            extra={"mail_item_id": item.id, "action_request_id": request.id},
        )
        return FulfillOutcome(ActionStatus.COMPLETED, request, item)

    def operator_queue(self) -> OperatorQueue:
        """Open requests, held ones listed separately, HIGH priority first."""
        requests = (
            self.db.query(ActionRequest)
            .filter(ActionRequest.status.in_([s.value for s in OPEN_STATUSES]))
            .all()
        )
        queue = OperatorQueue()
        for request in sorted(requests, key=_queue_sort_key):
            if request.request_status == ActionStatus.REQUIRES_APPROVAL:
                queue.awaiting_approval.append(request)
            else:
                queue.open_requests.append(request)
        return queue

    # ------------------------------------------------------------------

    def _transition_item(self, item: MailItem, new_status: MailStatus) -> None:
        try:
            validate_transition(item.mail_status, new_status)
        except MailTransitionError as e:
            raise ValidationFailed(str(e), {"status": item.status, "target": new_status.value})
        item.status = new_status.value

    def _audit(self, actor_id: UUID, action: str, item: MailItem, metadata: Dict) -> None:
        log_audit_event(
            self.db,
            action=action,
            actor_id=actor_id,
            entity_type="mail_item",
            entity_id=item.id,
            metadata=metadata,
        )
