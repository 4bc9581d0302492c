"""Locker service - location → cluster → mailbox management and parcel checks.

Structural invariants:
- every location keeps at least one cluster (checked with the location row locked)
- box numbers are unique within a cluster (database unique constraint)
- occupied mailboxes cannot be deleted
- is_occupied is derived from ACTIVE subscriptions, never client input
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from audit.service import log_audit_event
from domain.errors import ConflictError, NotFoundError, ValidationFailed
from domain.identity import Principal
from domain.lockers import Dimensions, FitResult, MailboxType, fits
from models.locker import Mailbox, MailboxCluster, MailingLocation
from models.subscription import Subscription
from observability.metrics import parcel_checks_total

logger = logging.getLogger(__name__)

DEFAULT_CLUSTER_NAME = "Main"
ACTIVE_SUBSCRIPTION = "ACTIVE"


def _require_text(value: Optional[str], field: str) -> str:
    if value is None or not value.strip():
        raise ValidationFailed(f"{field} is required")
    return value.strip()


def _require_positive(dimensions: Dimensions) -> Dimensions:
    if not dimensions.is_positive():
        raise ValidationFailed("Width, height and depth must be greater than zero")
    return dimensions


class LockerService:
    """Service for locker hierarchy operations (operators only)."""

    def __init__(self, db: Session):
        self.db = db

    # Locations ---------------------------------------------------------

    def create_location(
        self,
        operator: Principal,
        name: str,
        address: Optional[str] = None,
        first_cluster_name: str = DEFAULT_CLUSTER_NAME,
    ) -> MailingLocation:
        """Create a location together with its first cluster."""
        location = MailingLocation(name=_require_text(name, "Location name"), address=address)
        self.db.add(location)
        self.db.flush()

        cluster = MailboxCluster(
            mailing_location_id=location.id,
            name=_require_text(first_cluster_name, "Cluster name"),
        )
        self.db.add(cluster)
        self.db.flush()

        self._audit(operator, "LOCATION_CREATED", "mailing_location", location.id, {"name": location.name})
        self.db.commit()
        self.db.refresh(location)
        return location

    def list_locations(self) -> List[MailingLocation]:
        return self.db.query(MailingLocation).order_by(MailingLocation.name).all()

    def _get_location(self, location_id: UUID, lock: bool = False) -> MailingLocation:
        query = self.db.query(MailingLocation).filter(MailingLocation.id == location_id)
        if lock:
            query = query.with_for_update()
        location = query.first()
        if location is None:
            raise NotFoundError("Mailing location")
        return location

    # Clusters ----------------------------------------------------------

    def create_cluster(
        self,
        operator: Principal,
        location_id: UUID,
        name: str,
        description: Optional[str] = None,
    ) -> MailboxCluster:
        location = self._get_location(location_id)
        cluster = MailboxCluster(
            mailing_location_id=location.id,
            name=_require_text(name, "Cluster name"),
            description=description,
        )
        self.db.add(cluster)
        self.db.flush()
        self._audit(operator, "CLUSTER_CREATED", "mailbox_cluster", cluster.id, {"location_id": str(location.id)})
        self.db.commit()
        return cluster

    def update_cluster(
        self,
        operator: Principal,
        cluster_id: UUID,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> MailboxCluster:
        cluster = self._get_cluster(cluster_id)
        if name is not None:
            cluster.name = _require_text(name, "Cluster name")
        if description is not None:
            cluster.description = description
        self._audit(operator, "CLUSTER_UPDATED", "mailbox_cluster", cluster.id, {"name": cluster.name})
        self.db.commit()
        return cluster

    def list_clusters(self, location_id: Optional[UUID] = None) -> List[MailboxCluster]:
        query = self.db.query(MailboxCluster)
        if location_id is not None:
            query = query.filter(MailboxCluster.mailing_location_id == location_id)
        return query.order_by(MailboxCluster.name).all()

    def _get_cluster(self, cluster_id: UUID) -> MailboxCluster:
        cluster = self.db.get(MailboxCluster, cluster_id)
        if cluster is None:
            raise NotFoundError("Mailbox cluster")
        return cluster

    def delete_cluster(self, operator: Principal, cluster_id: UUID) -> None:
        """Delete a cluster.

        The location row is locked first so two concurrent deletes cannot
        both see a second sibling and leave the location empty.

        Raises:
            ConflictError: If this is the location's last cluster, or it still has mailboxes
        """
        cluster = self._get_cluster(cluster_id)
        self._get_location(cluster.mailing_location_id, lock=True)

        cluster_count = (
            self.db.query(func.count(MailboxCluster.id))
            .filter(MailboxCluster.mailing_location_id == cluster.mailing_location_id)
            .scalar()
        )
        if cluster_count <= 1:
            self.db.rollback()
            raise ConflictError("A location must keep at least one cluster")

        mailbox_count = (
            self.db.query(func.count(Mailbox.id))
            .filter(Mailbox.cluster_id == cluster.id)
            .scalar()
        )
        if mailbox_count:
            self.db.rollback()
            raise ConflictError("Remove the cluster's mailboxes before deleting it")

        self.db.delete(cluster)
        self._audit(operator, "CLUSTER_DELETED", "mailbox_cluster", cluster_id, {})
        self.db.commit()

    # Mailboxes ---------------------------------------------------------

    def create_mailbox(
        self,
        operator: Principal,
        cluster_id: UUID,
        box_number: str,
        dimensions: Dimensions,
        mailbox_type: MailboxType = MailboxType.STANDARD,
    ) -> Mailbox:
        """Create a mailbox in a cluster.

        Raises:
            ValidationFailed: If box number is blank or a dimension is not positive
            ConflictError: If the box number is already used in the cluster
        """
        cluster = self._get_cluster(cluster_id)
        number = _require_text(box_number, "Box number")
        _require_positive(dimensions)

        mailbox = Mailbox(
            cluster_id=cluster.id,
            box_number=number,
            type=mailbox_type.value,
            width=dimensions.width,
            height=dimensions.height,
            depth=dimensions.depth,
            dimension_unit=dimensions.unit.value,
            is_occupied=False,
        )
        self.db.add(mailbox)
        try:
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError(f"Box number {number} already exists in this cluster")

        self._audit(operator, "MAILBOX_CREATED", "mailbox", mailbox.id, {"box_number": number})
        self.db.commit()
        return mailbox

    def update_mailbox(
        self,
        operator: Principal,
        mailbox_id: UUID,
        box_number: Optional[str] = None,
        dimensions: Optional[Dimensions] = None,
        mailbox_type: Optional[MailboxType] = None,
    ) -> Mailbox:
        mailbox = self.get_mailbox(mailbox_id)
        if box_number is not None:
            mailbox.box_number = _require_text(box_number, "Box number")
        if dimensions is not None:
            _require_positive(dimensions)
            mailbox.width = dimensions.width
            mailbox.height = dimensions.height
            mailbox.depth = dimensions.depth
            mailbox.dimension_unit = dimensions.unit.value
        if mailbox_type is not None:
            mailbox.type = mailbox_type.value

        try:
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError(f"Box number {box_number} already exists in this cluster")

        self._audit(operator, "MAILBOX_UPDATED", "mailbox", mailbox.id, {"box_number": mailbox.box_number})
        self.db.commit()
        return mailbox

    def list_mailboxes(
        self,
        cluster_id: Optional[UUID] = None,
        only_free: bool = False,
    ) -> List[Mailbox]:
        query = self.db.query(Mailbox)
        if cluster_id is not None:
            query = query.filter(Mailbox.cluster_id == cluster_id)
        if only_free:
            query = query.filter(Mailbox.is_occupied.is_(False))
        return query.order_by(Mailbox.cluster_id, Mailbox.box_number).all()

    def get_mailbox(self, mailbox_id: UUID) -> Mailbox:
        mailbox = self.db.get(Mailbox, mailbox_id)
        if mailbox is None:
            raise NotFoundError("Mailbox")
        return mailbox

    def delete_mailbox(self, operator: Principal, mailbox_id: UUID) -> None:
        """Delete a free mailbox.

        Raises:
            ConflictError: If the mailbox is occupied
        """
        mailbox = self.get_mailbox(mailbox_id)
        if mailbox.is_occupied:
            raise ConflictError("Cannot delete an occupied mailbox")
        self.db.delete(mailbox)
        self._audit(operator, "MAILBOX_DELETED", "mailbox", mailbox_id, {})
        self.db.commit()

    def sync_occupancy(self) -> int:
        """Recompute is_occupied from ACTIVE subscriptions.

        Returns:
            Number of mailboxes whose flag changed
        """
        occupied_ids = {
            row[0]
            for row in self.db.query(Subscription.mailbox_id)
            .filter(
                Subscription.status == ACTIVE_SUBSCRIPTION,
                Subscription.mailbox_id.isnot(None),
            )
            .distinct()
            .all()
        }

        changed = 0
        for mailbox in self.db.query(Mailbox).all():
            should_be_occupied = mailbox.id in occupied_ids
            if bool(mailbox.is_occupied) != should_be_occupied:
                self.db.execute(
                    update(Mailbox)
                    .where(Mailbox.id == mailbox.id)
                    .values(is_occupied=should_be_occupied)
                )
                changed += 1

        self.db.commit()
        if changed:
            logger.info(f"Occupancy sync corrected {changed} mailboxes")
        return changed

    # Parcel fit --------------------------------------------------------

    def check_parcel_fit(self, parcel: Dimensions, mailbox_id: UUID) -> FitResult:
        """Check whether a parcel fits a specific mailbox.

        Raises:
            ValidationFailed: If a parcel dimension is not positive
            NotFoundError: If the mailbox doesn't exist
        """
        _require_positive(parcel)
        mailbox = self.get_mailbox(mailbox_id)
        result = fits(parcel, mailbox.dimensions)
        parcel_checks_total.labels(fits=str(result.fits).lower()).inc()
        return result

    def _audit(self, operator: Principal, action: str, entity_type: str, entity_id, metadata) -> None:
        log_audit_event(
            self.db,
            action=action,
            actor_id=operator.id,
            entity_type=entity_type,
            entity_id=entity_id,
            metadata=metadata,
        )
