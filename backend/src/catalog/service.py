"""Package service - the admin-managed plan catalog.

Each paid plan type has at most one package (unique plan_type). Checkout
prices and referral commissions read the active package for a plan and
fall back to configured prices when there is none.
"""

import logging
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from audit.service import log_audit_event
from auth.roles import PlanType
from domain.errors import ConflictError, NotFoundError, UnauthorizedError, ValidationFailed
from domain.identity import Principal
from models.package import Package

logger = logging.getLogger(__name__)

PRICE_FIELDS = ("price_monthly", "price_quarterly", "price_yearly")
UPDATABLE_FIELDS = (
    "plan_type",
    "name",
    "description",
    "price_monthly",
    "price_quarterly",
    "price_yearly",
    "cashback_percentage",
    "is_active",
    "display_order",
)


def _require_system_admin(actor: Principal) -> None:
    if not actor.is_system_admin:
        raise UnauthorizedError("Only system admins can manage packages")


def _paid_plan(plan_type) -> PlanType:
    try:
        plan = PlanType(plan_type)
    except ValueError:
        raise ValidationFailed(f"Unknown plan type: {plan_type}")
    if plan == PlanType.FREE:
        raise ValidationFailed("The FREE plan cannot be sold as a package")
    return plan


def _validate(package: Package) -> None:
    if not package.name or not package.name.strip():
        raise ValidationFailed("Package name is required")
    package.name = package.name.strip()
    if package.price_monthly is None:
        raise ValidationFailed("Monthly price is required")
    for field in PRICE_FIELDS:
        value = getattr(package, field)
        if value is not None and Decimal(str(value)) < 0:
            raise ValidationFailed(f"{field} must not be negative")
    cashback = Decimal(str(package.cashback_percentage))
    if cashback < 0 or cashback > 100:
        raise ValidationFailed("Cashback percentage must be between 0 and 100")


class PackageService:
    """Service for the plan catalog."""

    def __init__(self, db: Session):
        self.db = db

    def list_packages(self, active_only: bool = False) -> List[Package]:
        query = self.db.query(Package)
        if active_only:
            query = query.filter(Package.is_active.is_(True))
        return query.order_by(Package.display_order, Package.plan_type).all()

    def get_package(self, package_id: UUID) -> Package:
        package = self.db.get(Package, package_id)
        if package is None:
            raise NotFoundError("Package")
        return package

    def active_for_plan(self, plan_type: PlanType) -> Optional[Package]:
        return (
            self.db.query(Package)
            .filter(Package.plan_type == plan_type.value, Package.is_active.is_(True))
            .first()
        )

    def _ensure_plan_free(self, plan: PlanType, exclude_id: Optional[UUID] = None) -> None:
        query = self.db.query(Package.id).filter(Package.plan_type == plan.value)
        if exclude_id is not None:
            query = query.filter(Package.id != exclude_id)
        if query.first() is not None:
            raise ConflictError(f"A package for plan {plan.value} already exists")

    def _flush_unique(self, plan_type: str) -> None:
        try:
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError(f"A package for plan {plan_type} already exists")

    def create_package(
        self,
        actor: Principal,
        plan_type: PlanType,
        name: str,
        price_monthly: Decimal,
        price_quarterly: Optional[Decimal] = None,
        price_yearly: Optional[Decimal] = None,
        cashback_percentage: Decimal = Decimal("5"),
        description: Optional[str] = None,
        is_active: bool = True,
        display_order: int = 0,
    ) -> Package:
        """Add a package to the catalog.

        Raises:
            UnauthorizedError: If the actor is not a system admin
            ValidationFailed: If the plan is FREE, a price is negative or cashback is out of range
            ConflictError: If the plan type already has a package
        """
        _require_system_admin(actor)
        plan = _paid_plan(plan_type)
        self._ensure_plan_free(plan)

        package = Package(
            plan_type=plan.value,
            name=name,
            description=description,
            price_monthly=price_monthly,
            price_quarterly=price_quarterly,
            price_yearly=price_yearly,
            cashback_percentage=cashback_percentage,
            is_active=is_active,
            display_order=display_order,
            created_by=actor.id,
        )
        _validate(package)
        self.db.add(package)
        self._flush_unique(plan.value)

        log_audit_event(
            self.db,
            action="PACKAGE_CREATED",
            actor_id=actor.id,
            entity_type="package",
            entity_id=package.id,
            metadata={"plan_type": plan.value, "name": package.name},
        )
        self.db.commit()
        logger.info(f"Package created for plan {plan.value}", extra={"user_id": actor.id})
        return package

    def update_package(self, actor: Principal, package_id: UUID, **changes) -> Package:
        """Apply a partial update. Unset fields keep their value.

        Raises:
            UnauthorizedError: If the actor is not a system admin
            NotFoundError: If the package doesn't exist
            ValidationFailed: If the result is invalid
            ConflictError: If plan_type moves onto a plan that already has a package
        """
        _require_system_admin(actor)
        package = self.get_package(package_id)

        unknown = set(changes) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValidationFailed(f"Unknown package fields: {', '.join(sorted(unknown))}")

        if changes.get("plan_type") is not None:
            plan = _paid_plan(changes["plan_type"])
            self._ensure_plan_free(plan, exclude_id=package.id)
            changes["plan_type"] = plan.value

        for field, value in changes.items():
            if value is None and field not in ("description", "price_quarterly", "price_yearly"):
                continue
            setattr(package, field, value)
        _validate(package)
        self._flush_unique(package.plan_type)

        log_audit_event(
            self.db,
            action="PACKAGE_UPDATED",
            actor_id=actor.id,
            entity_type="package",
            entity_id=package.id,
            metadata={"fields": sorted(changes)},
        )
        self.db.commit()
        return package

    def delete_package(self, actor: Principal, package_id: UUID) -> None:
        _require_system_admin(actor)
        package = self.get_package(package_id)
        self.db.delete(package)
        log_audit_event(
            self.db,
            action="PACKAGE_DELETED",
            actor_id=actor.id,
            entity_type="package",
            entity_id=package_id,
            metadata={"plan_type": package.plan_type},
        )
        self.db.commit()
