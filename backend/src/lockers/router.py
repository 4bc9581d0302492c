"""Locker management API - operator endpoints for the location hierarchy."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from auth.dependencies import require_access
from database import get_db
from domain.identity import Principal
from .service import LockerService
from .schemas import (
    ClusterCreate,
    ClusterResponse,
    ClusterUpdate,
    DimensionsOut,
    LocationCreate,
    LocationResponse,
    MailboxCreate,
    MailboxListResponse,
    MailboxResponse,
    MailboxUpdate,
    OccupancySyncResponse,
    ParcelCheckRequest,
    ParcelCheckResponse,
)


router = APIRouter(prefix="/operator", tags=["lockers"])

operator_access = require_access("/operator")


@router.get("/locations", response_model=List[LocationResponse])
def list_locations(
    principal: Principal = Depends(operator_access),
    db: Session = Depends(get_db),
):
    return LockerService(db).list_locations()


@router.post("/locations", response_model=LocationResponse, status_code=status.HTTP_201_CREATED)
def create_location(
    body: LocationCreate,
    principal: Principal = Depends(operator_access),
    db: Session = Depends(get_db),
):
    """Create a location; its first cluster is created with it."""
    return LockerService(db).create_location(
        principal, body.name, body.address, body.first_cluster_name
    )


@router.get("/clusters", response_model=List[ClusterResponse])
def list_clusters(
    location_id: Optional[UUID] = Query(None),
    principal: Principal = Depends(operator_access),
    db: Session = Depends(get_db),
):
    return LockerService(db).list_clusters(location_id)


@router.post("/clusters", response_model=ClusterResponse, status_code=status.HTTP_201_CREATED)
def create_cluster(
    body: ClusterCreate,
    principal: Principal = Depends(operator_access),
    db: Session = Depends(get_db),
):
    return LockerService(db).create_cluster(
        principal, body.mailing_location_id, body.name, body.description
    )


@router.patch("/clusters/{cluster_id}", response_model=ClusterResponse)
def update_cluster(
    cluster_id: UUID,
    body: ClusterUpdate,
    principal: Principal = Depends(operator_access),
    db: Session = Depends(get_db),
):
    return LockerService(db).update_cluster(principal, cluster_id, body.name, body.description)


@router.delete("/clusters/{cluster_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_cluster(
    cluster_id: UUID,
    principal: Principal = Depends(operator_access),
    db: Session = Depends(get_db),
):
    """Delete a cluster. 409 when it is the location's last one."""
    LockerService(db).delete_cluster(principal, cluster_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/mailboxes", response_model=MailboxListResponse)
def list_mailboxes(
    cluster_id: Optional[UUID] = Query(None),
    only_free: bool = Query(False),
    principal: Principal = Depends(operator_access),
    db: Session = Depends(get_db),
):
    mailboxes = LockerService(db).list_mailboxes(cluster_id, only_free)
    return MailboxListResponse(mailboxes=[MailboxResponse.model_validate(m) for m in mailboxes])


@router.post("/mailboxes", response_model=MailboxResponse, status_code=status.HTTP_201_CREATED)
def create_mailbox(
    body: MailboxCreate,
    principal: Principal = Depends(operator_access),
    db: Session = Depends(get_db),
):
    return LockerService(db).create_mailbox(
        principal, body.cluster_id, body.box_number, body.dimensions.to_domain(), body.type
    )


@router.patch("/mailboxes/{mailbox_id}", response_model=MailboxResponse)
def update_mailbox(
    mailbox_id: UUID,
    body: MailboxUpdate,
    principal: Principal = Depends(operator_access),
    db: Session = Depends(get_db),
):
    return LockerService(db).update_mailbox(
        principal,
        mailbox_id,
        box_number=body.box_number,
        dimensions=body.dimensions.to_domain() if body.dimensions else None,
        mailbox_type=body.type,
    )


@router.delete("/mailboxes/{mailbox_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_mailbox(
    mailbox_id: UUID,
    principal: Principal = Depends(operator_access),
    db: Session = Depends(get_db),
):
    LockerService(db).delete_mailbox(principal, mailbox_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/mailboxes/sync-occupancy", response_model=OccupancySyncResponse)
def sync_occupancy(
    principal: Principal = Depends(operator_access),
    db: Session = Depends(get_db),
):
    return OccupancySyncResponse(changed=LockerService(db).sync_occupancy())


@router.post("/parcel-check", response_model=ParcelCheckResponse)
def check_parcel_fit(
    body: ParcelCheckRequest,
    principal: Principal = Depends(operator_access),
    db: Session = Depends(get_db),
):
    """Axis-aligned fit check of a parcel against a mailbox, in centimeters."""
    result = LockerService(db).check_parcel_fit(body.parcel.to_domain(), body.mailbox_id)
    return ParcelCheckResponse(
        fits=result.fits,
        normalized_parcel=DimensionsOut(**result.normalized_parcel.to_dict()),
        normalized_locker=DimensionsOut(**result.normalized_locker.to_dict()),
    )
