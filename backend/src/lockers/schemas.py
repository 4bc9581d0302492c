"""Pydantic schemas for locker management and parcel checks."""

from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from domain.lockers import Dimensions, DimensionUnit, MailboxType


class DimensionsIn(BaseModel):
    """Width x height x depth. Positivity is checked by the service."""
    width: Decimal
    height: Decimal
    depth: Decimal
    unit: DimensionUnit = DimensionUnit.CM

    def to_domain(self) -> Dimensions:
        return Dimensions.of(self.width, self.height, self.depth, self.unit)


class DimensionsOut(BaseModel):
    width: float
    height: float
    depth: float
    unit: DimensionUnit


class LocationCreate(BaseModel):
    name: str = Field(..., max_length=200)
    address: Optional[str] = Field(None, max_length=1000)
    first_cluster_name: str = Field("Main", max_length=200)


class LocationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    address: Optional[str] = None
    is_active: bool


class ClusterCreate(BaseModel):
    mailing_location_id: UUID
    name: str = Field(..., max_length=200)
    description: Optional[str] = Field(None, max_length=1000)


class ClusterUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)


class ClusterResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    mailing_location_id: UUID
    name: str
    description: Optional[str] = None


class MailboxCreate(BaseModel):
    cluster_id: UUID
    box_number: str = Field(..., max_length=50)
    type: MailboxType = MailboxType.STANDARD
    dimensions: DimensionsIn


class MailboxUpdate(BaseModel):
    """is_occupied is not client-writable; occupancy follows subscriptions."""
    box_number: Optional[str] = Field(None, max_length=50)
    type: Optional[MailboxType] = None
    dimensions: Optional[DimensionsIn] = None


class MailboxResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    cluster_id: UUID
    box_number: str
    type: MailboxType
    width: Decimal
    height: Decimal
    depth: Decimal
    dimension_unit: DimensionUnit
    is_occupied: bool


class ParcelCheckRequest(BaseModel):
    mailbox_id: UUID
    parcel: DimensionsIn


class ParcelCheckResponse(BaseModel):
    fits: bool
    normalized_parcel: DimensionsOut
    normalized_locker: DimensionsOut


class OccupancySyncResponse(BaseModel):
    changed: int


class MailboxListResponse(BaseModel):
    mailboxes: List[MailboxResponse]
