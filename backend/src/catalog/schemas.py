"""Pydantic schemas for the admin package catalog."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from auth.roles import PlanType


class PackageCreate(BaseModel):
    plan_type: PlanType
    name: str = Field(..., max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    price_monthly: Decimal = Field(..., ge=0)
    price_quarterly: Optional[Decimal] = Field(None, ge=0)
    price_yearly: Optional[Decimal] = Field(None, ge=0)
    cashback_percentage: Decimal = Field(Decimal("5"), ge=0, le=100)
    is_active: bool = True
    display_order: int = 0


class PackageUpdate(BaseModel):
    """Partial update; only fields present in the body are applied."""
    plan_type: Optional[PlanType] = None
    name: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    price_monthly: Optional[Decimal] = Field(None, ge=0)
    price_quarterly: Optional[Decimal] = Field(None, ge=0)
    price_yearly: Optional[Decimal] = Field(None, ge=0)
    cashback_percentage: Optional[Decimal] = Field(None, ge=0, le=100)
    is_active: Optional[bool] = None
    display_order: Optional[int] = None


class PackageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    plan_type: PlanType
    name: str
    description: Optional[str] = None
    price_monthly: Decimal
    price_quarterly: Optional[Decimal] = None
    price_yearly: Optional[Decimal] = None
    cashback_percentage: Decimal
    is_active: bool
    display_order: int
    created_at: datetime


class PackageListResponse(BaseModel):
    packages: List[PackageResponse]
