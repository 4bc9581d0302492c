"""Package catalog API - system admin endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from auth.dependencies import require_access
from database import get_db
from domain.identity import Principal
from .service import PackageService
from .schemas import PackageCreate, PackageListResponse, PackageResponse, PackageUpdate


router = APIRouter(prefix="/admin/packages", tags=["packages"])

packages_access = require_access("/admin/packages")


@router.get("", response_model=PackageListResponse)
def list_packages(
    active_only: bool = Query(False),
    principal: Principal = Depends(packages_access),
    db: Session = Depends(get_db),
):
    packages = PackageService(db).list_packages(active_only)
    return PackageListResponse(packages=[PackageResponse.model_validate(p) for p in packages])


@router.post("", response_model=PackageResponse, status_code=status.HTTP_201_CREATED)
def create_package(
    body: PackageCreate,
    principal: Principal = Depends(packages_access),
    db: Session = Depends(get_db),
):
    """Create a package. 409 when the plan type already has one."""
    return PackageService(db).create_package(principal, **body.model_dump())


@router.patch("/{package_id}", response_model=PackageResponse)
def update_package(
    package_id: UUID,
    body: PackageUpdate,
    principal: Principal = Depends(packages_access),
    db: Session = Depends(get_db),
):
    return PackageService(db).update_package(principal, package_id, **body.model_dump(exclude_unset=True))


@router.delete("/{package_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_package(
    package_id: UUID,
    principal: Principal = Depends(packages_access),
    db: Session = Depends(get_db),
):
    PackageService(db).delete_package(principal, package_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
