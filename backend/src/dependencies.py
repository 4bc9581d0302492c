"""Global FastAPI dependencies for external ports and services.

This module provides:
- get_object_storage: S3 adapter used to sign scan URLs
- get_payment_gateway: HTTP adapter for invoice creation
- get_mail_item_service: MailItemService wired to the request's session

Adapters are built once per process. Tests replace them through
app.dependency_overrides with in-memory fakes.
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from config import get_settings
from database import get_db
from domain.billing.ports import PaymentGatewayPort
from domain.mail.ports import ObjectStoragePort
from infrastructure.payments.http_payment_gateway import HttpPaymentGateway
from infrastructure.storage.s3_storage_adapter import S3StorageAdapter
from mail_items.service import MailItemService


@lru_cache()
def get_object_storage() -> ObjectStoragePort:
    return S3StorageAdapter.from_settings(get_settings())


@lru_cache()
def get_payment_gateway() -> PaymentGatewayPort:
    return HttpPaymentGateway.from_settings(get_settings())


def get_mail_item_service(
    db: Session = Depends(get_db),
    storage: ObjectStoragePort = Depends(get_object_storage),
) -> MailItemService:
    """MailItemService bound to the current session.

    Example:
        @router.get("/mail-items")
        def list_items(service: MailItemService = Depends(get_mail_item_service)):
            ...
    """
    return MailItemService(db, storage, get_settings().SIGNED_URL_TTL_SECONDS)
