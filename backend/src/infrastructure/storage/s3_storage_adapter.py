"""S3 Storage Adapter - ObjectStoragePort implementation using boto3.

Works against AWS S3 and S3-compatible services (MinIO) alike.

Architecture: Hexagonal - Adapter implementation in infrastructure layer
"""

import logging
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError

from domain.mail.ports.object_storage_port import ObjectStoragePort, StorageError

logger = logging.getLogger(__name__)


class S3StorageAdapter(ObjectStoragePort):
    """S3-compatible storage adapter using boto3.

    Example:
        storage = S3StorageAdapter.from_settings(get_settings())
        url = storage.generate_presigned_url(item.full_scan_ref, 3600)
    """

    def __init__(
        self,
        endpoint_url: Optional[str],
        access_key: Optional[str],
        secret_key: Optional[str],
        bucket_name: str,
        region: str = "us-east-1",
    ):
        """Initialize S3 storage adapter.

        Args:
            endpoint_url: S3 endpoint URL (None for AWS S3, URL for MinIO)
            access_key: S3 access key ID
            secret_key: S3 secret access key
            bucket_name: S3 bucket name
            region: AWS region (default: 'us-east-1')

        Raises:
            StorageError: If S3 client initialization fails
        """
        try:
            self.s3_client = boto3.client(
                "s3",
                endpoint_url=endpoint_url,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                region_name=region,
            )
        except (NoCredentialsError, BotoCoreError) as e:
            raise StorageError(f"Failed to initialize S3 client: {e}")

        self.bucket_name = bucket_name
        self.region = region

        logger.info(
            f"Initialized S3 storage adapter: bucket={bucket_name}, "
            f"endpoint={endpoint_url or 'AWS S3'}, region={region}"
        )

    @classmethod
    def from_settings(cls, settings) -> "S3StorageAdapter":
        return cls(
            endpoint_url=settings.S3_ENDPOINT_URL,
            access_key=settings.S3_ACCESS_KEY_ID,
            secret_key=settings.S3_SECRET_ACCESS_KEY,
            bucket_name=settings.S3_BUCKET_NAME,
            region=settings.S3_REGION,
        )

    def store_file(self, storage_key: str, content: bytes, mime_type: str) -> str:
        if not content:
            raise ValueError("Cannot store empty file")

        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=storage_key,
                Body=content,
                ContentType=mime_type,
            )
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error(f"S3 upload failed: storage_key={storage_key}, error={error_code}")
            raise StorageError(f"Failed to upload file: {error_code}")
        except BotoCoreError as e:
            raise StorageError(f"Failed to upload file: {e}")

        logger.info(f"Uploaded file: storage_key={storage_key}, size={len(content)}, mime_type={mime_type}")
        return storage_key

    def file_exists(self, storage_key: str) -> bool:
        try:
            self.s3_client.head_object(Bucket=self.bucket_name, Key=storage_key)
            return True
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            if error_code in ("404", "NoSuchKey", "NotFound"):
                return False
            raise StorageError(f"Failed to check file: {error_code}")
        except BotoCoreError as e:
            raise StorageError(f"Failed to check file: {e}")

    def generate_presigned_url(self, storage_key: str, expires_in_seconds: int = 3600) -> str:
        """Generate a presigned GET URL for a stored scan.

        Raises:
            FileNotFoundError: If the object doesn't exist
            StorageError: If the backend is unreachable or signing fails
        """
        if not self.file_exists(storage_key):
            raise FileNotFoundError(f"File not found: {storage_key}")

        try:
            url = self.s3_client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket_name, "Key": storage_key},
                ExpiresIn=expires_in_seconds,
            )
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error(
                f"Presigned URL generation failed: storage_key={storage_key}, error={error_code}"
            )
            raise StorageError(f"Failed to generate presigned URL: {error_code}")
        except BotoCoreError as e:
            raise StorageError(f"Failed to generate presigned URL: {e}")

        logger.debug(f"Generated presigned URL: storage_key={storage_key}, expires_in={expires_in_seconds}s")
        return url
