"""Object Storage Port - domain interface for scan artifact storage.

Scans (envelope images, full document scans) live in S3-compatible object
storage. The mail domain only ever holds their storage keys and asks the
port for short-lived signed URLs when presenting an item.

Architecture: Hexagonal - Port interface in domain layer
"""

from abc import ABC, abstractmethod


class StorageError(Exception):
    """Raised when the storage backend cannot serve a request."""
    pass


class ObjectStoragePort(ABC):
    """Port interface for S3-compatible object storage operations.

    Example Usage:
        storage = S3StorageAdapter(...)
        url = storage.generate_presigned_url("scans/2025/01/abc.pdf", 3600)
    """

    @abstractmethod
    def store_file(self, storage_key: str, content: bytes, mime_type: str) -> str:
        """Upload content under storage_key and return the key.

        Raises:
            StorageError: If upload fails
            ValueError: If content is empty
        """
        pass

    @abstractmethod
    def file_exists(self, storage_key: str) -> bool:
        """Check if an object exists (HEAD request)."""
        pass

    @abstractmethod
    def generate_presigned_url(self, storage_key: str, expires_in_seconds: int = 3600) -> str:
        """Generate a time-limited URL for direct download.

        Args:
            storage_key: Key of the stored scan
            expires_in_seconds: URL lifetime

        Returns:
            str: Presigned URL

        Raises:
            FileNotFoundError: If the object doesn't exist
            StorageError: If URL generation fails
        """
        pass
