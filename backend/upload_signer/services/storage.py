import logging

from google.cloud import storage

from upload_signer.core.config import get_settings

logger = logging.getLogger(__name__)


class StorageService:
    """Cloud Storage access needed outside the request path."""

    def __init__(self, client: storage.Client | None = None) -> None:
        self.settings = get_settings()
        self.client = client or storage.Client(project=self.settings.project_id or None)
        self.bucket = self.settings.bucket_name

    def ensure_bucket_exists(self) -> bool:
        """Create the upload bucket if it is missing. Returns True when created."""
        if self.client.lookup_bucket(self.bucket) is not None:
            logger.info("Upload bucket %s already exists", self.bucket)
            return False

        self.client.create_bucket(self.bucket, project=self.settings.project_id or None)
        logger.info("Created upload bucket %s", self.bucket)
        return True


_storage_service: StorageService | None = None


def get_storage_service() -> StorageService:
    global _storage_service
    if _storage_service is None:
        _storage_service = StorageService()
    return _storage_service


def reset_storage_service() -> None:
    global _storage_service
    _storage_service = None
