import logging

from taskdock.storage.base import StorageAdapter, StoredObject, generate_name
from taskdock.storage.local import LocalStorage
from taskdock.storage.s3 import S3Storage, build_s3_client

logger = logging.getLogger(__name__)


def build_storage(settings) -> StorageAdapter:
    """Build the storage backend named by settings.STORAGE_BACKEND."""
    backend = (settings.STORAGE_BACKEND or "").strip().lower()

    if backend == "local":
        storage = LocalStorage(
            root=settings.UPLOAD_DIR,
            base_url=settings.PUBLIC_BASE_URL,
            signing_secret=settings.STORAGE_SIGNING_SECRET,
            default_ttl=settings.SIGNED_URL_TTL_SECONDS,
        )
    elif backend == "s3":
        client = None
        if settings.S3_BUCKET:
            client = build_s3_client(settings.S3_REGION, settings.S3_ENDPOINT_URL)
        else:
            logger.warning("STORAGE_BACKEND=s3 but S3_BUCKET is not set: file operations will fail")
        storage = S3Storage(
            bucket=settings.S3_BUCKET,
            client=client,
            default_ttl=settings.SIGNED_URL_TTL_SECONDS,
        )
    else:
        raise ValueError(f"Unknown STORAGE_BACKEND: {settings.STORAGE_BACKEND!r}")

    logger.info("Using %s storage backend", storage.name)
    return storage


__all__ = [
    "StorageAdapter",
    "StoredObject",
    "LocalStorage",
    "S3Storage",
    "build_storage",
    "generate_name",
]
