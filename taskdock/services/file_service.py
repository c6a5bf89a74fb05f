"""File service: uploads, task association and access links.

Upload order is fixed: storage write first, metadata record second. When the
record cannot be written the stored object is deleted again (best effort) so
neither side is left orphaned.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session, selectinload

from taskdock.core.config import settings
from taskdock.core.errors import AppError, InvalidInputError, NotFoundError
from taskdock.models.file import File
from taskdock.services.ownership import get_owned_file, get_owned_file_by_locator, get_owned_task
from taskdock.storage import LocalStorage, StorageAdapter

logger = logging.getLogger(__name__)


def normalize_mime_type(mime_type: Optional[str]) -> Optional[str]:
    # "text/plain; charset=utf-8" -> "text/plain"
    if not mime_type:
        return mime_type
    return mime_type.split(";", 1)[0].strip().lower()


def validate_upload(content: bytes, original_name: Optional[str], mime_type: Optional[str]) -> None:
    """Reject an upload before anything reaches the storage backend."""
    if not original_name:
        raise InvalidInputError("No file provided", field="file")

    if len(content) > settings.MAX_UPLOAD_BYTES:
        raise InvalidInputError("File too large (max 10 MiB)", field="file")

    if mime_type not in settings.ALLOWED_MIME_TYPES:
        raise InvalidInputError("File type not allowed", field="file")


def upload_file(
    db: Session,
    storage: StorageAdapter,
    user_id,
    content: bytes,
    original_name: Optional[str],
    mime_type: Optional[str],
    task_id=None,
) -> File:
    mime_type = normalize_mime_type(mime_type)
    validate_upload(content, original_name, mime_type)

    if task_id is not None:
        get_owned_task(db, task_id, user_id)

    stored = storage.put(content, original_name, mime_type, user_id)

    try:
        file = File(
            user_id=user_id,
            task_id=task_id,
            filename=stored.generated_name,
            original_name=original_name,
            mime_type=mime_type,
            size=len(content),
            storage_locator=stored.locator,
        )
        db.add(file)
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Metadata write failed, removing stored object")
        try:
            storage.delete(stored.locator)
        except AppError:
            logger.exception("Compensating delete failed, object left orphaned: %s", stored.locator)
        raise

    db.refresh(file)
    logger.info("User %s uploaded file %s (%d bytes)", user_id, file.id, file.size)
    return file


def list_files(db: Session, user_id, task_id=None) -> List[File]:
    query = db.query(File).options(selectinload(File.task)).filter(File.user_id == user_id)
    if task_id is not None:
        query = query.filter(File.task_id == task_id)
    return query.order_by(File.created_at.desc(), File.id.desc()).all()


def delete_file(db: Session, storage: StorageAdapter, file: File) -> None:
    # object first: if storage fails the record stays and the delete can be retried
    storage.delete(file.storage_locator)
    db.delete(file)
    db.commit()
    logger.info("Deleted file %s", file.id)


def attach_file(db: Session, file_id, task_id, user_id) -> File:
    """Associate a file with a task, replacing any previous association."""
    try:
        file = get_owned_file(db, file_id, user_id)
        task = get_owned_task(db, task_id, user_id)
    except NotFoundError:
        # one message for both, so the caller cannot tell which side is missing
        raise NotFoundError("File or task not found")

    file.task_id = task.id
    db.commit()
    db.refresh(file)
    return file


def detach_file(db: Session, file_id, user_id) -> File:
    file = get_owned_file(db, file_id, user_id)
    if file.task_id is not None:
        file.task_id = None
        db.commit()
        db.refresh(file)
    return file


def get_download_link(storage: StorageAdapter, file: File, ttl: Optional[int] = None) -> dict:
    ttl = ttl or storage.default_ttl
    return {
        "download_url": storage.sign(file.storage_locator, "read", ttl),
        "filename": file.original_name,
        "mime_type": file.mime_type,
        "size": file.size,
        "expires_in": ttl,
    }


def read_local_file(db: Session, storage: StorageAdapter, token: str, user_id):
    """Resolve a local download token to (file, content) for its owner.

    Applies the same owner conjunction as the signed-link path: the token only
    names the object, the caller must still own it.
    """
    if not isinstance(storage, LocalStorage):
        raise NotFoundError("File not found")

    locator = storage.verify(token, "read")
    if locator is None:
        raise NotFoundError("File not found")

    file = get_owned_file_by_locator(db, locator, user_id)
    return file, storage.get(file.storage_locator)
