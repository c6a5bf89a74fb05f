"""Ownership-scoped lookups.

Every lookup filters on the id AND the requester in the same query, so a row
owned by someone else is indistinguishable from a missing one.
"""

from sqlalchemy.orm import Session

from taskdock.core.errors import NotFoundError
from taskdock.models.file import File
from taskdock.models.task import Task

NOT_FOUND_MESSAGES = {
    Task: "Task not found",
    File: "File not found",
}


def resolve_owned(db: Session, kind, entity_id, requester_id):
    entity = db.query(kind).filter(
        kind.id == entity_id,
        kind.user_id == requester_id
    ).first()

    if entity is None:
        raise NotFoundError(NOT_FOUND_MESSAGES.get(kind, "Resource not found"))

    return entity


def get_owned_task(db: Session, task_id, requester_id) -> Task:
    return resolve_owned(db, Task, task_id, requester_id)


def get_owned_file(db: Session, file_id, requester_id) -> File:
    return resolve_owned(db, File, file_id, requester_id)


def get_owned_file_by_locator(db: Session, locator: str, requester_id) -> File:
    file = db.query(File).filter(
        File.storage_locator == locator,
        File.user_id == requester_id
    ).first()

    if file is None:
        raise NotFoundError(NOT_FOUND_MESSAGES[File])

    return file
