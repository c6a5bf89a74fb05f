"""Task service: listing, statistics and lifecycle of tasks."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from taskdock.models.file import File
from taskdock.models.task import Task, TaskStatus
from taskdock.schemas.task import TaskCreate, TaskStats, TaskUpdate

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "createdAt": Task.created_at,
    "updatedAt": Task.updated_at,
    "dueDate": Task.due_date,
    "title": Task.title,
}

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


@dataclass
class TaskFilters:
    status: Optional[str] = None
    priority: Optional[str] = None
    search: Optional[str] = None
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    sort_by: str = "createdAt"
    sort_order: str = "desc"

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def _filtered_query(db: Session, user_id, filters: TaskFilters):
    query = db.query(Task).filter(Task.user_id == user_id)

    if filters.status:
        query = query.filter(Task.status == filters.status)

    if filters.priority:
        query = query.filter(Task.priority == filters.priority)

    # case sensitivity is whatever LIKE does on the backing database
    term = (filters.search or "").strip()
    if term:
        query = query.filter(or_(
            Task.title.contains(term, autoescape=True),
            Task.description.contains(term, autoescape=True)
        ))

    return query


def list_tasks(db: Session, user_id, filters: TaskFilters) -> Tuple[List[Task], int]:
    """Return one page of the user's tasks and the total matching the same filters."""
    if filters.page < 1 or not 1 <= filters.limit <= MAX_LIMIT:
        raise ValueError("page must be >= 1 and limit within 1..100")

    column = SORT_COLUMNS.get(filters.sort_by)
    if column is None:
        raise ValueError(f"Unsupported sort key: {filters.sort_by}")

    query = _filtered_query(db, user_id, filters)
    total = query.count()

    if filters.sort_order == "asc":
        ordering = (column.asc(), Task.id.asc())
    else:
        ordering = (column.desc(), Task.id.desc())

    items = query.order_by(*ordering).offset(filters.offset).limit(filters.limit).all()

    logger.debug(
        "Listed tasks user=%s search=%r status=%s priority=%s -> %d/%d",
        user_id, filters.search, filters.status, filters.priority, len(items), total
    )
    return items, total


def create_task(db: Session, user_id, data: TaskCreate) -> Task:
    task = Task(user_id=user_id, **data.model_dump())
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


def update_task(db: Session, task: Task, data: TaskUpdate) -> Task:
    # unset fields are kept, explicit nulls are written
    update_data = data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(task, field, value)

    db.commit()
    db.refresh(task)
    return task


def delete_task(db: Session, task: Task) -> None:
    """Delete a task, detaching its files first in the same transaction."""
    task_id = task.id
    try:
        detached = db.query(File).filter(File.task_id == task_id).update(
            {File.task_id: None}, synchronize_session="fetch"
        )
        db.delete(task)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("Deleted task %s, detached %d file(s)", task_id, detached)


def get_task_stats(db: Session, user_id, now: Optional[datetime] = None) -> TaskStats:
    now = now or datetime.utcnow()
    base = db.query(Task).filter(Task.user_id == user_id)

    return TaskStats(
        total=base.count(),
        pending=base.filter(Task.status == TaskStatus.PENDING.value).count(),
        in_progress=base.filter(Task.status == TaskStatus.IN_PROGRESS.value).count(),
        completed=base.filter(Task.status == TaskStatus.COMPLETED.value).count(),
        overdue=base.filter(
            Task.status.in_([TaskStatus.PENDING.value, TaskStatus.IN_PROGRESS.value]),
            Task.due_date.isnot(None),
            Task.due_date < now
        ).count(),
    )
