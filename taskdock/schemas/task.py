"""Pydantic schemas for task request/response validation."""

import math
import uuid
from datetime import datetime, timezone
from typing import Annotated, Optional, List

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator

from taskdock.models.task import TaskStatus, TaskPriority


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    # aware datetimes are stored as naive UTC; naive ones are kept as given
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


DueDate = Annotated[Optional[datetime], AfterValidator(_naive_utc)]


class TaskCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=2000)
    status: TaskStatus = TaskStatus.PENDING.value
    priority: TaskPriority = TaskPriority.MEDIUM.value
    due_date: DueDate = None

    model_config = ConfigDict(use_enum_values=True)


class TaskUpdate(BaseModel):
    """Partial update: omitted fields are preserved, null clears due_date and description."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=2000)
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: DueDate = None

    model_config = ConfigDict(use_enum_values=True)

    @model_validator(mode="after")
    def reject_null_required_fields(self):
        for field in ("title", "status", "priority"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self


class TaskFileResponse(BaseModel):
    """Files projection embedded in a task. Never exposes the storage locator."""

    id: uuid.UUID
    filename: str
    original_name: str
    mime_type: str
    size: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TaskResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    title: str
    description: Optional[str]
    status: TaskStatus
    priority: TaskPriority
    due_date: Optional[datetime]
    created_at: datetime
    updated_at: datetime
    files: List[TaskFileResponse] = []

    model_config = ConfigDict(from_attributes=True)


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, pages=math.ceil(total / limit))


class TaskListResponse(BaseModel):
    tasks: List[TaskResponse]
    pagination: Pagination


class TaskStats(BaseModel):
    total: int
    pending: int
    in_progress: int
    completed: int
    overdue: int
