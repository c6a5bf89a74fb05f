import uuid
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from taskdock.core.database import get_db
from taskdock.core.deps import get_current_user
from taskdock.models.task import TaskPriority, TaskStatus
from taskdock.models.user import User
from taskdock.schemas.task import (
    Pagination,
    TaskCreate,
    TaskListResponse,
    TaskResponse,
    TaskStats,
    TaskUpdate,
)
from taskdock.services import task_service
from taskdock.services.ownership import get_owned_task
from taskdock.services.task_service import TaskFilters

router = APIRouter(prefix="/tasks", tags=["tasks"])

SortKey = Literal["createdAt", "updatedAt", "dueDate", "title"]
SortOrder = Literal["asc", "desc"]


@router.get("", response_model=TaskListResponse)
def list_tasks(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    status_filter: Optional[TaskStatus] = Query(None, alias="status"),
    priority_filter: Optional[TaskPriority] = Query(None, alias="priority"),
    search: Optional[str] = Query(None, max_length=255),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort_by: SortKey = Query("createdAt", alias="sortBy"),
    sort_order: SortOrder = Query("desc", alias="sortOrder"),
):
    filters = TaskFilters(
        status=status_filter.value if status_filter else None,
        priority=priority_filter.value if priority_filter else None,
        search=search,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    tasks, total = task_service.list_tasks(db, current_user.id, filters)

    return TaskListResponse(
        tasks=[TaskResponse.model_validate(t) for t in tasks],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/stats/overview", response_model=TaskStats)
def stats_overview(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return task_service.get_task_stats(db, current_user.id)


@router.get("/{task_id}", response_model=TaskResponse)
def get_task(
    task_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return get_owned_task(db, task_id, current_user.id)


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(
    task_data: TaskCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return task_service.create_task(db, current_user.id, task_data)


@router.put("/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: uuid.UUID,
    task_data: TaskUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    task = get_owned_task(db, task_id, current_user.id)
    return task_service.update_task(db, task, task_data)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    task_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    task = get_owned_task(db, task_id, current_user.id)
    task_service.delete_task(db, task)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
