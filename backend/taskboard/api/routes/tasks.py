"""Task CRUD routes, scoped to the authenticated user."""

from core.auth_helper import CurrentUser
from core.logging import logger
from db.session import get_db
from fastapi import APIRouter, Depends, Query, status
from models.tasks import TaskPriority, TaskStatus
from schemas.common import ApiResponse
from schemas.tasks import (
    SortField,
    SortOrder,
    TaskCreate,
    TaskDetail,
    TaskList,
    TaskRead,
    TaskStats,
    TaskStatsData,
    TaskUpdate,
)
from services import tasks as task_service
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("/stats", response_model=ApiResponse[TaskStatsData])
async def get_task_stats(
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    """Return per-status task counts for the current user."""

    stats = await task_service.task_stats(db, current_user.id)
    return ApiResponse(data=TaskStatsData(stats=TaskStats.model_validate(stats)))


@router.get("", response_model=ApiResponse[TaskList])
async def list_tasks(
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
    task_status: TaskStatus | None = Query(None, alias="status"),
    priority: TaskPriority | None = Query(None),
    search: str | None = Query(None),
    sort_by: SortField = Query("createdAt", alias="sortBy"),
    order: SortOrder = Query("desc"),
):
    """List the current user's tasks.

    Args:
        current_user: Authenticated user making the request.
        db: Async database session (dependency-injected).
        task_status: Optional status filter.
        priority: Optional priority filter.
        search: Optional substring matched against title and description.
        sort_by: Field to sort by.
        order: Sort direction.

    Returns:
        ApiResponse[TaskList]: Matching tasks and their count.
    """
    logger.debug(
        "Listing tasks user_id={} status={} priority={} search={!r} sort={} {}",
        current_user.id,
        task_status,
        priority,
        search,
        sort_by,
        order,
    )
    tasks = await task_service.list_tasks(
        db,
        current_user.id,
        status=task_status.value if task_status else None,
        priority=priority.value if priority else None,
        search=search,
        sort_by=sort_by,
        order=order,
    )
    return ApiResponse(
        data=TaskList(
            tasks=[TaskRead.model_validate(task) for task in tasks], count=len(tasks)
        )
    )


@router.get("/{task_id}", response_model=ApiResponse[TaskDetail])
async def get_task(
    task_id: str,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    """Return one task owned by the current user.

    Raises:
        NotFoundError: 404 if the id is malformed, missing or owned by
            someone else.
    """
    task = await task_service.get_task(
        db, current_user.id, task_service.parse_task_id(task_id)
    )
    return ApiResponse(data=TaskDetail(task=TaskRead.model_validate(task)))


@router.post(
    "", response_model=ApiResponse[TaskDetail], status_code=status.HTTP_201_CREATED
)
async def create_task(
    payload: TaskCreate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    """Create a task for the current user.

    Args:
        payload: Validated task fields; omitted ones take their defaults.
        current_user: Authenticated user who will own the task.
        db: Async database session (dependency-injected).

    Returns:
        ApiResponse[TaskDetail]: The stored task.
    """
    task = await task_service.create_task(db, current_user.id, payload.model_dump())
    return ApiResponse(
        message="Task created successfully",
        data=TaskDetail(task=TaskRead.model_validate(task)),
    )


@router.put("/{task_id}", response_model=ApiResponse[TaskDetail])
async def update_task(
    task_id: str,
    payload: TaskUpdate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    """Apply the fields present in the body to the task.

    Args:
        task_id: Id of the task, as given in the path.
        payload: Fields to change; keys absent from the body are left alone.
        current_user: Authenticated user who must own the task.
        db: Async database session (dependency-injected).

    Returns:
        ApiResponse[TaskDetail]: The updated task.

    Raises:
        NotFoundError: 404 if the id does not name one of the user's tasks.
    """
    changes = payload.model_dump(exclude_unset=True)
    for required in ("status", "priority"):
        if changes.get(required) is None:
            changes.pop(required, None)
    task = await task_service.update_task(
        db, current_user.id, task_service.parse_task_id(task_id), changes
    )
    return ApiResponse(
        message="Task updated successfully",
        data=TaskDetail(task=TaskRead.model_validate(task)),
    )


@router.delete("/{task_id}", response_model=ApiResponse[None])
async def delete_task(
    task_id: str,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    """Delete one of the current user's tasks.

    Args:
        task_id: Id of the task, as given in the path.
        current_user: Authenticated user who must own the task.
        db: Async database session (dependency-injected).

    Returns:
        ApiResponse[None]: Confirmation message only.

    Raises:
        NotFoundError: 404 if the id does not name one of the user's tasks.
    """
    await task_service.delete_task(
        db, current_user.id, task_service.parse_task_id(task_id)
    )
    return ApiResponse(message="Task deleted successfully")
