"""Owner-scoped task queries and mutations.

Every function takes the owner's id and filters on it, so a task that
belongs to someone else behaves exactly like a task that does not exist.
"""

from core.errors import NotFoundError
from core.logging import logger
from models.tasks import MAX_TASK_ID, Task, TaskStatus
from sqlalchemy import case, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

PRIORITY_RANK = case(
    {"low": 0, "medium": 1, "high": 2},
    value=Task.priority,
    else_=1,
)

SORT_COLUMNS = {
    "createdAt": Task.created_at,
    "updatedAt": Task.updated_at,
    "title": Task.title,
    "dueDate": Task.due_date,
    "priority": PRIORITY_RANK,
}


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


async def list_tasks(
    db: AsyncSession,
    user_id: int,
    *,
    status: str | None = None,
    priority: str | None = None,
    search: str | None = None,
    sort_by: str = "createdAt",
    order: str = "desc",
) -> list[Task]:
    """Return the user's tasks matching all given filters.

    Args:
        db: Async database session.
        user_id: Owner whose tasks are listed.
        status: Optional exact status filter.
        priority: Optional exact priority filter.
        search: Optional case-insensitive substring of title or description.
        sort_by: One of the keys of ``SORT_COLUMNS``.
        order: ``asc`` or ``desc``.

    Returns:
        list[Task]: Matching tasks in the requested order.
    """
    stmt = select(Task).filter(Task.user_id == user_id)
    if status:
        stmt = stmt.filter(Task.status == status)
    if priority:
        stmt = stmt.filter(Task.priority == priority)
    if search and search.strip():
        pattern = f"%{_escape_like(search.strip())}%"
        stmt = stmt.filter(
            or_(
                Task.title.ilike(pattern, escape="\\"),
                Task.description.ilike(pattern, escape="\\"),
            )
        )

    column = SORT_COLUMNS[sort_by]
    primary = column.asc() if order == "asc" else column.desc()
    stmt = stmt.order_by(primary, Task.id.asc() if order == "asc" else Task.id.desc())

    result = await db.execute(stmt)
    return list(result.scalars().all())


def parse_task_id(raw: str) -> int:
    """Turn a path segment into a task id.

    Anything that cannot name a stored task (not a number, zero, negative or
    past the primary key's range) is reported the same way as a missing task.

    Raises:
        NotFoundError: If ``raw`` is not a usable task id.
    """
    digits = raw.lstrip("0")
    if (
        not (raw.isascii() and raw.isdigit())
        or len(digits) > len(str(MAX_TASK_ID))
        or not 0 < int(digits or "0") <= MAX_TASK_ID
    ):
        logger.debug("Unresolvable task id {!r}", raw[:32])
        raise NotFoundError("Task not found")
    return int(digits)


async def get_task(db: AsyncSession, user_id: int, task_id: int) -> Task:
    """Return the task if it exists and belongs to ``user_id``.

    Raises:
        NotFoundError: Otherwise.
    """
    if not 0 < task_id <= MAX_TASK_ID:
        raise NotFoundError("Task not found")
    result = await db.execute(
        select(Task).filter(Task.id == task_id, Task.user_id == user_id)
    )
    task = result.scalars().first()
    if task is None:
        logger.debug("Task not found task_id={} user_id={}", task_id, user_id)
        raise NotFoundError("Task not found")
    return task


async def create_task(db: AsyncSession, user_id: int, fields: dict) -> Task:
    """Insert a task owned by ``user_id``.

    Args:
        db: Async database session.
        user_id: Owner of the new task.
        fields: Validated column values; omitted ones take the model defaults.

    Returns:
        Task: The stored task with its id and timestamps.
    """
    task = Task(user_id=user_id, **fields)
    db.add(task)
    await db.commit()
    logger.info("Created task id={} user_id={}", task.id, user_id)
    return task


async def update_task(db: AsyncSession, user_id: int, task_id: int, changes: dict) -> Task:
    """Apply ``changes`` to one of the user's tasks.

    Args:
        db: Async database session.
        user_id: Owner the task must belong to.
        task_id: Task to modify.
        changes: Column values to overwrite; absent keys are left alone.

    Returns:
        Task: The updated task.

    Raises:
        NotFoundError: If the task is not the user's.
    """
    task = await get_task(db, user_id, task_id)
    for field, value in changes.items():
        setattr(task, field, value)
    await db.commit()
    logger.info("Updated task id={} fields={}", task.id, sorted(changes))
    return task


async def delete_task(db: AsyncSession, user_id: int, task_id: int) -> None:
    """Delete one of the user's tasks.

    Raises:
        NotFoundError: If the task is not the user's.
    """
    task = await get_task(db, user_id, task_id)
    await db.delete(task)
    await db.commit()
    logger.info("Deleted task id={} user_id={}", task_id, user_id)


async def task_stats(db: AsyncSession, user_id: int) -> dict[str, int]:
    """Count the user's tasks per status.

    Returns:
        dict[str, int]: ``total`` plus one entry per :class:`TaskStatus`
            value, zero when the user has no task in that status.
    """
    result = await db.execute(
        select(Task.status, func.count(Task.id))
        .filter(Task.user_id == user_id)
        .group_by(Task.status)
    )
    stats = {member.value: 0 for member in TaskStatus}
    for task_status, count in result.all():
        stats[task_status] = count
    stats["total"] = sum(stats.values())
    return stats
