"""
Filtering, sorting and statistics over task collections

Pure functions: the same code shapes the guest collection and refines rows
returned by the remote service, so both modes produce identical views.
"""

from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional

from todoflow.config.constants import (
    OVERDUE_SCORE_PENALTY,
    PRIORITY_ORDER,
    UNCATEGORIZED_COLOR,
    UNCATEGORIZED_LABEL,
)
from todoflow.models.query import (
    CategoryStats,
    Projection,
    QuerySpec,
    SortKey,
    SortOrder,
    StatsSnapshot,
    StatusFilter,
)
from todoflow.models.task import Priority, Task
from todoflow.utils.date_utils import is_past, sort_timestamp, utc_now


def is_overdue(task: Task, now: Optional[datetime] = None) -> bool:
    """Active task whose due date has passed"""
    return not task.completed and is_past(task.due_date, now)


def matches_search(task: Task, search: str) -> bool:
    """Case-insensitive substring match on title or description"""
    if not search:
        return True
    needle = search.lower()
    if needle in task.title.lower():
        return True
    return bool(task.description) and needle in task.description.lower()


def matches_status(task: Task, status: StatusFilter, now: Optional[datetime] = None) -> bool:
    """Check a task against a status filter"""
    if status == StatusFilter.ACTIVE:
        return not task.completed
    if status == StatusFilter.COMPLETED:
        return task.completed
    if status == StatusFilter.HIGH_PRIORITY:
        return task.priority == Priority.HIGH and not task.completed
    if status == StatusFilter.OVERDUE:
        return is_overdue(task, now)
    return True


def filter_tasks(
    tasks: Iterable[Task],
    query: QuerySpec,
    now: Optional[datetime] = None,
) -> List[Task]:
    """
    Apply search, then status filter

    Args:
        tasks: Collection to filter
        query: Search and status
        now: Reference time for overdue checks (defaults to current UTC)

    Returns:
        Matching tasks in input order
    """
    now = now or utc_now()
    return [
        task for task in tasks
        if matches_search(task, query.search) and matches_status(task, query.status, now)
    ]


def _sort_key(sort_by: SortKey) -> Callable[[Task], Any]:
    if sort_by == SortKey.PRIORITY:
        return lambda task: PRIORITY_ORDER[task.priority.value]
    if sort_by == SortKey.TEXT:
        return lambda task: task.title.lower()
    # created_at, updated_at, due_date
    field = sort_by.value
    return lambda task: sort_timestamp(getattr(task, field))


def sort_tasks(
    tasks: Iterable[Task],
    sort_by: SortKey = SortKey.CREATED_AT,
    sort_order: SortOrder = SortOrder.DESC,
) -> List[Task]:
    """
    Sort tasks by one key

    Priority compares as high=3, medium=2, low=1; text compares titles
    case-insensitively; a missing date sorts as the epoch.
    """
    return sorted(tasks, key=_sort_key(sort_by), reverse=sort_order == SortOrder.DESC)


def compute_stats(tasks: Iterable[Task], now: Optional[datetime] = None) -> StatsSnapshot:
    """
    Aggregate the whole collection

    Args:
        tasks: Full, unfiltered collection
        now: Reference time for overdue checks (defaults to current UTC)

    Returns:
        Stats snapshot including per-category breakdown and productivity score
    """
    now = now or utc_now()
    stats = StatsSnapshot()
    categories: Dict[str, CategoryStats] = {}

    for task in tasks:
        stats.total += 1
        if task.completed:
            stats.completed += 1
        else:
            stats.active += 1
            if task.priority == Priority.HIGH:
                stats.high_priority += 1
            if is_past(task.due_date, now):
                stats.overdue += 1

        name = task.category_name or task.category or UNCATEGORIZED_LABEL
        group = categories.get(name)
        if group is None:
            group = CategoryStats(name=name, color=task.category_color or UNCATEGORIZED_COLOR)
            categories[name] = group
        group.count += 1
        if task.completed:
            group.completed_count += 1

    stats.categories = list(categories.values())
    stats.productivity_score = productivity_score(stats)
    return stats


def productivity_score(stats: StatsSnapshot) -> int:
    """Completion rate in percent minus a penalty per overdue task, clamped to 0..100"""
    if not stats.total:
        return 0
    completion_rate = round(stats.completed / stats.total * 100)
    return max(0, min(100, completion_rate - stats.overdue * OVERDUE_SCORE_PENALTY))


def apply_query(
    tasks: Iterable[Task],
    query: QuerySpec,
    now: Optional[datetime] = None,
) -> Projection:
    """
    Build the visible list and the stats of the full collection

    Args:
        tasks: Full collection
        query: Search, status and sort
        now: Reference time for overdue checks (defaults to current UTC)

    Returns:
        Projection with filtered/sorted tasks and unfiltered stats
    """
    now = now or utc_now()
    collection = list(tasks)
    view = sort_tasks(filter_tasks(collection, query, now), query.sort_by, query.sort_order)
    return Projection(tasks=view, stats=compute_stats(collection, now))
