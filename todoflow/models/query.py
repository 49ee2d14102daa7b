"""
Query, statistics and projection models
"""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field

from todoflow.models.task import Priority, Task


class StatusFilter(str, Enum):
    """Status filter applied to the visible list"""
    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"
    HIGH_PRIORITY = "high-priority"
    OVERDUE = "overdue"


class SortKey(str, Enum):
    """Sort keys supported by both backends"""
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"
    DUE_DATE = "due_date"
    PRIORITY = "priority"
    TEXT = "text"


class SortOrder(str, Enum):
    """Sort direction"""
    ASC = "asc"
    DESC = "desc"


class QuerySpec(BaseModel):
    """Search, filter and sort state of the visible list"""
    search: str = ""
    status: StatusFilter = StatusFilter.ALL
    sort_by: SortKey = SortKey.CREATED_AT
    sort_order: SortOrder = SortOrder.DESC


class RemoteFilter(BaseModel):
    """Query parameters understood by the remote service"""
    category: Optional[str] = None
    priority: Optional[Priority] = None
    completed: Optional[bool] = None
    search: Optional[str] = None
    sort_by: Optional[SortKey] = None
    sort_order: SortOrder = SortOrder.ASC

    @classmethod
    def from_query(cls, query: QuerySpec) -> "RemoteFilter":
        """
        Translate the visible-list query into remote parameters
        
        Overdue has no remote equivalent beyond "not completed"; the due-date
        check is applied client-side afterwards.
        """
        remote = cls(
            search=query.search or None,
            sort_by=query.sort_by,
            sort_order=query.sort_order,
        )
        if query.status in (StatusFilter.ACTIVE, StatusFilter.OVERDUE):
            remote.completed = False
        elif query.status == StatusFilter.COMPLETED:
            remote.completed = True
        elif query.status == StatusFilter.HIGH_PRIORITY:
            remote.priority = Priority.HIGH
            remote.completed = False
        return remote


class CategoryStats(BaseModel):
    """Per-category breakdown"""
    name: str
    color: str
    count: int = 0
    completed_count: int = 0


class StatsSnapshot(BaseModel):
    """Aggregates over the whole collection"""
    total: int = 0
    active: int = 0
    completed: int = 0
    high_priority: int = 0
    overdue: int = 0
    categories: List[CategoryStats] = Field(default_factory=list)
    productivity_score: int = 0


class Projection(BaseModel):
    """Visible list together with the stats it was computed alongside"""
    tasks: List[Task] = Field(default_factory=list)
    stats: StatsSnapshot = Field(default_factory=StatsSnapshot)


class BulkAction(str, Enum):
    """Actions applied to a selection of tasks"""
    DELETE = "delete"
    COMPLETE = "complete"
    UNCOMPLETE = "uncomplete"
