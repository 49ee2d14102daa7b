"""
Task model
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from todoflow.utils.date_utils import ensure_aware, utc_now
from todoflow.utils.error_handler import ValidationError


class Priority(str, Enum):
    """Task priority"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Recurrence(str, Enum):
    """Recurrence rule for repeating tasks"""
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


def _clean_title(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Title cannot be empty")
    return value


def _unique_tags(value: Optional[List[str]]) -> List[str]:
    # Keep first occurrence, case-sensitive
    if value is None:
        return []
    return list(dict.fromkeys(value))


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    return ensure_aware(value)


class Task(BaseModel):
    """Task model"""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    # Rows written by the web client use "text" for the title
    title: str = Field(validation_alias=AliasChoices("title", "text"))
    description: Optional[str] = None
    completed: bool = False
    priority: Priority = Priority.MEDIUM
    category: Optional[str] = None
    category_name: Optional[str] = None
    category_color: Optional[str] = None
    due_date: Optional[datetime] = None
    reminder_date: Optional[datetime] = None
    tags: List[str] = Field(default_factory=list)
    position: int = 0
    recurrence: Recurrence = Recurrence.NONE
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    clean_title = field_validator("title")(_clean_title)
    unique_tags = field_validator("tags", mode="before")(_unique_tags)
    aware_datetimes = field_validator("due_date", "reminder_date", "created_at", "updated_at")(_aware)

    @field_validator("recurrence", mode="before")
    @classmethod
    def _empty_recurrence(cls, value: Any) -> Any:
        return Recurrence.NONE if value is None else value

    @model_validator(mode="after")
    def _check_timestamps(self) -> "Task":
        if self.updated_at < self.created_at:
            raise ValueError("updated_at cannot be earlier than created_at")
        return self

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Task):
            return self.id == other.id
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.id)

    def merged(self, changes: Dict[str, Any], updated_at: datetime) -> "Task":
        """
        Shallow-merge changes over this record and re-stamp it

        Args:
            changes: Field values to overwrite
            updated_at: New mutation stamp

        Returns:
            New validated Task (id and created_at are kept)
        """
        data = self.model_dump()
        data.update(changes)
        data["id"] = self.id
        data["created_at"] = self.created_at
        data["updated_at"] = updated_at
        return Task.model_validate(data)


class TaskCreate(BaseModel):
    """Task creation model"""

    model_config = ConfigDict(extra="forbid")

    title: str
    description: Optional[str] = None
    priority: Priority = Priority.MEDIUM
    category: Optional[str] = None
    category_name: Optional[str] = None
    category_color: Optional[str] = None
    due_date: Optional[datetime] = None
    reminder_date: Optional[datetime] = None
    tags: List[str] = Field(default_factory=list)
    position: int = 0
    recurrence: Recurrence = Recurrence.NONE

    clean_title = field_validator("title")(_clean_title)
    unique_tags = field_validator("tags", mode="before")(_unique_tags)
    aware_datetimes = field_validator("due_date", "reminder_date")(_aware)


class TaskUpdate(BaseModel):
    """Partial task update model; only fields that were set are applied"""

    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = None
    description: Optional[str] = None
    completed: Optional[bool] = None
    priority: Optional[Priority] = None
    category: Optional[str] = None
    category_name: Optional[str] = None
    category_color: Optional[str] = None
    due_date: Optional[datetime] = None
    reminder_date: Optional[datetime] = None
    tags: Optional[List[str]] = None
    position: Optional[int] = None
    recurrence: Optional[Recurrence] = None

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            raise ValueError("Title cannot be empty")
        return _clean_title(value)

    @field_validator("completed", "priority", "position")
    @classmethod
    def _not_null(cls, value: Any, info: ValidationInfo) -> Any:
        # Optional only so the field can be left out
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value

    @field_validator("tags", mode="before")
    @classmethod
    def _tags(cls, value: Optional[List[str]]) -> List[str]:
        if value is None:
            raise ValueError("tags cannot be null")
        return _unique_tags(value)

    aware_datetimes = field_validator("due_date", "reminder_date")(_aware)

    def changes(self) -> Dict[str, Any]:
        """Fields explicitly set by the caller"""
        return self.model_dump(exclude_unset=True)


def describe_errors(error: PydanticValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ())) or "input"
        message = item.get("msg", "invalid value").removeprefix("Value error, ")
        parts.append(f"{location}: {message}")
    return "; ".join(parts)


def parse_create(data: Dict[str, Any]) -> TaskCreate:
    """
    Validate add-task input

    Raises:
        ValidationError: Blank title or malformed fields
    """
    try:
        return TaskCreate.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(describe_errors(e)) from e


def parse_update(data: Dict[str, Any]) -> TaskUpdate:
    """
    Validate partial-update input

    Raises:
        ValidationError: Blank title, immutable or unknown fields
    """
    try:
        return TaskUpdate.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(describe_errors(e)) from e
