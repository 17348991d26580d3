"""
Pydantic Schemas - Data Validation Models

Defines the records that flow through one dispatch run:
- TaskRecord: one unit of work to post as a Notion page
- DispatchResult: outcome of submitting one TaskRecord
- BatchSummary: aggregate of one run

Wire format uses camelCase (taskId, pageId, totalTasks, ...); both camelCase and
snake_case are accepted on input.

Usage:
    from inbox_cron.utils.schemas import TaskRecord

    task = TaskRecord(title="Daily Code Review", priority="High")
    payload = task.model_dump(by_alias=True, exclude_none=True)
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class Priority(str, Enum):
    """Task priority. The page backend may ignore it."""

    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        use_enum_values=True,
    )

    def to_wire(self) -> dict:
        """Serialize to the camelCase JSON shape, leaving out absent fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class TaskRecord(_WireModel):
    """One unit of work to submit to the page-creation API.

    Validates:
    - title: non-empty after stripping whitespace
    - priority: one of High, Medium, Low
    - tags: duplicates collapsed, first-seen order kept
    """

    title: str = Field(..., min_length=1, description="Display name and correlation key")
    description: Optional[str] = Field(default=None, description="Free-form notes")
    priority: Optional[Priority] = Field(default=None, description="High, Medium or Low")
    status: Optional[str] = Field(default=None, description="Backend default when absent")
    tags: Optional[tuple[str, ...]] = Field(default=None, description="Short labels")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("title must be a non-empty string")
        return v

    @field_validator("tags")
    @classmethod
    def dedupe_tags(cls, v: Optional[tuple[str, ...]]) -> Optional[tuple[str, ...]]:
        if v is None:
            return None
        return tuple(dict.fromkeys(tag for tag in v if tag))


class DispatchResult(_WireModel):
    """Outcome of submitting one TaskRecord.

    task_id is the originating record's title; it is a correlation label,
    not a unique key.
    """

    success: bool
    task_id: str
    page_id: Optional[str] = None
    error: Optional[str] = None

    @model_validator(mode="after")
    def check_outcome_fields(self) -> "DispatchResult":
        if self.success and self.error is not None:
            raise ValueError("successful result cannot carry an error")
        if not self.success and self.page_id is not None:
            raise ValueError("failed result cannot carry a page id")
        return self

    @classmethod
    def ok(cls, task_id: str, page_id: str) -> "DispatchResult":
        return cls(success=True, task_id=task_id, page_id=page_id)

    @classmethod
    def failed(cls, task_id: str, error: str) -> "DispatchResult":
        return cls(success=False, task_id=task_id, error=error)


class BatchSummary(_WireModel):
    """Aggregate of one dispatch run.

    Invariant: success_count + failure_count == total_tasks == len(results).
    """

    timestamp: str
    total_tasks: int = Field(..., ge=0)
    success_count: int = Field(..., ge=0)
    failure_count: int = Field(..., ge=0)
    results: tuple[DispatchResult, ...] = ()

    @model_validator(mode="after")
    def check_counts(self) -> "BatchSummary":
        if self.success_count + self.failure_count != self.total_tasks:
            raise ValueError("success_count + failure_count must equal total_tasks")
        if len(self.results) != self.total_tasks:
            raise ValueError("results must hold one entry per task")
        return self

    @classmethod
    def from_results(cls, timestamp: str, results: list[DispatchResult]) -> "BatchSummary":
        success_count = len([r for r in results if r.success])
        failure_count = len([r for r in results if not r.success])
        return cls(
            timestamp=timestamp,
            total_tasks=len(results),
            success_count=success_count,
            failure_count=failure_count,
            results=tuple(results),
        )
