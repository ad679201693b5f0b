"""Task and aggregation schemas."""

from datetime import datetime
from typing import List

from pydantic import BaseModel, Field, field_validator


class Task(BaseModel):
    """Upcoming piece of coursework. ``days_left`` is derived at aggregation time."""
    id: str
    title: str = Field(..., min_length=1)
    description: str = ""
    due_at: datetime
    group_id: str
    days_left: int = Field(..., ge=0)
    
    @field_validator("id", "group_id", mode="before")
    @classmethod
    def _coerce_id(cls, value):
        return str(value) if isinstance(value, int) else value
    
    @field_validator("title", mode="before")
    @classmethod
    def _strip_title(cls, value):
        return value.strip() if isinstance(value, str) else value
    
    @field_validator("description", mode="before")
    @classmethod
    def _none_description(cls, value):
        return "" if value is None else value


class UserProfile(BaseModel):
    """The slice of a user's profile needed to pick their groups."""
    uid: str
    role: str = "student"
    enrolled_groups: List[str] = Field(default_factory=list)
    managed_groups: List[str] = Field(default_factory=list)


class AggregationResult(BaseModel):
    """Outcome of a task aggregation run."""
    tasks: List[Task] = Field(default_factory=list)
    no_eligible_groups: bool = Field(
        False, description="True when the caller supplied no group ids at all"
    )
    failed_groups: List[str] = Field(
        default_factory=list, description="Groups whose task fetch failed and were skipped"
    )
