"""Request schemas."""

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from studyhelper.core.constants import QuestionKind, normalize_question_kind
from .grading import AnswerValue
from .task import UserProfile


class AggregateTasksRequest(BaseModel):
    """Either explicit group ids or a profile to resolve them from."""
    group_ids: Optional[List[str]] = Field(None, description="Groups to collect tasks from")
    profile: Optional[UserProfile] = Field(None, description="Profile used to pick the groups")
    
    @model_validator(mode="after")
    def _one_source(self):
        if self.group_ids is None and self.profile is None:
            raise ValueError("Provide either 'group_ids' or 'profile'")
        return self
    
    class Config:
        json_schema_extra = {
            "example": {"group_ids": ["cs101-a", "math202-b"]}
        }


class ConfigureQuizRequest(BaseModel):
    question_kind: QuestionKind = Field(..., description="'mcq' or 'short'")
    extra_context: Optional[str] = Field(
        None, max_length=5000, description="Optional notes from the student"
    )
    
    @field_validator("question_kind", mode="before")
    @classmethod
    def _normalize_kind(cls, value):
        return normalize_question_kind(value)


class AnswerRequest(BaseModel):
    question_id: int
    response: AnswerValue = Field(
        ..., description="Option index for multiple choice, text for short answer"
    )
