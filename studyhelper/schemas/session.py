"""Quiz session state and the snapshot handed to the UI."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from studyhelper.core.constants import QuestionKind
from .grading import AnswerValue, GradeReport
from .resource import Resource
from .task import Task


class QuizState(str, Enum):
    IDLE = "idle"
    GENERATING = "generating"
    ACTIVE = "active"
    GRADING = "grading"
    SUBMITTED = "submitted"


class QuizSessionSnapshot(BaseModel):
    """Read-only view of a quiz session."""
    session_id: Optional[str] = None
    state: QuizState
    selected_task: Optional[Task] = None
    question_kind: QuestionKind
    extra_context: Optional[str] = None
    quiz: Optional[Dict[str, Any]] = Field(
        None, description="Quiz as shown to the student; answer keys appear once submitted"
    )
    answers: Dict[int, AnswerValue] = Field(default_factory=dict)
    report: Optional[GradeReport] = None
    error: Optional[str] = None
    resources: List[Resource] = Field(default_factory=list)
