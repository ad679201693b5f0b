"""Answer sets and grade reports."""

import math
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, Field, model_validator

from studyhelper.core.constants import QuestionKind

AnswerValue = Union[int, str]

# question id -> chosen option index (MCQ) or free text (short answer)
AnswerSet = Dict[int, AnswerValue]


class McqQuestionResult(BaseModel):
    question_id: int
    is_correct: bool
    chosen_index: Optional[int] = None
    correct_index: int
    explanation: str


class McqGradeReport(BaseModel):
    """Locally computed result of a multiple-choice attempt."""
    kind: Literal[QuestionKind.MULTIPLE_CHOICE] = QuestionKind.MULTIPLE_CHOICE
    correct_count: int = Field(..., ge=0)
    total_count: int = Field(..., ge=0)
    percentage: int = Field(..., ge=0, le=100)
    per_question: List[McqQuestionResult]


class ShortAnswerQuestionResult(BaseModel):
    question_id: int = Field(..., validation_alias=AliasChoices("questionId", "question_id"))
    marks_awarded: float = Field(
        ..., ge=0, validation_alias=AliasChoices("marksAwarded", "marks_awarded")
    )
    total_marks: int = Field(
        ..., gt=0, validation_alias=AliasChoices("totalMarks", "total_marks")
    )
    feedback: str
    
    @model_validator(mode="after")
    def _check_bounds(self):
        if self.marks_awarded > self.total_marks:
            raise ValueError(
                f"Question {self.question_id}: marksAwarded {self.marks_awarded} "
                f"exceeds totalMarks {self.total_marks}"
            )
        return self


class ShortAnswerGradeReport(BaseModel):
    """Rubric-based result of a short-answer attempt, as reported by the grader."""
    kind: Literal[QuestionKind.SHORT_ANSWER] = QuestionKind.SHORT_ANSWER
    per_question: List[ShortAnswerQuestionResult] = Field(
        ..., min_length=1, validation_alias=AliasChoices("results", "per_question")
    )
    total_score: float = Field(
        ..., ge=0, validation_alias=AliasChoices("totalScore", "total_score")
    )
    total_possible: int = Field(
        ..., gt=0, validation_alias=AliasChoices("totalPossible", "total_possible")
    )
    overall_feedback: str = Field(
        ..., validation_alias=AliasChoices("overallFeedback", "overall_feedback")
    )
    
    @model_validator(mode="after")
    def _check_totals(self):
        awarded = sum(r.marks_awarded for r in self.per_question)
        if not math.isclose(awarded, self.total_score, abs_tol=1e-6):
            raise ValueError(
                f"totalScore {self.total_score} does not equal the sum of marksAwarded {awarded}"
            )
        possible = sum(r.total_marks for r in self.per_question)
        if possible != self.total_possible:
            raise ValueError(
                f"totalPossible {self.total_possible} does not equal the sum of totalMarks {possible}"
            )
        return self


GradeReport = Annotated[
    Union[McqGradeReport, ShortAnswerGradeReport], Field(discriminator="kind")
]
