"""
Quiz-related Pydantic schemas.

Field names are snake_case; ``validation_alias`` accepts the camelCase keys
the generative service is told to emit.
"""

from typing import Annotated, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from studyhelper.core.constants import (
    MCQ_OPTION_COUNT,
    MCQ_QUESTION_COUNT,
    SHORT_ANSWER_MARKS,
    SHORT_ANSWER_QUESTION_COUNT,
    QuestionKind,
)

NonEmptyStr = Annotated[str, Field(min_length=1)]


class QuizRequest(BaseModel):
    """Everything needed to ask for one quiz. Built once per generation attempt."""
    model_config = ConfigDict(frozen=True)
    
    topic: str = Field(..., min_length=1)
    description: str = ""
    question_kind: QuestionKind
    extra_context: Optional[str] = None


class GenerationRequest(BaseModel):
    """A fully specified call to the generative text service."""
    model_config = ConfigDict(frozen=True)
    
    model: str
    prompt: str
    temperature: float = Field(..., ge=0.0, le=2.0)
    max_tokens: int = Field(..., gt=0)


class MultipleChoiceQuestion(BaseModel):
    """Single-choice question with exactly four options."""
    id: int
    prompt: NonEmptyStr = Field(..., validation_alias=AliasChoices("question", "prompt"))
    options: List[NonEmptyStr] = Field(
        ..., min_length=MCQ_OPTION_COUNT, max_length=MCQ_OPTION_COUNT
    )
    correct_option_index: int = Field(
        ...,
        ge=0,
        le=MCQ_OPTION_COUNT - 1,
        strict=True,
        validation_alias=AliasChoices("correctAnswer", "correct_option_index"),
    )
    explanation: str


class ShortAnswerQuestion(BaseModel):
    """Free-text question graded against a sample answer and marking criteria."""
    id: int
    prompt: NonEmptyStr = Field(..., validation_alias=AliasChoices("question", "prompt"))
    marks: int = Field(..., gt=0)
    sample_answer: NonEmptyStr = Field(
        ..., validation_alias=AliasChoices("sampleAnswer", "sample_answer")
    )
    marking_criteria: List[NonEmptyStr] = Field(
        ..., min_length=1, validation_alias=AliasChoices("markingCriteria", "marking_criteria")
    )


def _ensure_unique_ids(questions) -> None:
    ids = [q.id for q in questions]
    if len(ids) != len(set(ids)):
        raise ValueError(f"Question ids must be unique, got {ids}")


class MultipleChoiceQuiz(BaseModel):
    """Complete multiple-choice quiz."""
    kind: Literal[QuestionKind.MULTIPLE_CHOICE] = QuestionKind.MULTIPLE_CHOICE
    questions: List[MultipleChoiceQuestion] = Field(
        ..., min_length=MCQ_QUESTION_COUNT, max_length=MCQ_QUESTION_COUNT
    )
    
    @model_validator(mode="after")
    def _check_ids(self):
        _ensure_unique_ids(self.questions)
        return self
    
    @property
    def question_ids(self) -> List[int]:
        return [q.id for q in self.questions]


class ShortAnswerQuiz(BaseModel):
    """Complete short-answer quiz."""
    kind: Literal[QuestionKind.SHORT_ANSWER] = QuestionKind.SHORT_ANSWER
    questions: List[ShortAnswerQuestion] = Field(
        ..., min_length=SHORT_ANSWER_QUESTION_COUNT, max_length=SHORT_ANSWER_QUESTION_COUNT
    )
    
    @model_validator(mode="after")
    def _check_questions(self):
        _ensure_unique_ids(self.questions)
        for q in self.questions:
            if q.marks != SHORT_ANSWER_MARKS:
                raise ValueError(
                    f"Question {q.id} is worth {q.marks} marks, expected {SHORT_ANSWER_MARKS}"
                )
        return self
    
    @property
    def question_ids(self) -> List[int]:
        return [q.id for q in self.questions]
    
    @property
    def total_marks(self) -> int:
        return sum(q.marks for q in self.questions)


Quiz = Annotated[Union[MultipleChoiceQuiz, ShortAnswerQuiz], Field(discriminator="kind")]


def quiz_schema_for(kind: QuestionKind) -> type:
    """Return the quiz model that a response for ``kind`` must validate against."""
    if kind is QuestionKind.MULTIPLE_CHOICE:
        return MultipleChoiceQuiz
    if kind is QuestionKind.SHORT_ANSWER:
        return ShortAnswerQuiz
    raise ValueError(f"Unsupported question kind: {kind!r}")
