"""Schemas package."""

from .task import Task, UserProfile, AggregationResult
from .quiz import (
    QuizRequest,
    GenerationRequest,
    MultipleChoiceQuestion,
    ShortAnswerQuestion,
    MultipleChoiceQuiz,
    ShortAnswerQuiz,
    Quiz,
    quiz_schema_for,
)
from .grading import (
    AnswerSet,
    AnswerValue,
    McqQuestionResult,
    McqGradeReport,
    ShortAnswerQuestionResult,
    ShortAnswerGradeReport,
    GradeReport,
)
from .resource import Resource
from .session import QuizState, QuizSessionSnapshot
from .requests import AggregateTasksRequest, ConfigureQuizRequest, AnswerRequest

__all__ = [
    # Tasks
    "Task",
    "UserProfile",
    "AggregationResult",
    # Quiz
    "QuizRequest",
    "GenerationRequest",
    "MultipleChoiceQuestion",
    "ShortAnswerQuestion",
    "MultipleChoiceQuiz",
    "ShortAnswerQuiz",
    "Quiz",
    "quiz_schema_for",
    # Grading
    "AnswerSet",
    "AnswerValue",
    "McqQuestionResult",
    "McqGradeReport",
    "ShortAnswerQuestionResult",
    "ShortAnswerGradeReport",
    "GradeReport",
    # Resources
    "Resource",
    # Session
    "QuizState",
    "QuizSessionSnapshot",
    # Requests
    "AggregateTasksRequest",
    "ConfigureQuizRequest",
    "AnswerRequest",
]
