"""
Quiz session state machine.

    IDLE -> GENERATING -> ACTIVE -> GRADING -> SUBMITTED -> IDLE

Every change of quiz, answers or report goes through the transition methods
below. Each attempt carries a token; selecting another task or closing the
session bumps it, and results that come back under an old token are dropped.
"""

import logging
from typing import List, Optional
from uuid import uuid4

from studyhelper.core.constants import (
    DEFAULT_QUESTION_KIND,
    MCQ_OPTION_COUNT,
    QuestionKind,
    normalize_question_kind,
)
from studyhelper.core.exceptions import GenerationError, InvalidTransitionError
from studyhelper.schemas.grading import AnswerSet, AnswerValue, GradeReport
from studyhelper.schemas.quiz import MultipleChoiceQuiz, Quiz
from studyhelper.schemas.resource import Resource
from studyhelper.schemas.session import QuizSessionSnapshot, QuizState
from studyhelper.schemas.task import Task
from studyhelper.services.grading import GradingEngine
from studyhelper.services.quiz_generator import QuizGenerator
from studyhelper.services.resource_matcher import (
    ResourceProvider,
    match_resources,
    parse_resources,
)

logger = logging.getLogger(__name__)

# Fields kept from the student until the attempt is submitted
ANSWER_KEY_FIELDS = ("correct_option_index", "explanation", "sample_answer", "marking_criteria")


class QuizSession:
    """One student's quiz attempt for the currently selected task."""
    
    def __init__(
        self,
        generator: QuizGenerator,
        grading_engine: GradingEngine,
        resource_provider: Optional[ResourceProvider] = None,
        session_id: Optional[str] = None,
    ):
        self.session_id = session_id or uuid4().hex
        self.generator = generator
        self.grading_engine = grading_engine
        self.resource_provider = resource_provider
        
        self._state = QuizState.IDLE
        self._selected_task: Optional[Task] = None
        self._question_kind = DEFAULT_QUESTION_KIND
        self._extra_context: Optional[str] = None
        self._quiz: Optional[Quiz] = None
        self._answers: AnswerSet = {}
        self._report: Optional[GradeReport] = None
        self._error: Optional[str] = None
        self._resources: List[Resource] = []
        self._token = 0
        self._closed = False
    
    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------
    
    @property
    def state(self) -> QuizState:
        return self._state
    
    @property
    def selected_task(self) -> Optional[Task]:
        return self._selected_task
    
    @property
    def question_kind(self) -> QuestionKind:
        return self._question_kind
    
    @property
    def extra_context(self) -> Optional[str]:
        return self._extra_context
    
    @property
    def quiz(self) -> Optional[Quiz]:
        return self._quiz
    
    @property
    def answers(self) -> AnswerSet:
        return dict(self._answers)
    
    @property
    def report(self) -> Optional[GradeReport]:
        return self._report
    
    @property
    def error(self) -> Optional[str]:
        return self._error
    
    @property
    def resources(self) -> List[Resource]:
        return list(self._resources)
    
    @property
    def closed(self) -> bool:
        return self._closed
    
    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    
    async def select_task(self, task: Task) -> None:
        """Switch to ``task``: hard reset to IDLE, then refresh the resource sidebar."""
        self._ensure_open()
        token = self._reset_for_new_task()
        self._selected_task = task
        logger.info(
            f"Selected task {task.id} ({task.title!r})", extra={"session_id": self.session_id}
        )
        await self._load_resources(task, token)
    
    def configure(self, question_kind, extra_context: Optional[str] = None) -> None:
        """Choose the question kind and optional notes for the next generation."""
        self._ensure_open()
        self._require(QuizState.IDLE, "configure")
        self._question_kind = normalize_question_kind(question_kind)
        self._extra_context = extra_context.strip() if extra_context and extra_context.strip() else None
    
    async def generate(self) -> Optional[Quiz]:
        """
        IDLE -> GENERATING -> ACTIVE.
        
        Returns None when a generation is already in flight or when the result
        arrived for a superseded attempt. On failure the session goes back to
        IDLE with task and setup intact, and the error is re-raised.
        """
        self._ensure_open()
        if self._state is QuizState.GENERATING:
            logger.info("Generation already in progress, ignoring request")
            return None
        self._require(QuizState.IDLE, "generate")
        if self._selected_task is None:
            raise InvalidTransitionError("Select a task before generating a quiz", self._state.value)
        
        task = self._selected_task
        token = self._token
        self._state = QuizState.GENERATING
        self._error = None
        
        try:
            quiz = await self.generator.generate_quiz(
                task.title, task.description, self._question_kind, self._extra_context
            )
        except GenerationError as e:
            if self._is_stale(token):
                logger.info(f"Discarding failed generation for superseded attempt: {e}")
                return None
            self._state = QuizState.IDLE
            self._error = str(e)
            logger.warning(
                f"Quiz generation failed ({type(e).__name__}): {e}",
                extra={"session_id": self.session_id},
            )
            raise
        except BaseException:
            if not self._is_stale(token):
                self._state = QuizState.IDLE
            raise
        
        if self._is_stale(token):
            logger.info("Discarding quiz generated for superseded attempt")
            return None
        
        self._quiz = quiz
        self._answers = {}
        self._report = None
        self._state = QuizState.ACTIVE
        return quiz
    
    def answer(self, question_id: int, response: AnswerValue) -> None:
        """Record (or replace) the student's response to one question."""
        self._ensure_open()
        self._require(QuizState.ACTIVE, "answer")
        
        if question_id not in self._quiz.question_ids:
            raise InvalidTransitionError(
                f"Question {question_id} is not part of the current quiz", self._state.value
            )
        
        if isinstance(self._quiz, MultipleChoiceQuiz):
            if isinstance(response, bool) or not isinstance(response, int):
                raise ValueError("Multiple-choice answers must be an option index")
            if not 0 <= response < MCQ_OPTION_COUNT:
                raise ValueError(f"Option index must be between 0 and {MCQ_OPTION_COUNT - 1}")
        elif not isinstance(response, str):
            raise ValueError("Short answers must be text")
        
        self._answers[question_id] = response
    
    async def submit(self) -> Optional[GradeReport]:
        """
        ACTIVE -> GRADING -> SUBMITTED.
        
        Unanswered questions are graded as missing. A failed grading call puts
        the session back to ACTIVE with the answers kept.
        """
        self._ensure_open()
        if self._state is QuizState.GRADING:
            logger.info("Grading already in progress, ignoring request")
            return None
        self._require(QuizState.ACTIVE, "submit")
        
        token = self._token
        self._state = QuizState.GRADING
        self._error = None
        
        try:
            report = await self.grading_engine.grade(self._quiz, dict(self._answers))
        except GenerationError as e:
            if self._is_stale(token):
                logger.info(f"Discarding failed grading for superseded attempt: {e}")
                return None
            self._state = QuizState.ACTIVE
            self._error = str(e)
            logger.warning(
                f"Grading failed ({type(e).__name__}): {e}",
                extra={"session_id": self.session_id},
            )
            raise
        except BaseException:
            if not self._is_stale(token):
                self._state = QuizState.ACTIVE
            raise
        
        if self._is_stale(token):
            logger.info("Discarding grade report for superseded attempt")
            return None
        
        self._report = report
        self._state = QuizState.SUBMITTED
        return report
    
    def reset(self) -> None:
        """SUBMITTED -> IDLE ("generate new quiz"). Task and setup are kept."""
        self._ensure_open()
        self._require(QuizState.SUBMITTED, "reset")
        self._quiz = None
        self._answers = {}
        self._report = None
        self._error = None
        self._state = QuizState.IDLE
    
    def close(self) -> None:
        """Invalidate any in-flight call; the session accepts no further actions."""
        self._token += 1
        self._closed = True
    
    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------
    
    def snapshot(self) -> QuizSessionSnapshot:
        quiz_view = None
        if self._quiz is not None:
            quiz_view = self._quiz.model_dump(mode="json")
            if self._state is not QuizState.SUBMITTED:
                for question in quiz_view["questions"]:
                    for field in ANSWER_KEY_FIELDS:
                        question.pop(field, None)
        
        return QuizSessionSnapshot(
            session_id=self.session_id,
            state=self._state,
            selected_task=self._selected_task,
            question_kind=self._question_kind,
            extra_context=self._extra_context,
            quiz=quiz_view,
            answers=dict(self._answers),
            report=self._report,
            error=self._error,
            resources=list(self._resources),
        )
    
    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    
    def _reset_for_new_task(self) -> int:
        self._token += 1
        self._state = QuizState.IDLE
        self._quiz = None
        self._answers = {}
        self._report = None
        self._error = None
        self._extra_context = None
        self._resources = []
        return self._token
    
    async def _load_resources(self, task: Task, token: int) -> None:
        if self.resource_provider is None:
            return
        
        try:
            records = await self.resource_provider.get_resources()
        except Exception as e:
            logger.error(f"Error fetching resources: {e}", extra={"session_id": self.session_id})
            records = []
        
        if self._is_stale(token):
            logger.debug("Discarding resources loaded for a previous task")
            return
        
        self._resources = match_resources(task, parse_resources(records))
        logger.info(f"📚 {len(self._resources)} resources for task {task.id}")
    
    def _is_stale(self, token: int) -> bool:
        return self._closed or token != self._token
    
    def _require(self, expected: QuizState, action: str) -> None:
        if self._state is not expected:
            raise InvalidTransitionError(
                f"Cannot {action} while {self._state.value}", self._state.value
            )
    
    def _ensure_open(self) -> None:
        if self._closed:
            raise InvalidTransitionError("Quiz session is closed", self._state.value)
