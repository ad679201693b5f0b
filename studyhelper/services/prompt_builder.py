"""
Prompt construction for quiz generation and short-answer grading.

Both builders return a GenerationRequest whose prompt pins the exact JSON
shape the model has to answer with.
"""

from typing import Optional

from studyhelper.core.config import settings
from studyhelper.core.constants import (
    MCQ_OPTION_COUNT,
    MCQ_QUESTION_COUNT,
    NO_ANSWER_SENTINEL,
    SHORT_ANSWER_MARKS,
    SHORT_ANSWER_QUESTION_COUNT,
    QuestionKind,
)
from studyhelper.core.prompt_manager import load_prompt
from studyhelper.schemas.grading import AnswerSet
from studyhelper.schemas.quiz import GenerationRequest, QuizRequest, ShortAnswerQuiz


def _context_block(extra_context: Optional[str]) -> str:
    if extra_context and extra_context.strip():
        return f"\n\nAdditional Context from Student:\n{extra_context.strip()}"
    return ""


def build_quiz_prompt(request: QuizRequest) -> str:
    """Render the generation prompt for ``request``."""
    common = {
        "TOPIC": request.topic,
        "DESCRIPTION": request.description,
        "EXTRA_CONTEXT": _context_block(request.extra_context),
    }
    
    if request.question_kind is QuestionKind.MULTIPLE_CHOICE:
        return load_prompt(
            "quiz_multiple_choice",
            QUESTION_COUNT=MCQ_QUESTION_COUNT,
            OPTION_COUNT=MCQ_OPTION_COUNT,
            MAX_OPTION_INDEX_RANGE=f"0-{MCQ_OPTION_COUNT - 1}",
            **common,
        )
    if request.question_kind is QuestionKind.SHORT_ANSWER:
        return load_prompt(
            "quiz_short_answer",
            QUESTION_COUNT=SHORT_ANSWER_QUESTION_COUNT,
            MARKS=SHORT_ANSWER_MARKS,
            **common,
        )
    raise ValueError(f"Unsupported question kind: {request.question_kind!r}")


def build_quiz_request(
    topic: str,
    description: str,
    question_kind: QuestionKind,
    extra_context: Optional[str] = None,
) -> GenerationRequest:
    """Build the generation call for one quiz."""
    quiz_request = QuizRequest(
        topic=topic,
        description=description or "",
        question_kind=question_kind,
        extra_context=extra_context,
    )
    return GenerationRequest(
        model=settings.GROQ_MODEL,
        prompt=build_quiz_prompt(quiz_request),
        temperature=settings.QUIZ_TEMPERATURE,
        max_tokens=settings.QUIZ_MAX_TOKENS,
    )


def student_answer_text(answers: AnswerSet, question_id: int) -> str:
    """The student's answer as embedded in the grading prompt."""
    answer = answers.get(question_id)
    if answer is None:
        return NO_ANSWER_SENTINEL
    text = str(answer).strip()
    return text if text else NO_ANSWER_SENTINEL


def _question_block(position: int, question, answer_text: str) -> str:
    criteria = "\n".join(
        f"{i}. {criterion}" for i, criterion in enumerate(question.marking_criteria, 1)
    )
    return (
        f"\nQuestion {position} (id {question.id}, {question.marks} marks): {question.prompt}\n"
        f"\nSAMPLE ANSWER (for reference): {question.sample_answer}\n"
        f"\nMARKING CRITERIA (all must be addressed):\n{criteria}\n"
        f"\nSTUDENT'S ANSWER: {answer_text}\n"
        f"\nGRADE THIS ANSWER STRICTLY:\n"
        f"- If the answer is empty, nonsense, random text, or completely wrong → 0 marks\n"
        f"- If the answer doesn't address the marking criteria → maximum 1 mark\n"
        f"- Check if the student's answer covers each marking criterion\n"
        f"- Be very strict - don't award marks for vague or incomplete answers\n"
    )


def build_grading_prompt(quiz: ShortAnswerQuiz, answers: AnswerSet) -> str:
    blocks = [
        _question_block(position, question, student_answer_text(answers, question.id))
        for position, question in enumerate(quiz.questions, 1)
    ]
    return load_prompt(
        "grade_short_answer",
        NO_ANSWER=NO_ANSWER_SENTINEL,
        QUESTIONS="".join(blocks),
        TOTAL_POSSIBLE=quiz.total_marks,
    )


def build_grading_request(quiz: ShortAnswerQuiz, answers: AnswerSet) -> GenerationRequest:
    """Build the rubric-grading call for a short-answer attempt."""
    return GenerationRequest(
        model=settings.GROQ_MODEL,
        prompt=build_grading_prompt(quiz, answers),
        temperature=settings.GRADING_TEMPERATURE,
        max_tokens=settings.GRADING_MAX_TOKENS,
    )
