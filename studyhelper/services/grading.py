"""
Grading engine.

Multiple-choice attempts are graded locally and deterministically.
Short-answer attempts are graded by the generative service against each
question's marking criteria; the engine never invents a score.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal

from studyhelper.core.constants import NO_ANSWER_SENTINEL
from studyhelper.core.exceptions import ContractViolation
from studyhelper.core.llm import GenerativeClient
from studyhelper.core.parsers import parse_model_json
from studyhelper.schemas.grading import (
    AnswerSet,
    McqGradeReport,
    McqQuestionResult,
    ShortAnswerGradeReport,
)
from studyhelper.schemas.quiz import MultipleChoiceQuiz, Quiz, ShortAnswerQuiz
from studyhelper.services.prompt_builder import build_grading_request, student_answer_text

logger = logging.getLogger(__name__)


def round_percentage(correct: int, total: int) -> int:
    """round(correct / total * 100), halves rounded up."""
    if total <= 0:
        return 0
    value = Decimal(correct * 100) / Decimal(total)
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def grade_multiple_choice(quiz: MultipleChoiceQuiz, answers: AnswerSet) -> McqGradeReport:
    """Grade a multiple-choice attempt. Unanswered questions count as wrong."""
    results = []
    for question in quiz.questions:
        chosen = answers.get(question.id)
        # bool is an int subclass; True must not stand in for option 1
        if isinstance(chosen, bool) or not isinstance(chosen, int):
            chosen = None
        results.append(
            McqQuestionResult(
                question_id=question.id,
                is_correct=chosen == question.correct_option_index,
                chosen_index=chosen,
                correct_index=question.correct_option_index,
                explanation=question.explanation,
            )
        )
    
    correct = sum(1 for r in results if r.is_correct)
    total = len(results)
    return McqGradeReport(
        correct_count=correct,
        total_count=total,
        percentage=round_percentage(correct, total),
        per_question=results,
    )


class ShortAnswerGrader:
    """Remote rubric-based grading of short-answer attempts."""
    
    def __init__(self, client: GenerativeClient):
        self.client = client
    
    async def grade(self, quiz: ShortAnswerQuiz, answers: AnswerSet) -> ShortAnswerGradeReport:
        logger.info(f"🎓 Grading {len(quiz.questions)} short answers")
        
        request = build_grading_request(quiz, answers)
        raw_text = await self.client.complete(request)
        report = parse_model_json(raw_text, ShortAnswerGradeReport)
        self._check_against_quiz(report, quiz, answers, raw_text)
        
        logger.info(f"✅ Grading complete: {report.total_score}/{report.total_possible}")
        return report
    
    def _check_against_quiz(
        self,
        report: ShortAnswerGradeReport,
        quiz: ShortAnswerQuiz,
        answers: AnswerSet,
        raw_text: str,
    ) -> None:
        reported_ids = [r.question_id for r in report.per_question]
        if reported_ids != quiz.question_ids:
            raise ContractViolation(
                f"Grading covers questions {reported_ids}, expected {quiz.question_ids}",
                raw_text=raw_text,
            )
        
        for result, question in zip(report.per_question, quiz.questions):
            if result.total_marks != question.marks:
                raise ContractViolation(
                    f"Question {question.id}: totalMarks {result.total_marks}, "
                    f"expected {question.marks}",
                    raw_text=raw_text,
                )
            # an unanswered question cannot earn marks
            if (
                student_answer_text(answers, question.id) == NO_ANSWER_SENTINEL
                and result.marks_awarded != 0
            ):
                raise ContractViolation(
                    f"Question {question.id}: {result.marks_awarded} marks awarded "
                    "for a missing answer",
                    raw_text=raw_text,
                )


class GradingEngine:
    """Picks the grading strategy from the quiz variant."""
    
    def __init__(self, short_answer_grader: ShortAnswerGrader):
        self.short_answer_grader = short_answer_grader
    
    async def grade(self, quiz: Quiz, answers: AnswerSet):
        if isinstance(quiz, MultipleChoiceQuiz):
            return grade_multiple_choice(quiz, answers)
        if isinstance(quiz, ShortAnswerQuiz):
            return await self.short_answer_grader.grade(quiz, answers)
        raise TypeError(f"Unsupported quiz type: {type(quiz).__name__}")
