from studyhelper.core.config import settings
from studyhelper.core.constants import NO_ANSWER_SENTINEL, QuestionKind
from studyhelper.core.prompt_manager import PromptManager
from studyhelper.schemas import ShortAnswerQuiz
from studyhelper.services.prompt_builder import (
    build_grading_request,
    build_quiz_request,
    student_answer_text,
)
from tests.helpers import short_payload


def test_mcq_request_pins_shape():
    request = build_quiz_request("Binary Trees", "Traversals", QuestionKind.MULTIPLE_CHOICE)
    
    assert request.model == settings.GROQ_MODEL
    assert request.temperature == settings.QUIZ_TEMPERATURE
    assert request.max_tokens == settings.QUIZ_MAX_TOKENS
    assert "Topic: Binary Trees" in request.prompt
    assert "Description: Traversals" in request.prompt
    assert "exactly 15 MCQ questions" in request.prompt
    assert "exactly 4 options" in request.prompt
    assert '"correctAnswer": 0' in request.prompt
    assert "(0-3)" in request.prompt
    assert "{{" not in request.prompt


def test_short_answer_request_pins_shape():
    request = build_quiz_request("Binary Trees", "", QuestionKind.SHORT_ANSWER)
    
    assert "exactly 3 short answer questions" in request.prompt
    assert "exactly 5 marks" in request.prompt
    assert '"sampleAnswer"' in request.prompt
    assert '"markingCriteria"' in request.prompt
    assert '"marks": 5' in request.prompt


def test_extra_context_only_when_present():
    with_context = build_quiz_request(
        "Graphs", "", QuestionKind.MULTIPLE_CHOICE, "  Focus on Dijkstra  "
    )
    blank = build_quiz_request("Graphs", "", QuestionKind.MULTIPLE_CHOICE, "   ")
    
    assert "Additional Context from Student:\nFocus on Dijkstra" in with_context.prompt
    assert "Additional Context" not in blank.prompt


def test_student_answer_text_uses_sentinel():
    answers = {1: "A tree", 2: "   ", 3: ""}
    
    assert student_answer_text(answers, 1) == "A tree"
    assert student_answer_text(answers, 2) == NO_ANSWER_SENTINEL
    assert student_answer_text(answers, 3) == NO_ANSWER_SENTINEL
    assert student_answer_text(answers, 4) == NO_ANSWER_SENTINEL


def test_grading_request_embeds_every_question():
    quiz = ShortAnswerQuiz.model_validate(short_payload())
    request = build_grading_request(quiz, {1: "Concept one is {{TOPIC}} related", 3: ""})
    
    assert request.temperature == settings.GRADING_TEMPERATURE
    assert request.max_tokens == settings.GRADING_MAX_TOKENS
    for question in quiz.questions:
        assert question.prompt in request.prompt
        assert question.sample_answer in request.prompt
    assert "1. Defines concept 1" in request.prompt
    assert "2. Gives an example" in request.prompt
    assert "STUDENT'S ANSWER: Concept one is {{TOPIC}} related" in request.prompt
    assert request.prompt.count(f"STUDENT'S ANSWER: {NO_ANSWER_SENTINEL}") == 2
    assert '"totalPossible": 15' in request.prompt
    assert "STRICT" in request.prompt


def test_prompt_manager_substitution(tmp_path):
    (tmp_path / "greeting.txt").write_text("Hello {{NAME}}, {{MISSING}}", encoding="utf-8")
    manager = PromptManager(tmp_path)
    
    assert manager.list_templates() == ["greeting"]
    assert manager.load_prompt("greeting", NAME="{{MISSING}}") == "Hello {{MISSING}}, {{MISSING}}"


def test_prompt_manager_reload(tmp_path):
    template = tmp_path / "t.txt"
    template.write_text("one", encoding="utf-8")
    manager = PromptManager(tmp_path)
    assert manager.load_prompt("t") == "one"
    
    template.write_text("two", encoding="utf-8")
    assert manager.load_prompt("t") == "one"
    manager.reload("t")
    assert manager.load_prompt("t") == "two"
