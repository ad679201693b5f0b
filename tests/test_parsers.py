import json

import pytest

from studyhelper.core.exceptions import ContractViolation
from studyhelper.core.parsers import extract_json_object, parse_model_json
from studyhelper.schemas import MultipleChoiceQuiz, ShortAnswerQuiz
from tests.helpers import as_model_text, mcq_payload, short_payload


class TestExtractJsonObject:
    
    def test_plain_object(self):
        assert extract_json_object('{"a": 1}') == '{"a": 1}'
    
    def test_prose_before_and_after(self):
        text = 'Here you go: {"a": {"b": 2}} hope that helps {"c": 3}'
        assert extract_json_object(text) == '{"a": {"b": 2}}'
    
    def test_braces_inside_strings_are_ignored(self):
        text = 'x {"q": "what does } mean? and \\" {", "n": 1} y'
        assert json.loads(extract_json_object(text)) == {"q": 'what does } mean? and " {', "n": 1}
    
    def test_markdown_fence(self):
        text = '```json\n{"a": [1, 2]}\n```'
        assert extract_json_object(text) == '{"a": [1, 2]}'
    
    def test_apostrophes_in_leading_prose(self):
        text = "Here's the quiz \"you asked for\": {\"a\": 1}"
        assert extract_json_object(text) == '{"a": 1}'
    
    def test_no_object(self):
        assert extract_json_object("Sorry, I can't help with that.") is None
    
    def test_unbalanced_object(self):
        assert extract_json_object('{"questions": [{"id": 1}') is None
    
    def test_empty(self):
        assert extract_json_object("") is None


class TestParseModelJson:
    
    def test_valid_mcq_with_prose(self):
        quiz = parse_model_json(as_model_text(mcq_payload()), MultipleChoiceQuiz)
        
        assert len(quiz.questions) == 15
        assert all(len(q.options) == 4 for q in quiz.questions)
        assert quiz.questions[0].prompt == "Question 1?"
        assert quiz.questions[0].correct_option_index == 0
    
    def test_valid_short_answer(self):
        quiz = parse_model_json(json.dumps(short_payload()), ShortAnswerQuiz)
        
        assert quiz.total_marks == 15
        assert quiz.questions[1].marking_criteria == ["Defines concept 2", "Gives an example"]
    
    def test_plain_prose_is_contract_violation(self):
        with pytest.raises(ContractViolation) as exc_info:
            parse_model_json("I could not generate a quiz about that topic.", MultipleChoiceQuiz)
        assert exc_info.value.raw_text.startswith("I could not")
    
    @pytest.mark.parametrize("text", ["", "   \n"])
    def test_empty_response(self, text):
        with pytest.raises(ContractViolation):
            parse_model_json(text, MultipleChoiceQuiz)
    
    def test_invalid_json(self):
        with pytest.raises(ContractViolation):
            parse_model_json("{'questions': []}", MultipleChoiceQuiz)
    
    def test_wrong_question_count_is_rejected(self):
        with pytest.raises(ContractViolation):
            parse_model_json(json.dumps(mcq_payload(count=14)), MultipleChoiceQuiz)
    
    def test_missing_field_is_rejected(self):
        payload = mcq_payload()
        del payload["questions"][3]["explanation"]
        with pytest.raises(ContractViolation):
            parse_model_json(json.dumps(payload), MultipleChoiceQuiz)
    
    def test_three_options_rejected(self):
        payload = mcq_payload()
        payload["questions"][0]["options"] = ["a", "b", "c"]
        with pytest.raises(ContractViolation):
            parse_model_json(json.dumps(payload), MultipleChoiceQuiz)
    
    @pytest.mark.parametrize("bad", [4, -1, "0", "A", True])
    def test_correct_answer_must_be_index(self, bad):
        payload = mcq_payload()
        payload["questions"][0]["correctAnswer"] = bad
        with pytest.raises(ContractViolation):
            parse_model_json(json.dumps(payload), MultipleChoiceQuiz)
    
    def test_duplicate_ids_rejected(self):
        payload = mcq_payload()
        payload["questions"][1]["id"] = 1
        with pytest.raises(ContractViolation):
            parse_model_json(json.dumps(payload), MultipleChoiceQuiz)
    
    def test_short_answer_marks_must_be_five(self):
        with pytest.raises(ContractViolation):
            parse_model_json(json.dumps(short_payload(marks=10)), ShortAnswerQuiz)
    
    def test_short_answer_needs_criteria(self):
        payload = short_payload()
        payload["questions"][0]["markingCriteria"] = []
        with pytest.raises(ContractViolation):
            parse_model_json(json.dumps(payload), ShortAnswerQuiz)
    
    def test_mcq_payload_is_not_a_short_answer_quiz(self):
        with pytest.raises(ContractViolation):
            parse_model_json(json.dumps(mcq_payload()), ShortAnswerQuiz)
