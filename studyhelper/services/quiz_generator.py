import logging
from typing import Optional

from studyhelper.core.constants import QuestionKind, normalize_question_kind
from studyhelper.core.llm import GenerativeClient
from studyhelper.core.parsers import parse_model_json
from studyhelper.schemas.quiz import Quiz, quiz_schema_for
from studyhelper.services.prompt_builder import build_quiz_request

logger = logging.getLogger(__name__)


class QuizGenerator:
    """Turns a topic into a validated quiz via the generative service."""
    
    def __init__(self, client: GenerativeClient):
        self.client = client
    
    async def generate_quiz(
        self,
        topic: str,
        description: str,
        question_kind: QuestionKind,
        extra_context: Optional[str] = None,
    ) -> Quiz:
        """
        Generate one quiz.
        
        Raises ConfigurationError, TransportError or ContractViolation (all
        GenerationError). Malformed output is never retried here.
        """
        kind = normalize_question_kind(question_kind)
        request = build_quiz_request(topic, description, kind, extra_context)
        
        logger.info(f"🎯 Generating {kind.value} quiz for topic: {topic}")
        
        raw_text = await self.client.complete(request)
        quiz = parse_model_json(raw_text, quiz_schema_for(kind))
        
        logger.info(f"✅ Generated quiz with {len(quiz.questions)} questions")
        return quiz
