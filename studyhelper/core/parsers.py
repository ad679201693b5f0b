# parsers.py
"""
Output parsing for generative-service responses.

Everything that turns raw model text into a typed object goes through
``parse_model_json``. The heuristic used to locate the JSON payload lives in
``extract_json_object`` and can be replaced without touching callers.
"""

import json
import logging
from typing import Optional

from langchain_core.output_parsers import BaseOutputParser
from pydantic import BaseModel, ValidationError

from studyhelper.core.exceptions import ContractViolation

logger = logging.getLogger(__name__)


def extract_json_object(text: str) -> Optional[str]:
    """
    Return the first balanced ``{...}`` span in ``text``, or None.
    
    Braces inside JSON string literals are ignored once an object has been
    opened, so prose before or after the payload (or a markdown fence around
    it) does not matter.
    """
    if not text:
        return None
    
    depth = 0
    start = -1
    in_str = False
    esc = False
    
    for i, ch in enumerate(text):
        if depth > 0:
            if esc:
                esc = False
                continue
            if ch == "\\" and in_str:
                esc = True
                continue
            if ch == '"':
                in_str = not in_str
                continue
            if in_str:
                continue
        
        if ch == "{":
            if depth == 0:
                start = i
            depth += 1
        elif ch == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    
    return None


class ModelJsonParser(BaseOutputParser):
    """
    Parser for JSON payloads embedded in model output.
    
    Validates the payload against ``pydantic_object``. Nothing is repaired or
    partially accepted: any failure is a ContractViolation.
    """
    
    pydantic_object: type[BaseModel]
    
    def parse(self, text: str) -> BaseModel:
        """Parse LLM output into an instance of ``pydantic_object``."""
        cleaned = self._clean_text(text or "")
        if not cleaned:
            raise ContractViolation("Empty response from generative service", raw_text=text)
        
        json_str = extract_json_object(cleaned)
        if json_str is None:
            logger.error("No JSON object found in model response")
            logger.debug(f"Failed text: {cleaned[:300]}")
            raise ContractViolation("Could not extract JSON from model response", raw_text=text)
        
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            logger.error(f"JSON parse error: {e}")
            logger.debug(f"Failed JSON: {json_str[:500]}")
            raise ContractViolation(f"Invalid JSON format: {e}", raw_text=text) from e
        
        try:
            parsed = self.pydantic_object.model_validate(data)
        except ValidationError as e:
            logger.error(
                f"Model response does not match {self.pydantic_object.__name__}: "
                f"{e.error_count()} error(s)"
            )
            raise ContractViolation(
                f"Response does not match {self.pydantic_object.__name__}: {e}",
                raw_text=text,
            ) from e
        
        logger.debug(f"✅ Parsed {self.pydantic_object.__name__} ({len(json_str)} chars)")
        return parsed
    
    def _clean_text(self, text: str) -> str:
        text = text.strip()
        if text.startswith('\ufeff'):
            text = text[1:]
        return text
    
    @property
    def _type(self) -> str:
        return "model_json"


def parse_model_json(text: str, schema: type[BaseModel]) -> BaseModel:
    """Parse model output into ``schema`` or raise ContractViolation."""
    return ModelJsonParser(pydantic_object=schema).parse(text)
