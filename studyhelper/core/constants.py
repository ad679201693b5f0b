"""
Centralized constants and enums for the study helper.

Quiz shape rules (question counts, option counts, marks) live here so the
prompt text, the response schemas and the grading engine agree on them.
"""

from enum import Enum
from typing import List


# ============================================================================
# Question Kinds
# ============================================================================

class QuestionKind(str, Enum):
    """Kind of questions a quiz is made of. A quiz never mixes kinds."""
    MULTIPLE_CHOICE = "mcq"
    SHORT_ANSWER = "short"


def get_question_kinds() -> List[str]:
    """Get all question kind values."""
    return [kind.value for kind in QuestionKind]


def normalize_question_kind(value) -> QuestionKind:
    """Map the spellings used by clients onto a QuestionKind."""
    if isinstance(value, QuestionKind):
        return value
    
    key = str(value).strip().lower().replace("-", "_").replace(" ", "_")
    
    mapping = {
        # Multiple choice
        "mcq": QuestionKind.MULTIPLE_CHOICE,
        "multiple_choice": QuestionKind.MULTIPLE_CHOICE,
        "multiplechoice": QuestionKind.MULTIPLE_CHOICE,
        "choice": QuestionKind.MULTIPLE_CHOICE,
        
        # Short answer
        "short": QuestionKind.SHORT_ANSWER,
        "short_answer": QuestionKind.SHORT_ANSWER,
        "shortanswer": QuestionKind.SHORT_ANSWER,
        "saq": QuestionKind.SHORT_ANSWER,
    }
    
    if key not in mapping:
        raise ValueError(
            f"Unknown question kind: {value!r} (expected one of {get_question_kinds()})"
        )
    return mapping[key]


# ============================================================================
# Quiz Shape
# ============================================================================

MCQ_QUESTION_COUNT = 15
MCQ_OPTION_COUNT = 4

SHORT_ANSWER_QUESTION_COUNT = 3
SHORT_ANSWER_MARKS = 5


# ============================================================================
# Grading
# ============================================================================

NO_ANSWER_SENTINEL = "(No answer provided)"


# ============================================================================
# Resources
# ============================================================================

RESOURCE_FALLBACK_LIMIT = 5


# ============================================================================
# Groups
# ============================================================================

CLASS_REPRESENTATIVE_ROLE = "cr"


DEFAULT_QUESTION_KIND = QuestionKind.MULTIPLE_CHOICE
