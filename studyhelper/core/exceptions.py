"""
Custom exceptions for the study helper.

Generation and grading failures share the ``GenerationError`` base so callers
can treat them uniformly while still telling a missing credential, a transport
failure and a malformed model response apart.
"""


class StudyHelperException(Exception):
    """Base exception for all study helper errors."""
    pass


class GenerationError(StudyHelperException):
    """Raised when a quiz generation or grading call fails."""
    pass


class ConfigurationError(GenerationError):
    """Raised when the generative service credential is missing."""
    pass


class TransportError(GenerationError):
    """Raised on network or HTTP failures talking to the generative service."""
    pass


class ContractViolation(GenerationError):
    """Raised when model output cannot be parsed into the expected shape."""
    
    def __init__(self, message: str, raw_text: str = None):
        self.raw_text = raw_text
        super().__init__(message)


class PartialSourceFailure(StudyHelperException):
    """Raised when one group's task fetch fails during aggregation."""
    
    def __init__(self, message: str, group_id: str = None):
        self.group_id = group_id
        super().__init__(message)


class InvalidTransitionError(StudyHelperException):
    """Raised when a quiz session action is not allowed in its current state."""
    
    def __init__(self, message: str, state: str = None):
        self.state = state
        super().__init__(message)
