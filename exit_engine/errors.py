"""
Typed failures raised by the engine's public entry points.
Gateway problems are never raised; they degrade to the local path.
"""

from typing import List, Optional

from exit_engine.utils.data_models import FieldError


class EngineError(Exception):
    """Base class for every caller-visible engine failure"""


class ProfileValidationError(EngineError):
    """The submitted profile was rejected. Carries every field-level violation."""

    def __init__(self, errors: List[FieldError]):
        self.errors = list(errors)
        fields = ", ".join(error.field for error in self.errors)
        super().__init__(f"Invalid business profile - {len(self.errors)} error(s): {fields}")

    def to_details(self) -> List[dict]:
        return [{"field": error.field, "message": error.message} for error in self.errors]


class RateLimitExceeded(EngineError):
    """The caller exhausted its request window"""

    def __init__(self, retry_after_seconds: float, caller_id: Optional[str] = None):
        self.retry_after_seconds = max(0.0, retry_after_seconds)
        self.caller_id = caller_id
        super().__init__(f"Rate limit exceeded. Retry after {self.retry_after_seconds:.0f}s")
