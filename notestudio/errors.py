"""
Error Taxonomy and Typed Outcomes
=================================

Every operation in notestudio that can fail hands back an ``Outcome``
instead of letting an exception escape. The caller checks ``outcome.ok``
and, on failure, ``outcome.error.kind`` tells it which family of problem
occurred:

    validation   bad upload / bad generation params, caught before any request
    analysis     the analysis service failed or sent back malformed data
    generation   the generation service failed
    export       writing or saving a document failed
    user_input   the request makes no sense right now (empty selection, ...)
    busy         a pipeline request is already in flight

Usage:
    from notestudio.errors import Outcome, UserInputError

    outcome = session.delete_selected()
    if not outcome.ok:
        print(f"{outcome.error.kind}: {outcome.error}")
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


# =============================================================================
# ERROR CLASSES
# =============================================================================

class StudioError(Exception):
    """Base class for every recoverable notestudio error."""

    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(StudioError):
    """Local pre-flight check failed (file type/size, generation params)."""

    kind = "validation"


class AnalysisError(StudioError):
    """The analysis step failed remotely or returned malformed data."""

    kind = "analysis"


class GenerationError(StudioError):
    """The generation step failed remotely or returned malformed data."""

    kind = "generation"


class ExportError(StudioError):
    """Serialising, writing or saving a document failed."""

    kind = "export"


class UserInputError(StudioError):
    """The requested action is not meaningful in the current state."""

    kind = "user_input"


class PipelineBusyError(UserInputError):
    """A pipeline request is outstanding; new triggers are rejected."""

    kind = "busy"


class DuplicateNoteIdError(StudioError):
    """An id factory produced an id that is already in use."""

    kind = "internal"


# =============================================================================
# OUTCOME
# =============================================================================

@dataclass(frozen=True)
class Outcome(Generic[T]):
    """
    Result of an operation that can fail: either a value or an error.

    Attributes:
        value: The successful result (may legitimately be None)
        error: The StudioError describing the failure, or None on success

    Example:
        >>> Outcome.success(3).ok
        True
        >>> Outcome.failure(UserInputError("nothing selected")).error.kind
        'user_input'
    """

    value: Optional[T] = None
    error: Optional[StudioError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: StudioError) -> "Outcome[T]":
        return cls(error=error)

    def unwrap(self) -> Optional[T]:
        """Return the value, or raise the stored error."""
        if self.error is not None:
            raise self.error
        return self.value

    def __str__(self) -> str:
        if self.ok:
            return f"OK: {self.value!r}"
        return f"FAILED ({self.error.kind}): {self.error.message}"
