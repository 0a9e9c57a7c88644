"""
Pipeline Reducer
================

Pure transition function for the generation workflow:

    reduce(state, event) -> new state

No I/O happens here and the input state is never modified, so every
transition can be tested without services, an event loop or a UI.

Transition table:

    event                 allowed from                 goes to
    ─────────────────────────────────────────────────────────────────────────
    AudioRejected         any                          (unchanged) + error
    AudioAccepted         idle, analyzed, generated    uploaded
    AnalysisSucceeded     uploaded                     analyzed
    AnalysisFailed        uploaded                     idle + error
    GenerationStarted     analyzed, generated          generating
    GenerationSucceeded   generating                   generated, history += 1
    GenerationFailed      generating                   analyzed/generated + error
    TriggerRejected       any                          (unchanged) + error
    ErrorDismissed        any                          (unchanged), no error
    Reset                 any                          fresh idle state

An event arriving in a stage it is not allowed from is a programming error
and raises ValueError.
"""

from dataclasses import dataclass

from notestudio.data.schema import AnalysisResult, GenerationParams
from notestudio.pipeline.history import HistoryEntry
from notestudio.pipeline.state import AudioRef, ErrorInfo, PipelineState, Stage


# =============================================================================
# EVENTS
# =============================================================================

@dataclass(frozen=True)
class AudioRejected:
    error: ErrorInfo


@dataclass(frozen=True)
class AudioAccepted:
    audio: AudioRef


@dataclass(frozen=True)
class AnalysisSucceeded:
    result: AnalysisResult


@dataclass(frozen=True)
class AnalysisFailed:
    error: ErrorInfo


@dataclass(frozen=True)
class GenerationStarted:
    params: GenerationParams


@dataclass(frozen=True)
class GenerationSucceeded:
    entry: HistoryEntry


@dataclass(frozen=True)
class GenerationFailed:
    error: ErrorInfo


@dataclass(frozen=True)
class TriggerRejected:
    error: ErrorInfo


@dataclass(frozen=True)
class ErrorDismissed:
    pass


@dataclass(frozen=True)
class Reset:
    pass


# =============================================================================
# REDUCER
# =============================================================================

def _require(state: PipelineState, event: object, *stages: Stage) -> None:
    if state.stage not in stages:
        allowed = ", ".join(s.value for s in stages)
        raise ValueError(
            f"{type(event).__name__} is not allowed in stage '{state.stage.value}' "
            f"(allowed: {allowed})"
        )


def reduce(state: PipelineState, event: object) -> PipelineState:
    """
    Compute the state that follows ``event``.

    Args:
        state: Current pipeline state (not modified)
        event: One of the event classes above

    Returns:
        The next PipelineState

    Raises:
        ValueError: If the event is unknown or not allowed in this stage
    """
    if isinstance(event, (AudioRejected, TriggerRejected)):
        return state.model_copy(update={"error": event.error})

    if isinstance(event, ErrorDismissed):
        return state.model_copy(update={"error": None})

    if isinstance(event, Reset):
        return PipelineState()

    if isinstance(event, AudioAccepted):
        _require(state, event, Stage.IDLE, Stage.ANALYZED, Stage.GENERATED)
        # a new upload starts a new analysis; past generations stay in history
        return state.model_copy(update={
            "stage": Stage.UPLOADED,
            "error": None,
            "audio": event.audio,
            "analysis": None,
            "generation": None,
        })

    if isinstance(event, AnalysisSucceeded):
        _require(state, event, Stage.UPLOADED)
        return state.model_copy(update={
            "stage": Stage.ANALYZED,
            "error": None,
            "analysis": event.result,
        })

    if isinstance(event, AnalysisFailed):
        _require(state, event, Stage.UPLOADED)
        return state.model_copy(update={
            "stage": Stage.IDLE,
            "error": event.error,
            "audio": None,
        })

    if isinstance(event, GenerationStarted):
        _require(state, event, Stage.ANALYZED, Stage.GENERATED)
        return state.model_copy(update={"stage": Stage.GENERATING, "error": None})

    if isinstance(event, GenerationSucceeded):
        _require(state, event, Stage.GENERATING)
        return state.model_copy(update={
            "stage": Stage.GENERATED,
            "error": None,
            "generation": event.entry.result,
            "history": state.history.appended(event.entry),
        })

    if isinstance(event, GenerationFailed):
        _require(state, event, Stage.GENERATING)
        previous = Stage.ANALYZED if state.generation is None else Stage.GENERATED
        return state.model_copy(update={"stage": previous, "error": event.error})

    raise ValueError(f"Unknown pipeline event: {event!r}")
