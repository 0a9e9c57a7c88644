"""
Pipeline state.

The whole workflow is one frozen, serialisable PipelineState value. The
reducer turns (state, event) into the next state; nothing else changes it.

Stages:
    idle        nothing uploaded (or the last upload failed analysis)
    uploaded    audio accepted, analysis request in flight
    analyzed    analysis done, ready to generate
    generating  generation request in flight
    generated   at least one generation done, ready to export or regenerate

``error`` is an overlay: the last reported problem, shown alongside
whatever stage the pipeline is in.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from notestudio.data.schema import AnalysisResult, AudioUpload, GenerationResult
from notestudio.errors import StudioError
from notestudio.pipeline.history import GenerationHistory


class Stage(str, Enum):
    """Where the workflow is; the value is what a UI or JSON dump shows."""

    IDLE = "idle"
    UPLOADED = "uploaded"
    ANALYZED = "analyzed"
    GENERATING = "generating"
    GENERATED = "generated"


# Stages with a request in flight
BUSY_STAGES = frozenset({Stage.UPLOADED, Stage.GENERATING})

# Progress indicator: 1 upload, 2 analyze, 3 generate, 4 export
PROGRESS_STEPS = {
    Stage.IDLE: 0,
    Stage.UPLOADED: 1,
    Stage.ANALYZED: 2,
    Stage.GENERATING: 3,
    Stage.GENERATED: 4,
}


class ErrorInfo(BaseModel):
    """
    The error overlay: a StudioError reduced to plain data.

    Attributes:
        kind: The error's kind ("validation", "analysis", "busy", ...)
        message: Text to show the user
    """

    model_config = ConfigDict(frozen=True)

    kind: str
    message: str

    @classmethod
    def from_error(cls, error: StudioError) -> "ErrorInfo":
        return cls(kind=error.kind, message=error.message)


class AudioRef(BaseModel):
    """The uploaded file's description; the bytes themselves are not kept."""

    model_config = ConfigDict(frozen=True)

    filename: str
    content_type: str
    size: int

    @classmethod
    def from_upload(cls, upload: AudioUpload) -> "AudioRef":
        return cls(filename=upload.filename, content_type=upload.content_type, size=upload.size)


class PipelineState(BaseModel):
    """
    Everything the pipeline knows, as one immutable value.

    Attributes:
        stage: Current Stage
        error: Last reported problem, or None once dismissed or superseded
        audio: The accepted upload, while its analysis is current
        analysis: Result of the last successful analysis
        generation: Result of the last successful generation
        history: Every successful generation since the last reset

    Example:
        >>> state = PipelineState()
        >>> state.stage, state.is_busy, state.progress_step
        (<Stage.IDLE: 'idle'>, False, 0)
    """

    model_config = ConfigDict(frozen=True)

    stage: Stage = Stage.IDLE
    error: Optional[ErrorInfo] = None
    audio: Optional[AudioRef] = None
    analysis: Optional[AnalysisResult] = None
    generation: Optional[GenerationResult] = None
    history: GenerationHistory = Field(default_factory=GenerationHistory)

    @property
    def is_busy(self) -> bool:
        """True while a request is in flight; new triggers are refused."""
        return self.stage in BUSY_STAGES

    @property
    def progress_step(self) -> int:
        return PROGRESS_STEPS[self.stage]
