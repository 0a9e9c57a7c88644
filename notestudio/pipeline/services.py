"""
Contracts for the remote collaborators.

The analysis and generation algorithms, the HTTP transport and the MIDI
encoder all live behind these interfaces. Implementations are async; the
pipeline awaits one call at a time.

Services may return either a plain mapping (decoded JSON) or the matching
schema model. Anything they raise is turned into the stage's error kind by
the PipelineController.
"""

from typing import Any, Mapping, Protocol, Union

from notestudio.data.schema import (
    AlignmentRequest,
    AlignmentResult,
    AnalysisResult,
    GenerationResult,
    LyricsRequest,
    LyricsResult,
)


class AnalysisService(Protocol):
    async def analyze(self, audio: bytes) -> Union[Mapping[str, Any], AnalysisResult]:
        """Tempo, duration, key, chords and detected notes for an audio file."""
        ...


class GenerationService(Protocol):
    async def generate(self, payload: Mapping[str, Any]) -> Union[Mapping[str, Any], GenerationResult]:
        """Generate notes from {num_steps, temperature, model_name, seed_notes?}."""
        ...


class MidiSaveService(Protocol):
    async def save(self, document: Mapping[str, Any]) -> None:
        """Persist a MIDI document payload."""
        ...


class LyricsService(Protocol):
    async def generate(self, request: LyricsRequest) -> LyricsResult:
        ...

    async def align(self, request: AlignmentRequest) -> AlignmentResult:
        ...
