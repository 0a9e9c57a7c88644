"""
Schema definitions for notestudio.

This module defines the Pydantic models that every other part of the
package passes around: the note events being edited, the payloads that come
back from the analysis and generation services, the generation request, and
the MIDI document shape exchanged with the save endpoint.

Wire format notes:
    - Note start times travel as ``startTime`` (the editor's JSON shape) but
      are ``start_time`` in Python. Both spellings are accepted on input.
    - Everything else is snake_case on the wire (``time_signature``,
      ``num_steps``, ``total_time``, ``detected_notes``).
"""

import re
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# =============================================================================
# VALID OPTIONS
# =============================================================================

MIN_PITCH = 0
MAX_PITCH = 127
MIN_VELOCITY = 0
MAX_VELOCITY = 127

VALID_MODELS = ["melody", "performance", "drums"]

VALID_INSTRUMENTS = ["piano", "guitar", "violin", "flute", "trumpet", "synth"]

# Offered by the editor; any "n/d" signature is accepted in a document
COMMON_TIME_SIGNATURES = ["4/4", "3/4", "6/8", "2/4", "5/4"]

TIME_SIGNATURE_REGEX = re.compile(r"^([1-9][0-9]*)/([1-9][0-9]*)$")

MIN_TEMPO = 20
MAX_TEMPO = 300


def check_time_signature(value: str) -> str:
    """
    Validate an "n/d" time signature.

    Raises:
        ValueError: If the value does not look like "n/d"
    """
    if not TIME_SIGNATURE_REGEX.match(value):
        raise ValueError(f"Time signature must look like 'n/d'. Got: '{value}'")
    return value


def check_instrument(value: str) -> str:
    """
    Validate an instrument name (case-insensitive); returns it lower-cased.

    Raises:
        ValueError: If the instrument is not in VALID_INSTRUMENTS
    """
    value_lower = value.lower()
    if value_lower not in VALID_INSTRUMENTS:
        raise ValueError(f"Instrument must be one of {VALID_INSTRUMENTS}. Got: '{value}'")
    return value_lower


# =============================================================================
# NOTES
# =============================================================================

class NoteEvent(BaseModel):
    """
    A single note in an editing session.

    Notes are immutable: an edit or a transform produces a new NoteEvent
    with the same ``id`` that replaces the old one in the NoteStore.

    Attributes:
        id: Opaque identifier, unique within a NoteStore
        pitch: MIDI pitch number (0-127)
        velocity: MIDI velocity (0-127)
        start_time: Onset in seconds (>= 0)
        duration: Length in seconds (> 0)

    Example:
        >>> note = NoteEvent(id="note-1", pitch=60, velocity=100,
        ...                  startTime=0.0, duration=0.5)
        >>> note.start_time
        0.0
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., min_length=1, description="Opaque unique identifier")

    pitch: int = Field(..., ge=MIN_PITCH, le=MAX_PITCH, description="MIDI pitch")

    velocity: int = Field(
        default=100, ge=MIN_VELOCITY, le=MAX_VELOCITY, description="MIDI velocity"
    )

    start_time: float = Field(
        default=0.0, ge=0.0, alias="startTime", description="Onset in seconds"
    )

    duration: float = Field(..., gt=0.0, description="Length in seconds")

    @property
    def end_time(self) -> float:
        return self.start_time + self.duration


class NoteRecord(BaseModel):
    """
    A note as the generation service reports it: no id yet.

    Services are not consistent about key names, so a few spellings are
    normalised before validation:
        - ``start`` is accepted for the onset
        - a missing ``duration`` is derived from ``end_time``/``endTime``/``end``
    """

    model_config = ConfigDict(populate_by_name=True)

    pitch: int = Field(..., ge=MIN_PITCH, le=MAX_PITCH)
    velocity: int = Field(default=100, ge=MIN_VELOCITY, le=MAX_VELOCITY)
    start_time: float = Field(default=0.0, ge=0.0, alias="startTime")
    duration: float = Field(..., gt=0.0)

    @model_validator(mode="before")
    @classmethod
    def normalise_keys(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)

        if "start_time" not in data and "startTime" not in data and "start" in data:
            data["start_time"] = data.pop("start")

        if "duration" not in data:
            end = None
            for name in ("end_time", "endTime", "end"):
                if data.get(name) is not None:
                    end = data[name]
                    break
            start = data.get("start_time", data.get("startTime", 0.0))
            if end is not None:
                data["duration"] = float(end) - float(start)
        return data

    @property
    def end_time(self) -> float:
        return self.start_time + self.duration


# =============================================================================
# SERVICE PAYLOADS
# =============================================================================

class AnalysisResult(BaseModel):
    """
    What the analysis service tells us about an uploaded audio file.

    Attributes:
        tempo: Estimated tempo in BPM
        duration: Length of the audio in seconds
        key: Detected key (e.g. "C major"), if any
        chords: Detected chord sequence, in order
        detected_notes: Detected melody notes as names (e.g. "C4"), in order
    """

    model_config = ConfigDict(populate_by_name=True)

    tempo: float = Field(..., gt=0.0)
    duration: float = Field(..., ge=0.0)
    key: Optional[str] = None
    chords: Optional[List[str]] = None
    detected_notes: Optional[List[str]] = Field(default=None, alias="detectedNotes")


class GenerationParams(BaseModel):
    """
    Parameters for one generation request.

    Attributes:
        num_steps: Length of the generated sequence in model steps (32-512)
        temperature: Sampling temperature (0.5-2.0); higher is more adventurous
        model_name: One of VALID_MODELS
        seed_notes: Optional notes (pitch numbers or names) to prime the model

    Example:
        >>> params = GenerationParams(num_steps=64, temperature=0.8)
        >>> params.to_payload()
        {'num_steps': 64, 'temperature': 0.8, 'model_name': 'melody'}
    """

    model_config = ConfigDict(populate_by_name=True)

    num_steps: int = Field(default=128, ge=32, le=512, alias="numSteps")
    temperature: float = Field(default=1.0, ge=0.5, le=2.0)
    model_name: str = Field(default="melody", alias="modelName")
    seed_notes: Optional[List[Union[int, str]]] = Field(default=None, alias="seedNotes")

    @field_validator("model_name")
    @classmethod
    def validate_model_name(cls, v: str) -> str:
        """Ensure the model is one we know (case-insensitive)"""
        v_lower = v.lower()
        if v_lower not in VALID_MODELS:
            raise ValueError(f"Model must be one of {VALID_MODELS}. Got: '{v}'")
        return v_lower

    def to_payload(self) -> Dict[str, Any]:
        """Request body for the generation service."""
        payload: Dict[str, Any] = {
            "num_steps": self.num_steps,
            "temperature": self.temperature,
            "model_name": self.model_name,
        }
        if self.seed_notes is not None:
            payload["seed_notes"] = list(self.seed_notes)
        return payload

    def with_seed_from(self, analysis: AnalysisResult) -> "GenerationParams":
        """Copy of these params seeded with the analysis's detected notes."""
        if not analysis.detected_notes:
            return self
        return self.model_copy(update={"seed_notes": list(analysis.detected_notes)})

    def temperature_description(self) -> str:
        if self.temperature < 0.7:
            return "Conservative - follows patterns closely"
        if self.temperature < 1.0:
            return "Balanced - good diversity"
        if self.temperature < 1.5:
            return "Creative - more experimental"
        return "Very creative - highly experimental"


class GenerationResult(BaseModel):
    """
    A generated note sequence.

    ``total_time`` is taken from the service when it sends one; otherwise it
    is the end of the last-ending note.
    """

    model_config = ConfigDict(populate_by_name=True)

    notes: List[NoteRecord] = Field(default_factory=list)
    total_time: Optional[float] = Field(default=None, ge=0.0, alias="totalTime")

    @model_validator(mode="after")
    def fill_total_time(self) -> "GenerationResult":
        if self.total_time is None:
            self.total_time = max((n.end_time for n in self.notes), default=0.0)
        return self


# =============================================================================
# MIDI DOCUMENT
# =============================================================================

class MidiDocument(BaseModel):
    """
    The note data plus playback settings, as saved and exported.

    Binary MIDI encoding happens elsewhere; this is the JSON shape only.

    Attributes:
        notes: The notes, in editor order
        tempo: BPM (20-300)
        time_signature: "n/d", e.g. "4/4" or "6/8"
        instrument: One of VALID_INSTRUMENTS
    """

    model_config = ConfigDict(populate_by_name=True)

    notes: List[NoteEvent] = Field(default_factory=list)
    tempo: int = Field(default=120, ge=MIN_TEMPO, le=MAX_TEMPO)
    time_signature: str = Field(default="4/4")
    instrument: str = Field(default="piano")

    @field_validator("time_signature")
    @classmethod
    def validate_time_signature(cls, v: str) -> str:
        """Ensure the time signature looks like n/d"""
        return check_time_signature(v)

    @field_validator("instrument")
    @classmethod
    def validate_instrument(cls, v: str) -> str:
        """Ensure the instrument is from our valid list (case-insensitive)"""
        return check_instrument(v)

    @field_validator("notes")
    @classmethod
    def validate_unique_ids(cls, v: List[NoteEvent]) -> List[NoteEvent]:
        seen = set()
        duplicates = []
        for note in v:
            if note.id in seen:
                duplicates.append(note.id)
            seen.add(note.id)
        if duplicates:
            raise ValueError(f"Duplicate note ids: {duplicates}")
        return v

    def to_payload(self) -> Dict[str, Any]:
        """JSON-ready dict in the save endpoint's shape."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# UPLOADS
# =============================================================================

class AudioUpload(BaseModel):
    """An audio file the user handed us, before any validation."""

    filename: str
    content_type: str
    data: bytes = Field(repr=False)

    @property
    def size(self) -> int:
        return len(self.data)


# =============================================================================
# LYRICS (boundary contracts only)
# =============================================================================

class LyricsRequest(BaseModel):
    style: str = "pop"
    mood: str = "upbeat"
    num_lines: int = Field(default=4, ge=1)


class LyricsResult(BaseModel):
    lyrics: str


class AlignmentRequest(BaseModel):
    lyrics: str
    notes: List[NoteEvent] = Field(default_factory=list)
    tempo_bpm: float = Field(default=120.0, gt=0.0)


class AlignmentResult(BaseModel):
    syllable_mapping: Dict[str, Any] = Field(default_factory=dict)
    aligned_notes: List[Dict[str, Any]] = Field(default_factory=list)
