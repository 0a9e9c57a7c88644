"""
Configuration for notestudio.

All settings have sensible defaults, so a config file is optional. When one
is used it is plain YAML, e.g.:

    upload:
      max_bytes: 52428800
    editor:
      default_pitch: 64
    generation:
      temperature: 0.9
    document:
      instrument: guitar
    export:
      output_dir: exports

Usage:
    from notestudio.config import load_config

    config = load_config("studio.yaml")
    config.upload.max_bytes   # 52428800
"""

import os
from pathlib import Path
from typing import List, Optional, Union

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as SchemaError

from notestudio.data.schema import (
    MAX_PITCH,
    MAX_TEMPO,
    MAX_VELOCITY,
    MIN_PITCH,
    MIN_TEMPO,
    MIN_VELOCITY,
    GenerationParams,
    check_instrument,
    check_time_signature,
)

CONFIG_ENV_VAR = "NOTESTUDIO_CONFIG"

# Accepted audio uploads
SUPPORTED_AUDIO_TYPES = ["audio/wav", "audio/mpeg", "audio/ogg"]
MAX_UPLOAD_BYTES = 100 * 1024 * 1024  # 100 MiB


class UploadConfig(BaseModel):
    """Local checks an audio file must pass before it is sent for analysis."""

    allowed_types: List[str] = Field(default_factory=lambda: list(SUPPORTED_AUDIO_TYPES))
    max_bytes: int = Field(default=MAX_UPLOAD_BYTES, gt=0)


class EditorConfig(BaseModel):
    """Defaults for a note created with "add"."""

    default_pitch: int = Field(default=60, ge=MIN_PITCH, le=MAX_PITCH)
    default_velocity: int = Field(default=100, ge=MIN_VELOCITY, le=MAX_VELOCITY)
    default_duration: float = Field(default=0.5, gt=0.0)


class DocumentConfig(BaseModel):
    """
    Playback settings a new editor session starts with.

    Checked with the same rules as MidiDocument.
    """

    tempo: int = Field(default=120, ge=MIN_TEMPO, le=MAX_TEMPO)
    time_signature: str = "4/4"
    instrument: str = "piano"

    @field_validator("time_signature")
    @classmethod
    def validate_time_signature(cls, v: str) -> str:
        return check_time_signature(v)

    @field_validator("instrument")
    @classmethod
    def validate_instrument(cls, v: str) -> str:
        return check_instrument(v)


class ExportConfig(BaseModel):
    """Default directory for PipelineController.export."""

    output_dir: Path = Path(".")


class StudioConfig(BaseModel):
    """
    Every notestudio setting, grouped by section.

    Attributes:
        upload: Accepted MIME types and the size limit
        editor: Defaults for added notes
        generation: Default GenerationParams for PipelineController.generate
        document: Default tempo, time signature and instrument
        export: Where pipeline exports are written
    """

    upload: UploadConfig = Field(default_factory=UploadConfig)
    editor: EditorConfig = Field(default_factory=EditorConfig)
    generation: GenerationParams = Field(default_factory=GenerationParams)
    document: DocumentConfig = Field(default_factory=DocumentConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)


def load_config(path: Optional[Union[str, Path]] = None) -> StudioConfig:
    """
    Load settings from a YAML file.

    Args:
        path: Config file. Falls back to $NOTESTUDIO_CONFIG, then to defaults.

    Returns:
        Validated StudioConfig

    Raises:
        FileNotFoundError: If an explicit path does not exist
        ValueError: If the file is not a YAML mapping or has invalid values
    """
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR)
    if not path:
        return StudioConfig()

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Could not parse {path}: {e}") from e

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValueError(f"Config file {path} must contain a mapping, got {type(raw).__name__}")

    try:
        return StudioConfig.model_validate(raw)
    except SchemaError as e:
        raise ValueError(f"Invalid config in {path}: {e}") from e
