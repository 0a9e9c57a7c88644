"""
Reading and writing JSON documents.

MIDI documents and generation results are exported as pretty-printed JSON.
Failures surface as ExportError so callers have one error kind to report.
"""

import json
import logging
import time
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

from notestudio.data.schema import MidiDocument
from notestudio.errors import ExportError

logger = logging.getLogger(__name__)


def export_filename(prefix: str = "generated_music", timestamp_ms: Optional[int] = None) -> str:
    """
    File name for an export, e.g. "generated_music_1700000000000.json".
    """
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{prefix}_{timestamp_ms}.json"


def write_json(model: BaseModel, path: Union[str, Path]) -> Path:
    """
    Serialise a model to ``path`` (wire key names, 2-space indent).

    Raises:
        ExportError: If serialisation or the write fails
    """
    path = Path(path)
    try:
        text = json.dumps(model.model_dump(mode="json", by_alias=True), indent=2)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text + "\n", encoding="utf-8")
    except (OSError, TypeError, ValueError) as e:
        raise ExportError(f"Could not write {path}: {e}") from e
    logger.info("Wrote %s", path)
    return path


def write_document(document: MidiDocument, path: Union[str, Path]) -> Path:
    return write_json(document, path)


def read_document(path: Union[str, Path]) -> MidiDocument:
    """
    Load a MIDI document from JSON.

    Raises:
        ExportError: If the file is missing, not JSON, or not a valid document
    """
    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ExportError(f"Could not read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ExportError(f"{path} is not valid JSON: {e}") from e

    try:
        return MidiDocument.model_validate(raw)
    except SchemaError as e:
        raise ExportError(f"{path} is not a valid MIDI document: {e}") from e
