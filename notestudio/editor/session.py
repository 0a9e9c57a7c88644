"""
Editor Session
==============

What the note editor screen talks to. It bundles a NoteStore, its
SelectionModel and the document settings (tempo, time signature,
instrument), and turns user actions into checked operations:

    - transposing by 0 semitones is refused as "nothing to do"
    - deleting with nothing selected is refused
    - saving or exporting with no notes is refused
    - a bad field value on an edit is refused, the note stays unchanged

Every action that can fail returns an Outcome.

Usage:
    from notestudio.editor.session import EditorSession

    session = EditorSession()
    note = session.add_note()
    session.select(note.id)
    session.apply_transpose(5)
    document = session.build_document().unwrap()
"""

import logging
import operator
from pathlib import Path
from typing import Any, List, Optional, Union

from pydantic import ValidationError as SchemaError

from notestudio.config import StudioConfig
from notestudio.data.io import write_document
from notestudio.data.schema import GenerationResult, MidiDocument, NoteEvent
from notestudio.editor.note_store import IdFactory, NoteStore
from notestudio.editor.selection import SelectionModel
from notestudio.editor.statistics import NoteStatistics
from notestudio.editor.transforms import QuantizeGrid, parse_grid
from notestudio.errors import ExportError, Outcome, UserInputError
from notestudio.pipeline.services import MidiSaveService

logger = logging.getLogger(__name__)


class EditorSession:
    """
    One open document in the note editor.

    Attributes:
        config: Settings the session was created with
        store: The NoteStore holding the notes
        selection: Active note and multi-selection over ``store``
        tempo: BPM written into saved documents (20-300)
        time_signature: "n/d", e.g. "4/4"
        instrument: One of the valid instrument names

    Example:
        >>> session = EditorSession(id_factory=counter_ids())
        >>> session.add_note().id
        'note-1'
        >>> session.apply_quantize("eighth").ok
        True
    """

    def __init__(
        self,
        config: Optional[StudioConfig] = None,
        id_factory: Optional[IdFactory] = None,
    ):
        self.config = config or StudioConfig()
        self.store = NoteStore(id_factory=id_factory, defaults=self.config.editor)
        self.selection = SelectionModel(self.store)
        self.tempo = self.config.document.tempo
        self.time_signature = self.config.document.time_signature
        self.instrument = self.config.document.instrument

    @classmethod
    def from_document(
        cls,
        document: MidiDocument,
        config: Optional[StudioConfig] = None,
        id_factory: Optional[IdFactory] = None,
    ) -> "EditorSession":
        session = cls(config=config, id_factory=id_factory)
        session.load_document(document)
        return session

    @classmethod
    def from_generation(
        cls,
        result: GenerationResult,
        tempo: Optional[int] = None,
        config: Optional[StudioConfig] = None,
        id_factory: Optional[IdFactory] = None,
    ) -> "EditorSession":
        """Open generated notes for editing; each note gets a fresh id."""
        session = cls(config=config, id_factory=id_factory)
        session.store.import_notes(result.notes, replace=True)
        if tempo is not None:
            session.tempo = tempo
        return session

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    @property
    def notes(self) -> List[NoteEvent]:
        return self.store.notes

    @property
    def statistics(self) -> Optional[NoteStatistics]:
        return self.store.statistics

    @property
    def active_note(self) -> Optional[NoteEvent]:
        if self.selection.active is None:
            return None
        return self.store.get(self.selection.active)

    # -------------------------------------------------------------------------
    # Note editing
    # -------------------------------------------------------------------------

    def add_note(self) -> NoteEvent:
        """Append a note with the configured defaults after the last note."""
        return self.store.add()

    def edit_note(self, note_id: str, **fields: Any) -> Outcome[NoteEvent]:
        outcome = self.store.update(note_id, **fields)
        if not outcome.ok:
            logger.warning("Edit of %s refused: %s", note_id, outcome.error)
        return outcome

    def delete_note(self, note_id: str) -> bool:
        return self.store.remove(note_id)

    def select(self, note_id: str) -> None:
        self.selection.click(note_id)

    def toggle_selected(self, note_id: str) -> bool:
        return self.selection.toggle(note_id)

    def delete_selected(self) -> Outcome[List[str]]:
        outcome = self.selection.bulk_delete()
        if not outcome.ok:
            logger.warning("Bulk delete refused: %s", outcome.error)
        return outcome

    def clear_all(self) -> None:
        # listeners drop every removed id from the selection
        self.store.clear()

    # -------------------------------------------------------------------------
    # Transformations
    # -------------------------------------------------------------------------

    def apply_transpose(self, semitones: int) -> Outcome[int]:
        """
        Shift every note by a whole number of semitones.

        Returns:
            Outcome holding the applied offset; 0 and non-integers are refused

        Example:
            >>> session.apply_transpose(12).ok
            True
            >>> session.apply_transpose(0).error.message
            'Enter a transpose amount'
        """
        try:
            semitones = operator.index(semitones)
        except TypeError:
            return Outcome.failure(UserInputError(
                f"Transpose amount must be a whole number of semitones. Got: {semitones!r}"
            ))
        if semitones == 0:
            return Outcome.failure(UserInputError("Enter a transpose amount"))
        self.store.transpose(semitones)
        logger.info("Transposed by %+d semitones", semitones)
        return Outcome.success(semitones)

    def apply_quantize(self, grid: Union[str, QuantizeGrid]) -> Outcome[QuantizeGrid]:
        """Snap start times to a grid given by name ("quarter", "triplet", ...)."""
        try:
            parsed = parse_grid(grid)
        except ValueError as e:
            return Outcome.failure(UserInputError(str(e)))
        self.store.quantize(parsed)
        logger.info("Quantized to %s grid", parsed.value)
        return Outcome.success(parsed)

    # -------------------------------------------------------------------------
    # Document settings and persistence
    # -------------------------------------------------------------------------

    def update_settings(
        self,
        tempo: Optional[int] = None,
        time_signature: Optional[str] = None,
        instrument: Optional[str] = None,
    ) -> Outcome[MidiDocument]:
        """Change playback settings; invalid values leave all settings as they were."""
        try:
            checked = MidiDocument(
                tempo=self.tempo if tempo is None else tempo,
                time_signature=self.time_signature if time_signature is None else time_signature,
                instrument=self.instrument if instrument is None else instrument,
            )
        except SchemaError as e:
            return Outcome.failure(UserInputError(f"Invalid settings: {e.errors()[0]['msg']}"))
        self.tempo = checked.tempo
        self.time_signature = checked.time_signature
        self.instrument = checked.instrument
        return Outcome.success(checked)

    def build_document(self) -> Outcome[MidiDocument]:
        """The notes plus settings as a MidiDocument; refused when there are no notes."""
        if len(self.store) == 0:
            return Outcome.failure(UserInputError("Add notes before saving"))
        try:
            document = MidiDocument(
                notes=self.store.notes,
                tempo=self.tempo,
                time_signature=self.time_signature,
                instrument=self.instrument,
            )
        except SchemaError as e:
            return Outcome.failure(ExportError(f"Could not build document: {e}"))
        return Outcome.success(document)

    def load_document(self, document: MidiDocument) -> None:
        """Replace the notes and settings with a document's, keeping its note ids."""
        self.store.import_notes(document.notes, replace=True, keep_ids=True)
        self.tempo = document.tempo
        self.time_signature = document.time_signature
        self.instrument = document.instrument

    def export(self, path: Union[str, Path]) -> Outcome[Path]:
        built = self.build_document()
        if not built.ok:
            return Outcome.failure(built.error)
        try:
            return Outcome.success(write_document(built.value, path))
        except ExportError as e:
            logger.warning("Export failed: %s", e)
            return Outcome.failure(e)

    async def save(self, service: MidiSaveService) -> Outcome[MidiDocument]:
        """Send the document to the save endpoint."""
        built = self.build_document()
        if not built.ok:
            return built
        try:
            await service.save(built.value.to_payload())
        except Exception as e:
            logger.warning("Save failed", exc_info=True)
            return Outcome.failure(ExportError(f"Save failed: {e}"))
        logger.info("Saved %d notes", len(built.value.notes))
        return built
