"""
Note Store
==========

Owns the notes of one editing session.

Notes live in a dict keyed by id, so lookups, edits and deletes go straight
to the note instead of scanning a list. Insertion order is preserved (it is
what the editor displays) but carries no musical meaning; time position is
``start_time``.

Removal listeners:
    Anything that keeps ids around (the SelectionModel) registers with
    ``on_remove`` and is told which ids disappeared after every delete,
    batch delete, clear or replacing import.

Usage:
    from notestudio.editor.note_store import NoteStore

    store = NoteStore()
    note = store.add()                      # pitch 60, vel 100, 0.5s at t=0
    store.update(note.id, pitch=64)
    store.transpose(12)
    store.quantize("eighth")
    store.statistics.max_pitch              # 76
"""

import itertools
import logging
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Set, Union

from pydantic import ValidationError as SchemaError

from notestudio.config import EditorConfig
from notestudio.data.schema import NoteEvent, NoteRecord
from notestudio.editor.statistics import NoteStatistics, compute_statistics
from notestudio.editor.transforms import QuantizeGrid, quantize_notes, transpose_notes
from notestudio.errors import DuplicateNoteIdError, Outcome, UserInputError

logger = logging.getLogger(__name__)

IdFactory = Callable[[], str]
RemoveListener = Callable[[Set[str]], None]


def counter_ids(prefix: str = "note") -> IdFactory:
    """
    Deterministic id factory: "note-1", "note-2", ...

    Example:
        >>> next_id = counter_ids()
        >>> next_id(), next_id()
        ('note-1', 'note-2')
    """
    counter = itertools.count(1)
    return lambda: f"{prefix}-{next(counter)}"


class NoteStore:
    """
    Id-indexed collection of NoteEvents with bulk transforms.

    Args:
        id_factory: Callable returning a fresh id per call (default: counter_ids())
        defaults: Pitch/velocity/duration used by ``add``
    """

    def __init__(
        self,
        id_factory: Optional[IdFactory] = None,
        defaults: Optional[EditorConfig] = None,
    ):
        self._id_factory = id_factory or counter_ids()
        self.defaults = defaults or EditorConfig()
        self._notes: Dict[str, NoteEvent] = {}
        self._remove_listeners: List[RemoveListener] = []

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._notes)

    def __iter__(self) -> Iterator[NoteEvent]:
        return iter(list(self._notes.values()))

    def __contains__(self, note_id: object) -> bool:
        return note_id in self._notes

    def get(self, note_id: str) -> Optional[NoteEvent]:
        return self._notes.get(note_id)

    @property
    def notes(self) -> List[NoteEvent]:
        """Snapshot of the notes in insertion order."""
        return list(self._notes.values())

    @property
    def ids(self) -> List[str]:
        return list(self._notes)

    @property
    def statistics(self) -> Optional[NoteStatistics]:
        """Fresh statistics for the current contents; None when empty."""
        return compute_statistics(self.notes)

    @property
    def end_time(self) -> float:
        return max((n.end_time for n in self._notes.values()), default=0.0)

    # -------------------------------------------------------------------------
    # Listeners
    # -------------------------------------------------------------------------

    def on_remove(self, callback: RemoveListener) -> None:
        self._remove_listeners.append(callback)

    def _notify_removed(self, ids: Set[str]) -> None:
        if not ids:
            return
        for callback in self._remove_listeners:
            callback(ids)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def _new_id(self, taken: Optional[Dict[str, NoteEvent]] = None) -> str:
        # a factory of distinct ids finds a free one within len(taken) + 1 calls
        taken = self._notes if taken is None else taken
        for _ in range(len(taken) + 1):
            note_id = self._id_factory()
            if note_id not in taken:
                return note_id
        raise DuplicateNoteIdError(f"Id factory keeps returning ids already in use (last: '{note_id}')")

    def add(self) -> NoteEvent:
        """Append a default note right after the last-ending note."""
        note = NoteEvent(
            id=self._new_id(),
            pitch=self.defaults.default_pitch,
            velocity=self.defaults.default_velocity,
            start_time=self.end_time,
            duration=self.defaults.default_duration,
        )
        self._notes[note.id] = note
        logger.debug("Added %s at %.3fs", note.id, note.start_time)
        return note

    def import_notes(
        self,
        records: Iterable[Union[NoteRecord, NoteEvent, dict]],
        replace: bool = False,
        keep_ids: bool = False,
    ) -> List[NoteEvent]:
        """
        Add notes from a generation result or a loaded document.

        The whole batch is validated before anything changes.

        Args:
            records: NoteRecords, NoteEvents or plain dicts
            replace: Drop the current notes first
            keep_ids: Keep the ids of NoteEvent records instead of
                      drawing fresh ones from the id factory

        Returns:
            The new NoteEvents, in order

        Raises:
            pydantic.ValidationError: If a record is not a valid note
            DuplicateNoteIdError: If a kept id is already taken
        """
        records = list(records)
        parsed = [
            r if isinstance(r, NoteRecord) else NoteRecord.model_validate(
                r.model_dump() if isinstance(r, NoteEvent) else r
            )
            for r in records
        ]

        table: Dict[str, NoteEvent] = {} if replace else dict(self._notes)
        created = []
        for original, record in zip(records, parsed):
            if keep_ids and isinstance(original, NoteEvent):
                note_id = original.id
                if note_id in table:
                    raise DuplicateNoteIdError(f"Duplicate note id: '{note_id}'")
            else:
                note_id = self._new_id(table)
            note = NoteEvent(
                id=note_id,
                pitch=record.pitch,
                velocity=record.velocity,
                start_time=record.start_time,
                duration=record.duration,
            )
            table[note.id] = note
            created.append(note)

        removed = set(self._notes) if replace else set()
        self._notes = table
        logger.debug("Imported %d notes (replace=%s)", len(created), replace)
        self._notify_removed(removed)
        return created

    def remove(self, note_id: str) -> bool:
        """Delete one note. Unknown ids are ignored; returns whether it existed."""
        if self._notes.pop(note_id, None) is None:
            return False
        logger.debug("Removed %s", note_id)
        self._notify_removed({note_id})
        return True

    def remove_many(self, ids: Iterable[str]) -> List[str]:
        """Delete every listed note that exists; returns the ids removed."""
        wanted = set(ids)
        removed = [note_id for note_id in self._notes if note_id in wanted]
        self._notes = {k: v for k, v in self._notes.items() if k not in wanted}
        if removed:
            logger.debug("Removed %d notes", len(removed))
        self._notify_removed(set(removed))
        return removed

    def clear(self) -> None:
        removed = set(self._notes)
        self._notes = {}
        self._notify_removed(removed)

    def update(self, note_id: str, **fields) -> Outcome[NoteEvent]:
        """
        Change fields of one note.

        Values are validated, not clamped: an out-of-range pitch, velocity,
        start time or duration is refused and the note stays as it was.

        Example:
            >>> store.update("note-1", pitch=200).error.kind
            'user_input'
        """
        note = self._notes.get(note_id)
        if note is None:
            return Outcome.failure(UserInputError(f"No note with id '{note_id}'"))
        if "id" in fields and fields["id"] != note_id:
            return Outcome.failure(UserInputError("A note's id cannot be changed"))

        if "startTime" in fields:
            fields["start_time"] = fields.pop("startTime")
        merged = note.model_dump()
        merged.update(fields)
        try:
            updated = NoteEvent.model_validate(merged)
        except SchemaError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            return Outcome.failure(UserInputError(f"Invalid note values: {problems}"))

        self._notes[note_id] = updated
        logger.debug("Updated %s: %s", note_id, fields)
        return Outcome.success(updated)

    def transpose(self, semitones: int) -> None:
        """
        Shift every pitch by ``semitones`` (clamped to 0-127).

        Raises:
            TypeError: If ``semitones`` is not an integer; nothing changes
        """
        self._replace_all(transpose_notes(self._notes.values(), semitones))
        logger.debug("Transposed %d notes by %+d", len(self._notes), semitones)

    def quantize(self, grid: Union[str, QuantizeGrid]) -> None:
        """Snap every start time to ``grid``."""
        self._replace_all(quantize_notes(self._notes.values(), grid))
        logger.debug("Quantized %d notes to %s", len(self._notes), grid)

    def _replace_all(self, notes: List[NoteEvent]) -> None:
        # single assignment: readers see all of the old notes or all of the new
        self._notes = {n.id: n for n in notes}
