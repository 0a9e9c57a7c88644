"""
Selection state for the note editor.

    active    the single note being edited (or None)
    selected  the set of notes a bulk delete would remove

Clicking a note makes it active and the only selected note. Toggling a
note's checkbox adds or removes it from the selection and leaves the active
note alone. Ids removed from the store drop out of both automatically.
"""

import logging
from typing import List, Optional, Set

from notestudio.editor.note_store import NoteStore
from notestudio.errors import Outcome, UserInputError

logger = logging.getLogger(__name__)


class SelectionModel:
    """
    Active note and multi-selection over one NoteStore.

    Attributes:
        store: The store whose ids are being selected
        active: Id of the note open for editing, or None
        selected: Ids a bulk delete would remove

    Example:
        >>> selection = SelectionModel(store)
        >>> selection.click("note-1")
        >>> selection.toggle("note-2")
        True
        >>> selection.selected == {"note-1", "note-2"}
        True
    """

    def __init__(self, store: NoteStore):
        self.store = store
        self.active: Optional[str] = None
        self.selected: Set[str] = set()
        store.on_remove(self._forget)

    def click(self, note_id: str) -> None:
        """Make a note active and the only selected note; unknown ids are ignored."""
        if note_id not in self.store:
            return
        self.active = note_id
        self.selected = {note_id}

    def toggle(self, note_id: str) -> bool:
        """Flip one note's membership in the selection; returns the new state."""
        if note_id in self.selected:
            self.selected.discard(note_id)
            return False
        if note_id not in self.store:
            return False
        self.selected.add(note_id)
        return True

    def is_selected(self, note_id: str) -> bool:
        return note_id in self.selected

    def clear(self) -> None:
        self.active = None
        self.selected = set()

    def bulk_delete(self) -> Outcome[List[str]]:
        """Delete every selected note. An empty selection is reported, not skipped."""
        if not self.selected:
            return Outcome.failure(UserInputError("Select notes to delete"))
        removed = self.store.remove_many(self.selected)
        logger.info("Deleted %d selected notes", len(removed))
        return Outcome.success(removed)

    def _forget(self, ids: Set[str]) -> None:
        # store listener, called with the ids that just left the store
        self.selected -= ids
        if self.active in ids:
            self.active = None
