"""
Editor Subpackage - in-memory note editing

    - note_store.py: Id-indexed note collection
    - transforms.py: Transpose and quantize (pure functions)
    - statistics.py: Aggregate statistics
    - selection.py: Active note and multi-selection
    - session.py: Checked editor actions for a UI or CLI

Usage:
    from notestudio.editor import EditorSession

    session = EditorSession()
    note = session.add_note()
    session.apply_quantize("eighth")
"""

from notestudio.editor.note_store import NoteStore, counter_ids
from notestudio.editor.selection import SelectionModel
from notestudio.editor.session import EditorSession
from notestudio.editor.statistics import NoteStatistics, compute_statistics
from notestudio.editor.transforms import QuantizeGrid, quantize_notes, transpose_notes
