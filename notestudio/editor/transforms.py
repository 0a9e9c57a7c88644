"""
Bulk note transformations.

Pure functions: they take a sequence of NoteEvents and return a new list,
never touching the input. The NoteStore applies them and swaps the result
in as a whole.

    transpose_notes  shift every pitch, clamped to 0-127
    quantize_notes   snap every start time to a grid, durations untouched
"""

import math
import operator
from enum import Enum
from typing import Dict, Iterable, List, Union

from notestudio.data.schema import MAX_PITCH, MIN_PITCH, NoteEvent


class QuantizeGrid(str, Enum):
    WHOLE = "whole"
    HALF = "half"
    QUARTER = "quarter"
    EIGHTH = "eighth"
    SIXTEENTH = "sixteenth"
    TRIPLET = "triplet"


# Grid spacing in beats
GRID_SIZES: Dict[QuantizeGrid, float] = {
    QuantizeGrid.WHOLE: 4.0,
    QuantizeGrid.HALF: 2.0,
    QuantizeGrid.QUARTER: 1.0,
    QuantizeGrid.EIGHTH: 0.5,
    QuantizeGrid.SIXTEENTH: 0.25,
    QuantizeGrid.TRIPLET: 1.0 / 3.0,
}


def clamp(value: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, value))


def round_half_up(x: float) -> int:
    """Round to the nearest integer, halves going up (2.5 -> 3, -2.5 -> -2)."""
    return int(math.floor(x + 0.5))


def parse_grid(grid: Union[str, QuantizeGrid]) -> QuantizeGrid:
    """
    Turn a grid name into a QuantizeGrid.

    Raises:
        ValueError: If the name is not a known grid
    """
    if isinstance(grid, QuantizeGrid):
        return grid
    try:
        return QuantizeGrid(grid.strip().lower())
    except ValueError:
        valid = [g.value for g in QuantizeGrid]
        raise ValueError(f"Grid must be one of {valid}. Got: '{grid}'") from None


def transpose_notes(notes: Iterable[NoteEvent], semitones: int) -> List[NoteEvent]:
    """
    Shift every pitch by ``semitones``, clamping to the MIDI range.

    Clamping is lossy: transposing 60 by -70 gives 0, and transposing that
    back by +70 gives 70, not 60.

    Example:
        >>> [n.pitch for n in transpose_notes(notes, 70)]  # pitches [60, 100]
        [127, 127]

    Raises:
        TypeError: If ``semitones`` is not an integer (e.g. 1.5)
    """
    semitones = operator.index(semitones)
    return [
        note.model_copy(update={"pitch": clamp(note.pitch + semitones, MIN_PITCH, MAX_PITCH)})
        for note in notes
    ]


def quantize_notes(
    notes: Iterable[NoteEvent],
    grid: Union[str, QuantizeGrid],
) -> List[NoteEvent]:
    """
    Snap every note's start time to the nearest grid point.

    Only ``start_time`` changes. Notes may overlap afterwards; that is left
    alone. Applying the same grid twice gives the same result as once.

    Example:
        start 0.26, "quarter" (1.0) -> 0.0
        start 0.26, "eighth"  (0.5) -> 0.5
    """
    size = GRID_SIZES[parse_grid(grid)]
    return [
        note.model_copy(update={"start_time": round_half_up(note.start_time / size) * size})
        for note in notes
    ]
