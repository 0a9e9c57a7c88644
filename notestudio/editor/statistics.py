"""Aggregate statistics over a note collection."""

from dataclasses import dataclass
from typing import Dict, Optional, Sequence

from notestudio.data.schema import NoteEvent
from notestudio.editor.transforms import round_half_up


@dataclass(frozen=True)
class NoteStatistics:
    """
    Summary shown next to the note list.

    Attributes:
        count: Number of notes
        min_pitch: Lowest MIDI pitch
        max_pitch: Highest MIDI pitch
        average_velocity: Mean velocity, rounded half-up
        total_duration: End of the last-ending note, in seconds
                        (the span from 0, not the sum of durations)
    """

    count: int
    min_pitch: int
    max_pitch: int
    average_velocity: int
    total_duration: float

    def to_dict(self) -> Dict:
        """JSON-ready dict; the duration is rounded to 2 decimals for display."""
        return {
            "count": self.count,
            "min_pitch": self.min_pitch,
            "max_pitch": self.max_pitch,
            "average_velocity": self.average_velocity,
            "total_duration": round(self.total_duration, 2),
        }


def compute_statistics(notes: Sequence[NoteEvent]) -> Optional[NoteStatistics]:
    """
    Summarise a note collection.

    Returns None for an empty collection; min/max/mean are only ever taken
    over at least one note.
    """
    if not notes:
        return None

    pitches = [n.pitch for n in notes]
    velocities = [n.velocity for n in notes]

    return NoteStatistics(
        count=len(notes),
        min_pitch=min(pitches),
        max_pitch=max(pitches),
        average_velocity=round_half_up(sum(velocities) / len(velocities)),
        total_duration=max(n.end_time for n in notes),
    )
