"""
Generation history: every successful generation, in call order.

The history is append-only. ``appended`` returns a new history and leaves
the old one as it was; nothing is ever removed except by a full reset of
the pipeline, which starts over with an empty history.
"""

from datetime import datetime
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from notestudio.data.schema import GenerationParams, GenerationResult


class HistoryEntry(BaseModel):
    """
    One successful generation.

    Attributes:
        timestamp: When the result arrived (from the controller's clock)
        params: The parameters that were sent
        result: What came back
    """

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    params: GenerationParams
    result: GenerationResult

    def summary(self) -> str:
        """One line for a history panel, e.g. "12:00:03  melody  42 notes"."""
        return (
            f"{self.timestamp.strftime('%H:%M:%S')}  "
            f"{self.params.model_name}  {len(self.result.notes)} notes"
        )


class GenerationHistory(BaseModel):
    """
    Append-only log of HistoryEntry values, oldest first.

    Example:
        >>> history = GenerationHistory().appended(entry)
        >>> len(history), history.latest is entry
        (1, True)
    """

    model_config = ConfigDict(frozen=True)

    entries: Tuple[HistoryEntry, ...] = ()

    def __len__(self) -> int:
        return len(self.entries)

    def appended(self, entry: HistoryEntry) -> "GenerationHistory":
        return GenerationHistory(entries=self.entries + (entry,))

    @property
    def latest(self) -> Optional[HistoryEntry]:
        return self.entries[-1] if self.entries else None

    def recent(self, limit: int = 5) -> List[HistoryEntry]:
        """The newest ``limit`` entries, newest first."""
        if limit <= 0:
            return []
        return list(reversed(self.entries[-limit:]))
