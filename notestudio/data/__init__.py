"""
Data Subpackage

    - schema.py: Pydantic models for notes, service payloads and documents
    - io.py: Reading and writing those models as JSON files

The core data structure is the NoteEvent:
    - id: opaque identifier
    - pitch / velocity: 0-127
    - start_time: seconds, >= 0
    - duration: seconds, > 0
"""

from notestudio.data.schema import NoteEvent, MidiDocument
