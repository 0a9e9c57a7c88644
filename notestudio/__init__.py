"""
notestudio - Note Editing and AI Generation Pipeline

Edit discrete note events (pitch, velocity, timing) and drive an
upload → analyze → generate → export workflow against an external
music-generation service.

Subpackages:
    - notestudio.data: Schemas and JSON document I/O
    - notestudio.editor: Note store, selection, transforms, editor session
    - notestudio.pipeline: Generation workflow state machine and service contracts
    - notestudio.app: Command line interface

Example usage:
    from notestudio.editor.session import EditorSession

    session = EditorSession()
    session.add_note()
    session.apply_transpose(7)
    print(session.statistics)   # NoteStatistics(count=1, min_pitch=67, ...)
"""

__version__ = "0.1.0"
