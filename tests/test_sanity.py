"""
Test Suite - Basic Sanity Tests

These tests verify that the package structure is correct
and that basic imports work.

Run with: pytest tests/test_sanity.py -v
"""

import pytest


class TestPackageStructure:
    """Test that all packages can be imported."""

    def test_import_notestudio(self):
        """Test that the main package can be imported."""
        import notestudio
        assert notestudio.__version__ == "0.1.0"

    def test_import_data_package(self):
        from notestudio.data import MidiDocument, NoteEvent
        assert MidiDocument().notes == []
        assert NoteEvent(id="n", pitch=60, duration=1.0).velocity == 100

    def test_import_editor_package(self):
        from notestudio.editor import EditorSession, NoteStore, QuantizeGrid
        assert len(EditorSession().store) == 0
        assert isinstance(NoteStore().notes, list)
        assert QuantizeGrid("triplet") is QuantizeGrid.TRIPLET

    def test_import_pipeline_modules(self):
        from notestudio.pipeline.controller import PipelineController
        from notestudio.pipeline.state import Stage
        assert PipelineController.__init__ is not None
        assert [s.value for s in Stage] == ["idle", "uploaded", "analyzed", "generating", "generated"]

    def test_import_app_package(self):
        from notestudio.app.cli import main
        assert callable(main)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
