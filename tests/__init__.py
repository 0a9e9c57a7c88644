"""
Test Package

Contains unit tests for all modules.
Run with: pytest tests/ -v

Test files follow the pattern:
    test_<module_name>.py

Example:
    tests/test_note_store.py   - Tests for notestudio/editor/note_store.py
    tests/test_reducer.py      - Tests for notestudio/pipeline/reducer.py
    tests/test_controller.py   - Tests for notestudio/pipeline/controller.py
"""
