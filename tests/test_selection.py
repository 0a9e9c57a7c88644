"""
Tests for notestudio/editor/selection.py

Run with: pytest tests/test_selection.py -v
"""

from notestudio.editor.selection import SelectionModel


class TestSelection:
    def test_click_sets_active_and_sole_selection(self, store):
        sel = SelectionModel(store)
        a, b = store.add(), store.add()
        sel.click(a.id)
        sel.click(b.id)
        assert sel.active == b.id
        assert sel.selected == {b.id}

    def test_toggle_keeps_active(self, store):
        sel = SelectionModel(store)
        a, b = store.add(), store.add()
        sel.click(a.id)
        assert sel.toggle(b.id) is True
        assert sel.selected == {a.id, b.id}
        assert sel.toggle(a.id) is False
        assert sel.selected == {b.id}
        assert sel.active == a.id

    def test_unknown_ids_are_ignored(self, store):
        sel = SelectionModel(store)
        sel.click("missing")
        assert sel.toggle("missing") is False
        assert sel.active is None
        assert sel.selected == set()

    def test_deleting_active_note_clears_it(self, store):
        sel = SelectionModel(store)
        a = store.add()
        sel.click(a.id)
        store.remove(a.id)
        assert sel.active is None
        assert sel.selected == set()

    def test_bulk_delete(self, store):
        sel = SelectionModel(store)
        a, b, c = store.add(), store.add(), store.add()
        sel.click(a.id)
        sel.toggle(c.id)
        outcome = sel.bulk_delete()
        assert outcome.ok
        assert sorted(outcome.value) == sorted([a.id, c.id])
        assert store.ids == [b.id]
        assert sel.selected == set()
        assert sel.active is None

    def test_bulk_delete_with_empty_selection(self, store):
        sel = SelectionModel(store)
        store.add()
        store.add()
        before = store.notes
        outcome = sel.bulk_delete()
        assert outcome.error.kind == "user_input"
        assert store.notes == before
