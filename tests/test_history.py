from regionkit.core.history import HistoryStack


def test_undo_and_redo_on_empty_stack_are_noops():
    history = HistoryStack()
    assert history.undo() is False
    assert history.redo() is False
    assert not history.can_undo
    assert not history.can_redo


def test_undo_moves_last_item_to_front_of_redo():
    history = HistoryStack()
    for item in "abc":
        history.commit(item)
    assert history.undo()
    assert history.undo()
    assert history.items == ("a",)
    assert history.redo_items == ("b", "c")
    assert history.redo()
    assert history.items == ("a", "b")
    assert history.redo_items == ("c",)


def test_commit_after_undo_invalidates_redo():
    history = HistoryStack()
    history.commit(1)
    history.commit(2)
    history.undo()
    history.commit(3)
    assert history.redo_items == ()
    assert history.redo() is False
    assert history.items == (1, 3)


def test_clear_empties_both_lists():
    history = HistoryStack()
    history.commit(1)
    history.commit(2)
    history.undo()
    history.clear()
    assert len(history) == 0
    assert not history.can_redo
