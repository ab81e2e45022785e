"""Undo/redo bookkeeping for committed strokes and shapes."""

from __future__ import annotations

from typing import Generic, List, Tuple, TypeVar

T = TypeVar("T")


class HistoryStack(Generic[T]):
    """
    Two ordered lists: ``committed`` items and the ``redo_buffer``.

    Only whole committed items are tracked; pointer-level edits never reach
    the history. The redo buffer is emptied on every fresh commit so an
    undone branch cannot be replayed after history has diverged.
    """

    def __init__(self) -> None:
        self._committed: List[T] = []
        self._redo: List[T] = []

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------
    @property
    def items(self) -> Tuple[T, ...]:
        return tuple(self._committed)

    @property
    def redo_items(self) -> Tuple[T, ...]:
        return tuple(self._redo)

    @property
    def can_undo(self) -> bool:
        return bool(self._committed)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    def __len__(self) -> int:
        return len(self._committed)

    # ------------------------------------------------------------------
    # Mutation helpers
    # ------------------------------------------------------------------
    def commit(self, item: T) -> None:
        self._committed.append(item)
        self._redo.clear()

    def undo(self) -> bool:
        """Move the last committed item to the front of the redo buffer."""
        if not self._committed:
            return False
        self._redo.insert(0, self._committed.pop())
        return True

    def redo(self) -> bool:
        """Move the front of the redo buffer back onto the committed list."""
        if not self._redo:
            return False
        self._committed.append(self._redo.pop(0))
        return True

    def clear(self) -> None:
        self._committed.clear()
        self._redo.clear()
