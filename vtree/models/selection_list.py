"""
Selection List - Flat render list with a selection cursor.

The tree model writes its render list here; a virtualized renderer reads
rows with ``get_item`` and listens to the signals.

Usage:
    rows = SelectionList()
    rows.on_splice.connect(lambda start: view.reset_after(start))
    rows.on_selection_changed.connect(lambda: view.scroll_to(rows.selected_index))

    rows.splice(0, len(rows), nodes)
    rows.set_selected(0)
"""
from typing import Generic, Iterator, List, Sequence, TypeVar

from vtree.core.events import Signal

T = TypeVar("T")


class SelectionList(Generic[T]):
    """
    Ordered container plus a single selection cursor (-1 means none).

    Signals:
        on_splice(start): Fired after every splice. Carries only the start
            index; subscribers requery length and content.
        on_selection_changed(): Fired when the cursor moves.
    """

    def __init__(self):
        self._items: List[T] = []
        self._selected_index: int = -1
        self.on_splice = Signal("SelectionList.on_splice")
        self.on_selection_changed = Signal("SelectionList.on_selection_changed")

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items))

    @property
    def length(self) -> int:
        return len(self._items)

    @property
    def selected_index(self) -> int:
        return self._selected_index

    def splice(self, start: int, delete_count: int, items: Sequence[T] = ()) -> List[T]:
        """
        Replace ``delete_count`` items at ``start`` with ``items``.

        Returns:
            The removed items.
        """
        end = start + max(delete_count, 0)
        deleted = self._items[start:end]
        self._items[start:end] = items
        self.on_splice.emit(start)
        return deleted

    def get_item(self, index: int) -> T:
        return self._items[index]

    def set_selected(self, index: int) -> None:
        # No bounds check; the renderer clamps the cursor after a splice
        if self._selected_index == index:
            return
        self._selected_index = index
        self.on_selection_changed.emit()

    def is_selected(self, index: int) -> bool:
        return self._selected_index == index

    def dispose(self) -> None:
        self.on_splice.clear()
        self.on_selection_changed.clear()
