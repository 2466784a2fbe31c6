"""
Row selection and scrollbar position for the VM list
"""
from dataclasses import dataclass
from typing import Sequence

from vmgr.constants import ITEM_HEIGHT
from vmgr.rates import DerivedRow


@dataclass(frozen=True)
class SelectionState:
    """Read-only view of the selection handed to the renderer."""
    selected_index: int | None
    row_count: int
    scroll_offset: int
    scroll_range: int


class ListSelectionModel:
    """
    Holds the ordered rows, the selected index and the scroll offset.

    The row list is replaced wholesale every tick, so the selection follows
    the selected VM by name rather than by position.
    """

    def __init__(self, item_height: int = ITEM_HEIGHT):
        self.item_height = item_height
        self.rows: list[DerivedRow] = []
        self.selected_index: int | None = None
        self.scroll_offset = 0
        self.scroll_range = 0

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def state(self) -> SelectionState:
        return SelectionState(
            selected_index=self.selected_index,
            row_count=self.row_count,
            scroll_offset=self.scroll_offset,
            scroll_range=self.scroll_range,
        )

    def selected_row(self) -> DerivedRow | None:
        if self.selected_index is None:
            return None
        return self.rows[self.selected_index]

    def ingest(self, new_rows: Sequence[DerivedRow]) -> None:
        """Replaces the rows, keeping the selected VM selected when it is still listed."""
        previous = self.selected_row()
        previous_index = self.selected_index
        self.rows = list(new_rows)
        matched = self._index_of(previous.name) if previous is not None else None

        if not self.rows:
            self.selected_index = None
        elif matched is not None:
            self.selected_index = matched
        elif previous_index is not None and previous_index < self.row_count:
            self.selected_index = previous_index
        elif previous_index is None:
            self.selected_index = 0
        else:
            self.selected_index = self.row_count - 1

        # zero and one row lists have nothing to scroll
        if self.row_count <= 1:
            self.scroll_range = 0
        else:
            self.scroll_range = (self.row_count - 1) * self.item_height
        self._update_scroll()

    def move_next(self) -> None:
        if not self.rows:
            return
        if self.selected_index is None or self.selected_index >= self.row_count - 1:
            self.selected_index = 0
        else:
            self.selected_index += 1
        self._update_scroll()

    def move_previous(self) -> None:
        if not self.rows:
            return
        if self.selected_index is None or self.selected_index == 0:
            self.selected_index = self.row_count - 1
        else:
            self.selected_index -= 1
        self._update_scroll()

    def _index_of(self, name: str) -> int | None:
        for index, row in enumerate(self.rows):
            if row.name == name:
                return index
        return None

    def _update_scroll(self) -> None:
        if self.selected_index is None:
            self.scroll_offset = 0
        else:
            self.scroll_offset = self.selected_index * self.item_height
