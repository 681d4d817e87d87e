"""
Selection state machine.

Owns the SelectionState snapshot and every transition on it:
    IDLE -> LOADING -> LOADED / EMPTY -> ERROR
plus keyboard and pointer handling while results are shown.

Arrow keys, Enter and hover only act in LOADED. Escape closes the popup
from any non-idle state but keeps the typed text.
"""

from enum import Enum
from typing import Any, Callable, Optional, Union
import logging

from typeahead.search_models import ResultPage, SearchResult, SelectionState, Status

logger = logging.getLogger(__name__)


class Key(str, Enum):
    ARROW_DOWN = "ArrowDown"
    ARROW_UP = "ArrowUp"
    ENTER = "Enter"
    ESCAPE = "Escape"


def parse_key(key: Union[str, Key]) -> Optional[Key]:
    """Map a DOM-style key name to a Key, or None for keys we ignore"""
    if isinstance(key, Key):
        return key
    try:
        return Key(key)
    except ValueError:
        return None


class SelectionMachine:
    """Holds the current snapshot and applies transitions to it"""

    def __init__(
        self,
        on_select: Optional[Callable[[SearchResult], Any]] = None,
        on_change: Optional[Callable[[SelectionState], Any]] = None,
    ):
        self.on_select = on_select
        self.on_change = on_change
        self._state = SelectionState()

    @property
    def state(self) -> SelectionState:
        return self._state

    def _set(self, **changes) -> SelectionState:
        new_state = self._state.model_copy(update=changes)
        if new_state == self._state:
            return self._state
        self._state = new_state
        if self.on_change is not None:
            self.on_change(new_state)
        return new_state

    # Result-list transitions. Each one resets the highlighted index so an
    # old index can never point into a new, unrelated list.

    def begin_loading(self, query: str) -> SelectionState:
        return self._set(query=query, results=[], status=Status.LOADING,
                         selected_index=-1, error_message=None, total=0)

    def apply_page(self, query: str, page: ResultPage) -> SelectionState:
        results = list(page.results)
        status = Status.LOADED if results else Status.EMPTY
        return self._set(query=query, results=results, status=status,
                         selected_index=-1, error_message=None, total=page.total)

    def fail(self, query: str, message: str) -> SelectionState:
        return self._set(query=query, results=[], status=Status.ERROR,
                         selected_index=-1, error_message=message, total=0)

    def clear(self, query: Optional[str] = None) -> SelectionState:
        if query is None:
            query = self._state.query
        return self._set(query=query, results=[], status=Status.IDLE,
                         selected_index=-1, error_message=None, total=0)

    # Events

    def handle_key(self, key: Union[str, Key]) -> Optional[SearchResult]:
        """
        Apply a key press. Returns the committed result on Enter, else None.
        """
        parsed = parse_key(key)
        if parsed is None:
            return None

        if parsed is Key.ESCAPE:
            if self._state.status is not Status.IDLE:
                self.clear()
            return None

        if self._state.status is not Status.LOADED:
            return None

        count = len(self._state.results)
        index = self._state.selected_index

        if parsed is Key.ARROW_DOWN:
            self._set(selected_index=0 if index >= count - 1 else index + 1)
        elif parsed is Key.ARROW_UP:
            self._set(selected_index=count - 1 if index <= 0 else index - 1)
        elif parsed is Key.ENTER:
            return self.commit()
        return None

    def commit(self) -> Optional[SearchResult]:
        result = self._state.selected
        if result is None:
            return None
        logger.debug(f"Committing result {result.id}")
        if self.on_select is not None:
            self.on_select(result)
        return result

    def hover(self, index: int) -> None:
        if self._state.status is not Status.LOADED:
            return
        if 0 <= index < len(self._state.results):
            self._set(selected_index=index)
