"""
Selection Broadcast Hub

Holds at most one active brush selection for a dashboard view and
broadcasts changes to every subscribed chart widget.

A selection has:
- owner_id: the chart that produced it
- rows: the data rows the brush covered

Publishing is last-writer-wins: a new publish replaces the previous
selection wholesale, whoever owned it.
"""

from typing import Callable, Dict, List, Optional

from state import Row, Selection


SelectionListener = Callable[[Optional[Selection]], None]


class SelectionHub:
    """
    Shared selection state, injected into every widget of one dashboard.
    """

    def __init__(self):
        self._selection: Optional[Selection] = None
        self._listeners: Dict[int, SelectionListener] = {}
        self._next_token = 0
        self.version = 0

    # --------------------------------------------------
    # Read
    # --------------------------------------------------

    def current(self) -> Optional[Selection]:
        """Snapshot of the active selection, or None."""
        if self._selection is None:
            return None
        return {
            "owner_id": self._selection["owner_id"],
            "rows": list(self._selection["rows"]),
        }

    def owned_by(self, widget_id: str) -> bool:
        return self._selection is not None and self._selection["owner_id"] == widget_id

    # --------------------------------------------------
    # Write
    # --------------------------------------------------

    def publish(self, owner_id: str, rows: List[Row]) -> bool:
        """
        Replace the active selection. An empty `rows` clears the selection
        when sent by its owner and is ignored otherwise.

        Returns True if the hub state changed.
        """
        if not rows:
            if self.owned_by(owner_id):
                return self.clear()
            return False

        self._selection = {"owner_id": owner_id, "rows": list(rows)}
        print(f"[SelectionHub] {owner_id} selected {len(rows)} rows")
        self._changed()
        return True

    def clear(self) -> bool:
        if self._selection is None:
            return False

        print(f"[SelectionHub] Cleared selection of {self._selection['owner_id']}")
        self._selection = None
        self._changed()
        return True

    # --------------------------------------------------
    # Subscriptions
    # --------------------------------------------------

    def subscribe(self, listener: SelectionListener) -> Callable[[], None]:
        """Register a listener; returns a function that removes it."""
        token = self._next_token
        self._next_token += 1
        self._listeners[token] = listener

        def unsubscribe():
            self._listeners.pop(token, None)

        return unsubscribe

    def _changed(self):
        self.version += 1
        snapshot = self.current()
        for listener in list(self._listeners.values()):
            listener(snapshot)
