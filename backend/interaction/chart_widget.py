"""
Chart Widget

One chart on the dashboard: its ECharts config, its backing rows and its
drill-down path. Brushing publishes the covered rows to the shared
SelectionHub; a selection published by another widget narrows what this
widget renders.
"""

from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from interaction.selection_hub import SelectionHub
from pipeline.agents.chart_agent import enhance_interactive_option, with_series_rows
from state import ChartView, DrillLevel, Row
from utils.row_utils import intersect_rows


DrillRequest = Callable[[Dict[str, Any], Sequence[DrillLevel], List[Row]], Any]


class ChartWidget:

    def __init__(
        self,
        chart_id: str,
        config: Dict[str, Any],
        rows: List[Row],
        hub: SelectionHub,
        on_drill_request: Optional[DrillRequest] = None,
        drill_levels: Sequence[DrillLevel] = (),
        title: str = "",
    ):
        self.chart_id = chart_id
        self.config = config or {}
        self.rows: List[Row] = list(rows or [])
        self.hub = hub
        self.on_drill_request = on_drill_request
        self.drill_levels: Tuple[DrillLevel, ...] = tuple(drill_levels)
        self.title = title or chart_id

        self._stale = False
        self._unsubscribe = hub.subscribe(self._on_selection_changed)

    @property
    def columns(self) -> List[str]:
        return list(self.rows[0].keys()) if self.rows else []

    @property
    def is_stale(self) -> bool:
        """True when the selection changed since the last render."""
        return self._stale

    def _on_selection_changed(self, selection):
        # re-evaluated on the next render pass
        self._stale = True

    # --------------------------------------------------
    # Brush
    # --------------------------------------------------

    def on_brush_complete(self, coord_range: Optional[Sequence[float]]) -> bool:
        """
        Publish the rows whose positions fall inside the inclusive
        [start, end] range. An empty brush releases our own selection.
        """
        covered: List[Row] = []
        if coord_range is not None and len(coord_range) >= 2:
            start, end = coord_range[0], coord_range[1]
            covered = [row for i, row in enumerate(self.rows) if start <= i <= end]

        if covered:
            return self.hub.publish(self.chart_id, covered)

        if self.hub.owned_by(self.chart_id):
            return self.hub.clear()
        return False

    # --------------------------------------------------
    # Rendering
    # --------------------------------------------------

    def has_foreign_selection(self) -> bool:
        selection = self.hub.current()
        return selection is not None and selection["owner_id"] != self.chart_id

    def visible_rows(self) -> Tuple[List[Row], bool]:
        """
        Rows to draw and whether they are a narrowed subset.
        An empty intersection falls back to the full dataset.
        """
        selection = self.hub.current()
        if selection is None or selection["owner_id"] == self.chart_id:
            return self.rows, False

        filtered = intersect_rows(self.rows, selection["rows"])
        if not filtered:
            return self.rows, False
        return filtered, len(filtered) < len(self.rows)

    def render(self) -> ChartView:
        rows, filtered = self.visible_rows()
        foreign = self.has_foreign_selection()

        option = self.config
        if filtered:
            option = with_series_rows(option, rows)
        option = enhance_interactive_option(option, has_selection=foreign)

        self._stale = False
        return {
            "id": self.chart_id,
            "title": self.title,
            "option": option,
            "rows": rows,
            "filtered": filtered,
            "has_selection": foreign,
            "drill_levels": [dict(level) for level in self.drill_levels],
        }

    # --------------------------------------------------
    # Click / drill
    # --------------------------------------------------

    def on_click(self, point: Dict[str, Any]):
        """Forward the click to the drill navigator when a drill path is configured."""
        if not self.drill_levels or self.on_drill_request is None:
            return None
        return self.on_drill_request(point, self.drill_levels, self.rows)

    def set_drill_levels(self, levels: Sequence[DrillLevel]):
        self.drill_levels = tuple(levels)

    # --------------------------------------------------
    # Lifecycle
    # --------------------------------------------------

    def dispose(self):
        """Detach from the hub, releasing the selection if we own it."""
        if self.hub.owned_by(self.chart_id):
            self.hub.clear()
        self._unsubscribe()
