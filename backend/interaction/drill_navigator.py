"""
Drill-Down Navigator

Walks a chart's configured drill path. Each frame holds the candidate rows
at its level; descending filters them by the clicked category of the
current level and re-aggregates by the next level's field. Going back
truncates the stack, so an abandoned branch is gone for good.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple

from config import settings
from pipeline.agents.chart_agent import build_drill_option
from state import DrillFrame, DrillLevel, Row, Scalar
from utils.row_utils import category_label, value_matches_category


def parse_drill_levels(raw: Any, columns: Optional[Sequence[str]] = None) -> List[DrillLevel]:
    """
    Validate a configured drill path.
    Accepts `chart_type` or `chartType`; raises ValueError on bad input.
    """
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValueError("Drill path must be a list of levels")

    levels: List[DrillLevel] = []
    for idx, entry in enumerate(raw):
        if not isinstance(entry, dict):
            raise ValueError(f"Drill level {idx + 1} must be an object")

        field = entry.get("field")
        if not field or not isinstance(field, str):
            raise ValueError(f"Drill level {idx + 1} has no field")
        if columns is not None and field not in columns:
            raise ValueError(f"Drill level {idx + 1}: unknown column '{field}'")

        chart_type = entry.get("chart_type", entry.get("chartType")) or "bar"
        if chart_type not in settings.DRILL_CHART_TYPES:
            raise ValueError(
                f"Drill level {idx + 1}: chart type must be one of {list(settings.DRILL_CHART_TYPES)}"
            )

        levels.append({
            "field": field,
            "label": str(entry.get("label") or ""),
            "chart_type": chart_type,
        })

    return levels


def count_by(rows: List[Row], field: str) -> List[Dict[str, Any]]:
    """Occurrences per distinct value of `field`, in first-seen order."""
    counts: Dict[str, int] = {}
    for row in rows:
        name = category_label(row.get(field))
        if name is None:
            continue
        counts[name] = counts.get(name, 0) + 1
    return [{"name": name, "value": value} for name, value in counts.items()]


class DrillNavigator:
    """
    States: closed (empty stack) and open (stack of frames).
    Invalid transitions are no-ops returning False.
    """

    def __init__(self):
        self.levels: Tuple[DrillLevel, ...] = ()
        self.stack: List[DrillFrame] = []
        self.chart_id: Optional[str] = None

    # --------------------------------------------------
    # State
    # --------------------------------------------------

    @property
    def is_open(self) -> bool:
        return bool(self.stack)

    @property
    def current_level(self) -> int:
        return len(self.stack) - 1

    @property
    def current_frame(self) -> Optional[DrillFrame]:
        return self.stack[-1] if self.stack else None

    @property
    def can_descend(self) -> bool:
        return self.is_open and self.current_level < len(self.levels) - 1

    @property
    def can_ascend(self) -> bool:
        return self.is_open and self.current_level > 0

    # --------------------------------------------------
    # Transitions
    # --------------------------------------------------

    def open(self, point: Dict[str, Any], levels: Sequence[DrillLevel], source_rows: List[Row],
             chart_id: Optional[str] = None) -> bool:
        if not levels:
            return False

        self.levels = tuple(dict(level) for level in levels)
        self.chart_id = chart_id
        self.stack = [self._frame(0, list(source_rows), None, point)]
        print(f"[DrillNavigator] Opened on {chart_id or 'chart'} with {len(self.levels)} levels")
        return True

    def descend(self, clicked_value: Scalar) -> bool:
        if not self.can_descend:
            return False

        current = self.stack[-1]
        field = self.levels[self.current_level]["field"]
        next_rows = [
            row for row in current["source_rows"]
            if field in row and value_matches_category(row[field], clicked_value)
        ]

        frame = self._frame(
            self.current_level + 1,
            next_rows,
            {"field": field, "value": clicked_value},
            None,
        )
        self.stack.append(frame)
        print(f"[DrillNavigator] {field}={clicked_value!r} -> level {frame['level']} ({len(next_rows)} rows)")
        return True

    def ascend(self) -> bool:
        if not self.can_ascend:
            return False
        del self.stack[self.current_level:]
        return True

    def jump_to_breadcrumb(self, target_level: int) -> bool:
        if not self.is_open or not 0 <= target_level < self.current_level:
            return False
        del self.stack[target_level + 1:]
        return True

    def close(self) -> bool:
        if not self.is_open:
            return False
        self.stack = []
        self.levels = ()
        self.chart_id = None
        return True

    # --------------------------------------------------
    # Views
    # --------------------------------------------------

    def breadcrumbs(self) -> List[Dict[str, Any]]:
        current = self.current_level
        return [
            {
                "level": idx,
                "label": level["label"] or level["field"],
                "active": idx == current,
                "reachable": idx < current,
            }
            for idx, level in enumerate(self.levels)
        ]

    def to_dict(self) -> Dict[str, Any]:
        frame = self.current_frame
        return {
            "open": self.is_open,
            "chart_id": self.chart_id,
            "current_level": self.current_level if self.is_open else None,
            "level_count": len(self.levels),
            "can_descend": self.can_descend,
            "can_ascend": self.can_ascend,
            "breadcrumbs": self.breadcrumbs(),
            "filter": frame["applied_filter"] if frame else None,
            "empty": bool(frame) and not frame["aggregation"],
            "stack": [
                {
                    "level": f["level"],
                    "applied_filter": f["applied_filter"],
                    "row_count": len(f["source_rows"]),
                    "aggregation": f["aggregation"],
                    "rendered_config": f["rendered_config"],
                    "clicked_point": f["clicked_point"],
                }
                for f in self.stack
            ],
        }

    def _frame(self, level: int, rows: List[Row], applied_filter, point) -> DrillFrame:
        drill_level = self.levels[level]
        aggregation = count_by(rows, drill_level["field"])
        return {
            "level": level,
            "source_rows": rows,
            "applied_filter": applied_filter,
            "aggregation": aggregation,
            "rendered_config": build_drill_option(drill_level, aggregation),
            "clicked_point": point,
        }
