import copy
from typing import Any, Dict, List, Optional

from state import ChartRequestState, DrillLevel, Row


# Vibrant multi-color palette for generated and drill charts
COLORS = [
    "#6366f1",  # indigo
    "#f43f5e",  # rose
    "#06b6d4",  # cyan
    "#10b981",  # emerald
    "#f97316",  # orange
    "#8b5cf6",  # violet
    "#ec4899",  # pink
    "#14b8a6",  # teal
]

# Fixed two-stop fill used by every non-pie drill level
DRILL_GRADIENT = {
    "type": "linear",
    "x": 0, "y": 0, "x2": 0, "y2": 1,
    "colorStops": [
        {"offset": 0, "color": "#667eea"},
        {"offset": 1, "color": "#764ba2"},
    ],
}

EMPTY_LEVEL_TEXT = "No data at this level"

KPI_TYPES = ("kpi", "metric")


def chart_agent(state: ChartRequestState) -> ChartRequestState:
    """Attach brush/tooltip interactivity to a freshly generated chart."""
    chart = state.get("chart") or {}
    ctype = chart.get("chart_type", state.get("chart_type", "bar"))

    if ctype in KPI_TYPES:
        return state

    config = chart.get("config")
    if not isinstance(config, dict) or not config:
        print(f"[ChartAgent] No usable config for {ctype} chart")
        return state

    config.setdefault("color", COLORS)
    chart["config"] = enhance_interactive_option(config, has_selection=False)
    state["chart"] = chart
    return state


# ==============================================================
# DRILL LEVEL CHARTS
# ==============================================================

def build_drill_option(level: DrillLevel, chart_data: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    ECharts option for one drill level from count-aggregated
    {name, value} pairs.
    """
    base = {
        "tooltip": {"trigger": "item"},
        "legend": {"bottom": 0},
        "grid": {"left": 50, "right": 50, "bottom": 60, "top": 40},
    }

    title = level.get("label") or level["field"]
    if not chart_data:
        base["title"] = {
            "text": EMPTY_LEVEL_TEXT, "left": "center", "top": "middle",
            "textStyle": {"fontSize": 14, "color": "#9ca3af"},
        }
    else:
        base["title"] = {"text": title, "left": "center", "textStyle": {"fontSize": 14, "fontWeight": "bold"}}

    if level["chart_type"] == "pie":
        return _build_pie(base, chart_data)
    return _build_category(base, level["chart_type"], chart_data)


def _build_pie(base, chart_data):
    option = dict(base)
    option["color"] = COLORS
    option["series"] = [{
        "type": "pie",
        "radius": "60%",
        "data": [dict(d) for d in chart_data],
        "emphasis": {
            "itemStyle": {
                "shadowBlur": 10,
                "shadowOffsetX": 0,
                "shadowColor": "rgba(0, 0, 0, 0.5)",
            }
        },
    }]
    return option


def _build_category(base, chart_type, chart_data):
    series_type = "bar" if chart_type == "bar" else "line"

    series = {
        "type": series_type,
        "data": [d["value"] for d in chart_data],
        "itemStyle": {"color": copy.deepcopy(DRILL_GRADIENT)},
    }
    if series_type == "line":
        series["smooth"] = True
    if chart_type == "area":
        series["areaStyle"] = {"color": copy.deepcopy(DRILL_GRADIENT), "opacity": 0.35}
    if series_type == "bar":
        series["barMaxWidth"] = 40

    option = dict(base)
    option["xAxis"] = {
        "type": "category",
        "data": [d["name"] for d in chart_data],
        "axisLabel": {"rotate": 30 if len(chart_data) > 6 else 0, "fontSize": 11},
    }
    option["yAxis"] = {"type": "value", "splitLine": {"lineStyle": {"type": "dashed", "color": "#e5e7eb"}}}
    option["series"] = [series]
    return option


# ==============================================================
# INTERACTIVE WIDGET OPTIONS
# ==============================================================

def with_series_rows(option: Dict[str, Any], rows: List[Row]) -> Dict[str, Any]:
    """
    Copy of `option` rendering `rows`: a dataset source is replaced when the
    option declares one, otherwise every series gets the rows as its data.
    """
    option = copy.deepcopy(option)

    dataset = option.get("dataset")
    if isinstance(dataset, dict):
        dataset["source"] = [dict(r) for r in rows]
        return option

    if isinstance(option.get("series"), list):
        option["series"] = [
            {**s, "data": [dict(r) for r in rows]} if isinstance(s, dict) else s
            for s in option["series"]
        ]
    return option


def enhance_interactive_option(option: Dict[str, Any], has_selection: bool) -> Dict[str, Any]:
    """Add brush, toolbox and item tooltip; focus series while a foreign selection is active."""
    option = copy.deepcopy(option)

    if not option.get("brush"):
        option["brush"] = {
            "toolbox": ["rect", "clear"],
            "xAxisIndex": 0,
            "brushStyle": {
                "borderWidth": 2,
                "color": "rgba(99, 102, 241, 0.2)",
                "borderColor": "rgba(99, 102, 241, 0.8)",
            },
        }

    if not option.get("toolbox"):
        option["toolbox"] = {"feature": {"brush": {"type": ["rect", "clear"]}}, "right": 60}

    tooltip = option.get("tooltip")
    if not isinstance(tooltip, dict):
        tooltip = {}
    option["tooltip"] = {**tooltip, "trigger": "item", "appendToBody": True}

    if has_selection and isinstance(option.get("series"), list):
        option["series"] = [
            {**s, "emphasis": {"focus": "series", "blurScope": "coordinateSystem"}}
            if isinstance(s, dict) else s
            for s in option["series"]
        ]

    return option


def fallback_count_option(title: str, field: Optional[str], chart_data: List[Dict[str, Any]], chart_type: str = "bar") -> Dict[str, Any]:
    """Deterministic chart used when the LLM gives no usable config."""
    level: DrillLevel = {
        "field": field or "value",
        "label": title,
        "chart_type": chart_type if chart_type in ("bar", "line", "pie", "area") else "bar",
    }
    return build_drill_option(level, chart_data)
