from typing import TypedDict, List, Dict, Any, Optional, Union


# -----------------------------
# Row data
# -----------------------------

# Closed scalar type a cell may hold. bool is its own variant.
Scalar = Union[str, int, float, bool, None]
Row = Dict[str, Scalar]


# -----------------------------
# Brush selection
# -----------------------------

class Selection(TypedDict):
    owner_id: str
    rows: List[Row]


# -----------------------------
# Drill-down
# -----------------------------

class DrillLevel(TypedDict):
    field: str
    label: str
    chart_type: str               # bar | line | pie | area


class DrillFilter(TypedDict):
    field: str
    value: Scalar


class DrillFrame(TypedDict):
    level: int
    source_rows: List[Row]        # candidate rows at this level
    applied_filter: Optional[DrillFilter]
    aggregation: List[Dict[str, Any]]
    rendered_config: Dict[str, Any]
    clicked_point: Optional[Dict[str, Any]]


# -----------------------------
# Frontend-ready specifications
# -----------------------------

class ChartView(TypedDict):
    id: str
    title: str
    option: Dict[str, Any]
    rows: List[Row]
    filtered: bool
    has_selection: bool
    drill_levels: List[DrillLevel]


# -----------------------------
# Chart generation pipeline state
# -----------------------------

class ChartRequestState(TypedDict):
    """
    State handed through the chart generation pipeline.
    """

    # -----------------------------
    # Request context
    # -----------------------------
    session_id: str
    source_id: str

    # -----------------------------
    # User input
    # -----------------------------
    chart_type: str
    prompt: str

    # -----------------------------
    # Data
    # -----------------------------
    rows: List[Row]
    schema: Dict[str, Any]

    # -----------------------------
    # Outputs
    # -----------------------------
    chart: Dict[str, Any]         # {title, description, config, chart_type}

    # -----------------------------
    # Debug / traceability
    # -----------------------------
    debug: Dict[str, Any]
