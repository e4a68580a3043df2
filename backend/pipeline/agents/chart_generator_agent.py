import json

from config import settings
from state import ChartRequestState
from utils.llm_factory import LLMFactory
from interaction.drill_navigator import count_by
from pipeline.agents.chart_agent import KPI_TYPES, fallback_count_option


CHART_TYPES = ("bar", "line", "pie", "area", "scatter") + KPI_TYPES


KPI_PROMPT = """
Generate a {chart_type} card configuration based on this data:

Data sample:
{sample}

{extra}

Create a {chart_type} card with:
- A clear numerical value (aggregated from the data)
- Descriptive label
- Trend indicator (up/down) if applicable
- Change percentage if applicable
"""

KPI_SCHEMA = {
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "description": {"type": "string"},
        "config": {
            "type": "object",
            "properties": {
                "type": {"type": "string"},
                "data": {
                    "type": "object",
                    "properties": {
                        "value": {"type": "string"},
                        "label": {"type": "string"},
                        "change": {"type": "string"},
                        "trend": {"type": "string"},
                    },
                },
            },
        },
    },
}


CHART_PROMPT = """
Generate an advanced {chart_type} chart configuration for ECharts.

Data sample:
{sample}

Columns: categorical={categorical}, numeric={numeric}

{extra}

Create an interactive chart with:
- Interactive tooltips
- Legend
- dataZoom for time series
- Visual styling with gradients

"config" must be a complete ECharts option object.
"""

CHART_SCHEMA = {
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "description": {"type": "string"},
        "config": {"type": "object"},
    },
}


def chart_generator_agent(state: ChartRequestState) -> ChartRequestState:
    chart_type = state.get("chart_type") or "bar"
    if chart_type not in CHART_TYPES:
        chart_type = "bar"

    rows = state.get("rows", [])
    schema = state.get("schema", {})
    sample = json.dumps(rows[:settings.CHART_SAMPLE_ROWS], indent=2, default=str)
    extra = f"Additional requirements: {state['prompt']}" if state.get("prompt") else ""

    is_kpi = chart_type in KPI_TYPES
    if is_kpi:
        prompt = KPI_PROMPT.format(chart_type=chart_type, sample=sample, extra=extra)
        response_schema = KPI_SCHEMA
    else:
        prompt = CHART_PROMPT.format(
            chart_type=chart_type,
            sample=sample,
            categorical=schema.get("categorical", []),
            numeric=schema.get("numeric", []),
            extra=extra,
        )
        response_schema = CHART_SCHEMA

    try:
        response = LLMFactory.invoke_json(prompt, response_schema, temperature=0.2)
        if not isinstance(response, dict) or not isinstance(response.get("config"), dict):
            raise ValueError("LLM reply has no config object")
        chart = {
            "title": str(response.get("title") or f"{chart_type.title()} chart"),
            "description": str(response.get("description") or ""),
            "config": response["config"],
        }
        state["debug"]["source"] = "llm"
    except ValueError as e:
        print(f"[ChartGenerator] Falling back to count chart: {e}")
        chart = _fallback_chart(chart_type, rows, schema)
        state["debug"]["source"] = "fallback"
        state["debug"]["error"] = str(e)

    chart["chart_type"] = chart_type
    state["chart"] = chart
    return state


def _fallback_chart(chart_type: str, rows, schema) -> dict:
    """Deterministic chart (or row-count card) when the LLM reply is unusable."""
    if chart_type in KPI_TYPES:
        return {
            "title": "Total Records",
            "description": "Number of rows in the data source",
            "config": {
                "type": chart_type,
                "data": {"value": str(len(rows)), "label": "Records", "change": "", "trend": ""},
            },
        }

    field = (schema.get("categorical") or [None])[0]
    chart_data = count_by(rows, field) if field else []
    title = f"Records by {field}" if field else "Records"
    return {
        "title": title,
        "description": "Count of records per category",
        "config": fallback_count_option(title, field, chart_data, chart_type),
    }
