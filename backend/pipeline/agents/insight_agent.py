import json
from typing import Any, Dict, List

from config import settings
from state import Row
from utils.llm_factory import LLMFactory


INSIGHT_PROMPT = """
Analyze this dashboard data and provide comprehensive insights:

Data Sample: {sample}
Dashboard Items: {chart_count} visualizations

Generate:
1. Key insights (3-5 important findings)
2. Anomalies detected (unusual patterns or outliers)
3. Trend summaries (what's going up, down, or staying stable)
4. Recommendations (actionable suggestions)
"""

INSIGHT_SCHEMA = {
    "type": "object",
    "properties": {
        "insights": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "type": {"type": "string", "enum": ["insight", "anomaly", "trend", "recommendation"]},
                    "severity": {"type": "string", "enum": ["high", "medium", "low"]},
                    "title": {"type": "string"},
                    "description": {"type": "string"},
                    "metric": {"type": "string"},
                },
            },
        },
        "summary": {"type": "string"},
    },
}

INSIGHT_TYPES = ("insight", "anomaly", "trend", "recommendation")
SEVERITIES = ("high", "medium", "low")


def insight_agent(rows: List[Row], chart_count: int) -> Dict[str, Any]:
    """
    Ask the LLM for findings about the dashboard data.
    Returns {"insights": [...], "summary": str}.
    """
    prompt = INSIGHT_PROMPT.format(
        sample=json.dumps(rows[:settings.INSIGHT_SAMPLE_ROWS], default=str),
        chart_count=chart_count,
    )

    try:
        response = LLMFactory.invoke_json(prompt, INSIGHT_SCHEMA, temperature=0.4)
    except ValueError as e:
        print(f"[Insight] Analysis failed: {e}")
        return {"insights": [], "summary": "The assistant could not analyze this data right now."}

    if not isinstance(response, dict):
        response = {}

    insights = [
        _normalize(item) for item in response.get("insights") or []
        if isinstance(item, dict)
    ]
    return {"insights": insights, "summary": str(response.get("summary") or "")}


def _normalize(item: Dict[str, Any]) -> Dict[str, str]:
    kind = str(item.get("type", "")).lower()
    severity = str(item.get("severity", "")).lower()
    return {
        "type": kind if kind in INSIGHT_TYPES else "insight",
        "severity": severity if severity in SEVERITIES else "low",
        "title": str(item.get("title") or ""),
        "description": str(item.get("description") or ""),
        "metric": str(item.get("metric") or ""),
    }
