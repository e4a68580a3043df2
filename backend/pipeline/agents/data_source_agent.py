"""
LLM reviews of uploaded data sources: quality assessment of one source,
join candidates across sources and complementary sources worth adding.
"""

import json
from typing import Any, Dict, List

from config import settings
from state import Row
from utils.llm_factory import LLMFactory


VALIDATION_PROMPT = """
Analyze this dataset and provide data quality assessment and cleaning suggestions:

Data Source: {source_name}
Sample Data (first {sample_size} rows): {sample}
Columns: {columns}

Analyze for:
1. Missing values and how to handle them
2. Data type inconsistencies
3. Outliers or anomalies
4. Duplicate records
5. Format issues (dates, numbers, etc.)
6. Suggested data transformations
"""

VALIDATION_SCHEMA = {
    "type": "object",
    "properties": {
        "overallQuality": {"type": "string", "enum": ["excellent", "good", "fair", "poor"]},
        "issues": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "type": {"type": "string"},
                    "severity": {"type": "string"},
                    "column": {"type": "string"},
                    "description": {"type": "string"},
                    "suggestion": {"type": "string"},
                    "affectedRows": {"type": "number"},
                },
            },
        },
        "recommendations": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "action": {"type": "string"},
                    "reason": {"type": "string"},
                    "impact": {"type": "string"},
                },
            },
        },
    },
}

JOINS_PROMPT = """
Analyze these data sources and suggest potential joins:

Data Sources:
{sources}

Identify:
1. Common columns that could be used for joins
2. Semantic relationships between tables
3. Recommended join types (inner, left, etc.)
4. Potential insights from combining these sources
"""

JOINS_SCHEMA = {
    "type": "object",
    "properties": {
        "joins": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "leftSource": {"type": "string"},
                    "rightSource": {"type": "string"},
                    "leftColumn": {"type": "string"},
                    "rightColumn": {"type": "string"},
                    "joinType": {"type": "string", "enum": ["inner", "left", "right", "full"]},
                    "confidence": {"type": "string", "enum": ["high", "medium", "low"]},
                    "reason": {"type": "string"},
                    "potentialInsights": {"type": "string"},
                },
            },
        },
    },
}

SOURCES_PROMPT = """
Based on the existing data sources and dashboard content, suggest 3-5 additional data sources that would enhance analysis:

Current Data Sources:
{sources}

Dashboard Items:
{dashboard}

Provide suggestions for complementary data sources that would:
1. Fill gaps in current analysis
2. Enable deeper insights
3. Support predictive or comparative analysis
"""

SOURCES_SCHEMA = {
    "type": "object",
    "properties": {
        "suggestions": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "reason": {"type": "string"},
                    "dataTypes": {"type": "array", "items": {"type": "string"}},
                    "potentialInsights": {"type": "string"},
                },
            },
        },
    },
}

QUALITY_LEVELS = ("excellent", "good", "fair", "poor")
ISSUE_TYPES = ("missing_values", "type_mismatch", "outliers", "duplicates", "format_issue")
SEVERITIES = ("high", "medium", "low")
JOIN_TYPES = ("inner", "left", "right", "full")


def validate_data(rows: List[Row], columns: List[str], source_name: str) -> Dict[str, Any]:
    """
    Data quality assessment of one source.
    Returns {"overallQuality", "issues", "recommendations"}; overallQuality
    is "unknown" when the reply cannot be parsed.
    """
    sample = rows[:settings.VALIDATION_SAMPLE_ROWS]
    prompt = VALIDATION_PROMPT.format(
        source_name=source_name,
        sample_size=len(sample),
        sample=json.dumps(sample, default=str),
        columns=json.dumps(columns),
    )

    try:
        response = LLMFactory.invoke_json(prompt, VALIDATION_SCHEMA, temperature=0)
    except ValueError as e:
        print(f"[DataSource] Validation failed: {e}")
        return {"overallQuality": "unknown", "issues": [], "recommendations": []}

    if not isinstance(response, dict):
        response = {}

    quality = str(response.get("overallQuality", "")).lower()
    return {
        "overallQuality": quality if quality in QUALITY_LEVELS else "unknown",
        "issues": [_issue(i) for i in _objects(response.get("issues"))],
        "recommendations": [
            {
                "action": str(r.get("action") or ""),
                "reason": str(r.get("reason") or ""),
                "impact": str(r.get("impact") or ""),
            }
            for r in _objects(response.get("recommendations"))
        ],
    }


def _issue(item: Dict[str, Any]) -> Dict[str, Any]:
    kind = str(item.get("type", "")).lower()
    severity = str(item.get("severity", "")).lower()
    affected = item.get("affectedRows")
    if isinstance(affected, bool) or not isinstance(affected, (int, float)):
        affected = None
    return {
        "type": kind if kind in ISSUE_TYPES else "format_issue",
        "severity": severity if severity in SEVERITIES else "low",
        "column": str(item.get("column") or ""),
        "description": str(item.get("description") or ""),
        "suggestion": str(item.get("suggestion") or ""),
        "affectedRows": int(affected) if affected is not None else None,
    }


def suggest_joins(sources: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Join candidates across sources, each given as {"name", "columns", "sample"}.
    Fewer than two sources means nothing to join.
    Suggestions naming a column the source does not have are dropped.
    """
    if len(sources) < 2:
        return []

    columns_by_name = {s["name"]: set(s.get("columns", [])) for s in sources}
    prompt = JOINS_PROMPT.format(sources=json.dumps(sources, indent=2, default=str))

    try:
        response = LLMFactory.invoke_json(prompt, JOINS_SCHEMA, temperature=0)
    except ValueError as e:
        print(f"[DataSource] Join suggestions failed: {e}")
        return []

    joins = []
    for item in _objects(response.get("joins") if isinstance(response, dict) else None):
        left, right = item.get("leftSource"), item.get("rightSource")
        if item.get("leftColumn") not in columns_by_name.get(left, ()):
            continue
        if item.get("rightColumn") not in columns_by_name.get(right, ()):
            continue

        join_type = str(item.get("joinType", "")).lower()
        confidence = str(item.get("confidence", "")).lower()
        joins.append({
            "leftSource": left,
            "rightSource": right,
            "leftColumn": item["leftColumn"],
            "rightColumn": item["rightColumn"],
            "joinType": join_type if join_type in JOIN_TYPES else "inner",
            "confidence": confidence if confidence in SEVERITIES else "low",
            "reason": str(item.get("reason") or ""),
            "potentialInsights": str(item.get("potentialInsights") or ""),
        })
    return joins


def suggest_sources(sources: List[Dict[str, Any]], dashboard: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Complementary data sources for the current sources and pinned charts."""
    prompt = SOURCES_PROMPT.format(
        sources=json.dumps(sources, indent=2, default=str),
        dashboard=json.dumps(dashboard, indent=2, default=str),
    )

    try:
        response = LLMFactory.invoke_json(prompt, SOURCES_SCHEMA, temperature=0.5)
    except ValueError as e:
        print(f"[DataSource] Source suggestions failed: {e}")
        return []

    return [
        {
            "name": str(item.get("name") or ""),
            "reason": str(item.get("reason") or ""),
            "dataTypes": [str(t) for t in item.get("dataTypes") or [] if t],
            "potentialInsights": str(item.get("potentialInsights") or ""),
        }
        for item in _objects(response.get("suggestions") if isinstance(response, dict) else None)
        if item.get("name")
    ]


def _objects(value) -> List[Dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]
