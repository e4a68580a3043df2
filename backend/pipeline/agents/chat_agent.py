import json
from typing import Any, Dict, List, Optional

from config import settings
from state import Row
from utils.llm_factory import LLMFactory


CHAT_PROMPT = """
You are a data analyst assistant. Analyze the following data and answer the user's question.

Data Source: {source_name}
Data Sample: {sample}

{context}

User Question: {question}

Provide:
1. A clear answer to their question
2. Key insights from the data
3. If appropriate, suggest a chart visualization with configuration
   (chart type "none" when no chart is needed; "config" must be a valid ECharts option)
"""

CHAT_SCHEMA = {
    "type": "object",
    "properties": {
        "answer": {"type": "string"},
        "insights": {"type": "array", "items": {"type": "string"}},
        "chart": {
            "type": "object",
            "properties": {
                "type": {"type": "string"},
                "title": {"type": "string"},
                "description": {"type": "string"},
                "config": {"type": "object"},
            },
        },
    },
}

QUESTIONS_PROMPT = """
Based on this dataset, generate {count} interesting and diverse questions that would provide valuable insights:

Data Source: {source_name}
Sample Data: {sample}

Generate questions that cover different aspects like trends, comparisons, patterns, predictions, anomalies, and summaries.
"""

QUESTIONS_SCHEMA = {
    "type": "object",
    "properties": {
        "questions": {"type": "array", "items": {"type": "string"}},
    },
}

CHAT_CHART_TYPES = ("bar", "line", "pie", "area")
ERROR_ANSWER = "Sorry, I encountered an error analyzing your data. Please try again."


def chat_agent(question: str, rows: List[Row], source_name: str, context: str = "") -> Dict[str, Any]:
    """
    Answer a question about a data source.
    Returns {"answer": str, "insights": [str], "chart": {...} | None}.
    """
    prompt = CHAT_PROMPT.format(
        source_name=source_name,
        sample=json.dumps(rows[:settings.CHAT_SAMPLE_ROWS], default=str),
        context=context,
        question=question,
    )

    try:
        response = LLMFactory.invoke_json(prompt, CHAT_SCHEMA, temperature=0.3)
    except ValueError as e:
        print(f"[Chat] Could not parse answer: {e}")
        return {"answer": ERROR_ANSWER, "insights": [], "chart": None}

    if not isinstance(response, dict):
        response = {}

    return {
        "answer": str(response.get("answer") or ""),
        "insights": [str(i) for i in response.get("insights") or [] if i],
        "chart": _suggested_chart(response.get("chart")),
    }


def _suggested_chart(chart: Any) -> Optional[Dict[str, Any]]:
    # "none", unknown types and empty configs mean no chart
    if not isinstance(chart, dict):
        return None

    chart_type = str(chart.get("type") or "").lower()
    config = chart.get("config")
    if chart_type not in CHAT_CHART_TYPES or not isinstance(config, dict) or not config:
        return None

    return {
        "type": chart_type,
        "title": str(chart.get("title") or f"{chart_type.title()} chart"),
        "description": str(chart.get("description") or ""),
        "config": config,
    }


def suggest_questions(rows: List[Row], source_name: str) -> List[str]:
    """Starter questions for the chat, empty when the reply is unusable."""
    prompt = QUESTIONS_PROMPT.format(
        count=settings.SUGGESTED_QUESTIONS,
        source_name=source_name,
        sample=json.dumps(rows[:settings.QUESTION_SAMPLE_ROWS], default=str),
    )

    try:
        response = LLMFactory.invoke_json(prompt, QUESTIONS_SCHEMA, temperature=0.7)
    except ValueError as e:
        print(f"[Chat] Question suggestions failed: {e}")
        return []

    questions = response.get("questions") if isinstance(response, dict) else None
    if not isinstance(questions, list):
        return []

    return [str(q).strip() for q in questions if str(q).strip()][:settings.SUGGESTED_QUESTIONS]
