import json
import re


def safe_json_loads(text: str):
    """
    Safely parse LLM JSON output.
    Strips code fences and surrounding prose, handles trailing commas.
    """
    if not text:
        raise ValueError("Empty LLM response")

    cleaned = text.strip()

    # Remove markdown code fences if present
    match = re.search(r"```(?:json)?\s*\n?(.*?)\n?```", cleaned, re.DOTALL)
    if match:
        cleaned = match.group(1).strip()

    # Drop prose around the outermost object / array
    if cleaned and cleaned[0] not in "{[":
        starts = [i for i in (cleaned.find("{"), cleaned.find("[")) if i >= 0]
        if starts:
            cleaned = cleaned[min(starts):]
    if cleaned and cleaned[-1] not in "}]":
        end = max(cleaned.rfind("}"), cleaned.rfind("]"))
        if end >= 0:
            cleaned = cleaned[:end + 1]

    # Remove trailing commas before } or ]
    cleaned = re.sub(r",\s*([}\]])", r"\1", cleaned)

    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON from LLM: {e}\n\nRaw text:\n{text[:500]}")
