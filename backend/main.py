from fastapi import FastAPI, HTTPException, UploadFile, File, Query
from fastapi.middleware.cors import CORSMiddleware
from typing import Dict, Any, Optional

from dotenv import load_dotenv
load_dotenv()

# --------------------------------------------------
# Internal imports
# --------------------------------------------------
from data_loader import (
    save_upload,
    list_data_sources,
    load_rows,
    rows_to_response,
    describe_sources,
)
from interaction.drill_navigator import parse_drill_levels
from pipeline.agents.chart_agent import KPI_TYPES
from pipeline.agents.chat_agent import chat_agent, suggest_questions
from pipeline.agents.data_source_agent import validate_data, suggest_joins, suggest_sources
from pipeline.agents.insight_agent import insight_agent
from pipeline.runner import run_chart_pipeline
from session_store import SessionStore, DashboardSession
from state import ChartRequestState
from utils.json_sanitize import sanitize_for_json
from utils.llm_factory import LLMFactory
from utils.schema_utils import infer_schema

# --------------------------------------------------
# App setup
# --------------------------------------------------
app = FastAPI(
    title="Interactive Dashboard Backend",
    version="1.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],   # tighten in prod
    allow_methods=["*"],
    allow_headers=["*"],
)


def _session(session_id: str) -> DashboardSession:
    session = SessionStore.get(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def _widget(session: DashboardSession, chart_id: str):
    widget = session.get_widget(chart_id)
    if widget is None:
        raise HTTPException(status_code=404, detail=f"Chart not found: {chart_id}")
    return widget


def _drill_levels(raw, columns=None):
    try:
        return parse_drill_levels(raw, columns)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _source_ids(payload: Dict[str, Any]):
    source_ids = payload.get("source_ids")
    if source_ids is not None and (
        not isinstance(source_ids, list) or not all(isinstance(s, str) for s in source_ids)
    ):
        raise HTTPException(status_code=400, detail="source_ids must be a list of strings")
    return source_ids


def _interaction_response(session: DashboardSession, changed: bool) -> Dict[str, Any]:
    return sanitize_for_json({
        "changed": changed,
        "selection": session.hub.current(),
        "charts": session.render_all(),
    })


# --------------------------------------------------
# 1. HEALTH CHECK
# --------------------------------------------------
@app.get("/health")
def health():
    return {
        "status": "ok",
        "service": "interactive-dashboard-backend",
        "llm": LLMFactory.info(),
    }


# --------------------------------------------------
# 2. DATA SOURCES
# --------------------------------------------------
@app.post("/data-sources")
def upload_data_source(file: UploadFile = File(...)):
    content = file.file.read()
    source_id = save_upload(file.filename, content)

    rows, columns, name = load_rows(source_id)
    return sanitize_for_json({
        "source_id": source_id,
        "name": name,
        "columns": columns,
        "row_count": len(rows),
    })


@app.get("/data-sources")
def get_data_sources():
    return list_data_sources()


@app.get("/data-sources/{source_id}/data")
def data_source_preview(source_id: str, limit: Optional[int] = Query(None, ge=1)):
    rows, columns, name = load_rows(source_id)
    response = rows_to_response(rows, columns, name, limit)
    response["schema"] = infer_schema(rows)
    return sanitize_for_json(response)


# --------------------------------------------------
# 3. DASHBOARD CHARTS
# --------------------------------------------------
@app.post("/dashboards/{session_id}/charts")
def mount_chart(session_id: str, payload: Dict[str, Any]):
    """
    Pin a chart to the dashboard.
    Payload: { "config": {...}, "source_id": "..." | "rows": [...],
               "title": "...", "drill_levels": [...], "chart_id": "..." }
    """
    source_id = payload.get("source_id")
    if source_id:
        rows, columns, _ = load_rows(source_id)
    else:
        rows = payload.get("rows")
        if not isinstance(rows, list) or not all(isinstance(r, dict) for r in rows):
            raise HTTPException(status_code=400, detail="Either source_id or a list of rows is required")
        columns = list(rows[0].keys()) if rows else []

    config = payload.get("config") or {}
    if not isinstance(config, dict):
        raise HTTPException(status_code=400, detail="config must be an object")

    levels = _drill_levels(payload.get("drill_levels"), columns or None)

    session = SessionStore.get_or_create(session_id)
    widget = session.mount(
        config=config,
        rows=sanitize_for_json(rows),
        drill_levels=levels,
        title=payload.get("title", ""),
        chart_id=payload.get("chart_id"),
    )
    return sanitize_for_json(widget.render())


@app.get("/dashboards/{session_id}/charts")
def list_charts(session_id: str):
    session = _session(session_id)
    return sanitize_for_json(session.render_all())


@app.get("/dashboards/{session_id}/charts/{chart_id}")
def get_chart(session_id: str, chart_id: str):
    session = _session(session_id)
    return sanitize_for_json(_widget(session, chart_id).render())


@app.delete("/dashboards/{session_id}/charts/{chart_id}")
def unmount_chart(session_id: str, chart_id: str):
    session = _session(session_id)
    _widget(session, chart_id)
    session.unmount(chart_id)
    return {"success": True, "layout": session.layout}


@app.put("/dashboards/{session_id}/layout")
def move_chart(session_id: str, payload: Dict[str, Any]):
    """Payload: { "chart_id": "...", "to_index": 0 }"""
    session = _session(session_id)
    chart_id = payload.get("chart_id")
    to_index = payload.get("to_index")
    if not isinstance(to_index, int):
        raise HTTPException(status_code=400, detail="to_index must be an integer")

    _widget(session, chart_id)
    session.move_chart(chart_id, to_index)
    return {"layout": session.layout}


@app.put("/dashboards/{session_id}/charts/{chart_id}/drill-path")
def configure_drill_path(session_id: str, chart_id: str, payload: Dict[str, Any]):
    """Payload: { "drill_levels": [{"field": "...", "label": "...", "chart_type": "bar"}] }"""
    session = _session(session_id)
    widget = _widget(session, chart_id)

    levels = _drill_levels(payload.get("drill_levels", []), widget.columns or None)
    widget.set_drill_levels(levels)
    return {"chart_id": chart_id, "drill_levels": levels}


# --------------------------------------------------
# 4. BRUSH SELECTION
# --------------------------------------------------
@app.post("/dashboards/{session_id}/charts/{chart_id}/brush")
def brush_chart(session_id: str, chart_id: str, payload: Dict[str, Any]):
    """Payload: { "coord_range": [start, end] } or { "coord_range": null } for a cleared brush."""
    session = _session(session_id)
    widget = _widget(session, chart_id)

    coord_range = payload.get("coord_range")
    if coord_range is not None and (
        not isinstance(coord_range, list) or len(coord_range) != 2
        or not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in coord_range)
    ):
        raise HTTPException(status_code=400, detail="coord_range must be [start, end] or null")

    changed = widget.on_brush_complete(coord_range)
    return _interaction_response(session, changed)


@app.get("/dashboards/{session_id}/selection")
def get_selection(session_id: str):
    session = _session(session_id)
    return sanitize_for_json({"selection": session.hub.current()})


@app.delete("/dashboards/{session_id}/selection")
def clear_selection(session_id: str):
    session = _session(session_id)
    changed = session.hub.clear()
    return _interaction_response(session, changed)


# --------------------------------------------------
# 5. DRILL-DOWN
# --------------------------------------------------
@app.post("/dashboards/{session_id}/charts/{chart_id}/click")
def click_chart(session_id: str, chart_id: str, payload: Dict[str, Any]):
    """Payload: { "point": {"name": "...", "value": ..., "data": {...}} }"""
    session = _session(session_id)
    widget = _widget(session, chart_id)

    point = payload.get("point") or {}
    if not isinstance(point, dict):
        raise HTTPException(status_code=400, detail="point must be an object")

    opened = bool(widget.on_click(point))
    return sanitize_for_json({"opened": opened, "drill": session.navigator.to_dict()})


@app.get("/dashboards/{session_id}/drill")
def get_drill(session_id: str):
    session = _session(session_id)
    return sanitize_for_json(session.navigator.to_dict())


@app.post("/dashboards/{session_id}/drill/descend")
def drill_descend(session_id: str, payload: Dict[str, Any]):
    """Payload: { "value": "East" } (the clicked category name)"""
    session = _session(session_id)
    if "value" not in payload:
        raise HTTPException(status_code=400, detail="value is required")

    changed = session.navigator.descend(payload["value"])
    return sanitize_for_json({"changed": changed, "drill": session.navigator.to_dict()})


@app.post("/dashboards/{session_id}/drill/ascend")
def drill_ascend(session_id: str):
    session = _session(session_id)
    changed = session.navigator.ascend()
    return sanitize_for_json({"changed": changed, "drill": session.navigator.to_dict()})


@app.post("/dashboards/{session_id}/drill/breadcrumb")
def drill_breadcrumb(session_id: str, payload: Dict[str, Any]):
    """Payload: { "level": 0 }"""
    session = _session(session_id)
    level = payload.get("level")
    if not isinstance(level, int) or isinstance(level, bool):
        raise HTTPException(status_code=400, detail="level must be an integer")

    changed = session.navigator.jump_to_breadcrumb(level)
    return sanitize_for_json({"changed": changed, "drill": session.navigator.to_dict()})


@app.delete("/dashboards/{session_id}/drill")
def drill_close(session_id: str):
    session = _session(session_id)
    changed = session.navigator.close()
    return sanitize_for_json({"changed": changed, "drill": session.navigator.to_dict()})


# --------------------------------------------------
# 6. AI CHART GENERATION
# --------------------------------------------------
@app.post("/dashboards/{session_id}/charts/generate")
def generate_chart(session_id: str, payload: Dict[str, Any]):
    """
    Ask the assistant for a chart (or KPI card) over a data source.
    Payload: { "source_id": "...", "chart_type": "bar", "prompt": "...", "pin": true }
    """
    source_id = payload.get("source_id")
    if not source_id:
        raise HTTPException(status_code=400, detail="source_id is required")

    rows, columns, _ = load_rows(source_id)

    state: ChartRequestState = {
        "session_id": session_id,
        "source_id": source_id,
        "chart_type": payload.get("chart_type", "bar"),
        "prompt": payload.get("prompt", ""),
        "rows": rows,
        "schema": infer_schema(rows),
        "chart": {},
        "debug": {},
    }

    try:
        result_state = run_chart_pipeline(state)
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))

    chart = result_state["chart"]
    response = {"chart": chart, "pinned": None, "source": result_state["debug"].get("source")}

    if payload.get("pin") and chart["chart_type"] not in KPI_TYPES:
        levels = _drill_levels(payload.get("drill_levels"), columns or None)
        session = SessionStore.get_or_create(session_id)
        widget = session.mount(
            config=chart["config"],
            rows=rows,
            drill_levels=levels,
            title=chart["title"],
        )
        response["pinned"] = widget.render()

    return sanitize_for_json(response)


# --------------------------------------------------
# 7. AI INSIGHTS
# --------------------------------------------------
@app.post("/dashboards/{session_id}/insights")
def dashboard_insights(session_id: str, payload: Dict[str, Any]):
    """Payload: { "source_id": "..." }"""
    source_id = payload.get("source_id")
    if not source_id:
        raise HTTPException(status_code=400, detail="source_id is required")

    rows, _, _ = load_rows(source_id)
    session = SessionStore.get_or_create(session_id)

    try:
        result = insight_agent(rows, chart_count=len(session.layout))
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))

    session.insights.append(result)
    return sanitize_for_json(result)


# --------------------------------------------------
# 8. CHAT ASSISTANT
# --------------------------------------------------
@app.post("/dashboards/{session_id}/chat")
def chat(session_id: str, payload: Dict[str, Any]):
    """
    Ask the assistant about a data source.
    Payload: { "source_id": "...", "message": "...", "pin": false, "drill_levels": [...] }
    """
    source_id = payload.get("source_id")
    message = str(payload.get("message") or "").strip()
    if not source_id or not message:
        raise HTTPException(status_code=400, detail="source_id and message are required")

    rows, columns, name = load_rows(source_id)
    session = SessionStore.get_or_create(session_id)

    try:
        reply = chat_agent(message, rows, name, context=session.get_context_summary())
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))

    session.add_chat("user", message, source_id=source_id)
    session.add_chat(
        "assistant",
        reply["answer"],
        insights=reply["insights"],
        chart=reply["chart"],
        source_id=source_id,
    )

    response = {**reply, "pinned": None}
    chart = reply["chart"]
    if payload.get("pin") and chart:
        levels = _drill_levels(payload.get("drill_levels"), columns or None)
        widget = session.mount(
            config=chart["config"],
            rows=rows,
            drill_levels=levels,
            title=chart["title"],
        )
        response["pinned"] = widget.render()

    return sanitize_for_json(response)


@app.get("/dashboards/{session_id}/chat")
def chat_history(session_id: str):
    session = _session(session_id)
    return sanitize_for_json(session.chat_history)


@app.post("/dashboards/{session_id}/chat/questions")
def chat_questions(session_id: str, payload: Dict[str, Any]):
    """Payload: { "source_id": "..." }"""
    source_id = payload.get("source_id")
    if not source_id:
        raise HTTPException(status_code=400, detail="source_id is required")

    rows, _, name = load_rows(source_id)
    try:
        questions = suggest_questions(rows, name)
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))

    return {"questions": questions}


# --------------------------------------------------
# 9. DATA SOURCE REVIEW
# --------------------------------------------------
@app.post("/data-sources/{source_id}/validate")
def validate_data_source(source_id: str):
    rows, columns, name = load_rows(source_id)
    try:
        return sanitize_for_json(validate_data(rows, columns, name))
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))


@app.post("/data-sources/joins")
def data_source_joins(payload: Dict[str, Any]):
    """Payload: { "source_ids": [...] } (all sources when omitted)"""
    sources = describe_sources(_source_ids(payload))
    try:
        joins = suggest_joins(sources)
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return sanitize_for_json({"joins": joins})


@app.post("/dashboards/{session_id}/source-suggestions")
def data_source_suggestions(session_id: str, payload: Dict[str, Any]):
    """Payload: { "source_ids": [...] } (all sources when omitted)"""
    sources = describe_sources(_source_ids(payload))
    session = SessionStore.get_or_create(session_id)
    dashboard = [
        {"title": session.widgets[cid].title, "columns": session.widgets[cid].columns}
        for cid in session.layout
    ]

    try:
        suggestions = suggest_sources(sources, dashboard)
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return sanitize_for_json({"suggestions": suggestions})


# --------------------------------------------------
# 10. SESSION INFO
# --------------------------------------------------
@app.get("/session/{session_id}")
def get_session_info(session_id: str):
    session = _session(session_id)
    return sanitize_for_json(session.to_dict())


@app.get("/sessions")
def list_sessions():
    return SessionStore.list_sessions()


# --------------------------------------------------
# 11. LLM INFO
# --------------------------------------------------
@app.get("/llm/info")
def llm_info():
    return LLMFactory.info()
