"""
In-memory store of dashboard sessions. Each session holds the interaction
state of one dashboard view: the shared brush selection, the mounted chart
widgets in layout order and the drill-down navigator.
"""

import time
import uuid
from typing import Any, Dict, List, Optional, Sequence

from config import settings
from interaction.chart_widget import ChartWidget
from interaction.drill_navigator import DrillNavigator
from interaction.selection_hub import SelectionHub
from state import ChartView, DrillLevel, Row


SESSION_TTL = settings.SESSION_TTL_MINUTES * 60  # seconds


class DashboardSession:
    """Holds all interaction state for a single dashboard view."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        self.created_at = time.time()
        self.last_accessed = time.time()

        self.hub = SelectionHub()
        self.navigator = DrillNavigator()

        # Layout order of mounted charts
        self.layout: List[str] = []
        self.widgets: Dict[str, ChartWidget] = {}

        # Generated insights, newest last
        self.insights: List[Dict[str, Any]] = []

        # Assistant conversation, oldest first
        self.chat_history: List[Dict[str, Any]] = []

    def touch(self):
        self.last_accessed = time.time()

    def is_expired(self) -> bool:
        return (time.time() - self.last_accessed) > SESSION_TTL

    # --------------------------------------------------
    # Chat
    # --------------------------------------------------

    def add_chat(self, role: str, content: str, **extra):
        self.chat_history.append({
            "role": role,
            "content": content,
            "timestamp": time.time(),
            **extra,
        })
        self.chat_history = self.chat_history[-settings.MAX_CHAT_HISTORY:]

    def get_context_summary(self) -> str:
        """Get a summary of session context for the assistant prompt."""
        parts = []

        if self.chat_history:
            recent = self.chat_history[-6:]  # last 3 exchanges
            parts.append("Recent conversation:")
            for msg in recent:
                parts.append(f"  {msg['role']}: {msg['content'][:200]}")

        if self.layout:
            titles = [self.widgets[cid].title or cid for cid in self.layout[-5:]]
            parts.append(f"Pinned charts: {', '.join(titles)}")

        return "\n".join(parts)

    # --------------------------------------------------
    # Charts
    # --------------------------------------------------

    def mount(
        self,
        config: Dict[str, Any],
        rows: List[Row],
        drill_levels: Sequence[DrillLevel] = (),
        title: str = "",
        chart_id: Optional[str] = None,
    ) -> ChartWidget:
        chart_id = chart_id or f"chart-{uuid.uuid4().hex[:8]}"
        if chart_id in self.widgets:
            self.unmount(chart_id)

        def drill_request(point, levels, source_rows):
            return self.navigator.open(point, levels, source_rows, chart_id=chart_id)

        widget = ChartWidget(
            chart_id=chart_id,
            config=config,
            rows=rows,
            hub=self.hub,
            on_drill_request=drill_request,
            drill_levels=drill_levels,
            title=title,
        )
        self.widgets[chart_id] = widget
        self.layout.append(chart_id)
        print(f"[Session {self.session_id}] Mounted {chart_id} ({len(rows)} rows)")
        return widget

    def unmount(self, chart_id: str) -> bool:
        widget = self.widgets.pop(chart_id, None)
        if widget is None:
            return False

        widget.dispose()
        self.layout.remove(chart_id)
        if self.navigator.chart_id == chart_id:
            self.navigator.close()
        return True

    def get_widget(self, chart_id: str) -> Optional[ChartWidget]:
        return self.widgets.get(chart_id)

    def move_chart(self, chart_id: str, to_index: int) -> bool:
        """Reorder the layout, as a drag-and-drop drop does."""
        if chart_id not in self.widgets:
            return False
        self.layout.remove(chart_id)
        to_index = max(0, min(to_index, len(self.layout)))
        self.layout.insert(to_index, chart_id)
        return True

    def render_all(self) -> List[ChartView]:
        return [self.widgets[cid].render() for cid in self.layout]

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "layout": list(self.layout),
            "selection": self.hub.current(),
            "drill": self.navigator.to_dict(),
            "insights": self.insights,
            "chat_history": self.chat_history,
        }


class SessionStore:
    """Global in-memory session store."""

    _sessions: Dict[str, DashboardSession] = {}

    @classmethod
    def get_or_create(cls, session_id: str) -> DashboardSession:
        cls._cleanup_expired()

        if session_id not in cls._sessions:
            cls._sessions[session_id] = DashboardSession(session_id)

        session = cls._sessions[session_id]
        session.touch()
        return session

    @classmethod
    def get(cls, session_id: str) -> Optional[DashboardSession]:
        session = cls._sessions.get(session_id)
        if session and not session.is_expired():
            session.touch()
            return session
        return None

    @classmethod
    def reset(cls):
        cls._sessions.clear()

    @classmethod
    def _cleanup_expired(cls):
        expired = [
            sid for sid, s in cls._sessions.items()
            if s.is_expired()
        ]
        for sid in expired:
            del cls._sessions[sid]

    @classmethod
    def list_sessions(cls) -> list:
        cls._cleanup_expired()
        return [
            {"session_id": s.session_id, "charts": len(s.layout)}
            for s in cls._sessions.values()
        ]
