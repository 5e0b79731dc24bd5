"""
Transcript and active session state.

The transcript is append-only; renderers subscribe to it and redraw on every
append. The session snapshot (windows, apps, raw context, raw LLM input) is
always replaced as a whole.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Callable, Optional, Union

from pydantic import BaseModel

from aci_inspector.models.session import AgentInfo, SessionInfo
from aci_inspector.models.transcript import TranscriptEntry, TranscriptRole
from aci_inspector.models.window import AppInfo, WindowInfo
from aci_inspector.timeline import TimelineKey

if TYPE_CHECKING:
    from aci_inspector.api import InspectorAPI

logger = logging.getLogger(__name__)

TranscriptListener = Callable[[TranscriptEntry], None]


class Transcript:
    def __init__(self) -> None:
        self._entries: list[TranscriptEntry] = []
        self._listeners: list[TranscriptListener] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(list(self._entries))

    @property
    def entries(self) -> tuple[TranscriptEntry, ...]:
        return tuple(self._entries)

    def append(self, role: Union[TranscriptRole, str], content: str) -> TranscriptEntry:
        entry = TranscriptEntry(role=TranscriptRole(role), content=content)
        self._entries.append(entry)
        for listener in list(self._listeners):
            listener(entry)
        return entry

    def add_listener(self, listener: TranscriptListener) -> Callable[[], None]:
        """Call ``listener`` on every append. Returns a cleanup function."""
        self._listeners.append(listener)

        def remove() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass
        return remove

    def by_role(self, role: Union[TranscriptRole, str]) -> list[TranscriptEntry]:
        wanted = TranscriptRole(role)
        return [entry for entry in self._entries if entry.role == wanted]


class SessionSnapshot(BaseModel):
    windows: list[WindowInfo] = []
    apps: list[AppInfo] = []
    raw_context: str = ""
    raw_llm_input: str = ""

    model_config = {"frozen": True}


async def load_session_snapshot(
    api: InspectorAPI, session_id: str, agent_id: str, include_obsolete: bool,
) -> SessionSnapshot:
    """Fetch all inspector views of one agent. Fails as a whole if any fetch fails."""
    tasks = [
        asyncio.ensure_future(api.get_windows(session_id, agent_id)),
        asyncio.ensure_future(api.get_apps(session_id, agent_id)),
        asyncio.ensure_future(api.get_raw_context(session_id, agent_id, include_obsolete)),
        asyncio.ensure_future(api.get_raw_llm_input(session_id, agent_id)),
    ]
    try:
        windows, apps, raw_context, raw_llm_input = await asyncio.gather(*tasks)
    except BaseException:
        # no fetch outlives the load
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
    return SessionSnapshot(windows=windows, apps=apps, raw_context=raw_context, raw_llm_input=raw_llm_input)


class InspectorState:
    """Session catalog, active session/agent pointer and the latest snapshot."""

    def __init__(self, include_obsolete: bool = True) -> None:
        self.include_obsolete = include_obsolete
        self.sessions: list[SessionInfo] = []
        self.session_id: Optional[str] = None
        self.agent_id: Optional[str] = None
        self.snapshot = SessionSnapshot()

    @property
    def active_key(self) -> Optional[TimelineKey]:
        if self.session_id and self.agent_id:
            return (self.session_id, self.agent_id)
        return None

    @property
    def active_session(self) -> Optional[SessionInfo]:
        for session in self.sessions:
            if session.session_id == self.session_id:
                return session
        return None

    @property
    def active_agent(self) -> Optional[AgentInfo]:
        session = self.active_session
        if session is None:
            return None
        for agent in session.agents:
            if agent.agent_id == self.agent_id:
                return agent
        return None

    def set_sessions(self, sessions: list[SessionInfo]) -> None:
        self.sessions = list(sessions)

    def upsert_session(self, session: SessionInfo) -> None:
        self.sessions = [s for s in self.sessions if s.session_id != session.session_id] + [session]

    def select(self, session_id: str, agent_id: Optional[str]) -> None:
        if (session_id, agent_id) != (self.session_id, self.agent_id):
            logger.debug("Selected session %s agent %s", session_id, agent_id)
        self.session_id = session_id
        self.agent_id = agent_id

    def clear(self) -> None:
        self.session_id = None
        self.agent_id = None
        self.snapshot = SessionSnapshot()

    def apply_snapshot(self, snapshot: SessionSnapshot) -> None:
        self.snapshot = snapshot

    def window(self, window_id: str) -> Optional[WindowInfo]:
        for window in self.snapshot.windows:
            if window.id == window_id:
                return window
        return None
