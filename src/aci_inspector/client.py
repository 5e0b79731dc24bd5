"""
AsyncInspectorClient: the inspector's main entry point.

Bundles the transport, API, state, transcript and orchestrator, and adds the
session catalog operations a workbench needs around them.
"""

from typing import Any, Mapping, Optional

import httpx

from aci_inspector.api import InspectorAPI
from aci_inspector.errors import SessionError
from aci_inspector.interaction import DEFAULT_POLL_INTERVAL_S, InteractionOrchestrator
from aci_inspector.models.interaction import ActionInvokeResult, InteractionResult
from aci_inspector.models.session import SessionInfo
from aci_inspector.models.transcript import TranscriptRole
from aci_inspector.state import InspectorState, SessionSnapshot, Transcript
from aci_inspector.timeline import TimelineTracker
from aci_inspector.transport.http import DEFAULT_BASE_URL, HttpClient


class AsyncInspectorClient:
    """Async ACI inspector client."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        poll_interval: float = DEFAULT_POLL_INTERVAL_S,
        include_obsolete: bool = True,
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.http = HttpClient(base_url=base_url, timeout=timeout, transport=transport)
        self.api = InspectorAPI(self.http)
        self.state = InspectorState(include_obsolete=include_obsolete)
        self.transcript = Transcript()
        self.tracker = TimelineTracker()
        self.orchestrator = InteractionOrchestrator(
            self.api, self.state, self.transcript, tracker=self.tracker, poll_interval=poll_interval,
        )

    async def __aenter__(self) -> "AsyncInspectorClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    @property
    def busy(self) -> bool:
        return self.orchestrator.running

    @property
    def snapshot(self) -> SessionSnapshot:
        return self.state.snapshot

    async def close(self) -> None:
        await self.http.close()

    # --- catalog ---

    async def _load_active(self) -> None:
        key = self.state.active_key
        if key is None:
            self.state.apply_snapshot(SessionSnapshot())
            return
        await self.orchestrator.refresh(*key)

    def _select_existing(self, preferred: Optional[str]) -> None:
        sessions = self.state.sessions
        chosen = next((s for s in sessions if s.session_id == preferred), None)
        if chosen is None:
            chosen = sessions[0] if sessions else None
        if chosen is None:
            self.state.clear()
            return
        agent_ids = [a.agent_id for a in chosen.agents]
        agent_id = self.state.agent_id if self.state.agent_id in agent_ids else (agent_ids[0] if agent_ids else None)
        self.state.select(chosen.session_id, agent_id)

    async def _reload_catalog(self, auto_create_if_empty: bool) -> list[SessionInfo]:
        sessions = await self.api.list_sessions()
        preferred = self.state.session_id
        if not sessions and auto_create_if_empty:
            created = await self.api.create_session()
            sessions = [created]
            preferred = created.session_id
            self.transcript.append(TranscriptRole.SYSTEM, f"Auto-created session {created.session_id}")
        self.state.set_sessions(sessions)
        self._select_existing(preferred)
        await self._load_active()
        return sessions

    async def reload_catalog(self, auto_create_if_empty: bool = False) -> list[SessionInfo]:
        """Refetch the session list, keep the selection if it still exists."""
        async with self.orchestrator.exclusive():
            return await self._reload_catalog(auto_create_if_empty)

    async def create_session(self) -> SessionInfo:
        async with self.orchestrator.exclusive():
            created = await self.api.create_session()
            self.transcript.append(TranscriptRole.SYSTEM, f"Created session {created.session_id}")
            self.state.select(created.session_id, created.first_agent.agent_id if created.first_agent else None)
            await self._reload_catalog(False)
            return created

    async def close_session(self, session_id: Optional[str] = None) -> None:
        target = session_id or self.state.session_id
        if not target:
            raise SessionError("No session selected")
        async with self.orchestrator.exclusive():
            await self.api.close_session(target)
            self.tracker.forget(target)
            self.transcript.append(TranscriptRole.SYSTEM, f"Closed session {target}")
            if self.state.session_id == target:
                self.state.clear()
            await self._reload_catalog(False)

    async def select_session(self, session_id: str, agent_id: Optional[str] = None) -> None:
        async with self.orchestrator.exclusive():
            session = next((s for s in self.state.sessions if s.session_id == session_id), None)
            if session is None:
                self.state.set_sessions(await self.api.list_sessions())
                session = next((s for s in self.state.sessions if s.session_id == session_id), None)
            if session is None:
                raise SessionError(f"Unknown session {session_id}")
            if agent_id is None:
                agent = session.first_agent
                agent_id = agent.agent_id if agent else None
            elif agent_id not in [a.agent_id for a in session.agents]:
                raise SessionError(f"Session {session_id} has no agent {agent_id}")
            self.state.select(session_id, agent_id)
            await self._load_active()

    async def refresh(self) -> SessionSnapshot:
        """Reload the active session's views, or the catalog if nothing is selected."""
        async with self.orchestrator.exclusive():
            if self.state.active_key is None:
                await self._reload_catalog(True)
            else:
                await self._load_active()
            return self.state.snapshot

    async def set_include_obsolete(self, include_obsolete: bool) -> None:
        self.state.include_obsolete = include_obsolete
        if self.state.active_key is not None:
            async with self.orchestrator.exclusive():
                await self._load_active()

    # --- interaction ---

    async def send(self, message: str) -> InteractionResult:
        return await self.orchestrator.send(message)

    async def simulate(self, assistant_output: str) -> InteractionResult:
        return await self.orchestrator.simulate(assistant_output)

    async def simulate_create(self, app_name: str, target: Optional[str] = None) -> InteractionResult:
        return await self.orchestrator.simulate_create(app_name, target)

    async def simulate_action(self, window_id: str, action_id: str, params: Mapping[str, Any]) -> InteractionResult:
        return await self.orchestrator.simulate_action(window_id, action_id, params)

    async def invoke_action(self, window_id: str, action_id: str, params: Mapping[str, Any]) -> ActionInvokeResult:
        return await self.orchestrator.invoke_action(window_id, action_id, params)

    async def timeline(self, include_obsolete: Optional[bool] = None):
        """Fetch the active agent's context timeline as-is."""
        key = self.state.active_key
        if key is None:
            raise SessionError("No session selected")
        flag = self.state.include_obsolete if include_obsolete is None else include_obsolete
        return await self.api.get_context_timeline(*key, flag)
