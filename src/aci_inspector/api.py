"""
ACI backend REST API.

Each call goes through the transport and the contract validator, so callers
only ever see typed records or an ApiClientError.
"""

from __future__ import annotations

from typing import Any

from aci_inspector.contract import (
    parse_action_invoke_result,
    parse_apps,
    parse_context_timeline,
    parse_interaction_result,
    parse_session,
    parse_sessions,
    parse_windows,
)
from aci_inspector.errors import HttpError
from aci_inspector.models.interaction import ActionInvokeResult, InteractionResult
from aci_inspector.models.session import SessionInfo
from aci_inspector.models.timeline import ContextTimelineItem
from aci_inspector.models.window import AppInfo, WindowInfo
from aci_inspector.transport.http import HttpClient


def _flag(value: bool) -> str:
    return "true" if value else "false"


class InspectorAPI:
    def __init__(self, http: HttpClient):
        self._http = http

    @staticmethod
    def _agent_path(session_id: str, agent_id: str) -> str:
        return f"/api/sessions/{session_id}/agents/{agent_id}"

    async def create_session(self) -> SessionInfo:
        raw = await self._http.post("/api/sessions/")
        return parse_session(raw, "create_session.response")

    async def list_sessions(self) -> list[SessionInfo]:
        raw = await self._http.get("/api/sessions/")
        return parse_sessions(raw, "list_sessions.response")

    async def close_session(self, session_id: str) -> None:
        raw = await self._http.request_raw(f"/api/sessions/{session_id}", "DELETE")
        if not raw.ok and raw.status != 204:
            raise HttpError(f"Failed to close session ({raw.status}): {raw.text}", status=raw.status, body=raw.text)

    async def interact(self, session_id: str, agent_id: str, message: str) -> InteractionResult:
        """Ask the agent. Blocks until the backend has finished the whole turn."""
        raw = await self._http.post(f"{self._agent_path(session_id, agent_id)}/interact/", {"message": message})
        return parse_interaction_result(raw, "interact.response")

    async def simulate_assistant_output(self, session_id: str, agent_id: str, assistant_output: str) -> InteractionResult:
        """Feed text to the backend as if the model had produced it."""
        raw = await self._http.post(
            f"{self._agent_path(session_id, agent_id)}/interact/simulate",
            {"assistantOutput": assistant_output},
        )
        return parse_interaction_result(raw, "simulate_assistant_output.response")

    async def get_windows(self, session_id: str, agent_id: str) -> list[WindowInfo]:
        raw = await self._http.get(f"{self._agent_path(session_id, agent_id)}/windows/")
        return parse_windows(raw, "get_windows.response")

    async def get_apps(self, session_id: str, agent_id: str) -> list[AppInfo]:
        raw = await self._http.get(f"{self._agent_path(session_id, agent_id)}/apps")
        return parse_apps(raw, "get_apps.response")

    async def get_raw_context(self, session_id: str, agent_id: str, include_obsolete: bool) -> str:
        path = f"{self._agent_path(session_id, agent_id)}/context/raw?includeObsolete={_flag(include_obsolete)}"
        return await self._http.request_text(path, "raw context")

    async def get_raw_llm_input(self, session_id: str, agent_id: str) -> str:
        return await self._http.request_text(f"{self._agent_path(session_id, agent_id)}/llm-input/raw", "raw llm input")

    async def get_context_timeline(
        self, session_id: str, agent_id: str, include_obsolete: bool,
    ) -> list[ContextTimelineItem]:
        path = f"{self._agent_path(session_id, agent_id)}/context?includeObsolete={_flag(include_obsolete)}"
        raw = await self._http.get(path)
        return parse_context_timeline(raw, "get_context_timeline.response")

    async def run_window_action(
        self, session_id: str, agent_id: str, window_id: str, action_id: str, params: Any,
    ) -> ActionInvokeResult:
        raw = await self._http.post(
            f"{self._agent_path(session_id, agent_id)}/windows/{window_id}/actions/{action_id}",
            {"params": params},
        )
        return parse_action_invoke_result(raw, "run_window_action.response")
