"""Shared fakes for orchestrator and client tests."""

import asyncio
from typing import Callable, Optional

import pytest

from aci_inspector.errors import NetworkError
from aci_inspector.models.interaction import ActionInvokeResult, InteractionResult
from aci_inspector.models.session import AgentInfo, SessionInfo
from aci_inspector.models.timeline import ContextTimelineItem
from aci_inspector.models.window import AppInfo, WindowInfo


def item(seq: int, type: str = "assistant_text", content: str = "", obsolete: bool = False) -> ContextTimelineItem:
    return ContextTimelineItem(
        id=f"item-{seq}", type=type, seq=seq, is_obsolete=obsolete,
        raw_content=content or f"content {seq}",
    )


class FakeAPI:
    """In-memory stand-in for InspectorAPI.

    ``timelines`` holds successive timeline responses; the last one repeats.
    ``on_timeline(call_index, items)`` runs before each response is returned.
    """

    def __init__(self) -> None:
        self.sessions = [SessionInfo(session_id="s1", agent_count=1, agents=[AgentInfo(agent_id="a1")])]
        self.created = SessionInfo(session_id="s-new", agent_count=1, agents=[AgentInfo(agent_id="agent-new")])
        self.timelines: list[list[ContextTimelineItem]] = []
        self.timeline_errors: set[int] = set()
        self.timeline_calls = 0
        self.on_timeline: Optional[Callable[[int, list], None]] = None
        self.interact_result = InteractionResult(success=True, response="hi")
        self.interact_error: Optional[Exception] = None
        self.interact_gate: Optional[asyncio.Event] = None
        self.simulate_result = InteractionResult(success=True, response="simulated")
        self.invoke_result = ActionInvokeResult(success=True, message="done")
        self.windows = [WindowInfo(id="w1", app_name="launcher")]
        self.apps = [AppInfo(name="launcher")]
        self.raw_context_error: Optional[Exception] = None
        self.calls: list[tuple] = []

    async def create_session(self) -> SessionInfo:
        self.calls.append(("create_session",))
        self.sessions.append(self.created)
        return self.created

    async def list_sessions(self) -> list[SessionInfo]:
        self.calls.append(("list_sessions",))
        return list(self.sessions)

    async def close_session(self, session_id: str) -> None:
        self.calls.append(("close_session", session_id))
        self.sessions = [s for s in self.sessions if s.session_id != session_id]

    async def get_context_timeline(self, session_id, agent_id, include_obsolete):
        index = self.timeline_calls
        self.timeline_calls += 1
        self.calls.append(("timeline", session_id, agent_id, include_obsolete))
        if index in self.timeline_errors:
            raise NetworkError("Network request failed: connection reset")
        items = self.timelines[min(index, len(self.timelines) - 1)] if self.timelines else []
        if self.on_timeline is not None:
            self.on_timeline(index, items)
        return list(items)

    async def interact(self, session_id, agent_id, message):
        self.calls.append(("interact", session_id, agent_id, message))
        if self.interact_gate is not None:
            await self.interact_gate.wait()
        if self.interact_error is not None:
            raise self.interact_error
        return self.interact_result

    async def simulate_assistant_output(self, session_id, agent_id, assistant_output):
        self.calls.append(("simulate", session_id, agent_id, assistant_output))
        return self.simulate_result

    async def run_window_action(self, session_id, agent_id, window_id, action_id, params):
        self.calls.append(("invoke", session_id, agent_id, window_id, action_id, params))
        return self.invoke_result

    async def get_windows(self, session_id, agent_id):
        self.calls.append(("windows", session_id, agent_id))
        return list(self.windows)

    async def get_apps(self, session_id, agent_id):
        self.calls.append(("apps", session_id, agent_id))
        return list(self.apps)

    async def get_raw_context(self, session_id, agent_id, include_obsolete):
        self.calls.append(("raw_context", session_id, agent_id, include_obsolete))
        if self.raw_context_error is not None:
            raise self.raw_context_error
        return "raw context"

    async def get_raw_llm_input(self, session_id, agent_id):
        self.calls.append(("raw_llm_input", session_id, agent_id))
        return "raw llm input"

    def called(self, name: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == name]


@pytest.fixture()
def fake_api() -> FakeAPI:
    return FakeAPI()
