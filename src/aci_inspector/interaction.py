"""
Interaction orchestrator: send a message and surface the agent's output.

The interact request only returns once the agent has finished its whole
turn. While it is in flight a background task polls the context timeline
and appends new assistant items to the transcript as soon as they show up.

Both sources describe the same turn:
- live items: appended per timeline sequence number, through TimelineTracker
- final result: one summary entry (response text, action, steps, usage)

The poll ticks and the final catch-up fetch share one seen-set, so each
assistant item appears at most once. When any live item was surfaced the
result's free-text ``response`` is left out of the summary; the timeline
already showed it.
"""

import asyncio
import contextlib
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Mapping, Optional

from aci_inspector.api import InspectorAPI
from aci_inspector.errors import (
    ApiClientError,
    InteractionBusyError,
    InteractionError,
    SessionError,
    describe_error,
)
from aci_inspector.models.interaction import ActionInvokeResult, InteractionResult
from aci_inspector.models.transcript import TranscriptRole
from aci_inspector.state import InspectorState, Transcript, load_session_snapshot
from aci_inspector.timeline import TimelineKey, TimelineTracker
from aci_inspector.tool_calls import action_tool_call, create_tool_call

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_S = 0.7


def _flag(value: bool) -> str:
    return "true" if value else "false"


def _opt(value: Optional[str]) -> str:
    return value if value is not None else ""


def format_result_lines(result: InteractionResult, include_response: bool = True) -> list[str]:
    """One line per populated field of a successful result."""
    lines: list[str] = []
    if include_response and result.response:
        lines.append(result.response)
    if result.action:
        action = result.action
        lines.append(
            f"[action] type={_opt(action.type)}, app={_opt(action.app_name)}, "
            f"window={_opt(action.window_id)}, actionId={_opt(action.action_id)}"
        )
    if result.action_result:
        outcome = result.action_result
        lines.append(
            f"[actionResult] success={_flag(outcome.success)}, "
            f"message={_opt(outcome.message)}, summary={_opt(outcome.summary)}"
        )
    for step in result.steps or []:
        line = (
            f"[step] turn={step.turn}, index={step.index}, call={step.call_id}, "
            f"window={step.window_id}, action={step.action_id}, mode={step.resolved_mode}, "
            f"success={_flag(step.success)}"
        )
        if step.message:
            line += f", message={step.message}"
        if step.summary:
            line += f", summary={step.summary}"
        if step.task_id:
            line += f", task={step.task_id}"
        lines.append(line)
    if result.usage:
        usage = result.usage
        lines.append(
            f"[usage] prompt={usage.prompt_tokens}, completion={usage.completion_tokens}, "
            f"total={usage.total_tokens}"
        )
    return lines


class _Run:
    """Bookkeeping for one interaction; owned by the orchestrator while it runs."""
    __slots__ = ("session_id", "agent_id", "live_items")

    def __init__(self, session_id: str, agent_id: str):
        self.session_id = session_id
        self.agent_id = agent_id
        self.live_items = 0

    @property
    def key(self) -> TimelineKey:
        return (self.session_id, self.agent_id)


class InteractionOrchestrator:
    def __init__(
        self,
        api: InspectorAPI,
        state: InspectorState,
        transcript: Transcript,
        tracker: Optional[TimelineTracker] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL_S,
    ):
        self._api = api
        self._state = state
        self._transcript = transcript
        self._tracker = tracker or TimelineTracker()
        self._poll_interval = poll_interval
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    @property
    def tracker(self) -> TimelineTracker:
        return self._tracker

    @contextlib.asynccontextmanager
    async def exclusive(self) -> AsyncIterator[None]:
        """Hold the single run slot. Raises InteractionBusyError if taken."""
        if self._running:
            raise InteractionBusyError("Another interaction is still running")
        self._running = True
        try:
            yield
        finally:
            self._running = False

    # --- session state ---

    async def refresh(self, session_id: str, agent_id: str) -> None:
        snapshot = await load_session_snapshot(self._api, session_id, agent_id, self._state.include_obsolete)
        self._state.apply_snapshot(snapshot)

    async def _refresh_quietly(self, session_id: str, agent_id: str) -> None:
        try:
            await self.refresh(session_id, agent_id)
        except ApiClientError as e:
            logger.warning("Session refresh after failed run failed: %s", e)

    async def ensure_session(self) -> TimelineKey:
        """Return the active session+agent, creating a session if there is none."""
        if self._state.session_id and not self._state.agent_id:
            session = self._state.active_session
            agent = session.first_agent if session else None
            if agent is not None:
                self._state.select(self._state.session_id, agent.agent_id)
        key = self._state.active_key
        if key is not None:
            return key

        created = await self._api.create_session()
        self._state.upsert_session(created)
        self._transcript.append(TranscriptRole.SYSTEM, f"Auto-created session {created.session_id}")
        agent = created.first_agent
        if agent is None:
            self._state.select(created.session_id, None)
            raise SessionError(f"Session {created.session_id} has no agent")
        self._state.select(created.session_id, agent.agent_id)
        return (created.session_id, agent.agent_id)

    async def _prepare(self) -> TimelineKey:
        try:
            return await self.ensure_session()
        except (ApiClientError, SessionError) as e:
            self._transcript.append(TranscriptRole.SYSTEM, f"Request failed: {describe_error(e)}")
            raise

    # --- timeline polling ---

    async def _surface_delta(self, run: _Run) -> None:
        items = await self._api.get_context_timeline(run.session_id, run.agent_id, True)
        fresh = self._tracker.delta(run.key, items)
        for item in fresh:
            self._transcript.append(TranscriptRole.ASSISTANT, item.raw_content)
        run.live_items += len(fresh)

    async def _poll(self, run: _Run) -> None:
        while True:
            await asyncio.sleep(self._poll_interval)
            try:
                await self._surface_delta(run)
            except Exception as e:
                # a failed tick never ends the run
                logger.warning("Timeline poll failed for %s/%s: %s", run.session_id, run.agent_id, e)

    async def _interact_with_polling(self, run: _Run, message: str) -> InteractionResult:
        poller = asyncio.create_task(self._poll(run))
        try:
            return await self._api.interact(run.session_id, run.agent_id, message)
        finally:
            poller.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await poller
            # catch whatever landed between the last tick and completion
            try:
                await self._surface_delta(run)
            except ApiClientError as e:
                logger.warning("Final timeline fetch failed for %s/%s: %s", run.session_id, run.agent_id, e)

    # --- result handling ---

    def _apply_result(self, result: InteractionResult, include_response: bool = True) -> None:
        if not result.success:
            self._transcript.append(TranscriptRole.SYSTEM, f"Request failed: {result.error or 'unknown'}")
            return
        lines = format_result_lines(result, include_response=include_response)
        if lines:
            self._transcript.append(TranscriptRole.ASSISTANT, "\n".join(lines))

    async def _finish(
        self,
        key: TimelineKey,
        call: Callable[[], Awaitable[InteractionResult]],
        include_response: Callable[[], bool] = lambda: True,
    ) -> InteractionResult:
        session_id, agent_id = key
        try:
            result = await call()
        except ApiClientError as e:
            self._transcript.append(TranscriptRole.SYSTEM, f"Request failed: {describe_error(e)}")
            await self._refresh_quietly(session_id, agent_id)
            raise
        self._apply_result(result, include_response=include_response())
        if not result.success:
            await self._refresh_quietly(session_id, agent_id)
            raise InteractionError(result.error or "unknown", result=result)
        await self.refresh(session_id, agent_id)
        return result

    # --- operations ---

    async def send(self, message: str) -> InteractionResult:
        """Ask the agent and reconcile live timeline output with the final result."""
        content = message.strip()
        if not content:
            raise ValueError("Message cannot be empty")

        async with self.exclusive():
            key = await self._prepare()
            run = _Run(*key)
            logger.debug("Interaction started on %s/%s", run.session_id, run.agent_id)
            self._transcript.append(TranscriptRole.USER, content)

            async def exchange() -> InteractionResult:
                history = await self._api.get_context_timeline(run.session_id, run.agent_id, True)
                self._tracker.initialize(run.key, history)
                return await self._interact_with_polling(run, content)

            result = await self._finish(key, exchange, include_response=lambda: run.live_items == 0)
            logger.debug("Interaction finished on %s/%s (%d live items)", run.session_id, run.agent_id, run.live_items)
            return result

    async def _simulate(self, assistant_output: str) -> InteractionResult:
        key = await self._prepare()
        self._transcript.append(TranscriptRole.SIMULATOR, assistant_output)
        return await self._finish(key, lambda: self._api.simulate_assistant_output(*key, assistant_output))

    async def simulate(self, assistant_output: str) -> InteractionResult:
        """Feed ``assistant_output`` to the backend as if the model had said it."""
        content = assistant_output.strip()
        if not content:
            raise ValueError("Assistant output cannot be empty")
        async with self.exclusive():
            return await self._simulate(content)

    async def simulate_create(self, app_name: str, target: Optional[str] = None) -> InteractionResult:
        async with self.exclusive():
            return await self._simulate(create_tool_call(app_name, target))

    async def simulate_action(self, window_id: str, action_id: str, params: Mapping[str, Any]) -> InteractionResult:
        async with self.exclusive():
            return await self._simulate(action_tool_call(window_id, action_id, params))

    async def invoke_action(self, window_id: str, action_id: str, params: Mapping[str, Any]) -> ActionInvokeResult:
        """Run a window action directly, bypassing the model."""
        async with self.exclusive():
            session_id, agent_id = await self._prepare()
            try:
                result = await self._api.run_window_action(session_id, agent_id, window_id, action_id, dict(params))
            except ApiClientError as e:
                self._transcript.append(TranscriptRole.SYSTEM, f"Request failed: {describe_error(e)}")
                await self._refresh_quietly(session_id, agent_id)
                raise
            self._transcript.append(
                TranscriptRole.SYSTEM,
                f"Direct invoke {window_id}.{action_id}: success={_flag(result.success)}, "
                f"message={_opt(result.message)}, summary={_opt(result.summary)}",
            )
            await self.refresh(session_id, agent_id)
            return result
