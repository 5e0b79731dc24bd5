"""
Timeline delta tracking.

The backend timeline only grows, but each fetch returns the whole thing and
is not guaranteed to be ordered. The tracker remembers which assistant items
have already been surfaced, per session+agent, so repeated fetches only yield
what is new.
"""

import re
from typing import Iterable

from aci_inspector.models.timeline import ContextTimelineItem

TimelineKey = tuple[str, str]  # (session_id, agent_id)

_SEPARATORS = re.compile(r"[\s_-]+")


def is_assistant_type(type_tag: str) -> bool:
    """``assistant_text``, ``Assistant-Message`` and ``assistant tool`` all match."""
    normalized = _SEPARATORS.sub("", (type_tag or "").strip().lower())
    return normalized.startswith("assistant")


def assistant_items(items: Iterable[ContextTimelineItem]) -> list[ContextTimelineItem]:
    return [item for item in items if is_assistant_type(item.type)]


class TimelineTracker:
    """Seen assistant sequence numbers, keyed by session+agent.

    Not safe for concurrent use; the orchestrator drives it from a single
    event loop.
    """

    def __init__(self) -> None:
        self._seen: dict[TimelineKey, set[int]] = {}

    def initialize(self, key: TimelineKey, items: Iterable[ContextTimelineItem]) -> None:
        """Mark every assistant item currently in the timeline as already surfaced."""
        self._seen[key] = {item.seq for item in assistant_items(items)}

    def delta(self, key: TimelineKey, items: Iterable[ContextTimelineItem]) -> list[ContextTimelineItem]:
        seen = self._seen.setdefault(key, set())
        fresh: dict[int, ContextTimelineItem] = {}
        for item in assistant_items(items):
            if item.seq not in seen and item.seq not in fresh:
                fresh[item.seq] = item
        ordered = [fresh[seq] for seq in sorted(fresh)]
        seen.update(fresh)
        return ordered

    def seen(self, key: TimelineKey) -> frozenset[int]:
        return frozenset(self._seen.get(key, ()))

    def forget(self, session_id: str) -> None:
        """Drop tracking for every agent of a closed session."""
        for key in [k for k in self._seen if k[0] == session_id]:
            del self._seen[key]
