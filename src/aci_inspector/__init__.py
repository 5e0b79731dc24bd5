"""
aci-inspector: debug client for an ACI agent context backend.

Create sessions, talk to agents, simulate assistant/tool output, invoke
window actions and inspect the raw context the backend builds.
"""

from aci_inspector.client import AsyncInspectorClient
from aci_inspector.api import InspectorAPI
from aci_inspector.interaction import InteractionOrchestrator
from aci_inspector.timeline import TimelineTracker, is_assistant_type
from aci_inspector.state import InspectorState, Transcript
from aci_inspector.errors import (
    ApiClientError,
    NetworkError,
    HttpError,
    ParseError,
    ContractError,
    SessionError,
    InteractionBusyError,
    InteractionError,
)

__version__ = "0.1.0"
__all__ = [
    "AsyncInspectorClient",
    "InspectorAPI",
    "InteractionOrchestrator",
    "TimelineTracker",
    "is_assistant_type",
    "InspectorState",
    "Transcript",
    "ApiClientError",
    "NetworkError",
    "HttpError",
    "ParseError",
    "ContractError",
    "SessionError",
    "InteractionBusyError",
    "InteractionError",
]
