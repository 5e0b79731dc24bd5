"""
Contract validation of backend responses.

Turns decoded JSON into typed records. Required fields raise ContractError
naming the exact path of the offending value (``get_windows.response[2].id``);
optional fields are coerced permissively and default-filled.

Two backend protocol revisions are accepted side by side:
- parameter kinds as integer codes or as strings,
- window action parameters as a ``paramSchema`` tree or a flat
  ``parameters`` list.
"""

import math
import re
from datetime import datetime
from typing import Any, Callable, Optional, TypeVar

from aci_inspector.errors import ContractError
from aci_inspector.models.interaction import (
    ActionInfo,
    ActionInvokeResult,
    ActionResultInfo,
    InteractionResult,
    InteractionStep,
    TokenUsage,
)
from aci_inspector.models.session import AgentInfo, SessionInfo
from aci_inspector.models.timeline import ContextTimelineItem
from aci_inspector.models.window import (
    ActionParameterDef,
    ActionParamSchema,
    AppInfo,
    ParamKind,
    WindowAction,
    WindowInfo,
)

T = TypeVar("T")

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")

PARAM_KIND_CODES = {
    0: ParamKind.STRING,
    1: ParamKind.INTEGER,
    2: ParamKind.NUMBER,
    3: ParamKind.BOOLEAN,
    4: ParamKind.NULL,
    5: ParamKind.OBJECT,
    6: ParamKind.ARRAY,
}

PARAM_KIND_NAMES = {
    "string": ParamKind.STRING,
    "integer": ParamKind.INTEGER,
    "int": ParamKind.INTEGER,
    "number": ParamKind.NUMBER,
    "float": ParamKind.NUMBER,
    "double": ParamKind.NUMBER,
    "boolean": ParamKind.BOOLEAN,
    "bool": ParamKind.BOOLEAN,
    "null": ParamKind.NULL,
    "object": ParamKind.OBJECT,
    "array": ParamKind.ARRAY,
}


# --- root shapes and required fields ---

def require_record(value: Any, path: str) -> dict[str, Any]:
    if isinstance(value, dict):
        return value
    raise ContractError(f"Invalid API contract at {path}: expected object.")


def require_array(value: Any, path: str) -> list[Any]:
    if isinstance(value, list):
        return value
    raise ContractError(f"Invalid API contract at {path}: expected array.")


def require_string(data: dict[str, Any], key: str, path: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ContractError(f"Invalid API contract at {path}.{key}: expected non-empty string.")
    return value


# --- permissive coercions ---

def as_record(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def as_array(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _is_number(value: Any) -> bool:
    # bool is an int subclass, but never a number on the wire
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def to_int(value: Any) -> int:
    if _is_number(value):
        if isinstance(value, float) and not math.isfinite(value):
            return 0
        return int(value)
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        return int(match.group(1)) if match else 0
    return 0


def to_bool(value: Any) -> bool:
    return value is True


def to_date(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def optional_str(value: Any) -> Optional[str]:
    return None if value is None else _text(value)


def _text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _text_or_empty(value: Any) -> str:
    return "" if value is None else _text(value)


def _elements(raw: Any, path: str, parse: Callable[[Any, str], T]) -> list[T]:
    return [parse(item, f"{path}[{index}]") for index, item in enumerate(require_array(raw, path))]


# --- action parameter schemas ---

def parse_param_kind(raw: Any) -> ParamKind:
    """Decode a parameter kind from either protocol revision.

    >>> parse_param_kind(1) is parse_param_kind(" Int ")
    True
    """
    if _is_number(raw):
        if isinstance(raw, float) and not math.isfinite(raw):
            return ParamKind.UNKNOWN
        return PARAM_KIND_CODES.get(int(raw), ParamKind.UNKNOWN)
    lowered = ("" if raw is None else _text(raw)).strip().lower()
    return PARAM_KIND_NAMES.get(lowered, ParamKind.UNKNOWN)


def _required_flag(data: dict[str, Any]) -> bool:
    # parameters are required unless explicitly marked otherwise
    raw = data.get("required")
    return True if raw is None else to_bool(raw)


def parse_param_schema(raw: Any) -> ActionParamSchema:
    data = as_record(raw)
    properties = {name: parse_param_schema(node) for name, node in as_record(data.get("properties")).items()}
    items = data.get("items")
    return ActionParamSchema(
        kind=parse_param_kind(data.get("kind")),
        required=_required_flag(data),
        description=optional_str(data.get("description")),
        items=None if items is None else parse_param_schema(items),
        properties=properties,
        default_value=data.get("default"),
    )


def parse_parameter_def(raw: Any, path: str) -> ActionParameterDef:
    data = require_record(raw, path)
    type_raw = data.get("type", data.get("kind"))
    if type_raw is None:
        type_name = "string"
    elif _is_number(type_raw):
        type_name = parse_param_kind(type_raw).value
    else:
        type_name = _text(type_raw).strip()
    return ActionParameterDef(
        name=require_string(data, "name", path),
        type=type_name,
        required=_required_flag(data),
        default_value=data.get("defaultValue", data.get("default")),
    )


def _parameters_from_schema(schema: ActionParamSchema) -> list[ActionParameterDef]:
    return [
        ActionParameterDef(
            name=name,
            type=node.kind.value,
            required=node.required,
            default_value=node.default_value,
        )
        for name, node in schema.properties.items()
    ]


def _decode_action_params(data: dict[str, Any], path: str) -> tuple[Optional[ActionParamSchema], list[ActionParameterDef]]:
    """Pick the parameter encoding the backend used for one action."""
    if data.get("paramSchema") is not None:
        schema = parse_param_schema(data["paramSchema"])
        return schema, _parameters_from_schema(schema)
    if data.get("parameters") is not None:
        return None, _elements(data["parameters"], f"{path}.parameters", parse_parameter_def)
    return None, []


def parse_window_action(raw: Any, path: str = "action") -> WindowAction:
    data = as_record(raw)
    schema, parameters = _decode_action_params(data, path)
    return WindowAction(
        id=_text_or_empty(data.get("id")),
        label=_text_or_empty(data.get("label")),
        mode=optional_str(data.get("mode")),
        param_schema=schema,
        parameters=parameters,
    )


# --- top-level records ---

def parse_agent(raw: Any, path: str) -> AgentInfo:
    data = require_record(raw, path)
    return AgentInfo(
        agent_id=require_string(data, "agentId", path),
        name=optional_str(data.get("name")),
        role=optional_str(data.get("role")),
    )


def parse_session(raw: Any, path: str) -> SessionInfo:
    data = require_record(raw, path)
    agents_raw = data.get("agents")
    agents = _elements([] if agents_raw is None else agents_raw, f"{path}.agents", parse_agent)
    return SessionInfo(
        session_id=require_string(data, "sessionId", path),
        created_at=to_date(data.get("createdAt")),
        agent_count=to_int(data.get("agentCount")),
        agents=agents,
    )


def parse_sessions(raw: Any, path: str) -> list[SessionInfo]:
    return _elements(raw, path, parse_session)


def parse_window(raw: Any, path: str) -> WindowInfo:
    data = require_record(raw, path)
    actions = [
        parse_window_action(item, f"{path}.actions[{index}]")
        for index, item in enumerate(as_array(data.get("actions")))
    ]
    return WindowInfo(
        id=require_string(data, "id", path),
        description=optional_str(data.get("description")),
        content=_text_or_empty(data.get("content")),
        app_name=optional_str(data.get("appName")),
        created_at=to_int(data.get("createdAt")),
        updated_at=to_int(data.get("updatedAt")),
        namespaces=[_text(item) for item in as_array(data.get("namespaces"))],
        actions=actions,
    )


def parse_windows(raw: Any, path: str) -> list[WindowInfo]:
    return _elements(raw, path, parse_window)


def parse_app(raw: Any, path: str) -> AppInfo:
    data = require_record(raw, path)
    return AppInfo(
        name=require_string(data, "name", path),
        description=optional_str(data.get("description")),
        tags=[_text(tag) for tag in as_array(data.get("tags"))],
        is_started=to_bool(data.get("isStarted")),
    )


def parse_apps(raw: Any, path: str) -> list[AppInfo]:
    return _elements(raw, path, parse_app)


def parse_timeline_item(raw: Any, path: str) -> ContextTimelineItem:
    data = require_record(raw, path)
    return ContextTimelineItem(
        id=require_string(data, "id", path),
        type=_text_or_empty(data.get("type")),
        seq=to_int(data.get("seq")),
        is_obsolete=to_bool(data.get("isObsolete")),
        raw_content=_text_or_empty(data.get("rawContent")),
        estimated_tokens=to_int(data.get("estimatedTokens")),
    )


def parse_context_timeline(raw: Any, path: str) -> list[ContextTimelineItem]:
    return _elements(raw, path, parse_timeline_item)


def _parse_action_info(raw: Any) -> ActionInfo:
    data = as_record(raw)
    return ActionInfo(
        type=optional_str(data.get("type")),
        app_name=optional_str(data.get("appName")),
        window_id=optional_str(data.get("windowId")),
        action_id=optional_str(data.get("actionId")),
    )


def _parse_action_result(raw: Any) -> ActionResultInfo:
    data = as_record(raw)
    return ActionResultInfo(
        success=to_bool(data.get("success")),
        message=optional_str(data.get("message")),
        summary=optional_str(data.get("summary")),
    )


def _parse_step(raw: Any) -> InteractionStep:
    data = as_record(raw)
    return InteractionStep(
        call_id=_text_or_empty(data.get("callId")),
        window_id=_text_or_empty(data.get("windowId")),
        action_id=_text_or_empty(data.get("actionId")),
        resolved_mode=_text_or_empty(data.get("resolvedMode")),
        success=to_bool(data.get("success")),
        message=optional_str(data.get("message")),
        summary=optional_str(data.get("summary")),
        task_id=optional_str(data.get("taskId")),
        turn=to_int(data.get("turn")),
        index=to_int(data.get("index")),
    )


def _parse_usage(raw: Any) -> TokenUsage:
    data = as_record(raw)
    return TokenUsage(
        prompt_tokens=to_int(data.get("promptTokens")),
        completion_tokens=to_int(data.get("completionTokens")),
        total_tokens=to_int(data.get("totalTokens")),
    )


def parse_interaction_result(raw: Any, path: str) -> InteractionResult:
    data = require_record(raw, path)
    return InteractionResult(
        success=to_bool(data.get("success")),
        error=optional_str(data.get("error")),
        response=optional_str(data.get("response")),
        action=None if data.get("action") is None else _parse_action_info(data["action"]),
        action_result=None if data.get("actionResult") is None else _parse_action_result(data["actionResult"]),
        steps=None if data.get("steps") is None else [_parse_step(step) for step in as_array(data["steps"])],
        usage=None if data.get("usage") is None else _parse_usage(data["usage"]),
    )


def parse_action_invoke_result(raw: Any, path: str) -> ActionInvokeResult:
    data = require_record(raw, path)
    return ActionInvokeResult(
        success=to_bool(data.get("success")),
        message=optional_str(data.get("message")),
        summary=optional_str(data.get("summary")),
    )
