"""
Helpers for simulated tool calls and window action parameters.
"""

import json
from typing import Any, Mapping, Optional

from aci_inspector.models.window import WindowAction

_INT_TYPES = {"int", "integer"}
_FLOAT_TYPES = {"float", "double", "number"}
_BOOL_TYPES = {"bool", "boolean"}
_JSON_TYPES = {"json", "object", "map", "array"}


def wrap_tool_call(payload: Mapping[str, Any]) -> str:
    return f"<tool_call>\n{json.dumps(payload, ensure_ascii=False)}\n</tool_call>"


def create_tool_call(app_name: str, target: Optional[str] = None) -> str:
    if not app_name or not app_name.strip():
        raise ValueError("Select an app first")
    arguments: dict[str, Any] = {"name": app_name}
    if target and target.strip():
        arguments["target"] = target.strip()
    return wrap_tool_call({"name": "create", "arguments": arguments})


def action_tool_call(window_id: str, action_id: str, params: Mapping[str, Any]) -> str:
    return wrap_tool_call({
        "name": "action",
        "arguments": {"window_id": window_id, "action_id": action_id, "params": dict(params)},
    })


def _coerce_int(type_name: str, raw: str) -> int:
    """Any integral number text, so "1.0" and "1e3" are accepted too."""
    try:
        return int(raw)
    except ValueError:
        pass
    try:
        number = float(raw)
    except ValueError:
        number = None
    if number is None or not number.is_integer():
        raise ValueError(f'Expected int for type {type_name}, got "{raw}"')
    return int(number)


def coerce_param_value(type_name: str, raw: str) -> Any:
    """Convert operator-typed text to the JSON value a parameter expects."""
    normalized = type_name.strip().lower()
    if normalized in _INT_TYPES:
        return _coerce_int(type_name, raw)
    if normalized in _FLOAT_TYPES:
        try:
            return float(raw)
        except ValueError:
            raise ValueError(f'Expected number for type {type_name}, got "{raw}"') from None
    if normalized in _BOOL_TYPES:
        lowered = raw.lower()
        if lowered in ("true", "false"):
            return lowered == "true"
        raise ValueError(f'Expected bool for type {type_name}, got "{raw}"')
    if normalized in _JSON_TYPES:
        try:
            return json.loads(raw)
        except ValueError:
            raise ValueError(f"Expected JSON for type {type_name}, got {raw!r}") from None
    return raw


def collect_action_params(action: WindowAction, raw_values: Mapping[str, str]) -> dict[str, Any]:
    """Build the params object for ``action`` from operator text input.

    Blank values fall back to the parameter default; without one they are
    skipped for optional parameters and rejected for required ones. Names
    the action does not declare are passed through as strings.
    """
    params: dict[str, Any] = {}
    for param in action.parameters:
        raw = (raw_values.get(param.name) or "").strip()
        if not raw:
            if param.default_value is not None:
                params[param.name] = param.default_value
            elif param.required:
                raise ValueError(f"Parameter {param.name} is required")
            continue
        params[param.name] = coerce_param_value(param.type, raw)
    for name, value in raw_values.items():
        if name not in params and action.parameter(name) is None:
            params[name] = value
    return params
