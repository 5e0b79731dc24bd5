"""
Window, action and app models.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel


class ParamKind(str, Enum):
    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NULL = "null"
    OBJECT = "object"
    ARRAY = "array"
    UNKNOWN = "unknown"


class ActionParamSchema(BaseModel):
    kind: ParamKind = ParamKind.UNKNOWN
    required: bool = True
    description: Optional[str] = None
    items: Optional[ActionParamSchema] = None
    properties: dict[str, ActionParamSchema] = {}
    default_value: Any = None

    model_config = {"frozen": True}


class ActionParameterDef(BaseModel):
    """Flat parameter description, as sent by the list-style protocol."""
    name: str
    type: str = "string"
    required: bool = True
    default_value: Any = None

    model_config = {"frozen": True}


class WindowAction(BaseModel):
    id: str = ""
    label: str = ""
    mode: Optional[str] = None
    param_schema: Optional[ActionParamSchema] = None
    parameters: list[ActionParameterDef] = []

    model_config = {"frozen": True}

    def parameter(self, name: str) -> Optional[ActionParameterDef]:
        for param in self.parameters:
            if param.name == name:
                return param
        return None


class WindowInfo(BaseModel):
    id: str
    description: Optional[str] = None
    content: str = ""
    app_name: Optional[str] = None
    created_at: int = 0
    updated_at: int = 0
    namespaces: list[str] = []
    actions: list[WindowAction] = []

    model_config = {"frozen": True}

    def action(self, action_id: str) -> Optional[WindowAction]:
        for action in self.actions:
            if action.id == action_id:
                return action
        return None


class AppInfo(BaseModel):
    name: str
    description: Optional[str] = None
    tags: list[str] = []
    is_started: bool = False

    model_config = {"frozen": True}
