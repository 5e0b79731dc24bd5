"""
Interaction and action invocation results.
"""

from typing import Optional

from pydantic import BaseModel


class ActionInfo(BaseModel):
    type: Optional[str] = None
    app_name: Optional[str] = None
    window_id: Optional[str] = None
    action_id: Optional[str] = None

    model_config = {"frozen": True}


class ActionResultInfo(BaseModel):
    success: bool = False
    message: Optional[str] = None
    summary: Optional[str] = None

    model_config = {"frozen": True}


class InteractionStep(BaseModel):
    call_id: str = ""
    window_id: str = ""
    action_id: str = ""
    resolved_mode: str = ""
    success: bool = False
    message: Optional[str] = None
    summary: Optional[str] = None
    task_id: Optional[str] = None
    turn: int = 0
    index: int = 0

    model_config = {"frozen": True}


class TokenUsage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    model_config = {"frozen": True}


class InteractionResult(BaseModel):
    """Terminal outcome of an interact or simulate call."""
    success: bool = False
    error: Optional[str] = None
    response: Optional[str] = None
    action: Optional[ActionInfo] = None
    action_result: Optional[ActionResultInfo] = None
    steps: Optional[list[InteractionStep]] = None
    usage: Optional[TokenUsage] = None

    model_config = {"frozen": True}


class ActionInvokeResult(BaseModel):
    success: bool = False
    message: Optional[str] = None
    summary: Optional[str] = None

    model_config = {"frozen": True}
