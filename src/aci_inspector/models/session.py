"""
Session and agent models.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class AgentInfo(BaseModel):
    agent_id: str
    name: Optional[str] = None
    role: Optional[str] = None

    model_config = {"frozen": True}


class SessionInfo(BaseModel):
    session_id: str
    created_at: Optional[datetime] = None  # absent when the backend omits or mangles it
    agent_count: int = 0
    agents: list[AgentInfo] = []

    model_config = {"frozen": True}

    @property
    def first_agent(self) -> Optional[AgentInfo]:
        return self.agents[0] if self.agents else None

    def label(self) -> str:
        if self.created_at is None:
            return self.session_id
        return f"{self.session_id} [{self.created_at:%Y-%m-%d %H:%M:%S}]"
