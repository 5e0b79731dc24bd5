"""
Transcript models.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class TranscriptRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    SIMULATOR = "simulator"


class TranscriptEntry(BaseModel):
    role: TranscriptRole
    content: str
    time: datetime = Field(default_factory=datetime.now)

    model_config = {"frozen": True}
