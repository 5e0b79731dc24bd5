"""
Context timeline models.
"""

from pydantic import BaseModel


class ContextTimelineItem(BaseModel):
    """One entry of the backend's append-only context log.

    ``seq`` is the item's identity within a session+agent timeline; it is
    not the position in the returned array.
    """
    id: str
    type: str = ""
    seq: int = 0
    is_obsolete: bool = False
    raw_content: str = ""
    estimated_tokens: int = 0

    model_config = {"frozen": True}
