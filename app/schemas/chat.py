from pydantic import BaseModel, Field
from typing import List, Optional


class ChatRequest(BaseModel):
    message: str = ""


class GuestMessage(BaseModel):
    """Guest history comes from UI state; id/timestamp may be missing."""
    id: Optional[str] = None
    content: str
    is_user: bool = Field(alias="isUser")
    timestamp: Optional[int] = None

    model_config = {"populate_by_name": True}


class GuestChatRequest(BaseModel):
    message: str = ""
    messages: List[GuestMessage] = Field(default_factory=list)
