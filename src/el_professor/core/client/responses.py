"""
Response and conversation models shared by the service, the agent and the CLI.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class MessageRole(Enum):
    """Message roles in a conversation."""
    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(BaseModel):
    """A single chat message between the user and the assistant."""
    role: MessageRole
    content: str
    timestamp: datetime = Field(default_factory=datetime.now)

    def preview(self, limit: int = 100) -> str:
        """Content truncated to ``limit`` characters."""
        if len(self.content) > limit:
            return self.content[:limit] + "..."
        return self.content


class ResponseMetadata(BaseModel):
    """Metadata attached to a model response."""
    model: str
    timestamp: datetime = Field(default_factory=datetime.now)
    tokens_used: Optional[int] = None


class AgentResponse(BaseModel):
    """Normalized response from the model."""
    text: str = ""
    function_calls: List[Dict[str, Any]] = Field(default_factory=list)
    metadata: Optional[ResponseMetadata] = None

    @property
    def has_function_calls(self) -> bool:
        return bool(self.function_calls)
