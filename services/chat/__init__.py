"""Chat service package."""

from services.chat.session import ConversationSession, ToolResultsPendingError
from services.chat.types import Message, Role, ToolInvocation, ToolState

__all__ = [
    "ConversationSession",
    "Message",
    "Role",
    "ToolInvocation",
    "ToolResultsPendingError",
    "ToolState",
]
