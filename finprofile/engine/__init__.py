"""
Conversation engine and the chat messages it emits.
"""

from .conversation import ConversationEngine, ConversationPhase
from .messages import ChatMessage, MessageKind

__all__ = [
    "ConversationEngine",
    "ConversationPhase",
    "ChatMessage",
    "MessageKind"
]
