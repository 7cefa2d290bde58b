"""Services layer for VoiceChat application logic."""

from .chat_client import ChatEndpointClient
from .conversation import ConversationController

__all__ = [
    "ChatEndpointClient",
    "ConversationController",
]
