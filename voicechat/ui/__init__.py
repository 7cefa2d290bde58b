"""Presentation layer: transcript, status banner, element models, console view."""

from .console_view import ConsoleChatView
from .elements import Control, Form, InputField
from .message_log import MessageLog, TypingPlaceholder
from .status_notifier import StatusNotifier, StatusPublisher

__all__ = [
    "ConsoleChatView",
    "Control",
    "Form",
    "InputField",
    "MessageLog",
    "TypingPlaceholder",
    "StatusNotifier",
    "StatusPublisher",
]
