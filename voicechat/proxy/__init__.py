"""Server-side proxy between the widget and the completion provider."""

from .completion import CompletionEngine, ResponsesCompletionEngine, extract_reply_text
from .credentials import load_api_key
from .server import create_app

__all__ = [
    "CompletionEngine",
    "ResponsesCompletionEngine",
    "extract_reply_text",
    "load_api_key",
    "create_app",
]
