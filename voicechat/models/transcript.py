"""Transcript-related data models."""

from dataclasses import dataclass
from enum import Enum


class Role(Enum):
    """Author of a transcript entry."""
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class TranscriptEntry:
    """One bubble in the message log."""
    role: Role
    text: str
    rendered_at: int  # Ordering position assigned by MessageLog
    pending: bool = False  # True while this is the typing placeholder
