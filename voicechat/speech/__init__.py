"""Speech input (dictation) and output (synthesis)."""

from .dictation import DictationSession, transition
from .output import SpeechOutput

__all__ = [
    "DictationSession",
    "transition",
    "SpeechOutput",
]
