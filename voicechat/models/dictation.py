"""Dictation state, events and effects."""

from dataclasses import dataclass, field
from typing import Tuple


@dataclass(frozen=True)
class DictationState:
    """State of one dictation session."""
    is_listening: bool = False
    finalized_text: str = ""
    pending_interim_text: str = ""
    restart_scheduled: bool = False
    ui_active: bool = False  # Recording indicator currently shown


def collapse_whitespace(text: str) -> str:
    return " ".join(text.split())


def compose_transcript(finalized: str, interim: str) -> str:
    """Text mirrored into the input field: finalized plus interim, left-trimmed."""
    combined = finalized + (" " + interim if interim else "")
    # Only leading whitespace is trimmed; a trailing run survives as one space
    collapsed = " ".join(combined.split())
    if combined[-1:].isspace() and collapsed:
        collapsed += " "
    return collapsed


@dataclass(frozen=True)
class RecognitionSegment:
    """One result slot reported by the recognition engine."""
    transcript: str
    is_final: bool = False


# Events

@dataclass(frozen=True)
class SessionRequested:
    pass


@dataclass(frozen=True)
class EngineStarted:
    pass


@dataclass(frozen=True)
class ResultReceived:
    segments: Tuple[RecognitionSegment, ...] = field(default_factory=tuple)
    result_index: int = 0


@dataclass(frozen=True)
class EngineEnded:
    pass


@dataclass(frozen=True)
class EngineFailed:
    code: str


@dataclass(frozen=True)
class StartFailed:
    pass


@dataclass(frozen=True)
class StopRequested:
    pass


@dataclass(frozen=True)
class RestartDue:
    pass


# Effects

@dataclass(frozen=True)
class BeginRecordingUI:
    pass


@dataclass(frozen=True)
class MirrorText:
    text: str


@dataclass(frozen=True)
class ScheduleRestart:
    delay: float


@dataclass(frozen=True)
class CancelRestart:
    pass


@dataclass(frozen=True)
class RestartEngine:
    pass


@dataclass(frozen=True)
class StopEngine:
    pass


@dataclass(frozen=True)
class CleanupUI:
    pass


@dataclass(frozen=True)
class ShowStatus:
    message: str
    level: str = "info"
