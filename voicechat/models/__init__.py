"""Data models for the VoiceChat widget."""

from .transcript import Role, TranscriptEntry
from .ui import UIControlSnapshot
from .dictation import (
    DictationState,
    RecognitionSegment,
    SessionRequested,
    EngineStarted,
    ResultReceived,
    EngineEnded,
    EngineFailed,
    StartFailed,
    StopRequested,
    RestartDue,
    BeginRecordingUI,
    MirrorText,
    ScheduleRestart,
    CancelRestart,
    RestartEngine,
    StopEngine,
    CleanupUI,
    ShowStatus,
)

__all__ = [
    "Role",
    "TranscriptEntry",
    "UIControlSnapshot",
    "DictationState",
    "RecognitionSegment",
    # Dictation events
    "SessionRequested",
    "EngineStarted",
    "ResultReceived",
    "EngineEnded",
    "EngineFailed",
    "StartFailed",
    "StopRequested",
    "RestartDue",
    # Dictation effects
    "BeginRecordingUI",
    "MirrorText",
    "ScheduleRestart",
    "CancelRestart",
    "RestartEngine",
    "StopEngine",
    "CleanupUI",
    "ShowStatus",
]
