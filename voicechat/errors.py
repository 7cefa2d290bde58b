"""Exception hierarchy for VoiceChat."""

from typing import Optional


class VoiceChatError(Exception):
    """Base class for all VoiceChat errors."""


class ConfigError(VoiceChatError):
    """Configuration could not be loaded."""


# Dictation availability

class DictationUnavailable(VoiceChatError):
    """Dictation cannot start on this platform."""


class PermissionDenied(DictationUnavailable):
    """Microphone access was blocked."""


class UnsupportedPlatform(DictationUnavailable):
    """No speech-recognition engine is available."""


class InsecureContext(DictationUnavailable):
    """Page is not served from a secure or local origin."""


# Recognition engine errors

class RecognitionError(VoiceChatError):
    """Error reported by the speech-recognition engine."""

    def __init__(self, code: str):
        super().__init__(f"Speech error: {code}")
        self.code = code


class RecognitionTransientError(RecognitionError):
    """Recoverable engine hiccup; the session restarts itself."""


class RecognitionFatalError(RecognitionError):
    """Unrecoverable engine error; the session stops."""


BENIGN_RECOGNITION_CODES = frozenset({"no-speech", "audio-capture", "network", "aborted"})


def classify_recognition_error(code: str) -> RecognitionError:
    """Map an engine error code to a transient or fatal error."""
    if code in BENIGN_RECOGNITION_CODES:
        return RecognitionTransientError(code)
    return RecognitionFatalError(code)


# Turn (widget -> proxy) errors

class TurnError(VoiceChatError):
    """A conversational turn failed."""


class NetworkError(TurnError):
    """The proxy endpoint could not be reached."""


class ServerError(TurnError):
    """The proxy answered with an error."""

    def __init__(self, detail: str, status: Optional[int] = None):
        super().__init__(detail)
        self.detail = detail
        self.status = status


class MalformedResponse(TurnError):
    """The proxy answered with a body that is not a JSON object."""


# Proxy side

class UpstreamError(VoiceChatError):
    """The completion provider call failed."""


class CredentialMissing(VoiceChatError):
    """No API key is configured for the completion provider."""
