"""Platform capability interfaces (speech engines, microphone, origin).

The widget never inspects the host environment directly. Whatever hosts it
(browser bridge, terminal, tests) hands over a :class:`Capabilities` object
describing which engines exist.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol, Sequence

from .models.dictation import RecognitionSegment


class RecognitionEngine(Protocol):
    """A continuous speech-recognition engine instance."""

    lang: Optional[str]
    continuous: bool
    interim_results: bool
    max_alternatives: int

    on_start: Optional[Callable[[], None]]
    on_result: Optional[Callable[[Sequence[RecognitionSegment], int], None]]
    on_error: Optional[Callable[[str], None]]
    on_end: Optional[Callable[[], None]]

    def start(self) -> None:
        ...

    def stop(self) -> None:
        ...


@dataclass
class Utterance:
    """Text queued for speech synthesis."""
    text: str
    lang: Optional[str] = None
    rate: Optional[float] = None
    pitch: Optional[float] = None


class SpeechSynthesizer(Protocol):
    """Platform text-to-speech engine."""

    def speak(self, utterance: Utterance) -> None:
        ...

    def cancel(self) -> None:
        ...

    def get_voices(self) -> List[str]:
        ...


class MicrophoneAccess(Protocol):
    """Microphone permission prompt."""

    async def request_permission(self) -> bool:
        ...


@dataclass
class Capabilities:
    """What the hosting platform offers the widget."""
    recognition_factory: Optional[Callable[[], RecognitionEngine]] = None
    synthesizer: Optional[SpeechSynthesizer] = None
    microphone: Optional[MicrophoneAccess] = None  # None: no permission API, treated as granted
    secure_context: bool = True

    @property
    def supports_recognition(self) -> bool:
        return self.recognition_factory is not None

    @classmethod
    def unavailable(cls, secure_context: bool = True) -> "Capabilities":
        """Platform with no speech engines at all."""
        return cls(secure_context=secure_context)
