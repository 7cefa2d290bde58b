"""Best-effort text-to-speech for assistant replies."""

import logging
from typing import Optional

from ..capabilities import SpeechSynthesizer, Utterance

logger = logging.getLogger(__name__)


class SpeechOutput:
    """Speaks replies through the platform synthesizer, one utterance at a time."""

    def __init__(
        self,
        synthesizer: Optional[SpeechSynthesizer],
        language: Optional[str] = None,
        rate: Optional[float] = None,
        pitch: Optional[float] = None,
    ):
        self.synthesizer = synthesizer
        self.language = language
        self.rate = rate
        self.pitch = pitch
        self._prewarmed = False

    @property
    def available(self) -> bool:
        return self.synthesizer is not None

    def speak(self, text: str) -> None:
        """Announce text, cutting off anything still being spoken."""
        if self.synthesizer is None or not text or not text.strip():
            return
        try:
            self.synthesizer.cancel()
        except Exception as e:
            logger.debug(f"Ignoring synthesizer cancel error: {e}")
        utterance = Utterance(text=text, lang=self.language, rate=self.rate, pitch=self.pitch)
        self.synthesizer.speak(utterance)
        logger.debug(f"Speaking reply ({len(text)} chars)")

    def prewarm(self) -> None:
        """Ask for the voice list once so the first reply is not delayed."""
        if self._prewarmed or self.synthesizer is None:
            return
        self._prewarmed = True
        try:
            voices = self.synthesizer.get_voices()
            logger.debug(f"Synthesizer reports {len(voices or [])} voices")
        except Exception as e:
            logger.debug(f"Voice list unavailable: {e}")
