"""Append-only chat transcript with a typing placeholder."""

import itertools
import logging
from typing import List, Optional, Tuple

from ..models.transcript import Role, TranscriptEntry
from ..scheduling import Cancellable, Scheduler

logger = logging.getLogger(__name__)

TYPING_FRAMES = (".", "..", "...")
TYPING_INTERVAL_SECONDS = 0.4


class TypingPlaceholder:
    """Handle on the assistant entry shown while a reply is pending."""

    def __init__(self, entry: TranscriptEntry, scheduler: Optional[Scheduler]):
        self.entry = entry
        self.scheduler = scheduler
        self._frames = itertools.cycle(TYPING_FRAMES)
        self._timer: Optional[Cancellable] = None
        self.entry.text = next(self._frames)
        self._schedule_frame()

    @property
    def replaced(self) -> bool:
        return not self.entry.pending

    def _schedule_frame(self) -> None:
        if self.scheduler is not None:
            self._timer = self.scheduler.call_later(TYPING_INTERVAL_SECONDS, self._advance)

    def _advance(self) -> None:
        self._timer = None
        if self.entry.pending:
            self.entry.text = next(self._frames)
            self._schedule_frame()

    def replace_with(self, text: str) -> None:
        """Freeze the placeholder with its final text. Allowed exactly once."""
        if not self.entry.pending:
            raise RuntimeError("Typing placeholder was already replaced")
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self.entry.text = text
        self.entry.pending = False


class MessageLog:
    """Ordered user/assistant transcript for one widget."""

    def __init__(self, scheduler: Optional[Scheduler] = None):
        """Initialize message log.

        Args:
            scheduler: Drives the typing animation; None disables it
        """
        self.scheduler = scheduler
        self._entries: List[TranscriptEntry] = []
        self._sequence = itertools.count(1)

    @property
    def entries(self) -> Tuple[TranscriptEntry, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def _append(self, role: Role, text: str, pending: bool = False) -> TranscriptEntry:
        entry = TranscriptEntry(role=role, text=text, rendered_at=next(self._sequence), pending=pending)
        self._entries.append(entry)
        return entry

    def append_user(self, text: str) -> TranscriptEntry:
        return self._append(Role.USER, text)

    def append_assistant(self, text: str) -> TranscriptEntry:
        return self._append(Role.ASSISTANT, text)

    def begin_typing(self) -> TypingPlaceholder:
        """Append an assistant placeholder that animates until replaced."""
        entry = self._append(Role.ASSISTANT, "", pending=True)
        return TypingPlaceholder(entry, self.scheduler)

    def clear(self) -> None:
        """Empty the visible transcript. Ordering positions keep increasing."""
        logger.debug(f"Clearing {len(self._entries)} transcript entries")
        self._entries.clear()
