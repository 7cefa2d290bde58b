"""In-memory stand-ins for the DOM elements the widget drives."""

from dataclasses import dataclass
from typing import Optional

DEFAULT_PLACEHOLDER = "Type your message…"
RECORDING_INDICATOR = "Recording…"


@dataclass
class Control:
    """A button (send, mic)."""
    disabled: bool = False
    recording: bool = False  # Mic button highlight


@dataclass
class Form:
    """The chat form."""
    novalidate: bool = False


@dataclass
class InputField:
    """The message text field."""
    value: str = ""
    placeholder: str = DEFAULT_PLACEHOLDER
    required: bool = False
    recording: bool = False
    focused: bool = False
    prev_placeholder: Optional[str] = None
    was_required: Optional[bool] = None

    def focus(self) -> None:
        self.focused = True

    def mark_recording(self, indicator: str = RECORDING_INDICATOR,
                       default_placeholder: str = DEFAULT_PLACEHOLDER) -> None:
        """Swap in the recording indicator and clear the field for a fresh transcript."""
        if self.prev_placeholder is None:
            if self.placeholder and self.placeholder != indicator:
                self.prev_placeholder = self.placeholder
            else:
                self.prev_placeholder = default_placeholder
        self.placeholder = indicator
        self.recording = True
        self.value = ""

    def unmark_recording(self, indicator: str = RECORDING_INDICATOR,
                         default_placeholder: str = DEFAULT_PLACEHOLDER) -> None:
        """Restore the placeholder captured by :meth:`mark_recording`."""
        if self.prev_placeholder is not None:
            self.placeholder = self.prev_placeholder
        elif self.placeholder == indicator:
            self.placeholder = default_placeholder
        self.recording = False
        self.prev_placeholder = None

    def suspend_required(self) -> None:
        if self.was_required is None:
            self.was_required = self.required
        self.required = False

    def restore_required(self) -> None:
        if self.was_required is not None:
            self.required = self.was_required
            self.was_required = None
