"""UI-related data models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class UIControlSnapshot:
    """Enabled/disabled state of the send and mic controls before a turn."""
    send_disabled: bool
    mic_disabled: bool

    @classmethod
    def capture(cls, send_control, mic_control) -> "UIControlSnapshot":
        return cls(send_disabled=send_control.disabled, mic_disabled=mic_control.disabled)

    def restore(self, send_control, mic_control) -> None:
        send_control.disabled = self.send_disabled
        mic_control.disabled = self.mic_disabled
