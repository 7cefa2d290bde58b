"""Terminal rendering of the chat transcript and status banner."""

import logging
from typing import Optional

from rich.align import Align
from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from ..models.transcript import Role, TranscriptEntry
from .message_log import MessageLog
from .status_notifier import StatusNotifier

logger = logging.getLogger(__name__)


class ConsoleChatView:
    """Draws a MessageLog and the current status with rich."""

    def __init__(self, message_log: MessageLog, notifier: StatusNotifier,
                 console: Optional[Console] = None):
        self.message_log = message_log
        self.notifier = notifier
        self.console = console or Console()
        self._rendered_upto = 0  # Highest rendered_at already printed
        self._last_status = None

    def render_entry(self, entry: TranscriptEntry) -> Panel:
        """Render one bubble."""
        if entry.role is Role.USER:
            return Panel(
                Text(entry.text, style="white"),
                title="You",
                title_align="right",
                border_style="green",
                expand=False,
            )
        style = "dim italic" if entry.pending else "white"
        return Panel(
            Text(entry.text, style=style),
            title="Assistant",
            title_align="left",
            border_style="cyan",
            expand=False,
        )

    def render_status(self) -> Optional[Text]:
        if not self.notifier.visible:
            return None
        style = "bold red" if self.notifier.level == "error" else "yellow"
        return Text(self.notifier.message, style=style)

    def render(self) -> Group:
        """Render the whole transcript plus the visible status."""
        parts = []
        for entry in self.message_log.entries:
            panel = self.render_entry(entry)
            parts.append(Align.right(panel) if entry.role is Role.USER else panel)
        status = self.render_status()
        if status is not None:
            parts.append(status)
        return Group(*parts)

    def print_new(self) -> None:
        """Print finished entries that have not been printed yet, then the status."""
        for entry in self.message_log.entries:
            if entry.pending or entry.rendered_at <= self._rendered_upto:
                continue
            panel = self.render_entry(entry)
            self.console.print(Align.right(panel) if entry.role is Role.USER else panel)
            self._rendered_upto = entry.rendered_at
        status = self.render_status()
        shown = (self.notifier.message, self.notifier.level) if status is not None else None
        if status is not None and shown != self._last_status:
            self.console.print(status)
        self._last_status = shown
