"""Transient status banner fed through a pub/sub topic."""

import itertools
import logging
from typing import Optional

from pubsub import pub

from ..scheduling import Cancellable, Scheduler

logger = logging.getLogger(__name__)

_topic_ids = itertools.count(1)


def _status_listener_proto(message: str, level: str) -> None:
    """Message data specification for status topics."""


class StatusPublisher:
    """Publishes status messages using pubsub.pub."""

    def __init__(self, topic: Optional[str] = None):
        """Initialize status publisher.

        Args:
            topic: Pub/sub topic name. Each widget gets its own topic when omitted.
        """
        self.topic = topic or f"widget_status_{next(_topic_ids)}"
        pub.getDefaultTopicMgr().getOrCreateTopic(self.topic, _status_listener_proto)
        self._closed = False
        logger.debug(f"StatusPublisher initialized with topic: {self.topic}")

    def publish_status(self, message: str, level: str = "info") -> None:
        """Publish a status message.

        Args:
            message: Text for the banner
            level: "info" or "error"
        """
        if level == "error":
            logger.warning(f"Status: {message}")
        else:
            logger.info(f"Status: {message}")
        if self._closed:
            return
        pub.sendMessage(self.topic, message=message, level=level)

    def close(self) -> None:
        """Remove this publisher's topic from the process-wide topic manager."""
        self._closed = True
        if pub.getDefaultTopicMgr().delTopic(self.topic):
            logger.debug(f"Deleted status topic {self.topic}")


class StatusNotifier:
    """Single-slot banner; each status hides itself after a fixed duration."""

    def __init__(self, topic: str, scheduler: Scheduler, display_seconds: float = 3.0):
        self.topic = topic
        self.scheduler = scheduler
        self.display_seconds = display_seconds

        self.message = ""
        self.level = "info"
        self.visible = False
        self._hide_handle: Optional[Cancellable] = None

        pub.subscribe(self._on_status, topic)
        self._subscribed = True
        logger.debug(f"StatusNotifier subscribed to {topic}")

    def _on_status(self, message: str, level: str) -> None:
        self.show(message, level)

    def show(self, message: str, level: str = "info") -> None:
        """Show a status, replacing whatever is currently shown."""
        self._cancel_hide()
        self.message = message
        self.level = level
        self.visible = True
        self._hide_handle = self.scheduler.call_later(self.display_seconds, self._hide)

    def _hide(self) -> None:
        self._hide_handle = None
        self.visible = False

    def _cancel_hide(self) -> None:
        if self._hide_handle is not None:
            self._hide_handle.cancel()
            self._hide_handle = None

    def shutdown(self) -> None:
        """Stop listening and drop any pending hide timer."""
        self._cancel_hide()
        if not self._subscribed:
            return
        self._subscribed = False
        try:
            pub.unsubscribe(self._on_status, self.topic)
        except Exception as e:
            logger.warning(f"Error during unsubscribe: {e}")
