"""Conversation controller: one turn at a time from submit to reply."""

import logging
from typing import Optional

from ..errors import TurnError
from ..models.ui import UIControlSnapshot
from ..speech.dictation import DictationSession
from ..speech.output import SpeechOutput
from ..ui.elements import Control, InputField
from ..ui.message_log import MessageLog
from .chat_client import ChatEndpointClient

logger = logging.getLogger(__name__)

APOLOGY_REPLY = "Sorry, there was a problem reaching the server."
BUSY_STATUS = "Still waiting for the previous reply…"


class ConversationController:
    """Serializes turns and coordinates log, network, speech and controls."""

    def __init__(
        self,
        message_log: MessageLog,
        client: ChatEndpointClient,
        speech_output: SpeechOutput,
        input_field: InputField,
        send_control: Control,
        mic_control: Control,
        dictation: Optional[DictationSession] = None,
        status=None,
    ):
        """Initialize conversation controller.

        Args:
            message_log: Transcript to append to
            client: Proxy endpoint client
            speech_output: Announces replies
            input_field: Message field, cleared on submit
            send_control: Send button, disabled during a turn
            mic_control: Mic button, disabled during a turn
            dictation: Active dictation session, stopped on submit
            status: StatusPublisher (or anything with ``publish_status``)
        """
        self.message_log = message_log
        self.client = client
        self.speech_output = speech_output
        self.input_field = input_field
        self.send_control = send_control
        self.mic_control = mic_control
        self.dictation = dictation
        self.status = status

        self.request_locked = False

    async def submit(self, text: str) -> bool:
        """Run one conversational turn.

        Args:
            text: Message to send; blank text is ignored

        Returns:
            True if a turn ran, False if it was ignored or rejected as busy
        """
        text = (text or "").strip()
        if not text:
            return False
        if self.request_locked:
            logger.info("Submission dropped: a turn is already in flight")
            self._publish(BUSY_STATUS)
            return False

        self.request_locked = True
        snapshot = None
        try:
            if self.dictation is not None:
                if self.dictation.is_listening:
                    self.dictation.hard_stop()
                self.dictation.clear_recording_ui()

            self.input_field.value = ""
            self.message_log.append_user(text)
            typing = self.message_log.begin_typing()

            snapshot = UIControlSnapshot.capture(self.send_control, self.mic_control)
            self.send_control.disabled = True
            self.mic_control.disabled = True

            try:
                reply = await self.client.send(text)
            except TurnError as e:
                logger.error(f"Turn failed: {type(e).__name__}: {e}")
                typing.replace_with(APOLOGY_REPLY)
                self._publish(str(e), "error")
            except Exception:
                typing.replace_with(APOLOGY_REPLY)
                raise
            else:
                typing.replace_with(reply)
                self.speech_output.speak(reply)
            return True
        finally:
            if self.dictation is not None and not self.dictation.is_listening:
                self.dictation.clear_recording_ui()
            if snapshot is not None:
                snapshot.restore(self.send_control, self.mic_control)
            self.request_locked = False

    def _publish(self, message: str, level: str = "info") -> None:
        if self.status is not None:
            self.status.publish_status(message, level)
