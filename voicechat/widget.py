"""Chat widget: wires the components together and handles UI events."""

import asyncio
import logging
from typing import Any, Awaitable, Dict, Optional

from .capabilities import Capabilities
from .config import VoiceChatConfig
from .errors import DictationUnavailable
from .scheduling import AsyncioScheduler, Scheduler
from .services.chat_client import ChatEndpointClient
from .services.conversation import ConversationController
from .speech.dictation import INSECURE_STATUS, UNSUPPORTED_STATUS, DictationSession
from .speech.output import SpeechOutput
from .ui.elements import Control, Form, InputField
from .ui.message_log import MessageLog
from .ui.status_notifier import StatusNotifier, StatusPublisher

logger = logging.getLogger(__name__)

STILL_LISTENING_STATUS = "Still listening… click the mic to stop, then press Enter."


class ChatWidget:
    """One chat widget instance and the handlers its page elements call."""

    def __init__(
        self,
        config: VoiceChatConfig,
        capabilities: Capabilities,
        scheduler: Optional[Scheduler] = None,
        client: Optional[ChatEndpointClient] = None,
    ):
        """Initialize chat widget.

        Args:
            config: Application configuration
            capabilities: What the hosting platform offers
            scheduler: Timer source; defaults to the running asyncio loop
            client: Proxy client; built from ``client.*`` config when omitted
        """
        self.config = config
        self.capabilities = capabilities
        self.scheduler = scheduler or AsyncioScheduler()
        self.auto_send = bool(config.get('dictation.auto_send', False))

        default_placeholder = config.get('dictation.default_placeholder', "Type your message…")
        self.input_field = InputField(placeholder=default_placeholder)
        self.send_control = Control()
        self.mic_control = Control()
        self.form = Form()

        self.status = StatusPublisher()
        self.notifier = StatusNotifier(
            self.status.topic,
            self.scheduler,
            display_seconds=float(config.get('status.display_seconds', 3.0)),
        )
        self.message_log = MessageLog(self.scheduler)
        self.speech_output = SpeechOutput(
            capabilities.synthesizer,
            language=config.get('speech_output.language'),
            rate=config.get('speech_output.rate'),
            pitch=config.get('speech_output.pitch'),
        )
        self.dictation = DictationSession(
            capabilities,
            self.scheduler,
            self.input_field,
            self.mic_control,
            self.form,
            status=self.status,
            language=config.get('dictation.language', "en-US"),
            restart_delay=config.get_restart_delay(),
            indicator=config.get('dictation.indicator', "Recording…"),
            default_placeholder=default_placeholder,
        )
        self.client = client or ChatEndpointClient(
            config.get('client.endpoint_url'),
            timeout_seconds=float(config.get('client.timeout_seconds', 60)),
        )
        self.controller = ConversationController(
            self.message_log,
            self.client,
            self.speech_output,
            self.input_field,
            self.send_control,
            self.mic_control,
            dictation=self.dictation,
            status=self.status,
        )
        self._tasks = set()

        logger.info("ChatWidget initialized")

    # Page event handlers

    async def handle_submit(self) -> bool:
        """Send button or Enter key."""
        if self.send_control.disabled:
            return False
        if self.dictation.is_listening:
            self.status.publish_status(STILL_LISTENING_STATUS)
            return False
        text = self.input_field.value.strip()
        if not text:
            return False
        return await self.controller.submit(text)

    async def handle_preset(self, question: str) -> bool:
        """One of the preset "ask" buttons."""
        if not question or self.send_control.disabled:
            return False
        self.input_field.value = question
        return await self.controller.submit(question)

    def handle_clear(self) -> None:
        """Clear-chat button."""
        self.message_log.clear()
        self.input_field.value = ""
        self.input_field.focus()

    async def handle_mic(self) -> None:
        """Mic button: toggle dictation."""
        if self.mic_control.disabled:
            return
        self.input_field.focus()
        self.speech_output.prewarm()

        was_listening = self.dictation.is_listening
        try:
            await self.dictation.toggle()
        except DictationUnavailable as e:
            logger.warning(f"Dictation unavailable: {e}")
            return

        if was_listening and self.auto_send:
            text = self.input_field.value.strip()
            if text:
                await self.controller.submit(text)

    def startup_checks(self) -> None:
        """Focus the field and warn about missing speech support."""
        self.input_field.focus()
        if not self.capabilities.secure_context:
            self.status.publish_status(INSECURE_STATUS, "error")
        if not self.capabilities.supports_recognition:
            self.status.publish_status(UNSUPPORTED_STATUS, "error")

    # Top-level error reporting

    def report_error(self, error: BaseException) -> None:
        """Surface an otherwise-unhandled error in the status banner."""
        logger.error(f"Unhandled widget error: {error!r}", exc_info=error)
        self.status.publish_status(f"Unexpected error: {error}", "error")

    def dispatch(self, handler: Awaitable[Any]) -> "asyncio.Task":
        """Run an event handler coroutine, reporting anything it raises."""
        task = asyncio.ensure_future(handler)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: "asyncio.Task") -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self.report_error(error)

    def install_error_handler(self, loop: asyncio.AbstractEventLoop) -> None:
        """Route the loop's unhandled exceptions to :meth:`report_error`."""
        def handler(loop: asyncio.AbstractEventLoop, context: Dict[str, Any]) -> None:
            error = context.get("exception")
            if error is None:
                error = RuntimeError(context.get("message", "unknown error"))
            self.report_error(error)
        loop.set_exception_handler(handler)

    def shutdown(self) -> None:
        """Stop dictation and release the status subscription and topic."""
        if self.dictation.is_listening:
            self.dictation.hard_stop()
        self.notifier.shutdown()
        self.status.close()
        logger.info("ChatWidget shut down")
