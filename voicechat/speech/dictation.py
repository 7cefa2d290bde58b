"""Continuous dictation session with auto-restart on silence.

Engine callbacks are turned into events and fed through :func:`transition`,
a pure function of ``(state, event)`` that returns the next state and a list
of effects. :class:`DictationSession` owns the engine, the restart timer and
the input-field elements, and carries the effects out.
"""

import logging
from dataclasses import replace
from typing import List, Optional, Sequence, Tuple

from ..capabilities import Capabilities, RecognitionEngine
from ..errors import (
    InsecureContext,
    PermissionDenied,
    RecognitionTransientError,
    UnsupportedPlatform,
    classify_recognition_error,
)
from ..models.dictation import (
    BeginRecordingUI,
    CancelRestart,
    CleanupUI,
    DictationState,
    EngineEnded,
    EngineFailed,
    EngineStarted,
    MirrorText,
    RecognitionSegment,
    RestartDue,
    RestartEngine,
    ResultReceived,
    ScheduleRestart,
    SessionRequested,
    ShowStatus,
    StartFailed,
    StopEngine,
    StopRequested,
    collapse_whitespace,
    compose_transcript,
)
from ..scheduling import Cancellable, Scheduler
from ..ui.elements import DEFAULT_PLACEHOLDER, RECORDING_INDICATOR, Control, Form, InputField

logger = logging.getLogger(__name__)

DEFAULT_RESTART_DELAY = 0.15

LISTENING_STATUS = "Listening… speak normally."
STOPPED_STATUS = "Stopped listening. Press Enter to send."
REQUESTING_STATUS = "Requesting microphone…"
INSECURE_STATUS = "Open via http://localhost, speech won't work on file://"
UNSUPPORTED_STATUS = "Speech recognition not supported in this browser."
PERMISSION_STATUS = "Microphone permission blocked. Allow it in site permissions."


def _stop_effects(state: DictationState) -> Tuple[DictationState, list]:
    effects = [CancelRestart(), StopEngine()]
    if state.ui_active:
        effects += [CleanupUI(), ShowStatus(STOPPED_STATUS)]
    return DictationState(finalized_text=state.finalized_text), effects


def _restart_effects(state: DictationState, restart_delay: float) -> Tuple[DictationState, list]:
    if not state.is_listening or state.restart_scheduled:
        return state, []
    return replace(state, restart_scheduled=True), [ScheduleRestart(restart_delay)]


def transition(state: DictationState, event, restart_delay: float = DEFAULT_RESTART_DELAY) -> Tuple[DictationState, list]:
    """Compute the next dictation state and the effects to perform.

    Args:
        state: Current session state
        event: One of the dictation event models
        restart_delay: Seconds to wait before restarting the engine

    Returns:
        Tuple of (next state, list of effects)
    """
    if isinstance(event, SessionRequested):
        return DictationState(is_listening=True, ui_active=True), [
            BeginRecordingUI(),
            ShowStatus(LISTENING_STATUS),
        ]

    if isinstance(event, EngineStarted):
        return state, []

    if isinstance(event, ResultReceived):
        if not state.is_listening:
            return state, []
        finalized = state.finalized_text
        interim = ""
        for segment in event.segments[event.result_index:]:
            if segment.is_final:
                finalized = collapse_whitespace(finalized + " " + segment.transcript)
            else:
                interim += segment.transcript
        next_state = replace(state, finalized_text=finalized, pending_interim_text=interim)
        return next_state, [MirrorText(compose_transcript(finalized, interim))]

    if isinstance(event, (EngineEnded, StartFailed)):
        if state.is_listening:
            return _restart_effects(state, restart_delay)
        if state.ui_active:
            return replace(state, ui_active=False), [CleanupUI(), ShowStatus(STOPPED_STATUS)]
        return state, []

    if isinstance(event, EngineFailed):
        if not state.is_listening:
            return state, []
        error = classify_recognition_error(event.code)
        if isinstance(error, RecognitionTransientError):
            return _restart_effects(state, restart_delay)
        next_state, effects = _stop_effects(state)
        return next_state, [ShowStatus(str(error), "error")] + effects

    if isinstance(event, StopRequested):
        return _stop_effects(state)

    if isinstance(event, RestartDue):
        # A timer that outlived its session must not bring it back
        if state.is_listening and state.restart_scheduled:
            return replace(state, restart_scheduled=False), [RestartEngine()]
        return state, []

    raise TypeError(f"Unknown dictation event: {event!r}")


class DictationSession:
    """Owns one recognition engine and mirrors its transcript into the input field."""

    def __init__(
        self,
        capabilities: Capabilities,
        scheduler: Scheduler,
        input_field: InputField,
        mic_control: Control,
        form: Form,
        status=None,
        language: Optional[str] = "en-US",
        restart_delay: float = DEFAULT_RESTART_DELAY,
        indicator: str = RECORDING_INDICATOR,
        default_placeholder: str = DEFAULT_PLACEHOLDER,
    ):
        """Initialize dictation session.

        Args:
            capabilities: Platform engines and origin information
            scheduler: Runs the auto-restart timer
            input_field: Field that mirrors the transcript
            mic_control: Mic button, highlighted while recording
            form: Chat form, native validation is suspended while recording
            status: StatusPublisher (or anything with ``publish_status``)
            language: Recognition locale; None keeps the platform default
            restart_delay: Seconds between an engine end and its restart
            indicator: Placeholder shown while recording
            default_placeholder: Placeholder restored when none was captured
        """
        self.capabilities = capabilities
        self.scheduler = scheduler
        self.input_field = input_field
        self.mic_control = mic_control
        self.form = form
        self.status = status
        self.language = language
        self.restart_delay = restart_delay
        self.indicator = indicator
        self.default_placeholder = default_placeholder

        self.state = DictationState()
        self.engine: Optional[RecognitionEngine] = None
        self._restart_handle: Optional[Cancellable] = None

    @property
    def is_listening(self) -> bool:
        return self.state.is_listening

    async def toggle(self) -> None:
        """Start dictation, or stop it if already listening.

        Raises:
            InsecureContext: Page is not on a secure or local origin
            UnsupportedPlatform: No recognition engine exists
            PermissionDenied: Microphone access was refused
        """
        if self.is_listening:
            self.hard_stop()
            return

        self._publish(REQUESTING_STATUS)
        caps = self.capabilities
        if not caps.secure_context:
            self._refuse(INSECURE_STATUS)
            raise InsecureContext(INSECURE_STATUS)
        if not caps.supports_recognition:
            self._refuse(UNSUPPORTED_STATUS)
            raise UnsupportedPlatform(UNSUPPORTED_STATUS)
        if caps.microphone is not None:
            granted = await caps.microphone.request_permission()
            if not granted:
                self._refuse(PERMISSION_STATUS)
                raise PermissionDenied(PERMISSION_STATUS)

        self.start()

    def start(self) -> None:
        """Begin a fresh session on a new engine instance."""
        if not self.capabilities.supports_recognition:
            self._publish(UNSUPPORTED_STATUS, "error")
            raise UnsupportedPlatform(UNSUPPORTED_STATUS)

        self._cancel_restart()
        self._detach_engine()

        engine = self.capabilities.recognition_factory()
        engine.lang = self.language
        engine.continuous = True
        engine.interim_results = True
        engine.max_alternatives = 1
        engine.on_start = self._on_engine_start
        engine.on_result = self._on_engine_result
        engine.on_error = self._on_engine_error
        engine.on_end = self._on_engine_end
        self.engine = engine

        logger.info(f"Starting dictation (language={self.language})")
        self._dispatch(SessionRequested())
        self._start_engine()

    def hard_stop(self) -> None:
        """Stop listening, cancel any pending restart and clean up the UI."""
        logger.info("Stopping dictation")
        self._dispatch(StopRequested())

    def clear_recording_ui(self) -> None:
        """Remove any leftover recording indicator regardless of session state."""
        self.mic_control.recording = False
        self.input_field.unmark_recording(self.indicator, self.default_placeholder)

    # Engine callbacks

    def _on_engine_start(self) -> None:
        self._dispatch(EngineStarted())

    def _on_engine_result(self, segments: Sequence[RecognitionSegment], result_index: int = 0) -> None:
        self._dispatch(ResultReceived(tuple(segments), result_index))

    def _on_engine_error(self, code: str) -> None:
        logger.warning(f"Speech error: {code}")
        self._dispatch(EngineFailed(code))

    def _on_engine_end(self) -> None:
        self._dispatch(EngineEnded())

    def _on_restart_due(self) -> None:
        self._restart_handle = None
        self._dispatch(RestartDue())

    # Effect execution

    def _dispatch(self, event) -> None:
        self.state, effects = transition(self.state, event, self.restart_delay)
        self._apply(effects)

    def _apply(self, effects: List) -> None:
        for effect in effects:
            if isinstance(effect, BeginRecordingUI):
                self._begin_recording_ui()
            elif isinstance(effect, MirrorText):
                self.input_field.value = effect.text
            elif isinstance(effect, ScheduleRestart):
                self._cancel_restart()
                self._restart_handle = self.scheduler.call_later(effect.delay, self._on_restart_due)
            elif isinstance(effect, CancelRestart):
                self._cancel_restart()
            elif isinstance(effect, RestartEngine):
                self._start_engine()
            elif isinstance(effect, StopEngine):
                self._stop_engine()
            elif isinstance(effect, CleanupUI):
                self._cleanup_recording_ui()
            elif isinstance(effect, ShowStatus):
                self._publish(effect.message, effect.level)

    def _start_engine(self) -> None:
        try:
            self.engine.start()
        except Exception as e:
            logger.warning(f"Recognition start failed, retrying: {e}")
            self._dispatch(StartFailed())

    def _stop_engine(self) -> None:
        if self.engine is None:
            return
        try:
            self.engine.stop()
        except Exception as e:
            logger.debug(f"Ignoring stop error from recognition engine: {e}")

    def _detach_engine(self) -> None:
        old = self.engine
        if old is None:
            return
        old.on_start = None
        old.on_result = None
        old.on_error = None
        old.on_end = None
        try:
            old.stop()
        except Exception as e:
            logger.debug(f"Ignoring stop error from previous engine: {e}")
        self.engine = None

    def _cancel_restart(self) -> None:
        if self._restart_handle is not None:
            self._restart_handle.cancel()
            self._restart_handle = None

    def _begin_recording_ui(self) -> None:
        self.mic_control.recording = True
        self.input_field.mark_recording(self.indicator, self.default_placeholder)
        self.input_field.focus()
        self.form.novalidate = True
        self.input_field.suspend_required()

    def _cleanup_recording_ui(self) -> None:
        self.clear_recording_ui()
        self.input_field.focus()
        self.form.novalidate = False
        self.input_field.restore_required()

    def _refuse(self, message: str) -> None:
        self._publish(message, "error")
        self.clear_recording_ui()

    def _publish(self, message: str, level: str = "info") -> None:
        if self.status is not None:
            self.status.publish_status(message, level)
