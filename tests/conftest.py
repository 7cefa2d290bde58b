"""Pytest configuration and fixtures for VoiceChat tests."""

import pytest
import logging
from typing import Callable, List, Optional
from unittest.mock import Mock

from voicechat.capabilities import Capabilities, Utterance
from voicechat.speech.dictation import DictationSession
from voicechat.ui.elements import Control, Form, InputField


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast isolated tests")
    config.addinivalue_line("markers", "integration: tests spanning several components")


class ManualHandle:
    """Handle returned by ManualScheduler.call_later."""

    def __init__(self, due: float, callback: Callable[[], None]):
        self.due = due
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Scheduler whose clock only moves when a test calls advance()."""

    def __init__(self):
        self.now = 0.0
        self.handles: List[ManualHandle] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualHandle:
        handle = ManualHandle(self.now + delay, callback)
        self.handles.append(handle)
        return handle

    @property
    def pending(self) -> List[ManualHandle]:
        return [h for h in self.handles if not h.cancelled and not h.fired]

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing due callbacks in order."""
        target = self.now + seconds
        while True:
            due = sorted((h for h in self.pending if h.due <= target), key=lambda h: h.due)
            if not due:
                break
            handle = due[0]
            self.now = handle.due
            handle.fired = True
            handle.callback()
        self.now = target


class FakeRecognitionEngine:
    """Recognition engine driven by the test instead of a microphone."""

    def __init__(self):
        self.lang: Optional[str] = None
        self.continuous = False
        self.interim_results = False
        self.max_alternatives = 0

        self.on_start = None
        self.on_result = None
        self.on_error = None
        self.on_end = None

        self.running = False
        self.start_calls = 0
        self.stop_calls = 0
        self.fail_next_start = False
        self.fail_on_stop = False

    def start(self) -> None:
        self.start_calls += 1
        if self.fail_next_start:
            self.fail_next_start = False
            raise RuntimeError("recognition has already started")
        self.running = True
        if self.on_start:
            self.on_start()

    def stop(self) -> None:
        self.stop_calls += 1
        if self.fail_on_stop:
            raise RuntimeError("recognition is not running")
        self.running = False

    # Test helpers

    def emit_result(self, segments, result_index: int = 0) -> None:
        if self.on_result:
            self.on_result(segments, result_index)

    def emit_error(self, code: str) -> None:
        if self.on_error:
            self.on_error(code)

    def emit_end(self) -> None:
        self.running = False
        if self.on_end:
            self.on_end()


class FakeRecognitionFactory:
    """Builds FakeRecognitionEngines and remembers each one."""

    def __init__(self):
        self.engines: List[FakeRecognitionEngine] = []

    def __call__(self) -> FakeRecognitionEngine:
        engine = FakeRecognitionEngine()
        self.engines.append(engine)
        return engine

    @property
    def latest(self) -> FakeRecognitionEngine:
        return self.engines[-1]


class FakeSynthesizer:
    """Records what would have been spoken."""

    def __init__(self):
        self.spoken: List[Utterance] = []
        self.cancel_calls = 0
        self.voice_requests = 0

    def speak(self, utterance: Utterance) -> None:
        self.spoken.append(utterance)

    def cancel(self) -> None:
        self.cancel_calls += 1

    def get_voices(self) -> List[str]:
        self.voice_requests += 1
        return ["Default Voice"]


class FakeMicrophone:
    """Permission prompt with a fixed answer."""

    def __init__(self, granted: bool = True):
        self.granted = granted
        self.requests = 0

    async def request_permission(self) -> bool:
        self.requests += 1
        return self.granted


@pytest.fixture
def scheduler():
    """Manual scheduler for timer-driven behaviour."""
    return ManualScheduler()


@pytest.fixture
def recognition_factory():
    return FakeRecognitionFactory()


@pytest.fixture
def synthesizer():
    return FakeSynthesizer()


@pytest.fixture
def microphone():
    return FakeMicrophone()


@pytest.fixture
def capabilities(recognition_factory, synthesizer, microphone):
    """Platform with every speech capability available."""
    return Capabilities(
        recognition_factory=recognition_factory,
        synthesizer=synthesizer,
        microphone=microphone,
        secure_context=True,
    )


@pytest.fixture
def elements():
    """Input field, controls and form of one widget."""
    return {
        "input": InputField(placeholder="Ask me anything"),
        "send": Control(),
        "mic": Control(),
        "form": Form(),
    }


@pytest.fixture
def status():
    """Stand-in for a StatusPublisher."""
    mock = Mock()
    mock.publish_status.return_value = None
    return mock


@pytest.fixture
def dictation(capabilities, scheduler, elements, status):
    """DictationSession wired to fakes."""
    return DictationSession(
        capabilities,
        scheduler,
        elements["input"],
        elements["mic"],
        elements["form"],
        status=status,
        language="en-US",
        restart_delay=0.15,
    )


@pytest.fixture
def temp_data_dir(tmp_path):
    """Temporary directory for config and .env files."""
    return tmp_path
