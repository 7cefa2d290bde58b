"""Integration tests: a widget talking to a real proxy app."""

import asyncio
import io

import pytest
import pytest_asyncio
from unittest.mock import AsyncMock, Mock
from aiohttp import test_utils
from pubsub import pub
from rich.console import Console

from voicechat.capabilities import Capabilities
from voicechat.config import VoiceChatConfig
from voicechat.errors import UpstreamError
from voicechat.models.dictation import RecognitionSegment
from voicechat.models.transcript import Role
from voicechat.proxy.server import UPSTREAM_FAILURE, create_app
from voicechat.services.chat_client import ChatEndpointClient
from voicechat.services.conversation import APOLOGY_REPLY
from voicechat.speech.dictation import INSECURE_STATUS, UNSUPPORTED_STATUS
from voicechat.ui.console_view import ConsoleChatView
from voicechat.widget import STILL_LISTENING_STATUS, ChatWidget


@pytest.fixture
def config(temp_data_dir, monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    config = VoiceChatConfig()
    config.set('upstream.env_file', str(temp_data_dir / ".env"))
    return config


@pytest.fixture
def engine():
    mock = Mock()
    mock.send_prompt = AsyncMock(side_effect=lambda prompt: f"You said: {prompt}")
    return mock


@pytest_asyncio.fixture
async def proxy_url(config, engine):
    app = create_app(config, engine_factory=lambda key: engine)
    async with test_utils.TestServer(app) as server:
        yield str(server.make_url("/chat"))


@pytest.fixture
def make_widget(config, capabilities, scheduler):
    widgets = []

    def factory(url, caps=None, **settings):
        for key, value in settings.items():
            config.set(key, value)
        widget = ChatWidget(config, caps or capabilities, scheduler=scheduler,
                            client=ChatEndpointClient(url, timeout_seconds=5))
        widgets.append(widget)
        return widget

    yield factory
    for widget in widgets:
        widget.shutdown()


def texts(widget):
    return [(e.role, e.text) for e in widget.message_log.entries]


@pytest.mark.integration
class TestWidgetFlow:
    """End-to-end turns through widget, client and proxy."""

    @pytest.mark.asyncio
    async def test_typed_message_round_trip(self, make_widget, proxy_url, synthesizer, engine):
        widget = make_widget(proxy_url)
        widget.input_field.value = "  Hello there "

        assert await widget.handle_submit() is True

        assert texts(widget) == [
            (Role.USER, "Hello there"),
            (Role.ASSISTANT, "You said: Hello there"),
        ]
        engine.send_prompt.assert_awaited_once_with("Hello there")
        assert [u.text for u in synthesizer.spoken] == ["You said: Hello there"]
        assert widget.input_field.value == ""
        assert widget.send_control.disabled is False
        assert widget.mic_control.disabled is False

    @pytest.mark.asyncio
    async def test_blank_submit_does_nothing(self, make_widget, proxy_url, engine):
        widget = make_widget(proxy_url)
        widget.input_field.value = "   "

        assert await widget.handle_submit() is False
        assert widget.message_log.entries == ()
        engine.send_prompt.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_upstream_failure_shows_apology_and_status(self, make_widget, proxy_url, engine, synthesizer):
        engine.send_prompt.side_effect = UpstreamError("boom")
        widget = make_widget(proxy_url)
        widget.input_field.value = "Hi"

        await widget.handle_submit()

        assert texts(widget)[-1] == (Role.ASSISTANT, APOLOGY_REPLY)
        assert synthesizer.spoken == []
        assert widget.notifier.visible is True
        assert widget.notifier.level == "error"
        assert widget.notifier.message == UPSTREAM_FAILURE

    @pytest.mark.asyncio
    async def test_unreachable_proxy(self, make_widget, unused_tcp_port):
        widget = make_widget(f"http://127.0.0.1:{unused_tcp_port}/chat")
        widget.input_field.value = "Hi"

        await widget.handle_submit()

        assert texts(widget)[-1] == (Role.ASSISTANT, APOLOGY_REPLY)
        assert widget.controller.request_locked is False

    @pytest.mark.asyncio
    async def test_preset_question(self, make_widget, proxy_url):
        widget = make_widget(proxy_url)

        assert await widget.handle_preset("What can you do?") is True
        assert texts(widget)[0] == (Role.USER, "What can you do?")
        assert await widget.handle_preset("") is False

    @pytest.mark.asyncio
    async def test_clear_keeps_ordering_increasing(self, make_widget, proxy_url):
        widget = make_widget(proxy_url)
        await widget.handle_preset("one")
        last = widget.message_log.entries[-1].rendered_at

        widget.handle_clear()
        assert widget.message_log.entries == ()
        assert widget.input_field.focused is True

        await widget.handle_preset("two")
        assert widget.message_log.entries[0].rendered_at > last

    @pytest.mark.asyncio
    async def test_submit_while_dictating_is_refused(self, make_widget, proxy_url, recognition_factory, engine):
        widget = make_widget(proxy_url)
        await widget.handle_mic()
        recognition_factory.latest.emit_result([RecognitionSegment("turn on the lights", True)])

        assert await widget.handle_submit() is False
        assert widget.notifier.message == STILL_LISTENING_STATUS
        engine.send_prompt.assert_not_awaited()

        await widget.handle_mic()
        assert widget.dictation.is_listening is False
        assert widget.input_field.value == "turn on the lights"

        assert await widget.handle_submit() is True
        assert texts(widget)[1] == (Role.ASSISTANT, "You said: turn on the lights")

    @pytest.mark.asyncio
    async def test_auto_send_after_stop(self, make_widget, proxy_url, recognition_factory, engine):
        widget = make_widget(proxy_url, **{"dictation.auto_send": True})
        await widget.handle_mic()
        recognition_factory.latest.emit_result([RecognitionSegment("what time is it", True)])

        await widget.handle_mic()

        engine.send_prompt.assert_awaited_once_with("what time is it")
        assert texts(widget)[0] == (Role.USER, "what time is it")

    @pytest.mark.asyncio
    async def test_disabled_controls_ignore_clicks_during_turn(self, make_widget, proxy_url, recognition_factory):
        widget = make_widget(proxy_url)
        release = asyncio.Event()

        async def slow_send(text):
            await release.wait()
            return "done"

        widget.controller.client = Mock()
        widget.controller.client.send = AsyncMock(side_effect=slow_send)

        turn = asyncio.ensure_future(widget.handle_preset("first"))
        await asyncio.sleep(0)
        assert widget.mic_control.disabled is True
        assert widget.send_control.disabled is True

        await widget.handle_mic()
        widget.input_field.value = "second"
        assert await widget.handle_submit() is False
        assert await widget.handle_preset("third") is False

        release.set()
        assert await turn is True

        assert recognition_factory.engines == []
        assert widget.dictation.is_listening is False
        assert widget.input_field.recording is False
        assert widget.form.novalidate is False
        assert widget.controller.client.send.await_count == 1
        assert widget.mic_control.disabled is False

    @pytest.mark.asyncio
    async def test_mic_prewarms_voices(self, make_widget, proxy_url, synthesizer):
        widget = make_widget(proxy_url)

        await widget.handle_mic()
        await widget.handle_mic()

        assert synthesizer.voice_requests == 1

    @pytest.mark.asyncio
    async def test_mic_without_recognition_reports_status(self, make_widget, proxy_url):
        widget = make_widget(proxy_url, caps=Capabilities.unavailable())

        await widget.handle_mic()

        assert widget.dictation.is_listening is False
        assert widget.notifier.message == UNSUPPORTED_STATUS
        assert widget.notifier.level == "error"

    @pytest.mark.asyncio
    async def test_status_hides_after_display_time(self, make_widget, proxy_url, scheduler):
        widget = make_widget(proxy_url)
        widget.status.publish_status("hello")
        assert widget.notifier.visible is True

        scheduler.advance(2.9)
        assert widget.notifier.visible is True
        scheduler.advance(0.2)
        assert widget.notifier.visible is False

    @pytest.mark.asyncio
    async def test_widgets_have_separate_banners(self, make_widget, proxy_url):
        first = make_widget(proxy_url)
        second = make_widget(proxy_url)

        first.status.publish_status("only mine")

        assert first.notifier.visible is True
        assert second.notifier.visible is False


@pytest.mark.integration
class TestWidgetLifecycle:
    """Startup checks and top-level error reporting."""

    def test_startup_checks_warn_about_missing_support(self, make_widget):
        widget = make_widget("http://127.0.0.1:1/chat", caps=Capabilities.unavailable(secure_context=False))
        seen = []
        widget.notifier.show = lambda message, level="info": seen.append((message, level))

        widget.startup_checks()

        assert widget.input_field.focused is True
        assert seen == [(INSECURE_STATUS, "error"), (UNSUPPORTED_STATUS, "error")]

    def test_startup_checks_quiet_when_supported(self, make_widget):
        widget = make_widget("http://127.0.0.1:1/chat")
        widget.startup_checks()
        assert widget.notifier.visible is False

    @pytest.mark.asyncio
    async def test_dispatch_reports_handler_errors(self, make_widget):
        widget = make_widget("http://127.0.0.1:1/chat")

        async def broken():
            raise ValueError("kaboom")

        task = widget.dispatch(broken())
        with pytest.raises(ValueError):
            await task
        await asyncio.sleep(0)

        assert widget.notifier.message == "Unexpected error: kaboom"
        assert widget.notifier.level == "error"

    def test_shutdown_stops_dictation(self, make_widget):
        widget = make_widget("http://127.0.0.1:1/chat")
        widget.dictation.start()

        widget.shutdown()

        assert widget.dictation.is_listening is False
        assert widget.mic_control.recording is False

    def test_shutdown_deletes_status_topic(self, make_widget):
        widget = make_widget("http://127.0.0.1:1/chat")
        topic = widget.status.topic

        widget.shutdown()

        assert pub.getDefaultTopicMgr().getTopic(topic, okIfNone=True) is None


@pytest.mark.integration
class TestConsoleChatView:
    """Terminal rendering of a finished conversation."""

    @pytest.mark.asyncio
    async def test_prints_each_entry_once(self, make_widget, proxy_url):
        widget = make_widget(proxy_url)
        output = io.StringIO()
        view = ConsoleChatView(widget.message_log, widget.notifier,
                               console=Console(file=output, width=80, color_system=None))

        await widget.handle_preset("ping")
        view.print_new()
        view.print_new()

        printed = output.getvalue()
        assert printed.count("ping") == 2
        assert printed.count("You said: ping") == 1
        assert "Assistant" in printed

    def test_pending_placeholder_is_not_printed(self, make_widget):
        widget = make_widget("http://127.0.0.1:1/chat")
        output = io.StringIO()
        view = ConsoleChatView(widget.message_log, widget.notifier,
                               console=Console(file=output, width=80, color_system=None))

        widget.message_log.append_user("waiting")
        widget.message_log.begin_typing()
        view.print_new()

        assert "waiting" in output.getvalue()
        assert "Assistant" not in output.getvalue()

    def test_status_printed_when_it_changes(self, make_widget):
        widget = make_widget("http://127.0.0.1:1/chat")
        output = io.StringIO()
        view = ConsoleChatView(widget.message_log, widget.notifier,
                               console=Console(file=output, width=80, color_system=None))

        widget.status.publish_status("Server down", "error")
        view.print_new()
        view.print_new()

        assert output.getvalue().count("Server down") == 1
