"""aiohttp proxy that relays widget messages to the completion provider."""

import logging
from typing import Callable, Optional

from aiohttp import web
from pydantic import ValidationError

from ..config import VoiceChatConfig
from ..errors import CredentialMissing, UpstreamError
from .completion import CompletionEngine, ResponsesCompletionEngine
from .credentials import load_api_key
from .schemas import ChatError, ChatReply, ChatRequest

logger = logging.getLogger(__name__)

NO_CONTENT_REPLY = "(no content)"
UPSTREAM_FAILURE = "Upstream completion request failed"

EngineFactory = Callable[[str], CompletionEngine]

CONFIG_KEY = web.AppKey("config", VoiceChatConfig)
ENGINE_FACTORY_KEY = web.AppKey("engine_factory", object)


def _error(message: str, status: int) -> web.Response:
    return web.json_response(ChatError(error=message).model_dump(), status=status)


def default_engine_factory(config: VoiceChatConfig) -> EngineFactory:
    """Build engines from the ``upstream`` configuration section."""
    def factory(api_key: str) -> CompletionEngine:
        return ResponsesCompletionEngine(
            api_key=api_key,
            model=config.get('upstream.model', 'gpt-4o-mini'),
            system_prompt=config.get('upstream.system_prompt', ''),
            max_output_tokens=int(config.get('upstream.max_output_tokens', 500)),
            timeout_seconds=float(config.get('upstream.timeout_seconds', 30)),
            url=config.get('upstream.url'),
        )
    return factory


@web.middleware
async def json_error_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Turn every failure into a JSON ``{"error": ...}`` body."""
    try:
        return await handler(request)
    except web.HTTPException as e:
        if e.status < 400:
            raise
        return _error(e.reason, e.status)
    except Exception:
        logger.exception(f"Unhandled error serving {request.method} {request.path}")
        return _error("Internal server error", 500)


async def handle_chat(request: web.Request) -> web.Response:
    """POST {"message": str} -> {"reply": str} or {"error": str}."""
    if request.method != "POST":
        return _error("Method not allowed", 405)

    try:
        payload = await request.json()
        message = ChatRequest.model_validate(payload).message.strip()
    except (ValueError, ValidationError) as e:
        logger.debug(f"Unreadable chat request body: {e}")
        message = ""
    if not message:
        return _error("Empty message", 400)

    config = request.app[CONFIG_KEY]
    try:
        api_key = load_api_key(
            config.get('upstream.api_key_env', 'OPENAI_API_KEY'),
            config.get_env_file(),
        )
    except CredentialMissing as e:
        logger.error("Completion API key is not configured")
        return _error(str(e), 500)

    engine = request.app[ENGINE_FACTORY_KEY](api_key)
    try:
        reply = await engine.send_prompt(message)
    except UpstreamError as e:
        logger.error(f"Upstream completion failed: {e}")
        return _error(UPSTREAM_FAILURE, 502)

    logger.info(f"Relayed reply ({len(reply)} chars) for message ({len(message)} chars)")
    return web.json_response(ChatReply(reply=reply or NO_CONTENT_REPLY).model_dump())


def create_app(config: VoiceChatConfig, engine_factory: Optional[EngineFactory] = None) -> web.Application:
    """Create the proxy application.

    Args:
        config: Application configuration
        engine_factory: Builds a completion engine from an API key;
                        defaults to the OpenAI Responses engine

    Returns:
        Configured aiohttp application
    """
    app = web.Application(middlewares=[json_error_middleware])
    app[CONFIG_KEY] = config
    app[ENGINE_FACTORY_KEY] = engine_factory or default_engine_factory(config)

    path = config.get('server.path', '/chat')
    app.router.add_route("*", path, handle_chat)
    logger.info(f"Chat proxy route registered at {path}")
    return app
