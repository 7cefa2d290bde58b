"""OpenAI Responses API engine for turning a user message into a reply."""

import asyncio
import json
import logging
from typing import Any, Dict, Protocol

import aiohttp

from ..errors import UpstreamError

logger = logging.getLogger(__name__)


class CompletionEngine(Protocol):
    """Protocol for engines that answer a prompt with text."""

    async def send_prompt(self, prompt: str, **kwargs) -> str:
        """Send a prompt to the engine and get response."""
        ...


def extract_reply_text(data: Dict[str, Any]) -> str:
    """Collect the assistant text from a Responses API body.

    Args:
        data: Parsed JSON body

    Returns:
        Concatenated output text, empty if none was found
    """
    reply = ""
    output = data.get("output")
    if isinstance(output, list):
        for item in output:
            if not isinstance(item, dict) or item.get("type") != "message":
                continue
            content = item.get("content")
            if not isinstance(content, list):
                continue
            for part in content:
                if isinstance(part, dict) and part.get("type") == "output_text" and part.get("text"):
                    reply += str(part["text"])

    if not reply:
        response = data.get("response")
        if isinstance(response, dict) and response.get("output_text"):
            reply = str(response["output_text"])
    return reply


class ResponsesCompletionEngine:
    """Sends a single user message to the OpenAI Responses API."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        system_prompt: str = "You are a helpful web chat assistant.",
        max_output_tokens: int = 500,
        timeout_seconds: float = 30.0,
        url: str = "https://api.openai.com/v1/responses",
    ):
        """Initialize completion engine.

        Args:
            api_key: OpenAI API key
            model: Model to answer with
            system_prompt: Instructions sent ahead of every message
            max_output_tokens: Cap on reply length
            timeout_seconds: Total time allowed for the upstream call
            url: Responses API endpoint
        """
        self.api_key = api_key
        self.model = model
        self.system_prompt = system_prompt
        self.max_output_tokens = max_output_tokens
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self.url = url

        logger.info(f"ResponsesCompletionEngine initialized with model: {model}")

    async def send_prompt(self, prompt: str, **kwargs) -> str:
        """Send a user message and get the reply text.

        Args:
            prompt: User message

        Returns:
            Reply text (may be empty)

        Raises:
            UpstreamError: Transport failure, non-2xx status or unparseable body
        """
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }

        data = {
            "model": self.model,
            "input": [
                {
                    "role": "system",
                    "content": self.system_prompt
                },
                {
                    "role": "user",
                    "content": prompt
                }
            ],
            "max_output_tokens": kwargs.get("max_output_tokens", self.max_output_tokens),
        }

        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.post(self.url, headers=headers, json=data) as response:
                    status = response.status
                    body = await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise UpstreamError(f"Transport error: {e}") from e

        if not 200 <= status < 300:
            raise UpstreamError(f"OpenAI API HTTP {status}: {body[:500].decode('utf-8', errors='replace')}")

        try:
            result = json.loads(body.decode("utf-8"))
        except ValueError as e:
            raise UpstreamError(f"Unparseable OpenAI response (HTTP {status})") from e
        if not isinstance(result, dict):
            raise UpstreamError(f"Unexpected OpenAI response shape (HTTP {status})")

        return extract_reply_text(result).strip()
