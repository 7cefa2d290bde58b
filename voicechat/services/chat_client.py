"""Client for the chat proxy endpoint."""

import asyncio
import json
import logging

import aiohttp

from ..errors import MalformedResponse, NetworkError, ServerError

logger = logging.getLogger(__name__)

NO_CONTENT_REPLY = "(no content)"


class ChatEndpointClient:
    """Sends one message to the proxy and returns its reply."""

    def __init__(self, endpoint_url: str, timeout_seconds: float = 60.0):
        """Initialize chat endpoint client.

        Args:
            endpoint_url: URL of the proxy's chat route
            timeout_seconds: Total time allowed for one exchange
        """
        self.endpoint_url = endpoint_url
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)

        logger.info(f"ChatEndpointClient initialized for {endpoint_url}")

    async def send(self, text: str) -> str:
        """Send a message and return the reply text.

        A single attempt; retries are up to the caller.

        Args:
            text: User message

        Returns:
            Reply text, or "(no content)" when the reply is empty

        Raises:
            NetworkError: The endpoint could not be reached
            MalformedResponse: The body is not a JSON object
            ServerError: Non-2xx status or an ``error`` field in the body
        """
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.post(self.endpoint_url, json={"message": text}) as response:
                    status = response.status
                    body = await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NetworkError(f"Could not reach {self.endpoint_url}: {e}") from e

        try:
            data = json.loads(body.decode("utf-8"))
        except ValueError as e:
            raise MalformedResponse(f"Bad JSON from server (HTTP {status})") from e
        if not isinstance(data, dict):
            raise MalformedResponse(f"Bad JSON from server (HTTP {status})")

        error = data.get("error")
        if error or not 200 <= status < 300:
            raise ServerError(str(error) if error else f"HTTP {status}", status)

        reply = data.get("reply")
        return str(reply) if reply else NO_CONTENT_REPLY
