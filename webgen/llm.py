"""Client for OpenAI-compatible chat-completions endpoints."""

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional, Sequence

import httpx

from webgen.config import Config
from webgen.constants import DEFAULT_THINKING_BUDGET, DEFAULT_TIMEOUT
from webgen.errors import ChatAPIError, ChatTransportError
from webgen.events import GeneratorEvents
from webgen.messages import Message, ToolDefinition
from webgen.stream import decode_json, decode_stream

logger = logging.getLogger(__name__)


def parse_api_error(text: str) -> str:
    """Extract a human-readable message from an error response body.

    Looks at error.message, message, detail and msg in that order and falls
    back to the raw body text.

    Args:
        text: Raw response body

    Returns:
        Error message
    """
    try:
        data = json.loads(text)
    except ValueError:
        return text

    if not isinstance(data, dict):
        return text

    error = data.get("error")
    candidates = [
        error.get("message") if isinstance(error, dict) else None,
        data.get("message"),
        data.get("detail"),
        data.get("msg"),
    ]
    for candidate in candidates:
        if candidate:
            return candidate if isinstance(candidate, str) else json.dumps(candidate)

    return text


class ChatClient:
    """OpenAI-compatible chat-completions interface."""

    def __init__(
        self,
        api_url: str,
        api_key: str,
        model: str,
        *,
        headers: Optional[dict[str, str]] = None,
        thinking: bool = True,
        thinking_budget: int = DEFAULT_THINKING_BUDGET,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize chat client.

        Args:
            api_url: Full chat-completions URL
            api_key: Bearer token
            model: Model ID
            headers: Extra request headers
            thinking: Whether to request extended thinking
            thinking_budget: Thinking budget in tokens
            timeout: Request timeout in seconds
            http_client: Shared httpx client (a fresh one per request if omitted)
        """
        self.api_url = api_url
        self.api_key = api_key
        self.model = model
        self.extra_headers = headers or {}
        self.thinking = thinking
        self.thinking_budget = thinking_budget
        self.timeout = timeout
        self._http_client = http_client

    @classmethod
    def from_config(cls, config: Config, http_client: Optional[httpx.AsyncClient] = None) -> "ChatClient":
        """Create a client from configuration."""
        return cls(
            config.api_url,
            config.api_key or "",
            config.model,
            thinking=config.thinking,
            thinking_budget=config.thinking_budget,
            timeout=config.timeout,
            http_client=http_client,
        )

    def build_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
            **self.extra_headers,
        }

    def build_payload(
        self,
        messages: Sequence[Message],
        tools: Optional[Sequence[ToolDefinition]],
        stream: bool,
    ) -> dict[str, Any]:
        """Build the JSON request body.

        Args:
            messages: Full request messages (system message first)
            tools: Tool definitions (omitted when empty)
            stream: Whether to request an event stream

        Returns:
            Request body dict
        """
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [m.to_api() for m in messages],
            "stream": stream,
        }

        if tools:
            payload["tools"] = [t.model_dump() for t in tools]

        if self.thinking:
            payload["thinking"] = {"type": "enabled", "budget_tokens": self.thinking_budget}

        return payload

    async def complete(
        self,
        messages: Sequence[Message],
        tools: Optional[Sequence[ToolDefinition]] = None,
        events: Optional[GeneratorEvents] = None,
    ) -> Message:
        """Request a single non-streaming completion.

        Args:
            messages: Request messages
            tools: Tool definitions
            events: Callbacks (fired once each)

        Returns:
            Assistant Message

        Raises:
            ChatAPIError: Non-2xx response
            ChatTransportError: Network failure or malformed body
            EmptyResponseError: Body without choices[0].message
        """
        payload = self.build_payload(messages, tools, stream=False)
        logger.debug("POST %s model=%s stream=False messages=%d", self.api_url, self.model, len(messages))

        try:
            async with self._client() as client:
                response = await client.post(self.api_url, headers=self.build_headers(), json=payload)
        except httpx.HTTPError as e:
            raise ChatTransportError(f"Request failed: {e}", e) from e

        if not response.is_success:
            raise ChatAPIError(response.status_code, parse_api_error(response.text))

        try:
            body = response.json()
        except ValueError as e:
            raise ChatTransportError("Malformed response body (not JSON)", e) from e

        return decode_json(body, events)

    async def stream(
        self,
        messages: Sequence[Message],
        tools: Optional[Sequence[ToolDefinition]] = None,
        events: Optional[GeneratorEvents] = None,
    ) -> Message:
        """Request a streaming completion and assemble the final message.

        Args:
            messages: Request messages
            tools: Tool definitions
            events: Callbacks for incremental deltas

        Returns:
            Assistant Message

        Raises:
            ChatAPIError: Non-2xx response
            ChatTransportError: Network failure
        """
        payload = self.build_payload(messages, tools, stream=True)
        logger.debug("POST %s model=%s stream=True messages=%d", self.api_url, self.model, len(messages))

        try:
            async with self._client() as client:
                async with client.stream(
                    "POST", self.api_url, headers=self.build_headers(), json=payload
                ) as response:
                    if not response.is_success:
                        await response.aread()
                        raise ChatAPIError(response.status_code, parse_api_error(response.text))

                    return await decode_stream(response.aiter_bytes(), events)
        except httpx.HTTPError as e:
            raise ChatTransportError(f"Request failed: {e}", e) from e

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                yield client
