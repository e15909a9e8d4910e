"""Decoding of chat-completions responses into assistant messages.

Streaming responses arrive as an event stream of ``data: {json}`` lines, each
carrying an incremental ``choices[0].delta``. Text and thinking fragments are
surfaced to callbacks as they arrive; tool-call fragments are accumulated by
their per-response index and only assembled once the stream is drained.
"""

import codecs
import json
import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterable, Optional

from webgen.constants import SSE_DATA_PREFIX, SSE_DONE_SENTINEL
from webgen.errors import ChatTransportError, EmptyResponseError
from webgen.events import GeneratorEvents
from webgen.messages import FunctionCall, Message, ToolCall

logger = logging.getLogger(__name__)


class SSELineBuffer:
    """Splits a byte stream into event-stream data payloads.

    Partial lines are held until the next chunk; multi-byte UTF-8 sequences
    may straddle chunk boundaries.
    """

    def __init__(self):
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    def feed(self, chunk: bytes) -> list[str]:
        """Consume a chunk and return the data payloads of completed lines."""
        self._buffer += self._decoder.decode(chunk)
        lines = self._buffer.split("\n")
        self._buffer = lines.pop()
        return [p for p in (self._payload(line) for line in lines) if p is not None]

    def flush(self) -> list[str]:
        """Return the payload of a final unterminated line, if any."""
        self._buffer += self._decoder.decode(b"", final=True)
        line, self._buffer = self._buffer, ""
        payload = self._payload(line)
        return [payload] if payload is not None else []

    @staticmethod
    def _payload(line: str) -> Optional[str]:
        line = line.strip()
        if not line.startswith(SSE_DATA_PREFIX):
            return None
        payload = line[len(SSE_DATA_PREFIX):]
        if payload.startswith(" "):
            payload = payload[1:]
        if payload == SSE_DONE_SENTINEL:
            return None
        return payload


@dataclass
class _ToolCallEntry:
    id: str = ""
    name: str = ""
    arguments: str = ""


@dataclass
class DeltaAccumulator:
    """Accumulates streamed deltas for one response."""

    events: GeneratorEvents = field(default_factory=GeneratorEvents)
    content: str = ""
    thinking: str = ""
    tool_calls: dict[int, _ToolCallEntry] = field(default_factory=dict)

    def add(self, delta: dict[str, Any]) -> None:
        """Apply one choices[0].delta object."""
        text = delta.get("content")
        if text and isinstance(text, str):
            self.content += text
            self.events.emit("on_text", text)

        thought = delta.get("reasoning_content") or delta.get("thinking")
        if thought and isinstance(thought, str):
            self.thinking += thought
            self.events.emit("on_thinking", thought)

        fragments = delta.get("tool_calls") or []
        for fragment in fragments if isinstance(fragments, list) else []:
            if isinstance(fragment, dict):
                self._add_tool_fragment(fragment)

    def _add_tool_fragment(self, fragment: dict[str, Any]) -> None:
        index = fragment.get("index", 0)
        if not isinstance(index, int):
            index = 0
        entry = self.tool_calls.get(index)
        if entry is None:
            entry = self.tool_calls[index] = _ToolCallEntry()

        if isinstance(fragment.get("id"), str) and fragment["id"]:
            entry.id = fragment["id"]

        function = fragment.get("function")
        if not isinstance(function, dict):
            return
        if isinstance(function.get("name"), str) and function["name"] and not entry.name:
            entry.name = function["name"]
            self.events.emit("on_tool_call", entry.name, entry.id)
        if isinstance(function.get("arguments"), str):
            entry.arguments += function["arguments"]

    def build(self) -> Message:
        """Assemble the final assistant message."""
        tool_calls = [
            ToolCall(id=entry.id, function=FunctionCall(name=entry.name, arguments=entry.arguments))
            for _, entry in sorted(self.tool_calls.items())
            if entry.name
        ]
        return Message(
            role="assistant",
            content=self.content or None,
            tool_calls=tool_calls or None,
            thinking=self.thinking or None,
        )


def _parse_frame(payload: str) -> Optional[dict[str, Any]]:
    try:
        frame = json.loads(payload)
    except json.JSONDecodeError:
        logger.debug("Skipping non-JSON frame: %.80s", payload)
        return None

    if not isinstance(frame, dict):
        return None
    choices = frame.get("choices") or []
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None
    delta = choices[0].get("delta")
    return delta if isinstance(delta, dict) else None


async def decode_stream(
    chunks: AsyncIterable[bytes],
    events: Optional[GeneratorEvents] = None,
) -> Message:
    """Decode an event-stream response into one assistant message.

    Args:
        chunks: Raw response body chunks
        events: Callbacks for incremental text/thinking/tool-call feedback

    Returns:
        Assembled assistant Message
    """
    lines = SSELineBuffer()
    accumulator = DeltaAccumulator(events=events or GeneratorEvents())

    async for chunk in chunks:
        for payload in lines.feed(chunk):
            delta = _parse_frame(payload)
            if delta is not None:
                accumulator.add(delta)

    for payload in lines.flush():
        delta = _parse_frame(payload)
        if delta is not None:
            accumulator.add(delta)

    return accumulator.build()


def decode_json(body: dict[str, Any], events: Optional[GeneratorEvents] = None) -> Message:
    """Decode a non-streaming response body into one assistant message.

    Fires the same callbacks as the streaming path, once each.

    Args:
        body: Parsed JSON response
        events: Callbacks

    Returns:
        Assistant Message

    Raises:
        EmptyResponseError: If the body has no choices[0].message
        ChatTransportError: If the message content or a tool call is malformed
    """
    events = events or GeneratorEvents()

    choices = body.get("choices") if isinstance(body, dict) else None
    first = choices[0] if isinstance(choices, list) and choices else None
    choice = first.get("message") if isinstance(first, dict) else None
    if not isinstance(choice, dict):
        raise EmptyResponseError("API returned empty choices")

    content = choice.get("content")
    thinking = choice.get("thinking") or choice.get("reasoning_content")
    if content is not None and not isinstance(content, str):
        raise ChatTransportError("Malformed response: message content is not a string")

    if content:
        events.emit("on_text", content)
    if thinking:
        events.emit("on_thinking", thinking)

    tool_calls = []
    for raw in choice.get("tool_calls") or []:
        function = raw.get("function") if isinstance(raw, dict) else None
        if not isinstance(function, dict):
            raise ChatTransportError(f"Malformed tool call in response: {raw!r:.80}")
        arguments = function.get("arguments", "")
        if not isinstance(arguments, str):
            arguments = json.dumps(arguments)
        call = ToolCall(
            id=raw.get("id") or "",
            function=FunctionCall(name=function.get("name") or "", arguments=arguments),
        )
        events.emit("on_tool_call", call.function.name, call.id)
        tool_calls.append(call)

    return Message(
        role="assistant",
        content=content,
        tool_calls=tool_calls or None,
        thinking=thinking or None,
    )
