"""Pytest configuration and fixtures."""

import json
import tempfile
from pathlib import Path

import httpx
import pytest

from webgen.config import Config
from webgen.llm import ChatClient
from webgen.tools.vfs import VirtualFileSystem

API_URL = "https://llm.test/v1/chat/completions"


def sse_body(*deltas, done: bool = True) -> bytes:
    """Encode choices[0].delta objects as an event-stream body."""
    lines = [f"data: {json.dumps({'choices': [{'delta': d}]})}\n\n" for d in deltas]
    if done:
        lines.append("data: [DONE]\n\n")
    return "".join(lines).encode("utf-8")


def tool_delta(index: int, call_id: str = None, name: str = None, arguments: str = None) -> dict:
    """Build a streamed tool-call fragment."""
    fragment: dict = {"index": index}
    if call_id:
        fragment["id"] = call_id
    function = {}
    if name:
        function["name"] = name
    if arguments is not None:
        function["arguments"] = arguments
    if function:
        fragment["function"] = function
    return {"tool_calls": [fragment]}


def tool_call_stream(*calls: tuple[str, str, dict], text: str = None) -> bytes:
    """Stream one assistant turn issuing the given (id, name, args) tool calls."""
    deltas = [{"content": text}] if text else []
    for index, (call_id, name, args) in enumerate(calls):
        encoded = json.dumps(args)
        half = len(encoded) // 2
        deltas.append(tool_delta(index, call_id, name, encoded[:half]))
        deltas.append(tool_delta(index, arguments=encoded[half:]))
    return sse_body(*deltas)


class ScriptedEndpoint:
    """Mock chat endpoint answering requests from a queue of responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests: list[dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(json.loads(request.content))
        response = self.responses.pop(0)
        if isinstance(response, bytes):
            return httpx.Response(200, content=response, headers={"Content-Type": "text/event-stream"})
        if isinstance(response, dict):
            return httpx.Response(200, json=response)
        return response

    def client(self, **kwargs) -> ChatClient:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(self))
        return ChatClient(API_URL, "test_key", "test-model", http_client=http_client, **kwargs)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def vfs():
    """Create a small project file system."""
    return VirtualFileSystem({
        "index.html": "<!DOCTYPE html>\n<html>\n<body><div id=\"app\"></div></body>\n</html>\n",
        "src/main.js": "const count = 0;\nconsole.log(count);\n",
        "src/styles.css": "body { margin: 0; }\n",
    })


@pytest.fixture
def mock_config(temp_dir):
    """Create a mock configuration."""
    return Config(
        api_url=API_URL,
        api_key="test_key",
        model="test-model",
        log_dir=temp_dir / "runs",
    )
