"""Agent loop controller: drives the model through tool calls until it is done."""

import asyncio
import logging
from typing import Mapping, Optional, Sequence

from webgen.config import Config
from webgen.constants import DEFAULT_MAX_ITERATIONS
from webgen.events import GeneratorEvents
from webgen.llm import ChatClient
from webgen.messages import (
    GenerateResult,
    Message,
    ProjectFiles,
    ToolDefinition,
    text_content,
    tool_message,
    user_message,
)
from webgen.prompts import SystemPromptBuilder
from webgen.tools.definitions import builtin_tools
from webgen.tools.dispatcher import CustomToolHandler, ToolDispatcher
from webgen.tools.templates import TemplateCatalog
from webgen.tools.vfs import VirtualFileSystem

logger = logging.getLogger(__name__)


class WebAppGenerator:
    """Generates and edits a web project through a tool-calling conversation.

    The generator owns the conversation history and the virtual file system.
    Each generate()/retry() call runs at most ``max_iterations`` request →
    tool-execution rounds and returns a fresh GenerateResult.
    """

    def __init__(
        self,
        client: ChatClient,
        *,
        system_prompt: Optional[str] = None,
        initial_files: Optional[Mapping[str, str]] = None,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        stream: bool = True,
        custom_tools: Optional[Sequence[ToolDefinition]] = None,
        custom_tool_handler: Optional[CustomToolHandler] = None,
        templates: Optional[TemplateCatalog] = None,
        events: Optional[GeneratorEvents] = None,
    ):
        """Initialize generator.

        Args:
            client: Chat-completions client
            system_prompt: Instructional text (default: DEFAULT_SYSTEM_PROMPT)
            initial_files: Initial project files (copied)
            max_iterations: Maximum request rounds per run
            stream: Use the streaming endpoint
            custom_tools: Extra tool definitions offered to the model
            custom_tool_handler: Executes tools that are not built in
            templates: Template catalog for init_project
            events: Event callbacks
        """
        if max_iterations <= 0:
            raise ValueError("max_iterations must be positive")

        self.client = client
        self.max_iterations = max_iterations
        self.use_stream = stream
        self.events = events or GeneratorEvents()
        self.prompt_builder = SystemPromptBuilder(system_prompt)

        self._vfs = VirtualFileSystem(initial_files)
        self._messages: list[Message] = []
        self.dispatcher = ToolDispatcher(
            self._vfs,
            templates=templates,
            custom_tool_handler=custom_tool_handler,
            events=self.events,
        )
        self.tools: tuple[ToolDefinition, ...] = tuple(
            builtin_tools(self.dispatcher.templates) + list(custom_tools or [])
        )

        self._request_task: Optional[asyncio.Task] = None
        self._abort_requested = False

    @classmethod
    def from_config(cls, config: Config, **kwargs) -> "WebAppGenerator":
        """Create a generator from configuration.

        Args:
            config: Configuration object
            **kwargs: Passed through to the constructor

        Returns:
            WebAppGenerator
        """
        kwargs.setdefault("max_iterations", config.max_iterations)
        kwargs.setdefault("stream", config.stream)
        return cls(ChatClient.from_config(config), **kwargs)

    # ------------------------------------------------------------------
    # State accessors

    def get_files(self) -> ProjectFiles:
        """Get a snapshot of the current project files."""
        return self._vfs.snapshot()

    def set_files(self, files: Mapping[str, str]) -> None:
        """Replace the project files; used for edits made outside the loop."""
        self._vfs.replace(files)

    def get_messages(self) -> list[Message]:
        """Get a copy of the conversation history."""
        return [m.model_copy(deep=True) for m in self._messages]

    def reset_messages(self) -> None:
        """Clear the conversation history (files are kept)."""
        self._messages = []

    # ------------------------------------------------------------------
    # Runs

    async def generate(self, prompt: str, images: Optional[list[str]] = None) -> GenerateResult:
        """Send a user instruction and run the tool-calling loop.

        Args:
            prompt: User instruction
            images: Optional image URLs attached to the instruction

        Returns:
            GenerateResult for this run

        Raises:
            ChatClientError: Transport failure; the user turn stays in history
        """
        self._messages.append(user_message(prompt, images))
        return await self._run_loop()

    async def retry(self) -> GenerateResult:
        """Re-run the loop on the existing history without a new user turn."""
        return await self._run_loop()

    def abort(self) -> None:
        """Cancel the in-flight request; the running loop ends with aborted=True."""
        self._abort_requested = True
        if self._request_task is not None and not self._request_task.done():
            self._request_task.cancel()

    async def _run_loop(self) -> GenerateResult:
        self._abort_requested = False
        full_text = ""
        aborted = False
        max_reached = False

        try:
            for iteration in range(self.max_iterations):
                if self._abort_requested:
                    aborted = True
                    break

                request_messages = [
                    Message(role="system", content=self.prompt_builder.build(self._vfs.paths())),
                    *self._messages,
                ]
                assistant = await self._request(request_messages)

                self._messages.append(assistant)
                full_text += text_content(assistant.content)

                if not assistant.tool_calls:
                    if assistant.content is None:
                        logger.warning("Model finished without content or tool calls")
                    break

                for tool_call in assistant.tool_calls:
                    outcome = await self.dispatcher.execute(tool_call)
                    self._messages.append(tool_message(tool_call.id, outcome.result))
                    if outcome.changes:
                        self.events.emit("on_file_change", self.get_files(), outcome.changes)

                if iteration == self.max_iterations - 1:
                    max_reached = True
                    logger.warning("Stopped after %d iterations with tool calls pending", self.max_iterations)

        except asyncio.CancelledError:
            if not self._abort_requested:
                raise
            aborted = True
        except Exception as e:
            logger.error("Generation failed: %s", e)
            self.events.emit("on_error", e)
            raise

        if aborted:
            logger.info("Generation aborted")

        result = GenerateResult(
            files=self.get_files(),
            messages=self.get_messages(),
            text=full_text,
            aborted=aborted,
            max_iterations_reached=max_reached,
        )
        self.events.emit("on_complete", result)
        return result

    async def _request(self, messages: list[Message]) -> Message:
        if self.use_stream:
            call = self.client.stream(messages, self.tools, self.events)
        else:
            call = self.client.complete(messages, self.tools, self.events)

        self._request_task = asyncio.ensure_future(call)
        try:
            return await self._request_task
        finally:
            self._request_task = None
