"""Conversation message models shared by the decoder, dispatcher and agent loop."""

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

ProjectFiles = dict[str, str]


class TextPart(BaseModel):
    """Text block of a multi-part message."""

    type: Literal["text"] = "text"
    text: str


class ImageURL(BaseModel):
    """Image reference (http(s) or data URL)."""

    url: str


class ImagePart(BaseModel):
    """Image block of a multi-part message."""

    type: Literal["image_url"] = "image_url"
    image_url: ImageURL


ContentPart = Annotated[Union[TextPart, ImagePart], Field(discriminator="type")]


class FunctionCall(BaseModel):
    """Function name and raw JSON arguments of a tool call."""

    name: str
    arguments: str = Field(default="", description="Raw JSON string, parsed at dispatch time")


class ToolCall(BaseModel):
    """A model-issued request to invoke one tool."""

    id: str
    type: Literal["function"] = "function"
    function: FunctionCall


class Message(BaseModel):
    """A single chat message in OpenAI chat-completions shape."""

    role: Literal["system", "user", "assistant", "tool"]
    content: Union[str, list[ContentPart], None] = None
    tool_calls: Optional[list[ToolCall]] = None
    tool_call_id: Optional[str] = None
    thinking: Optional[str] = Field(None, description="Extended thinking / reasoning text")

    def to_api(self) -> dict[str, Any]:
        """Serialize to the wire format, keeping content even when it is None."""
        data = self.model_dump(exclude_none=True)
        data.setdefault("content", None)
        return data

    @property
    def text(self) -> str:
        return text_content(self.content)


class FunctionDefinition(BaseModel):
    """Name, description and JSON-schema parameters of a tool."""

    name: str
    description: str
    parameters: dict[str, Any] = Field(default_factory=lambda: {"type": "object", "properties": {}})


class ToolDefinition(BaseModel):
    """Declarative tool definition passed to the model."""

    type: Literal["function"] = "function"
    function: FunctionDefinition

    @property
    def name(self) -> str:
        return self.function.name


class FileChange(BaseModel):
    """A single file-system change produced by a tool call."""

    model_config = ConfigDict(frozen=True)

    path: str
    action: Literal["created", "modified", "deleted"]


class GenerateResult(BaseModel):
    """Terminal snapshot of one generate/retry run."""

    model_config = ConfigDict(frozen=True)

    files: ProjectFiles
    messages: list[Message]
    text: str
    aborted: bool = False
    max_iterations_reached: bool = False


def text_content(content: Union[str, list, None]) -> str:
    """Fold message content into plain text.

    Text parts are concatenated in order; image parts are ignored.

    Args:
        content: String, list of content parts (models or dicts), or None

    Returns:
        Plain text
    """
    if content is None:
        return ""
    if isinstance(content, str):
        return content

    pieces = []
    for part in content:
        if isinstance(part, TextPart):
            pieces.append(part.text)
        elif isinstance(part, dict) and part.get("type") == "text":
            pieces.append(part.get("text", ""))
    return "".join(pieces)


def user_message(prompt: str, images: Optional[list[str]] = None) -> Message:
    """Build a user message, multi-part when images are attached.

    Args:
        prompt: User instruction
        images: Optional image URLs, kept in input order

    Returns:
        User Message
    """
    if not images:
        return Message(role="user", content=prompt)

    parts: list = []
    if prompt:
        parts.append(TextPart(text=prompt))
    for url in images:
        parts.append(ImagePart(image_url=ImageURL(url=url)))
    return Message(role="user", content=parts)


def tool_message(tool_call_id: str, result: str) -> Message:
    """Build the tool-result message answering one tool call."""
    return Message(role="tool", tool_call_id=tool_call_id, content=result)
