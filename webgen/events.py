"""Event callbacks emitted by the generator, decoder and dispatcher."""

from dataclasses import dataclass
from typing import Any, Callable, Optional

from webgen.messages import FileChange, GenerateResult, ProjectFiles


@dataclass
class GeneratorEvents:
    """Optional callbacks for live rendering and runtime collaborators.

    Attributes:
        on_text: Text delta from the model
        on_thinking: Thinking/reasoning delta from the model
        on_tool_call: Tool name and call id, once per call at first sight
        on_tool_result: Tool name, parsed arguments and result string
        on_file_change: File snapshot and the changes of one tool call
        on_template_change: Template name and file snapshot (init_project)
        on_dependencies_change: File snapshot (manage_dependencies)
        on_complete: Final result of a run
        on_error: Transport error that ended a run
    """

    on_text: Optional[Callable[[str], None]] = None
    on_thinking: Optional[Callable[[str], None]] = None
    on_tool_call: Optional[Callable[[str, str], None]] = None
    on_tool_result: Optional[Callable[[str, Any, str], None]] = None
    on_file_change: Optional[Callable[[ProjectFiles, list[FileChange]], None]] = None
    on_template_change: Optional[Callable[[str, ProjectFiles], None]] = None
    on_dependencies_change: Optional[Callable[[ProjectFiles], None]] = None
    on_complete: Optional[Callable[[GenerateResult], None]] = None
    on_error: Optional[Callable[[Exception], None]] = None

    def emit(self, name: str, *args: Any) -> None:
        """Invoke a callback by attribute name if it is set."""
        callback = getattr(self, name)
        if callback is not None:
            callback(*args)
