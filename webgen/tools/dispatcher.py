"""Tool dispatch: built-in file-system tools plus a custom handler fallback."""

import inspect
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Union

from webgen.events import GeneratorEvents
from webgen.messages import FileChange, ToolCall
from webgen.tools.patcher import apply_patches
from webgen.tools.templates import BUILTIN_TEMPLATES, TemplateCatalog, normalize_template
from webgen.tools.vfs import VirtualFileSystem, normalize_path

logger = logging.getLogger(__name__)

CustomToolHandler = Callable[[str, Any], Union[str, Awaitable[str]]]

EMPTY_PROJECT_LISTING = "(empty project — no files)"
NO_MATCHES = "(no matches found)"


@dataclass
class ToolOutcome:
    """Result string and file changes of one tool call."""

    result: str
    changes: list[FileChange] = field(default_factory=list)


class ToolDispatcher:
    """Executes tool calls against the virtual file system.

    Tool failures never raise: every error becomes the result string so the
    model can see it and correct itself on the next turn.
    """

    def __init__(
        self,
        vfs: VirtualFileSystem,
        templates: Optional[TemplateCatalog] = None,
        custom_tool_handler: Optional[CustomToolHandler] = None,
        events: Optional[GeneratorEvents] = None,
    ):
        """Initialize dispatcher.

        Args:
            vfs: File system the tools operate on
            templates: Template catalog for init_project (default: built-ins)
            custom_tool_handler: Fallback for tool names not handled here
            events: Event callbacks
        """
        self.vfs = vfs
        self.templates = templates if templates is not None else BUILTIN_TEMPLATES
        self.custom_tool_handler = custom_tool_handler
        self.events = events or GeneratorEvents()

        self._builtins: dict[str, Callable[[dict, list[FileChange]], str]] = {
            "init_project": self._init_project,
            "manage_dependencies": self._manage_dependencies,
            "list_files": self._list_files,
            "read_files": self._read_files,
            "write_file": self._write_file,
            "patch_file": self._patch_file,
            "delete_file": self._delete_file,
            "search_in_files": self._search_in_files,
        }

    async def execute(self, tool_call: ToolCall) -> ToolOutcome:
        """Execute one tool call.

        Args:
            tool_call: Tool call issued by the model

        Returns:
            ToolOutcome with the result string and any file changes
        """
        name = tool_call.function.name
        raw_args = tool_call.function.arguments

        try:
            args = json.loads(raw_args) if raw_args.strip() else {}
        except json.JSONDecodeError:
            result = f'Error: failed to parse arguments for "{name}"'
            logger.debug("Unparseable arguments for %s: %r", name, raw_args)
            self.events.emit("on_tool_result", name, None, result)
            return ToolOutcome(result=result)

        logger.debug("Executing tool %s", name)
        changes: list[FileChange] = []

        handler = self._builtins.get(name)
        if handler is not None:
            params = args if isinstance(args, dict) else {}
            result = handler(params, changes)
        else:
            result = await self._call_custom(name, args)

        self.events.emit("on_tool_result", name, args, result)
        return ToolOutcome(result=result, changes=changes)

    async def _call_custom(self, name: str, args: Any) -> str:
        if self.custom_tool_handler is None:
            return f'Error: unknown tool "{name}"'

        try:
            result = self.custom_tool_handler(name, args)
            if inspect.isawaitable(result):
                result = await result
            if not isinstance(result, str):
                result = json.dumps(result)
        except Exception as e:
            logger.warning("Custom tool %s failed: %s", name, e)
            return f'Error in custom tool "{name}": {e}'

        return result

    # ------------------------------------------------------------------
    # Built-in tools

    def _init_project(self, args: dict, changes: list[FileChange]) -> str:
        template = args.get("template")
        if not isinstance(template, str) or template not in self.templates:
            return (
                f'Error: unknown template "{template}". '
                f"Use one of: {', '.join(self.templates)}"
            )

        new_files = normalize_template(self.templates[template])

        for path in self.vfs.paths():
            if path not in new_files:
                changes.append(FileChange(path=path, action="deleted"))
        for path in new_files:
            changes.append(FileChange(path=path, action="created"))

        self.vfs.replace(new_files)
        self.events.emit("on_template_change", template, self.vfs.snapshot())
        return f'OK — initialized project with template "{template}" ({len(new_files)} files)'

    def _manage_dependencies(self, args: dict, changes: list[FileChange]) -> str:
        package_json = args.get("package_json")
        if not isinstance(package_json, str):
            return "Error: package_json must be a string containing JSON"

        try:
            parsed = json.loads(package_json)
        except json.JSONDecodeError:
            return "Error: invalid JSON in package_json"

        if not isinstance(parsed, dict):
            return "Error: package_json must be a JSON object"

        path = self.vfs.find_first("package.json") or "package.json"
        action = self.vfs.write(path, package_json)
        changes.append(FileChange(path=path, action=action))
        self.events.emit("on_dependencies_change", self.vfs.snapshot())
        return f"OK — {action} {path}, dependencies updated. The preview will restart."

    def _list_files(self, args: dict, changes: list[FileChange]) -> str:
        paths = self.vfs.paths()
        if not paths:
            return EMPTY_PROJECT_LISTING
        return "\n".join(paths)

    def _read_files(self, args: dict, changes: list[FileChange]) -> str:
        paths = args.get("paths")
        if not isinstance(paths, list) or not paths:
            return "Error: no paths provided"

        sections = []
        for path in paths:
            success, content, _ = self.vfs.read(path) if isinstance(path, str) else (False, None, None)
            if success:
                sections.append(f"=== {path} ===\n{content}")
            else:
                sections.append(f"=== {path} ===\nError: file not found")

        return "\n\n".join(sections)

    def _write_file(self, args: dict, changes: list[FileChange]) -> str:
        path = args.get("path")
        content = args.get("content")
        if not isinstance(path, str) or not normalize_path(path):
            return "Error: path is required"
        if not isinstance(content, str):
            return "Error: content must be a string"

        path = normalize_path(path)
        action = self.vfs.write(path, content)
        changes.append(FileChange(path=path, action=action))
        return f"OK — {action}: {path} ({len(content)} chars)"

    def _patch_file(self, args: dict, changes: list[FileChange]) -> str:
        path = args.get("path")
        if not isinstance(path, str) or not normalize_path(path):
            return "Error: path is required"

        success, content, _ = self.vfs.read(path)
        if not success:
            return f'Error: file not found — "{path}"'

        patches = args.get("patches")
        if not isinstance(patches, list):
            patches = [patches] if patches is not None else []
        if not patches:
            return "Error: no patches provided"

        outcome = apply_patches(content, patches)
        if outcome.content != content:
            path = normalize_path(path)
            self.vfs.write(path, outcome.content)
            changes.append(FileChange(path=path, action="modified"))

        return outcome.summary

    def _delete_file(self, args: dict, changes: list[FileChange]) -> str:
        path = args.get("path")
        if not isinstance(path, str):
            return "Error: path is required"

        success, _ = self.vfs.delete(path)
        if not success:
            return f'Error: file not found — "{path}"'

        path = normalize_path(path)
        changes.append(FileChange(path=path, action="deleted"))
        return f"OK — deleted: {path}"

    def _search_in_files(self, args: dict, changes: list[FileChange]) -> str:
        pattern = args.get("pattern")
        if not isinstance(pattern, str):
            return "Error: pattern is required"

        try:
            regex = re.compile(pattern)
        except re.error:
            return f'Error: invalid regex pattern — "{pattern}"'

        hits = []
        for path, content in self.vfs.snapshot().items():
            for number, line in enumerate(content.split("\n"), start=1):
                if regex.search(line):
                    hits.append(f"{path}:{number}: {line.strip()}")

        return "\n".join(hits) if hits else NO_MATCHES
