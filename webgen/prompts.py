"""System prompt builder for the generation loop."""

from typing import Iterable, Optional

DEFAULT_SYSTEM_PROMPT = """You are an expert web developer. You build complete, working web applications using the provided file-system tools.

Guidelines:
1. Create well-structured projects with proper file organization.
2. Always write complete, runnable code. Never use placeholders like "// TODO" or "..." to omit code.
3. Default to modern HTML / CSS / JavaScript unless the user specifies otherwise.
4. Batch multiple file creations into a single response when possible (parallel tool calls).
5. For small edits, prefer patch_file over rewriting entire files with write_file.
6. Always read files before modifying them. Use read_files to read several files in one call.
7. Briefly explain your plan before starting and summarize when finished.
8. After completing all file changes, call get_console_logs to check for runtime errors. If errors exist, fix them before finishing."""

EMPTY_PROJECT_NOTE = "The project is empty — no files yet."


class SystemPromptBuilder:
    """Builds the system message sent ahead of the conversation history.

    File contents are never included; the model reads them on demand with
    read_files. Only the sorted path listing is appended so the model's view
    of the project tracks the live file map.
    """

    def __init__(self, instructions: Optional[str] = None):
        """Initialize system prompt builder.

        Args:
            instructions: Fixed instructional text (default: DEFAULT_SYSTEM_PROMPT)
        """
        self.instructions = instructions if instructions is not None else DEFAULT_SYSTEM_PROMPT

    def build(self, paths: Iterable[str]) -> str:
        """Build the system prompt for the current file set.

        Args:
            paths: Current project file paths (any order)

        Returns:
            System prompt string
        """
        return self.instructions + "\n\n" + self._build_listing(paths)

    def _build_listing(self, paths: Iterable[str]) -> str:
        ordered = sorted(paths)
        if not ordered:
            return EMPTY_PROJECT_NOTE
        return "Current project files:\n" + "\n".join(f"- {p}" for p in ordered)
