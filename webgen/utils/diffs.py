"""Utilities for diffing project file snapshots."""

import difflib

from webgen.messages import FileChange, ProjectFiles


def create_patch(original: str, modified: str, filename: str = "file") -> str:
    """Create a unified diff patch.

    Args:
        original: Original file content
        modified: Modified file content
        filename: Filename to use in patch header

    Returns:
        Unified diff string
    """
    original_lines = normalize_line_endings(original).splitlines(keepends=True)
    modified_lines = normalize_line_endings(modified).splitlines(keepends=True)

    diff = difflib.unified_diff(
        original_lines,
        modified_lines,
        fromfile=f"a/{filename}",
        tofile=f"b/{filename}",
    )

    return "".join(diff)


def diff_snapshots(before: ProjectFiles, after: ProjectFiles) -> list[FileChange]:
    """Compute file changes between two snapshots, sorted by path.

    Args:
        before: Earlier snapshot
        after: Later snapshot

    Returns:
        List of FileChange
    """
    changes = []
    for path in sorted(set(before) | set(after)):
        if path not in after:
            changes.append(FileChange(path=path, action="deleted"))
        elif path not in before:
            changes.append(FileChange(path=path, action="created"))
        elif before[path] != after[path]:
            changes.append(FileChange(path=path, action="modified"))
    return changes


def normalize_line_endings(content: str) -> str:
    """Normalize line endings to LF.

    Args:
        content: Content with potentially mixed line endings

    Returns:
        Content with normalized line endings
    """
    return content.replace("\r\n", "\n").replace("\r", "\n")
