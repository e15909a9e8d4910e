"""In-memory project file system."""

from pathlib import Path
from typing import Mapping, Optional

from webgen.messages import ProjectFiles


def normalize_path(path: str) -> str:
    """Normalize a project path to forward slashes without a leading slash.

    Args:
        path: Path as given by the model, a template, or a caller

    Returns:
        Normalized path
    """
    return path.replace("\\", "/").lstrip("/")


class VirtualFileSystem:
    """Path → content map representing the generated project.

    Callers only ever receive copies of the map. The dispatcher mutates it
    through write/delete/replace.
    """

    def __init__(self, files: Optional[Mapping[str, str]] = None):
        """Initialize the file system.

        Args:
            files: Initial files (copied)
        """
        self._files: ProjectFiles = {}
        if files:
            self.replace(files)

    def __contains__(self, path: str) -> bool:
        return normalize_path(path) in self._files

    def __len__(self) -> int:
        return len(self._files)

    def exists(self, path: str) -> bool:
        return path in self

    def paths(self) -> list[str]:
        """List all paths, sorted lexicographically."""
        return sorted(self._files)

    def read(self, path: str) -> tuple[bool, Optional[str], Optional[str]]:
        """Read a file.

        Args:
            path: File path

        Returns:
            Tuple of (success, content, error)
        """
        key = normalize_path(path)
        if key not in self._files:
            return False, None, f"File not found: {path}"
        return True, self._files[key], None

    def write(self, path: str, content: str) -> str:
        """Create or overwrite a file.

        Args:
            path: File path
            content: Full file content

        Returns:
            "created" or "modified"
        """
        key = normalize_path(path)
        action = "modified" if key in self._files else "created"
        self._files[key] = content
        return action

    def delete(self, path: str) -> tuple[bool, Optional[str]]:
        """Delete a file.

        Args:
            path: File path

        Returns:
            Tuple of (success, error)
        """
        key = normalize_path(path)
        if key not in self._files:
            return False, f"File not found: {path}"
        del self._files[key]
        return True, None

    def find_first(self, suffix: str) -> Optional[str]:
        """Find the first path (in insertion order) ending with suffix."""
        for path in self._files:
            if path.endswith(suffix):
                return path
        return None

    def snapshot(self) -> ProjectFiles:
        """Return a copy of the current file map."""
        return dict(self._files)

    def replace(self, files: Mapping[str, str]) -> None:
        """Replace the whole file map (paths normalized, mapping copied)."""
        self._files = {normalize_path(path): content for path, content in files.items()}

    def export(self, directory: Path) -> list[Path]:
        """Write every file under a directory on disk.

        Args:
            directory: Destination directory (created if missing)

        Returns:
            List of written paths

        Raises:
            ValueError: If a project path escapes the destination directory
        """
        root = directory.resolve()
        written = []

        for rel_path, content in sorted(self._files.items()):
            dest = (root / rel_path).resolve()
            try:
                dest.relative_to(root)
            except ValueError:
                raise ValueError(f"Path outside export directory: {rel_path}")

            dest.parent.mkdir(parents=True, exist_ok=True)
            dest.write_text(content, encoding="utf-8")
            written.append(dest)

        return written
