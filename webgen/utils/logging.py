"""Session logging utilities."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from webgen.messages import GenerateResult, Message, ProjectFiles
from webgen.utils.diffs import create_patch, diff_snapshots

logger = logging.getLogger(__name__)


class SessionLogger:
    """Handles logging for a WebGen session."""

    def __init__(self, log_root: Path, run_id: Optional[str] = None):
        """Initialize session logger.

        Args:
            log_root: Directory holding all runs
            run_id: Optional run ID (generated if not provided)
        """
        self.run_id = run_id or datetime.now().strftime("%Y%m%d_%H%M%S")

        self.log_dir = Path(log_root) / self.run_id
        self.log_dir.mkdir(parents=True, exist_ok=True)

        self.transcript_path = self.log_dir / "transcript.ndjson"
        self.result_path = self.log_dir / "result.json"
        self.diffs_dir = self.log_dir / "diffs"
        self.diffs_dir.mkdir(exist_ok=True)

        self._diff_count = 0

    def log_message(self, message: Message) -> None:
        """Append a conversation message to the transcript.

        Args:
            message: Message to log
        """
        entry = {"ts": datetime.now().isoformat(), **message.model_dump(exclude_none=True)}

        with open(self.transcript_path, "a") as f:
            f.write(json.dumps(entry) + "\n")

    def log_messages(self, messages: list[Message]) -> None:
        for message in messages:
            self.log_message(message)

    def save_result(self, result: GenerateResult) -> None:
        """Save the summary of a run (overwrites the previous one).

        Args:
            result: Finished run
        """
        with open(self.result_path, "w") as f:
            json.dump(
                {
                    "timestamp": datetime.now().isoformat(),
                    "aborted": result.aborted,
                    "max_iterations_reached": result.max_iterations_reached,
                    "text": result.text,
                    "files": sorted(result.files),
                    "message_count": len(result.messages),
                },
                f,
                indent=2,
            )

    def save_diff(self, path: str, original: str, modified: str) -> Optional[Path]:
        """Save a unified diff of one file.

        Args:
            path: Project path of the file
            original: Content before the change
            modified: Content after the change

        Returns:
            Path of the written diff, or None if the contents are equal
        """
        diff_content = create_patch(original, modified, path)
        if not diff_content:
            return None

        self._diff_count += 1
        safe_name = "".join(c if c.isalnum() or c in "-." else "_" for c in path)
        diff_path = self.diffs_dir / f"{self._diff_count:03d}_{safe_name}.diff"
        with open(diff_path, "w") as f:
            f.write(diff_content)

        logger.debug("Saved diff for %s to %s", path, diff_path)
        return diff_path

    def save_diffs(self, before: ProjectFiles, after: ProjectFiles) -> list[Path]:
        """Save a diff for every file modified between two snapshots.

        Args:
            before: Files before a run
            after: Files after the run

        Returns:
            Paths of the written diffs
        """
        written = []
        for change in diff_snapshots(before, after):
            if change.action != "modified":
                continue
            diff_path = self.save_diff(change.path, before[change.path], after[change.path])
            if diff_path is not None:
                written.append(diff_path)
        return written

    def get_log_path(self) -> str:
        """Get the path to the log directory.

        Returns:
            Absolute path to log directory
        """
        return str(self.log_dir.absolute())
