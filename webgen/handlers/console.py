"""Console-log collaborator backing the get_console_logs tool."""

import json
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from webgen.constants import MAX_CONSOLE_ENTRIES

NO_CONSOLE_OUTPUT = "No console output yet."


@dataclass
class ConsoleEntry:
    """One console call captured from the preview runtime."""

    method: str
    data: tuple
    ts: datetime

    def format(self) -> str:
        parts = [d if isinstance(d, str) else json.dumps(d, default=str) for d in self.data]
        return f"[{self.method.upper()}] {' '.join(parts)}".rstrip()


class ConsoleLogBuffer:
    """Bounded buffer of recent console output.

    Whatever runs the generated project records into this buffer; the model
    reads it back through get_console_logs.
    """

    def __init__(self, max_entries: int = MAX_CONSOLE_ENTRIES):
        self._entries: deque[ConsoleEntry] = deque(maxlen=max_entries)

    def __len__(self) -> int:
        return len(self._entries)

    def record(self, method: str, *data: Any) -> None:
        """Record one console call (log, warn, error, ...)."""
        self._entries.append(ConsoleEntry(method=method, data=data, ts=datetime.now()))

    def clear(self) -> None:
        self._entries.clear()

    def format(self) -> str:
        """Format all entries, oldest first."""
        if not self._entries:
            return NO_CONSOLE_OUTPUT
        return "\n".join(entry.format() for entry in self._entries)

    def __call__(self, name: str, args: Any) -> str:
        return self.format()
