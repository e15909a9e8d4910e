"""Routes custom tool calls to per-tool handlers."""

import inspect
import logging
from typing import Any, Optional

from webgen.tools.dispatcher import CustomToolHandler

logger = logging.getLogger(__name__)


class ToolRouter:
    """Custom tool handler that forwards each tool name to its own handler.

    Handlers may be sync or async callables taking (name, args).
    """

    def __init__(self, routes: Optional[dict[str, CustomToolHandler]] = None):
        self._routes: dict[str, CustomToolHandler] = dict(routes or {})

    def register(self, handler: CustomToolHandler, *names: str) -> None:
        """Route one or more tool names to a handler."""
        for name in names:
            self._routes[name] = handler

    def __contains__(self, name: str) -> bool:
        return name in self._routes

    @property
    def names(self) -> list[str]:
        return sorted(self._routes)

    async def __call__(self, name: str, args: Any) -> Any:
        handler = self._routes.get(name)
        if handler is None:
            logger.debug("No route for tool %s", name)
            return f'Error: unknown tool "{name}"'

        result = handler(name, args)
        if inspect.isawaitable(result):
            result = await result
        return result
