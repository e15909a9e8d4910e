"""Web search and web page reading tools backed by Tavily (Jina reader fallback)."""

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

import httpx

from webgen.constants import DEFAULT_SEARCH_RESULTS, DEFAULT_TAVILY_API_URL, JINA_READER_URL
from webgen.messages import FunctionDefinition, ToolDefinition

logger = logging.getLogger(__name__)

WEB_TOOLS = [
    ToolDefinition(
        function=FunctionDefinition(
            name="web_search",
            description=(
                "Search the web for information using a query string. "
                "Returns relevant results with titles, URLs, and content snippets. "
                "Use this when you need up-to-date information from the internet."
            ),
            parameters={
                "type": "object",
                "properties": {
                    "query": {"type": "string", "description": "The search query"},
                    "max_results": {
                        "type": "number",
                        "description": "Maximum number of results to return (default: 5)",
                    },
                },
                "required": ["query"],
            },
        )
    ),
    ToolDefinition(
        function=FunctionDefinition(
            name="web_reader",
            description=(
                "Read and extract the main content from one or more web pages. "
                "Provide URLs to fetch their full text content."
            ),
            parameters={
                "type": "object",
                "properties": {
                    "urls": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "List of URLs to read",
                    }
                },
                "required": ["urls"],
            },
        )
    ),
]


class ExtractError(Exception):
    """Tavily extract returned an error or no pages."""


class TavilyToolHandler:
    """Custom tool handler for web_search and web_reader.

    Results are JSON strings; the generator passes them to the model as-is.
    """

    def __init__(
        self,
        api_key: str,
        api_url: str = DEFAULT_TAVILY_API_URL,
        timeout: float = 30,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize handler.

        Args:
            api_key: Tavily API key
            api_url: Tavily base URL
            timeout: Request timeout in seconds
            http_client: Shared httpx client (a fresh one per call if omitted)
        """
        self.api_key = api_key
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._http_client = http_client

    async def __call__(self, name: str, args: Any) -> str:
        args = args if isinstance(args, dict) else {}

        if name == "web_search":
            query = args.get("query")
            if not isinstance(query, str) or not query:
                return json.dumps({"ok": False, "error": "query is required"})
            max_results = args.get("max_results") or DEFAULT_SEARCH_RESULTS
            return await self.search(query, int(max_results))

        if name == "web_reader":
            urls = args.get("urls")
            if isinstance(urls, str):
                urls = [urls]
            if not isinstance(urls, list) or not urls:
                return json.dumps({"ok": False, "error": "urls is required"})
            return await self.read(urls)

        return f'Error: unknown tool "{name}"'

    async def search(self, query: str, max_results: int = DEFAULT_SEARCH_RESULTS) -> str:
        """Run a Tavily search.

        Args:
            query: Search query
            max_results: Maximum number of results

        Returns:
            JSON string {ok, answer, results} or {ok: false, error}
        """
        async with self._client() as client:
            response = await client.post(
                f"{self.api_url}/search",
                json={
                    "api_key": self.api_key,
                    "query": query,
                    "max_results": max_results,
                    "include_answer": True,
                },
            )

        if not response.is_success:
            return json.dumps({
                "ok": False,
                "error": f"Tavily search failed ({response.status_code}): {response.text}",
            })

        data = response.json()
        return json.dumps({
            "ok": True,
            "answer": data.get("answer"),
            "results": [
                {"title": r.get("title"), "url": r.get("url"), "content": r.get("content")}
                for r in data.get("results") or []
            ],
        })

    async def read(self, urls: list[str]) -> str:
        """Extract page contents, falling back to the Jina reader.

        Args:
            urls: Page URLs

        Returns:
            JSON string {ok, pages}
        """
        try:
            pages = await self._tavily_extract(urls)
        except (httpx.HTTPError, ValueError, ExtractError) as e:
            logger.warning("Tavily extract failed, falling back to Jina: %s", e)
            return await self._jina_fallback(urls)

        return json.dumps({"ok": True, "pages": pages})

    async def _tavily_extract(self, urls: list[str]) -> list[dict]:
        async with self._client() as client:
            response = await client.post(
                f"{self.api_url}/extract",
                json={"api_key": self.api_key, "urls": urls},
            )

        if not response.is_success:
            raise ExtractError(f"Tavily extract failed ({response.status_code}): {response.text}")

        results = response.json().get("results") or []
        if not results:
            raise ExtractError("Tavily returned empty results")

        return [{"url": r.get("url"), "ok": True, "content": r.get("raw_content")} for r in results]

    async def _jina_fallback(self, urls: list[str]) -> str:
        pages = []
        async with self._client() as client:
            for url in urls:
                try:
                    response = await client.get(f"{JINA_READER_URL}{url}", headers={"Accept": "text/plain"})
                except httpx.HTTPError as e:
                    pages.append({"url": url, "ok": False, "error": str(e)})
                    continue

                if not response.is_success:
                    pages.append({"url": url, "ok": False, "error": f"Jina fetch failed ({response.status_code})"})
                    continue
                pages.append({"url": url, "ok": True, "content": response.text})

        return json.dumps({"ok": any(p["ok"] for p in pages), "pages": pages})

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                yield client
