"""web_fetch tool — fetch a URL over HTTP(S) and return its text."""

import json
import re
from typing import Any
from urllib.parse import urlparse

import httpx

from helmsman.tools.domain.context import ToolContext
from helmsman.tools.domain.definition import ToolDefinition, ToolParameter, object_schema
from helmsman.tools.domain.result import ToolExecutionResult

_TIMEOUT_SECONDS = 30.0
_MAX_CONTENT_CHARS = 50_000
_HEADERS = {
    "User-Agent": "helmsman/0.1 (coding assistant)",
    "Accept": "text/html,application/json,text/plain,*/*",
}

_DROP_BLOCKS = re.compile(r"<(script|style)\b.*?</\1>", re.IGNORECASE | re.DOTALL)
_LINE_BREAKS = re.compile(r"<br\s*/?>|</div>|</li>", re.IGNORECASE)
_PARAGRAPH_BREAKS = re.compile(r"</p>|</h[1-6]>", re.IGNORECASE)
_TAGS = re.compile(r"<[^>]+>")
_BLANK_RUNS = re.compile(r"\n\s*\n\s*\n")
_ENTITIES = {
    "&nbsp;": " ",
    "&amp;": "&",
    "&lt;": "<",
    "&gt;": ">",
    "&quot;": '"',
    "&#39;": "'",
}


def html_to_text(html: str) -> str:
    text = _DROP_BLOCKS.sub("", html)
    text = _LINE_BREAKS.sub("\n", text)
    text = _PARAGRAPH_BREAKS.sub("\n\n", text)
    text = re.sub(r"<li>", "• ", text, flags=re.IGNORECASE)
    text = _TAGS.sub("", text)
    for entity, replacement in _ENTITIES.items():
        text = text.replace(entity, replacement)
    return _BLANK_RUNS.sub("\n\n", text).strip()


async def web_fetch(arguments: dict[str, Any], context: ToolContext) -> ToolExecutionResult:
    url = str(arguments.get("url") or "")
    extract = str(arguments.get("extract") or "text")
    if urlparse(url).scheme not in ("http", "https"):
        return ToolExecutionResult.failure("Only HTTP and HTTPS URLs are supported")

    try:
        async with httpx.AsyncClient(
            timeout=_TIMEOUT_SECONDS, follow_redirects=True, headers=_HEADERS
        ) as client:
            response = await client.get(url)
    except httpx.HTTPError as exc:
        return ToolExecutionResult.failure(f"Failed to fetch URL: {exc}")

    if response.is_error:
        return ToolExecutionResult.failure(
            f"HTTP {response.status_code}: {response.reason_phrase}"
        )

    content_type = response.headers.get("content-type", "")
    if extract == "json" or "application/json" in content_type:
        try:
            content = json.dumps(response.json(), indent=2)
        except ValueError:
            content = response.text
    elif extract == "html":
        content = response.text
    else:
        content = html_to_text(response.text)

    if len(content) > _MAX_CONTENT_CHARS:
        content = content[:_MAX_CONTENT_CHARS] + "\n\n... (truncated)"
    return ToolExecutionResult.ok(content)


WEB_FETCH_TOOL = ToolDefinition(
    name="web_fetch",
    description="Fetch a URL and return its text content (documentation, APIs, references).",
    handler=web_fetch,
    input_schema=object_schema(
        {
            "url": ToolParameter("string", "The URL to fetch", required=True),
            "extract": ToolParameter(
                "string",
                "What to return",
                enum=("text", "html", "json"),
            ),
        }
    ),
    read_only=True,
    describe=lambda args: f"Fetch URL: {args.get('url')}",
)
