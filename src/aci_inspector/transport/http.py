"""
REST HTTP client for the ACI backend.

The transport performs requests and decodes JSON; it never interprets
payload semantics.
"""

import json
from typing import Any, NamedTuple, Optional

import httpx

from aci_inspector.errors import HttpError, NetworkError, ParseError

DEFAULT_BASE_URL = "http://localhost:5228"
SNIPPET_LIMIT = 800


class RawResponse(NamedTuple):
    ok: bool
    status: int
    text: str


def normalize_base_url(base_url: str) -> str:
    trimmed = (base_url or "").strip()
    if not trimmed:
        return DEFAULT_BASE_URL
    return trimmed.rstrip("/")


def parse_json_or_raise(text: str) -> Any:
    """Decode ``text`` as JSON, with a hint about what went wrong if it is not."""
    try:
        return json.loads(text)
    except ValueError:
        snippet = text.lstrip()[:SNIPPET_LIMIT]
        looks_like_html = snippet.startswith("<!DOCTYPE html") or snippet.startswith("<html")
        if looks_like_html:
            hint = 'It looks like HTML. "Server URL" likely points to a website, not the ACI backend.'
        else:
            hint = "Server URL may be incorrect, or backend returned non-JSON output."
        raise ParseError(f"Failed to parse API response as JSON. {hint} Raw response: {snippet}", body=text)


class HttpClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = normalize_base_url(base_url)
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={
                "User-Agent": "aci-inspector/0.1.0",
                "Accept": "application/json, text/plain;q=0.9, */*;q=0.8",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def request_raw(self, path: str, method: str = "GET", body: Optional[Any] = None) -> RawResponse:
        try:
            resp = await self._client.request(method, path, json=body)
        except (httpx.RequestError, httpx.InvalidURL) as e:
            raise NetworkError(f"Network request failed: {e}") from e
        return RawResponse(ok=resp.is_success, status=resp.status_code, text=resp.text)

    async def request_json(self, path: str, method: str = "GET", body: Optional[Any] = None) -> Any:
        raw = await self.request_raw(path, method, body)
        parsed = parse_json_or_raise(raw.text)
        if not raw.ok:
            detail = parsed if isinstance(parsed, str) else json.dumps(parsed)
            raise HttpError(f"HTTP {raw.status}: {detail}", status=raw.status, body=detail)
        return parsed

    async def request_text(self, path: str, what: str) -> str:
        raw = await self.request_raw(path)
        if not raw.ok:
            raise HttpError(f"Failed to load {what} ({raw.status}): {raw.text}", status=raw.status, body=raw.text)
        return raw.text or ""

    async def get(self, path: str) -> Any:
        return await self.request_json(path)

    async def post(self, path: str, body: Optional[Any] = None) -> Any:
        return await self.request_json(path, "POST", body)

    async def close(self) -> None:
        await self._client.aclose()
