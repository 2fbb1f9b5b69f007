"""RequestContext — per-request state carried through the stage chain."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from starlette.requests import Request

from fastapi_esm_devserver.body import Body, StreamBody, TextBody


@dataclass
class RequestContext:
    """Per-request record of the logical path, query, content type and body.

    Stages mutate ``path``, ``type`` and ``body`` in place. ``type`` is the
    declared MIME type without parameters and may differ from what the file
    extension suggests once a stage has transformed the body.
    """

    path: str
    query: dict[str, str] = field(default_factory=dict)
    type: str = ""
    body: Body | None = None
    request: Request | None = None
    state: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_request(cls, request: Request) -> RequestContext:
        return cls(
            path=request.url.path,
            query=dict(request.query_params),
            request=request,
        )

    async def text(self) -> str:
        """Materialize the body as a string, replacing a stream body."""
        if self.body is None:
            return ""
        content = await self.body.text()
        if isinstance(self.body, StreamBody):
            self.body = TextBody(content)
        return content

    async def read(self) -> bytes:
        """Materialize the body as bytes, replacing a stream body."""
        if self.body is None:
            return b""
        data = await self.body.read()
        if isinstance(self.body, StreamBody):
            self.body = StreamBody.from_bytes(data)
        return data

    @property
    def discriminator(self) -> str | None:
        return self.query.get("type") or None
