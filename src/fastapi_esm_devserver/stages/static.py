"""StaticResponder — serves files from an ordered list of search roots."""

from __future__ import annotations

import logging
import mimetypes
import posixpath
from collections.abc import Sequence
from pathlib import Path

import anyio

from fastapi_esm_devserver.body import StreamBody
from fastapi_esm_devserver.context import RequestContext
from fastapi_esm_devserver.exceptions import NotFoundError
from fastapi_esm_devserver.stage import CSS, JAVASCRIPT, PipelineStage, StageCategory

logger = logging.getLogger(__name__)

INDEX_FILE = "index.html"
DEFAULT_TYPE = "application/octet-stream"

# Pinned so results do not depend on the host's mime.types files
_TYPES = {
    ".js": JAVASCRIPT,
    ".mjs": JAVASCRIPT,
    ".css": CSS,
    ".html": "text/html",
    ".json": "application/json",
    ".vue": "text/x-vue",
    ".svg": "image/svg+xml",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".ico": "image/x-icon",
}


def content_type(path: str) -> str:
    """Content type derived from the extension of ``path``."""
    ext = posixpath.splitext(path)[1].lower()
    if ext in _TYPES:
        return _TYPES[ext]
    guessed, _ = mimetypes.guess_type(f"file{ext}")
    return guessed or DEFAULT_TYPE


class StaticResponder(PipelineStage):
    """Locates the requested file under the first root that has it."""

    category = StageCategory.STATIC

    def __init__(self, roots: Sequence[Path]) -> None:
        self._roots = [root.resolve() for root in roots]

    @property
    def roots(self) -> list[Path]:
        return list(self._roots)

    async def find(self, path: str) -> Path | None:
        # Only the logical path is confined to the root; symlinks are followed
        relative = posixpath.normpath(INDEX_FILE if path in ("", "/") else path.lstrip("/"))
        if relative == ".." or relative.startswith(("../", "/")):
            return None
        for root in self._roots:
            candidate = root / relative
            if await anyio.Path(candidate).is_file():
                return candidate
        return None

    async def resolve(self, ctx: RequestContext) -> None:
        file_path = await self.find(ctx.path)
        if file_path is None:
            logger.info("404 %s", ctx.path)
            raise NotFoundError(ctx.path)

        served = INDEX_FILE if ctx.path in ("", "/") else ctx.path
        ctx.type = content_type(served)
        ctx.body = StreamBody.from_file(file_path)
