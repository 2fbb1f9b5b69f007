"""Request body variants — lazy byte stream or materialized text."""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from pathlib import Path

import anyio

from fastapi_esm_devserver.exceptions import BodyConsumedError

CHUNK_SIZE = 64 * 1024


class StreamBody:
    """Lazy byte producer that can be consumed exactly once."""

    def __init__(self, producer: Callable[[], AsyncIterator[bytes]]) -> None:
        self._producer = producer
        self._consumed = False

    @classmethod
    def from_file(cls, path: Path, chunk_size: int = CHUNK_SIZE) -> StreamBody:
        async def produce() -> AsyncIterator[bytes]:
            async with await anyio.open_file(path, "rb") as f:
                while chunk := await f.read(chunk_size):
                    yield chunk

        return cls(produce)

    @classmethod
    def from_bytes(cls, data: bytes) -> StreamBody:
        async def produce() -> AsyncIterator[bytes]:
            yield data

        return cls(produce)

    @property
    def consumed(self) -> bool:
        return self._consumed

    async def iterate(self) -> AsyncIterator[bytes]:
        if self._consumed:
            raise BodyConsumedError()
        self._consumed = True
        async for chunk in self._producer():
            yield chunk

    async def read(self) -> bytes:
        return b"".join([chunk async for chunk in self.iterate()])

    async def text(self, encoding: str = "utf-8") -> str:
        return (await self.read()).decode(encoding)


class TextBody:
    """Materialized string body. Reads are repeatable."""

    def __init__(self, content: str) -> None:
        self.content = content

    async def read(self) -> bytes:
        return self.content.encode("utf-8")

    async def text(self, encoding: str = "utf-8") -> str:
        return self.content

    def __repr__(self) -> str:
        return f"TextBody({self.content[:40]!r})"


Body = StreamBody | TextBody
