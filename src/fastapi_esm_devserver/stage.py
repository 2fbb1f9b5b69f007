"""PipelineStage abstract base class and StageCategory enum."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import ClassVar

from fastapi_esm_devserver.context import RequestContext

JAVASCRIPT = "application/javascript"
CSS = "text/css"


class StageCategory(Enum):
    """Stage categories, defining the fixed execution order.

    User stages (``CUSTOM``) run after the style wrapper and before the asset
    inliner, which always comes last.
    """

    MODULE_PATH = "module_path"
    STATIC = "static"
    COMPONENT = "component"
    IMPORTS = "imports"
    STYLE = "style"
    CUSTOM = "custom"
    ASSET = "asset"

    @property
    def order(self) -> int:
        _ORDER = {
            "module_path": 1,
            "static": 2,
            "component": 3,
            "imports": 4,
            "style": 5,
            "custom": 6,
            "asset": 7,
        }
        return _ORDER[self.value]

    @property
    def exclusive(self) -> bool:
        """Built-in categories hold at most one stage per pipeline."""
        return self is not StageCategory.CUSTOM


class PipelineStage(ABC):
    """Base abstraction for one transform in the request pipeline.

    ``resolve`` inspects the current context and may rewrite its path, type
    or body. Returning normally passes control to the next stage; raising
    ``StageAbort`` short-circuits the rest of the chain.
    """

    category: ClassVar[StageCategory]

    @abstractmethod
    async def resolve(self, ctx: RequestContext) -> None: ...
