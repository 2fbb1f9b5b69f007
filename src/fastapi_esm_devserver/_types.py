"""Shared type aliases and protocols."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fastapi_esm_devserver.sfc.parser import ComponentDescriptor

# Collaborators used by the virtual-module splitter
ParseCallback = Callable[[str], "ComponentDescriptor"]
CompileCallback = Callable[[str, str], str]
