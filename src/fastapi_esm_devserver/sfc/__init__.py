"""Default component parser and template compiler."""

from fastapi_esm_devserver.sfc.compiler import compile_template, prefix_identifiers
from fastapi_esm_devserver.sfc.parser import (
    ComponentBlock,
    ComponentDescriptor,
    parse_component,
)

__all__ = [
    "ComponentBlock",
    "ComponentDescriptor",
    "compile_template",
    "parse_component",
    "prefix_identifiers",
]
