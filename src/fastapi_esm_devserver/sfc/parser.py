"""Single-file component parser — splits a ``.vue`` source into its blocks."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from fastapi_esm_devserver.exceptions import MalformedComponentError

_TOP_LEVEL = re.compile(r"<!--.*?-->|<([A-Za-z][\w-]*)((?:\s[^>]*)?)>", re.S)
_ATTR = re.compile(
    r"""([^\s"'>/=]+)(?:\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"'=<>`]+)))?"""
)
# Blocks whose content is raw text: the first closing tag ends them
_RAW_TEXT = {"script", "style"}


def parse_attributes(text: str) -> dict[str, str | bool]:
    """Parse ``lang="ts" setup`` into ``{"lang": "ts", "setup": True}``."""
    attrs: dict[str, str | bool] = {}
    for match in _ATTR.finditer(text):
        name, dq, sq, bare = match.groups()
        value = next((v for v in (dq, sq, bare) if v is not None), None)
        attrs[name] = True if value is None else value
    return attrs


@dataclass(frozen=True)
class ComponentBlock:
    """One top-level block of a component file."""

    type: str
    content: str
    attrs: dict[str, str | bool] = field(default_factory=dict)

    @property
    def lang(self) -> str | None:
        lang = self.attrs.get("lang")
        return lang if isinstance(lang, str) else None


@dataclass
class ComponentDescriptor:
    """Structured view of a component: script, template and ordered styles."""

    script: ComponentBlock | None = None
    script_setup: ComponentBlock | None = None
    template: ComponentBlock | None = None
    styles: list[ComponentBlock] = field(default_factory=list)
    custom_blocks: list[ComponentBlock] = field(default_factory=list)


def _find_close(source: str, tag: str, start: int) -> tuple[int, int]:
    """Return (content_end, block_end) of the element opened before ``start``."""
    if tag in _RAW_TEXT:
        close = re.compile(rf"</{tag}\s*>", re.I).search(source, start)
        if close is None:
            raise MalformedComponentError(f"Unclosed <{tag}> block")
        return close.start(), close.end()

    nested = re.compile(rf"<{tag}\b[^>]*?(/?)>|</{tag}\s*>", re.I)
    depth = 1
    pos = start
    while True:
        match = nested.search(source, pos)
        if match is None:
            raise MalformedComponentError(f"Unclosed <{tag}> block")
        if match.group(0).startswith("</"):
            depth -= 1
            if depth == 0:
                return match.start(), match.end()
        elif not match.group(1):
            depth += 1
        pos = match.end()


def parse_component(source: str) -> ComponentDescriptor:
    """Split a component source into its top-level blocks."""
    descriptor = ComponentDescriptor()
    pos = 0
    while True:
        match = _TOP_LEVEL.search(source, pos)
        if match is None:
            break
        if match.group(1) is None:
            pos = match.end()
            continue

        tag = match.group(1).lower()
        attr_text = match.group(2)
        if attr_text.rstrip().endswith("/"):
            content, pos = "", match.end()
            attr_text = attr_text.rstrip()[:-1]
        else:
            content_end, pos = _find_close(source, tag, match.end())
            content = source[match.end() : content_end]

        block = ComponentBlock(tag, content, parse_attributes(attr_text))
        if tag == "template":
            if descriptor.template is not None:
                raise MalformedComponentError("Multiple <template> blocks")
            descriptor.template = block
        elif tag == "script" and block.attrs.get("setup"):
            if descriptor.script_setup is not None:
                raise MalformedComponentError("Multiple <script setup> blocks")
            descriptor.script_setup = block
        elif tag == "script":
            if descriptor.script is not None:
                raise MalformedComponentError("Multiple <script> blocks")
            descriptor.script = block
        elif tag == "style":
            descriptor.styles.append(block)
        else:
            descriptor.custom_blocks.append(block)

    return descriptor
