"""Tests for the VirtualModuleSplitter stage."""

from __future__ import annotations

from typing import Any
from unittest.mock import Mock

import pytest

from fastapi_esm_devserver.body import TextBody
from fastapi_esm_devserver.exceptions import MalformedComponentError
from fastapi_esm_devserver.sfc.parser import ComponentBlock, ComponentDescriptor
from fastapi_esm_devserver.stage import CSS, JAVASCRIPT, StageCategory
from fastapi_esm_devserver.stages.components import VirtualModuleSplitter

COMPONENT = """\
<template><p>{{ msg }}</p></template>
<script>
export default { name: 'X' }
</script>
<style>.a{color:red}</style>
<style>.b{color:blue}</style>
"""


class TestVirtualModuleSplitter:
    def test_category(self) -> None:
        assert VirtualModuleSplitter().category == StageCategory.COMPONENT

    async def test_ignores_other_paths(self, make_ctx: Any) -> None:
        ctx = make_ctx("/src/main.js", type=JAVASCRIPT, text="export default 1")
        await VirtualModuleSplitter().resolve(ctx)
        assert await ctx.text() == "export default 1"
        assert ctx.type == JAVASCRIPT

    async def test_main_module_rewrites_default_export(self, make_ctx: Any) -> None:
        ctx = make_ctx("/src/X.vue", type="text/x-vue", text=COMPONENT)
        await VirtualModuleSplitter().resolve(ctx)
        code = await ctx.text()
        assert ctx.type == JAVASCRIPT
        assert "const __script = { name: 'X' }" in code
        assert "export default { name: 'X' }" not in code

    async def test_main_module_imports_sub_resources(self, make_ctx: Any) -> None:
        ctx = make_ctx("/src/X.vue", type="text/x-vue", text=COMPONENT)
        await VirtualModuleSplitter().resolve(ctx)
        lines = (await ctx.text()).splitlines()
        assert lines[-4:] == [
            'import { render as __render } from "/src/X.vue?type=template"',
            'import "/src/X.vue?type=style"',
            "__script.render = __render",
            "export default __script",
        ]

    async def test_main_module_drains_stream_body(self, make_ctx: Any) -> None:
        ctx = make_ctx("/src/X.vue", type="text/x-vue", data=COMPONENT.encode())
        await VirtualModuleSplitter().resolve(ctx)
        assert isinstance(ctx.body, TextBody)

    async def test_template_compiles_render_function(self, make_ctx: Any) -> None:
        ctx = make_ctx(
            "/src/X.vue", type="text/x-vue", text=COMPONENT, query={"type": "template"}
        )
        await VirtualModuleSplitter().resolve(ctx)
        code = await ctx.text()
        assert ctx.type == JAVASCRIPT
        assert "export function render(_ctx, _cache)" in code
        assert "<p>" not in code
        assert "_ctx.msg" in code

    async def test_template_uses_path_as_id(self, make_ctx: Any) -> None:
        compile = Mock(return_value="export function render() {}")
        ctx = make_ctx(
            "/src/X.vue", type="text/x-vue", text=COMPONENT, query={"type": "template"}
        )
        await VirtualModuleSplitter(compile=compile).resolve(ctx)
        compile.assert_called_once_with("<p>{{ msg }}</p>", "/src/X.vue")

    async def test_style_concatenates_blocks(self, make_ctx: Any) -> None:
        ctx = make_ctx(
            "/src/X.vue", type="text/x-vue", text=COMPONENT, query={"type": "style"}
        )
        await VirtualModuleSplitter().resolve(ctx)
        assert ctx.type == CSS
        assert await ctx.text() == ".a{color:red}.b{color:blue}"

    async def test_single_line_style(self, make_ctx: Any) -> None:
        descriptor = ComponentDescriptor(styles=[ComponentBlock("style", ".a{color:red}")])
        ctx = make_ctx("/src/X.vue", text="", query={"type": "style"})
        await VirtualModuleSplitter(parse=lambda source: descriptor).resolve(ctx)
        css = await ctx.text()
        assert css == ".a{color:red}"
        assert "\n" not in css

    async def test_component_without_styles(self, make_ctx: Any) -> None:
        ctx = make_ctx(
            "/src/X.vue",
            text="<script>export default {}</script>",
            query={"type": "style"},
        )
        await VirtualModuleSplitter().resolve(ctx)
        assert await ctx.text() == ""
        assert ctx.type == CSS

    async def test_template_only_component_is_malformed(self, make_ctx: Any) -> None:
        ctx = make_ctx("/src/X.vue", text="<template><p>hi</p></template>")
        with pytest.raises(MalformedComponentError, match="no <script> block"):
            await VirtualModuleSplitter().resolve(ctx)

    async def test_missing_template_is_malformed(self, make_ctx: Any) -> None:
        ctx = make_ctx(
            "/src/X.vue",
            text="<script>export default {}</script>",
            query={"type": "template"},
        )
        with pytest.raises(MalformedComponentError, match="no <template> block"):
            await VirtualModuleSplitter().resolve(ctx)

    async def test_unknown_discriminator(self, make_ctx: Any) -> None:
        ctx = make_ctx("/src/X.vue", text=COMPONENT, query={"type": "docs"})
        with pytest.raises(MalformedComponentError, match="unknown sub-resource"):
            await VirtualModuleSplitter().resolve(ctx)
