"""StyleWrapper — turns CSS into a module that injects it on import."""

from __future__ import annotations

import json

from fastapi_esm_devserver.body import TextBody
from fastapi_esm_devserver.context import RequestContext
from fastapi_esm_devserver.stage import CSS, JAVASCRIPT, PipelineStage, StageCategory


def style_module(css: str) -> str:
    """JavaScript that appends a ``<style>`` element and exports the CSS text."""
    literal = json.dumps(css.replace("\r", "").replace("\n", ""))
    return (
        f"const css = {literal}\n"
        "const styleEl = document.createElement('style')\n"
        "styleEl.setAttribute('type', 'text/css')\n"
        "styleEl.innerHTML = css\n"
        "document.head.appendChild(styleEl)\n"
        "export default css"
    )


class StyleWrapper(PipelineStage):
    """Wraps CSS bodies. Every import injects a new style element."""

    category = StageCategory.STYLE

    async def resolve(self, ctx: RequestContext) -> None:
        if ctx.type != CSS:
            return
        ctx.body = TextBody(style_module(await ctx.text()))
        ctx.type = JAVASCRIPT
