"""ImportRewriter — points bare import specifiers at the module resolver."""

from __future__ import annotations

import re

from fastapi_esm_devserver.body import TextBody
from fastapi_esm_devserver.context import RequestContext
from fastapi_esm_devserver.stage import JAVASCRIPT, PipelineStage, StageCategory
from fastapi_esm_devserver.stages.modules import MODULES_PREFIX

# from "x", import "x" and import("x"), when x does not start with . or /
_BARE_SPECIFIER = re.compile(
    r"""((?:\bfrom|\bimport|\bimport\s*\()\s*['"])(?![./])"""
)
_NODE_ENV = re.compile(r"(?<![\w$.])process\.env\.NODE_ENV(?![\w$])")
DEVELOPMENT = '"development"'


def rewrite_imports(code: str) -> str:
    """Prefix bare specifiers and substitute the environment mode constant.

    Pattern based: string literals inside comments or template literals that
    look like imports are rewritten too.
    """
    code = _BARE_SPECIFIER.sub(lambda m: m.group(1) + MODULES_PREFIX, code)
    return _NODE_ENV.sub(DEVELOPMENT, code)


class ImportRewriter(PipelineStage):
    """Rewrites every JavaScript body, whatever path it came from."""

    category = StageCategory.IMPORTS

    async def resolve(self, ctx: RequestContext) -> None:
        if ctx.type != JAVASCRIPT:
            return
        ctx.body = TextBody(rewrite_imports(await ctx.text()))
