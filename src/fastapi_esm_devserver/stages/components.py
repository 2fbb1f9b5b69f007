"""VirtualModuleSplitter — serves a component file as three virtual modules."""

from __future__ import annotations

import logging
import re

from fastapi_esm_devserver._types import CompileCallback, ParseCallback
from fastapi_esm_devserver.body import TextBody
from fastapi_esm_devserver.context import RequestContext
from fastapi_esm_devserver.exceptions import MalformedComponentError
from fastapi_esm_devserver.sfc.compiler import compile_template
from fastapi_esm_devserver.sfc.parser import ComponentDescriptor, parse_component
from fastapi_esm_devserver.stage import CSS, JAVASCRIPT, PipelineStage, StageCategory

logger = logging.getLogger(__name__)

COMPONENT_SUFFIX = ".vue"
TEMPLATE = "template"
STYLE = "style"

_EXPORT_DEFAULT = re.compile(r"export\s+default\s+")


def script_module(path: str, descriptor: ComponentDescriptor) -> str:
    """Main module: the script block wired to its template and style modules."""
    if descriptor.script is None:
        raise MalformedComponentError(f"{path}: component has no <script> block")
    code = _EXPORT_DEFAULT.sub("const __script = ", descriptor.script.content)
    if not code.endswith("\n"):
        code += "\n"
    return (
        code
        + f'import {{ render as __render }} from "{path}?type={TEMPLATE}"\n'
        + f'import "{path}?type={STYLE}"\n'
        + "__script.render = __render\n"
        + "export default __script"
    )


def style_content(descriptor: ComponentDescriptor) -> str:
    return "".join(style.content for style in descriptor.styles)


class VirtualModuleSplitter(PipelineStage):
    """Splits ``.vue`` files into script, template and style sub-resources.

    The ``type`` query parameter selects the sub-resource: none for the main
    module, ``template`` for the compiled render function and ``style`` for
    the concatenated style blocks.
    """

    category = StageCategory.COMPONENT

    def __init__(
        self,
        *,
        parse: ParseCallback = parse_component,
        compile: CompileCallback = compile_template,
    ) -> None:
        self._parse = parse
        self._compile = compile

    async def resolve(self, ctx: RequestContext) -> None:
        if not ctx.path.endswith(COMPONENT_SUFFIX):
            return

        descriptor = self._parse(await ctx.text())
        discriminator = ctx.discriminator

        if discriminator is None:
            code = script_module(ctx.path, descriptor)
            ctx.type = JAVASCRIPT
        elif discriminator == TEMPLATE:
            if descriptor.template is None:
                raise MalformedComponentError(
                    f"{ctx.path}: component has no <template> block"
                )
            code = self._compile(descriptor.template.content, ctx.path)
            ctx.type = JAVASCRIPT
        elif discriminator == STYLE:
            code = style_content(descriptor)
            ctx.type = CSS
        else:
            raise MalformedComponentError(
                f"{ctx.path}: unknown sub-resource type '{discriminator}'"
            )

        logger.debug("Split %s (%s)", ctx.path, discriminator or "script")
        ctx.body = TextBody(code)
