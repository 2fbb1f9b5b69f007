"""AssetInliner — exposes source images as data URI modules."""

from __future__ import annotations

import base64

from fastapi_esm_devserver.body import TextBody
from fastapi_esm_devserver.context import RequestContext
from fastapi_esm_devserver.stage import JAVASCRIPT, PipelineStage, StageCategory

SOURCE_SEGMENT = "/src/"


def data_uri_module(mime_type: str, data: bytes) -> str:
    payload = base64.b64encode(data).decode("ascii")
    return f'export default "data:{mime_type};base64,{payload}"'


class AssetInliner(PipelineStage):
    """Inlines images under the source segment; public images pass through."""

    category = StageCategory.ASSET

    def __init__(self, source_segment: str = SOURCE_SEGMENT) -> None:
        self._source_segment = source_segment

    async def resolve(self, ctx: RequestContext) -> None:
        if not ctx.type.startswith("image/") or self._source_segment not in ctx.path:
            return
        mime_type = ctx.type
        ctx.body = TextBody(data_uri_module(mime_type, await ctx.read()))
        ctx.type = JAVASCRIPT
