"""
Custom stage examples.

Demonstrates:
- Adding a CUSTOM stage, which runs before the asset inliner
- Disabling a built-in stage category through composition
- Tracing stages per request with debug mode
- Observing every stage with a PipelineHook subclass
"""

import logging
from datetime import datetime, timezone

from fastapi_esm_devserver import (
    DevServerException,
    DevServerSettings,
    DisableStage,
    Pipeline,
    PipelineHook,
    PipelineStage,
    RequestContext,
    StageCategory,
    TextBody,
    configure_logging,
    create_app,
    default_pipeline,
    merge_pipelines,
)
from fastapi_esm_devserver.stage import JAVASCRIPT

logger = logging.getLogger("fastapi_esm_devserver.example")


# ========== Custom Banner Stage ==========


class ServedAtBanner(PipelineStage):
    """Prepends a comment with the serve time to every module."""

    category = StageCategory.CUSTOM

    async def resolve(self, ctx: RequestContext) -> None:
        if ctx.type != JAVASCRIPT:
            return
        stamp = datetime.now(timezone.utc).isoformat()
        ctx.body = TextBody(f"// served {stamp}\n" + await ctx.text())


# ========== Stage Observer ==========


class FailureWarning(PipelineHook):
    """Warns about every stage that stopped a request."""

    async def on_stage(
        self,
        ctx: RequestContext,
        stage: PipelineStage,
        error: DevServerException | None,
    ) -> None:
        if error is not None:
            logger.warning("%s failed on %s", type(stage).__name__, ctx.path)


settings = DevServerSettings(debug=True)
configure_logging("DEBUG")

# Images under /src/ are served raw instead of as data URI modules
pipeline = merge_pipelines(
    default_pipeline(settings),
    Pipeline(ServedAtBanner(), DisableStage(StageCategory.ASSET)),
).add_hook(FailureWarning())

app = create_app(settings, pipeline=pipeline)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="localhost", port=2333)
