"""PipelineHook base and the request logging hook."""

from __future__ import annotations

import logging

from fastapi_esm_devserver.context import RequestContext
from fastapi_esm_devserver.exceptions import DevServerException
from fastapi_esm_devserver.stage import PipelineStage
from fastapi_esm_devserver.trace import PipelineTrace

logger = logging.getLogger(__name__)


class PipelineHook:
    """Lifecycle callbacks around a request. All methods are no-op by default.

    ``on_stage`` runs after every stage, with the error that stopped the
    chain or ``None``. ``on_pipeline_end`` runs even when a stage failed.
    """

    async def on_pipeline_start(self, ctx: RequestContext) -> None:
        pass

    async def on_pipeline_end(self, ctx: RequestContext) -> None:
        pass

    async def on_stage(
        self,
        ctx: RequestContext,
        stage: PipelineStage,
        error: DevServerException | None,
    ) -> None:
        pass


class LoggingHook(PipelineHook):
    """Logs every stage outcome at DEBUG level.

    In debug mode the content type history of the request is logged when the
    pipeline ends, e.g. ``/src/App.vue: StaticResponder=text/x-vue,
    VirtualModuleSplitter=application/javascript``.
    """

    async def on_stage(
        self,
        ctx: RequestContext,
        stage: PipelineStage,
        error: DevServerException | None,
    ) -> None:
        if error is None:
            logger.debug("%s %s -> %s", type(stage).__name__, ctx.path, ctx.type)
        else:
            logger.debug("%s %s aborted: %s", type(stage).__name__, ctx.path, error)

    async def on_pipeline_end(self, ctx: RequestContext) -> None:
        trace = ctx.state.get("trace")
        if not isinstance(trace, PipelineTrace):
            return
        history = ", ".join(f"{name}={type_}" for name, type_ in trace.type_changes)
        logger.debug(
            "%s: %s (%s, %.2fms)", ctx.path, history, trace.outcome, trace.total_duration_ms
        )
