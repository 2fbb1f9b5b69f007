"""run_pipeline() — executes a resolved pipeline against one request context."""

from __future__ import annotations

import time

from fastapi_esm_devserver.context import RequestContext
from fastapi_esm_devserver.exceptions import (
    DevServerException,
    StageInternalError,
)
from fastapi_esm_devserver.pipeline import ResolvedPipeline
from fastapi_esm_devserver.stage import PipelineStage
from fastapi_esm_devserver.trace import PipelineTrace


async def run_pipeline(
    resolved: ResolvedPipeline, ctx: RequestContext
) -> RequestContext:
    """Run every stage in order; the first failure aborts the rest.

    ``StageAbort`` and other ``DevServerException`` subclasses propagate
    unchanged. Anything else is wrapped in ``StageInternalError``.
    """
    if resolved.debug:
        return await _run_traced(resolved, ctx)

    for hook in resolved.hooks:
        await hook.on_pipeline_start(ctx)

    try:
        for stage in resolved.stages:
            try:
                await stage.resolve(ctx)
            except DevServerException as exc:
                for hook in resolved.hooks:
                    await hook.on_stage(ctx, stage, exc)
                raise
            except Exception as exc:
                wrapped = _wrap(stage, exc)
                for hook in resolved.hooks:
                    await hook.on_stage(ctx, stage, wrapped)
                raise wrapped from exc
            else:
                for hook in resolved.hooks:
                    await hook.on_stage(ctx, stage, None)
    finally:
        for hook in resolved.hooks:
            await hook.on_pipeline_end(ctx)

    return ctx


async def _run_traced(
    resolved: ResolvedPipeline, ctx: RequestContext
) -> RequestContext:
    trace = PipelineTrace()
    ctx.state["trace"] = trace

    for hook in resolved.hooks:
        await hook.on_pipeline_start(ctx)

    try:
        for stage in resolved.stages:
            stage_started = time.perf_counter()
            try:
                await stage.resolve(ctx)
            except DevServerException as exc:
                trace.record(stage, ctx, stage_started, exc)
                trace.finish(exc)
                for hook in resolved.hooks:
                    await hook.on_stage(ctx, stage, exc)
                raise
            except Exception as exc:
                wrapped = _wrap(stage, exc)
                trace.record(stage, ctx, stage_started, wrapped)
                trace.finish(wrapped)
                for hook in resolved.hooks:
                    await hook.on_stage(ctx, stage, wrapped)
                raise wrapped from exc
            trace.record(stage, ctx, stage_started)
            for hook in resolved.hooks:
                await hook.on_stage(ctx, stage, None)
        trace.finish()
    finally:
        for hook in resolved.hooks:
            await hook.on_pipeline_end(ctx)

    return ctx


def _wrap(stage: PipelineStage, exc: Exception) -> StageInternalError:
    return StageInternalError(f"{type(stage).__name__} failed: {exc}", cause=exc)
