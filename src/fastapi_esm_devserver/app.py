"""create_app() — FastAPI application serving the source tree through a pipeline."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response, StreamingResponse

from fastapi_esm_devserver._types import CompileCallback, ParseCallback
from fastapi_esm_devserver.body import StreamBody
from fastapi_esm_devserver.config import HOST, PORT, DevServerSettings
from fastapi_esm_devserver.context import RequestContext
from fastapi_esm_devserver.exceptions import DevServerException, StageAbort
from fastapi_esm_devserver.hooks import LoggingHook
from fastapi_esm_devserver.lockfile import PackageStoreIndex
from fastapi_esm_devserver.pipeline import Pipeline
from fastapi_esm_devserver.runner import run_pipeline
from fastapi_esm_devserver.stage import StageCategory
from fastapi_esm_devserver.sfc.compiler import compile_template
from fastapi_esm_devserver.sfc.parser import parse_component
from fastapi_esm_devserver.stages.assets import AssetInliner
from fastapi_esm_devserver.stages.components import VirtualModuleSplitter
from fastapi_esm_devserver.stages.imports import ImportRewriter
from fastapi_esm_devserver.stages.modules import ModulePathRewrite, PackageResolver
from fastapi_esm_devserver.stages.static import StaticResponder
from fastapi_esm_devserver.stages.styles import StyleWrapper
from fastapi_esm_devserver.trace import PipelineTrace

logger = logging.getLogger(__name__)

STAGES_HEADER = "X-Devserver-Stages"


def default_pipeline(
    settings: DevServerSettings,
    index: PackageStoreIndex | None = None,
    *,
    parse: ParseCallback = parse_component,
    compile: CompileCallback = compile_template,
) -> Pipeline:
    """The six built-in stages, in their fixed order."""
    resolver = PackageResolver(
        settings.root,
        index,
        modules_dir=settings.modules_dir,
        store_dir=settings.store_dir,
    )
    pipeline = Pipeline(
        ModulePathRewrite(resolver),
        StaticResponder(settings.search_roots),
        VirtualModuleSplitter(parse=parse, compile=compile),
        ImportRewriter(),
        StyleWrapper(),
        AssetInliner(settings.source_segment),
        debug=settings.debug,
    )
    return pipeline.add_hook(LoggingHook())


def pipeline_endpoint(pipeline: Pipeline) -> Callable[[Request], Awaitable[Response]]:
    """Return a request handler running ``pipeline`` for every GET."""
    resolved = pipeline.resolve()
    logger.debug("Pipeline: %s", " -> ".join(resolved.stage_names))
    if resolved.slot(StageCategory.STATIC) is None:
        logger.warning("Pipeline has no static stage, responses will have empty bodies")

    async def endpoint(request: Request) -> Response:
        ctx = RequestContext.from_request(request)
        try:
            await run_pipeline(resolved, ctx)
        except StageAbort as exc:
            return Response(status_code=exc.status_code, headers=_trace_headers(ctx))
        return _to_response(ctx)

    return endpoint


def _trace_headers(ctx: RequestContext) -> dict[str, str]:
    trace = ctx.state.get("trace")
    if not isinstance(trace, PipelineTrace):
        return {}
    return {STAGES_HEADER: ",".join(trace.stage_names)}


def _to_response(ctx: RequestContext) -> Response:
    headers = _trace_headers(ctx)
    if isinstance(ctx.body, StreamBody):
        return StreamingResponse(ctx.body.iterate(), media_type=ctx.type, headers=headers)
    content = ctx.body.content if ctx.body is not None else b""
    return Response(content, media_type=ctx.type or None, headers=headers)


async def _devserver_exception_handler(
    request: Request, exc: Exception
) -> PlainTextResponse:
    detail = exc.detail if isinstance(exc, DevServerException) else str(exc)
    logger.error("%s %s failed: %s", request.method, request.url.path, detail, exc_info=exc)
    return PlainTextResponse(detail, status_code=500)


def create_app(
    settings: DevServerSettings | None = None,
    *,
    pipeline: Pipeline | None = None,
    parse: ParseCallback = parse_component,
    compile: CompileCallback = compile_template,
) -> FastAPI:
    """Build the dev server application.

    The package store index is read here, once, before any request is
    served. Pass ``pipeline`` to replace the built-in stage chain.
    """
    settings = settings or DevServerSettings()
    if pipeline is None:
        index = PackageStoreIndex.load(settings.lockfile_path)
        pipeline = default_pipeline(settings, index, parse=parse, compile=compile)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("App running at http://%s:%d", HOST, PORT)
        yield

    app = FastAPI(
        title="ESM Dev Server",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.add_exception_handler(DevServerException, _devserver_exception_handler)
    app.add_api_route(
        "/{path:path}",
        pipeline_endpoint(pipeline),
        methods=["GET"],
        include_in_schema=False,
    )
    return app
