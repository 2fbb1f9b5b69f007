"""ESM dev server - serves a source tree to the browser as native ES modules."""

from fastapi_esm_devserver.app import create_app, default_pipeline, pipeline_endpoint
from fastapi_esm_devserver.body import StreamBody, TextBody
from fastapi_esm_devserver.composition import (
    DisableStage,
    OverrideStage,
    merge_pipelines,
)
from fastapi_esm_devserver.config import DevServerSettings
from fastapi_esm_devserver.context import RequestContext
from fastapi_esm_devserver.exceptions import (
    BodyConsumedError,
    DevServerException,
    LockfileError,
    MalformedComponentError,
    NotFoundError,
    ResolutionError,
    StageAbort,
    StageInternalError,
    TemplateCompileError,
)
from fastapi_esm_devserver.hooks import LoggingHook, PipelineHook
from fastapi_esm_devserver.lockfile import PackageStoreIndex
from fastapi_esm_devserver.logging_config import configure_logging
from fastapi_esm_devserver.pipeline import Pipeline, ResolvedPipeline
from fastapi_esm_devserver.runner import run_pipeline
from fastapi_esm_devserver.stage import PipelineStage, StageCategory
from fastapi_esm_devserver.stages import (
    AssetInliner,
    ImportRewriter,
    ModulePathRewrite,
    PackageResolver,
    StaticResponder,
    StyleWrapper,
    VirtualModuleSplitter,
)
from fastapi_esm_devserver.trace import PipelineTrace, TraceEntry

__all__ = [
    "AssetInliner",
    "BodyConsumedError",
    "DevServerException",
    "DevServerSettings",
    "DisableStage",
    "ImportRewriter",
    "LockfileError",
    "LoggingHook",
    "MalformedComponentError",
    "ModulePathRewrite",
    "NotFoundError",
    "OverrideStage",
    "PackageResolver",
    "PackageStoreIndex",
    "Pipeline",
    "PipelineHook",
    "PipelineStage",
    "PipelineTrace",
    "RequestContext",
    "ResolutionError",
    "ResolvedPipeline",
    "StageAbort",
    "StageCategory",
    "StageInternalError",
    "StaticResponder",
    "StreamBody",
    "StyleWrapper",
    "TemplateCompileError",
    "TextBody",
    "TraceEntry",
    "VirtualModuleSplitter",
    "configure_logging",
    "create_app",
    "default_pipeline",
    "merge_pipelines",
    "pipeline_endpoint",
    "run_pipeline",
]
