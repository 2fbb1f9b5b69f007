"""Tests for run_pipeline, PipelineTrace and TraceEntry."""

from __future__ import annotations

import pytest

from fastapi_esm_devserver.context import RequestContext
from fastapi_esm_devserver.exceptions import (
    MalformedComponentError,
    NotFoundError,
    StageInternalError,
)
from fastapi_esm_devserver.pipeline import Pipeline
from fastapi_esm_devserver.runner import run_pipeline
from fastapi_esm_devserver.stage import PipelineStage, StageCategory
from fastapi_esm_devserver.trace import PipelineTrace, TraceEntry


class _Recorder(PipelineStage):
    def __init__(self, category: StageCategory, name: str, type: str = "") -> None:
        self.category = category  # type: ignore[misc]
        self._name = name
        self._type = type

    async def resolve(self, ctx: RequestContext) -> None:
        ctx.state.setdefault("order", []).append(self._name)
        if self._type:
            ctx.type = self._type


class _Missing(PipelineStage):
    category = StageCategory.STATIC

    async def resolve(self, ctx: RequestContext) -> None:
        raise NotFoundError(ctx.path)


class _Malformed(PipelineStage):
    category = StageCategory.COMPONENT

    async def resolve(self, ctx: RequestContext) -> None:
        raise MalformedComponentError("no script")


class _Broken(PipelineStage):
    category = StageCategory.CUSTOM

    async def resolve(self, ctx: RequestContext) -> None:
        raise RuntimeError("boom")


class TestRunPipeline:
    async def test_runs_stages_in_category_order(self) -> None:
        pipeline = Pipeline(
            _Recorder(StageCategory.STYLE, "style"),
            _Recorder(StageCategory.STATIC, "static"),
            _Recorder(StageCategory.IMPORTS, "imports"),
        )
        ctx = await run_pipeline(pipeline.resolve(), RequestContext(path="/"))
        assert ctx.state["order"] == ["static", "imports", "style"]

    async def test_abort_skips_remaining_stages(self) -> None:
        pipeline = Pipeline(_Missing(), _Recorder(StageCategory.IMPORTS, "imports"))
        ctx = RequestContext(path="/nope")
        with pytest.raises(NotFoundError):
            await run_pipeline(pipeline.resolve(), ctx)
        assert "order" not in ctx.state

    async def test_devserver_exceptions_propagate_unchanged(self) -> None:
        with pytest.raises(MalformedComponentError):
            await run_pipeline(Pipeline(_Malformed()).resolve(), RequestContext(path="/"))

    async def test_unexpected_exception_wrapped(self) -> None:
        with pytest.raises(StageInternalError) as exc_info:
            await run_pipeline(Pipeline(_Broken()).resolve(), RequestContext(path="/"))
        assert isinstance(exc_info.value.cause, RuntimeError)
        assert "_Broken failed: boom" in exc_info.value.detail

    async def test_no_trace_without_debug(self) -> None:
        pipeline = Pipeline(_Recorder(StageCategory.STATIC, "static"))
        ctx = await run_pipeline(pipeline.resolve(), RequestContext(path="/"))
        assert "trace" not in ctx.state


class TestTraceEntry:
    def test_frozen(self) -> None:
        entry = TraceEntry(
            stage_name="StaticResponder",
            category=StageCategory.STATIC,
            duration_ms=0.5,
            outcome="OK",
        )
        with pytest.raises(AttributeError):
            entry.stage_name = "other"  # type: ignore[misc]
        assert entry.reason is None


class TestDebugTrace:
    async def test_records_type_after_each_stage(self) -> None:
        pipeline = Pipeline(
            _Recorder(StageCategory.STATIC, "static", "text/css"),
            _Recorder(StageCategory.STYLE, "style", "application/javascript"),
            debug=True,
        )
        ctx = await run_pipeline(pipeline.resolve(), RequestContext(path="/a.css"))
        trace = ctx.state["trace"]
        assert isinstance(trace, PipelineTrace)
        assert trace.outcome == "OK"
        assert [e.type_after for e in trace.entries] == [
            "text/css",
            "application/javascript",
        ]
        assert trace.stage_names == ["_Recorder", "_Recorder"]
        assert trace.total_duration_ms >= 0

    async def test_abort_recorded(self) -> None:
        pipeline = Pipeline(_Missing(), debug=True)
        ctx = RequestContext(path="/nope")
        with pytest.raises(NotFoundError):
            await run_pipeline(pipeline.resolve(), ctx)
        trace = ctx.state["trace"]
        assert trace.outcome == "ABORTED"
        assert trace.entries[0].outcome == "FAILED"
        assert trace.entries[0].reason == "Not found: /nope"

    async def test_error_recorded_and_wrapped(self) -> None:
        pipeline = Pipeline(_Broken(), debug=True)
        ctx = RequestContext(path="/")
        with pytest.raises(StageInternalError):
            await run_pipeline(pipeline.resolve(), ctx)
        trace = ctx.state["trace"]
        assert trace.outcome == "ERROR"
        assert isinstance(trace.error, StageInternalError)


class TestPipelineTrace:
    def test_type_changes_skip_unchanged_types(self) -> None:
        trace = PipelineTrace(
            entries=[
                TraceEntry("A", StageCategory.STATIC, 0.0, "OK", "text/css"),
                TraceEntry("B", StageCategory.IMPORTS, 0.0, "OK", "text/css"),
                TraceEntry("C", StageCategory.STYLE, 0.0, "OK", "application/javascript"),
            ]
        )
        assert trace.type_changes == [("A", "text/css"), ("C", "application/javascript")]

    def test_finish_classifies_outcome(self) -> None:
        trace = PipelineTrace()
        trace.finish(NotFoundError("/x"))
        assert trace.outcome == "ABORTED"
        trace.finish(MalformedComponentError("no script"))
        assert trace.outcome == "ERROR"
        trace.finish()
        assert trace.outcome == "OK"
        assert trace.error is None

    def test_record_captures_failure_reason(self) -> None:
        trace = PipelineTrace()
        ctx = RequestContext(path="/a.vue", type="text/x-vue")
        entry = trace.record(_Malformed(), ctx, 0.0, MalformedComponentError("no script"))
        assert entry.outcome == "FAILED"
        assert entry.reason == "no script"
        assert entry.type_after == "text/x-vue"
        assert trace.entries == [entry]
