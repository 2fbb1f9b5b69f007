"""PipelineTrace — what each stage did to one request, for debug mode."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Literal

from fastapi_esm_devserver.context import RequestContext
from fastapi_esm_devserver.exceptions import DevServerException, StageAbort
from fastapi_esm_devserver.stage import PipelineStage, StageCategory


@dataclass(frozen=True)
class TraceEntry:
    """One stage run and the content type it left on the context."""

    stage_name: str
    category: StageCategory
    duration_ms: float
    outcome: Literal["OK", "FAILED"]
    type_after: str = ""
    reason: str | None = None


@dataclass
class PipelineTrace:
    """Stage-by-stage record of one request.

    ``record`` appends an entry per stage; ``finish`` closes the trace and
    classifies the failure, if any, as an abort or an error.
    """

    entries: list[TraceEntry] = field(default_factory=list)
    total_duration_ms: float = 0.0
    outcome: Literal["OK", "ABORTED", "ERROR"] = "OK"
    error: DevServerException | None = None
    started: float = field(default_factory=time.perf_counter, repr=False)

    def record(
        self,
        stage: PipelineStage,
        ctx: RequestContext,
        stage_started: float,
        error: DevServerException | None = None,
    ) -> TraceEntry:
        entry = TraceEntry(
            stage_name=type(stage).__name__,
            category=stage.category,
            duration_ms=(time.perf_counter() - stage_started) * 1000,
            outcome="OK" if error is None else "FAILED",
            type_after=ctx.type,
            reason=None if error is None else error.detail,
        )
        self.entries.append(entry)
        return entry

    def finish(self, error: DevServerException | None = None) -> None:
        self.total_duration_ms = (time.perf_counter() - self.started) * 1000
        self.error = error
        if error is None:
            self.outcome = "OK"
        elif isinstance(error, StageAbort):
            self.outcome = "ABORTED"
        else:
            self.outcome = "ERROR"

    @property
    def stage_names(self) -> list[str]:
        return [entry.stage_name for entry in self.entries]

    @property
    def type_changes(self) -> list[tuple[str, str]]:
        """``(stage, new type)`` for every stage that changed the content type."""
        changes: list[tuple[str, str]] = []
        previous = ""
        for entry in self.entries:
            if entry.type_after != previous:
                changes.append((entry.stage_name, entry.type_after))
                previous = entry.type_after
        return changes
