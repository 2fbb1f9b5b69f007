"""Pipeline — stage slots and the frozen plan a request runs through."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

from fastapi_esm_devserver.stage import PipelineStage, StageCategory

if TYPE_CHECKING:
    from fastapi_esm_devserver.composition import DisableStage, OverrideStage
    from fastapi_esm_devserver.hooks import PipelineHook

PipelineItem = Union[PipelineStage, "Pipeline", "OverrideStage", "DisableStage"]


@dataclass(frozen=True)
class ResolvedPipeline:
    """Execution plan: stages in category order, one per built-in slot.

    Construction fails with ``ValueError`` when a stage would run before one
    of an earlier category, or when a built-in slot is filled twice.
    """

    stages: tuple[PipelineStage, ...]
    hooks: tuple[PipelineHook, ...] = ()
    debug: bool = False

    def __post_init__(self) -> None:
        previous: PipelineStage | None = None
        for stage in self.stages:
            if previous is not None:
                if stage.category.order < previous.category.order:
                    raise ValueError(
                        f"{_name(stage)} ({stage.category.name}) cannot run after "
                        f"{_name(previous)} ({previous.category.name})"
                    )
                if stage.category is previous.category and stage.category.exclusive:
                    raise ValueError(
                        f"{stage.category.name} slot filled by both "
                        f"{_name(previous)} and {_name(stage)}"
                    )
            previous = stage

    def slot(self, category: StageCategory) -> PipelineStage | None:
        """The stage filling a built-in ``category``, if any."""
        return next((s for s in self.stages if s.category is category), None)

    @property
    def stage_names(self) -> list[str]:
        return [_name(stage) for stage in self.stages]


class Pipeline:
    """Mutable builder for a ``ResolvedPipeline``.

    Items may be stages, nested pipelines or composition directives; the
    directives only take effect through ``merge_pipelines``.
    """

    def __init__(self, *items: PipelineItem, debug: bool = False) -> None:
        self._items: list[PipelineItem] = list(items)
        self._hooks: list[PipelineHook] = []
        self._debug = debug
        self._resolved: ResolvedPipeline | None = None

    def add(self, *items: PipelineItem) -> Pipeline:
        self._items.extend(items)
        self._resolved = None
        return self

    def add_hook(self, hook: PipelineHook) -> Pipeline:
        self._hooks.append(hook)
        self._resolved = None
        return self

    def resolve(self) -> ResolvedPipeline:
        if self._resolved is None:
            slots: dict[StageCategory, list[PipelineStage]] = {}
            for stage in self.stages():
                slots.setdefault(stage.category, []).append(stage)
            ordered = [
                stage
                for category in sorted(slots, key=lambda c: c.order)
                for stage in slots[category]
            ]
            self._resolved = ResolvedPipeline(
                stages=tuple(ordered),
                hooks=tuple(self._hooks),
                debug=self._debug,
            )
        return self._resolved

    def stages(self) -> Iterator[PipelineStage]:
        """Stages in registration order, nested pipelines expanded in place."""
        for item in self._items:
            if isinstance(item, Pipeline):
                yield from item.stages()
            elif isinstance(item, PipelineStage):
                yield item


def _name(stage: PipelineStage) -> str:
    return type(stage).__name__
