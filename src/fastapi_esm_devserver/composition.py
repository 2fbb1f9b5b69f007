"""Pipeline composition — merge_pipelines(), OverrideStage, DisableStage."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi_esm_devserver.stage import PipelineStage, StageCategory

if TYPE_CHECKING:
    from fastapi_esm_devserver.pipeline import Pipeline


class OverrideStage:
    """Composition directive that replaces all stages of a given category."""

    def __init__(self, stage: PipelineStage) -> None:
        self.stage = stage
        self.category = stage.category


class DisableStage:
    """Composition directive that removes all stages of a given category."""

    def __init__(self, category: StageCategory) -> None:
        self.category = category


def merge_pipelines(*pipelines: Pipeline) -> Pipeline:
    """Merge multiple pipelines with last-writer-wins by category.

    Later pipelines' stage groups replace earlier pipelines' groups for the
    same StageCategory. OverrideStage and DisableStage directives are
    processed during merge. Hooks of every pipeline are kept in order.
    """
    from fastapi_esm_devserver.pipeline import Pipeline

    category_groups: dict[StageCategory, list[PipelineStage]] = {}
    debug = False
    merged = Pipeline()

    for pipeline in pipelines:
        debug = debug or pipeline._debug
        for hook in pipeline._hooks:
            merged.add_hook(hook)

        # Collect this pipeline's contributions per category
        pipeline_categories: dict[StageCategory, list[PipelineStage]] = {}
        directives: list[OverrideStage | DisableStage] = []

        for item in pipeline._items:
            if isinstance(item, (OverrideStage, DisableStage)):
                directives.append(item)
            elif isinstance(item, Pipeline):
                for stage in item.stages():
                    pipeline_categories.setdefault(stage.category, []).append(stage)
            elif isinstance(item, PipelineStage):
                pipeline_categories.setdefault(item.category, []).append(item)

        for cat, stages in pipeline_categories.items():
            category_groups[cat] = stages

        for directive in directives:
            if isinstance(directive, OverrideStage):
                category_groups[directive.category] = [directive.stage]
            elif isinstance(directive, DisableStage):
                category_groups.pop(directive.category, None)

    for cat in sorted(category_groups.keys(), key=lambda c: c.order):
        merged.add(*category_groups[cat])
    merged._debug = debug

    return merged
