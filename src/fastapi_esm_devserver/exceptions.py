"""DevServerException hierarchy for pipeline aborts and failures."""

from __future__ import annotations


class DevServerException(Exception):
    """Base for all dev server exceptions."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class StageAbort(DevServerException):
    """Controlled short-circuit of the pipeline with an HTTP status code."""

    def __init__(self, detail: str, *, status_code: int = 400) -> None:
        super().__init__(detail)
        self.status_code = status_code


class NotFoundError(StageAbort):
    """No static file matches the requested path (404)."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Not found: {path}", status_code=404)
        self.path = path


class ResolutionError(DevServerException):
    """A bare specifier cannot be mapped to an installed package."""

    def __init__(self, specifier: str, reason: str) -> None:
        super().__init__(f"Cannot resolve '{specifier}': {reason}")
        self.specifier = specifier
        self.reason = reason


class MalformedComponentError(DevServerException):
    """A component file lacks a block the requested sub-resource needs."""


class TemplateCompileError(MalformedComponentError):
    """The template block of a component cannot be compiled."""

    def __init__(self, id: str, message: str) -> None:
        super().__init__(f"{id}: {message}")
        self.id = id
        self.message = message


class BodyConsumedError(DevServerException):
    """A streamed body was drained a second time."""

    def __init__(self, detail: str = "Body stream already consumed") -> None:
        super().__init__(detail)


class LockfileError(DevServerException):
    """The package lock file exists but cannot be read."""


class StageInternalError(DevServerException):
    """Engine-level error wrapping unexpected exceptions."""

    def __init__(self, detail: str, *, cause: Exception | None = None) -> None:
        super().__init__(detail)
        self.cause = cause
