"""Tests for the DevServerException hierarchy."""

from __future__ import annotations

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


class TestHierarchy:
    def test_all_derive_from_base(self) -> None:
        for cls in (
            StageAbort,
            NotFoundError,
            ResolutionError,
            MalformedComponentError,
            TemplateCompileError,
            BodyConsumedError,
            LockfileError,
            StageInternalError,
        ):
            assert issubclass(cls, DevServerException)

    def test_only_aborts_carry_status(self) -> None:
        assert issubclass(NotFoundError, StageAbort)
        assert not issubclass(ResolutionError, StageAbort)
        assert not issubclass(MalformedComponentError, StageAbort)

    def test_template_errors_are_component_errors(self) -> None:
        assert issubclass(TemplateCompileError, MalformedComponentError)


class TestDetails:
    def test_not_found(self) -> None:
        exc = NotFoundError("/missing.js")
        assert exc.status_code == 404
        assert exc.path == "/missing.js"
        assert exc.detail == "Not found: /missing.js"

    def test_stage_abort_default_status(self) -> None:
        assert StageAbort("bad").status_code == 400

    def test_resolution_error(self) -> None:
        exc = ResolutionError("vue", "no manifest")
        assert exc.specifier == "vue"
        assert str(exc) == "Cannot resolve 'vue': no manifest"

    def test_template_compile_error_names_component(self) -> None:
        exc = TemplateCompileError("/src/App.vue", "unclosed tag <div>")
        assert exc.detail == "/src/App.vue: unclosed tag <div>"

    def test_internal_error_keeps_cause(self) -> None:
        cause = ValueError("x")
        assert StageInternalError("wrapped", cause=cause).cause is cause
