"""Shared pytest fixtures for fastapi-esm-devserver tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from fastapi_esm_devserver.body import StreamBody, TextBody
from fastapi_esm_devserver.config import DevServerSettings
from fastapi_esm_devserver.context import RequestContext

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + bytes(range(32))

APP_VUE = """\
<template>
  <div class="app">
    <h1>{{ title }}</h1>
    <img :src="logo">
  </div>
</template>

<script>
import logo from './logo.png'

export default {
  name: 'App',
  data() {
    return { title: 'Hello', logo }
  }
}
</script>

<style>
.app { color: red; }
</style>
"""

MAIN_JS = """\
import { createApp } from 'vue'
import App from './App.vue'
import './style.css'

if (process.env.NODE_ENV !== 'production') {
  console.log('dev')
}
createApp(App).mount('#app')
"""


def write(root: Path, relative: str, content: str | bytes) -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A small front-end project with a flat node_modules layout."""
    write(tmp_path, "index.html", '<script type="module" src="/src/main.js"></script>')
    write(tmp_path, "src/main.js", MAIN_JS)
    write(tmp_path, "src/App.vue", APP_VUE)
    write(tmp_path, "src/style.css", "body {\n  margin: 0;\n}\n")
    write(tmp_path, "src/logo.png", PNG_BYTES)
    write(tmp_path, "public/favicon.png", PNG_BYTES)
    write(tmp_path, "public/robots.txt", "User-agent: *\n")
    write(
        tmp_path,
        "node_modules/vue/package.json",
        json.dumps({"name": "vue", "module": "dist/vue.runtime.esm-bundler.js"}),
    )
    write(
        tmp_path,
        "node_modules/vue/dist/vue.runtime.esm-bundler.js",
        "import { h } from '@vue/runtime-dom'\nexport { h }\n",
    )
    return tmp_path


@pytest.fixture
def png_bytes() -> bytes:
    return PNG_BYTES


@pytest.fixture
def settings(project: Path) -> DevServerSettings:
    return DevServerSettings(root=project)


@pytest.fixture
def make_ctx() -> Any:
    """Factory for request contexts with a text or streamed body."""

    def _make(
        path: str = "/",
        *,
        type: str = "",
        text: str | None = None,
        data: bytes | None = None,
        query: dict[str, str] | None = None,
    ) -> RequestContext:
        body: StreamBody | TextBody | None = None
        if text is not None:
            body = TextBody(text)
        elif data is not None:
            body = StreamBody.from_bytes(data)
        return RequestContext(path=path, query=query or {}, type=type, body=body)

    return _make

