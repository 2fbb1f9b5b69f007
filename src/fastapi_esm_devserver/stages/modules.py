"""Package resolution — PackageResolver and the ModulePathRewrite stage."""

from __future__ import annotations

import json
import logging
import posixpath
import re
from pathlib import Path

import anyio.to_thread

from fastapi_esm_devserver.context import RequestContext
from fastapi_esm_devserver.exceptions import ResolutionError
from fastapi_esm_devserver.lockfile import PackageStoreIndex
from fastapi_esm_devserver.stage import PipelineStage, StageCategory

logger = logging.getLogger(__name__)

MODULES_PREFIX = "/@modules/"


def split_specifier(specifier: str) -> tuple[str, str]:
    """Split a bare specifier into package name and subpath.

    >>> split_specifier("@vue/shared/dist/x.js")
    ('@vue/shared', 'dist/x.js')
    """
    segments = specifier.strip("/").split("/")
    count = 2 if segments[0].startswith("@") else 1
    return "/".join(segments[:count]), "/".join(segments[count:])


def store_directory_name(entry: str) -> str:
    """Map a lock file identifier to its directory name in the pnpm store.

    ``/@scope/name@1.0.0(peer@2.0.0)`` becomes ``@scope+name@1.0.0_peer@2.0.0``.
    """
    if entry.startswith("/"):
        entry = entry[1:]
    return entry.replace("/", "+").replace("(", "_").replace(")", "")


class PackageResolver:
    """Maps bare module specifiers to module entry files on disk.

    With no ``index`` the flat ``node_modules`` layout is assumed. With an
    index, the package directory lives under the content-addressed store,
    ``node_modules/.pnpm/<name@version>/node_modules/<name>``.
    """

    def __init__(
        self,
        root: Path,
        index: PackageStoreIndex | None = None,
        *,
        modules_dir: str = "node_modules",
        store_dir: str = ".pnpm",
    ) -> None:
        self._root = root
        self._index = index
        self._modules_dir = modules_dir
        self._store_dir = store_dir

    @property
    def index(self) -> PackageStoreIndex | None:
        return self._index

    def find_entry(self, name: str) -> str | None:
        """First index entry for the package ``name``, in lock file order."""
        if self._index is None:
            return None
        pattern = re.compile(rf"^/?{re.escape(name)}@")
        for entry in self._index:
            if pattern.match(entry):
                return entry
        return None

    def package_directory(self, specifier: str) -> str:
        """Logical directory of the package, relative to the project root."""
        name, _ = split_specifier(specifier)
        if self._index is None:
            return posixpath.join(self._modules_dir, name)

        entry = self.find_entry(name)
        if entry is None:
            raise ResolutionError(specifier, "no matching entry in the lock file")
        return posixpath.join(
            self._modules_dir,
            self._store_dir,
            store_directory_name(entry),
            self._modules_dir,
            name,
        )

    def resolve(self, specifier: str) -> str:
        """Return the logical path of the file the specifier refers to."""
        directory = self.package_directory(specifier)
        _, subpath = split_specifier(specifier)
        if subpath:
            return "/" + posixpath.join(directory, subpath)

        manifest_path = self._root / directory / "package.json"
        try:
            manifest = json.loads(manifest_path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise ResolutionError(specifier, f"{manifest_path} not found") from exc
        except (OSError, ValueError) as exc:
            raise ResolutionError(specifier, f"unreadable manifest: {exc}") from exc

        entry_field = manifest.get("module") if isinstance(manifest, dict) else None
        if not isinstance(entry_field, str) or not entry_field:
            raise ResolutionError(specifier, "manifest declares no 'module' entry")
        return "/" + posixpath.normpath(posixpath.join(directory, entry_field))


class ModulePathRewrite(PipelineStage):
    """Replaces ``/@modules/<specifier>`` paths with the resolved module file."""

    category = StageCategory.MODULE_PATH

    def __init__(self, resolver: PackageResolver) -> None:
        self._resolver = resolver

    async def resolve(self, ctx: RequestContext) -> None:
        if not ctx.path.startswith(MODULES_PREFIX):
            return
        specifier = ctx.path[len(MODULES_PREFIX) :]
        resolved = await anyio.to_thread.run_sync(self._resolver.resolve, specifier)
        logger.debug("Resolved %s -> %s", specifier, resolved)
        ctx.path = resolved
