"""PackageStoreIndex — package identifiers read once from pnpm-lock.yaml."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

import yaml

from fastapi_esm_devserver.exceptions import LockfileError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PackageStoreIndex:
    """Ordered, read-only sequence of fully-qualified package identifiers.

    Identifiers look like ``/vue@3.4.3`` (lock file v6) or
    ``@vue/server-renderer@3.4.3(vue@3.4.3)`` (lock file v9), in lock file
    order.
    """

    entries: tuple[str, ...]

    @classmethod
    def parse(cls, text: str) -> PackageStoreIndex:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise LockfileError(f"Malformed lock file: {exc}") from exc
        if not isinstance(data, dict):
            raise LockfileError("Malformed lock file: expected a mapping")

        # v9 lock files carry peer suffixes on snapshot keys only
        packages = data.get("snapshots") or data.get("packages") or {}
        if not isinstance(packages, dict):
            raise LockfileError("Malformed lock file: 'packages' is not a mapping")
        return cls(entries=tuple(str(key) for key in packages))

    @classmethod
    def load(cls, path: Path) -> PackageStoreIndex | None:
        """Read the lock file at ``path``, or return None when there is none."""
        if not path.is_file():
            logger.debug("No lock file at %s, using flat node_modules", path)
            return None
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise LockfileError(f"Cannot read {path}: {exc}") from exc
        index = cls.parse(text)
        logger.info("Loaded %d packages from %s", len(index), path.name)
        return index

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries)
