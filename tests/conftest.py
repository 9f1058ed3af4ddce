"""Shared fixtures: lay out Python packages on disk and fake resolvers."""

from __future__ import annotations

from pathlib import Path

import pytest

from pkgdeps.core.finder import ResolutionError
from pkgdeps.core.parser import PackageInfo


@pytest.fixture
def write_modules(tmp_path: Path):
    """Write {relative_path: source} files under tmp_path and return tmp_path."""

    def _write(files: dict[str, str]) -> Path:
        for rel, source in files.items():
            target = tmp_path / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(source)
        return tmp_path

    return _write


@pytest.fixture
def fake_resolver():
    """Build an in-memory resolver from {import_path: [imports]}; records every call."""

    def _make(
        modules: dict[str, list[str]],
        stdlib: tuple[str, ...] = (),
        calls: list[str] | None = None,
    ):
        def resolver(name: str) -> PackageInfo:
            if calls is not None:
                calls.append(name)
            if name in stdlib:
                return PackageInfo(import_path=name, is_stdlib=True)
            if name not in modules:
                raise ResolutionError(name, "module not found on the search path")
            return PackageInfo(import_path=name, imports=list(modules[name]))

        return resolver

    return _make
