"""Decide which resolved modules count as the project's own ("owned") dependencies."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from importlib.metadata import packages_distributions

from pkgdeps.core.parser import PackageInfo

# Compiler directives that look like imports; never resolved.
PSEUDO_IMPORTS = frozenset({"__future__"})

THIRD_PARTY_ENV = "PKGDEPS_THIRD_PARTY"


def _env_roots(env_var: str) -> list[str]:
    """Split an environment variable on commas or os.pathsep."""
    value = os.environ.get(env_var, "")
    if not value:
        return []
    return [p.strip() for p in re.split(rf"[,{re.escape(os.pathsep)}]", value) if p.strip()]


def installed_top_level_names() -> set[str]:
    """Top-level import names provided by installed distributions."""
    return {name for name in packages_distributions() if name and not name.startswith("_")}


def default_third_party_roots(root: str, extra: list[str] | None = None) -> frozenset[str]:
    """
    Known third-party roots: installed distributions, PKGDEPS_THIRD_PARTY and extra.

    The root's own top-level name is never included, so an installed project
    can be analysed from one of its subpackages.
    """
    names = installed_top_level_names()
    names.update(_env_roots(THIRD_PARTY_ENV))
    names.update(extra or [])
    names.discard(root.partition(".")[0])
    return frozenset(names)


@dataclass(frozen=True)
class FilterPolicy:
    """Exclusion rules for one analysis run."""

    root: str
    include_stdlib: bool = False
    include_third_party: bool = False
    third_party_roots: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def for_root(
        cls,
        root: str,
        *,
        include_stdlib: bool = False,
        include_third_party: bool = False,
        extra_third_party: list[str] | None = None,
    ) -> FilterPolicy:
        """Build a policy with the default third-party roots for this environment."""
        return cls(
            root=root,
            include_stdlib=include_stdlib,
            include_third_party=include_third_party,
            third_party_roots=default_third_party_roots(root, extra_third_party),
        )

    def is_stdlib(self, info: PackageInfo) -> bool:
        if self.include_stdlib:
            return False
        return info.is_stdlib

    def is_third_party(self, info: PackageInfo) -> bool:
        if self.include_third_party:
            return False
        path = info.import_path
        if path.startswith(self.root):
            return False
        for prefix in self.third_party_roots:
            if path == prefix or path.startswith(prefix + "."):
                return True
        return False

    def is_excluded(self, info: PackageInfo) -> bool:
        return self.is_stdlib(info) or self.is_third_party(info)
