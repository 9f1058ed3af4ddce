"""Build the owned-dependency graph of a Python module, with layer and depth indexes."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from pkgdeps.core.filters import PSEUDO_IMPORTS, FilterPolicy
from pkgdeps.core.parser import PackageInfo

logger = logging.getLogger(__name__)

Resolver = Callable[[str], PackageInfo]
VisitCallback = Callable[[int, str], None]


@dataclass(frozen=True)
class DependencyGraph:
    """
    Result of one traversal from a root module.

    deps maps each expanded module to its owned dependencies in import order.
    layers is the shallowest layer each module was reached at (root = 0),
    depth the longest chain of owned dependencies below it (leaf = 0) and
    num_deps the number of direct owned dependencies.
    """

    root: str
    deps: dict[str, list[str]] = field(default_factory=dict)
    layers: dict[str, int] = field(default_factory=dict)
    depth: dict[str, int] = field(default_factory=dict)
    num_deps: dict[str, int] = field(default_factory=dict)
    max_layer: int = 0
    max_deps: int = 0
    packages: dict[str, PackageInfo] = field(default_factory=dict)
    visits: int = 0

    def dependencies_of(self, import_path: str) -> list[str]:
        return self.deps.get(import_path, [])

    def to_dict(self) -> dict:
        """Serialize to a JSON-friendly dict."""
        return {
            "root": self.root,
            "max_layer": self.max_layer,
            "max_deps": self.max_deps,
            "packages": {
                name: {
                    "deps": list(self.deps.get(name, [])),
                    "layer": self.layers.get(name),
                    "depth": self.depth.get(name),
                    "num_deps": self.num_deps.get(name),
                    "path": str(info.path) if info.path else None,
                }
                for name, info in sorted(self.packages.items())
            },
        }


class _GraphBuilder:
    """Mutable traversal state; frozen into a DependencyGraph when done."""

    def __init__(
        self,
        resolver: Resolver,
        policy: FilterPolicy,
        on_visit: VisitCallback | None,
    ) -> None:
        self.resolver = resolver
        self.policy = policy
        self.on_visit = on_visit
        self.deps: dict[str, list[str]] = {}
        self.layers: dict[str, int] = {}
        self.depth: dict[str, int] = {}
        self.num_deps: dict[str, int] = {}
        self.packages: dict[str, PackageInfo] = {}
        self.max_layer = 0
        self.max_deps = 0
        self.progress = 0

    def analyze(self, info: PackageInfo, layer: int) -> int:
        """Visit info at the given layer and return its depth."""
        self.progress += 1
        if self.on_visit is not None:
            self.on_visit(self.progress, info.import_path)

        if layer > self.max_layer:
            self.max_layer = layer
        path = info.import_path
        seen = self.layers.get(path)
        if seen is not None and layer >= seen:
            # Already reached at this layer or a shallower one. A module still
            # being expanded (import cycle) has no depth yet and counts as 0.
            return self.depth.get(path, 0)

        self.layers[path] = layer
        self.packages[path] = info

        ours: list[PackageInfo] = []
        for name in info.imports:
            if name in PSEUDO_IMPORTS:
                continue
            inner = self.resolver(name)
            if self.policy.is_excluded(inner):
                logger.debug("%s: skipping %s", path, inner.import_path)
                continue
            ours.append(inner)

        self.num_deps[path] = len(ours)
        if len(ours) > self.max_deps:
            self.max_deps = len(ours)
        self.deps[path] = [p.import_path for p in ours]

        our_depth = 0
        for inner in ours:
            d = self.analyze(inner, layer + 1)
            if d > our_depth:
                our_depth = d
        if ours:
            our_depth += 1
        self.depth[path] = our_depth
        return our_depth

    def freeze(self, root: str) -> DependencyGraph:
        return DependencyGraph(
            root=root,
            deps=self.deps,
            layers=self.layers,
            depth=self.depth,
            num_deps=self.num_deps,
            max_layer=self.max_layer,
            max_deps=self.max_deps,
            packages=self.packages,
            visits=self.progress,
        )


def build_dependency_graph(
    root: str | PackageInfo,
    *,
    resolver: Resolver,
    policy: FilterPolicy | None = None,
    on_visit: VisitCallback | None = None,
) -> DependencyGraph:
    """
    Build the dependency graph reachable from a root module.

    Walks imports depth-first. A module is expanded again only when it is
    reached through a strictly shallower path than before; otherwise its
    memoized depth is reused. When several paths reach a module at the same
    layer, the first one in traversal order wins.

    Args:
        root: Import path of the root module, or its already resolved PackageInfo.
        resolver: Callable mapping an import path to a PackageInfo; raises
            ResolutionError when the path cannot be resolved.
        policy: Exclusion rules. Defaults to excluding the standard library and
            nothing else.
        on_visit: Optional progress callback, called as on_visit(count, import_path)
            for every visit including short-circuited revisits.

    Returns:
        DependencyGraph for the root.

    Raises:
        ResolutionError: the first import that cannot be resolved. No partial
            graph is returned.
    """
    info = resolver(root) if isinstance(root, str) else root
    if policy is None:
        policy = FilterPolicy(root=info.import_path)
    builder = _GraphBuilder(resolver, policy, on_visit)
    builder.analyze(info, 0)
    logger.debug(
        "%s: %d modules, %d visits, max layer %d",
        info.import_path,
        len(builder.layers),
        builder.progress,
        builder.max_layer,
    )
    return builder.freeze(info.import_path)
