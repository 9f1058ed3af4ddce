"""Public API: use pkgdeps from Python or from other tools."""

from __future__ import annotations

import json
from pathlib import Path

from pkgdeps.core.display import (
    generate_dot,
    generate_mermaid,
    render_lines,
)
from pkgdeps.core.filters import FilterPolicy
from pkgdeps.core.finder import ModuleResolver, ResolutionError, list_submodules
from pkgdeps.core.graph import DependencyGraph, VisitCallback, build_dependency_graph
from pkgdeps.core.parser import PackageInfo

__all__ = [
    "build_graph",
    "get_package_info",
    "list_package_modules",
    "render",
    "DependencyGraph",
    "PackageInfo",
    "ResolutionError",
]


def get_package_info(
    import_path: str,
    *,
    search_paths: list[Path] | None = None,
) -> PackageInfo:
    """
    Get the resolved import path, direct imports and stdlib flag of a module.

    The module is located on search_paths and sys.path and its source parsed;
    it is never imported. Raises ResolutionError if it cannot be found or parsed.
    """
    return ModuleResolver(search_paths=search_paths)(import_path)


def list_package_modules(
    import_path: str,
    *,
    search_paths: list[Path] | None = None,
) -> list[str]:
    """List the direct submodules of a package (empty for a plain module)."""
    return list_submodules(import_path, search_paths=search_paths)


def build_graph(
    root_package: str,
    *,
    include_stdlib: bool = False,
    include_third_party: bool = False,
    third_party: list[str] | None = None,
    search_paths: list[Path] | None = None,
    on_visit: VisitCallback | None = None,
) -> DependencyGraph:
    """
    Build the internal dependency graph of a module or package.

    Args:
        root_package: Dotted import path of the root.
        include_stdlib: Keep standard library modules in the graph.
        include_third_party: Keep installed third-party modules in the graph.
        third_party: Extra top-level names to treat as third-party.
        search_paths: Directories searched before sys.path.
        on_visit: Optional progress callback, on_visit(count, import_path).

    Returns:
        DependencyGraph rooted at root_package.

    Raises:
        ResolutionError: if the root or any owned import cannot be resolved.
    """
    resolver = ModuleResolver(search_paths=search_paths)
    root = resolver(root_package)
    policy = FilterPolicy.for_root(
        root.import_path,
        include_stdlib=include_stdlib,
        include_third_party=include_third_party,
        extra_third_party=third_party,
    )
    return build_dependency_graph(root, resolver=resolver, policy=policy, on_visit=on_visit)


def render(
    graph: DependencyGraph,
    mode: str = "deps",
    *,
    fmt: str = "text",
    shorten: bool = False,
) -> str:
    """
    Render a graph as text.

    fmt "text" gives the display mode body (deps, deep, layers, depth, count)
    with its headers; "json", "dot" and "mermaid" export the whole graph.
    """
    if fmt == "text":
        return "\n".join(render_lines(graph, mode, shorten=shorten))
    if fmt == "json":
        return json.dumps(graph.to_dict(), indent=2)
    if fmt == "dot":
        return generate_dot(graph, title=f"{graph.root} dependencies", shorten=shorten)
    if fmt == "mermaid":
        return generate_mermaid(graph, title=f"{graph.root} dependencies", shorten=shorten)
    raise ValueError(f"unknown format: {fmt!r}")
