"""Core library: module resolution, import parsing, graph building and rendering."""

from pkgdeps.core.display import DISPLAY_MODES, render_lines, short_name
from pkgdeps.core.filters import FilterPolicy, PSEUDO_IMPORTS
from pkgdeps.core.finder import (
    find_module_spec,
    list_submodules,
    ModuleResolver,
    ResolutionError,
)
from pkgdeps.core.graph import DependencyGraph, build_dependency_graph
from pkgdeps.core.parser import ImportRef, PackageInfo, parse_imports

__all__ = [
    "DISPLAY_MODES",
    "render_lines",
    "short_name",
    "FilterPolicy",
    "PSEUDO_IMPORTS",
    "find_module_spec",
    "list_submodules",
    "ModuleResolver",
    "ResolutionError",
    "DependencyGraph",
    "build_dependency_graph",
    "ImportRef",
    "PackageInfo",
    "parse_imports",
]
