"""pkgdeps: show the internal import dependencies of a Python package (library, TUI, CLI)."""

from importlib.metadata import version, PackageNotFoundError

from pkgdeps.api import (
    build_graph,
    get_package_info,
    list_package_modules,
    render,
    DependencyGraph,
    ResolutionError,
)

__all__ = [
    "build_graph",
    "get_package_info",
    "list_package_modules",
    "render",
    "DependencyGraph",
    "ResolutionError",
    "__version__",
]

try:
    __version__ = version("pkgdeps")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"  # Not installed as package
