"""Locate Python modules on the search path and describe their imports without importing them."""

from __future__ import annotations

import logging
import pkgutil
import sys
from importlib.machinery import BuiltinImporter, FrozenImporter, ModuleSpec, PathFinder
from importlib.util import decode_source
from pathlib import Path

from pkgdeps.core.parser import PackageInfo, parse_imports

logger = logging.getLogger(__name__)

_SOURCE_SUFFIXES = (".py", ".pyw")


class ResolutionError(LookupError):
    """An import path could not be resolved to a readable module."""

    def __init__(self, import_path: str, reason: str) -> None:
        super().__init__(f"cannot resolve {import_path!r}: {reason}")
        self.import_path = import_path
        self.reason = reason


def is_stdlib_module(import_path: str) -> bool:
    """True if the top-level name belongs to the interpreter's standard distribution."""
    top = import_path.partition(".")[0]
    return top in sys.stdlib_module_names or top in sys.builtin_module_names


def _normalize_search_paths(search_paths: list[Path] | None) -> list[str]:
    """Extra search paths first, then sys.path. Deduplicated, order kept."""
    out: list[str] = []
    for p in search_paths or []:
        out.append(str(Path(p).resolve()))
    out.extend(sys.path)
    return list(dict.fromkeys(out))


def find_module_spec(
    import_path: str,
    *,
    search_paths: list[Path] | None = None,
) -> ModuleSpec | None:
    """
    Find the spec for a dotted module name.

    Searches in order:
    1. Built-in modules compiled into the interpreter.
    2. Frozen modules.
    3. search_paths, then sys.path, one name component at a time through the
       parent package's __path__. Parent packages are never imported.

    Returns None if the module is not found.
    """
    if not import_path or any(not part for part in import_path.split(".")):
        return None
    if "." not in import_path:
        spec = BuiltinImporter.find_spec(import_path) or FrozenImporter.find_spec(import_path)
        if spec is not None:
            return spec

    path = _normalize_search_paths(search_paths)
    parts = import_path.split(".")
    spec = None
    for i in range(len(parts)):
        name = ".".join(parts[: i + 1])
        spec = PathFinder.find_spec(name, path)
        if spec is None:
            return None
        if i < len(parts) - 1:
            if spec.submodule_search_locations is None:
                # Parent is a plain module, not a package
                return None
            path = list(spec.submodule_search_locations)
    return spec


def _source_path(spec: ModuleSpec) -> Path | None:
    if not spec.has_location or not spec.origin:
        return None
    origin = Path(spec.origin)
    if origin.suffix not in _SOURCE_SUFFIXES:
        # Extension modules and bytecode-only modules have no readable imports
        return None
    return origin


def _spec_path(spec: ModuleSpec) -> Path | None:
    if spec.has_location and spec.origin:
        return Path(spec.origin)
    return None


class ModuleResolver:
    """
    Resolve import paths to PackageInfo.

    Callable: resolver("pkg.mod") -> PackageInfo. Results are cached per
    instance, so one resolver should be used per analysis run.
    """

    def __init__(self, *, search_paths: list[Path] | None = None) -> None:
        self.search_paths = [Path(p) for p in search_paths] if search_paths else []
        self._specs: dict[str, ModuleSpec | None] = {}
        self._infos: dict[str, PackageInfo] = {}

    def find_spec(self, import_path: str) -> ModuleSpec | None:
        if import_path not in self._specs:
            self._specs[import_path] = find_module_spec(
                import_path, search_paths=self.search_paths
            )
        return self._specs[import_path]

    def __call__(self, import_path: str) -> PackageInfo:
        info = self._infos.get(import_path)
        if info is None:
            info = self._resolve(import_path)
            self._infos[import_path] = info
        return info

    def _resolve(self, import_path: str) -> PackageInfo:
        spec = self.find_spec(import_path)
        if spec is None:
            if is_stdlib_module(import_path):
                # Another platform's module (nt, msvcrt) or an alias such as os.path
                logger.debug("%s: standard library module not available here", import_path)
                return PackageInfo(import_path=import_path, is_stdlib=True)
            raise ResolutionError(import_path, "module not found on the search path")

        is_package = spec.submodule_search_locations is not None
        source_path = _source_path(spec)
        imports: list[str] = []
        if source_path is not None:
            try:
                source = decode_source(source_path.read_bytes())
            except OSError as e:
                raise ResolutionError(import_path, f"cannot read {source_path}: {e}") from e
            except (SyntaxError, UnicodeDecodeError) as e:
                # Bad or missing coding declaration for non-UTF-8 bytes
                raise ResolutionError(import_path, f"cannot decode {source_path}: {e}") from e
            try:
                refs = parse_imports(source, spec.name, is_package=is_package)
            except SyntaxError as e:
                raise ResolutionError(import_path, f"syntax error in {source_path}: {e}") from e
            for ref in refs:
                imports.extend(self._expand(ref.module, ref.names))
        else:
            logger.debug("%s: no Python source, treating as having no imports", import_path)

        imports = [p for p in imports if p != spec.name]
        return PackageInfo(
            import_path=spec.name,
            imports=imports,
            is_stdlib=is_stdlib_module(spec.name),
            is_package=is_package,
            path=_spec_path(spec),
        )

    def _expand(self, module: str, names: tuple[str, ...]) -> list[str]:
        """`from module import a, b`: a name that is itself a submodule becomes the dependency."""
        if not names:
            return [module]
        out: list[str] = []
        plain = False
        for name in names:
            candidate = f"{module}.{name}"
            if self.find_spec(candidate) is not None:
                out.append(candidate)
            else:
                plain = True
        if plain:
            out.insert(0, module)
        return out


def list_submodules(
    import_path: str,
    *,
    search_paths: list[Path] | None = None,
) -> list[str]:
    """
    List the direct submodules of a package, sorted by name.

    Returns an empty list for plain modules. Raises ResolutionError if the
    import path is not found.
    """
    spec = find_module_spec(import_path, search_paths=search_paths)
    if spec is None:
        raise ResolutionError(import_path, "module not found on the search path")
    if spec.submodule_search_locations is None:
        return []
    names = [
        f"{spec.name}.{info.name}"
        for info in pkgutil.iter_modules(list(spec.submodule_search_locations))
    ]
    return sorted(set(names))
