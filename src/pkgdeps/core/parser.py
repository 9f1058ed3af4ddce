"""Parse Python source for the modules it imports."""

from __future__ import annotations

import ast
import logging
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

# Exceptions that mark an import as optional when caught around it.
_OPTIONAL_IMPORT_ERRORS = ("ImportError", "ModuleNotFoundError")


@dataclass(frozen=True)
class ImportRef:
    """One import statement target: a module plus the names taken from it (for `from` imports)."""

    module: str
    names: tuple[str, ...] = ()


@dataclass
class PackageInfo:
    """What the resolver knows about one module."""

    import_path: str
    imports: list[str] = field(default_factory=list)
    is_stdlib: bool = False
    is_package: bool = False
    path: Path | None = None

    def __post_init__(self) -> None:
        # Unique, first occurrence wins
        self.imports = list(dict.fromkeys(self.imports))

    def to_dict(self) -> dict:
        """Serialize to dict for JSON output."""
        return {
            "import_path": self.import_path,
            "imports": list(self.imports),
            "is_stdlib": self.is_stdlib,
            "is_package": self.is_package,
            "path": str(self.path) if self.path else None,
        }


def _catches_import_error(handler: ast.ExceptHandler) -> bool:
    exc = handler.type
    if exc is None:
        return False
    candidates = exc.elts if isinstance(exc, ast.Tuple) else [exc]
    for c in candidates:
        name = c.id if isinstance(c, ast.Name) else getattr(c, "attr", None)
        if name in _OPTIONAL_IMPORT_ERRORS:
            return True
    return False


def _is_type_checking(test: ast.expr) -> bool:
    """`TYPE_CHECKING` or `<anything>.TYPE_CHECKING`, e.g. typing.TYPE_CHECKING."""
    if isinstance(test, ast.Name):
        return test.id == "TYPE_CHECKING"
    return isinstance(test, ast.Attribute) and test.attr == "TYPE_CHECKING"


def resolve_relative(module: str | None, level: int, module_name: str, is_package: bool) -> str | None:
    """
    Turn a relative `from` import into an absolute module name.

    Returns None if the import climbs above the top-level package.
    """
    if level == 0:
        return module
    package = module_name if is_package else module_name.rpartition(".")[0]
    parts = package.split(".") if package else []
    if level - 1 >= len(parts):
        return None
    base = ".".join(parts[: len(parts) - (level - 1)])
    if module:
        return f"{base}.{module}"
    return base


class _ImportCollector(ast.NodeVisitor):
    """Collect imports in source order, skipping optional and type-checking-only ones."""

    def __init__(self, module_name: str, is_package: bool) -> None:
        self.module_name = module_name
        self.is_package = is_package
        self.refs: list[ImportRef] = []

    def visit_Import(self, node: ast.Import) -> None:
        for alias in node.names:
            self.refs.append(ImportRef(alias.name))

    def visit_ImportFrom(self, node: ast.ImportFrom) -> None:
        target = resolve_relative(node.module, node.level, self.module_name, self.is_package)
        if target is None:
            logger.warning(
                "%s: relative import beyond top-level package (line %d)",
                self.module_name,
                node.lineno,
            )
            return
        names = tuple(alias.name for alias in node.names if alias.name != "*")
        self.refs.append(ImportRef(target, names))

    def visit_Try(self, node: ast.Try) -> None:
        optional = any(_catches_import_error(h) for h in node.handlers)
        if not optional:
            for stmt in node.body:
                self.visit(stmt)
        for handler in node.handlers:
            self.visit(handler)
        for stmt in node.orelse + node.finalbody:
            self.visit(stmt)

    visit_TryStar = visit_Try

    def visit_If(self, node: ast.If) -> None:
        # Imports for annotations only; they never run
        if not _is_type_checking(node.test):
            for stmt in node.body:
                self.visit(stmt)
        for stmt in node.orelse:
            self.visit(stmt)


def parse_imports(source: str, module_name: str, *, is_package: bool = False) -> list[ImportRef]:
    """
    Parse module source and return the modules it imports, in source order.

    Relative imports are resolved against module_name. Imports inside a try
    block that handles ImportError are treated as optional and left out, as
    are imports under `if TYPE_CHECKING:`.
    Raises SyntaxError if the source does not parse.
    """
    tree = ast.parse(source)
    collector = _ImportCollector(module_name, is_package)
    collector.visit(tree)
    return collector.refs
