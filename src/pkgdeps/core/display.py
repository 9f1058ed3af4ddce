"""Render a DependencyGraph as text lines, JSON, DOT or Mermaid."""

from __future__ import annotations

from pkgdeps.core.graph import DependencyGraph

DISPLAY_MODES = ("deps", "deep", "layers", "depth", "count")

# Header lines printed after the title, per display mode
MODE_HEADERS: dict[str, tuple[str, ...]] = {
    "deps": (),
    "deep": ("Dependency tree",),
    "layers": (
        "Top-down dependency layers",
        "Number after package name is number of imports",
    ),
    "depth": (
        "Bottom-up dependency layers",
        "Number after package name is number of imports",
    ),
    "count": ("Packages by descending number of internal imports",),
}

CYCLE_MARKER = "(cycle)"


def short_name(name: str, root: str, enabled: bool = True) -> str:
    """
    Trim the root import path off a module name.

    Only the first occurrence of root is removed, wherever it is, and
    surrounding dots are stripped. Names no longer than root are returned
    unchanged.
    """
    if not enabled:
        return name
    if len(name) <= len(root):
        return name
    return name.replace(root, "", 1).strip(".")


def _annotated(graph: DependencyGraph, names: list[str], shorten: bool) -> list[str]:
    """Append the direct dependency count to each name (when non-zero) and sort."""
    out = []
    for name in names:
        num = graph.num_deps.get(name, 0)
        label = short_name(name, graph.root, shorten)
        out.append(f"{label} {num}" if num > 0 else label)
    return sorted(out)


def _grouped(index: dict[str, int], size: int) -> list[list[str]]:
    buckets: list[list[str]] = [[] for _ in range(size)]
    for name, key in index.items():
        buckets[key].append(name)
    return buckets


def deps_lines(graph: DependencyGraph, shorten: bool = False) -> list[str]:
    """The root's direct owned dependencies, one per line."""
    deps = graph.dependencies_of(graph.root)
    if not deps:
        return ["No internal dependencies"]
    return [f"  {short_name(name, graph.root, shorten)}" for name in deps]


def deep_lines(graph: DependencyGraph, shorten: bool = False) -> list[str]:
    """Pre-order tree, one "| " per level. Modules already on the branch are marked, not re-expanded."""
    lines: list[str] = []

    def _walk(name: str, level: int, branch: tuple[str, ...]) -> None:
        label = "| " * level + short_name(name, graph.root, shorten)
        if name in branch:
            lines.append(f"{label} {CYCLE_MARKER}")
            return
        lines.append(label)
        for child in graph.dependencies_of(name):
            _walk(child, level + 1, branch + (name,))

    _walk(graph.root, 0, ())
    return lines


def layer_lines(graph: DependencyGraph, shorten: bool = False) -> list[str]:
    """Top-down: modules grouped by the shallowest layer they were reached at."""
    lines = []
    size = max(graph.max_layer, max(graph.layers.values(), default=0)) + 1
    for layer, names in enumerate(_grouped(graph.layers, size)):
        if not names:
            continue
        lines.append(f"{layer}: {', '.join(_annotated(graph, names, shorten))}")
    return lines


def depth_lines(graph: DependencyGraph, shorten: bool = False) -> list[str]:
    """Bottom-up: modules grouped by longest dependency chain, deepest first."""
    size = max(graph.depth.values(), default=0) + 1
    lines = []
    for d, names in reversed(list(enumerate(_grouped(graph.depth, size)))):
        if not names:
            continue
        names.sort()
        lines.append(f"{d} {', '.join(_annotated(graph, names, shorten))}")
    return lines


def count_lines(graph: DependencyGraph, shorten: bool = False) -> list[str]:
    """Modules grouped by number of direct owned dependencies, most first."""
    lines = []
    size = max(graph.max_deps, max(graph.num_deps.values(), default=0)) + 1
    for count, names in reversed(list(enumerate(_grouped(graph.num_deps, size)))):
        if not names:
            continue
        labels = [short_name(name, graph.root, shorten) for name in sorted(names)]
        lines.append(f"{count} {', '.join(labels)}")
    return lines


_RENDERERS = {
    "deps": deps_lines,
    "deep": deep_lines,
    "layers": layer_lines,
    "depth": depth_lines,
    "count": count_lines,
}


def render_lines(graph: DependencyGraph, mode: str = "deps", *, shorten: bool = False) -> list[str]:
    """Mode headers followed by the mode body. Raises ValueError on unknown mode."""
    try:
        renderer = _RENDERERS[mode]
    except KeyError:
        raise ValueError(f"unknown display mode: {mode!r} (expected one of {', '.join(DISPLAY_MODES)})") from None
    return list(MODE_HEADERS[mode]) + renderer(graph, shorten)


def _edges(graph: DependencyGraph) -> list[tuple[str, str]]:
    return sorted({(parent, child) for parent, children in graph.deps.items() for child in children})


def generate_dot(graph: DependencyGraph, title: str | None = None, shorten: bool = False) -> str:
    """Generate DOT (Graphviz) format from a dependency graph."""
    lines = [
        "digraph dependencies {",
        "    rankdir=LR;",
        '    node [shape=box, style=rounded, fontname="sans-serif"];',
    ]
    if title:
        lines.insert(1, f'    label="{title}";')
        lines.insert(2, "    labelloc=t;")

    def label(name: str) -> str:
        return short_name(name, graph.root, shorten)

    lines.append(f'    "{label(graph.root)}" [style="rounded,filled", fillcolor=lightblue];')
    for parent, child in _edges(graph):
        lines.append(f'    "{label(parent)}" -> "{label(child)}";')
    lines.append("}")
    return "\n".join(lines)


def mermaid_id(name: str) -> str:
    """Convert a module name to a valid Mermaid node ID."""
    return name.replace(".", "_").replace("-", "_")


def _mermaid_ids(names: list[str]) -> dict[str, str]:
    """Assign each name its Mermaid ID, suffixing names whose IDs collide (a.b_c, a_b.c)."""
    ids: dict[str, str] = {}
    taken: set[str] = set()
    for name in names:
        base = candidate = mermaid_id(name)
        n = 2
        while candidate in taken:
            candidate = f"{base}_{n}"
            n += 1
        taken.add(candidate)
        ids[name] = candidate
    return ids


def generate_mermaid(graph: DependencyGraph, title: str | None = None, shorten: bool = False) -> str:
    """Generate Mermaid format from a dependency graph."""
    lines = ["graph LR"]
    if title:
        lines[0] = f"---\ntitle: {title}\n---\ngraph LR"

    edges = _edges(graph)
    others = set(graph.layers).union(*edges) - {graph.root}
    # Root first so it keeps the plain ID
    names = [graph.root] + sorted(others)
    ids = _mermaid_ids(names)
    root_id = ids[graph.root]
    lines.append(f"    {root_id}[{short_name(graph.root, graph.root, shorten)}]")
    lines.append(f"    style {root_id} fill:#lightblue")
    for name in names[1:]:
        lines.append(f"    {ids[name]}[{short_name(name, graph.root, shorten)}]")
    for parent, child in edges:
        lines.append(f"    {ids[parent]} --> {ids[child]}")
    return "\n".join(lines)
