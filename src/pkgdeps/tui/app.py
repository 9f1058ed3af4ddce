"""Textual TUI for browsing the internal dependency graph of a Python package."""

from __future__ import annotations

import sys
from collections import deque
from functools import partial
from pathlib import Path
from typing import Any

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Vertical
from textual.screen import ModalScreen
from textual.widgets import Footer, Header, Input, LoadingIndicator, OptionList, Static, Tree
from textual.widgets.option_list import Option
from textual.widgets.tree import TreeNode
from textual.worker import Worker, WorkerState

from pkgdeps.api import build_graph, list_package_modules
from pkgdeps.core.display import CYCLE_MARKER, short_name
from pkgdeps.core.finder import ResolutionError
from pkgdeps.core.graph import DependencyGraph

# Limits to avoid huge trees on diamond-heavy graphs
MAX_TREE_DEPTH = 8
MAX_TREE_NODES = 500
EXPAND_DEPTH_DEFAULT = 2
MAX_SUBMODULES_SHOWN = 20
MAX_PICKER_MATCHES = 50

BUILD_WORKER = "build"
SUBMODULES_WORKER = "submodules"

COLOR_HEADER = "bold magenta"
COLOR_PKG = "white"
COLOR_LEAF = "green"
COLOR_STATS = "cyan"
COLOR_PATH = "dim"


def _transitive_deps(graph: DependencyGraph, name: str) -> set[str]:
    """All owned modules reachable from name, excluding name itself."""
    seen: set[str] = set()
    stack = list(graph.dependencies_of(name))
    while stack:
        current = stack.pop()
        if current in seen or current == name:
            continue
        seen.add(current)
        stack.extend(graph.dependencies_of(current))
    return seen


def _node_label(graph: DependencyGraph, name: str, shorten: bool = False) -> str:
    """Tree label: module name plus its direct dependency count."""
    label = short_name(name, graph.root, shorten)
    num = graph.num_deps.get(name, 0)
    if num == 0:
        return f"[{COLOR_LEAF}]{label}[/]"
    return f"[{COLOR_PKG}]{label}[/] [dim]({num})[/]"


def _populate_textual_tree(
    tn: TreeNode,
    graph: DependencyGraph,
    name: str,
    *,
    shorten: bool = False,
    depth: int = 0,
    max_depth: int = MAX_TREE_DEPTH,
    max_nodes: int = MAX_TREE_NODES,
    node_count: list[int] | None = None,
    branch: tuple[str, ...] = (),
) -> None:
    """Recursively add the owned dependencies of name; cap depth and total nodes."""
    if node_count is None:
        node_count = [0]
    branch = branch + (name,)
    for child in graph.dependencies_of(name):
        if node_count[0] >= max_nodes:
            tn.add_leaf(f"[dim]… truncated ({max_nodes} nodes max)[/]")
            return
        child_label = short_name(child, graph.root, shorten)
        if child in branch:
            leaf = tn.add_leaf(f"[dim]{child_label} {CYCLE_MARKER}[/]")
            leaf.data = child
            continue
        if depth >= max_depth:
            tn.add_leaf(f"[dim]{child_label} …[/]")
            continue
        node_count[0] += 1
        if graph.dependencies_of(child):
            child_tn = tn.add(_node_label(graph, child, shorten), expand=False)
        else:
            child_tn = tn.add_leaf(_node_label(graph, child, shorten))
        child_tn.data = child
        _populate_textual_tree(
            child_tn,
            graph,
            child,
            shorten=shorten,
            depth=depth + 1,
            max_depth=max_depth,
            max_nodes=max_nodes,
            node_count=node_count,
            branch=branch,
        )


def _expand_to_depth(tn: TreeNode, depth: int, current: int = 0) -> None:
    """Expand tree nodes up to given depth (0 = root only)."""
    if current >= depth:
        return
    tn.expand()
    for child in tn.children:
        _expand_to_depth(child, depth, current + 1)


def _format_details(
    graph: DependencyGraph,
    name: str,
    submodules: list[str] | None = None,
) -> str:
    """Details panel text for one module of the graph."""
    info = graph.packages.get(name)
    path = str(info.path) if info is not None and info.path else "(n/a)"
    kind = "package" if info is not None and info.is_package else "module"
    direct = graph.dependencies_of(name)

    lines = [
        f"[{COLOR_HEADER}]{kind.capitalize()}[/]",
        f"  [{COLOR_PKG}]{name}[/]",
        "",
        f"[{COLOR_HEADER}]Stats[/]",
        f"  Layer (from root):      [{COLOR_STATS}]{graph.layers.get(name, '?')}[/]",
        f"  Depth (longest chain):  [{COLOR_STATS}]{graph.depth.get(name, '?')}[/]",
        f"  Direct dependencies:    [{COLOR_STATS}]{len(direct)}[/]",
        f"  All dependencies:       [{COLOR_STATS}]{len(_transitive_deps(graph, name))}[/]",
        "",
        f"[{COLOR_HEADER}]Path[/]",
        f"  [{COLOR_PATH}]{path}[/]",
    ]
    if submodules:
        lines += ["", f"[{COLOR_HEADER}]Submodules[/]"]
        lines += [f"  {m}" for m in submodules[:MAX_SUBMODULES_SHOWN]]
        if len(submodules) > MAX_SUBMODULES_SHOWN:
            lines.append(f"  [dim]… and {len(submodules) - MAX_SUBMODULES_SHOWN} more[/]")
    return "\n".join(lines)


def _find_modules(graph: DependencyGraph, query: str) -> list[str]:
    """
    Modules of the graph whose import path contains query (case-insensitive).

    Covers every analysed module, including those cut from the tree by the
    depth and node caps. Shallowest layer first, then by name.
    """
    needle = query.strip().lower()
    if not needle:
        return []
    found = [name for name in graph.layers if needle in name.lower()]
    return sorted(found, key=lambda name: (graph.layers[name], name))


def _match_label(graph: DependencyGraph, name: str, shorten: bool = False) -> str:
    """One picker row: module name with its layer and depth."""
    label = short_name(name, graph.root, shorten)
    return f"{label}  (layer {graph.layers.get(name, '?')}, depth {graph.depth.get(name, '?')})"


def _find_tree_node(root: TreeNode, name: str) -> TreeNode | None:
    """Shallowest tree node showing name, or None if the caps left it out."""
    queue = deque([root])
    while queue:
        node = queue.popleft()
        if node.data == name:
            return node
        queue.extend(node.children)
    return None


class ModulePicker(ModalScreen[str | None]):
    """Pick a module of the graph by partial name; matches list as you type."""

    BINDINGS = [
        Binding("escape", "dismiss(None)", "Cancel"),
        Binding("down", "cursor(1)", show=False),
        Binding("up", "cursor(-1)", show=False),
    ]

    DEFAULT_CSS = """
    ModulePicker {
        align: center top;
    }
    ModulePicker > Vertical {
        width: 80%;
        height: auto;
        max-height: 80%;
        margin-top: 2;
        border: round $accent;
        background: $surface;
    }
    ModulePicker OptionList {
        height: auto;
        max-height: 20;
    }
    """

    def __init__(self, graph: DependencyGraph, *, shorten: bool = False, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._graph = graph
        self._shorten = shorten

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Input(placeholder=f"find a module of {self._graph.root}", id="picker_query")
            yield OptionList(id="picker_matches")

    def on_mount(self) -> None:
        self.query_one("#picker_query", Input).focus()

    def on_input_changed(self, event: Input.Changed) -> None:
        matches = _find_modules(self._graph, event.value)
        options = self.query_one("#picker_matches", OptionList)
        options.clear_options()
        options.add_options(
            Option(_match_label(self._graph, name, self._shorten), id=name)
            for name in matches[:MAX_PICKER_MATCHES]
        )
        if matches:
            options.highlighted = 0

    def on_input_submitted(self, event: Input.Submitted) -> None:
        options = self.query_one("#picker_matches", OptionList)
        if options.highlighted is None:
            return
        self.dismiss(options.get_option_at_index(options.highlighted).id)

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        self.dismiss(event.option.id)

    def action_cursor(self, step: int) -> None:
        options = self.query_one("#picker_matches", OptionList)
        if options.option_count == 0:
            return
        current = options.highlighted if options.highlighted is not None else -step
        options.highlighted = (current + step) % options.option_count


class DepGraphApp(App[None]):
    """Terminal UI to explore the internal dependencies of a Python package."""

    TITLE = "pkgdeps"
    BINDINGS = [
        Binding("/", "find", "Find module"),
        Binding("d", "toggle_details", "Details"),
        Binding("q", "quit", "Quit"),
        Binding("r", "refresh", "Refresh"),
        Binding("e", "expand_all", "Expand all"),
        Binding("c", "collapse_all", "Collapse"),
    ]

    DEFAULT_CSS = """
    #loading {
        height: auto;
        display: none;
    }
    #loading.loading {
        display: block;
    }
    #loading LoadingIndicator {
        height: 3;
        background: transparent;
    }
    #details {
        padding: 1 2;
        border: solid $primary;
        height: auto;
        min-height: 8;
    }
    """

    def __init__(
        self,
        root_package: str,
        *,
        include_stdlib: bool = False,
        include_third_party: bool = False,
        third_party: list[str] | None = None,
        search_paths: list[Path] | None = None,
        shorten: bool = False,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self._root_package = root_package
        self._include_stdlib = include_stdlib
        self._include_third_party = include_third_party
        self._third_party = third_party
        self._search_paths = search_paths
        self._shorten = shorten
        self._graph: DependencyGraph | None = None
        self._loading = False
        self._selected: str | None = None
        # Package name -> submodules, filled by the submodule worker
        self._submodules: dict[str, list[str]] = {}

    def compose(self) -> ComposeResult:
        yield Header(show_clock=False)
        with Container(id="loading"):
            yield LoadingIndicator()
            yield Static("[dim]Resolving imports...[/]", id="loading_text", markup=True)
        yield Tree(self._root_package, id="dep_tree")
        yield Static(
            "[dim]↑/↓[/] move  ·  [dim]Enter[/]/[dim]Space[/] select  ·  [dim]/[/] find module",
            id="details",
        )
        yield Footer()

    def on_mount(self) -> None:
        self.sub_title = f"Dependencies of {self._root_package}"
        self._start_build()

    def _start_build(self) -> None:
        """Build the graph in a background thread."""
        if self._loading:
            return
        self._loading = True
        self.query_one("#loading").add_class("loading")
        self.run_worker(self._build_worker, name=BUILD_WORKER, thread=True, exit_on_error=False)

    def _build_worker(self) -> DependencyGraph:
        return build_graph(
            self._root_package,
            include_stdlib=self._include_stdlib,
            include_third_party=self._include_third_party,
            third_party=self._third_party,
            search_paths=self._search_paths,
        )

    def _submodules_worker(self, name: str) -> tuple[str, list[str]]:
        try:
            return name, list_package_modules(name, search_paths=self._search_paths)
        except ResolutionError:
            return name, []

    def on_worker_state_changed(self, event: Worker.StateChanged) -> None:
        """Route finished builds and submodule listings to the screen."""
        if event.worker.name == SUBMODULES_WORKER:
            if event.state == WorkerState.SUCCESS:
                name, submodules = event.worker.result
                self._submodules[name] = submodules
                if name == self._selected:
                    self._show_details(name)
            return
        if event.state == WorkerState.SUCCESS:
            self._loading = False
            self.query_one("#loading").remove_class("loading")
            self._graph = event.worker.result
            self._show_graph()
        elif event.state == WorkerState.ERROR:
            self._loading = False
            self.query_one("#loading").remove_class("loading")
            error = event.worker.error
            if isinstance(error, ResolutionError):
                self._set_details(f"[red]Cannot resolve {error.import_path}[/]\n\n{error.reason}")
            else:
                self._set_details(f"[red]Error: {error!s}[/]")

    def _clear_tree(self, tree: Tree) -> None:
        while tree.root.children:
            tree.root.children[0].remove()

    def _show_graph(self) -> None:
        graph = self._graph
        if graph is None:
            return
        tree = self.query_one("#dep_tree", Tree)
        self._clear_tree(tree)
        tree.root.label = _node_label(graph, graph.root)
        tree.root.data = graph.root
        _populate_textual_tree(tree.root, graph, graph.root, shorten=self._shorten)
        _expand_to_depth(tree.root, EXPAND_DEPTH_DEFAULT)
        self._show_details(graph.root)
        tree.focus()

    def _show_details(self, name: str) -> None:
        """Show details at once; a package's submodules follow from a worker."""
        if self._graph is None:
            return
        self._selected = name
        info = self._graph.packages.get(name)
        if info is not None and info.is_package and name not in self._submodules:
            self.run_worker(
                partial(self._submodules_worker, name),
                name=SUBMODULES_WORKER,
                group=SUBMODULES_WORKER,
                thread=True,
                exclusive=True,
            )
        self._set_details(_format_details(self._graph, name, self._submodules.get(name)))

    def _set_details(self, text: str) -> None:
        self.query_one("#details", Static).update(text)

    def on_tree_node_selected(self, event: Tree.NodeSelected) -> None:
        name = event.node.data
        if isinstance(name, str):
            self._show_details(name)

    def action_refresh(self) -> None:
        self._submodules.clear()
        self._start_build()

    def action_expand_all(self) -> None:
        self.query_one("#dep_tree", Tree).root.expand_all()

    def action_collapse_all(self) -> None:
        tree = self.query_one("#dep_tree", Tree)
        tree.root.collapse_all()
        tree.root.expand()

    def action_find(self) -> None:
        if self._graph is not None:
            self.push_screen(ModulePicker(self._graph, shorten=self._shorten), self._reveal)

    def _reveal(self, name: str | None) -> None:
        """Select the picked module in the tree, or only show its details when the tree omits it."""
        if name is None:
            return
        tree = self.query_one("#dep_tree", Tree)
        node = _find_tree_node(tree.root, name)
        if node is None:
            self.notify(f"{name} lies beyond the tree limits", severity="warning")
        else:
            ancestor = node.parent
            while ancestor is not None:
                ancestor.expand()
                ancestor = ancestor.parent
            tree.select_node(node)
            tree.scroll_to_node(node)
        self._show_details(name)

    def action_toggle_details(self) -> None:
        details = self.query_one("#details", Static)
        details.display = not details.display

    def action_quit(self) -> None:
        self.exit()


def main() -> None:
    """Entry point for the pkgdeps TUI."""
    if len(sys.argv) < 2:
        print("usage: pkgdeps-tui <package>", file=sys.stderr)
        sys.exit(1)
    app = DepGraphApp(root_package=sys.argv[1].strip())
    app.run()


if __name__ == "__main__":
    main()
