"""Command-line interface for pkgdeps: show the internal dependencies of a Python package."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from pkgdeps.api import build_graph, render
from pkgdeps.core.display import DISPLAY_MODES
from pkgdeps.core.finder import ResolutionError
from pkgdeps.core.graph import DependencyGraph

logger = logging.getLogger(__name__)

DESCRIPTION = """\
"pkgdeps" prints the internal dependencies of a Python package.

display modes (-d):
  deps    direct dependencies of the package (default)
  deep    the dependencies of the dependencies, recursively
  count   packages organised by how many imports they have
  layers  the top-down dependency layers
  depth   the bottom-up dependency layers

By default the standard library and installed third-party distributions are
ignored, because you only care about your own code. Extra third-party names
can be given with --third-party or the PKGDEPS_THIRD_PARTY environment variable.

<package> is a dotted path exactly like you would use in an import statement.
That package and all its dependencies must be findable (sys.path or -p).
"""

_PROGRESS_WIDTH = 40


def _bold(msg: str) -> str:
    return f"\033[1m{msg}\033[0m"


class _Progress:
    """Transient "Working ... N" counter on stderr, only when it is a terminal."""

    def __init__(self, stream=None) -> None:
        self.stream = stream if stream is not None else sys.stderr
        self.enabled = self.stream.isatty()

    def __call__(self, count: int, import_path: str) -> None:
        if self.enabled:
            self.stream.write(f"Working ... {count}   \r")
            self.stream.flush()

    def clear(self) -> None:
        if self.enabled:
            self.stream.write(" " * _PROGRESS_WIDTH + "\r")
            self.stream.flush()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pkgdeps",
        usage="%(prog)s <package> [-d deep|count|layers|depth] [--lib] [--stdlib] [--short]",
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
    )
    parser.add_argument(
        "package",
        nargs="?",
        help="Import path of the package to analyse, e.g. mypkg.sub",
    )
    parser.add_argument(
        "-d",
        "--display",
        choices=DISPLAY_MODES,
        default="deps",
        help="Display mode (default: deps)",
    )
    parser.add_argument(
        "--lib",
        action="store_true",
        help="Include third-party library packages",
    )
    parser.add_argument(
        "--stdlib",
        action="store_true",
        help="Include standard library packages",
    )
    parser.add_argument(
        "--short",
        action="store_true",
        help="Trim the analysed package name from dependencies (mypkg.core.io -> core.io)",
    )
    parser.add_argument(
        "-p",
        "--path",
        action="append",
        metavar="PATH",
        help="Additional directory to search for packages, before sys.path (can be repeated)",
    )
    parser.add_argument(
        "--third-party",
        action="append",
        metavar="NAME",
        help="Top-level name to treat as third-party (can be repeated)",
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=["text", "json", "dot", "mermaid"],
        default="text",
        help="Output format: text uses the display mode; json, dot and mermaid export the graph",
    )
    parser.add_argument(
        "-o",
        "--output",
        metavar="FILE",
        help="Write json/dot/mermaid output to this file (default: stdout)",
    )
    parser.add_argument(
        "--tui",
        action="store_true",
        help="Browse the dependency tree in the interactive terminal UI",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log debug information to stderr",
    )
    parser.add_argument("--version", action="version", version="%(prog)s 0.1.0")
    parser.add_argument(
        "-h",
        "--help",
        action="store_true",
        help="Display this help",
    )
    return parser


def _print_report(graph: DependencyGraph, args: argparse.Namespace) -> None:
    print("Dependencies of", _bold(graph.root))
    print(render(graph, args.display, shorten=args.short))


def _write_export(graph: DependencyGraph, args: argparse.Namespace) -> int:
    output = render(graph, fmt=args.format, shorten=args.short)
    if not args.output:
        print(output)
        return 0
    try:
        Path(args.output).write_text(output + "\n")
    except OSError as e:
        print(f"pkgdeps: error: cannot write {args.output}: {e}", file=sys.stderr)
        return 1
    print(f"Graph written to: {args.output}", file=sys.stderr)
    return 0


def cmd_tui(args: argparse.Namespace) -> int:
    """Launch the interactive TUI."""
    from pkgdeps.tui.app import DepGraphApp

    app = DepGraphApp(
        root_package=args.package,
        include_stdlib=args.stdlib,
        include_third_party=args.lib,
        third_party=args.third_party,
        search_paths=[Path(p) for p in args.path] if args.path else None,
        shorten=args.short,
    )
    app.run()
    return 0


def cmd_report(args: argparse.Namespace) -> int:
    """Analyse the package and print the report for the chosen display mode or format."""
    progress = _Progress()
    try:
        graph = build_graph(
            args.package,
            include_stdlib=args.stdlib,
            include_third_party=args.lib,
            third_party=args.third_party,
            search_paths=[Path(p) for p in args.path] if args.path else None,
            on_visit=progress,
        )
    except ResolutionError as e:
        progress.clear()
        print(f"pkgdeps: error: {e}", file=sys.stderr)
        return 1
    progress.clear()
    logger.debug("%d modules reachable from %s", len(graph.layers), graph.root)

    if args.format != "text":
        return _write_export(graph, args)
    _print_report(graph, args)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the pkgdeps CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.help or not args.package:
        print(parser.format_help())
        return 1

    _configure_logging(args.verbose)
    if args.tui:
        return cmd_tui(args)
    return cmd_report(args)


if __name__ == "__main__":
    sys.exit(main())
