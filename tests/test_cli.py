"""Tests for pkgdeps CLI."""

from __future__ import annotations

import io
import json
from pathlib import Path
from unittest import mock

import pytest

from pkgdeps.cli import _Progress, build_parser, main

SHOP = {
    "shop/__init__.py": (
        "from __future__ import annotations\n"
        "from shop import orders, billing\n"
        "import keyword\n"
    ),
    "shop/orders.py": "from shop.billing import charge\nimport keyword\nimport vendorlib\n",
    "shop/billing.py": "import keyword\n\n\ndef charge():\n    pass\n",
    "vendorlib/__init__.py": "",
}

TITLE = "Dependencies of \033[1mshop\033[0m"


@pytest.fixture
def shop(write_modules) -> Path:
    return write_modules(SHOP)


def _run(capsys, *argv: str) -> tuple[int, list[str], str]:
    code = main(list(argv))
    captured = capsys.readouterr()
    return code, captured.out.splitlines(), captured.err


class TestUsage:
    """Usage errors and help."""

    def test_help_exits_nonzero(self, capsys) -> None:
        code, out, _ = _run(capsys, "-h")
        assert code == 1
        assert any("usage: pkgdeps" in line for line in out)
        assert any("display modes" in line for line in out)

    def test_missing_package(self, capsys) -> None:
        code, out, _ = _run(capsys)
        assert code == 1
        assert any("usage: pkgdeps" in line for line in out)

    def test_invalid_display(self, capsys) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["shop", "-d", "sideways"])
        assert exc_info.value.code != 0

    def test_parser_defaults(self) -> None:
        args = build_parser().parse_args(["shop"])
        assert args.display == "deps"
        assert args.stdlib is False
        assert args.lib is False
        assert args.short is False
        assert args.format == "text"


class TestReport:
    """Text reports for each display mode."""

    def test_default_mode(self, shop: Path, capsys) -> None:
        code, out, _ = _run(capsys, "shop", "-p", str(shop))
        assert code == 0
        assert out == [TITLE, "  shop.orders", "  shop.billing"]

    def test_short(self, shop: Path, capsys) -> None:
        code, out, _ = _run(capsys, "shop", "-p", str(shop), "--short")
        assert out == [TITLE, "  orders", "  billing"]

    def test_deep(self, shop: Path, capsys) -> None:
        code, out, _ = _run(capsys, "shop", "-p", str(shop), "-d", "deep")
        assert code == 0
        assert out == [
            TITLE,
            "Dependency tree",
            "shop",
            "| shop.orders",
            "| | shop.billing",
            "| | vendorlib",
            "| shop.billing",
        ]

    def test_layers(self, shop: Path, capsys) -> None:
        code, out, _ = _run(capsys, "shop", "-p", str(shop), "--display", "layers")
        assert out == [
            TITLE,
            "Top-down dependency layers",
            "Number after package name is number of imports",
            "0: shop 2",
            "1: shop.billing, shop.orders 2",
            "2: vendorlib",
        ]

    def test_depth(self, shop: Path, capsys) -> None:
        code, out, _ = _run(capsys, "shop", "-p", str(shop), "-d", "depth", "--short")
        assert out == [
            TITLE,
            "Bottom-up dependency layers",
            "Number after package name is number of imports",
            "2 shop 2",
            "1 orders 2",
            "0 billing, vendorlib",
        ]

    def test_count(self, shop: Path, capsys) -> None:
        code, out, _ = _run(capsys, "shop", "-p", str(shop), "-d", "count")
        assert out == [
            TITLE,
            "Packages by descending number of internal imports",
            "2 shop, shop.orders",
            "0 shop.billing, vendorlib",
        ]

    def test_stdlib_included(self, shop: Path, capsys) -> None:
        code, out, _ = _run(capsys, "shop", "-p", str(shop), "--stdlib")
        assert code == 0
        assert "  keyword" in out

    def test_third_party_option(self, shop: Path, capsys) -> None:
        code, out, _ = _run(capsys, "shop", "-p", str(shop), "-d", "deep", "--third-party", "vendorlib")
        assert "| | vendorlib" not in out

    def test_lib_overrides_third_party(self, shop: Path, capsys) -> None:
        code, out, _ = _run(
            capsys, "shop", "-p", str(shop), "-d", "deep", "--third-party", "vendorlib", "--lib"
        )
        assert "| | vendorlib" in out


class TestResolutionFailure:
    """Resolution errors abort before any report is printed."""

    def test_missing_import(self, write_modules, capsys) -> None:
        root = write_modules({"broken/__init__.py": "import broken.missing_mod\n"})
        code, out, err = _run(capsys, "broken", "-p", str(root), "-d", "layers")
        assert code == 1
        assert out == []
        assert "pkgdeps: error:" in err
        assert "broken.missing_mod" in err

    def test_undecodable_module(self, write_modules, capsys) -> None:
        root = write_modules({"legacy/__init__.py": "import legacy.bad\n"})
        (root / "legacy" / "bad.py").write_bytes(b"x = '\xff\xfe'\n")
        code, out, err = _run(capsys, "legacy", "-p", str(root))
        assert code == 1
        assert out == []
        assert "pkgdeps: error:" in err
        assert "cannot decode" in err

    def test_type_checking_import_ignored(self, write_modules, capsys) -> None:
        root = write_modules(
            {
                "typed/__init__.py": (
                    "from typing import TYPE_CHECKING\n"
                    "if TYPE_CHECKING:\n"
                    "    from _typeshed import SupportsRead\n"
                    "import typed.core\n"
                ),
                "typed/core.py": "",
            }
        )
        code, out, _ = _run(capsys, "typed", "-p", str(root))
        assert code == 0
        assert out == ["Dependencies of \033[1mtyped\033[0m", "  typed.core"]

    def test_missing_root(self, tmp_path: Path, capsys) -> None:
        code, out, err = _run(capsys, "no_such_module_xyz", "-p", str(tmp_path))
        assert code == 1
        assert out == []
        assert "no_such_module_xyz" in err


class TestExports:
    """JSON, DOT and Mermaid output."""

    def test_json(self, shop: Path, capsys) -> None:
        code = main(["shop", "-p", str(shop), "-f", "json"])
        data = json.loads(capsys.readouterr().out)
        assert code == 0
        assert data["root"] == "shop"
        assert data["packages"]["shop"]["deps"] == ["shop.orders", "shop.billing"]
        assert data["packages"]["shop.billing"]["layer"] == 1

    def test_mermaid_stdout(self, shop: Path, capsys) -> None:
        code, out, _ = _run(capsys, "shop", "-p", str(shop), "-f", "mermaid")
        assert code == 0
        assert "    shop --> shop_orders" in out

    def test_dot_to_file(self, shop: Path, tmp_path: Path, capsys) -> None:
        target = tmp_path / "graph.dot"
        code, out, err = _run(capsys, "shop", "-p", str(shop), "-f", "dot", "-o", str(target))
        assert code == 0
        assert out == []
        assert "Graph written to" in err
        content = target.read_text()
        assert content.startswith("digraph dependencies {")
        assert '"shop.orders" -> "shop.billing";' in content

    def test_output_write_error(self, shop: Path, tmp_path: Path, capsys) -> None:
        target = tmp_path / "missing_dir" / "graph.dot"
        code, _, err = _run(capsys, "shop", "-p", str(shop), "-f", "dot", "-o", str(target))
        assert code == 1
        assert "cannot write" in err


class TestTui:
    def test_tui_flag_launches_app(self, shop: Path) -> None:
        with mock.patch("pkgdeps.tui.app.DepGraphApp") as app_cls:
            code = main(["shop", "-p", str(shop), "--tui", "--short"])
        assert code == 0
        kwargs = app_cls.call_args.kwargs
        assert kwargs["root_package"] == "shop"
        assert kwargs["shorten"] is True
        assert kwargs["search_paths"] == [shop]
        app_cls.return_value.run.assert_called_once()


class TestProgress:
    """Tests for the transient progress line."""

    def test_silent_when_not_a_terminal(self) -> None:
        stream = io.StringIO()
        progress = _Progress(stream)
        progress(3, "shop")
        progress.clear()
        assert stream.getvalue() == ""

    def test_writes_and_clears_on_terminal(self) -> None:
        stream = io.StringIO()
        stream.isatty = lambda: True  # type: ignore[method-assign]
        progress = _Progress(stream)
        progress(7, "shop")
        progress.clear()
        value = stream.getvalue()
        assert "Working ... 7" in value
        assert value.endswith("\r")
