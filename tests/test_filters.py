"""Tests for pkgdeps.core.filters module."""

from __future__ import annotations

import os
from unittest import mock

from pkgdeps.core.filters import (
    PSEUDO_IMPORTS,
    THIRD_PARTY_ENV,
    FilterPolicy,
    _env_roots,
    default_third_party_roots,
)
from pkgdeps.core.parser import PackageInfo


def _info(name: str, is_stdlib: bool = False) -> PackageInfo:
    return PackageInfo(import_path=name, is_stdlib=is_stdlib)


class TestPseudoImports:
    def test_future_is_pseudo(self) -> None:
        assert "__future__" in PSEUDO_IMPORTS


class TestFilterPolicy:
    """Tests for FilterPolicy exclusion rules."""

    def test_stdlib_excluded_by_default(self) -> None:
        policy = FilterPolicy(root="app")
        assert policy.is_excluded(_info("os", is_stdlib=True)) is True

    def test_stdlib_included(self) -> None:
        policy = FilterPolicy(root="app", include_stdlib=True)
        assert policy.is_excluded(_info("os", is_stdlib=True)) is False

    def test_third_party_excluded(self) -> None:
        policy = FilterPolicy(root="app", third_party_roots=frozenset({"requests"}))
        assert policy.is_third_party(_info("requests")) is True
        assert policy.is_third_party(_info("requests.adapters")) is True

    def test_third_party_matches_whole_names(self) -> None:
        policy = FilterPolicy(root="app", third_party_roots=frozenset({"requests"}))
        assert policy.is_third_party(_info("requests_toolbelt")) is False

    def test_unknown_names_are_owned(self) -> None:
        policy = FilterPolicy(root="app", third_party_roots=frozenset({"requests"}))
        assert policy.is_excluded(_info("company_internal.models")) is False

    def test_third_party_included(self) -> None:
        policy = FilterPolicy(
            root="app",
            include_third_party=True,
            third_party_roots=frozenset({"requests"}),
        )
        assert policy.is_excluded(_info("requests.api")) is False

    def test_root_prefix_is_never_third_party(self) -> None:
        # Analysing a subpackage of an installed distribution
        policy = FilterPolicy(root="requests.sessions", third_party_roots=frozenset({"requests"}))
        assert policy.is_third_party(_info("requests.sessions.extra")) is False
        assert policy.is_third_party(_info("requests.models")) is True


class TestDefaultThirdPartyRoots:
    """Tests for default_third_party_roots and the environment override."""

    def test_installed_env_and_extra(self) -> None:
        installed = {"requests": ["requests"], "_cffi_backend": ["cffi"], "app": ["app"]}
        with mock.patch(
            "pkgdeps.core.filters.packages_distributions", return_value=installed
        ), mock.patch.dict(os.environ, {THIRD_PARTY_ENV: "vendored,legacy"}):
            roots = default_third_party_roots("app.sub", extra=["extra_lib"])
        assert roots == frozenset({"requests", "vendored", "legacy", "extra_lib"})

    def test_for_root(self) -> None:
        with mock.patch(
            "pkgdeps.core.filters.packages_distributions", return_value={"yaml": ["PyYAML"]}
        ), mock.patch.dict(os.environ, {THIRD_PARTY_ENV: ""}):
            policy = FilterPolicy.for_root("app", include_stdlib=True)
        assert policy.root == "app"
        assert policy.include_stdlib is True
        assert policy.third_party_roots == frozenset({"yaml"})

    def test_env_roots_split(self) -> None:
        value = f"a, b{os.pathsep}c,,"
        with mock.patch.dict(os.environ, {THIRD_PARTY_ENV: value}):
            assert _env_roots(THIRD_PARTY_ENV) == ["a", "b", "c"]

    def test_env_roots_unset(self) -> None:
        with mock.patch.dict(os.environ, {}, clear=True):
            assert _env_roots(THIRD_PARTY_ENV) == []
