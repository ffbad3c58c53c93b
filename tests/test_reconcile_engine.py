"""Tests for the update-planning engine."""

import logging
import threading
import time

import pytest

from constants import SourceKind
from reconcile.engine import ReconciliationEngine, is_debug_package, plan_updates
from sources.base import MetadataSource
from versioning.models import DiagnosticKind, PackageRecord, VersionResolution


class StubSource(MetadataSource):
    """Deterministic source answering from a dict and recording every query."""

    def __init__(self, kind, answers=None, delays=None):
        self._kind = kind
        self.answers = answers or {}
        self.delays = delays or {}
        self.calls = []
        self._lock = threading.Lock()

    @property
    def kind(self):
        return self._kind

    def resolve_version(self, package_name):
        with self._lock:
            self.calls.append(package_name)
        delay = self.delays.get(package_name)
        if delay:
            time.sleep(delay)
        return self.answers.get(package_name, VersionResolution.not_found())


def aur(answers=None, **kw):
    return StubSource(SourceKind.AUR, answers, **kw)


def mirror(answers=None, **kw):
    return StubSource(SourceKind.MIRROR, answers, **kw)


def rec(name, version):
    return PackageRecord(name=name, installed_version=version)


class TestIsDebugPackage:
    """Debug/symbol suffix classification."""

    @pytest.mark.parametrize("name", [
        "foo-debug", "foo-dbg", "foo-dbgsym", "foo-debuginfo", "Foo-DEBUG", "bar-Dbg",
    ])
    def test_debug_names(self, name):
        assert is_debug_package(name)

    @pytest.mark.parametrize("name", ["foo", "debug", "debugger", "foo-debug-tools", "dbg-foo"])
    def test_regular_names(self, name):
        assert not is_debug_package(name)


class TestPreferredSource:
    """Behavior when the preferred source answers."""

    def test_same_version_is_not_planned(self):
        preferred = aur({"foo": VersionResolution.found("1.0")})
        fallback = mirror()
        plan = ReconciliationEngine().plan_updates([rec("foo", "1.0")], preferred, fallback)
        assert plan.packages == []
        assert plan.diagnostics == []
        assert fallback.calls == []

    def test_different_version_is_planned_without_fallback(self):
        preferred = aur({"foo": VersionResolution.found("1.1-1")})
        fallback = mirror({"foo": VersionResolution.found("9.9")})
        plan = ReconciliationEngine().plan_updates([rec("foo", "1.0-1")], preferred, fallback)
        assert plan.packages == ["foo"]
        assert fallback.calls == []

    def test_comparison_is_string_inequality(self):
        # An older remote version still counts as a change
        preferred = aur({"foo": VersionResolution.found("0.9")})
        plan = ReconciliationEngine().plan_updates([rec("foo", "1.0")], preferred, mirror())
        assert plan.packages == ["foo"]


class TestFallback:
    """Behavior when the preferred source has no conclusive answer."""

    def test_not_found_falls_back_once(self):
        preferred = aur()
        fallback = mirror({"foo": VersionResolution.found("2.0")})
        plan = ReconciliationEngine().plan_updates([rec("foo", "1.0")], preferred, fallback)
        assert plan.packages == ["foo"]
        assert fallback.calls == ["foo"]
        assert len(plan.diagnostics) == 1
        assert plan.diagnostics[0].kind is DiagnosticKind.FALLBACK
        assert plan.diagnostics[0].package == "foo"

    @pytest.mark.parametrize("failure", [
        VersionResolution.unparseable(),
        VersionResolution.source_error("timeout"),
    ])
    def test_other_failures_fall_back(self, failure):
        preferred = mirror({"foo": failure})
        fallback = aur({"foo": VersionResolution.found("1.0")})
        plan = ReconciliationEngine().plan_updates([rec("foo", "1.0")], preferred, fallback)
        assert plan.packages == []
        assert fallback.calls == ["foo"]
        assert [d.kind for d in plan.diagnostics] == [DiagnosticKind.FALLBACK]

    def test_fallback_message_names_reason(self):
        preferred = mirror({"foo": VersionResolution.source_error("mirror returned HTTP 503")})
        plan = ReconciliationEngine().plan_updates([rec("foo", "1.0")], preferred, aur())
        assert "mirror returned HTTP 503" in plan.diagnostics[0].message
        assert "falling back to aur" in plan.diagnostics[0].message

    def test_both_sources_failing_skips_package(self):
        preferred = aur({"foo": VersionResolution.source_error("boom")})
        fallback = mirror({"foo": VersionResolution.unparseable()})
        plan = ReconciliationEngine().plan_updates(
            [rec("foo", "1.0"), rec("bar", "1.0")],
            preferred,
            fallback,
        )
        assert plan.packages == []
        kinds = [(d.package, d.kind) for d in plan.diagnostics]
        assert kinds == [
            ("foo", DiagnosticKind.FALLBACK),
            ("foo", DiagnosticKind.SKIPPED),
            ("bar", DiagnosticKind.FALLBACK),
            ("bar", DiagnosticKind.SKIPPED),
        ]

    def test_failure_does_not_abort_remaining_packages(self):
        preferred = aur({
            "a": VersionResolution.source_error("boom"),
            "b": VersionResolution.found("2"),
        })
        fallback = mirror()
        plan = ReconciliationEngine().plan_updates([rec("a", "1"), rec("b", "1")], preferred, fallback)
        assert plan.packages == ["b"]


class TestFiltering:
    """Debug variants and duplicates."""

    def test_debug_packages_are_never_queried(self):
        preferred = aur({"foo-debug": VersionResolution.found("2.0")})
        fallback = mirror({"foo-debug": VersionResolution.found("2.0")})
        plan = ReconciliationEngine().plan_updates(
            [rec("foo-debug", "1.0"), rec("bar-DBGSYM", "1.0")],
            preferred,
            fallback,
        )
        assert plan.packages == []
        assert preferred.calls == []
        assert fallback.calls == []
        assert [d.kind for d in plan.diagnostics] == [DiagnosticKind.SKIPPED_DEBUG] * 2

    def test_duplicates_are_planned_once(self):
        preferred = aur({"foo": VersionResolution.found("2.0")})
        plan = ReconciliationEngine().plan_updates(
            [rec("foo", "1.0"), rec("foo", "1.0")], preferred, mirror()
        )
        assert plan.packages == ["foo"]
        assert preferred.calls == ["foo"]
        assert plan.diagnostics[0].kind is DiagnosticKind.SKIPPED_DUPLICATE


class TestOrderingAndDeterminism:
    """Plans and diagnostics follow input order."""

    INSTALLED = [
        rec("zeta", "1"),
        rec("alpha", "1"),
        rec("alpha-debug", "1"),
        rec("mid", "1"),
        rec("gone", "1"),
    ]

    def sources(self, delays=None):
        preferred = aur({
            "zeta": VersionResolution.found("2"),
            "alpha": VersionResolution.found("2"),
            "mid": VersionResolution.unparseable(),
        }, delays=delays)
        fallback = mirror({"mid": VersionResolution.found("3")}, delays=delays)
        return preferred, fallback

    def test_plan_preserves_input_order(self):
        plan = ReconciliationEngine().plan_updates(self.INSTALLED, *self.sources())
        assert plan.packages == ["zeta", "alpha", "mid"]
        assert [d.package for d in plan.diagnostics] == ["alpha-debug", "mid", "gone", "gone"]

    def test_repeated_runs_are_identical(self):
        first = ReconciliationEngine().plan_updates(self.INSTALLED, *self.sources())
        second = ReconciliationEngine().plan_updates(self.INSTALLED, *self.sources())
        assert first == second

    def test_parallel_run_matches_sequential(self):
        sequential = ReconciliationEngine().plan_updates(self.INSTALLED, *self.sources())
        # Early packages finish last so completion order differs from input order
        delays = {"zeta": 0.05, "alpha": 0.03}
        parallel = ReconciliationEngine(workers=4).plan_updates(
            self.INSTALLED, *self.sources(delays=delays)
        )
        assert parallel == sequential


class TestContract:
    """Programming-contract violations."""

    def test_none_installed_raises(self):
        with pytest.raises(TypeError):
            ReconciliationEngine().plan_updates(None, aur(), mirror())

    def test_non_source_raises(self):
        with pytest.raises(TypeError):
            ReconciliationEngine().plan_updates([], object(), mirror())

    def test_invalid_workers(self):
        with pytest.raises(ValueError):
            ReconciliationEngine(workers=0)

    def test_empty_installed(self):
        plan = ReconciliationEngine().plan_updates([], aur(), mirror())
        assert plan.packages == []
        assert plan.diagnostics == []


class TestPlanUpdatesFunction:
    """Module-level convenience wrapper."""

    def test_returns_tuple(self):
        packages, diagnostics = plan_updates(
            [rec("foo", "1.0")], aur(), mirror({"foo": VersionResolution.found("2.0")})
        )
        assert packages == ["foo"]
        assert len(diagnostics) == 1
        assert diagnostics[0].kind is DiagnosticKind.FALLBACK

    def test_diagnostics_are_logged(self, caplog):
        with caplog.at_level(logging.INFO, logger="reconcile.engine"):
            plan_updates([rec("foo-dbg", "1"), rec("foo", "1")], aur(), mirror())
        messages = [r.getMessage() for r in caplog.records]
        assert "Skipping debug package: foo-dbg" in messages
        assert any("skipping" in m and "foo" in m for m in messages)
