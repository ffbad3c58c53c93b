"""Update planning: compare installed packages against remote versions.

For each installed package the preferred source is asked first. Only when it
cannot answer conclusively is the fallback source asked. Every skip and
fallback is recorded as a Diagnostic, in the order packages were given.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled
from sources.base import MetadataSource
from versioning.models import (
    Diagnostic,
    DiagnosticKind,
    PackageRecord,
    RemoteVersion,
    UpdatePlan,
)

logger = logging.getLogger(__name__)


def is_debug_package(name: str, suffixes: Iterable[str] = Constants.DEBUG_SUFFIXES) -> bool:
    """Return True for debug/symbol-only package names."""
    lowered = name.lower()
    return any(lowered.endswith(suffix) for suffix in suffixes)


@dataclass
class _Outcome:
    """Evaluation result for one installed package."""
    record: PackageRecord
    remote: Optional[RemoteVersion] = None
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def needs_update(self) -> bool:
        # Plain string inequality, no version ordering
        return self.remote is not None and self.remote.version != self.record.installed_version


class ReconciliationEngine:
    """Produces an UpdatePlan from the installed set and two metadata sources."""

    def __init__(self, workers: int = 1):
        """Initialize the engine.

        Args:
            workers: Packages evaluated concurrently. Results are reassembled
                in input order, so the plan does not depend on this value.
        """
        if workers < 1:
            raise ValueError("workers must be at least 1")
        self.workers = workers

    def plan_updates(
        self,
        installed: Sequence[PackageRecord],
        preferred_source: MetadataSource,
        fallback_source: MetadataSource,
    ) -> UpdatePlan:
        """Decide which installed packages need an update.

        Args:
            installed: Installed packages, in the order they should be evaluated.
            preferred_source: Asked first; a FOUND answer is final.
            fallback_source: Asked once when the preferred source has no answer.

        Returns:
            UpdatePlan with packages and diagnostics in evaluation order.

        Raises:
            TypeError: When installed is None or a source is not a MetadataSource.
        """
        if installed is None:
            raise TypeError("installed must be a sequence of PackageRecord, not None")
        for source in (preferred_source, fallback_source):
            if not isinstance(source, MetadataSource):
                raise TypeError(f"expected a MetadataSource, got {type(source).__name__}")

        # Skipped names never reach a worker
        slots: List[Tuple[Optional[PackageRecord], Optional[Diagnostic]]] = []
        queued: List[PackageRecord] = []
        seen = set()
        for record in installed:
            if is_debug_package(record.name):
                slots.append((None, Diagnostic(
                    package=record.name,
                    kind=DiagnosticKind.SKIPPED_DEBUG,
                    message=f"Skipping debug package: {record.name}",
                )))
            elif record.name in seen:
                slots.append((None, Diagnostic(
                    package=record.name,
                    kind=DiagnosticKind.SKIPPED_DUPLICATE,
                    message=f"Skipping duplicate entry for {record.name}",
                )))
            else:
                seen.add(record.name)
                queued.append(record)
                slots.append((record, None))

        outcomes = iter(self._evaluate_all(queued, preferred_source, fallback_source))
        plan = UpdatePlan()
        for record, skip in slots:
            if record is None:
                self._record(plan, skip)
                continue
            outcome = next(outcomes)
            for diagnostic in outcome.diagnostics:
                self._record(plan, diagnostic)
            if outcome.needs_update:
                logger.info(
                    "%s: %s -> %s",
                    record.name,
                    record.installed_version,
                    outcome.remote.version,
                )
                plan.packages.append(record.name)

        if is_debug_enabled(logger):
            logger.debug(
                "Planned updates",
                extra=extra_context(
                    event="decision",
                    component="reconcile",
                    action="plan_updates",
                    outcome="empty" if not plan.packages else "non_empty",
                    count=len(plan.packages)
                )
            )
        return plan

    @staticmethod
    def _record(plan: UpdatePlan, diagnostic: Diagnostic) -> None:
        if diagnostic.kind is DiagnosticKind.SKIPPED_DEBUG:
            logger.info(diagnostic.message)
        else:
            logger.warning(diagnostic.message)
        plan.diagnostics.append(diagnostic)

    def _evaluate_all(
        self,
        queued: List[PackageRecord],
        preferred: MetadataSource,
        fallback: MetadataSource,
    ) -> List[_Outcome]:
        if self.workers == 1 or len(queued) < 2:
            return [self._evaluate(r, preferred, fallback) for r in queued]
        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            # map() yields in submission order regardless of completion order
            return list(pool.map(lambda r: self._evaluate(r, preferred, fallback), queued))

    @staticmethod
    def _evaluate(
        record: PackageRecord,
        preferred: MetadataSource,
        fallback: MetadataSource,
    ) -> _Outcome:
        outcome = _Outcome(record=record)
        name = record.name

        result = preferred.resolve_version(name)
        if result.is_found:
            outcome.remote = result.to_remote_version(name)
            return outcome

        outcome.diagnostics.append(Diagnostic(
            package=name,
            kind=DiagnosticKind.FALLBACK,
            message=f"{preferred.label}: {name} {result.describe()}; falling back to {fallback.label}",
        ))

        result = fallback.resolve_version(name)
        if result.is_found:
            outcome.remote = result.to_remote_version(name)
            return outcome

        outcome.diagnostics.append(Diagnostic(
            package=name,
            kind=DiagnosticKind.SKIPPED,
            message=f"{fallback.label}: {name} {result.describe()}; skipping",
        ))
        return outcome


def plan_updates(
    installed: Sequence[PackageRecord],
    preferred_source: MetadataSource,
    fallback_source: MetadataSource,
    workers: int = 1,
) -> Tuple[List[str], List[Diagnostic]]:
    """Convenience wrapper returning (packages, diagnostics)."""
    plan = ReconciliationEngine(workers=workers).plan_updates(
        installed, preferred_source, fallback_source
    )
    return plan.packages, plan.diagnostics
