"""Bounded-parallel comparison of modules against their baselines."""

import sys
import threading
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, List, Optional, Set, TextIO

from .backends.base import BuildPlan
from .baseline import Baseline
from .concurrency import run_bounded
from .digester import ComparisonResult, SwiftAPIDigester
from .observability import ObservabilityScope


class ResultStore:
    """Append-only, thread-safe list of comparison results."""

    def __init__(self):
        self._lock = threading.Lock()
        self._results: List[ComparisonResult] = []

    def append(self, result: ComparisonResult) -> None:
        with self._lock:
            self._results.append(result)

    def get(self) -> List[ComparisonResult]:
        with self._lock:
            return list(self._results)

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)


@dataclass
class RunOutcome:
    """Partition of the requested modules after comparison.

    Every requested module is in exactly one of skipped, failed or
    succeeded (the modules with a result).
    """
    requested: Set[str]
    skipped: Set[str] = field(default_factory=set)
    failed: Set[str] = field(default_factory=set)
    results: List[ComparisonResult] = field(default_factory=list)

    @property
    def succeeded(self) -> Set[str]:
        return {result.module_name for result in self.results}

    @property
    def verdict(self) -> bool:
        """True when nothing failed and no module has breaking changes."""
        return not self.failed and all(r.has_no_api_breaking_changes for r in self.results)


class ComparisonScheduler:
    """Runs swift-api-digester comparisons with at most ``workers`` in flight."""

    def __init__(self, digester: SwiftAPIDigester, scope: ObservabilityScope,
                 workers: int, out: Optional[TextIO] = None):
        self.digester = digester
        self.scope = scope
        self.workers = workers
        self.out = out or sys.stdout

    def run(self, modules: Iterable[str], baseline: Baseline, build_plan: BuildPlan,
            allowlist: FrozenSet[str] = frozenset()) -> RunOutcome:
        """Compare every module that has a baseline digest.

        Modules without a digest are skipped. A comparison error marks its
        module as failed and is reported immediately; other comparisons keep
        going. Returns once every comparison has finished.
        """
        outcome = RunOutcome(requested=set(modules))
        store = ResultStore()
        failed_lock = threading.Lock()

        scheduled = []
        for module in sorted(outcome.requested):
            if not baseline.has_digest(module):
                if module in baseline.failed:
                    print(f"\nSkipping {module} because its baseline could not be generated",
                          file=self.out)
                else:
                    print(f"\nSkipping {module} because it does not exist in the baseline",
                          file=self.out)
                outcome.skipped.add(module)
                continue
            scheduled.append(module)

        def _compare(module: str) -> None:
            try:
                result = self.digester.compare_to_baseline(
                    baseline.digest_path(module), module, build_plan, allowlist
                )
            except Exception as e:  # per-module errors never abort the run
                self.scope.emit_error(f"failed to compare API to baseline for {module}",
                                      underlying_error=e)
                with failed_lock:
                    outcome.failed.add(module)
                return
            store.append(result)

        run_bounded(scheduled, _compare, self.workers)

        outcome.results = store.get()
        return outcome
