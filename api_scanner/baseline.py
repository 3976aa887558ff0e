"""Baseline API digest generation.

For a resolved baseline revision, ensures that ``<baseline_dir>/<module>.json``
exists for every module to diff. Existing digests are reused unless a
regeneration is forced; missing ones are produced by checking the revision
out into a scratch directory, building it and running the digester.
"""

import logging
import shutil
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional, Set

from .backends.base import BuildSystem, VersionControl
from .concurrency import run_bounded
from .digester import SwiftAPIDigester
from .observability import ObservabilityScope

logger = logging.getLogger(__name__)


@dataclass
class Baseline:
    """Directory holding the baseline digests of one run."""
    path: Path
    # Modules the baseline revision does not define
    missing: Set[str] = field(default_factory=set)
    # Modules whose digest could not be generated
    failed: Set[str] = field(default_factory=set)

    def digest_path(self, module: str) -> Path:
        return self.path / f"{module}.json"

    def has_digest(self, module: str) -> bool:
        return self.digest_path(module).is_file()


class BaselineDumper:
    """Materializes baseline digests for a baseline revision."""

    def __init__(self, revision: str, vcs: VersionControl, build_system: BuildSystem,
                 digester: SwiftAPIDigester, scope: ObservabilityScope,
                 scratch_dir: Path, workers: Optional[int] = None):
        """
        Args:
            revision: Resolved baseline revision
            vcs: Version control backend of the package repository
            build_system: Build system used to build the baseline checkout
            digester: Digester used to dump the baseline API
            scope: Where per-module failures are reported
            scratch_dir: Process-scoped directory for checkouts and default baselines
            workers: Parallel digester invocations (defaults to build_system.workers)
        """
        self.revision = revision
        self.vcs = vcs
        self.build_system = build_system
        self.digester = digester
        self.scope = scope
        self.scratch_dir = Path(scratch_dir)
        self.workers = workers or build_system.workers

    def default_baseline_dir(self) -> Path:
        return self.scratch_dir / "baselines" / self.revision

    def emit_api_baseline(self, modules: Iterable[str], baseline_dir: Optional[Path] = None,
                          force: bool = False) -> Baseline:
        """Ensure a baseline digest exists for every module.

        Args:
            modules: Modules to diff
            baseline_dir: Directory to keep digests in; defaults to a
                          revision-specific directory under scratch_dir
            force: Regenerate digests even if they already exist

        Returns:
            Baseline describing the digest directory

        Raises:
            VersionControlError: If the baseline revision cannot be checked out
            BuildError: If the baseline revision cannot be built
        """
        baseline = Baseline(path=Path(baseline_dir) if baseline_dir else self.default_baseline_dir())
        baseline.path.mkdir(parents=True, exist_ok=True)

        modules = set(modules)
        if force:
            pending = modules
        else:
            pending = {module for module in modules if not baseline.has_digest(module)}
        if not pending:
            logger.info("Reusing existing baselines in %s", baseline.path)
            return baseline

        for module in pending:
            baseline.digest_path(module).unlink(missing_ok=True)

        checkout_dir = self.scratch_dir / f"{self.revision}-checkout"
        if checkout_dir.exists():
            shutil.rmtree(checkout_dir)
        logger.info("Checking out baseline revision %s", self.revision)
        package_root = self.vcs.create_working_copy(self.revision, checkout_dir)

        baseline_graph = self.build_system.describe(package_root)
        build_plan = self.build_system.build(package_root)

        known = baseline_graph.module_names
        baseline.missing = {module for module in pending if module not in known}
        for module in sorted(baseline.missing):
            logger.info("%s is not defined at baseline revision %s", module, self.revision)

        lock = threading.Lock()

        def _dump(module: str) -> None:
            output_path = baseline.digest_path(module)
            try:
                self.digester.dump_baseline(module, output_path, build_plan)
            except Exception as e:  # per-module errors never abort the run
                output_path.unlink(missing_ok=True)
                self.scope.emit_warning(f"failed to generate baseline for {module}", underlying_error=e)
                with lock:
                    baseline.failed.add(module)

        run_bounded(sorted(pending - baseline.missing), _dump, self.workers)
        return baseline
