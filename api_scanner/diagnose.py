"""Driver of the diagnose-api-breaking-changes command."""

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, TextIO

from .allowlist import load_allowlist
from .backends.base import BuildSystem, VersionControl
from .baseline import BaselineDumper
from .digester import SwiftAPIDigester
from .observability import ObservabilityScope
from .report import report_outcome
from .scheduler import ComparisonScheduler, RunOutcome
from .selector import determine_modules_to_diff

logger = logging.getLogger(__name__)


@dataclass
class DiagnoseOptions:
    """User options of one API comparison run."""
    treeish: str
    products: List[str] = field(default_factory=list)
    targets: List[str] = field(default_factory=list)
    baseline_dir: Optional[Path] = None
    breakage_allowlist_path: Optional[Path] = None
    regenerate_baseline: bool = False


class APIDiff:
    """Compares the API of a package against a baseline revision.

    All collaborators are passed in so tests can substitute fakes.
    """

    def __init__(self, package_root: Path, vcs: VersionControl, build_system: BuildSystem,
                 digester: SwiftAPIDigester, scope: ObservabilityScope, scratch_dir: Path,
                 out: Optional[TextIO] = None):
        self.package_root = Path(package_root)
        self.vcs = vcs
        self.build_system = build_system
        self.digester = digester
        self.scope = scope
        self.scratch_dir = Path(scratch_dir)
        self.out = out or sys.stdout

    def run(self, options: DiagnoseOptions) -> RunOutcome:
        """Run the comparison and print the report.

        Returns:
            RunOutcome; its verdict is the result of the run

        Raises:
            AllowlistError, VersionControlError, BuildError: Fatal environment errors
            SelectionError: If a product/target filter is invalid
        """
        allowlist = load_allowlist(options.breakage_allowlist_path)
        revision = self.vcs.resolve_revision(options.treeish)
        logger.debug("Baseline %s resolved to %s", options.treeish, revision)

        graph = self.build_system.describe(self.package_root)
        modules = determine_modules_to_diff(graph, options.products, options.targets, self.scope)

        # The digester needs the compiled modules of the current package.
        build_plan = self.build_system.build(self.package_root)

        dumper = BaselineDumper(
            revision=revision,
            vcs=self.vcs,
            build_system=self.build_system,
            digester=self.digester,
            scope=self.scope,
            scratch_dir=self.scratch_dir,
        )
        baseline = dumper.emit_api_baseline(
            modules,
            baseline_dir=options.baseline_dir,
            force=options.regenerate_baseline,
        )

        scheduler = ComparisonScheduler(self.digester, self.scope, self.build_system.workers, self.out)
        outcome = scheduler.run(modules, baseline, build_plan, allowlist)
        report_outcome(outcome, self.scope, self.out)
        return outcome
