"""Fake collaborators and graph builders shared by the tests."""

import json
import threading
import time
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from api_scanner.backends.base import BuildPlan, BuildSystem, VersionControl
from api_scanner.digester import ComparisonResult
from api_scanner.errors import BuildError, DigesterError, VersionControlError
from api_scanner.observability import Diagnostic, Severity
from api_scanner.package_graph import (
    Language,
    Package,
    PackageGraph,
    Product,
    ProductKind,
    Target,
    TargetKind,
)

REVISION = "0123456789abcdef0123456789abcdef01234567"


def swift_library(name: str) -> Target:
    return Target(name=name, c99name=name, kind=TargetKind.LIBRARY, language=Language.SWIFT)


def make_graph(libraries: Dict[str, List[str]], extra_targets: Iterable[Target] = (),
               extra_products: Iterable[Product] = ()) -> PackageGraph:
    """Graph with one library product per entry of libraries (product -> Swift targets)."""
    targets: Dict[str, Target] = {}
    products = []
    for product_name, target_names in libraries.items():
        members = []
        for target_name in target_names:
            target = targets.setdefault(target_name, swift_library(target_name))
            members.append(target)
        products.append(Product(name=product_name, kind=ProductKind.LIBRARY, targets=tuple(members)))
    for target in extra_targets:
        targets[target.name] = target
    products.extend(extra_products)
    package = Package(name="Pkg", products=products, targets=list(targets.values()))
    return PackageGraph(root_packages=[package])


class FakeVersionControl(VersionControl):
    def __init__(self, revisions: Optional[Dict[str, str]] = None):
        self.revisions = revisions if revisions is not None else {"main": REVISION}
        self.checkouts: List[Path] = []

    def resolve_revision(self, treeish: str) -> str:
        if treeish not in self.revisions:
            raise VersionControlError(f"Could not resolve '{treeish}'")
        return self.revisions[treeish]

    def create_working_copy(self, revision: str, destination: Path) -> Path:
        destination.mkdir(parents=True)
        self.checkouts.append(destination)
        return destination


class FakeBuildSystem(BuildSystem):
    """Serves `graph` for the current package and `baseline_graph` for checkouts."""

    def __init__(self, current_root: Path, graph: PackageGraph,
                 baseline_graph: Optional[PackageGraph] = None, workers: int = 2,
                 fail_baseline_build: bool = False):
        self.current_root = Path(current_root)
        self.graph = graph
        self.baseline_graph = baseline_graph if baseline_graph is not None else graph
        self._workers = workers
        self.fail_baseline_build = fail_baseline_build
        self.described: List[Path] = []
        self.built: List[Path] = []

    @property
    def workers(self) -> int:
        return self._workers

    def describe(self, package_root: Path) -> PackageGraph:
        self.described.append(Path(package_root))
        if Path(package_root) == self.current_root:
            return self.graph
        return self.baseline_graph

    def build(self, package_root: Path) -> BuildPlan:
        self.built.append(Path(package_root))
        if self.fail_baseline_build and Path(package_root) != self.current_root:
            raise BuildError(f"Build of {package_root} failed")
        return BuildPlan(package_root=Path(package_root),
                         bin_path=Path(package_root) / ".build" / "debug",
                         workers=self._workers)


class FakeDigester:
    """Stands in for SwiftAPIDigester and records how it was used."""

    def __init__(self, breakages: Optional[Dict[str, List[str]]] = None,
                 other_diagnostics: Optional[Dict[str, List[Diagnostic]]] = None,
                 dump_failures: Iterable[str] = (), compare_failures: Iterable[str] = (),
                 crashes: Optional[Dict[str, Exception]] = None,
                 delay: float = 0.0):
        self.breakages = breakages or {}
        self.other_diagnostics = other_diagnostics or {}
        self.dump_failures = set(dump_failures)
        self.compare_failures = set(compare_failures)
        # Module -> exception raised by both dump and compare
        self.crashes = crashes or {}
        self.delay = delay
        self.dumps: List[str] = []
        self.compares: List[str] = []
        self.max_active = 0
        self._active = 0
        self._lock = threading.Lock()

    def _enter(self):
        with self._lock:
            self._active += 1
            self.max_active = max(self.max_active, self._active)

    def _leave(self):
        with self._lock:
            self._active -= 1

    def dump_baseline(self, module: str, output_path: Path, build_plan: BuildPlan) -> None:
        with self._lock:
            self.dumps.append(module)
        if module in self.crashes:
            raise self.crashes[module]
        if module in self.dump_failures:
            output_path.write_text("partial")
            raise DigesterError(f"dump of {module} failed (rc=1): boom")
        output_path.write_text(json.dumps({"module": module}))

    def compare_to_baseline(self, baseline_path: Path, module: str, build_plan: BuildPlan,
                            allowlist=frozenset()) -> ComparisonResult:
        self._enter()
        try:
            with self._lock:
                self.compares.append(module)
            if self.delay:
                time.sleep(self.delay)
            if module in self.crashes:
                raise self.crashes[module]
            if module in self.compare_failures:
                raise DigesterError(f"comparison of {module} failed (rc=1): crash")
            diagnostics = [
                Diagnostic(Severity.ERROR, text) for text in self.breakages.get(module, [])
            ]
            diagnostics.extend(self.other_diagnostics.get(module, []))
            return ComparisonResult.from_diagnostics(module, diagnostics, allowlist)
        finally:
            self._leave()
