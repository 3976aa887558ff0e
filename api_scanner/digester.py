"""API digest generation and comparison using swift-api-digester.

This module wraps the two digester modes used by api-scanner:
``-dump-sdk`` writes the JSON interface digest of one module, and
``-diagnose-sdk`` compares a module against such a digest and prints
compiler-style diagnostics.
"""

import logging
import os
import re
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet, Iterable, List, Optional

from .backends.base import BuildPlan
from .errors import DigesterError, ToolchainError
from .observability import Diagnostic, Severity, SourceLocation

logger = logging.getLogger(__name__)

# Messages the digester uses for breaking changes; the allowlist matches
# these texts exactly.
BREAKING_CHANGE_PREFIXES = ("API breakage:", "ABI breakage:")

_DIAGNOSTIC_RE = re.compile(
    r"^(?:(?P<file>.+?):(?P<line>\d+)(?::(?P<column>\d+))?: )?"
    r"(?P<severity>fatal error|error|warning|note|remark): (?P<text>.*)$"
)

_UNKNOWN_FILES = {"", "<unknown>", "<invalid loc>"}


def parse_diagnostics(output: str) -> List[Diagnostic]:
    """Parse compiler-style diagnostics.

    Examples:
        '<unknown>:0: error: API breakage: func foo() has been removed'
        '/src/Foo.swift:12:5: warning: something'
        'note: something else'

    Lines that are not diagnostics (source excerpts, summaries) are skipped.
    """
    diagnostics = []
    for line in output.splitlines():
        match = _DIAGNOSTIC_RE.match(line.rstrip())
        if not match:
            continue
        location = None
        filename = match.group("file")
        if filename is not None and filename not in _UNKNOWN_FILES:
            line_no = int(match.group("line"))
            location = SourceLocation(filename, line_no if line_no > 0 else None)
        diagnostics.append(Diagnostic(
            severity=Severity.parse(match.group("severity")),
            text=match.group("text"),
            location=location,
        ))
    return diagnostics


def is_breaking_change(diagnostic: Diagnostic) -> bool:
    return diagnostic.text.startswith(BREAKING_CHANGE_PREFIXES)


@dataclass
class ComparisonResult:
    """Result of comparing one module against its baseline"""
    module_name: str
    api_breaking_changes: List[Diagnostic] = field(default_factory=list)
    other_diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def has_no_api_breaking_changes(self) -> bool:
        return not self.api_breaking_changes

    @classmethod
    def from_diagnostics(cls, module_name: str, diagnostics: Iterable[Diagnostic],
                         allowlist: FrozenSet[str] = frozenset()) -> "ComparisonResult":
        """Split diagnostics into breaking changes and everything else.

        Breaking changes whose message is in the allowlist are dropped.
        """
        result = cls(module_name=module_name)
        for diagnostic in diagnostics:
            if is_breaking_change(diagnostic):
                if diagnostic.text not in allowlist:
                    result.api_breaking_changes.append(diagnostic)
            else:
                result.other_diagnostics.append(diagnostic)
        return result


class SwiftAPIDigester:
    """High-level wrapper around the swift-api-digester executable"""

    def __init__(self, tool: str = "swift-api-digester", timeout: Optional[float] = None):
        """
        Args:
            tool: swift-api-digester executable (name or path)
            timeout: Seconds after which a single invocation is abandoned;
                     None waits forever.
        """
        self.timeout = timeout
        self.tool = self._check_tool(tool)

    @staticmethod
    def _check_tool(tool: str) -> str:
        """Resolve the digester to an absolute path"""
        resolved = shutil.which(tool)
        if not resolved:
            raise ToolchainError(
                f"swift-api-digester not found ({tool!r}). "
                "Install a Swift toolchain or set 'api_digester' in the config file"
            )
        return resolved

    def _run(self, cmd: List[str], module: str) -> subprocess.CompletedProcess:
        logger.debug("Running %s", " ".join(cmd))
        try:
            # Diagnostics may quote source text that is not valid UTF-8
            return subprocess.run(cmd, capture_output=True, text=True, errors="replace",
                                  timeout=self.timeout)
        except FileNotFoundError:
            raise DigesterError(f"swift-api-digester not found: {self.tool!r}") from None
        except OSError as e:
            raise DigesterError(f"could not run swift-api-digester for {module}: {e}") from e
        except subprocess.TimeoutExpired:
            raise DigesterError(
                f"swift-api-digester timed out after {self.timeout}s for {module}"
            ) from None

    def dump_baseline(self, module: str, output_path: Path, build_plan: BuildPlan) -> None:
        """Write the JSON interface digest of a module.

        Args:
            module: Module name
            output_path: Where to save the digest
            build_plan: Build plan of the package the module belongs to

        Raises:
            DigesterError: If the digester fails or produces no output
        """
        cmd = [
            self.tool, "-dump-sdk",
            "-module", module,
            "-o", str(output_path),
            *build_plan.api_tool_args(),
            "-abort-on-module-fail",
        ]
        result = self._run(cmd, module)

        # The digester may exit 0 without writing anything when the module
        # cannot be loaded.
        if result.returncode != 0 or not output_path.exists() or output_path.stat().st_size == 0:
            stderr_tail = result.stderr.strip()[-300:] if result.stderr.strip() else "(no output)"
            raise DigesterError(f"dump of {module} failed (rc={result.returncode}): {stderr_tail}")

    def compare_to_baseline(self, baseline_path: Path, module: str, build_plan: BuildPlan,
                            allowlist: FrozenSet[str] = frozenset()) -> ComparisonResult:
        """Compare the current API of a module against its baseline digest.

        Args:
            baseline_path: Baseline JSON digest of the module
            module: Module name
            build_plan: Build plan of the current package
            allowlist: Breaking change messages to ignore

        Returns:
            ComparisonResult with allowlisted breakages removed

        Raises:
            DigesterError: If the baseline is unreadable or the digester fails
        """
        if not baseline_path.is_file() or not os.access(baseline_path, os.R_OK):
            raise DigesterError(f"baseline {baseline_path} for {module} is not readable")

        cmd = [
            self.tool, "-diagnose-sdk",
            "-baseline-path", str(baseline_path),
            "-module", module,
            *build_plan.api_tool_args(),
            "-compiler-style-diags",
        ]
        result = self._run(cmd, module)

        if result.returncode < 0:
            raise DigesterError(
                f"swift-api-digester was killed by signal {-result.returncode} while comparing {module}"
            )
        diagnostics = parse_diagnostics(result.stderr) + parse_diagnostics(result.stdout)
        # A non-zero exit is expected when breakages are reported; without
        # any diagnostic it means the tool itself failed.
        if result.returncode != 0 and not diagnostics:
            stderr_tail = result.stderr.strip()[-300:] if result.stderr.strip() else "(no output)"
            raise DigesterError(f"comparison of {module} failed (rc={result.returncode}): {stderr_tail}")

        return ComparisonResult.from_diagnostics(module, diagnostics, allowlist)
