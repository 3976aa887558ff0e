"""Human-readable reporting of comparison results and the final verdict."""

import sys
from typing import Optional, TextIO

from .digester import ComparisonResult
from .observability import ObservabilityScope, Severity
from .scheduler import RunOutcome


def emit_diagnostics(result: ComparisonResult, scope: ObservabilityScope) -> None:
    """Forward the non-breaking diagnostics of a result to the scope."""
    for diagnostic in result.other_diagnostics:
        severity = diagnostic.severity
        if severity in (Severity.ERROR, Severity.FATAL):
            scope.emit_error(diagnostic.text, location=diagnostic.location)
        elif severity is Severity.WARNING:
            scope.emit_warning(diagnostic.text, location=diagnostic.location)
        elif severity in (Severity.NOTE, Severity.REMARK):
            scope.emit_info(diagnostic.text, location=diagnostic.location)
        elif severity is Severity.IGNORED:
            continue
        else:
            raise AssertionError(f"Unhandled severity: {severity}")


def format_breaking_changes(result: ComparisonResult) -> str:
    """Format the breakage report of one module."""
    module = result.module_name
    if result.has_no_api_breaking_changes:
        return f"No breaking changes detected in {module}"

    count = len(result.api_breaking_changes)
    lines = [f"{count} breaking {'changes' if count > 1 else 'change'} detected in {module}:"]
    for change in result.api_breaking_changes:
        lines.append(f"  💔 {change.text}")
    return "\n".join(lines)


def print_comparison_result(result: ComparisonResult, scope: ObservabilityScope,
                            out: Optional[TextIO] = None) -> None:
    emit_diagnostics(result, scope)
    print(f"\n{format_breaking_changes(result)}", file=out or sys.stdout)


def report_outcome(outcome: RunOutcome, scope: ObservabilityScope,
                   out: Optional[TextIO] = None) -> bool:
    """Print every result and return the verdict.

    Failed modules were already reported by the scheduler when their
    comparison failed; skipped modules do not affect the verdict.

    Returns:
        True if no module failed and no module has breaking changes
    """
    for result in sorted(outcome.results, key=lambda r: r.module_name):
        print_comparison_result(result, scope, out)
    return outcome.verdict
