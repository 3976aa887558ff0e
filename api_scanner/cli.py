"""CLI interface for api-scanner."""

import argparse
import logging
import sys
import tempfile
from pathlib import Path

from . import __version__
from .backends.factory import create_backends, create_digester
from .config import Config
from .diagnose import APIDiff, DiagnoseOptions
from .errors import APIScannerError, SelectionError
from .observability import ObservabilityScope


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def cmd_diagnose(args):
    """Execute diagnose-api-breaking-changes command."""
    scope = ObservabilityScope()
    try:
        package_root = Path(args.package_path).expanduser().resolve()
        config = Config.discover(package_root, args.config)
        if args.verbose and config.source:
            print(f"Using configuration {config.source}", file=sys.stderr)

        options = DiagnoseOptions(
            treeish=args.treeish,
            products=args.products or config.products,
            targets=args.targets or config.targets,
            baseline_dir=args.baseline_dir or config.baseline_dir,
            breakage_allowlist_path=args.breakage_allowlist_path or config.breakage_allowlist_path,
            regenerate_baseline=args.regenerate_baseline,
        )

        vcs, build_system = create_backends(package_root, config, jobs=args.jobs)
        build_system.check_version()
        digester = create_digester(config)

        with tempfile.TemporaryDirectory(prefix="api_scanner_") as tmpdir:
            api_diff = APIDiff(package_root, vcs, build_system, digester, scope, Path(tmpdir))
            outcome = api_diff.run(options)

        if not outcome.verdict or scope.errors_reported:
            return 1
        return 0

    except SelectionError:
        # Every invalid filter has already been reported
        return 1
    except APIScannerError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        if args.verbose:
            raise
        print(f"Unexpected error: {e}", file=sys.stderr)
        return 1


def cmd_experimental_api_diff(args):
    """Deprecated name of diagnose-api-breaking-changes."""
    print("`api-scanner experimental-api-diff` has been renamed to "
          "`api-scanner diagnose-api-breaking-changes`")
    return 1


def create_parser():
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="api-scanner",
        description="API Scanner: API breaking change detection for Swift packages",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Compare every library module against the main branch
  api-scanner diagnose-api-breaking-changes main

  # Only some products/targets, keeping baselines between runs
  api-scanner diagnose-api-breaking-changes 1.2.0 --products MyLib --baseline-dir .build/api-baselines

  # Ignore known breakages
  api-scanner diagnose-api-breaking-changes origin/main --breakage-allowlist-path allowlist.txt

Exit codes:
  0 = No breaking changes
  1 = Breaking changes, invalid filters or errors
"""
    )

    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # diagnose-api-breaking-changes
    dp = subparsers.add_parser(
        "diagnose-api-breaking-changes",
        help="Diagnose API-breaking changes to Swift modules in a package",
        description=(
            "Compare the Swift API of a package to a baseline revision, diagnosing any "
            "breaking changes which have been introduced. By default every Swift module "
            "that is part of a library product is compared; --products and --targets "
            "restrict the scope of the comparison."
        ),
    )
    dp.add_argument("treeish",
                    help="The baseline treeish to compare to (e.g. a commit hash, branch name, tag, etc.)")
    dp.add_argument("--products", nargs="+", action="extend", default=[], metavar="PRODUCT",
                    help="One or more products to include in the API comparison")
    dp.add_argument("--targets", nargs="+", action="extend", default=[], metavar="TARGET",
                    help="One or more targets to include in the API comparison")
    dp.add_argument("--baseline-dir", type=Path, metavar="DIR",
                    help="Directory used to store API baseline files (default: a temporary directory)")
    dp.add_argument("--breakage-allowlist-path", type=Path, metavar="FILE",
                    help="Text file with one exact breaking change message to ignore per line "
                         "(e.g. 'API breakage: func foo() has been removed')")
    dp.add_argument("--regenerate-baseline", action="store_true",
                    help="Regenerate the API baseline, even if an existing one is available")
    dp.add_argument("--package-path", default=".", metavar="DIR",
                    help="Root of the package to check (default: current directory)")
    dp.add_argument("-j", "--jobs", type=int, metavar="N",
                    help="Number of parallel build jobs and digester invocations (default: CPU count)")
    dp.add_argument("--config", type=Path, metavar="FILE",
                    help="YAML configuration file (default: .api-scanner.yml in the package root)")
    dp.add_argument("-v", "--verbose", action="store_true")

    # experimental-api-diff (deprecated)
    dep = subparsers.add_parser("experimental-api-diff", help=argparse.SUPPRESS)
    dep.add_argument("args", nargs=argparse.REMAINDER)

    return parser


def main(argv=None):
    """Entry point for CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    if args.command == "diagnose-api-breaking-changes":
        if args.jobs is not None and args.jobs < 1:
            parser.error("--jobs must be at least 1")
        _setup_logging(args.verbose)

    handlers = {
        "diagnose-api-breaking-changes": cmd_diagnose,
        "experimental-api-diff":         cmd_experimental_api_diff,
    }
    return handlers[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
