"""Factory for the backends and tools used by a run."""

import os
import shutil
from pathlib import Path
from typing import List, Optional, Tuple

from ..config import Config
from ..digester import SwiftAPIDigester
from .git import GitRepository
from .swiftpm import SwiftPMBuildSystem


def _api_digester_candidates(swift: str, configured: Optional[str]) -> List[str]:
    candidates = []
    if configured:
        candidates.append(configured)
    candidates.append("swift-api-digester")
    # Toolchains ship the digester next to the swift driver
    swift_path = shutil.which(swift)
    if swift_path:
        candidates.append(str(Path(swift_path).resolve().parent / "swift-api-digester"))
    return candidates


def find_api_digester(swift: str = "swift", configured: Optional[str] = None) -> str:
    """Auto-detect the swift-api-digester binary path."""
    for candidate in _api_digester_candidates(swift, configured):
        resolved = shutil.which(candidate) or (candidate if Path(candidate).is_file() else None)
        if resolved and Path(resolved).is_file() and os.access(resolved, os.X_OK):
            return resolved
    return configured or "swift-api-digester"  # let it fail with a clear error later


def create_backends(package_root: Path, config: Config,
                    jobs: Optional[int] = None) -> Tuple[GitRepository, SwiftPMBuildSystem]:
    """Create the version control and build system backends for a package.

    jobs overrides the configured number of parallel jobs.
    """
    vcs = GitRepository(package_root)
    build_system = SwiftPMBuildSystem(swift=config.swift, jobs=jobs or config.jobs)
    return vcs, build_system


def create_digester(config: Config) -> SwiftAPIDigester:
    """Create the digester wrapper.

    Raises:
        ToolchainError: If swift-api-digester cannot be found
    """
    tool = find_api_digester(config.swift, config.api_digester)
    return SwiftAPIDigester(tool, timeout=config.digester_timeout)
