"""SwiftPM build system backend."""

import json
import logging
import os
import re
import subprocess
from pathlib import Path
from typing import Any, Dict, List, Optional

from packaging.version import InvalidVersion, Version

from ..errors import BuildError, ToolchainError
from ..package_graph import PackageGraph
from .base import BuildPlan, BuildSystem

logger = logging.getLogger(__name__)

# Oldest toolchain with `package describe --type json`
MINIMUM_SWIFT_VERSION = Version("5.6")

_SWIFT_VERSION_RE = re.compile(r"Swift version (\d+(?:\.\d+)*)")


class SwiftPMBuildSystem(BuildSystem):
    """Describe and build Swift packages with the ``swift`` driver."""

    def __init__(self, swift: str = "swift", jobs: Optional[int] = None,
                 configuration: str = "debug"):
        """
        Args:
            swift: swift driver executable
            jobs: Parallel build jobs; defaults to the number of CPUs
            configuration: Build configuration (debug/release)
        """
        self.swift = swift
        self.configuration = configuration
        self._workers = jobs or os.cpu_count() or 1
        self._target_info: Optional[Dict[str, Any]] = None

    @property
    def workers(self) -> int:
        return self._workers

    def _run(self, args: List[str], timeout: Optional[int] = None) -> subprocess.CompletedProcess:
        cmd = [self.swift, *args]
        logger.debug("Running %s", " ".join(cmd))
        try:
            return subprocess.run(cmd, capture_output=True, text=True, check=False, timeout=timeout)
        except FileNotFoundError:
            raise ToolchainError(f"swift executable not found: {self.swift!r}") from None
        except subprocess.TimeoutExpired:
            raise ToolchainError(f"`{' '.join(cmd)}` timed out after {timeout}s") from None

    def version(self) -> Version:
        """Return the toolchain version reported by ``swift --version``.

        Raises:
            ToolchainError: If swift is missing or the version is unparseable
        """
        result = self._run(["--version"], timeout=60)
        output = f"{result.stdout}\n{result.stderr}"
        match = _SWIFT_VERSION_RE.search(output)
        if result.returncode != 0 or not match:
            raise ToolchainError(f"Could not determine Swift version from: {output.strip()[:200]!r}")
        try:
            return Version(match.group(1))
        except InvalidVersion as e:
            raise ToolchainError(f"Invalid Swift version {match.group(1)!r}: {e}") from e

    def check_version(self) -> Version:
        """Verify that the toolchain is recent enough."""
        version = self.version()
        if version < MINIMUM_SWIFT_VERSION:
            raise ToolchainError(
                f"Swift {version} is not supported, {MINIMUM_SWIFT_VERSION} or later is required"
            )
        return version

    def target_info(self) -> Dict[str, Any]:
        """Output of ``swift -print-target-info`` (empty dict if unavailable)."""
        if self._target_info is None:
            result = self._run(["-print-target-info"], timeout=60)
            info: Dict[str, Any] = {}
            if result.returncode == 0:
                try:
                    info = json.loads(result.stdout)
                except json.JSONDecodeError:
                    logger.warning("swift -print-target-info returned invalid JSON, ignoring it")
            else:
                logger.warning("swift -print-target-info failed (rc=%d), ignoring it", result.returncode)
            self._target_info = info
        return self._target_info

    def describe(self, package_root: Path) -> PackageGraph:
        result = self._run(["package", "--package-path", str(package_root), "describe", "--type", "json"])
        if result.returncode != 0:
            raise BuildError(
                f"Failed to load package at {package_root} (rc={result.returncode}): "
                f"{result.stderr.strip()[-300:]}"
            )
        try:
            return PackageGraph.from_description(json.loads(result.stdout))
        except (json.JSONDecodeError, ValueError) as e:
            raise BuildError(f"Invalid package description for {package_root}: {e}") from e

    def build(self, package_root: Path) -> BuildPlan:
        common = ["--package-path", str(package_root), "-c", self.configuration]

        logger.info("Building %s", package_root)
        result = self._run(["build", *common, "-j", str(self.workers)])
        if result.returncode != 0:
            output = (result.stderr.strip() or result.stdout.strip())[-500:]
            raise BuildError(f"Build of {package_root} failed (rc={result.returncode}):\n{output}")

        bin_result = self._run(["build", *common, "--show-bin-path"])
        bin_path = bin_result.stdout.strip().splitlines()[-1] if bin_result.stdout.strip() else ""
        if bin_result.returncode != 0 or not bin_path:
            raise BuildError(f"Could not determine the build directory of {package_root}")
        bin_dir = Path(bin_path)

        info = self.target_info()
        sdk = info.get("paths", {}).get("sdkPath")
        return BuildPlan(
            package_root=Path(package_root),
            bin_path=bin_dir,
            workers=self.workers,
            # Newer toolchains put .swiftmodule files under Modules/
            include_paths=[bin_dir / "Modules", bin_dir],
            triple=info.get("target", {}).get("triple"),
            sdk=Path(sdk) if sdk else None,
        )
