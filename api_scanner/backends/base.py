"""Base interfaces for the version control and build system backends."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from ..package_graph import PackageGraph


@dataclass
class BuildPlan:
    """Result of building a package, as needed by swift-api-digester."""

    package_root: Path
    bin_path: Path
    workers: int = 1
    include_paths: List[Path] = field(default_factory=list)
    triple: Optional[str] = None
    sdk: Optional[Path] = None

    def api_tool_args(self) -> List[str]:
        """Arguments shared by every swift-api-digester invocation."""
        args: List[str] = []
        if self.triple:
            args.extend(["-target", self.triple])
        if self.sdk:
            args.extend(["-sdk", str(self.sdk)])
        for include in self.include_paths:
            args.extend(["-I", str(include)])
        return args


class VersionControl(ABC):
    """Abstract version control backend.

    Resolves revisions of the package repository and materializes them in
    isolation from the current working tree.
    """

    @abstractmethod
    def resolve_revision(self, treeish: str) -> str:
        """Resolve a treeish to a full revision identifier.

        Args:
            treeish: Commit hash, branch, tag, ...

        Returns:
            Full, immutable revision identifier

        Raises:
            VersionControlError: If the treeish does not name a commit
        """
        pass

    @abstractmethod
    def create_working_copy(self, revision: str, destination: Path) -> Path:
        """Check out a revision into a new directory.

        Args:
            revision: Revision returned by resolve_revision()
            destination: Directory to create (must not exist)

        Returns:
            Root of the new working copy

        Raises:
            VersionControlError: If the checkout fails
        """
        pass


class BuildSystem(ABC):
    """Abstract build system backend."""

    @property
    @abstractmethod
    def workers(self) -> int:
        """Number of parallel jobs the build system is allowed to use."""
        pass

    @abstractmethod
    def describe(self, package_root: Path) -> PackageGraph:
        """Load the package graph of the package at package_root.

        Raises:
            BuildError: If the package manifest cannot be loaded
        """
        pass

    @abstractmethod
    def build(self, package_root: Path) -> BuildPlan:
        """Build the package at package_root.

        Raises:
            BuildError: If the build fails
        """
        pass
