"""Git version control backend."""

import logging
import subprocess
from pathlib import Path
from typing import List

from ..errors import VersionControlError
from .base import VersionControl

logger = logging.getLogger(__name__)


class GitRepository(VersionControl):
    """Git repository containing the package.

    Baseline checkouts are ``git clone --shared`` copies, so the current
    working tree (and its index) is never touched and every commit object of
    the source repository is available to the clone.
    """

    def __init__(self, path: Path, executable: str = "git"):
        """
        Args:
            path: Any directory inside the repository (usually the package root)
            executable: git executable to use
        """
        self.path = Path(path)
        self.executable = executable

    def _git(self, args: List[str], cwd: Path) -> subprocess.CompletedProcess:
        cmd = [self.executable, *args]
        logger.debug("Running %s in %s", " ".join(cmd), cwd)
        try:
            return subprocess.run(cmd, cwd=str(cwd), capture_output=True, text=True, check=False)
        except FileNotFoundError:
            raise VersionControlError(f"git executable not found: {self.executable!r}") from None

    def resolve_revision(self, treeish: str) -> str:
        result = self._git(["rev-parse", "--verify", "--quiet", f"{treeish}^{{commit}}"], self.path)
        revision = result.stdout.strip()
        if result.returncode != 0 or not revision:
            raise VersionControlError(
                f"Could not resolve '{treeish}' to a commit in {self.path}"
            )
        return revision

    def toplevel(self) -> Path:
        """Root of the working tree containing self.path."""
        result = self._git(["rev-parse", "--show-toplevel"], self.path)
        if result.returncode != 0 or not result.stdout.strip():
            raise VersionControlError(f"{self.path} is not inside a git repository")
        return Path(result.stdout.strip())

    def create_working_copy(self, revision: str, destination: Path) -> Path:
        """Clone the repository into destination and check out revision.

        Returns the directory inside the clone that corresponds to
        self.path, so packages living in a subdirectory of the repository
        keep working.
        """
        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        toplevel = self.toplevel()
        subdir = self.path.resolve().relative_to(toplevel.resolve())

        clone = self._git(
            ["clone", "--shared", "--no-checkout", "--quiet", str(toplevel), str(destination)],
            destination.parent,
        )
        if clone.returncode != 0:
            raise VersionControlError(
                f"git clone of {self.path} failed (rc={clone.returncode}): {clone.stderr.strip()[-300:]}"
            )

        checkout = self._git(["checkout", "--quiet", "--detach", revision], destination)
        if checkout.returncode != 0:
            raise VersionControlError(
                f"git checkout of {revision} failed (rc={checkout.returncode}): "
                f"{checkout.stderr.strip()[-300:]}"
            )
        return destination / subdir
