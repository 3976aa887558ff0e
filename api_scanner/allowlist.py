"""Breakage allowlist loading."""

from pathlib import Path
from typing import FrozenSet, Optional

from .errors import AllowlistError


def load_allowlist(path: Optional[Path]) -> FrozenSet[str]:
    """Load the exact breakage messages to ignore.

    Each non-empty line of the file is one message, e.g.
    ``API breakage: func foo() has been removed``.

    Args:
        path: Allowlist file, or None when no allowlist was given

    Returns:
        Frozen set of messages (empty when path is None)

    Raises:
        AllowlistError: If the file cannot be read
    """
    if path is None:
        return frozenset()
    try:
        content = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise AllowlistError(f"Cannot read breakage allowlist {path}: {e}") from e
    return frozenset(
        line.strip() for line in content.splitlines() if line.strip()
    )
