"""Exception types raised by api-scanner.

Environment and configuration errors abort the whole run; ``DigesterError``
is local to one module and never escapes the comparison scheduler.
"""


class APIScannerError(Exception):
    """Base class for all api-scanner errors."""


class ConfigError(APIScannerError, ValueError):
    """Invalid configuration file or option value."""


class SelectionError(APIScannerError):
    """One or more product/target filters could not be honored."""


class AllowlistError(APIScannerError):
    """The breakage allowlist file could not be read."""


class VersionControlError(APIScannerError):
    """A revision could not be resolved or checked out."""


class BuildError(APIScannerError):
    """The package could not be described or built."""


class ToolchainError(APIScannerError):
    """A required tool is missing or too old."""


class DigesterError(APIScannerError):
    """swift-api-digester failed for a single module."""
