"""API Scanner - API breaking change detection for Swift packages."""

__version__ = "0.3.0"
