"""Version control and build system backends for api-scanner.

Provides the collaborators a comparison run depends on:
- git for resolving and checking out the baseline revision
- SwiftPM for describing and building packages
"""

from .base import BuildPlan, BuildSystem, VersionControl
from .git import GitRepository
from .swiftpm import SwiftPMBuildSystem

__all__ = [
    'BuildPlan',
    'BuildSystem',
    'VersionControl',
    'GitRepository',
    'SwiftPMBuildSystem',
]
