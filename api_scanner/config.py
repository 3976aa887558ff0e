"""Optional YAML configuration file.

Example ``.api-scanner.yml``:

    baseline_dir: .build/api-baselines
    breakage_allowlist_path: api-breakage-allowlist.txt
    jobs: 4
    products: [MyLibrary]
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .errors import ConfigError

CONFIG_FILENAME = ".api-scanner.yml"

_PATH_KEYS = ("baseline_dir", "breakage_allowlist_path")
_STRING_KEYS = ("swift", "api_digester")
_LIST_KEYS = ("products", "targets")


@dataclass
class Config:
    """Settings shared by CLI invocations; CLI flags take precedence."""

    baseline_dir: Optional[Path] = None
    breakage_allowlist_path: Optional[Path] = None
    jobs: Optional[int] = None
    swift: str = "swift"
    api_digester: Optional[str] = None
    digester_timeout: Optional[float] = None
    products: List[str] = field(default_factory=list)
    targets: List[str] = field(default_factory=list)
    source: Optional[Path] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base_dir: Path) -> "Config":
        """Validate raw config values.

        Relative paths are resolved against base_dir.

        Raises:
            ConfigError: On unknown keys or values of the wrong type
        """
        known = set(_PATH_KEYS + _STRING_KEYS + _LIST_KEYS + ("jobs", "digester_timeout"))
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration key(s): {', '.join(unknown)}")

        config = cls()
        for key in _PATH_KEYS:
            value = data.get(key)
            if value is None:
                continue
            if not isinstance(value, str):
                raise ConfigError(f"'{key}' must be a path string, got {value!r}")
            setattr(config, key, (base_dir / Path(value).expanduser()).resolve())

        for key in _STRING_KEYS:
            value = data.get(key)
            if value is None:
                continue
            if not isinstance(value, str) or not value:
                raise ConfigError(f"'{key}' must be a non-empty string, got {value!r}")
            setattr(config, key, value)

        for key in _LIST_KEYS:
            value = data.get(key)
            if value is None:
                continue
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise ConfigError(f"'{key}' must be a list of names, got {value!r}")
            setattr(config, key, list(value))

        jobs = data.get("jobs")
        if jobs is not None:
            # bool is an int subclass
            if isinstance(jobs, bool) or not isinstance(jobs, int) or jobs < 1:
                raise ConfigError(f"'jobs' must be a positive integer, got {jobs!r}")
            config.jobs = jobs

        timeout = data.get("digester_timeout")
        if timeout is not None:
            if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
                raise ConfigError(f"'digester_timeout' must be a positive number, got {timeout!r}")
            config.digester_timeout = float(timeout)

        return config

    @classmethod
    def load(cls, path: Path) -> "Config":
        """Load a YAML config file.

        Raises:
            ConfigError: If the file is unreadable, not YAML or invalid
        """
        path = Path(path)
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise ConfigError(f"Cannot read config file {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"{path} must contain a mapping, got {type(data).__name__}")

        config = cls.from_dict(data, path.parent)
        config.source = path
        return config

    @classmethod
    def discover(cls, package_root: Path, explicit: Optional[Path] = None) -> "Config":
        """Load the explicit config file, else ``.api-scanner.yml`` in package_root.

        Returns defaults when neither exists.
        """
        if explicit is not None:
            return cls.load(explicit)
        candidate = Path(package_root) / CONFIG_FILENAME
        if candidate.is_file():
            return cls.load(candidate)
        return cls()
