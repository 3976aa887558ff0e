import logging
import sys
from pathlib import Path

import pytest

TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parent

# Make api_scanner and tests/helpers.py importable from every test directory
for p in (REPO_ROOT, TESTS_ROOT):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))

from helpers import FakeDigester, FakeVersionControl  # noqa: E402

from api_scanner.observability import ObservabilityScope  # noqa: E402


@pytest.fixture
def scope():
    """Observability scope logging to the api_scanner logger."""
    return ObservabilityScope(logging.getLogger("api_scanner"))


@pytest.fixture
def package_root(tmp_path):
    root = tmp_path / "pkg"
    root.mkdir()
    return root


@pytest.fixture
def scratch_dir(tmp_path):
    path = tmp_path / "scratch"
    path.mkdir()
    return path


@pytest.fixture
def fake_vcs():
    return FakeVersionControl()


@pytest.fixture
def fake_digester():
    return FakeDigester()
