"""Tests for backend interfaces and BuildPlan."""

from pathlib import Path

import pytest

from api_scanner.backends.base import BuildPlan, BuildSystem, VersionControl


def test_interfaces_are_abstract():
    with pytest.raises(TypeError):
        VersionControl()
    with pytest.raises(TypeError):
        BuildSystem()


def test_api_tool_args_order():
    plan = BuildPlan(
        package_root=Path("/pkg"),
        bin_path=Path("/pkg/.build/debug"),
        include_paths=[Path("/pkg/.build/debug/Modules"), Path("/pkg/.build/debug")],
        triple="x86_64-unknown-linux-gnu",
        sdk=Path("/sdk"),
    )

    assert plan.api_tool_args() == [
        "-target", "x86_64-unknown-linux-gnu",
        "-sdk", "/sdk",
        "-I", "/pkg/.build/debug/Modules",
        "-I", "/pkg/.build/debug",
    ]


def test_api_tool_args_minimal():
    assert BuildPlan(package_root=Path("/pkg"), bin_path=Path("/bin")).api_tool_args() == []
