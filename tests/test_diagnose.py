"""End-to-end tests of a comparison run with fake collaborators."""

import io

import pytest

from helpers import FakeBuildSystem, FakeDigester, FakeVersionControl, make_graph

from api_scanner.diagnose import APIDiff, DiagnoseOptions
from api_scanner.errors import AllowlistError, SelectionError, VersionControlError


def make_api_diff(package_root, scratch_dir, scope, digester, graph=None, vcs=None,
                  baseline_graph=None, workers=2):
    build_system = FakeBuildSystem(package_root, graph or make_graph({"Foo": ["Foo"]}),
                                   baseline_graph=baseline_graph, workers=workers)
    out = io.StringIO()
    api_diff = APIDiff(package_root, vcs or FakeVersionControl(), build_system, digester,
                       scope, scratch_dir, out=out)
    return api_diff, build_system, out


def test_no_breaking_changes(package_root, scratch_dir, scope):
    """One library module, no existing baseline, clean comparison."""
    digester = FakeDigester()
    api_diff, build_system, out = make_api_diff(package_root, scratch_dir, scope, digester)

    outcome = api_diff.run(DiagnoseOptions(treeish="main"))

    assert "No breaking changes detected in Foo" in out.getvalue()
    assert outcome.verdict is True
    assert digester.dumps == ["Foo"]
    # Current package built once, baseline checkout built once
    assert build_system.built[0] == package_root
    assert len(build_system.built) == 2


def test_two_breaking_changes(package_root, scratch_dir, scope):
    digester = FakeDigester(breakages={"Foo": [
        "API breakage: func foo() has been removed",
        "API breakage: var bar has been removed",
    ]})
    api_diff, _, out = make_api_diff(package_root, scratch_dir, scope, digester)

    outcome = api_diff.run(DiagnoseOptions(treeish="main"))

    text = out.getvalue()
    assert "2 breaking changes detected in Foo" in text
    assert "💔 API breakage: func foo() has been removed" in text
    assert "💔 API breakage: var bar has been removed" in text
    assert outcome.verdict is False


def test_module_missing_from_baseline_is_skipped(package_root, scratch_dir, scope):
    digester = FakeDigester()
    api_diff, _, out = make_api_diff(
        package_root, scratch_dir, scope, digester,
        graph=make_graph({"Lib": ["Foo", "Bar"]}),
        baseline_graph=make_graph({"Lib": ["Foo"]}),
    )

    outcome = api_diff.run(DiagnoseOptions(treeish="main"))

    text = out.getvalue()
    assert "Skipping Bar because it does not exist in the baseline" in text
    assert "No breaking changes detected in Foo" in text
    assert outcome.skipped == {"Bar"}
    assert outcome.verdict is True
    assert not scope.errors_reported


def test_invalid_target_aborts_before_build(package_root, scratch_dir, scope, caplog):
    digester = FakeDigester()
    api_diff, build_system, _ = make_api_diff(package_root, scratch_dir, scope, digester)

    with pytest.raises(SelectionError):
        api_diff.run(DiagnoseOptions(treeish="main", targets=["DoesNotExist"]))

    assert "no such target 'DoesNotExist'" in caplog.text
    assert build_system.built == []
    assert digester.dumps == [] and digester.compares == []


def test_allowlisted_breakage_does_not_fail(package_root, scratch_dir, scope, tmp_path):
    allowlist = tmp_path / "allowlist.txt"
    allowlist.write_text("API breakage: func foo() has been removed\n")
    digester = FakeDigester(breakages={"Foo": ["API breakage: func foo() has been removed"]})
    api_diff, _, out = make_api_diff(package_root, scratch_dir, scope, digester)

    outcome = api_diff.run(DiagnoseOptions(treeish="main", breakage_allowlist_path=allowlist))

    assert "func foo()" not in out.getvalue()
    assert "No breaking changes detected in Foo" in out.getvalue()
    assert outcome.verdict is True


def test_unreadable_allowlist_is_fatal(package_root, scratch_dir, scope, tmp_path):
    digester = FakeDigester()
    api_diff, build_system, _ = make_api_diff(package_root, scratch_dir, scope, digester)

    with pytest.raises(AllowlistError):
        api_diff.run(DiagnoseOptions(treeish="main", breakage_allowlist_path=tmp_path / "nope.txt"))
    assert build_system.built == []


def test_unresolvable_revision_is_fatal(package_root, scratch_dir, scope):
    digester = FakeDigester()
    api_diff, build_system, _ = make_api_diff(package_root, scratch_dir, scope, digester,
                                              vcs=FakeVersionControl(revisions={}))

    with pytest.raises(VersionControlError):
        api_diff.run(DiagnoseOptions(treeish="v9.9.9"))
    assert build_system.built == []
    assert digester.dumps == []


def test_failed_comparison_fails_run(package_root, scratch_dir, scope):
    digester = FakeDigester(compare_failures={"Bar"})
    api_diff, _, out = make_api_diff(package_root, scratch_dir, scope, digester,
                                     graph=make_graph({"Lib": ["Foo", "Bar"]}))

    outcome = api_diff.run(DiagnoseOptions(treeish="main"))

    assert outcome.failed == {"Bar"}
    assert "No breaking changes detected in Foo" in out.getvalue()
    assert outcome.verdict is False


def test_persistent_baseline_dir_is_reused(package_root, scratch_dir, scope, tmp_path):
    baseline_dir = tmp_path / "baselines"
    options = DiagnoseOptions(treeish="main", baseline_dir=baseline_dir)

    first = FakeDigester()
    make_api_diff(package_root, scratch_dir, scope, first)[0].run(options)
    second = FakeDigester()
    api_diff, build_system, _ = make_api_diff(package_root, scratch_dir, scope, second)
    outcome = api_diff.run(options)

    assert first.dumps == ["Foo"]
    assert second.dumps == []
    # Only the current package was built on the second run
    assert build_system.built == [package_root]
    assert outcome.verdict is True


def test_regenerate_baseline(package_root, scratch_dir, scope, tmp_path):
    baseline_dir = tmp_path / "baselines"
    baseline_dir.mkdir()
    (baseline_dir / "Foo.json").write_text("{}")
    digester = FakeDigester()
    api_diff, _, _ = make_api_diff(package_root, scratch_dir, scope, digester)

    api_diff.run(DiagnoseOptions(treeish="main", baseline_dir=baseline_dir, regenerate_baseline=True))

    assert digester.dumps == ["Foo"]


def test_package_without_swift_libraries_compares_nothing(package_root, scratch_dir, scope):
    digester = FakeDigester()
    api_diff, _, out = make_api_diff(package_root, scratch_dir, scope, digester, graph=make_graph({}))

    outcome = api_diff.run(DiagnoseOptions(treeish="main"))

    assert outcome.requested == set()
    assert outcome.verdict is True
    assert digester.dumps == [] and digester.compares == []
    assert out.getvalue() == ""
