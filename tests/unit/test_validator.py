from pathlib import Path

import pytest

from index_checker.checks.manifest import ManifestCheck
from index_checker.errors import FetchError, GitHubError, IndexUnavailableError, ManifestEvalError
from index_checker.models import PackageDescriptor
from index_checker.report import EvalFailed, FetchFailed, InvalidDiff, PackageReport, PackageReports, PathReport
from index_checker.services.index import LocalIndex
from index_checker.services.validator import make_report

from helpers import FakeGitHub, added_file_diff, dependency, descriptor_line, manifest_with_version

WIDGETS_DIFF = added_file_diff("github/acme/widgets", descriptor_line())


class RecordingIndex(LocalIndex):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.refreshes = 0

    def refresh(self):
        self.refreshes += 1


def fetch_ok(pkg, dest):
    assert Path(dest).is_dir()


def evaluates_to(version):
    def evaluate(path):
        return manifest_with_version(version)
    return evaluate


def run(diff, github=None, index=None, fetch=fetch_ok, evaluate=evaluates_to("0.2.0"), **kwargs):
    github = github or FakeGitHub(members=[("acme", "alice")])
    index = index if index is not None else RecordingIndex()
    return make_report(diff, github, "alice", index, fetch=fetch, evaluate=evaluate, **kwargs)


def test_end_to_end_good_package():
    report = run(WIDGETS_DIFF)

    assert isinstance(report, PackageReports)
    assert len(report.items) == 1
    assert report.is_good()
    assert str(report) == (
        " - package acme/widgets, version 0.2.0\n"
        "   * ✅ this PR is by alice, a collaborator on acme/widgets\n"
        "   * ✅ fetched package\n"
        "   * ✅ evaluated manifest\n"
        "     * ✅ manifest version matches\n"
        "     * ✅ no dependencies to check\n"
    )


def test_end_to_end_version_mismatch():
    report = run(WIDGETS_DIFF, evaluate=evaluates_to("0.1.0"))
    assert not report.is_good()
    assert "     * ❌ index version 0.2.0 doesn't match manifest version 0.1.0\n" in str(report)


def test_manifest_is_looked_up_in_the_package_subdirectory():
    seen = []

    def evaluate(path):
        seen.append(path)
        return manifest_with_version("0.2.0")

    run(added_file_diff("github/acme/widgets/lib", descriptor_line(path="lib")), evaluate=evaluate)
    assert seen[0].parts[-2:] == ("lib", "Nickel-pkg.ncl")


def test_fetch_failure_is_recorded_per_package():
    evaluated = []

    def fetch(pkg, dest):
        if pkg.id.name == "widgets":
            raise FetchError("fatal: remote error: upload-pack: not our ref")

    def evaluate(path):
        evaluated.append(path)
        return manifest_with_version("1.0.0")

    diff = WIDGETS_DIFF + added_file_diff("github/acme/gadgets", descriptor_line(name="gadgets", version=(1, 0, 0)))
    report = run(diff, fetch=fetch, evaluate=evaluate)

    widgets, gadgets = report.items
    assert widgets.status == FetchFailed("fatal: remote error: upload-pack: not our ref")
    assert isinstance(gadgets.status, ManifestCheck)
    assert gadgets.is_good()
    assert len(evaluated) == 1
    assert not report.is_good()


def test_eval_failure_is_recorded():
    def evaluate(path):
        raise ManifestEvalError("error: missing field `version`")

    report = run(WIDGETS_DIFF, evaluate=evaluate)
    assert report.items[0].status == EvalFailed("error: missing field `version`")
    assert not report.is_good()


def test_scratch_directory_is_removed_even_on_failure():
    used = []

    def fetch(pkg, dest):
        used.append(Path(dest))
        raise FetchError("nope")

    run(WIDGETS_DIFF, fetch=fetch)
    assert used and not used[0].exists()


def test_dependencies_are_checked_against_the_index():
    core = PackageDescriptor.from_index_line(descriptor_line(name="core", version=(1, 2, 0)))
    line = descriptor_line(dependencies={"core": dependency("acme", "core", "^1")})
    report = run(added_file_diff("github/acme/widgets", line), index=RecordingIndex([core]))
    assert report.is_good()
    assert "     - ✅ github:acme/core ^1\n" in str(report)


def test_index_is_refreshed_once_before_checking():
    index = RecordingIndex()
    diff = WIDGETS_DIFF + added_file_diff("github/acme/gadgets", descriptor_line(name="gadgets"))
    run(diff, index=index)
    assert index.refreshes == 1


def test_invalid_diff_skips_everything():
    index = RecordingIndex()
    github = FakeGitHub()
    diff = added_file_diff("github/acme/widgets", descriptor_line(), "garbage")

    report = run(diff, github=github, index=index)

    assert isinstance(report, InvalidDiff)
    assert not report.is_good()
    assert str(report).startswith("❌ invalid index changes: invalid package spec: ")
    assert index.refreshes == 0
    assert github.calls == []


def test_deletion_makes_the_diff_invalid():
    diff = (
        "--- a/github/acme/widgets\n"
        "+++ b/github/acme/widgets\n"
        "@@ -1,1 +1,1 @@\n"
        f"-{descriptor_line(version=(0, 1, 0))}\n"
        f"+{descriptor_line()}\n"
    )
    report = run(diff)
    assert isinstance(report, InvalidDiff)
    assert "you can't delete a line" in str(report)


def test_deleting_a_whole_file_makes_the_diff_invalid():
    fetched = []

    def fetch(pkg, dest):
        fetched.append(pkg.id.name)

    diff = (
        "diff --git a/github/acme/widgets b/github/acme/widgets\n"
        "deleted file mode 100644\n"
        "index 17e1150..0000000\n"
        "--- a/github/acme/widgets\n"
        "+++ /dev/null\n"
        "@@ -1 +0,0 @@\n"
        f"-{descriptor_line()}\n"
    ) + added_file_diff("github/acme/gadgets", descriptor_line(name="gadgets"))
    report = run(diff, fetch=fetch)

    assert isinstance(report, InvalidDiff)
    assert "you can't delete a line" in str(report)
    assert fetched == []


def test_unparsable_diff():
    report = run("@@ -1 +1 @@\n+hello\n")
    assert isinstance(report, InvalidDiff)
    assert "failed to parse diff" in str(report)


def test_path_diagnostics_come_before_packages():
    diff = added_file_diff(".github/workflows/ci.yml", "on: push") + WIDGETS_DIFF
    report = run(diff)

    assert isinstance(report.items[0], PathReport)
    assert isinstance(report.items[1], PackageReport)
    assert report.is_good()
    assert str(report).startswith(" - ⚠️ this PR modifies .github/workflows/ci.yml\n - package acme/widgets")


def test_stray_path_fails_the_report():
    diff = added_file_diff("notes.txt", "hi") + WIDGETS_DIFF
    report = run(diff)
    assert not report.is_good()
    assert report.items[1].is_good()


def test_permission_is_checked_for_every_package():
    github = FakeGitHub(members=[("acme", "alice")])
    diff = WIDGETS_DIFF + added_file_diff("github/acme/gadgets", descriptor_line(name="gadgets"))
    run(diff, github=github)
    assert github.calls == [("acme", "alice"), ("acme", "alice")]


def test_non_member_fails():
    report = run(WIDGETS_DIFF, github=FakeGitHub())
    assert not report.is_good()


def test_membership_errors_abort_the_run():
    with pytest.raises(GitHubError):
        run(WIDGETS_DIFF, github=FakeGitHub(error=GitHubError("401 Bad credentials")))


def test_index_errors_abort_the_run():
    class BrokenIndex(LocalIndex):
        def refresh(self):
            raise IndexUnavailableError("no network")

    with pytest.raises(IndexUnavailableError):
        run(WIDGETS_DIFF, index=BrokenIndex())


def test_parallel_checks_keep_extraction_order():
    names = ["a", "b", "c", "d", "e"]
    diff = "".join(added_file_diff(f"github/acme/{n}", descriptor_line(name=n)) for n in names)
    report = run(diff, jobs=4)
    assert [item.pkg.id.name for item in report.items] == names
