"""
Turning a PR diff into a Report.

    diff text -> patches -> in-scope patches -> package descriptors
              -> one PackageReport per descriptor -> Report

Problems with the diff itself end the run early with an InvalidDiff report.
Problems with a single package (it doesn't fetch, its manifest doesn't
evaluate, versions disagree...) are recorded on that package's report.
Failures of GitHub or of the index propagate as ServiceError.
"""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Callable

from index_checker.checks.manifest import check_manifest
from index_checker.checks.packages import changed_packages
from index_checker.checks.paths import check_diff_paths
from index_checker.checks.permission import Permission
from index_checker.errors import FetchError, InvalidDiffError, ManifestEvalError
from index_checker.models import PackageDescriptor
from index_checker.report import EvalFailed, FetchFailed, InvalidDiff, PackageReport, PackageReports, Report
from index_checker.services.manifest_eval import evaluate_manifest, manifest_path
from index_checker.utils.diff import parse_diff
from index_checker.utils.logging import logger
from index_checker.utils.repo_cloner import fetch_package, scratch_dir


def check_package(pkg: PackageDescriptor, github, user: str, index,
                  fetch: Callable = fetch_package,
                  evaluate: Callable = evaluate_manifest) -> PackageReport:
    """Run every check on a single package. Only service errors escape."""
    ident = pkg.id
    permission = Permission.check(github, user, ident.org, ident.name)

    with scratch_dir() as checkout:
        try:
            fetch(pkg, checkout)
        except FetchError as e:
            return PackageReport(pkg, permission, FetchFailed(str(e)))

        try:
            manifest = evaluate(manifest_path(checkout, ident))
        except ManifestEvalError as e:
            return PackageReport(pkg, permission, EvalFailed(str(e)))

        return PackageReport(pkg, permission, check_manifest(pkg, manifest, index))


def make_report(diff: str, github, user: str, index,
                fetch: Callable = fetch_package,
                evaluate: Callable = evaluate_manifest,
                jobs: int = 1) -> Report:
    """
    Build the report for a whole PR.

    `index` is refreshed once, after the diff has been accepted and before
    any package is checked. With `jobs` > 1 packages are checked
    concurrently, but reports keep the order the packages appear in the diff.
    """
    try:
        patches = parse_diff(diff)
        patches, path_reports = check_diff_paths(patches)
        pkgs = changed_packages(patches)
    except InvalidDiffError as e:
        logger.warning("Invalid index changes: %s", e)
        return InvalidDiff(e)

    logger.info("Checking %d package(s) submitted by %s", len(pkgs), user)
    if pkgs:
        index.refresh()

    def check(pkg: PackageDescriptor) -> PackageReport:
        return check_package(pkg, github, user, index, fetch=fetch, evaluate=evaluate)

    if jobs > 1 and len(pkgs) > 1:
        with ThreadPoolExecutor(max_workers=min(jobs, len(pkgs))) as exe:
            package_reports = list(exe.map(check, pkgs))
    else:
        package_reports = [check(pkg) for pkg in pkgs]

    return PackageReports(tuple(path_reports) + tuple(package_reports))
