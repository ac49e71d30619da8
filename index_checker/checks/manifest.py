"""
Cross-checks between an index descriptor and the manifest it was published from.

TODO: license checks, and a sanity check that minimal_nickel_version isn't
newer than any released nickel.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import TextIO

from index_checker.models import IndexDependency, Manifest, PackageDescriptor, SemVer
from index_checker.utils.logging import logger


@dataclass(frozen=True)
class DependencyCheck:
    dep: IndexDependency
    known_versions: tuple[SemVer, ...]
    has_match: bool

    @classmethod
    def against(cls, dep: IndexDependency, known_versions) -> DependencyCheck:
        known = tuple(known_versions)
        return cls(dep=dep, known_versions=known, has_match=any(dep.version.matches(v) for v in known))

    def is_good(self) -> bool:
        return self.has_match

    def format_with_indent(self, out: TextIO, indent: str, glyphs) -> None:
        dep = self.dep
        if self.has_match:
            out.write(f"{indent}{glyphs.ok} {dep.id} {dep.version}\n")
        elif not self.known_versions:
            out.write(f"{indent}{glyphs.fail} {dep.id} doesn't exist in the index\n")
        else:
            known = ", ".join(str(v) for v in self.known_versions)
            out.write(
                f"{indent}{glyphs.fail} {dep.id} {dep.version} doesn't match any versions: known versions are {known}\n"
            )


@dataclass(frozen=True)
class ManifestCheck:
    package_version: SemVer
    manifest_version: SemVer
    dependencies: tuple[DependencyCheck, ...] = ()

    @property
    def versions_match(self) -> bool:
        return self.package_version == self.manifest_version

    def is_good(self) -> bool:
        return self.versions_match and all(d.is_good() for d in self.dependencies)

    def format_with_indent(self, out: TextIO, indent: str, glyphs) -> None:
        if self.versions_match:
            out.write(f"{indent}* {glyphs.ok} manifest version matches\n")
        else:
            out.write(
                f"{indent}* {glyphs.fail} index version {self.package_version} "
                f"doesn't match manifest version {self.manifest_version}\n"
            )

        if not self.dependencies:
            out.write(f"{indent}* {glyphs.ok} no dependencies to check\n")
            return
        out.write(f"{indent}checking dependencies:\n")
        for dep in self.dependencies:
            dep.format_with_indent(out, f"{indent}- ", glyphs)


def check_manifest(pkg: PackageDescriptor, manifest: Manifest, index) -> ManifestCheck:
    """
    Compare an evaluated manifest against the descriptor being added, and look
    up each of the descriptor's dependencies in the index snapshot.
    """
    dependencies = []
    for dep in pkg.dependencies.values():
        known = index.available_versions(dep.id)
        check = DependencyCheck.against(dep, known)
        logger.debug("Dependency %s %s: %d known versions, match=%s", dep.id, dep.version, len(known), check.has_match)
        dependencies.append(check)

    return ManifestCheck(
        package_version=pkg.version,
        manifest_version=manifest.version,
        dependencies=tuple(dependencies),
    )
