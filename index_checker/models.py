"""
Data model for the package index.

Everything here is immutable once validated. Descriptors are parsed straight
from the JSON lines stored in the index (and added by pull requests), so the
validators are deliberately strict about names, paths and versions.
"""
from __future__ import annotations

import re
from functools import total_ordering
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_serializer, model_validator

_SEMVER_RE = re.compile(
    r"^(0|[1-9][0-9]*)\.(0|[1-9][0-9]*)\.(0|[1-9][0-9]*)(?:-([0-9A-Za-z.-]+))?$"
)
_VERSION_REQ_RE = re.compile(
    r"^\s*(?P<op>[=^]?)\s*(?P<major>0|[1-9][0-9]*)"
    r"(?:\.(?P<minor>0|[1-9][0-9]*)(?:\.(?P<patch>0|[1-9][0-9]*)(?:-(?P<pre>[0-9A-Za-z.-]+))?)?)?\s*$"
)
_PRE_IDENT_RE = re.compile(r"^(0|[1-9][0-9]*|[0-9]*[A-Za-z-][0-9A-Za-z-]*)$")
_NAME_RE = re.compile(r"^[A-Za-z0-9._-]+$")
_COMMIT_RE = re.compile(r"^[0-9a-f]{40}$")


def _check_pre(value: str) -> str:
    if value and not all(_PRE_IDENT_RE.match(part) for part in value.split(".")):
        raise ValueError(f"invalid pre-release tag {value!r}")
    return value


def _pre_key(pre: str) -> tuple:
    # numeric identifiers sort before alphanumeric ones
    return tuple((0, int(p), "") if p.isdigit() else (1, 0, p) for p in pre.split("."))


# ----------------------------
# Versions
# ----------------------------
@total_ordering
class SemVer(BaseModel):
    """
    A semantic version. Serialized in the index as
    {"major": 0, "minor": 2, "patch": 0, "pre": ""}, and in manifests as a
    plain string like "0.2.0-pre".
    """

    model_config = ConfigDict(frozen=True, strict=True)

    major: int = Field(ge=0)
    minor: int = Field(ge=0)
    patch: int = Field(ge=0)
    pre: str = ""

    @model_validator(mode="before")
    @classmethod
    def _from_string(cls, data: Any) -> Any:
        if not isinstance(data, str):
            return data
        m = _SEMVER_RE.match(data.strip())
        if not m:
            raise ValueError(f"invalid version {data!r}")
        major, minor, patch, pre = m.groups()
        return {"major": int(major), "minor": int(minor), "patch": int(patch), "pre": pre or ""}

    @field_validator("pre")
    @classmethod
    def _valid_pre(cls, value: str) -> str:
        return _check_pre(value)

    @classmethod
    def parse(cls, text: str) -> SemVer:
        return cls.model_validate(text)

    def _key(self) -> tuple:
        # a release sorts after every pre-release of the same triple
        pre = ((1,), ()) if not self.pre else ((0,), _pre_key(self.pre))
        return (self.major, self.minor, self.patch) + pre

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SemVer):
            return NotImplemented
        return (self.major, self.minor, self.patch, self.pre) == (
            other.major, other.minor, other.patch, other.pre
        )

    def __hash__(self) -> int:
        return hash((self.major, self.minor, self.patch, self.pre))

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, SemVer):
            return NotImplemented
        return self._key() < other._key()

    def __str__(self) -> str:
        base = f"{self.major}.{self.minor}.{self.patch}"
        return f"{base}-{self.pre}" if self.pre else base


class VersionReq(BaseModel):
    """
    A dependency's version requirement, e.g. "^1", "0.2", "=1.2.3".

    No operator (or "^") means "compatible with", "=" means the given
    components must match exactly.
    """

    model_config = ConfigDict(frozen=True)

    op: str = ""
    major: int
    minor: int | None = None
    patch: int | None = None
    pre: str = ""

    @model_validator(mode="before")
    @classmethod
    def _from_string(cls, data: Any) -> Any:
        if not isinstance(data, str):
            return data
        m = _VERSION_REQ_RE.match(data)
        if not m:
            raise ValueError(f"invalid version requirement {data!r}")
        return {
            "op": m.group("op"),
            "major": int(m.group("major")),
            "minor": int(m.group("minor")) if m.group("minor") is not None else None,
            "patch": int(m.group("patch")) if m.group("patch") is not None else None,
            "pre": m.group("pre") or "",
        }

    @field_validator("pre")
    @classmethod
    def _valid_pre(cls, value: str) -> str:
        return _check_pre(value)

    @model_serializer
    def _to_string(self) -> str:
        return str(self)

    @classmethod
    def parse(cls, text: str) -> VersionReq:
        return cls.model_validate(text)

    @property
    def exact(self) -> bool:
        return self.op == "="

    def _lower_bound(self) -> SemVer:
        return SemVer(major=self.major, minor=self.minor or 0, patch=self.patch or 0, pre=self.pre)

    def matches(self, version: SemVer) -> bool:
        if version.pre:
            # pre-releases are opt-in, and only for the exact triple named
            if not self.pre or (self.major, self.minor, self.patch) != (
                version.major, version.minor, version.patch
            ):
                return False

        if self.exact:
            return (
                version.major == self.major
                and (self.minor is None or version.minor == self.minor)
                and (self.patch is None or version.patch == self.patch)
                and (not self.pre or version.pre == self.pre)
            )

        if version < self._lower_bound():
            return False
        if version.major != self.major:
            return False
        if self.major > 0 or self.minor is None:
            return True
        if version.minor != self.minor:
            return False
        if self.minor > 0 or self.patch is None:
            return True
        return version.patch == self.patch

    def __str__(self) -> str:
        text = f"{self.op}{self.major}"
        if self.minor is not None:
            text += f".{self.minor}"
            if self.patch is not None:
                text += f".{self.patch}"
                if self.pre:
                    text += f"-{self.pre}"
        return text


# ----------------------------
# Identities
# ----------------------------
class PackageId(BaseModel):
    """
    A package on GitHub, without a pinned commit. This is how dependencies
    refer to each other. Serialized as {"github": {"org": ..., "name": ..., "path": ...}}.
    """

    model_config = ConfigDict(frozen=True, strict=True)

    org: str
    name: str
    path: str = ""

    @model_validator(mode="before")
    @classmethod
    def _unwrap_forge(cls, data: Any) -> Any:
        if isinstance(data, dict) and list(data) == ["github"]:
            return data["github"]
        return data

    @model_serializer(mode="wrap")
    def _wrap_forge(self, handler) -> dict:
        data = handler(self)
        if not data.get("path"):
            data.pop("path", None)
        return {"github": data}

    @field_validator("org", "name")
    @classmethod
    def _single_component(cls, value: str) -> str:
        if not _NAME_RE.match(value) or value in (".", ".."):
            raise ValueError(f"invalid name {value!r}")
        return value

    @field_validator("path")
    @classmethod
    def _relative_path(cls, value: str) -> str:
        if value and any(part in ("", ".", "..") for part in value.split("/")):
            raise ValueError(f"invalid package path {value!r}")
        return value

    @property
    def index_path(self) -> str:
        """Where this package's descriptors live, relative to the index's github/ root."""
        base = f"{self.org}/{self.name}"
        return f"{base}/{self.path}" if self.path else base

    @property
    def url(self) -> str:
        return f"https://github.com/{self.org}/{self.name}.git"

    def __str__(self) -> str:
        return f"github:{self.index_path}"


class PackageIdentity(PackageId):
    """A PackageId pinned to an exact commit."""

    commit: str

    @field_validator("commit")
    @classmethod
    def _object_id(cls, value: str) -> str:
        if not _COMMIT_RE.match(value):
            raise ValueError(f"invalid commit id {value!r}")
        return value


# ----------------------------
# Index entries and manifests
# ----------------------------
class IndexDependency(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: PackageId
    version: VersionReq


class PackageDescriptor(BaseModel):
    """One line of an index file: a single published version of a package."""

    model_config = ConfigDict(frozen=True)

    id: PackageIdentity
    version: SemVer
    minimal_nickel_version: SemVer
    dependencies: dict[str, IndexDependency] = Field(default_factory=dict)
    authors: list[str] = Field(default_factory=list)
    description: str = ""
    keywords: list[str] = Field(default_factory=list)
    license: str = ""
    v: int = 0

    @classmethod
    def from_index_line(cls, line: str) -> PackageDescriptor:
        return cls.model_validate_json(line)

    def to_index_line(self) -> str:
        return self.model_dump_json()


class Manifest(BaseModel):
    """
    The parts of an evaluated Nickel-pkg.ncl we cross-check. Dependencies
    are enum variants in Nickel and can't be exported, so they are not here.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    version: SemVer
