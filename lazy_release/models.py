"""Data models for lazy-release.

These Pydantic models represent the core data structures passed between
the parsing, resolution, versioning and rendering stages.
"""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

SemverBump = Literal["major", "minor", "patch"]


class PackageInfo(BaseModel):
    """Metadata for a single package in the workspace.

    Attributes:
        name: Package name as declared in its manifest (may be scoped,
              e.g. "@scope/name").
        version: Current version string from the manifest.
        new_version: Computed next version. None until a version is applied.
        path: Manifest path relative to the workspace root
              (e.g. "packages/a/package.json"). The root manifest has no
              directory component.
        is_root: True for the workspace's top-level manifest.
        is_private: Private packages are versioned but never published.
        dependencies: Names of other workspace packages this one depends on,
                      gathered from every dependency field.
    """

    name: str
    version: str
    new_version: str | None = None
    path: str
    is_root: bool = False
    is_private: bool = False
    dependencies: list[str] = Field(default_factory=list)

    @property
    def name_without_scope(self) -> str:
        return get_package_name_without_scope(self.name)

    @property
    def directory_name(self) -> str:
        """Name of the directory holding the manifest, empty for the root."""
        return PurePosixPath(self.path).parent.name

    @property
    def directory(self) -> str:
        return str(PurePosixPath(self.path).parent)

    @property
    def manifest_name(self) -> str:
        return PurePosixPath(self.path).name


class Changelog(BaseModel):
    """One normalized change record parsed from a changelog fragment.

    An empty ``packages`` tuple means the change applies to the root package.
    ``semver_bump`` holds the explicit override when ``has_explicit_version_bump``
    is set, otherwise the bump inferred from the type and breaking flag.
    """

    model_config = ConfigDict(frozen=True)

    type: str
    description: str
    packages: tuple[str, ...] = ()
    is_breaking_change: bool = False
    semver_bump: SemverBump = "patch"
    has_explicit_version_bump: bool = False


class CommitTypeParts(BaseModel):
    """Parsed conventional header: ``type(scope-a, scope-b)!``."""

    type: str
    package_names: list[str] = Field(default_factory=list)
    is_breaking_change: bool = False


class Commit(BaseModel):
    hash: str
    subject: str
    body: str = ""

    @property
    def message(self) -> str:
        return f"{self.subject}\n\n{self.body}".strip() if self.body else self.subject


class RepoContext(BaseModel):
    """Owner/repo pair used to build GitHub links."""

    owner: str
    repo: str

    @property
    def name_with_owner(self) -> str:
        return f"{self.owner}/{self.repo}"

    @property
    def url(self) -> str:
        return f"https://github.com/{self.owner}/{self.repo}"

    def pull_request_url(self, number: int) -> str:
        return f"{self.url}/pull/{number}"

    def compare_url(self, base: str, head: str) -> str:
        return f"{self.url}/compare/{base}...{head}"


class ReleaseEntry(BaseModel):
    """One package section parsed back out of a merged release PR body.

    Attributes:
        package_name: Unscoped package name, or None for the root package.
        old_version: Version before the release.
        new_version: Released version.
        content: Markdown under the section heading, used as release notes.
    """

    package_name: str | None = None
    old_version: str
    new_version: str
    content: str = ""

    @property
    def is_root(self) -> bool:
        return self.package_name is None


class SnapshotResult(BaseModel):
    package_name: str
    new_version: str


def get_package_name_without_scope(name: str) -> str:
    """Strip an npm scope prefix.

    Examples:
        "@scope/pkg" → "pkg"
        "pkg" → "pkg"
    """
    return name.split("/", 1)[1] if name.startswith("@") and "/" in name else name
