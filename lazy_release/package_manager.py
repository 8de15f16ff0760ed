"""Package manager detection and command resolution.

The active package manager is read from the root package.json
``packageManager`` field when present, otherwise from the lockfile found in
the workspace root.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel

from .manifest import PACKAGE_JSON, read_package_json
from .shell import run

LOCKFILES: list[tuple[str, str]] = [
    ("pnpm-lock.yaml", "pnpm"),
    ("yarn.lock", "yarn"),
    ("bun.lock", "bun"),
    ("bun.lockb", "bun"),
    ("package-lock.json", "npm"),
    ("uv.lock", "uv"),
]


class PackageManager(BaseModel):
    """Commands for one package manager.

    Attributes:
        agent: Tool name (npm, pnpm, yarn, bun, uv).
        install: Command that installs and refreshes the lockfile.
        add: Command prefix that adds a dependency (used in install hints).
        publish: Commands run in a package directory to publish it.
        tag_flag: Flag used to publish under a dist-tag, if supported.
    """

    agent: str
    install: list[str]
    add: list[str]
    publish: list[list[str]]
    tag_flag: str | None = "--tag"

    def publish_commands(self, tag: str | None = None) -> list[list[str]]:
        if tag is None or self.tag_flag is None:
            return [list(cmd) for cmd in self.publish]
        *setup, last = self.publish
        return [list(cmd) for cmd in setup] + [[*last, self.tag_flag, tag]]

    def install_hint(self, package: str, version: str) -> str:
        sep = "==" if self.agent == "uv" else "@"
        return " ".join([*self.add, f"{package}{sep}{version}"])


PACKAGE_MANAGERS: dict[str, PackageManager] = {
    "npm": PackageManager(
        agent="npm",
        install=["npm", "install"],
        add=["npm", "i"],
        publish=[["npm", "publish"]],
    ),
    "pnpm": PackageManager(
        agent="pnpm",
        install=["pnpm", "install"],
        add=["pnpm", "add"],
        publish=[["pnpm", "publish", "--no-git-checks"]],
    ),
    "yarn": PackageManager(
        agent="yarn",
        install=["yarn", "install"],
        add=["yarn", "add"],
        publish=[["yarn", "npm", "publish"]],
    ),
    "bun": PackageManager(
        agent="bun",
        install=["bun", "install"],
        add=["bun", "add"],
        publish=[["bun", "publish"]],
    ),
    "uv": PackageManager(
        agent="uv",
        install=["uv", "lock"],
        add=["uv", "add"],
        publish=[["uv", "build", "--out-dir", "dist"], ["uv", "publish"]],
        tag_flag=None,
    ),
}


def detect_package_manager(root: Path | None = None) -> PackageManager | None:
    """Detect the workspace's package manager, or None if nothing matches."""
    root = root or Path.cwd()

    package_json = root / PACKAGE_JSON
    if package_json.exists():
        field = str(read_package_json(package_json).get("packageManager", ""))
        agent = field.split("@", 1)[0]
        if agent in PACKAGE_MANAGERS:
            return PACKAGE_MANAGERS[agent]

    for lockfile, agent in LOCKFILES:
        if (root / lockfile).exists():
            return PACKAGE_MANAGERS[agent]

    return None


def require_package_manager(root: Path | None = None) -> PackageManager:
    """Like detect_package_manager() but raise when nothing is detected."""
    pm = detect_package_manager(root)
    if pm is None:
        raise RuntimeError("No package manager detected")
    return pm


def update_lock_files(pm: PackageManager, cwd: str | None = None) -> None:
    """Run the install command so lockfiles pick up new versions."""
    print(f"  Running: {' '.join(pm.install)}")
    run(*pm.install, cwd=cwd)
