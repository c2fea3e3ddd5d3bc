# SPDX-License-Identifier: GPL-2.0-only OR MIT
# SPDX-FileCopyrightText: 2025 TNG Technology Consulting GmbH

"""
Declarative description of the filesystem mutations applied on top of the installed packages.
The configuration is read from a JSON document using the same keys as apko image configurations.
"""

from dataclasses import dataclass, field
import json
from typing import Any, Literal, get_args
from layerbom.path_utils import PathStr

PathMutationType = Literal["directory", "empty-file", "hardlink", "symlink", "permissions"]


@dataclass(frozen=True)
class User:
    username: str
    uid: int
    gid: int | None = None
    """Primary group. Defaults to `uid`."""
    shell: str = "/bin/sh"
    homedir: str = ""
    """Home directory. Defaults to /home/<username>."""

    @property
    def primary_gid(self) -> int:
        return self.gid if self.gid is not None else self.uid

    @property
    def home(self) -> str:
        return self.homedir or f"/home/{self.username}"


@dataclass(frozen=True)
class Group:
    groupname: str
    gid: int
    members: list[str] = field(default_factory=list[str])


@dataclass(frozen=True)
class Accounts:
    users: list[User] = field(default_factory=list[User])
    groups: list[Group] = field(default_factory=list[Group])


@dataclass(frozen=True)
class PathMutation:
    path: str
    type: PathMutationType
    uid: int = 0
    gid: int = 0
    permissions: int = 0o755
    source: str = ""
    """Link target for 'hardlink' and 'symlink' mutations."""
    recursive: bool = False
    """Apply ownership and permissions to everything below a directory as well."""


@dataclass(frozen=True)
class OSRelease:
    id: str = ""
    name: str = ""
    pretty_name: str = ""
    version_id: str = ""
    home_url: str = ""
    bug_report_url: str = ""


@dataclass(frozen=True)
class ImageConfiguration:
    accounts: Accounts = field(default_factory=Accounts)
    paths: list[PathMutation] = field(default_factory=list[PathMutation])
    os_release: OSRelease = field(default_factory=OSRelease)
    services: dict[str, str] = field(default_factory=dict[str, str])
    """Service name -> command line of processes to supervise."""
    package_version_tag: str | None = None
    """Name of an installed package whose version is appended to the image tags."""
    package_version_tag_stem: bool = False
    package_version_tag_prefix: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ImageConfiguration":
        """
        Builds an image configuration from its JSON representation.

        Raises:
            ValueError: if a value has the wrong shape or a path mutation type is unknown.
        """
        try:
            accounts_data = data.get("accounts", {})
            accounts = Accounts(
                users=[
                    User(
                        username=u["username"],
                        uid=int(u["uid"]),
                        gid=int(u["gid"]) if u.get("gid") is not None else None,
                        shell=u.get("shell") or "/bin/sh",
                        homedir=u.get("homedir", ""),
                    )
                    for u in accounts_data.get("users", [])
                ],
                groups=[
                    Group(groupname=g["groupname"], gid=int(g["gid"]), members=list(g.get("members", [])))
                    for g in accounts_data.get("groups", [])
                ],
            )
            paths = [_parse_path_mutation(p) for p in data.get("paths", [])]
            os_release_data = data.get("os-release", {})
            os_release = OSRelease(
                id=os_release_data.get("id", ""),
                name=os_release_data.get("name", ""),
                pretty_name=os_release_data.get("pretty-name", ""),
                version_id=os_release_data.get("version-id", ""),
                home_url=os_release_data.get("home-url", ""),
                bug_report_url=os_release_data.get("bug-report-url", ""),
            )
            services = {str(k): str(v) for k, v in data.get("entrypoint", {}).get("services", {}).items()}
        except (KeyError, TypeError, AttributeError) as e:
            raise ValueError(f"invalid image configuration: {e!r}") from e

        return ImageConfiguration(
            accounts=accounts,
            paths=paths,
            os_release=os_release,
            services=services,
            package_version_tag=data.get("package-version-tag"),
            package_version_tag_stem=bool(data.get("package-version-tag-stem", False)),
            package_version_tag_prefix=data.get("package-version-tag-prefix", ""),
        )

    @classmethod
    def load(cls, path: PathStr) -> "ImageConfiguration":
        with open(path, "rt", encoding="utf-8") as f:
            return cls.from_dict(json.load(f))


def _parse_permissions(value: int | str) -> int:
    """Accepts permissions as number (493) or as octal string ('755', '0o755')."""
    if isinstance(value, int):
        return value
    return int(value.removeprefix("0o"), 8)


def _parse_path_mutation(data: dict[str, Any]) -> PathMutation:
    mutation_type = data["type"]
    if mutation_type not in get_args(PathMutationType):
        raise ValueError(f"unsupported path mutation type '{mutation_type}' for path '{data.get('path')}'")
    return PathMutation(
        path=data["path"],
        type=mutation_type,
        uid=int(data.get("uid", 0)),
        gid=int(data.get("gid", 0)),
        permissions=_parse_permissions(data.get("permissions", 0o755)),
        source=data.get("source", ""),
        recursive=bool(data.get("recursive", False)),
    )
