# SPDX-License-Identifier: GPL-2.0-only OR MIT
# SPDX-FileCopyrightText: 2025 TNG Technology Consulting GmbH

import base64
import binascii
from dataclasses import dataclass, field, replace
import posixpath
import re
from layerbom.metadata import ResolvedPackage
from layerbom.path_utils import TreePath

INSTALLED_DB_PATH: TreePath = "lib/apk/db/installed"

# Match a single database line, e.g. "P:busybox" or "a:0:0:755"
DB_LINE_PATTERN = re.compile(r"^(?P<key>[A-Za-z]):(?P<value>.*)$")

# Match ownership records of files and directories, e.g. "0:0:755"
ACL_PATTERN = re.compile(r"^(?P<uid>\d+):(?P<gid>\d+):(?P<mode>[0-7]+)$")


@dataclass(frozen=True)
class InstalledFile:
    """A file or directory owned by an installed package."""

    path: TreePath
    is_dir: bool = False
    uid: int | None = None
    gid: int | None = None
    mode: int | None = None
    """Permission bits recorded in the database, None if the database has no record."""

    @property
    def has_owner(self) -> bool:
        return self.uid is not None and self.gid is not None


@dataclass
class InstalledPackage:
    """A package as recorded in the installed package database of a tree."""

    package: ResolvedPackage
    files: list[InstalledFile] = field(default_factory=list[InstalledFile])

    @property
    def name(self) -> str:
        return self.package.name

    @property
    def version(self) -> str:
        return self.package.version


def decode_checksum(value: str) -> bytes:
    """Decodes a 'Q1'-prefixed base64 SHA-1 checksum or a plain hex checksum."""
    try:
        if value.startswith("Q1"):
            return base64.b64decode(value[2:], validate=True)
        return bytes.fromhex(value)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"invalid package checksum '{value}'") from e


def encode_checksum(checksum: bytes) -> str:
    return "Q1" + base64.b64encode(checksum).decode("ascii")


def _parse_acl(value: str, line_number: int) -> tuple[int, int, int]:
    match = ACL_PATTERN.match(value)
    if match is None:
        raise ValueError(f"line {line_number}: invalid ownership record '{value}'")
    return int(match.group("uid")), int(match.group("gid")), int(match.group("mode"), 8)


def parse_installed(content: str) -> list[InstalledPackage]:
    """
    Parses the text format of the apk installed package database.
    Records are separated by blank lines, every line of a record looks like `<key>:<value>`.

    Args:
        content: Content of lib/apk/db/installed.

    Returns:
        Installed packages in database order.

    Raises:
        ValueError: if a line or a record is malformed.
    """
    packages: list[InstalledPackage] = []
    fields: dict[str, object] = {}
    files: list[InstalledFile] = []
    current_dir: TreePath = ""

    def _finish_record(line_number: int) -> None:
        nonlocal fields, files, current_dir
        if fields or files:
            if "name" not in fields:
                raise ValueError(f"line {line_number}: package record without name")
            if not fields.get("version"):
                raise ValueError(f"line {line_number}: package record '{fields['name']}' without version")
            packages.append(InstalledPackage(ResolvedPackage(**fields), files))  # type: ignore[arg-type]
        fields, files, current_dir = {}, [], ""

    lines = content.splitlines()
    for line_number, line in enumerate(lines, start=1):
        if line.strip() == "":
            _finish_record(line_number)
            continue
        match = DB_LINE_PATTERN.match(line)
        if match is None:
            raise ValueError(f"line {line_number}: malformed database line '{line}'")
        key, value = match.group("key"), match.group("value")
        match key:
            case "P":
                fields["name"] = value
            case "V":
                fields["version"] = value
            case "A":
                fields["arch"] = value
            case "L":
                fields["license"] = value
            case "m":
                fields["maintainer"] = value
            case "U":
                fields["url"] = value
            case "T":
                fields["description"] = value
            case "C":
                fields["checksum"] = decode_checksum(value)
            case "F":
                current_dir = value.strip("/")
                files.append(InstalledFile(current_dir, is_dir=True))
            case "R":
                files.append(InstalledFile(posixpath.join(current_dir, value)))
            case "M" | "a":
                if not files or files[-1].is_dir != (key == "M"):
                    raise ValueError(f"line {line_number}: ownership record without matching entry")
                uid, gid, mode = _parse_acl(value, line_number)
                files[-1] = replace(files[-1], uid=uid, gid=gid, mode=mode)
            case _:
                # size, origin, dependencies, file checksums, ... are not needed to assemble a layer
                continue
    _finish_record(len(lines) + 1)
    return packages


def format_installed(packages: list[InstalledPackage]) -> str:
    """Renders packages in the text format of the apk installed package database."""
    records: list[str] = []
    for installed in packages:
        pkg = installed.package
        lines: list[str] = []
        if pkg.checksum:
            lines.append(f"C:{encode_checksum(pkg.checksum)}")
        lines += [f"P:{pkg.name}", f"V:{pkg.version}"]
        for key, value in [("A", pkg.arch), ("T", pkg.description), ("U", pkg.url), ("L", pkg.license), ("m", pkg.maintainer)]:
            if value:
                lines.append(f"{key}:{value}")
        current_dir = ""
        for file in installed.files:
            if file.is_dir:
                current_dir = file.path
                lines.append(f"F:{file.path}")
            else:
                parent = posixpath.dirname(file.path)
                if parent != current_dir:
                    current_dir = parent
                    lines.append(f"F:{parent}")
                lines.append(f"R:{posixpath.basename(file.path)}")
            if file.has_owner and file.mode is not None:
                lines.append(f"{'M' if file.is_dir else 'a'}:{file.uid}:{file.gid}:{file.mode:o}")
        records.append("\n".join(lines) + "\n")
    return "\n".join(records) + ("\n" if records else "")


def ownership_records(packages: list[InstalledPackage]) -> dict[TreePath, tuple[int, int]]:
    """Collects the owners recorded in the database for each path. Later packages win."""
    owners: dict[TreePath, tuple[int, int]] = {}
    for installed in packages:
        for file in installed.files:
            if file.uid is not None and file.gid is not None:
                owners[file.path] = (file.uid, file.gid)
    return owners
