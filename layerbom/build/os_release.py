# SPDX-License-Identifier: GPL-2.0-only OR MIT
# SPDX-FileCopyrightText: 2025 TNG Technology Consulting GmbH

import shlex
from layerbom.errors import OSReleaseAlreadyPresentError
from layerbom.fs import FilesystemTree
from layerbom.image_config import OSRelease
from layerbom.path_utils import TreePath, parent_tree_path

OS_RELEASE_PATH: TreePath = "etc/os-release"


def generate_os_release(tree: FilesystemTree, os_release: OSRelease) -> None:
    """
    Writes etc/os-release from the configured values. Empty values are omitted.

    Raises:
        OSReleaseAlreadyPresentError: if the file (or a symlink in its place) already exists. It is left untouched.
    """
    if tree.exists(OS_RELEASE_PATH):
        raise OSReleaseAlreadyPresentError(f"{OS_RELEASE_PATH} already present")

    lines: list[str] = []
    if os_release.id:
        lines.append(f"ID={os_release.id}")
    if os_release.name:
        lines.append(f'NAME="{os_release.name}"')
    if os_release.pretty_name:
        lines.append(f'PRETTY_NAME="{os_release.pretty_name}"')
    if os_release.version_id:
        lines.append(f"VERSION_ID={os_release.version_id}")
    if os_release.home_url:
        lines.append(f'HOME_URL="{os_release.home_url}"')
    if os_release.bug_report_url:
        lines.append(f'BUG_REPORT_URL="{os_release.bug_report_url}"')

    tree.mkdir_all(parent_tree_path(OS_RELEASE_PATH))
    tree.write_file(OS_RELEASE_PATH, "".join(f"{line}\n" for line in lines).encode("utf-8"), 0o644)


def read_os_release(tree: FilesystemTree) -> dict[str, str]:
    """Parses the KEY=value pairs of etc/os-release. Returns an empty dict if the file does not exist."""
    try:
        content = tree.read_file(OS_RELEASE_PATH).decode("utf-8")
    except FileNotFoundError:
        return {}
    values: dict[str, str] = {}
    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        try:
            unquoted = shlex.split(value)
        except ValueError:
            unquoted = [value.strip("\"'")]
        values[key.strip()] = " ".join(unquoted)
    return values
