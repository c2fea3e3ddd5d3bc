# SPDX-License-Identifier: GPL-2.0-only OR MIT
# SPDX-FileCopyrightText: 2025 TNG Technology Consulting GmbH

import logging
import posixpath
import re
from layerbom.apk.installed_db import InstalledPackage
from layerbom.fs import FilesystemTree
from layerbom.path_utils import TreePath, clean_tree_path, parent_tree_path

BUSYBOX_PATH: TreePath = "bin/busybox"
BUSYBOX_PATHS_DIR: TreePath = "etc/busybox-paths.d"
LDCONFIG_DIRS: list[TreePath] = ["lib"]

# Match versioned shared objects and capture their soname, e.g. "libz.so.1.3.1" -> "libz.so.1"
VERSIONED_LIBRARY_PATTERN = re.compile(r"^(?P<soname>.+\.so\.\d+)(\.\d+)+$")


def _busybox_owner(installed: list[InstalledPackage]) -> str | None:
    return next((p.name for p in installed if any(f.path == BUSYBOX_PATH for f in p.files)), None)


def _busybox_applets(tree: FilesystemTree, owner: str | None) -> list[TreePath]:
    """Reads the applet list of the package owning busybox or, if it ships none, all applet lists."""
    if not tree.exists(BUSYBOX_PATHS_DIR):
        return []
    names = tree.readdir(BUSYBOX_PATHS_DIR)
    if owner is not None and owner in names:
        names = [owner]
    applets: set[TreePath] = set()
    for name in names:
        content = tree.read_file(posixpath.join(BUSYBOX_PATHS_DIR, name)).decode("utf-8")
        applets.update(clean_tree_path(line.strip()) for line in content.splitlines() if line.strip())
    return sorted(applets)


def install_busybox_links(tree: FilesystemTree, installed: list[InstalledPackage]) -> None:
    """
    Creates the applet symlinks of the busybox multi-call binary.
    Applet paths are read from etc/busybox-paths.d/<package owning bin/busybox>. Existing files are never replaced,
    so files installed by packages or created by path mutations take precedence.
    """
    if not tree.exists(BUSYBOX_PATH):
        return
    owner = _busybox_owner(installed)
    logging.debug(f"Installing busybox links for {BUSYBOX_PATH} (package: {owner or 'unknown'})")

    for applet in _busybox_applets(tree, owner):
        if applet == BUSYBOX_PATH or tree.exists(applet):
            continue
        tree.mkdir_all(parent_tree_path(applet))
        tree.symlink(f"/{BUSYBOX_PATH}", applet)


def install_ldconfig_links(tree: FilesystemTree) -> None:
    """Links the soname of every versioned shared object to the library file, e.g. lib/libz.so.1 -> libz.so.1.3.1."""
    for directory in LDCONFIG_DIRS:
        if not tree.exists(directory) or not tree.stat(directory).is_dir():
            continue
        for name in tree.readdir(directory):
            match = VERSIONED_LIBRARY_PATTERN.match(name)
            if match is None or not tree.lstat(posixpath.join(directory, name)).is_file():
                continue
            link = posixpath.join(directory, match.group("soname"))
            if tree.exists(link):
                continue
            tree.symlink(name, link)
