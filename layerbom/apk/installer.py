# SPDX-License-Identifier: GPL-2.0-only OR MIT
# SPDX-FileCopyrightText: 2025 TNG Technology Consulting GmbH

import logging
from typing import Protocol
from layerbom.apk.installed_db import INSTALLED_DB_PATH, InstalledPackage, format_installed, parse_installed
from layerbom.fs import FilesystemTree
from layerbom.metadata import ResolvedPackage
from layerbom.path_utils import TreePath, parent_tree_path

WORLD_PATH: TreePath = "etc/apk/world"


class PackageInstaller(Protocol):
    """Installs resolved packages into a tree and reports what the tree ended up containing."""

    def fixate_world(self, packages: list[ResolvedPackage]) -> None: ...

    def get_installed(self) -> list[InstalledPackage]: ...


class ApkDatabase:
    """
    Package installer working on a tree whose package contents were unpacked beforehand.
    Fixating the world records the resolved packages in the installed package database of the tree.
    """

    def __init__(self, tree: FilesystemTree) -> None:
        self._tree = tree

    def fixate_world(self, packages: list[ResolvedPackage]) -> None:
        self._tree.mkdir_all(parent_tree_path(INSTALLED_DB_PATH))
        db_exists = self._tree.exists(INSTALLED_DB_PATH)
        installed = self.get_installed()
        known_names = {p.name for p in installed}
        missing = [InstalledPackage(package) for package in packages if package.name not in known_names]
        if missing or not db_exists:
            self._tree.write_file(INSTALLED_DB_PATH, format_installed(installed + missing).encode("utf-8"))
        logging.debug(f"Recorded {len(missing)} of {len(packages)} resolved packages in {INSTALLED_DB_PATH}")

        if not self._tree.exists(WORLD_PATH):
            self._tree.mkdir_all(parent_tree_path(WORLD_PATH))
            world = "".join(f"{name}\n" for name in sorted({p.name for p in packages}))
            self._tree.write_file(WORLD_PATH, world.encode("utf-8"))

    def get_installed(self) -> list[InstalledPackage]:
        if not self._tree.exists(INSTALLED_DB_PATH):
            return []
        return parse_installed(self._tree.read_file(INSTALLED_DB_PATH).decode("utf-8"))
