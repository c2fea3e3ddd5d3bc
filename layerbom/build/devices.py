# SPDX-License-Identifier: GPL-2.0-only OR MIT
# SPDX-FileCopyrightText: 2025 TNG Technology Consulting GmbH

import stat
from layerbom.fs import FilesystemTree
from layerbom.path_utils import TreePath, parent_tree_path

# path, major, minor
CHAR_DEVICES: list[tuple[TreePath, int, int]] = [
    ("dev/zero", 1, 5),
    ("dev/urandom", 1, 9),
    ("dev/null", 1, 3),
    ("dev/random", 1, 8),
    ("dev/console", 5, 1),
]


def install_char_devices(tree: FilesystemTree) -> None:
    for path, major, minor in CHAR_DEVICES:
        if tree.exists(path):
            continue
        tree.mkdir_all(parent_tree_path(path))
        tree.mknod(path, stat.S_IFCHR | 0o666, major, minor)
