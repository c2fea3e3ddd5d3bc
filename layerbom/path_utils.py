# SPDX-License-Identifier: GPL-2.0-only OR MIT
# Copyright (C) 2025 TNG Technology Consulting GmbH

import os
import posixpath

PathStr = str
"""Filesystem path represented as a plain string for better performance than pathlib.Path."""

TreePath = str
"""Slash separated path relative to the root of a filesystem tree, e.g. 'etc/passwd'. The root itself is '.'."""


def clean_tree_path(path: str) -> TreePath:
    """
    Normalizes a path into a root-relative tree path.
    Leading slashes are dropped and '..' components can never escape the root.

    Examples:
        '/etc/passwd' -> 'etc/passwd', '/' -> '.', 'a/../../b' -> 'b'
    """
    cleaned = posixpath.normpath("/" + path.replace(os.sep, "/")).lstrip("/")
    return cleaned if cleaned else "."


def parent_tree_path(path: TreePath) -> TreePath:
    parent = posixpath.dirname(path)
    return parent if parent else "."
