# SPDX-License-Identifier: GPL-2.0-only OR MIT
# SPDX-FileCopyrightText: 2025 TNG Technology Consulting GmbH

from layerbom.fs import FilesystemTree
from layerbom.image_config import PathMutation


def _ensure_permissions(tree: FilesystemTree, mutation: PathMutation) -> None:
    paths = [mutation.path]
    if mutation.recursive and tree.stat(mutation.path).is_dir():
        paths = [info.path for info in tree.walk(mutation.path) if not info.is_symlink()]
    for path in paths:
        tree.chmod(path, mutation.permissions)
        tree.chown(path, mutation.uid, mutation.gid)


def mutate_paths(tree: FilesystemTree, mutations: list[PathMutation]) -> None:
    """Applies path mutations in declaration order. Ownership and permissions are not applied to symlinks."""
    for mutation in mutations:
        match mutation.type:
            case "directory":
                tree.mkdir_all(mutation.path, mutation.permissions)
            case "empty-file":
                tree.write_file(mutation.path, b"", mutation.permissions)
            case "hardlink":
                tree.link(mutation.source, mutation.path)
            case "symlink":
                tree.symlink(mutation.source, mutation.path)
                continue
            case "permissions":
                pass
            case _:
                raise ValueError(f"unsupported path mutation type '{mutation.type}' for '{mutation.path}'")
        _ensure_permissions(tree, mutation)
