# SPDX-License-Identifier: GPL-2.0-only OR MIT
# SPDX-FileCopyrightText: 2025 TNG Technology Consulting GmbH

import errno
from itertools import count
import os
import posixpath
import stat
from typing import Iterator
from layerbom.fs.tree import FileInfo
from layerbom.path_utils import TreePath, clean_tree_path, parent_tree_path

MAX_SYMLINK_DEPTH = 40


class _Inode:
    __slots__ = ("number", "mode", "data", "uid", "gid", "link_target", "devmajor", "devminor", "nlink")

    def __init__(self, number: int, mode: int, data: bytes = b"", link_target: str = "") -> None:
        self.number = number
        self.mode = mode
        self.data = data
        self.uid: int | None = None
        self.gid: int | None = None
        self.link_target = link_target
        self.devmajor = 0
        self.devminor = 0
        self.nlink = 1


def _join(parent: TreePath, name: str) -> TreePath:
    return name if parent == "." else f"{parent}/{name}"


def _os_error(cls: type[OSError], code: int, path: str) -> OSError:
    return cls(code, os.strerror(code), path)


class MemFS:
    """In-memory filesystem tree. Ownership is only recorded when explicitly set with `chown`."""

    def __init__(self) -> None:
        self._inode_numbers = count(1)
        self._entries: dict[TreePath, _Inode] = {".": self._new_inode(stat.S_IFDIR | 0o755)}
        self._children: dict[TreePath, set[str]] = {".": set()}

    def _new_inode(self, mode: int, data: bytes = b"", link_target: str = "") -> _Inode:
        return _Inode(next(self._inode_numbers), mode, data, link_target)

    def _resolve(self, path: str, follow_last: bool = True, depth: int = 0) -> TreePath:
        """Resolves symlinks in `path` without ever leaving the root of the tree."""
        path = clean_tree_path(path)
        if path == ".":
            return path
        parts = path.split("/")
        resolved: TreePath = "."
        for i, part in enumerate(parts):
            candidate = _join(resolved, part)
            node = self._entries.get(candidate)
            is_last = i == len(parts) - 1
            if node is not None and stat.S_ISLNK(node.mode) and (follow_last or not is_last):
                if depth >= MAX_SYMLINK_DEPTH:
                    raise _os_error(OSError, errno.ELOOP, path)
                base = "/" if node.link_target.startswith("/") else "/" + resolved
                rest = "/".join(parts[i + 1 :])
                return self._resolve(posixpath.join(base, node.link_target, rest), follow_last, depth + 1)
            resolved = candidate
        return resolved

    def _lookup(self, path: str, follow_last: bool = True) -> tuple[TreePath, _Inode]:
        resolved = self._resolve(path, follow_last)
        node = self._entries.get(resolved)
        if node is None:
            raise _os_error(FileNotFoundError, errno.ENOENT, path)
        return resolved, node

    def _new_entry_path(self, path: str) -> TreePath:
        """Resolves the parent directory of a path that is about to be created."""
        cleaned = clean_tree_path(path)
        if cleaned == ".":
            raise _os_error(FileExistsError, errno.EEXIST, path)
        parent = self._resolve(parent_tree_path(cleaned))
        parent_node = self._entries.get(parent)
        if parent_node is None:
            raise _os_error(FileNotFoundError, errno.ENOENT, path)
        if not stat.S_ISDIR(parent_node.mode):
            raise _os_error(NotADirectoryError, errno.ENOTDIR, path)
        new_path = _join(parent, posixpath.basename(cleaned))
        if new_path in self._entries:
            raise _os_error(FileExistsError, errno.EEXIST, path)
        return new_path

    def _add(self, path: TreePath, node: _Inode) -> None:
        self._entries[path] = node
        self._children[parent_tree_path(path)].add(posixpath.basename(path))
        if stat.S_ISDIR(node.mode):
            self._children[path] = set()

    def mkdir(self, path: str, mode: int = 0o755) -> None:
        self._add(self._new_entry_path(path), self._new_inode(stat.S_IFDIR | stat.S_IMODE(mode)))

    def mkdir_all(self, path: str, mode: int = 0o755) -> None:
        current: TreePath = "."
        for part in [p for p in clean_tree_path(path).split("/") if p != "."]:
            candidate = self._resolve(_join(current, part))
            node = self._entries.get(candidate)
            if node is None:
                self.mkdir(candidate, mode)
            elif not stat.S_ISDIR(node.mode):
                raise _os_error(NotADirectoryError, errno.ENOTDIR, path)
            current = candidate

    def write_file(self, path: str, data: bytes, mode: int = 0o644) -> None:
        resolved = self._resolve(path)
        node = self._entries.get(resolved)
        if node is None:
            self._add(self._new_entry_path(resolved), self._new_inode(stat.S_IFREG | stat.S_IMODE(mode), bytes(data)))
        elif stat.S_ISDIR(node.mode):
            raise _os_error(IsADirectoryError, errno.EISDIR, path)
        else:
            node.data = bytes(data)

    def read_file(self, path: str) -> bytes:
        _, node = self._lookup(path)
        if stat.S_ISDIR(node.mode):
            raise _os_error(IsADirectoryError, errno.EISDIR, path)
        return node.data

    def _info(self, path: TreePath, node: _Inode) -> FileInfo:
        return FileInfo(
            path=path,
            mode=node.mode,
            size=len(node.link_target) if stat.S_ISLNK(node.mode) else len(node.data),
            uid=node.uid,
            gid=node.gid,
            link_target=node.link_target,
            devmajor=node.devmajor,
            devminor=node.devminor,
            inode=node.number,
            nlink=node.nlink,
        )

    def stat(self, path: str) -> FileInfo:
        return self._info(*self._lookup(path))

    def lstat(self, path: str) -> FileInfo:
        return self._info(*self._lookup(path, follow_last=False))

    def exists(self, path: str) -> bool:
        return self._resolve(path, follow_last=False) in self._entries

    def readdir(self, path: str) -> list[str]:
        resolved, node = self._lookup(path)
        if not stat.S_ISDIR(node.mode):
            raise _os_error(NotADirectoryError, errno.ENOTDIR, path)
        return sorted(self._children[resolved])

    def chmod(self, path: str, mode: int) -> None:
        _, node = self._lookup(path)
        node.mode = stat.S_IFMT(node.mode) | stat.S_IMODE(mode)

    def chown(self, path: str, uid: int, gid: int) -> None:
        _, node = self._lookup(path)
        node.uid = uid
        node.gid = gid

    def symlink(self, target: str, path: str) -> None:
        new_path = self._new_entry_path(self._resolve(path, follow_last=False))
        self._add(new_path, self._new_inode(stat.S_IFLNK | 0o777, link_target=target))

    def readlink(self, path: str) -> str:
        _, node = self._lookup(path, follow_last=False)
        if not stat.S_ISLNK(node.mode):
            raise _os_error(OSError, errno.EINVAL, path)
        return node.link_target

    def link(self, source: str, path: str) -> None:
        _, node = self._lookup(source, follow_last=False)
        if stat.S_ISDIR(node.mode):
            raise _os_error(PermissionError, errno.EPERM, source)
        new_path = self._new_entry_path(self._resolve(path, follow_last=False))
        node.nlink += 1
        self._add(new_path, node)

    def mknod(self, path: str, mode: int, major: int, minor: int) -> None:
        file_type = stat.S_IFMT(mode) or stat.S_IFREG
        if file_type not in (stat.S_IFREG, stat.S_IFCHR, stat.S_IFBLK, stat.S_IFIFO):
            raise _os_error(OSError, errno.EINVAL, path)
        node = self._new_inode(file_type | stat.S_IMODE(mode))
        node.devmajor, node.devminor = major, minor
        self._add(self._new_entry_path(self._resolve(path, follow_last=False)), node)

    def remove(self, path: str) -> None:
        resolved, node = self._lookup(path, follow_last=False)
        if resolved == ".":
            raise _os_error(OSError, errno.EBUSY, path)
        if stat.S_ISDIR(node.mode):
            if self._children[resolved]:
                raise _os_error(OSError, errno.ENOTEMPTY, path)
            del self._children[resolved]
        node.nlink -= 1
        del self._entries[resolved]
        self._children[parent_tree_path(resolved)].discard(posixpath.basename(resolved))

    def walk(self, path: str = ".") -> Iterator[FileInfo]:
        resolved, node = self._lookup(path, follow_last=False)
        yield self._info(resolved, node)
        if stat.S_ISDIR(node.mode):
            for name in sorted(self._children[resolved]):
                yield from self.walk(_join(resolved, name))
