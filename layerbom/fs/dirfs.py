# SPDX-License-Identifier: GPL-2.0-only OR MIT
# SPDX-FileCopyrightText: 2025 TNG Technology Consulting GmbH

import errno
import logging
import os
import posixpath
import stat
from typing import Iterator
from layerbom.fs.memfs import MAX_SYMLINK_DEPTH
from layerbom.fs.tree import FileInfo
from layerbom.path_utils import PathStr, TreePath, clean_tree_path, parent_tree_path


def _join(parent: TreePath, name: str) -> TreePath:
    return name if parent == "." else f"{parent}/{name}"


class DirFS:
    """
    Filesystem tree backed by a directory on the host.

    Ownership is never applied to the host files. It is kept as metadata next to the tree instead,
    the same way character devices are when the host refuses to create them (e.g. when not running as root).
    """

    root: PathStr

    def __init__(self, root: PathStr) -> None:
        self.root = os.path.realpath(root)
        self._owners: dict[TreePath, tuple[int, int]] = {}
        self._devices: dict[TreePath, tuple[int, int, int]] = {}
        """Device nodes emulated by an empty placeholder file: path -> (mode, major, minor)."""

    def _host(self, path: TreePath) -> PathStr:
        return self.root if path == "." else os.path.join(self.root, *path.split("/"))

    def _resolve(self, path: str, follow_last: bool = True, depth: int = 0) -> TreePath:
        """Resolves symlinks in `path` relative to the root of the tree instead of the host root."""
        path = clean_tree_path(path)
        if path == ".":
            return path
        parts = path.split("/")
        resolved: TreePath = "."
        for i, part in enumerate(parts):
            candidate = _join(resolved, part)
            is_last = i == len(parts) - 1
            if (follow_last or not is_last) and os.path.islink(host_path := self._host(candidate)):
                if depth >= MAX_SYMLINK_DEPTH:
                    raise OSError(errno.ELOOP, os.strerror(errno.ELOOP), path)
                target = os.readlink(host_path)
                base = "/" if target.startswith("/") else "/" + resolved
                rest = "/".join(parts[i + 1 :])
                return self._resolve(posixpath.join(base, target, rest), follow_last, depth + 1)
            resolved = candidate
        return resolved

    def _new_entry_path(self, path: str) -> TreePath:
        cleaned = clean_tree_path(path)
        return _join(self._resolve(parent_tree_path(cleaned)), posixpath.basename(cleaned))

    def mkdir(self, path: str, mode: int = 0o755) -> None:
        host_path = self._host(self._new_entry_path(path))
        os.mkdir(host_path)
        os.chmod(host_path, stat.S_IMODE(mode))

    def mkdir_all(self, path: str, mode: int = 0o755) -> None:
        current: TreePath = "."
        for part in [p for p in clean_tree_path(path).split("/") if p != "."]:
            candidate = self._resolve(_join(current, part))
            host_path = self._host(candidate)
            if not os.path.lexists(host_path):
                self.mkdir(candidate, mode)
            elif not os.path.isdir(host_path):
                raise NotADirectoryError(errno.ENOTDIR, os.strerror(errno.ENOTDIR), path)
            current = candidate

    def write_file(self, path: str, data: bytes, mode: int = 0o644) -> None:
        resolved = self._resolve(path)
        host_path = self._host(resolved)
        is_new = not os.path.lexists(host_path)
        with open(host_path, "wb") as f:
            f.write(data)
        if is_new:
            os.chmod(host_path, stat.S_IMODE(mode))

    def read_file(self, path: str) -> bytes:
        resolved = self._resolve(path)
        if resolved in self._devices:
            return b""
        with open(self._host(resolved), "rb") as f:
            return f.read()

    def _info(self, path: TreePath) -> FileInfo:
        st = os.lstat(self._host(path))
        uid, gid = self._owners.get(path, (None, None))
        if path in self._devices:
            mode, major, minor = self._devices[path]
            return FileInfo(path=path, mode=mode, uid=uid, gid=gid, devmajor=major, devminor=minor, inode=st.st_ino)
        is_device = stat.S_ISCHR(st.st_mode) or stat.S_ISBLK(st.st_mode)
        return FileInfo(
            path=path,
            mode=st.st_mode,
            size=st.st_size if stat.S_ISREG(st.st_mode) or stat.S_ISLNK(st.st_mode) else 0,
            uid=uid,
            gid=gid,
            link_target=os.readlink(self._host(path)) if stat.S_ISLNK(st.st_mode) else "",
            devmajor=os.major(st.st_rdev) if is_device else 0,
            devminor=os.minor(st.st_rdev) if is_device else 0,
            inode=st.st_ino,
            nlink=st.st_nlink,
        )

    def stat(self, path: str) -> FileInfo:
        return self._info(self._resolve(path))

    def lstat(self, path: str) -> FileInfo:
        return self._info(self._resolve(path, follow_last=False))

    def exists(self, path: str) -> bool:
        return os.path.lexists(self._host(self._resolve(path, follow_last=False)))

    def readdir(self, path: str) -> list[str]:
        return sorted(os.listdir(self._host(self._resolve(path))))

    def chmod(self, path: str, mode: int) -> None:
        resolved = self._resolve(path)
        if resolved in self._devices:
            device_mode, major, minor = self._devices[resolved]
            self._devices[resolved] = (stat.S_IFMT(device_mode) | stat.S_IMODE(mode), major, minor)
            return
        os.chmod(self._host(resolved), stat.S_IMODE(mode))

    def chown(self, path: str, uid: int, gid: int) -> None:
        resolved = self._resolve(path)
        if not os.path.lexists(self._host(resolved)):
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), path)
        self._owners[resolved] = (uid, gid)

    def symlink(self, target: str, path: str) -> None:
        os.symlink(target, self._host(self._new_entry_path(path)))

    def readlink(self, path: str) -> str:
        return os.readlink(self._host(self._resolve(path, follow_last=False)))

    def link(self, source: str, path: str) -> None:
        os.link(
            self._host(self._resolve(source, follow_last=False)),
            self._host(self._new_entry_path(path)),
            follow_symlinks=False,
        )

    def mknod(self, path: str, mode: int, major: int, minor: int) -> None:
        new_path = self._new_entry_path(path)
        host_path = self._host(new_path)
        try:
            os.mknod(host_path, mode, os.makedev(major, minor))
            os.chmod(host_path, stat.S_IMODE(mode))
        except PermissionError:
            logging.debug(f"Cannot create device {new_path} on the host, keeping it as tree metadata")
            with open(host_path, "xb"):
                pass
            self._devices[new_path] = (mode, major, minor)

    def remove(self, path: str) -> None:
        resolved = self._resolve(path, follow_last=False)
        host_path = self._host(resolved)
        if os.path.isdir(host_path) and not os.path.islink(host_path):
            os.rmdir(host_path)
        else:
            os.unlink(host_path)
        self._owners.pop(resolved, None)
        self._devices.pop(resolved, None)

    def walk(self, path: str = ".") -> Iterator[FileInfo]:
        info = self.lstat(path)
        yield info
        if info.is_dir():
            for name in sorted(os.listdir(self._host(info.path))):
                yield from self.walk(_join(info.path, name))
