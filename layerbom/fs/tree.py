# SPDX-License-Identifier: GPL-2.0-only OR MIT
# SPDX-FileCopyrightText: 2025 TNG Technology Consulting GmbH

from dataclasses import dataclass
import stat
from typing import Iterator, Protocol
from layerbom.path_utils import TreePath


@dataclass(frozen=True)
class FileInfo:
    """Metadata of a single entry in a filesystem tree."""

    path: TreePath
    """Root-relative path of the entry. The root itself is '.'."""
    mode: int
    """File type and permission bits as in `os.stat_result.st_mode`."""
    size: int = 0
    uid: int | None = None
    """Explicitly assigned owner. None if the tree carries no ownership information for this entry."""
    gid: int | None = None
    link_target: str = ""
    """Target of a symbolic link."""
    devmajor: int = 0
    devminor: int = 0
    inode: int = 0
    """Identity shared by all hardlinks to the same file. 0 if unknown."""
    nlink: int = 1
    """Number of paths referring to the same file."""

    @property
    def permissions(self) -> int:
        return stat.S_IMODE(self.mode)

    def is_dir(self) -> bool:
        return stat.S_ISDIR(self.mode)

    def is_file(self) -> bool:
        return stat.S_ISREG(self.mode)

    def is_symlink(self) -> bool:
        return stat.S_ISLNK(self.mode)

    def is_char_device(self) -> bool:
        return stat.S_ISCHR(self.mode)


class FilesystemTree(Protocol):
    """
    Mutable directory hierarchy a layer is assembled in.
    All paths are relative to the root of the tree; a leading '/' is ignored.
    Failing operations raise the matching OSError subclass (FileNotFoundError, FileExistsError, ...).
    """

    def mkdir(self, path: str, mode: int = 0o755) -> None: ...

    def mkdir_all(self, path: str, mode: int = 0o755) -> None: ...

    def write_file(self, path: str, data: bytes, mode: int = 0o644) -> None: ...

    def read_file(self, path: str) -> bytes: ...

    def stat(self, path: str) -> FileInfo: ...

    def lstat(self, path: str) -> FileInfo: ...

    def exists(self, path: str) -> bool:
        """Whether an entry exists at `path`, without following a final symlink."""
        ...

    def readdir(self, path: str) -> list[str]:
        """Sorted names of the entries of a directory."""
        ...

    def chmod(self, path: str, mode: int) -> None: ...

    def chown(self, path: str, uid: int, gid: int) -> None: ...

    def symlink(self, target: str, path: str) -> None: ...

    def readlink(self, path: str) -> str: ...

    def link(self, source: str, path: str) -> None: ...

    def mknod(self, path: str, mode: int, major: int, minor: int) -> None: ...

    def remove(self, path: str) -> None: ...

    def walk(self, path: str = ".") -> Iterator[FileInfo]:
        """Yields the entry at `path` and all entries below it in lexical pre-order without following symlinks."""
        ...
