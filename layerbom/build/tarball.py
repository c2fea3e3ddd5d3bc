# SPDX-License-Identifier: GPL-2.0-only OR MIT
# SPDX-FileCopyrightText: 2025 TNG Technology Consulting GmbH

"""
Serializes a filesystem tree into a reproducible gzip compressed layer tarball.

The tar stream is written once. Its bytes fan out to a digest of the uncompressed
content (diffID) and to the compressor, whose output fans out to a digest of the
compressed content and to the buffered output file:

    tar -> MultiWriter(diff_id, gzip -> MultiWriter(digest, buffered file))
"""

from datetime import datetime, timezone
import gzip
import hashlib
import io
import logging
import os
import tarfile
from typing import Protocol
from layerbom import build_logging
from layerbom.errors import TarballError
from layerbom.fs import FileInfo, FilesystemTree
from layerbom.metadata import TarballOutput
from layerbom.path_utils import PathStr, TreePath

BUFFER_SIZE = 1 << 22
"""Size of the buffer between the compressor and the output file."""

DIGEST_ALGORITHM = "sha256"


class Writer(Protocol):
    def write(self, data: bytes, /) -> int: ...


class HashWriter:
    """Incrementally hashes every byte written to it."""

    def __init__(self, algorithm: str = DIGEST_ALGORITHM) -> None:
        self._hash = hashlib.new(algorithm)
        self.size = 0

    def write(self, data: bytes, /) -> int:
        self._hash.update(data)
        self.size += len(data)
        return len(data)

    @property
    def digest(self) -> str:
        return f"{self._hash.name}:{self._hash.hexdigest()}"


class MultiWriter:
    """Duplicates every write to all underlying writers, in order."""

    def __init__(self, *writers: Writer) -> None:
        self._writers = writers

    def write(self, data: bytes, /) -> int:
        for writer in self._writers:
            writer.write(data)
        return len(data)

    def flush(self) -> None:
        for writer in self._writers:
            if flush := getattr(writer, "flush", None):
                flush()


def _owner(info: FileInfo, ownership: dict[TreePath, tuple[int, int]]) -> tuple[int, int]:
    if info.uid is not None and info.gid is not None:
        return info.uid, info.gid
    return ownership.get(info.path, (0, 0))


def write_tar(
    tar: tarfile.TarFile,
    tree: FilesystemTree,
    mtime: int,
    ownership: dict[TreePath, tuple[int, int]] | None = None,
) -> None:
    """
    Writes every entry of the tree to `tar` in lexical order.

    Args:
        tar: Open tar writer.
        tree: Tree to serialize.
        mtime: Modification time set on every entry.
        ownership: Owners recorded in the installed package database. Used for entries
            the tree carries no explicit owner for. All other entries are owned by 0:0.
    """
    ownership = ownership or {}
    hardlinks: dict[int, TreePath] = {}
    for info in tree.walk("."):
        if info.path == ".":
            continue
        header = tarfile.TarInfo(info.path)
        header.mtime = mtime
        header.mode = info.permissions
        header.uid, header.gid = _owner(info, ownership)
        header.uname = header.gname = ""

        data: bytes | None = None
        if info.is_dir():
            header.type = tarfile.DIRTYPE
            header.name = f"{info.path}/"
        elif info.is_symlink():
            header.type = tarfile.SYMTYPE
            header.linkname = info.link_target
        elif info.is_char_device():
            header.type = tarfile.CHRTYPE
            header.devmajor, header.devminor = info.devmajor, info.devminor
        elif info.is_file() and info.nlink > 1 and info.inode in hardlinks:
            header.type = tarfile.LNKTYPE
            header.linkname = hardlinks[info.inode]
        elif info.is_file():
            if info.nlink > 1 and info.inode:
                hardlinks[info.inode] = info.path
            data = tree.read_file(info.path)
            header.size = len(data)
        else:
            build_logging.warning("Skip {path} because its file type is not supported in layers", path=info.path)
            continue
        tar.addfile(header, io.BytesIO(data) if data is not None else None)


def encode_tarball(
    tree: FilesystemTree,
    source_date_epoch: datetime,
    output_path: PathStr,
    ownership: dict[TreePath, tuple[int, int]] | None = None,
) -> TarballOutput:
    """
    Encodes the tree as gzip compressed tarball in a single pass.
    Identical trees and timestamps always produce byte identical files.

    Args:
        tree: Tree to serialize.
        source_date_epoch: Timestamp set on every entry instead of the current time.
        output_path: File to create. Overwritten if it exists.
        ownership: Owners recorded in the installed package database.

    Returns:
        The output path, the digest of the uncompressed tar stream (diffID), the digest of the compressed file and its size.

    Raises:
        TarballError: if the output cannot be written or the tree cannot be serialized.
    """
    try:
        outfile = open(output_path, "wb", buffering=BUFFER_SIZE)
    except OSError as e:
        raise TarballError(f"opening the layer tarball path {output_path} failed: {e}") from e

    if source_date_epoch.tzinfo is None:
        source_date_epoch = source_date_epoch.replace(tzinfo=timezone.utc)
    mtime = int(source_date_epoch.timestamp())

    diff_id = HashWriter()
    digest = HashWriter()
    try:
        with outfile:
            # no file name and a zero timestamp in the gzip header keep the output reproducible
            with gzip.GzipFile(filename="", mode="wb", fileobj=MultiWriter(digest, outfile), mtime=0) as gzw:
                with tarfile.open(fileobj=MultiWriter(diff_id, gzw), mode="w|", format=tarfile.PAX_FORMAT) as tar:
                    write_tar(tar, tree, mtime, ownership)
            outfile.flush()
    except (OSError, tarfile.TarError, ValueError) as e:
        raise TarballError(f"failed to generate tarball for image: {e}") from e

    try:
        size = os.stat(output_path).st_size
    except OSError as e:
        raise TarballError(f"stat({output_path!r}): {e}") from e

    logging.info(f"Built image layer tarball as {output_path}")
    return TarballOutput(path=output_path, diff_id=diff_id.digest, digest=digest.digest, size=size)
