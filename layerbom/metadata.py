# SPDX-License-Identifier: GPL-2.0-only OR MIT
# SPDX-FileCopyrightText: 2025 TNG Technology Consulting GmbH

from dataclasses import dataclass, field
from datetime import datetime, timezone
from layerbom.arch import Architecture
from layerbom.path_utils import PathStr


@dataclass(frozen=True)
class ResolvedPackage:
    """A package selected by the dependency resolver. Read-only input of the layer build."""

    name: str
    version: str
    license: str = ""
    maintainer: str = ""
    description: str = ""
    url: str = ""
    checksum: bytes = b""
    """Raw SHA-1 digest of the package control data."""
    arch: str = ""


@dataclass
class BuildMetadata:
    """
    Image and layer facts the build is run with.
    Everything except `tags` is treated as immutable input; the pipeline may append derived tags.
    """

    source_date_epoch: datetime
    """Fixed timestamp substituted for the current time to keep outputs reproducible."""

    temp_dir: PathStr
    """Directory in which default output files are created."""

    name: str = ""
    """Image name, e.g. 'cgr.dev/example/base'."""

    tags: list[str] = field(default_factory=list[str])
    repository: str = ""
    reference: str = ""
    image_digest: str = ""
    """Digest of the image manifest ('sha256:<hex>') if it is already known."""

    layer_digest: str = ""
    """Digest of the compressed layer ('sha256:<hex>')."""

    arch: Architecture = field(default_factory=Architecture)
    os_id: str = ""
    os_version: str = ""
    tarball_path: PathStr | None = None
    """Where to write the layer tarball. Defaults to a file in `temp_dir`."""

    @property
    def tag(self) -> str:
        """First configured tag, used for package-url qualifiers."""
        return self.tags[0] if self.tags else ""

    def tarball_file_name(self) -> str:
        return f"layer-{self.arch.to_apk()}.tar.gz" if self.arch else "layer.tar.gz"


@dataclass(frozen=True)
class TarballOutput:
    """Result of encoding a filesystem tree into a compressed layer."""

    path: PathStr
    diff_id: str
    """Digest of the uncompressed tar stream."""
    digest: str
    """Digest of the compressed file as stored on disk."""
    size: int
    """Size of the compressed file in bytes."""


def format_rfc3339(timestamp: datetime) -> str:
    """Formats a timestamp like '2023-01-02T03:04:05Z'. Naive datetimes are taken as UTC."""
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    if timestamp.utcoffset() == timezone.utc.utcoffset(None):
        return timestamp.strftime("%Y-%m-%dT%H:%M:%SZ")
    return timestamp.replace(microsecond=0).isoformat()
