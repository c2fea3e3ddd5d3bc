# SPDX-License-Identifier: GPL-2.0-only OR MIT
# SPDX-FileCopyrightText: 2025 TNG Technology Consulting GmbH

import os
from typing import Protocol
from layerbom.errors import SbomError
from layerbom.metadata import BuildMetadata, ResolvedPackage
from layerbom.path_utils import PathStr
from layerbom.sbom.idb import InstalledDbGenerator
from layerbom.sbom.spdx import SpdxGenerator


class Generator(Protocol):
    key: str
    """Short name used to select the generator, e.g. 'spdx'."""
    ext: str
    """File extension of the generated document, e.g. 'spdx.json'."""

    def generate(self, metadata: BuildMetadata, packages: list[ResolvedPackage], path: PathStr) -> None: ...


def generators() -> dict[str, Generator]:
    """All available SBOM generators by key."""
    available: list[Generator] = [SpdxGenerator(), InstalledDbGenerator()]
    return {g.key: g for g in available}


def sbom_file_name(metadata: BuildMetadata, generator: Generator) -> str:
    return f"sbom-{metadata.arch.to_apk()}.{generator.ext}" if metadata.arch else f"sbom.{generator.ext}"


def generate_sboms(
    metadata: BuildMetadata,
    packages: list[ResolvedPackage],
    output_dir: PathStr,
    formats: list[str],
) -> list[PathStr]:
    """
    Writes one SBOM document per requested format into `output_dir`.

    Args:
        metadata: Build metadata of the layer.
        packages: Packages installed in the layer.
        output_dir: Directory to write to. Created if missing.
        formats: Generator keys, e.g. ['spdx', 'idb'].

    Returns:
        Paths of the written documents in the order of `formats`.

    Raises:
        SbomError: if a format is unknown or a document cannot be written.
    """
    available = generators()
    unknown = [f for f in formats if f not in available]
    if unknown:
        raise SbomError(f"unknown SBOM formats {unknown}, available are {sorted(available)}")

    try:
        os.makedirs(output_dir, exist_ok=True)
    except OSError as e:
        raise SbomError(f"creating SBOM output directory {output_dir}: {e}") from e

    paths: list[PathStr] = []
    for key in formats:
        generator = available[key]
        path = os.path.join(output_dir, sbom_file_name(metadata, generator))
        generator.generate(metadata, packages, path)
        paths.append(path)
    return paths
