# SPDX-License-Identifier: GPL-2.0-only OR MIT
# SPDX-FileCopyrightText: 2025 TNG Technology Consulting GmbH

from layerbom.apk.installed_db import InstalledPackage, format_installed
from layerbom.errors import SbomError
from layerbom.metadata import BuildMetadata, ResolvedPackage
from layerbom.path_utils import PathStr


class InstalledDbGenerator:
    """Lists the packages of the layer in the text format of the apk installed package database."""

    key = "idb"
    ext = "idb"

    def generate(self, metadata: BuildMetadata, packages: list[ResolvedPackage], path: PathStr) -> None:
        try:
            with open(path, "w", encoding="utf-8") as f:
                f.write(format_installed([InstalledPackage(p) for p in packages]))
        except OSError as e:
            raise SbomError(f"writing installed database listing to {path}: {e}") from e
