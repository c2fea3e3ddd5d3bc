# SPDX-License-Identifier: GPL-2.0-only OR MIT
# SPDX-FileCopyrightText: 2025 TNG Technology Consulting GmbH

from .installed_db import InstalledFile, InstalledPackage, format_installed, ownership_records, parse_installed
from .installer import ApkDatabase, PackageInstaller
from .tags import additional_tags

__all__ = [
    "ApkDatabase",
    "InstalledFile",
    "InstalledPackage",
    "PackageInstaller",
    "additional_tags",
    "format_installed",
    "ownership_records",
    "parse_installed",
]
