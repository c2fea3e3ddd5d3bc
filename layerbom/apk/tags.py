# SPDX-License-Identifier: GPL-2.0-only OR MIT
# SPDX-FileCopyrightText: 2025 TNG Technology Consulting GmbH

import re
from layerbom import build_logging
from layerbom.apk.installed_db import InstalledPackage

# Match the apk package release suffix, e.g. "-r4" in "1.2.3-r4"
PACKAGE_RELEASE_PATTERN = re.compile(r"-r\d+$")


def _replace_tag(reference: str, tag: str) -> str:
    """Replaces the tag part of an image reference, e.g. ('registry:5000/img:latest', '1.2') -> 'registry:5000/img:1.2'."""
    slash = reference.rfind("/")
    colon = reference.rfind(":")
    repository = reference[:colon] if colon > slash else reference
    return f"{repository}:{tag}"


def _version_stems(version: str) -> list[str]:
    """'1.2.3-r4' -> ['1', '1.2', '1.2.3']"""
    parts = PACKAGE_RELEASE_PATTERN.sub("", version).split(".")
    return [".".join(parts[: i + 1]) for i in range(len(parts))]


def additional_tags(
    installed: list[InstalledPackage],
    tags: list[str],
    package_version_tag: str | None,
    stem: bool = False,
    prefix: str = "",
) -> list[str]:
    """
    Derives image tags from the version of an installed package.

    Args:
        installed: Packages installed in the tree.
        tags: Already configured image references.
        package_version_tag: Name of the package whose version is used as tag. Nothing is derived if None.
        stem: Whether to add the dotted stems of the version ('1', '1.2', ...) as well.
        prefix: Prefix prepended to every derived tag.

    Returns:
        New image references not contained in `tags`.
    """
    if not package_version_tag:
        return []
    package = next((p for p in installed if p.name == package_version_tag), None)
    if package is None or package.version == "":
        build_logging.warning(
            "No version info found for package {package}, skipping additional tagging", package=package_version_tag
        )
        return []

    versions = [package.version]
    if stem:
        versions += [v for v in _version_stems(package.version) if v != package.version]

    derived: list[str] = []
    for reference in tags:
        for version in versions:
            new_reference = _replace_tag(reference, f"{prefix}{version}")
            if new_reference not in tags and new_reference not in derived:
                derived.append(new_reference)
    return derived
