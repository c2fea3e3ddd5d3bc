# SPDX-License-Identifier: GPL-2.0-only OR MIT
# SPDX-FileCopyrightText: 2025 TNG Technology Consulting GmbH

from dataclasses import dataclass


@dataclass(frozen=True)
class _ArchNames:
    apk: str
    oci: str


# Canonical apk name -> names used by the apk package manager and by OCI platforms
_ARCHITECTURES: dict[str, _ArchNames] = {
    "x86_64": _ArchNames(apk="x86_64", oci="amd64"),
    "aarch64": _ArchNames(apk="aarch64", oci="arm64"),
    "armv7": _ArchNames(apk="armv7", oci="arm"),
    "armhf": _ArchNames(apk="armhf", oci="arm"),
    "x86": _ArchNames(apk="x86", oci="386"),
    "ppc64le": _ArchNames(apk="ppc64le", oci="ppc64le"),
    "s390x": _ArchNames(apk="s390x", oci="s390x"),
    "riscv64": _ArchNames(apk="riscv64", oci="riscv64"),
}

_ALIASES: dict[str, str] = {
    "amd64": "x86_64",
    "arm64": "aarch64",
    "arm64/v8": "aarch64",
    "arm/v7": "armv7",
    "arm": "armv7",
    "arm/v6": "armhf",
    "armv6": "armhf",
    "386": "x86",
    "i386": "x86",
    "i686": "x86",
}


@dataclass(frozen=True)
class Architecture:
    """CPU architecture of an image. An empty name means the architecture is unknown."""

    name: str = ""

    @classmethod
    def parse(cls, value: str | None) -> "Architecture":
        """
        Parses an architecture given in apk (x86_64) or OCI (amd64, arm/v7) notation.

        Raises:
            ValueError: if the architecture is not supported.
        """
        if not value:
            return Architecture()
        normalized = value.strip().lower()
        normalized = _ALIASES.get(normalized, normalized)
        if normalized not in _ARCHITECTURES:
            raise ValueError(f"unsupported architecture '{value}'")
        return Architecture(normalized)

    def __str__(self) -> str:
        return self.name

    def __bool__(self) -> bool:
        return self.name != ""

    def to_apk(self) -> str:
        return _ARCHITECTURES[self.name].apk if self else ""

    def to_oci_architecture(self) -> str:
        return _ARCHITECTURES[self.name].oci if self else ""
