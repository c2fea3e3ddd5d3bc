# SPDX-License-Identifier: GPL-2.0-only OR MIT
# SPDX-FileCopyrightText: 2025 TNG Technology Consulting GmbH

"""SPDX 2.2 document model. https://spdx.github.io/spdx-spec/v2.2.2/"""

from dataclasses import dataclass, field, fields
from typing import Any, Literal

SPDX_VERSION = "SPDX-2.2"
LICENSE_LIST_VERSION = "3.16"
DATA_LICENSE = "CC0-1.0"
DOCUMENT_ID = "SPDXRef-DOCUMENT"
NOASSERTION = "NOASSERTION"

ChecksumAlgorithm = Literal["SHA1", "SHA256", "SHA512"]
RelationshipType = Literal["CONTAINS"]


def _json_name(name: str) -> dict[str, str]:
    return {"json": name}


@dataclass
class SpdxObject:
    """Base of all SPDX 2.2 objects. Every field is serialized, using its `json` metadata as key if present."""

    def to_dict(self) -> dict[str, Any]:
        def _to_dict(v: Any) -> Any:
            if isinstance(v, list):
                return [_to_dict(item) for item in v]  # type: ignore
            return v.to_dict() if isinstance(v, SpdxObject) else v

        return {f.metadata.get("json", f.name): _to_dict(getattr(self, f.name)) for f in fields(self)}


@dataclass(kw_only=True)
class Checksum(SpdxObject):
    algorithm: ChecksumAlgorithm
    checksumValue: str


@dataclass(kw_only=True)
class ExternalRef(SpdxObject):
    referenceCategory: str = "PACKAGE_MANAGER"
    referenceLocator: str
    referenceType: str = "purl"


@dataclass(kw_only=True)
class Package(SpdxObject):
    spdxId: str = field(metadata=_json_name("SPDXID"))
    name: str
    versionInfo: str = ""
    filesAnalyzed: bool = False
    licenseConcluded: str = NOASSERTION
    licenseDeclared: str = NOASSERTION
    description: str = ""
    downloadLocation: str = NOASSERTION
    originator: str = ""
    sourceInfo: str = ""
    copyrightText: str = NOASSERTION
    checksums: list[Checksum] = field(default_factory=list[Checksum])
    externalRefs: list[ExternalRef] = field(default_factory=list[ExternalRef])


@dataclass(kw_only=True)
class Relationship(SpdxObject):
    spdxElementId: str
    relationshipType: RelationshipType = "CONTAINS"
    relatedSpdxElement: str


@dataclass(kw_only=True)
class CreationInfo(SpdxObject):
    created: str
    creators: list[str] = field(default_factory=list[str])
    licenseListVersion: str = LICENSE_LIST_VERSION


@dataclass(kw_only=True)
class SpdxDocument(SpdxObject):
    spdxId: str = field(default=DOCUMENT_ID, metadata=_json_name("SPDXID"))
    name: str
    spdxVersion: str = SPDX_VERSION
    creationInfo: CreationInfo
    dataLicense: str = DATA_LICENSE
    documentNamespace: str
    documentDescribes: list[str] = field(default_factory=list[str])
    packages: list[Package] = field(default_factory=list[Package])
    relationships: list[Relationship] = field(default_factory=list[Relationship])

    def package_ids(self) -> set[str]:
        return {p.spdxId for p in self.packages}
