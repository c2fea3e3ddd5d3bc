# SPDX-License-Identifier: GPL-2.0-only OR MIT
# SPDX-FileCopyrightText: 2025 TNG Technology Consulting GmbH

import logging
from layerbom.metadata import BuildMetadata, ResolvedPackage, format_rfc3339
from layerbom.path_utils import PathStr
from layerbom.sbom.spdx import purl
from layerbom.sbom.spdx.identifiers import string_to_identifier
from layerbom.sbom.spdx.model import (
    NOASSERTION,
    Checksum,
    CreationInfo,
    ExternalRef,
    Package,
    Relationship,
    SpdxDocument,
)
from layerbom.sbom.spdx.serialization import save
from layerbom.version import VERSION

DOCUMENT_NAMESPACE = "https://spdx.org/spdxdocs/layerbom/"
PACKAGE_ID_PREFIX = "SPDXRef-Package-"
DEFAULT_REGISTRY_PREFIX = "index.docker.io/library/"


def _oci_qualifiers(metadata: BuildMetadata) -> dict[str, str]:
    return {
        "tag": metadata.tag,
        "repository_url": metadata.repository,
        "arch": metadata.arch.to_oci_architecture(),
    }


def _purl_refs(locator: str | None) -> list[ExternalRef]:
    return [ExternalRef(referenceLocator=locator)] if locator else []


def _split_digest(digest: str) -> Checksum:
    algorithm, sep, value = digest.partition(":")
    if not sep:
        algorithm, value = "sha256", digest
    return Checksum(algorithm=algorithm.upper(), checksumValue=value)  # type: ignore[arg-type]


def layer_package(metadata: BuildMetadata) -> Package:
    """The node describing the filesystem layer itself. Always part of the document."""
    name = f"{metadata.name}@{metadata.layer_digest}" if metadata.name else metadata.layer_digest
    if metadata.reference:
        registry = "" if "/" in metadata.reference else DEFAULT_REGISTRY_PREFIX
        name = f"SPDXRef-{registry}{metadata.reference}"
    return Package(
        spdxId=PACKAGE_ID_PREFIX + string_to_identifier(name),
        name=name,
        versionInfo=metadata.os_version,
        description="layerbom operating system layer",
        checksums=[],
        externalRefs=_purl_refs(
            purl.package_url(purl.TYPE_OCI, "", metadata.name, metadata.layer_digest, _oci_qualifiers(metadata))
        ),
    )


def image_package(metadata: BuildMetadata) -> Package | None:
    """The node describing the whole image. Only known once the image digest is."""
    if not metadata.image_digest:
        return None
    return Package(
        spdxId=string_to_identifier(PACKAGE_ID_PREFIX + metadata.image_digest),
        name=f"{metadata.name}@{metadata.image_digest}",
        description="layerbom container image",
        checksums=[_split_digest(metadata.image_digest)],
        externalRefs=_purl_refs(
            purl.package_url(purl.TYPE_OCI, "", metadata.name, metadata.image_digest, _oci_qualifiers(metadata))
        ),
    )


def apk_package(metadata: BuildMetadata, package: ResolvedPackage, layer_id: str) -> Package:
    """
    The node describing a single installed apk.

    Args:
        metadata: Build metadata providing OS id and architecture.
        package: Resolved package.
        layer_id: Identifier of the layer node. Part of the package identifier to avoid clashes across layers.
    """
    return Package(
        spdxId=string_to_identifier(f"{PACKAGE_ID_PREFIX}{layer_id}-{package.name}-{package.version}"),
        name=package.name,
        versionInfo=package.version,
        licenseConcluded=package.license or NOASSERTION,
        licenseDeclared=NOASSERTION,
        description=package.description,
        downloadLocation=package.url or NOASSERTION,
        originator=package.maintainer,
        sourceInfo="Package info from apk database",
        checksums=[Checksum(algorithm="SHA1", checksumValue=package.checksum.hex())],
        externalRefs=_purl_refs(
            purl.package_url(purl.TYPE_APK, metadata.os_id, package.name, package.version, {"arch": metadata.arch.to_apk()})
        ),
    )


def build_spdx_document(metadata: BuildMetadata, packages: list[ResolvedPackage]) -> SpdxDocument:
    """
    Builds the provenance graph of a layer.

    The image node (if any) contains the layer node, which contains one node per package.
    `documentDescribes` references the topmost of these nodes.

    Args:
        metadata: Build metadata.
        packages: Packages installed in the layer, in document order.

    Returns:
        SpdxDocument: The complete document.
    """
    document = SpdxDocument(
        name=f"sbom-{metadata.layer_digest}" if metadata.layer_digest else "sbom",
        creationInfo=CreationInfo(
            created=format_rfc3339(metadata.source_date_epoch),
            creators=[f"Tool: layerbom ({VERSION})"],
        ),
        documentNamespace=DOCUMENT_NAMESPACE,
    )

    layer = layer_package(metadata)
    document.documentDescribes = [layer.spdxId]
    if (image := image_package(metadata)) is not None:
        document.documentDescribes = [image.spdxId]
        document.packages.append(image)
        document.relationships.append(Relationship(spdxElementId=image.spdxId, relatedSpdxElement=layer.spdxId))
    document.packages.append(layer)

    for package in packages:
        node = apk_package(metadata, package, layer.spdxId)
        document.packages.append(node)
        document.relationships.append(Relationship(spdxElementId=layer.spdxId, relatedSpdxElement=node.spdxId))

    return document


class SpdxGenerator:
    """Writes an SPDX 2.2 JSON document describing image, layer and packages."""

    key = "spdx"
    ext = "spdx.json"

    def generate(self, metadata: BuildMetadata, packages: list[ResolvedPackage], path: PathStr) -> None:
        document = build_spdx_document(metadata, packages)
        save(document, path)
        logging.info(f"Saved SPDX document with {len(document.packages)} packages to {path}")
