# SPDX-License-Identifier: GPL-2.0-only OR MIT
# SPDX-FileCopyrightText: 2025 TNG Technology Consulting GmbH

from packageurl import PackageURL

TYPE_OCI = "oci"
TYPE_APK = "apk"


def package_url(
    purl_type: str,
    namespace: str,
    name: str,
    version: str = "",
    qualifiers: dict[str, str] | None = None,
) -> str | None:
    """
    Renders a package-url like 'pkg:apk/wolfi/busybox@1.36.1-r0?arch=x86_64'.
    Qualifiers with empty values are left out.

    Args:
        purl_type: Package type, e.g. 'apk' or 'oci'.
        namespace: Slash separated namespace. May be empty.
        name: Package name.
        version: Package version. May be empty.
        qualifiers: Additional key/value qualifiers.

    Returns:
        The package-url string or None if `name` is empty, since a package-url always names a package.
    """
    if not name:
        return None
    return PackageURL(
        type=purl_type,
        namespace=namespace or None,
        name=name,
        version=version or None,
        qualifiers={key: value for key, value in (qualifiers or {}).items() if value},
    ).to_string()
