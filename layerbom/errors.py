# SPDX-License-Identifier: GPL-2.0-only OR MIT
# SPDX-FileCopyrightText: 2025 TNG Technology Consulting GmbH


class LayerBuildError(Exception):
    """Base class of all errors raised while building a layer."""


class BuildStepError(LayerBuildError):
    """A filesystem mutation step failed. Remaining steps were not executed."""

    def __init__(self, step: str, cause: BaseException) -> None:
        super().__init__(f"{step}: {cause}")
        self.step = step
        self.cause = cause


class OSReleaseAlreadyPresentError(LayerBuildError):
    """etc/os-release already exists in the tree and is left untouched."""


class TarballError(LayerBuildError):
    """Writing or compressing the layer tarball failed."""


class SbomError(LayerBuildError):
    """Generating or writing an SBOM document failed."""


class ImageIndexError(LayerBuildError):
    """Writing the image index document failed."""
