# SPDX-License-Identifier: GPL-2.0-only OR MIT
# SPDX-FileCopyrightText: 2025 TNG Technology Consulting GmbH

from dataclasses import dataclass, field
import logging
import os
import time
from layerbom import build_logging
from layerbom.apk import ApkDatabase, InstalledPackage, PackageInstaller, additional_tags, ownership_records
from layerbom.build.accounts import mutate_accounts
from layerbom.build.devices import install_char_devices
from layerbom.build.links import install_busybox_links, install_ldconfig_links
from layerbom.build.os_release import generate_os_release, read_os_release
from layerbom.build.paths import mutate_paths
from layerbom.build.pipeline import BuildStep, run_steps
from layerbom.build.supervision import SupervisionTreeWriter, write_supervision_tree
from layerbom.build.tarball import encode_tarball
from layerbom.errors import ImageIndexError, OSReleaseAlreadyPresentError
from layerbom.fs import FilesystemTree
from layerbom.image_config import ImageConfiguration
from layerbom.metadata import BuildMetadata, ResolvedPackage, TarballOutput
from layerbom.path_utils import PathStr
from layerbom.sbom import generate_sboms

INDEX_FILE_NAME = "index.json"


@dataclass
class LayerBuildResult:
    tarball: TarballOutput
    sbom_paths: list[PathStr]
    installed: list[InstalledPackage]


@dataclass
class BuildContext:
    """Owns the filesystem tree of a single layer build and drives all build steps on it."""

    metadata: BuildMetadata
    image_config: ImageConfiguration
    tree: FilesystemTree
    installer: PackageInstaller
    supervisor: SupervisionTreeWriter | None = None
    resolved_packages: list[ResolvedPackage] = field(default_factory=list[ResolvedPackage])

    @classmethod
    def create(
        cls,
        metadata: BuildMetadata,
        image_config: ImageConfiguration,
        tree: FilesystemTree,
        resolved_packages: list[ResolvedPackage] | None = None,
        installer: PackageInstaller | None = None,
        supervisor: SupervisionTreeWriter | None = None,
    ) -> "BuildContext":
        """Creates a build context. Packages are recorded in the installed database of the tree unless another installer is given."""
        return BuildContext(
            metadata=metadata,
            image_config=image_config,
            tree=tree,
            installer=installer if installer is not None else ApkDatabase(tree),
            supervisor=supervisor,
            resolved_packages=list(resolved_packages or []),
        )

    def filesystem_steps(self) -> list[BuildStep]:
        """
        The ordered steps that turn the installed packages into the final tree.
        Each step relies on the tree state left by its predecessors, e.g. busybox links are only
        created for paths that neither packages nor account/path mutations occupy.
        """
        config = self.image_config
        return [
            BuildStep("install packages", lambda tree: self.installer.fixate_world(self.resolved_packages)),
            BuildStep("add additional tags", lambda tree: self._add_additional_tags()),
            BuildStep("mutate accounts", lambda tree: mutate_accounts(tree, config.accounts)),
            BuildStep("mutate paths", lambda tree: mutate_paths(tree, config.paths)),
            BuildStep(
                "generate /etc/os-release",
                lambda tree: generate_os_release(tree, config.os_release),
                recoverable=(OSReleaseAlreadyPresentError,),
            ),
            BuildStep(
                "write supervision tree",
                lambda tree: write_supervision_tree(tree, config.services, self.supervisor),
            ),
            BuildStep("install busybox links", lambda tree: install_busybox_links(tree, self.installer.get_installed())),
            BuildStep("install ldconfig links", install_ldconfig_links),
            BuildStep("install character devices", install_char_devices),
        ]

    def _add_additional_tags(self) -> None:
        config = self.image_config
        tags = additional_tags(
            self.installer.get_installed(),
            self.metadata.tags,
            config.package_version_tag,
            stem=config.package_version_tag_stem,
            prefix=config.package_version_tag_prefix,
        )
        if tags:
            logging.info(f"Adding additional tags {tags}")
        self.metadata.tags.extend(tags)

    def assemble_filesystem(self) -> None:
        """
        Runs all filesystem steps on the tree.

        Raises:
            BuildStepError: for the first step that failed. Later steps are not executed.
        """
        run_steps(self.filesystem_steps(), self.tree)
        logging.info("Finished building filesystem")

    def tarball_path(self) -> PathStr:
        return self.metadata.tarball_path or os.path.join(self.metadata.temp_dir, self.metadata.tarball_file_name())

    def build_tarball(self) -> TarballOutput:
        installed = self.installer.get_installed()
        output = encode_tarball(
            self.tree,
            self.metadata.source_date_epoch,
            self.tarball_path(),
            ownership_records(installed),
        )
        self.metadata.tarball_path = output.path
        return output

    def write_index(self, raw_index: bytes) -> tuple[PathStr, int]:
        """Writes an externally built image index document unchanged to the temp dir."""
        path = os.path.join(self.metadata.temp_dir, INDEX_FILE_NAME)
        try:
            with open(path, "wb") as f:
                f.write(raw_index)
            size = os.stat(path).st_size
        except OSError as e:
            raise ImageIndexError(f"writing index file: {e}") from e
        logging.info(f"Built index file as {path}")
        return path, size

    def _fill_os_metadata(self) -> None:
        """Takes OS id and version from the configuration or, if not configured, from etc/os-release."""
        metadata, configured = self.metadata, self.image_config.os_release
        os_release = read_os_release(self.tree)
        metadata.os_id = metadata.os_id or configured.id or os_release.get("ID", "")
        metadata.os_version = metadata.os_version or configured.version_id or os_release.get("VERSION_ID", "")

    def build_layer(self, output_dir: PathStr, sbom_formats: list[str]) -> LayerBuildResult:
        """
        Assembles the filesystem, encodes the layer tarball and writes the requested SBOM documents.

        Args:
            output_dir: Directory the SBOM documents are written to.
            sbom_formats: Keys of the SBOM generators to run, e.g. ['spdx'].

        Returns:
            LayerBuildResult: tarball, SBOM paths and the packages installed in the layer.
        """
        build_logging.init()
        start_time = time.time()
        self.assemble_filesystem()
        logging.debug(f"Assembled filesystem in {time.time() - start_time} seconds")

        start_time = time.time()
        tarball = self.build_tarball()
        if not self.metadata.layer_digest:
            self.metadata.layer_digest = tarball.digest
        logging.debug(f"Encoded layer tarball in {time.time() - start_time} seconds")

        installed = self.installer.get_installed()
        self._fill_os_metadata()
        sbom_paths = generate_sboms(self.metadata, [p.package for p in installed], output_dir, sbom_formats)
        return LayerBuildResult(tarball=tarball, sbom_paths=sbom_paths, installed=installed)


def assemble_filesystem(
    metadata: BuildMetadata,
    resolved_packages: list[ResolvedPackage],
    tree: FilesystemTree,
    image_config: ImageConfiguration | None = None,
    installer: PackageInstaller | None = None,
    supervisor: SupervisionTreeWriter | None = None,
) -> FilesystemTree:
    """
    Turns the resolved packages unpacked into `tree` into the final layer filesystem.

    Raises:
        BuildStepError: for the first step that failed. Later steps are not executed.
    """
    context = BuildContext.create(
        metadata,
        image_config or ImageConfiguration(),
        tree,
        resolved_packages=resolved_packages,
        installer=installer,
        supervisor=supervisor,
    )
    context.assemble_filesystem()
    return tree
