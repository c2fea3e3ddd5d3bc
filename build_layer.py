#!/usr/bin/env python3
# SPDX-License-Identifier: GPL-2.0-only OR MIT
# SPDX-FileCopyrightText: 2025 TNG Technology Consulting GmbH

"""
Build a reproducible container image layer from unpacked apk packages and describe it in an SBOM.
"""

import argparse
import logging
import sys
import time
import layerbom.build_logging as build_logging
from layerbom.apk import parse_installed
from layerbom.build import BuildContext
from layerbom.config import LayerBuildConfig, get_config
from layerbom.errors import LayerBuildError
from layerbom.fs import DirFS
from layerbom.image_config import ImageConfiguration
from layerbom.metadata import BuildMetadata, ResolvedPackage

LOG_FORMAT = "[%(levelname)s] %(message)s"


def _load_inputs(config: LayerBuildConfig) -> tuple[ImageConfiguration, list[ResolvedPackage]]:
    image_config = ImageConfiguration.load(config.image_config) if config.image_config else ImageConfiguration()
    resolved_packages: list[ResolvedPackage] = []
    if config.packages_file:
        with open(config.packages_file, "rt", encoding="utf-8") as f:
            resolved_packages = [installed.package for installed in parse_installed(f.read())]
        logging.debug(f"Read {len(resolved_packages)} resolved packages from {config.packages_file}")
    return image_config, resolved_packages


def _build(config: LayerBuildConfig, image_config: ImageConfiguration, resolved_packages: list[ResolvedPackage]) -> None:
    metadata = BuildMetadata(
        source_date_epoch=config.source_date_epoch,
        temp_dir=config.temp_dir,
        name=config.image_name,
        tags=list(config.tags),
        repository=config.repository,
        reference=config.reference,
        image_digest=config.image_digest,
        arch=config.arch,
        tarball_path=config.tarball,
    )
    context = BuildContext.create(metadata, image_config, DirFS(config.work_dir), resolved_packages=resolved_packages)

    logging.debug("Start building layer")
    start_time = time.time()
    try:
        result = context.build_layer(config.output_directory, config.sbom_formats)
        logging.info(f"Layer digest: {result.tarball.digest}")
        logging.info(f"Layer diffID: {result.tarball.diff_id}")
        logging.info(f"Layer size: {result.tarball.size} bytes")
        if metadata.tags:
            logging.info(f"Image tags: {', '.join(metadata.tags)}")
        if config.index:
            with open(config.index, "rb") as f:
                context.write_index(f.read())
    except LayerBuildError as e:
        build_logging.error("{error}", error=e)
    logging.debug(f"Finished layer build in {time.time() - start_time} seconds")


def main():
    build_logging.init()

    # Read config
    config: LayerBuildConfig | None = None
    try:
        config = get_config()
    except argparse.ArgumentTypeError as e:
        logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
        build_logging.error("Invalid arguments: {error}", error=e)

    if config is not None:
        # Configure logging
        logging.basicConfig(level=logging.DEBUG if config.debug else logging.INFO, format=LOG_FORMAT)

        try:
            image_config, resolved_packages = _load_inputs(config)
        except (OSError, ValueError) as e:
            build_logging.error("Failed to read build inputs: {error}", error=e)
        else:
            # Build layer
            _build(config, image_config, resolved_packages)

    # Report collected warnings and errors
    if warning_summary := build_logging.summarize_warnings():
        logging.warning(warning_summary)
    if error_summary := build_logging.summarize_errors():
        logging.error(error_summary)
        sys.exit(1)


# Call main method
if __name__ == "__main__":
    main()
