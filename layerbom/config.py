# SPDX-License-Identifier: GPL-2.0-only OR MIT
# SPDX-FileCopyrightText: 2025 TNG Technology Consulting GmbH

import argparse
from dataclasses import dataclass
from datetime import datetime, timezone
import os
import tempfile
from typing import Any
from layerbom.arch import Architecture
from layerbom.environment import Environment
from layerbom.path_utils import PathStr

DEFAULT_SBOM_FORMATS = ["spdx"]


@dataclass
class LayerBuildConfig:
    work_dir: PathStr
    """Absolute path to the directory holding the unpacked packages. Becomes the root of the layer."""

    image_config: PathStr | None
    """Path to the JSON image configuration. No mutations are applied if None."""

    packages_file: PathStr | None
    """Path to the resolved package list in installed database format."""

    output_directory: PathStr
    """Directory where SBOM documents are saved."""

    temp_dir: PathStr
    """Directory for the default tarball and the index document."""

    tarball: PathStr | None
    """Explicit tarball output path. Defaults to a file in `temp_dir`."""

    sbom_formats: list[str]
    """Keys of the SBOM generators to run. Empty to generate no SBOM."""

    image_name: str
    tags: list[str]
    repository: str
    reference: str
    image_digest: str
    arch: Architecture

    source_date_epoch: datetime
    """Timestamp used for every archive entry and the SBOM creation date."""

    index: PathStr | None
    """Externally built image index document copied next to the tarball."""

    debug: bool
    """Whether to enable debug logging."""


def _parse_cli_arguments(argv: list[str] | None) -> dict[str, Any]:
    parser = argparse.ArgumentParser(
        formatter_class=argparse.RawTextHelpFormatter,
        description="Build a reproducible container image layer from unpacked apk packages and describe it in an SBOM",
    )
    parser.add_argument(
        "--work-dir",
        required=True,
        help="Directory the resolved packages were unpacked into. It is mutated in place.",
    )
    parser.add_argument(
        "--image-config",
        default=None,
        help="Path to the JSON image configuration declaring accounts, paths, os-release and services. (default: None)",
    )
    parser.add_argument(
        "--packages",
        default=None,
        help="Resolved package list in apk installed database format. (default: packages already recorded in --work-dir)",
    )
    parser.add_argument(
        "--output-directory",
        default=".",
        help="Path to the directory where the generated SBOM documents will be saved. (default: .)",
    )
    parser.add_argument(
        "--temp-dir",
        default=None,
        help="Directory for intermediate outputs. (default: $TMPDIR or the system temp directory)",
    )
    parser.add_argument(
        "--tarball",
        default=None,
        help="Path of the layer tarball to create. (default: <temp-dir>/layer-<arch>.tar.gz)",
    )
    parser.add_argument(
        "--sbom-formats",
        default=",".join(DEFAULT_SBOM_FORMATS),
        help="Comma separated SBOM formats to generate, e.g. 'spdx,idb'. Empty to skip SBOM generation. (default: spdx)",
    )
    parser.add_argument("--image-name", default="", help="Image name used in the SBOM, e.g. cgr.dev/example/base")
    parser.add_argument("--tag", action="append", default=[], help="Image tag. May be given multiple times.")
    parser.add_argument("--repository", default="", help="Repository URL used as package-url qualifier")
    parser.add_argument("--reference", default="", help="Image reference the layer is published under")
    parser.add_argument("--image-digest", default="", help="Digest of the image manifest if already known")
    parser.add_argument("--arch", default="", help="Target architecture in apk or OCI notation, e.g. x86_64 or amd64")
    parser.add_argument(
        "--source-date-epoch",
        default=None,
        help="Seconds since the unix epoch used instead of the current time. (default: $SOURCE_DATE_EPOCH or 0)",
    )
    parser.add_argument(
        "--index",
        default=None,
        help="Path to an image index document to copy to <temp-dir>/index.json. (default: None)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Enable debug logs (default: False)",
    )
    return vars(parser.parse_args(argv))


def _parse_source_date_epoch(value: str | None) -> datetime:
    if value is None or value.strip() == "":
        return datetime.fromtimestamp(0, timezone.utc)
    try:
        return datetime.fromtimestamp(int(value.strip()), timezone.utc)
    except (ValueError, OverflowError, OSError):
        raise argparse.ArgumentTypeError(f"Invalid source date epoch '{value}'. Expected seconds since the unix epoch.")


def get_config(argv: list[str] | None = None) -> LayerBuildConfig:
    args = _parse_cli_arguments(argv)

    work_dir = os.path.realpath(args["work_dir"])
    if not os.path.isdir(work_dir):
        raise argparse.ArgumentTypeError(f"--work-dir {work_dir} is not a directory")
    for option in ["image_config", "packages", "index"]:
        if args[option] is not None and not os.path.isfile(args[option]):
            raise argparse.ArgumentTypeError(f"--{option.replace('_', '-')} {args[option]} does not exist")

    try:
        arch = Architecture.parse(args["arch"])
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"--arch: {e}")

    source_date_epoch = _parse_source_date_epoch(
        args["source_date_epoch"] if args["source_date_epoch"] is not None else Environment.SOURCE_DATE_EPOCH()
    )
    temp_dir = os.path.realpath(args["temp_dir"] or Environment.TMPDIR() or tempfile.gettempdir())

    return LayerBuildConfig(
        work_dir=work_dir,
        image_config=args["image_config"],
        packages_file=args["packages"],
        output_directory=os.path.realpath(args["output_directory"]),
        temp_dir=temp_dir,
        tarball=os.path.realpath(args["tarball"]) if args["tarball"] else None,
        sbom_formats=[f.strip() for f in args["sbom_formats"].split(",") if f.strip()],
        image_name=args["image_name"],
        tags=list(args["tag"]),
        repository=args["repository"],
        reference=args["reference"],
        image_digest=args["image_digest"],
        arch=arch,
        source_date_epoch=source_date_epoch,
        index=args["index"],
        debug=args["debug"],
    )
