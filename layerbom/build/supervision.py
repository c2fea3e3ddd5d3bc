# SPDX-License-Identifier: GPL-2.0-only OR MIT
# SPDX-FileCopyrightText: 2025 TNG Technology Consulting GmbH

from typing import Protocol
from layerbom.fs import FilesystemTree


class SupervisionTreeWriter(Protocol):
    """Materializes the process supervision configuration (e.g. an s6 service directory) for declared services."""

    def write_supervision_tree(self, tree: FilesystemTree, services: dict[str, str]) -> None: ...


def write_supervision_tree(
    tree: FilesystemTree, services: dict[str, str], writer: SupervisionTreeWriter | None
) -> None:
    if not services:
        return
    if writer is None:
        raise ValueError(f"{len(services)} services declared but no supervision tree writer is configured")
    writer.write_supervision_tree(tree, services)
