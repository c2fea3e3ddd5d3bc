# SPDX-License-Identifier: GPL-2.0-only OR MIT
# SPDX-FileCopyrightText: 2025 TNG Technology Consulting GmbH

from .build_context import BuildContext, LayerBuildResult, assemble_filesystem
from .pipeline import BuildStep, run_steps
from .tarball import encode_tarball

__all__ = ["BuildContext", "BuildStep", "LayerBuildResult", "assemble_filesystem", "encode_tarball", "run_steps"]
