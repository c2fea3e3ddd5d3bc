# SPDX-License-Identifier: GPL-2.0-only OR MIT
# SPDX-FileCopyrightText: 2025 TNG Technology Consulting GmbH

import os


class Environment:
    """Environment variables read by the layer build."""

    @staticmethod
    def SOURCE_DATE_EPOCH() -> str | None:
        return os.getenv("SOURCE_DATE_EPOCH")

    @staticmethod
    def TMPDIR() -> str | None:
        return os.getenv("TMPDIR")
