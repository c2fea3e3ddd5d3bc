# SPDX-License-Identifier: GPL-2.0-only OR MIT
# SPDX-FileCopyrightText: 2025 TNG Technology Consulting GmbH

from .generator import Generator, generate_sboms, generators

__all__ = ["Generator", "generate_sboms", "generators"]
