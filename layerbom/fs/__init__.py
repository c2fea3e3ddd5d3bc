# SPDX-License-Identifier: GPL-2.0-only OR MIT
# SPDX-FileCopyrightText: 2025 TNG Technology Consulting GmbH

from .tree import FileInfo, FilesystemTree
from .memfs import MemFS
from .dirfs import DirFS

__all__ = ["DirFS", "FileInfo", "FilesystemTree", "MemFS"]
