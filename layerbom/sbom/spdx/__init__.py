# SPDX-License-Identifier: GPL-2.0-only OR MIT
# SPDX-FileCopyrightText: 2025 TNG Technology Consulting GmbH

from .identifiers import VALID_ID_CHARS_PATTERN, string_to_identifier
from .model import NOASSERTION, SpdxDocument
from .generator import SpdxGenerator, build_spdx_document

__all__ = [
    "NOASSERTION",
    "SpdxDocument",
    "SpdxGenerator",
    "VALID_ID_CHARS_PATTERN",
    "build_spdx_document",
    "string_to_identifier",
]
