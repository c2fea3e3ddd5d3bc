# SPDX-License-Identifier: GPL-2.0-only OR MIT
# Copyright (C) 2025 TNG Technology Consulting GmbH

import json
from layerbom.errors import SbomError
from layerbom.path_utils import PathStr
from layerbom.sbom.spdx.model import SpdxDocument


def to_json(document: SpdxDocument) -> str:
    """Renders the document as indented JSON terminated by a newline."""
    return json.dumps(document.to_dict(), indent=2, ensure_ascii=False) + "\n"


def save(document: SpdxDocument, path: PathStr) -> None:
    """
    Writes the document to a JSON file. The file is closed before this function returns.

    Raises:
        SbomError: if the file cannot be written.
    """
    try:
        with open(path, "w", encoding="utf-8") as f:
            f.write(to_json(document))
    except OSError as e:
        raise SbomError(f"writing SPDX document to {path}: {e}") from e
