# SPDX-License-Identifier: GPL-2.0-only OR MIT
# SPDX-FileCopyrightText: 2025 TNG Technology Consulting GmbH

import re

# Characters allowed in SPDX element identifiers, see
# https://spdx.github.io/spdx-spec/v2.2.2/package-information/#72-package-spdx-identifier-field
VALID_ID_CHARS_PATTERN = re.compile(r"[^a-zA-Z0-9\-.]+")


def _escape_run(match: re.Match[str]) -> str:
    # escaped per UTF-8 byte, so 'é' becomes 'C195C169'
    return "".join(f"C{byte}" for byte in match.group(0).encode("utf-8"))


def string_to_identifier(value: str) -> str:
    """
    Replaces every character not allowed in SPDX identifiers by 'C' followed by its decimal byte value.

    Examples:
        'Hello World!' -> 'HelloC32WorldC33'
    """
    return VALID_ID_CHARS_PATTERN.sub(_escape_run, value)
