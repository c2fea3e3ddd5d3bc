# SPDX-License-Identifier: GPL-2.0-only OR MIT
# SPDX-FileCopyrightText: 2025 TNG Technology Consulting GmbH

"""
Collects warnings and errors raised while a layer is built.

Every message is logged right away (up to a limit per message template) and kept
for the build summary that is printed once the build finished. Messages emitted
while a pipeline step runs are tagged with the name of that step.
"""

from contextlib import contextmanager
import logging
from typing import Any, Iterator, Literal


class MessageLogger:
    """Logger that prints the first occurrences of each message template immediately
    and keeps track of every message for a final build summary."""

    messages: dict[str, list[str]]
    repeated_logs_limit: int
    """Maximum number of messages of the same template to log before suppressing further output."""

    def __init__(self, level: Literal["error", "warning"], repeated_logs_limit: int = 3) -> None:
        self._level = level
        self.messages = {}
        self.repeated_logs_limit = repeated_logs_limit

    def log(self, template: str, /, **kwargs: Any) -> None:
        message = template.format(**kwargs)
        if _current_step is not None:
            message = f"[{_current_step}] {message}"
        occurrences = self.messages.setdefault(template, [])
        if len(occurrences) < self.repeated_logs_limit:
            logging.log(logging.ERROR if self._level == "error" else logging.WARNING, message)
        occurrences.append(message)

    def get_summary(self) -> str:
        if len(self.messages) == 0:
            return ""
        summary: list[str] = [f"Summarize {self._level}s:"]
        for msgs in self.messages.values():
            summary.extend(msgs[: self.repeated_logs_limit])
            if (hidden := len(msgs) - self.repeated_logs_limit) > 0:
                summary.append(f"... (Found {hidden} more {'instances' if hidden != 1 else 'instance'} of this {self._level})")
        return "\n".join(summary)


_warning_logger: MessageLogger
_error_logger: MessageLogger
_current_step: str | None = None


@contextmanager
def step(name: str) -> Iterator[None]:
    """Tag every message logged inside the with-block with the given build step name."""
    global _current_step
    previous, _current_step = _current_step, name
    try:
        yield
    finally:
        _current_step = previous


def warning(msg_template: str, /, **kwargs: Any) -> None:
    _warning_logger.log(msg_template, **kwargs)


def error(msg_template: str, /, **kwargs: Any) -> None:
    _error_logger.log(msg_template, **kwargs)


def summarize_warnings() -> str:
    return _warning_logger.get_summary()


def summarize_errors() -> str:
    return _error_logger.get_summary()


def has_warnings() -> bool:
    return len(_warning_logger.messages) > 0


def has_errors() -> bool:
    return len(_error_logger.messages) > 0


def init() -> None:
    """Reset all collected messages. Called once on import and at the start of every build."""
    global _warning_logger, _error_logger
    _warning_logger = MessageLogger("warning")
    _error_logger = MessageLogger("error")


init()
