# SPDX-License-Identifier: GPL-2.0-only OR MIT
# SPDX-FileCopyrightText: 2025 TNG Technology Consulting GmbH

from dataclasses import dataclass
import logging
import time
from typing import Callable
from layerbom import build_logging
from layerbom.errors import BuildStepError
from layerbom.fs import FilesystemTree


@dataclass(frozen=True)
class BuildStep:
    """A named mutation applied in place to the filesystem tree."""

    name: str
    run: Callable[[FilesystemTree], None]
    recoverable: tuple[type[Exception], ...] = ()
    """Exceptions that are logged as warning instead of aborting the build."""


def run_steps(steps: list[BuildStep], tree: FilesystemTree) -> FilesystemTree:
    """
    Applies the steps to the tree in the given order.
    The first failing step aborts the pipeline, later steps are not executed.

    Args:
        steps: Ordered build steps.
        tree: Tree mutated by the steps.

    Returns:
        The mutated tree.

    Raises:
        BuildStepError: wrapping the exception of the first step that failed unrecoverably.
    """
    for step in steps:
        start_time = time.time()
        with build_logging.step(step.name):
            try:
                step.run(tree)
            except step.recoverable as e:
                build_logging.warning("Did not {step}: {error}", step=step.name, error=e)
            except Exception as e:
                raise BuildStepError(step.name, e) from e
        logging.debug(f"Finished '{step.name}' in {time.time() - start_time} seconds")
    return tree
