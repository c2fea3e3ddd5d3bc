# SPDX-License-Identifier: GPL-2.0-only OR MIT
# Copyright (C) 2025 TNG Technology Consulting GmbH

import unittest
from layerbom import build_logging
from layerbom.build import BuildStep, run_steps
from layerbom.errors import BuildStepError, OSReleaseAlreadyPresentError
from layerbom.fs import FilesystemTree, MemFS


def _touch(path: str):
    def _run(tree: FilesystemTree) -> None:
        tree.write_file(path, b"")

    return _run


def _fail(error: Exception):
    def _run(tree: FilesystemTree) -> None:
        raise error

    return _run


class TestPipeline(unittest.TestCase):
    def setUp(self):
        build_logging.init()
        self.tree = MemFS()

    def test_steps_run_in_order(self):
        order: list[str] = []
        steps = [BuildStep(name, lambda tree, name=name: order.append(name)) for name in ["first", "second", "third"]]
        self.assertIs(run_steps(steps, self.tree), self.tree)
        self.assertEqual(order, ["first", "second", "third"])

    def test_first_failure_aborts(self):
        cause = ValueError("broken")
        steps = [BuildStep("a", _touch("a")), BuildStep("b", _fail(cause)), BuildStep("c", _touch("c"))]
        with self.assertRaises(BuildStepError) as ctx:
            run_steps(steps, self.tree)
        self.assertEqual(ctx.exception.step, "b")
        self.assertIs(ctx.exception.cause, cause)
        self.assertIs(ctx.exception.__cause__, cause)
        self.assertEqual(str(ctx.exception), "b: broken")
        self.assertTrue(self.tree.exists("a"))
        self.assertFalse(self.tree.exists("c"))

    def test_recoverable_failure_warns_and_continues(self):
        steps = [
            BuildStep("generate os-release", _fail(OSReleaseAlreadyPresentError("present")), (OSReleaseAlreadyPresentError,)),
            BuildStep("c", _touch("c")),
        ]
        with self.assertLogs(level="WARNING") as logs:
            run_steps(steps, self.tree)
        self.assertIn("[generate os-release] Did not generate os-release: present", logs.output[0])
        self.assertTrue(self.tree.exists("c"))
        self.assertTrue(build_logging.has_warnings())
        self.assertFalse(build_logging.has_errors())
