# SPDX-License-Identifier: GPL-2.0-only OR MIT
# Copyright (C) 2025 TNG Technology Consulting GmbH

import unittest
from layerbom.arch import Architecture


class TestArchitecture(unittest.TestCase):
    def test_parse(self):
        test_cases: list[tuple[str, str, str]] = [
            ("x86_64", "x86_64", "amd64"),
            ("amd64", "x86_64", "amd64"),
            ("arm64", "aarch64", "arm64"),
            ("arm/v7", "armv7", "arm"),
            ("armhf", "armhf", "arm"),
            ("386", "x86", "386"),
            ("riscv64", "riscv64", "riscv64"),
        ]
        for value, apk, oci in test_cases:
            arch = Architecture.parse(value)
            self.assertEqual(arch.to_apk(), apk)
            self.assertEqual(arch.to_oci_architecture(), oci)

    def test_unknown(self):
        arch = Architecture.parse("")
        self.assertFalse(arch)
        self.assertEqual(arch.to_apk(), "")
        self.assertEqual(str(arch), "")
        with self.assertRaises(ValueError):
            Architecture.parse("sparc")
