# SPDX-License-Identifier: GPL-2.0-only OR MIT
# Copyright (C) 2025 TNG Technology Consulting GmbH

import unittest
from layerbom import build_logging
from layerbom.apk import InstalledPackage, additional_tags
from layerbom.metadata import ResolvedPackage


class TestAdditionalTags(unittest.TestCase):
    def setUp(self):
        build_logging.init()
        self.installed = [
            InstalledPackage(ResolvedPackage(name="nginx", version="1.25.3-r1")),
            InstalledPackage(ResolvedPackage(name="empty", version="")),
        ]

    def test_package_version_tag(self):
        tags = additional_tags(self.installed, ["registry:5000/nginx:latest"], "nginx")
        self.assertEqual(tags, ["registry:5000/nginx:1.25.3-r1"])

    def test_stems_and_prefix(self):
        tags = additional_tags(self.installed, ["cgr.dev/nginx"], "nginx", stem=True, prefix="v")
        self.assertEqual(
            tags,
            ["cgr.dev/nginx:v1.25.3-r1", "cgr.dev/nginx:v1", "cgr.dev/nginx:v1.25", "cgr.dev/nginx:v1.25.3"],
        )

    def test_nothing_configured(self):
        self.assertEqual(additional_tags(self.installed, ["img:latest"], None), [])
        self.assertFalse(build_logging.has_warnings())

    def test_unknown_package_warns(self):
        with self.assertLogs(level="WARNING"):
            self.assertEqual(additional_tags(self.installed, ["img:latest"], "missing"), [])
        self.assertTrue(build_logging.has_warnings())
        with self.assertLogs(level="WARNING"):
            self.assertEqual(additional_tags(self.installed, ["img:latest"], "empty"), [])
