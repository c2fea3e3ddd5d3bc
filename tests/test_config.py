# SPDX-License-Identifier: GPL-2.0-only OR MIT
# Copyright (C) 2025 TNG Technology Consulting GmbH

import argparse
from datetime import datetime, timezone
import os
import tempfile
import unittest
from unittest import mock
from layerbom.config import get_config


class TestConfig(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.work_dir = os.path.join(self.tmpdir.name, "rootfs")
        os.mkdir(self.work_dir)

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_defaults(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            config = get_config(["--work-dir", self.work_dir])
        self.assertEqual(config.work_dir, os.path.realpath(self.work_dir))
        self.assertEqual(config.sbom_formats, ["spdx"])
        self.assertEqual(config.source_date_epoch, datetime.fromtimestamp(0, timezone.utc))
        self.assertEqual(config.tags, [])
        self.assertFalse(config.arch)
        self.assertIsNone(config.tarball)

    def test_arguments(self):
        config = get_config(
            [
                "--work-dir", self.work_dir,
                "--temp-dir", self.tmpdir.name,
                "--tag", "img:latest",
                "--tag", "img:1",
                "--arch", "amd64",
                "--sbom-formats", "spdx, idb",
                "--source-date-epoch", "1672628645",
                "--debug",
            ]
        )  # fmt: skip
        self.assertEqual(config.tags, ["img:latest", "img:1"])
        self.assertEqual(config.arch.to_apk(), "x86_64")
        self.assertEqual(config.sbom_formats, ["spdx", "idb"])
        self.assertEqual(config.source_date_epoch, datetime(2023, 1, 2, 3, 4, 5, tzinfo=timezone.utc))
        self.assertEqual(config.temp_dir, os.path.realpath(self.tmpdir.name))
        self.assertTrue(config.debug)

    def test_source_date_epoch_from_environment(self):
        with mock.patch.dict(os.environ, {"SOURCE_DATE_EPOCH": "60"}):
            config = get_config(["--work-dir", self.work_dir])
        self.assertEqual(config.source_date_epoch, datetime(1970, 1, 1, 0, 1, tzinfo=timezone.utc))

    def test_invalid_arguments(self):
        with self.assertRaises(argparse.ArgumentTypeError):
            get_config(["--work-dir", os.path.join(self.tmpdir.name, "missing")])
        with self.assertRaises(argparse.ArgumentTypeError):
            get_config(["--work-dir", self.work_dir, "--arch", "sparc"])
        with self.assertRaises(argparse.ArgumentTypeError):
            get_config(["--work-dir", self.work_dir, "--source-date-epoch", "yesterday"])
        with self.assertRaises(argparse.ArgumentTypeError):
            get_config(["--work-dir", self.work_dir, "--image-config", "missing.json"])
