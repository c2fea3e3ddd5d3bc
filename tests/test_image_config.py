# SPDX-License-Identifier: GPL-2.0-only OR MIT
# Copyright (C) 2025 TNG Technology Consulting GmbH

import json
import os
import tempfile
import unittest
from layerbom.image_config import ImageConfiguration

CONFIG = {
    "accounts": {
        "users": [{"username": "nonroot", "uid": 65532}, {"username": "app", "uid": 1000, "gid": 1001, "shell": "/bin/ash"}],
        "groups": [{"groupname": "nonroot", "gid": 65532, "members": ["nonroot"]}],
    },
    "paths": [
        {"path": "/data", "type": "directory", "uid": 65532, "gid": 65532, "permissions": "0o700"},
        {"path": "/bin/sh", "type": "symlink", "source": "/bin/busybox"},
        {"path": "/app", "type": "permissions", "permissions": 493, "recursive": True},
    ],
    "os-release": {"id": "wolfi", "name": "Wolfi", "pretty-name": "Wolfi", "version-id": "20230201"},
    "entrypoint": {"services": {"nginx": "/usr/sbin/nginx"}},
    "package-version-tag": "nginx",
    "package-version-tag-stem": True,
    "package-version-tag-prefix": "v",
}


class TestImageConfiguration(unittest.TestCase):
    def test_from_dict(self):
        config = ImageConfiguration.from_dict(CONFIG)
        nonroot, app = config.accounts.users
        self.assertEqual((nonroot.primary_gid, nonroot.home, nonroot.shell), (65532, "/home/nonroot", "/bin/sh"))
        self.assertEqual((app.primary_gid, app.shell), (1001, "/bin/ash"))
        self.assertEqual(config.accounts.groups[0].members, ["nonroot"])
        self.assertEqual([p.permissions for p in config.paths], [0o700, 0o755, 0o755])
        self.assertEqual(config.paths[1].source, "/bin/busybox")
        self.assertTrue(config.paths[2].recursive)
        self.assertEqual(config.os_release.version_id, "20230201")
        self.assertEqual(config.services, {"nginx": "/usr/sbin/nginx"})
        self.assertEqual(config.package_version_tag, "nginx")
        self.assertTrue(config.package_version_tag_stem)
        self.assertEqual(config.package_version_tag_prefix, "v")

    def test_defaults(self):
        config = ImageConfiguration.from_dict({})
        self.assertEqual(config, ImageConfiguration())

    def test_invalid(self):
        with self.assertRaises(ValueError):
            ImageConfiguration.from_dict({"paths": [{"path": "/x", "type": "fifo"}]})
        with self.assertRaises(ValueError):
            ImageConfiguration.from_dict({"accounts": {"users": [{"uid": 1}]}})

    def test_load(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "image.json")
            with open(path, "w", encoding="utf-8") as f:
                json.dump(CONFIG, f)
            self.assertEqual(ImageConfiguration.load(path), ImageConfiguration.from_dict(CONFIG))
