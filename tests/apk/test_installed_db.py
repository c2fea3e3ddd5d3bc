# SPDX-License-Identifier: GPL-2.0-only OR MIT
# Copyright (C) 2025 TNG Technology Consulting GmbH

import unittest
from layerbom.apk import ApkDatabase, format_installed, ownership_records, parse_installed
from layerbom.apk.installed_db import decode_checksum
from layerbom.apk.installer import WORLD_PATH
from layerbom.fs import MemFS
from layerbom.metadata import ResolvedPackage

INSTALLED_DB = """C:Q1WmFr2Yp0kLNM3Yg8ZsYbq4Z3e2c=
P:busybox
V:1.36.1-r0
A:x86_64
S:512000
I:950000
T:Size optimized toolbox of many common UNIX utilities
U:https://busybox.net/
L:GPL-2.0-only
o:busybox
m:Wolfi Maintainers <wolfi@example.com>
F:bin
R:busybox
a:0:0:755
Z:Q1abcdefghijklmnopqrstuvwxyz0=
F:etc/secrets
M:0:42:750
R:token
a:0:42:640

P:ca-certificates-bundle
V:20230506-r0
A:x86_64
L:MPL-2.0 AND MIT
F:etc/ssl/certs
R:ca-certificates.crt
"""


class TestInstalledDb(unittest.TestCase):
    def test_parse_installed(self):
        packages = parse_installed(INSTALLED_DB)
        self.assertEqual([p.name for p in packages], ["busybox", "ca-certificates-bundle"])
        busybox = packages[0].package
        self.assertEqual(busybox.version, "1.36.1-r0")
        self.assertEqual(busybox.license, "GPL-2.0-only")
        self.assertEqual(busybox.maintainer, "Wolfi Maintainers <wolfi@example.com>")
        self.assertEqual(busybox.url, "https://busybox.net/")
        self.assertEqual(len(busybox.checksum), 20)
        self.assertEqual(
            [f.path for f in packages[0].files], ["bin", "bin/busybox", "etc/secrets", "etc/secrets/token"]
        )
        self.assertEqual(packages[0].files[2].mode, 0o750)
        self.assertEqual(packages[1].package.checksum, b"")

    def test_ownership_records(self):
        owners = ownership_records(parse_installed(INSTALLED_DB))
        self.assertEqual(owners["bin/busybox"], (0, 0))
        self.assertEqual(owners["etc/secrets"], (0, 42))
        self.assertEqual(owners["etc/secrets/token"], (0, 42))
        self.assertNotIn("etc/ssl/certs/ca-certificates.crt", owners)

    def test_format_installed_is_parsed_back(self):
        packages = parse_installed(INSTALLED_DB)
        reparsed = parse_installed(format_installed(packages))
        self.assertEqual([p.package for p in reparsed], [p.package for p in packages])
        self.assertEqual(reparsed[0].files, packages[0].files)

    def test_malformed_content_raises(self):
        for content in ["P:busybox\nnot a database line\n", "V:1.0\n", "P:busybox\n", "P:busybox\nV:1\na:0:0:755\n"]:
            with self.assertRaises(ValueError):
                parse_installed(content)

    def test_decode_checksum(self):
        self.assertEqual(decode_checksum("0a0b"), b"\x0a\x0b")
        with self.assertRaises(ValueError):
            decode_checksum("Q1!!!")


class TestApkDatabase(unittest.TestCase):
    def test_fixate_world_records_missing_packages(self):
        tree = MemFS()
        db = ApkDatabase(tree)
        db.fixate_world([ResolvedPackage(name="zlib", version="1.3-r0"), ResolvedPackage(name="busybox", version="1.36")])
        self.assertEqual([p.name for p in db.get_installed()], ["zlib", "busybox"])
        self.assertEqual(tree.read_file(WORLD_PATH), b"busybox\nzlib\n")

        db.fixate_world([ResolvedPackage(name="busybox", version="1.36"), ResolvedPackage(name="musl", version="1.2")])
        self.assertEqual([p.name for p in db.get_installed()], ["zlib", "busybox", "musl"])

    def test_get_installed_without_database(self):
        self.assertEqual(ApkDatabase(MemFS()).get_installed(), [])
