# SPDX-License-Identifier: GPL-2.0-only OR MIT
# Copyright (C) 2025 TNG Technology Consulting GmbH

from datetime import datetime, timezone
import errno
import gzip
import hashlib
import os
import stat
import tarfile
import tempfile
import unittest
from unittest import mock
from layerbom.build import encode_tarball
from layerbom.errors import TarballError
from layerbom.fs import MemFS

SOURCE_DATE_EPOCH = datetime(2023, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


class UnreadableMemFS(MemFS):
    def read_file(self, path: str) -> bytes:
        raise OSError(errno.EIO, os.strerror(errno.EIO), path)


def _sample_tree() -> MemFS:
    tree = MemFS()
    tree.mkdir_all("etc/ssl")
    tree.write_file("etc/hostname", b"layer\n")
    tree.write_file("etc/ssl/cert.pem", b"-----BEGIN CERTIFICATE-----\n", 0o600)
    tree.mkdir_all("bin")
    tree.write_file("bin/busybox", b"\x7fELF" + bytes(1024), 0o755)
    tree.link("bin/busybox", "bin/ash")
    tree.symlink("/bin/busybox", "bin/sh")
    tree.mkdir("dev")
    tree.mknod("dev/null", stat.S_IFCHR | 0o666, 1, 3)
    tree.mkdir_all("home/nonroot")
    tree.chown("home/nonroot", 65532, 65532)
    return tree


class TestTarball(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.tmpdir.cleanup()

    def _path(self, name: str) -> str:
        return os.path.join(self.tmpdir.name, name)

    def _read(self, path: str) -> bytes:
        with open(path, "rb") as f:
            return f.read()

    def test_digests_match_content(self):
        output = encode_tarball(_sample_tree(), SOURCE_DATE_EPOCH, self._path("layer.tar.gz"))
        compressed = self._read(output.path)

        self.assertEqual(output.path, self._path("layer.tar.gz"))
        self.assertEqual(output.size, len(compressed))
        self.assertEqual(output.digest, "sha256:" + hashlib.sha256(compressed).hexdigest())
        self.assertEqual(output.diff_id, "sha256:" + hashlib.sha256(gzip.decompress(compressed)).hexdigest())
        self.assertNotEqual(output.digest, output.diff_id)

    def test_entries(self):
        output = encode_tarball(_sample_tree(), SOURCE_DATE_EPOCH, self._path("layer.tar.gz"))
        with tarfile.open(output.path, "r:gz") as tar:
            members = {m.name: m for m in tar.getmembers()}
            self.assertEqual(
                [m.name for m in tar.getmembers()],
                [
                    "bin",
                    "bin/ash",
                    "bin/busybox",
                    "bin/sh",
                    "dev",
                    "dev/null",
                    "etc",
                    "etc/hostname",
                    "etc/ssl",
                    "etc/ssl/cert.pem",
                    "home",
                    "home/nonroot",
                ],
            )
            self.assertTrue(all(m.mtime == SOURCE_DATE_EPOCH.timestamp() for m in members.values()))
            self.assertTrue(members["bin"].isdir())
            self.assertTrue(members["bin/ash"].isfile())
            self.assertTrue(members["bin/busybox"].islnk())
            self.assertEqual(members["bin/busybox"].linkname, "bin/ash")
            self.assertTrue(members["bin/sh"].issym())
            self.assertEqual(members["bin/sh"].linkname, "/bin/busybox")
            self.assertTrue(members["dev/null"].ischr())
            self.assertEqual((members["dev/null"].devmajor, members["dev/null"].devminor), (1, 3))
            self.assertEqual(members["etc/ssl/cert.pem"].mode, 0o600)
            self.assertEqual((members["home/nonroot"].uid, members["home/nonroot"].gid), (65532, 65532))
            self.assertEqual((members["etc/hostname"].uid, members["etc/hostname"].gid), (0, 0))
            self.assertEqual(members["etc/hostname"].uname, "")
            extracted = tar.extractfile("etc/hostname")
            assert extracted is not None
            self.assertEqual(extracted.read(), b"layer\n")

    def test_ownership_precedence(self):
        tree = _sample_tree()
        ownership = {"home/nonroot": (1, 1), "etc/hostname": (10, 20)}
        output = encode_tarball(tree, SOURCE_DATE_EPOCH, self._path("layer.tar.gz"), ownership)
        with tarfile.open(output.path, "r:gz") as tar:
            self.assertEqual((tar.getmember("home/nonroot").uid, tar.getmember("home/nonroot").gid), (65532, 65532))
            self.assertEqual((tar.getmember("etc/hostname").uid, tar.getmember("etc/hostname").gid), (10, 20))
            self.assertEqual((tar.getmember("etc/ssl").uid, tar.getmember("etc/ssl").gid), (0, 0))

    def test_reproducible(self):
        first = encode_tarball(_sample_tree(), SOURCE_DATE_EPOCH, self._path("first.tar.gz"))
        second = encode_tarball(_sample_tree(), SOURCE_DATE_EPOCH, self._path("second.tar.gz"))
        self.assertEqual(self._read(first.path), self._read(second.path))
        self.assertEqual((first.digest, first.diff_id, first.size), (second.digest, second.diff_id, second.size))

    def test_wall_clock_time_does_not_matter(self):
        tree = _sample_tree()
        with mock.patch("time.time", return_value=1_700_000_000.0):
            first = encode_tarball(tree, SOURCE_DATE_EPOCH, self._path("first.tar.gz"))
        with mock.patch("time.time", return_value=1_700_000_001.0):
            second = encode_tarball(tree, SOURCE_DATE_EPOCH, self._path("second.tar.gz"))
        self.assertEqual(self._read(first.path), self._read(second.path))

        other_epoch = encode_tarball(tree, datetime(2024, 1, 1, tzinfo=timezone.utc), self._path("third.tar.gz"))
        self.assertNotEqual(first.diff_id, other_epoch.diff_id)

    def test_unwritable_output_raises(self):
        with self.assertRaises(TarballError):
            encode_tarball(_sample_tree(), SOURCE_DATE_EPOCH, self._path("missing/layer.tar.gz"))

    def test_naive_timestamp_is_utc(self):
        output = encode_tarball(_sample_tree(), datetime(2023, 1, 2, 3, 4, 5), self._path("naive.tar.gz"))
        aware = encode_tarball(_sample_tree(), SOURCE_DATE_EPOCH, self._path("aware.tar.gz"))
        with tarfile.open(output.path, "r:gz") as tar:
            self.assertTrue(all(m.mtime == SOURCE_DATE_EPOCH.timestamp() for m in tar.getmembers()))
        self.assertEqual(self._read(output.path), self._read(aware.path))

    def test_tree_read_failure_raises(self):
        tree = UnreadableMemFS()
        tree.mkdir("etc")
        tree.write_file("etc/hostname", b"layer\n")
        with self.assertRaises(TarballError):
            encode_tarball(tree, SOURCE_DATE_EPOCH, self._path("layer.tar.gz"))

    def test_compressor_failure_raises(self):
        with mock.patch.object(gzip.GzipFile, "write", side_effect=OSError(errno.ENOSPC, "No space left on device")):
            with self.assertRaises(TarballError):
                encode_tarball(_sample_tree(), SOURCE_DATE_EPOCH, self._path("layer.tar.gz"))

    @unittest.skipUnless(os.path.exists("/dev/full"), "requires /dev/full")
    def test_flush_failure_raises(self):
        with self.assertRaises(TarballError):
            encode_tarball(_sample_tree(), SOURCE_DATE_EPOCH, "/dev/full")
