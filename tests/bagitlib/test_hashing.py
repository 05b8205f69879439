# encoding: utf-8
import io, hashlib
import unittest as test

import bagitlib.hashing as hashing
from bagitlib.access.bag import BytesBagFile, BagFile
from bagitlib.access.exceptions import (HashingError, IO,
                                        UNSUPPORTED_ALGORITHM)

class BrokenStream(io.RawIOBase):
    def readable(self):
        return True
    def readinto(self, b):
        raise IOError("disk on fire")

class UnopenableFile(BagFile):
    def open(self):
        raise IOError("permission denied")

class TestComputeDigest(test.TestCase):

    def test_known_digests(self):
        self.assertEqual(hashing.compute_digest(io.BytesIO(b"foo"), "md5"),
                         "acbd18db4cc2f85cedef654fccc4a4d8")
        self.assertEqual(hashing.compute_digest(io.BytesIO(b""), "md5"),
                         "d41d8cd98f00b204e9800998ecf8427e")
        self.assertEqual(hashing.compute_digest(io.BytesIO(b"foo"), "SHA256"),
                         hashlib.sha256(b"foo").hexdigest())
        for alg in ("sha1", "sha512"):
            self.assertEqual(hashing.compute_digest(io.BytesIO(b"foo"), alg),
                             hashlib.new(alg, b"foo").hexdigest())

    def test_blocks(self):
        data = b"0123456789" * 1000
        self.assertEqual(hashing.compute_digest(io.BytesIO(data), "sha1", 7),
                         hashlib.sha1(data).hexdigest())

    def test_unknown_alg(self):
        with self.assertRaises(HashingError) as cm:
            hashing.compute_digest(io.BytesIO(b"foo"), "goober")
        self.assertEqual(cm.exception.code, HashingError.HASH_UNKNOWN_ALG)
        self.assertEqual(cm.exception.kind, UNSUPPORTED_ALGORITHM)

        self.assertFalse(hashing.is_supported_algorithm("goober"))
        self.assertFalse(hashing.is_supported_algorithm("shake_128"))
        self.assertTrue(hashing.is_supported_algorithm("md5"))
        self.assertTrue(hashing.is_supported_algorithm("SHA512"))

    def test_io_error(self):
        with self.assertRaises(HashingError) as cm:
            hashing.compute_digest(io.BufferedReader(BrokenStream()), "md5")
        self.assertEqual(cm.exception.code, HashingError.HASH_IO)
        self.assertEqual(cm.exception.kind, IO)

    def test_cancelled(self):
        calls = []
        def cancelled():
            calls.append(1)
            return len(calls) > 2
        data = b"x" * 100
        self.assertIsNone(hashing.compute_digest(io.BytesIO(data), "md5", 10,
                                                 cancelled))
        self.assertEqual(len(calls), 3)

class TestDigestFile(test.TestCase):

    def test_digest_file(self):
        bf = BytesBagFile("data/hello.txt", b"foo")
        self.assertEqual(hashing.digest_file(bf, "md5"),
                         "acbd18db4cc2f85cedef654fccc4a4d8")

    def test_open_failure(self):
        with self.assertRaises(HashingError) as cm:
            hashing.digest_file(UnopenableFile("data/goober.txt"), "md5")
        self.assertEqual(cm.exception.code, HashingError.HASH_IO)
        self.assertIn("data/goober.txt", str(cm.exception))

        with self.assertRaises(HashingError) as cm:
            hashing.digest_file(BytesBagFile("data/a", b""), "goober")
        self.assertEqual(cm.exception.code, HashingError.HASH_UNKNOWN_ALG)


if __name__ == '__main__':
    test.main()
