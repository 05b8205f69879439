# encoding: utf-8
import unittest as test

import bagitlib.constants as cnsts
from bagitlib.access.exceptions import UnknownVersionError, UNKNOWN_VERSION

class TestVersion(test.TestCase):

    def test_ctor(self):
        ver = cnsts.Version("0.97")
        self.assertEqual(str(ver), "0.97")
        self.assertEqual(ver.fields, (0, 97))
        self.assertEqual(cnsts.Version(" 1.0\n").fields, (1, 0))

        with self.assertRaises(TypeError):
            cnsts.Version(1.0)

    def test_compare(self):
        ver = cnsts.Version("0.97")
        self.assertEqual(ver, "0.97")
        self.assertEqual(ver, cnsts.Version("0.97"))
        self.assertNotEqual(ver, "0.96")
        self.assertEqual(hash(ver), hash(cnsts.Version("0.97")))
        self.assertTrue(ver < cnsts.Version("1.0"))
        self.assertTrue(ver < cnsts.Version("0.100"))
        self.assertFalse(ver < cnsts.Version("0.93"))

class TestDialect(test.TestCase):

    def test_names(self):
        d = cnsts.get_dialect("0.97")
        self.assertEqual(d.declaration_filename, "bagit.txt")
        self.assertEqual(d.fetch_filename, "fetch.txt")
        self.assertEqual(d.data_dir, "data")
        self.assertEqual(d.bag_info_filename, "bag-info.txt")
        self.assertEqual(d.manifest_name("md5"), "manifest-md5.txt")
        self.assertEqual(d.tag_manifest_name("sha256"), "tagmanifest-sha256.txt")
        self.assertEqual(d.declaration_version, "0.97")
        self.assertEqual(d.encoding, "UTF-8")

    def test_old_dialects(self):
        d = cnsts.get_dialect("0.93")
        self.assertEqual(d.bag_info_filename, "package-info.txt")
        self.assertEqual(d.bag_size_field, "Package-Size")
        self.assertEqual(d.bagging_date_field, "Packing-Date")
        self.assertFalse(d.allow_tag_directories)

        for v in ("0.94", "0.95"):
            d = cnsts.get_dialect(v)
            self.assertEqual(d.bag_info_filename, "package-info.txt")
            self.assertEqual(d.bag_size_field, "Bag-Size")
            self.assertEqual(d.bagging_date_field, "Bagging-Date")
            self.assertFalse(d.allow_tag_directories)

        d = cnsts.get_dialect("0.96")
        self.assertEqual(d.bag_info_filename, "bag-info.txt")
        self.assertFalse(d.allow_tag_directories)

        self.assertTrue(cnsts.get_dialect("0.97").allow_tag_directories)
        self.assertTrue(cnsts.get_dialect("1.0").allow_tag_directories)

    def test_algorithms(self):
        for v in cnsts.known_versions():
            algs = cnsts.get_dialect(v).algorithms
            for alg in ("md5", "sha1", "sha256", "sha512"):
                self.assertIn(alg, algs)
        self.assertIn("sha384", cnsts.LATEST_DIALECT.algorithms)

    def test_parse_manifest_name(self):
        d = cnsts.DEFAULT_DIALECT
        self.assertEqual(d.parse_manifest_name("manifest-md5.txt"),
                         (cnsts.PAYLOAD, "md5"))
        self.assertEqual(d.parse_manifest_name("tagmanifest-sha256.txt"),
                         (cnsts.TAG, "sha256"))
        self.assertIsNone(d.parse_manifest_name("manifest-.txt"))

        # the hyphenated spelling is read by every dialect but never written
        for v in cnsts.known_versions():
            d = cnsts.get_dialect(v)
            self.assertEqual(d.parse_manifest_name("tag-manifest-md5.txt"),
                             (cnsts.TAG, "md5"))
            self.assertEqual(d.tag_manifest_name("md5"), "tagmanifest-md5.txt")
        self.assertIsNone(d.parse_manifest_name("tag-manifest-.txt"))
        self.assertIsNone(d.parse_manifest_name("manifest-md5.txt.bak"))
        self.assertIsNone(d.parse_manifest_name("bag-info.txt"))

    def test_is_payload_path(self):
        d = cnsts.DEFAULT_DIALECT
        self.assertTrue(d.is_payload_path("data/hello.txt"))
        self.assertTrue(d.is_payload_path("data/a/b.txt"))
        self.assertFalse(d.is_payload_path("data"))
        self.assertFalse(d.is_payload_path("database/x.txt"))
        self.assertFalse(d.is_payload_path("bag-info.txt"))

    def test_immutable(self):
        with self.assertRaises(AttributeError):
            cnsts.V0_97.data_dir = "payload"
        with self.assertRaises(AttributeError):
            cnsts.V0_97._datadir = "payload"

    def test_get_dialect(self):
        self.assertIs(cnsts.get_dialect("0.96"), cnsts.V0_96)
        self.assertIs(cnsts.get_dialect(cnsts.V1_0), cnsts.V1_0)
        self.assertIs(cnsts.get_dialect(cnsts.Version("0.93")), cnsts.V0_93)
        self.assertEqual(cnsts.DEFAULT_DIALECT, cnsts.V0_97)
        self.assertEqual(cnsts.known_versions(),
                         ["0.93", "0.94", "0.95", "0.96", "0.97", "1.0"])

        with self.assertRaises(UnknownVersionError) as cm:
            cnsts.get_dialect("0.92")
        self.assertEqual(cm.exception.kind, UNKNOWN_VERSION)
        self.assertEqual(cm.exception.version, "0.92")


if __name__ == '__main__':
    test.main()
