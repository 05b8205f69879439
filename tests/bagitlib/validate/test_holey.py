# encoding: utf-8
import os, tempfile, shutil
import unittest as test

import bagitlib.validate.holey as hly
from bagitlib.validate.complete import (CompleteVerifier, NO_DECLARATION,
                                        NO_PAYLOAD_MANIFEST, WRONG_VERSION,
                                        MISSING_PAYLOAD_FILE)
from bagitlib.access.bag import Bag, open_bag
from bagitlib.access.tagfiles import Declaration
from tests.bagitlib import mkbags

def mkholeybag():
    bag = Bag.create({"hello.txt": mkbags.HELLO}, name="hello")
    return bag.make_holey("http://example.com/bags/hello/")

class TestValidHoleyVerifier(test.TestCase):

    def setUp(self):
        self.tempdir = tempfile.mkdtemp()
        self.bagdir = os.path.join(self.tempdir, "hello")

    def tearDown(self):
        shutil.rmtree(self.tempdir)

    def test_holey(self):
        bag = mkholeybag()
        res = hly.ValidHoleyVerifier().verify(bag)
        self.assertTrue(res.ok(), res.description)
        # messages for the checks are recorded even though they passed
        self.assertEqual(res.codes(), [NO_DECLARATION, hly.MISSING_FETCH])
        self.assertEqual(res.messages[0].message, "Bag does not have bagit.txt.")
        self.assertEqual(res.messages[1].message, "Bag does not have fetch.txt.")

        res = hly.ValidHoleyVerifier(gate_messages=True).verify(bag)
        self.assertTrue(res.ok())
        self.assertEqual(res.messages, [])

    def test_holey_on_disk(self):
        mkholeybag().save(self.bagdir)
        self.assertFalse(os.path.exists(os.path.join(self.bagdir, "data", "hello.txt")))

        with open_bag(self.bagdir) as bag:
            self.assertTrue(hly.ValidHoleyVerifier().is_valid(bag))
            res = CompleteVerifier().verify(bag)
            self.assertFalse(res.ok())
            self.assertEqual(res.codes(), [MISSING_PAYLOAD_FILE])

    def test_missing_fetch(self):
        bag = Bag.create({"hello.txt": mkbags.HELLO})
        res = hly.ValidHoleyVerifier().verify(bag)
        self.assertFalse(res.ok())
        self.assertEqual(res.codes(), [NO_DECLARATION, hly.MISSING_FETCH])

        res = hly.ValidHoleyVerifier(gate_messages=True).verify(bag)
        self.assertFalse(res.ok())
        self.assertEqual(res.codes(), [hly.MISSING_FETCH])

    def test_no_declaration(self):
        bag = mkholeybag()
        bag.set_declaration(None)
        res = hly.ValidHoleyVerifier(gate_messages=True).verify(bag)
        self.assertFalse(res.ok())
        self.assertEqual(res.codes(), [NO_DECLARATION])

    def test_wrong_version(self):
        bag = mkholeybag()
        bag.set_declaration(Declaration("0.96"))
        res = hly.ValidHoleyVerifier(gate_messages=True).verify(bag)
        self.assertFalse(res.ok())
        self.assertEqual(res.codes(), [WRONG_VERSION])
        self.assertEqual(res.messages[0].message, "Version is not 0.97.")

    def test_no_payload_manifest(self):
        bag = mkholeybag()
        bag.remove_bag_file("manifest-md5.txt")
        res = hly.ValidHoleyVerifier().verify(bag)
        self.assertFalse(res.ok())
        self.assertEqual(res.codes(), [NO_DECLARATION, NO_PAYLOAD_MANIFEST,
                                       hly.MISSING_FETCH])

    def test_cancel(self):
        verifier = hly.ValidHoleyVerifier()
        verifier.cancel()
        self.assertIsNone(verifier.verify(mkholeybag()))


if __name__ == '__main__':
    test.main()
