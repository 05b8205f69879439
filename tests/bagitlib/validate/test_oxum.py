# encoding: utf-8
import os, tempfile, shutil
import unittest as test

import bagit

import bagitlib.validate.oxum as oxm
from bagitlib.access.bag import Bag, open_bag
from tests.bagitlib import mkbags

class TestPayloadOxumVerifier(test.TestCase):

    def setUp(self):
        self.verifier = oxm.PayloadOxumVerifier()

    def test_match(self):
        bag = Bag.create({"hello.txt": mkbags.HELLO, "sub/empty.txt": b""})
        self.assertEqual(bag.bag_info().get("Payload-Oxum"), "3.2")
        res = self.verifier.verify(bag)
        self.assertTrue(res.ok(), res.description)
        self.assertEqual(res.messages, [])

    def test_no_oxum(self):
        bag = Bag()
        bag.put_payload_file("hello.txt", mkbags.HELLO)
        self.assertTrue(self.verifier.verify(bag).ok())

        bag.set_bag_info([("Contact-Name", "Gurn Cranston")])
        self.assertTrue(self.verifier.verify(bag).ok())

    def test_mismatch(self):
        bag = Bag.create({"hello.txt": mkbags.HELLO})
        bag.put_payload_file("goodbye.txt", b"bye!")
        res = self.verifier.verify(bag)
        self.assertFalse(res.ok())
        self.assertEqual(res.codes(), [oxm.PAYLOAD_OXUM_MISMATCH])
        self.assertEqual(res.messages[0].message,
                         "Payload-Oxum is 3.1 but payload has 7 octets in 2 files.")

    def test_malformed(self):
        bag = Bag.create({"hello.txt": mkbags.HELLO})
        bag.bag_info().put("Payload-Oxum", "three.one")
        res = self.verifier.verify(bag)
        self.assertFalse(res.ok())
        self.assertEqual(res.codes(), [oxm.PAYLOAD_OXUM_MALFORMED])

    def test_old_dialect(self):
        bag = Bag.create({"hello.txt": mkbags.HELLO}, dialect="0.93")
        self.assertIsNotNone(bag.bag_info().get("Package-Size"))
        self.assertTrue(self.verifier.verify(bag).ok())

    def test_bagit_made_bag(self):
        tempdir = tempfile.mkdtemp()
        try:
            mkbags.write_file(os.path.join(tempdir, "hello.txt"), mkbags.HELLO)
            bagit.make_bag(tempdir, checksums=["sha256"])
            with open_bag(tempdir) as bag:
                self.assertTrue(self.verifier.is_valid(bag))
            mkbags.write_file(os.path.join(tempdir, "data", "more.txt"), b"more")
            with open_bag(tempdir) as bag:
                self.assertFalse(self.verifier.is_valid(bag))
        finally:
            shutil.rmtree(tempdir)

    def test_progress_and_cancel(self):
        bag = Bag.create({"a.txt": b"a", "b.txt": b"bb"})
        events = []
        self.verifier.add_progress_subscriber(events.append)
        self.assertTrue(self.verifier.verify(bag).ok())
        self.assertEqual([e.item for e in events], ["data/a.txt", "data/b.txt"])

        self.verifier.cancel()
        self.assertIsNone(self.verifier.verify(bag))


if __name__ == '__main__':
    test.main()
