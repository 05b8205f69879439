# encoding: utf-8
import io
import unittest as test

import fs.memoryfs

import bagitlib.holes as holes
from bagitlib.access.bag import Bag
from bagitlib.access.tagfiles import FetchEntry
from bagitlib.access.exceptions import BagError, FetchError
from bagitlib.validate import ValidVerifier, ValidHoleyVerifier, ManifestChecksumVerifier
from tests.bagitlib import mkbags

BASE = "http://example.com/bags/hello"

def mksrcbag():
    bag = Bag.create([("hello.txt", mkbags.HELLO),
                      ("sub/goodbye.txt", b"goodbye"),
                      ("my file.txt", b"spaces")],
                     tag_algorithms=["md5"], name="hello",
                     bag_info=[("Contact-Name", "Gurn Cranston")],
                     bagging_date="2020-01-01")
    bag.put_tag_file("about.txt", b"a bag for testing")
    return bag

class RecordingFetcher(holes.Fetcher):
    """
    a Fetcher that serves content from a dictionary and records what it
    was asked for
    """
    def __init__(self, content):
        self.content = content
        self.urls = []

    def fetch(self, url, out_stream):
        self.urls.append(url)
        if url not in self.content:
            raise FetchError(url)
        out_stream.write(self.content[url])
        return len(self.content[url])

class TestHolePuncher(test.TestCase):

    def setUp(self):
        self.src = mksrcbag()
        self.puncher = holes.HolePuncher()

    def test_make_holey(self):
        holey = self.puncher.make_holey(self.src, BASE + "/")
        self.assertEqual(holey.payload_files(), [])
        self.assertEqual(holey.fetch_list(), [
            FetchEntry(BASE + "/data/hello.txt", 3, "data/hello.txt"),
            FetchEntry(BASE + "/data/sub/goodbye.txt", 7, "data/sub/goodbye.txt"),
            FetchEntry(BASE + "/data/my%20file.txt", 6, "data/my file.txt")
        ])
        self.assertEqual(holey.get_bag_file("fetch.txt").read(),
                         b"http://example.com/bags/hello/data/hello.txt 3 data/hello.txt\n"
                         b"http://example.com/bags/hello/data/sub/goodbye.txt 7 "
                         b"data/sub/goodbye.txt\n"
                         b"http://example.com/bags/hello/data/my%20file.txt 6 "
                         b"data/my file.txt\n")

        # manifests and tags are kept
        self.assertEqual(holey.payload_manifests(), self.src.payload_manifests())
        self.assertEqual(holey.tag_manifests(), self.src.tag_manifests())
        self.assertIsNotNone(holey.get_bag_file("about.txt"))
        self.assertEqual(holey.bag_info().get("Contact-Name"), "Gurn Cranston")
        self.assertTrue(ValidHoleyVerifier(gate_messages=True).is_valid(holey))

    def test_does_not_modify(self):
        self.puncher.make_holey(self.src, BASE, include_tags=True, leave_tags=False)
        self.assertEqual(len(self.src.payload_files()), 3)
        self.assertIsNone(self.src.fetch_list())
        self.assertIsNotNone(self.src.get_bag_file("about.txt"))
        self.assertIsNotNone(self.src.bag_info())
        self.assertTrue(ValidVerifier().is_valid(self.src))

    def test_exclude_payload_directory(self):
        holey = self.puncher.make_holey(self.src, BASE,
                                        include_payload_directory_in_url=False)
        self.assertEqual([e.url for e in holey.fetch_list()],
                         [BASE + "/hello.txt", BASE + "/sub/goodbye.txt",
                          BASE + "/my%20file.txt"])
        self.assertEqual([e.path for e in holey.fetch_list()],
                         ["data/hello.txt", "data/sub/goodbye.txt", "data/my file.txt"])

        holey = self.src.make_holey(BASE, include_payload_directory_in_url=False,
                                    include_tags=True)
        self.assertEqual(holey.fetch_list()[0].url, BASE + "/data/hello.txt")

    def test_include_tags(self):
        holey = self.puncher.make_holey(self.src, BASE, include_tags=True)
        paths = [e.path for e in holey.fetch_list()]
        self.assertEqual(paths[:3], ["data/hello.txt", "data/sub/goodbye.txt",
                                     "data/my file.txt"])
        self.assertEqual(paths[3:], ["manifest-md5.txt", "tagmanifest-md5.txt",
                                     "bag-info.txt", "about.txt"])
        self.assertNotIn("bagit.txt", paths)
        self.assertEqual(holey.fetch_list()[6],
                         FetchEntry(BASE + "/about.txt", 17, "about.txt"))

        # tag files stay in the bag
        self.assertIsNotNone(holey.get_bag_file("about.txt"))

    def test_remove_tags(self):
        holey = self.puncher.make_holey(self.src, BASE, include_tags=True,
                                        leave_tags=False)
        self.assertIsNone(holey.get_bag_file("about.txt"))
        self.assertIsNone(holey.bag_info())
        self.assertIsNotNone(holey.declaration())
        self.assertEqual(len(holey.payload_manifests()), 1)
        self.assertEqual(len(holey.tag_manifests()), 1)
        self.assertIn("about.txt", [e.path for e in holey.fetch_list()])

    def test_resume(self):
        self.src.set_fetch_list([("http://mirror.org/hello.txt", 3, "data/hello.txt"),
                                 ("http://mirror.org/extra.txt", None, "data/extra.txt")])
        holey = self.puncher.make_holey(self.src, BASE, resume=True)
        self.assertEqual(holey.fetch_list(), [
            FetchEntry("http://mirror.org/hello.txt", 3, "data/hello.txt"),
            FetchEntry("http://mirror.org/extra.txt", None, "data/extra.txt"),
            FetchEntry(BASE + "/data/sub/goodbye.txt", 7, "data/sub/goodbye.txt"),
            FetchEntry(BASE + "/data/my%20file.txt", 6, "data/my file.txt")
        ])

        holey = self.puncher.make_holey(self.src, BASE)
        self.assertEqual(len(holey.fetch_list()), 3)
        self.assertEqual(holey.fetch_list()[0].url, BASE + "/data/hello.txt")

class TestFSFetcher(test.TestCase):

    def setUp(self):
        self.fs = fs.memoryfs.MemoryFS()
        self.fs.makedirs("/data/sub")
        self.fs.writebytes("/data/hello.txt", mkbags.HELLO)
        self.fs.writebytes("/data/sub/my file.txt", b"spaces")
        self.fetcher = holes.FSFetcher(self.fs, BASE + "/", blocksize=2)

    def tearDown(self):
        self.fs.close()

    def fetch(self, url):
        buf = io.BytesIO()
        size = self.fetcher.fetch(url, buf)
        self.assertEqual(size, len(buf.getvalue()))
        return buf.getvalue()

    def test_fetch(self):
        self.assertEqual(self.fetch(BASE + "/data/hello.txt"), mkbags.HELLO)
        self.assertEqual(self.fetch(BASE + "/data/sub/my%20file.txt"), b"spaces")
        self.assertEqual(self.fetch(BASE + "/data/sub/../hello.txt"), mkbags.HELLO)

    def test_fetch_failures(self):
        with self.assertRaises(FetchError):
            self.fetch("http://elsewhere.org/data/hello.txt")
        with self.assertRaises(FetchError) as ctx:
            self.fetch(BASE + "/data/goodbye.txt")
        self.assertIsNotNone(ctx.exception.cause)
        self.assertEqual(ctx.exception.url, BASE + "/data/goodbye.txt")
        with self.assertRaises(FetchError):
            self.fetch(BASE + "/../../etc/passwd")
        with self.assertRaises(FetchError):
            self.fetch(BASE + "/data")

class TestBagFiller(test.TestCase):

    def setUp(self):
        self.src = mksrcbag()
        self.server = fs.memoryfs.MemoryFS()
        self.src.save(self.server)
        self.fetcher = holes.FSFetcher(self.server, BASE)

    def tearDown(self):
        self.server.close()

    def verifier(self):
        return ValidVerifier(checksum_verifier=ManifestChecksumVerifier(workers=2))

    def test_fill(self):
        holey = self.src.make_holey(BASE)
        self.assertFalse(self.verifier().is_valid(holey))

        events = []
        filled = holes.BagFiller(self.fetcher, [events.append]).fill(holey)
        self.assertIsNone(filled.fetch_list())
        self.assertEqual(filled.manifests(), self.src.manifests())
        self.assertEqual([(f.filepath, f.read()) for f in filled.payload_files()],
                         [(f.filepath, f.read()) for f in self.src.payload_files()])
        res = self.verifier().verify(filled)
        self.assertTrue(res.ok(), res.description)

        self.assertEqual([e.item for e in events],
                         ["data/hello.txt", "data/sub/goodbye.txt", "data/my file.txt"])
        self.assertEqual(events[-1].count, 3)
        self.assertEqual(events[-1].total, 3)

        # the holey bag is unchanged
        self.assertEqual(holey.payload_files(), [])
        self.assertEqual(len(holey.fetch_list()), 3)

    def test_fill_tags(self):
        holey = self.src.make_holey(BASE, include_tags=True, leave_tags=False)
        filled = holes.BagFiller(self.fetcher).fill(holey)
        self.assertEqual(filled.bag_info().get("Contact-Name"), "Gurn Cranston")
        self.assertEqual(filled.get_bag_file("about.txt").read(), b"a bag for testing")
        res = self.verifier().verify(filled)
        self.assertTrue(res.ok(), res.description)

    def test_keep_fetch_list(self):
        holey = self.src.make_holey(BASE)
        filled = holes.BagFiller(self.fetcher).fill(holey, keep_fetch_list=True)
        self.assertEqual(filled.fetch_list(), holey.fetch_list())
        self.assertEqual(len(filled.payload_files()), 3)

    def test_skip_existing(self):
        holey = self.src.make_holey(BASE)
        holey.put_payload_file("hello.txt", mkbags.HELLO)
        fetcher = RecordingFetcher({BASE + "/data/sub/goodbye.txt": b"goodbye",
                                    BASE + "/data/my%20file.txt": b"spaces"})
        filled = holes.BagFiller(fetcher).fill(holey)
        self.assertEqual(fetcher.urls, [BASE + "/data/sub/goodbye.txt",
                                        BASE + "/data/my%20file.txt"])
        self.assertTrue(self.verifier().is_valid(filled))

    def test_size_mismatch(self):
        holey = self.src.make_holey(BASE)
        fetcher = RecordingFetcher({BASE + "/data/hello.txt": b"foobar"})
        with self.assertRaises(FetchError) as ctx:
            holes.BagFiller(fetcher).fill(holey)
        self.assertEqual(ctx.exception.url, BASE + "/data/hello.txt")

    def test_fetch_failure(self):
        holey = self.src.make_holey(BASE)
        with self.assertRaises(FetchError):
            holes.BagFiller(RecordingFetcher({})).fill(holey)

    def test_unknown_size(self):
        holey = Bag.create({"hello.txt": mkbags.HELLO}).make_holey(BASE)
        holey.set_fetch_list([(BASE + "/data/hello.txt", None, "data/hello.txt")])
        filled = holes.BagFiller(self.fetcher).fill(holey)
        self.assertEqual(filled.get_bag_file("data/hello.txt").read(), mkbags.HELLO)

    def test_no_fetch_list(self):
        with self.assertRaises(BagError):
            holes.BagFiller(self.fetcher).fill(self.src)

    def test_cancel(self):
        filler = holes.BagFiller(self.fetcher)
        filler.cancel()
        self.assertIsNone(filler.fill(self.src.make_holey(BASE)))

    def test_abstract_fetcher(self):
        with self.assertRaises(NotImplementedError):
            holes.Fetcher().fetch(BASE, io.BytesIO())


if __name__ == '__main__':
    test.main()
