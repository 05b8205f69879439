"""
Support for holey bags: bags whose payload is listed in a fetch list rather
than included in the bag.

The HolePuncher turns a complete bag into a holey one.  A BagFiller does the
reverse, retrieving the files listed in a holey bag's fetch list through a
Fetcher.  This module does not provide network transport; FSFetcher
retrieves files from a PyFilesystem2 filesystem, and other Fetcher
implementations can be plugged in.
"""
import io, logging
from urllib.parse import quote, unquote

import fs.errors, fs.path

from .access.bag import BytesBagFile
from .access.tagfiles import FetchEntry, parse_bag_info, decode_tag_text
from .access.exceptions import BagError, FetchError
from .hashing import HASH_BLOCK_SIZE
from .progress import LongRunningOperation

log = logging.getLogger(__name__)

class HolePuncher(object):
    """
    a transformer that creates holey versions of bags
    """

    def make_holey(self, bag, base_url, include_payload_directory_in_url=True,
                   include_tags=False, leave_tags=True, resume=False):
        """
        return a new holey version of a bag.  The payload files are removed
        from the new bag (while their manifest entries are kept) and listed
        in its fetch list with URLs formed by appending their paths to the
        base URL.  The given bag is not changed.

        :param Bag bag:        the bag to make holey
        :param str base_url:   the URL to prepend to file paths to form the
                               URLs in the fetch list
        :param bool include_payload_directory_in_url:  if True, the URLs
                               include the payload directory (e.g. "data/");
                               otherwise, they are formed from the paths
                               relative to the payload directory.
        :param bool include_tags:  if True, the tag files (other than the
                               declaration) are listed in the fetch list as
                               well; this forces include_payload_directory_in_url
                               to True.
        :param bool leave_tags:  if False, all tag files except the
                               declaration, the manifests, and the fetch list
                               are removed from the new bag.
        :param bool resume:    if True and the bag already has a fetch list,
                               its entries are kept; they take precedence over
                               new entries for the same paths.
        :rtype: Bag
        """
        if include_tags:
            include_payload_directory_in_url = True
        base = base_url.rstrip('/')
        datadir = bag.dialect.data_dir + '/'

        out = bag.copy()
        entries = []
        for bagfile in bag.payload_files():
            urlpath = bagfile.filepath
            if not include_payload_directory_in_url and urlpath.startswith(datadir):
                urlpath = urlpath[len(datadir):]
            entries.append(FetchEntry(base + '/' + quote(urlpath), bagfile.size,
                                      bagfile.filepath))
            out.remove_bag_file(bagfile.filepath)

        if include_tags:
            skip = (bag.dialect.declaration_filename, bag.dialect.fetch_filename)
            for bagfile in bag.tag_files():
                if bagfile.filepath in skip:
                    continue
                entries.append(FetchEntry(base + '/' + quote(bagfile.filepath),
                                          bagfile.size, bagfile.filepath))

        if resume and bag.fetch_list():
            existing = list(bag.fetch_list())
            have = set([e.path for e in existing])
            entries = existing + [e for e in entries if e.path not in have]

        if not leave_tags:
            for bagfile in out.other_tag_files():
                out.remove_bag_file(bagfile.filepath)
            out.set_bag_info(None)

        out.set_fetch_list(entries)
        log.info("Made %s holey: %d entries in fetch list", str(bag), len(entries))
        return out

class Fetcher(object):
    """
    an interface for retrieving the files listed in a fetch list
    """

    def fetch(self, url, out_stream):
        """
        retrieve the contents of a URL and write them to a stream

        :param str url:         the URL to retrieve
        :param out_stream:      a writable binary stream
        :return: the number of bytes written
        :raises FetchError:  if the URL cannot be retrieved
        """
        raise NotImplementedError()

class FSFetcher(Fetcher):
    """
    a Fetcher that resolves URLs beneath a base URL to files in a
    PyFilesystem2 filesystem.  For example, with a base URL of
    "http://example.com/bags/foo/", the URL
    "http://example.com/bags/foo/data/a.txt" is read from "/data/a.txt" in
    the filesystem.
    """

    def __init__(self, filesys, base_url, blocksize=HASH_BLOCK_SIZE):
        self.filesys = filesys
        self.base_url = base_url.rstrip('/') + '/'
        self.blocksize = blocksize

    def fetch(self, url, out_stream):
        if not url.startswith(self.base_url):
            raise FetchError(url, "Not a URL under {0}: {1}".format(self.base_url, url))
        try:
            path = fs.path.normpath("/" + unquote(url[len(self.base_url):]))
            size = 0
            with self.filesys.openbin(path) as fd:
                while True:
                    block = fd.read(self.blocksize)
                    if not block:
                        break
                    out_stream.write(block)
                    size += len(block)
        except (fs.errors.FSError, ValueError, OSError) as ex:
            raise FetchError(url, cause=ex)
        log.debug("Fetched %s (%d bytes)", url, size)
        return size

class BagFiller(LongRunningOperation):
    """
    a transformer that creates a complete bag from a holey one by retrieving
    the files listed in its fetch list.
    """

    def __init__(self, fetcher, subscribers=None):
        """
        :param Fetcher fetcher:  the Fetcher to retrieve files with
        :param subscribers:      a list of progress subscribers
        """
        super(BagFiller, self).__init__(subscribers)
        self.fetcher = fetcher

    def fill(self, bag, keep_fetch_list=False):
        """
        return a new bag in which the files listed in the given bag's fetch
        list have been retrieved.  Files the bag already contains are not
        retrieved again.  The given bag is not changed.

        :param Bag bag:  the holey bag
        :param bool keep_fetch_list:  if False, the fetch list is removed from
                         the new bag
        :rtype: Bag:  the filled bag, or None if the operation was cancelled
        :raises FetchError:  if a file cannot be retrieved or its size does not
                         match the size given in the fetch list
        :raises BagError:  if the bag does not have a fetch list
        """
        entries = bag.fetch_list()
        if entries is None:
            raise BagError("Bag does not have a fetch list: " + str(bag))

        out = bag.copy()
        for count, entry in enumerate(entries, 1):
            if self.is_cancelled():
                return None
            self.progress("fetching files", entry.path, count, len(entries))
            existing = out.get_bag_file(entry.path)
            if existing is not None and existing.exists():
                continue

            buf = io.BytesIO()
            self.fetcher.fetch(entry.url, buf)
            data = buf.getvalue()
            if entry.size is not None and len(data) != entry.size:
                raise FetchError(entry.url, "Size mismatch for {0}: expected {1} "
                                 "bytes, retrieved {2}".format(entry.path, entry.size,
                                                               len(data)))

            bagfile = BytesBagFile(entry.path, data)
            if entry.path == bag.dialect.bag_info_filename:
                info = parse_bag_info(decode_tag_text(data, out.encoding, entry.path),
                                      entry.path)
                out.set_bag_info(info, bagfile)
            else:
                out.put_bag_file(bagfile)

        if not keep_fetch_list:
            out.set_fetch_list(None)
        log.info("Filled %s: %d entries in fetch list", str(bag), len(entries))
        return out
