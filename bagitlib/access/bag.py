"""
The in-memory representation of a bag.

A Bag holds the bag's payload and tag files as BagFile instances keyed by
their paths relative to the bag's root directory, along with the parsed
forms of its special tag files: the declaration (bagit.txt), the payload
and tag manifests, the bag metadata (bag-info.txt), and the fetch list
(fetch.txt).  A Bag can be assembled in memory or loaded from a
FilesystemView; the rules that vary between versions of the BagIt
specification are taken from the Bag's Dialect.
"""
import os, io, codecs, shutil, logging
from collections import OrderedDict
from datetime import date

import fs.osfs, fs.errors, fs.path

from .exceptions import (BagError, BagParseError, IO, UNSUPPORTED_ALGORITHM)
from .fsview import FileFilter, open_view
from .tagfiles import (Declaration, BagInfo, DialectBagInfo, FetchEntry,
                       parse_declaration, parse_manifest, serialize_manifest,
                       parse_fetch, serialize_fetch, parse_bag_info,
                       normalize_path, decode_tag_text, format_oxum)
from ..constants import get_dialect, DEFAULT_DIALECT, PAYLOAD, TAG
from .. import hashing

log = logging.getLogger(__name__)

class BagFile(object):
    """
    a file within a bag, identified by its path relative to the bag's root
    directory.
    """

    def __init__(self, filepath):
        self.filepath = filepath

    @property
    def name(self):
        return fs.path.basename(self.filepath)

    def open(self):
        """
        return a fresh binary stream for reading the file's contents
        """
        raise NotImplementedError()

    def exists(self):
        """
        return True if the file's contents are available
        """
        return True

    @property
    def size(self):
        """
        the size of the file in bytes, or None if it is not known
        """
        return None

    def read(self):
        """
        return the entire contents of the file as bytes
        """
        with self.open() as fd:
            return fd.read()

    def __repr__(self):
        return "{0}({1})".format(self.__class__.__name__, repr(self.filepath))

class FSBagFile(BagFile):
    """
    a bag file whose contents are stored in a filesystem accessed through a
    FilesystemView
    """
    def __init__(self, filepath, node):
        """
        :param str filepath:   the path to the file relative to the bag root
        :param FileNode node:  the node in the FilesystemView holding the
                               file's contents
        """
        super(FSBagFile, self).__init__(filepath)
        self.node = node

    def open(self):
        return self.node.open()

    def exists(self):
        try:
            return not self.node.view.closed and self.node.isfile()
        except fs.errors.FSError:
            return False

    @property
    def size(self):
        return self.node.size

class BytesBagFile(BagFile):
    """
    a bag file whose contents are held in memory
    """
    def __init__(self, filepath, data):
        super(BytesBagFile, self).__init__(filepath)
        if isinstance(data, str):
            data = data.encode('utf-8')
        self.data = bytes(data)

    def open(self):
        return io.BytesIO(self.data)

    @property
    def size(self):
        return len(self.data)

class _GeneratedTagFile(BagFile):
    # A tag file rendered from a parsed object.  When loaded from a source
    # file, the source's bytes are served for as long as the object still
    # serializes the same as when it was loaded.
    def __init__(self, filepath, encoding="UTF-8", source=None):
        super(_GeneratedTagFile, self).__init__(filepath)
        self.encoding = encoding
        self.source = source
        self._loaded = None
        if source:
            self._loaded = self.serialize()

    def serialize(self):
        raise NotImplementedError()

    def is_modified(self):
        return not self.source or self.serialize() != self._loaded

    def open(self):
        if not self.is_modified():
            return self.source.open()
        return io.BytesIO(self.serialize().encode(self.encoding))

    def exists(self):
        if not self.is_modified():
            return self.source.exists()
        return True

    @property
    def size(self):
        if not self.is_modified():
            return self.source.size
        return len(self.serialize().encode(self.encoding))

class Manifest(_GeneratedTagFile):
    """
    a payload or tag manifest: a mapping of file paths to digests calculated
    with a single algorithm.
    """

    def __init__(self, filepath, algorithm, role=PAYLOAD, entries=None,
                 encoding="UTF-8", source=None):
        """
        :param str filepath:   the manifest's path relative to the bag root
        :param str algorithm:  the digest algorithm name (e.g. "md5")
        :param str role:       either PAYLOAD or TAG
        :param entries:        a mapping of file paths to hex digests
        """
        if role not in (PAYLOAD, TAG):
            raise ValueError("Manifest: unrecognized role: "+str(role))
        self.algorithm = algorithm
        self.role = role
        self._entries = OrderedDict()
        if entries:
            for path, digest in entries.items():
                self._entries[normalize_path(path)] = digest.lower()
        super(Manifest, self).__init__(filepath, encoding, source)

    def is_payload_manifest(self):
        return self.role == PAYLOAD

    def is_tag_manifest(self):
        return self.role == TAG

    def serialize(self):
        return serialize_manifest(self._entries)

    def add_entry(self, path, digest):
        """
        set the digest for a file path
        """
        self._entries[normalize_path(path)] = digest.lower()

    def remove_entry(self, path):
        """
        remove the entry for the given path
        :return: True if the path was listed
        """
        return self._entries.pop(normalize_path(path), None) is not None

    def get(self, path, default=None):
        return self._entries.get(normalize_path(path), default)

    def keys(self):
        return list(self._entries.keys())

    def items(self):
        return list(self._entries.items())

    def copy(self):
        out = Manifest(self.filepath, self.algorithm, self.role, None,
                       self.encoding)
        out._entries = OrderedDict(self._entries)
        out.source = self.source
        out._loaded = self._loaded
        return out

    def __contains__(self, path):
        return normalize_path(path) in self._entries

    def __getitem__(self, path):
        return self._entries[normalize_path(path)]

    def __iter__(self):
        return iter(self._entries)

    def __len__(self):
        return len(self._entries)

    def __eq__(self, other):
        return isinstance(other, Manifest) and \
            (self.filepath, self.algorithm, self.role, list(self._entries.items())) == \
            (other.filepath, other.algorithm, other.role, list(other._entries.items()))

    def __ne__(self, other):
        return not (self == other)

    __hash__ = BagFile.__hash__

class DeclarationFile(_GeneratedTagFile):
    """the bagit.txt tag file"""
    def __init__(self, filepath, declaration, source=None):
        self.value = declaration
        super(DeclarationFile, self).__init__(filepath, "UTF-8", source)

    def serialize(self):
        return self.value.serialize()

class BagInfoFile(_GeneratedTagFile):
    """the bag-info.txt tag file"""
    def __init__(self, filepath, bag_info, encoding="UTF-8", source=None):
        self.value = bag_info
        super(BagInfoFile, self).__init__(filepath, encoding, source)

    def serialize(self):
        return self.value.serialize()

class FetchListFile(_GeneratedTagFile):
    """the fetch.txt tag file"""
    def __init__(self, filepath, entries, encoding="UTF-8", source=None):
        self.value = entries
        super(FetchListFile, self).__init__(filepath, encoding, source)

    def serialize(self):
        return serialize_fetch(self.value)

def _as_bagfile(path, content):
    if isinstance(content, BagFile):
        if content.filepath == path:
            return content
        return _RenamedBagFile(path, content)
    if isinstance(content, (bytes, bytearray, str)):
        return BytesBagFile(path, content)
    if hasattr(content, 'read'):
        return BytesBagFile(path, content.read())
    raise TypeError("Unsupported content type for bag file: "+str(type(content)))

class _RenamedBagFile(BagFile):
    def __init__(self, filepath, delegate):
        super(_RenamedBagFile, self).__init__(filepath)
        self.delegate = delegate

    def open(self):
        return self.delegate.open()

    def exists(self):
        return self.delegate.exists()

    @property
    def size(self):
        return self.delegate.size

class Bag(object):
    """
    A representation of a bag.

    A Bag may be built up in memory (via put_payload_file(), add_manifest(),
    etc.) or loaded from an existing bag via Bag.load() or open_bag().  In
    the latter case, the Bag is bound to the FilesystemView it was loaded
    from; the Bag owns the view and releases it when the Bag is closed.  A
    Bag can be used as a context manager to ensure it gets closed.
    """

    def __init__(self, dialect=None, name=None, declare=True):
        """
        create an empty bag

        :param dialect:   the Dialect (or version string) that the bag should
                          comply with; if None, DEFAULT_DIALECT is used.
        :param str name:  a name for the bag (e.g. its nominal root directory
                          name)
        :param bool declare:  if True, the bag is given a bag declaration
                          matching its dialect
        """
        self._dialect = get_dialect(dialect or DEFAULT_DIALECT)
        self.name = name
        self._payload = OrderedDict()
        self._tags = OrderedDict()
        self._pmanifests = []
        self._tmanifests = []
        self._decl = None
        self._info = None
        self._fetch = None
        self._view = None
        if declare:
            self.set_declaration(Declaration(self._dialect.declaration_version,
                                             self._dialect.encoding))

    @property
    def dialect(self):
        """the Dialect describing the version of BagIt this bag follows"""
        return self._dialect

    @property
    def encoding(self):
        """
        the character encoding used for tag files
        """
        if self._decl is not None:
            return self._decl.value.encoding
        return self._dialect.encoding

    def __str__(self):
        if self._view:
            return str(self._view)
        return self.name or "(bag)"

    def __repr__(self):
        return "Bag({0}, {1})".format(repr(self.name), repr(self._dialect))

    ## Files

    def put_payload_file(self, path, content):
        """
        add a file to the bag's payload, replacing any existing one with the
        same path.  If the path does not start with the payload directory,
        it is taken to be relative to it.

        :param str path:  the path for the file
        :param content:   the contents as bytes, a readable binary stream, or
                          a BagFile
        :return: the BagFile added
        """
        path = normalize_path(path)
        if not self._dialect.is_payload_path(path):
            path = self._dialect.data_dir + '/' + path
        bf = _as_bagfile(path, content)
        self._tags.pop(path, None)
        self._payload[path] = bf
        return bf

    def put_tag_file(self, path, content):
        """
        add a tag file to the bag, replacing any existing one with the same
        path.  Use set_declaration(), set_bag_info(), set_fetch_list(), and
        add_manifest() for the special tag files defined by the BagIt
        specification.

        :raises ValueError:  if the path is in the payload directory
        """
        path = normalize_path(path)
        if self._dialect.is_payload_path(path):
            raise ValueError("put_tag_file: path is in the payload directory: "+path)
        bf = _as_bagfile(path, content)
        self._tags[path] = bf
        return bf

    def put_bag_file(self, bagfile, role=None):
        """
        add an existing BagFile to the bag.

        :param BagFile bagfile:  the file to add
        :param str role:  PAYLOAD or TAG.  If None, the role is determined by
                          whether the file's path is in the payload directory.
                          A payload file placed outside the payload directory
                          will render the bag incomplete.
        """
        path = normalize_path(bagfile.filepath)
        if path != bagfile.filepath:
            bagfile = _RenamedBagFile(path, bagfile)
        if role is None:
            role = (self._dialect.is_payload_path(path) and PAYLOAD) or TAG
        if role == PAYLOAD:
            self._tags.pop(path, None)
            self._payload[path] = bagfile
        else:
            self._payload.pop(path, None)
            self._tags[path] = bagfile
        return bagfile

    def remove_bag_file(self, path):
        """
        remove the file with the given path from the bag.  If the file is a
        manifest, the declaration, the bag metadata file, or the fetch list,
        that component is removed.

        :return: the removed BagFile or None if it was not found
        """
        path = normalize_path(path)
        if path in self._payload:
            return self._payload.pop(path)
        if path in self._tags:
            return self._tags.pop(path)
        for manifests in (self._pmanifests, self._tmanifests):
            for m in manifests:
                if m.filepath == path:
                    manifests.remove(m)
                    return m
        for attr in ("_decl", "_info", "_fetch"):
            special = getattr(self, attr)
            if special is not None and special.filepath == path:
                setattr(self, attr, None)
                return special
        return None

    def get_bag_file(self, path):
        """
        return the BagFile with the given path or None if the bag has no such
        file.
        """
        try:
            path = normalize_path(path)
        except BagParseError:
            return None
        out = self._payload.get(path)
        if out is None:
            out = self._tags.get(path)
        if out is not None:
            return out
        for m in self._pmanifests + self._tmanifests:
            if m.filepath == path:
                return m
        for special in (self._decl, self._info, self._fetch):
            if special is not None and special.filepath == path:
                return special
        return None

    def payload_files(self):
        """
        return a list of the payload files
        """
        return list(self._payload.values())

    def payload_paths(self):
        return list(self._payload.keys())

    def tag_files(self):
        """
        return a list of all the tag files, including the declaration, the
        manifests, the bag metadata file and the fetch list.
        """
        out = []
        if self._decl is not None:
            out.append(self._decl)
        out.extend(self._pmanifests)
        out.extend(self._tmanifests)
        if self._info is not None:
            out.append(self._info)
        if self._fetch is not None:
            out.append(self._fetch)
        out.extend(self._tags.values())
        return out

    def other_tag_files(self):
        """
        return the tag files that are not special to the BagIt specification
        """
        return list(self._tags.values())

    ## Manifests

    def payload_manifests(self):
        return list(self._pmanifests)

    def tag_manifests(self):
        return list(self._tmanifests)

    def manifests(self):
        return self._pmanifests + self._tmanifests

    def manifest(self, role, algorithm):
        """
        return the manifest with the given role (PAYLOAD or TAG) and
        algorithm, or None if the bag has no such manifest
        """
        manifests = (role == TAG and self._tmanifests) or self._pmanifests
        for m in manifests:
            if m.algorithm == algorithm:
                return m
        return None

    def put_manifest(self, manifest):
        """
        add a Manifest to the bag, replacing one with the same role and
        algorithm
        """
        manifests = (manifest.is_tag_manifest() and self._tmanifests) or \
                    self._pmanifests
        for i, m in enumerate(manifests):
            if m.algorithm == manifest.algorithm:
                manifests[i] = manifest
                return manifest
        manifests.append(manifest)
        return manifest

    def add_manifest(self, algorithm, role=PAYLOAD):
        """
        create (or recreate) the manifest for the given algorithm and role by
        calculating the digests of the files currently in the bag.  A payload
        manifest lists all payload files; a tag manifest lists all tag files
        except tag manifests.  Because a tag manifest covers the other
        manifests, it should be added after all payload manifests.

        :param str algorithm:  the digest algorithm name
        :param str role:       either PAYLOAD or TAG
        :return: the new Manifest
        :raises BagError:  if the algorithm is not supported by the dialect
                           (kind UNSUPPORTED_ALGORITHM) or a file cannot be
                           read (kind IO)
        """
        algorithm = algorithm.lower()
        if algorithm not in self._dialect.algorithms or \
           not hashing.is_supported_algorithm(algorithm):
            raise BagError("Algorithm not supported by {0}: {1}"
                           .format(self._dialect, algorithm), UNSUPPORTED_ALGORITHM)

        if role == TAG:
            filepath = self._dialect.tag_manifest_name(algorithm)
            files = [f for f in self.tag_files()
                     if f not in self._tmanifests and f.filepath != filepath]
        else:
            filepath = self._dialect.manifest_name(algorithm)
            files = self.payload_files()

        manifest = Manifest(filepath, algorithm, role, encoding=self.encoding)
        for bf in files:
            manifest.add_entry(bf.filepath, hashing.digest_file(bf, algorithm))
        log.debug("Created %s manifest %s with %d entries", role, filepath, len(manifest))
        return self.put_manifest(manifest)

    ## Special tag files

    def declaration(self):
        """
        return the bag's Declaration, or None if it has none
        """
        return self._decl.value if self._decl is not None else None

    def set_declaration(self, declaration):
        """
        set the bag's declaration; None removes it
        """
        if declaration is None:
            self._decl = None
        else:
            self._decl = DeclarationFile(self._dialect.declaration_filename,
                                         declaration)

    def bag_info(self):
        """
        return the bag's BagInfo metadata, or None if it has none
        """
        return self._info.value if self._info is not None else None

    def dialect_bag_info(self):
        """
        return a DialectBagInfo wrapper around the bag's metadata, creating
        an empty metadata set if necessary
        """
        if self._info is None:
            self.set_bag_info(BagInfo())
        return DialectBagInfo(self._info.value, self._dialect)

    def set_bag_info(self, bag_info, source=None):
        """
        set the bag's metadata; None removes the bag-info file

        :param BagFile source:  the file the metadata was read from, if any;
                                its bytes are served until the metadata is
                                changed.
        """
        if bag_info is None:
            self._info = None
        else:
            if not isinstance(bag_info, BagInfo):
                bag_info = BagInfo(bag_info)
            self._info = BagInfoFile(self._dialect.bag_info_filename,
                                     bag_info, self.encoding, source)

    def fetch_list(self):
        """
        return the bag's fetch list as a list of FetchEntry instances, or None
        if it has no fetch list
        """
        if self._fetch is None:
            return None
        return self._fetch.value

    def set_fetch_list(self, entries):
        """
        set the bag's fetch list; None removes it.
        :param entries:  a list of FetchEntry instances (or (url, size, path)
                         tuples)
        """
        if entries is None:
            self._fetch = None
            return
        out = []
        seen = set()
        for e in entries:
            e = FetchEntry(e[0], e[1], normalize_path(e[2]))
            if e.path in seen:
                raise BagError("Path listed more than once in fetch list: "+e.path)
            seen.add(e.path)
            out.append(e)
        self._fetch = FetchListFile(self._dialect.fetch_filename, out, self.encoding)

    def payload_oxum(self):
        """
        compute the Payload-Oxum ("<octets>.<file-count>") for the bag's
        current payload
        """
        octets = 0
        for bf in self._payload.values():
            size = bf.size
            if size is None:
                size = len(bf.read())
            octets += size
        return format_oxum(octets, len(self._payload))

    def update_bag_info(self, bagging_date=None):
        """
        set the generated bag metadata fields: Payload-Oxum, the bag size,
        and the bagging date (using the field names of the bag's dialect).

        :param str bagging_date:  the date to record; if None, today's date
                                  is used
        """
        info = self.dialect_bag_info()
        oxum = self.payload_oxum()
        info.payload_oxum = oxum
        info.bag_size = _human_size(int(oxum.split('.')[0]))
        info.bagging_date = bagging_date or date.today().isoformat()

    @classmethod
    def create(cls, payload, dialect=None, algorithms=("md5",), tag_algorithms=(),
               bag_info=None, name=None, bagging_date=None):
        """
        build a complete bag from a set of payload files: the payload is added,
        the bag metadata is generated, and the manifests are computed.

        :param payload:  a mapping of payload paths to contents (bytes, binary
                         streams, or BagFiles), or a list of (path, content)
                         pairs
        :param dialect:  the Dialect (or version string) for the bag
        :param algorithms:  the algorithms for the payload manifests
        :param tag_algorithms:  the algorithms for the tag manifests
        :param bag_info:  initial bag metadata as a BagInfo or a list of
                         (name, value) pairs; the generated fields are added
                         to it.
        :param str name:  a name for the bag
        :param str bagging_date:  the date to record as the bagging date
        """
        out = cls(dialect, name)
        if hasattr(payload, "items"):
            payload = payload.items()
        for path, content in payload:
            out.put_payload_file(path, content)
        if bag_info is not None:
            out.set_bag_info(bag_info)
        out.update_bag_info(bagging_date)
        for alg in algorithms:
            out.add_manifest(alg, PAYLOAD)
        for alg in tag_algorithms:
            out.add_manifest(alg, TAG)
        return out

    def make_holey(self, base_url, include_payload_directory_in_url=True,
                   include_tags=False, leave_tags=True, resume=False):
        """
        return a new holey version of this bag.  See
        bagitlib.holes.HolePuncher.make_holey() for details.
        """
        from ..holes import HolePuncher
        return HolePuncher().make_holey(self, base_url,
                                        include_payload_directory_in_url,
                                        include_tags, leave_tags, resume)

    ## Backing filesystem

    def bind_filesystem(self, view):
        """
        associate this bag with the FilesystemView that holds its contents.
        The bag takes ownership of the view.
        """
        self._view = view

    def filesystem(self):
        """
        return the FilesystemView this bag is bound to, or None
        """
        return self._view

    def close(self):
        """
        release the backing filesystem, if any
        """
        if self._view:
            self._view.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def copy(self, dialect=None):
        """
        return a new Bag that shares this bag's files but can be modified
        independently.  The copy is not bound to a filesystem.
        """
        out = Bag(dialect or self._dialect, self.name, declare=False)
        out._payload = OrderedDict(self._payload)
        out._tags = OrderedDict(self._tags)
        out._pmanifests = [m.copy() for m in self._pmanifests]
        out._tmanifests = [m.copy() for m in self._tmanifests]
        if self._decl is not None:
            out._decl = DeclarationFile(self._decl.filepath,
                                        Declaration(self._decl.value.version,
                                                    self._decl.value.encoding))
            out._decl.source = self._decl.source
            out._decl._loaded = self._decl._loaded
        if self._info is not None:
            out._info = BagInfoFile(self._info.filepath, self._info.value.copy(),
                                    self._info.encoding)
            out._info.source = self._info.source
            out._info._loaded = self._info._loaded
        if self._fetch is not None:
            out._fetch = FetchListFile(self._fetch.filepath, list(self._fetch.value),
                                       self._fetch.encoding)
            out._fetch.source = self._fetch.source
            out._fetch._loaded = self._fetch._loaded
        return out

    ## Persistence

    def save(self, dest):
        """
        write the bag's contents to a destination, creating directories as
        needed.

        :param dest:  either a path to a directory on local disk or an FS
                      instance (whose root becomes the bag's root)
        :raises BagError:  (kind IO) if writing fails
        """
        filesys = dest
        close = False
        try:
            if isinstance(dest, str):
                if not os.path.exists(dest):
                    os.makedirs(dest)
                filesys = fs.osfs.OSFS(dest)
                close = True

            for bf in self.payload_files() + self.tag_files():
                parent = fs.path.dirname("/"+bf.filepath)
                if parent != "/":
                    filesys.makedirs(parent, recreate=True)
                with bf.open() as src:
                    with filesys.openbin("/"+bf.filepath, 'w') as dst:
                        shutil.copyfileobj(src, dst)
            log.info("Saved %s to %s", str(self), str(dest))

        except (fs.errors.FSError, OSError, IOError) as ex:
            raise BagError("Failed to save bag to {0}: {1}".format(str(dest), str(ex)),
                           IO, ex)
        finally:
            if close:
                filesys.close()

    @classmethod
    def load(cls, view, dialect=None, name=None):
        """
        load the bag stored in a FilesystemView.  The returned Bag is bound
        to (and owns) the view.

        :param FilesystemView view:  the view whose root is the bag's root
                          directory
        :param dialect:   the Dialect (or version string) to interpret the bag
                          with.  If None, the dialect is chosen based on the
                          version given in the bag's declaration (or
                          DEFAULT_DIALECT if the declaration is missing).
        :raises UnknownVersionError:  if dialect is None and the bag declares
                          an unsupported version
        :raises BagParseError:  if a tag file cannot be parsed
        :raises BagError:  (kind IO) if the bag's files cannot be read
        """
        try:
            return cls._load(view, dialect, name)
        except (fs.errors.FSError, OSError, IOError) as ex:
            raise BagError("Failed to read bag from {0}: {1}".format(str(view), str(ex)),
                           IO, ex)

    @classmethod
    def _load(cls, view, dialect, name):
        root = view.root()

        decl = None
        declnode = root.child_file(get_dialect(dialect or DEFAULT_DIALECT)
                                   .declaration_filename)
        if declnode:
            declfile = FSBagFile(declnode.filepath, declnode)
            decl = parse_declaration(decode_tag_text(declfile.read(), 'utf-8',
                                                     declnode.filepath),
                                     declnode.filepath)
        if not dialect:
            dialect = (decl and get_dialect(decl.version)) or DEFAULT_DIALECT
        dialect = get_dialect(dialect)

        out = cls(dialect, name, declare=False)
        if decl:
            out._decl = DeclarationFile(declfile.filepath, decl, declfile)
        encoding = out.encoding
        try:
            codecs.lookup(encoding)
        except LookupError:
            raise BagParseError("BAD_DECLARATION", "Unsupported character encoding: "
                                + encoding, dialect.declaration_filename)

        for node in root.list_descendants(FileFilter()):
            path = node.filepath
            bf = FSBagFile(path, node)
            if '/' not in path:
                if path == dialect.declaration_filename:
                    continue
                mtype = dialect.parse_manifest_name(path)
                if mtype:
                    text = decode_tag_text(bf.read(), encoding, path)
                    m = Manifest(path, mtype[1], mtype[0], parse_manifest(text, path),
                                 encoding, bf)
                    if m.is_tag_manifest():
                        out._tmanifests.append(m)
                    else:
                        out._pmanifests.append(m)
                    continue
                if path == dialect.bag_info_filename:
                    text = decode_tag_text(bf.read(), encoding, path)
                    out._info = BagInfoFile(path, parse_bag_info(text, path),
                                            encoding, bf)
                    continue
                if path == dialect.fetch_filename:
                    text = decode_tag_text(bf.read(), encoding, path)
                    out._fetch = FetchListFile(path, parse_fetch(text, path),
                                               encoding, bf)
                    continue
            if dialect.is_payload_path(path):
                out._payload[path] = bf
            else:
                out._tags[path] = bf

        out.bind_filesystem(view)
        log.debug("Loaded %s as %s: %d payload files, %d manifests", str(view),
                  str(dialect), len(out._payload), len(out.manifests()))
        return out

def _human_size(octets):
    size = float(octets)
    for unit in ["bytes", "KB", "MB", "GB", "TB"]:
        if size < 1024 or unit == "TB":
            if unit == "bytes":
                return "{0} {1}".format(int(size), unit)
            return "{0:.1f} {1}".format(size, unit)
        size /= 1024.0

def open_bag(location, dialect=None):
    """
    A factory function for opening a bag; it returns a Bag instance loaded
    from the given location.  The location string is examined to determine
    the form of the bag: a directory, a serialized archive (zip or tar), or a
    PyFilesystem2 URL.  The returned bag should be closed when no longer
    needed (e.g. by using it as a context manager).

    :param str location:  the location of the bag
    :param dialect:       the Dialect (or version) to interpret the bag with;
                          if None, it is determined from the bag's declaration
    """
    view = open_view(location)
    name = os.path.basename(location.rstrip('/'))
    for ext in (".zip", ".tar", ".tar.gz", ".tar.bz2", ".tgz"):
        if name.endswith(ext):
            name = name[:-len(ext)]
            break
    try:
        return Bag.load(view, dialect, name)
    except Exception:
        view.close()
        raise
