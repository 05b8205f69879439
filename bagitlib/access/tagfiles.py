"""
Parsers and serializers for the tag files defined by the BagIt
specification: the bag declaration (bagit.txt), manifests, the fetch list
(fetch.txt), and the bag metadata file (bag-info.txt).

Parsers accept text (already decoded) with either LF or CRLF line endings;
serializers always produce LF line endings.
"""
import io, re, codecs, logging
from collections import OrderedDict, namedtuple

import fs.path, fs.errors
from bagit import _parse_tags, BagValidationError

from .exceptions import BagParseError
from ..constants import (DEFAULT_ENCODING, FIELD_PAYLOAD_OXUM, FIELD_BAG_SIZE,
                         FIELD_BAGGING_DATE, FIELD_BAG_COUNT)

log = logging.getLogger(__name__)

BAD_DECLARATION = "BAD_DECLARATION"
BAD_MANIFEST_LINE = "BAD_MANIFEST_LINE"
BAD_FETCH_LINE = "BAD_FETCH_LINE"
BAD_BAG_INFO_LINE = "BAD_BAG_INFO_LINE"
BAD_PAYLOAD_OXUM = "BAD_PAYLOAD_OXUM"
DUPLICATE_PATH = "DUPLICATE_PATH"
UNSAFE_PATH = "UNSAFE_PATH"

VERSION_FIELD = "BagIt-Version"
ENCODING_FIELD = "Tag-File-Character-Encoding"

_hexre = re.compile(r'^[0-9a-fA-F]+$')
_oxumre = re.compile(r'^\d+\.\d+$')
_wsre = re.compile(r'[ \t]+')
_foldre = re.compile(r'[ \t]*\r?\n[ \t]*')
_linere = re.compile(r'\r?\n')

def _strip_bom(text):
    if text.startswith(codecs.BOM_UTF8.decode('utf-8')):
        log.warning("tag file contains an unnecessary byte-order mark")
        text = text[1:]
    return text

def _lines(text):
    return _linere.split(_strip_bom(text))

class _TagText(io.StringIO):
    # _parse_tags() names the file in its error messages
    def __init__(self, text, name):
        super(_TagText, self).__init__(_strip_bom(text))
        self.name = name or "tag file"

def _read_fields(text, filename, code):
    # the (name, value) pairs in a tag file of "Field: value" lines, with
    # folded values joined by a single space
    try:
        for name, value in _parse_tags(_TagText(text, filename)):
            yield name, _foldre.sub(' ', value)
    except BagValidationError as ex:
        raise BagParseError(code, str(ex), filename)

def decode_tag_text(data, encoding=DEFAULT_ENCODING, filename=None):
    """
    decode the bytes read from a tag file into text
    """
    try:
        return data.decode(encoding)
    except LookupError:
        raise BagParseError(BAD_DECLARATION,
                            "Unsupported character encoding: "+encoding, filename)
    except UnicodeDecodeError as ex:
        raise BagParseError("BAD_ENCODING", "Content is not valid {0}: {1}"
                            .format(encoding, str(ex)), filename)

def normalize_path(path, filename=None, lineno=None):
    """
    normalize a path that is relative to the bag's root directory:
    backslashes are converted to forward slashes, redundant "./" and "//"
    components are collapsed, and ".." components are resolved.

    :raises BagParseError:  (code UNSAFE_PATH) if the path is absolute or
                            points outside of the bag
    """
    if path is None:
        return None
    npath = path.replace('\\', '/')
    if npath.startswith('/') or re.match(r'^[A-Za-z]:/', npath) or \
       npath.startswith('~'):
        raise BagParseError(UNSAFE_PATH, "Path is not relative to the bag: "+path,
                            filename, lineno)
    try:
        npath = fs.path.normpath(npath)
    except fs.errors.IllegalBackReference:
        raise BagParseError(UNSAFE_PATH, "Path points outside of the bag: "+path,
                            filename, lineno)
    if npath == '.':
        npath = ''
    return npath

class Declaration(object):
    """
    the contents of a bag declaration (bagit.txt) file
    """
    def __init__(self, version, encoding=DEFAULT_ENCODING):
        self.version = str(version)
        self.encoding = encoding

    def serialize(self):
        """
        return the text for the bagit.txt file
        """
        return "{0}: {1}\n{2}: {3}\n".format(VERSION_FIELD, self.version,
                                             ENCODING_FIELD, self.encoding)

    def __eq__(self, other):
        return isinstance(other, Declaration) and \
            (self.version, self.encoding) == (other.version, other.encoding)

    def __ne__(self, other):
        return not (self == other)

    def __repr__(self):
        return "Declaration({0}, {1})".format(repr(self.version), repr(self.encoding))

def parse_declaration(text, filename="bagit.txt"):
    """
    parse the contents of a bag declaration file.  The file must contain
    exactly two fields, BagIt-Version and Tag-File-Character-Encoding, in
    that order.
    :rtype: Declaration
    :raises BagParseError:  with code BAD_DECLARATION if the contents do
                            not comply
    """
    fields = list(_read_fields(text, filename, BAD_DECLARATION))

    expected = [VERSION_FIELD, ENCODING_FIELD]
    for i, (name, value) in enumerate(fields):
        if i >= len(expected):
            raise BagParseError(BAD_DECLARATION, "Unexpected field: "+name, filename)
        if name != expected[i]:
            raise BagParseError(BAD_DECLARATION, "Expected {0} field, found {1}"
                                .format(expected[i], name), filename)
        if not value:
            raise BagParseError(BAD_DECLARATION, "Empty value for "+name, filename)
    if len(fields) < len(expected):
        raise BagParseError(BAD_DECLARATION, "Missing required field: " +
                            ", ".join(expected[len(fields):]), filename)

    if not re.match(r'^\d+\.\d+$', fields[0][1]):
        raise BagParseError(BAD_DECLARATION, "Version must be MAJOR.MINOR, not "+
                            fields[0][1], filename)

    return Declaration(fields[0][1], fields[1][1])

## Manifests

def parse_manifest(text, filename=None):
    """
    parse the contents of a manifest (or tag manifest) file, returning an
    OrderedDict mapping normalized file paths to lower-case hex digests.
    Blank lines are ignored.

    :raises BagParseError:  if a line is malformed (BAD_MANIFEST_LINE), a
                            path is listed more than once (DUPLICATE_PATH), or
                            a path points outside the bag (UNSAFE_PATH)
    """
    out = OrderedDict()
    for i, line in enumerate(_lines(text)):
        if not line.strip():
            continue
        parts = _wsre.split(line.lstrip(), 1)
        if len(parts) != 2:
            raise BagParseError(BAD_MANIFEST_LINE, "Expected digest and path: "+line,
                                filename, i+1)
        digest, path = parts
        if not _hexre.match(digest):
            raise BagParseError(BAD_MANIFEST_LINE, "Not a hex digest: "+digest,
                                filename, i+1)
        if path.startswith('*'):
            # binary-mode marker written by md5sum-like tools
            path = path[1:]
        path = normalize_path(path, filename, i+1)
        if not path:
            raise BagParseError(BAD_MANIFEST_LINE, "Empty path", filename, i+1)
        if path in out:
            raise BagParseError(DUPLICATE_PATH, "Path listed more than once: "+path,
                                filename, i+1)
        out[path] = digest.lower()
    return out

def serialize_manifest(entries):
    """
    return the text of a manifest file listing the given entries in order
    :param entries:  a mapping (or sequence of pairs) of paths to digests
    """
    if hasattr(entries, 'items'):
        entries = entries.items()
    return "".join(["{0}  {1}\n".format(digest, path) for path, digest in entries])

## Fetch list

class FetchEntry(namedtuple("FetchEntry", "url size path")):
    """
    a line from a fetch list: the URL where a file can be retrieved from, its
    expected size in bytes (or None if unknown), and its path within the bag.
    """
    __slots__ = ()

    def size_str(self):
        return (self.size is None and '-') or str(self.size)

    def serialize(self):
        return "{0} {1} {2}\n".format(self.url, self.size_str(), self.path)

def parse_fetch(text, filename="fetch.txt"):
    """
    parse the contents of a fetch.txt file, returning a list of FetchEntry
    instances in the order they appear.

    :raises BagParseError:  if a line is malformed (BAD_FETCH_LINE) or a
                            target path is listed more than once
                            (DUPLICATE_PATH)
    """
    out = []
    seen = set()
    for i, line in enumerate(_lines(text)):
        if not line.strip():
            continue
        parts = _wsre.split(line.lstrip(), 2)
        if len(parts) != 3:
            raise BagParseError(BAD_FETCH_LINE, "Expected URL, size and path: "+line,
                                filename, i+1)
        url, size, path = parts
        if size == '-':
            size = None
        elif size.isdigit():
            size = int(size)
        else:
            raise BagParseError(BAD_FETCH_LINE, "Size must be a non-negative "
                                "number or '-': "+size, filename, i+1)
        path = normalize_path(path, filename, i+1)
        if path in seen:
            raise BagParseError(DUPLICATE_PATH, "Path listed more than once: "+path,
                                filename, i+1)
        seen.add(path)
        out.append(FetchEntry(url, size, path))
    return out

def serialize_fetch(entries):
    """
    return the text of a fetch.txt file listing the given entries in order
    """
    return "".join([e.serialize() for e in entries])

## Bag-info

def parse_oxum(value):
    """
    parse a Payload-Oxum value into a tuple of (octet count, file count)
    :raises BagParseError:  (code BAD_PAYLOAD_OXUM) if the value is malformed
    """
    value = (value or "").strip()
    if not _oxumre.match(value):
        raise BagParseError(BAD_PAYLOAD_OXUM, "Malformed Payload-Oxum value: "+value)
    octets, count = value.split('.')
    return (int(octets), int(count))

def format_oxum(octets, count):
    return "{0}.{1}".format(octets, count)

class BagInfo(object):
    """
    the metadata stored in a bag's bag-info.txt file.  This is an ordered,
    multi-valued mapping of field names to values in which names are
    matched case-insensitively but stored with their original case.
    """

    def __init__(self, items=None):
        self._items = []
        self._index = {}
        if items:
            if hasattr(items, 'items'):
                items = items.items()
            for name, value in items:
                if isinstance(value, (list, tuple)):
                    for v in value:
                        self.add(name, v)
                else:
                    self.add(name, value)

    def _reindex(self):
        self._index = {}
        for i, (name, value) in enumerate(self._items):
            self._index.setdefault(name.lower(), []).append(i)

    def add(self, name, value):
        """
        append a value for the named field, keeping any existing values
        """
        name = name.strip()
        if not name or ':' in name:
            raise ValueError("Illegal bag-info field name: "+repr(name))
        self._index.setdefault(name.lower(), []).append(len(self._items))
        self._items.append((name, str(value)))

    def put(self, name, value):
        """
        set the value of the named field, replacing all existing values.  If
        the field already exists, the new value takes the position of its
        first occurrence.
        """
        idx = self._index.get(name.strip().lower())
        if not idx:
            self.add(name, value)
            return
        first = idx[0]
        self._items[first] = (self._items[first][0], str(value))
        for i in reversed(idx[1:]):
            del self._items[i]
        self._reindex()

    def remove(self, name):
        """
        remove all values for the named field
        :return: True if the field was present
        """
        idx = self._index.get(name.strip().lower())
        if not idx:
            return False
        for i in reversed(idx):
            del self._items[i]
        self._reindex()
        return True

    def get(self, name, default=None):
        """
        return the first value of the named field, or default if not set
        """
        idx = self._index.get(name.strip().lower())
        if not idx:
            return default
        return self._items[idx[0]][1]

    def get_all(self, name):
        """
        return a list of all values of the named field
        """
        return [self._items[i][1] for i in self._index.get(name.strip().lower(), [])]

    def names(self):
        """
        return the distinct field names, in order of first appearance and
        with their original case
        """
        out = OrderedDict()
        for name, value in self._items:
            out.setdefault(name.lower(), name)
        return list(out.values())

    def items(self):
        """
        return the (name, value) pairs in order
        """
        return list(self._items)

    def copy(self):
        return BagInfo(self._items)

    def serialize(self):
        """
        return the text for a bag-info.txt file
        """
        out = []
        for name, value in self._items:
            lines = _linere.split(value.rstrip("\r\n"))
            out.append("{0}: {1}\n".format(name, lines[0]))
            for line in lines[1:]:
                out.append("  {0}\n".format(line))
        return "".join(out)

    def __contains__(self, name):
        return bool(self._index.get(name.strip().lower()))

    def __getitem__(self, name):
        idx = self._index.get(name.strip().lower())
        if not idx:
            raise KeyError(name)
        return self._items[idx[0]][1]

    def __setitem__(self, name, value):
        self.put(name, value)

    def __delitem__(self, name):
        if not self.remove(name):
            raise KeyError(name)

    def __len__(self):
        return len(self._items)

    def __iter__(self):
        return iter(self.names())

    def __eq__(self, other):
        return isinstance(other, BagInfo) and self._items == other._items

    def __ne__(self, other):
        return not (self == other)

    def __repr__(self):
        return "BagInfo({0})".format(repr(self._items))

def parse_bag_info(text, filename="bag-info.txt"):
    """
    parse the contents of a bag-info.txt file.  A line that starts with
    whitespace continues the value of the previous field; the continuation
    is joined to the value with a single space.

    :rtype: BagInfo
    :raises BagParseError:  if a line is not a field or a continuation, or
                            if a Payload-Oxum value is malformed
    """
    out = BagInfo()
    for name, value in _read_fields(text, filename, BAD_BAG_INFO_LINE):
        out.add(name, value)

    for oxum in out.get_all(FIELD_PAYLOAD_OXUM):
        try:
            parse_oxum(oxum)
        except BagParseError as ex:
            raise BagParseError(ex.code, "Malformed Payload-Oxum value: "+oxum, filename)
    return out

class DialectBagInfo(object):
    """
    a wrapper around a BagInfo instance that maps generic field accessors
    onto the field names used by a particular dialect.  (Version 0.93 of
    the BagIt specification calls the Bag-Size and Bagging-Date fields
    Package-Size and Packing-Date.)

    When reading, the dialect's own field name is consulted first, followed
    by the name used by current versions.  Values are always written under
    the dialect's own name.
    """

    def __init__(self, bag_info, dialect):
        self.info = bag_info
        self.dialect = dialect

    def _get(self, field, generic):
        out = self.info.get(field)
        if out is None and field != generic:
            out = self.info.get(generic)
        return out

    @property
    def bag_size(self):
        return self._get(self.dialect.bag_size_field, FIELD_BAG_SIZE)

    @bag_size.setter
    def bag_size(self, value):
        self.info.put(self.dialect.bag_size_field, value)

    @property
    def bagging_date(self):
        return self._get(self.dialect.bagging_date_field, FIELD_BAGGING_DATE)

    @bagging_date.setter
    def bagging_date(self, value):
        self.info.put(self.dialect.bagging_date_field, value)

    @property
    def payload_oxum(self):
        return self.info.get(FIELD_PAYLOAD_OXUM)

    @payload_oxum.setter
    def payload_oxum(self, value):
        parse_oxum(value)
        self.info.put(FIELD_PAYLOAD_OXUM, value)

    @property
    def bag_count(self):
        return self.info.get(FIELD_BAG_COUNT)

    @bag_count.setter
    def bag_count(self, value):
        self.info.put(FIELD_BAG_COUNT, value)
