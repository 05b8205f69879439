"""
Common data about the BagIt format, including the table of supported
dialects (versions of the BagIt specification).
"""
import re

from .access.exceptions import UnknownVersionError

DATA_DIR = "data"
DECLARATION_FILE = "bagit.txt"
FETCH_FILE = "fetch.txt"
DEFAULT_ENCODING = "UTF-8"

PAYLOAD = "payload"
TAG = "tag"

FIELD_PAYLOAD_OXUM = "Payload-Oxum"
FIELD_BAG_SIZE = "Bag-Size"
FIELD_BAGGING_DATE = "Bagging-Date"
FIELD_PACKAGE_SIZE = "Package-Size"
FIELD_PACKING_DATE = "Packing-Date"
FIELD_BAG_COUNT = "Bag-Count"
FIELD_BAG_GROUP_IDENTIFIER = "Bag-Group-Identifier"
FIELD_SOFTWARE_AGENT = "Bag-Software-Agent"

BASE_ALGORITHMS = ("md5", "sha1", "sha256", "sha512")

def _2int(sint):
    try:
        return int(sint)
    except ValueError:
        return -1

class Version(object):
    """
    a parsed BagIt version string.  Instances compare by their numeric fields,
    so that "0.100" sorts after "0.97".
    """

    def __init__(self, vers):
        if not isinstance(vers, str):
            raise TypeError("Input version is not a str: " + repr(vers))
        self._vs = vers.strip()
        self.fields = tuple(_2int(v) for v in self._vs.split('.'))

    def __str__(self):
        return self._vs

    def __repr__(self):
        return "Version({0})".format(repr(self._vs))

    def __hash__(self):
        return hash(self.fields)

    def __eq__(self, other):
        if not isinstance(other, Version):
            other = Version(str(other))
        return self.fields == other.fields

    def __ne__(self, other):
        return not (self == other)

    def __lt__(self, other):
        return self.fields < other.fields

class Dialect(object):
    """
    an immutable description of the file names, field names and structural
    rules that apply to a particular version of the BagIt specification.  A
    single Bag implementation consults its dialect rather than being
    specialized per version.
    """
    __slots__ = ("_version", "_declvers", "_datadir", "_declfile", "_infofile",
                 "_fetchfile", "_mantmpl", "_tagmantmpl", "_alttagmantmpls",
                 "_algs", "_tagdirs", "_sizefld", "_datefld", "_enc")

    def __init__(self, version, bag_info_filename="bag-info.txt",
                 algorithms=BASE_ALGORITHMS, allow_tag_directories=True,
                 bag_size_field=FIELD_BAG_SIZE,
                 bagging_date_field=FIELD_BAGGING_DATE,
                 declaration_version=None, encoding=DEFAULT_ENCODING,
                 data_dir=DATA_DIR, declaration_filename=DECLARATION_FILE,
                 fetch_filename=FETCH_FILE,
                 manifest_template="manifest-{0}.txt",
                 tag_manifest_template="tagmanifest-{0}.txt",
                 read_tag_manifest_templates=("tag-manifest-{0}.txt",)):
        set_ = super(Dialect, self).__setattr__
        set_("_version", Version(version))
        set_("_declvers", declaration_version or version)
        set_("_datadir", data_dir)
        set_("_declfile", declaration_filename)
        set_("_infofile", bag_info_filename)
        set_("_fetchfile", fetch_filename)
        set_("_mantmpl", manifest_template)
        set_("_tagmantmpl", tag_manifest_template)
        set_("_alttagmantmpls", tuple(read_tag_manifest_templates))
        set_("_algs", tuple(algorithms))
        set_("_tagdirs", bool(allow_tag_directories))
        set_("_sizefld", bag_size_field)
        set_("_datefld", bagging_date_field)
        set_("_enc", encoding)

    def __setattr__(self, name, value):
        raise AttributeError("Dialect instances are immutable")

    @property
    def version(self):
        """the version of the BagIt specification, as a Version instance"""
        return self._version

    @property
    def declaration_version(self):
        """the version string expected in the bag declaration (bagit.txt)"""
        return self._declvers

    @property
    def data_dir(self):
        """the name of the payload directory"""
        return self._datadir

    @property
    def declaration_filename(self):
        return self._declfile

    @property
    def bag_info_filename(self):
        return self._infofile

    @property
    def fetch_filename(self):
        return self._fetchfile

    @property
    def manifest_template(self):
        return self._mantmpl

    @property
    def tag_manifest_template(self):
        return self._tagmantmpl

    @property
    def read_tag_manifest_templates(self):
        """additional tag manifest name templates accepted when reading"""
        return self._alttagmantmpls

    @property
    def algorithms(self):
        """the digest algorithms allowed in manifests for this version"""
        return self._algs

    @property
    def allow_tag_directories(self):
        """
        True if directories other than the payload directory are permitted
        at the root of the bag
        """
        return self._tagdirs

    @property
    def bag_size_field(self):
        return self._sizefld

    @property
    def bagging_date_field(self):
        return self._datefld

    @property
    def encoding(self):
        """the default character encoding for tag files"""
        return self._enc

    def manifest_name(self, algorithm):
        """
        return the name of the payload manifest file for a given algorithm
        """
        return self._mantmpl.format(algorithm)

    def tag_manifest_name(self, algorithm):
        """
        return the name of the tag manifest file for a given algorithm
        """
        return self._tagmantmpl.format(algorithm)

    def parse_manifest_name(self, filename):
        """
        determine whether a file name is the name of a manifest.  Besides
        the names this dialect writes, the older "tag-manifest-" spelling of
        tag manifest names is recognized.
        :return: a tuple of (role, algorithm) where role is PAYLOAD or TAG,
                 or None if the name is not a manifest name
        :rtype: tuple
        """
        tmpls = [(TAG, self._tagmantmpl)] + \
                [(TAG, t) for t in self._alttagmantmpls] + \
                [(PAYLOAD, self._mantmpl)]
        for role, tmpl in tmpls:
            pfx, sfx = tmpl.split("{0}")
            if filename.startswith(pfx) and filename.endswith(sfx) and \
               len(filename) > len(pfx) + len(sfx):
                alg = filename[len(pfx):len(filename)-len(sfx)]
                if re.match(r'^[\w\-]+$', alg):
                    return (role, alg)
        return None

    def is_payload_path(self, path):
        """
        return True if the given (normalized) path is located in the
        payload directory
        """
        return path.startswith(self._datadir + '/')

    def __eq__(self, other):
        return isinstance(other, Dialect) and self._version == other._version

    def __ne__(self, other):
        return not (self == other)

    def __hash__(self):
        return hash(self._version)

    def __str__(self):
        return "BagIt v{0}".format(self._version)

    def __repr__(self):
        return "Dialect({0})".format(repr(str(self._version)))

V0_93 = Dialect("0.93", bag_info_filename="package-info.txt",
                allow_tag_directories=False,
                bag_size_field=FIELD_PACKAGE_SIZE,
                bagging_date_field=FIELD_PACKING_DATE)
V0_94 = Dialect("0.94", bag_info_filename="package-info.txt",
                allow_tag_directories=False)
V0_95 = Dialect("0.95", bag_info_filename="package-info.txt",
                allow_tag_directories=False)
V0_96 = Dialect("0.96", allow_tag_directories=False)
V0_97 = Dialect("0.97")
V1_0  = Dialect("1.0", algorithms=BASE_ALGORITHMS + ("sha224", "sha384"))

DIALECTS = dict((str(d.version), d) for d in [V0_93, V0_94, V0_95, V0_96,
                                               V0_97, V1_0])
LATEST_DIALECT = V1_0
DEFAULT_DIALECT = V0_97

def known_versions():
    """
    return the list of supported version strings, oldest first
    """
    return [str(d.version) for d in sorted(DIALECTS.values(),
                                           key=lambda d: d.version)]

def get_dialect(version):
    """
    return the Dialect for the given version.
    :param version:  the version as a string (e.g. "0.97"), Version or Dialect
    :raises UnknownVersionError:  if the version is not supported
    """
    if isinstance(version, Dialect):
        return version
    out = DIALECTS.get(str(version).strip())
    if not out:
        raise UnknownVersionError(str(version))
    return out
