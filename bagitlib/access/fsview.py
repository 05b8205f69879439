"""
A read-oriented view of the tree of files below a bag's root directory.

The view wraps a filesystem provided by the fs (PyFilesystem2) package so
that a bag can be accessed the same way whether it sits in a directory on
disk, is serialized into an archive, or is assembled in memory.  Nodes in
the tree are light-weight handles that refer back to their view by
reference; only the view holds the underlying filesystem and only the view
closes it.
"""
import os, logging
import fs.osfs, fs.memoryfs, fs.tarfs, fs.zipfs, fs.errors, fs.path
from fs.copy import copy_fs
from fs import open_fs

log = logging.getLogger(__name__)

class NodeFilter(object):
    """
    a predicate over FilesystemNode instances.  Subclasses override accept().
    """
    def accept(self, node):
        raise NotImplementedError()

    def __call__(self, node):
        return self.accept(node)

class DirectoryFilter(NodeFilter):
    """accept only directories"""
    def accept(self, node):
        return node.isdir()

class FileFilter(NodeFilter):
    """accept only files"""
    def accept(self, node):
        return node.isfile()

class NoSymlinkFilter(NodeFilter):
    """reject symbolic links"""
    def accept(self, node):
        return not node.islink()

class IgnoringFilter(NodeFilter):
    """
    reject nodes whose name exactly matches one of a given set of names and,
    optionally, nodes that are symbolic links.
    """
    def __init__(self, names=None, ignore_symlinks=False):
        self.names = frozenset(names or [])
        self.ignore_symlinks = ignore_symlinks

    def accept(self, node):
        if node.name in self.names:
            return False
        if self.ignore_symlinks and node.islink():
            return False
        return True

class AndFilter(NodeFilter):
    """accept nodes accepted by all of the given filters"""
    def __init__(self, *filters):
        self.filters = [f for f in filters if f]

    def accept(self, node):
        return all(f(node) for f in self.filters)

class FilesystemNode(object):
    """
    a handle to a file or directory within a FilesystemView
    """
    def __init__(self, view, filepath):
        """
        :param FilesystemView view:  the view this node belongs to
        :param str filepath:   the path to the node relative to the view's
                               root, delimited by forward slashes; the root
                               itself is represented by an empty string.
        """
        self.view = view
        self.filepath = filepath

    @property
    def name(self):
        """the last segment of the node's path"""
        return fs.path.basename(self.filepath)

    @property
    def _fspath(self):
        return self.view._fspath(self.filepath)

    def exists(self):
        return self.view.fs.exists(self._fspath)

    def isdir(self):
        return self.view.fs.isdir(self._fspath)

    def isfile(self):
        return self.view.fs.isfile(self._fspath)

    def islink(self):
        try:
            return self.view.fs.islink(self._fspath)
        except fs.errors.ResourceNotFound:
            return False

    def __eq__(self, other):
        return isinstance(other, FilesystemNode) and other.view is self.view \
            and other.filepath == self.filepath

    def __ne__(self, other):
        return not (self == other)

    def __hash__(self):
        return hash((id(self.view), self.filepath))

    def __str__(self):
        return "{0}{1}".format(self.view.label, self.filepath)

    def __repr__(self):
        return "{0}({1})".format(self.__class__.__name__, str(self))

class FileNode(FilesystemNode):
    """
    a handle to a file within a FilesystemView
    """

    def open(self):
        """
        open a fresh binary stream for reading the file's contents.
        :raises IOError:  if the file does not exist or cannot be opened
        """
        try:
            return self.view.fs.openbin(self._fspath, 'r')
        except fs.errors.FSError as ex:
            raise IOError("Unable to open {0}: {1}".format(str(self), str(ex)))

    @property
    def size(self):
        """
        the size of the file in bytes, or None if it cannot be determined
        """
        try:
            return self.view.fs.getsize(self._fspath)
        except fs.errors.FSError:
            return None

class DirNode(FilesystemNode):
    """
    a handle to a directory within a FilesystemView
    """

    def _node_for(self, name):
        path = name
        if self.filepath:
            path = self.filepath + '/' + name
        if self.view.fs.isdir(self.view._fspath(path)):
            return DirNode(self.view, path)
        return FileNode(self.view, path)

    def list_children(self, filter=None):
        """
        return the nodes for the immediate children of this directory,
        sorted by name.
        :param filter:  a NodeFilter (or function) that selects nodes to
                        include
        """
        out = [self._node_for(n)
               for n in sorted(self.view.fs.listdir(self._fspath))]
        if filter:
            out = [n for n in out if filter(n)]
        return out

    def child(self, name):
        """
        return the node for the named child, or None if it does not exist
        """
        node = self._node_for(name)
        if not node.exists():
            return None
        return node

    def child_dir(self, name):
        """
        return the node for the named child directory, or None if there is
        no such directory
        """
        node = self.child(name)
        if not isinstance(node, DirNode):
            return None
        return node

    def child_file(self, name):
        """
        return the node for the named child file, or None if there is no
        such file
        """
        node = self.child(name)
        if not isinstance(node, FileNode) or not node.isfile():
            return None
        return node

    def list_descendants(self, filter=None, descend_filter=None):
        """
        return all nodes below this directory, depth first.

        :param filter:   a NodeFilter that selects the nodes to return
        :param descend_filter:  a NodeFilter that selects both the
                         directories to descend into and the nodes that
                         are eligible to be returned.
        """
        out = []
        for node in self.list_children(descend_filter):
            if filter is None or filter(node):
                out.append(node)
            if isinstance(node, DirNode):
                out.extend(node.list_descendants(filter, descend_filter))
        return out

class FilesystemView(object):
    """
    a view onto a filesystem rooted at a particular directory.  The view
    owns the filesystem: calling close() releases it.
    """

    def __init__(self, filesys, root="", label=None):
        """
        wrap a directory within a filesystem
        :param filesys FS:   the filesystem, as an FS instance
        :param str root:     the path to the directory within the filesystem
                             that should serve as the root of the view
        :param str label:    a prefix to use to represent the filesystem in
                             the string representation of nodes.  It
                             will be prepended to the node path, so it should
                             include any desired delimiters.
        """
        self.fs = filesys
        self._root = fs.path.relpath(fs.path.normpath(root or ""))
        if label is None:
            label = repr(filesys) + ":"
            if self._root:
                label += self._root + "/"
        self.label = label
        self._closed = False

    def _fspath(self, filepath):
        return fs.path.join("/", self._root, filepath)

    def root(self):
        """
        return the DirNode for the root of this view
        """
        return DirNode(self, "")

    def node(self, filepath):
        """
        return the node for the given path relative to the root, or None if
        it does not exist.
        """
        filepath = fs.path.relpath(fs.path.normpath(filepath))
        if not filepath:
            return self.root()
        path = self._fspath(filepath)
        if self.fs.isdir(path):
            return DirNode(self, filepath)
        if self.fs.exists(path):
            return FileNode(self, filepath)
        return None

    @property
    def closed(self):
        return self._closed

    def close(self):
        """
        release the underlying filesystem.  This can be called multiple times;
        errors while closing are logged and otherwise ignored.
        """
        if self._closed:
            return
        self._closed = True
        try:
            self.fs.close()
        except (fs.errors.FSError, OSError, IOError) as ex:
            log.warning("Problem closing filesystem for %s: %s", self.label, str(ex))

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __str__(self):
        return self.label

_ext_fs_lookup = {
    ".zip":      fs.zipfs.ZipFS,
    ".tar":      fs.tarfs.TarFS,
    ".tar.gz":   fs.tarfs.TarFS,
    ".tar.bz2":  fs.tarfs.TarFS,
    ".tgz":      fs.tarfs.TarFS
}

def is_archive(location):
    """
    return True if the given file name has an extension for a supported
    archive format.
    """
    return any(location.endswith(ext) for ext in _ext_fs_lookup)

def view_for_directory(dirpath):
    """
    return a FilesystemView for a bag in a directory on local disk
    """
    dirpath = dirpath.rstrip("/") or "/"
    return FilesystemView(fs.osfs.OSFS(dirpath), "", "bag:"+dirpath+"/")

def view_for_memory(filesys=None, root="", label="mem:"):
    """
    return a FilesystemView over an in-memory filesystem
    :param filesys:  a MemoryFS instance to wrap; if None, a new empty one
                     is created.
    """
    if filesys is None:
        filesys = fs.memoryfs.MemoryFS()
    return FilesystemView(filesys, root, label)

def view_for_archive(location):
    """
    return a FilesystemView for a bag serialized into an archive file (zip
    or tar).  The archive is read once and its contents are copied into
    memory; the archive file is closed before returning.  The root of the
    view is the directory within the archive that contains bagit.txt (or
    the archive's root if it holds none).
    """
    opener = None
    for ext in _ext_fs_lookup.keys():
        if location.endswith(ext):
            opener = _ext_fs_lookup[ext]
            break
    if not opener:
        raise ValueError("view_for_archive: archive format not recognized for "
                         + location)

    mem = fs.memoryfs.MemoryFS()
    with opener(location) as arch:
        copy_fs(arch, mem)

    root = ""
    if not mem.isfile("/bagit.txt"):
        for d in mem.walk.dirs():
            if mem.isfile(fs.path.join(d, "bagit.txt")):
                root = d
                break
        if not root:
            dirs = mem.listdir("/")
            if len(dirs) == 1 and mem.isdir("/"+dirs[0]):
                root = dirs[0]
    label = os.path.basename(location)+':'
    if root:
        label += fs.path.relpath(root)+'/'
    return FilesystemView(mem, root, label)

def open_view(location):
    """
    A factory function for opening a FilesystemView onto a bag given its
    location.  The location string is examined to determine the form of
    the bag: a directory, a serialized archive file, or a PyFilesystem2
    URL (e.g. "mem://" or "osfs:///path/to/bag").
    """
    if not location:
        raise ValueError("open_view: empty location string")

    if '://' in location:
        return FilesystemView(open_fs(location), "", location+':')

    if not os.path.exists(location):
        raise OSError(2, "File not found: "+location)

    if os.path.isdir(location):
        return view_for_directory(location)

    if os.path.isfile(location):
        return view_for_archive(location)

    raise ValueError("open_view: unsupported bag type/location: "+location)
