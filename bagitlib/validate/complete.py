"""
This module provides the verifier that checks whether a bag is complete:
that it has the structure required by its version of the BagIt
specification and that every file listed in its manifests is present.  It
does not check the digests of files; see the checksum module for that.
"""
import logging

from .base import Verifier, ValidationResults, FailMode
from ..access.fsview import AndFilter, DirectoryFilter, FileFilter, IgnoringFilter
from ..access.tagfiles import normalize_path
from ..access.exceptions import BagParseError

NO_PAYLOAD_MANIFEST = "NO_PAYLOAD_MANIFEST"
NO_DECLARATION = "NO_DECLARATION"
WRONG_VERSION = "WRONG_VERSION"
PAYLOAD_NOT_IN_PAYLOAD_DIRECTORY = "PAYLOAD_NOT_IN_PAYLOAD_DIRECTORY"
TAG_IN_PAYLOAD_MANIFEST = "TAG_IN_PAYLOAD_MANIFEST"
PAYLOAD_FILE_NOT_IN_PAYLOAD_MANIFEST = "PAYLOAD_FILE_NOT_IN_PAYLOAD_MANIFEST"
MISSING_PAYLOAD_FILE = "MISSING_PAYLOAD_FILE"
MISSING_TAG_FILE = "MISSING_TAG_FILE"
DIRECTORY_NOT_ALLOWED_IN_BAG_DIR = "DIRECTORY_NOT_ALLOWED_IN_BAG_DIR"

log = logging.getLogger(__name__)

_STOP = "stop"
_CANCELLED = "cancelled"

def missing_file(result, manifest, filepath):
    """
    record in a result that a file listed in a manifest is missing
    :return: the new ValidationMessage
    """
    if manifest.is_payload_manifest():
        return result.fail(MISSING_PAYLOAD_FILE, "Payload file {1} in manifest {0} "
                           "missing from bag.", manifest.filepath, filepath)
    else:
        return result.fail(MISSING_TAG_FILE, "Tag file {1} in manifest {0} "
                           "missing from bag.", manifest.filepath, filepath)

class CompleteVerifier(Verifier):
    """
    A verifier that checks that a bag is complete.  The checks are run in
    the following steps:

    1. the bag has at least one payload manifest and a declaration whose
       version matches the bag's dialect
    2. every payload file is in the payload directory
    3. no payload manifest lists a tag file
    4. every payload file is listed in at least one payload manifest
    5. every file listed in a payload manifest exists
    6. every file listed in a tag manifest exists
    7. if the bag is bound to a filesystem, no disallowed directories exist
       at the bag's root and every payload file found in the filesystem is
       part of the bag.
    """

    def __init__(self, fail_mode=FailMode.FAIL_STAGE,
                 missing_declaration_tolerant=False,
                 additional_directories_tolerant=False,
                 ignore_additional_directories=None,
                 ignore_symlinks=False, subscribers=None):
        """
        :param str fail_mode:  the FailMode policy (default: FAIL_STAGE)
        :param bool missing_declaration_tolerant:  if True, do not require a
                        bag declaration (nor check its version)
        :param bool additional_directories_tolerant:  if True, allow
                        directories besides the payload directory at the bag's
                        root even for versions of BagIt that forbid them
        :param list ignore_additional_directories:  names of directories (or
                        files) to ignore when examining the filesystem
        :param bool ignore_symlinks:  if True, symbolic links in the payload
                        directory are ignored when examining the filesystem
        :param subscribers:  a list of progress subscribers
        """
        super(CompleteVerifier, self).__init__(fail_mode, subscribers)
        self.missing_declaration_tolerant = missing_declaration_tolerant
        self.additional_directories_tolerant = additional_directories_tolerant
        self.ignore_additional_directories = list(ignore_additional_directories or [])
        self.ignore_symlinks = ignore_symlinks

    def _failed(self, result, code, template, *args):
        result.fail(code, template, *args)
        log.warning(result.messages[-1].message)
        return self.fail_mode == FailMode.FAIL_FAST

    def verify(self, bag):
        """
        check that the given bag is complete.

        :param Bag bag:  the bag to check; it is not modified.
        :rtype: ValidationResults:  the results, or None if the verification
                                    was cancelled
        """
        result = ValidationResults(str(bag))
        steps = [self._check_declaration,
                 self._check_payload_directory,
                 self._check_no_tags_in_payload_manifests,
                 self._check_payload_in_manifests,
                 self._check_payload_manifest_files_exist,
                 self._check_tag_manifest_files_exist,
                 self._check_filesystem]

        for step in steps:
            if self.is_cancelled():
                return None
            status = step(bag, result)
            if status == _CANCELLED or self.is_cancelled():
                return None
            if status == _STOP:
                return result
            if self.fail_mode == FailMode.FAIL_STEP and not result.ok():
                return result

        log.info("Completed verification that bag is complete.")
        log.info("Note that this a verification of completeness, not validity. "
                 "A bag may be complete without being valid, though a valid "
                 "bag must be complete.")
        log.info("Result of verification that complete: %s", result.summary)
        return result

    def _check_declaration(self, bag, result):
        log.debug("Checking that at least one payload manifest")
        if not bag.payload_manifests():
            if self._failed(result, NO_PAYLOAD_MANIFEST,
                            "Bag does not have any payload manifests."):
                return _STOP

        if self.missing_declaration_tolerant:
            return None

        log.debug("Checking that has %s", bag.dialect.declaration_filename)
        decl = bag.declaration()
        if decl is None:
            if self._failed(result, NO_DECLARATION, "Bag does not have {0}.",
                            bag.dialect.declaration_filename):
                return _STOP

        log.debug("Checking that %s is right version", bag.dialect.declaration_filename)
        if decl is not None and decl.version != bag.dialect.declaration_version:
            if self._failed(result, WRONG_VERSION, "Version is not {0}.",
                            bag.dialect.declaration_version):
                return _STOP
        return None

    def _check_payload_directory(self, bag, result):
        log.debug("Checking that all payload files in data directory")
        datadir = bag.dialect.data_dir
        files = bag.payload_files()
        for count, bagfile in enumerate(files, 1):
            if self.is_cancelled():
                return _CANCELLED
            self.progress("verifying payload file in data directory",
                          bagfile.filepath, count, len(files))
            if not bag.dialect.is_payload_path(bagfile.filepath):
                if self._failed(result, PAYLOAD_NOT_IN_PAYLOAD_DIRECTORY,
                                "Payload file {0} not in the {1} directory.",
                                bagfile.filepath, datadir):
                    return _STOP
        return None

    def _check_no_tags_in_payload_manifests(self, bag, result):
        log.debug("Checking that no tag files are listed in payload manifests.")
        for manifest in bag.payload_manifests():
            if self.is_cancelled():
                return _CANCELLED
            self.progress("checking payload manifest for tag files",
                          manifest.filepath)
            for path in manifest:
                try:
                    npath = normalize_path(path)
                except BagParseError:
                    npath = path
                if not bag.dialect.is_payload_path(npath):
                    if self._failed(result, TAG_IN_PAYLOAD_MANIFEST,
                                    "Tag file is listed in payload manifest {0}: {1}",
                                    manifest.filepath, path):
                        return _STOP
        return None

    def _check_payload_in_manifests(self, bag, result):
        log.debug("Checking that every payload file in at least one manifest")
        manifests = bag.payload_manifests()
        files = bag.payload_files()
        for count, bagfile in enumerate(files, 1):
            if self.is_cancelled():
                return _CANCELLED
            self.progress("verifying payload file in at least one manifest",
                          bagfile.filepath, count, len(files))
            if not any(bagfile.filepath in m for m in manifests):
                if self._failed(result, PAYLOAD_FILE_NOT_IN_PAYLOAD_MANIFEST,
                                "Payload file {0} not found in any payload manifest.",
                                bagfile.filepath):
                    return _STOP
        return None

    def _check_payload_manifest_files_exist(self, bag, result):
        log.debug("Checking that every payload file exists")
        return self._check_manifests(bag, bag.payload_manifests(), result,
                                     "verifying payload files in manifest exist")

    def _check_tag_manifest_files_exist(self, bag, result):
        log.debug("Checking that every tag file exists")
        return self._check_manifests(bag, bag.tag_manifests(), result,
                                     "verifying tag files in manifest exist")

    def _check_manifests(self, bag, manifests, result, activity):
        for count, manifest in enumerate(manifests, 1):
            self.progress(activity, manifest.filepath, count, len(manifests))
            status = self._check_manifest(manifest, bag, result)
            if status:
                return status
        return None

    def _check_manifest(self, manifest, bag, result):
        log.debug("Checking manifest %s", manifest.filepath)
        paths = manifest.keys()
        for count, filepath in enumerate(paths, 1):
            if self.is_cancelled():
                return _CANCELLED
            self.progress("verifying files in manifest exist", filepath,
                          count, len(paths))
            bagfile = bag.get_bag_file(filepath)
            if bagfile is None or not bagfile.exists():
                missing_file(result, manifest, filepath)
                log.warning("File %s in manifest %s missing from bag.",
                            filepath, manifest.filepath)
                if self.fail_mode == FailMode.FAIL_FAST:
                    return _STOP
        return None

    def _check_filesystem(self, bag, result):
        view = bag.filesystem()
        if view is None or view.closed:
            log.debug("Not an existing bag")
            return None

        root = view.root()
        datadir = bag.dialect.data_dir
        allow_tag_dirs = bag.dialect.allow_tag_directories or \
                         self.additional_directories_tolerant

        if not allow_tag_dirs:
            log.debug("Checking that only directory is data directory")
            dirs = root.list_children(AndFilter(DirectoryFilter(),
                            IgnoringFilter(self.ignore_additional_directories)))
            for node in dirs:
                if self.is_cancelled():
                    return _CANCELLED
                if node.name != datadir:
                    if self._failed(result, DIRECTORY_NOT_ALLOWED_IN_BAG_DIR,
                                    "Directory {0} not allowed in bag_dir.",
                                    node.name):
                        return _STOP
            if self.fail_mode == FailMode.FAIL_STEP and not result.ok():
                return _STOP

        log.debug("Checking that all payload files on disk included in bag")
        datanode = root.child_dir(datadir)
        if datanode is None:
            return None
        nodes = datanode.list_descendants(FileFilter(),
                            IgnoringFilter(self.ignore_additional_directories,
                                           self.ignore_symlinks))
        for count, node in enumerate(nodes, 1):
            if self.is_cancelled():
                return _CANCELLED
            self.progress("verifying payload files on disk are in bag",
                          node.filepath, count, len(nodes))
            if bag.get_bag_file(node.filepath) is None:
                if self._failed(result, PAYLOAD_FILE_NOT_IN_PAYLOAD_MANIFEST,
                                "Payload file {0} not found in any payload manifest.",
                                node.filepath):
                    return _STOP
        return None
