"""
a library for reading, writing, and verifying bags that follow the BagIt
packaging format (versions 0.93 through 1.0).

The Bag class (from the :py:mod:`access` subpackage) represents a bag held
in memory or loaded from a directory, an archive, or any PyFilesystem2
filesystem.  The :py:mod:`validate` subpackage provides the verifiers that
check bags for completeness and validity, and the :py:mod:`holes` module
converts bags to and from holey bags, whose payload is listed in a fetch list.
"""
from .constants import (Dialect, get_dialect, known_versions, DEFAULT_DIALECT,
                        LATEST_DIALECT)
from .access.bag import Bag, BagFile, Manifest, open_bag
from .access.exceptions import (BagError, BagParseError, UnknownVersionError,
                                HashingError, FetchError)
from .validate import (FailMode, ValidationResults, BagVerificationError,
                       CompleteVerifier, ManifestChecksumVerifier,
                       ValidVerifier, ValidHoleyVerifier, PayloadOxumVerifier)
from .holes import HolePuncher, Fetcher, FSFetcher, BagFiller
