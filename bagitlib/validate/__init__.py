"""
This module provides classes for verifying bags.
"""
from .base import (FailMode, ValidationMessage, ValidationResults,
                   BagVerificationError, Verifier)
from .complete import CompleteVerifier
from .checksum import ManifestChecksumVerifier
from .valid import ValidVerifier
from .holey import ValidHoleyVerifier
from .oxum import PayloadOxumVerifier
