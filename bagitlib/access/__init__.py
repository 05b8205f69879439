"""
A subpackage for accessing a bag's contents.

The :py:mod:`fsview` module provides a read-only view over the filesystem
holding a bag; :py:mod:`tagfiles` parses and writes the tag files defined by
the BagIt specification; and :py:mod:`bag` provides the Bag class.
"""
