"""Exceptions raised by the roster and service layers.

Search, debounce and highlight are total over text input and do not raise.
"""

from __future__ import annotations


class StudentSearchError(Exception):
    """Base class for errors raised by this package."""


class RosterFormatError(StudentSearchError):
    """A roster file could not be read or has no usable rows."""
