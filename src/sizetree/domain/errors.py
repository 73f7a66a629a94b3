from __future__ import annotations

"""
Domain Error Taxonomy.

Every failure raised by the size-tree engine derives from SizeTreeError so
that interface layers can separate engine failures from programming bugs.
"""


class SizeTreeError(Exception):
    """Base class for all engine errors."""


class ConfigError(SizeTreeError, ValueError):
    """Invalid configuration, such as a malformed rename pattern."""


class RenameMismatchError(SizeTreeError):
    """A rename matcher returned a path outside of the candidate set."""


class StreamError(SizeTreeError):
    """An entry source could not produce its records."""


class EntryFormatError(SizeTreeError, ValueError):
    """A wire record is missing a required field or has the wrong shape."""


class NodeLookupError(SizeTreeError, LookupError):
    """A tree lookup was requested before any tree was loaded."""
