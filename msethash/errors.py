"""
Exceptions
==========

Every error raised by the package derives from ``MultisetHashError``. Errors
caused by a bad argument value also derive from ``ValueError`` so callers
that only care about "bad input" can catch that instead.
"""


class MultisetHashError(Exception):
    """Base class for all multiset hash errors."""


class PendingCommitError(MultisetHashError):
    """An object is still being streamed in and has not been committed."""


class MultiplicityOverflowError(MultisetHashError, ValueError):
    """A multiplicity cannot be used as an unambiguous scalar of the group."""


class IncompatibleAccumulatorError(MultisetHashError, ValueError):
    """Two accumulators use different groups or hash functions."""


class UnsupportedHashError(MultisetHashError, ValueError):
    """The hash function is unknown or its digest is too narrow."""


class GroupSetupError(MultisetHashError):
    """The pairing library could not build the requested curve."""


class DigestDecodeError(MultisetHashError, ValueError):
    """Bytes do not decode to an element of the digest group."""
