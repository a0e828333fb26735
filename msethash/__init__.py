"""
Homomorphic Multiset Hashing
============================

An incremental hash of a multiset of byte strings whose digest depends only
on the objects and their multiplicities, never on insertion order. Partial
digests computed independently merge with a single group operation.

The digest is an element of G1 of a charm-crypto pairing curve; objects are
mapped to the group by a pluggable wide hash function followed by the
curve's hash-to-element map.

Modules:
--------
- accumulator: the MultisetHash state machine (add, update, end_update,
  finalize, combine)
- hashing: the object hasher (bytes -> G1) and hash function plumbing
- groups: group setup and canonical element encoding
- config: environment-driven defaults
- errors: exception hierarchy

Usage:
------
    from msethash import MultisetHash

    a = MultisetHash()
    a.add(b"cat", 2)
    a.add(b"dog", 2)

    b = MultisetHash()
    for word in (b"dog", b"cat", b"cat", b"dog"):
        b.add(word)

    assert a.finalize() == b.finalize()
"""

__version__ = "0.1.0"

from .accumulator import MultisetHash, State, multiset_digest
from .errors import (
    DigestDecodeError,
    GroupSetupError,
    IncompatibleAccumulatorError,
    MultiplicityOverflowError,
    MultisetHashError,
    PendingCommitError,
    UnsupportedHashError,
)
from .hashing import ObjectHasher

__all__ = [
    'MultisetHash',
    'State',
    'multiset_digest',
    'ObjectHasher',
    'MultisetHashError',
    'PendingCommitError',
    'MultiplicityOverflowError',
    'IncompatibleAccumulatorError',
    'UnsupportedHashError',
    'GroupSetupError',
    'DigestDecodeError',
]
