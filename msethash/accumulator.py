"""
Multiset Hash Accumulator
=========================

This module implements an incremental, homomorphic hash of a multiset of byte
strings. The digest is a single element S of a prime-order group:

    S = ∏ H2G(x_i)^{m_i}

over all committed objects x_i with multiplicities m_i. charm-crypto writes
the group multiplicatively, so "adding m copies of x" is S ← S · H2G(x)^m.

Key Properties:
---------------
- Order independence: the group is commutative, so S does not depend on the
  order or grouping of commits
- Homomorphism: digest(M1 ∪ M2) = digest(M1) · digest(M2), see ``combine``
- Streaming: object bytes are absorbed by a running hash object, so neither
  an object nor the multiset is ever held in memory

State Machine:
--------------
    IDLE ──update──▶ ACCUMULATING ──update──▶ ACCUMULATING
      ▲                   │
      └────end_update─────┘        (end_update from IDLE commits b"")

``add``, ``add_many``, ``finalize`` and ``combine`` require IDLE.

Concurrency:
------------
No internal locking. Each accumulator has one owner at a time; independent
accumulators may be built in parallel and merged with ``combine``.
"""

import enum
import logging
from typing import Iterable, Tuple, Union

from charm.toolbox.pairinggroup import ZR

from msethash import groups
from msethash.config import config
from msethash.errors import (
    IncompatibleAccumulatorError,
    MultiplicityOverflowError,
    PendingCommitError,
)
from msethash.hashing import HashFunction, ObjectHasher

logger = logging.getLogger(__name__)

Item = Union[bytes, Tuple[bytes, int]]


class State(enum.Enum):
    IDLE = "idle"
    ACCUMULATING = "accumulating"


class MultisetHash:
    """
    Incremental multiset hash over G1 of a pairing curve.

    Objects are committed either at once with ``add(data, multiplicity)`` or
    piecewise with ``update(chunk)`` ... ``end_update(multiplicity)``.
    ``finalize()`` returns the canonical digest bytes and leaves the
    accumulator live.

    Every operation either succeeds or raises without changing the
    accumulator.

    Examples
    --------
    >>> h = MultisetHash()
    >>> h.add(b"cat", 2)
    >>> h.update(b"d"); h.update(b"og"); h.end_update(2)
    >>> digest = h.finalize()
    """

    def __init__(self, group_name: str = None, hash_function: HashFunction = None):
        """
        Parameters
        ----------
        group_name : str, optional
            The pairing curve identifier. Defaults to ``config.curve``.
        hash_function : str or callable, optional
            hashlib algorithm name or factory of hash objects, at least 64
            bytes wide. Defaults to ``config.hash_name``.

        Raises
        ------
        GroupSetupError
            If the curve is unavailable.
        UnsupportedHashError
            If the hash function is unknown or too narrow.
        """
        self._group_name = group_name if group_name is not None else config.curve
        self._group = groups.setup(self._group_name)
        self._hasher = ObjectHasher(self._group, hash_function)
        self._order = groups.order(self._group)
        self._digest_size = groups.encoded_size(self._group)

        self._acc = groups.identity(self._group)
        self._state = State.IDLE
        self._pending = None
        self._pending_size = 0

    # -- introspection ---------------------------------------------------

    @property
    def state(self) -> State:
        return self._state

    @property
    def pending_size(self) -> int:
        """Number of bytes absorbed by the object currently being streamed."""
        return self._pending_size

    @property
    def digest_size(self) -> int:
        return self._digest_size

    @property
    def group_name(self) -> str:
        return self._group_name

    @property
    def hash_name(self) -> str:
        return self._hasher.name

    def __repr__(self):
        return (f"MultisetHash(group={self._group_name!r}, hash={self.hash_name!r}, "
                f"state={self._state.value})")

    # -- internal helpers ------------------------------------------------

    def _check_idle(self, operation: str):
        if self._state is not State.IDLE:
            raise PendingCommitError(
                f"cannot {operation}: {self._pending_size} bytes of an object are "
                f"pending, call end_update() first"
            )

    def _check_multiplicity(self, multiplicity: int) -> int:
        """
        Validate a multiplicity before it becomes a ZR scalar.

        A scalar is only unambiguous below the group order; larger values
        would silently wrap modulo the order.
        """
        if isinstance(multiplicity, bool) or not isinstance(multiplicity, int):
            raise MultiplicityOverflowError(
                f"multiplicity must be an int, got {type(multiplicity).__name__}")
        if multiplicity < 0:
            raise MultiplicityOverflowError(f"multiplicity must be non-negative, got {multiplicity}")
        if multiplicity >= self._order:
            raise MultiplicityOverflowError(
                f"multiplicity {multiplicity} does not fit below the group order "
                f"({self._order.bit_length()} bits)"
            )
        return multiplicity

    def _contribution(self, elem, multiplicity: int):
        """Return elem^multiplicity for a positive multiplicity."""
        if multiplicity == 1:
            return elem
        return elem ** self._group.init(ZR, multiplicity)

    def _check_compatible(self, other: "MultisetHash"):
        if not isinstance(other, MultisetHash):
            raise TypeError(f"cannot combine with {type(other).__name__}")
        if other._group_name != self._group_name or not self._hasher.same_function(other._hasher):
            raise IncompatibleAccumulatorError(
                f"cannot combine {self._group_name}/{self.hash_name} with "
                f"{other._group_name}/{other.hash_name}"
            )

    # -- streaming input -------------------------------------------------

    def update(self, chunk: bytes):
        """
        Append ``chunk`` to the object being streamed.

        Opens a pending object if none is open, even for an empty chunk. No
        group computation happens until ``end_update``.
        """
        if self._pending is None:
            pending = self._hasher.new()
        else:
            pending = self._pending
        pending.update(chunk)
        self._pending = pending
        self._pending_size += len(chunk)
        self._state = State.ACCUMULATING

    def end_update(self, multiplicity: int = 1):
        """
        Commit the streamed object with the given multiplicity.

        From IDLE this commits the empty object.

        Parameters
        ----------
        multiplicity : int
            Non-negative repeat count, below the group order. 0 is legal and
            leaves the digest unchanged, but still closes the pending object.

        Raises
        ------
        MultiplicityOverflowError
            If the multiplicity is invalid. The pending object stays open.
        """
        multiplicity = self._check_multiplicity(multiplicity)
        pending = self._pending if self._pending is not None else self._hasher.new()
        if multiplicity:
            elem = self._hasher.element_from_digest(pending.digest())
            self._acc = self._acc * self._contribution(elem, multiplicity)
        self._pending = None
        self._pending_size = 0
        self._state = State.IDLE

    # -- whole-object input ----------------------------------------------

    def add(self, data: bytes, multiplicity: int = 1):
        """
        Commit ``data`` with the given multiplicity.

        Equivalent to ``update(data)`` followed by ``end_update(multiplicity)``,
        performed atomically.

        Raises
        ------
        PendingCommitError
            If an object is being streamed; ``add`` never interleaves with it.
        MultiplicityOverflowError
            If the multiplicity is invalid.
        """
        self._check_idle("add")
        multiplicity = self._check_multiplicity(multiplicity)
        if not multiplicity:
            return
        contribution = self._contribution(self._hasher.hash_to_group(data), multiplicity)
        self._acc = self._acc * contribution

    def add_many(self, items: Iterable[Item]):
        """
        Commit several objects at once, all or nothing.

        Parameters
        ----------
        items : iterable
            Each item is either ``bytes`` (multiplicity 1) or a
            ``(bytes, multiplicity)`` pair.

        Notes
        -----
        Every multiplicity is validated and every contribution computed before
        the accumulator changes, so a bad item leaves it untouched.
        """
        self._check_idle("add_many")
        total = groups.identity(self._group)
        for item in items:
            if isinstance(item, tuple):
                data, multiplicity = item
            else:
                data, multiplicity = item, 1
            multiplicity = self._check_multiplicity(multiplicity)
            if not multiplicity:
                continue
            total = total * self._contribution(self._hasher.hash_to_group(data), multiplicity)
        self._acc = self._acc * total

    # -- output ----------------------------------------------------------

    def finalize(self) -> bytes:
        """
        Return the canonical encoding of the digest.

        Does not modify the accumulator; it may keep accumulating afterwards.
        An accumulator that never received anything returns the encoding of
        the identity (``digest_size`` zero bytes).

        Raises
        ------
        PendingCommitError
            If an object is being streamed. Pending bytes are never dropped.
        """
        self._check_idle("finalize")
        return groups.encode_element(self._acc, self._group)

    def hexdigest(self) -> str:
        return self.finalize().hex()

    def finalize_reset(self) -> bytes:
        """``finalize()`` followed by ``reset()``."""
        digest = self.finalize()
        self.reset()
        return digest

    def reset(self):
        """Return to the empty multiset, discarding any pending object."""
        if self._pending is not None:
            logger.debug("Reset discards %d pending bytes", self._pending_size)
        self._acc = groups.identity(self._group)
        self._pending = None
        self._pending_size = 0
        self._state = State.IDLE

    # -- merging ---------------------------------------------------------

    def combine(self, other: "MultisetHash"):
        """
        Merge ``other`` into this accumulator: S ← S · S_other.

        Afterwards this accumulator digests the union (with multiplicities
        summed) of both multisets. ``other`` is not modified.

        Raises
        ------
        PendingCommitError
            If either accumulator has a pending object.
        IncompatibleAccumulatorError
            If the accumulators use different groups or hash functions.
        """
        self._check_compatible(other)
        self._check_idle("combine")
        other._check_idle("combine")
        self._acc = self._acc * other._acc
        logger.debug("Combined accumulators over %s", self._group_name)

    def copy(self) -> "MultisetHash":
        """Return an independent accumulator with the same digest and pending object."""
        clone = MultisetHash.__new__(MultisetHash)
        clone._group_name = self._group_name
        clone._group = self._group
        clone._hasher = self._hasher
        clone._order = self._order
        clone._digest_size = self._digest_size
        # group elements are never mutated in place, sharing them is safe
        clone._acc = self._acc
        clone._state = self._state
        clone._pending = self._pending.copy() if self._pending is not None else None
        clone._pending_size = self._pending_size
        return clone

    @classmethod
    def from_digest(cls, digest: bytes, group_name: str = None,
                    hash_function: HashFunction = None) -> "MultisetHash":
        """
        Rebuild an accumulator from the output of ``finalize()``.

        The result can keep accumulating or be combined with other
        accumulators, which lets shards exchange digests instead of
        accumulator objects.

        Raises
        ------
        DigestDecodeError
            If ``digest`` does not encode an element of the group.
        """
        acc = cls(group_name, hash_function)
        acc._acc = groups.decode_element(digest, acc._group)
        logger.debug("Restored accumulator over %s from digest", acc._group_name)
        return acc


def multiset_digest(items: Iterable[Item], group_name: str = None,
                    hash_function: HashFunction = None) -> bytes:
    """
    Digest a multiset in one call.

    Parameters
    ----------
    items : iterable
        ``bytes`` or ``(bytes, multiplicity)`` pairs, see ``MultisetHash.add_many``.

    Returns
    -------
    bytes
        The canonical digest.
    """
    acc = MultisetHash(group_name, hash_function)
    acc.add_many(items)
    return acc.finalize()
