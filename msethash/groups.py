"""
Digest Group Setup and Encoding
===============================

This module builds the prime-order group that carries the multiset digest and
provides its canonical byte encoding.

The digest lives in G1 of a charm-crypto pairing curve. Only the G1 side is
used; the pairing itself plays no role.

According to charm-crypto documentation (https://jhuisi.github.io/charm/tutorial.html):
- Group operations use * for the group law and ** for scalar exponentiation
- group.init(G1, 1) is the identity element of G1
- group.hash(data, G1) maps a byte string to an element of G1
- group.serialize(elem, compression=True) returns b"<type>:<base64 point>"

Canonical Encoding:
-------------------
The encoding of an element is the raw compressed point with the type prefix
and base64 armour removed. The identity has no compressed point form, so it
is encoded as ``encoded_size(group)`` zero bytes.
"""

import base64
import functools
import logging

from charm.toolbox.pairinggroup import PairingGroup, G1

from msethash.config import config
from msethash.errors import DigestDecodeError, GroupSetupError

logger = logging.getLogger(__name__)

# charm's serialize() prefixes the base64 payload with the element type id
_G1_PREFIX = b"1:"


def setup(group_name: str = None) -> PairingGroup:
    """
    Initialize the pairing group whose G1 carries the digest.

    Parameters
    ----------
    group_name : str, optional
        The pairing curve identifier, e.g. 'BN254', 'MNT224', 'SS512'.
        Defaults to ``config.curve``.

    Returns
    -------
    PairingGroup
        The initialized group. The same object is returned for repeated calls
        with the same name.

    Raises
    ------
    GroupSetupError
        If charm-crypto cannot build the curve.

    Notes
    -----
    Unlike a commitment scheme there is no fallback to another curve: digests
    computed over different curves are incomparable, so a missing curve is an
    error rather than a warning.
    """
    if group_name is None:
        group_name = config.curve
    return _setup(group_name)


@functools.lru_cache(maxsize=None)
def _setup(group_name: str) -> PairingGroup:
    try:
        group = PairingGroup(group_name)
    except Exception as e:
        raise GroupSetupError(f"pairing curve {group_name!r} is not available: {e}") from e
    logger.debug("Initialized pairing group %s (order %d bits)",
                 group_name, order(group).bit_length())
    return group


def identity(group: PairingGroup):
    """Return the identity element of G1."""
    return group.init(G1, 1)


def order(group: PairingGroup) -> int:
    """Return the prime order of the group as a Python int."""
    return int(group.order())


def is_identity(elem, group: PairingGroup) -> bool:
    return elem == identity(group)


def _compressed_point(elem, group: PairingGroup) -> bytes:
    data = group.serialize(elem, compression=True)
    if not data.startswith(_G1_PREFIX):
        raise TypeError(f"expected a G1 element, got serialization {data[:4]!r}")
    return base64.b64decode(data[len(_G1_PREFIX):])


_encoded_sizes = {}


def encoded_size(group: PairingGroup) -> int:
    """
    Return the fixed width in bytes of ``encode_element`` for this group.

    The width is measured once per group from a hashed point, since compressed
    points of a curve all share the same length.
    """
    entry = _encoded_sizes.get(id(group))
    if entry is None:
        # the group is kept in the entry so its id cannot be reused
        size = len(_compressed_point(group.hash(b"msethash-encoded-size", G1), group))
        entry = _encoded_sizes[id(group)] = (group, size)
    return entry[1]


def encode_element(elem, group: PairingGroup) -> bytes:
    """
    Serialize a G1 element to its canonical fixed-width bytes.

    Parameters
    ----------
    elem : G1
        The element to encode
    group : PairingGroup
        The pairing group

    Returns
    -------
    bytes
        ``encoded_size(group)`` bytes. Equal elements always give equal bytes,
        whatever sequence of operations produced them.
    """
    if is_identity(elem, group):
        return bytes(encoded_size(group))
    return _compressed_point(elem, group)


def decode_element(data: bytes, group: PairingGroup):
    """
    Deserialize bytes produced by ``encode_element``.

    Raises
    ------
    DigestDecodeError
        If the length is wrong or the bytes are not a point of G1.
    """
    data = bytes(data)
    size = encoded_size(group)
    if len(data) != size:
        raise DigestDecodeError(f"expected {size} bytes, got {len(data)}")
    if not any(data):
        return identity(group)
    try:
        elem = group.deserialize(_G1_PREFIX + base64.b64encode(data), compression=True)
        reencoded = None if elem is None else _compressed_point(elem, group)
        member = elem is not None and group.ismember(elem)
    except Exception as e:
        raise DigestDecodeError(f"bytes do not encode a G1 element: {e}") from e
    # out-of-range coordinates and bad sign bytes fail to round-trip, off-curve
    # points fail membership; the identity only ever encodes as zero bytes
    if reencoded != data or not member or is_identity(elem, group):
        raise DigestDecodeError("bytes are not the canonical encoding of a G1 element")
    return elem
