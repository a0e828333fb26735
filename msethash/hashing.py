"""
Object Hasher
=============

This module maps arbitrary byte strings to elements of the digest group.

Construction:
-------------
    wide    = H(object_bytes)                       (>= 64 bytes)
    element = group.hash(DOMAIN_TAG || wide, G1)

H is a pluggable cryptographic hash function. It is given either as a
``hashlib`` algorithm name or as a zero-argument factory returning a
hashlib-style object (``update``, ``digest``, ``copy``, ``digest_size``).
Since H is applied first and incrementally, an object streamed in chunks maps
to the same element as the same bytes supplied at once.

Domain Separation:
------------------
The wide digest is prefixed with DOMAIN_TAG before it reaches the group's
hash-to-element map, so elements derived here never coincide with other
uses of group.hash over the same curve.
"""

import hashlib
import logging
from typing import Callable, Protocol, Union

from charm.toolbox.pairinggroup import PairingGroup, G1

from msethash.config import config
from msethash.errors import UnsupportedHashError

logger = logging.getLogger(__name__)

DOMAIN_TAG = b"MSETHASH-H2G-V1"

# Minimum width of H's output fed to the hash-to-element map
WIDE_DIGEST_SIZE = 64


class HashObject(Protocol):
    digest_size: int

    def update(self, data: bytes) -> None: ...

    def digest(self) -> bytes: ...

    def copy(self) -> "HashObject": ...


HashFunction = Union[str, Callable[[], HashObject]]


def resolve_hash(hash_function: HashFunction = None) -> Callable[[], HashObject]:
    """
    Turn a hash function specification into a validated factory.

    Parameters
    ----------
    hash_function : str or callable, optional
        A ``hashlib`` algorithm name (e.g. 'sha512', 'blake2b', 'sha3_512') or a
        zero-argument callable returning a fresh hash object. Defaults to
        ``config.hash_name``.

    Returns
    -------
    callable
        A zero-argument factory of fresh hash objects.

    Raises
    ------
    UnsupportedHashError
        If the name is unknown to hashlib, or the digest is narrower than
        WIDE_DIGEST_SIZE bytes.
    """
    if hash_function is None:
        hash_function = config.hash_name

    if isinstance(hash_function, str):
        name = hash_function
        try:
            hashlib.new(name)
        except (ValueError, TypeError) as e:
            logger.debug("Rejected hash function %r: %s", name, e)
            raise UnsupportedHashError(f"unknown hash function {name!r}") from e
        factory = lambda: hashlib.new(name)  # noqa: E731
    elif callable(hash_function):
        factory = hash_function
    else:
        raise UnsupportedHashError(f"hash function must be a name or a factory, got {hash_function!r}")

    size = factory().digest_size
    if size < WIDE_DIGEST_SIZE:
        logger.debug("Rejected hash function %s: digest size %d", hash_name(factory), size)
        raise UnsupportedHashError(
            f"hash function {hash_name(factory)!r} produces {size} bytes, "
            f"at least {WIDE_DIGEST_SIZE} are required"
        )
    return factory


def hash_name(factory: Callable[[], HashObject]) -> str:
    """Return the name of the hash produced by ``factory``."""
    h = factory()
    name = getattr(h, "name", None)
    if name is None:
        name = getattr(factory, "__qualname__", repr(factory))
    return f"{name}-{h.digest_size * 8}"


class ObjectHasher:
    """
    Maps byte strings to G1 elements: HashToGroup(bytes) -> G1.

    The hasher is stateless apart from its configuration; ``new()`` hands out
    the streaming hash objects used by accumulators to absorb partial objects.
    """

    def __init__(self, group: PairingGroup, hash_function: HashFunction = None):
        """
        Parameters
        ----------
        group : PairingGroup
            The pairing group from ``groups.setup()``
        hash_function : str or callable, optional
            See ``resolve_hash``.
        """
        if hash_function is None:
            hash_function = config.hash_name
        self.group = group
        self._factory = resolve_hash(hash_function)
        self.name = hash_name(self._factory)
        # hashlib name, or the factory itself; keyed or personalised factories
        # share a display name but not a source
        self.source = hash_function.lower() if isinstance(hash_function, str) else hash_function

    def same_function(self, other: "ObjectHasher") -> bool:
        """True when ``other`` was built from the same hash function."""
        return self.source == other.source

    def new(self) -> HashObject:
        """Return a fresh streaming hash object of the configured function."""
        return self._factory()

    def element_from_digest(self, wide: bytes):
        """
        Map a finished wide digest to G1.

        Parameters
        ----------
        wide : bytes
            Output of a hash object obtained from ``new()``.

        Returns
        -------
        G1
            group.hash(DOMAIN_TAG || wide, G1)
        """
        return self.group.hash(DOMAIN_TAG + wide, G1)

    def hash_to_group(self, data: bytes):
        """
        Map an object given as one contiguous byte string to G1.

        Defined for every byte string, including the empty one.
        """
        h = self.new()
        h.update(data)
        return self.element_from_digest(h.digest())
