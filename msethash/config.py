"""
Package configuration
Defaults for the digest group and the object hash function.
"""

import os

# Pairing curve whose G1 group carries the digest
DEFAULT_CURVE = 'BN254'

# hashlib algorithm used to widen object bytes before hash-to-group
DEFAULT_HASH = 'sha512'


class Config:
    """Configuration read once from the environment."""

    def __init__(self, curve=DEFAULT_CURVE, hash_name=DEFAULT_HASH):
        self.curve = curve
        self.hash_name = hash_name

    @classmethod
    def from_env(cls, environ=None):
        """Build a configuration from ``environ`` (defaults to ``os.environ``)."""
        environ = os.environ if environ is None else environ
        return cls(
            curve=environ.get('MSETHASH_CURVE', DEFAULT_CURVE),
            hash_name=environ.get('MSETHASH_HASH', DEFAULT_HASH),
        )


# Global configuration instance
config = Config.from_env()
