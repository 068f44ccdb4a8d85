"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/hasher.py
Streaming multi-digest hasher.

A file is read exactly once, in fixed-size chunks, and every requested digest
accumulator is updated with each chunk. Algorithms come from hashlib plus the
xxHash family.
"""

import hashlib
import logging
from typing import Callable, Dict, Iterable, List

import xxhash

from symdedup.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_FAST_DIGEST = "md5"
DEFAULT_STRONG_DIGEST = "sha512"
DEFAULT_BUFFER_SIZE = 1024 * 1024  # 1 MiB

# Use the same way to plug in any other non-hashlib algorithm
XXHASH_ALGORITHMS: Dict[str, Callable[[], object]] = {
    "xxh32": xxhash.xxh32,
    "xxh64": xxhash.xxh64,
    "xxh3_64": xxhash.xxh3_64,
    "xxh3_128": xxhash.xxh3_128,
    "xxh128": xxhash.xxh128,
}


class HasherImpl:
    """
    Computes several digests of one file in a single sequential read.

    Attributes:
        buffer_size: Number of bytes read per chunk
    """

    def __init__(self, buffer_size: int = DEFAULT_BUFFER_SIZE):
        if buffer_size < 1:
            raise ConfigurationError("Read buffer size must be positive")
        self.buffer_size = buffer_size

    @staticmethod
    def is_supported(algorithm: str) -> bool:
        name = algorithm.lower()
        if name.startswith("shake_"):
            return False  # variable-length digests need an explicit size
        return name in XXHASH_ALGORITHMS or name in hashlib.algorithms_available

    @staticmethod
    def new_digest(algorithm: str):
        """
        Create a fresh accumulator for the given algorithm identifier.
        Raises:
            ConfigurationError: If the algorithm is unknown
        """
        name = algorithm.lower()
        if name in XXHASH_ALGORITHMS:
            return XXHASH_ALGORITHMS[name]()
        if not HasherImpl.is_supported(name):
            raise ConfigurationError(f"Unknown digest algorithm: '{algorithm}'")
        try:
            return hashlib.new(name)
        except (ValueError, TypeError) as e:
            raise ConfigurationError(f"Unknown digest algorithm: '{algorithm}'") from e

    def compute(self, path: str, algorithms: Iterable[str]) -> Dict[str, str]:
        """
        Hash a file with every requested algorithm.

        Args:
            path: File to read
            algorithms: Ordered algorithm identifiers, e.g. ("md5", "sha512")
        Returns:
            Dict mapping each identifier (as given) to its lowercase hex digest
        Raises:
            ConfigurationError: Unknown algorithm (checked before the file is opened)
            OSError: File cannot be opened or a read fails
        """
        names: List[str] = list(dict.fromkeys(algorithms))
        digests = {name: self.new_digest(name) for name in names}

        with open(path, "rb") as f:
            while True:
                chunk = f.read(self.buffer_size)
                if not chunk:
                    break
                for digest in digests.values():
                    digest.update(chunk)

        return {name: digest.hexdigest().lower() for name, digest in digests.items()}
