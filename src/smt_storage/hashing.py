"""
Hash function adapters.

Tree algorithms expect hashing in different shapes:

- :class:`OneShotHasher` digests a whole buffer at once.
- :class:`StreamingHasher` absorbs 32-byte values and single bytes, then
  finishes to a digest.
- :class:`Digest` is an ``update``/``finalize`` accumulator with a few
  extra entry points that this adapter does not support.

:class:`Blake3Hasher` and :class:`Sha256Hasher` implement all three on top of
one hashing core each, so digests are interchangeable between algorithms
sharing a store.
"""

from __future__ import annotations

import hashlib
from abc import ABC, abstractmethod
from enum import Enum
from typing import Type, Union

import blake3

from smt_storage.base import HASH_SIZE, BytesLike, to_hash
from smt_storage.errors import HasherConsumedError, UnsupportedOperationError


class HashAlgorithm(str, Enum):
    BLAKE3 = "blake3"
    SHA256 = "sha256"


class OneShotHasher(ABC):
    """Stateless digest of a complete buffer."""

    @classmethod
    @abstractmethod
    def digest(cls, data: BytesLike) -> bytes:
        pass


class StreamingHasher(ABC):
    """Accumulator fed with hashes and bytes, consumed by :meth:`finish`."""

    @abstractmethod
    def write_h256(self, h: BytesLike) -> None:
        pass

    @abstractmethod
    def write_byte(self, b: int) -> None:
        pass

    @abstractmethod
    def finish(self) -> bytes:
        pass


class Digest(ABC):
    """``update``/``finalize`` accumulator with a fixed output size."""

    @abstractmethod
    def update(self, data: BytesLike) -> None:
        pass

    @abstractmethod
    def finalize(self) -> bytes:
        pass

    @classmethod
    @abstractmethod
    def output_size(cls) -> int:
        pass

    @classmethod
    @abstractmethod
    def new_with_prefix(cls, prefix: BytesLike) -> "Digest":
        pass

    @abstractmethod
    def chain_update(self, data: BytesLike) -> "Digest":
        pass

    @abstractmethod
    def finalize_into(self, out: bytearray) -> None:
        pass

    @abstractmethod
    def finalize_reset(self) -> bytes:
        pass

    @abstractmethod
    def finalize_into_reset(self, out: bytearray) -> None:
        pass

    @abstractmethod
    def reset(self) -> None:
        pass


class HasherBase(OneShotHasher, StreamingHasher, Digest):
    """
    Adapter forwarding every hashing shape into a single core.

    Subclasses only provide :meth:`_new_core`, returning a fresh object with
    ``update(bytes)`` and ``digest()`` producing 32 bytes.
    """
    __slots__ = ("_core", "_consumed")

    ALGORITHM: HashAlgorithm

    def __init__(self):
        self._core = self._new_core()
        self._consumed = False

    @staticmethod
    @abstractmethod
    def _new_core():
        pass

    @classmethod
    def new(cls) -> "HasherBase":
        return cls()

    def _absorb(self, data: BytesLike) -> None:
        if self._consumed:
            raise HasherConsumedError(f"{type(self).__name__} was already finalized")
        self._core.update(data)

    def _finalize(self) -> bytes:
        if self._consumed:
            raise HasherConsumedError(f"{type(self).__name__} was already finalized")
        self._consumed = True
        out = self._core.digest()
        self._core = None
        return out

    def _unsupported(self, operation: str):
        raise UnsupportedOperationError(
            f"{type(self).__name__}.{operation} is not supported by this adapter"
        )

    # One-shot

    @classmethod
    def digest(cls, data: BytesLike) -> bytes:
        core = cls._new_core()
        core.update(data)
        return core.digest()

    # Streaming

    def write_h256(self, h: BytesLike) -> None:
        self._absorb(to_hash(h))

    def write_byte(self, b: int) -> None:
        if not isinstance(b, int) or not 0 <= b <= 0xFF:
            raise ValueError(f"byte must be an integer in 0..255, got {b!r}")
        self._absorb(bytes((b,)))

    def finish(self) -> bytes:
        return self._finalize()

    # Digest

    def update(self, data: BytesLike) -> None:
        self._absorb(data)

    def finalize(self) -> bytes:
        return self._finalize()

    @classmethod
    def output_size(cls) -> int:
        return HASH_SIZE

    @classmethod
    def new_with_prefix(cls, prefix: BytesLike) -> "HasherBase":
        raise UnsupportedOperationError(f"{cls.__name__}.new_with_prefix is not supported by this adapter")

    def chain_update(self, data: BytesLike) -> "HasherBase":
        self._unsupported("chain_update")

    def finalize_into(self, out: bytearray) -> None:
        self._unsupported("finalize_into")

    def finalize_reset(self) -> bytes:
        self._unsupported("finalize_reset")

    def finalize_into_reset(self, out: bytearray) -> None:
        self._unsupported("finalize_into_reset")

    def reset(self) -> None:
        self._unsupported("reset")

    def __repr__(self) -> str:
        state = "finalized" if self._consumed else "open"
        return f"{type(self).__name__}({state})"


class Blake3Hasher(HasherBase):
    __slots__ = ()

    ALGORITHM = HashAlgorithm.BLAKE3

    @staticmethod
    def _new_core():
        return blake3.blake3()


class Sha256Hasher(HasherBase):
    __slots__ = ()

    ALGORITHM = HashAlgorithm.SHA256

    @staticmethod
    def _new_core():
        return hashlib.sha256()


_HASHERS: dict[HashAlgorithm, Type[HasherBase]] = {
    HashAlgorithm.BLAKE3: Blake3Hasher,
    HashAlgorithm.SHA256: Sha256Hasher,
}


def get_hasher_class(algorithm: Union[HashAlgorithm, str]) -> Type[HasherBase]:
    """Resolve an algorithm name to its adapter class."""
    try:
        return _HASHERS[HashAlgorithm(algorithm)]
    except ValueError:
        raise ValueError(
            f"Unknown hash algorithm: {algorithm!r} "
            f"(expected one of {', '.join(a.value for a in HashAlgorithm)})"
        ) from None
