"""Shared primitives: hashes, branch keys and branch nodes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

HASH_SIZE = 32
ZERO_HASH = bytes(HASH_SIZE)

# Tag bytes of the two merge value variants
TAG_VALUE = 1
TAG_MERGE_WITH_ZERO = 2

BytesLike = Union[bytes, bytearray, memoryview]


def to_hash(data: BytesLike) -> bytes:
    """Return *data* as an immutable 32-byte hash, rejecting any other length."""
    h = bytes(data)
    if len(h) != HASH_SIZE:
        raise ValueError(f"hash must be {HASH_SIZE} bytes, got {len(h)}")
    return h


def short_hash(h: bytes) -> str:
    """Create a short representation of a hash for display purposes."""
    s = h.hex()
    return s if len(s) <= 10 else f"{s[:4]}...{s[-4:]}"


def _check_byte(name: str, value: int) -> None:
    if not isinstance(value, int) or not 0 <= value <= 0xFF:
        raise ValueError(f"{name} must be an integer in 0..255, got {value!r}")


@dataclass(frozen=True, order=True)
class BranchKey:
    """
    Position of a branch node: its height plus the node's path key.

    Attributes:
        height (int): Height of the node in the tree (0..255).
        node_key (bytes): 32-byte path key of the node.
    """
    __slots__ = ("height", "node_key")

    height: int
    node_key: bytes

    def __post_init__(self):
        _check_byte("height", self.height)
        object.__setattr__(self, "node_key", to_hash(self.node_key))

    def to_bytes(self) -> bytes:
        """Key of this node in a branch keyspace: height byte then node key."""
        return bytes((self.height,)) + self.node_key

    def __repr__(self) -> str:
        return f"BranchKey(height={self.height}, node_key={short_hash(self.node_key)})"


class MergeValue:
    """One arm of a branch node.

    Concrete arms are :class:`MergeValueHash` and :class:`MergeWithZero`;
    ``TAG`` is the byte that identifies the variant in encoded form.
    """
    __slots__ = ()

    TAG: int

    @staticmethod
    def from_hash(h: BytesLike) -> "MergeValueHash":
        return MergeValueHash(h)

    @staticmethod
    def zero() -> "MergeValueHash":
        """The arm of an empty subtree."""
        return MergeValueHash(ZERO_HASH)

    def is_zero(self) -> bool:
        return False


@dataclass(frozen=True)
class MergeValueHash(MergeValue):
    """Arm holding a fully materialized subtree hash."""
    __slots__ = ("value",)

    TAG = TAG_VALUE

    value: bytes

    def __post_init__(self):
        object.__setattr__(self, "value", to_hash(self.value))

    def is_zero(self) -> bool:
        return self.value == ZERO_HASH

    def __repr__(self) -> str:
        return f"Value({short_hash(self.value)})"


@dataclass(frozen=True)
class MergeWithZero(MergeValue):
    """
    Arm standing for a subtree merged with a run of empty siblings.

    Attributes:
        base_node (bytes): Hash of the non-empty base subtree.
        zero_bits (bytes): Bitmap marking which lower path bits merged with zero.
        zero_count (int): Number of zero merges folded into this arm (0..255).
    """
    __slots__ = ("base_node", "zero_bits", "zero_count")

    TAG = TAG_MERGE_WITH_ZERO

    base_node: bytes
    zero_bits: bytes
    zero_count: int

    def __post_init__(self):
        object.__setattr__(self, "base_node", to_hash(self.base_node))
        object.__setattr__(self, "zero_bits", to_hash(self.zero_bits))
        _check_byte("zero_count", self.zero_count)

    def __repr__(self) -> str:
        return (
            f"MergeWithZero(base_node={short_hash(self.base_node)}, "
            f"zero_bits={short_hash(self.zero_bits)}, zero_count={self.zero_count})"
        )


@dataclass(frozen=True)
class BranchNode:
    """Internal tree node: an ordered pair of arms."""
    __slots__ = ("left", "right")

    left: MergeValue
    right: MergeValue

    def __post_init__(self):
        for name in ("left", "right"):
            arm = getattr(self, name)
            if not isinstance(arm, (MergeValueHash, MergeWithZero)):
                raise TypeError(f"{name} arm must be a MergeValue, got {type(arm).__name__}")
