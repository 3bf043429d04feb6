"""
Binary codec for branch nodes.

Each arm is written as a tag byte followed by its payload, and a node is its
left arm immediately followed by its right arm::

    Value          0x01 | hash (32)                                   33 bytes
    MergeWithZero  0x02 | base_node (32) | zero_bits (32) | count (1) 66 bytes

Arms are self-delimiting through their tag, so an encoded node is 66, 99 or
132 bytes long. Decoding must consume the buffer exactly; an unknown tag, a
short payload or trailing bytes raise :class:`FormatError`.
"""

from __future__ import annotations

from typing import Tuple

from smt_storage.base import (
    HASH_SIZE,
    TAG_MERGE_WITH_ZERO,
    TAG_VALUE,
    BranchNode,
    BytesLike,
    MergeValue,
    MergeValueHash,
    MergeWithZero,
)
from smt_storage.errors import FormatError

VALUE_ARM_SIZE = 1 + HASH_SIZE
MERGE_WITH_ZERO_ARM_SIZE = 1 + HASH_SIZE + HASH_SIZE + 1


def encoded_size(arm: MergeValue) -> int:
    """Number of bytes *arm* occupies once encoded."""
    if isinstance(arm, MergeValueHash):
        return VALUE_ARM_SIZE
    if isinstance(arm, MergeWithZero):
        return MERGE_WITH_ZERO_ARM_SIZE
    raise TypeError(f"not a merge value: {type(arm).__name__}")


def _write_merge_value(arm: MergeValue, out: bytearray) -> None:
    if isinstance(arm, MergeValueHash):
        out.append(TAG_VALUE)
        out += arm.value
    elif isinstance(arm, MergeWithZero):
        out.append(TAG_MERGE_WITH_ZERO)
        out += arm.base_node
        out += arm.zero_bits
        out.append(arm.zero_count)
    else:
        raise TypeError(f"not a merge value: {type(arm).__name__}")


def encode_merge_value(arm: MergeValue) -> bytes:
    """Encode a single arm."""
    out = bytearray()
    _write_merge_value(arm, out)
    return bytes(out)


def encode_branch_node(node: BranchNode) -> bytes:
    """Encode *node* as left arm followed by right arm, no separator."""
    out = bytearray()
    _write_merge_value(node.left, out)
    _write_merge_value(node.right, out)
    return bytes(out)


def _take(buf: memoryview, offset: int, size: int) -> bytes:
    end = offset + size
    if end > len(buf):
        raise FormatError(
            f"truncated branch record: need {size} bytes, {len(buf) - offset} left",
            offset,
        )
    return bytes(buf[offset:end])


def decode_merge_value(data: BytesLike, offset: int = 0) -> Tuple[MergeValue, int]:
    """
    Decode one arm starting at *offset*.

    Returns:
        Tuple[MergeValue, int]: The arm and the offset just past it.

    Raises:
        FormatError: On a missing or unknown tag or a short payload.
    """
    buf = memoryview(data)
    if offset >= len(buf):
        raise FormatError("missing arm tag", offset)

    tag = buf[offset]
    pos = offset + 1
    if tag == TAG_VALUE:
        value = _take(buf, pos, HASH_SIZE)
        return MergeValueHash(value), pos + HASH_SIZE
    if tag == TAG_MERGE_WITH_ZERO:
        base_node = _take(buf, pos, HASH_SIZE)
        pos += HASH_SIZE
        zero_bits = _take(buf, pos, HASH_SIZE)
        pos += HASH_SIZE
        zero_count = _take(buf, pos, 1)[0]
        pos += 1
        return MergeWithZero(base_node, zero_bits, zero_count), pos
    raise FormatError(f"unknown arm tag {tag:#04x}", offset)


def decode_branch_node(data: BytesLike) -> BranchNode:
    """
    Decode a buffer produced by :func:`encode_branch_node`.

    Raises:
        FormatError: If the buffer is not exactly two well-formed arms.
    """
    left, offset = decode_merge_value(data, 0)
    right, offset = decode_merge_value(data, offset)
    total = len(memoryview(data))
    if offset != total:
        raise FormatError(f"{total - offset} trailing bytes after branch node", offset)
    return BranchNode(left, right)
