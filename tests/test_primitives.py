"""Tests for hashes, branch keys and merge values."""

import unittest
from dataclasses import FrozenInstanceError

from smt_storage.base import (
    ZERO_HASH,
    BranchKey,
    BranchNode,
    MergeValue,
    MergeValueHash,
    MergeWithZero,
    to_hash,
)
from tests.test_base import BaseTestCase, h


class TestHash(BaseTestCase):

    def test_to_hash_accepts_buffers(self):
        self.assertEqual(to_hash(bytearray(h(0x01))), h(0x01))
        self.assertEqual(to_hash(memoryview(h(0x02))), h(0x02))
        self.assertIsInstance(to_hash(bytearray(32)), bytes)

    def test_to_hash_rejects_wrong_length(self):
        for size in (0, 31, 33):
            with self.subTest(size=size):
                with self.assertRaises(ValueError):
                    to_hash(bytes(size))


class TestBranchKey(BaseTestCase):

    def test_to_bytes(self):
        key = BranchKey(255, h(0x0A))
        self.assertEqual(key.to_bytes(), b"\xff" + h(0x0A))

    def test_ordering_and_hashing(self):
        keys = [BranchKey(1, h(0x02)), BranchKey(0, h(0x09)), BranchKey(1, h(0x01))]
        self.assertEqual(
            sorted(keys),
            [BranchKey(0, h(0x09)), BranchKey(1, h(0x01)), BranchKey(1, h(0x02))],
        )
        self.assertEqual(len({BranchKey(3, h(0x03)), BranchKey(3, h(0x03))}), 1)

    def test_validation(self):
        with self.assertRaises(ValueError):
            BranchKey(256, h(0x00))
        with self.assertRaises(ValueError):
            BranchKey(-1, h(0x00))
        with self.assertRaises(ValueError):
            BranchKey(0, b"\x00" * 16)

    def test_immutable(self):
        key = BranchKey(1, h(0x01))
        with self.assertRaises(FrozenInstanceError):
            key.height = 2


class TestMergeValue(BaseTestCase):

    def test_variants_are_distinct(self):
        value = MergeValueHash(h(0x01))
        mwz = MergeWithZero(h(0x01), h(0x00), 0)
        self.assertNotEqual(value, mwz)
        self.assertIsInstance(value, MergeValue)
        self.assertIsInstance(mwz, MergeValue)
        self.assertEqual(value.TAG, 1)
        self.assertEqual(mwz.TAG, 2)

    def test_zero(self):
        self.assertEqual(MergeValue.zero(), MergeValueHash(ZERO_HASH))
        self.assertTrue(MergeValue.zero().is_zero())
        self.assertFalse(MergeValue.from_hash(h(0x01)).is_zero())
        self.assertFalse(MergeWithZero(ZERO_HASH, ZERO_HASH, 0).is_zero())

    def test_zero_count_range(self):
        MergeWithZero(h(0x01), h(0x02), 255)
        with self.assertRaises(ValueError):
            MergeWithZero(h(0x01), h(0x02), 256)

    def test_branch_node_requires_merge_values(self):
        with self.assertRaises(TypeError):
            BranchNode(h(0x01), MergeValue.zero())


if __name__ == "__main__":
    unittest.main()
