#!/usr/bin/env python3
import unittest

from keygenzk.zkp.hash import (
    CHALLENGE_BITS,
    bytes_to_bits,
    hash_to_bits,
    hash_to_n,
    int_to_hash_bytes,
    sha512_256i,
)


class TestBytesToBits(unittest.TestCase):
    def test_known_vector(self):
        b = bytes_to_bits(0x0F0E0D0C0B0A090807060504030201)
        self.assertEqual(len(b), 80)
        self.assertEqual(b[0], 1)
        self.assertEqual(b[1], 0)
        self.assertEqual(b[8], 0)
        self.assertEqual(b[9], 1)
        self.assertEqual(b[16], 1)
        self.assertEqual(b[17], 1)

    def test_short_values_pad_with_zero_bits(self):
        self.assertEqual(bytes_to_bits(0), [0] * 80)
        self.assertEqual(bytes_to_bits(1), [1] + [0] * 79)


class TestHashing(unittest.TestCase):
    def test_deterministic(self):
        ints = (2**2047 + 1, 0, 42, 7)
        self.assertEqual(sha512_256i(*ints), sha512_256i(*ints))
        self.assertEqual(hash_to_n(2**2048, *ints), hash_to_n(2**2048, *ints))
        self.assertEqual(hash_to_bits([1, 2, 3], 4, 5), hash_to_bits([1, 2, 3], 4, 5))

    def test_order_matters(self):
        self.assertNotEqual(sha512_256i(1, 2), sha512_256i(2, 1))
        self.assertNotEqual(hash_to_bits([1, 2], 3), hash_to_bits([2, 1], 3))

    def test_delimiter_separates_inputs(self):
        self.assertNotEqual(sha512_256i(0x0102, 0x03), sha512_256i(0x01, 0x0203))

    def test_negative_inputs_are_refused(self):
        self.assertEqual(int_to_hash_bytes(0), b"")
        self.assertEqual(int_to_hash_bytes(258), b"\x01\x02")
        # a signed form of -258 would spell out 0x010102
        self.assertRaises(ValueError, int_to_hash_bytes, -258)
        self.assertRaises(ValueError, sha512_256i, 5, -258)
        self.assertRaises(ValueError, hash_to_n, 2**256, -1)

    def test_hash_to_n_range(self):
        for bound in (1, 2, 77, 2**257 - 1, 2**2048 + 12345):
            for i in range(20):
                v = hash_to_n(bound, bound, i)
                self.assertGreaterEqual(v, 0)
                self.assertLess(v, bound)

    def test_hash_to_n_spans_wide_moduli(self):
        bound = 2**2048
        self.assertTrue(any(hash_to_n(bound, i).bit_length() > 1024 for i in range(10)))

    def test_hash_to_n_rejects_empty_range(self):
        self.assertRaises(ValueError, hash_to_n, 0, 1)

    def test_hash_to_bits_shape(self):
        e = hash_to_bits([11, 12, 13], 1, 2, 3)
        self.assertEqual(len(e), CHALLENGE_BITS)
        self.assertTrue(set(e) <= {0, 1})


if __name__ == '__main__':
    unittest.main()
