#!/usr/bin/env python3
import unittest

from keygenzk.zkp.crt import (
    bezout_coefficients,
    composite_fourth_root,
    composite_sqrt,
    is_quadratic_residue_mod_composite,
    is_quadratic_residue_mod_prime,
    prime_sqrt,
    quadratic_residue_mod_composite,
)

# 7 = 2*3+1 and 11 = 2*5+1 are safe primes, both 3 mod 4
# 37^2 = 60 mod 77, 60^2 = 58 mod 77
# 59 = 3 mod 7 is not a residue, 59 = 4 mod 11 is
_P, _Q, _N = 7, 11, 77


class TestCRT(unittest.TestCase):
    def test_residue_mod_prime(self):
        self.assertTrue(is_quadratic_residue_mod_prime(58, 7))
        self.assertTrue(is_quadratic_residue_mod_prime(58, 11))
        self.assertFalse(is_quadratic_residue_mod_prime(59, 7))
        self.assertTrue(is_quadratic_residue_mod_prime(59, 11))

    def test_residue_mod_composite(self):
        self.assertTrue(is_quadratic_residue_mod_composite(58, 7, 11))
        self.assertFalse(is_quadratic_residue_mod_composite(59, 7, 11))

    def test_root_selection(self):
        self.assertEqual(quadratic_residue_mod_composite(58, 7, 11, 77, 60), 37)
        self.assertIsNone(quadratic_residue_mod_composite(59, 7, 11, 77, 59))

    def test_prime_sqrt(self):
        self.assertEqual(sorted(prime_sqrt(2, 7)), [3, 4])
        self.assertEqual(prime_sqrt(3, 7), [])
        for x in range(1, 11):
            for r in prime_sqrt(x, 11):
                self.assertEqual(r * r % 11, x)

    def test_composite_sqrt(self):
        roots = composite_sqrt(58, _P, _Q, _N)
        self.assertEqual(len(roots), 4)
        self.assertEqual(len(set(int(r) for r in roots)), 4)
        for r in roots:
            self.assertEqual(r * r % _N, 58)
        self.assertIn(60, roots)
        self.assertEqual(composite_sqrt(59, _P, _Q, _N), [])

    def test_composite_fourth_root(self):
        roots = composite_fourth_root(58, _P, _Q, _N)
        self.assertEqual(roots[0], 37)
        for r in roots:
            self.assertEqual(pow(int(r), 4, _N), 58)
        # only one of the four square roots is itself a square for a Blum integer
        self.assertEqual(len(roots), 4)
        self.assertEqual(composite_fourth_root(59, _P, _Q, _N), [])

    def test_bezout_coefficients(self):
        a, b = bezout_coefficients(_P, _Q)
        self.assertEqual(a * _P + b * _Q, 1)
        self.assertRaises(ValueError, bezout_coefficients, 7, 14)
        coeffs = (a, b)
        self.assertEqual(
            composite_fourth_root(58, _P, _Q, _N, coeffs), composite_fourth_root(58, _P, _Q, _N)
        )
        self.assertEqual(composite_sqrt(58, _P, _Q, _N, coeffs), composite_sqrt(58, _P, _Q, _N))

    def test_fourth_powers_have_fourth_roots(self):
        for x in range(1, _N):
            if x % _P == 0 or x % _Q == 0:
                continue
            y = pow(x, 4, _N)
            roots = composite_fourth_root(y, _P, _Q, _N)
            self.assertEqual(len(roots), 4)
            self.assertIn(x, roots)
            for r in roots:
                self.assertEqual(pow(int(r), 4, _N), y)


if __name__ == '__main__':
    unittest.main()
