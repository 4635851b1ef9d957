#!/usr/bin/env python3
from concurrent.futures import ThreadPoolExecutor
import dataclasses
import unittest

import gmpy2

from keyfixtures import prover_key_pair, verifier_key_pair

from keygenzk.errors import (
    MalformedProofError,
    NotBlumModulusError,
    ProofDecodeError,
    ProofGenerationError,
    VerificationError,
)
from keygenzk.zkp import crt, mod, prm
from keygenzk.zkp.mod import PARAM_M, ModRound, ProofMod, mod_challenge


def new_mod_proof(sk):
    return ProofMod.new_proof(sk.n, sk.phi_n, sk.p, sk.q)


class TestProofMod(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.sk, cls.pk = prover_key_pair()
        cls.proof = new_mod_proof(cls.sk)

    def test_verify(self):
        ok, reason = self.proof.verify(self.pk.n)
        self.assertTrue(ok, reason)
        self.assertIsNone(reason)
        self.assertEqual(len(self.proof.rounds), PARAM_M)

    def test_rounds_satisfy_equations(self):
        n = self.pk.n
        y = mod_challenge(n, self.proof.W)
        for i, r in enumerate(self.proof.rounds):
            self.assertEqual(gmpy2.powmod(r.z, n, n), y[i])
            rhs = y[i] * (self.proof.W if r.b else 1) * (-1 if r.a else 1) % n
            self.assertEqual(gmpy2.powmod(r.x, 4, n), rhs)

    def test_verify_fail(self):
        rounds = list(self.proof.rounds)
        last = rounds[-1]
        rounds[-1] = last._replace(z=last.z - 1)
        ok, reason = dataclasses.replace(self.proof, rounds=rounds).verify(self.pk.n)
        self.assertFalse(ok)
        self.assertEqual(reason, f"z_{PARAM_M - 1}^N != y_{PARAM_M - 1}")

    def test_verify_fail_flipped_sign(self):
        rounds = list(self.proof.rounds)
        rounds[3] = rounds[3]._replace(a=not rounds[3].a)
        ok, reason = dataclasses.replace(self.proof, rounds=rounds).verify(self.pk.n)
        self.assertFalse(ok)
        self.assertIn("x_3^4", reason)

    def test_verify_fail_other_modulus(self):
        _, other_pk = verifier_key_pair()
        ok, reason = self.proof.verify(other_pk.n)
        self.assertFalse(ok)
        self.assertIsNotNone(reason)

    def test_verify_forged_proof(self):
        p = 17  # not congruent to 3 mod 4
        q = 7
        n = p * q
        phi_n = (p - 1) * (q - 1)

        # w = 0, a_i = b_i = true and x_i = 0 satisfy x^4 = -(w*y) trivially
        w = 0
        y = mod_challenge(n, w)
        inv_n = gmpy2.invert(n, phi_n)
        rounds = [ModRound(0, True, True, int(gmpy2.powmod(yi, inv_n, n))) for yi in y]
        forged = ProofMod(w, rounds)

        ok, reason = forged.verify(n)
        self.assertFalse(ok)
        self.assertIsNotNone(reason)
        self.assertRaises(VerificationError, forged.ensure_verified, n)

    def test_verify_rejects_even_and_prime_moduli(self):
        ok, reason = self.proof.verify(self.pk.n * 2)
        self.assertFalse(ok)
        self.assertIn("even", reason)

        ok, reason = self.proof.verify(self.sk.p)
        self.assertFalse(ok)
        self.assertIn("prime", reason)

    def test_verify_missing_component(self):
        rounds = list(self.proof.rounds)
        rounds[10] = rounds[10]._replace(x=None)
        proof = dataclasses.replace(self.proof, rounds=rounds)
        self.assertFalse(proof.validate_basic())
        with self.assertRaises(MalformedProofError) as cm:
            proof.verify(self.pk.n)
        self.assertEqual((cm.exception.field, cm.exception.index), ("X", 10))

        self.assertRaises(MalformedProofError, ProofMod(None, self.proof.rounds).verify, self.pk.n)

    def test_not_blum_modulus(self):
        # 13 = 1 mod 4, so most challenges have no fourth root
        p, q = 13, 7
        with self.assertRaises(NotBlumModulusError) as cm:
            ProofMod.new_proof(p * q, (p - 1) * (q - 1), p, q)
        self.assertGreaterEqual(cm.exception.index, 0)
        self.assertIsInstance(cm.exception, ProofGenerationError)

    def test_invalid_input(self):
        sk = self.sk
        self.assertRaises(ProofGenerationError, ProofMod.new_proof, sk.n + 2, sk.phi_n, sk.p, sk.q)
        self.assertRaises(ProofGenerationError, ProofMod.new_proof, sk.n, 0, sk.p, sk.q)

    def test_round_count_shared_with_param_proof(self):
        self.assertIs(mod.PARAM_M, prm.PARAM_M)
        self.assertEqual(mod.ProofModBytesParts, 1 + 4 * prm.PARAM_M)

    def test_generation_keeps_no_module_state(self):
        # the factors must not outlive new_proof in any module-level cache
        new_mod_proof(self.sk)
        for module in (crt, mod):
            for name, obj in vars(module).items():
                if callable(obj) and getattr(obj, "__module__", None) == module.__name__:
                    self.assertFalse(hasattr(obj, "cache_info"), name)

    def test_bytes_round_trip(self):
        parts = self.proof.to_bytes_parts()
        self.assertEqual(len(parts), 1 + 4 * PARAM_M)
        self.assertTrue(all(len(b) == 1 for b in parts[1 + PARAM_M : 1 + 3 * PARAM_M]))
        decoded = ProofMod.from_bytes(parts)
        self.assertEqual(decoded, self.proof)
        self.assertEqual(decoded.A, self.proof.A)
        self.assertEqual(decoded.B, self.proof.B)

    def test_unmarshal_errors(self):
        parts = self.proof.to_bytes_parts()
        m = PARAM_M
        w, xs, as_, bs, zs = (
            parts[0],
            parts[1 : 1 + m],
            parts[1 + m : 1 + 2 * m],
            parts[1 + 2 * m : 1 + 3 * m],
            parts[1 + 3 * m :],
        )
        self.assertRaises(ProofDecodeError, ProofMod.unmarshal, b"", xs, as_, bs, zs)
        self.assertRaises(ProofDecodeError, ProofMod.unmarshal, w, xs[1:], as_, bs, zs)
        self.assertRaises(ProofDecodeError, ProofMod.unmarshal, w, xs, as_[1:], bs, zs)
        self.assertRaises(ProofDecodeError, ProofMod.unmarshal, w, xs, as_, bs + [b"\x00"], zs)
        self.assertRaises(ProofDecodeError, ProofMod.unmarshal, w, xs, as_, bs, zs[:-1])
        self.assertRaises(ProofDecodeError, ProofMod.unmarshal, w, xs, [b"\x02"] * m, bs, zs)
        self.assertRaises(ProofDecodeError, ProofMod.from_bytes, parts[:-1])

    def test_concurrent_generation_and_verification(self):
        keys = [prover_key_pair()[0], verifier_key_pair()[0]]
        with ThreadPoolExecutor(max_workers=2) as pool:
            proofs = list(pool.map(new_mod_proof, keys))
            results = list(pool.map(lambda args: args[0].verify(args[1].n), zip(proofs, keys)))
        self.assertEqual(results, [(True, None), (True, None)])


if __name__ == '__main__':
    unittest.main()
