"""
This file implements unit tests for the generator matrix builder
"""
import unittest
import warnings

import numpy as np
import scipy.sparse as sp

from hact.Errors import GeneratorError, NumericalWarning
from hact.Model import get_parameters
from hact.Transition_Matrix import (drift_generator, diffusion_generator_nd, savings_matrix,
                                    generator, check_generator)
from tests import HACT_PRECISION


class testsForSavingsMatrix(unittest.TestCase):
    def setUp(self):
        self.p, self.n = get_parameters(Na=10)
        rng = np.random.default_rng(0)
        self.s = rng.uniform(-1.0, 1.0, (10, 2))

    def test_rates(self):
        n  = self.n
        sf = np.maximum(self.s, 0)
        sb = np.minimum(self.s, 0)
        S  = savings_matrix(sf, sb, n).toarray()

        self.assertTrue(np.allclose(S.sum(axis=1), 0))
        for iz in range(2):
            for ia in range(1, 9):
                I = iz * n['Na'] + ia
                self.assertAlmostEqual(S[I, I + 1], sf[ia, iz] / n['daf'][ia], places=HACT_PRECISION)
                self.assertAlmostEqual(S[I, I - 1], -sb[ia, iz] / n['dab'][ia], places=HACT_PRECISION)

    def test_no_moves_off_grid(self):
        n = self.n
        S = savings_matrix(np.ones((10, 2)), -np.ones((10, 2)), n).toarray()
        # top of the first income block cannot move into the second block
        self.assertEqual(S[n['Na'] - 1, n['Na']], 0.0)
        self.assertEqual(S[n['Na'], n['Na'] - 1], 0.0)

    def test_full_generator(self):
        S = savings_matrix(np.maximum(self.s, 0), np.minimum(self.s, 0), self.n)
        A = generator(S, self.n['Ly'])
        self.assertLess(check_generator(A, strict=True), 1e-10)


class testsForMultidimensionalGenerator(unittest.TestCase):
    def test_neighbour_along_middle_dimension(self):
        shape = (3, 4, 2)
        ones  = np.ones(shape)
        A = drift_generator(shape, 1, ones, ones, 1.0, 1.0).toarray()

        # (0, 0, 0) moves to (0, 1, 0), three states further
        self.assertEqual(A[0, 3], 1.0)
        self.assertEqual(A[0, 0], -1.0)
        # (2, 3, 1) sits at the top of dimension 1
        top = 2 + 3 * 3 + 12 * 1
        self.assertTrue(np.all(A[top] == 0))
        self.assertTrue(np.allclose(A.sum(axis=1), 0))

    def test_downward_drift(self):
        shape = (3, 4, 2)
        A = drift_generator(shape, 2, 0.0, -2.0, 0.5, 0.5).toarray()
        # (1, 2, 1) moves to (1, 2, 0) at rate 2 / 0.5
        self.assertEqual(A[1 + 6 + 12, 1 + 6], 4.0)
        self.assertTrue(np.all(A[:12] == 0))

    def test_diffusion(self):
        shape = (5, 3)
        A = diffusion_generator_nd(shape, 0, 0.0, 0.2, 0.1, 0.1)
        self.assertLess(check_generator(A, strict=True), 1e-10)
        self.assertAlmostEqual(A[2, 3], 0.04 / (0.1 * 0.2), places=HACT_PRECISION)


class testsForCheckGenerator(unittest.TestCase):
    def test_bad_row_sum(self):
        A = sp.csr_matrix(np.array([[-1.0, 0.5], [0.5, -0.5]]))
        with self.assertRaises(GeneratorError):
            check_generator(A, strict=True)
        with self.assertWarns(NumericalWarning):
            err = check_generator(A)
        self.assertAlmostEqual(err, 0.5, places=HACT_PRECISION)

    def test_negative_intensity(self):
        A = np.array([[1.0, -1.0], [0.5, -0.5]])
        with self.assertRaises(GeneratorError):
            check_generator(A, strict=True)

    def test_round_off_of_large_rates(self):
        # round-off in the row sum grows with the rates
        A = np.array([[-1e8, 1e8 + 1e-6], [1.0, -1.0]])
        with warnings.catch_warnings():
            warnings.simplefilter("error", NumericalWarning)
            err = check_generator(A)
        self.assertLess(err, 1e-5)
        with self.assertRaises(GeneratorError):
            check_generator(np.array([[-1e8, 1e8 + 0.1], [1.0, -1.0]]), strict=True)
