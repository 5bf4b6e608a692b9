"""
This file implements unit tests for the model variants and parameter dicts
"""
import unittest
import warnings

import numpy as np

from hact.Errors import NumericalWarning
from hact.HJB import solve_HJB
from hact.KF import solve_KF
from hact.Model import get_parameters
from hact.Parameters import param_econ
from hact.Transition_Matrix import check_generator
from hact.Utility import utility, utility_prime, utility_prime_inv
from tests import HACT_PRECISION


class testsForParameters(unittest.TestCase):
    def test_defaults(self):
        p, n = get_parameters()
        self.assertEqual(p['gamma'], 2.0)
        self.assertEqual(p['rho'], 0.05)
        self.assertTrue(np.allclose(n['z'], [0.1, 0.2]))
        self.assertEqual(n['Na'], 500)
        self.assertEqual(n['aa'].shape, (500, 2))
        self.assertEqual(n['Ly'].shape, (1000, 1000))
        self.assertAlmostEqual(n['a'][0], -0.1, places=HACT_PRECISION)
        self.assertAlmostEqual(n['a'][-1], 1.0, places=HACT_PRECISION)

    def test_fresh_copies(self):
        p = param_econ()
        p['z'][0] = 5.0
        self.assertEqual(param_econ()['z'][0], 0.1)

    def test_unknown_parameter(self):
        with self.assertRaises(KeyError):
            param_econ(beta=0.96)

    def test_unknown_model(self):
        with self.assertRaises(ValueError):
            get_parameters(model='aiyagari')


class testsForModelVariants(unittest.TestCase):
    def check_model(self, p, n):
        hjb = solve_HJB(p, n)
        self.assertLess(check_generator(hjb['A'], strict=True), 1e-10)
        g = solve_KF(hjb['A'], n)
        self.assertAlmostEqual(np.sum(g * n['daa']), 1.0, places=HACT_PRECISION)
        self.assertTrue(np.all(hjb['c'] > 0))

    def test_rouwenhorst(self):
        p, n = get_parameters(model='rouwenhorst', Na=100)
        self.assertEqual(n['Nz'], 7)
        self.check_model(p, n)

    def test_diffusion(self):
        p, n = get_parameters(model='diffusion', Na=100, Nz=5)
        self.assertEqual(n['Lambda'].shape, (5, 5))
        self.check_model(p, n)

    def test_two_sided_grid(self):
        p, n = get_parameters(Na=100, grid='two_sided', grid_kwargs={'frac_neg': 0.2})
        self.assertAlmostEqual(n['a'][20], 0.0, places=HACT_PRECISION)
        self.assertFalse(np.allclose(n['da'], n['da'][0]))
        self.check_model(p, n)

    def test_power_grid(self):
        p, n = get_parameters(model='rouwenhorst', Na=100, Nz=3, grid='power', grid_kwargs={'k': 0.5})
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            self.check_model(p, n)
        self.assertFalse(any(issubclass(w.category, NumericalWarning) for w in caught))


class testsForUtility(unittest.TestCase):
    def test_crra(self):
        c = np.array([0.5, 1.0, 2.0])
        self.assertTrue(np.allclose(utility(c, 2.0), -1 / c))
        self.assertTrue(np.allclose(utility(c, 1.0), np.log(c)))
        self.assertTrue(np.allclose(utility_prime_inv(utility_prime(c, 2.0), 2.0), c))
