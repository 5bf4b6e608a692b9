"""
This file implements unit tests for the HJB solvers
"""
import unittest
import warnings

import numpy as np

from hact.Errors import ConvergenceError, NumericalWarning
from hact.HJB import Implicit, Explicit, solve_HJB, solve_HJB_implicit, solve_HJB_explicit
from hact.Model import get_parameters
from hact.Transition_Matrix import check_generator


class testsForImplicitHJB(unittest.TestCase):
    def setUp(self):
        self.p, self.n = get_parameters(Na=100)
        self.hjb = solve_HJB(self.p, self.n, 0.03)

    def test_converged(self):
        hjb = self.hjb
        self.assertEqual(hjb['V'].shape, (100, 2))
        self.assertEqual(hjb['dist'].shape[0], hjb['it_last'])
        self.assertLess(hjb['dist'][-1], self.n['crit'])
        self.assertLess(hjb['it_last'], self.n['maxit'])

    def test_terminal_monotone(self):
        tail = self.hjb['dist'][-3:]
        self.assertTrue(np.all(np.diff(tail) <= 1e-10))

    def test_generator(self):
        self.assertLess(check_generator(self.hjb['A'], strict=True), 1e-10)

    def test_value_increasing(self):
        V = self.hjb['V']
        self.assertTrue(np.all(np.diff(V, axis=0) > 0))  # more assets are better
        self.assertTrue(np.all(V[:, 1] > V[:, 0]))       # so is higher income

    def test_wrapper(self):
        hjb = solve_HJB_implicit(self.p, self.n, 0.03, Delta=1000)
        self.assertTrue(np.allclose(hjb['V'], self.hjb['V']))

    def test_max_iterations(self):
        with self.assertRaises(ConvergenceError) as cm:
            solve_HJB(self.p, self.n, 0.03, scheme=Implicit(1000, maxit=1))
        self.assertEqual(cm.exception.it_last, 1)

    def test_loose_borrowing_constraint(self):
        p, n = get_parameters(Na=20, amin=-10.0)
        with self.assertRaises(ValueError):
            solve_HJB(p, n, 0.03)

    def test_boundary_drift(self):
        s = self.hjb['s']
        self.assertTrue(np.all(s[0, :] >= 0))   # cannot borrow below amin
        self.assertTrue(np.all(s[-1, :] <= 0))  # cannot save above amax


class testsForDefaultModel(unittest.TestCase):
    def setUp(self):
        self.p, self.n = get_parameters()

    def test_no_warnings(self):
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            hjb = solve_HJB(self.p, self.n, 0.03)
        self.assertFalse(any(issubclass(w.category, NumericalWarning) for w in caught))
        self.assertTrue(np.all(hjb['s'][0, :] >= 0))
        self.assertTrue(np.all(hjb['s'][-1, :] <= 0))

    def test_converged_value_concave(self):
        # non-concave intermediate iterates are only logged
        hjb = solve_HJB(self.p, self.n, 0.03, concavity='raise')
        self.assertLess(hjb['dist'][-1], self.n['crit'])


class testsForExplicitHJB(unittest.TestCase):
    def setUp(self):
        self.p, self.n = get_parameters(Na=20)

    def test_agrees_with_implicit(self):
        imp = solve_HJB_implicit(self.p, self.n, 0.03, crit=1e-10)
        exp = solve_HJB_explicit(self.p, self.n, 0.03, crit=1e-6)
        self.assertIsInstance(exp['scheme'], Explicit)
        self.assertTrue(np.allclose(exp['V'], imp['V'], atol=1e-3, rtol=0))
        self.assertTrue(np.allclose(exp['c'], imp['c'], atol=1e-3, rtol=0))

    def test_stable_step(self):
        scheme = Explicit.stable(self.p, self.n, 0.03)
        bound  = np.min(self.n['da']) / np.max(np.abs(self.n['zz'] + 0.03 * self.n['aa']))
        self.assertAlmostEqual(scheme.Delta, 0.9 * bound)

    def test_divergence(self):
        with np.errstate(all='ignore'):
            with self.assertRaises(ConvergenceError):
                solve_HJB(self.p, self.n, 0.03, scheme=Explicit(100.0, maxit=1000), concavity='ignore')
