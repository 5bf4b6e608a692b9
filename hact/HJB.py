# This file solves the HJB equation of the household problem by value iteration
##   rho V = u(c) + V_a (y + r a - c) + Lambda V
## with an upwind finite-difference scheme, implicit or explicit in time.
import logging

import numpy as np
import scipy.sparse as sp
import scipy.sparse.linalg as spla

from hact.Errors import ConvergenceError
from hact.Transition_Matrix import savings_matrix, generator, check_generator
from hact.Upwind import upwind
from hact.Utility import utility, initial_guess

log = logging.getLogger(__name__)


class Implicit:
    """Implicit update ((rho + 1/Delta) I - A) V_new = u + V / Delta.

    Delta is a pseudo time step; large values converge in few iterations.
    """
    needs_matrix = True

    def __init__(self, Delta=1000, maxit=100):
        if Delta <= 0:
            raise ValueError('Delta must be positive')
        self.Delta = Delta
        self.maxit = maxit

    def __repr__(self):
        return f'Implicit(Delta={self.Delta}, maxit={self.maxit})'

    def update(self, v, pol, A, u, p, n):
        M = (p['rho'] + 1 / self.Delta) * sp.eye(n['Ntot'], format='csc') - A
        b = u.ravel(order='F') + v.ravel(order='F') / self.Delta

        # invert linear system
        V = spla.spsolve(M.tocsc(), b).reshape(v.shape, order='F')
        return V, V - v


class Explicit:
    """Explicit update V_new = V + Delta (u + V_a s + V Lambda' - rho V).

    Delta is a true time step and must respect the stability bound
    Delta <= 0.9 da / max|s|, otherwise the iteration diverges.
    """
    needs_matrix = False

    def __init__(self, Delta, maxit=100_000):
        if Delta <= 0:
            raise ValueError('Delta must be positive')
        self.Delta = Delta
        self.maxit = maxit

    @classmethod
    def stable(cls, p, n, r, maxit=100_000):
        """Step size at the stability bound of the grid."""
        Delta = 0.9 * np.min(n['da']) / np.max(np.abs(n['zz'] + r * n['aa']))
        return cls(Delta, maxit)

    def __repr__(self):
        return f'Explicit(Delta={self.Delta:.3g}, maxit={self.maxit})'

    def update(self, v, pol, A, u, p, n):
        v_change = u + pol['dV'] * pol['s'] + v @ n['Lambda'].T - p['rho'] * v
        return v + self.Delta * v_change, v_change


def check_borrowing_constraint(p, n, r, income=None):
    y = n['zz'] if income is None else income
    if np.min(y[0, :] + r * n['amin']) <= 0:
        raise ValueError('borrowing constraint too loose: income + r * amin must be positive')


def policy_and_generator(v, p, n, r, income=None, concavity='warn'):
    """Upwind policies, flow utility and generator A implied by v."""
    pol = upwind(v, p, n, r, income=income, concavity=concavity)
    u   = utility(pol['c'], p['gamma'])
    A   = generator(savings_matrix(pol['sf'], pol['sb'], n), n['Ly'])
    check_generator(A)
    return pol, u, A


def solve_HJB(p, n, r=None, scheme=None, v0=None, crit=None, concavity='warn'):
    """Solve the HJB equation for a given interest rate.

    Args:
        p: Dict giving the parameters of the model.
        n: Dict giving the numerical parameters (eg. grid size, etc.)
        r: Interest rate, defaults to p['r']
        scheme: Implicit or Explicit instance, defaults to Implicit(n['Delta'], n['maxit'])
        v0: Initial guess, defaults to u(z + r a) / rho
        crit: Convergence criterion on max |V_new - V| (implicit) or
            max |v_change| (explicit), defaults to n['crit']
        concavity: Policy for non-concave points of the converged V, see Upwind.upwind
            (during the iteration they are logged at DEBUG)
    Returns:
        hjb: Dict with value function V, policies c, s, sf, sb, dV, flow utility u,
            generator A, number of iterations it_last and convergence history dist
    """
    r      = p['r'] if r is None else r
    scheme = Implicit(n['Delta'], n['maxit']) if scheme is None else scheme
    crit   = n['crit'] if crit is None else crit

    check_borrowing_constraint(p, n, r)

    v = initial_guess(p, n, r) if v0 is None else np.array(v0, dtype=float)
    if v.shape != (n['Na'], n['Nz']):
        raise ValueError(f"v0 must have shape {(n['Na'], n['Nz'])}")

    dist = np.full(scheme.maxit, np.nan) # keeps track of convergence

    # intermediate iterates may be non-concave, only the converged V is checked
    concavity_it = 'ignore' if concavity == 'ignore' else 'log'

    # converge value function
    for it in range(scheme.maxit):
        if scheme.needs_matrix:
            pol, u, A = policy_and_generator(v, p, n, r, concavity=concavity_it)
        else:
            pol = upwind(v, p, n, r, concavity=concavity_it)
            u, A = utility(pol['c'], p['gamma']), None

        v, v_change = scheme.update(v, pol, A, u, p, n)
        dist[it] = np.max(np.abs(v_change))

        if not np.isfinite(dist[it]):
            raise ConvergenceError(f'{scheme} diverged at iteration {it + 1}', it + 1, dist[:it + 1])

        if it % 1000 == 0:
            log.debug(f'HJB iteration {it + 1}: max change {dist[it]:.3e}')

        if dist[it] < crit:
            break
    else:
        raise ConvergenceError(f'{scheme} did not converge in {scheme.maxit} iterations '
                               f'(last change {dist[-1]:.3e})', scheme.maxit, dist)

    it_last = it + 1
    log.info(f'HJB converged after {it_last} iterations at r = {r:.6f} ({scheme})')

    # policies and generator consistent with the converged value function
    pol, u, A = policy_and_generator(v, p, n, r, concavity=concavity)

    hjb = {}
    hjb['V']       = v              # value function
    hjb['c']       = pol['c']       # consumption
    hjb['s']       = pol['s']       # savings (drift of assets)
    hjb['sf']      = pol['sf']      # savings where forward difference used
    hjb['sb']      = pol['sb']      # savings where backward difference used
    hjb['dV']      = pol['dV']      # upwind derivative of the value function
    hjb['u']       = u              # flow utility
    hjb['A']       = A              # generator of the joint process
    hjb['r']       = r
    hjb['it_last'] = it_last
    hjb['dist']    = dist[:it_last] # convergence history
    hjb['scheme']  = scheme

    return hjb


def solve_HJB_implicit(p, n, r=None, Delta=1000, maxit=100, crit=None, v0=None):
    return solve_HJB(p, n, r, scheme=Implicit(Delta, maxit), v0=v0, crit=crit)


def solve_HJB_explicit(p, n, r=None, Delta=None, maxit=100_000, crit=None, v0=None):
    r = p['r'] if r is None else r
    scheme = Explicit.stable(p, n, r, maxit) if Delta is None else Explicit(Delta, maxit)
    return solve_HJB(p, n, r, scheme=scheme, v0=v0, crit=crit)
