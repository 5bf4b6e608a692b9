# This file computes the stationary distribution of the joint (asset x income) process,
## ie. solves the Kolmogorov forward equation A' g = 0 for a generator A.
## Every method works on the probability mass of the gridpoints and returns a density
## g of shape (Na, Nz) normalized so that sum(g * da) = 1.
import logging
import warnings

import numpy as np
import quantecon as qe
import scipy.sparse as sp
import scipy.sparse.linalg as spla
from sequence_jacobian.utilities.optimized_routines import within_tolerance

from hact.Errors import (ConvergenceError, EigenvalueError, NumericalWarning,
                         SingularSystemError)
from hact.toolkit.utils import unvec

log = logging.getLogger(__name__)

METHODS = ('direct', 'gth', 'eigs', 'resolvent', 'iterate')


def _to_density(mass, n):
    """Clip round-off, normalize and turn the stacked mass into a density on the grid."""
    mass = np.maximum(np.real(mass), 0)
    total = np.sum(mass)
    if not np.isfinite(total) or total <= 0:
        raise SingularSystemError('stationary distribution has no mass')
    return unvec(mass / total, (n['Na'], n['Nz'])) / n['daa']


def _factorize(B):
    # splu signals exact singularity with a RuntimeError, near-singularity shows up as inf/nan
    lu = spla.splu(B.tocsc())
    if not np.all(np.isfinite(lu.U.diagonal())) or np.any(lu.U.diagonal() == 0):
        raise RuntimeError('Factor is exactly singular')
    return lu


def solve_KF_direct(A, n, ifix=None, fix_value=0.1, regularization=np.sqrt(np.finfo(float).eps),
                    full_output=False):
    """Stationary distribution by a linear solve with one row of A' fixed.

    Row ifix of A' is replaced by a unit row and the corresponding right-hand side
    by fix_value, which pins down the scale. ifix should be a state with positive
    mass (the bottom of the asset grid is, whenever the borrowing constraint binds).
    If the system is singular, regularization * I is added and the solve retried.

    Args:
        A: Generator (Ntot x Ntot)
        n: Dict giving the numerical parameters (eg. grid size, etc.)
        ifix: Index where to normalize the distribution inversion, defaults to n['ifix']
        fix_value: Mass put on state ifix before renormalizing
        regularization: Multiple of the identity added if the system is singular
        full_output: Also return whether the regularization was needed
    Returns:
        g: Density (Na x Nz)
        regularized: Only if full_output
    """
    ifix = n['ifix'] if ifix is None else ifix
    N    = A.shape[0]

    # normalize transition matrix row
    keep = np.ones(N)
    keep[ifix] = 0
    B = sp.diags(keep) @ sp.csr_matrix(A).T + sp.csr_matrix(([1.0], ([ifix], [ifix])), shape=(N, N))

    gRHS = np.zeros(N)
    gRHS[ifix] = fix_value

    regularized = False
    try:
        mass = _factorize(B).solve(gRHS)
    except RuntimeError:
        warnings.warn('singular system in the stationary distribution, added '
                      f'{regularization:.2e} * I', NumericalWarning, stacklevel=2)
        regularized = True
        try:
            mass = _factorize(B + regularization * sp.eye(N)).solve(gRHS)
        except RuntimeError as e:
            raise SingularSystemError('stationary distribution system singular '
                                      'even after regularization') from e

    g = _to_density(mass, n)
    if full_output:
        return g, regularized
    return g


def solve_KF_gth(A, n):
    """Stationary distribution by the Grassmann-Taksar-Heyman algorithm.

    Works on the dense generator, so it is meant for small grids.
    """
    A = A.toarray() if sp.issparse(A) else np.asarray(A, dtype=float)
    return _to_density(qe.gth_solve(A), n)


def solve_KF_eigs(A, n, tol=1e-5, on_nonzero='warn', shift=1e-9):
    """Stationary distribution as the eigenvector of A' for the eigenvalue closest to zero.

    Args:
        A: Generator (Ntot x Ntot)
        n: Dict giving the numerical parameters (eg. grid size, etc.)
        tol: Largest absolute eigenvalue accepted as zero
        on_nonzero: 'warn' returns the eigenvector anyway, 'raise' raises EigenvalueError
        shift: Shift used in the shift-invert mode of the eigensolver
    """
    if on_nonzero not in ('warn', 'raise'):
        raise ValueError("on_nonzero must be 'warn' or 'raise'")

    eta, vec = spla.eigs(sp.csc_matrix(A).T.tocsc(), k=1, sigma=shift)
    eta = eta[0]
    log.debug(f'principal eigenvalue {eta:.3e}')

    if abs(eta) > tol:
        msg = f'principal eigenvalue does not seem to be zero: {eta:.3e}'
        if on_nonzero == 'raise':
            raise EigenvalueError(msg)
        warnings.warn(msg, NumericalWarning, stacklevel=2)

    # eigenvector is determined up to a (complex) scalar
    mass = np.real(vec[:, 0] / np.sum(vec[:, 0]))
    return _to_density(mass, n)


def solve_KF_resolvent(A, n, delta=1e-12, psi=None):
    """Stationary distribution from (delta I - A') g = delta psi.

    This is the distribution of a population that dies at rate delta and is
    replaced by newborns distributed as psi. It approaches the stationary
    distribution as delta goes to zero and the system is never singular.

    Args:
        A: Generator (Ntot x Ntot)
        n: Dict giving the numerical parameters (eg. grid size, etc.)
        delta: Death rate, must be positive
        psi: Mass distribution of newborns, defaults to uniform
    """
    if delta <= 0:
        raise ValueError('delta needs to be positive')

    N = A.shape[0]
    psi = np.full(N, 1 / N) if psi is None else np.asarray(psi, dtype=float).ravel(order='F')

    B = (delta * sp.eye(N) - sp.csr_matrix(A).T).tocsc()
    mass = np.abs(spla.spsolve(B, delta * psi))
    return _to_density(mass, n)


def solve_KF_iterate(A, n, Delta=None, g0=None, crit=None, maxit=None):
    """Stationary distribution by iterating g <- (I + Delta A') g forward in time.

    Args:
        A: Generator (Ntot x Ntot)
        n: Dict giving the numerical parameters (eg. grid size, etc.)
        Delta: Time step, defaults to the largest step that keeps I + Delta A' non-negative (times 0.9)
        g0: Initial mass distribution, defaults to uniform
        crit: Convergence criterion on the max change of the mass, defaults to n['fwd_tol']
        maxit: Maximum number of steps, defaults to n['fwd_maxit']
    """
    crit  = n['fwd_tol'] if crit is None else crit
    maxit = n['fwd_maxit'] if maxit is None else maxit

    A = sp.csr_matrix(A)
    N = A.shape[0]
    if Delta is None:
        Delta = 0.9 / np.max(np.abs(A.diagonal()))

    B = (sp.eye(N) + Delta * A.T).tocsr()
    g = np.full(N, 1 / N) if g0 is None else np.asarray(g0, dtype=float).ravel(order='F')

    for it in range(maxit):
        g_new = B @ g
        if within_tolerance(g_new, g, crit):
            log.info(f'forward iteration converged after {it + 1} iterations')
            return _to_density(g_new, n)
        if it % 10000 == 0:
            log.debug(f'forward iteration {it + 1}: max change {np.max(np.abs(g_new - g)):.3e}')
        g = g_new

    raise ConvergenceError(f'forward iteration did not converge in {maxit} iterations', maxit)


_SOLVERS = {'direct': solve_KF_direct, 'gth': solve_KF_gth, 'eigs': solve_KF_eigs,
            'resolvent': solve_KF_resolvent, 'iterate': solve_KF_iterate}


def solve_KF(A, n, method='direct', **kwargs):
    """Stationary distribution with one of the methods in METHODS."""
    if method not in _SOLVERS:
        raise ValueError(f'unknown method {method!r}, choose one of {METHODS}')
    return _SOLVERS[method](A, n, **kwargs)


def aggregate_assets(g, n):
    """Aggregate asset position sum(a g da)."""
    return np.sum(n['aa'] * g * n['daa'])
