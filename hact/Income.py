# Income processes in continuous time: income levels and their generator Lambda
## Lambda[i, j] is the intensity of switching from income state i to j, rows sum to 0.
import numpy as np
import scipy.sparse as sp
from scipy import stats
from sequence_jacobian.utilities.discretize import markov_rouwenhorst

from hact.Grids import grid_steps
from hact.Transition_Matrix import diffusion_generator_nd


def poisson_generator(lam):
    """Generator of a Poisson switching process.

    Args:
        lam: Either the two intensities (lam_12, lam_21) of a two-state process,
            or a square matrix of intensities (diagonal ignored)
    Returns:
        Lambda: Nz x Nz generator
    """
    lam = np.asarray(lam, dtype=float)
    if lam.ndim == 1:
        if lam.shape[0] != 2:
            raise ValueError('a vector of intensities describes a two-state process')
        lam_12, lam_21 = lam
        Lambda = np.array([[-lam_12, lam_12],
                           [lam_21, -lam_21]])
    else:
        Lambda = lam.copy()
        np.fill_diagonal(Lambda, 0.0)
        np.fill_diagonal(Lambda, -Lambda.sum(axis=1))

    if np.any(Lambda - np.diag(np.diag(Lambda)) < 0):
        raise ValueError('switching intensities must be non-negative')

    return Lambda


def rouwenhorst_generator(rho, sigma, N):
    """Income levels and generator from a Rouwenhorst discretization of log income.

    The per-period transition matrix Pi is read as switching intensities per unit
    of time, so the generator is Pi - I (subtract where the agent comes from).

    Returns:
        z: Income levels (mean one)
        Lambda: N x N generator
    """
    z, _, Pi = markov_rouwenhorst(rho=rho, sigma=sigma, N=N)
    Lambda   = Pi - np.eye(N)
    return z, Lambda


def diffusion_income_grid(kappa, ybar, sigma, Ny=3, q_low=0.001, q_high=0.9999):
    """Equally spaced income grid between quantiles of the Gamma law
    with shape 2 kappa ybar / sigma^2 and scale sigma^2 / (2 kappa)."""
    dist = stats.gamma(a=2 * kappa * ybar / sigma**2, scale=sigma**2 / (2 * kappa))
    return np.linspace(dist.ppf(q_low), dist.ppf(q_high), Ny)


def diffusion_generator(y, kappa, ybar, sigma):
    """Generator of the mean-reverting diffusion dy = kappa (ybar - y) dt + sigma dW on grid y.

    Drift is upwinded, the variance term uses a central second difference, and the
    process is reflected at both ends of the grid.
    """
    y = np.asarray(y, dtype=float)
    dyf, dyb, _ = grid_steps(y)
    mu = kappa * (ybar - y)
    return diffusion_generator_nd((y.shape[0],), 0, mu, sigma, dyf, dyb).toarray()


def switch_matrix(Lambda, Na):
    """Income switching extended to the asset x income space: kron(Lambda, I_Na)."""
    return sp.kron(sp.csr_matrix(Lambda), sp.eye(Na), format='csr')
