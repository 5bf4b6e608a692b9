# This file builds the generator matrix A of the joint (asset x income) process
## A[i, j] is the intensity of moving from state i to state j, rows sum to zero.
## States are stacked column-major: index of (ia, iz) is iz * Na + ia.
import warnings

import numpy as np
import scipy.sparse as sp
from numba import njit

from hact.Errors import GeneratorError, NumericalWarning


@njit
def _fill_drift(stride, nd, drift_f, drift_b, step_f, step_b):
    """Upwind entries of the drift part along one dimension.

    Args:
        stride: Distance in the stacked index between neighbours along the dimension
        nd: Number of gridpoints along the dimension
        drift_f: Drift used when moving up (only positive values used)
        drift_b: Drift used when moving down (only negative values used)
        step_f: Distance to the next gridpoint along the dimension
        step_b: Distance to the previous gridpoint along the dimension

    Returns:
        rows, cols, vals of the off-diagonal entries
    """
    N = drift_f.shape[0]
    rows = np.empty(2 * N, dtype=np.int64)
    cols = np.empty(2 * N, dtype=np.int64)
    vals = np.empty(2 * N)

    k = 0
    for I in range(N):
        # position along the active dimension, other dimensions held fixed
        i = (I // stride) % nd
        if drift_f[I] > 0 and i < nd - 1:
            rows[k] = I
            cols[k] = I + stride
            vals[k] = drift_f[I] / step_f[I]
            k += 1
        if drift_b[I] < 0 and i > 0:
            rows[k] = I
            cols[k] = I - stride
            vals[k] = -drift_b[I] / step_b[I]
            k += 1

    return rows[:k], cols[:k], vals[:k]


@njit
def _fill_diffusion(stride, nd, var, step_f, step_b):
    """Central second-difference entries along one dimension (reflecting boundaries)."""
    N = var.shape[0]
    rows = np.empty(2 * N, dtype=np.int64)
    cols = np.empty(2 * N, dtype=np.int64)
    vals = np.empty(2 * N)

    k = 0
    for I in range(N):
        i = (I // stride) % nd
        if var[I] <= 0:
            continue
        width = step_f[I] + step_b[I]
        if i < nd - 1:
            rows[k] = I
            cols[k] = I + stride
            vals[k] = var[I] / (step_f[I] * width)
            k += 1
        if i > 0:
            rows[k] = I
            cols[k] = I - stride
            vals[k] = var[I] / (step_b[I] * width)
            k += 1

    return rows[:k], cols[:k], vals[:k]


def _stride(shape, dim):
    # column-major: the first dimension moves fastest
    return int(np.prod(shape[:dim], dtype=np.int64))


def _flat(x, shape):
    return np.ascontiguousarray(np.broadcast_to(x, shape).ravel(order='F'), dtype=np.float64)


def _with_diagonal(rows, cols, vals, N):
    """Assemble off-diagonal entries and set the diagonal to minus the row sum."""
    M = sp.csr_matrix((vals, (rows, cols)), shape=(N, N))
    return fix_diagonal(M)


def fix_diagonal(M):
    """Replace the diagonal so each row sums to exactly zero."""
    M   = sp.csr_matrix(M)
    off = M - sp.diags(M.diagonal())
    return (off - sp.diags(np.asarray(off.sum(axis=1)).ravel())).tocsr()


def drift_generator(shape, dim, drift_f, drift_b, step_f, step_b):
    """Generator of a deterministic drift along dimension dim of a state grid.

    For each state, a positive forward drift moves agents to the next gridpoint
    along dim at rate drift_f / step_f; a negative backward drift moves them to
    the previous gridpoint at rate -drift_b / step_b. The indices of all other
    dimensions are held fixed. Moves that would leave the grid are dropped.

    Args:
        shape: Shape of the state grid, eg. (Na, Nz)
        dim: Dimension the drift acts on
        drift_f, drift_b: Arrays of the grid shape (or broadcastable to it)
        step_f, step_b: Grid steps along dim, broadcastable to shape
    Returns:
        A: Sparse (csr) generator, prod(shape) x prod(shape)
    """
    shape = tuple(shape)
    N     = int(np.prod(shape))
    rows, cols, vals = _fill_drift(_stride(shape, dim), shape[dim],
                                   _flat(drift_f, shape), _flat(drift_b, shape),
                                   _flat(step_f, shape), _flat(step_b, shape))
    return _with_diagonal(rows, cols, vals, N)


def diffusion_generator_nd(shape, dim, drift, sigma, step_f, step_b):
    """Generator of a diffusion dx = drift dt + sigma dW along dimension dim.

    The drift is upwinded, the variance term uses a central second difference
    that is valid on non-uniform grids. Boundaries are reflecting.
    """
    shape = tuple(shape)
    N     = int(np.prod(shape))
    stride, nd = _stride(shape, dim), shape[dim]

    drift  = _flat(drift, shape)
    step_f = _flat(step_f, shape)
    step_b = _flat(step_b, shape)
    var    = _flat(np.asarray(sigma, dtype=float) ** 2, shape)

    r1, c1, v1 = _fill_drift(stride, nd, drift, drift, step_f, step_b)
    r2, c2, v2 = _fill_diffusion(stride, nd, var, step_f, step_b)

    return _with_diagonal(np.concatenate((r1, r2)), np.concatenate((c1, c2)),
                          np.concatenate((v1, v2)), N)


def savings_matrix(sf, sb, n):
    """Asset part of the generator from the upwind savings rates.

    Args:
        sf: Savings where the forward difference is used, zero elsewhere (Na x Nz)
        sb: Savings where the backward difference is used, zero elsewhere (Na x Nz)
        n: Dict giving the numerical parameters (eg. grid size, etc.)
    Returns:
        S: Sparse generator of the savings decisions
    """
    return drift_generator((n['Na'], n['Nz']), 0, sf, sb,
                           n['daf'][:, np.newaxis], n['dab'][:, np.newaxis])


def generator(S, Ly):
    """Full generator: savings part plus income switching part."""
    return fix_diagonal(S + Ly)


def check_generator(A, tol=1e-10, strict=False):
    """Check that A is a generator: rows sum to zero, off-diagonals non-negative.

    Args:
        A: Sparse or dense square matrix
        tol: Allowed deviation, relative to the largest rate once rates exceed one
        strict: Raise GeneratorError instead of warning
    Returns:
        err: Largest absolute row sum
    """
    A   = sp.csr_matrix(A)
    err = np.max(np.abs(np.asarray(A.sum(axis=1)).ravel()))
    off = A - sp.diags(A.diagonal())
    neg = min(off.min(), 0.0)

    # row sums of large rates carry round-off proportional to the rates
    tol = tol * max(1.0, np.max(np.abs(A.diagonal())))

    msg = None
    if err > tol:
        msg = f'Improper transition matrix: max abs row sum {err:.3e}'
    elif neg < -tol:
        msg = f'Improper transition matrix: negative intensity {neg:.3e}'

    if msg is not None:
        if strict:
            raise GeneratorError(msg)
        warnings.warn(msg, NumericalWarning, stacklevel=2)

    return err
