# This file solves for the transition dynamics of the household block given a
## time path of interest rates r_t: households look ahead from the terminal
## steady state (HJB backward in time), the distribution is pushed forward from
## its initial value (KF forward in time). Both steps are implicit in time.
import logging

import numpy as np
import scipy.sparse as sp
import scipy.sparse.linalg as spla

from hact.HJB import check_borrowing_constraint, policy_and_generator
from hact.toolkit.utils import vec, unvec

log = logging.getLogger(__name__)


def interest_rate_path(r_t, dt, N_t=None):
    """Interest rates on the time grid t = 0, dt, ..., (N_t - 1) dt.

    Args:
        r_t: Array of rates, or a function of time
        dt: Time step
        N_t: Number of time periods, needed when r_t is a function
    """
    if callable(r_t):
        if N_t is None:
            raise ValueError('N_t is needed when r_t is a function of time')
        return np.array([r_t(t) for t in dt * np.arange(N_t)], dtype=float)

    r_t = np.asarray(r_t, dtype=float).ravel()
    if N_t is not None and r_t.shape[0] != N_t:
        raise ValueError('r_t does not have N_t entries')
    return r_t


def solve_transition(p, n, r_t, dt, ss_end, g0, N_t=None, concavity='warn'):
    """Value functions, policies and distributions along a path of interest rates.

    Backward: ((rho + 1/dt) I - A_t) V_t = u_t + V_{t+1} / dt from V_T = ss_end['V'],
    with policies and A_t implied by V_{t+1} at rate r_t.
    Forward: (I - dt A_t') m_{t+1} = m_t from the initial mass m_0 = g0 * da, which
    keeps the total mass at one in every period.

    Args:
        p: Dict giving the parameters of the model.
        n: Dict giving the numerical parameters (eg. grid size, etc.)
        r_t: Interest rate path, array or function of time
        dt: Time step
        ss_end: Terminal steady state (dict with the value function V)
        g0: Initial density (Na x Nz)
        N_t: Number of periods (only needed if r_t is a function)
        concavity: Policy for non-concave points, see Upwind.upwind
    Returns:
        td: Dict with r_t, t, V_t, c_t, s_t, g_t (densities) and K_t (aggregate assets)
    """
    if dt <= 0:
        raise ValueError('dt must be positive')

    r_t = interest_rate_path(r_t, dt, N_t)
    T   = r_t.shape[0]
    shape = (n['Na'], n['Nz'])

    for r in np.unique(r_t):
        check_borrowing_constraint(p, n, r)

    V_t = np.empty((T,) + shape)
    c_t = np.empty((T,) + shape)
    s_t = np.empty((T,) + shape)
    A_t = [None] * T

    ## backward iteration of the HJB
    I = sp.eye(n['Ntot'], format='csc')
    V_next = np.asarray(ss_end['V'], dtype=float)
    for t in reversed(range(T)):
        pol, u, A = policy_and_generator(V_next, p, n, r_t[t], concavity=concavity)

        M = (p['rho'] + 1 / dt) * I - A
        V = unvec(spla.spsolve(M.tocsc(), vec(u) + vec(V_next) / dt), shape)

        V_t[t], c_t[t], s_t[t], A_t[t] = V, pol['c'], pol['s'], A
        V_next = V

    ## forward iteration of the KF
    m = vec(np.asarray(g0, dtype=float) * n['daa'])
    if abs(np.sum(m) - 1) > 1e-8:
        raise ValueError('initial density must integrate to one')

    g_t = np.empty((T,) + shape)
    g_t[0] = unvec(m, shape) / n['daa']
    for t in range(T - 1):
        m = spla.spsolve((I - dt * A_t[t].T).tocsc(), m)
        g_t[t + 1] = unvec(m, shape) / n['daa']

    K_t = np.sum(n['aa'] * g_t * n['daa'], axis=(1, 2))
    log.info(f'transition path: {T} periods, aggregate assets {K_t[0]:.4f} -> {K_t[-1]:.4f}')

    # Assign output
    td = {}
    td['r_t'] = r_t                  # interest rate path
    td['t']   = dt * np.arange(T)    # time grid
    td['V_t'] = V_t                  # value functions
    td['c_t'] = c_t                  # consumption
    td['s_t'] = s_t                  # savings
    td['g_t'] = g_t                  # densities
    td['K_t'] = K_t                  # aggregate assets

    return td
