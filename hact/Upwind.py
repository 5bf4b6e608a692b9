# Upwind finite differences of the value function and the implied policies
import logging
import warnings

import numpy as np

from hact.Errors import NumericalWarning
from hact.Utility import utility_prime, utility_prime_inv

log = logging.getLogger(__name__)

EPS = np.finfo(float).eps

CONCAVITY_POLICIES = ('warn', 'raise', 'log', 'ignore')


def upwind(v, p, n, r, income=None, concavity='warn'):
    """Consumption and savings implied by v using the upwind scheme.

    The forward difference is used where it implies positive savings (except at
    the top of the grid), the backward difference where it implies negative
    savings (except at the bottom), and agents consume their income otherwise.

    If both the forward and backward difference point the "right" way the value
    function is not concave. The forward difference is used at such points and
    they are reported according to concavity: 'warn', 'raise', 'log' (at DEBUG)
    or 'ignore'.

    Args:
        v: Value function (Na x Nz)
        p: Dict giving the parameters of the model.
        n: Dict giving the numerical parameters (eg. grid size, etc.)
        r: Interest rate
        income: Labor income (Na x Nz); defaults to n['zz']
        concavity: What to do with points where v is not concave
    Returns:
        pol: Dict with dVf, dVb, dV (upwind), c, s, sf, sb, If, Ib, I0
            sf (sb) equals s where the forward (backward) difference is used, zero elsewhere
    """
    if concavity not in CONCAVITY_POLICIES:
        raise ValueError(f'concavity must be one of {CONCAVITY_POLICIES}')

    gamma = p['gamma']
    y     = n['zz'] if income is None else income
    coh   = y + r * n['aa'] # income flow, consumption at zero savings

    dVf = np.empty_like(v)
    dVb = np.empty_like(v)

    # forward difference, boundary condition a <= amax
    dVf[:-1, :] = (v[1:, :] - v[:-1, :]) / n['daf'][:-1, np.newaxis]
    dVf[-1, :]  = utility_prime(coh[-1, :], gamma)

    # backward difference, boundary condition a >= amin
    dVb[1:, :] = (v[1:, :] - v[:-1, :]) / n['dab'][1:, np.newaxis]
    dVb[0, :]  = utility_prime(coh[0, :], gamma)

    dVf = np.maximum(dVf, EPS)
    dVb = np.maximum(dVb, EPS)

    # consumption and savings with forward difference
    cf = utility_prime_inv(dVf, gamma)
    sf = coh - cf

    # consumption and savings with backward difference
    cb = utility_prime_inv(dVb, gamma)
    sb = coh - cb

    # consumption and derivative of value function at steady state
    c0  = coh
    dV0 = utility_prime(c0, gamma)

    # indicators for upwind savings rate
    not_top    = np.ones(v.shape, dtype=bool)
    not_bottom = np.ones(v.shape, dtype=bool)
    not_top[-1, :]   = False
    not_bottom[0, :] = False

    If = (sf > 0) & not_top
    Ib = (sb < 0) & not_bottom

    both = If & Ib
    if both.any():
        msg = f'value function not concave at {int(both.sum())} gridpoints'
        if concavity == 'raise':
            raise ValueError(msg)
        elif concavity == 'warn':
            warnings.warn(msg, NumericalWarning, stacklevel=2)
        elif concavity == 'log':
            log.debug(msg)
        Ib = Ib & ~If

    I0 = ~(If | Ib)

    dV = np.where(If, dVf, np.where(Ib, dVb, dV0))
    c  = np.where(I0, c0, utility_prime_inv(dV, gamma))
    s  = np.where(I0, 0.0, coh - c)

    return {'dVf': dVf, 'dVb': dVb, 'dV': dV, 'c': c, 's': s,
            'sf': np.where(If, sf, 0.0), 'sb': np.where(Ib, sb, 0.0),
            'If': If, 'Ib': Ib, 'I0': I0}
