# This file includes the functions to calculate the steady state in continuous time:
## the interest rate that clears the asset market, with the value function and
## stationary distribution at that interest rate.
import logging

import numpy as np
import scipy.optimize as opt

from hact.Errors import BracketError, ConvergenceError
from hact.HJB import solve_HJB
from hact.KF import solve_KF, aggregate_assets

log = logging.getLogger(__name__)


def excess_demand(p, n, r, target=0.0, scheme=None, kf_method='direct', crit=None,
                  full_output=False, **kf_kwargs):
    """Aggregate assets minus target at interest rate r.

    Args:
        p: Dict giving the parameters of the model.
        n: Dict giving the numerical parameters (eg. grid size, etc.)
        r: Interest rate
        target: Asset supply to be matched (zero in a closed Huggett economy)
        scheme: HJB update scheme, see HJB.solve_HJB
        kf_method: Stationary distribution method, see KF.METHODS
        crit: HJB convergence criterion
        full_output: Also return the HJB solution and the distribution
    Returns:
        S: Excess demand for assets
        hjb, g: Only if full_output
    """
    hjb = solve_HJB(p, n, r, scheme=scheme, crit=crit)
    g   = solve_KF(hjb['A'], n, method=kf_method, **kf_kwargs)
    S   = aggregate_assets(g, n) - target

    log.debug(f'excess demand at r = {r:.8f}: {S:.3e}')

    if full_output:
        return S, hjb, g
    return S


def solve_steady_state(p, n, bracket=None, target=0.0, xtol=None, maxiter=None, scheme=None,
                       kf_method='direct', crit=None, **kf_kwargs):
    """Solve for the steady state.

    Brent's method on r -> excess_demand(r). The excess demand is evaluated at both
    ends of the bracket first; without a change of sign the market cannot be cleared
    in the bracket and BracketError is raised.

    Args:
        p: Dict giving the parameters of the model.
        n: Dict giving the numerical parameters (eg. grid size, etc.)
        bracket: (r_lo, r_hi), defaults to (n['rmin'], n['rmax'])
        target: Asset supply to be matched
        xtol: Absolute tolerance on r, defaults to n['crit_S']
        maxiter: Maximum number of root-finder iterations, defaults to n['Ir']
        scheme: HJB update scheme
        kf_method: Stationary distribution method
        crit: HJB convergence criterion
    Returns:
        ss: A dictionary of the steady state values.
    """
    r_lo, r_hi = (n['rmin'], n['rmax']) if bracket is None else bracket
    xtol       = n['crit_S'] if xtol is None else xtol
    maxiter    = n['Ir'] if maxiter is None else maxiter

    if not r_lo < r_hi:
        raise ValueError('bracket must satisfy r_lo < r_hi')

    # Function that optimizer will call for each guess of r to check market clearing
    cache = {}
    def r_iteration(r):
        if r not in cache:
            cache[r] = excess_demand(p, n, r, target=target, scheme=scheme, kf_method=kf_method,
                                     crit=crit, **kf_kwargs)
        return cache[r]

    S_lo, S_hi = r_iteration(r_lo), r_iteration(r_hi)
    if np.sign(S_lo) == np.sign(S_hi):
        raise BracketError(f'excess demand has the same sign at both ends of the bracket '
                           f'({r_lo}: {S_lo:.3e}, {r_hi}: {S_hi:.3e})',
                           bracket=(r_lo, r_hi), values=(S_lo, S_hi))

    # Brent's method to solve for r that clears the asset market
    r, sol = opt.brentq(r_iteration, r_lo, r_hi, full_output=True, xtol=xtol, maxiter=maxiter,
                        disp=False)

    if not sol.converged:
        raise ConvergenceError(f'Steady-state solver did not converge ({sol.flag}).', sol.iterations)

    log.info(f'steady state: r = {r:.8f} after {sol.iterations} iterations')

    # get distribution, value and policy functions at optimal r
    S, hjb, g = excess_demand(p, n, r, target=target, scheme=scheme, kf_method=kf_method,
                              crit=crit, full_output=True, **kf_kwargs)

    # Assign output
    ss = {}
    ss['r']          = r                       # steady-state interest rate
    ss['V']          = hjb['V']                # steady-state value function
    ss['c']          = hjb['c']                # steady-state consumption
    ss['s']          = hjb['s']                # steady-state savings
    ss['sf']         = hjb['sf']               # steady-state savings if positive
    ss['sb']         = hjb['sb']               # steady-state savings if negative
    ss['A']          = hjb['A']                # generator of the joint process
    ss['g']          = g                       # steady-state density
    ss['gm']         = g * n['daa']            # steady-state distribution mass
    ss['K']          = aggregate_assets(g, n)  # aggregate assets
    ss['excess']     = S                       # remaining excess demand
    ss['it_last']    = hjb['it_last']          # HJB iterations at r
    ss['dist']       = hjb['dist']             # HJB convergence history at r
    ss['iterations'] = sol.iterations          # root-finder iterations

    return ss
