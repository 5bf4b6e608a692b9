import numpy as np

from hact.Grids import power_spaced_grid, two_sided_power_spaced_grid, grid_steps
from hact.Income import (poisson_generator, rouwenhorst_generator, diffusion_income_grid,
                         diffusion_generator, switch_matrix)

# Each function returns a new dict so that defaults can never be modified by callers.


def _override(p, overrides):
    unknown = set(overrides) - set(p)
    if unknown:
        raise KeyError(f'unknown parameters: {sorted(unknown)}')
    p.update(overrides)
    return p


# Economic Parameters for the Huggett model with two-state Poisson income
def param_econ(**overrides):
    p = {}
    p['income'] = 'poisson'

    ## preferences
    p['gamma'] = 2.0  # risk aversion, u'(c) = c^(-gamma)
    p['rho']   = 0.05 # rate of time preference

    ## income process
    p['z']   = np.array([0.1, 0.2])   # income states
    p['lam'] = np.array([0.02, 0.03]) # switching intensities

    ## interest rate (partial equilibrium)
    p['r'] = 0.03

    # asset grid bounds (amin is the borrowing constraint)
    p['amin'] = -0.1
    p['amax'] = 1.0

    return _override(p, overrides)


# Economic Parameters for the Huggett model with diffusion income
def param_econ_diffusion(**overrides):
    p = {}
    p['income'] = 'diffusion'

    ## preferences
    p['gamma'] = 2.0
    p['rho']   = 0.05

    ## income process dy = kappa_y (ybar - y) dt + sigma_y dW
    p['kappa_y'] = 0.1
    p['ybar']    = 1.0
    p['sigma_y'] = 0.07

    p['r'] = 0.03

    p['amin'] = 0.0
    p['amax'] = 5.0

    return _override(p, overrides)


# Economic Parameters for the Huggett model with Rouwenhorst income
def param_econ_rouwenhorst(**overrides):
    p = {}
    p['income'] = 'rouwenhorst'

    ## preferences
    p['gamma'] = 2.0
    p['rho']   = 0.05

    ## individual productivity process
    p['rho_e']   = 0.91 # rho for AR(1) of log(e)
    p['sigma_e'] = 0.5  # stdev of cross-section of idiosyncratic productivity

    p['r'] = 0.03

    p['amin'] = 0.0
    p['amax'] = 50.0

    return _override(p, overrides)


def income_process(p, Nz=None):
    """Income levels and their generator for the income specification in p."""
    if p['income'] == 'poisson':
        z = np.asarray(p['z'], dtype=float)
        Lambda = poisson_generator(p['lam'])
    elif p['income'] == 'rouwenhorst':
        z, Lambda = rouwenhorst_generator(p['rho_e'], p['sigma_e'], 7 if Nz is None else Nz)
    elif p['income'] == 'diffusion':
        z = diffusion_income_grid(p['kappa_y'], p['ybar'], p['sigma_y'], 3 if Nz is None else Nz)
        Lambda = diffusion_generator(z, p['kappa_y'], p['ybar'], p['sigma_y'])
    else:
        raise ValueError(f"unknown income process {p['income']!r}")

    if Lambda.shape != (z.shape[0], z.shape[0]):
        raise ValueError('income levels and generator do not match')

    return z, Lambda


def asset_grid(p, Na, grid='uniform', k=1.0, k_neg=0.9, k_pos=0.5, mid=0.0, frac_neg=None):
    if grid == 'uniform':
        return np.linspace(p['amin'], p['amax'], Na)
    elif grid == 'power':
        return power_spaced_grid(Na, k, p['amin'], p['amax'])
    elif grid == 'two_sided':
        return two_sided_power_spaced_grid(Na, k_neg, k_pos, p['amin'], p['amax'],
                                           mid=mid, frac_neg=frac_neg)
    raise ValueError(f'unknown grid type {grid!r}')


# Numerical Parameters
def param_num(p, Na=500, Nz=None, grid='uniform', **grid_kwargs):
    n = {}

    ## Idiosyncratic states
    z, Lambda = income_process(p, Nz)
    n['Na']   = Na
    n['Nz']   = z.shape[0]
    n['Ntot'] = n['Na'] * n['Nz']
    n['z']    = z

    n['a'] = asset_grid(p, Na, grid=grid, **grid_kwargs)  # asset grid
    n['daf'], n['dab'], n['da'] = grid_steps(n['a'])  # forward, backward steps and cell widths
    n['amin'] = n['a'][0]
    n['amax'] = n['a'][-1]

    # grids in asset x income space
    n['aa']  = np.tile(n['a'][:, np.newaxis], (1, n['Nz']))  # assets
    n['zz']  = np.tile(z, (n['Na'], 1))                     # income
    n['daa'] = np.tile(n['da'][:, np.newaxis], (1, n['Nz'])) # cell widths

    # convergence and smoothing criteria
    n['Delta']     = 1000               # pseudo time step for implicit HJB
    n['maxit']     = 100                # maximum HJB iterations (implicit)
    n['crit']      = 1e-8               # HJB convergence criterion
    n['crit_S']    = 1e-6               # tolerance on the equilibrium interest rate
    n['rmin']      = 1e-5               # lower bound on possible interest rate
    n['rmax']      = p['rho'] * 0.9999  # upper bound on possible interest rate
    n['Ir']        = 300                # maximum number of interest rate iterations
    n['ifix']      = 0                  # index where to normalize the distribution inversion
    n['fwd_tol']   = 1e-12              # forward iteration convergence tolerance
    n['fwd_maxit'] = 500_000            # forward iteration maximum iterations

    # income transitions
    n['Lambda'] = Lambda
    n['Ly']     = switch_matrix(Lambda, n['Na']) # income transition extended to asset space

    return n
