# CRRA utility and its derivatives
import numpy as np


def utility(c, gamma):
    if gamma != 1:
        return (c ** (1 - gamma)) / (1 - gamma)
    else:
        return np.log(c)

# u'(c)
def utility_prime(c, gamma):
    return c ** (-gamma)

# u'^{-1}(c)
def utility_prime_inv(dV, gamma):
    return dV ** (-1 / gamma)


def initial_guess(p, n, r):
    """Value of consuming income forever without moving: u(z + r a) / rho."""
    return utility(n['zz'] + r * n['aa'], p['gamma']) / p['rho']
