# Asset grids. Power spaced grids follow the HANK replication files (Grids.f90)
import warnings

import numpy as np

from hact.Errors import NumericalWarning


def power_spaced_grid(n, k, low, high):
    """Grid between low and high spaced by x^(1/k) on the unit interval.

    k = 1 is linear, k -> 0 is L-shaped (points pile up at low).

    Args:
        n: Number of gridpoints (at least 2)
        k: Curvature
        low: Lowest gridpoint
        high: Highest gridpoint
    Returns:
        grid: Strictly increasing array of n points
    """
    if n < 2:
        raise ValueError("n must be at least 2 to make grids")
    if k <= 0:
        raise ValueError("k must be positive")

    x = np.linspace(0.0, 1.0, n)
    grid = low + (high - low) * x ** (1.0 / k)
    return _check_increasing(grid)


def symmetric_power_spaced_grid(n, k, width, center):
    """Grid of n points symmetric around center, dense near center for k < 1."""
    if n % 2 == 0:
        raise ValueError("n must be odd so that center is a gridpoint")
    grid = np.zeros(n)
    n_half = (n + 1) // 2

    # positive half, then mirror it for the negative half
    half_grid = power_spaced_grid(n_half, k, 0.0, width / 2)
    grid[n - n_half:] = half_grid
    grid[:n_half] = -half_grid[::-1]

    return _check_increasing(grid + center)


def power_spaced_grid_equispaced_tail(n, ntail, k, low, high):
    """Power spaced grid whose first ntail points are equally spaced."""
    grid = power_spaced_grid(n, k, low, high)
    if ntail > 1:
        grid[:ntail] = np.linspace(grid[0], grid[ntail - 1], ntail)
    return _check_increasing(grid)


def two_sided_power_spaced_grid(n, k_neg, k_pos, low, high, mid=0.0, frac_neg=None):
    """Grid that is dense around low (borrowing constraint) and around mid.

    A fraction frac_neg of the points is put on [low, mid]. That part is
    filled symmetrically from both ends, so it is sparse in the interior and
    dense near low and mid. The remaining points are power spaced on [mid, high].

    Args:
        n: Total number of gridpoints
        k_neg: Curvature of the negative part
        k_pos: Curvature of the positive part
        low: Lowest gridpoint
        high: Highest gridpoint
        mid: Point separating the two parts (usually zero)
        frac_neg: Fraction of points on [low, mid]. Defaults to the length share
    Returns:
        grid: Strictly increasing array of n points
    """
    if frac_neg is None:
        frac_neg = (mid - low) / (high - low)
    if not 0 <= frac_neg < 1:
        raise ValueError("frac_neg must be in [0, 1)")

    n_neg = int(round(n * frac_neg))
    n_pos = n - n_neg

    if n_neg == 0:
        return power_spaced_grid(n, k_pos, mid, high)

    if n_neg % 2 == 1:
        n_neg += 1
        n_pos -= 1
        warnings.warn("n_neg needs to be even, increased n_neg and decreased n_pos by 1",
                      NumericalWarning, stacklevel=2)

    if n_pos < 2:
        raise ValueError("too few gridpoints left for the positive part of the grid")
    if not low < mid < high:
        raise ValueError("need low < mid < high")

    grid = np.zeros(n)

    # positive part (its first point is mid)
    grid[n_neg:] = power_spaced_grid(n_pos, k_pos, mid, high)

    # negative part: cut in half and fill from both sides
    n_half = n_neg // 2 + 1
    half_width = (mid - low) / 2.0
    neg_half_grid = power_spaced_grid(n_half, k_neg, 0.0, half_width)
    grid[:n_half] = low + neg_half_grid
    grid[n_half - 1:2 * n_half - 1] = mid - neg_half_grid[::-1]

    return _check_increasing(grid)


def grid_steps(a):
    """Forward steps, backward steps and cell widths of a grid.

    Boundary steps are copied from the neighbouring interval, so on a
    uniform grid all three arrays equal the grid spacing.

    Args:
        a: Strictly increasing grid
    Returns:
        daf: a[i+1] - a[i] (last entry repeated)
        dab: a[i] - a[i-1] (first entry repeated)
        da: Cell widths (daf + dab) / 2, used to weight densities
    """
    d = np.diff(a)
    daf = np.concatenate((d, [d[-1]]))
    dab = np.concatenate(([d[0]], d))
    da = 0.5 * (daf + dab)
    return daf, dab, da


def is_uniform(a, rtol=1e-10):
    d = np.diff(a)
    return np.allclose(d, d[0], rtol=rtol, atol=0)


def _check_increasing(grid):
    if np.any(np.diff(grid) <= 0):
        raise ValueError("grid is not strictly increasing")
    return grid
