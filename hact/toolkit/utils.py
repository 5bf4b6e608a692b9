import numpy as np


def vec(x):
    """Stack a state array column by column (income blocks one after another)."""
    return np.asarray(x).ravel(order='F')


def unvec(x, shape):
    """Inverse of vec."""
    return np.asarray(x).reshape(shape, order='F')
