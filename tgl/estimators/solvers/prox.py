"""Proximal operator of the L2,1 norm (row-wise group soft-thresholding)."""
import numpy as np
from numba import jit, float64

from ...exceptions import InvalidInput


@jit(float64[:, :](float64[:, :], float64), nopython=True, cache=True)
def _prox_l21_numba(V, threshold):
    """Block soft-threshold every row of V."""
    n_features, n_tasks = V.shape
    out = np.zeros((n_features, n_tasks))
    for j in range(n_features):
        normv = 0.
        for t in range(n_tasks):
            normv += V[j, t] ** 2
        normv = np.sqrt(normv)

        # l2 thresholding
        if normv <= threshold:
            continue
        scale = 1. - threshold / normv
        for t in range(n_tasks):
            out[j, t] = V[j, t] * scale
    return out


def prox_l21(V, lambda_):
    r"""Compute the proximal operator of `lambda_` times the L2,1 norm.

    Each row `v` of `V` is mapped independently to

    .. math::

        \arg\min_w \frac{1}{2}\|w - v\|_2^2 + \lambda \|w\|_2

    whose solution is 0 if :math:`\|v\|_2 \leq \lambda` and
    :math:`v (1 - \lambda / \|v\|_2)` otherwise.

    Parameters
    ----------
    V : array, shape (n_features, n_tasks)
    lambda_ : float >= 0.
        threshold. `lambda_` = 0 returns a copy of `V`.

    Returns
    -------
    array, shape (n_features, n_tasks)

    """
    if not lambda_ >= 0.:
        raise InvalidInput("The threshold must be non-negative, got %s."
                           % lambda_)
    V = np.asarray(V, dtype=np.float64)
    if V.ndim != 2:
        raise InvalidInput("Expected a 2d array, got %d dimensions."
                           % V.ndim)
    return _prox_l21_numba(V, float(lambda_))


def prox_l2(v, lambda_):
    """Proximal operator of `lambda_` times the euclidean norm of `v`."""
    v = np.asarray(v, dtype=np.float64)
    return prox_l21(v[None, :], lambda_)[0]
