import numpy as np
from numba import jit, float64
from sklearn.utils import check_random_state

from .exceptions import InvalidInput


@jit(float64(float64[:, :]), nopython=True, cache=True)
def l21norm(theta):
    """Compute the L2,1 norm: sum of the euclidean norms of the rows."""
    n_features, n_tasks = theta.shape
    out = 0.
    for j in range(n_features):
        normj = 0.
        for t in range(n_tasks):
            normj += theta[j, t] ** 2
        out += np.sqrt(normj)
    return out


def check_tasks(X, Y):
    """Validate a ragged multi-task dataset.

    Returns tuples of float arrays: X[k] of shape (n_samples_k, n_features)
    and Y[k] of shape (n_samples_k,).

    """
    if X is None or Y is None:
        raise InvalidInput("Inputs X and Y should be specified.")
    if len(X) != len(Y):
        raise InvalidInput("X and Y must have the same number of tasks, "
                           "got %d and %d." % (len(X), len(Y)))
    if len(X) == 0:
        raise InvalidInput("At least one task is required.")
    X = tuple(np.asarray(x, dtype=np.float64) for x in X)
    Y = tuple(np.asarray(y, dtype=np.float64).reshape(-1) for y in Y)
    n_features = X[0].shape[-1]
    for k, (x, y) in enumerate(zip(X, Y)):
        if x.ndim != 2:
            raise InvalidInput("X[%d] must be 2d, got shape %s."
                               % (k, x.shape))
        if x.shape[1] != n_features:
            raise InvalidInput("X[%d] has %d features, expected %d."
                               % (k, x.shape[1], n_features))
        if x.shape[0] != y.shape[0]:
            raise InvalidInput("X[%d] has %d samples but Y[%d] has %d."
                               % (k, x.shape[0], k, y.shape[0]))
    return X, Y


def get_xty(X, Y):
    """Stack the correlations X_k^T y_k as the columns of a matrix.

    Parameters
    ----------
    X : list of arrays of shape (n_samples_k, n_features).
    Y : list of arrays of shape (n_samples_k,).

    Returns
    -------
    array, shape (n_features, n_tasks)

    """
    xty = [x.T.dot(np.ravel(y)) for x, y in zip(X, Y)]
    return np.stack(xty, axis=1)


def rho3_max(X, Y):
    """Smallest group penalty for which zero is a solution.

    At W = 0 the ridge and smoothness gradients vanish, so 0 is optimal
    iff every row of X^T Y has a norm below `rho3`.

    """
    xty = get_xty(X, Y)
    return np.linalg.norm(xty, axis=1).max()


def build_dataset(n_samples=30, n_features=50, n_tasks=5, n_informative=5,
                  drift=0.1, noise=0., seed=None):
    """Build a temporal multi-task regression problem.

    The coefficients share a common support of `n_informative` rows and
    follow a random walk across the (ordered) tasks.

    Parameters
    ----------
    n_samples : int or list of ints.
        number of samples per task. A list gives one size per task.
    n_features : int.
    n_tasks : int.
        number of time points.
    n_informative : int.
        number of non-zero rows of the coefficients.
    drift : float.
        standard deviation of the step of the random walk.
    noise : float.
        standard deviation of the gaussian noise added to the targets.
    seed : None, int or RandomState.

    Returns
    -------
    X : list of arrays of shape (n_samples_k, n_features).
    Y : list of arrays of shape (n_samples_k,).
    coefs : array, shape (n_features, n_tasks).

    """
    rng = check_random_state(seed)
    if np.isscalar(n_samples):
        n_samples = n_tasks * [n_samples]
    if len(n_samples) != n_tasks:
        raise ValueError("Got %d sample sizes for %d tasks."
                         % (len(n_samples), n_tasks))
    n_informative = min(n_informative, n_features)
    support = rng.choice(n_features, n_informative, replace=False)

    coefs = np.zeros((n_features, n_tasks))
    steps = drift * rng.randn(n_informative, n_tasks)
    steps[:, 0] += rng.choice([-1., 1.], n_informative)
    coefs[support] = np.cumsum(steps, axis=1)

    X, Y = [], []
    for k, n in enumerate(n_samples):
        x = rng.randn(n, n_features)
        y = x.dot(coefs[:, k])
        if noise:
            y += noise * rng.randn(n)
        X.append(x)
        Y.append(y)

    return X, Y, coefs


def inspector_tgl(objective, verbose=False, begin=0):
    """Build a callback recording the objective along the iterations.

    Parameters
    ----------
    objective : callable.
        full objective evaluated at the coefficients.
    verbose : boolean.
        if True, print the objective at each call.
    begin : int.
        index of the first call to print.

    Returns
    -------
    callable `callback(coefs, obj=None)` with a `log` attribute.

    """
    log = dict(objective=[], n_calls=0)

    def callback(coefs, obj=None):
        if obj is None:
            obj = objective(coefs)
        log["objective"].append(obj)
        log["n_calls"] += 1
        if verbose and log["n_calls"] > begin:
            print("%5d  %.6e" % (log["n_calls"], obj))

    callback.log = log

    return callback
