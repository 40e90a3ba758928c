"""Smooth part of the temporal group lasso objective."""
import numpy as np
from joblib import Parallel, delayed

from ...exceptions import InvalidInput


def temporal_operator(n_tasks):
    """Build the first difference operator between consecutive tasks.

    Parameters
    ----------
    n_tasks : int >= 1.

    Returns
    -------
    R : array, shape (n_tasks, n_tasks - 1)
        R[i, i] = 1 and R[i + 1, i] = -1.
    RRt : array, shape (n_tasks, n_tasks)
        R.dot(R.T). Zero if `n_tasks` = 1.

    """
    if n_tasks < 1:
        raise InvalidInput("n_tasks must be >= 1, got %s." % n_tasks)
    R = np.eye(n_tasks, n_tasks - 1) - np.eye(n_tasks, n_tasks - 1, k=-1)
    RRt = R.dot(R.T)
    return R, RRt


def _task_loss(x, y, theta):
    """Squared loss of one task."""
    residual = y - x.dot(theta)
    return 0.5 * residual.dot(residual)


def _task_grad(x, y, theta):
    """Gradient of the squared loss of one task."""
    return x.T.dot(x.dot(theta) - y)


class SequentialExecutor(object):
    """Evaluate the per-task terms one after the other."""

    def __enter__(self):
        return self

    def __exit__(self, *args):
        pass

    def map(self, func, tasks):
        return [func(*args) for args in tasks]


class ParallelExecutor(object):
    """Evaluate the per-task terms in a joblib thread pool.

    Each call to `map` returns once all the tasks are done.

    """

    def __init__(self, n_jobs=-1):
        self.n_jobs = n_jobs
        self._pll = None

    def __enter__(self):
        self._pll = Parallel(n_jobs=self.n_jobs, backend="threading")
        self._pll.__enter__()
        return self

    def __exit__(self, *args):
        self._pll.__exit__(*args)
        self._pll = None

    def map(self, func, tasks):
        if self._pll is None:
            with Parallel(n_jobs=self.n_jobs, backend="threading") as pll:
                return pll(delayed(func)(*args) for args in tasks)
        return self._pll(delayed(func)(*args) for args in tasks)


def get_executor(parallel=False, n_jobs=-1):
    if parallel:
        return ParallelExecutor(n_jobs=n_jobs)
    return SequentialExecutor()


class TemporalObjective(object):
    r"""Smooth part of the temporal group lasso objective.

    .. math::

        \frac{1}{2}\sum_{k}\|Y^k - X^k\theta^k\|^2
        + \rho_1 \|\theta\|_F^2 + \rho_2 \|\theta R\|_F^2

    Attributes
    ----------
    n_features : number of features
    n_tasks : length of the lists `X` and `Y`.
    R, RRt : temporal operator and its Gram matrix.

    """

    def __init__(self, X, Y, rho1=0., rho2=0., executor=None):
        """Construct instance.

        Parameters
        ----------
        X : list of arrays of shape (n_samples_k, n_features).
        Y : list of arrays of shape (n_samples_k,).
        rho1 : float >= 0.
            ridge penalty.
        rho2 : float >= 0.
            temporal smoothness penalty.
        executor : SequentialExecutor or ParallelExecutor.
            how the per-task terms are evaluated.

        """
        self.X = tuple(X)
        self.Y = tuple(Y)
        self.rho1 = rho1
        self.rho2 = rho2
        self.n_tasks = len(self.X)
        self.n_features = self.X[0].shape[1]
        self.R, self.RRt = temporal_operator(self.n_tasks)
        if executor is None:
            executor = SequentialExecutor()
        self.executor = executor

    def value(self, theta):
        """Compute the smooth objective at `theta` (n_features, n_tasks)."""
        losses = self.executor.map(_task_loss, zip(self.X, self.Y, theta.T))
        obj = sum(losses)
        obj += self.rho1 * (theta ** 2).sum()
        obj += self.rho2 * (theta.dot(self.R) ** 2).sum()
        return obj

    def gradient(self, theta):
        """Compute the gradient of the smooth objective at `theta`."""
        grads = self.executor.map(_task_grad, zip(self.X, self.Y, theta.T))
        grad = np.stack(grads, axis=1)
        grad += 2 * self.rho1 * theta
        grad += 2 * self.rho2 * theta.dot(self.RRt)
        return grad
