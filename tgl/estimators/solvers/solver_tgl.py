"""FISTA solver for the temporal group lasso."""
import numbers
import warnings

import numpy as np

from ... import utils
from ...exceptions import InvalidInput, MaxIterReached, NumericalInstability
from .objective import TemporalObjective, get_executor
from .options import init_opts
from .prox import prox_l21


GAMMA_INC = 2.
GAMMA_MAX = 1e100
STALL_TOL = 1e-20


def init_coefs(X, Y, init=1, coefs0=None):
    """Compute the starting point of FISTA.

    Parameters
    ----------
    X : list of arrays of shape (n_samples_k, n_features).
    Y : list of arrays of shape (n_samples_k,).
    init : {0, 1, 2}
        0: columns X_k^T y_k, 1: `coefs0` if given else as 0, 2: zeros.
    coefs0 : array, shape (n_features, n_tasks). optional.

    Returns
    -------
    array, shape (n_features, n_tasks)

    """
    n_tasks = len(X)
    n_features = X[0].shape[1]
    if init == 2:
        return np.zeros((n_features, n_tasks))
    if init == 1 and coefs0 is not None:
        coefs0 = np.array(coefs0, dtype=np.float64)
        if coefs0.shape != (n_features, n_tasks):
            raise InvalidInput("W0 must have shape %s, got %s."
                               % ((n_features, n_tasks), coefs0.shape))
        return coefs0
    return utils.get_xty(X, Y)


def nonsmooth(theta, rho3):
    """Compute the group lasso penalty rho3 * ||theta||_{2,1}."""
    return rho3 * utils.l21norm(np.asarray(theta, dtype=np.float64))


def check_termination(loss, n_iter, tflag, tol, maxiter):
    """Test the stopping criterion `tflag` on the objective values.

    Parameters
    ----------
    loss : list of floats.
        objective values, one per completed iteration.
    n_iter : int.
        index of the current iteration (starting at 0).
    tflag : {0, 1, 2, 3}
    tol : float.
    maxiter : int.

    Returns
    -------
    boolean

    """
    if tflag == 3:
        return n_iter >= maxiter
    if n_iter < 2:
        return False
    if tflag == 0:
        return abs(loss[-1] - loss[-2]) <= tol
    if tflag == 1:
        return abs(loss[-1] - loss[-2]) <= tol * loss[-2]
    return loss[-1] <= tol


class FistaState(object):
    """Iterates, momentum and step size of FISTA.

    `gamma` is the inverse step size. It only increases along a solve.

    """

    def __init__(self, coefs0):
        self.coefs = coefs0.copy()
        self.coefs_old = coefs0.copy()
        self.t = 1.
        self.t_old = 0.
        self.gamma = 1.
        self.n_iter = 0
        self.stalled = False
        self.loss = []
        self.gammas = []

    def search_point(self):
        """Extrapolate the last two iterates."""
        alpha = (self.t_old - 1) / self.t
        return (1 + alpha) * self.coefs - alpha * self.coefs_old

    def increase_gamma(self):
        self.gamma *= GAMMA_INC
        if not self.gamma <= GAMMA_MAX:
            raise NumericalInstability(
                "Step size search diverged (gamma = %.3e)." % self.gamma)

    def update(self, coefs, obj):
        self.coefs_old = self.coefs
        self.coefs = coefs
        self.loss.append(obj)
        self.gammas.append(self.gamma)

    def advance(self):
        self.n_iter += 1
        self.t_old = self.t
        self.t = 0.5 * (1 + (1 + 4 * self.t ** 2) ** 0.5)


def _check_rho(rho, name):
    if rho is None:
        raise InvalidInput("Inputs X, Y, rho1, rho2 and rho3 should be "
                           "specified, %s is missing." % name)
    if not (isinstance(rho, numbers.Real) and np.isfinite(rho) and rho >= 0):
        raise InvalidInput("%s must be a non-negative float, got %s."
                           % (name, rho))
    return float(rho)


def solver_tgl(X, Y, rho1=None, rho2=None, rho3=None, opts=None,
               callback=None, verbose=False, return_log=False):
    r"""Perform FISTA to solve the temporal group lasso.

    .. math::

        \min_W \sum_k \frac{1}{2}\|Y^k - X^k W^k\|^2 + \rho_1\|W\|_F^2
        + \rho_2\|W R\|_F^2 + \rho_3\|W\|_{2,1}

    where R takes the differences between consecutive tasks.

    Parameters
    ----------
    X : list of arrays of shape (n_samples_k, n_features).
        tasks ordered in time. n_samples_k may vary across tasks.
    Y : list of arrays of shape (n_samples_k,).
    rho1 : float >= 0.
        ridge penalty.
    rho2 : float >= 0.
        temporal smoothness penalty.
    rho3 : float >= 0.
        L2,1 group lasso penalty.
    opts : dict. optional.
        solver options, see `tgl.estimators.solvers.options`.
    callback : callable. optional.
        called as `callback(W, obj=obj)` after each iteration.
    verbose : boolean. optional.
    return_log : boolean. optional.
        if True, also return a dict with the convergence log.

    Returns
    -------
    W : array, shape (n_features, n_tasks)
    loss : array, shape (n_iter,)
        objective value after each iteration.
    log : dict. returned if `return_log` is True.
        keys: 'loss', 'n_iter', 'stalled', 'converged', 'gamma' and
        'gammas' (gamma after each iteration).

    """
    X, Y = utils.check_tasks(X, Y)
    rho1 = _check_rho(rho1, "rho1")
    rho2 = _check_rho(rho2, "rho2")
    rho3 = _check_rho(rho3, "rho3")
    opts = init_opts(opts)
    tflag, tol, maxiter = opts["tFlag"], opts["tol"], opts["maxIter"]

    coefs0 = init_coefs(X, Y, init=opts["init"], coefs0=opts["W0"])
    state = FistaState(coefs0)
    converged = False

    with get_executor(opts["pFlag"], opts["n_jobs"]) as executor:
        objective = TemporalObjective(X, Y, rho1, rho2, executor=executor)
        while state.n_iter < maxiter:
            Ws = state.search_point()

            # function value and gradient at the search point
            gWs = objective.gradient(Ws)
            Fs = objective.value(Ws)
            if not (np.isfinite(Fs) and np.isfinite(gWs).all()):
                raise NumericalInstability(
                    "Non-finite objective at iteration %d." % state.n_iter)

            while True:
                Wzp = prox_l21(Ws - gWs / state.gamma, rho3 / state.gamma)
                Fzp = objective.value(Wzp)

                delta = Wzp - Ws
                r_sum = (delta ** 2).sum()
                if r_sum <= STALL_TOL:
                    # the gradient step barely moves the iterate
                    state.stalled = True
                    break

                Fzp_gamma = Fs + (delta * gWs).sum() + state.gamma / 2 * r_sum
                if Fzp <= Fzp_gamma:
                    break
                state.increase_gamma()

            obj = Fzp + nonsmooth(Wzp, rho3)
            if not np.isfinite(obj):
                raise NumericalInstability(
                    "Non-finite objective at iteration %d." % state.n_iter)
            state.update(Wzp, obj)
            if callback:
                callback(Wzp, obj=obj)
            if verbose:
                print("%5d  obj = %.6e  gamma = %.3e"
                      % (state.n_iter, obj, state.gamma))

            if state.stalled:
                if verbose:
                    print("Terminated: the gradient step changes the "
                          "solution very little.")
                break

            if check_termination(state.loss, state.n_iter, tflag, tol,
                                 maxiter):
                converged = True
                if verbose:
                    print("Terminated: criterion %d reached." % tflag)
                break

            state.advance()

    if state.n_iter == maxiter and tflag != 3:
        warnings.warn("FISTA stopped early after %d iterations. "
                      "You may want to increase maxIter." % maxiter,
                      MaxIterReached)

    loss = np.array(state.loss)
    if return_log:
        log = dict(loss=loss, n_iter=len(loss), stalled=state.stalled,
                   converged=converged, gamma=state.gamma,
                   gammas=np.array(state.gammas))
        return state.coefs, loss, log
    return state.coefs, loss
