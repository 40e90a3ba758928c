import numpy as np
from ..base import BaseEstimator
from .. import utils
from .solvers import solver_tgl, temporal_operator
from ..utils import inspector_tgl


class TGL(BaseEstimator):
    """Class for the temporal group lasso progression model.

    Tasks are time points: the coefficients are encouraged to vary
    smoothly between consecutive tasks and to share their support.

    Attributes
    ----------
    n_features: int.
        number of features > 0.
    n_tasks: int.
        length of the lists `X`and `Y` > 0.

    """
    def __init__(self, rho1=0., rho2=0., rho3=0., init=1, tflag=1,
                 tol=1e-3, maxiter=1000, parallel=False, n_jobs=-1,
                 warmstart=False, callback=False, verbose=False, **kwargs):
        """Creates instance of TGL class.

        Parameters
        ----------
        rho1: float >= 0.
            Weight of the ridge penalty.
        rho2: float >= 0.
            Weight of the squared differences between consecutive tasks.
        rho3: float >= 0.
            Weight of the L2,1 group lasso penalty.
        init: {0, 1, 2} (optional, default 1)
            Starting point, see `tgl.estimators.solvers.options`.
        tflag: {0, 1, 2, 3} (optional, default 1)
            Termination criterion, see `tgl.estimators.solvers.options`.
        tol: float > 0. (optional, default 1e-3)
            Tolerance of the termination criterion.
        maxiter: int > 0. (optional, default 1000)
            Maximum number of FISTA iterations.
        parallel: boolean. (optional, default False)
            If True, evaluate the tasks in a thread pool of `n_jobs`.
        n_jobs: int. (optional, default -1)
            Number of threads used when `parallel` is True. -1 uses all
            cores.
        warmstart: boolean. (optional, default False)
            If True, start from the last fitted coefs.
        callback: boolean. (optional, default False)
            If True, sets a callback in the solver.
        verbose: boolean. (optional, default False)
            If True, prints the objective and gamma at each iteration.

        """
        super().__init__(callback=callback, **kwargs)
        self.rho1 = rho1
        self.rho2 = rho2
        self.rho3 = rho3
        self.init = init
        self.tflag = tflag
        self.tol = tol
        self.maxiter = maxiter
        self.parallel = parallel
        self.n_jobs = n_jobs
        self.warmstart = warmstart
        self.verbose = verbose
        self._inspector = inspector_tgl
        self._solver = solver_tgl

    def _get_opts(self, coefs0=None):
        init = self.init
        if coefs0 is not None:
            init = 1
        return dict(init=init, W0=coefs0, tFlag=self.tflag, tol=self.tol,
                    maxIter=self.maxiter, pFlag=self.parallel,
                    n_jobs=self.n_jobs)

    def fit(self, X, Y, coefs0=None):
        """Launch FISTA solver.

        Parameters
        ----------
        X: list of numpy arrays.
            list of design matrices of shape (n_samples_k, n_features),
            ordered in time.
        Y: list of numpy arrays.
            list of target arrays of shape (n_samples_k,).
        coefs0: array, shape (n_features, n_tasks). optional.
            starting point.

        Returns
        -------
        instance of self.

        """
        X, Y = self._pre_fit(X, Y)
        if coefs0 is None and self.warmstart and hasattr(self, "coefs_"):
            coefs0 = self.coefs_
        coefs, loss, log = self._solver(X, Y, self.rho1, self.rho2,
                                        self.rho3,
                                        opts=self._get_opts(coefs0),
                                        callback=self.callback_f,
                                        verbose=self.verbose,
                                        return_log=True)
        self.coefs_ = coefs
        self.loss_ = loss
        self.n_iter_ = log["n_iter"]
        self.log_ = log
        self._post_fit()

        return self

    def reset(self):
        for attr in ['coefs_', 'loss_', 'n_iter_', 'log_']:
            if hasattr(self, attr):
                delattr(self, attr)

    def objective(self, coefs):
        """Compute the full objective on the training data."""
        R, _ = temporal_operator(coefs.shape[1])
        obj = self.quadraticloss(coefs)
        obj += self.rho1 * (coefs ** 2).sum()
        obj += self.rho2 * (coefs.dot(R) ** 2).sum()
        obj += self.rho3 * utils.l21norm(coefs)
        return obj

    def get_params_grid(self, X, Y, cv_size=10, eps=1e-2):
        """Log-spaced grid of rho3 from `rho3_max` down to eps * rho3_max.

        `rho1` and `rho2` are kept fixed.

        """
        X, Y = self._pre_fit(X, Y)
        rho3max = utils.rho3_max(X, Y)
        scale = np.logspace(np.log10(eps), 0., cv_size)
        params_grid = rho3max * scale[::-1]

        return [{"rho3": float(r)} for r in params_grid]
