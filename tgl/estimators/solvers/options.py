"""Default options of the temporal group lasso solver.

Recognized fields
-----------------
init : {0, 1, 2}
    starting point. 0: X^T Y, 1: `W0` if given else X^T Y, 2: zeros.
W0 : array, shape (n_features, n_tasks)
    starting point used if `init` = 1.
tFlag : {0, 1, 2, 3}
    termination policy. 0: absolute change of the objective,
    1: relative change of the objective, 2: objective below `tol`,
    3: run `maxIter` iterations.
tol : float > 0.
maxIter : int > 0.
pFlag : boolean.
    if True, evaluate the tasks in parallel.
n_jobs : int.
    number of threads of the parallel evaluation.

"""
import numbers

import numpy as np

from ...exceptions import InvalidInput


DEFAULT_OPTS = dict(init=1, W0=None, tFlag=1, tol=1e-3, maxIter=1000,
                    pFlag=False, n_jobs=-1)


def init_opts(opts=None):
    """Fill the unset fields of `opts` with defaults and check them.

    Parameters
    ----------
    opts : dict or None.
        fields set to None are replaced by their default.

    Returns
    -------
    dict with every field of `DEFAULT_OPTS`.

    """
    if opts is None:
        opts = {}
    unknown = set(opts) - set(DEFAULT_OPTS)
    if unknown:
        raise InvalidInput("Unknown options: %s." % sorted(unknown))

    resolved = dict(DEFAULT_OPTS)
    resolved.update((k, v) for k, v in opts.items() if v is not None)

    if resolved["init"] not in (0, 1, 2):
        raise InvalidInput("init must be 0, 1 or 2, got %s."
                           % resolved["init"])
    if resolved["tFlag"] not in (0, 1, 2, 3):
        raise InvalidInput("tFlag must be 0, 1, 2 or 3, got %s."
                           % resolved["tFlag"])
    tol = resolved["tol"]
    if not (isinstance(tol, numbers.Real) and np.isfinite(tol) and tol > 0):
        raise InvalidInput("tol must be a positive float, got %s." % tol)
    maxiter = resolved["maxIter"]
    if (isinstance(maxiter, bool) or
            not isinstance(maxiter, numbers.Integral) or maxiter < 1):
        raise InvalidInput("maxIter must be a positive integer, got %s."
                           % maxiter)
    resolved["pFlag"] = bool(resolved["pFlag"])

    return resolved
