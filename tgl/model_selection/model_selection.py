import numpy as np

from sklearn.model_selection import check_cv


def _split_tasks(cv, X, Y):
    """Yield per-task (train, test) index lists for each fold."""
    splits = [list(cv.split(x, y)) for x, y in zip(X, Y)]
    for i_fold in range(cv.get_n_splits()):
        yield [s[i_fold] for s in splits]


def _take(X, indices):
    return [x[idx] for x, idx in zip(X, indices)]


def _cv_score(model, X, Y, cv, params_grid, warmstart=True, verbose=False):
    model.warmstart = warmstart
    model.reset()
    n_tasks = len(X)
    cv = check_cv(cv=cv)

    scores = np.empty((cv.get_n_splits(), len(params_grid), n_tasks))

    for i_fold, folds in enumerate(_split_tasks(cv, X, Y)):
        if verbose:
            print(" -> %d / %d" % (i_fold + 1, cv.get_n_splits()))
        train = [f[0] for f in folds]
        test = [f[1] for f in folds]
        for i_param, params in enumerate(params_grid):
            model.set_params(params)
            model.fit(_take(X, train), _take(Y, train))
            scores[i_fold, i_param, :] = model.score(_take(X, test),
                                                     _take(Y, test))

        model.reset()

    mean_scores = np.mean(scores, axis=0)  # n_params x n_tasks
    tmp = np.mean(mean_scores, axis=1)  # average across tasks
    best_params = params_grid[np.argmax(tmp)]

    model.set_params(best_params)
    model.fit(X, Y)
    return scores, model, params_grid


def cv_score_tgl(model, X, Y, cv=3, cv_size=10, eps=1e-2, warmstart=True,
                 verbose=False):
    """Select rho3 by cross-validation, then refit on all the data.

    Samples are split within each task; tasks keep their order.

    Parameters
    ----------
    model : TGL instance.
    X : list of arrays of shape (n_samples_k, n_features).
    Y : list of arrays of shape (n_samples_k,).
    cv : int or cross-validation generator.
    cv_size : int.
        number of values of rho3.
    eps : float.
        ratio between the smallest and the largest rho3.
    warmstart : boolean.
        if True, each fit along the grid starts from the previous one.

    Returns
    -------
    scores : array, shape (n_splits, cv_size, n_tasks)
        negative mean squared errors on the test folds.
    model : the model fitted with the best rho3.
    params_grid : list of dicts.

    """
    X = [np.asarray(x) for x in X]
    Y = [np.asarray(y) for y in Y]
    params_grid = model.get_params_grid(X, Y, cv_size=cv_size, eps=eps)
    return _cv_score(model, X, Y, cv, params_grid, warmstart=warmstart,
                     verbose=verbose)
