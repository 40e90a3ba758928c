"""Base class for all Estimators."""
import numpy as np
from .exceptions import NotFittedError
from .utils import check_tasks


class BaseEstimator(object):
    r"""Base Class for all estimators.

    General class for multi-task regression problems of type:

    .. math::
        \min_{\theta^1, \dots} \frac{1}{2}\sum_{k=1}\|X^k\theta^k - Y^k\|^2
        + g(\theta^1, \dots )

    Attributes
    ----------
    n_features : number of features
    n_tasks : length of the lists `X`and `Y`.

    """
    def __init__(self, callback=False, **kwargs):
        """Construct instance.

        Parameters
        ----------
        callback : boolean. optional.
            if True, set a callback function to the solver.
        **kwargs : dict.
            parameters passed to the inspector building the callback.

        """
        self.callback = callback
        self.callback_kwargs = kwargs
        self._inspector = None
        self._solver = None

    def _pre_fit(self, X, Y):
        """Set data before fitting."""
        X, Y = check_tasks(X, Y)
        self.Xs, self.Ys = X, Y
        self.n_tasks = len(X)
        self.n_features = X[0].shape[1]
        self._set_callback()

        return X, Y

    def _post_fit(self):
        pass

    def _set_callback(self):
        """Set callback if `callback` is True."""
        self.callback_f = None
        if self.callback:
            self.callback_f = self._inspector(self.objective,
                                              **self.callback_kwargs)

    def set_params(self, params):
        for k, v in params.items():
            setattr(self, k, v)

    def predict(self, X):
        """Predict target Y given unseen data X.

        Returns list of y = x.dot(theta).

        Parameters
        ----------
        X: list of arrays of shape (n_samples_k, n_features)

        Returns
        -------
        list of arrays of shape (n_samples_k,)

        """
        if not hasattr(self, 'coefs_'):
            raise NotFittedError("Estimator not fitted !")
        zips = zip(X, self.coefs_.T)
        Y = [np.asarray(x).dot(c) for x, c in zips]

        return Y

    def reset(self):
        if hasattr(self, 'coefs_'):
            del self.coefs_

    def objective(self, coefs):
        pass

    def quadraticloss(self, theta):
        r"""Compute the linreg loss function.

        Given a coefs matrix and the data matrices `X`[k] and `Y`[k]:

        .. math::

        1/2 * sum(\Vert Y_k - X_k.theta_k \Vert_2^2 )

        Parameters
        ----------
        theta : array, shape (n_features, n_tasks)
            regression coefs.

        Returns
        -------
        float.
            valued regression loss at theta.

        """
        trip = zip(self.Xs, self.Ys, theta.T)
        loss = [np.linalg.norm(y -
                               x.dot(t)) ** 2 for (x, y, t) in trip]
        return 0.5 * sum(loss)

    def score(self, X, Y):
        """Compute the negative mean squared error of each task.

        Returns
        -------
        array, shape (n_tasks,)

        """
        Y_pred = self.predict(X)
        mse = [((np.ravel(y) - yp) ** 2).mean() for y, yp in zip(Y, Y_pred)]
        return - np.array(mse)

    def score_supports(self, coefs_true):
        """Test support recovery given the true coefs.

        Parameters
        ----------
        coefs_true: array, shape (n_features, n_tasks)
            true coefs.

        Returns
        -------
        boolean

        """
        if not hasattr(self, 'coefs_'):
            raise NotFittedError("""Estimator must be fitted before computing the
                                  support recovery score""")

        true_support = (coefs_true != 0.).any(axis=1)
        test = (true_support == (self.coefs_ != 0.).any(axis=1)).all()

        return test
