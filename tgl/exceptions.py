"""Temporal group lasso custom Exceptions."""


class NotFittedError(AttributeError):
    """Raised if an estimator is used before fitting."""


class InvalidInput(ValueError):
    """Raised if the solver is called with missing or malformed inputs."""


class NumericalInstability(RuntimeWarning):
    """Raised if the solver diverges."""


class MaxIterReached(RuntimeWarning):
    """Raised if FISTA does not converge within `maxIter` iterations."""
