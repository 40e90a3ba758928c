import importlib
import warnings

import numpy as np
import pytest
from numpy.testing import assert_array_equal, assert_allclose
from sklearn.linear_model import ElasticNet

from tgl.estimators.solvers import (solver_tgl, init_coefs, init_opts,
                                    check_termination, temporal_operator)
from tgl.exceptions import InvalidInput, MaxIterReached, NumericalInstability
from tgl.utils import build_dataset, get_xty, rho3_max


def closed_form(X, Y, rho1, rho2):
    """Solve the problem without group penalty as a linear system."""
    n_tasks = len(X)
    n_features = X[0].shape[1]
    _, RRt = temporal_operator(n_tasks)
    A = 2 * rho2 * np.kron(RRt, np.eye(n_features))
    A += 2 * rho1 * np.eye(n_features * n_tasks)
    for k, x in enumerate(X):
        sl = slice(k * n_features, (k + 1) * n_features)
        A[sl, sl] += x.T.dot(x)
    b = get_xty(X, Y).T.flatten()
    return np.linalg.solve(A, b).reshape(n_tasks, n_features).T


def test_no_group_penalty_vs_closed_form():
    X, Y, _ = build_dataset(n_samples=[20, 25, 15], n_features=5, n_tasks=3,
                            noise=0.1, seed=0)
    rho1, rho2 = 0.1, 2.
    W, loss = solver_tgl(X, Y, rho1, rho2, 0., opts=dict(init=2, tFlag=3,
                                                           maxIter=3000))
    assert_allclose(W, closed_form(X, Y, rho1, rho2), atol=1e-5)


def test_end_to_end_small():
    rng = np.random.RandomState(42)
    X = [rng.randn(5, 3), rng.randn(5, 3)]
    Y = [rng.randn(5), rng.randn(5)]
    tol, maxiter = 1e-3, 100
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", MaxIterReached)
        W, loss, log = solver_tgl(X, Y, 0.1, 0.1, 0.1,
                                  opts=dict(init=2, tFlag=2, tol=tol,
                                            maxIter=maxiter),
                                  return_log=True)
    assert W.shape == (3, 2)
    assert 1 <= len(loss) <= maxiter
    assert log["n_iter"] == len(loss)
    assert (log["stalled"] or loss[-1] <= tol + 1e-10
            or len(loss) == maxiter)


def test_loss_length_and_decrease():
    X, Y, _ = build_dataset(n_samples=20, n_features=10, n_tasks=4,
                            noise=0.1, seed=1)
    rho3 = 0.2 * rho3_max(X, Y)
    W, loss, log = solver_tgl(X, Y, 0.1, 0.5, rho3,
                              opts=dict(tFlag=0, tol=1e-8, maxIter=5000),
                              return_log=True)
    assert log["converged"] or log["stalled"]
    assert loss.shape == (log["n_iter"],)
    assert loss[-1] <= loss[0]
    full = (sum(0.5 * np.linalg.norm(y - x.dot(w)) ** 2
                for x, y, w in zip(X, Y, W.T)) +
            0.1 * np.linalg.norm(W) ** 2 +
            0.5 * np.linalg.norm(np.diff(W, axis=1)) ** 2 +
            rho3 * np.linalg.norm(W, axis=1).sum())
    assert_allclose(loss[-1], full)


def test_stop_iteration_count():
    X, Y, _ = build_dataset(n_samples=20, n_features=10, n_tasks=3, seed=2)
    # criterion 2 is always met once allowed
    W, loss, log = solver_tgl(X, Y, 0.1, 0.1, 0.1,
                              opts=dict(init=2, tFlag=2, tol=1e10),
                              return_log=True)
    assert log["converged"]
    assert len(loss) == 3

    with warnings.catch_warnings():
        warnings.simplefilter("error", MaxIterReached)
        W, loss, log = solver_tgl(X, Y, 0.1, 0.1, 0.1,
                                  opts=dict(init=2, tFlag=3, maxIter=7),
                                  return_log=True)
    assert len(loss) == 7
    assert not log["converged"]


def test_maxiter_warning():
    X, Y, _ = build_dataset(n_samples=20, n_features=10, n_tasks=3, seed=3)
    with pytest.warns(MaxIterReached):
        W, loss = solver_tgl(X, Y, 0.1, 0.1, 0.1,
                             opts=dict(tFlag=0, tol=1e-30, maxIter=5))
    assert len(loss) == 5


def test_all_zero_when_rho3_large():
    X, Y, _ = build_dataset(n_samples=20, n_features=30, n_tasks=4, seed=4)
    W, loss, log = solver_tgl(X, Y, 0.1, 0.1, 1.0001 * rho3_max(X, Y),
                              opts=dict(init=2), return_log=True)
    assert_array_equal(W, 0.)
    assert log["stalled"]
    assert len(loss) == 1


def test_zero_response_converges_to_zero():
    X, _, _ = build_dataset(n_samples=15, n_features=8, n_tasks=3, seed=5)
    Y = [np.zeros(15) for _ in range(3)]
    W0 = np.random.RandomState(0).randn(8, 3)
    W, loss = solver_tgl(X, Y, 0.1, 0.1, 0.5,
                         opts=dict(W0=W0, tFlag=0, tol=1e-10,
                                   maxIter=5000))
    assert_allclose(W, 0., atol=1e-3)


def test_single_task():
    X, Y, _ = build_dataset(n_samples=30, n_features=10, n_tasks=1,
                            noise=0.1, seed=6)
    rho3 = 0.3 * rho3_max(X, Y)
    rho1 = 0.1
    opts = dict(init=2, tFlag=3, maxIter=2000)
    W1, loss1 = solver_tgl(X, Y, rho1, 0., rho3, opts=opts)
    W2, loss2 = solver_tgl(X, Y, rho1, 10., rho3, opts=opts)
    assert W1.shape == (10, 1)
    assert_allclose(W1, W2)
    assert_allclose(loss1, loss2)

    # with one task every row is a scalar: the problem is an elastic net
    n_samples = len(Y[0])
    alpha = (rho3 + 2 * rho1) / n_samples
    enet = ElasticNet(alpha=alpha, l1_ratio=rho3 / (rho3 + 2 * rho1),
                      fit_intercept=False, tol=1e-12, max_iter=100000)
    enet.fit(X[0], Y[0])
    assert_allclose(W1[:, 0], enet.coef_, atol=1e-5)


def test_parallel_matches_sequential():
    X, Y, _ = build_dataset(n_samples=[15, 20, 25, 30], n_features=12,
                            n_tasks=4, noise=0.1, seed=7)
    opts = dict(tFlag=3, maxIter=50)
    W, loss = solver_tgl(X, Y, 0.1, 0.3, 1., opts=opts)
    opts.update(pFlag=True, n_jobs=2)
    Wp, lossp = solver_tgl(X, Y, 0.1, 0.3, 1., opts=opts)
    assert_allclose(W, Wp)
    assert_allclose(loss, lossp)


def test_callback():
    X, Y, _ = build_dataset(n_samples=10, n_features=5, n_tasks=2, seed=8)
    objs = []

    def callback(W, obj=None):
        assert W.shape == (5, 2)
        objs.append(obj)

    W, loss = solver_tgl(X, Y, 0.1, 0.1, 0.1, opts=dict(tFlag=3, maxIter=10),
                         callback=callback)
    assert_allclose(objs, loss)


def test_init_coefs():
    X, Y, _ = build_dataset(n_samples=10, n_features=5, n_tasks=3, seed=9)
    xty = np.stack([x.T.dot(y) for x, y in zip(X, Y)], axis=1)
    W0 = np.ones((5, 3))

    assert_array_equal(init_coefs(X, Y, init=2, coefs0=W0), 0.)
    assert_allclose(init_coefs(X, Y, init=0, coefs0=W0), xty)
    assert_allclose(init_coefs(X, Y, init=1), xty)
    assert_array_equal(init_coefs(X, Y, init=1, coefs0=W0), W0)
    with pytest.raises(InvalidInput):
        init_coefs(X, Y, init=1, coefs0=np.ones((6, 3)))


def test_invalid_inputs():
    X, Y, _ = build_dataset(n_samples=10, n_features=5, n_tasks=3, seed=10)
    with pytest.raises(InvalidInput):
        solver_tgl(X, Y, 0.1, 0.1)
    with pytest.raises(InvalidInput):
        solver_tgl(X, Y[:2], 0.1, 0.1, 0.1)
    with pytest.raises(InvalidInput):
        solver_tgl(X, Y, -0.1, 0.1, 0.1)
    with pytest.raises(InvalidInput):
        solver_tgl(X, Y, 0.1, 0.1, 0.1, opts=dict(W0=np.zeros((6, 3))))

    calls = []
    with pytest.raises(InvalidInput):
        solver_tgl(X, Y, 0.1, 0.1, 0.1, opts=dict(W0=np.zeros((5, 4))),
                   callback=lambda W, obj=None: calls.append(obj))
    assert calls == []


def test_init_opts():
    opts = init_opts()
    assert opts == dict(init=1, W0=None, tFlag=1, tol=1e-3, maxIter=1000,
                        pFlag=False, n_jobs=-1)
    opts = init_opts(dict(tFlag=0, tol=None))
    assert opts["tFlag"] == 0
    assert opts["tol"] == 1e-3
    for bad in [dict(init=3), dict(tFlag=4), dict(tol=0.), dict(maxIter=0),
                dict(maxIter=2.5), dict(foo=1)]:
        with pytest.raises(InvalidInput):
            init_opts(bad)


def test_check_termination():
    loss = [10., 5., 4.9995]
    assert not check_termination(loss, 1, 0, 1e-3, 100)
    assert check_termination(loss, 2, 0, 1e-3, 100)
    assert not check_termination(loss, 2, 0, 1e-4, 100)
    assert check_termination(loss, 2, 1, 1e-3, 100)
    assert not check_termination(loss, 2, 1, 1e-5, 100)
    assert check_termination(loss, 2, 2, 5., 100)
    assert not check_termination(loss, 2, 2, 4., 100)
    assert not check_termination(loss, 2, 3, 1e-3, 100)
    assert check_termination(loss, 100, 3, 1e-3, 100)


def test_numerical_instability():
    X, Y, _ = build_dataset(n_samples=10, n_features=5, n_tasks=3, seed=11)
    Y[1][0] = np.nan
    with pytest.raises(NumericalInstability):
        solver_tgl(X, Y, 0.1, 0.1, 0.1, opts=dict(init=2))


def test_gamma_never_decreases():
    X, Y, _ = build_dataset(n_samples=20, n_features=10, n_tasks=4,
                            noise=0.1, seed=12)
    # ill-scaled data forces several backtracking steps
    X = [10 * x for x in X]
    W, loss, log = solver_tgl(X, Y, 0.1, 0.1, 0.1,
                              opts=dict(tFlag=3, maxIter=50),
                              return_log=True)
    gammas = log["gammas"]
    assert len(gammas) == len(loss)
    assert (np.diff(gammas) >= 0).all()
    assert gammas[-1] > 1.
    assert gammas[-1] == log["gamma"]


def test_non_finite_candidate_raises(monkeypatch):
    X, Y, _ = build_dataset(n_samples=10, n_features=5, n_tasks=3, seed=13)
    Y = [10 * y for y in Y]
    module = importlib.import_module("tgl.estimators.solvers.solver_tgl")

    def huge_step(V, lambda_):
        # moves along the gradient so that the sufficient decrease bound
        # overflows to +inf together with the candidate value
        return np.where(V >= 0, -1e300, 1e300)

    monkeypatch.setattr(module, "prox_l21", huge_step)
    objs = []
    with np.errstate(over="ignore", invalid="ignore"):
        with pytest.raises(NumericalInstability):
            solver_tgl(X, Y, 0.1, 0.1, 0.1,
                       opts=dict(init=2, tFlag=3, maxIter=1),
                       callback=lambda W, obj=None: objs.append(obj))
    assert objs == []
