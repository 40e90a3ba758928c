"""
Temporal Group Lasso for Python
===============================

"""
from .estimators import TGL
from .estimators.solvers import solver_tgl
from . import model_selection


__all__ = ['TGL', 'solver_tgl', "model_selection"]
