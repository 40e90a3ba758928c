from .solver_tgl import solver_tgl, init_coefs, check_termination
from .objective import TemporalObjective, temporal_operator
from .options import init_opts
from .prox import prox_l21, prox_l2

__all__ = ["solver_tgl", "init_coefs", "check_termination",
           "TemporalObjective", "temporal_operator", "init_opts",
           "prox_l21", "prox_l2"]
