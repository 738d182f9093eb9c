# (c) 2025 S. Gobeaux — MIT
#
# Max-plus spectral toolbox: Howard's policy iteration on sparse digraphs.
#
from .errors import InvalidGraph, NonConvergence
from .graph import mpsparse, read_edges, spget
from .howard import MAX_ITERATIONS, HowardResult, howard
from .spectral import eigen_residual, howard_min, mieigen, mp_matvec, mpeigen, policy_cycle

__all__ = [
    "InvalidGraph",
    "NonConvergence",
    "mpsparse",
    "read_edges",
    "spget",
    "MAX_ITERATIONS",
    "HowardResult",
    "howard",
    "eigen_residual",
    "howard_min",
    "mieigen",
    "mp_matvec",
    "mpeigen",
    "policy_cycle",
]
