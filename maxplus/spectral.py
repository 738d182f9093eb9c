# (c) 2025 S. Gobeaux — MIT
#
# Spectral elements at the matrix level, on top of howard():
#   mpeigen(A)      -> (chi, v)   max-plus:  A (x) v = chi (x) v on irreducible A
#   mieigen(A)      -> (chi, v)   min-plus, through  min(A) = -max(-A)
#   mp_matvec(A, x) -> A (x) x    max-plus product, -inf = absent
#   eigen_residual  -> max reduced cost  w(i,j) + v[j] - chi[i] - v[i]  (should be <= ~0)
#   policy_cycle    -> the cycle reached from a node under the optimal policy
#
import numpy as np
from scipy import sparse

from .howard import MAX_ITERATIONS, howard


def _negate(A):
    if sparse.issparse(A):
        return -A
    return -np.asarray(A, dtype=float)


def howard_min(S, max_iterations=MAX_ITERATIONS, progress=False):
    """Min-plus counterpart of howard(): minimal cycle means and their bias."""
    res = howard(_negate(S), max_iterations=max_iterations, progress=progress)
    return res._replace(chi=-res.chi, bias=-res.bias)


def mpeigen(A, max_iterations=MAX_ITERATIONS, progress=False):
    res = howard(A, max_iterations=max_iterations, progress=progress)
    return res.chi, res.bias


def mieigen(A, max_iterations=MAX_ITERATIONS, progress=False):
    """Dense input uses +inf for absent arcs."""
    res = howard_min(A, max_iterations=max_iterations, progress=progress)
    return res.chi, res.bias


def mp_matvec(A, x):
    x = np.asarray(x, dtype=float)
    if sparse.issparse(A):
        C = sparse.coo_matrix(A)
        out = np.full(C.shape[0], -np.inf)
        np.maximum.at(out, C.row, C.data + x[C.col])
        return out
    A = np.asarray(A, dtype=float)
    return np.max(A + x[np.newaxis, :], axis=1)


def eigen_residual(A, chi, bias, minplus=False):
    """
    Max over arcs i->j with chi[i] == chi[j] of  w + v[j] - chi[i] - v[i]
    (min-plus: the negated slack, so <= ~0 is good in both cases).
    Arcs leaving towards a smaller cycle time carry no constraint on v.
    """
    if not sparse.issparse(A):
        A = np.asarray(A, dtype=float)
        absent = np.inf if minplus else -np.inf
        rows, cols = np.nonzero(A != absent)
        w = A[rows, cols]
    else:
        C = sparse.coo_matrix(A)
        rows, cols, w = C.row, C.col, C.data
    sign = -1.0 if minplus else 1.0
    chi = sign * np.asarray(chi, dtype=float)
    bias = sign * np.asarray(bias, dtype=float)
    red = sign * w + bias[cols] - chi[rows] - bias[rows]
    same = np.isclose(chi[rows], chi[cols])
    if not np.any(same):
        return -np.inf
    return float(np.max(red[same]))


def policy_cycle(result, node):
    """0-based nodes of the policy cycle reached from `node`, starting at its entry point."""
    succ = result.successor
    seen = set()
    u = node
    while u not in seen:
        seen.add(u)
        u = int(succ[u])
    cyc = [u]
    k = int(succ[u])
    while k != u:
        cyc.append(k)
        k = int(succ[k])
    return cyc
