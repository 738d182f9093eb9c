# (c) 2025 S. Gobeaux — MIT
#
# Graph side of the max-plus toolbox:
#  - mpsparse:   dense max-plus array (-inf = no arc) -> scipy CSC matrix
#  - spget:      square matrix -> arc list (tails, heads, weights) in column-major order
#  - read_edges: CSV edge list (src,dst,weight) -> CSC matrix + node labels
#
# An arc i->j is the stored entry S[i, j] (row = tail, column = head).
# Stored zeros are arcs of weight 0; only absent entries mean "no arc".
#
import csv
from collections import namedtuple

import numpy as np
from scipy import sparse

from .errors import InvalidGraph

Arcs = namedtuple("Arcs", ["tails", "heads", "weights", "nnodes"])


def mpsparse(A):
    """Keep the finite entries of a dense max-plus array (zeros included)."""
    A = np.asarray(A, dtype=float)
    if A.ndim != 2:
        raise InvalidGraph(f"expected a 2-D matrix, got shape {A.shape}")
    rows, cols = np.nonzero(A != -np.inf)
    return sparse.csc_matrix((A[rows, cols], (rows, cols)), shape=A.shape)


def spget(S):
    """
    Arc list of a square matrix, enumerated column by column (head, then tail).
    Dense input goes through mpsparse first. Returns Arcs with plain lists.
    """
    if not sparse.issparse(S):
        S = mpsparse(S)
    if len(S.shape) != 2 or S.shape[0] != S.shape[1] or S.shape[0] == 0:
        raise InvalidGraph(f"Matrix shall be squared and not empty, got shape {S.shape}")
    n = S.shape[0]
    C = sparse.csc_matrix(S, dtype=float, copy=True)
    C.sum_duplicates()
    heads = np.repeat(np.arange(n), np.diff(C.indptr))
    tails = C.indices
    weights = C.data
    if weights.size == 0:
        raise InvalidGraph("Sparse matrix shall not be empty")
    if not np.all(np.isfinite(weights)):
        raise InvalidGraph("weights must be finite; drop the max-plus zero (-inf) instead of storing it")
    return Arcs(tails.tolist(), heads.tolist(), weights.tolist(), n)


def _order_labels(labels):
    # numeric ids sort numerically, anything else keeps first-seen order
    try:
        return sorted(labels, key=int)
    except ValueError:
        return list(labels)


def read_edges(path, src_col="src", dst_col="dst", weight_col="weight"):
    edges = []
    seen = {}
    with open(path, newline='', encoding='utf-8') as f:
        reader = csv.DictReader(f)
        for row in reader:
            try:
                u = row[src_col].strip()
                v = row[dst_col].strip()
            except KeyError as e:
                raise InvalidGraph(f"Missing column in CSV: {e}. Available columns: {list(row.keys())}") from e
            raw = row.get(weight_col)
            if raw is None:
                raw = row.get("weight", row.get("w"))
            try:
                w = float(raw)
            except (TypeError, ValueError) as e:
                raise InvalidGraph(f"bad weight in row: {row}") from e
            seen.setdefault(u, None)
            seen.setdefault(v, None)
            edges.append((u, v, w))
    labels = _order_labels(seen)
    idx = {x: i for i, x in enumerate(labels)}
    n = len(labels)
    # parallel edges: max-plus sum keeps the heaviest
    best = {}
    for (u, v, w) in edges:
        key = (idx[u], idx[v])
        if key not in best or w > best[key]:
            best[key] = w
    rows = [i for (i, _j) in best]
    cols = [j for (_i, j) in best]
    data = [best[k] for k in best]
    S = sparse.csc_matrix((data, (rows, cols)), shape=(n, n), dtype=float)
    return S, labels
