#!/usr/bin/env python3
# (c) 2025 S. Gobeaux — MIT
#
# Max-plus (or min-plus) spectral elements of a weighted digraph given as an edge CSV.
# - Input CSV: src,dst,weight (column names configurable).
# - Outputs chi (cycle time), v (bias) and the optimal policy; optional CSV export.
#
# Usage:
#   maxplus-howard data/graph.csv --report --progress
#   maxplus-howard data/graph.csv --minplus --out-v data/graph_v.csv
#
import argparse
import csv
import os

import numpy as np

from .errors import InvalidGraph, NonConvergence
from .graph import read_edges
from .howard import MAX_ITERATIONS, howard
from .spectral import eigen_residual, howard_min, policy_cycle


def build_parser():
    ap = argparse.ArgumentParser(prog="maxplus-howard",
                                 description="Howard policy iteration on a weighted digraph (max-plus by default).")
    ap.add_argument("edges", help="CSV with src,dst,weight")
    ap.add_argument("--src-col", default="src")
    ap.add_argument("--dst-col", default="dst")
    ap.add_argument("--weight-col", default="weight")
    ap.add_argument("--minplus", action="store_true", help="minimal cycle means instead of maximal")
    ap.add_argument("--max-iters", type=int, default=MAX_ITERATIONS,
                    help=f"hard cap on policy iterations (default: {MAX_ITERATIONS})")
    ap.add_argument("--progress", action="store_true", help="print per-iteration logs")
    ap.add_argument("--report", action="store_true", help="reduced-cost check and critical cycles")
    ap.add_argument("--out-v", default=None, help="optional CSV (node,chi,v,policy)")
    return ap


def write_result(path, labels, res):
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", newline="", encoding="utf-8") as f:
        w = csv.writer(f)
        w.writerow(["node", "chi", "v", "policy"])
        for i, lab in enumerate(labels):
            w.writerow([lab, f"{res.chi[i]:.12f}", f"{res.bias[i]:.12f}", labels[res.successor[i]]])


def main(argv=None):
    args = build_parser().parse_args(argv)

    try:
        S, labels = read_edges(args.edges, args.src_col, args.dst_col, args.weight_col)
    except InvalidGraph as e:
        raise SystemExit(f"[ERR] {e}") from e
    if args.progress:
        print(f"[load] nodes={len(labels)}  edges={S.nnz}  weight_col={args.weight_col}", flush=True)

    solve = howard_min if args.minplus else howard
    try:
        res = solve(S, max_iterations=args.max_iters, progress=args.progress)
    except (ValueError, NonConvergence) as e:
        raise SystemExit(f"[ERR] {e}") from e

    algebra = "min" if args.minplus else "max"
    values = np.unique(res.chi)
    print(f"[RES] {algebra}-plus chi*: {', '.join(f'{x:.12g}' for x in values)}  "
          f"components={res.components}  iters={res.iterations}")

    if args.report:
        # one critical cycle per distinct chi, entry point = smallest node reaching it
        for x in values:
            node = int(np.flatnonzero(res.chi == x)[0])
            cyc = policy_cycle(res, node)
            print(f"[CYC] chi={x:.12g}  |cycle|={len(cyc)}  cycle={' -> '.join(labels[u] for u in cyc)}")
        mx = eigen_residual(S, res.chi, res.bias, minplus=args.minplus)
        print(f"[CHK] max reduced cost (should be <= 0) ≈ {mx:.3e}")

    if args.out_v:
        write_result(args.out_v, labels, res)
        print(f"[WROTE] chi, v, policy → {args.out_v}")


if __name__ == "__main__":
    main()
