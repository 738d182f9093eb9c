#!/usr/bin/env python3
# (c) 2025 S. Gobeaux — MIT
#
# Max-plus spectral elements via Howard's policy iteration.
#
# Reference: J. Cochet-Terrasson, G. Cohen, S. Gaubert, M. Mc Gettrick,
# J.-P. Quadrat, "Numerical computation of spectral elements in max-plus algebra".
#
# Input: square sparse matrix S (classic algebra), arc i->j = stored entry S[i, j].
# Every node needs at least one successor.
# Output: chi (cycle time per node), v (bias), optimal policy, #components, #iterations.
#
# Each iteration:
#   1) inverse policy index (predecessor lists under the current policy)
#   2) value: one cycle per component, chi = cycle mean, v propagated backwards
#      along policy arcs:  v[i] = -chi + c[i] + v[pi[i]]
#   3) improve: first order on chi (several components), else second order on v
#      with the tolerance eps = (max w - min w + 1) * 1e-9
# Stops when no node changes its policy; exceeding max_iterations is fatal.
#
import math
import time
from collections import namedtuple

import numpy as np

from .errors import InvalidGraph, NonConvergence
from .graph import spget

MAX_ITERATIONS = 1000


class HowardResult(namedtuple("HowardResult", ["chi", "bias", "policy", "components", "iterations"])):
    """
    chi, bias: float arrays of length n.
    policy: chosen successor of every node as 1-based node ids.
    """
    __slots__ = ()

    @property
    def successor(self):
        # same policy, 0-based for indexing chi/bias
        return self.policy - 1


class PolicyState:
    """Per-run arrays, mutated in place by every phase."""

    def __init__(self, n):
        self.n = n
        self.pi = [-1]*n
        self.cost = [0.0]*n
        self.bias = [0.0]*n
        self.chi = [0.0]*n
        # bias of the previous evaluation; anchors each cycle in value()
        self.ref_bias = [-math.inf]*n
        self.component = [0]*n     # 0: uncolored, colors start at 1
        self.visited = [False]*n
        # staged by improve(), adopted by update_policy()
        self.next_pi = [-1]*n
        self.next_cost = [0.0]*n
        self.next_chi = [0.0]*n
        self.next_bias = [0.0]*n


class InverseIndex:
    """
    Predecessors of every node under a policy, as singly linked lists in a
    fixed arena: slot p holds (elem[p], succ[p]); head[j] / last[j] point to
    the first / last slot of node j's list.
    """

    def __init__(self, n):
        self.head = [-1]*n
        self.last = [-1]*n
        self.elem = [-1]*n
        self.succ = [-1]*n

    def build(self, pi):
        head, last, elem, succ = self.head, self.last, self.elem, self.succ
        for j in range(len(pi)):
            head[j] = -1
            last[j] = -1
        for ptr, j in enumerate(pi):
            elem[ptr] = ptr
            succ[ptr] = -1
            if head[j] == -1:
                head[j] = ptr
            else:
                succ[last[j]] = ptr
            last[j] = ptr

    def predecessors(self, j):
        a = self.head[j]
        while a != -1:
            yield self.elem[a]
            a = self.succ[a]


def sanity_checks(arcs):
    if arcs.nnodes < 1 or len(arcs.tails) < 1:
        raise InvalidGraph("Sparse matrix shall not be empty")
    has_succ = [False]*arcs.nnodes
    for i in arcs.tails:
        has_succ[i] = True
    for i in range(arcs.nnodes):
        if not has_succ[i]:
            raise InvalidGraph(f"Node {i + 1} has no successor")


def epsilon(weights):
    # somewhat arbitrary, scaled on the weight range
    return (max(weights) - min(weights) + 1.0) * 1e-9


def initial_policy(arcs, state):
    # heaviest outgoing arc; on ties the last arc seen wins, i.e. the
    # highest-indexed successor since arcs come column by column
    for i, j, w in zip(arcs.tails, arcs.heads, arcs.weights):
        if state.ref_bias[i] <= w:
            state.pi[i] = j
            state.cost[i] = w
            state.ref_bias[i] = w
    for i in range(state.n):
        if state.pi[i] == -1:
            raise InvalidGraph(f"Node {i + 1} has no successor")


def _label_basin(state, index, anchor, lam, color):
    pi, cost, bias, chi = state.pi, state.cost, state.bias, state.chi
    component, visited = state.component, state.visited
    bias[anchor] = state.ref_bias[anchor]
    chi[anchor] = lam
    component[anchor] = color
    visited[anchor] = True
    stack = [anchor]
    while stack:
        j = stack.pop()
        for i in index.predecessors(j):
            if visited[i]:
                continue
            visited[i] = True
            bias[i] = -lam + cost[i] + bias[pi[i]]
            chi[i] = lam
            component[i] = color
            stack.append(i)


def value(state, index):
    """Evaluate the current policy in place. Returns the number of components."""
    pi, cost, component = state.pi, state.cost, state.component
    for i in range(state.n):
        component[i] = 0
        state.visited[i] = False
    color = 0
    for start in range(state.n):
        if component[start]:
            continue
        color += 1
        # out-degree is 1: the walk must close on a node of this color
        u = start
        anchor = start
        while component[u] == 0:
            component[u] = color
            anchor = u
            u = pi[u]
        weight = 0.0
        length = 0
        i = anchor
        while True:
            weight += cost[i]
            length += 1
            i = pi[i]
            if i == anchor:
                break
        _label_basin(state, index, anchor, weight / length, color)
    return color


def improve(arcs, state, components, eps):
    """Stage a better policy in state.next_*. Returns the number of nodes that switch."""
    n = state.n
    pi, chi, bias = state.pi, state.chi, state.bias
    next_pi, next_cost, next_chi, next_bias = state.next_pi, state.next_cost, state.next_chi, state.next_bias
    next_pi[:] = pi
    next_cost[:] = state.cost
    next_chi[:] = chi
    next_bias[:] = bias

    improved = False
    if components > 1:
        # first order: move towards a component with a larger cycle time
        for i, j, w in zip(arcs.tails, arcs.heads, arcs.weights):
            if chi[j] > next_chi[i]:
                improved = True
                next_pi[i] = j
                next_chi[i] = chi[j]
                next_cost[i] = w

    if not improved:
        # second order: larger bias at equal cycle time
        for i, j, w in zip(arcs.tails, arcs.heads, arcs.weights):
            if components > 1 and chi[j] != next_chi[i]:
                continue
            val = w + bias[j] - chi[i]
            if val > next_bias[i] + eps:
                next_bias[i] = val
                next_pi[i] = j
                next_cost[i] = w

    return sum(1 for i in range(n) if next_pi[i] != pi[i])


def update_policy(state):
    state.pi[:] = state.next_pi
    state.cost[:] = state.next_cost
    state.ref_bias[:] = state.bias


def howard(S, max_iterations=MAX_ITERATIONS, progress=False):
    """
    Howard's algorithm on the square matrix S (scipy sparse, or dense with
    -inf for absent arcs).

    Raises InvalidGraph for an empty matrix or a node without successor, and
    NonConvergence when no fixed point is reached within max_iterations.
    """
    if max_iterations < 0:
        raise ValueError(f"max_iterations must be >= 0, got {max_iterations}")
    arcs = spget(S)
    sanity_checks(arcs)
    n = arcs.nnodes
    state = PolicyState(n)
    initial_policy(arcs, state)
    eps = epsilon(arcs.weights)
    index = InverseIndex(n)
    if progress:
        print(f"[howard] nodes={n}  arcs={len(arcs.tails)}  eps={eps:.3e}", flush=True)

    t0 = time.time()
    for it in range(1, max_iterations + 1):
        index.build(state.pi)
        components = value(state, index)
        changed = improve(arcs, state, components, eps)
        if progress:
            elapsed = time.time() - t0
            print(f"[howard] iter={it}  components={components}  max(chi)={max(state.chi):.12g}  "
                  f"switches={changed}  elapsed={elapsed:.2f}s", flush=True)
        if not changed:
            return HowardResult(
                chi=np.array(state.chi, dtype=float),
                bias=np.array(state.bias, dtype=float),
                policy=np.array(state.pi, dtype=int) + 1,
                components=components,
                iterations=it,
            )
        update_policy(state)
    raise NonConvergence(max_iterations)
