# (c) 2025 S. Gobeaux — MIT
#
# Failure conditions of the Howard solver. Both are fatal: callers get a
# complete result or one of these, never a partial answer.


class InvalidGraph(ValueError):
    """The matrix cannot be read as a graph where every node has a successor."""


class NonConvergence(RuntimeError):
    """Policy iteration hit its iteration cap before reaching a fixed point."""

    def __init__(self, iterations):
        super().__init__(f"Max iterations reached ({iterations}) without convergence")
        self.iterations = iterations
