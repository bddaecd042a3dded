"""Exception types raised by linsysjax.

Solve failures are not exceptions: a backend that fails to factorize or to
converge reports False and the system is marked FAILED. Exceptions are
reserved for configuration faults and lifecycle misuse.
"""


class LinearSystemError(Exception):
    """Base class for all linsysjax errors."""


class FatalConfigurationError(LinearSystemError):
    """Unrecoverable initialization fault.

    The run cannot continue; the caller is expected to terminate it.
    """


class UnrecognizedLinearSolverError(FatalConfigurationError, ValueError):
    """Backend selection does not name a known linear solver."""

    def __init__(self, selection):
        self.selection = selection
        super().__init__(f"unrecognized linear solver: {selection!r}")


class InvalidJacobianError(FatalConfigurationError):
    """An analytical jacobian is declared but its column function is missing."""

    def __init__(self, equation_index: int):
        self.equation_index = equation_index
        super().__init__(
            f"jacobian function pointer is invalid (linear system for equation {equation_index})"
        )


class LinearSystemStateError(LinearSystemError, RuntimeError):
    """Operation not valid in the current lifecycle state of a linear system."""


class NonzeroBudgetExceededError(LinearSystemError, IndexError):
    """More distinct sparse entries inserted than the declared nonzero count."""

    def __init__(self, nnz: int, row: int, col: int):
        self.nnz = nnz
        super().__init__(f"entry ({row}, {col}) exceeds the declared nonzero count {nnz}")
