"""Sparse iterative linear solver backend.

Coefficients are inserted as coordinate (COO) triplets into preallocated
host buffers sized by the declared nonzero count. Insertion policy is
OVERWRITE: setting the same coordinate twice replaces the earlier value,
so a system can be reassembled in place with an unchanged sparsity pattern.

Solving builds a BCOO matrix from the live triplets and runs a Krylov
method from jax.scipy.sparse.linalg (GMRES by default, BiCGSTAB on request)
with a Jacobi preconditioner and the previous solution as initial guess.

JAX's Krylov solvers do not report convergence, so success is decided
here: the solution must be finite and satisfy

    ||A x - b||_2 <= tol * ||b||_2 + atol

A solve that fails this test is reported as False; non-convergence is not
an error at this level.
"""

from dataclasses import dataclass, field
from functools import partial
from typing import Dict, Optional, Tuple

import jax
import jax.numpy as jnp
import numpy as np
from jax import Array
from jax.experimental.sparse import BCOO
from jax.scipy.sparse.linalg import bicgstab, gmres
from jaxtyping import Float, Int

from linsysjax._logging import ls_logger
from linsysjax.config import (
    DEFAULT_GMRES_RESTART,
    DEFAULT_ITERATIVE_ATOL,
    DEFAULT_ITERATIVE_MAXITER,
    DEFAULT_ITERATIVE_METHOD,
    DEFAULT_ITERATIVE_TOL,
)
from linsysjax.errors import NonzeroBudgetExceededError
from linsysjax.options import SolverOptions


@dataclass
class SparseSolverData:
    """Solver-private storage of one sparse linear system.

    Attributes:
        n_rows: Number of matrix rows
        n_cols: Number of matrix columns
        nnz: Declared nonzero count (capacity of the triplet buffers)
        rows: Row index of each stored entry
        cols: Column index of each stored entry
        values: Value of each stored entry
        slots: (row, col) -> position in the triplet buffers
        count: Number of live entries
        last_residual: ||A x - b||_2 of the last solve attempt
    """

    n_rows: int
    n_cols: int
    nnz: int
    rows: Optional[np.ndarray]
    cols: Optional[np.ndarray]
    values: Optional[np.ndarray]
    slots: Dict[Tuple[int, int], int] = field(default_factory=dict)
    count: int = 0
    last_residual: float = float("inf")


def allocate_sparse_data(n_rows: int, n_cols: int, nnz: int) -> SparseSolverData:
    """Create an empty sparse matrix with room for ``nnz`` entries."""
    return SparseSolverData(
        n_rows=n_rows,
        n_cols=n_cols,
        nnz=nnz,
        rows=np.zeros(nnz, dtype=np.int32),
        cols=np.zeros(nnz, dtype=np.int32),
        values=np.zeros(nnz, dtype=np.float64),
    )


def set_element_sparse(data: SparseSolverData, row: int, col: int, value: float) -> None:
    """Insert A[row, col] = value, replacing any earlier value at that coordinate.

    Raises:
        IndexError: coordinate outside the matrix
        NonzeroBudgetExceededError: a new coordinate beyond the declared nnz
    """
    if not (0 <= row < data.n_rows and 0 <= col < data.n_cols):
        raise IndexError(
            f"element ({row}, {col}) out of range for {data.n_rows}x{data.n_cols} matrix"
        )
    key = (row, col)
    slot = data.slots.get(key)
    if slot is None:
        if data.count >= data.nnz:
            raise NonzeroBudgetExceededError(data.nnz, row, col)
        slot = data.count
        data.slots[key] = slot
        data.rows[slot] = row
        data.cols[slot] = col
        data.count += 1
    data.values[slot] = value


def reset_sparse_data(data: SparseSolverData) -> None:
    """Drop all entries before a fresh assembly."""
    data.slots.clear()
    data.count = 0


def _jacobi_inverse_diagonal(data: SparseSolverData) -> np.ndarray:
    """Inverse of the stored diagonal; rows without a usable diagonal get 1."""
    n = data.count
    rows, cols, values = data.rows[:n], data.cols[:n], data.values[:n]
    diag = np.zeros(data.n_rows, dtype=np.float64)
    on_diag = rows == cols
    diag[rows[on_diag]] = values[on_diag]
    usable = np.isfinite(diag) & (diag != 0.0)
    inv = np.ones_like(diag)
    inv[usable] = 1.0 / diag[usable]
    return inv


@partial(jax.jit, static_argnames=("method", "tol", "atol", "maxiter", "restart"))
def _krylov_solve(
    values: Float[Array, " nse"],
    indices: Int[Array, "nse 2"],
    b: Float[Array, " n"],
    x0: Float[Array, " n"],
    inv_diag: Float[Array, " n"],
    method: str,
    tol: float,
    atol: float,
    maxiter: int,
    restart: int,
) -> Tuple[Float[Array, " n"], Float[Array, ""]]:
    n = b.shape[0]
    A = BCOO((values, indices), shape=(n, n))

    def matvec(v):
        return A @ v

    def precondition(v):
        return inv_diag * v

    if method == "bicgstab":
        x, _ = bicgstab(matvec, b, x0=x0, tol=tol, atol=atol, maxiter=maxiter, M=precondition)
    else:
        x, _ = gmres(
            matvec,
            b,
            x0=x0,
            tol=tol,
            atol=atol,
            restart=restart,
            maxiter=maxiter,
            M=precondition,
        )
    residual = jnp.linalg.norm(A @ x - b)
    return x, residual


def solve_sparse(
    data: SparseSolverData,
    b: np.ndarray,
    x: np.ndarray,
    options: Optional[SolverOptions] = None,
) -> bool:
    """Solve A x = b iteratively.

    Args:
        data: Allocated sparse solver data holding the assembled entries
        b: Right-hand side (length n_rows)
        x: Initial guess (when warm starting) and solution buffer,
            overwritten only on success
        options: Run options; defaults when None

    Returns:
        True if the residual test passes, False otherwise
    """
    if data.n_rows != data.n_cols:
        raise ValueError(f"cannot solve a non-square {data.n_rows}x{data.n_cols} system")

    if options is not None:
        method = options.iterative_method
        tol = options.iterative_tol
        atol = options.iterative_atol
        maxiter = options.iterative_maxiter
        restart = options.gmres_restart
        warm_start = options.warm_start
        use_jacobi = options.jacobi_preconditioner
    else:
        method = DEFAULT_ITERATIVE_METHOD
        tol = DEFAULT_ITERATIVE_TOL
        atol = DEFAULT_ITERATIVE_ATOL
        maxiter = DEFAULT_ITERATIVE_MAXITER
        restart = DEFAULT_GMRES_RESTART
        warm_start = True
        use_jacobi = True

    n = data.count
    if n == 0:
        ls_logger.debug("iterative solve: matrix has no entries")
        data.last_residual = float("inf")
        return False

    indices = np.stack([data.rows[:n], data.cols[:n]], axis=1)
    if warm_start and np.all(np.isfinite(x)):
        x0 = np.asarray(x, dtype=np.float64)
    else:
        x0 = np.zeros(data.n_rows, dtype=np.float64)
    if use_jacobi:
        inv_diag = _jacobi_inverse_diagonal(data)
    else:
        inv_diag = np.ones(data.n_rows, dtype=np.float64)

    x_new, residual = _krylov_solve(
        jnp.asarray(data.values[:n]),
        jnp.asarray(indices),
        jnp.asarray(b, dtype=jnp.float64),
        jnp.asarray(x0),
        jnp.asarray(inv_diag),
        method=method,
        tol=float(tol),
        atol=float(atol),
        maxiter=int(maxiter),
        restart=int(restart),
    )
    x_new = np.asarray(x_new)
    residual = float(residual)
    data.last_residual = residual

    if not (np.all(np.isfinite(x_new)) and np.isfinite(residual)):
        ls_logger.debug(f"iterative solve ({method}): non-finite solution")
        return False

    bound = tol * float(np.linalg.norm(b)) + atol
    if residual > bound:
        ls_logger.debug(
            f"iterative solve ({method}): no convergence, ||Ax-b||={residual:.3e} > {bound:.3e}"
        )
        return False

    x[:] = x_new
    return True


def free_sparse_data(data: SparseSolverData) -> None:
    """Release the triplet buffers."""
    data.rows = None
    data.cols = None
    data.values = None
    data.slots = {}
    data.count = 0
