"""Dense direct linear solver backend.

The coefficient matrix lives in a host-side numpy buffer in column-major
(Fortran) order so that the element setter is a single flat store at
``row + col * size``. Solving copies the buffer to the device and runs a
JIT-compiled LU factorization (jax.scipy.linalg.lu_factor/lu_solve).

Singular or numerically degenerate systems are reported as a failed solve
(False), never raised.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

import jax
import jax.numpy as jnp
import numpy as np
from jax import Array
from jaxtyping import Float, Int

from linsysjax._logging import ls_logger
from linsysjax.config import DEFAULT_PIVOT_TOL
from linsysjax.options import SolverOptions


@dataclass
class DenseSolverData:
    """Solver-private storage of one dense linear system.

    Attributes:
        size: Matrix dimension
        A: (size, size) coefficient matrix, Fortran order
        flat: Flat column-major view of A (flat[row + col*size] is A[row, col])
        lu: LU factors from the last solve (factorization workspace)
        piv: Pivot indices from the last solve
    """

    size: int
    A: Optional[np.ndarray]
    flat: Optional[np.ndarray]
    lu: Optional[Array] = None
    piv: Optional[Array] = None


@jax.jit
def _lu_factor_solve(
    A: Float[Array, "n n"], b: Float[Array, " n"]
) -> Tuple[Float[Array, "n n"], Int[Array, " n"], Float[Array, " n"]]:
    lu, piv = jax.scipy.linalg.lu_factor(A)
    x = jax.scipy.linalg.lu_solve((lu, piv), b)
    return lu, piv, x


def allocate_dense_data(size: int, nnz: int = 0) -> DenseSolverData:
    """Allocate a size x size column-major matrix.

    The contents are unspecified; the caller must populate every entry
    (or reset the matrix) before solving. ``nnz`` is ignored.
    """
    A = np.empty((size, size), dtype=np.float64, order="F")
    return DenseSolverData(size=size, A=A, flat=A.ravel(order="F"))


def set_element_dense(data: DenseSolverData, row: int, col: int, value: float) -> None:
    """Store A[row, col] = value."""
    size = data.size
    if not (0 <= row < size and 0 <= col < size):
        raise IndexError(f"element ({row}, {col}) out of range for {size}x{size} matrix")
    data.flat[row + col * size] = value


def reset_dense_data(data: DenseSolverData) -> None:
    """Zero the matrix before a fresh assembly."""
    data.A.fill(0.0)


def solve_dense(
    data: DenseSolverData,
    b: np.ndarray,
    x: np.ndarray,
    options: Optional[SolverOptions] = None,
) -> bool:
    """Solve A x = b by LU factorization.

    Args:
        data: Allocated dense solver data holding the assembled matrix
        b: Right-hand side (length size)
        x: Solution buffer, overwritten only on success
        options: Run options (pivot_tol); defaults when None

    Returns:
        True on success, False for singular or non-finite systems
    """
    pivot_tol = options.pivot_tol if options is not None else DEFAULT_PIVOT_TOL

    lu, piv, x_new = _lu_factor_solve(jnp.asarray(data.A), jnp.asarray(b))
    data.lu, data.piv = lu, piv

    pivots = np.abs(np.diag(np.asarray(lu)))
    if not np.all(np.isfinite(pivots)):
        ls_logger.debug("dense LU: non-finite pivot")
        return False

    largest = float(pivots.max())
    smallest = float(pivots.min())
    if largest == 0.0 or smallest <= pivot_tol * largest:
        ls_logger.debug(
            f"dense LU: singular matrix (min |u_ii|={smallest:.3e}, max |u_ii|={largest:.3e})"
        )
        return False

    x_new = np.asarray(x_new)
    if not np.all(np.isfinite(x_new)):
        ls_logger.debug("dense LU: non-finite solution")
        return False

    x[:] = x_new
    return True


def free_dense_data(data: DenseSolverData) -> None:
    """Release the matrix buffer and the factorization workspace."""
    data.A = None
    data.flat = None
    data.lu = None
    data.piv = None
