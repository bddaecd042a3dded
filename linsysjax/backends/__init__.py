"""Linear solver backend adapters.

Each backend is a BackendAdapter: an immutable record of the plain
functions that allocate, fill, solve and free its solver-private storage.
get_backend() is the only place where a LinearSolverMethod is mapped to an
adapter, so every record of a run is served by the same adapter.

Available backends:
- DENSE: column-major numpy matrix, JIT-compiled LU direct solve
- ITERATIVE: COO triplets, GMRES/BiCGSTAB from jax.scipy.sparse.linalg

Reentrancy: adapters keep all mutable state in the solver data they return,
so distinct systems never share buffers. Solving distinct systems from
several threads additionally requires the JAX runtime in use to be
thread-safe; linsysjax does not guarantee that.
"""

from typing import Any, Callable, NamedTuple

from linsysjax.backends.dense import (
    DenseSolverData,
    allocate_dense_data,
    free_dense_data,
    reset_dense_data,
    set_element_dense,
    solve_dense,
)
from linsysjax.backends.methods import LinearSolverMethod
from linsysjax.backends.sparse import (
    SparseSolverData,
    allocate_sparse_data,
    free_sparse_data,
    reset_sparse_data,
    set_element_sparse,
    solve_sparse,
)
from linsysjax.errors import UnrecognizedLinearSolverError


class BackendAdapter(NamedTuple):
    """Functions implementing one linear solver backend.

    Attributes:
        method: Backend this adapter implements
        allocate: (size, nnz) -> solver data
        set_element: (solver data, row, col, value) -> None
        reset: (solver data) -> None, clears coefficients before assembly
        solve: (solver data, b, x, options) -> success flag, writes x on success
        free: (solver data) -> None
    """

    method: LinearSolverMethod
    allocate: Callable[[int, int], Any]
    set_element: Callable[[Any, int, int, float], None]
    reset: Callable[[Any], None]
    solve: Callable[..., bool]
    free: Callable[[Any], None]


def _allocate_square_sparse(size: int, nnz: int) -> SparseSolverData:
    return allocate_sparse_data(size, size, nnz)


DENSE_BACKEND = BackendAdapter(
    method=LinearSolverMethod.DENSE,
    allocate=allocate_dense_data,
    set_element=set_element_dense,
    reset=reset_dense_data,
    solve=solve_dense,
    free=free_dense_data,
)

ITERATIVE_BACKEND = BackendAdapter(
    method=LinearSolverMethod.ITERATIVE,
    allocate=_allocate_square_sparse,
    set_element=set_element_sparse,
    reset=reset_sparse_data,
    solve=solve_sparse,
    free=free_sparse_data,
)

_BACKENDS = {
    LinearSolverMethod.DENSE: DENSE_BACKEND,
    LinearSolverMethod.ITERATIVE: ITERATIVE_BACKEND,
}


def get_backend(method: LinearSolverMethod) -> BackendAdapter:
    """Return the adapter for a resolved backend selection.

    Raises:
        UnrecognizedLinearSolverError: if ``method`` has no adapter
    """
    try:
        return _BACKENDS[method]
    except (KeyError, TypeError):
        raise UnrecognizedLinearSolverError(method) from None


__all__ = [
    "BackendAdapter",
    "LinearSolverMethod",
    "get_backend",
    "DENSE_BACKEND",
    "ITERATIVE_BACKEND",
    "DenseSolverData",
    "SparseSolverData",
]
