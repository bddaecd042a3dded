"""Linear system record.

One LinearSystemData per compiled linear system. It owns the solution,
right-hand side and scaling buffers, the backend-specific solver data and
the element setter of the backend selected for the run.

Lifecycle (enforced, LinearSystemStateError otherwise):

    allocated by initialize_linear_systems()
      -> (update_static_data_of_linear_systems())*
      -> (assemble_linear_system() -> solve_linear_system())*
      -> released by free_linear_systems()
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

import numpy as np

from linsysjax.backends import BackendAdapter
from linsysjax.config import NO_JACOBIAN
from linsysjax.errors import LinearSystemStateError
from linsysjax.model import LinearSystemSpec


class SolveStatus(Enum):
    """Outcome of the most recent solve attempt of a system."""

    NOT_ATTEMPTED = "not_attempted"
    SOLVED = "solved"
    FAILED = "failed"


@dataclass
class LinearSystemData:
    """Runtime state of one linear system.

    Attributes:
        spec: Compiled description (size, nnz, callbacks)
        x: Solution vector (unknowns), length size
        b: Right-hand side, length size
        nominal: Nominal values of the unknowns (scaling)
        min: Lower bounds of the unknowns
        max: Upper bounds of the unknowns
        jacobian_index: Analytical jacobian in use, NO_JACOBIAN if none
        solver_data: Backend-private storage holding the matrix
        backend: Adapter bound at allocation
        status: Outcome of the last solve attempt
        num_calls: Number of solve attempts
        total_time: Accumulated solve wall time (s)
    """

    spec: LinearSystemSpec
    x: Optional[np.ndarray] = None
    b: Optional[np.ndarray] = None
    nominal: Optional[np.ndarray] = None
    min: Optional[np.ndarray] = None
    max: Optional[np.ndarray] = None
    jacobian_index: int = NO_JACOBIAN
    solver_data: Any = None
    backend: Optional[BackendAdapter] = field(default=None, repr=False)
    status: SolveStatus = SolveStatus.NOT_ATTEMPTED
    num_calls: int = 0
    total_time: float = 0.0

    @property
    def size(self) -> int:
        return self.spec.size

    @property
    def nnz(self) -> int:
        return self.spec.nnz

    @property
    def equation_index(self) -> int:
        return self.spec.equation_index

    @property
    def jacobian_available(self) -> bool:
        """True if the system is filled from an analytical jacobian."""
        return self.jacobian_index != NO_JACOBIAN

    @property
    def solved(self) -> bool:
        """True only if the last solve attempt succeeded."""
        return self.status is SolveStatus.SOLVED

    @property
    def allocated(self) -> bool:
        return self.solver_data is not None

    def bind_backend(self, backend: BackendAdapter) -> None:
        """Allocate backend storage and bind the element setter (once)."""
        if self.backend is not None:
            raise LinearSystemStateError(
                f"linear system {self.equation_index} is already bound to "
                f"the {self.backend.method.value} backend"
            )
        self.solver_data = backend.allocate(self.size, self.nnz)
        self.backend = backend

    def require_allocated(self) -> None:
        if not self.allocated:
            raise LinearSystemStateError(
                f"linear system {self.equation_index} is not allocated"
            )

    def set_a_element(self, row: int, col: int, value: float) -> None:
        """Set coefficient A[row, col] through the run's backend."""
        self.require_allocated()
        self.backend.set_element(self.solver_data, row, col, value)

    def release(self) -> None:
        """Release buffers, then backend storage, then solver data."""
        self.require_allocated()
        self.x = None
        self.b = None
        self.nominal = None
        self.min = None
        self.max = None
        self.backend.free(self.solver_data)
        self.solver_data = None
