"""Model metadata consumed by the linear-system layer.

The equation-graph compiler decides which equations form a linear system
and emits one LinearSystemSpec per system, together with the model-specific
callbacks that fill it. SimulationData bundles those specs with the run
options, the equation info used for diagnostics and the current time.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Tuple

from linsysjax.config import METHOD_MATRIX, NO_JACOBIAN
from linsysjax.options import SolverOptions

if TYPE_CHECKING:
    from linsysjax.system import LinearSystemData

# Callback signatures: (data, system) -> None
SystemCallback = Callable[["SimulationData", "LinearSystemData"], None]


@dataclass(frozen=True)
class EquationInfo:
    """Source information of one equation of the model.

    Attributes:
        id: Equation id as listed in the model's equation listing
        section: Section of the listing the equation belongs to
        variables: Names of the variables the equation solves for
    """

    id: int
    section: str = "regular"
    variables: Tuple[str, ...] = ()


@dataclass
class ModelInfo:
    """Equation-index -> source information, used only for diagnostics."""

    equations: Dict[int, EquationInfo] = field(default_factory=dict)

    def get_equation(self, index: int) -> EquationInfo:
        """Look up an equation; unknown indices map to a bare EquationInfo."""
        info = self.equations.get(index)
        if info is None:
            return EquationInfo(id=index)
        return info


@dataclass
class LinearSystemSpec:
    """Compiled description of one linear system.

    Attributes:
        size: Number of unknowns (>= 1)
        nnz: Expected number of nonzero coefficients (sizes the sparse backend)
        equation_index: Index of the system's equation in the model info
        initialize_static_data: Writes nominal/min/max of the system
        set_a: Assembly callback, inserts every nonzero coefficient through
            system.set_a_element()
        set_b: Assembly callback, writes system.b
        method: METHOD_MATRIX or METHOD_JACOBIAN
        jacobian_index: Index of the analytical jacobian, NO_JACOBIAN if none
        analytical_jacobian_column: Column function of the analytical jacobian
        initial_analytical_jacobian: Prepares the analytical jacobian; returns
            a truthy value on failure (the system then runs without it)
    """

    size: int
    nnz: int
    equation_index: int
    initialize_static_data: SystemCallback
    set_a: Optional[SystemCallback] = None
    set_b: Optional[SystemCallback] = None
    method: int = METHOD_MATRIX
    jacobian_index: int = NO_JACOBIAN
    analytical_jacobian_column: Optional[Callable[..., Any]] = None
    initial_analytical_jacobian: Optional[Callable[["SimulationData"], Any]] = None

    def __post_init__(self):
        if self.size < 1:
            raise ValueError(f"linear system size must be >= 1, got {self.size}")
        if self.nnz < 0:
            raise ValueError(f"nnz must be non-negative, got {self.nnz}")


@dataclass
class SimulationData:
    """Simulation state shared with the linear-system layer.

    Attributes:
        linear_system_specs: One spec per compiled linear system, in order
        options: Run options, including the backend selection
        model_info: Equation info for diagnostics
        time: Current simulation time
        linear_systems: Registry of LinearSystemData, filled by
            initialize_linear_systems() and emptied by free_linear_systems()
        initialized: True between initialize_linear_systems() and
            free_linear_systems(), also when the model has no linear systems
    """

    linear_system_specs: List[LinearSystemSpec] = field(default_factory=list)
    options: SolverOptions = field(default_factory=SolverOptions)
    model_info: ModelInfo = field(default_factory=ModelInfo)
    time: float = 0.0
    linear_systems: List["LinearSystemData"] = field(default_factory=list)
    initialized: bool = False

    @property
    def n_linear_systems(self) -> int:
        return len(self.linear_system_specs)
