"""Lifecycle of the linear systems of a simulation run.

The outer simulation loop drives every linear system through:

    initialize_linear_systems(data)              # once per run
    update_static_data_of_linear_systems(data)   # when structural parameters change
    assemble_linear_system(data, i)              # every step: model callbacks fill A and b
    solve_linear_system(data, i)                 # every step: backend solve, status update
    free_linear_systems(data)                    # once per run

The backend is chosen once for the whole run from data.options.ls_method.
Every record is bound to that backend's adapter at allocation and all
element insertions go through it.

All calls are synchronous and run on the caller's thread. Operations on one
record must be strictly sequential; distinct records are independent (see
linsysjax.backends for the reentrancy precondition).
"""

import logging
from typing import List

import numpy as np

from linsysjax._logging import ls_logger, message_block
from linsysjax.backends import get_backend
from linsysjax.backends.methods import LinearSolverMethod
from linsysjax.config import METHOD_JACOBIAN, NO_JACOBIAN
from linsysjax.errors import InvalidJacobianError, LinearSystemStateError
from linsysjax.model import LinearSystemSpec, SimulationData
from linsysjax.profiling import SolveTimer, profile_section
from linsysjax.system import LinearSystemData, SolveStatus


def _validate_jacobian(spec: LinearSystemSpec) -> None:
    """A declared analytical jacobian must come with its column function."""
    if spec.method != METHOD_JACOBIAN or spec.jacobian_index == NO_JACOBIAN:
        return
    if spec.analytical_jacobian_column is None:
        raise InvalidJacobianError(spec.equation_index)


def _initialize_jacobian(data: SimulationData, system: LinearSystemData) -> None:
    """Prepare the analytical jacobian, falling back to none if that fails."""
    spec = system.spec
    system.jacobian_index = spec.jacobian_index
    if spec.method != METHOD_JACOBIAN:
        return
    if spec.initial_analytical_jacobian is None or spec.initial_analytical_jacobian(data):
        if system.jacobian_index != NO_JACOBIAN:
            ls_logger.info(
                f"linear system {spec.equation_index}: no analytical jacobian, "
                "using numerical approximation"
            )
        system.jacobian_index = NO_JACOBIAN


def _get_system(data: SimulationData, index: int) -> LinearSystemData:
    if not data.initialized:
        raise LinearSystemStateError("linear systems are not initialized")
    n = len(data.linear_systems)
    if not (0 <= index < n):
        raise IndexError(f"linear system index {index} out of range for {n} linear systems")
    system = data.linear_systems[index]
    system.require_allocated()
    return system


def initialize_linear_systems(data: SimulationData) -> List[LinearSystemData]:
    """Allocate every linear system of the model.

    The backend selection and all jacobian declarations are validated
    before anything is allocated, so a fatal configuration error leaves no
    partially initialized registry behind.

    Args:
        data: Simulation data holding the specs and the run options

    Returns:
        The registry (also stored as data.linear_systems)

    Raises:
        UnrecognizedLinearSolverError: unknown backend selection
        InvalidJacobianError: declared analytical jacobian without column function
        LinearSystemStateError: the systems are already initialized
    """
    if data.initialized:
        raise LinearSystemStateError("linear systems are already initialized")

    method = LinearSolverMethod.resolve(data.options.ls_method)
    backend = get_backend(method)
    for spec in data.linear_system_specs:
        _validate_jacobian(spec)

    registry = []
    with message_block(ls_logger, logging.INFO, "initialize linear system solvers"):
        ls_logger.info(
            f"{len(data.linear_system_specs)} linear systems, {method.value} backend"
        )
        for spec in data.linear_system_specs:
            system = LinearSystemData(spec=spec)
            size = spec.size

            system.x = np.zeros(size, dtype=np.float64)
            system.b = np.zeros(size, dtype=np.float64)

            _initialize_jacobian(data, system)

            system.nominal = np.ones(size, dtype=np.float64)
            system.min = np.full(size, -np.inf, dtype=np.float64)
            system.max = np.full(size, np.inf, dtype=np.float64)

            spec.initialize_static_data(data, system)

            # The matrix representation is backend-specific
            system.bind_backend(backend)
            registry.append(system)

            ls_logger.debug(
                f"linear system {spec.equation_index}: size {size}, nnz {spec.nnz}, "
                f"analytical jacobian {system.jacobian_available}"
            )

    data.linear_systems = registry
    data.initialized = True
    return registry


def update_static_data_of_linear_systems(data: SimulationData) -> None:
    """Re-run the static data callback of every system.

    Buffers and backend storage are reused; nothing is reallocated.
    """
    with message_block(ls_logger, logging.INFO, "update static data of linear system solvers"):
        for system in data.linear_systems:
            system.require_allocated()
            system.spec.initialize_static_data(data, system)


def free_linear_systems(data: SimulationData) -> None:
    """Release every linear system and empty the registry.

    Raises:
        LinearSystemStateError: a system was already released
    """
    with message_block(ls_logger, logging.INFO, "free linear system solvers"):
        for system in data.linear_systems:
            system.release()
            ls_logger.debug(
                f"linear system {system.equation_index}: {system.num_calls} solves, "
                f"{system.total_time:.3e}s"
            )
    data.linear_systems = []
    data.initialized = False


def assemble_linear_system(data: SimulationData, index: int) -> None:
    """Fill A and b of one system from the model's assembly callbacks.

    The matrix is cleared first, so callbacks only need to set nonzeros.
    """
    system = _get_system(data, index)
    spec = system.spec
    system.backend.reset(system.solver_data)
    if spec.set_a is not None:
        spec.set_a(data, system)
    if spec.set_b is not None:
        spec.set_b(data, system)


def solve_linear_system(data: SimulationData, index: int) -> bool:
    """Solve one assembled system with the run's backend.

    On success the solution is written to system.x. The outcome is recorded
    in system.status; a failed solve is not an error here, it is reported by
    check_linear_solutions().

    Returns:
        True if the backend solved the system
    """
    system = _get_system(data, index)

    with profile_section(f"linear_system_{system.equation_index}"):
        with SolveTimer() as timer:
            success = system.backend.solve(system.solver_data, system.b, system.x, data.options)

    system.num_calls += 1
    system.total_time += timer.elapsed_s
    system.status = SolveStatus.SOLVED if success else SolveStatus.FAILED
    return success
