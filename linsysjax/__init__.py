"""linsysjax: lifecycle and backends for the linear subsystems of a DAE simulation"""

import logging

import jax

__version__ = "0.1.0"


logger = logging.getLogger("linsysjax")


def configure_precision(force_x64: bool | None = None) -> bool:
    """Configure JAX float precision.

    Linear systems are assembled and solved in float64 unless the backend
    cannot do so (Metal, TPU).

    Args:
        force_x64: If True, force x64. If False, force x32.
                   If None (default), auto-detect.

    Returns:
        True if x64 is enabled, False otherwise.
    """
    if force_x64 is not None:
        enable_x64 = force_x64
    else:
        try:
            enable_x64 = jax.default_backend().lower() not in ("metal", "tpu", "iree_metal")
        except RuntimeError:
            enable_x64 = True

    if enable_x64:
        logger.debug("Using 64-bit float precision")
    else:
        logger.warning("Using 32-bit float precision")

    jax.config.update("jax_enable_x64", enable_x64)
    return enable_x64


# Auto-configure precision on import
_x64_enabled = configure_precision()


from linsysjax._logging import enable_verbose_logging, message_block, set_log_level  # noqa: E402
from linsysjax.backends import BackendAdapter, LinearSolverMethod, get_backend  # noqa: E402
from linsysjax.errors import (  # noqa: E402
    FatalConfigurationError,
    InvalidJacobianError,
    LinearSystemError,
    LinearSystemStateError,
    NonzeroBudgetExceededError,
    UnrecognizedLinearSolverError,
)
from linsysjax.linear_systems import (  # noqa: E402
    assemble_linear_system,
    free_linear_systems,
    initialize_linear_systems,
    solve_linear_system,
    update_static_data_of_linear_systems,
)
from linsysjax.model import (  # noqa: E402
    EquationInfo,
    LinearSystemSpec,
    ModelInfo,
    SimulationData,
)
from linsysjax.options import SolverOptions  # noqa: E402
from linsysjax.status import check_linear_solutions  # noqa: E402
from linsysjax.system import LinearSystemData, SolveStatus  # noqa: E402

__all__ = [
    # Lifecycle
    "initialize_linear_systems",
    "update_static_data_of_linear_systems",
    "assemble_linear_system",
    "solve_linear_system",
    "free_linear_systems",
    "check_linear_solutions",
    # Data model
    "SimulationData",
    "LinearSystemSpec",
    "LinearSystemData",
    "SolveStatus",
    "ModelInfo",
    "EquationInfo",
    "SolverOptions",
    # Backends
    "LinearSolverMethod",
    "BackendAdapter",
    "get_backend",
    # Errors
    "LinearSystemError",
    "FatalConfigurationError",
    "UnrecognizedLinearSolverError",
    "InvalidJacobianError",
    "LinearSystemStateError",
    "NonzeroBudgetExceededError",
    # Logging / precision
    "configure_precision",
    "enable_verbose_logging",
    "set_log_level",
    "message_block",
]
