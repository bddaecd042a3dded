"""Solve status reporting for linear systems."""

import logging

from linsysjax._logging import ls_logger
from linsysjax.model import SimulationData
from linsysjax.system import SolveStatus


def check_linear_solutions(data: SimulationData, print_failing_systems: bool = False) -> bool:
    """Check whether some linear system failed to solve.

    Pure observer: no record is modified. A system that has not been solved
    yet counts as not solved.

    Args:
        data: Simulation data holding the registry
        print_failing_systems: Emit one warning per unsolved system (only when
            warnings are enabled for the linear-system stream)

    Returns:
        True if at least one system is not solved
    """
    any_failed = False
    report = print_failing_systems and ls_logger.isEnabledFor(logging.WARNING)

    for system in data.linear_systems:
        if system.solved:
            continue
        any_failed = True
        if report:
            equation = data.model_info.get_equation(system.equation_index)
            if system.status is SolveStatus.NOT_ATTEMPTED:
                msg = f"linear system {equation.id} has not been solved at t={data.time:g}"
            else:
                msg = f"linear system {equation.id} fails at t={data.time:g}"
            if equation.variables:
                msg += f" (solving for: {', '.join(equation.variables)})"
            ls_logger.warning(msg)

    return any_failed
