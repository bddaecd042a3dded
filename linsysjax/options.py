"""Run options for the linear-system layer.

This module provides a centralized definition of the linear solver options
with:
- Default values
- Type validation
- Parsing from a mapping (e.g. simulation flags or a config file section)

Example usage:
    options = SolverOptions(ls_method="iterative")
    options.iterative_method = "bicgstab"
    options.update_from_dict({"iterative_tol": "1e-12", "warm_start": "no"})

The backend selection ``ls_method`` is kept as given (member or name) and
is resolved exactly once, by initialize_linear_systems().
"""

from dataclasses import dataclass, fields
from typing import Any, Callable, Dict

from linsysjax._logging import logger
from linsysjax.backends.methods import LinearSolverMethod
from linsysjax.config import (
    DEFAULT_GMRES_RESTART,
    DEFAULT_ITERATIVE_ATOL,
    DEFAULT_ITERATIVE_MAXITER,
    DEFAULT_ITERATIVE_METHOD,
    DEFAULT_ITERATIVE_TOL,
    DEFAULT_LS_METHOD,
    DEFAULT_PIVOT_TOL,
)

ITERATIVE_METHODS = ("gmres", "bicgstab")


def _parse_bool(value: Any) -> bool:
    """Parse a boolean from various input types."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.lower() in ("true", "1", "yes", "on")
    return bool(value)


@dataclass
class SolverOptions:
    """Linear solver options for one simulation run.

    Options are validated on assignment. Invalid values raise ValueError.
    """

    ls_method: Any = DEFAULT_LS_METHOD
    """Backend for every linear system of the run ('dense' or 'iterative').

    Raw selection (member, name or anything else); only resolved, and
    rejected if unknown, by initialize_linear_systems().
    """

    # Dense LU
    pivot_tol: float = DEFAULT_PIVOT_TOL
    """Relative pivot threshold below which the dense matrix counts as singular."""

    # Iterative solve
    iterative_method: str = DEFAULT_ITERATIVE_METHOD
    """Krylov method of the iterative backend ('gmres' or 'bicgstab')."""

    iterative_tol: float = DEFAULT_ITERATIVE_TOL
    """Relative residual tolerance: ||Ax-b|| <= tol*||b|| + atol."""

    iterative_atol: float = DEFAULT_ITERATIVE_ATOL
    """Absolute residual tolerance."""

    iterative_maxiter: int = DEFAULT_ITERATIVE_MAXITER
    """Max Krylov iterations (GMRES: restart cycles)."""

    gmres_restart: int = DEFAULT_GMRES_RESTART
    """GMRES Krylov subspace size before restart."""

    warm_start: bool = True
    """Start the iterative solve from the previous solution."""

    jacobi_preconditioner: bool = True
    """Precondition the iterative solve with the inverse diagonal."""

    def __post_init__(self):
        """Validate all options after initialization."""
        self._validate_all()

    def __setattr__(self, name: str, value: Any) -> None:
        """Set attribute with validation."""
        self._validate(name, value)
        object.__setattr__(self, name, value)

    @staticmethod
    def _validate(name: str, value: Any) -> None:
        if name == "pivot_tol" and not (0 <= value < 1):
            raise ValueError(f"pivot_tol must be in [0, 1), got {value}")
        if name == "iterative_method" and value not in ITERATIVE_METHODS:
            raise ValueError(f"iterative_method must be 'gmres' or 'bicgstab', got {value}")
        if name == "iterative_tol" and value <= 0:
            raise ValueError(f"iterative_tol must be positive, got {value}")
        if name == "iterative_atol" and value < 0:
            raise ValueError(f"iterative_atol must be non-negative, got {value}")
        if name == "iterative_maxiter" and value < 1:
            raise ValueError(f"iterative_maxiter must be >= 1, got {value}")
        if name == "gmres_restart" and value < 1:
            raise ValueError(f"gmres_restart must be >= 1, got {value}")

    def _validate_all(self):
        """Validate all option values."""
        for f in fields(self):
            self._validate(f.name, getattr(self, f.name))

    def set(self, name: str, value: Any) -> None:
        """Set an option by name with validation.

        Args:
            name: Option name (e.g., 'iterative_tol')
            value: Option value (will be converted to appropriate type)

        Raises:
            ValueError: If option name is unknown or value is invalid
        """
        if not hasattr(self, name):
            raise ValueError(f"Unknown option: {name}")

        field_type = None
        for f in fields(self):
            if f.name == name:
                field_type = f.type
                break

        # Convert value to appropriate type
        if field_type == float:
            value = float(value)
        elif field_type == int:
            value = int(value)
        elif field_type == bool:
            value = _parse_bool(value)
        elif field_type == str:
            value = str(value).strip("\"'").lower()
        elif isinstance(value, str):
            # ls_method: keep the raw name, resolution happens at initialization
            value = value.strip("\"'")

        setattr(self, name, value)

    def get(self, name: str, default: Any = None) -> Any:
        """Get an option value by name.

        Args:
            name: Option name
            default: Default value if option is None

        Returns:
            Option value or default
        """
        value = getattr(self, name, default)
        return default if value is None else value

    def update_from_dict(
        self, opts: Dict[str, Any], parse_number: Callable[[str], float] = float
    ) -> None:
        """Update options from a mapping of option names to (string) values.

        Unknown names are skipped so that a shared configuration section can
        carry options for other layers. Values that fail to parse are logged
        and ignored.

        Args:
            opts: Option name -> value
            parse_number: Function to parse numbers from strings
        """
        _float_fields = {"pivot_tol", "iterative_tol", "iterative_atol"}
        _int_fields = {"iterative_maxiter", "gmres_restart"}

        for opt_name, opt_value in opts.items():
            if not hasattr(self, opt_name):
                continue

            try:
                if opt_name in _float_fields and isinstance(opt_value, str):
                    opt_value = parse_number(opt_value)
                elif opt_name in _int_fields and isinstance(opt_value, str):
                    opt_value = int(parse_number(opt_value))

                self.set(opt_name, opt_value)
            except (ValueError, TypeError) as e:
                logger.warning(f"Failed to parse option {opt_name}={opt_value}: {e}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert options to dictionary.

        Returns:
            Dictionary of all option values
        """
        result = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, LinearSolverMethod):
                value = value.value
            result[f.name] = value
        return result

    def copy(self) -> "SolverOptions":
        """Create a copy of these options."""
        return SolverOptions(**{f.name: getattr(self, f.name) for f in fields(self)})
