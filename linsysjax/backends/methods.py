"""Linear solver backends known to linsysjax.

The enumeration is closed: every run selects exactly one member, and a
selection that does not resolve to a member is a fatal configuration error.
"""

from enum import Enum

from linsysjax.errors import UnrecognizedLinearSolverError


class LinearSolverMethod(Enum):
    """Supported linear solver backends."""

    DENSE = "dense"  # Column-major dense matrix, LU direct solve
    ITERATIVE = "iterative"  # Coordinate-assembled sparse matrix, Krylov solve

    @classmethod
    def from_string(cls, s: str) -> "LinearSolverMethod":
        """Parse a backend name.

        Accepts the names used by other simulation runtimes as aliases.
        """
        s_lower = s.lower().strip().strip("\"'")
        aliases = {
            "dense": cls.DENSE,
            "lapack": cls.DENSE,
            "lu": cls.DENSE,
            "direct": cls.DENSE,
            "iterative": cls.ITERATIVE,
            "lis": cls.ITERATIVE,
            "sparse": cls.ITERATIVE,
            "krylov": cls.ITERATIVE,
        }
        if s_lower in aliases:
            return aliases[s_lower]
        raise UnrecognizedLinearSolverError(s)

    @classmethod
    def resolve(cls, selection) -> "LinearSolverMethod":
        """Resolve a raw run-configuration selection to a member.

        Raises:
            UnrecognizedLinearSolverError: for anything that is neither a
                member nor a recognized name.
        """
        if isinstance(selection, cls):
            return selection
        if isinstance(selection, str):
            return cls.from_string(selection)
        raise UnrecognizedLinearSolverError(selection)
