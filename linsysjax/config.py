"""Default configuration values for linsysjax.

This module centralizes numeric defaults used by the backend adapters and
the run options.
"""

# Backend used when the run configuration does not name one
DEFAULT_LS_METHOD = "dense"

# Dense LU: a pivot is treated as zero when |u_ii| <= PIVOT_TOL * max|u_jj|.
# 0 fails only on exact zero pivots, so badly scaled rows still solve.
DEFAULT_PIVOT_TOL = 0.0

# Iterative (Krylov) solve
DEFAULT_ITERATIVE_METHOD = "gmres"
DEFAULT_ITERATIVE_TOL = 1e-10  # Relative residual tolerance
DEFAULT_ITERATIVE_ATOL = 0.0  # Absolute residual tolerance
DEFAULT_ITERATIVE_MAXITER = 500
DEFAULT_GMRES_RESTART = 20

# Marker for "no analytical jacobian" in LinearSystemSpec.jacobian_index
NO_JACOBIAN = -1

# Assembly methods of a linear system (LinearSystemSpec.method)
METHOD_MATRIX = 0  # Coefficients assembled directly
METHOD_JACOBIAN = 1  # Coefficients taken from the (analytical) jacobian
