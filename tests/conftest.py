"""Pytest configuration for linsysjax tests

Handles platform-specific JAX configuration:
- Forces the CPU backend so dense LU and Krylov solves run in float64

Enables jaxtyping runtime checks with beartype for array shape validation
when beartype is installed.

Uses pytest_configure hook to ensure JAX is configured before any test imports.

Also provides shared test utilities:
- make_spec: Build a LinearSystemSpec from a constant matrix and rhs
- make_data: Build SimulationData for a list of specs and a backend
"""

import importlib.util
import os
from typing import List, Optional, Sequence

import pytest


def _setup_jaxtyping() -> bool:
    """Enable jaxtyping runtime checking with beartype.

    Returns:
        True if the import hook was installed
    """
    # The hook imports beartype lazily, so probe for it up front
    if importlib.util.find_spec("beartype") is None:
        return False

    from jaxtyping import install_import_hook

    install_import_hook("linsysjax", "beartype.beartype")
    return True


def pytest_configure(config):
    """
    Pytest hook that runs before test collection.

    This ensures JAX is configured BEFORE any test modules are imported.
    """
    os.environ.setdefault("JAX_PLATFORMS", "cpu")

    # Enable jaxtyping runtime checking (must be before linsysjax imports)
    _setup_jaxtyping()

    # Import linsysjax to enable float64
    import linsysjax  # noqa: F401


# =============================================================================
# Shared Test Utilities
# =============================================================================


class CallCounter:
    """Records how often a model callback ran."""

    def __init__(self):
        self.calls = 0


def make_spec(
    matrix: Sequence[Sequence[float]],
    rhs: Sequence[float],
    equation_index: int = 0,
    nnz: Optional[int] = None,
    nominal: float = 1.0,
    bound: float = 1e6,
    counter: Optional[CallCounter] = None,
    **kwargs,
):
    """Build a spec whose callbacks assemble a constant system.

    Only nonzero coefficients are inserted, the way generated model code
    fills a system. Static data sets every nominal value to ``nominal`` and
    bounds to +-``bound``.
    """
    from linsysjax import LinearSystemSpec

    matrix = [list(row) for row in matrix]
    rhs = list(rhs)
    size = len(rhs)
    nonzeros = [
        (i, j, v) for i, row in enumerate(matrix) for j, v in enumerate(row) if v != 0.0
    ]

    def initialize_static_data(data, system):
        if counter is not None:
            counter.calls += 1
        system.nominal[:] = nominal
        system.min[:] = -bound
        system.max[:] = bound

    def set_a(data, system):
        for i, j, v in nonzeros:
            system.set_a_element(i, j, v)

    def set_b(data, system):
        system.b[:] = rhs

    return LinearSystemSpec(
        size=size,
        nnz=len(nonzeros) if nnz is None else nnz,
        equation_index=equation_index,
        initialize_static_data=initialize_static_data,
        set_a=set_a,
        set_b=set_b,
        **kwargs,
    )


def make_data(specs: List, ls_method="dense", time: float = 0.0, **option_kwargs):
    """Build SimulationData for the given specs and backend selection."""
    from linsysjax import EquationInfo, ModelInfo, SimulationData, SolverOptions

    equations = {
        spec.equation_index: EquationInfo(id=1000 + spec.equation_index) for spec in specs
    }
    return SimulationData(
        linear_system_specs=list(specs),
        options=SolverOptions(ls_method=ls_method, **option_kwargs),
        model_info=ModelInfo(equations=equations),
        time=time,
    )


@pytest.fixture
def diagonal_spec():
    """2x2 system [[2, 0], [0, 3]] x = [4, 9], solution [2, 3]."""
    return make_spec([[2.0, 0.0], [0.0, 3.0]], [4.0, 9.0], equation_index=7)


@pytest.fixture
def singular_spec():
    """Singular 2x2 system [[1, 1], [1, 1]] x = [2, 2]."""
    return make_spec([[1.0, 1.0], [1.0, 1.0]], [2.0, 2.0], equation_index=11)


@pytest.fixture
def tridiagonal_spec():
    """Diagonally dominant 5x5 tridiagonal system with solution 1..5."""
    import numpy as np

    n = 5
    A = np.zeros((n, n))
    for i in range(n):
        A[i, i] = 4.0
        if i > 0:
            A[i, i - 1] = -1.0
        if i < n - 1:
            A[i, i + 1] = -1.0
    x_true = np.arange(1.0, n + 1.0)
    return make_spec(A.tolist(), (A @ x_true).tolist(), equation_index=3)
