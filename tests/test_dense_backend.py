"""Tests for the dense direct-solve backend."""

import numpy as np
import pytest

from linsysjax import SolverOptions
from linsysjax.backends.dense import (
    allocate_dense_data,
    free_dense_data,
    reset_dense_data,
    set_element_dense,
    solve_dense,
)


def _filled(matrix):
    matrix = np.asarray(matrix, dtype=np.float64)
    data = allocate_dense_data(matrix.shape[0])
    reset_dense_data(data)
    for (i, j), v in np.ndenumerate(matrix):
        set_element_dense(data, i, j, v)
    return data


class TestDenseStorage:
    """Column-major storage and the element setter."""

    def test_allocate_column_major(self):
        data = allocate_dense_data(3)
        assert data.A.shape == (3, 3)
        assert data.A.flags.f_contiguous
        assert np.shares_memory(data.A, data.flat)

    def test_set_element_column_major_index(self):
        """A[row, col] lives at flat[row + col*size]."""
        data = allocate_dense_data(2)
        reset_dense_data(data)
        set_element_dense(data, 1, 0, 5.0)
        set_element_dense(data, 0, 1, 7.0)
        assert data.flat[1] == 5.0
        assert data.flat[2] == 7.0
        assert data.A[1, 0] == 5.0
        assert data.A[0, 1] == 7.0

    @pytest.mark.parametrize("row,col", [(2, 0), (0, 2), (-1, 0)])
    def test_set_element_out_of_range(self, row, col):
        data = allocate_dense_data(2)
        with pytest.raises(IndexError):
            set_element_dense(data, row, col, 1.0)

    def test_reset_zeroes_matrix(self):
        data = _filled([[1.0, 2.0], [3.0, 4.0]])
        reset_dense_data(data)
        assert not data.A.any()

    def test_free_releases_buffers(self):
        data = _filled([[2.0, 0.0], [0.0, 3.0]])
        solve_dense(data, np.array([4.0, 9.0]), np.zeros(2))
        free_dense_data(data)
        assert data.A is None
        assert data.flat is None
        assert data.lu is None
        assert data.piv is None


class TestDenseSolve:
    """LU solve and failure reporting."""

    def test_diagonal_system(self):
        data = _filled([[2.0, 0.0], [0.0, 3.0]])
        x = np.zeros(2)
        assert solve_dense(data, np.array([4.0, 9.0]), x)
        np.testing.assert_allclose(x, [2.0, 3.0])

    def test_general_system(self):
        A = np.array([[4.0, 1.0, 0.0], [1.0, 3.0, -1.0], [0.0, 2.0, 5.0]])
        x_true = np.array([1.0, -2.0, 0.5])
        data = _filled(A)
        x = np.zeros(3)
        assert solve_dense(data, A @ x_true, x)
        np.testing.assert_allclose(x, x_true, rtol=1e-12)

    def test_needs_pivoting(self):
        """Zero leading entry is handled by row pivoting."""
        data = _filled([[0.0, 1.0], [1.0, 0.0]])
        x = np.zeros(2)
        assert solve_dense(data, np.array([3.0, 4.0]), x)
        np.testing.assert_allclose(x, [4.0, 3.0])

    def test_singular_reports_failure(self):
        """Singular systems return False instead of raising."""
        data = _filled([[1.0, 1.0], [1.0, 1.0]])
        x = np.array([-1.0, -1.0])
        assert not solve_dense(data, np.array([2.0, 2.0]), x)
        # Solution buffer untouched on failure
        np.testing.assert_array_equal(x, [-1.0, -1.0])

    def test_zero_matrix_reports_failure(self):
        data = _filled([[0.0, 0.0], [0.0, 0.0]])
        assert not solve_dense(data, np.array([1.0, 1.0]), np.zeros(2))

    def test_non_finite_matrix_reports_failure(self):
        data = _filled([[np.nan, 0.0], [0.0, 1.0]])
        assert not solve_dense(data, np.array([1.0, 1.0]), np.zeros(2))

    def test_pivot_tolerance(self):
        """Nearly singular matrices solve by default and fail with a threshold."""
        A = [[1.0, 1.0], [1.0, 1.0 + 1e-15]]
        b = np.array([2.0, 2.0])

        assert solve_dense(_filled(A), b, np.zeros(2))
        assert solve_dense(_filled(A), b, np.zeros(2), SolverOptions())
        assert not solve_dense(_filled(A), b, np.zeros(2), SolverOptions(pivot_tol=1e-14))

    @pytest.mark.parametrize(
        "diagonal",
        [[1e-10, 1e5], [1e5, 1e-10], [1e-12, 1.0, 1e8]],
    )
    def test_badly_scaled_rows(self, diagonal):
        """Rows in very different units are regular and must solve."""
        A = np.diag(diagonal)
        x = np.zeros(len(diagonal))
        assert solve_dense(_filled(A), A @ np.ones(len(diagonal)), x, SolverOptions())
        np.testing.assert_allclose(x, np.ones(len(diagonal)), rtol=1e-12)

    def test_factorization_kept(self):
        data = _filled([[2.0, 0.0], [0.0, 3.0]])
        solve_dense(data, np.array([4.0, 9.0]), np.zeros(2))
        assert data.lu is not None
        assert data.piv is not None
