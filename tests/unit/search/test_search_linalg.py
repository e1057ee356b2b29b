"""Unit tests for vector/matrix primitives and vector math."""

import math

import numpy as np
import pytest

from moogle_search.search.linalg import (
    DimensionMismatchError,
    Matrix,
    Vector,
    cosine_similarities,
    cosine_similarity,
    dot,
    norm,
)


@pytest.mark.unit
class TestVector:
    def test_indexing_and_length(self):
        vector = Vector([1.0, 2.0, 3.0])
        assert len(vector) == 3
        assert vector[1] == 2.0
        assert list(vector) == [1.0, 2.0, 3.0]

    def test_out_of_range_index_raises(self):
        vector = Vector([1.0, 2.0])
        with pytest.raises(IndexError):
            vector[2]

    def test_negative_index_is_rejected(self):
        with pytest.raises(IndexError):
            Vector([1.0, 2.0])[-1]

    def test_zeros(self):
        assert Vector.zeros(3) == Vector([0.0, 0.0, 0.0])

    def test_values_are_read_only(self):
        vector = Vector([1.0])
        with pytest.raises(ValueError):
            vector.values[0] = 5.0

    def test_source_array_is_copied(self):
        source = np.array([1.0, 2.0])
        vector = Vector(source)
        source[0] = 9.0
        assert vector[0] == 1.0

    def test_rejects_two_dimensional_data(self):
        with pytest.raises(DimensionMismatchError):
            Vector([[1.0]])


@pytest.mark.unit
class TestMatrix:
    def test_shape_and_cells(self):
        matrix = Matrix([[1, 2, 3], [4, 5, 6]])
        assert matrix.shape == (2, 3)
        assert matrix.height == 2
        assert matrix.width == 3
        assert matrix[1, 2] == 6.0

    def test_row_and_column_extraction(self):
        matrix = Matrix([[1, 2], [3, 4]])
        assert matrix.row(1) == Vector([3, 4])
        assert matrix.column(0) == Vector([1, 3])
        assert matrix.rows() == [Vector([1, 2]), Vector([3, 4])]
        assert matrix.columns() == [Vector([1, 3]), Vector([2, 4])]

    def test_bounds_are_checked(self):
        matrix = Matrix.zeros(2, 2)
        with pytest.raises(IndexError):
            matrix[2, 0]
        with pytest.raises(IndexError):
            matrix[0, -1]
        with pytest.raises(IndexError):
            matrix.row(5)
        with pytest.raises(IndexError):
            matrix.column(2)

    def test_rejects_one_dimensional_data(self):
        with pytest.raises(DimensionMismatchError):
            Matrix([1, 2, 3])


@pytest.mark.unit
class TestVectorMath:
    def test_dot_and_norm(self):
        assert dot([1, 2, 3], [4, 5, 6]) == 32.0
        assert norm(Vector([3, 4])) == 5.0

    def test_dot_dimension_mismatch(self):
        with pytest.raises(DimensionMismatchError):
            dot([1, 2], [1, 2, 3])

    def test_cosine_of_parallel_vectors(self):
        assert cosine_similarity([1, 1], [2, 2]) == pytest.approx(1.0)

    def test_cosine_is_symmetric(self):
        lhs, rhs = [0.3, 0.0, 1.2], [0.5, 0.7, 0.1]
        assert cosine_similarity(lhs, rhs) == pytest.approx(cosine_similarity(rhs, lhs))

    def test_cosine_of_zero_vector_is_zero(self):
        assert cosine_similarity([0, 0], [1, 2]) == 0.0

    def test_cosine_below_epsilon_is_zero(self):
        assert cosine_similarity([1, 0], [0.001, 1], epsilon=0.01) == 0.0

    def test_cosine_dimension_mismatch(self):
        with pytest.raises(DimensionMismatchError):
            cosine_similarity([1], [1, 2])

    def test_row_wise_cosine_matches_scalar_version(self):
        rows = [[1.0, 0.0, 2.0], [0.0, 0.0, 0.0], [0.2, 3.0, 0.0]]
        query = [0.5, 0.5, 1.0]
        scores = cosine_similarities(Matrix(rows), Vector(query), epsilon=0.01)
        expected = [cosine_similarity(row, query, epsilon=0.01) for row in rows]
        assert scores.tolist() == pytest.approx(expected)
        assert not any(math.isnan(score) for score in scores)

    def test_row_wise_cosine_with_precomputed_norms(self):
        rows = np.array([[3.0, 4.0], [1.0, 0.0]])
        norms = np.linalg.norm(rows, axis=1)
        scores = cosine_similarities(rows, [1.0, 0.0], row_norms=norms)
        assert scores.tolist() == pytest.approx([0.6, 1.0])

    def test_row_wise_cosine_dimension_mismatch(self):
        with pytest.raises(DimensionMismatchError):
            cosine_similarities(Matrix.zeros(2, 3), Vector([1.0, 2.0]))
