"""Dense vector/matrix primitives and the vector math used for ranking.

``Vector`` and ``Matrix`` wrap read-only NumPy arrays and add bounds-checked
indexing. The math helpers accept either the wrappers or plain array-likes.
"""

from __future__ import annotations

from collections.abc import Iterator
import math
from typing import TYPE_CHECKING, Any

import numpy as np


if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray


class DimensionMismatchError(ValueError):
    """Raised when two operands do not have compatible dimensions."""


def _frozen(values: Any, dtype: Any) -> NDArray[Any]:
    array = np.array(values, dtype=dtype, copy=True)
    array.setflags(write=False)
    return array


class Vector:
    """Immutable dense vector with bounds-checked indexing."""

    __slots__ = ("_values",)

    def __init__(self, values: ArrayLike, dtype: Any = np.float64) -> None:
        array = _frozen(values, dtype)
        if array.ndim != 1:
            raise DimensionMismatchError(f"Vector expects 1-D data, got shape {array.shape}")
        self._values = array

    @classmethod
    def zeros(cls, length: int, dtype: Any = np.float64) -> Vector:
        return cls(np.zeros(length, dtype=dtype), dtype=dtype)

    @property
    def values(self) -> NDArray[Any]:
        return self._values

    def __len__(self) -> int:
        return int(self._values.shape[0])

    def __getitem__(self, index: int) -> float:
        if not 0 <= index < len(self):
            raise IndexError(f"Index {index} out of range for vector of length {len(self)}")
        return self._values[index].item()

    def __iter__(self) -> Iterator[float]:
        return iter(self._values.tolist())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vector):
            return NotImplemented
        return self._values.shape == other._values.shape and bool(np.array_equal(self._values, other._values))

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Vector({self._values.tolist()!r})"


class Matrix:
    """Immutable row-major matrix (rows x columns)."""

    __slots__ = ("_values",)

    def __init__(self, values: ArrayLike, dtype: Any = np.float64) -> None:
        array = _frozen(values, dtype)
        if array.ndim != 2:
            raise DimensionMismatchError(f"Matrix expects 2-D data, got shape {array.shape}")
        self._values = array

    @classmethod
    def zeros(cls, height: int, width: int, dtype: Any = np.float64) -> Matrix:
        return cls(np.zeros((height, width), dtype=dtype), dtype=dtype)

    @property
    def values(self) -> NDArray[Any]:
        return self._values

    @property
    def shape(self) -> tuple[int, int]:
        height, width = self._values.shape
        return int(height), int(width)

    @property
    def height(self) -> int:
        return self.shape[0]

    @property
    def width(self) -> int:
        return self.shape[1]

    def _check_row(self, row: int) -> None:
        if not 0 <= row < self.height:
            raise IndexError(f"Row {row} out of range for matrix with {self.height} rows")

    def _check_column(self, column: int) -> None:
        if not 0 <= column < self.width:
            raise IndexError(f"Column {column} out of range for matrix with {self.width} columns")

    def __getitem__(self, key: tuple[int, int]) -> float:
        row, column = key
        self._check_row(row)
        self._check_column(column)
        return self._values[row, column].item()

    def row(self, row: int) -> Vector:
        self._check_row(row)
        return Vector(self._values[row], dtype=self._values.dtype)

    def column(self, column: int) -> Vector:
        self._check_column(column)
        return Vector(self._values[:, column], dtype=self._values.dtype)

    def rows(self) -> list[Vector]:
        return [self.row(index) for index in range(self.height)]

    def columns(self) -> list[Vector]:
        return [self.column(index) for index in range(self.width)]

    def __repr__(self) -> str:
        return f"Matrix(shape={self.shape}, dtype={self._values.dtype})"


def as_array(value: Vector | ArrayLike) -> NDArray[np.float64]:
    if isinstance(value, Vector):
        return value.values.astype(np.float64, copy=False)
    return np.asarray(value, dtype=np.float64)


def dot(lhs: Vector | ArrayLike, rhs: Vector | ArrayLike) -> float:
    """Dot product of two equally sized vectors."""
    left = as_array(lhs)
    right = as_array(rhs)
    if left.shape != right.shape:
        raise DimensionMismatchError(f"Vector length mismatch: {left.shape[0]} != {right.shape[0]}")
    return float(np.dot(left, right))


def norm(vector: Vector | ArrayLike) -> float:
    return math.sqrt(dot(vector, vector))


def cosine_similarity(lhs: Vector | ArrayLike, rhs: Vector | ArrayLike, epsilon: float = 0.0) -> float:
    """Cosine similarity that returns 0 for near-orthogonal or empty vectors.

    Returns 0 when the dot product or either norm is ``<= epsilon``.
    """
    product = dot(lhs, rhs)
    if product <= epsilon:
        return 0.0
    left_norm = norm(lhs)
    right_norm = norm(rhs)
    if left_norm <= epsilon or right_norm <= epsilon:
        return 0.0
    return product / (left_norm * right_norm)


def cosine_similarities(
    matrix: Matrix | ArrayLike,
    vector: Vector | ArrayLike,
    epsilon: float = 0.0,
    *,
    row_norms: NDArray[np.float64] | None = None,
) -> NDArray[np.float64]:
    """Row-wise ``cosine_similarity`` of every matrix row against ``vector``.

    Every row is scored independently with the same zero guard, so the
    result matches calling ``cosine_similarity`` row by row.
    """
    rows = matrix.values if isinstance(matrix, Matrix) else np.asarray(matrix)
    rows = rows.astype(np.float64, copy=False)
    query = as_array(vector)
    if rows.ndim != 2 or rows.shape[1] != query.shape[0]:
        raise DimensionMismatchError(f"Cannot compare rows of shape {rows.shape} with vector of shape {query.shape}")

    products = rows @ query
    if row_norms is None:
        row_norms = np.sqrt(np.einsum("ij,ij->i", rows, rows))
    query_norm = norm(query)

    scores = np.zeros(rows.shape[0], dtype=np.float64)
    if query_norm <= epsilon:
        return scores
    valid = (products > epsilon) & (row_norms > epsilon)
    scores[valid] = products[valid] / (row_norms[valid] * query_norm)
    return scores
