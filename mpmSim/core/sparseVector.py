# -- Sparse Vector -- #

'''
Fixed-length vector that stores only its nonzero entries.

Used as the sparse counterpart of a dense NumPy vector in
matrix-vector products of the SparseMatrix engine.

Sean Bowman [10/19/2026]
'''

from __future__ import annotations

import math
from typing import Iterator

import numpy as np

from mpmSim import constants as const
from mpmSim.errors import InvalidIndexError, ShapeMismatchError, ZeroDivisorError


class SparseVector:
    '''
    Sparse vector of fixed dimension.

    Setting an entry to exactly 0.0 removes it, so every stored
    entry is a nonzero.

    Parameters:
    -----------
    dims : int
        Vector length (>= 0)
    '''

    def __init__(self, dims: int) -> None:
        if dims < 0:
            raise ShapeMismatchError(f'Vector dimension must be non-negative, got {dims}')
        self._dims = int(dims)
        self._entries: dict[int, float] = {}

    @property
    def dims(self) -> int:
        '''Vector length.'''
        return self._dims

    def __len__(self) -> int:
        return self._dims

    def nonZeros(self) -> int:
        '''Number of stored (nonzero) entries.'''
        return len(self._entries)

    def _checkIndex(self, index: int) -> None:
        if index < 0 or index >= self._dims:
            raise InvalidIndexError(f'Vector index {index} out of range [0, {self._dims})')

    ######################################################################
    # -- Element Access -- #
    ######################################################################

    def setEntry(self, index: int, value: float) -> None:
        '''Insert or overwrite an entry; 0.0 removes it.'''
        self._checkIndex(index)
        if value == 0.0:
            self._entries.pop(index, None)
        else:
            self._entries[index] = float(value)

    def remove(self, index: int) -> None:
        '''Delete an entry if present.'''
        self._checkIndex(index)
        self._entries.pop(index, None)

    def __getitem__(self, index: int) -> float:
        self._checkIndex(index)
        return self._entries.get(index, 0.0)

    def __setitem__(self, index: int, value: float) -> None:
        self.setEntry(index, value)

    def entries(self) -> list[tuple[int, float]]:
        '''Stored entries as (index, value) pairs in index order.'''
        return sorted(self._entries.items())

    def __iter__(self) -> Iterator[tuple[int, float]]:
        return iter(self.entries())

    def copy(self) -> SparseVector:
        '''Independent copy.'''
        result = SparseVector(self._dims)
        result._entries = dict(self._entries)
        return result

    ######################################################################
    # -- Dense Interop -- #
    ######################################################################

    def toDense(self) -> np.ndarray:
        '''Dense float64 array of length dims.'''
        dense = np.zeros(self._dims)
        for index, value in self._entries.items():
            dense[index] = value
        return dense

    @classmethod
    def fromDense(cls, values: np.ndarray) -> SparseVector:
        '''Build from a dense 1D array, keeping only nonzeros.'''
        values = np.asarray(values, dtype=float)
        if values.ndim != 1:
            raise ShapeMismatchError(f'Expected a 1D array, got shape {values.shape}')
        result = cls(values.shape[0])
        for index in np.flatnonzero(values):
            result._entries[int(index)] = float(values[index])
        return result

    ######################################################################
    # -- Arithmetic -- #
    ######################################################################

    def _checkSameDims(self, other: SparseVector) -> None:
        if other._dims != self._dims:
            raise ShapeMismatchError(
                f'Vector dimensions differ: {self._dims} vs {other._dims}'
            )

    def __add__(self, other: SparseVector) -> SparseVector:
        if not isinstance(other, SparseVector):
            return NotImplemented
        result = self.copy()
        result += other
        return result

    def __iadd__(self, other: SparseVector) -> SparseVector:
        if not isinstance(other, SparseVector):
            return NotImplemented
        self._checkSameDims(other)
        for index, value in other._entries.items():
            self.setEntry(index, self._entries.get(index, 0.0) + value)
        return self

    def __sub__(self, other: SparseVector) -> SparseVector:
        if not isinstance(other, SparseVector):
            return NotImplemented
        result = self.copy()
        result -= other
        return result

    def __isub__(self, other: SparseVector) -> SparseVector:
        if not isinstance(other, SparseVector):
            return NotImplemented
        self._checkSameDims(other)
        for index, value in other._entries.items():
            self.setEntry(index, self._entries.get(index, 0.0) - value)
        return self

    def __neg__(self) -> SparseVector:
        return self * -1.0

    def __mul__(self, scalar: float) -> SparseVector:
        if not isinstance(scalar, (int, float, np.number)):
            return NotImplemented
        result = self.copy()
        result *= scalar
        return result

    __rmul__ = __mul__

    def __imul__(self, scalar: float) -> SparseVector:
        if not isinstance(scalar, (int, float, np.number)):
            return NotImplemented
        scaled = {i: v * float(scalar) for i, v in self._entries.items()}
        self._entries = {i: v for i, v in scaled.items() if v != 0.0}
        return self

    def __truediv__(self, scalar: float) -> SparseVector:
        if not isinstance(scalar, (int, float, np.number)):
            return NotImplemented
        result = self.copy()
        result /= scalar
        return result

    def __itruediv__(self, scalar: float) -> SparseVector:
        if not isinstance(scalar, (int, float, np.number)):
            return NotImplemented
        if abs(scalar) < const.divisionEpsilon:
            raise ZeroDivisorError(f'Cannot divide sparse vector by {scalar}')
        return self.__imul__(1.0 / float(scalar))

    def dot(self, other: SparseVector | np.ndarray) -> float:
        '''Inner product with a sparse or dense vector of equal length.'''
        if isinstance(other, SparseVector):
            self._checkSameDims(other)
            small, large = sorted((self._entries, other._entries), key=len)
            return sum(value * large.get(index, 0.0) for index, value in small.items())

        dense = np.asarray(other, dtype=float)
        if dense.shape != (self._dims,):
            raise ShapeMismatchError(
                f'Vector dimensions differ: {self._dims} vs {dense.shape}'
            )
        return sum(value * dense[index] for index, value in self._entries.items())

    def norm(self) -> float:
        '''Euclidean norm.'''
        return math.sqrt(sum(value * value for value in self._entries.values()))

    ######################################################################
    # -- Comparison -- #
    ######################################################################

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SparseVector):
            return NotImplemented
        return self._dims == other._dims and self._entries == other._entries

    def isClose(self, other: SparseVector, tolerance: float = const.defaultCompareTolerance) -> bool:
        '''Entrywise comparison within an absolute tolerance.'''
        if self._dims != other._dims:
            return False
        indices = set(self._entries) | set(other._entries)
        return all(
            abs(self._entries.get(i, 0.0) - other._entries.get(i, 0.0)) <= tolerance
            for i in indices
        )

    def __repr__(self) -> str:
        return f'SparseVector(dims={self._dims}, nonZeros={len(self._entries)})'
