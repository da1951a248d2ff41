# -- Sparse Matrix Engine -- #

'''
Mutable sparse 2D matrix used to assemble per-step linear systems
on grid degrees of freedom without densifying them.

Storage is a dictionary keyed by the major index (row for
ROW_MAJOR, column for COL_MAJOR) whose values are dictionaries
keyed by the minor index. Only nonzero entries are stored: writing
0.0 to a coordinate removes it. Entries are grouped by the major
dimension, so extracting a major line is cheap while extracting a
minor line scans every major line.

Assembled matrices are handed to scipy.sparse for solving via
toScipy(); fromScipy() goes the other way.

Sean Bowman [10/19/2026]
'''

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator

import numpy as np
import scipy.sparse as sps

from mpmSim import constants as const
from mpmSim.core.sparseVector import SparseVector
from mpmSim.errors import (
    InvalidIndexError,
    IteratorStateError,
    ShapeMismatchError,
    ZeroDivisorError,
)


######################################################################
# -- Entry Types -- #
######################################################################

class MajorOrder(Enum):
    '''Dimension that entries are grouped by.'''

    ROW_MAJOR = 'rowMajor'
    COL_MAJOR = 'colMajor'


@dataclass(frozen=True)
class Trituple:
    '''A single stored entry: (row, col, value).'''

    row: int
    col: int
    value: float


def _isScalar(value: object) -> bool:
    return isinstance(value, (int, float, np.number)) and not isinstance(value, bool)


######################################################################
# -- Sparse Matrix -- #
######################################################################

class SparseMatrix:
    '''
    Sparse matrix with fixed shape and a fixed major order.

    Parameters:
    -----------
    rows : int
        Number of rows (>= 0)
    cols : int
        Number of columns (>= 0)
    order : MajorOrder
        Grouping of stored entries (default ROW_MAJOR)
    '''

    # Keep NumPy from broadcasting ndarray * SparseMatrix elementwise
    __array_ufunc__ = None

    def __init__(self, rows: int, cols: int, order: MajorOrder = MajorOrder.ROW_MAJOR) -> None:
        if rows < 0 or cols < 0:
            raise ShapeMismatchError(f'Matrix shape must be non-negative, got ({rows}, {cols})')
        self._rows = int(rows)
        self._cols = int(cols)
        self._order = order
        self._lines: dict[int, dict[int, float]] = {}

    ######################################################################
    # -- Shape -- #
    ######################################################################

    @property
    def rows(self) -> int:
        '''Number of rows.'''
        return self._rows

    @property
    def cols(self) -> int:
        '''Number of columns.'''
        return self._cols

    @property
    def shape(self) -> tuple[int, int]:
        '''(rows, cols).'''
        return (self._rows, self._cols)

    @property
    def order(self) -> MajorOrder:
        '''Major order chosen at construction.'''
        return self._order

    def nonZeros(self) -> int:
        '''Number of stored entries.'''
        return sum(len(line) for line in self._lines.values())

    ######################################################################
    # -- Coordinate Mapping -- #
    ######################################################################

    def _checkCoordinate(self, row: int, col: int) -> None:
        if row < 0 or row >= self._rows or col < 0 or col >= self._cols:
            raise InvalidIndexError(
                f'Entry ({row}, {col}) out of range for shape ({self._rows}, {self._cols})'
            )

    def _toKey(self, row: int, col: int) -> tuple[int, int]:
        '''(row, col) -> (major, minor).'''
        if self._order is MajorOrder.ROW_MAJOR:
            return row, col
        return col, row

    def _fromKey(self, major: int, minor: int) -> tuple[int, int]:
        '''(major, minor) -> (row, col).'''
        if self._order is MajorOrder.ROW_MAJOR:
            return major, minor
        return minor, major

    @property
    def majorSize(self) -> int:
        '''Extent of the major dimension.'''
        return self._rows if self._order is MajorOrder.ROW_MAJOR else self._cols

    ######################################################################
    # -- Element Access -- #
    ######################################################################

    def setEntry(self, row: int, col: int, value: float) -> None:
        '''
        Insert or overwrite the entry at (row, col).

        Writing exactly 0.0 is equivalent to remove(row, col).
        '''
        self._checkCoordinate(row, col)
        if value == 0.0:
            self._discard(row, col)
            return
        major, minor = self._toKey(row, col)
        self._lines.setdefault(major, {})[minor] = float(value)

    def addToEntry(self, row: int, col: int, value: float) -> None:
        '''Accumulate `value` onto the entry at (row, col).'''
        self._checkCoordinate(row, col)
        major, minor = self._toKey(row, col)
        line = self._lines.get(major)
        current = line.get(minor, 0.0) if line is not None else 0.0
        self.setEntry(row, col, current + value)

    def remove(self, row: int, col: int) -> None:
        '''Delete the entry at (row, col); absent entries are ignored.'''
        self._checkCoordinate(row, col)
        self._discard(row, col)

    def _discard(self, row: int, col: int) -> None:
        major, minor = self._toKey(row, col)
        line = self._lines.get(major)
        if line is None:
            return
        line.pop(minor, None)
        if not line:
            del self._lines[major]

    def coeff(self, row: int, col: int) -> float:
        '''Value at (row, col); 0.0 for unset entries.'''
        self._checkCoordinate(row, col)
        major, minor = self._toKey(row, col)
        line = self._lines.get(major)
        if line is None:
            return 0.0
        return line.get(minor, 0.0)

    def __call__(self, row: int, col: int) -> float:
        return self.coeff(row, col)

    def __getitem__(self, key: tuple[int, int]) -> float:
        row, col = key
        return self.coeff(row, col)

    def __setitem__(self, key: tuple[int, int], value: float) -> None:
        row, col = key
        self.setEntry(row, col, value)

    def getRowElements(self, row: int) -> list[Trituple]:
        '''Nonzero entries of one row, ordered by column.'''
        if row < 0 or row >= self._rows:
            raise InvalidIndexError(f'Row {row} out of range [0, {self._rows})')

        if self._order is MajorOrder.ROW_MAJOR:
            line = self._lines.get(row, {})
            return [Trituple(row, col, line[col]) for col in sorted(line)]

        elements = [
            Trituple(row, col, line[row])
            for col, line in self._lines.items()
            if row in line
        ]
        return sorted(elements, key=lambda t: t.col)

    def getColElements(self, col: int) -> list[Trituple]:
        '''Nonzero entries of one column, ordered by row.'''
        if col < 0 or col >= self._cols:
            raise InvalidIndexError(f'Column {col} out of range [0, {self._cols})')

        if self._order is MajorOrder.COL_MAJOR:
            line = self._lines.get(col, {})
            return [Trituple(row, col, line[row]) for row in sorted(line)]

        elements = [
            Trituple(row, col, line[col])
            for row, line in self._lines.items()
            if col in line
        ]
        return sorted(elements, key=lambda t: t.row)

    def getMajorElements(self, index: int) -> list[Trituple]:
        '''Nonzero entries of one line of the major dimension.'''
        if self._order is MajorOrder.ROW_MAJOR:
            return self.getRowElements(index)
        return self.getColElements(index)

    def triplets(self) -> Iterator[Trituple]:
        '''All stored entries grouped by major index (ascending).'''
        for major in sorted(self._lines):
            line = self._lines[major]
            for minor in sorted(line):
                row, col = self._fromKey(major, minor)
                yield Trituple(row, col, line[minor])

    def copy(self) -> SparseMatrix:
        '''Independent copy with the same major order.'''
        result = SparseMatrix(self._rows, self._cols, self._order)
        result._lines = {major: dict(line) for major, line in self._lines.items()}
        return result

    def clear(self) -> None:
        '''Remove every entry; shape is unchanged.'''
        self._lines.clear()

    ######################################################################
    # -- Dense / SciPy Interop -- #
    ######################################################################

    def toDense(self) -> np.ndarray:
        '''Dense (rows, cols) float64 array.'''
        dense = np.zeros((self._rows, self._cols))
        for t in self.triplets():
            dense[t.row, t.col] = t.value
        return dense

    @classmethod
    def fromDense(cls, values: np.ndarray, order: MajorOrder = MajorOrder.ROW_MAJOR) -> SparseMatrix:
        '''Build from a dense 2D array, keeping only nonzeros.'''
        values = np.asarray(values, dtype=float)
        if values.ndim != 2:
            raise ShapeMismatchError(f'Expected a 2D array, got shape {values.shape}')
        result = cls(values.shape[0], values.shape[1], order)
        for row, col in zip(*np.nonzero(values)):
            result.setEntry(int(row), int(col), float(values[row, col]))
        return result

    def toScipy(self) -> sps.csr_matrix | sps.csc_matrix:
        '''
        Convert to a SciPy compressed matrix.

        ROW_MAJOR gives CSR, COL_MAJOR gives CSC.
        '''
        entries = list(self.triplets())
        rowIdx = np.fromiter((t.row for t in entries), dtype=np.int64, count=len(entries))
        colIdx = np.fromiter((t.col for t in entries), dtype=np.int64, count=len(entries))
        data = np.fromiter((t.value for t in entries), dtype=np.float64, count=len(entries))

        coo = sps.coo_matrix((data, (rowIdx, colIdx)), shape=self.shape)
        if self._order is MajorOrder.ROW_MAJOR:
            return coo.tocsr()
        return coo.tocsc()

    @classmethod
    def fromScipy(cls, matrix: sps.spmatrix, order: MajorOrder = MajorOrder.ROW_MAJOR) -> SparseMatrix:
        '''Build from any SciPy sparse matrix; duplicate entries are summed.'''
        coo = sps.coo_matrix(matrix)
        coo.sum_duplicates()
        result = cls(coo.shape[0], coo.shape[1], order)
        for row, col, value in zip(coo.row, coo.col, coo.data):
            result.setEntry(int(row), int(col), float(value))
        return result

    ######################################################################
    # -- Structural Operations -- #
    ######################################################################

    def transpose(self) -> SparseMatrix:
        '''New matrix with rows and columns swapped; same nonzero count.'''
        result = SparseMatrix(self._cols, self._rows, self._order)
        for t in self.triplets():
            result.setEntry(t.col, t.row, t.value)
        return result

    @property
    def T(self) -> SparseMatrix:
        '''Alias of transpose().'''
        return self.transpose()

    ######################################################################
    # -- Additive Arithmetic -- #
    ######################################################################

    def _checkSameShape(self, other: SparseMatrix) -> None:
        if self.shape != other.shape:
            raise ShapeMismatchError(f'Matrix shapes differ: {self.shape} vs {other.shape}')

    def __add__(self, other: SparseMatrix) -> SparseMatrix:
        if not isinstance(other, SparseMatrix):
            return NotImplemented
        result = self.copy()
        result += other
        return result

    def __iadd__(self, other: SparseMatrix) -> SparseMatrix:
        if not isinstance(other, SparseMatrix):
            return NotImplemented
        self._checkSameShape(other)
        for t in other.triplets():
            self.addToEntry(t.row, t.col, t.value)
        return self

    def __sub__(self, other: SparseMatrix) -> SparseMatrix:
        if not isinstance(other, SparseMatrix):
            return NotImplemented
        result = self.copy()
        result -= other
        return result

    def __isub__(self, other: SparseMatrix) -> SparseMatrix:
        if not isinstance(other, SparseMatrix):
            return NotImplemented
        self._checkSameShape(other)
        for t in other.triplets():
            self.addToEntry(t.row, t.col, -t.value)
        return self

    def __neg__(self) -> SparseMatrix:
        return self * -1.0

    ######################################################################
    # -- Scalar Arithmetic -- #
    ######################################################################

    def __imul__(self, other: float) -> SparseMatrix:
        if not _isScalar(other):
            return NotImplemented
        scalar = float(other)
        for major in list(self._lines):
            line = {minor: value * scalar for minor, value in self._lines[major].items()}
            line = {minor: value for minor, value in line.items() if value != 0.0}
            if line:
                self._lines[major] = line
            else:
                del self._lines[major]
        return self

    def __truediv__(self, scalar: float) -> SparseMatrix:
        if not _isScalar(scalar):
            return NotImplemented
        result = self.copy()
        result /= scalar
        return result

    def __itruediv__(self, scalar: float) -> SparseMatrix:
        if not _isScalar(scalar):
            return NotImplemented
        if abs(scalar) < const.divisionEpsilon:
            raise ZeroDivisorError(f'Cannot divide sparse matrix by {scalar}')
        divisor = float(scalar)
        for major in list(self._lines):
            line = {minor: value / divisor for minor, value in self._lines[major].items()}
            line = {minor: value for minor, value in line.items() if value != 0.0}
            if line:
                self._lines[major] = line
            else:
                del self._lines[major]
        return self

    ######################################################################
    # -- Products -- #
    ######################################################################

    def __mul__(self, other):
        '''
        Scalar scaling, matrix-matrix or matrix-vector product.

        The result type follows the operand: scalar and SparseMatrix
        operands give a SparseMatrix, a dense ndarray gives an ndarray,
        a SparseVector gives a SparseVector.
        '''
        if _isScalar(other):
            result = self.copy()
            result *= other
            return result
        if isinstance(other, SparseMatrix):
            return self._multiplyMatrix(other)
        if isinstance(other, SparseVector):
            return self._multiplySparseVector(other)
        if isinstance(other, np.ndarray):
            return self._multiplyDense(other)
        return NotImplemented

    def __matmul__(self, other):
        if _isScalar(other):
            return NotImplemented
        return self.__mul__(other)

    def __rmul__(self, other):
        if _isScalar(other):
            return self.__mul__(other)
        if isinstance(other, (SparseVector, np.ndarray)):
            return self.leftMultiply(other)
        return NotImplemented

    def __rmatmul__(self, other):
        if isinstance(other, (SparseVector, np.ndarray)):
            return self.leftMultiply(other)
        return NotImplemented

    def _rowLines(self) -> dict[int, dict[int, float]]:
        '''Entries grouped by row regardless of major order.'''
        if self._order is MajorOrder.ROW_MAJOR:
            return self._lines
        byRow: dict[int, dict[int, float]] = {}
        for col, line in self._lines.items():
            for row, value in line.items():
                byRow.setdefault(row, {})[col] = value
        return byRow

    def _multiplyMatrix(self, other: SparseMatrix) -> SparseMatrix:
        if self._cols != other._rows:
            raise ShapeMismatchError(
                f'Cannot multiply ({self._rows}, {self._cols}) by ({other._rows}, {other._cols})'
            )
        result = SparseMatrix(self._rows, other._cols, self._order)
        lhsRows = self._rowLines()
        rhsRows = other._rowLines()

        for row, lhsLine in lhsRows.items():
            accumulated: dict[int, float] = {}
            for k, lhsValue in lhsLine.items():
                rhsLine = rhsRows.get(k)
                if rhsLine is None:
                    continue
                for col, rhsValue in rhsLine.items():
                    accumulated[col] = accumulated.get(col, 0.0) + lhsValue * rhsValue
            for col, value in accumulated.items():
                if value != 0.0:
                    result.setEntry(row, col, value)
        return result

    def _multiplyDense(self, vector: np.ndarray) -> np.ndarray:
        vector = np.asarray(vector, dtype=float)
        if vector.shape != (self._cols,):
            raise ShapeMismatchError(
                f'Cannot multiply ({self._rows}, {self._cols}) by vector of shape {vector.shape}'
            )
        result = np.zeros(self._rows)
        for t in self.triplets():
            result[t.row] += t.value * vector[t.col]
        return result

    def _multiplySparseVector(self, vector: SparseVector) -> SparseVector:
        if vector.dims != self._cols:
            raise ShapeMismatchError(
                f'Cannot multiply ({self._rows}, {self._cols}) by vector of length {vector.dims}'
            )
        accumulated: dict[int, float] = {}
        values = dict(vector.entries())
        for t in self.triplets():
            x = values.get(t.col)
            if x is not None:
                accumulated[t.row] = accumulated.get(t.row, 0.0) + t.value * x

        result = SparseVector(self._rows)
        for row, value in accumulated.items():
            result.setEntry(row, value)
        return result

    def leftMultiply(self, vector: np.ndarray | SparseVector) -> np.ndarray | SparseVector:
        '''
        Vector-matrix product v^T A.

        Parameters:
        -----------
        vector : np.ndarray | SparseVector
            Vector of length rows

        Returns:
        --------
        np.ndarray | SparseVector : Vector of length cols, same kind as input
        '''
        if isinstance(vector, SparseVector):
            if vector.dims != self._rows:
                raise ShapeMismatchError(
                    f'Cannot left-multiply ({self._rows}, {self._cols}) by vector of length {vector.dims}'
                )
            values = dict(vector.entries())
            accumulated: dict[int, float] = {}
            for t in self.triplets():
                x = values.get(t.row)
                if x is not None:
                    accumulated[t.col] = accumulated.get(t.col, 0.0) + x * t.value
            result = SparseVector(self._cols)
            for col, value in accumulated.items():
                result.setEntry(col, value)
            return result

        dense = np.asarray(vector, dtype=float)
        if dense.shape != (self._rows,):
            raise ShapeMismatchError(
                f'Cannot left-multiply ({self._rows}, {self._cols}) by vector of shape {dense.shape}'
            )
        result = np.zeros(self._cols)
        for t in self.triplets():
            result[t.col] += dense[t.row] * t.value
        return result

    ######################################################################
    # -- Comparison -- #
    ######################################################################

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SparseMatrix):
            return NotImplemented
        if self.shape != other.shape:
            return False
        return dict(self._entryMap()) == dict(other._entryMap())

    def _entryMap(self) -> Iterator[tuple[tuple[int, int], float]]:
        for t in self.triplets():
            yield (t.row, t.col), t.value

    def isClose(self, other: SparseMatrix, tolerance: float = const.defaultCompareTolerance) -> bool:
        '''Entrywise comparison within an absolute tolerance.'''
        if self.shape != other.shape:
            return False
        lhs = dict(self._entryMap())
        rhs = dict(other._entryMap())
        return all(
            abs(lhs.get(key, 0.0) - rhs.get(key, 0.0)) <= tolerance
            for key in lhs.keys() | rhs.keys()
        )

    def __repr__(self) -> str:
        return (
            f'SparseMatrix(rows={self._rows}, cols={self._cols}, '
            f'order={self._order.name}, nonZeros={self.nonZeros()})'
        )


######################################################################
# -- Line Iterator -- #
######################################################################

class SparseMatrixIterator:
    '''
    Forward iterator over the nonzero entries of one major line.

    For a ROW_MAJOR matrix the line is a row, for COL_MAJOR it is a
    column. The iterator is live (truthy) while entries remain and
    becomes inert after the last one.

    The matrix must not be mutated while the iterator is live; the
    line is captured when the iterator is constructed.

    Usage:
        it = SparseMatrixIterator(matrix, 3)
        while it:
            print(it.row, it.col, it.value)
            it.advance()

    Parameters:
    -----------
    matrix : SparseMatrix
        Matrix to iterate
    line : int
        Row (ROW_MAJOR) or column (COL_MAJOR) index
    '''

    def __init__(self, matrix: SparseMatrix, line: int) -> None:
        if line < 0 or line >= matrix.majorSize:
            raise InvalidIndexError(f'Line {line} out of range [0, {matrix.majorSize})')
        self._matrix = matrix
        self._entries = matrix.getMajorElements(line)
        self._position = 0

    def __bool__(self) -> bool:
        return self._position < len(self._entries)

    def _current(self) -> Trituple:
        if not self:
            raise IteratorStateError('Sparse matrix iterator is exhausted')
        return self._entries[self._position]

    @property
    def row(self) -> int:
        '''Row of the current entry.'''
        return self._current().row

    @property
    def col(self) -> int:
        '''Column of the current entry.'''
        return self._current().col

    @property
    def value(self) -> float:
        '''Value of the current entry.'''
        return self._current().value

    def advance(self) -> SparseMatrixIterator:
        '''Move to the next nonzero; returns self.'''
        if not self:
            raise IteratorStateError('Cannot advance an exhausted sparse matrix iterator')
        self._position += 1
        return self

    def __iter__(self) -> Iterator[Trituple]:
        while self:
            entry = self._current()
            self._position += 1
            yield entry
