# -- Grid Node / Cell Iterators -- #

'''
Bidirectional cursors over the node or cell multi-index space of
a UniformGrid.

Traversal is row-major (last axis fastest). An iterator is always
bound to a grid, and the past-the-end position is a dedicated
state rather than a sentinel index, so negative indices never carry
special meaning.

Sean Bowman [10/19/2026]
'''

from __future__ import annotations

from typing import TYPE_CHECKING, Iterator

import numpy as np

from mpmSim.errors import IteratorStateError

if TYPE_CHECKING:
    from mpmSim.geometry.uniformGrid import UniformGrid


class _GridIndexIterator:
    '''
    Cursor over the box [0, counts) of integer multi-indices.

    Parameters:
    -----------
    grid : UniformGrid
        Grid the cursor is bound to
    counts : np.ndarray
        Extent of the index space per axis
    atEnd : bool
        Start at the past-the-end position instead of the zero index
    '''

    def __init__(self, grid: UniformGrid, counts: np.ndarray, atEnd: bool = False) -> None:
        self._grid = grid
        self._counts = np.array(counts, dtype=np.int64)
        self._index = np.zeros_like(self._counts)
        self._atEnd = atEnd or bool(np.any(self._counts <= 0))

    @property
    def grid(self) -> UniformGrid:
        '''Grid the cursor is bound to.'''
        return self._grid

    @property
    def isEnd(self) -> bool:
        '''True at the past-the-end position.'''
        return self._atEnd

    @property
    def index(self) -> tuple[int, ...]:
        '''Multi-index under the cursor.'''
        if self._atEnd:
            raise IteratorStateError('Cannot dereference an end grid iterator')
        return tuple(int(i) for i in self._index)

    def advance(self):
        '''Step to the next multi-index in row-major order; returns self.'''
        if self._atEnd:
            raise IteratorStateError('Cannot advance a grid iterator past the end')

        for axis in range(len(self._counts) - 1, -1, -1):
            self._index[axis] += 1
            if self._index[axis] < self._counts[axis]:
                return self
            self._index[axis] = 0

        # Wrapped around on every axis
        self._atEnd = True
        return self

    def retreat(self):
        '''Step to the previous multi-index; from end this is the last index.'''
        if self._atEnd:
            if np.any(self._counts <= 0):
                raise IteratorStateError('Cannot retreat in an empty index space')
            self._index = self._counts - 1
            self._atEnd = False
            return self

        if not np.any(self._index):
            raise IteratorStateError('Cannot retreat a grid iterator before the beginning')

        for axis in range(len(self._counts) - 1, -1, -1):
            if self._index[axis] > 0:
                self._index[axis] -= 1
                return self
            self._index[axis] = self._counts[axis] - 1
        return self

    def copy(self):
        '''Independent cursor at the same position.'''
        clone = type(self).__new__(type(self))
        clone._grid = self._grid
        clone._counts = self._counts.copy()
        clone._index = self._index.copy()
        clone._atEnd = self._atEnd
        return clone

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        if other._grid is not self._grid:
            raise IteratorStateError('Cannot compare cursors of different grids')
        if self._atEnd or other._atEnd:
            return self._atEnd == other._atEnd
        return bool(np.array_equal(self._index, other._index))

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __iter__(self) -> Iterator[tuple[int, ...]]:
        cursor = self.copy()
        while not cursor.isEnd:
            yield cursor.index
            cursor.advance()

    def __repr__(self) -> str:
        position = 'end' if self._atEnd else self._index.tolist()
        return f'{type(self).__name__}({position})'


class GridNodeIterator(_GridIndexIterator):
    '''Cursor over node indices [0, cellCount] per axis.'''

    @property
    def position(self) -> np.ndarray:
        '''World coordinate of the current node.'''
        return self._grid.node(self.index)


class GridCellIterator(_GridIndexIterator):
    '''Cursor over cell indices [0, cellCount) per axis.'''

    @property
    def center(self) -> np.ndarray:
        '''World coordinate of the current cell center.'''
        return self._grid.cellCenter(self.index)
