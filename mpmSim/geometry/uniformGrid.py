# -- Uniform Cartesian Grid -- #

'''
Axis-aligned rectangular domain subdivided into equal cells.

Maps between integer multi-indices (nodes and cells) and world
coordinates, and provides bidirectional node/cell iteration in
row-major order (last axis fastest). The grid shape is immutable:
a different resolution or domain requires constructing a new grid.

Invariants:
    dx[i]        = domainEdgeLength[i] / cellCount[i]
    nodeCount[i] = cellCount[i] + 1
    node index valid iff 0 <= idx[i] <= cellCount[i]
    cell index valid iff 0 <= idx[i] <  cellCount[i]

Node and cell coordinates are always derived from the domain and
dx, never stored.

Sean Bowman [10/19/2026]
'''

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Sequence

import numpy as np

from mpmSim.errors import InvalidIndexError, PreconditionError, ShapeMismatchError
from mpmSim.geometry.gridIterator import GridCellIterator, GridNodeIterator


######################################################################
# -- Domain Range -- #
######################################################################

@dataclass(frozen=True, eq=False)
class Range:
    '''
    Axis-aligned box [minCorner, maxCorner].

    Parameters:
    -----------
    minCorner : np.ndarray
        Lower corner, shape (dim,)
    maxCorner : np.ndarray
        Upper corner, shape (dim,)
    '''

    minCorner: np.ndarray
    maxCorner: np.ndarray

    def __post_init__(self) -> None:
        lower = np.array(self.minCorner, dtype=float)
        upper = np.array(self.maxCorner, dtype=float)
        if lower.ndim != 1 or lower.shape != upper.shape:
            raise ShapeMismatchError(
                f'Range corners must be 1D vectors of equal length, got {lower.shape} and {upper.shape}'
            )
        if np.any(upper < lower):
            raise PreconditionError(f'Range max corner {upper} is below min corner {lower}')
        lower.setflags(write=False)
        upper.setflags(write=False)
        object.__setattr__(self, 'minCorner', lower)
        object.__setattr__(self, 'maxCorner', upper)

    @property
    def dimensions(self) -> int:
        '''Number of axes.'''
        return self.minCorner.shape[0]

    @property
    def edgeLengths(self) -> np.ndarray:
        '''Extent along each axis.'''
        return self.maxCorner - self.minCorner

    @property
    def center(self) -> np.ndarray:
        '''Midpoint of the box.'''
        return 0.5 * (self.minCorner + self.maxCorner)

    def contains(self, point: np.ndarray) -> bool:
        '''True if the point lies inside the closed box.'''
        point = np.asarray(point, dtype=float)
        return bool(np.all(point >= self.minCorner) and np.all(point <= self.maxCorner))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Range):
            return NotImplemented
        return (
            np.array_equal(self.minCorner, other.minCorner)
            and np.array_equal(self.maxCorner, other.maxCorner)
        )


######################################################################
# -- Uniform Grid -- #
######################################################################

class UniformGrid:
    '''
    Uniform Cartesian grid over a rectangular domain.

    Parameters:
    -----------
    domain : Range
        Domain covered by the grid
    cellCount : int | Sequence[int]
        Cells per axis; a single int is applied to every axis

    Raises:
    -------
    PreconditionError : If any cell count is not positive
    ShapeMismatchError : If cellCount length differs from the domain dimension
    '''

    def __init__(self, domain: Range, cellCount: int | Sequence[int]) -> None:
        dim = domain.dimensions

        if np.isscalar(cellCount):
            counts = np.full(dim, int(cellCount), dtype=np.int64)
        else:
            counts = np.array(cellCount, dtype=np.int64)
            if counts.shape != (dim,):
                raise ShapeMismatchError(
                    f'Expected {dim} cell counts, got {counts.shape[0] if counts.ndim else 1}'
                )

        if np.any(counts < 0):
            raise PreconditionError(f'Cell counts must be non-negative, got {counts.tolist()}')
        if np.any(counts == 0):
            raise PreconditionError(f'Cell counts must be non-zero to define dx, got {counts.tolist()}')

        self._domain = domain
        self._cellNum = counts
        self._dx = domain.edgeLengths / counts
        self._cellNum.setflags(write=False)
        self._dx.setflags(write=False)

    ######################################################################
    # -- Accessors -- #
    ######################################################################

    @property
    def domain(self) -> Range:
        '''Grid domain.'''
        return self._domain

    @property
    def dimensions(self) -> int:
        '''Number of axes.'''
        return self._domain.dimensions

    def dX(self) -> np.ndarray:
        '''Cell edge length along each axis.'''
        return self._dx

    def minCorner(self) -> np.ndarray:
        '''Lower corner of the domain.'''
        return self._domain.minCorner

    def maxCorner(self) -> np.ndarray:
        '''Upper corner of the domain.'''
        return self._domain.maxCorner

    def cellNum(self) -> np.ndarray:
        '''Cell count per axis.'''
        return self._cellNum

    def nodeNum(self) -> np.ndarray:
        '''Node count per axis (cellNum + 1).'''
        return self._cellNum + 1

    def minEdgeLength(self) -> float:
        '''Smallest dx over all axes.'''
        return float(np.min(self._dx))

    def maxEdgeLength(self) -> float:
        '''Largest dx over all axes.'''
        return float(np.max(self._dx))

    def cellSize(self) -> float:
        '''Cell volume (area in 2D): product of dx over all axes.'''
        return float(np.prod(self._dx))

    @property
    def totalNodeCount(self) -> int:
        '''Number of nodes in the whole grid.'''
        return int(np.prod(self.nodeNum()))

    @property
    def totalCellCount(self) -> int:
        '''Number of cells in the whole grid.'''
        return int(np.prod(self._cellNum))

    ######################################################################
    # -- Coordinate Queries -- #
    ######################################################################

    def _packIndex(self, index: tuple) -> np.ndarray:
        '''Accept node(i, j), node((i, j)) or node(np.array([i, j])).'''
        if len(index) == 1 and not np.isscalar(index[0]):
            packed = np.asarray(index[0])
        else:
            packed = np.asarray(index)

        if packed.shape != (self.dimensions,):
            raise ShapeMismatchError(
                f'Expected a {self.dimensions}-component index, got {packed.tolist()}'
            )
        if not np.issubdtype(packed.dtype, np.integer):
            raise InvalidIndexError(f'Grid indices must be integers, got {packed.tolist()}')
        return packed.astype(np.int64)

    def isValidNodeIndex(self, *index) -> bool:
        '''True if 0 <= idx[i] <= cellCount[i] on every axis.'''
        packed = self._packIndex(index)
        return bool(np.all(packed >= 0) and np.all(packed <= self._cellNum))

    def isValidCellIndex(self, *index) -> bool:
        '''True if 0 <= idx[i] < cellCount[i] on every axis.'''
        packed = self._packIndex(index)
        return bool(np.all(packed >= 0) and np.all(packed < self._cellNum))

    def node(self, *index) -> np.ndarray:
        '''
        World coordinate of a node.

        Accepts a packed multi-index or one integer per axis.

        Raises:
        -------
        InvalidIndexError : If any component is outside [0, cellCount]
        '''
        packed = self._packIndex(index)
        if np.any(packed < 0) or np.any(packed > self._cellNum):
            raise InvalidIndexError(
                f'Node index {packed.tolist()} outside [0, {self._cellNum.tolist()}]'
            )
        return self._domain.minCorner + packed * self._dx

    def cellCenter(self, *index) -> np.ndarray:
        '''
        World coordinate of a cell center: node(index) + 0.5 * dx.

        Raises:
        -------
        InvalidIndexError : If any component is outside [0, cellCount)
        '''
        packed = self._packIndex(index)
        if np.any(packed < 0) or np.any(packed >= self._cellNum):
            raise InvalidIndexError(
                f'Cell index {packed.tolist()} outside [0, {self._cellNum.tolist()})'
            )
        return self.node(packed) + 0.5 * self._dx

    def nodePositions(self) -> np.ndarray:
        '''All node coordinates in row-major order, shape (totalNodeCount, dim).'''
        axes = [
            self._domain.minCorner[d] + np.arange(self._cellNum[d] + 1) * self._dx[d]
            for d in range(self.dimensions)
        ]
        mesh = np.meshgrid(*axes, indexing='ij')
        return np.stack([m.ravel() for m in mesh], axis=1)

    def gridCoordinates(self, points: np.ndarray) -> np.ndarray:
        '''
        Convert world positions to fractional index space.

        Parameters:
        -----------
        points : np.ndarray
            World positions, shape (N, dim) or (dim,)

        Returns:
        --------
        np.ndarray : (points - minCorner) / dx, same shape as input
        '''
        return (np.asarray(points, dtype=float) - self._domain.minCorner) / self._dx

    def cellIndexOf(self, point: np.ndarray) -> np.ndarray:
        '''
        Index of the cell containing a point.

        Points on the upper domain boundary belong to the last cell.

        Raises:
        -------
        InvalidIndexError : If the point lies outside the domain
        '''
        point = np.asarray(point, dtype=float)
        if not self._domain.contains(point):
            raise InvalidIndexError(f'Point {point.tolist()} lies outside the grid domain')
        index = np.floor(self.gridCoordinates(point)).astype(np.int64)
        return np.minimum(index, self._cellNum - 1)

    ######################################################################
    # -- Flat Indexing -- #
    ######################################################################

    def flatNodeIndex(self, *index) -> int:
        '''Row-major flat index of a node multi-index.'''
        packed = self._packIndex(index)
        if np.any(packed < 0) or np.any(packed > self._cellNum):
            raise InvalidIndexError(
                f'Node index {packed.tolist()} outside [0, {self._cellNum.tolist()}]'
            )
        return int(np.ravel_multi_index(tuple(packed), tuple(self.nodeNum())))

    def nodeMultiIndex(self, flatIndex: int) -> np.ndarray:
        '''Node multi-index of a row-major flat index.'''
        if flatIndex < 0 or flatIndex >= self.totalNodeCount:
            raise InvalidIndexError(
                f'Flat node index {flatIndex} outside [0, {self.totalNodeCount})'
            )
        return np.array(np.unravel_index(flatIndex, tuple(self.nodeNum())), dtype=np.int64)

    def boundaryNodeMask(self, thickness: int) -> np.ndarray:
        '''
        Per-axis boundary flags for every node.

        Returns:
        --------
        np.ndarray : int8 array of shape (totalNodeCount, dim): -1 where
            the node is within `thickness` layers of the lower wall of
            that axis, +1 near the upper wall, 0 elsewhere
        '''
        nodeNum = self.nodeNum()
        multi = np.stack(
            np.unravel_index(np.arange(self.totalNodeCount), tuple(nodeNum)), axis=1
        )
        mask = np.zeros_like(multi, dtype=np.int8)
        mask[multi < thickness] = -1
        mask[multi > self._cellNum - thickness] = 1
        return mask

    ######################################################################
    # -- Iteration -- #
    ######################################################################

    def nodeBegin(self) -> GridNodeIterator:
        '''Cursor at node (0, ..., 0).'''
        return GridNodeIterator(self, self.nodeNum())

    def nodeEnd(self) -> GridNodeIterator:
        '''Past-the-end node cursor; never dereferenced.'''
        return GridNodeIterator(self, self.nodeNum(), atEnd=True)

    def cellBegin(self) -> GridCellIterator:
        '''Cursor at cell (0, ..., 0).'''
        return GridCellIterator(self, self._cellNum)

    def cellEnd(self) -> GridCellIterator:
        '''Past-the-end cell cursor; never dereferenced.'''
        return GridCellIterator(self, self._cellNum, atEnd=True)

    def nodeIndices(self) -> Iterator[tuple[int, ...]]:
        '''Every node multi-index in row-major order.'''
        return iter(self.nodeBegin())

    def cellIndices(self) -> Iterator[tuple[int, ...]]:
        '''Every cell multi-index in row-major order.'''
        return iter(self.cellBegin())

    ######################################################################
    # -- Comparison -- #
    ######################################################################

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, UniformGrid):
            return NotImplemented
        return (
            self._domain == other._domain
            and np.array_equal(self._dx, other._dx)
            and np.array_equal(self._cellNum, other._cellNum)
        )

    def __repr__(self) -> str:
        return (
            f'UniformGrid(min={self.minCorner().tolist()}, max={self.maxCorner().tolist()}, '
            f'cells={self._cellNum.tolist()})'
        )
