# -- Uniform Grid Test -- #

'''
Tests for UniformGrid coordinate queries, flat indexing and the
node/cell cursors.

Sean Bowman [10/19/2026]
'''

import numpy as np
import pytest

from mpmSim.errors import InvalidIndexError, IteratorStateError, PreconditionError, ShapeMismatchError
from mpmSim.geometry import Range, UniformGrid


@pytest.fixture
def unitGrid():
    '''10 x 10 cells over [0, 1]^2.'''
    return UniformGrid(Range(np.zeros(2), np.ones(2)), 10)


def testCoordinateQueries(unitGrid):
    '''Spacing, node positions and cell centers on the unit square.'''
    assert np.allclose(unitGrid.dX(), [0.1, 0.1])
    assert np.allclose(unitGrid.node(5, 5), [0.5, 0.5])
    assert np.allclose(unitGrid.node((10, 0)), [1.0, 0.0])
    assert np.allclose(unitGrid.cellCenter(0, 0), [0.05, 0.05])
    assert np.array_equal(unitGrid.nodeNum(), unitGrid.cellNum() + 1)
    assert unitGrid.cellSize() == pytest.approx(0.01)
    assert unitGrid.minEdgeLength() == pytest.approx(0.1)
    assert unitGrid.totalNodeCount == 121
    assert unitGrid.totalCellCount == 100


def testAnisotropicGrid():
    grid = UniformGrid(Range([0.0, -1.0, 0.0], [2.0, 1.0, 1.0]), [4, 2, 5])
    assert np.allclose(grid.dX(), [0.5, 1.0, 0.2])
    assert grid.minEdgeLength() == pytest.approx(0.2)
    assert grid.maxEdgeLength() == pytest.approx(1.0)
    assert np.allclose(grid.maxCorner(), [2.0, 1.0, 1.0])


def testInvalidIndices(unitGrid):
    '''Out-of-range node and cell indices are rejected.'''
    assert unitGrid.isValidNodeIndex(10, 10)
    assert not unitGrid.isValidCellIndex(10, 10)

    with pytest.raises(InvalidIndexError):
        unitGrid.node(11, 0)
    with pytest.raises(InvalidIndexError):
        unitGrid.cellCenter(10, 0)
    with pytest.raises(InvalidIndexError):
        unitGrid.node(-1, 0)
    with pytest.raises(ShapeMismatchError):
        unitGrid.node(1, 2, 3)


def testConstructionErrors():
    with pytest.raises(PreconditionError):
        UniformGrid(Range(np.zeros(2), np.ones(2)), 0)
    with pytest.raises(ShapeMismatchError):
        UniformGrid(Range(np.zeros(2), np.ones(2)), [4, 4, 4])
    with pytest.raises(PreconditionError):
        Range([1.0, 0.0], [0.0, 1.0])


def testFlatIndexing(unitGrid):
    flat = unitGrid.flatNodeIndex(3, 7)
    assert flat == 3 * 11 + 7
    assert np.array_equal(unitGrid.nodeMultiIndex(flat), [3, 7])
    assert np.allclose(unitGrid.nodePositions()[flat], unitGrid.node(3, 7))

    with pytest.raises(InvalidIndexError):
        unitGrid.nodeMultiIndex(121)


def testCellIndexOf(unitGrid):
    '''Points on the upper boundary belong to the last cell.'''
    assert np.array_equal(unitGrid.cellIndexOf([0.25, 0.95]), [2, 9])
    assert np.array_equal(unitGrid.cellIndexOf([1.0, 1.0]), [9, 9])
    with pytest.raises(InvalidIndexError):
        unitGrid.cellIndexOf([1.5, 0.5])


def testBoundaryNodeMask(unitGrid):
    mask = unitGrid.boundaryNodeMask(2)
    assert mask.shape == (121, 2)
    assert tuple(mask[unitGrid.flatNodeIndex(0, 5)]) == (-1, 0)
    assert tuple(mask[unitGrid.flatNodeIndex(10, 10)]) == (1, 1)
    assert tuple(mask[unitGrid.flatNodeIndex(5, 5)]) == (0, 0)


def testNodeCursorVisitsEveryNodeOnce():
    '''Advancing from nodeBegin reaches nodeEnd after totalNodeCount steps.'''
    grid = UniformGrid(Range(np.zeros(2), np.ones(2)), [2, 3])
    cursor = grid.nodeBegin()
    visited = []
    while cursor != grid.nodeEnd():
        visited.append(cursor.index)
        cursor.advance()

    assert len(visited) == grid.totalNodeCount
    assert len(set(visited)) == grid.totalNodeCount
    assert visited[0] == (0, 0)
    assert visited[1] == (0, 1)
    assert visited[-1] == (2, 3)


def testCellCursor():
    grid = UniformGrid(Range(np.zeros(3), np.ones(3)), 2)
    cells = list(grid.cellIndices())
    assert len(cells) == grid.totalCellCount == 8

    cursor = grid.cellBegin()
    assert np.allclose(cursor.center, [0.25, 0.25, 0.25])
    cursor.advance()
    assert np.allclose(cursor.center, [0.25, 0.25, 0.75])


def testCursorRetreat():
    grid = UniformGrid(Range(np.zeros(2), np.ones(2)), 2)
    cursor = grid.cellEnd()
    cursor.retreat()
    assert cursor.index == (1, 1)
    cursor.retreat()
    assert cursor.index == (1, 0)
    cursor.retreat()
    assert cursor.index == (0, 1)

    with pytest.raises(IteratorStateError):
        grid.cellBegin().retreat()


def testCursorEndErrors(unitGrid):
    end = unitGrid.nodeEnd()
    with pytest.raises(IteratorStateError):
        end.index
    with pytest.raises(IteratorStateError):
        end.advance()

    otherGrid = UniformGrid(Range(np.zeros(2), np.ones(2)), 10)
    with pytest.raises(IteratorStateError):
        unitGrid.nodeBegin() == otherGrid.nodeBegin()
    with pytest.raises(IteratorStateError):
        unitGrid.cellEnd() != otherGrid.cellEnd()
    assert np.allclose(unitGrid.nodeBegin().position, [0.0, 0.0])
