# -- Sparse Matrix Test -- #

'''
Tests for SparseMatrix storage, arithmetic, SciPy interop and the
major-line iterator.

Sean Bowman [10/19/2026]
'''

import numpy as np
import pytest
import scipy.sparse as sps

from mpmSim.core import MajorOrder, SparseMatrix, SparseMatrixIterator, SparseVector
from mpmSim.errors import InvalidIndexError, IteratorStateError, ShapeMismatchError, ZeroDivisorError


def _randomSparse(rows, cols, density, seed, order=MajorOrder.ROW_MAJOR):
    rng = np.random.default_rng(seed)
    dense = rng.uniform(-1.0, 1.0, size=(rows, cols))
    dense[rng.uniform(size=(rows, cols)) > density] = 0.0
    return SparseMatrix.fromDense(dense, order), dense


@pytest.fixture(params=[MajorOrder.ROW_MAJOR, MajorOrder.COL_MAJOR])
def order(request):
    return request.param


def testSetAndRemoveMatchDense(order):
    '''Setting 0.0 removes an entry and coeff() reads unset entries as 0.'''
    matrix = SparseMatrix(3, 4, order)
    dense = np.zeros((3, 4))
    for row, col, value in [(0, 0, 1.0), (2, 3, -2.5), (1, 2, 4.0), (2, 0, 7.0)]:
        matrix.setEntry(row, col, value)
        dense[row, col] = value

    matrix[1, 2] = 0.0
    dense[1, 2] = 0.0
    matrix.remove(2, 0)
    dense[2, 0] = 0.0
    matrix.remove(0, 3)

    assert np.array_equal(matrix.toDense(), dense)
    assert matrix.nonZeros() == 2
    assert matrix(2, 3) == -2.5
    assert matrix.coeff(1, 1) == 0.0


def testAddToEntry(order):
    matrix = SparseMatrix(2, 2, order)
    matrix.addToEntry(0, 1, 1.5)
    matrix.addToEntry(0, 1, 2.0)
    assert matrix[0, 1] == pytest.approx(3.5)
    matrix.addToEntry(0, 1, -3.5)
    assert matrix.nonZeros() == 0


def testOutOfRangeAccess():
    matrix = SparseMatrix(2, 3)
    with pytest.raises(InvalidIndexError):
        matrix.setEntry(2, 0, 1.0)
    with pytest.raises(InvalidIndexError):
        matrix.coeff(0, 3)
    with pytest.raises(InvalidIndexError):
        matrix.getRowElements(5)
    with pytest.raises(ShapeMismatchError):
        SparseMatrix(-1, 2)


def testRowAndColumnElements(order):
    matrix = SparseMatrix.fromDense([[1.0, 0.0, 2.0], [0.0, 3.0, 0.0]], order)
    row = matrix.getRowElements(0)
    assert [(t.col, t.value) for t in row] == [(0, 1.0), (2, 2.0)]
    col = matrix.getColElements(1)
    assert [(t.row, t.value) for t in col] == [(1, 3.0)]


def testAdditiveIdentities(order):
    '''(A + B) - B == A and A - A is empty.'''
    a, denseA = _randomSparse(6, 5, 0.4, seed=1, order=order)
    b, denseB = _randomSparse(6, 5, 0.4, seed=2, order=order)

    assert ((a + b) - b).isClose(a)
    assert np.allclose((a + b).toDense(), denseA + denseB)
    assert (a - a).nonZeros() == 0
    assert (-a).isClose(a * -1.0)

    c = a.copy()
    c += b
    c -= b
    assert c.isClose(a)

    with pytest.raises(ShapeMismatchError):
        a + SparseMatrix(5, 6)


def testScalarScaling():
    '''Scaling keeps the sparsity pattern.'''
    matrix = SparseMatrix(3, 3)
    matrix.setEntry(0, 0, 1.0)
    matrix.setEntry(1, 1, 2.0)

    scaled = matrix * 2.0
    assert scaled[0, 0] == 2.0
    assert scaled[1, 1] == 4.0
    assert scaled.nonZeros() == 2
    assert (3 * matrix)[1, 1] == 6.0

    assert ((matrix * 7.5) / 7.5).isClose(matrix)

    matrix *= 0.0
    assert matrix.nonZeros() == 0


def testDivisionByZero():
    matrix = SparseMatrix.fromDense(np.eye(2))
    with pytest.raises(ZeroDivisorError):
        matrix / 0.0
    with pytest.raises(ZeroDivisorError):
        matrix /= 1e-15


def testDivisionDropsUnderflow():
    '''Entries that underflow to zero are removed, not stored.'''
    matrix = SparseMatrix(2, 2)
    matrix.setEntry(0, 0, 5e-324)
    matrix.setEntry(1, 1, 4.0)

    halved = matrix / 2.0
    assert halved.nonZeros() == 1
    assert halved[1, 1] == 2.0
    assert halved.getRowElements(0) == []


def testTranspose(order):
    matrix, dense = _randomSparse(4, 7, 0.3, seed=3, order=order)
    transposed = matrix.T
    assert transposed.shape == (7, 4)
    assert transposed.nonZeros() == matrix.nonZeros()
    assert np.array_equal(transposed.toDense(), dense.T)
    assert transposed.T == matrix


def testMatrixVectorProducts(order):
    '''Dense and sparse vector products agree with NumPy.'''
    matrix, dense = _randomSparse(5, 4, 0.5, seed=4, order=order)
    x = np.array([1.0, -2.0, 0.5, 3.0])
    y = np.array([0.5, 1.0, -1.0, 2.0, 0.0])

    assert np.allclose(matrix * x, dense @ x)
    assert np.allclose(matrix @ x, dense @ x)
    assert np.allclose(y @ matrix, y @ dense)
    assert np.allclose(matrix.leftMultiply(y), y @ dense)

    product = matrix * SparseVector.fromDense(x)
    assert isinstance(product, SparseVector)
    assert np.allclose(product.toDense(), dense @ x)

    left = matrix.leftMultiply(SparseVector.fromDense(y))
    assert np.allclose(left.toDense(), y @ dense)

    with pytest.raises(ShapeMismatchError):
        matrix * np.ones(5)
    with pytest.raises(ShapeMismatchError):
        matrix.leftMultiply(np.ones(4))


def testMatrixMatrixProduct():
    a, denseA = _randomSparse(4, 6, 0.5, seed=5)
    b, denseB = _randomSparse(6, 3, 0.5, seed=6, order=MajorOrder.COL_MAJOR)

    product = a * b
    assert product.shape == (4, 3)
    assert np.allclose(product.toDense(), denseA @ denseB)

    with pytest.raises(ShapeMismatchError):
        a * a


def testScipyRoundTrip(order):
    matrix, dense = _randomSparse(5, 5, 0.4, seed=7, order=order)
    converted = matrix.toScipy()
    expectedFormat = 'csr' if order is MajorOrder.ROW_MAJOR else 'csc'
    assert converted.format == expectedFormat
    assert np.allclose(converted.toarray(), dense)
    assert SparseMatrix.fromScipy(converted, order) == matrix


def testFromScipySumsDuplicates():
    coo = sps.coo_matrix(([1.0, 2.0, 3.0], ([0, 0, 1], [1, 1, 0])), shape=(2, 2))
    matrix = SparseMatrix.fromScipy(coo)
    assert matrix[0, 1] == 3.0
    assert matrix[1, 0] == 3.0
    assert matrix.nonZeros() == 2


def testLineIterator(order):
    '''The iterator walks one major line in minor-index order.'''
    matrix = SparseMatrix.fromDense(
        [[0.0, 1.0, 0.0, 2.0],
         [3.0, 0.0, 0.0, 0.0],
         [0.0, 4.0, 5.0, 0.0]],
        order,
    )
    iterator = SparseMatrixIterator(matrix, 1)
    visited = []
    while iterator:
        visited.append((iterator.row, iterator.col, iterator.value))
        iterator.advance()

    if order is MajorOrder.ROW_MAJOR:
        assert visited == [(1, 0, 3.0)]
    else:
        assert visited == [(0, 1, 1.0), (2, 1, 4.0)]

    with pytest.raises(IteratorStateError):
        iterator.value
    with pytest.raises(IteratorStateError):
        iterator.advance()
    with pytest.raises(InvalidIndexError):
        SparseMatrixIterator(matrix, matrix.majorSize)


def testIteratorOverEmptyLine():
    matrix = SparseMatrix(3, 3)
    matrix.setEntry(0, 0, 1.0)
    assert not SparseMatrixIterator(matrix, 2)
    assert [t.value for t in SparseMatrixIterator(matrix, 0)] == [1.0]
