# -- Sparse Vector Test -- #

'''
Tests for SparseVector storage and arithmetic.

Sean Bowman [10/19/2026]
'''

import numpy as np
import pytest

from mpmSim.core import SparseVector
from mpmSim.errors import InvalidIndexError, ShapeMismatchError, ZeroDivisorError


def testEntriesAndZeroRemoval():
    vector = SparseVector(5)
    vector.setEntry(1, 2.0)
    vector[3] = -1.0
    assert vector.nonZeros() == 2
    assert vector[0] == 0.0

    vector[1] = 0.0
    assert vector.entries() == [(3, -1.0)]

    with pytest.raises(InvalidIndexError):
        vector[5]
    with pytest.raises(ShapeMismatchError):
        SparseVector(-1)


def testArithmetic():
    a = SparseVector.fromDense([1.0, 0.0, 2.0, 0.0])
    b = SparseVector.fromDense([0.0, 3.0, -2.0, 0.0])

    assert np.array_equal((a + b).toDense(), [1.0, 3.0, 0.0, 0.0])
    assert (a + b).nonZeros() == 2
    assert ((a + b) - b) == a
    assert (2.0 * a).isClose(a * 2)
    assert ((a * 3.0) / 3.0).isClose(a)
    assert (-a)[2] == -2.0

    with pytest.raises(ZeroDivisorError):
        a / 0.0
    with pytest.raises(ShapeMismatchError):
        a + SparseVector(3)


def testDotAndNorm():
    a = SparseVector.fromDense([3.0, 0.0, 4.0])
    b = SparseVector.fromDense([1.0, 5.0, 1.0])
    assert a.dot(b) == pytest.approx(7.0)
    assert a.dot(np.array([1.0, 1.0, 1.0])) == pytest.approx(7.0)
    assert a.norm() == pytest.approx(5.0)

    with pytest.raises(ShapeMismatchError):
        a.dot(np.ones(4))
