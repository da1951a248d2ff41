# -- Dynamic Array Test -- #

'''
Tests for the resizable DynamicArray container and its cursor.

Sean Bowman [10/19/2026]
'''

import numpy as np
import pytest

from mpmSim.core import DynamicArray
from mpmSim.errors import InvalidIndexError, IteratorStateError


def testResizeGrowsAndShrinks():
    '''Resize fills new slots and truncates on shrink.'''
    array = DynamicArray()
    assert array.isEmpty()

    array.resize(3, fill=0)
    assert array.elementCount == 3
    assert array.toList() == [0, 0, 0]

    array.resize(1)
    assert len(array) == 1

    with pytest.raises(InvalidIndexError):
        array.resize(-1)


def testResizeFillDoesNotAlias():
    '''Mutable fill values are copied per slot.'''
    array = DynamicArray()
    array.resize(2, fill=[])
    array[0].append(1)
    assert array[1] == []


def testElementAccess():
    array = DynamicArray([10, 20, 30])
    assert array[1] == 20
    array[1] = 25
    assert array.toList() == [10, 25, 30]

    with pytest.raises(InvalidIndexError):
        array[3]
    with pytest.raises(InvalidIndexError):
        array[-1]
    with pytest.raises(InvalidIndexError):
        array[3] = 1


def testInsertRemovePop():
    '''Removal shifts later elements down by one.'''
    array = DynamicArray(['a', 'b', 'c'])
    array.insert(1, 'x')
    assert array.toList() == ['a', 'x', 'b', 'c']

    removed = array.remove(0)
    assert removed == 'a'
    assert array[0] == 'x'

    assert array.pop() == 'c'
    assert array.toList() == ['x', 'b']

    array.clear()
    with pytest.raises(InvalidIndexError):
        array.pop()
    with pytest.raises(InvalidIndexError):
        array.insert(2, 'z')


def testCursorWalk():
    '''begin() reaches end() after elementCount advances.'''
    array = DynamicArray([1, 2, 3])
    cursor = array.begin()
    seen = []
    while cursor != array.end():
        seen.append(cursor.value)
        cursor.advance()
    assert seen == [1, 2, 3]
    assert cursor.isEnd

    with pytest.raises(IteratorStateError):
        cursor.value
    with pytest.raises(IteratorStateError):
        cursor.advance()

    cursor.retreat()
    assert cursor.value == 3


def testCursorErrors():
    array = DynamicArray([1])
    other = DynamicArray([1])

    assert array.begin() == array.begin()
    empty = DynamicArray()
    assert empty.begin() == empty.end()

    with pytest.raises(IteratorStateError):
        array.begin().retreat()
    with pytest.raises(IteratorStateError):
        array.begin() == other.begin()


def testEquality():
    assert DynamicArray([1, 2]) == DynamicArray([1, 2])
    assert DynamicArray([1, 2]) != DynamicArray([2, 1])


def testReserve():
    array = DynamicArray([1, 2])
    array.reserve(10)
    assert array.capacity == 10
    assert array.elementCount == 2

    array.resize(12)
    assert array.capacity == 12
    with pytest.raises(InvalidIndexError):
        array.reserve(-1)


def testNumpyIntegerIndices():
    '''Indices from numpy reductions address elements like plain ints.'''
    array = DynamicArray([3.0, 9.0, 4.0])
    assert array[np.argmax(array.toList())] == 9.0

    array[np.int32(0)] = 1.0
    assert array.remove(np.int64(2)) == 4.0
    assert array.toList() == [1.0, 9.0]

    with pytest.raises(InvalidIndexError):
        array[np.int64(2)]
    with pytest.raises(InvalidIndexError):
        array[True]
    with pytest.raises(InvalidIndexError):
        array[1.0]
