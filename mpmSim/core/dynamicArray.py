# -- Dynamic Array Container -- #

'''
Resizable container for homogeneous elements (particles, grid node
payloads) with index checking and bidirectional iterators.

Indices are contiguous in [0, elementCount). Removing an element
shifts every later element down by one, so indices held elsewhere
are not stable across removals.

Sean Bowman [10/19/2026]
'''

from __future__ import annotations

import copy
import operator
from typing import Callable, Generic, Iterable, Iterator, TypeVar

from mpmSim.errors import InvalidIndexError, IteratorStateError

T = TypeVar('T')


class DynamicArray(Generic[T]):
    '''
    Resizable array of elements of a single type.

    Parameters:
    -----------
    elements : Iterable[T] | None
        Initial contents (copied into the array)
    '''

    def __init__(self, elements: Iterable[T] | None = None) -> None:
        self._data: list[T] = list(elements) if elements is not None else []
        self._capacity = len(self._data)

    ######################################################################
    # -- Size Management -- #
    ######################################################################

    @property
    def elementCount(self) -> int:
        '''Number of stored elements.'''
        return len(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def isEmpty(self) -> bool:
        '''True when no elements are stored.'''
        return not self._data

    def resize(self, count: int, fill: T | Callable[[], T] | None = None) -> None:
        '''
        Grow or shrink the array to exactly `count` elements.

        New slots are filled with `fill`. If `fill` is callable it is
        invoked once per new slot, otherwise a deep copy of `fill` is
        stored so that slots never alias each other.

        Parameters:
        -----------
        count : int
            New element count (>= 0)
        fill : T | Callable[[], T] | None
            Value or factory for new slots
        '''
        if count < 0:
            raise InvalidIndexError(f'Cannot resize array to negative size {count}')

        current = len(self._data)
        if count <= current:
            del self._data[count:]
            return

        for _ in range(count - current):
            if callable(fill):
                self._data.append(fill())
            else:
                self._data.append(copy.deepcopy(fill))

    def reserve(self, capacity: int) -> None:
        '''
        Record the expected element count.

        The backing list grows on demand, so this only raises the
        reported capacity; contents are unchanged.
        '''
        if capacity < 0:
            raise InvalidIndexError(f'Cannot reserve negative capacity {capacity}')
        self._capacity = max(self._capacity, capacity)

    @property
    def capacity(self) -> int:
        '''Reserved capacity (never below elementCount).'''
        return max(self._capacity, len(self._data))

    def clear(self) -> None:
        '''Remove every element.'''
        self._data.clear()

    ######################################################################
    # -- Element Access -- #
    ######################################################################

    def _checkIndex(self, index: int) -> int:
        # Accept numpy integers but not bools
        if isinstance(index, bool):
            raise InvalidIndexError(f'Array index must be an integer, got {index!r}')
        try:
            position = operator.index(index)
        except TypeError:
            raise InvalidIndexError(f'Array index must be an integer, got {index!r}') from None
        if position < 0 or position >= len(self._data):
            raise InvalidIndexError(
                f'Array index {index} out of range [0, {len(self._data)})'
            )
        return position

    def __getitem__(self, index: int) -> T:
        return self._data[self._checkIndex(index)]

    def __setitem__(self, index: int, value: T) -> None:
        self._data[self._checkIndex(index)] = value

    def append(self, element: T) -> None:
        '''Add an element at the end.'''
        self._data.append(element)

    def extend(self, elements: Iterable[T]) -> None:
        '''Append every element of an iterable.'''
        self._data.extend(elements)

    def insert(self, index: int, element: T) -> None:
        '''
        Insert an element before position `index`.

        `index == elementCount` appends.
        '''
        if index < 0 or index > len(self._data):
            raise InvalidIndexError(
                f'Insert position {index} out of range [0, {len(self._data)}]'
            )
        self._data.insert(index, element)

    def remove(self, index: int) -> T:
        '''
        Remove and return the element at `index`.

        Elements after `index` move down by one position.
        '''
        return self._data.pop(self._checkIndex(index))

    def pop(self) -> T:
        '''Remove and return the last element.'''
        if not self._data:
            raise InvalidIndexError('Cannot pop from an empty array')
        return self._data.pop()

    def toList(self) -> list[T]:
        '''Shallow copy of the contents as a list.'''
        return list(self._data)

    def __iter__(self) -> Iterator[T]:
        return iter(self._data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DynamicArray):
            return NotImplemented
        return self._data == other._data

    def __repr__(self) -> str:
        return f'DynamicArray({self._data!r})'

    ######################################################################
    # -- Cursor Iteration -- #
    ######################################################################

    def begin(self) -> ArrayIterator[T]:
        '''Cursor at the first element (equal to end() when empty).'''
        return ArrayIterator(self, 0)

    def end(self) -> ArrayIterator[T]:
        '''Past-the-end cursor; never dereferenced.'''
        return ArrayIterator(self, len(self._data))


class ArrayIterator(Generic[T]):
    '''
    Bidirectional cursor over a DynamicArray.

    Always bound to an array; position elementCount is the end state.
    '''

    def __init__(self, array: DynamicArray[T], position: int) -> None:
        self._array = array
        self._position = position

    @property
    def position(self) -> int:
        '''Current element index.'''
        return self._position

    @property
    def isEnd(self) -> bool:
        '''True at the past-the-end position.'''
        return self._position >= len(self._array)

    @property
    def value(self) -> T:
        '''Element under the cursor.'''
        if self.isEnd:
            raise IteratorStateError('Cannot dereference an end iterator')
        return self._array[self._position]

    def advance(self) -> ArrayIterator[T]:
        '''Move to the next element; returns self.'''
        if self.isEnd:
            raise IteratorStateError('Cannot advance past the end of the array')
        self._position += 1
        return self

    def retreat(self) -> ArrayIterator[T]:
        '''Move to the previous element; returns self.'''
        if self._position == 0:
            raise IteratorStateError('Cannot retreat before the beginning of the array')
        self._position -= 1
        return self

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ArrayIterator):
            return NotImplemented
        if other._array is not self._array:
            raise IteratorStateError('Cannot compare iterators of different arrays')
        return self._position == other._position

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result
